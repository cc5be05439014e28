# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
History side: rebuild deltas from Timestream and replay them.
"""

from .reconstructor import reconstruct
from .query import HistoryQuery

__all__ = ['reconstruct', 'HistoryQuery']
