# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Delta bus adapters.
"""

from .bus import DeltaBus
from .redis_bus import RedisDeltaReader

__all__ = ['DeltaBus', 'RedisDeltaReader']
