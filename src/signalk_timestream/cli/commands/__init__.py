# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""Command modules for the CLI."""

from . import history
from . import playback
from . import config
from . import run

__all__ = ["history", "playback", "config", "run"]
