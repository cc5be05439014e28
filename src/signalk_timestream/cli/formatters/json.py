# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
JSON formatter for piping deltas into other tools.
"""

import json
from typing import Any, Dict

from rich.console import Console

from .base import BaseFormatter

console = Console()


class JSONFormatter(BaseFormatter):
    """Emit deltas and results as JSON documents."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format_delta(self, delta: Dict[str, Any]):
        """Print a delta exactly as it would be handed to a subscriber."""
        self._emit(delta)

    def format_occupancy(self, start: str, has_data: bool):
        self._emit({"start": start, "has_data": has_data})

    def format_config(self, config: Dict[str, Any]):
        self._emit(config)

    def format_error(self, error: str):
        self._emit({"error": error, "success": False})

    def _emit(self, data: Any):
        console.print_json(json.dumps(data, default=str), indent=self.indent)
