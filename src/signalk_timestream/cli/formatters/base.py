# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Base formatter class for output formatting.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict
from rich.console import Console

console = Console()


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_delta(self, delta: Dict[str, Any]):
        """Format a Signal K delta for output."""
        pass

    @abstractmethod
    def format_occupancy(self, start: str, has_data: bool):
        """Format an occupancy check result."""
        pass

    @abstractmethod
    def format_config(self, config: Dict[str, Any]):
        """Format configuration for output."""
        pass

    @abstractmethod
    def format_error(self, error: str):
        """Format error message for output."""
        pass

    def format_success(self, message: str):
        """Format success message for output."""
        console.print(f"[green]✓[/green] {message}")

    def format_info(self, message: str):
        """Format info message for output."""
        console.print(f"[blue]ℹ[/blue] {message}")

    def _format_value(self, value: Any) -> str:
        """Format a reading for display."""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            return f"{value:g}"
        if isinstance(value, dict):
            return json.dumps(value)
        if value is None:
            return "-"
        return str(value)
