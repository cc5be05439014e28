# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Table formatter using Rich for terminal output.
"""

from typing import Any, Dict

from rich.table import Table
from rich.panel import Panel
from rich.console import Console

from .base import BaseFormatter

console = Console()


class TableFormatter(BaseFormatter):
    """Format output as tables using Rich."""

    def format_delta(self, delta: Dict[str, Any]):
        """Format a delta as one row per path and timestamp."""
        updates = delta.get("updates", [])
        if not updates:
            console.print(f"[dim]No data for {delta.get('context', 'unknown context')}[/dim]")
            return

        table = Table(title=delta.get("context"), show_header=True, header_style="bold magenta")
        table.add_column("Time", style="dim", no_wrap=True)
        table.add_column("Path", style="cyan")
        table.add_column("Value", justify="right")

        for update in updates:
            for value in update.get("values", []):
                table.add_row(
                    update.get("timestamp", ""),
                    value.get("path", ""),
                    self._format_value(value.get("value")),
                )

        console.print(table)

    def format_occupancy(self, start: str, has_data: bool):
        """Format an occupancy check."""
        if has_data:
            console.print(f"[green]✓[/green] Data stored at {start}")
        else:
            console.print(f"[yellow]✗[/yellow] No data stored at {start}")

    def format_config(self, config: Dict[str, Any]):
        """Format configuration sections as a table."""
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")

        for section, values in config.items():
            for key, value in values.items():
                table.add_row(f"{section}.{key}", self._format_value(value))

        console.print(Panel(table, title="Configuration", border_style="blue"))

    def format_error(self, error: str):
        """Format error message."""
        console.print(f"[red]Error:[/red] {error}")
