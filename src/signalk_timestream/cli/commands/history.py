# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
History lookback and occupancy commands.
"""

import asyncio
import sys

import click
from rich.console import Console

from ...shared.config import Config
from ..formatters import get_formatter
from ..utils.client import build_history_query, parse_instant

console = Console()


@click.command()
@click.argument("instant", default="now")
@click.option(
    "--format", "-f",
    type=click.Choice(["table", "json"]),
    help="Output format"
)
@click.pass_obj
def history(config: Config, instant: str, format: str):
    """
    Show what was stored in the five minutes before INSTANT.

    Examples:
        signalk-timestream history                          # Last five minutes
        signalk-timestream history 2h                       # Two hours ago
        signalk-timestream history 2020-10-17T17:00:00Z -f json
    """
    formatter = get_formatter(format or config.default_format)
    at = parse_instant(instant)
    query = build_history_query(config)

    with console.status("Querying Timestream..."):
        delta = asyncio.run(query.get_history(at))

    formatter.format_delta(delta)


@click.command(name="has-data")
@click.argument("start")
@click.option(
    "--format", "-f",
    type=click.Choice(["table", "json"]),
    help="Output format"
)
@click.pass_obj
def has_data(config: Config, start: str, format: str):
    """
    Check whether anything was stored in the 10 seconds from START.

    Exits with status 1 when nothing was stored.
    """
    formatter = get_formatter(format or config.default_format)
    at = parse_instant(start)
    query = build_history_query(config)

    with console.status("Querying Timestream..."):
        found = asyncio.run(query.has_any_data(at))

    formatter.format_occupancy(at.isoformat(), found)
    if not found:
        sys.exit(1)
