# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Playback command: replay stored history at a chosen rate.
"""

import asyncio
from typing import Any, Dict, Optional

import click

from ...shared.config import Config
from ..formatters import get_formatter
from ..utils.client import build_history_query, parse_instant


async def _replay(query, start, rate: float, duration: Optional[float], formatter) -> int:
    """Run one playback until duration elapses or the task is cancelled."""
    delivered = 0

    def on_delta(delta: Dict[str, Any]) -> None:
        nonlocal delivered
        if delta.get("updates"):
            delivered += 1
            formatter.format_delta(delta)

    stop = query.stream_history("cli", start, rate, on_delta)
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        stop()

    return delivered


@click.command()
@click.argument("start")
@click.option(
    "--rate", "-r",
    type=float,
    default=1.0,
    show_default=True,
    help="Seconds of history replayed per second"
)
@click.option(
    "--duration", "-d",
    type=float,
    help="Stop after this many wall-clock seconds (default: until Ctrl-C)"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["table", "json"]),
    help="Output format"
)
@click.pass_obj
def playback(config: Config, start: str, rate: float, duration: Optional[float], format: str):
    """
    Replay stored history starting at START.

    Examples:
        signalk-timestream playback 1h --rate 60        # Last hour, a minute per second
        signalk-timestream playback 2020-10-17T16:00:00Z -d 30
    """
    if rate <= 0:
        raise click.BadParameter("rate must be positive", param_hint="--rate")

    formatter = get_formatter(format or config.default_format)
    at = parse_instant(start)
    query = build_history_query(config)

    formatter.format_info(f"Replaying from {at.isoformat()} at {rate:g}x")
    delivered = asyncio.run(_replay(query, at, rate, duration, formatter))
    formatter.format_success(f"Replayed {delivered} windows with data")
