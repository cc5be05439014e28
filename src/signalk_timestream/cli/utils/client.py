# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
History access for CLI commands.
"""

from datetime import datetime, timedelta, timezone
import re

import click

from ...history.query import HistoryQuery
from ...shared.config import Config
from ...storage.timestream import TimestreamClient

_RELATIVE_RE = re.compile(r'^(\d+)([smhd])$')
_UNITS = {'s': 'seconds', 'm': 'minutes', 'h': 'hours', 'd': 'days'}


def parse_instant(text: str) -> datetime:
    """
    Parse a CLI instant.

    Accepts ``now``, a relative age such as ``15m`` (15 minutes ago) or an
    ISO-8601 timestamp. Naive timestamps are taken as UTC.

    Raises:
        click.BadParameter: If the text is none of those
    """
    now = datetime.now(timezone.utc)
    if text == "now":
        return now

    if match := _RELATIVE_RE.match(text):
        amount, unit = match.groups()
        return now - timedelta(**{_UNITS[unit]: int(amount)})

    try:
        instant = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        raise click.BadParameter(f"{text!r} is not 'now', an age like 15m, or an ISO-8601 timestamp")

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def build_history_query(config: Config, tick_seconds: float = 1.0) -> HistoryQuery:
    """Build a history façade from configuration."""
    if not config.database or not config.table:
        raise click.UsageError("database and table must be configured")
    if not config.self_id:
        raise click.UsageError("self_id must be configured")

    client = TimestreamClient(region_name=config.aws_region)
    return HistoryQuery(client, config.database, config.table, config.identity, tick_seconds=tick_seconds)
