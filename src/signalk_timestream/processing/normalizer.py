# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Conversion of Signal K deltas into scalar data points.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional

from .filters import PathFilter
from .models import DataPoint
from ..shared.config import SelfIdentity

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp_ms(timestamp: str) -> int:
    """
    Parse an ISO-8601 timestamp into epoch milliseconds.

    Naive timestamps are taken as UTC.

    Raises:
        ValueError: If the timestamp cannot be parsed
    """
    if not isinstance(timestamp, str):
        raise ValueError(f"Timestamp must be a string, got {type(timestamp).__name__}")

    parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - EPOCH) // timedelta(milliseconds=1)


def expand_value(path: str, value: Any) -> Iterator[tuple]:
    """
    Yield ``(path, scalar)`` pairs for a reading.

    Object values expand into one pair per sub-field, named
    ``<path>.<subfield>``, recursing into nested objects. The object path
    itself is never yielded.
    """
    if isinstance(value, dict):
        for key, sub_value in value.items():
            yield from expand_value(f"{path}.{key}", sub_value)
    else:
        yield path, value


class PointNormalizer:
    """
    Turns updates into filtered, expanded data points.

    Only deltas about the local vessel are normalized.
    """

    def __init__(self, path_filter: PathFilter, identity: SelfIdentity):
        """
        Initialize normalizer.

        Args:
            path_filter: Compiled include/exclude filter
            identity: Local vessel identity
        """
        self.path_filter = path_filter
        self.identity = identity

    def normalize_update(self, update: Dict[str, Any]) -> List[DataPoint]:
        """
        Normalize one update.

        Args:
            update: Update dict with ``timestamp`` and ``values``

        Returns:
            Data points in value order (possibly empty)
        """
        values = update.get('values')
        if not values:
            return []

        try:
            timestamp = parse_timestamp_ms(update.get('timestamp'))
        except ValueError as e:
            logger.warning(f"Skipping update with bad timestamp {update.get('timestamp')!r}: {e}")
            return []

        points = []
        for entry in values:
            path = entry.get('path')
            if not path or not self.path_filter.accepts(path):
                continue

            for name, value in expand_value(path, entry.get('value')):
                points.append(DataPoint(name=name, value=value, timestamp=timestamp))

        return points

    def normalize_delta(self, delta: Dict[str, Any]) -> List[DataPoint]:
        """
        Normalize a whole delta.

        Deltas for other contexts, or without updates, yield nothing.
        """
        if not self.identity.matches(delta.get('context')):
            return []

        updates: Optional[list] = delta.get('updates')
        if not updates:
            return []

        points = []
        for update in updates:
            points.extend(self.normalize_update(update))
        return points
