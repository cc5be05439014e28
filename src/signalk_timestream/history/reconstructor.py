# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Rebuilds Signal K deltas from Timestream query results.

A query response looks like::

    {
      "ColumnInfo": [
        {"Name": "context", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "measure_value::double", "Type": {"ScalarType": "DOUBLE"}},
        {"Name": "measure_value::varchar", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "measure_name", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "time", "Type": {"ScalarType": "TIMESTAMP"}}
      ],
      "Rows": [
        {"Data": [
          {"ScalarValue": "urn:mrn:imo:mmsi:368107960"},
          {"ScalarValue": "4.294967167E7"},
          {"NullValue": true},
          {"ScalarValue": "navigation.courseRhumbline.nextPoint.distance"},
          {"ScalarValue": "2020-10-17 16:59:50.892000000"}
        ]}
      ]
    }

One row is one scalar point; rows sharing a timestamp become one update.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..shared.config import SelfIdentity
from ..shared.streams import SOURCE_LABEL

logger = logging.getLogger(__name__)

MEASURE_NAME_COLUMN = 'measure_name'
TIME_COLUMN = 'time'
DOUBLE_COLUMN = 'measure_value::double'
VARCHAR_COLUMN = 'measure_value::varchar'

LATITUDE_PATH = 'navigation.position.latitude'
LONGITUDE_PATH = 'navigation.position.longitude'
POSITION_PATH = 'navigation.position'

_FRACTION_RE = re.compile(r'\.(\d+)')


def parse_row_time(value: str) -> datetime:
    """
    Parse a Timestream time value such as ``2020-10-17 16:59:50.892000000``.

    Fractions beyond microseconds are truncated. The result is UTC.

    Raises:
        ValueError: If the value is not a timestamp
    """
    text = value.strip().replace('T', ' ').rstrip('Z')
    match = _FRACTION_RE.search(text)
    if match:
        fraction = match.group(1)[:6].ljust(6, '0')
        text = text[:match.start()] + '.' + fraction + text[match.end():]
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(instant: datetime) -> str:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    instant = instant.astimezone(timezone.utc)
    return instant.strftime('%Y-%m-%dT%H:%M:%S.') + f"{instant.microsecond // 1000:03d}Z"


class RowMapper:
    """
    Resolves the logical fields of a row by column name.

    The column index mapping is built once per query response.
    """

    def __init__(self, columns: List[Dict[str, Any]]):
        index = {col.get('Name'): i for i, col in enumerate(columns)}
        self.measure_idx: Optional[int] = index.get(MEASURE_NAME_COLUMN)
        self.time_idx: Optional[int] = index.get(TIME_COLUMN)
        self.double_idx: Optional[int] = index.get(DOUBLE_COLUMN)
        self.varchar_idx: Optional[int] = index.get(VARCHAR_COLUMN)

        for name, idx in ((MEASURE_NAME_COLUMN, self.measure_idx), (TIME_COLUMN, self.time_idx)):
            if idx is None:
                logger.warning(f"Query result has no {name} column")

    @staticmethod
    def _field(idx: Optional[int], data: List[Dict[str, Any]]) -> Optional[str]:
        if idx is None or idx >= len(data):
            return None
        return data[idx].get('ScalarValue')

    def measure_name(self, data: List[Dict[str, Any]]) -> Optional[str]:
        return self._field(self.measure_idx, data)

    def timestamp(self, data: List[Dict[str, Any]]) -> Optional[str]:
        return self._field(self.time_idx, data)

    def value(self, data: List[Dict[str, Any]]) -> Any:
        """
        Resolve a row's value.

        The double field wins when it parses to a truthy number; otherwise the
        varchar field is used. A stored 0.0 therefore comes back from the
        varchar field, which is null for double rows.
        """
        raw_double = self._field(self.double_idx, data)
        value_double = None
        if raw_double is not None:
            try:
                value_double = float(raw_double)
            except ValueError:
                logger.warning(f"Unparseable double value {raw_double!r}")

        if value_double:
            return value_double
        return self._field(self.varchar_idx, data)


def parse_row(mapper: RowMapper, data: List[Dict[str, Any]]) -> Optional[tuple]:
    """
    Turn one row into ``(iso_timestamp, path, value)``.

    Returns:
        None for rows without a name or a usable time
    """
    name = mapper.measure_name(data)
    raw_time = mapper.timestamp(data)
    if not name or raw_time is None:
        logger.warning(f"Skipping row without measure name or time: {data}")
        return None

    try:
        timestamp = to_iso(parse_row_time(raw_time))
    except ValueError as e:
        logger.warning(f"Skipping row with bad time {raw_time!r}: {e}")
        return None

    return timestamp, name, mapper.value(data)


def combine_position(values: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merge split latitude/longitude values back into ``navigation.position``.

    Only latitude decides whether to combine; a missing longitude becomes
    None in the combined value.
    """
    latitude = next((v for v in values if v['path'] == LATITUDE_PATH), None)
    if latitude is None or latitude['value'] is None:
        return values

    longitude = next((v for v in values if v['path'] == LONGITUDE_PATH), None)
    longitude_value = longitude['value'] if longitude is not None else None
    logger.debug(f"found lat/long, correcting object lat={latitude['value']} long={longitude_value}")

    combined = [v for v in values if v['path'] not in (LATITUDE_PATH, LONGITUDE_PATH)]
    combined.append({
        'path': POSITION_PATH,
        'value': {
            'latitude': latitude['value'],
            'longitude': longitude_value,
        },
    })
    return combined


def reconstruct(identity: SelfIdentity, result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rebuild one delta from a query response.

    Args:
        identity: Local vessel identity (the only archived context)
        result: Response with ``ColumnInfo`` and ``Rows``

    Returns:
        Delta with one update per distinct timestamp, in first-seen order
    """
    mapper = RowMapper(result.get('ColumnInfo', []))

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in result.get('Rows', []):
        parsed = parse_row(mapper, row.get('Data', []))
        if parsed is None:
            continue
        timestamp, path, value = parsed
        grouped.setdefault(timestamp, []).append({'path': path, 'value': value})

    updates = [
        {
            'source': {'label': SOURCE_LABEL},
            'timestamp': timestamp,
            'values': combine_position(values),
        }
        for timestamp, values in grouped.items()
    ]

    return {
        'context': identity.context,
        'updates': updates,
    }
