# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Thin wrapper over the boto3 Timestream write and query clients.

Calls are blocking; async callers run them through asyncio.to_thread.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import boto3

logger = logging.getLogger(__name__)

RANGE_QUERY_TEMPLATE = (
    "SELECT * FROM \"{database}\".\"{table}\" "
    "WHERE time >= from_iso8601_timestamp('{start}') "
    "AND time < from_iso8601_timestamp('{end}') "
    "AND context = '{identity}' "
    "ORDER BY time ASC"
)


def format_instant(instant: datetime) -> str:
    """
    Render an instant as ISO-8601 with millisecond precision and ``Z``.

    Naive datetimes are taken as UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    return instant.strftime('%Y-%m-%dT%H:%M:%S.') + f"{instant.microsecond // 1000:03d}Z"


def build_range_query(database: str, table: str, start: datetime, end: datetime, identity: str) -> str:
    """
    Build the half-open ``[start, end)`` range query for one vessel.

    Args:
        database: Timestream database name
        table: Timestream table name
        start: Window start (inclusive)
        end: Window end (exclusive)
        identity: Value of the ``context`` dimension
    """
    return RANGE_QUERY_TEMPLATE.format(
        database=database,
        table=table,
        start=format_instant(start),
        end=format_instant(end),
        identity=identity,
    )


class TimestreamClient:
    """
    Timestream access used by the publisher and the history side.

    Wraps:
    - timestream-write: WriteRecords
    - timestream-query: Query, following NextToken pagination
    """

    def __init__(
        self,
        region_name: Optional[str] = None,
        write_client: Any = None,
        query_client: Any = None,
    ):
        """
        Initialize Timestream client.

        Args:
            region_name: AWS region (boto3 default chain if not provided)
            write_client: Pre-built timestream-write client
            query_client: Pre-built timestream-query client
        """
        self.region_name = region_name
        self._write_client = write_client
        self._query_client = query_client

    @property
    def write_client(self) -> Any:
        if self._write_client is None:
            self._write_client = boto3.client('timestream-write', region_name=self.region_name)
        return self._write_client

    @property
    def query_client(self) -> Any:
        if self._query_client is None:
            self._query_client = boto3.client('timestream-query', region_name=self.region_name)
        return self._query_client

    def write_records(
        self,
        database: str,
        table: str,
        records: List[Dict[str, Any]],
        common_attributes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Issue one WriteRecords call.

        Raises:
            botocore.exceptions.ClientError: On service-side rejection
            botocore.exceptions.BotoCoreError: On transport failure
        """
        return self.write_client.write_records(
            DatabaseName=database,
            TableName=table,
            Records=records,
            CommonAttributes=common_attributes,
        )

    def query(self, query_string: str) -> Dict[str, Any]:
        """
        Run a query and merge every result page.

        Returns:
            Dict with ``ColumnInfo`` and ``Rows``
        """
        column_info: List[Dict[str, Any]] = []
        rows: List[Dict[str, Any]] = []
        kwargs: Dict[str, Any] = {'QueryString': query_string}

        while True:
            page = self.query_client.query(**kwargs)
            if not column_info:
                column_info = page.get('ColumnInfo', [])
            rows.extend(page.get('Rows', []))

            next_token = page.get('NextToken')
            if not next_token:
                break
            kwargs['NextToken'] = next_token

        logger.debug(f"Query returned {len(rows)} rows")
        return {'ColumnInfo': column_info, 'Rows': rows}
