# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Publisher that writes batch snapshots to Amazon Timestream.

Each publish owns its own snapshot; failures are logged and the interval's
data is dropped without retry.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set

from botocore.exceptions import BotoCoreError, ClientError

from .models import DataPoint
from ..shared.config import MAX_RECORDS_PER_WRITE
from ..storage.timestream import TimestreamClient

logger = logging.getLogger(__name__)

VARCHAR = "VARCHAR"
DOUBLE = "DOUBLE"
BOOLEAN = "BOOLEAN"


def value_to_type(point: DataPoint) -> str:
    """
    Infer the Timestream measure value type of a point.

    Unresolvable kinds degrade to VARCHAR.
    """
    value = point.value

    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return BOOLEAN
    elif isinstance(value, str):
        return VARCHAR
    elif isinstance(value, (int, float)):
        return DOUBLE
    else:
        logger.warning(f"could not determine type for {point.name}={value!r}")
        return VARCHAR


def value_to_string(value: Any) -> str:
    """Serialise a measure value the way Timestream expects for its type."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def build_record(point: DataPoint) -> Dict[str, str]:
    """Build one WriteRecords record from a data point."""
    return {
        'MeasureName': point.name,
        'MeasureValue': value_to_string(point.value),
        'MeasureValueType': value_to_type(point),
        'Time': str(point.timestamp),
    }


def build_common_attributes(self_id: str) -> Dict[str, Any]:
    """Attributes shared by every record of one publish."""
    return {
        'TimeUnit': 'MILLISECONDS',
        'Dimensions': [{
            'Name': 'context',
            'Value': self_id,
        }],
    }


def chunk_records(records: List[Any], chunk_size: int) -> List[List[Any]]:
    """
    Split records into lists of at most chunk_size.

    Returns:
        Chunks in order; empty input gives no chunks
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [records[i:i + chunk_size] for i in range(0, len(records), chunk_size)]


class TimestreamPublisher:
    """
    Writes data point snapshots to one Timestream table.

    Features:
    - Value type inference per point
    - Shared context dimension for the whole publish
    - Chunking to the WriteRecords record limit
    - Fire-and-forget background publishing
    """

    def __init__(
        self,
        client: TimestreamClient,
        database: str,
        table: str,
        self_id: str,
        max_records_per_write: int = MAX_RECORDS_PER_WRITE,
    ):
        """
        Initialize publisher.

        Args:
            client: Timestream client
            database: Timestream database name
            table: Timestream table name
            self_id: Identity written as the context dimension
            max_records_per_write: Records per WriteRecords call
        """
        self.client = client
        self.database = database
        self.table = table
        self.self_id = self_id
        self.max_records_per_write = max_records_per_write

        self._tasks: Set[asyncio.Task] = set()
        self.stats = {
            'published': 0,
            'failed': 0,
            'skipped': 0,
        }

    def build_requests(self, points: List[DataPoint]) -> List[Dict[str, Any]]:
        """
        Build the WriteRecords requests for a snapshot.

        Returns:
            One request per chunk; empty for an empty snapshot
        """
        records = [build_record(point) for point in points]
        common_attributes = build_common_attributes(self.self_id)

        return [
            {
                'DatabaseName': self.database,
                'TableName': self.table,
                'Records': chunk,
                'CommonAttributes': common_attributes,
            }
            for chunk in chunk_records(records, self.max_records_per_write)
        ]

    async def publish(self, points: List[DataPoint]) -> bool:
        """
        Write a snapshot to Timestream.

        Never raises for remote failures; they are logged and the data dropped.

        Args:
            points: Snapshot owned by this call

        Returns:
            True if every chunk was written
        """
        if not points:
            logger.debug("nothing to publish")
            self.stats['skipped'] += 1
            return True

        requests = self.build_requests(points)
        ok = True
        for request in requests:
            if not await self._write(request):
                ok = False

        return ok

    async def _write(self, request: Dict[str, Any]) -> bool:
        """Issue one WriteRecords request, logging any failure."""
        count = len(request['Records'])
        logger.debug(f"publishing {count} records to {self.database}.{self.table}")

        try:
            response = await asyncio.to_thread(
                self.client.write_records,
                request['DatabaseName'],
                request['TableName'],
                request['Records'],
                request['CommonAttributes'],
            )
        except ClientError as e:
            self.stats['failed'] += count
            self._log_client_error(e, request['Records'])
            return False
        except BotoCoreError as e:
            self.stats['failed'] += count
            logger.error(f"Timestream transport error, dropping {count} records: {e}")
            return False
        except Exception as e:
            self.stats['failed'] += count
            logger.error(f"Failed to publish {count} records: {e}")
            return False

        self.stats['published'] += count
        logger.debug(f"publish ok: {response.get('RecordsIngested', {}) if isinstance(response, dict) else response}")
        return True

    def _log_client_error(self, error: ClientError, records: List[Dict[str, str]]) -> None:
        """Log a service rejection, with per-record reasons when given."""
        code = error.response.get('Error', {}).get('Code', 'Unknown')
        rejected = error.response.get('RejectedRecords', [])

        if code == 'RejectedRecordsException' and rejected:
            for rejection in rejected:
                index = rejection.get('RecordIndex')
                name = records[index]['MeasureName'] if isinstance(index, int) and index < len(records) else '?'
                logger.warning(f"Timestream rejected record {name}: {rejection.get('Reason')}")
        else:
            logger.error(f"Timestream write failed ({code}), dropping {len(records)} records: {error}")

    def publish_in_background(self, points: List[DataPoint]) -> Optional[asyncio.Task]:
        """
        Start a publish without waiting for it.

        Must be called from within a running event loop.

        Returns:
            The publish task, or None for an empty snapshot
        """
        if not points:
            logger.debug("nothing to publish")
            self.stats['skipped'] += 1
            return None

        task = asyncio.create_task(self.publish(list(points)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def in_flight(self) -> int:
        """Number of background publishes not yet completed."""
        return len(self._tasks)
