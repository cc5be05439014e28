# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Reader that feeds deltas from a Redis Stream onto a DeltaBus.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import redis

from .bus import DeltaBus
from ..shared.streams import DELTA_FIELD, SIGNALK_DELTA_STREAM

logger = logging.getLogger(__name__)


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


class RedisDeltaReader:
    """
    Tails a Redis Stream of JSON deltas.

    Features:
    - XREAD from the newest entry onwards (no consumer group; sampling
      tolerates missed entries)
    - Blocking reads run off the event loop
    - Malformed entries are logged and skipped
    - Back-off on connection errors
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        bus: DeltaBus,
        stream_name: str = SIGNALK_DELTA_STREAM,
        block_ms: int = 1000,
        count: int = 100,
        start_id: str = '$',
    ):
        """
        Initialize reader.

        Args:
            redis_client: Redis client instance
            bus: Bus receiving decoded deltas
            stream_name: Redis Stream name
            block_ms: Blocking timeout for XREAD (ms)
            count: Maximum entries per read
            start_id: Stream ID to read after ('$' = only new entries)
        """
        self.redis_client = redis_client
        self.bus = bus
        self.stream_name = stream_name
        self.block_ms = block_ms
        self.count = count
        self.last_id = start_id
        self.running = False
        self.stats = {
            'delivered': 0,
            'malformed': 0,
        }

    def _parse_entry(self, message_id: Any, fields: Dict[Any, Any]) -> Optional[Dict[str, Any]]:
        """Decode one stream entry into a delta dict."""
        msg_id = _decode(message_id)
        raw = None
        for key, value in fields.items():
            if _decode(key) == DELTA_FIELD:
                raw = _decode(value)
                break

        if raw is None:
            logger.warning(f"Stream entry {msg_id} has no {DELTA_FIELD} field")
            return None

        try:
            delta = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stream entry {msg_id} is not valid JSON: {e}")
            return None

        if not isinstance(delta, dict):
            logger.warning(f"Stream entry {msg_id} is not a delta object")
            return None

        return delta

    def dispatch(self, messages: List[Any]) -> int:
        """
        Emit the deltas of one XREAD response.

        Returns:
            Number of deltas delivered
        """
        delivered = 0
        for _stream, entries in messages:
            for message_id, fields in entries:
                self.last_id = _decode(message_id)
                delta = self._parse_entry(message_id, fields)
                if delta is None:
                    self.stats['malformed'] += 1
                    continue
                self.bus.emit(delta)
                delivered += 1

        self.stats['delivered'] += delivered
        return delivered

    async def run(self) -> None:
        """Main read loop."""
        self.running = True
        logger.info(f"Reading deltas from {self.stream_name}")

        while self.running:
            try:
                messages = await asyncio.to_thread(
                    self.redis_client.xread,
                    {self.stream_name: self.last_id},
                    self.count,
                    self.block_ms,
                )
                if messages:
                    self.dispatch(messages)

            except asyncio.CancelledError:
                logger.info("Delta reader cancelled")
                break
            except redis.ConnectionError as e:
                logger.error(f"Redis connection error: {e}")
                await asyncio.sleep(1)  # Back off on error
            except Exception as e:
                logger.error(f"Error reading deltas: {e}")
                await asyncio.sleep(1)

        self.running = False
        logger.info("Delta reader stopped")

    def stop(self) -> None:
        """Stop the reader."""
        self.running = False
