# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
History queries over the Timestream table.

All operations are built on one half-open range query that returns a
reconstructed delta.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Hashable, Optional, Set

from .reconstructor import reconstruct
from ..shared.config import SelfIdentity
from ..storage.timestream import TimestreamClient, build_range_query

logger = logging.getLogger(__name__)

LOOKBACK_WINDOW = timedelta(minutes=5)
OCCUPANCY_WINDOW = timedelta(seconds=10)

DeltaCallback = Callable[[Dict[str, Any]], Any]


class HistoryQuery:
    """
    History façade for one vessel's archived data.

    Provides:
    - Point lookback (last 5 minutes before an instant)
    - Playback streams, one independent task per token
    - Occupancy check (any data in 10 seconds from an instant)
    """

    def __init__(
        self,
        client: TimestreamClient,
        database: str,
        table: str,
        identity: SelfIdentity,
        tick_seconds: float = 1.0,
    ):
        """
        Initialize history query façade.

        Args:
            client: Timestream client
            database: Timestream database name
            table: Timestream table name
            identity: Local vessel identity
            tick_seconds: Wall-clock seconds between playback queries
        """
        self.client = client
        self.database = database
        self.table = table
        self.identity = identity
        self.tick_seconds = tick_seconds
        self._playbacks: Dict[Hashable, asyncio.Task] = {}

    def empty_delta(self) -> Dict[str, Any]:
        return {'context': self.identity.context, 'updates': []}

    async def query(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """
        Fetch and rebuild ``[start, end)``.

        Raises:
            Exception: Whatever the query client raises
        """
        query_string = build_range_query(self.database, self.table, start, end, self.identity.self_id)
        logger.debug(f"querying {query_string}")
        result = await asyncio.to_thread(self.client.query, query_string)
        return reconstruct(self.identity, result)

    async def get_history(self, instant: datetime) -> Dict[str, Any]:
        """
        Look back from an instant.

        Returns:
            Delta for the look-back window; no updates when nothing was
            stored or the query failed
        """
        try:
            delta = await self.query(instant - LOOKBACK_WINDOW, instant)
        except Exception as e:
            logger.error(f"History lookback at {instant.isoformat()} failed: {e}")
            return self.empty_delta()

        if not delta['updates']:
            logger.debug(f"No history before {instant.isoformat()}")
        return delta

    async def has_any_data(self, start_time: datetime) -> bool:
        """Check whether any value was stored in the 10 seconds from start_time."""
        try:
            delta = await self.query(start_time, start_time + OCCUPANCY_WINDOW)
        except Exception as e:
            logger.error(f"Occupancy check at {start_time.isoformat()} failed: {e}")
            return False

        return any(update.get('values') for update in delta['updates'])

    def stream_history(
        self,
        token: Hashable,
        start_time: datetime,
        playback_rate: float,
        on_delta: DeltaCallback,
    ) -> Callable[[], None]:
        """
        Start replaying history from start_time.

        Every tick, ``playback_rate`` seconds of history are queried and
        handed to on_delta. The playback clock advances whether or not the
        query succeeded. Ticks keep their period however long queries
        take. Requires a running event loop.

        Args:
            token: Identifies this playback; reusing a token replaces it
            start_time: First instant to replay
            playback_rate: Source seconds replayed per wall-clock tick
            on_delta: Called with each reconstructed delta (may be async)

        Returns:
            Function that stops only this playback
        """
        if playback_rate <= 0:
            raise ValueError(f"playback_rate must be positive, got {playback_rate}")

        self.stop_stream(token)

        task = asyncio.create_task(self._playback(token, start_time, playback_rate, on_delta))
        self._playbacks[token] = task
        logger.info(f"Started playback {token} from {start_time.isoformat()} at rate {playback_rate}")

        def stop() -> None:
            # Only cancel if the token still maps to this playback
            if self._playbacks.get(token) is task:
                self.stop_stream(token)

        return stop

    async def _playback(
        self,
        token: Hashable,
        start_time: datetime,
        playback_rate: float,
        on_delta: DeltaCallback,
    ) -> None:
        """
        Playback timer owning its own position.

        Ticks follow absolute deadlines, and each tick's window is queried in
        its own task, so slow queries never stretch the tick period. Windows
        are still delivered to on_delta in playback order.
        """
        loop = asyncio.get_running_loop()
        position = start_time
        step = timedelta(seconds=playback_rate)
        next_tick = loop.time()
        previous: Optional[asyncio.Task] = None
        windows: Set[asyncio.Task] = set()

        try:
            while True:
                next_tick += self.tick_seconds
                await asyncio.sleep(max(0.0, next_tick - loop.time()))

                window = asyncio.create_task(
                    self._replay_window(token, position, position + step, on_delta, previous)
                )
                windows.add(window)
                window.add_done_callback(windows.discard)
                previous = window

                position += step
        finally:
            for window in list(windows):
                window.cancel()

    async def _replay_window(
        self,
        token: Hashable,
        start: datetime,
        end: datetime,
        on_delta: DeltaCallback,
        previous: Optional[asyncio.Task],
    ) -> None:
        """Query one window, then deliver it once the previous window is done."""
        delta = None
        try:
            delta = await self.query(start, end)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Playback {token} query failed for {start.isoformat()}: {e}")

        if previous is not None:
            await asyncio.wait([previous])

        if delta is not None:
            await self._deliver(token, on_delta, delta)

    async def _deliver(self, token: Hashable, on_delta: DeltaCallback, delta: Dict[str, Any]) -> None:
        try:
            result = on_delta(delta)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Playback {token} subscriber failed: {e}")

    def stop_stream(self, token: Hashable) -> bool:
        """
        Cancel one playback.

        Returns:
            True if a playback was running for token
        """
        task = self._playbacks.pop(token, None)
        if task is None:
            return False

        task.cancel()
        logger.info(f"Stopped playback {token}")
        return True

    def stop_all(self) -> None:
        """Cancel every playback."""
        for token in list(self._playbacks):
            self.stop_stream(token)

    @property
    def active_tokens(self) -> list:
        return [token for token, task in self._playbacks.items() if not task.done()]
