# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Interval scheduler that hands the accumulated batch to the publisher.
"""

import asyncio
import logging
from typing import Optional

from .batch_manager import BatchAccumulator
from .publisher import TimestreamPublisher

logger = logging.getLogger(__name__)


class IntervalScheduler:
    """
    Publishes one snapshot per write interval.

    Each tick drains the accumulator (snapshot and reset in one step) and
    starts a background publish of the snapshot. On stop the pending batch
    is discarded, not flushed.
    """

    def __init__(
        self,
        accumulator: BatchAccumulator,
        publisher: TimestreamPublisher,
        write_interval: float = 60,
    ):
        """
        Initialize scheduler.

        Args:
            accumulator: Batch owned by this scheduler
            publisher: Publisher receiving snapshots
            write_interval: Seconds between publishes
        """
        self.accumulator = accumulator
        self.publisher = publisher
        self.write_interval = write_interval
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Start the repeating timer. Requires a running event loop."""
        if self.running:
            logger.warning("Interval scheduler already running")
            return

        logger.info(f"Starting interval scheduler (interval={self.write_interval}s)")
        self.running = True
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the timer and discard the pending batch."""
        if not self.running:
            return

        self.running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        # TODO: publish last batch on stop once hosts give plugins time to flush
        discarded = self.accumulator.size()
        self.accumulator.clear()
        if discarded:
            logger.info(f"Discarded {discarded} unpublished points on stop")

        logger.info("Interval scheduler stopped")

    def tick(self) -> Optional[asyncio.Task]:
        """
        Hand the current batch to the publisher and reset it.

        Returns:
            The background publish task, or None if nothing was pending
        """
        snapshot = self.accumulator.drain()
        logger.debug(f"Interval tick: {len(snapshot)} points")
        return self.publisher.publish_in_background(snapshot)

    async def run(self) -> None:
        """Main timer loop."""
        while self.running:
            try:
                await asyncio.sleep(self.write_interval)
            except asyncio.CancelledError:
                break

            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in interval tick: {e}", exc_info=True)
