# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Host-facing plugin: samples self deltas into Timestream and serves history.

The host supplies the vessel identity and the delta bus; everything else is
owned by one plugin instance, so several instances can coexist.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Union

from .capture.bus import DeltaBus
from .history.query import DeltaCallback, HistoryQuery
from .processing.batch_manager import BatchAccumulator
from .processing.filters import PathFilter
from .processing.normalizer import PointNormalizer
from .processing.publisher import TimestreamPublisher
from .processing.scheduler import IntervalScheduler
from .shared.config import Config, ConfigurationError, SelfIdentity
from .storage.timestream import TimestreamClient

logger = logging.getLogger(__name__)

PLUGIN_ID = 'signalk-to-timestream'
PLUGIN_NAME = 'Amazon Timestream publisher'


@dataclass
class HostApp:
    """What the plugin needs from its host."""

    self_id: str
    bus: DeltaBus = field(default_factory=DeltaBus)


class TimestreamPlugin:
    """
    Timestream publisher and history provider for one vessel.

    Manages:
    - Delta handler registration on the host bus
    - Batch accumulation and interval publishing
    - History lookback, playback and occupancy queries
    """

    id = PLUGIN_ID
    name = PLUGIN_NAME

    def __init__(self, app: HostApp, client: Optional[TimestreamClient] = None):
        """
        Initialize plugin.

        Args:
            app: Host exposing ``self_id`` and ``bus``
            client: Timestream client (built from config region if not provided)
        """
        self.app = app
        self.client = client
        self.identity = SelfIdentity(app.self_id)

        self.config: Optional[Config] = None
        self.accumulator: Optional[BatchAccumulator] = None
        self.publisher: Optional[TimestreamPublisher] = None
        self.scheduler: Optional[IntervalScheduler] = None
        self.history: Optional[HistoryQuery] = None
        self.running = False

    def _build_filter(self, config: Config) -> PathFilter:
        try:
            return PathFilter(config.filter_list, config.filter_mode)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    async def start(self, config: Union[Config, Mapping[str, Any]]) -> None:
        """
        Start sampling.

        Args:
            config: Loaded configuration, or the host's plugin options
                (see ``Config.from_options``)

        Raises:
            ConfigurationError: If the configuration is unusable
        """
        if self.running:
            logger.warning("Plugin already running")
            return

        logger.info("starting")
        if isinstance(config, Mapping):
            config = Config.from_options(config, self_id=self.identity.self_id)
        config.validate()
        path_filter = self._build_filter(config)

        self.config = config
        if self.client is None:
            self.client = TimestreamClient(region_name=config.aws_region)

        normalizer = PointNormalizer(path_filter, self.identity)
        self.accumulator = BatchAccumulator(normalizer)
        self.publisher = TimestreamPublisher(
            self.client,
            database=config.database,
            table=config.table,
            self_id=self.identity.self_id,
            max_records_per_write=config.max_records_per_write,
        )
        self.scheduler = IntervalScheduler(self.accumulator, self.publisher, config.write_interval)
        self.history = HistoryQuery(self.client, config.database, config.table, self.identity)

        self.app.bus.on(self.handle_delta)
        self.scheduler.start()
        self.running = True

        logger.info(f"Publishing to {config.database}.{config.table} every {config.write_interval}s "
                    f"({config.filter_mode} {len(config.filter_list)} paths)")

    async def stop(self) -> None:
        """Stop sampling and playbacks; the pending batch is discarded."""
        if not self.running:
            return

        logger.info("stopping")
        self.running = False

        self.app.bus.off(self.handle_delta)

        if self.scheduler:
            await self.scheduler.stop()

        if self.history:
            self.history.stop_all()

    def handle_delta(self, delta: Dict[str, Any]) -> None:
        """Bus handler: merge a delta into the current batch."""
        if not self.running:
            return
        try:
            self.accumulator.absorb_delta(delta)
        except Exception as e:
            logger.error(f"Failed to absorb delta: {e}", exc_info=True)

    def _require_history(self) -> HistoryQuery:
        if not self.running or self.history is None:
            raise RuntimeError("Plugin is not running")
        return self.history

    async def get_history(self, instant: datetime) -> Dict[str, Any]:
        """Delta for the five minutes before instant."""
        return await self._require_history().get_history(instant)

    def stream_history(
        self,
        token: Hashable,
        start_time: datetime,
        playback_rate: float,
        on_delta: DeltaCallback,
    ) -> Callable[[], None]:
        """Start a playback; returns its stop function."""
        return self._require_history().stream_history(token, start_time, playback_rate, on_delta)

    async def has_any_data(self, start_time: datetime) -> bool:
        """Whether anything was stored in the 10 seconds from start_time."""
        return await self._require_history().has_any_data(start_time)
