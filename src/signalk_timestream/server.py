# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Standalone server for the Timestream publisher.

Tails Signal K deltas from Redis, samples them into Timestream, and shuts
down gracefully on signals.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

import redis

from .capture.bus import DeltaBus
from .capture.redis_bus import RedisDeltaReader
from .plugin import HostApp, TimestreamPlugin
from .shared.config import Config, ConfigurationError
from .storage.timestream import TimestreamClient

logger = logging.getLogger(__name__)


class TimestreamServer:
    """
    Main server for Timestream publishing.

    Manages:
    - Redis connection
    - Delta reader feeding the bus
    - Timestream plugin
    - Graceful shutdown
    """

    def __init__(self, config: Optional[Config] = None, client: Optional[TimestreamClient] = None):
        """
        Initialize server.

        Args:
            config: Configuration instance (creates default if not provided)
            client: Timestream client (built from config if not provided)
        """
        self.config = config or Config()
        self.client = client

        self.redis_client: Optional[redis.Redis] = None
        self.bus = DeltaBus()
        self.reader: Optional[RedisDeltaReader] = None
        self.plugin: Optional[TimestreamPlugin] = None
        self._reader_task: Optional[asyncio.Task] = None
        self.running = False

    def _initialize_redis(self) -> None:
        """Initialize Redis connection."""
        logger.info(f"Initializing Redis connection to {self.config.redis_host}:{self.config.redis_port}")

        self.redis_client = redis.Redis(
            host=self.config.redis_host,
            port=self.config.redis_port,
            db=self.config.redis_db,
            decode_responses=False,  # We handle encoding/decoding
        )

        # Test connection
        try:
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.ConnectionError as e:
            raise RuntimeError(f"Failed to connect to Redis: {e}") from e

    def _initialize_plugin(self) -> None:
        """Initialize the Timestream plugin."""
        if not self.config.self_id:
            raise ConfigurationError("self_id must be set to run the server")

        if self.client is None:
            self.client = TimestreamClient(region_name=self.config.aws_region)

        self.plugin = TimestreamPlugin(HostApp(self.config.self_id, self.bus), self.client)

    async def start(self) -> None:
        """Start the server and block until the reader stops."""
        if self.running:
            logger.warning("Server already running")
            return

        logger.info("Starting Signal K Timestream server...")

        try:
            self.config.validate()
            self._initialize_plugin()
            self._initialize_redis()

            self.reader = RedisDeltaReader(self.redis_client, self.bus, stream_name=self.config.delta_stream)

            await self.plugin.start(self.config)
            self.running = True

            self._reader_task = asyncio.create_task(self.reader.run())
            await self._reader_task

        except asyncio.CancelledError:
            logger.info("Server cancelled")
        except Exception as e:
            logger.error(f"Failed to start server: {e}")
            raise

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if not self.running:
            return

        logger.info("Stopping server...")
        self.running = False

        if self.reader:
            self.reader.stop()

        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass

        if self.plugin:
            await self.plugin.stop()

        if self.redis_client:
            self.redis_client.close()

        logger.info("Server stopped")

    async def run(self) -> None:
        """Run the server (alias for start)."""
        await self.start()


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


async def serve(config: Config) -> None:
    """Run a server until SIGINT/SIGTERM."""
    server = TimestreamServer(config)
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()

    def handle_signal():
        logger.info("Received shutdown signal")
        main_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal)
        except NotImplementedError:
            pass  # Windows

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Interrupted")
    finally:
        await server.stop()


def main() -> None:
    """Main entry point."""
    config = Config()
    setup_logging(config.log_level)

    try:
        asyncio.run(serve(config))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
