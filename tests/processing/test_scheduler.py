# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for the interval scheduler.
"""

import asyncio

import pytest

from signalk_timestream.processing.batch_manager import BatchAccumulator
from signalk_timestream.processing.models import DataPoint
from signalk_timestream.processing.publisher import TimestreamPublisher
from signalk_timestream.processing.scheduler import IntervalScheduler


@pytest.fixture
def accumulator():
    return BatchAccumulator()


@pytest.fixture
def publisher(timestream_client):
    return TimestreamPublisher(timestream_client, "signalk", "telemetry", "urn:mrn:imo:mmsi:368107960")


class TestTick:
    """Test a single interval boundary."""

    def test_tick_publishes_and_resets(self, accumulator, publisher, timestream_client):
        """Test tick publishes and resets."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=60)
        accumulator.add_points([DataPoint("environment.temp", 300, 0), DataPoint("environment.temp", 310, 1)])

        async def scenario():
            task = scheduler.tick()
            await task

        asyncio.run(scenario())

        records = timestream_client.write_records.call_args.args[2]
        assert [(r["MeasureName"], r["MeasureValue"]) for r in records] == [("environment.temp", "310")]
        assert accumulator.is_empty()

    def test_empty_tick_makes_no_write(self, accumulator, publisher, timestream_client):
        """Test empty tick makes no write."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=60)

        async def scenario():
            return scheduler.tick()

        assert asyncio.run(scenario()) is None
        timestream_client.write_records.assert_not_called()

    def test_points_after_tick_wait_for_next_tick(self, accumulator, publisher, timestream_client):
        """Test points after tick wait for next tick."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=60)

        async def scenario():
            accumulator.add_points([DataPoint("a", 1, 0)])
            first = scheduler.tick()
            accumulator.add_points([DataPoint("a", 2, 1)])
            await first
            second = scheduler.tick()
            await second

        asyncio.run(scenario())

        published = [
            [r["MeasureValue"] for r in call.args[2]]
            for call in timestream_client.write_records.call_args_list
        ]
        assert published == [["1"], ["2"]]


class TestTimerLoop:
    """Test the repeating timer."""

    def test_publishes_every_interval(self, accumulator, publisher, timestream_client):
        """Test publishes every interval."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=0.02)

        async def scenario():
            scheduler.start()
            accumulator.add_points([DataPoint("a", 1, 0)])
            await asyncio.sleep(0.05)
            accumulator.add_points([DataPoint("b", 2, 0)])
            await asyncio.sleep(0.05)
            await scheduler.stop()
            # let in-flight publishes finish
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        names = [r["MeasureName"] for call in timestream_client.write_records.call_args_list for r in call.args[2]]
        assert names == ["a", "b"]

    def test_stop_discards_pending_batch(self, accumulator, publisher, timestream_client):
        """Test stop discards pending batch."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=60)

        async def scenario():
            scheduler.start()
            accumulator.add_points([DataPoint("a", 1, 0)])
            await scheduler.stop()

        asyncio.run(scenario())

        assert accumulator.is_empty()
        assert scheduler.running is False
        timestream_client.write_records.assert_not_called()

    def test_tick_error_does_not_stop_timer(self, accumulator, publisher, timestream_client, monkeypatch):
        """Test tick error does not stop timer."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=0.01)
        calls = []

        def flaky_drain():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return []

        monkeypatch.setattr(accumulator, "drain", flaky_drain)

        async def scenario():
            scheduler.start()
            await asyncio.sleep(0.08)
            await scheduler.stop()

        asyncio.run(scenario())

        assert len(calls) >= 2

    def test_start_twice_is_harmless(self, accumulator, publisher):
        """Test start twice is harmless."""
        scheduler = IntervalScheduler(accumulator, publisher, write_interval=60)

        async def scenario():
            scheduler.start()
            first = scheduler._task
            scheduler.start()
            same = scheduler._task is first
            await scheduler.stop()
            return same

        assert asyncio.run(scenario()) is True
