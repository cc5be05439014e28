# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for delta normalization.
"""

import pytest

from signalk_timestream.processing.filters import PathFilter
from signalk_timestream.processing.models import DataPoint
from signalk_timestream.processing.normalizer import (
    PointNormalizer,
    expand_value,
    parse_timestamp_ms,
)

TIMESTAMP = "2020-10-17T16:55:29.162Z"
TIMESTAMP_MS = 1602953729162


@pytest.fixture
def normalizer(identity):
    return PointNormalizer(PathFilter([], "exclude"), identity)


class TestParseTimestamp:
    """Test ISO-8601 parsing."""

    def test_zulu(self):
        """Test zulu."""
        assert parse_timestamp_ms(TIMESTAMP) == TIMESTAMP_MS

    def test_offset(self):
        """Test offset."""
        assert parse_timestamp_ms("2020-10-17T18:55:29.162+02:00") == TIMESTAMP_MS

    def test_naive_is_utc(self):
        """Test naive is utc."""
        assert parse_timestamp_ms("2020-10-17T16:55:29.162") == TIMESTAMP_MS

    def test_garbage(self):
        """Test garbage."""
        with pytest.raises(ValueError):
            parse_timestamp_ms("yesterday")

    def test_not_a_string(self):
        """Test not a string."""
        with pytest.raises(ValueError):
            parse_timestamp_ms(None)


class TestExpandValue:
    """Test composite value expansion."""

    def test_scalar_passes_through(self):
        """Test scalar passes through."""
        assert list(expand_value("environment.temp", 300)) == [("environment.temp", 300)]

    def test_object_expands_to_subfields(self):
        """Test object expands to subfields."""
        assert list(expand_value("p", {"a": 1, "b": 2})) == [("p.a", 1), ("p.b", 2)]

    def test_nested_object_expands_recursively(self):
        """Test nested object expands recursively."""
        assert list(expand_value("p", {"a": {"x": 1}, "b": 2})) == [("p.a.x", 1), ("p.b", 2)]

    def test_list_is_scalar(self):
        """Test list is scalar."""
        assert list(expand_value("p", [1, 2])) == [("p", [1, 2])]


class TestNormalizeUpdate:
    """Test update normalization."""

    def test_scalar_values(self, normalizer):
        """Test scalar values."""
        points = normalizer.normalize_update({
            "timestamp": TIMESTAMP,
            "values": [
                {"path": "navigation.speedOverGround", "value": 5},
                {"path": "environment.temp", "value": 300},
            ],
        })

        assert points == [
            DataPoint("navigation.speedOverGround", 5, TIMESTAMP_MS),
            DataPoint("environment.temp", 300, TIMESTAMP_MS),
        ]

    def test_position_is_split(self, normalizer):
        """Test position is split."""
        points = normalizer.normalize_update({
            "timestamp": TIMESTAMP,
            "values": [{"path": "navigation.position", "value": {"latitude": 10, "longitude": 20}}],
        })

        assert [(p.name, p.value) for p in points] == [
            ("navigation.position.latitude", 10),
            ("navigation.position.longitude", 20),
        ]
        assert all(p.name != "navigation.position" for p in points)

    def test_exclude_filter(self, identity):
        """Test exclude filter."""
        normalizer = PointNormalizer(PathFilter(["navigation.*"], "exclude"), identity)
        points = normalizer.normalize_update({
            "timestamp": TIMESTAMP,
            "values": [
                {"path": "navigation.speed", "value": 5},
                {"path": "environment.temp", "value": 300},
            ],
        })

        assert [(p.name, p.value) for p in points] == [("environment.temp", 300)]

    def test_filter_applies_to_delta_path(self, identity):
        """Test filter applies to delta path."""
        normalizer = PointNormalizer(PathFilter(["navigation.position"], "include"), identity)
        points = normalizer.normalize_update({
            "timestamp": TIMESTAMP,
            "values": [{"path": "navigation.position", "value": {"latitude": 10, "longitude": 20}}],
        })

        assert len(points) == 2

    def test_missing_values(self, normalizer):
        """Test missing values."""
        assert normalizer.normalize_update({"timestamp": TIMESTAMP}) == []

    def test_bad_timestamp_drops_update(self, normalizer):
        """Test bad timestamp drops update."""
        points = normalizer.normalize_update({
            "timestamp": "not a time",
            "values": [{"path": "environment.temp", "value": 300}],
        })
        assert points == []

    def test_value_without_path_skipped(self, normalizer):
        """Test value without path skipped."""
        points = normalizer.normalize_update({
            "timestamp": TIMESTAMP,
            "values": [{"value": 1}, {"path": "environment.temp", "value": 300}],
        })
        assert [p.name for p in points] == ["environment.temp"]


class TestNormalizeDelta:
    """Test context handling."""

    def _delta(self, context):
        return {
            "context": context,
            "updates": [{"timestamp": TIMESTAMP, "values": [{"path": "environment.temp", "value": 300}]}],
        }

    def test_self_sentinel_accepted(self, normalizer):
        """Test self sentinel accepted."""
        assert len(normalizer.normalize_delta(self._delta("vessels.self"))) == 1

    def test_fully_qualified_self_accepted(self, normalizer, identity):
        """Test fully qualified self accepted."""
        assert len(normalizer.normalize_delta(self._delta(identity.context))) == 1

    def test_other_vessel_discarded(self, normalizer):
        """Test other vessel discarded."""
        assert normalizer.normalize_delta(self._delta("vessels.urn:mrn:imo:mmsi:000000000")) == []

    def test_missing_context_discarded(self, normalizer):
        """Test missing context discarded."""
        assert normalizer.normalize_delta({"updates": []}) == []

    def test_no_updates(self, normalizer):
        """Test no updates."""
        assert normalizer.normalize_delta({"context": "vessels.self"}) == []

    def test_multiple_updates_keep_their_timestamps(self, normalizer):
        """Test multiple updates keep their timestamps."""
        points = normalizer.normalize_delta({
            "context": "vessels.self",
            "updates": [
                {"timestamp": TIMESTAMP, "values": [{"path": "a", "value": 1}]},
                {"timestamp": "2020-10-17T16:55:30.162Z", "values": [{"path": "b", "value": 2}]},
            ],
        })
        assert [(p.name, p.timestamp) for p in points] == [("a", TIMESTAMP_MS), ("b", TIMESTAMP_MS + 1000)]


class TestDataPoint:
    """Test data point invariants."""

    def test_empty_name_rejected(self):
        """Test empty name rejected."""
        with pytest.raises(ValueError):
            DataPoint("", 1, 0)

    def test_object_value_rejected(self):
        """Test object value rejected."""
        with pytest.raises(ValueError):
            DataPoint("p", {"a": 1}, 0)
