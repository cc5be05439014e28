# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Shared fixtures.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from signalk_timestream.shared.config import Config, SelfIdentity

SELF_ID = "urn:mrn:imo:mmsi:368107960"

ENV_VARS = [
    "SIGNALK_TIMESTREAM_DATABASE",
    "SIGNALK_TIMESTREAM_TABLE",
    "SIGNALK_SELF_ID",
    "AWS_REGION",
    "SIGNALK_TIMESTREAM_REDIS_HOST",
    "SIGNALK_TIMESTREAM_DEBUG",
    "SIGNALK_TIMESTREAM_CONFIG",
    "SIGNALK_TIMESTREAM_FORMAT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def identity():
    return SelfIdentity(SELF_ID)


@pytest.fixture
def make_config(tmp_path):
    """Build a Config that ignores ~/.signalk-timestream."""
    def _make(**overrides):
        config = Config(config_path=tmp_path / "config.yaml")
        config.database = "signalk"
        config.table = "telemetry"
        config.self_id = SELF_ID
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    return _make


@pytest.fixture
def timestream_client():
    """Mock Timestream client returning empty results."""
    client = Mock()
    client.write_records.return_value = {"RecordsIngested": {"Total": 0}}
    client.query.return_value = {"ColumnInfo": [], "Rows": []}
    return client


def make_rows(rows):
    """
    Build a query response from ``(name, double, varchar, time)`` tuples.

    None fields become NullValue cells, as Timestream returns them.
    """
    columns = [
        {"Name": "context", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "measure_value::double", "Type": {"ScalarType": "DOUBLE"}},
        {"Name": "measure_value::varchar", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "measure_name", "Type": {"ScalarType": "VARCHAR"}},
        {"Name": "time", "Type": {"ScalarType": "TIMESTAMP"}},
    ]

    def cell(value):
        return {"NullValue": True} if value is None else {"ScalarValue": value}

    return {
        "ColumnInfo": columns,
        "Rows": [
            {"Data": [cell(SELF_ID), cell(double), cell(varchar), cell(name), cell(time)]}
            for name, double, varchar, time in rows
        ],
    }


@pytest.fixture
def query_result():
    """Factory for Timestream query responses."""
    return make_rows
