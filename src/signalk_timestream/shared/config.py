# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Configuration management for the Timestream publisher.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Dict, Any, List

import yaml

from .streams import SELF_CONTEXT_SENTINEL, SIGNALK_DELTA_STREAM, VESSEL_CONTEXT_PREFIX

FILTER_MODES = ("include", "exclude")

# Timestream rejects WriteRecords calls carrying more than 100 records
MAX_RECORDS_PER_WRITE = 100


class ConfigurationError(ValueError):
    """Raised when the configuration cannot be used to start publishing."""


@dataclass(frozen=True)
class SelfIdentity:
    """Identity of the local vessel."""

    self_id: str

    @property
    def context(self) -> str:
        """Fully-qualified context, e.g. ``vessels.urn:mrn:imo:mmsi:368107960``."""
        return f"{VESSEL_CONTEXT_PREFIX}{self.self_id}"

    def matches(self, context: Optional[str]) -> bool:
        """Check whether a delta context refers to this vessel."""
        return context == SELF_CONTEXT_SENTINEL or context == self.context


@dataclass
class Config:
    """Publisher configuration container."""

    # Timestream settings
    database: str = ""
    table: str = ""
    aws_region: Optional[str] = None
    max_records_per_write: int = MAX_RECORDS_PER_WRITE

    # Sampling settings
    write_interval: float = 60  # seconds
    filter_list_type: str = "exclude"  # include, exclude
    filter_list: List[str] = field(default_factory=list)

    # Vessel identity
    self_id: str = ""

    # Bus settings
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    delta_stream: str = SIGNALK_DELTA_STREAM

    # Display settings
    default_format: str = "table"  # table, json

    # Debug settings
    log_level: str = "INFO"

    # Config file path
    config_path: Optional[Path] = None

    # Read the config file and environment on creation
    autoload: bool = field(default=True, repr=False)

    def __post_init__(self):
        """Initialize configuration after creation."""
        if self.config_path is None:
            self.config_path = Path.home() / ".signalk-timestream" / "config.yaml"
        else:
            self.config_path = Path(self.config_path).expanduser()

        if not self.autoload:
            return

        # Load from file if exists
        if self.config_path.exists():
            self.load_from_file()

        # Override with environment variables
        self.load_from_env()

    @classmethod
    def from_options(cls, options: Dict[str, Any], **kwargs) -> "Config":
        """
        Build a configuration from host-supplied plugin options.

        Options use the same keys as the YAML ``timestream`` and ``sampling``
        sections, flattened (``database``, ``table``, ``write_interval``,
        ``filter_list_type``, ``filter_list``). Values come from the field
        defaults overlaid with the options only; the config file and the
        environment are not read.

        Args:
            options: Option mapping supplied by the host
            **kwargs: Extra constructor arguments (e.g. ``self_id``)
        """
        config = cls(autoload=False, **kwargs)
        known = {f.name for f in fields(cls)} - {"config_path", "autoload"}
        for key, value in options.items():
            if key in known:
                setattr(config, key, value)
        return config

    def load_from_file(self):
        """Load configuration from YAML file."""
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not load config file {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")

        # Timestream settings
        timestream = data.get("timestream", {}) or {}
        self.database = timestream.get("database", self.database)
        self.table = timestream.get("table", self.table)
        self.aws_region = timestream.get("region", self.aws_region)
        self.max_records_per_write = timestream.get("max_records_per_write", self.max_records_per_write)

        # Sampling settings
        sampling = data.get("sampling", {}) or {}
        self.write_interval = sampling.get("write_interval", self.write_interval)
        self.filter_list_type = sampling.get("filter_list_type", self.filter_list_type)
        self.filter_list = sampling.get("filter_list", self.filter_list)

        # Vessel identity
        vessel = data.get("vessel", {}) or {}
        self.self_id = vessel.get("self_id", self.self_id)

        # Bus settings
        redis_config = data.get("redis", {}) or {}
        self.redis_host = redis_config.get("host", self.redis_host)
        self.redis_port = redis_config.get("port", self.redis_port)
        self.redis_db = redis_config.get("db", self.redis_db)
        self.delta_stream = redis_config.get("stream", self.delta_stream)

        display = data.get("display", {}) or {}
        self.default_format = display.get("format", self.default_format)

        logging_config = data.get("logging", {}) or {}
        self.log_level = logging_config.get("level", self.log_level)

    def load_from_env(self):
        """Load configuration from environment variables."""
        if env_database := os.environ.get("SIGNALK_TIMESTREAM_DATABASE"):
            self.database = env_database

        if env_table := os.environ.get("SIGNALK_TIMESTREAM_TABLE"):
            self.table = env_table

        if env_self_id := os.environ.get("SIGNALK_SELF_ID"):
            self.self_id = env_self_id

        if env_region := os.environ.get("AWS_REGION"):
            self.aws_region = env_region

        if env_host := os.environ.get("SIGNALK_TIMESTREAM_REDIS_HOST"):
            self.redis_host = env_host

        if os.environ.get("SIGNALK_TIMESTREAM_DEBUG"):
            self.log_level = "DEBUG"

    def save_to_file(self):
        """Save current configuration to YAML file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            yaml.dump(self.to_yaml_dict(), f, default_flow_style=False, sort_keys=False)

    def to_yaml_dict(self) -> Dict[str, Any]:
        """Convert configuration to the nested YAML layout."""
        return {
            "timestream": {
                "database": self.database,
                "table": self.table,
                "region": self.aws_region,
                "max_records_per_write": self.max_records_per_write,
            },
            "sampling": {
                "write_interval": self.write_interval,
                "filter_list_type": self.filter_list_type,
                "filter_list": list(self.filter_list) if isinstance(self.filter_list, (list, tuple)) else self.filter_list,
            },
            "vessel": {
                "self_id": self.self_id,
            },
            "redis": {
                "host": self.redis_host,
                "port": self.redis_port,
                "db": self.redis_db,
                "stream": self.delta_stream,
            },
            "display": {
                "format": self.default_format,
            },
            "logging": {
                "level": self.log_level,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key (e.g. ``sampling.write_interval``)."""
        value: Any = self.to_yaml_dict()

        for part in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(part)
            if value is None:
                return default

        return value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            k: v for k, v in self.__dict__.items()
            if not k.startswith("_") and k not in ("config_path", "autoload")
        }

    @property
    def identity(self) -> SelfIdentity:
        return SelfIdentity(self.self_id)

    @property
    def filter_mode(self) -> str:
        """Filter mode, unwrapping the single-element list some hosts store."""
        mode = self.filter_list_type
        if isinstance(mode, (list, tuple)) and len(mode) == 1:
            mode = mode[0]
        return mode

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: Listing every problem found
        """
        errors = []

        if not self.database:
            errors.append("database must be set")

        if not self.table:
            errors.append("table must be set")

        if isinstance(self.write_interval, bool) or not isinstance(self.write_interval, (int, float)):
            errors.append("write_interval must be a number")
        elif self.write_interval <= 0:
            errors.append("write_interval must be positive")

        if self.filter_mode not in FILTER_MODES:
            errors.append(f"filter_list_type must be one of: {', '.join(FILTER_MODES)}")

        if not isinstance(self.filter_list, (list, tuple)):
            errors.append("filter_list must be a list of paths")
        elif not all(isinstance(p, str) and p for p in self.filter_list):
            errors.append("filter_list entries must be non-empty strings")

        if (
            isinstance(self.max_records_per_write, bool)
            or not isinstance(self.max_records_per_write, int)
            or not 1 <= self.max_records_per_write <= MAX_RECORDS_PER_WRITE
        ):
            errors.append(f"max_records_per_write must be between 1 and {MAX_RECORDS_PER_WRITE}")

        if errors:
            raise ConfigurationError("; ".join(errors))
