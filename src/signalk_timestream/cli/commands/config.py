# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Configuration commands.
"""

import sys

import click

from ...shared.config import Config, ConfigurationError
from ..formatters import get_formatter


@click.group()
def config():
    """Show and validate configuration."""
    pass


@config.command()
@click.option(
    "--format", "-f",
    type=click.Choice(["table", "json"]),
    help="Output format"
)
@click.pass_obj
def show(cfg: Config, format: str):
    """Show the effective configuration."""
    formatter = get_formatter(format or cfg.default_format)
    formatter.format_config(cfg.to_yaml_dict())


@config.command()
@click.pass_obj
def validate(cfg: Config):
    """Validate the effective configuration."""
    formatter = get_formatter(cfg.default_format)
    try:
        cfg.validate()
    except ConfigurationError as e:
        formatter.format_error(str(e))
        sys.exit(1)

    formatter.format_success(f"Configuration is valid ({cfg.config_path})")


@config.command(name="set")
@click.option("--database", help="Timestream database name")
@click.option("--table", help="Timestream table name")
@click.option("--self-id", help="Vessel identity, e.g. urn:mrn:imo:mmsi:368107960")
@click.option("--write-interval", type=float, help="Seconds between publishes")
@click.pass_obj
def set_values(cfg: Config, database: str, table: str, self_id: str, write_interval: float):
    """Update settings and save them to the config file."""
    if database:
        cfg.database = database
    if table:
        cfg.table = table
    if self_id:
        cfg.self_id = self_id
    if write_interval is not None:
        cfg.write_interval = write_interval

    cfg.save_to_file()
    get_formatter(cfg.default_format).format_success(f"Saved {cfg.config_path}")
