# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Main CLI entry point for the Signal K Timestream publisher.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .commands import (
    history,
    playback,
    config,
    run,
)
from ..shared.config import Config

# Create console for rich output
console = Console()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit"
)
@click.option(
    "--config-file",
    envvar="SIGNALK_TIMESTREAM_CONFIG",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.yaml"
)
@click.option(
    "--format",
    envvar="SIGNALK_TIMESTREAM_FORMAT",
    type=click.Choice(["table", "json"]),
    help="Default output format"
)
@click.option(
    "--debug",
    envvar="SIGNALK_TIMESTREAM_DEBUG",
    is_flag=True,
    help="Enable debug logging"
)
@click.pass_context
def cli(ctx, version: bool, config_file: Optional[Path], format: Optional[str], debug: bool):
    """
    Signal K Timestream - sample vessel telemetry into Amazon Timestream.

    Examples:
        signalk-timestream run
        signalk-timestream history 1h
        signalk-timestream playback 2h --rate 60
        signalk-timestream config show
    """
    if version:
        click.echo(f"signalk-timestream version {__version__}")
        ctx.exit()

    # Initialize configuration
    cfg = Config(config_path=config_file)
    if format:
        cfg.default_format = format
    if debug:
        cfg.log_level = "DEBUG"

    # Store in context
    ctx.obj = cfg

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Add commands
cli.add_command(run.run)
cli.add_command(history.history)
cli.add_command(history.has_data)
cli.add_command(playback.playback)
cli.add_command(config.config)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("SIGNALK_TIMESTREAM_DEBUG"):
            console.print_exception()
        else:
            console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
