# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Run command: start the publishing server.
"""

import asyncio

import click

from ...server import serve, setup_logging
from ...shared.config import Config


@click.command()
@click.pass_obj
def run(config: Config):
    """
    Sample Signal K deltas from Redis into Timestream until interrupted.
    """
    setup_logging(config.log_level)
    config.validate()
    asyncio.run(serve(config))
