#!/usr/bin/env python3
"""
Quorum Barrier CLI

Registers this process with a shared barrier and blocks until the
configured number of participants has arrived.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click

from . import __version__
from .config import BarrierConfig, setup_logging
from .runner import run_participant

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug output from quorum_barrier only')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(version=__version__, prog_name='quorum-barrier')
@click.pass_context
def cli(ctx, verbose: bool, debug: bool):
    """
    Quorum Barrier - distributed rendezvous barrier

    Every participant registers under a shared path and waits until the
    quorum is reached. The first registered participant reports statistics
    over all submitted values.
    """
    config = BarrierConfig()
    if debug:
        config.log_level = 'DEBUG'
    elif verbose:
        config.verbose = True
    ctx.obj = config


@cli.command()
@click.option('--redis', '-r', 'redis_url', help='Redis URL of the coordination service')
@click.option('--path', '-p', 'barrier_path', help='Barrier path in the coordination namespace')
@click.option('--count', '-c', 'participant_count', type=int, help='Number of participants to wait for')
@click.option('--value', 'participant_value', type=float, help='Numeric value this participant submits')
@click.option('--exit-delay', type=float, help='Seconds to stay registered after the barrier passed')
@click.option('--idle-timeout', type=float, help='Seconds without a new participant before aborting')
@click.option('--github-annotations/--no-github-annotations', default=None,
              help='Print GitHub Actions annotations for the leader and fatal errors')
@click.pass_obj
def enter(
    config: BarrierConfig,
    redis_url: Optional[str],
    barrier_path: Optional[str],
    participant_count: Optional[int],
    participant_value: Optional[float],
    exit_delay: Optional[float],
    idle_timeout: Optional[float],
    github_annotations: Optional[bool],
):
    """Enter the barrier and wait for the quorum"""
    overrides = {
        'redis_url': redis_url,
        'barrier_path': barrier_path,
        'participant_count': participant_count,
        'participant_value': participant_value,
        'exit_delay': exit_delay,
        'idle_timeout': idle_timeout,
        'github_annotations': github_annotations,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    try:
        config.validate()
    except ValueError as e:
        raise click.BadParameter(str(e))

    setup_logging(config)
    exit_code = asyncio.run(run_participant(config))
    sys.exit(exit_code)


@cli.command(name='config')
@click.pass_obj
def show_config(config: BarrierConfig):
    """Show the effective configuration"""
    click.echo(json.dumps(config.to_dict(), indent=2))


def main():
    """Main CLI entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n⚠️  Interrupted by user")
        sys.exit(130)


if __name__ == '__main__':
    main()
