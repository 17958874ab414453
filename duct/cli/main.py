"""Main CLI entry point for duct."""

import logging

import click

from .. import __version__
from ..core.constants import LOG_FORMAT
from .commands.build import build
from .commands.down import down
from .commands.up import up
from .commands.validate import validate


@click.group()
@click.version_option(__version__, prog_name='duct')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """Duct - Compose linked Docker containers for integration tests"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


# Register commands
cli.add_command(up)
cli.add_command(down)
cli.add_command(build)
cli.add_command(validate)


if __name__ == '__main__':
    cli()
