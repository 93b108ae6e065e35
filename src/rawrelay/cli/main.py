"""
rawrelay CLI - main entry point.
"""
import logging

import click

from .decode import decode
from .echo import echo_server
from .interfaces import interfaces, resolve
from .relay import relay


@click.group(context_settings={'auto_envvar_prefix': 'RAWRELAY'})
@click.option('--verbose', '-v', is_flag=True, help='Log every dropped frame and reply')
def cli(verbose: bool):
    """rawrelay - answer UDP datagrams straight off the wire."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


cli.add_command(relay)
cli.add_command(resolve)
cli.add_command(interfaces)
cli.add_command(decode)
cli.add_command(echo_server)

if __name__ == "__main__":
    cli()
