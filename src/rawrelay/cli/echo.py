"""
CLI command for the plain UDP echo server.
"""
import click

from ..echo_server import UdpEchoServer
from .relay import stop_on_signals


@click.command('echo-server')
@click.option('--host', default='0.0.0.0', show_default=True, help='Address to bind')
@click.option('--port', '-p', type=click.IntRange(0, 65535), default=4321, show_default=True)
@click.option('--buffer-size', type=int, default=1024, show_default=True)
def echo_server(host: str, port: int, buffer_size: int):
    """Upper-case echo over an ordinary UDP socket."""
    server = UdpEchoServer(host=host, port=port, buffer_size=buffer_size)
    try:
        server.bind()
    except OSError as e:
        raise click.ClickException(f"Cannot bind {host}:{port}: {e}")

    click.echo(f"Echo server on {server.address[0]}:{server.address[1]}, Ctrl+C to stop")
    with stop_on_signals(server.stop_event):
        server.serve_forever()
    click.echo(f"Replies sent: {server.replies_sent}")
