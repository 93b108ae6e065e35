"""
CLI command for the capture relay.
"""
import signal
import threading
from contextlib import contextmanager

import click

from ..capture.capture_loop import CaptureLoop, ReplySender
from ..config import BACKENDS, RelayConfig
from ..exceptions import CaptureError, InterfaceError


def create_backend(config: RelayConfig):
    capture_config = config.capture_config()
    if config.backend == 'scapy':
        from ..capture.scapy_backend import ScapyBackend
        return ScapyBackend(capture_config)
    if config.backend == 'dummy':
        from ..capture.dummy_backend import DummyBackend, synthetic_frames
        return DummyBackend(capture_config, frames=synthetic_frames(config.port))
    from ..capture.raw_socket_backend import RawSocketBackend
    return RawSocketBackend(capture_config)


@contextmanager
def stop_on_signals(stop_event: threading.Event):
    """Set ``stop_event`` on SIGINT/SIGTERM while the block runs."""
    def handler(signum, frame):
        click.echo(f"\nReceived signal {signum}, stopping...", err=True)
        stop_event.set()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


@click.command()
@click.option('--interface', '-i', required=True, help='Interface to capture from')
@click.option('--port', '-p', type=click.IntRange(1, 65535), default=4321, show_default=True,
              help='UDP destination port to answer')
@click.option('--buffer-size', type=int, default=1024, show_default=True,
              help='Maximum bytes read per frame')
@click.option('--backend', type=click.Choice(BACKENDS), default='raw', show_default=True,
              help='Capture backend to use')
@click.option('--poll-interval', type=float, default=1.0, show_default=True,
              help='Seconds between shutdown checks while no traffic arrives')
def relay(interface: str, port: int, buffer_size: int, backend: str, poll_interval: float):
    """
    Answer UDP datagrams for PORT with their upper-cased body.

    Examples:
      rawrelay relay -i eth1 -p 4321
      rawrelay relay -i dummy0 --backend dummy
    """
    try:
        config = RelayConfig(
            interface=interface,
            port=port,
            buffer_size=buffer_size,
            backend=backend,
            poll_interval=poll_interval,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    capture_backend = create_backend(config)
    stop_event = threading.Event()

    try:
        with stop_on_signals(stop_event), capture_backend, ReplySender() as sender:
            click.echo(f"Relay started on '{interface}' for UDP port {port}")
            click.echo("Press Ctrl+C to stop\n")
            loop = CaptureLoop(
                capture_backend,
                sender=sender,
                port=config.port,
                buffer_size=config.buffer_size,
                stop_event=stop_event,
            )
            stats = loop.run()
    except InterfaceError as e:
        raise click.ClickException(str(e))
    except CaptureError as e:
        raise click.ClickException(f"Capture failed: {e}")
    except OSError as e:
        raise click.ClickException(f"Cannot open capture on {interface}: {e}")

    click.echo("\n" + "=" * 50)
    click.echo("RELAY SUMMARY")
    click.echo("=" * 50)
    click.echo(f"Interface:       {interface}")
    click.echo(f"Frames received: {stats.frames_received}")
    click.echo(f"Bytes received:  {stats.bytes_received:,}")
    click.echo(f"Frames dropped:  {stats.frames_discarded} ({stats.decode_errors} undecodable)")
    click.echo(f"Replies sent:    {stats.replies_sent}")
    click.echo(f"Send failures:   {stats.send_failures}")
