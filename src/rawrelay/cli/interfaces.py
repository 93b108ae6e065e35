"""
CLI commands for interface lookup.
"""
import click

from ..capture.interface_resolver import InterfaceResolver
from ..exceptions import InterfaceError


@click.command()
@click.argument('interface')
def resolve(interface: str):
    """
    Print the kernel index of INTERFACE.

    Example:
      rawrelay resolve eth1
    """
    try:
        index = InterfaceResolver().resolve(interface)
    except (InterfaceError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"{interface}\t{index}")


@click.command()
@click.option('--backend', type=click.Choice(['raw', 'scapy']), default='raw',
              show_default=True, help='Backend used to enumerate interfaces')
def interfaces(backend: str):
    """List network interfaces."""
    from ..capture.icapture_backend import CaptureConfig
    if backend == 'scapy':
        from ..capture.scapy_backend import ScapyBackend as backend_class
    else:
        from ..capture.raw_socket_backend import RawSocketBackend as backend_class

    # Listing does not open the capture socket
    lister = backend_class(CaptureConfig(interface='-'))
    click.echo("Available interfaces:")
    for iface in lister.list_interfaces():
        index = iface.get('index')
        extra = iface.get('mac') or ''
        if iface.get('ips'):
            extra = f"{extra} {','.join(iface['ips'])}".strip()
        click.echo(f"  {iface['name']:20} {'' if index is None else index:>5} {extra}")
