"""
Decoded frame data models.
"""

from .frame import EthernetFrame, IPv4Packet, UDPDatagram, format_mac, format_ipv4

__all__ = [
    'EthernetFrame',
    'IPv4Packet',
    'UDPDatagram',
    'format_mac',
    'format_ipv4',
]
