# Frame view models
"""
Decoded views over a captured link-layer frame.

THESE VIEWS DO NOT OWN THEIR BYTES - every byte field is a memoryview
slice of the captured buffer. Nothing is copied while decoding, and no
view outlives the buffer it was decoded from. Call bytes() on a field
when a copy is needed.

Every view records ``offset`` and ``length`` relative to the start of the
captured buffer, so containment (child span inside parent span) can be
checked directly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


def format_mac(addr) -> str:
    """Format 6 bytes as aa:bb:cc:dd:ee:ff."""
    return ":".join("{:02x}".format(b) for b in bytes(addr))


def format_ipv4(addr) -> str:
    """Format 4 bytes as a dotted quad."""
    addr = bytes(addr)
    return "{}.{}.{}.{}".format(addr[0], addr[1], addr[2], addr[3])


@dataclass(frozen=True)
class UDPDatagram:
    """
    UDP header plus body, starting at the IP-header-declared offset.
    """
    source_port: int
    destination_port: int

    length: int
    """Declared UDP length, including the 8-byte header."""

    checksum: int
    """Carried as-is. Never validated."""

    body: memoryview
    """Bytes 8..length of the datagram."""

    offset: int
    """Start of the UDP header in the captured buffer."""

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def body_bytes(self) -> bytes:
        return bytes(self.body)


@dataclass(frozen=True)
class IPv4Packet:
    """
    IPv4 header view over the Ethernet payload.

    ``length`` is the span this packet covers in the captured buffer
    (header plus the payload bounded by total_length and the capture).
    """
    version: int
    header_length: int
    """IHL nibble x 4, in bytes (20..60)."""

    total_length: int
    ttl: int
    protocol: int
    source_address: memoryview
    destination_address: memoryview

    offset: int
    length: int

    udp_datagram: Optional[UDPDatagram] = None

    @property
    def source_ip(self) -> str:
        return format_ipv4(self.source_address)

    @property
    def destination_ip(self) -> str:
        return format_ipv4(self.destination_address)

    @property
    def payload_offset(self) -> int:
        return self.offset + self.header_length

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class EthernetFrame:
    """
    Decoded Ethernet II frame.

    ip_packet is None when the EtherType is not IPv4; that is not an error.
    """
    destination_mac: memoryview
    source_mac: memoryview
    ether_type: int
    length: int
    """Number of captured bytes."""

    ip_packet: Optional[IPv4Packet] = None

    offset: int = 0

    @property
    def udp_datagram(self) -> Optional[UDPDatagram]:
        if self.ip_packet is None:
            return None
        return self.ip_packet.udp_datagram

    @property
    def protocol_stack(self) -> Tuple[str, ...]:
        stack = ["ETH"]
        if self.ip_packet is not None:
            stack.append("IP4")
            if self.ip_packet.udp_datagram is not None:
                stack.append("UDP")
        return tuple(stack)

    @property
    def stack_summary(self) -> str:
        """String representation of protocol stack, e.g. ETH/IP4/UDP."""
        return "/".join(self.protocol_stack)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary. Body bytes are rendered as hex."""
        ip = self.ip_packet
        udp = self.udp_datagram
        return {
            "length": self.length,
            "stack_summary": self.stack_summary,
            "src_mac": format_mac(self.source_mac),
            "dst_mac": format_mac(self.destination_mac),
            "ether_type": self.ether_type,
            "src_ip": ip.source_ip if ip else None,
            "dst_ip": ip.destination_ip if ip else None,
            "ip_protocol": ip.protocol if ip else None,
            "ttl": ip.ttl if ip else None,
            "src_port": udp.source_port if udp else None,
            "dst_port": udp.destination_port if udp else None,
            "udp_length": udp.length if udp else None,
            "body_hex": udp.body.hex() if udp else None,
        }
