"""
Pure frame decoding logic (Ethernet II / IPv4 / UDP).

Decoding is strictly staged: each layer is validated against the bytes
actually captured before the next layer is looked at. Views are
memoryview slices of the input, so nothing is copied and the input is
never modified. No checksum is validated.
"""
from __future__ import annotations

import struct

from ..exceptions import MalformedFrame, TruncatedFrame
from ..models.frame import EthernetFrame, IPv4Packet, UDPDatagram

# Link type constants (libpcap DLT_*)
DLT_EN10MB = 1

# EtherType constants
ETH_TYPE_IPV4 = 0x0800

# IP protocol numbers
IP_PROTO_UDP = 17

ETH_HEADER_LEN = 14
IPV4_MIN_HEADER_LEN = 20
UDP_HEADER_LEN = 8

# IPv4 fixed part: ver/ihl, tos, total length, id, flags/frag, ttl, proto, checksum
_IPV4 = struct.Struct("!BBHHHBBH")
# UDP: sport, dport, length, checksum
_UDP = struct.Struct("!HHHH")

# Byte offsets inside the IPv4 header
IPV4_SRC_OFFSET = 12
IPV4_DST_OFFSET = 16


def decode_frame(frame) -> EthernetFrame:
    """Decode a captured frame.

    Args:
        frame: bytes, bytearray or memoryview holding one link-layer frame.

    Returns:
        EthernetFrame, with ip_packet / udp_datagram set when present.

    Raises:
        TruncatedFrame: a layer needs more bytes than were captured.
        MalformedFrame: a header field is impossible (e.g. IHL < 5).
    """
    view = memoryview(frame)
    if view.ndim != 1 or view.itemsize != 1:
        view = view.cast("B")
    cap_len = len(view)

    if cap_len < ETH_HEADER_LEN:
        raise TruncatedFrame("ethernet", ETH_HEADER_LEN, cap_len)

    ether_type = struct.unpack_from("!H", view, 12)[0]

    ip_packet = None
    if ether_type == ETH_TYPE_IPV4:
        ip_packet = _parse_ipv4(view, ETH_HEADER_LEN)

    return EthernetFrame(
        destination_mac=view[0:6],
        source_mac=view[6:12],
        ether_type=ether_type,
        length=cap_len,
        ip_packet=ip_packet,
    )


def _parse_ipv4(view: memoryview, offset: int) -> IPv4Packet:
    cap_len = len(view)
    remaining = cap_len - offset
    if remaining < IPV4_MIN_HEADER_LEN:
        raise TruncatedFrame("ipv4", IPV4_MIN_HEADER_LEN, remaining)

    vihl, _tos, total_length, _ident, _frag, ttl, protocol, _csum = _IPV4.unpack_from(view, offset)
    version = vihl >> 4
    ihl = (vihl & 0x0F) * 4
    if version != 4:
        raise MalformedFrame("ipv4", f"version {version} is not 4")
    if ihl < IPV4_MIN_HEADER_LEN:
        raise MalformedFrame("ipv4", f"header length {ihl} below minimum {IPV4_MIN_HEADER_LEN}")
    if ihl > remaining:
        raise TruncatedFrame("ipv4", ihl, remaining)

    # total_length below the header length shows up on offloaded captures;
    # the payload then runs to the end of the buffer.
    if total_length >= ihl:
        end = min(offset + total_length, cap_len)
    else:
        end = cap_len

    udp_datagram = None
    if protocol == IP_PROTO_UDP:
        udp_datagram = _parse_udp(view, offset + ihl, end)

    return IPv4Packet(
        version=version,
        header_length=ihl,
        total_length=total_length,
        ttl=ttl,
        protocol=protocol,
        source_address=view[offset + IPV4_SRC_OFFSET:offset + IPV4_SRC_OFFSET + 4],
        destination_address=view[offset + IPV4_DST_OFFSET:offset + IPV4_DST_OFFSET + 4],
        offset=offset,
        length=end - offset,
        udp_datagram=udp_datagram,
    )


def _parse_udp(view: memoryview, offset: int, end: int) -> UDPDatagram:
    remaining = end - offset
    if remaining < UDP_HEADER_LEN:
        raise TruncatedFrame("udp", UDP_HEADER_LEN, remaining)

    src_port, dst_port, length, checksum = _UDP.unpack_from(view, offset)
    if length < UDP_HEADER_LEN:
        raise MalformedFrame("udp", f"length {length} below header size {UDP_HEADER_LEN}")
    if length > remaining:
        raise TruncatedFrame("udp", length, remaining)

    return UDPDatagram(
        source_port=src_port,
        destination_port=dst_port,
        length=length,
        checksum=checksum,
        body=view[offset + UDP_HEADER_LEN:offset + length],
        offset=offset,
    )
