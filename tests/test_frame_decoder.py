"""
Tests for the Ethernet/IPv4/UDP frame decoder.
"""
import struct

import pytest
from scapy.layers.inet import IP, UDP, TCP, IPOption_Router_Alert
from scapy.layers.l2 import ARP, Ether
from scapy.packet import Raw

from rawrelay.capture.frame_decoder import decode_frame
from rawrelay.exceptions import FrameDecodeError, MalformedFrame, TruncatedFrame

from .frames import DST_MAC, SRC_MAC, build_udp_frame


def test_ipv4_udp_decode():
    data = build_udp_frame(udp_checksum=0xDEAD)

    frame = decode_frame(data)

    assert frame.stack_summary == "ETH/IP4/UDP"
    assert frame.destination_mac == DST_MAC
    assert frame.source_mac == SRC_MAC
    assert frame.ether_type == 0x0800

    ip = frame.ip_packet
    assert ip.version == 4
    assert ip.header_length == 20
    assert ip.protocol == 17
    assert ip.ttl == 64
    assert ip.source_ip == "10.0.0.5"
    assert ip.destination_ip == "10.0.0.1"

    udp = ip.udp_datagram
    assert udp.source_port == 5000
    assert udp.destination_port == 4321
    assert udp.length == 13
    # Checksums are carried, never checked
    assert udp.checksum == 0xDEAD
    assert udp.body == b"hello"
    assert udp.body_bytes == b"hello"


def test_ports_are_big_endian():
    data = build_udp_frame(src_port=0x1234, dst_port=0xABCD)
    udp = decode_frame(data).udp_datagram
    assert udp.source_port == 0x1234
    assert udp.destination_port == 0xABCD


def test_ip_options_shift_udp_offset():
    options = b"\x01\x01\x01\x01\x94\x04\x00\x00"  # NOP x4, router alert
    data = build_udp_frame(ihl=7, options=options, body=b"opts")

    frame = decode_frame(data)

    assert frame.ip_packet.header_length == 28
    udp = frame.udp_datagram
    assert udp.offset == 14 + 28
    assert udp.destination_port == 4321
    assert udp.body == b"opts"


def test_matches_scapy_built_frame():
    pkt = (
        Ether(src="11:22:33:44:55:66", dst="aa:bb:cc:dd:ee:ff")
        / IP(src="192.168.7.9", dst="192.168.7.1", options=[IPOption_Router_Alert()])
        / UDP(sport=40000, dport=4321)
        / Raw(b"from scapy")
    )
    data = bytes(pkt)

    frame = decode_frame(data)

    assert frame.ip_packet.header_length == 24
    assert frame.ip_packet.source_ip == "192.168.7.9"
    assert frame.ip_packet.destination_ip == "192.168.7.1"
    assert frame.udp_datagram.source_port == 40000
    assert frame.udp_datagram.destination_port == 4321
    assert frame.udp_datagram.checksum == Ether(data)[UDP].chksum
    assert frame.udp_datagram.body == b"from scapy"


@pytest.mark.parametrize("size", range(14))
def test_short_buffer_is_truncated(size):
    data = build_udp_frame()[:size]
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(data)
    assert info.value.stage == "ethernet"


@pytest.mark.parametrize("ether_type", [0x0806, 0x86DD, 0x8100, 0x88CC, 0x0000])
def test_non_ipv4_ethertype_has_no_ip_packet(ether_type):
    # The payload would decode as valid IPv4+UDP if it were looked at
    data = build_udp_frame(ether_type=ether_type)

    frame = decode_frame(data)

    assert frame.ether_type == ether_type
    assert frame.ip_packet is None
    assert frame.udp_datagram is None
    assert frame.stack_summary == "ETH"


def test_arp_frame_from_scapy():
    pkt = Ether(src="11:22:33:44:55:66", dst="ff:ff:ff:ff:ff:ff") / ARP(
        hwsrc="11:22:33:44:55:66", psrc="10.0.0.5", pdst="10.0.0.1")
    frame = decode_frame(bytes(pkt))
    assert frame.ether_type == 0x0806
    assert frame.ip_packet is None


@pytest.mark.parametrize("nibble", [0, 1, 2, 3, 4])
def test_ip_header_length_below_minimum_is_malformed(nibble):
    data = build_udp_frame(ihl=nibble)
    with pytest.raises(MalformedFrame) as info:
        decode_frame(data)
    assert info.value.stage == "ipv4"


def test_ip_header_length_beyond_buffer_is_truncated():
    # IHL 15 declares 60 bytes but only 20 header + 13 UDP bytes follow
    data = build_udp_frame(ihl=15)
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(data)
    assert info.value.stage == "ipv4"
    assert info.value.needed == 60
    assert info.value.available == 33


def test_short_ip_header_is_truncated():
    data = build_udp_frame()[:14 + 19]
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(data)
    assert info.value.stage == "ipv4"


def test_wrong_ip_version_is_malformed():
    with pytest.raises(MalformedFrame):
        decode_frame(build_udp_frame(version=6))


def test_non_udp_protocol_has_no_datagram():
    pkt = (
        Ether(src="11:22:33:44:55:66", dst="aa:bb:cc:dd:ee:ff")
        / IP(src="10.0.0.5", dst="10.0.0.1")
        / TCP(sport=5000, dport=4321)
    )
    frame = decode_frame(bytes(pkt))
    assert frame.ip_packet.protocol == 6
    assert frame.udp_datagram is None
    assert frame.stack_summary == "ETH/IP4"


def test_short_udp_header_is_truncated():
    data = build_udp_frame(body=b"")[:14 + 20 + 4]
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(data)
    assert info.value.stage == "udp"


def test_udp_length_below_header_is_malformed():
    with pytest.raises(MalformedFrame) as info:
        decode_frame(build_udp_frame(udp_length=7))
    assert info.value.stage == "udp"


def test_udp_length_beyond_ip_payload_is_truncated():
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(build_udp_frame(udp_length=100))
    assert info.value.stage == "udp"


def test_udp_length_bounded_by_ip_total_length():
    # total_length says the datagram ends after 4 body bytes
    data = build_udp_frame(body=b"hello", udp_length=13, total_length=20 + 12)
    with pytest.raises(TruncatedFrame):
        decode_frame(data)


def test_ethernet_padding_is_not_body():
    # Minimum-size frames carry trailing padding after the IP packet
    data = build_udp_frame(body=b"hi") + b"\x00" * 20
    frame = decode_frame(data)
    assert frame.length == len(data)
    assert frame.ip_packet.length == 20 + 10
    assert frame.udp_datagram.body == b"hi"


def test_zero_total_length_runs_to_end_of_buffer():
    data = build_udp_frame(total_length=0)
    frame = decode_frame(data)
    assert frame.ip_packet.total_length == 0
    assert frame.udp_datagram.body == b"hello"


def test_empty_body():
    udp = decode_frame(build_udp_frame(body=b"")).udp_datagram
    assert udp.length == 8
    assert udp.body == b""


def test_views_share_the_captured_buffer():
    data = build_udp_frame(ihl=6, options=b"\x01\x01\x01\x01")

    frame = decode_frame(data)
    ip = frame.ip_packet
    udp = ip.udp_datagram

    assert isinstance(udp.body, memoryview)
    assert udp.body.obj is data
    assert ip.source_address.obj is data
    assert 14 <= ip.offset
    assert ip.payload_offset == udp.offset
    assert udp.end <= ip.end <= frame.length


def test_decode_does_not_modify_input():
    data = bytearray(build_udp_frame())
    snapshot = bytes(data)
    decode_frame(data)
    assert bytes(data) == snapshot


def test_decode_errors_share_a_base_class():
    for data in (b"", build_udp_frame(ihl=2), build_udp_frame(udp_length=1)):
        with pytest.raises(FrameDecodeError):
            decode_frame(data)


def test_decoded_to_dict_contract():
    payload = decode_frame(build_udp_frame()).to_dict()
    expected_keys = [
        "length",
        "stack_summary",
        "src_mac",
        "dst_mac",
        "ether_type",
        "src_ip",
        "dst_ip",
        "ip_protocol",
        "ttl",
        "src_port",
        "dst_port",
        "udp_length",
        "body_hex",
    ]
    assert list(payload.keys()) == expected_keys
    assert payload["src_mac"] == "11:22:33:44:55:66"
    assert payload["src_ip"] == "10.0.0.5"
    assert payload["body_hex"] == b"hello".hex()


def test_truncated_frame_reports_sizes():
    with pytest.raises(TruncatedFrame) as info:
        decode_frame(struct.pack("!6s6s", DST_MAC, SRC_MAC))
    assert info.value.needed == 14
    assert info.value.available == 12
