"""
Dummy capture backend for testing without a raw socket.
"""
import logging
from collections import deque
from typing import Dict, Iterable, List, Optional

from scapy.layers.inet import IP, UDP
from scapy.layers.l2 import ARP, Ether
from scapy.packet import Raw

from ..exceptions import CaptureClosed
from .icapture_backend import CaptureConfig, ICaptureBackend

logger = logging.getLogger(__name__)

DUMMY_MAC = '00:11:22:33:44:55'
PEER_MAC = 'aa:bb:cc:dd:ee:ff'


def synthetic_frames(port: int = 4321) -> List[bytes]:
    """A short mix of traffic: a matching datagram, a non-matching one,
    an ARP request and a frame cut off inside the IP header."""
    relayed = Ether(src=PEER_MAC, dst=DUMMY_MAC) / \
        IP(src='10.0.0.5', dst='10.0.0.1') / UDP(sport=5000, dport=port) / Raw(b'hello')
    other = Ether(src=PEER_MAC, dst=DUMMY_MAC) / \
        IP(src='10.0.0.6', dst='10.0.0.1') / UDP(sport=5001, dport=53) / Raw(b'query')
    arp = Ether(src=PEER_MAC, dst='ff:ff:ff:ff:ff:ff') / ARP(hwsrc=PEER_MAC, psrc='10.0.0.5', pdst='10.0.0.1')
    return [bytes(relayed), bytes(other), bytes(arp), bytes(relayed)[:20]]


class DummyBackend(ICaptureBackend):
    """Replays a fixed list of frames, then reports the source closed."""

    def __init__(self, config: CaptureConfig, frames: Optional[Iterable[bytes]] = None):
        super().__init__(config)
        self._initial = list(frames) if frames is not None else synthetic_frames()
        self._frames = deque()
        self._open = False

    def open(self) -> None:
        self._frames = deque(self._initial)
        self._open = True
        logger.info("Replaying %d frames on %s", len(self._frames), self.config.interface)

    def recv(self, max_bytes: int) -> Optional[bytes]:
        if not self._open or not self._frames:
            raise CaptureClosed(f"No more frames on {self.config.interface}")
        # Truncate like a real socket read
        return self._frames.popleft()[:max_bytes]

    def close(self) -> None:
        self._open = False

    def list_interfaces(self) -> List[Dict]:
        """Return dummy interfaces."""
        return [
            {
                'name': 'dummy0',
                'mac': DUMMY_MAC,
                'ips': ['10.0.0.1'],
            },
        ]
