"""
Capture -> decode -> filter -> reply loop.

Single threaded and sequential: one frame is received, decoded, matched
and answered before the next receive. Bad or unrelated frames are
dropped; only a failing capture socket ends the loop.
"""
import logging
import socket
import threading
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..exceptions import CaptureClosed, FrameDecodeError
from ..models.frame import EthernetFrame
from .frame_decoder import decode_frame
from .icapture_backend import ICaptureBackend

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4321
DEFAULT_BUFFER_SIZE = 1024


def upcase_payload(body) -> bytes:
    """Upper-case ASCII letters; every other byte is left alone."""
    return bytes(body).upper()


class ReplySender:
    """Sends reply datagrams from one reused UDP socket."""

    def __init__(self, socket_factory: Optional[Callable[[], socket.socket]] = None):
        self._socket_factory = socket_factory or (
            lambda: socket.socket(socket.AF_INET, socket.SOCK_DGRAM))
        self._sock: Optional[socket.socket] = None

    def send(self, payload: bytes, address: Tuple[str, int]) -> int:
        if self._sock is None:
            self._sock = self._socket_factory()
        return self._sock.sendto(payload, address)

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


@dataclass
class LoopStats:
    frames_received: int = 0
    bytes_received: int = 0
    frames_discarded: int = 0
    decode_errors: int = 0
    frames_matched: int = 0
    replies_sent: int = 0
    send_failures: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CaptureLoop:
    """Relays UDP datagrams addressed to ``port`` back to their sender.

    Args:
        backend: an ICaptureBackend the caller has already opened
            (``with backend:``); run() does not open or close it.
        sender: ReplySender used for every reply.
        port: destination UDP port to answer.
        buffer_size: maximum bytes read per frame.
        stop_event: checked between iterations; set it to stop run().
    """

    def __init__(self,
                 backend: ICaptureBackend,
                 sender: Optional[ReplySender] = None,
                 port: int = DEFAULT_PORT,
                 buffer_size: int = DEFAULT_BUFFER_SIZE,
                 stop_event: Optional[threading.Event] = None):
        self.backend = backend
        self.sender = sender or ReplySender()
        self.port = port
        self.buffer_size = buffer_size
        self.stop_event = stop_event or threading.Event()
        self.stats = LoopStats()

    def stop(self) -> None:
        self.stop_event.set()

    def run(self) -> LoopStats:
        """Run until stopped or the capture source closes.

        CaptureError from the backend propagates; it means the interface
        or socket is gone.
        """
        logger.info("Relaying UDP port %d on %s", self.port, self.backend.config.interface)
        try:
            while not self.stop_event.is_set():
                try:
                    frame = self.backend.recv(self.buffer_size)
                except CaptureClosed as e:
                    logger.info("%s", e)
                    break
                if frame is None:
                    continue
                self.process_frame(frame)
        finally:
            self.sender.close()
        logger.info("Capture loop finished: %s", self.stats.to_dict())
        return self.stats

    def process_frame(self, frame: bytes) -> Optional[Tuple[bytes, Tuple[str, int]]]:
        """Decode one frame and answer it if it matches.

        Returns the (payload, address) the reply went to, or None when the
        frame was dropped or the send failed.
        """
        self.stats.frames_received += 1
        self.stats.bytes_received += len(frame)

        try:
            decoded = decode_frame(frame)
        except FrameDecodeError as e:
            self.stats.decode_errors += 1
            self.stats.frames_discarded += 1
            logger.debug("Dropping undecodable frame: %s", e)
            return None

        if not self.matches(decoded):
            self.stats.frames_discarded += 1
            return None

        self.stats.frames_matched += 1
        ip = decoded.ip_packet
        udp = decoded.udp_datagram
        payload = upcase_payload(udp.body)
        address = (ip.source_ip, udp.source_port)

        try:
            self.sender.send(payload, address)
        except OSError as e:
            self.stats.send_failures += 1
            logger.warning("Reply to %s:%d failed: %s", address[0], address[1], e)
            return None

        self.stats.replies_sent += 1
        logger.debug("Replied %d bytes to %s:%d", len(payload), address[0], address[1])
        return payload, address

    def matches(self, decoded: EthernetFrame) -> bool:
        udp = decoded.udp_datagram
        return udp is not None and udp.destination_port == self.port
