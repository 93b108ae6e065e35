"""
Plain UDP echo server.

The conventional-socket counterpart of the capture relay: the kernel
demultiplexes the datagrams, we only upper-case and answer them.
"""
import logging
import socket
import threading
from typing import Optional, Tuple

from .capture.capture_loop import DEFAULT_BUFFER_SIZE, DEFAULT_PORT, upcase_payload

logger = logging.getLogger(__name__)


class UdpEchoServer:
    """Answers every datagram with its upper-cased body."""

    def __init__(self, host: str = '0.0.0.0', port: int = DEFAULT_PORT,
                 buffer_size: int = DEFAULT_BUFFER_SIZE,
                 poll_interval: float = 1.0,
                 stop_event: Optional[threading.Event] = None):
        self.host = host
        self.port = port
        self.buffer_size = buffer_size
        self.poll_interval = poll_interval
        self.stop_event = stop_event or threading.Event()
        self._sock: Optional[socket.socket] = None
        self.replies_sent = 0

    @property
    def address(self) -> Tuple[str, int]:
        """Bound address; useful when port 0 was requested."""
        if self._sock is None:
            return self.host, self.port
        return self._sock.getsockname()

    def bind(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        sock.settimeout(self.poll_interval)
        self._sock = sock
        logger.info("Echo server listening on %s:%d", *self.address)

    def handle_one(self) -> bool:
        """Serve a single datagram. Returns False on poll timeout."""
        try:
            message, sender = self._sock.recvfrom(self.buffer_size)
        except socket.timeout:
            return False

        try:
            self._sock.sendto(upcase_payload(message), sender)
        except OSError as e:
            logger.warning("Reply to %s:%d failed: %s", sender[0], sender[1], e)
            return True

        self.replies_sent += 1
        return True

    def serve_forever(self) -> None:
        if self._sock is None:
            self.bind()
        try:
            while not self.stop_event.is_set():
                self.handle_one()
        finally:
            self.close()

    def shutdown(self) -> None:
        self.stop_event.set()

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
