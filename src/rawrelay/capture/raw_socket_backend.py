"""
AF_PACKET capture backend (Linux).

Receives every frame seen on one interface; no protocol filtering happens
at the socket level.
"""
import logging
import socket
from typing import Callable, Dict, List, Optional

from ..exceptions import CaptureError, PermissionDenied
from .icapture_backend import CaptureConfig, ICaptureBackend
from .interface_resolver import InterfaceResolver

logger = logging.getLogger(__name__)

# Receive every link-layer protocol
ETH_P_ALL = 0x0003


def _packet_socket() -> socket.socket:
    return socket.socket(socket.AF_PACKET, socket.SOCK_RAW, socket.htons(ETH_P_ALL))


class RawSocketBackend(ICaptureBackend):
    """Raw link-layer capture on a single interface."""

    def __init__(self, config: CaptureConfig,
                 resolver: Optional[InterfaceResolver] = None,
                 socket_factory: Optional[Callable[[], socket.socket]] = None):
        super().__init__(config)
        self._resolver = resolver or InterfaceResolver()
        self._socket_factory = socket_factory or _packet_socket
        self._sock: Optional[socket.socket] = None
        self.ifindex: Optional[int] = None

    def open(self) -> None:
        interface = self.config.interface
        # Fails fast with InterfaceNotFound before touching the capture socket
        self.ifindex = self._resolver.resolve(interface)

        try:
            sock = self._socket_factory()
        except PermissionError as e:
            raise PermissionDenied(interface, "raw capture socket") from e

        try:
            sock.bind((interface, ETH_P_ALL))
            sock.settimeout(self.config.poll_interval)
        except PermissionError as e:
            sock.close()
            raise PermissionDenied(interface, "bind") from e
        except OSError:
            sock.close()
            raise

        self._sock = sock
        logger.info("Capturing on %s (index %d)", interface, self.ifindex)

    def recv(self, max_bytes: int) -> Optional[bytes]:
        if self._sock is None:
            raise CaptureError("Capture socket is not open")
        try:
            return self._sock.recv(max_bytes)
        except socket.timeout:
            return None
        except OSError as e:
            raise CaptureError(f"Receive failed on {self.config.interface}: {e}") from e

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def list_interfaces(self) -> List[Dict]:
        return [
            {'index': index, 'name': name}
            for index, name in socket.if_nameindex()
        ]
