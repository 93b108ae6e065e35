"""
Scapy-based capture backend.

Uses scapy's native L2 listen socket, so it also works where scapy goes
through libpcap instead of AF_PACKET.
"""
import logging
from typing import Dict, List, Optional

from scapy.config import conf
from scapy.interfaces import get_if_list
from scapy.arch import get_if_addr, get_if_hwaddr

from ..exceptions import CaptureError, PermissionDenied
from .icapture_backend import CaptureConfig, ICaptureBackend
from .interface_resolver import InterfaceResolver

logger = logging.getLogger(__name__)


class ScapyBackend(ICaptureBackend):
    """Scapy L2 listen socket on a single interface."""

    def __init__(self, config: CaptureConfig, resolver: Optional[InterfaceResolver] = None):
        super().__init__(config)
        self._resolver = resolver or InterfaceResolver()
        self._sock = None
        self.ifindex: Optional[int] = None

    def open(self) -> None:
        interface = self.config.interface
        self.ifindex = self._resolver.resolve(interface)
        try:
            self._sock = conf.L2listen(iface=interface, promisc=False)
        except PermissionError as e:
            raise PermissionDenied(interface, "scapy L2 listen socket") from e
        logger.info("Capturing on %s (index %d) via scapy", interface, self.ifindex)

    def recv(self, max_bytes: int) -> Optional[bytes]:
        if self._sock is None:
            raise CaptureError("Capture socket is not open")
        try:
            ready = self._sock.select([self._sock], self.config.poll_interval)
            if not ready:
                return None
            _cls, data, _ts = self._sock.recv_raw(max_bytes)
        except OSError as e:
            raise CaptureError(f"Receive failed on {self.config.interface}: {e}") from e
        return data

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def list_interfaces(self) -> List[Dict]:
        """List network interfaces known to scapy."""
        interfaces = []

        for iface_name in get_if_list():
            mac = None
            ip = None
            try:
                mac = get_if_hwaddr(iface_name)
                ip = get_if_addr(iface_name)
            except Exception as e:
                # Interfaces without a link-layer address (tunnels) end up here
                logger.debug("No address details for %s: %s", iface_name, e)

            interfaces.append({
                'name': iface_name,
                'mac': mac,
                'ips': [ip] if ip and ip != "0.0.0.0" else [],
            })

        return interfaces
