"""
Interface name -> kernel interface index.

Binding a raw capture socket needs the interface index. The kernel hands
it out through the SIOCGIFINDEX ioctl, which takes a ``struct ifreq``:

    struct ifreq {
        char ifr_name[IFNAMSIZ];   /* offset 0, 16 bytes */
        union {
            ...
            int ifr_ifindex;        /* offset 16, 4 bytes */
            ...
        };
    };                              /* 40 bytes on 64-bit Linux */

The block is built with struct using the offsets below; the result is
read back from the buffer the ioctl returns.
"""
from __future__ import annotations

import errno
import fcntl
import logging
import os
import socket
import struct
from contextlib import closing
from typing import Callable, Optional

from ..exceptions import InterfaceNotFound, PermissionDenied

logger = logging.getLogger(__name__)

# Operation number to fetch the index of an interface
SIOCGIFINDEX = 0x8933

IFNAMSIZ = 16
IFREQ_SIZE = 40
IFR_NAME_OFFSET = 0
IFR_IFINDEX_OFFSET = IFNAMSIZ
IFINDEX_SIZE = 4

# ifr_ifindex is a C int in host byte order
_IFINDEX = struct.Struct("=i")

_NOT_FOUND_ERRNOS = (errno.ENODEV, errno.ENXIO)
_PERMISSION_ERRNOS = (errno.EPERM, errno.EACCES)


def build_ifreq(interface: str) -> bytes:
    """Pack an interface name into a zeroed ifreq block.

    The name is truncated to IFNAMSIZ - 1 bytes so it stays NUL terminated,
    which is what the kernel does with an over-long name anyway.
    """
    if not interface:
        raise ValueError("Interface name must not be empty")
    name = os.fsencode(interface)[:IFNAMSIZ - 1]
    ifreq = bytearray(IFREQ_SIZE)
    struct.pack_into(f"{IFNAMSIZ}s", ifreq, IFR_NAME_OFFSET, name)
    return bytes(ifreq)


def parse_ifindex(ifreq: bytes) -> int:
    """Read ifr_ifindex out of an ifreq block returned by the kernel."""
    if len(ifreq) < IFR_IFINDEX_OFFSET + IFINDEX_SIZE:
        raise ValueError(f"ifreq block too short: {len(ifreq)} bytes")
    return _IFINDEX.unpack_from(ifreq, IFR_IFINDEX_OFFSET)[0]


def _control_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


class InterfaceResolver:
    """Resolves interface names to kernel interface indexes.

    Args:
        socket_factory: returns the socket the ioctl is issued on. It is
            closed after every lookup.
        ioctl: ioctl implementation, fcntl.ioctl by default.
    """

    def __init__(self,
                 socket_factory: Optional[Callable[[], socket.socket]] = None,
                 ioctl: Optional[Callable] = None):
        self._socket_factory = socket_factory or _control_socket
        self._ioctl = ioctl or fcntl.ioctl

    def resolve(self, interface: str) -> int:
        """Return the kernel index of ``interface``.

        Raises:
            InterfaceNotFound: the kernel has no interface with that name.
            PermissionDenied: the process may not issue the query.
        """
        ifreq = build_ifreq(interface)

        try:
            sock = self._socket_factory()
        except PermissionError as e:
            raise PermissionDenied(interface, "control socket") from e

        with closing(sock):
            try:
                result = self._ioctl(sock.fileno(), SIOCGIFINDEX, ifreq)
            except OSError as e:
                if e.errno in _NOT_FOUND_ERRNOS:
                    raise InterfaceNotFound(interface) from e
                if e.errno in _PERMISSION_ERRNOS:
                    raise PermissionDenied(interface, "SIOCGIFINDEX") from e
                raise

        index = parse_ifindex(result)
        logger.debug("Resolved interface %s to index %d", interface, index)
        return index


def resolve_interface_index(interface: str) -> int:
    """Resolve with the default control socket and fcntl.ioctl."""
    return InterfaceResolver().resolve(interface)
