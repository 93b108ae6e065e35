"""
Exception hierarchy for rawrelay.
"""
from typing import Optional


class RawRelayError(Exception):
    """Base class for all rawrelay errors."""
    pass


class InterfaceError(RawRelayError):
    """Interface lookup failed."""

    def __init__(self, interface: str, message: Optional[str] = None):
        self.interface = interface
        super().__init__(message or f"Interface error: {interface}")


class InterfaceNotFound(InterfaceError):
    """The kernel does not know an interface with this name."""

    def __init__(self, interface: str):
        super().__init__(interface, f"Interface not found: {interface}")


class PermissionDenied(InterfaceError):
    """Raw capture or control operations need CAP_NET_RAW (or root)."""

    def __init__(self, interface: str, operation: str = "raw capture"):
        self.operation = operation
        super().__init__(
            interface,
            f"Permission denied for {operation} on {interface} (run as root or grant CAP_NET_RAW)",
        )


class FrameDecodeError(RawRelayError):
    """A captured frame could not be decoded.

    ``stage`` names the layer that failed: "ethernet", "ipv4" or "udp".
    """

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"{stage}: {message}")


class TruncatedFrame(FrameDecodeError):
    """A layer needs more bytes than the buffer holds."""

    def __init__(self, stage: str, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(stage, f"truncated (need {needed} bytes, have {available})")


class MalformedFrame(FrameDecodeError):
    """A header field is inconsistent with the protocol."""
    pass


class CaptureError(RawRelayError):
    """The capture socket failed; the capture loop cannot continue."""
    pass


class CaptureClosed(CaptureError):
    """The capture source has no more frames."""
    pass
