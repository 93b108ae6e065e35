"""
Capture backend interface definition.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class CaptureConfig:
    """Capture configuration."""
    interface: str
    poll_interval: float = 1.0  # Seconds between stop-flag checks


class ICaptureBackend(ABC):
    """Capture backend interface.

    A backend owns one capture socket bound to one interface and hands
    out whole link-layer frames, one per recv().
    """

    def __init__(self, config: CaptureConfig):
        self.config = config

    @abstractmethod
    def open(self) -> None:
        """Open the capture socket and bind it to the interface."""
        pass

    @abstractmethod
    def recv(self, max_bytes: int) -> Optional[bytes]:
        """Receive one frame.

        Returns None when nothing arrived within the poll interval.
        Raises CaptureError when the socket failed, CaptureClosed when the
        source has no more frames.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the capture socket."""
        pass

    @abstractmethod
    def list_interfaces(self) -> List[Dict]:
        """List available network interfaces."""
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
