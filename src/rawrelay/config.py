"""
Relay configuration.

Static for the lifetime of the process. The CLI fills it from options or
RAWRELAY_* environment variables.
"""
from dataclasses import dataclass

from .capture.capture_loop import DEFAULT_BUFFER_SIZE, DEFAULT_PORT
from .capture.icapture_backend import CaptureConfig

BACKENDS = ('raw', 'scapy', 'dummy')


@dataclass(frozen=True)
class RelayConfig:
    interface: str
    port: int = DEFAULT_PORT
    buffer_size: int = DEFAULT_BUFFER_SIZE
    backend: str = 'raw'
    poll_interval: float = 1.0

    def __post_init__(self):
        if not self.interface:
            raise ValueError("interface must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.buffer_size < 14:
            raise ValueError(f"buffer_size too small to hold an Ethernet header: {self.buffer_size}")
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown backend: {self.backend}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive: {self.poll_interval}")

    def capture_config(self) -> CaptureConfig:
        return CaptureConfig(
            interface=self.interface,
            poll_interval=self.poll_interval,
        )
