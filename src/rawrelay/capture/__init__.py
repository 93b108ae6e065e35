"""
Live capture and relay subsystem.
"""

from .icapture_backend import ICaptureBackend, CaptureConfig
from .raw_socket_backend import RawSocketBackend
from .scapy_backend import ScapyBackend
from .dummy_backend import DummyBackend
from .interface_resolver import InterfaceResolver, resolve_interface_index
from .frame_decoder import decode_frame
from .capture_loop import CaptureLoop, LoopStats, ReplySender, upcase_payload

__all__ = [
    'ICaptureBackend',
    'CaptureConfig',
    'RawSocketBackend',
    'ScapyBackend',
    'DummyBackend',
    'InterfaceResolver',
    'resolve_interface_index',
    'decode_frame',
    'CaptureLoop',
    'LoopStats',
    'ReplySender',
    'upcase_payload',
]
