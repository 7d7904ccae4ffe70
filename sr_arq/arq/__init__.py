"""
ARQ package - Selective Repeat ARQ protocol components.

Contains implementations for:
- Packet structure and checksum
- Sender with window management
- Receiver with out-of-order buffering and in-order delivery
- Single-slot endpoint timer
"""

from .packet import Packet, Message, compute_checksum, is_corrupted
from .sender import SRSender, SendWindow, validate_window
from .receiver import SRReceiver, ReceiveWindow
from .timer import EndpointTimer, TimerEvent, TimerState

__all__ = [
    'Packet',
    'Message',
    'compute_checksum',
    'is_corrupted',
    'SRSender',
    'SendWindow',
    'validate_window',
    'SRReceiver',
    'ReceiveWindow',
    'EndpointTimer',
    'TimerEvent',
    'TimerState'
]
