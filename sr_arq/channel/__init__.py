"""
Channel package - Unreliable channel emulator.

Contains implementations for:
- Lossy, corrupting, delaying (but order-preserving) channel
"""

from .emulator import UnreliableChannel, ChannelOutcome

__all__ = [
    'UnreliableChannel',
    'ChannelOutcome'
]
