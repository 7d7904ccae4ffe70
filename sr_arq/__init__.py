"""
Selective Repeat ARQ - reliable delivery over an unreliable channel.

Subpackages:
- arq: packet, sender, receiver and endpoint timer
- channel: unreliable channel emulator
- layers: application message source and sink
- utils: logging and metrics
"""

__version__ = "1.0.0"
