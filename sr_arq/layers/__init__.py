"""
Layers package - Application-side collaborators of the protocol.

Contains implementations for:
- Message source feeding the sender
- Delivery sink fed by the receiver
- Delivered-sequence verification
"""

from .application_layer import MessageSource, DeliverySink, DataVerifier

__all__ = [
    'MessageSource',
    'DeliverySink',
    'DataVerifier'
]
