"""
Application Layer Implementation

This module implements the application side of the transfer: the source
that hands messages to the sender at random intervals, the sink that
collects what the receiver delivers, and verification of the result.
"""

import hashlib
from typing import Optional, List, Tuple
from dataclasses import dataclass, field

import numpy as np

from config import MESSAGE_INTERVAL, NUM_MESSAGES, PAYLOAD_SIZE
from ..arq.packet import Message


class MessageSource:
    """
    Sending application.

    Message i carries PAYLOAD_SIZE copies of the letter 'a' + i % 26.
    Inter-arrival times are uniform on [0, 2 * interval].

    Attributes:
        interval: Mean time between messages
        count: Number of messages to generate
        generated: Messages generated so far
    """

    def __init__(
        self,
        interval: float = MESSAGE_INTERVAL,
        count: int = NUM_MESSAGES,
        seed: Optional[int] = None
    ):
        if interval <= 0:
            raise ValueError(f"Message interval must be positive, got {interval}")
        if count < 0:
            raise ValueError(f"Message count must be non-negative, got {count}")

        self.interval = interval
        self.count = count
        self.rng = np.random.default_rng(seed)
        self.generated = 0

    @staticmethod
    def make_message(index: int) -> Message:
        """Build the message with the given index."""
        return Message(bytes([ord('a') + index % 26]) * PAYLOAD_SIZE)

    def next_interval(self) -> float:
        """Draw the time until the next message."""
        return 2.0 * self.interval * self.rng.random()

    @property
    def exhausted(self) -> bool:
        return self.generated >= self.count

    def next_message(self) -> Optional[Message]:
        """Generate the next message, or None once all have been generated."""
        if self.exhausted:
            return None
        message = self.make_message(self.generated)
        self.generated += 1
        return message

    def reset(self, seed: Optional[int] = None):
        """Reset source state."""
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.generated = 0


@dataclass
class DeliverySink:
    """
    Receiving application.

    Attributes:
        payloads: Delivered payloads in delivery order
        times: Simulation time of each delivery
    """
    payloads: List[bytes] = field(default_factory=list)
    times: List[float] = field(default_factory=list)

    def receive(self, payload: bytes, time: float = 0.0):
        """Accept one in-order payload."""
        self.payloads.append(payload)
        self.times.append(time)

    @property
    def count(self) -> int:
        return len(self.payloads)

    def get_received_data(self) -> bytes:
        """Get all delivered payloads as one byte string."""
        return b''.join(self.payloads)

    def reset(self):
        self.payloads.clear()
        self.times.clear()


class DataVerifier:
    """
    Utility for verifying delivered data.
    """

    @staticmethod
    def calculate_checksum(data: bytes) -> str:
        """Calculate MD5 checksum of data."""
        return hashlib.md5(data).hexdigest()

    @staticmethod
    def verify_sequence(
        expected: List[bytes],
        delivered: List[bytes]
    ) -> Tuple[bool, dict]:
        """
        Verify delivered payloads against the accepted ones.

        Args:
            expected: Payloads accepted by the sender, in order
            delivered: Payloads delivered by the receiver, in order

        Returns:
            Tuple of (match, details)
        """
        first_mismatch = -1
        for i, (want, got) in enumerate(zip(expected, delivered)):
            if want != got:
                first_mismatch = i
                break

        is_prefix = first_mismatch == -1 and len(delivered) <= len(expected)
        valid = is_prefix and len(delivered) == len(expected)

        if first_mismatch == -1 and not is_prefix:
            first_mismatch = len(expected)

        expected_data = b''.join(expected)
        delivered_data = b''.join(delivered)

        details = {
            'expected_count': len(expected),
            'delivered_count': len(delivered),
            'is_prefix': is_prefix,
            'first_mismatch': first_mismatch,
            'expected_checksum': DataVerifier.calculate_checksum(expected_data),
            'delivered_checksum': DataVerifier.calculate_checksum(delivered_data)
        }
        return valid, details
