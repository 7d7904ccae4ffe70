"""
Selective Repeat ARQ Receiver

This module implements the receiver side of the Selective Repeat ARQ protocol,
including the receive window, out-of-order buffering, ACK generation and
in-order delivery to the application.
"""

from typing import Optional, List, Callable
from dataclasses import dataclass, field

from config import WINDOW_SIZE, SEQ_SPACE
from .packet import Packet, Message
from .sender import validate_window
from ..utils.logger import SimulationLogger, get_logger


@dataclass
class ReceiverSlot:
    """Per-position receiver state."""
    packet: Optional[Packet] = None
    received: bool = False

    def clear(self):
        self.packet = None
        self.received = False


@dataclass
class ReceiveWindow:
    """
    Sliding window for the receiver.

    Attributes:
        base: Next expected in-order logical sequence number
        size: Window size
        seq_space: Sequence number modulus
        slots: One ReceiverSlot per window position
    """
    base: int = 0
    size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    slots: List[ReceiverSlot] = field(default_factory=list)

    def __post_init__(self):
        validate_window(self.size, self.seq_space)
        if not self.slots:
            self.slots = [ReceiverSlot() for _ in range(self.size)]

    def slot(self, logical: int) -> ReceiverSlot:
        return self.slots[logical % self.size]

    def logical_for(self, wire_seq: int) -> Optional[int]:
        """Map a wire sequence number into [base, base + size)."""
        for logical in range(self.base, self.base + self.size):
            if logical % self.seq_space == wire_seq:
                return logical
        return None

    def is_stale(self, wire_seq: int) -> bool:
        """Check if the number falls in the already-delivered range."""
        for logical in range(max(0, self.base - self.size), self.base):
            if logical % self.seq_space == wire_seq:
                return True
        return False

    @property
    def last_delivered(self) -> int:
        """Wire number of the last in-order delivery (wraps before any)."""
        return (self.base - 1) % self.seq_space


class SRReceiver:
    """
    Selective Repeat ARQ Receiver.

    Implements the receiver side of SR-ARQ with:
    - Receive window of WINDOW_SIZE positions
    - Out-of-order buffering with duplicate suppression
    - Per-packet ACKs echoing the received sequence number
    - Re-acknowledgment of the last in-order packet for anything rejected
    - In-order delivery to the application

    Attributes:
        window: Receive window state
        transmit: Hands an ACK to the channel
        deliver: Hands an in-order payload to the application
    """

    def __init__(
        self,
        transmit: Callable[[Packet], None],
        deliver: Callable[[bytes], None],
        window_size: int = WINDOW_SIZE,
        seq_space: int = SEQ_SPACE,
        ack_stale_duplicates: bool = False,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR receiver.

        Args:
            transmit: Callback that hands an ACK to the channel
            deliver: Callback receiving each in-order payload
            window_size: Receive window size
            seq_space: Sequence number modulus
            ack_stale_duplicates: ACK already-delivered packets with their
                own sequence number instead of the last in-order one
            logger: Logger (global logger if None)
        """
        validate_window(window_size, seq_space)

        self.window_size = window_size
        self.seq_space = seq_space
        self.ack_stale_duplicates = ack_stale_duplicates

        self.transmit = transmit
        self.deliver = deliver
        self.logger = logger or get_logger()

        self.window = ReceiveWindow(size=window_size, seq_space=seq_space)
        self._reset_statistics()

    def _reset_statistics(self):
        self.packets_received = 0
        self.corrupted_packets = 0
        self.duplicate_packets = 0
        self.out_of_order_packets = 0
        self.out_of_window_packets = 0
        self.acks_sent = 0
        self.messages_delivered = 0

    def on_packet(self, packet: Packet) -> Packet:
        """
        Process a data packet arriving from the channel.

        Args:
            packet: Received packet

        Returns:
            The ACK handed to the channel
        """
        self.packets_received += 1
        corrupted = packet.is_corrupted()
        self.logger.packet_received(packet.seqnum, not corrupted)

        logical = None if corrupted else self.window.logical_for(packet.seqnum)

        if logical is not None:
            slot = self.window.slot(logical)
            if slot.received:
                self.duplicate_packets += 1
            else:
                slot.packet = packet
                slot.received = True
                if logical != self.window.base:
                    self.out_of_order_packets += 1
            ack = Packet.make_ack(packet.seqnum)
        else:
            if corrupted:
                self.corrupted_packets += 1
            else:
                self.out_of_window_packets += 1

            if (not corrupted and self.ack_stale_duplicates and
                    self.window.is_stale(packet.seqnum)):
                ack = Packet.make_ack(packet.seqnum)
            else:
                ack = Packet.make_ack(self.window.last_delivered)

        self.transmit(ack)
        self.acks_sent += 1
        self.logger.ack_sent(ack.acknum)

        self.drain()
        return ack

    def drain(self) -> int:
        """
        Deliver the contiguous run of received packets starting at base.

        Returns:
            Number of payloads delivered
        """
        delivered = 0
        while True:
            slot = self.window.slot(self.window.base)
            if not slot.received:
                break

            payload = slot.packet.payload
            self.deliver(payload)
            self.logger.delivered(slot.packet.seqnum, payload)

            slot.clear()
            self.window.base += 1
            delivered += 1

        self.messages_delivered += delivered
        return delivered

    def output(self, message: Message):
        """Simplex transfer: the receiving endpoint never originates data."""

    def on_timeout(self):
        """Simplex transfer: the receiving endpoint owns no timer."""

    @property
    def base(self) -> int:
        return self.window.base

    def get_window_state(self) -> dict:
        """Get current window state."""
        buffered = [n % self.seq_space
                    for n in range(self.window.base, self.window.base + self.window.size)
                    if self.window.slot(n).received]
        return {
            'base': self.window.base,
            'size': self.window.size,
            'expected_seq': self.window.base % self.seq_space,
            'buffered': buffered
        }

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'packets_received': self.packets_received,
            'corrupted_packets': self.corrupted_packets,
            'duplicate_packets': self.duplicate_packets,
            'out_of_order_packets': self.out_of_order_packets,
            'out_of_window_packets': self.out_of_window_packets,
            'acks_sent': self.acks_sent,
            'messages_delivered': self.messages_delivered
        }

    def reset(self):
        """Reset receiver to initial state."""
        self.window = ReceiveWindow(size=self.window_size, seq_space=self.seq_space)
        self._reset_statistics()
