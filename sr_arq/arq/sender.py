"""
Selective Repeat ARQ Sender

This module implements the sender side of the Selective Repeat ARQ protocol,
including sliding window management, packet buffering, and retransmission
driven by a single shared endpoint timer.
"""

from typing import Optional, List, Callable
from dataclasses import dataclass, field

from config import WINDOW_SIZE, SEQ_SPACE, RETRANSMIT_TIMEOUT
from .packet import Packet, Message
from .timer import EndpointTimer
from ..utils.logger import SimulationLogger, get_logger


def validate_window(window_size: int, seq_space: int):
    """
    Check the window/sequence-space pair shared by both endpoints.

    Raises:
        ValueError: If the window is empty or the sequence space cannot
            tell every in-window position apart
    """
    if window_size < 1:
        raise ValueError(f"Window size must be positive, got {window_size}")
    if seq_space < window_size + 1:
        raise ValueError(
            f"Sequence space {seq_space} must be at least window size + 1 "
            f"({window_size + 1})"
        )


@dataclass
class SenderSlot:
    """Per-position sender state."""
    packet: Optional[Packet] = None
    acked: bool = False
    timer_active: bool = False

    def clear(self):
        self.packet = None
        self.acked = False
        self.timer_active = False


@dataclass
class SendWindow:
    """
    Sliding window for the sender.

    base and next_seq are logical (unwrapped) sequence numbers; the wire
    carries them modulo seq_space. Slot for logical n is n % size.

    Attributes:
        base: Oldest unacknowledged logical sequence number
        next_seq: Next logical sequence number to assign
        size: Window size
        seq_space: Sequence number modulus
        slots: One SenderSlot per window position
    """
    base: int = 0
    next_seq: int = 0
    size: int = WINDOW_SIZE
    seq_space: int = SEQ_SPACE
    slots: List[SenderSlot] = field(default_factory=list)

    def __post_init__(self):
        validate_window(self.size, self.seq_space)
        if not self.slots:
            self.slots = [SenderSlot() for _ in range(self.size)]

    @property
    def in_flight(self) -> int:
        """Number of packets sent but not yet slid past."""
        return self.next_seq - self.base

    @property
    def available_slots(self) -> int:
        """Number of available slots in the window."""
        return self.size - self.in_flight

    @property
    def is_full(self) -> bool:
        """Check if window is full."""
        return self.next_seq >= self.base + self.size

    def slot(self, logical: int) -> SenderSlot:
        return self.slots[logical % self.size]

    def wire_seq(self, logical: int) -> int:
        return logical % self.seq_space

    def logical_for(self, wire_seq: int) -> Optional[int]:
        """Map a wire sequence number to its in-flight logical number."""
        for logical in range(self.base, self.next_seq):
            if logical % self.seq_space == wire_seq:
                return logical
        return None

    def outstanding(self) -> List[int]:
        """Logical numbers in [base, next_seq) not yet acknowledged."""
        return [n for n in range(self.base, self.next_seq)
                if not self.slot(n).acked]


class SRSender:
    """
    Selective Repeat ARQ Sender.

    Implements the sender side of SR-ARQ with:
    - Fixed sliding window; submissions beyond it are dropped, not queued
    - Per-packet acknowledgment tracking
    - A single shared retransmission timer
    - Retransmission of every unacknowledged packet on timeout

    Attributes:
        window: Send window state
        timer: Shared endpoint timer
        transmit: Hands a packet to the channel
    """

    def __init__(
        self,
        transmit: Callable[[Packet], None],
        timer: EndpointTimer,
        window_size: int = WINDOW_SIZE,
        seq_space: int = SEQ_SPACE,
        timeout: float = RETRANSMIT_TIMEOUT,
        on_retransmit: Optional[Callable[[Packet], None]] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize SR sender.

        Args:
            transmit: Callback that hands a packet to the channel
            timer: Single-slot timer owned by this endpoint
            window_size: Send window size
            seq_space: Sequence number modulus
            timeout: Retransmission timeout
            on_retransmit: Callback for each retransmitted packet
            logger: Logger (global logger if None)
        """
        validate_window(window_size, seq_space)
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")

        self.window_size = window_size
        self.seq_space = seq_space
        self.timeout = timeout

        self.transmit = transmit
        self.timer = timer
        self.on_retransmit = on_retransmit
        self.logger = logger or get_logger()

        if seq_space < 2 * window_size:
            self.logger.warning(
                f"Sequence space {seq_space} < 2 x window {window_size}: "
                f"stale retransmissions may alias new packets", "CONFIG"
            )

        self.window = SendWindow(size=window_size, seq_space=seq_space)
        self._reset_statistics()

    def _reset_statistics(self):
        self.messages_submitted = 0
        self.packets_sent = 0
        self.retransmissions = 0
        self.window_full = 0
        self.acks_received = 0
        self.new_acks = 0
        self.duplicate_acks = 0
        self.corrupted_acks = 0

    def submit(self, message: Message) -> bool:
        """
        Accept a message from the application and send it.

        Args:
            message: Application message

        Returns:
            True if sent, False if dropped because the window is full
        """
        self.messages_submitted += 1

        if self.window.is_full:
            self.window_full += 1
            self.logger.window_full(self.window.base, self.window.next_seq)
            return False

        logical = self.window.next_seq
        packet = Packet.make_data(self.window.wire_seq(logical), message.data)

        slot = self.window.slot(logical)
        slot.packet = packet
        slot.acked = False
        slot.timer_active = False

        self.transmit(packet)
        self.packets_sent += 1
        self.logger.packet_sent(packet.seqnum, packet.checksum)

        if not self.timer.is_running:
            self.timer.start(self.timeout)
            slot.timer_active = True

        self.window.next_seq += 1
        self.logger.window_update(self.window.base, self.window.next_seq, self.window.size)
        return True

    def on_ack(self, packet: Packet) -> bool:
        """
        Process an ACK arriving from the channel.

        Args:
            packet: ACK packet

        Returns:
            True if the ACK acknowledged a new packet
        """
        if packet.is_corrupted():
            self.corrupted_acks += 1
            self.logger.ack_received(packet.acknum, valid=False)
            return False

        self.acks_received += 1
        self.logger.ack_received(packet.acknum)

        logical = self.window.logical_for(packet.acknum)
        if logical is None or self.window.slot(logical).acked:
            self.duplicate_acks += 1
            return False

        slot = self.window.slot(logical)
        slot.acked = True
        self.new_acks += 1

        if slot.timer_active:
            slot.timer_active = False
            if not self._any_timer_active():
                self.timer.stop()

        self._slide_window()
        self._rearm_timer()
        return True

    def on_timeout(self) -> List[int]:
        """
        Handle expiry of the shared timer.

        Returns:
            Wire sequence numbers that were retransmitted
        """
        outstanding = self.window.outstanding()
        self.logger.timeout(len(outstanding))

        resent = []
        for logical in outstanding:
            slot = self.window.slot(logical)
            self.transmit(slot.packet)
            slot.timer_active = True
            self.retransmissions += 1
            resent.append(slot.packet.seqnum)
            self.logger.retransmit(slot.packet.seqnum)

            if self.on_retransmit:
                self.on_retransmit(slot.packet)

        if resent:
            self.timer.stop()
            self.timer.start(self.timeout)

        return resent

    def _any_timer_active(self) -> bool:
        return any(self.window.slot(n).timer_active
                   for n in self.window.outstanding())

    def _slide_window(self):
        """Slide the window forward past consecutive acknowledged packets."""
        while (self.window.base < self.window.next_seq and
               self.window.slot(self.window.base).acked):
            self.window.slot(self.window.base).clear()
            self.window.base += 1
        self.logger.window_update(self.window.base, self.window.next_seq, self.window.size)

    def _rearm_timer(self):
        """Hand the stopped timer to the oldest unacknowledged packet."""
        if self.timer.is_running:
            return
        outstanding = self.window.outstanding()
        if outstanding:
            self.timer.start(self.timeout)
            self.window.slot(outstanding[0]).timer_active = True

    @property
    def base(self) -> int:
        return self.window.base

    @property
    def next_seq(self) -> int:
        return self.window.next_seq

    def is_idle(self) -> bool:
        """True when nothing is awaiting acknowledgment."""
        return self.window.in_flight == 0

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'base': self.window.base,
            'next_seq': self.window.next_seq,
            'size': self.window.size,
            'available': self.window.available_slots,
            'outstanding': [self.window.wire_seq(n) for n in self.window.outstanding()],
            'timer_running': self.timer.is_running
        }

    def get_statistics(self) -> dict:
        """Get sender statistics."""
        return {
            'messages_submitted': self.messages_submitted,
            'packets_sent': self.packets_sent,
            'retransmissions': self.retransmissions,
            'window_full': self.window_full,
            'acks_received': self.acks_received,
            'new_acks': self.new_acks,
            'duplicate_acks': self.duplicate_acks,
            'corrupted_acks': self.corrupted_acks,
            **self.timer.get_statistics()
        }

    def reset(self):
        """Reset sender to initial state."""
        self.window = SendWindow(size=self.window_size, seq_space=self.seq_space)
        self.timer.stop()
        self._reset_statistics()
