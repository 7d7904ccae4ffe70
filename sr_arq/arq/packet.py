"""
Packet Structure for Selective Repeat ARQ Protocol

This module defines the protocol unit exchanged by the two endpoints,
the application message it carries, and the additive checksum used to
detect corruption in transit.
"""

import struct
from dataclasses import dataclass, field

from config import NOT_IN_USE, PAYLOAD_SIZE, PACKET_FORMAT


def _check_payload(data: bytes, what: str) -> bytes:
    data = bytes(data)
    if len(data) != PAYLOAD_SIZE:
        raise ValueError(
            f"{what} must be exactly {PAYLOAD_SIZE} bytes, got {len(data)}"
        )
    return data


@dataclass(frozen=True)
class Message:
    """
    Application message handed to the sender.

    Attributes:
        data: Fixed-size message body
    """
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, 'data', _check_payload(self.data, "Message data"))


def compute_checksum(seqnum: int, acknum: int, payload: bytes) -> int:
    """
    Additive checksum over the header fields and payload.

    Covers seqnum, acknum and every payload byte (as unsigned values).
    This is an error-detection toy; distinct packets can collide.
    """
    return seqnum + acknum + sum(payload)


@dataclass(frozen=True)
class Packet:
    """
    Protocol unit.

    Wire Layout (32 bytes, network byte order):
        - Sequence Number: 4 bytes (signed int)
        - ACK Number: 4 bytes (signed int, NOT_IN_USE when absent)
        - Checksum: 4 bytes (signed int)
        - Payload: 20 bytes

    Attributes:
        seqnum: Sequence number (NOT_IN_USE on ACKs)
        acknum: Acknowledged sequence number (NOT_IN_USE on data)
        checksum: Checksum computed by the sender of this packet
        payload: Fixed-size payload
    """

    seqnum: int
    acknum: int
    checksum: int
    payload: bytes = field(default=bytes(PAYLOAD_SIZE))

    WIRE_SIZE = struct.calcsize(PACKET_FORMAT)

    def __post_init__(self):
        object.__setattr__(self, 'payload', _check_payload(self.payload, "Payload"))

    @classmethod
    def make_data(cls, seqnum: int, payload: bytes) -> 'Packet':
        """Create a DATA packet with its checksum filled in."""
        payload = _check_payload(payload, "Payload")
        return cls(
            seqnum=seqnum,
            acknum=NOT_IN_USE,
            checksum=compute_checksum(seqnum, NOT_IN_USE, payload),
            payload=payload
        )

    @classmethod
    def make_ack(cls, acknum: int) -> 'Packet':
        """Create an ACK packet for the given sequence number."""
        payload = bytes(PAYLOAD_SIZE)
        return cls(
            seqnum=NOT_IN_USE,
            acknum=acknum,
            checksum=compute_checksum(NOT_IN_USE, acknum, payload),
            payload=payload
        )

    @property
    def is_ack(self) -> bool:
        return self.acknum != NOT_IN_USE and self.seqnum == NOT_IN_USE

    def expected_checksum(self) -> int:
        """Checksum recomputed from the current field values."""
        return compute_checksum(self.seqnum, self.acknum, self.payload)

    def is_corrupted(self) -> bool:
        """True if the stored checksum does not match the contents."""
        return self.checksum != self.expected_checksum()

    def to_bytes(self) -> bytes:
        """Serialize the packet to its wire layout."""
        return struct.pack(
            PACKET_FORMAT,
            self.seqnum,
            self.acknum,
            self.checksum,
            self.payload
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Packet':
        """
        Deserialize a packet from its wire layout.

        The checksum is not verified here; call is_corrupted() on the
        result.

        Raises:
            ValueError: If the buffer is not exactly WIRE_SIZE bytes
        """
        if len(data) != cls.WIRE_SIZE:
            raise ValueError(
                f"Packet must be {cls.WIRE_SIZE} bytes, got {len(data)}"
            )
        seqnum, acknum, checksum, payload = struct.unpack(PACKET_FORMAT, data)
        return cls(seqnum=seqnum, acknum=acknum, checksum=checksum, payload=payload)

    def __repr__(self) -> str:
        kind = "ACK" if self.is_ack else "DATA"
        return (f"Packet(type={kind}, seq={self.seqnum}, ack={self.acknum}, "
                f"checksum={self.checksum}, payload={self.payload!r})")


def is_corrupted(packet: Packet) -> bool:
    """Module-level helper used by both endpoints."""
    return packet.is_corrupted()
