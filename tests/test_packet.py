"""
Unit tests for the packet structure and checksum.
"""

import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import NOT_IN_USE, PAYLOAD_SIZE
from sr_arq.arq.packet import Packet, Message, compute_checksum, is_corrupted


PAYLOAD = b"abcdefghijklmnopqrst"


class TestChecksum:
    """Tests for the additive checksum."""

    def test_checksum_formula(self):
        """Checksum is seqnum + acknum + sum of payload bytes."""
        assert compute_checksum(3, NOT_IN_USE, PAYLOAD) == 3 - 1 + sum(PAYLOAD)

    def test_data_packet_checksum(self):
        """make_data fills in a matching checksum."""
        packet = Packet.make_data(5, PAYLOAD)

        assert packet.acknum == NOT_IN_USE
        assert packet.checksum == compute_checksum(5, NOT_IN_USE, PAYLOAD)
        assert not packet.is_corrupted()
        assert not is_corrupted(packet)

    def test_ack_packet_checksum(self):
        """ACKs carry a zero payload and a matching checksum."""
        ack = Packet.make_ack(4)

        assert ack.is_ack
        assert ack.seqnum == NOT_IN_USE
        assert ack.payload == bytes(PAYLOAD_SIZE)
        assert not ack.is_corrupted()

    @pytest.mark.parametrize("changes", [
        {'seqnum': 999999},
        {'acknum': 999999},
        {'checksum': 0},
        {'payload': b"Z" + PAYLOAD[1:]},
        {'payload': PAYLOAD[:-1] + b"u"},
    ])
    def test_single_field_mutation_detected(self, changes):
        """Changing any one field makes the packet fail verification."""
        packet = Packet.make_data(2, PAYLOAD)
        mutated = replace(packet, **changes)

        assert mutated.is_corrupted()

    def test_mutated_ack_detected(self):
        """A zero-payload ACK with its first byte overwritten is caught."""
        ack = Packet.make_ack(1)
        mutated = replace(ack, payload=b"Z" + ack.payload[1:])

        assert mutated.is_corrupted()


class TestPacketValidation:
    """Tests for payload length checks."""

    def test_message_requires_exact_length(self):
        with pytest.raises(ValueError):
            Message(b"short")

    def test_packet_requires_exact_length(self):
        with pytest.raises(ValueError):
            Packet.make_data(0, PAYLOAD + b"x")

    def test_message_accepts_bytearray(self):
        message = Message(bytearray(PAYLOAD))
        assert message.data == PAYLOAD


class TestWireFormat:
    """Tests for serialization."""

    def test_wire_size(self):
        """Three 32-bit header fields plus the payload."""
        assert Packet.WIRE_SIZE == 12 + PAYLOAD_SIZE
        assert len(Packet.make_data(0, PAYLOAD).to_bytes()) == Packet.WIRE_SIZE

    def test_from_bytes_restores_fields(self):
        original = Packet.make_ack(6)
        restored = Packet.from_bytes(original.to_bytes())

        assert restored == original
        assert restored.acknum == 6
        assert restored.seqnum == NOT_IN_USE

    def test_from_bytes_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            Packet.from_bytes(b"\x00" * 10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
