"""
Unit tests for the Selective Repeat receiver.
"""

import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sr_arq.arq.packet import Packet
from sr_arq.arq.receiver import SRReceiver, ReceiveWindow
from sr_arq.layers.application_layer import MessageSource
from sr_arq.utils.logger import SimulationLogger, LogLevel


def data(seqnum, index=None):
    """Data packet carrying message `index` (defaults to seqnum)."""
    index = seqnum if index is None else index
    return Packet.make_data(seqnum, MessageSource.make_message(index).data)


def payload(index):
    return MessageSource.make_message(index).data


class ReceiverHarness:
    def __init__(self, window_size=6, seq_space=7, ack_stale_duplicates=False):
        self.acks = []
        self.delivered = []
        self.receiver = SRReceiver(
            transmit=self.acks.append,
            deliver=self.delivered.append,
            window_size=window_size,
            seq_space=seq_space,
            ack_stale_duplicates=ack_stale_duplicates,
            logger=SimulationLogger(level=LogLevel.OFF, use_colors=False)
        )

    def ack_numbers(self):
        return [ack.acknum for ack in self.acks]


@pytest.fixture
def harness():
    return ReceiverHarness()


class TestReceiveWindow:
    """Tests for ReceiveWindow."""

    def test_last_delivered_wraps_before_first_delivery(self):
        window = ReceiveWindow(size=6, seq_space=7)
        assert window.last_delivered == 6

    def test_logical_mapping(self):
        window = ReceiveWindow(base=5, size=6, seq_space=7)

        assert window.logical_for(5) == 5
        assert window.logical_for(0) == 7
        assert window.logical_for(4) is None

    def test_stale_range(self):
        window = ReceiveWindow(base=3, size=6, seq_space=12)

        assert window.is_stale(1)
        assert not window.is_stale(3)
        assert not window.is_stale(11)


class TestSRReceiver:
    """Tests for SRReceiver."""

    def test_in_order_delivery(self, harness):
        ack = harness.receiver.on_packet(data(0))

        assert ack.acknum == 0
        assert not ack.is_corrupted()
        assert harness.delivered == [payload(0)]
        assert harness.receiver.base == 1

    def test_out_of_order_buffered_then_drained(self, harness):
        harness.receiver.on_packet(data(1))
        harness.receiver.on_packet(data(2))

        assert harness.delivered == []
        assert harness.ack_numbers() == [1, 2]
        assert harness.receiver.get_window_state()['buffered'] == [1, 2]

        harness.receiver.on_packet(data(0))

        assert harness.delivered == [payload(0), payload(1), payload(2)]
        assert harness.receiver.base == 3
        assert harness.receiver.out_of_order_packets == 2

    def test_drain_stops_at_gap(self, harness):
        harness.receiver.on_packet(data(1))
        harness.receiver.on_packet(data(3))
        harness.receiver.on_packet(data(0))

        assert harness.delivered == [payload(0), payload(1)]
        assert harness.receiver.base == 2

    def test_duplicate_acked_not_redelivered(self, harness):
        harness.receiver.on_packet(data(1))
        harness.receiver.on_packet(data(1))

        assert harness.ack_numbers() == [1, 1]
        assert harness.receiver.duplicate_packets == 1

        harness.receiver.on_packet(data(0))
        assert harness.delivered == [payload(0), payload(1)]

    def test_corrupted_packet_reacks_last_delivered(self, harness):
        harness.receiver.on_packet(data(0))
        harness.receiver.on_packet(data(1))
        corrupted = replace(data(2), payload=b"Z" + payload(2)[1:])

        ack = harness.receiver.on_packet(corrupted)

        assert ack.acknum == 1
        assert harness.receiver.corrupted_packets == 1
        assert harness.receiver.base == 2
        assert harness.receiver.get_window_state()['buffered'] == []

    def test_corrupted_first_packet_acks_wrapped_number(self, harness):
        corrupted = replace(data(0), seqnum=999999)

        ack = harness.receiver.on_packet(corrupted)

        assert ack.acknum == 6
        assert harness.delivered == []

    def test_out_of_window_reacks_last_delivered(self):
        harness = ReceiverHarness(seq_space=12)
        ack = harness.receiver.on_packet(data(8))

        assert ack.acknum == 11
        assert harness.receiver.out_of_window_packets == 1
        assert harness.receiver.get_window_state()['buffered'] == []

    def test_stale_duplicate_default_ack(self):
        harness = ReceiverHarness(seq_space=12)
        for seq in range(3):
            harness.receiver.on_packet(data(seq))

        ack = harness.receiver.on_packet(data(1))

        assert ack.acknum == 2
        assert len(harness.delivered) == 3

    def test_stale_duplicate_acked_by_own_number(self):
        harness = ReceiverHarness(seq_space=12, ack_stale_duplicates=True)
        for seq in range(3):
            harness.receiver.on_packet(data(seq))

        ack = harness.receiver.on_packet(data(1))

        assert ack.acknum == 1
        assert len(harness.delivered) == 3

    def test_sequence_numbers_wrap(self, harness):
        for i in range(9):
            harness.receiver.on_packet(data(i % 7, index=i))

        assert harness.delivered == [payload(i) for i in range(9)]
        assert harness.receiver.get_window_state()['expected_seq'] == 2

    def test_simplex_hooks_are_noops(self, harness):
        harness.receiver.output(MessageSource.make_message(0))
        harness.receiver.on_timeout()

        assert harness.acks == []
        assert harness.delivered == []

    def test_statistics_and_reset(self, harness):
        harness.receiver.on_packet(data(0))
        harness.receiver.on_packet(data(0))

        stats = harness.receiver.get_statistics()
        assert stats['packets_received'] == 2
        assert stats['acks_sent'] == 2
        assert stats['messages_delivered'] == 1

        harness.receiver.reset()
        assert harness.receiver.base == 0
        assert harness.receiver.get_statistics()['packets_received'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
