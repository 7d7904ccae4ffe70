"""
Tests for the unreliable channel emulator.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import CORRUPTED_FIELD_VALUE
from sr_arq.arq.packet import Packet
from sr_arq.channel.emulator import UnreliableChannel
from sr_arq.layers.application_layer import MessageSource


def make_packet(seqnum=0):
    return Packet.make_data(seqnum, MessageSource.make_message(seqnum).data)


class TestUnreliableChannel:
    """Tests for UnreliableChannel."""

    def test_invalid_probability(self):
        with pytest.raises(ValueError):
            UnreliableChannel(loss_prob=1.5)
        with pytest.raises(ValueError):
            UnreliableChannel(corrupt_prob=-0.1)

    def test_clean_channel_delivers_unchanged(self):
        channel = UnreliableChannel(seed=1)
        packet = make_packet()

        outcome = channel.send(packet, now=0.0)

        assert outcome.delivered
        assert not outcome.corrupted
        assert outcome.packet == packet
        assert 1.0 <= outcome.arrival_time <= 10.0

    def test_total_loss(self):
        channel = UnreliableChannel(loss_prob=1.0, seed=1)

        outcome = channel.send(make_packet(), now=0.0)

        assert outcome.lost
        assert outcome.packet is None
        assert outcome.arrival_time is None
        assert channel.get_statistics()['packets_lost'] == 1

    def test_corruption_is_detectable(self):
        channel = UnreliableChannel(corrupt_prob=1.0, seed=3)

        for seq in range(50):
            outcome = channel.send(make_packet(seq % 7), now=float(seq))
            assert outcome.corrupted
            assert outcome.packet.is_corrupted()

    def test_corruption_targets(self):
        """Corruption hits the payload, seqnum or acknum field."""
        channel = UnreliableChannel(corrupt_prob=1.0, seed=5)
        original = make_packet(2)
        payload_hits = 0

        for _ in range(400):
            corrupted = channel.corrupt(original)
            changed = [name for name in ('seqnum', 'acknum', 'payload')
                       if getattr(corrupted, name) != getattr(original, name)]
            assert len(changed) == 1
            assert corrupted.checksum == original.checksum
            if changed[0] == 'payload':
                payload_hits += 1
                assert corrupted.payload[:1] == b"Z"
            else:
                assert getattr(corrupted, changed[0]) == CORRUPTED_FIELD_VALUE

        # Expected 300 of 400
        assert 240 < payload_hits < 360

    def test_arrivals_never_reorder(self):
        """Each arrival is later than the previous one on the same direction."""
        channel = UnreliableChannel(seed=7)
        last = 0.0

        for i in range(100):
            outcome = channel.send(make_packet(i % 7), now=i * 0.1)
            assert outcome.arrival_time > last
            assert outcome.arrival_time >= i * 0.1 + 1.0
            last = outcome.arrival_time

    def test_loss_rate_close_to_probability(self):
        channel = UnreliableChannel(loss_prob=0.3, seed=11)

        for i in range(2000):
            channel.send(make_packet(i % 7), now=float(i))

        rate = channel.get_statistics()['observed_loss_rate']
        assert 0.25 < rate < 0.35

    def test_reproducible_with_seed(self):
        first = UnreliableChannel(loss_prob=0.2, corrupt_prob=0.2, seed=42)
        second = UnreliableChannel(loss_prob=0.2, corrupt_prob=0.2, seed=42)

        for i in range(50):
            a = first.send(make_packet(i % 7), now=float(i))
            b = second.send(make_packet(i % 7), now=float(i))
            assert a == b

    def test_reset(self):
        channel = UnreliableChannel(seed=1)
        first = channel.send(make_packet(), now=0.0)
        channel.send(make_packet(), now=0.0)

        channel.reset(seed=1)

        assert channel.get_statistics()['packets_offered'] == 0
        assert channel.last_arrival == 0.0
        assert channel.send(make_packet(), now=0.0) == first


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
