"""
Unreliable Channel Emulator

This module implements one direction of the point-to-point channel between
the endpoints. Packets may be lost, corrupted, or delayed, but a direction
never reorders: each arrival is scheduled after the previous one.
"""

import numpy as np
from dataclasses import dataclass, replace
from typing import Optional

from config import (
    LOSS_PROBABILITY, CORRUPT_PROBABILITY,
    MIN_CHANNEL_DELAY, CHANNEL_DELAY_SPREAD,
    CORRUPT_PAYLOAD_FRACTION, CORRUPT_SEQNUM_FRACTION,
    CORRUPT_PAYLOAD_BYTE, CORRUPTED_FIELD_VALUE
)
from ..arq.packet import Packet


@dataclass
class ChannelOutcome:
    """
    Result of handing a packet to the channel.

    Attributes:
        packet: Packet as it will arrive (None if lost)
        arrival_time: Scheduled arrival time (None if lost)
        lost: Packet was dropped
        corrupted: Packet contents were altered
    """
    packet: Optional[Packet]
    arrival_time: Optional[float]
    lost: bool = False
    corrupted: bool = False

    @property
    def delivered(self) -> bool:
        return not self.lost


class UnreliableChannel:
    """
    One direction of the unreliable channel.

    Attributes:
        loss_prob: Probability a packet is dropped
        corrupt_prob: Probability a surviving packet is corrupted
        last_arrival: Arrival time of the most recently scheduled packet
        rng: Random number generator
    """

    def __init__(
        self,
        loss_prob: float = LOSS_PROBABILITY,
        corrupt_prob: float = CORRUPT_PROBABILITY,
        min_delay: float = MIN_CHANNEL_DELAY,
        delay_spread: float = CHANNEL_DELAY_SPREAD,
        seed: Optional[int] = None
    ):
        """
        Initialize the channel.

        Args:
            loss_prob: Probability of loss per packet
            corrupt_prob: Probability of corruption per packet
            min_delay: Minimum one-way delay
            delay_spread: Width of the uniform delay component
            seed: Random seed for reproducibility
        """
        for name, value in (('loss_prob', loss_prob), ('corrupt_prob', corrupt_prob)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob
        self.min_delay = min_delay
        self.delay_spread = delay_spread

        self.rng = np.random.default_rng(seed)
        self.last_arrival = 0.0

        # Statistics tracking
        self.packets_offered = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def send(self, packet: Packet, now: float) -> ChannelOutcome:
        """
        Hand a packet to the channel.

        Args:
            packet: Packet to carry
            now: Current simulation time

        Returns:
            ChannelOutcome describing what will arrive and when
        """
        self.packets_offered += 1

        if self.rng.random() < self.loss_prob:
            self.packets_lost += 1
            return ChannelOutcome(packet=None, arrival_time=None, lost=True)

        arrival = (max(now, self.last_arrival) + self.min_delay +
                   self.delay_spread * self.rng.random())
        self.last_arrival = arrival

        corrupted = False
        if self.rng.random() < self.corrupt_prob:
            packet = self.corrupt(packet)
            corrupted = True
            self.packets_corrupted += 1

        return ChannelOutcome(packet=packet, arrival_time=arrival, corrupted=corrupted)

    def corrupt(self, packet: Packet) -> Packet:
        """
        Alter one field of a packet, leaving its checksum as sent.

        Args:
            packet: Original packet

        Returns:
            A corrupted copy
        """
        x = self.rng.random()
        if x < CORRUPT_PAYLOAD_FRACTION:
            payload = bytes([CORRUPT_PAYLOAD_BYTE]) + packet.payload[1:]
            return replace(packet, payload=payload)
        if x < CORRUPT_PAYLOAD_FRACTION + CORRUPT_SEQNUM_FRACTION:
            return replace(packet, seqnum=CORRUPTED_FIELD_VALUE)
        return replace(packet, acknum=CORRUPTED_FIELD_VALUE)

    def get_statistics(self) -> dict:
        """
        Get channel statistics.

        Returns:
            Dictionary with transmission statistics
        """
        return {
            'packets_offered': self.packets_offered,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'observed_loss_rate': (self.packets_lost / self.packets_offered
                                   if self.packets_offered > 0 else 0),
            'observed_corruption_rate': (self.packets_corrupted / self.packets_offered
                                         if self.packets_offered > 0 else 0)
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.packets_offered = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.last_arrival = 0.0
        self.reset_statistics()
