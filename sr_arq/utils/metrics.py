"""
Metrics Collection and Calculation

This module provides utilities for calculating and tracking
performance metrics including throughput, efficiency and delivery latency.
"""

from typing import List, Optional, Dict
import statistics


class MetricsCollector:
    """
    Collects and calculates performance metrics for the simulation.

    Primary metric: Throughput = Messages Delivered / Total Simulation Time

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.reset()

    def start(self, time: float):
        """Mark simulation start."""
        self.start_time = time

    def finish(self, time: float):
        """Mark simulation end."""
        self.end_time = time

    def record_message_generated(self):
        self.messages_generated += 1

    def record_message_accepted(self, time: float):
        """
        Record a message accepted into the send window.

        Args:
            time: Submission time, used for latency samples
        """
        self.messages_accepted += 1
        self.submit_times.append(time)

    def record_window_full(self):
        """Record a message dropped on a full window."""
        self.window_full_events += 1

    def record_data_sent(self):
        """Record a data packet handed to the channel (original or resend)."""
        self.data_packets_sent += 1

    def record_retransmission(self):
        self.retransmissions += 1

    def record_ack_sent(self):
        self.acks_sent += 1

    def record_ack_received(self):
        self.acks_received += 1

    def record_packet_lost(self):
        self.packets_lost += 1

    def record_packet_corrupted(self):
        self.packets_corrupted += 1

    def record_message_delivered(self, time: float):
        """
        Record an in-order delivery.

        The n-th delivery is matched with the n-th accepted submission.

        Args:
            time: Delivery time
        """
        index = self.messages_delivered
        self.messages_delivered += 1
        if index < len(self.submit_times):
            self.latency_samples.append(time - self.submit_times[index])

    @property
    def total_time(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    def calculate_throughput(self) -> float:
        """
        Calculate throughput.

        Returns:
            Messages delivered per simulated time unit
        """
        if self.total_time <= 0:
            return 0.0
        return self.messages_delivered / self.total_time

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = Messages Delivered / Data Packets Sent

        Returns:
            Efficiency ratio (0-1)
        """
        if self.data_packets_sent <= 0:
            return 0.0
        return self.messages_delivered / self.data_packets_sent

    def calculate_retransmission_rate(self) -> float:
        """
        Calculate retransmission rate.

        Returns:
            Retransmissions / Accepted Messages
        """
        if self.messages_accepted <= 0:
            return 0.0
        return self.retransmissions / self.messages_accepted

    def calculate_drop_rate(self) -> float:
        """Fraction of generated messages dropped on a full window."""
        if self.messages_generated <= 0:
            return 0.0
        return self.window_full_events / self.messages_generated

    def get_latency_statistics(self) -> Dict[str, float]:
        """
        Get delivery latency statistics.

        Returns:
            Dictionary with min, max, mean, median, stdev latency
        """
        if not self.latency_samples:
            return {
                'min': 0, 'max': 0, 'mean': 0,
                'median': 0, 'stdev': 0, 'samples': 0
            }

        return {
            'min': min(self.latency_samples),
            'max': max(self.latency_samples),
            'mean': statistics.mean(self.latency_samples),
            'median': statistics.median(self.latency_samples),
            'stdev': statistics.stdev(self.latency_samples) if len(self.latency_samples) > 1 else 0,
            'samples': len(self.latency_samples)
        }

    def get_summary(self) -> Dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        return {
            # Time
            'total_time': self.total_time,
            'start_time': self.start_time,
            'end_time': self.end_time,

            # Primary metric
            'throughput': self.calculate_throughput(),

            # Secondary metrics
            'efficiency': self.calculate_efficiency(),
            'retransmission_rate': self.calculate_retransmission_rate(),
            'drop_rate': self.calculate_drop_rate(),

            # Message counts
            'messages_generated': self.messages_generated,
            'messages_accepted': self.messages_accepted,
            'messages_delivered': self.messages_delivered,
            'window_full_events': self.window_full_events,

            # Packet counts
            'data_packets_sent': self.data_packets_sent,
            'retransmissions': self.retransmissions,
            'acks_sent': self.acks_sent,
            'acks_received': self.acks_received,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,

            # Latency
            'latency': self.get_latency_statistics()
        }

    def to_csv_row(self) -> Dict:
        """
        Get metrics as a flat dictionary suitable for CSV export.

        Returns:
            Dictionary with flattened metrics
        """
        summary = self.get_summary()
        latency = summary.pop('latency')

        flat = {**summary}
        for key, value in latency.items():
            flat[f'latency_{key}'] = value
        return flat

    def reset(self):
        """Reset all metrics."""
        self.start_time = None
        self.end_time = None
        self.messages_generated = 0
        self.messages_accepted = 0
        self.messages_delivered = 0
        self.window_full_events = 0
        self.data_packets_sent = 0
        self.retransmissions = 0
        self.acks_sent = 0
        self.acks_received = 0
        self.packets_lost = 0
        self.packets_corrupted = 0
        self.submit_times: List[float] = []
        self.latency_samples: List[float] = []
