"""
Metrics Collection and Calculation

This module provides the protocol counters updated by the endpoints and
the emulator-level collector that turns a run into summary figures
(delivery ratio, retransmission rate, delivery latency).
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
import statistics


@dataclass
class ProtocolStats:
    """
    Instrumentation counters shared by the two endpoints of one link.

    Attributes:
        window_full: Messages dropped because the send window was full
        total_acks_received: Uncorrupted ACKs received by the sender
        new_acks: ACKs that acknowledged a packet for the first time
        packets_resent: Packets retransmitted on timeout
        packets_received: Uncorrupted packets received by the receiver
    """
    window_full: int = 0
    total_acks_received: int = 0
    new_acks: int = 0
    packets_resent: int = 0
    packets_received: int = 0

    def reset(self):
        self.window_full = 0
        self.total_acks_received = 0
        self.new_acks = 0
        self.packets_resent = 0
        self.packets_received = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class MetricsCollector:
    """
    Collects and calculates run-level metrics for the emulator.

    Primary figures:
        delivery ratio = messages delivered / messages accepted by the sender
        retransmission rate = packets resent / data packets sent

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
    """

    def __init__(self):
        """Initialize metrics collector."""
        # Time tracking
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        # Message counters
        self.messages_generated = 0
        self.messages_accepted = 0
        self.messages_delivered = 0

        # Packet counters, per direction
        self.data_packets_sent = 0
        self.ack_packets_sent = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

        # Time from acceptance at A to delivery at B
        self.latency_samples: List[float] = []

    def start(self, time: float):
        """
        Mark simulation start.

        Args:
            time: Start time
        """
        self.start_time = time

    def finish(self, time: float):
        """
        Mark simulation end.

        Args:
            time: End time
        """
        self.end_time = time

    def record_message_generated(self, accepted: bool):
        """Record a message handed to the sender, and whether it fit the window."""
        self.messages_generated += 1
        if accepted:
            self.messages_accepted += 1

    def record_message_delivered(self, latency: Optional[float] = None):
        self.messages_delivered += 1
        if latency is not None:
            self.latency_samples.append(latency)

    def record_packet_sent(self, is_ack: bool):
        if is_ack:
            self.ack_packets_sent += 1
        else:
            self.data_packets_sent += 1

    def record_packet_lost(self):
        self.packets_lost += 1

    def record_packet_corrupted(self):
        self.packets_corrupted += 1

    @property
    def total_packets_sent(self) -> int:
        return self.data_packets_sent + self.ack_packets_sent

    def calculate_delivery_ratio(self) -> float:
        """
        Fraction of accepted messages that reached the receiving application.

        Returns:
            Ratio in [0, 1] (1.0 when nothing was accepted)
        """
        if self.messages_accepted == 0:
            return 1.0
        return self.messages_delivered / self.messages_accepted

    def calculate_retransmission_rate(self, packets_resent: int) -> float:
        """
        Retransmissions per data packet sent.

        Args:
            packets_resent: Counter from ProtocolStats
        """
        if self.data_packets_sent == 0:
            return 0.0
        return packets_resent / self.data_packets_sent

    def calculate_loss_rate(self) -> float:
        if self.total_packets_sent == 0:
            return 0.0
        return self.packets_lost / self.total_packets_sent

    def calculate_corruption_rate(self) -> float:
        if self.total_packets_sent == 0:
            return 0.0
        return self.packets_corrupted / self.total_packets_sent

    def get_latency_statistics(self) -> Dict[str, float]:
        """
        Get delivery latency statistics.

        Returns:
            Dictionary with mean, min, max, stdev and sample count
        """
        if not self.latency_samples:
            return {'mean': 0.0, 'min': 0.0, 'max': 0.0, 'std': 0.0, 'samples': 0}

        return {
            'mean': statistics.mean(self.latency_samples),
            'min': min(self.latency_samples),
            'max': max(self.latency_samples),
            'std': (statistics.stdev(self.latency_samples)
                    if len(self.latency_samples) > 1 else 0.0),
            'samples': len(self.latency_samples)
        }

    def get_summary(self, stats: Optional[ProtocolStats] = None) -> Dict:
        """
        Get complete metrics summary.

        Args:
            stats: Protocol counters of the run, merged into the summary

        Returns:
            Dictionary with all metrics
        """
        stats = stats or ProtocolStats()
        total_time = 0.0
        if self.start_time is not None and self.end_time is not None:
            total_time = self.end_time - self.start_time

        return {
            'total_time': total_time,
            'messages_generated': self.messages_generated,
            'messages_accepted': self.messages_accepted,
            'messages_delivered': self.messages_delivered,
            'data_packets_sent': self.data_packets_sent,
            'ack_packets_sent': self.ack_packets_sent,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'delivery_ratio': self.calculate_delivery_ratio(),
            'retransmission_rate': self.calculate_retransmission_rate(stats.packets_resent),
            'loss_rate': self.calculate_loss_rate(),
            'corruption_rate': self.calculate_corruption_rate(),
            'latency': self.get_latency_statistics(),
            **stats.as_dict()
        }

    def to_csv_row(self, stats: Optional[ProtocolStats] = None) -> Dict:
        """
        Get metrics as flat dictionary for CSV export.

        Returns:
            Flat dictionary of metrics
        """
        summary = self.get_summary(stats)
        latency = summary.pop('latency')
        summary['latency_mean'] = latency['mean']
        summary['latency_max'] = latency['max']
        return summary

    def reset(self):
        """Reset all metrics."""
        self.__init__()
