"""
Unreliable Channel Base

A channel decides the fate of every packet handed to it (delivered,
lost or corrupted), mangles corrupted copies, and draws the one-way
delay. It never reorders: the emulator schedules arrivals in send order.
"""

from enum import Enum
from typing import Optional, Tuple

import numpy as np

from config import MIN_PROPAGATION_DELAY, PROPAGATION_JITTER, CORRUPTED_FIELD_VALUE
from src.arq.packet import Packet


class PacketFate(Enum):
    """Outcome of one packet transmission."""
    DELIVERED = 0
    LOST = 1
    CORRUPTED = 2


def _check_probability(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


class Channel:
    """
    Base class for packet channel models.

    Subclasses implement decide().

    Attributes:
        rng: Random number generator
        min_delay: Smallest one-way delay
        jitter: Width of the uniform delay spread on top of min_delay
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        min_delay: float = MIN_PROPAGATION_DELAY,
        jitter: float = PROPAGATION_JITTER
    ):
        self.rng = np.random.default_rng(seed)
        self.min_delay = min_delay
        self.jitter = jitter

        # Statistics tracking
        self.packets_offered = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def decide(self) -> PacketFate:
        raise NotImplementedError

    def transmit(self, packet: Packet) -> Tuple[Optional[Packet], PacketFate]:
        """
        Push a packet through the channel.

        The packet travels as its wire encoding, so the sender keeps an
        untouched original.

        Args:
            packet: Packet to transmit

        Returns:
            Tuple of (arriving packet or None if lost, fate)
        """
        self.packets_offered += 1
        fate = self.decide()

        if fate is PacketFate.LOST:
            self.packets_lost += 1
            return None, fate

        received = Packet.deserialize(packet.serialize())
        if fate is PacketFate.CORRUPTED:
            self.packets_corrupted += 1
            self.corrupt(received)
        return received, fate

    def corrupt(self, packet: Packet):
        """
        Mangle a packet in place.

        Three quarters of corruptions hit the first payload byte, the
        rest overwrite the sequence or acknowledgment number.
        """
        x = self.rng.random()
        if x < 0.75:
            packet.payload = b'Z' + packet.payload[1:]
        elif x < 0.875:
            packet.seqnum = CORRUPTED_FIELD_VALUE
        else:
            packet.acknum = CORRUPTED_FIELD_VALUE

    def draw_delay(self) -> float:
        """One-way delay for a packet on an idle link."""
        return self.min_delay + self.jitter * self.rng.random()

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
                                   if self.packets_offered > 0 else 0.0),
            'observed_corruption_rate': (self.packets_corrupted / self.packets_offered
                                         if self.packets_offered > 0 else 0.0)
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.packets_offered = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.reset_statistics()
