"""
Gilbert-Elliott Burst Error Channel Model

This module implements the two-state Markov chain model for simulating
bursts of packet loss and corruption. The channel alternates between a
"Good" state (rare impairments) and a "Bad" state (frequent
impairments); the state is advanced once per packet.
"""

from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from config import (
    GOOD_STATE_LOSS, GOOD_STATE_CORRUPT,
    BAD_STATE_LOSS, BAD_STATE_CORRUPT,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD
)
from .base import Channel, PacketFate, _check_probability


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


class GilbertElliottChannel(Channel):
    """
    Gilbert-Elliott two-state Markov channel model.

    The channel transitions between Good and Bad states with specified
    probabilities. Each state has its own per-packet loss and
    corruption probabilities.

    Attributes:
        good_loss, good_corrupt: Impairment probabilities in Good state
        bad_loss, bad_corrupt: Impairment probabilities in Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        state: Current channel state
    """

    def __init__(
        self,
        good_loss: float = GOOD_STATE_LOSS,
        good_corrupt: float = GOOD_STATE_CORRUPT,
        bad_loss: float = BAD_STATE_LOSS,
        bad_corrupt: float = BAD_STATE_CORRUPT,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        seed: Optional[int] = None,
        **kwargs
    ):
        """
        Initialize the Gilbert-Elliott channel.

        Args:
            good_loss: Loss probability in Good state
            good_corrupt: Corruption probability in Good state
            bad_loss: Loss probability in Bad state
            bad_corrupt: Corruption probability in Bad state
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            seed: Random seed for reproducibility
        """
        for name, value in (("good_loss", good_loss), ("good_corrupt", good_corrupt),
                            ("bad_loss", bad_loss), ("bad_corrupt", bad_corrupt),
                            ("p_gb", p_gb), ("p_bg", p_bg)):
            _check_probability(name, value)
        if p_gb + p_bg == 0:
            raise ValueError("p_gb and p_bg cannot both be zero")

        super().__init__(seed=seed, **kwargs)
        self.good_loss = good_loss
        self.good_corrupt = good_corrupt
        self.bad_loss = bad_loss
        self.bad_corrupt = bad_corrupt
        self.p_gb = p_gb
        self.p_bg = p_bg

        # Start in steady-state (probabilistically)
        self._initialize_state()

        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, _ = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (π_Good, π_Bad)
        """
        sum_transitions = self.p_gb + self.p_bg
        pi_good = self.p_bg / sum_transitions
        pi_bad = self.p_gb / sum_transitions
        return pi_good, pi_bad

    def get_average_loss_prob(self) -> float:
        """Long-run per-packet loss probability."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.good_loss + pi_bad * self.bad_loss

    def get_current_probabilities(self) -> Tuple[float, float]:
        """(loss, corruption) probabilities in the current state."""
        if self.state == ChannelState.GOOD:
            return self.good_loss, self.good_corrupt
        return self.bad_loss, self.bad_corrupt

    def transition_state(self):
        """Perform one state transition based on transition probabilities."""
        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if self.rng.random() < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if self.rng.random() < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def decide(self) -> PacketFate:
        loss_prob, corrupt_prob = self.get_current_probabilities()
        if self.rng.random() < loss_prob:
            fate = PacketFate.LOST
        elif self.rng.random() < corrupt_prob:
            fate = PacketFate.CORRUPTED
        else:
            fate = PacketFate.DELIVERED

        self.transition_state()
        return fate

    def get_statistics(self) -> dict:
        stats = super().get_statistics()
        total_time = self.time_in_good + self.time_in_bad
        stats.update({
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'fraction_in_good': (self.time_in_good / total_time
                                 if total_time > 0 else 0),
            'theoretical_loss_rate': self.get_average_loss_prob()
        })
        return stats

    def reset_statistics(self):
        super().reset_statistics()
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def reset(self, seed: Optional[int] = None):
        super().reset(seed)
        self._initialize_state()


def simulate_burst_pattern(channel: Channel, num_packets: int) -> List[bool]:
    """
    Draw the fate of num_packets packets.

    Returns:
        List of booleans (True = packet lost or corrupted)
    """
    return [channel.decide() is not PacketFate.DELIVERED for _ in range(num_packets)]


def analyze_burst_lengths(error_pattern: List[bool]) -> dict:
    """
    Analyze burst lengths in an error pattern.

    Args:
        error_pattern: List of packet error indicators

    Returns:
        Dictionary with burst statistics
    """
    if not error_pattern:
        return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}

    bursts = []
    current_burst = 0

    for error in error_pattern:
        if error:
            current_burst += 1
        elif current_burst > 0:
            bursts.append(current_burst)
            current_burst = 0

    if current_burst > 0:
        bursts.append(current_burst)

    if bursts:
        return {
            'avg_burst_length': float(np.mean(bursts)),
            'max_burst_length': max(bursts),
            'num_bursts': len(bursts),
            'burst_lengths': bursts
        }
    return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}
