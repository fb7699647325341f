"""
Bernoulli Channel Model

Every packet is independently lost with probability loss_prob and, if
not lost, corrupted with probability corrupt_prob.
"""

from typing import Optional

from config import LOSS_PROB, CORRUPT_PROB
from .base import Channel, PacketFate, _check_probability


class BernoulliChannel(Channel):
    """
    Memoryless loss/corruption channel.

    Attributes:
        loss_prob: Probability a packet is lost
        corrupt_prob: Probability a surviving packet is corrupted
    """

    def __init__(
        self,
        loss_prob: float = LOSS_PROB,
        corrupt_prob: float = CORRUPT_PROB,
        seed: Optional[int] = None,
        **kwargs
    ):
        _check_probability("loss_prob", loss_prob)
        _check_probability("corrupt_prob", corrupt_prob)
        super().__init__(seed=seed, **kwargs)
        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob

    def decide(self) -> PacketFate:
        if self.rng.random() < self.loss_prob:
            return PacketFate.LOST
        if self.rng.random() < self.corrupt_prob:
            return PacketFate.CORRUPTED
        return PacketFate.DELIVERED
