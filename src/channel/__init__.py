"""
Channel package - Unreliable channel models.

Contains implementations for:
- Bernoulli (independent) loss and corruption
- Gilbert-Elliott burst loss and corruption
"""

from .base import Channel, PacketFate
from .bernoulli import BernoulliChannel
from .gilbert_elliot import GilbertElliottChannel, ChannelState

__all__ = [
    'Channel',
    'PacketFate',
    'BernoulliChannel',
    'GilbertElliottChannel',
    'ChannelState'
]
