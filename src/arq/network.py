"""
Network Layer Contract

The protocol endpoints never touch the channel, the clock or the
application directly; they call into an object implementing
NetworkLayer. The emulator provides the real one, tests provide a
recording fake.
"""

from enum import IntEnum
from typing import Protocol

from .packet import Packet


class Endpoint(IntEnum):
    """Endpoint identifiers."""
    A = 0  # sender
    B = 1  # receiver


class TimerError(RuntimeError):
    """Timer started while running, or stopped while idle."""


class NetworkLayer(Protocol):
    """Services the protocol consumes from its environment."""

    def send_packet(self, endpoint: Endpoint, packet: Packet) -> None:
        """Hand a packet to the unreliable channel."""
        ...

    def deliver_payload(self, endpoint: Endpoint, payload: bytes) -> None:
        """Hand a payload up to the application layer."""
        ...

    def start_timer(self, endpoint: Endpoint, increment: float) -> None:
        ...

    def stop_timer(self, endpoint: Endpoint) -> None:
        ...
