"""
Shared fixtures: a network layer that records what the endpoints do.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.arq.network import TimerError
from src.arq.sender import SRSender
from src.arq.receiver import SRReceiver
from src.utils.logger import SimulationLogger
from src.utils.metrics import ProtocolStats


class RecordingNetwork:
    """Network layer fake that records every call and enforces timer rules."""

    def __init__(self):
        self.sent = []
        self.delivered = []
        self.timer_calls = []
        self.running = set()

    def send_packet(self, endpoint, packet):
        self.sent.append((endpoint, packet))

    def deliver_payload(self, endpoint, payload):
        self.delivered.append((endpoint, payload))

    def start_timer(self, endpoint, increment):
        if endpoint in self.running:
            raise TimerError(f"Timer of {endpoint.name} is already started")
        self.running.add(endpoint)
        self.timer_calls.append(('start', endpoint, increment))

    def stop_timer(self, endpoint):
        if endpoint not in self.running:
            raise TimerError(f"Timer of {endpoint.name} is not running")
        self.running.discard(endpoint)
        self.timer_calls.append(('stop', endpoint))

    def expire(self, endpoint):
        """Simulate the timer firing: it stops running before the handler runs."""
        self.running.discard(endpoint)

    def packets_from(self, endpoint):
        return [packet for sender, packet in self.sent if sender == endpoint]

    def clear(self):
        self.sent.clear()
        self.delivered.clear()
        self.timer_calls.clear()


@pytest.fixture
def network():
    return RecordingNetwork()


@pytest.fixture
def quiet_logger():
    return SimulationLogger(name="test", trace=0, use_colors=False)


@pytest.fixture
def stats():
    return ProtocolStats()


@pytest.fixture
def sender(network, stats, quiet_logger):
    return SRSender(network, window_size=6, seq_space=12, timeout=16.0,
                    stats=stats, logger=quiet_logger)


@pytest.fixture
def receiver(network, stats, quiet_logger):
    return SRReceiver(network, window_size=6, seq_space=12,
                      stats=stats, logger=quiet_logger)

