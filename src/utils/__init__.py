"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Protocol counters and run metrics
- Ring buffer
- Logging utilities
"""

from .metrics import ProtocolStats, MetricsCollector
from .buffer import RingBuffer
from .logger import SimulationLogger, LogLevel

__all__ = [
    'ProtocolStats',
    'MetricsCollector',
    'RingBuffer',
    'SimulationLogger',
    'LogLevel'
]
