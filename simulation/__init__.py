"""
Simulation package - Event-driven emulator and batch runner.

Contains:
- Main simulator orchestrator
- Batch runner for loss x corruption sweeps
"""

from .simulator import Simulator, SimulatorConfig
from .runner import BatchRunner

__all__ = [
    'Simulator',
    'SimulatorConfig',
    'BatchRunner'
]
