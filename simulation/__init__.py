"""
Simulation package - Main simulation engine and runners.

Contains:
- Discrete-event simulator
- Batch runner for the loss/corruption sweep
"""

from .simulator import Simulator, SimulatorConfig
from .runner import BatchRunner

__all__ = [
    'Simulator',
    'SimulatorConfig',
    'BatchRunner'
]
