"""
Hardware abstraction layer for Scaler.

Motion sensing is consumed through MotionHardware, which isolates the rest of
the application from the platform sensor APIs. A simulated backend drives the
application without real hardware.
"""

from .base import BaseHardware
from .motion import (
    MotionHardware,
    MotionReading,
    SimulatedMotionHardware,
    UnavailableMotionHardware,
    SensorUnavailableError
)

__all__ = [
    'BaseHardware',
    'MotionHardware',
    'MotionReading',
    'SimulatedMotionHardware',
    'UnavailableMotionHardware',
    'SensorUnavailableError'
]
