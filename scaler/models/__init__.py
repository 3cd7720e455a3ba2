"""
Engagement gate models.

Plain state machines driven by the scheduler and by the services that
connect them to the event bus.
"""

from .orientation import OrientationGate, evaluate
from .detector import MotionEventDetector, GestureKind
from .sprint import SprintSession, SprintKind, SprintState, SprintResult
from .usage import (
    UsageModeController,
    UsageMode,
    Accumulator,
    AccumulatorKind,
    ThresholdPolicy,
    MODE_TABLE,
    format_duration
)

__all__ = [
    'OrientationGate',
    'evaluate',
    'MotionEventDetector',
    'GestureKind',
    'SprintSession',
    'SprintKind',
    'SprintState',
    'SprintResult',
    'UsageModeController',
    'UsageMode',
    'Accumulator',
    'AccumulatorKind',
    'ThresholdPolicy',
    'MODE_TABLE',
    'format_duration'
]
