"""
Usage events for Scaler.

This module defines the sprint trigger signals sent by the usage controller
and the mode change notification.
"""

from typing import Literal, Optional
from scaler.core.events import BaseEvent, EventType

class StartShakeSprintEvent(BaseEvent):
    """
    Event published when a shake sprint is due.
    
    Published once per threshold crossing; the sprint owner ignores it while a
    sprint is already running.
    """
    type: Literal[EventType.START_SHAKE_SPRINT] = EventType.START_SHAKE_SPRINT
    reason: str  # Accumulator that crossed its threshold, or 'manual'
    
class StartFitnessSprintEvent(BaseEvent):
    """
    Event published when a fitness sprint is due.
    """
    type: Literal[EventType.START_FITNESS_SPRINT] = EventType.START_FITNESS_SPRINT
    reason: str
    
class UsageModeChangedEvent(BaseEvent):
    """
    Event published when the usage mode changes.
    
    All accumulators have been stopped and zeroed when this is published.
    """
    type: Literal[EventType.USAGE_MODE_CHANGED] = EventType.USAGE_MODE_CHANGED
    mode: str
    previous_mode: Optional[str] = None
