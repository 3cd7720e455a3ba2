"""
Sprint events for Scaler.
"""

from typing import Literal
from scaler.core.events import BaseEvent, EventType

class SprintStartedEvent(BaseEvent):
    """
    Event published when a sprint session becomes active.
    """
    type: Literal[EventType.SPRINT_STARTED] = EventType.SPRINT_STARTED
    kind: str  # 'shake' or 'fitness'
    required_rate: float  # Gesture events per second
    duration: float  # Seconds
    
class SprintEndedEvent(BaseEvent):
    """
    Event published when a sprint session leaves the active state.
    
    The outcome is 'completed', 'timed_out' or 'aborted'. Progress is 1.0 for a
    completed sprint and the last value held otherwise.
    """
    type: Literal[EventType.SPRINT_ENDED] = EventType.SPRINT_ENDED
    kind: str
    outcome: str
    progress: float
    elapsed: float
