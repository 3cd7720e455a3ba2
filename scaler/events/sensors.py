"""
Sensor events for Scaler.

This module defines events carrying motion samples and the derived
level/not-level signal.
"""

from typing import Literal
from scaler.core.events import BaseEvent, EventType

class OrientationSampleEvent(BaseEvent):
    """
    Event published for every orientation sample.
    
    Pitch is already converted to degrees.
    """
    type: Literal[EventType.ORIENTATION_SAMPLE] = EventType.ORIENTATION_SAMPLE
    pitch_degrees: float
    
class AccelerationSampleEvent(BaseEvent):
    """
    Event published for every acceleration sample (gravity included, in g).
    """
    type: Literal[EventType.ACCELERATION_SAMPLE] = EventType.ACCELERATION_SAMPLE
    x: float
    y: float
    z: float
    
class LevelStateChangedEvent(BaseEvent):
    """
    Event published when the orientation gate flips between level and not level.
    
    Only published on an actual change, never for repeated identical results.
    """
    type: Literal[EventType.LEVEL_STATE_CHANGED] = EventType.LEVEL_STATE_CHANGED
    is_level: bool
    pitch_degrees: float
