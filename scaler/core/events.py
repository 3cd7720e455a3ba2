"""
Core event system for Scaler.

This module defines the base event model and event type enum that form the foundation
of the typed event system. All events in the system should inherit from BaseEvent.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum
import time
import uuid

class EventType(str, Enum):
    """
    Enum defining all event types in the system.
    
    Using string-based enum to ensure JSON serialization works properly.
    """
    # Application lifecycle events
    APPLICATION_STARTUP_COMPLETED = "application_startup_completed"
    APP_WILL_ENTER_FOREGROUND = "app_will_enter_foreground"
    APP_DID_ENTER_BACKGROUND = "app_did_enter_background"
    
    # Sensor events
    ORIENTATION_SAMPLE = "orientation_sample"
    ACCELERATION_SAMPLE = "acceleration_sample"
    LEVEL_STATE_CHANGED = "level_state_changed"
    
    # Usage events
    USAGE_MODE_CHANGED = "usage_mode_changed"
    START_SHAKE_SPRINT = "start_shake_sprint"
    START_FITNESS_SPRINT = "start_fitness_sprint"
    
    # Sprint events
    SPRINT_STARTED = "sprint_started"
    SPRINT_ENDED = "sprint_ended"
    
    # System events
    HARDWARE_ERROR = "hardware_error"
    SERVICE_STATE_CHANGED = "service_state_changed"

def generate_trace_id() -> str:
    """Generate a unique trace ID for event tracing."""
    return str(uuid.uuid4())

class BaseEvent(BaseModel):
    """
    Base model for all events with common metadata.
    
    All events in the system should inherit from this class and specify the event type
    and any additional payload fields required for that event.
    """
    # Allow extra attributes and keep enum values rather than enum objects
    model_config = ConfigDict(extra="allow", use_enum_values=True)
    
    type: EventType
    producer_name: str = ""
    timestamp: float = Field(default_factory=time.time)
    trace_id: Optional[str] = Field(default_factory=generate_trace_id)
