"""
Event definitions for Scaler.

This package contains all event types used in the system, organized by functional area.
register_default_events() registers every schema with an EventRegistry so the bus
accepts them.
"""

from scaler.core.events import EventType, BaseEvent
from scaler.core.registry import EventRegistry
from .sensors import OrientationSampleEvent, AccelerationSampleEvent, LevelStateChangedEvent
from .usage import StartShakeSprintEvent, StartFitnessSprintEvent, UsageModeChangedEvent
from .sprints import SprintStartedEvent, SprintEndedEvent
from .system import (
    ApplicationStartupCompletedEvent,
    AppWillEnterForegroundEvent,
    AppDidEnterBackgroundEvent,
    ServiceStateChangedEvent,
    HardwareErrorEvent
)

EVENT_SCHEMAS = {
    EventType.APPLICATION_STARTUP_COMPLETED: (ApplicationStartupCompletedEvent, "All services started"),
    EventType.APP_WILL_ENTER_FOREGROUND: (AppWillEnterForegroundEvent, "App is returning to the foreground"),
    EventType.APP_DID_ENTER_BACKGROUND: (AppDidEnterBackgroundEvent, "App moved to the background"),
    EventType.ORIENTATION_SAMPLE: (OrientationSampleEvent, "Pitch sample in degrees"),
    EventType.ACCELERATION_SAMPLE: (AccelerationSampleEvent, "Gravity-inclusive acceleration sample in g"),
    EventType.LEVEL_STATE_CHANGED: (LevelStateChangedEvent, "Orientation gate changed between level and not level"),
    EventType.USAGE_MODE_CHANGED: (UsageModeChangedEvent, "Usage accounting mode changed"),
    EventType.START_SHAKE_SPRINT: (StartShakeSprintEvent, "A shake sprint should start"),
    EventType.START_FITNESS_SPRINT: (StartFitnessSprintEvent, "A fitness sprint should start"),
    EventType.SPRINT_STARTED: (SprintStartedEvent, "A sprint session became active"),
    EventType.SPRINT_ENDED: (SprintEndedEvent, "A sprint session completed, timed out or was aborted"),
    EventType.SERVICE_STATE_CHANGED: (ServiceStateChangedEvent, "A service changed lifecycle state"),
    EventType.HARDWARE_ERROR: (HardwareErrorEvent, "Hardware is missing or failing"),
}

def register_default_events(registry: EventRegistry) -> EventRegistry:
    """Register every Scaler event schema with the registry."""
    for event_type, (schema, description) in EVENT_SCHEMAS.items():
        registry.register_event(event_type, schema, description)
    return registry
