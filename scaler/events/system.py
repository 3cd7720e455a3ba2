"""
System events for Scaler.

This module defines events related to application lifecycle, service state
and hardware availability.
"""

from typing import Dict, Any, Optional, Literal
from scaler.core.events import BaseEvent, EventType

class ApplicationStartupCompletedEvent(BaseEvent):
    """
    Event published when application startup has completed.
    """
    type: Literal[EventType.APPLICATION_STARTUP_COMPLETED] = EventType.APPLICATION_STARTUP_COMPLETED

class AppWillEnterForegroundEvent(BaseEvent):
    """
    Event published when the app returns to the foreground.
    """
    type: Literal[EventType.APP_WILL_ENTER_FOREGROUND] = EventType.APP_WILL_ENTER_FOREGROUND

class AppDidEnterBackgroundEvent(BaseEvent):
    """
    Event published when the app moves to the background.
    
    Every usage accumulator is stopped and zeroed and any running sprint is
    aborted in response.
    """
    type: Literal[EventType.APP_DID_ENTER_BACKGROUND] = EventType.APP_DID_ENTER_BACKGROUND

class ServiceStateChangedEvent(BaseEvent):
    """
    Event published when a service changes state.
    """
    type: Literal[EventType.SERVICE_STATE_CHANGED] = EventType.SERVICE_STATE_CHANGED
    service_name: str
    state: str  # 'started', 'stopping', 'stopped'
    error: Optional[str] = None

class HardwareErrorEvent(BaseEvent):
    """
    Event published when hardware is missing or failing.
    
    The affected component keeps running in a degraded, idle mode.
    """
    type: Literal[EventType.HARDWARE_ERROR] = EventType.HARDWARE_ERROR
    component: str  # 'motion', ...
    error_type: str  # 'sensor_unavailable', ...
    error_message: str
    details: Optional[Dict[str, Any]] = None
