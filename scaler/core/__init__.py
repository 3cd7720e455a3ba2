"""
Core framework for Scaler.

This package provides the fundamental components of the Scaler architecture:
- Event system with typed event definitions
- Service registry and lifecycle management
- Configuration management
- Deterministic timer scheduling
- Observability and tracing
"""

from .events import EventType, BaseEvent
from .registry import EventRegistry, ServiceRegistry
from .bus import EventBus
from .tracing import EventTracer
from .service import BaseService
from .scheduler import Scheduler, Timer, ManualClock, MonotonicClock
from .observable import ObservableModel
from .config import get_config, ApplicationConfig

__all__ = [
    'EventType',
    'BaseEvent',
    'EventRegistry',
    'ServiceRegistry',
    'EventBus',
    'EventTracer',
    'BaseService',
    'Scheduler',
    'Timer',
    'ManualClock',
    'MonotonicClock',
    'ObservableModel',
    'get_config',
    'ApplicationConfig'
]
