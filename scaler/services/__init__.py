"""
Service implementations for Scaler.

Services connect the gate, usage and sprint models to the event bus:
- MotionService samples the motion hardware and publishes sensor events
- UsageService runs the orientation gate and the usage mode controller and
  publishes sprint triggers
- SprintService owns the shake and fitness sprint sessions and starts them
  on trigger events
"""

from .motion_service import MotionService
from .usage_service import UsageService
from .sprint_service import SprintService

__all__ = ['MotionService', 'UsageService', 'SprintService']
