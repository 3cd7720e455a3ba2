"""
This service runs the orientation gate and the usage mode controller.

Orientation samples go through the gate. When the level state flips (or the
controller asks for a fresh evaluation after a mode change or reset) the
controller re-evaluates which accumulators run. Accumulator thresholds are
turned into StartShakeSprintEvent / StartFitnessSprintEvent on the bus.
"""

from typing import Optional
from scaler.core.config import ApplicationConfig, UsageMode
from scaler.core.events import BaseEvent, EventType
from scaler.core.scheduler import Scheduler
from scaler.core.service import BaseService
from scaler.events.sensors import LevelStateChangedEvent
from scaler.events.usage import (
    StartShakeSprintEvent,
    StartFitnessSprintEvent,
    UsageModeChangedEvent
)
from scaler.models.orientation import OrientationGate
from scaler.models.sprint import SprintKind
from scaler.models.usage import UsageModeController

class UsageService(BaseService):
    """Service deciding when usage has earned a sprint"""

    PRODUCES_EVENTS = {
        EventType.LEVEL_STATE_CHANGED,
        EventType.USAGE_MODE_CHANGED,
        EventType.START_SHAKE_SPRINT,
        EventType.START_FITNESS_SPRINT,
    }

    CONSUMES_EVENTS = {
        EventType.ORIENTATION_SAMPLE: "handle_event",
        EventType.APP_WILL_ENTER_FOREGROUND: "handle_event",
        EventType.APP_DID_ENTER_BACKGROUND: "handle_event",
    }

    def __init__(self, event_bus, service_registry, scheduler: Scheduler,
                 config: Optional[ApplicationConfig] = None, name: Optional[str] = None):
        config = config or ApplicationConfig()
        super().__init__(event_bus, service_registry, name, config)
        self.scheduler = scheduler
        self.gate = OrientationGate(config.gate)
        self.controller = UsageModeController(
            scheduler,
            self.trigger_sprint,
            config.usage,
            target_usage=lambda: self.config.target_usage_seconds
        )

    async def _stop_impl(self) -> None:
        self.controller.stop_all()

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type == EventType.ORIENTATION_SAMPLE:
            await self.on_pitch(event.pitch_degrees)
        elif event.type == EventType.APP_WILL_ENTER_FOREGROUND:
            self.controller.enter_foreground(self.gate.is_level)
        elif event.type == EventType.APP_DID_ENTER_BACKGROUND:
            self.controller.enter_background()

    async def on_pitch(self, pitch_degrees: float) -> None:
        """Run a pitch sample through the gate and the controller."""
        changed = self.gate.update(pitch_degrees)
        if changed:
            await self.publish(LevelStateChangedEvent(
                is_level=self.gate.is_level,
                pitch_degrees=pitch_degrees
            ))
        if changed or self.controller.needs_evaluation:
            self.controller.handle_orientation_change(self.gate.is_level)

    async def mock_pitch(self, pitch_degrees: float) -> None:
        await self.on_pitch(pitch_degrees)

    async def set_mode(self, mode: UsageMode) -> None:
        """Switch usage mode; accounting resumes on the next orientation sample."""
        mode = UsageMode(mode)
        previous = self.controller.mode
        self.controller.set_mode(mode)
        await self.publish(UsageModeChangedEvent(mode=mode.value, previous_mode=previous.value))

    async def trigger_sprint(self, kind: SprintKind, reason: str) -> None:
        """Publish the trigger for a sprint of the given kind."""
        if kind == SprintKind.FITNESS:
            event = StartFitnessSprintEvent(reason=reason)
        else:
            event = StartShakeSprintEvent(reason=reason)
        await self.publish(event)

    @property
    def content_locked_by_orientation(self) -> bool:
        """True when the mode requires the device level and it is not."""
        return self.controller.honours_orientation and not self.gate.is_level
