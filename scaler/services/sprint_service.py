"""
This service owns the shake and fitness sprint sessions.

Sprint triggers from the bus start the matching session unless a sprint is
already running. Acceleration samples are fed to both gesture detectors so
each always holds the latest sample; only the active sprint's detector
records events. Backgrounding the app aborts a running sprint, and a missing
motion sensor leaves both detectors permanently idle.
"""

from typing import Dict, Optional
from scaler.core.config import ApplicationConfig
from scaler.core.events import BaseEvent, EventType
from scaler.core.scheduler import Scheduler
from scaler.core.service import BaseService
from scaler.events.sprints import SprintStartedEvent, SprintEndedEvent
from scaler.models.detector import MotionEventDetector, GestureKind
from scaler.models.sprint import SprintSession, SprintKind, SprintResult

class SprintService(BaseService):
    """Service running sprint challenges"""

    PRODUCES_EVENTS = {
        EventType.SPRINT_STARTED,
        EventType.SPRINT_ENDED,
    }

    CONSUMES_EVENTS = {
        EventType.START_SHAKE_SPRINT: "handle_event",
        EventType.START_FITNESS_SPRINT: "handle_event",
        EventType.ACCELERATION_SAMPLE: "handle_event",
        EventType.APP_DID_ENTER_BACKGROUND: "handle_event",
        EventType.HARDWARE_ERROR: "handle_event",
    }

    def __init__(self, event_bus, service_registry, scheduler: Scheduler,
                 config: Optional[ApplicationConfig] = None, name: Optional[str] = None):
        config = config or ApplicationConfig()
        super().__init__(event_bus, service_registry, name, config)
        self.scheduler = scheduler
        clock = scheduler.clock.now

        shake_detector = MotionEventDetector(
            GestureKind.SHAKE,
            threshold=lambda: self.config.motion.shake_threshold,
            clock=clock,
            window=config.sprint.rate_window
        )
        rep_detector = MotionEventDetector(
            GestureKind.REP,
            threshold=lambda: self.config.motion.rep_threshold,
            clock=clock,
            window=config.sprint.rate_window
        )
        self.sessions: Dict[SprintKind, SprintSession] = {
            SprintKind.SHAKE: SprintSession(
                SprintKind.SHAKE, shake_detector, scheduler, config.sprint,
                on_finished=self._on_sprint_finished),
            SprintKind.FITNESS: SprintSession(
                SprintKind.FITNESS, rep_detector, scheduler, config.sprint,
                on_finished=self._on_sprint_finished),
        }

    @property
    def shake(self) -> SprintSession:
        return self.sessions[SprintKind.SHAKE]

    @property
    def fitness(self) -> SprintSession:
        return self.sessions[SprintKind.FITNESS]

    @property
    def active_session(self) -> Optional[SprintSession]:
        for session in self.sessions.values():
            if session.is_active:
                return session
        return None

    async def _stop_impl(self) -> None:
        await self.abort_all()

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type == EventType.ACCELERATION_SAMPLE:
            for session in self.sessions.values():
                session.detector.on_sample(event.x, event.y, event.z)
        elif event.type == EventType.START_SHAKE_SPRINT:
            await self.start_sprint(SprintKind.SHAKE)
        elif event.type == EventType.START_FITNESS_SPRINT:
            await self.start_sprint(SprintKind.FITNESS)
        elif event.type == EventType.APP_DID_ENTER_BACKGROUND:
            await self.abort_all()
        elif event.type == EventType.HARDWARE_ERROR:
            if event.component == "motion":
                for session in self.sessions.values():
                    session.detector.mark_unavailable(event.error_type)

    async def start_sprint(self, kind: SprintKind) -> bool:
        """
        Start a sprint of the given kind.

        Returns:
            False if any sprint was already running
        """
        active = self.active_session
        if active is not None:
            self.logger.debug("Sprint already running, ignoring trigger",
                              running=active.kind.value, requested=kind.value)
            return False

        session = self.sessions[kind]
        if not session.start():
            return False
        await self.publish(SprintStartedEvent(
            kind=kind.value,
            required_rate=session.required_rate,
            duration=session.duration
        ))
        return True

    async def abort_all(self) -> None:
        for session in self.sessions.values():
            if session.is_active:
                await session.abort()

    async def reset(self) -> None:
        """Abort any sprint and return every session to initial values."""
        for session in self.sessions.values():
            await session.reset()

    def mock_gesture_event(self, kind: Optional[SprintKind] = None) -> bool:
        """
        Record a gesture for the running sprint, or for the given kind.

        Returns:
            False when no matching sprint is running and the gesture is dropped
        """
        session = self.sessions[kind] if kind else self.active_session
        if session is None:
            return False
        return session.mock_gesture_event()

    async def _on_sprint_finished(self, result: SprintResult) -> None:
        await self.publish(SprintEndedEvent(
            kind=result.kind.value,
            outcome=result.outcome.value,
            progress=result.progress,
            elapsed=result.elapsed
        ))
