"""
Sprint session state machine.

A sprint is a time-boxed physical challenge. While active, two timers run:
- the rate timer recomputes the detector's trailing-window gesture rate
- the progress timer updates progress from elapsed time and that rate

States:
    IDLE -> ACTIVE -> {COMPLETED, TIMED_OUT, ABORTED} -> IDLE

The terminal states are reported once (observers and the finish callback
see them) and the session immediately returns to IDLE.

Progress law, per tick with t = elapsed seconds:
- rate >= required: progress = min(t / duration, 1.0)
- rate < required and t > grace period: progress -= decay_step (floor 0)
- rate < required within the grace period: progress unchanged
Completion at progress >= 1.0; time-out when t > duration * overrun_multiplier.
"""

import structlog
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union
from scaler.core.config import SprintConfig
from scaler.core.observable import ObservableModel
from scaler.core.scheduler import Scheduler, Timer
from .detector import MotionEventDetector

class SprintKind(str, Enum):
    SHAKE = "shake"
    FITNESS = "fitness"

class SprintState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"

TERMINAL_STATES = (SprintState.COMPLETED, SprintState.TIMED_OUT, SprintState.ABORTED)

@dataclass(frozen=True)
class SprintResult:
    """How a sprint session ended."""
    kind: SprintKind
    outcome: SprintState
    progress: float
    elapsed: float
    gesture_count: int

FinishedCallback = Callable[[SprintResult], Awaitable[None]]

class SprintSession(ObservableModel):
    """
    One kind of sprint (shake or fitness) bound to its gesture detector.

    The session is reusable: each start() begins a new run, and starting while
    a run is active is ignored.

    Published state:
        state, is_active, progress, started_at
    """

    def __init__(self,
                 kind: SprintKind,
                 detector: MotionEventDetector,
                 scheduler: Scheduler,
                 config: Optional[SprintConfig] = None,
                 required_rate: Optional[Union[float, Callable[[], float]]] = None,
                 on_finished: Optional[FinishedCallback] = None):
        """
        Initialize the session.

        Args:
            kind: Sprint kind
            detector: Gesture detector feeding this sprint
            scheduler: Scheduler owning the progress and rate timers
            config: Sprint parameters; read on every tick
            required_rate: Gesture events per second needed, or a function
                returning it; defaults to the config value for the kind
            on_finished: Coroutine called with the result when a run ends
        """
        super().__init__()
        self.kind = kind
        self.detector = detector
        self.scheduler = scheduler
        self.config = config or SprintConfig()
        self.on_finished = on_finished
        self.logger = structlog.get_logger(component=f"{kind.value}_sprint")

        if required_rate is None:
            if kind == SprintKind.SHAKE:
                required_rate = lambda: self.config.required_shake_rate
            else:
                required_rate = lambda: self.config.required_rep_rate
        self._required_rate = required_rate

        self.state = SprintState.IDLE
        self.is_active = False
        self.progress = 0.0
        self.started_at: Optional[float] = None
        self.last_result: Optional[SprintResult] = None

        self._tick_timer: Optional[Timer] = None
        self._rate_timer: Optional[Timer] = None

    @property
    def required_rate(self) -> float:
        if callable(self._required_rate):
            return self._required_rate()
        return self._required_rate

    @property
    def duration(self) -> float:
        return self.config.duration_seconds

    @property
    def events_per_second(self) -> float:
        return self.detector.events_per_second

    @property
    def gesture_count(self) -> int:
        return self.detector.event_count

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return self.scheduler.clock.now() - self.started_at

    def start(self) -> bool:
        """
        Begin a run: progress to 0, gesture window cleared, start time recorded.

        Returns:
            False if a run was already active (nothing changes), True otherwise
        """
        if self.is_active:
            self.logger.debug("Sprint already active, ignoring start")
            return False

        self.detector.clear()
        self.detector.set_accepting(True)
        self._commit(
            progress=0.0,
            started_at=self.scheduler.clock.now(),
            is_active=True,
            state=SprintState.ACTIVE
        )

        # Rate timer first so a shared due time sees the fresh rate
        self._rate_timer = self.scheduler.every(
            self.config.rate_interval, self.update_rate, name=f"{self.kind.value}_rate")
        self._tick_timer = self.scheduler.every(
            self.config.tick_interval, self.tick, name=f"{self.kind.value}_progress")

        self.logger.info(f"Starting {self.kind.value} sprint",
                         required_rate=self.required_rate, duration=self.duration)
        return True

    def update_rate(self) -> float:
        """Recompute the gesture rate from the detector's window."""
        return self.detector.recompute_rate()

    async def tick(self) -> SprintState:
        """
        Advance progress for the current time.

        Returns:
            The state after the tick (IDLE once a run has ended)
        """
        if not self.is_active:
            return self.state

        elapsed = self.elapsed
        duration = self.duration
        time_fraction = min(elapsed / duration, 1.0)
        rate = self.detector.events_per_second
        required = self.required_rate

        progress = self.progress
        if rate >= required:
            progress = time_fraction
        elif elapsed > self.config.grace_period:
            progress = max(0.0, progress - self.config.decay_step)
            self.logger.debug("Insufficient gesture rate", rate=rate, required=required,
                              progress=round(progress, 3))
        self._commit(progress=progress)

        if progress >= 1.0:
            await self._finish(SprintState.COMPLETED)
        elif elapsed > duration * self.config.overrun_multiplier:
            await self._finish(SprintState.TIMED_OUT)
        return self.state

    async def abort(self) -> Optional[SprintResult]:
        """
        Force an active run to ABORTED and clear all session state.

        Safe to call at any time; when idle it only clears state.

        Returns:
            The aborted run's result, or None if nothing was active
        """
        result = None
        if self.is_active:
            result = await self._finish(SprintState.ABORTED)
        self.detector.clear()
        self._commit(progress=0.0, started_at=None)
        return result

    async def reset(self) -> Optional[SprintResult]:
        """Abort any run and return to initial values."""
        result = await self.abort()
        self.last_result = None
        return result

    def mock_gesture_event(self) -> bool:
        """Record a gesture as if the detector had seen one."""
        return self.detector.record_event()

    async def _finish(self, outcome: SprintState) -> SprintResult:
        self._cancel_timers()
        self.detector.set_accepting(False)

        elapsed = self.elapsed
        progress = 1.0 if outcome == SprintState.COMPLETED else self.progress
        result = SprintResult(
            kind=self.kind,
            outcome=outcome,
            progress=progress,
            elapsed=elapsed,
            gesture_count=self.gesture_count
        )

        self._commit(progress=progress, is_active=False, state=outcome)
        if outcome == SprintState.COMPLETED:
            self.logger.info("Sprint completed successfully!", elapsed=round(elapsed, 1))
        else:
            self.logger.info("Sprint stopped incomplete", outcome=outcome.value,
                             progress=round(progress, 3), elapsed=round(elapsed, 1))
        self.last_result = result
        self._commit(state=SprintState.IDLE)

        if self.on_finished:
            await self.on_finished(result)
        return result

    def _cancel_timers(self) -> None:
        for timer in (self._tick_timer, self._rate_timer):
            if timer:
                timer.cancel()
        self._tick_timer = None
        self._rate_timer = None
