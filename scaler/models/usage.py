"""
Usage accounting.

UsageModeController owns three accumulators and decides, from the active
UsageMode and the orientation gate's output, which of them run:

    mode          level                        not level
    LEVEL_ONLY    level usage                  nothing
    SHAKE_ONLY    level usage + non-level      level usage + non-level
    FITNESS       level usage + non-level      level usage + non-level
    BOTH          level usage                  out of level

Each accumulator ticks once per second. On reaching its threshold:
- level usage: emits a shake sprint trigger once, then stops
- out of level: stops, then emits a shake sprint trigger
- non-level usage: resets to zero and keeps running, emitting the mode's
  sprint trigger (shake for SHAKE_ONLY, fitness for FITNESS)

Stopping an accumulator zeroes it. Changing mode or moving to the background
stops and zeroes all of them.
"""

import structlog
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, Optional, Union
from scaler.core.config import UsageConfig, UsageMode
from scaler.core.observable import ObservableModel
from scaler.core.scheduler import Scheduler, Timer
from .sprint import SprintKind

class AccumulatorKind(str, Enum):
    LEVEL_USAGE = "level_usage"
    OUT_OF_LEVEL = "out_of_level"
    NON_LEVEL_USAGE = "non_level_usage"

class ThresholdPolicy(str, Enum):
    """What an accumulator does when it reaches its threshold."""
    STOP = "stop"
    CYCLE = "cycle"

# (mode, is_level) -> accumulators that run; everything else is stopped
MODE_TABLE: Dict[UsageMode, Dict[bool, FrozenSet[AccumulatorKind]]] = {
    UsageMode.LEVEL_ONLY: {
        True: frozenset({AccumulatorKind.LEVEL_USAGE}),
        False: frozenset(),
    },
    UsageMode.SHAKE_ONLY: {
        True: frozenset({AccumulatorKind.LEVEL_USAGE, AccumulatorKind.NON_LEVEL_USAGE}),
        False: frozenset({AccumulatorKind.LEVEL_USAGE, AccumulatorKind.NON_LEVEL_USAGE}),
    },
    UsageMode.FITNESS: {
        True: frozenset({AccumulatorKind.LEVEL_USAGE, AccumulatorKind.NON_LEVEL_USAGE}),
        False: frozenset({AccumulatorKind.LEVEL_USAGE, AccumulatorKind.NON_LEVEL_USAGE}),
    },
    UsageMode.BOTH: {
        True: frozenset({AccumulatorKind.LEVEL_USAGE}),
        False: frozenset({AccumulatorKind.OUT_OF_LEVEL}),
    },
}

# Sprint started when the non-level cycle completes
CYCLE_SPRINT: Dict[UsageMode, SprintKind] = {
    UsageMode.SHAKE_ONLY: SprintKind.SHAKE,
    UsageMode.FITNESS: SprintKind.FITNESS,
}

# Modes in which the device must be level for content to be shown
ORIENTATION_MODES = frozenset({UsageMode.LEVEL_ONLY, UsageMode.BOTH})

SprintTrigger = Callable[[SprintKind, str], Awaitable[None]]

def format_duration(seconds: float, debug: bool = False) -> str:
    """
    Format a duration for display.

    Debug builds count in seconds ("5s"); otherwise minutes and seconds
    ("1:30", "61:01").
    """
    if debug:
        return f"{seconds:.0f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"

class Accumulator(ObservableModel):
    """
    Elapsed-time counter ticking once per interval while running.

    Published state:
        elapsed: seconds counted since the last start
        is_running: whether the tick timer is scheduled
    """

    def __init__(self,
                 kind: AccumulatorKind,
                 scheduler: Scheduler,
                 threshold: Union[float, Callable[[], float]],
                 policy: ThresholdPolicy,
                 on_threshold: Callable[["Accumulator"], Awaitable[None]],
                 tick_interval: float = 1.0):
        super().__init__()
        self.kind = kind
        self.scheduler = scheduler
        self.policy = policy
        self.on_threshold = on_threshold
        self.tick_interval = tick_interval
        self._threshold = threshold
        self.logger = structlog.get_logger(component=kind.value)

        self.elapsed = 0.0
        self.is_running = False
        self._timer: Optional[Timer] = None

    @property
    def threshold(self) -> float:
        if callable(self._threshold):
            return self._threshold()
        return self._threshold

    @property
    def progress(self) -> float:
        return min(self.elapsed / self.threshold, 1.0)

    @property
    def remaining(self) -> float:
        return max(self.threshold - self.elapsed, 0.0)

    def start(self) -> bool:
        """Start ticking. Returns False if already running."""
        if self.is_running:
            return False
        self._timer = self.scheduler.every(self.tick_interval, self.tick, name=self.kind.value)
        self._commit(is_running=True)
        self.logger.debug("Accumulator started")
        return True

    def stop(self) -> bool:
        """Stop ticking and zero the count. Returns False if already stopped."""
        if not self.is_running:
            return False
        if self._timer:
            self._timer.cancel()
            self._timer = None
        self._commit(is_running=False, elapsed=0.0)
        self.logger.debug("Accumulator stopped")
        return True

    def reset(self) -> None:
        self.stop()
        self._commit(elapsed=0.0)

    async def tick(self) -> None:
        if not self.is_running:
            return
        self._commit(elapsed=self.elapsed + self.tick_interval)
        threshold = self.threshold
        self.logger.debug("Accumulated", elapsed=self.elapsed, threshold=threshold)
        if self.elapsed < threshold:
            return

        self.logger.info("Threshold reached", elapsed=self.elapsed, threshold=threshold,
                         policy=self.policy.value)
        if self.policy == ThresholdPolicy.STOP:
            self.stop()
        else:
            self._commit(elapsed=0.0)
        await self.on_threshold(self)

class UsageModeController(ObservableModel):
    """
    Top-level usage state machine.

    handle_orientation_change() is the single entry point that decides which
    accumulators run. It is idempotent: accumulators already in the wanted
    state are left alone. set_mode() and background() stop and zero all
    accumulators and leave them stopped until the next evaluation.

    Published state:
        mode, in_foreground, is_level, needs_evaluation
    """

    def __init__(self,
                 scheduler: Scheduler,
                 trigger_sprint: SprintTrigger,
                 config: Optional[UsageConfig] = None,
                 target_usage: Optional[Callable[[], float]] = None,
                 mode: Optional[UsageMode] = None):
        """
        Initialize the controller.

        Args:
            scheduler: Scheduler owning the accumulator timers
            trigger_sprint: Coroutine called as trigger_sprint(kind, reason)
            config: Usage thresholds, read whenever an accumulator ticks
            target_usage: Function returning the level usage target; defaults
                to config.target_usage_seconds
            mode: Initial mode; defaults to config.default_mode
        """
        super().__init__()
        self.config = config or UsageConfig()
        self.scheduler = scheduler
        self.trigger_sprint = trigger_sprint
        self.logger = structlog.get_logger(component="usage_controller")

        self.mode = mode or self.config.default_mode
        self.in_foreground = True
        self.is_level = False
        self.needs_evaluation = True

        target = target_usage or (lambda: self.config.target_usage_seconds)
        tick = self.config.tick_interval
        self.level_usage = Accumulator(
            AccumulatorKind.LEVEL_USAGE, scheduler, target,
            ThresholdPolicy.STOP, self._on_threshold, tick)
        self.out_of_level = Accumulator(
            AccumulatorKind.OUT_OF_LEVEL, scheduler,
            lambda: self.config.out_of_level_threshold_seconds,
            ThresholdPolicy.STOP, self._on_threshold, tick)
        self.non_level_usage = Accumulator(
            AccumulatorKind.NON_LEVEL_USAGE, scheduler,
            lambda: self.config.non_level_cycle_seconds,
            ThresholdPolicy.CYCLE, self._on_threshold, tick)

        self.accumulators: Dict[AccumulatorKind, Accumulator] = {
            AccumulatorKind.LEVEL_USAGE: self.level_usage,
            AccumulatorKind.OUT_OF_LEVEL: self.out_of_level,
            AccumulatorKind.NON_LEVEL_USAGE: self.non_level_usage,
        }

    @property
    def total_usage_time(self) -> float:
        return self.level_usage.elapsed

    @property
    def out_of_level_time(self) -> float:
        return self.out_of_level.elapsed

    @property
    def non_level_usage_time(self) -> float:
        return self.non_level_usage.elapsed

    @property
    def running(self) -> FrozenSet[AccumulatorKind]:
        return frozenset(k for k, acc in self.accumulators.items() if acc.is_running)

    @property
    def honours_orientation(self) -> bool:
        return self.mode in ORIENTATION_MODES

    def handle_orientation_change(self, is_level: bool) -> FrozenSet[AccumulatorKind]:
        """
        Bring the running accumulators in line with (mode, is_level).

        Returns:
            The accumulators running afterwards
        """
        self._commit(is_level=is_level)
        if not self.in_foreground:
            self.stop_all()
            return self.running

        wanted = MODE_TABLE[self.mode][is_level]
        for kind, accumulator in self.accumulators.items():
            if kind in wanted:
                accumulator.start()
            else:
                accumulator.stop()
        self._commit(needs_evaluation=False)
        return self.running

    def set_mode(self, mode: UsageMode) -> None:
        """Switch mode, stopping and zeroing every accumulator."""
        mode = UsageMode(mode)
        previous = self.mode
        self.stop_all()
        self._commit(mode=mode, needs_evaluation=True)
        self.logger.info("Usage mode changed", mode=mode.value, previous=previous.value)

    def enter_background(self) -> None:
        self._commit(in_foreground=False)
        self.stop_all()
        self.logger.info("App in background, usage accounting stopped")

    def enter_foreground(self, is_level: bool) -> FrozenSet[AccumulatorKind]:
        self._commit(in_foreground=True)
        return self.handle_orientation_change(is_level)

    def stop_all(self) -> None:
        for accumulator in self.accumulators.values():
            accumulator.reset()

    def reset(self) -> None:
        """Stop and zero every accumulator; the mode is kept."""
        self.stop_all()
        self._commit(needs_evaluation=True)

    async def trigger_now(self, kind: SprintKind = SprintKind.SHAKE) -> None:
        """Fire a sprint trigger immediately, for testing."""
        self.logger.info("Manually triggering sprint", kind=kind.value)
        await self.trigger_sprint(kind, "manual")

    async def _on_threshold(self, accumulator: Accumulator) -> None:
        if accumulator.kind == AccumulatorKind.NON_LEVEL_USAGE:
            kind = CYCLE_SPRINT.get(self.mode, SprintKind.SHAKE)
        else:
            kind = SprintKind.SHAKE
        self.logger.info(f"{accumulator.kind.value} threshold reached, triggering {kind.value} sprint")
        await self.trigger_sprint(kind, accumulator.kind.value)
