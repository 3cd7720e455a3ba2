"""
Timer scheduling for Scaler.

Every periodic activity in the system (sensor sampling, sprint progress ticks,
gesture-rate recomputation, usage accumulators) is a Timer owned by a single
Scheduler. The scheduler dispatches due timers one at a time, in
(due time, creation order) order, so no two callbacks ever run concurrently.

Two clocks are provided:
- MonotonicClock reads time.monotonic() and is used with Scheduler.run()
- ManualClock only moves when told to and is used with Scheduler.advance()
  to simulate time deterministically
"""

import asyncio
import inspect
import itertools
import time
import structlog
from typing import Any, Awaitable, Callable, List, Optional, Union

TimerCallback = Callable[[], Union[None, Awaitable[None]]]

# Tolerance when comparing float due times
_EPSILON = 1e-9

class MonotonicClock:
    """Wall-independent clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()

class ManualClock:
    """
    Clock that only moves when set or advanced.

    Used by tests and simulations together with Scheduler.advance().
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def set(self, value: float) -> None:
        if value < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = value

    def advance(self, seconds: float) -> None:
        self.set(self._now + seconds)

class Timer:
    """
    A repeating timer registered with a Scheduler.

    Due times are computed from the start time and the number of firings,
    so they do not drift with repeated float addition.
    """

    def __init__(self, scheduler: "Scheduler", name: str, interval: float,
                 callback: TimerCallback, started_at: float, seq: int):
        self._scheduler = scheduler
        self.name = name
        self.interval = interval
        self.callback = callback
        self.started_at = started_at
        self.seq = seq
        self.fire_count = 0
        self.active = True

    @property
    def due(self) -> float:
        return self.started_at + (self.fire_count + 1) * self.interval

    def cancel(self) -> None:
        """Cancel the timer. Safe to call any number of times."""
        self._scheduler.cancel(self)

    def __repr__(self) -> str:
        return f"Timer(name={self.name!r}, interval={self.interval}, active={self.active})"

class Scheduler:
    """
    Single ticking loop dispatching due timers in deterministic order.

    A callback may be a plain function or a coroutine function; coroutines are
    awaited to completion before the next timer is dispatched. Exceptions
    raised by a callback are logged and do not stop the loop or the timer.
    """

    def __init__(self, clock: Optional[Any] = None, idle_interval: float = 0.05):
        """
        Initialize the scheduler.

        Args:
            clock: Clock exposing now(); defaults to MonotonicClock
            idle_interval: Longest sleep between dispatch passes in run()
        """
        self.clock = clock or MonotonicClock()
        self.idle_interval = idle_interval
        self.logger = structlog.get_logger(component="scheduler")
        self._timers: List[Timer] = []
        self._seq = itertools.count()
        self._running = False

    def every(self, interval: float, callback: TimerCallback, name: Optional[str] = None) -> Timer:
        """
        Schedule a callback to fire every `interval` seconds, starting one
        interval from now.

        Args:
            interval: Period in seconds, must be positive
            callback: Function or coroutine function taking no arguments
            name: Optional name used in logs

        Returns:
            The Timer handle
        """
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        timer = Timer(
            self,
            name or getattr(callback, "__qualname__", repr(callback)),
            interval,
            callback,
            self.clock.now(),
            next(self._seq)
        )
        self._timers.append(timer)
        return timer

    def cancel(self, timer: Timer) -> None:
        if not timer.active:
            return
        timer.active = False
        if timer in self._timers:
            self._timers.remove(timer)

    @property
    def timers(self) -> List[Timer]:
        """Active timers in creation order."""
        return list(self._timers)

    def next_due(self) -> Optional[float]:
        if not self._timers:
            return None
        return min(t.due for t in self._timers)

    async def run_due(self) -> int:
        """
        Fire every timer that is due at the current clock time.

        A timer that is overdue by several intervals fires once per missed
        interval. Timers cancelled by an earlier callback in the same pass
        do not fire.

        Returns:
            Number of callbacks dispatched
        """
        now = self.clock.now()
        fired = 0
        while True:
            due = [t for t in self._timers if t.due <= now + _EPSILON]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            timer.fire_count += 1
            fired += 1
            await self._dispatch(timer)
        return fired

    async def _dispatch(self, timer: Timer) -> None:
        try:
            result = timer.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error("Timer callback failed", timer=timer.name, error=str(e), exc_info=True)

    async def advance(self, seconds: float) -> int:
        """
        Move a ManualClock forward, firing timers at their exact due times.

        Args:
            seconds: How far to move the clock

        Returns:
            Number of callbacks dispatched
        """
        if not isinstance(self.clock, ManualClock):
            raise RuntimeError("advance() requires a ManualClock")
        target = self.clock.now() + seconds
        fired = 0
        while True:
            next_due = self.next_due()
            if next_due is None or next_due > target + _EPSILON:
                break
            self.clock.set(max(next_due, self.clock.now()))
            fired += await self.run_due()
        self.clock.set(max(target, self.clock.now()))
        return fired

    async def run(self) -> None:
        """Dispatch timers against the clock until stop() is called."""
        self._running = True
        self.logger.info("Scheduler running")
        try:
            while self._running:
                await self.run_due()
                next_due = self.next_due()
                if next_due is None:
                    delay = self.idle_interval
                else:
                    delay = min(self.idle_interval, max(0.0, next_due - self.clock.now()))
                await asyncio.sleep(delay)
        finally:
            self._running = False
            self.logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._running = False

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
