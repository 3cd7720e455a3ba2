"""
Motion event detector.

Converts a stream of acceleration samples into discrete gesture events (shakes
or exercise reps) and keeps a trailing-window estimate of the event rate.

Detection:
- magnitude = sqrt(x^2 + y^2 + z^2), kept for display only
- delta = |dx| + |dy| + |dz| against the previous sample (L1 distance)
- delta > threshold emits one gesture event, but only while the detector is
  accepting events (its sprint is active); otherwise the event is dropped
- the previous sample is always replaced, accepting or not

Rate estimation:
recompute_rate() evicts events older than the window (1 second by default)
and sets events_per_second to the number that remain. It runs on its own
lower-frequency timer, so the rate moves in steps at eviction boundaries.
"""

import math
import structlog
from collections import deque
from enum import Enum
from typing import Callable, Deque, Optional, Tuple, Union
from scaler.core.observable import ObservableModel

class GestureKind(str, Enum):
    """What a detected gesture event stands for."""
    SHAKE = "shake"
    REP = "rep"

class MotionEventDetector(ObservableModel):
    """
    Delta-threshold gesture detector with a sliding one-second rate window.

    Published state:
        magnitude: magnitude of the last sample
        events_per_second: count of events in the window at the last recompute
        event_count: events recorded since the last clear()
    """

    def __init__(self,
                 kind: GestureKind,
                 threshold: Union[float, Callable[[], float]],
                 clock: Callable[[], float],
                 window: float = 1.0):
        """
        Initialize the detector.

        Args:
            kind: Gesture kind this detector reports
            threshold: L1 delta (in g) a sample must exceed to count as a gesture,
                or a function returning it so runtime adjustments apply immediately
            clock: Function returning the current time in seconds
            window: Trailing window for the rate estimate, in seconds
        """
        super().__init__()
        self.kind = kind
        self._threshold = threshold
        self.window = window
        self.clock = clock
        self.logger = structlog.get_logger(component=f"{kind.value}_detector")

        self.magnitude = 0.0
        self.events_per_second = 0.0
        self.event_count = 0
        self.accepting = False
        self.available = True

        self._previous: Optional[Tuple[float, float, float]] = None
        self._events: Deque[float] = deque()

    @property
    def threshold(self) -> float:
        if callable(self._threshold):
            return self._threshold()
        return self._threshold

    @property
    def recent_events(self) -> Tuple[float, ...]:
        """Timestamps currently retained in the window, oldest first."""
        return tuple(self._events)

    def mark_unavailable(self, reason: str) -> None:
        """
        Put the detector into permanent idle: it never emits events again.

        Repeated calls are ignored.
        """
        if not self.available:
            return
        self.available = False
        self.accepting = False
        self.logger.debug("Gesture detection idle", reason=reason)

    def set_accepting(self, accepting: bool) -> None:
        self.accepting = accepting and self.available

    def on_sample(self, x: float, y: float, z: float) -> bool:
        """
        Process one acceleration sample.

        Returns:
            True if a gesture event was recorded for this sample
        """
        if not self.available:
            return False

        self._commit(magnitude=math.sqrt(x * x + y * y + z * z))

        detected = False
        if self._previous is not None:
            px, py, pz = self._previous
            delta = abs(x - px) + abs(y - py) + abs(z - pz)
            if delta > self.threshold:
                detected = self.record_event()
        self._previous = (x, y, z)
        return detected

    def record_event(self, timestamp: Optional[float] = None) -> bool:
        """
        Record one gesture event, if the detector is accepting.

        Args:
            timestamp: Event time; defaults to now

        Returns:
            True if the event was kept
        """
        if not self.accepting:
            return False
        self._events.append(self.clock() if timestamp is None else timestamp)
        self._commit(event_count=self.event_count + 1)
        self.logger.debug(f"{self.kind.value.capitalize()} detected", total=self.event_count)
        return True

    def recompute_rate(self) -> float:
        """
        Evict events older than the window and refresh events_per_second.

        Returns:
            The new rate
        """
        cutoff = self.clock() - self.window
        while self._events and self._events[0] <= cutoff:
            self._events.popleft()
        self._commit(events_per_second=float(len(self._events)))
        return self.events_per_second

    def clear(self) -> None:
        """Drop retained events and counters. The previous sample is kept."""
        self._events.clear()
        self._commit(event_count=0, events_per_second=0.0)

    def reset(self) -> None:
        """Return to initial values, including the previous sample."""
        self.clear()
        self._previous = None
        self._commit(magnitude=0.0)
