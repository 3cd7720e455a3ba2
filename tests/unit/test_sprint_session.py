"""
Unit tests for the SprintSession state machine.

Time is simulated with a ManualClock and Scheduler.advance(), so a full
one-minute sprint runs in milliseconds and every tick lands at its exact due
time. Gestures are fed by a scheduler timer created before the session starts,
which makes it fire ahead of the session's own timers at shared due times.
"""

import unittest
from unittest.mock import AsyncMock

from scaler.core.config import SprintConfig
from scaler.core.scheduler import ManualClock, Scheduler
from scaler.models.detector import MotionEventDetector, GestureKind
from scaler.models.sprint import SprintSession, SprintKind, SprintState

class TestSprintSession(unittest.IsolatedAsyncioTestCase):
    """Test cases for the SprintSession class."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.clock = ManualClock()
        self.scheduler = Scheduler(self.clock)
        self.config = SprintConfig()
        self.detector = MotionEventDetector(
            GestureKind.SHAKE, threshold=1.0, clock=self.clock.now, window=1.0)
        self.on_finished = AsyncMock()
        self.session = SprintSession(
            SprintKind.SHAKE, self.detector, self.scheduler, self.config,
            on_finished=self.on_finished)

        self.states = []
        self.session.observe(
            lambda model, field, old, new: self.states.append(new) if field == "state" else None)

    def start_feeding(self, interval=0.1):
        """Record one gesture every interval seconds (10 per second by default)."""
        return self.scheduler.every(interval, self.session.mock_gesture_event, name="feeder")

    def test_initial_state(self):
        """Test a new session is idle with zero progress."""
        self.assertEqual(self.session.state, SprintState.IDLE)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.session.progress, 0.0)
        self.assertIsNone(self.session.started_at)
        self.assertEqual(self.session.required_rate, 3.0)
        self.assertEqual(self.session.duration, 60.0)

    def test_fitness_uses_rep_rate(self):
        """Test a fitness session requires the rep rate."""
        session = SprintSession(SprintKind.FITNESS, self.detector, self.scheduler, self.config)
        self.assertEqual(session.required_rate, 1.0)

    async def test_start(self):
        """Test start() activates the session and schedules its timers."""
        self.clock.set(5.0)
        self.assertTrue(self.session.start())

        self.assertTrue(self.session.is_active)
        self.assertEqual(self.session.state, SprintState.ACTIVE)
        self.assertEqual(self.session.started_at, 5.0)
        self.assertTrue(self.detector.accepting)
        self.assertEqual(len(self.scheduler.timers), 2)

    async def test_start_twice_is_ignored(self):
        """Test a second start while active leaves progress and start time unchanged."""
        self.start_feeding()
        self.session.start()
        await self.scheduler.advance(3.0)
        progress = self.session.progress
        started_at = self.session.started_at
        self.assertGreater(progress, 0.0)

        self.assertFalse(self.session.start())
        self.assertEqual(self.session.progress, progress)
        self.assertEqual(self.session.started_at, started_at)
        self.assertEqual(len(self.scheduler.timers), 3)

    async def test_start_clears_previous_gestures(self):
        """Test gestures recorded before a run do not count towards it."""
        self.detector.set_accepting(True)
        for _ in range(5):
            self.detector.record_event()

        self.session.start()
        self.assertEqual(self.session.gesture_count, 0)
        self.assertEqual(self.detector.recent_events, ())

    async def test_completes_exactly_once(self):
        """Test sustained gestures drive progress to exactly 1.0 and complete once."""
        feeder = self.start_feeding()
        self.session.start()

        await self.scheduler.advance(61.0)

        self.assertEqual(self.session.progress, 1.0)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.session.state, SprintState.IDLE)
        self.assertEqual(self.states.count(SprintState.COMPLETED), 1)
        self.assertEqual(self.states, [SprintState.ACTIVE, SprintState.COMPLETED, SprintState.IDLE])

        self.on_finished.assert_awaited_once()
        result = self.on_finished.await_args.args[0]
        self.assertEqual(result.outcome, SprintState.COMPLETED)
        self.assertEqual(result.kind, SprintKind.SHAKE)
        self.assertEqual(result.progress, 1.0)
        self.assertGreater(result.elapsed, 59.9)
        self.assertGreater(result.gesture_count, 500)
        self.assertEqual(self.session.last_result, result)

        # Only the feeder is left; the session's timers are gone
        self.assertEqual(self.scheduler.timers, [feeder])
        self.assertFalse(self.detector.accepting)

    async def test_progress_tracks_elapsed_time(self):
        """Test progress equals the time fraction while the rate is met."""
        self.start_feeding()
        self.session.start()

        await self.scheduler.advance(30.05)
        self.assertAlmostEqual(self.session.progress, 30.0 / 60.0, places=6)

    async def test_four_events_in_window(self):
        """Test four gestures in one window give a rate of four and advance progress."""
        self.session.start()
        await self.scheduler.advance(0.5)
        for _ in range(4):
            self.session.mock_gesture_event()

        await self.scheduler.advance(0.5)

        self.assertEqual(self.session.events_per_second, 4.0)
        self.assertAlmostEqual(self.session.progress, 1.0 / 60.0)

    async def test_no_decay_during_grace_period(self):
        """Test an insufficient rate does not decay progress before the grace period ends."""
        self.session.start()
        self.session._commit(progress=0.5)

        await self.scheduler.advance(2.0)
        self.assertEqual(self.session.progress, 0.5)

        await self.scheduler.advance(0.1)
        self.assertAlmostEqual(self.session.progress, 0.48)

    async def test_decays_after_gestures_stop(self):
        """Test progress strictly decreases on every tick once gestures stop."""
        feeder = self.start_feeding()
        self.session.start()
        await self.scheduler.advance(10.0)
        feeder.cancel()

        # The rate drops at the next recompute (t=11)
        await self.scheduler.advance(1.05)
        previous = self.session.progress
        self.assertGreater(previous, 0.1)

        for _ in range(5):
            await self.scheduler.advance(0.1)
            self.assertAlmostEqual(self.session.progress, previous - self.config.decay_step)
            self.assertLess(self.session.progress, previous)
            previous = self.session.progress

        self.assertTrue(self.session.is_active)

    async def test_decay_floors_at_zero(self):
        """Test decay never takes progress below zero."""
        self.session.start()
        await self.scheduler.advance(10.0)
        self.assertEqual(self.session.progress, 0.0)
        self.assertTrue(self.session.is_active)

    async def test_times_out_without_gestures(self):
        """Test a session with no gestures times out after duration times the overrun multiplier."""
        self.config.duration_seconds = 10.0
        self.session.start()

        await self.scheduler.advance(19.5)
        self.assertTrue(self.session.is_active)
        self.on_finished.assert_not_awaited()

        await self.scheduler.advance(1.0)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.states, [SprintState.ACTIVE, SprintState.TIMED_OUT, SprintState.IDLE])

        result = self.on_finished.await_args.args[0]
        self.assertEqual(result.outcome, SprintState.TIMED_OUT)
        self.assertEqual(result.progress, 0.0)
        self.assertEqual(self.scheduler.timers, [])

    async def test_timeout_keeps_partial_progress(self):
        """Test a timed out session reports the progress it held."""
        self.config.duration_seconds = 10.0
        self.session.start()
        self.session._commit(progress=0.9)
        self.config.decay_step = 0.001

        await self.scheduler.advance(21.0)

        result = self.session.last_result
        self.assertEqual(result.outcome, SprintState.TIMED_OUT)
        self.assertLess(result.progress, 0.9)
        self.assertGreater(result.progress, 0.0)

    async def test_abort(self):
        """Test abort() ends an active run and clears session state."""
        self.start_feeding()
        self.session.start()
        await self.scheduler.advance(5.0)

        result = await self.session.abort()

        self.assertEqual(result.outcome, SprintState.ABORTED)
        self.assertGreater(result.progress, 0.0)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.session.state, SprintState.IDLE)
        self.assertEqual(self.session.progress, 0.0)
        self.assertIsNone(self.session.started_at)
        self.assertEqual(self.session.gesture_count, 0)
        self.assertEqual(self.states, [SprintState.ACTIVE, SprintState.ABORTED, SprintState.IDLE])
        self.on_finished.assert_awaited_once_with(result)

    async def test_abort_when_idle(self):
        """Test abort() on an idle session is harmless."""
        self.assertIsNone(await self.session.abort())
        self.on_finished.assert_not_awaited()
        self.assertEqual(self.states, [])

    async def test_reset_returns_to_initial_values(self):
        """Test reset() after a completed run restores the initial values."""
        self.config.duration_seconds = 5.0
        self.start_feeding()
        self.session.start()
        await self.scheduler.advance(6.0)
        self.assertIsNotNone(self.session.last_result)

        await self.session.reset()

        self.assertEqual(self.session.progress, 0.0)
        self.assertFalse(self.session.is_active)
        self.assertEqual(self.session.state, SprintState.IDLE)
        self.assertIsNone(self.session.started_at)
        self.assertIsNone(self.session.last_result)

    async def test_restart_after_completion(self):
        """Test a finished session can run again."""
        self.config.duration_seconds = 5.0
        self.start_feeding()
        self.session.start()
        await self.scheduler.advance(6.0)

        self.assertTrue(self.session.start())
        self.assertEqual(self.session.progress, 0.0)
        self.assertEqual(self.session.started_at, self.clock.now())

    async def test_gestures_ignored_while_idle(self):
        """Test mock gestures are dropped when no run is active."""
        self.assertFalse(self.session.mock_gesture_event())
        self.assertEqual(self.session.gesture_count, 0)

if __name__ == '__main__':
    unittest.main()
