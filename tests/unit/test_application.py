"""
End-to-end tests for ScalerApplication.

The whole stack runs on a ManualClock: the motion service samples the
simulated sensor at 30 Hz, the usage service gates and accumulates, and
sprint triggers travel over the bus to the sprint service.
"""

import unittest

from scaler.core.config import ApplicationConfig, UsageMode
from scaler.core.events import EventType
from scaler.core.scheduler import ManualClock
from scaler.hardware import SimulatedMotionHardware, UnavailableMotionHardware
from scaler.main import ScalerApplication, StatusSnapshot, parse_args
from scaler.models.sprint import SprintKind, SprintState

class ApplicationTestCase(unittest.IsolatedAsyncioTestCase):
    """Shared fixtures for application tests."""

    def make_config(self):
        config = ApplicationConfig(debug=True)
        # Room for a full minute of 30 Hz samples
        config.event.max_trace_events = 20000
        return config

    def make_hardware(self, config):
        return SimulatedMotionHardware(config.motion)

    async def asyncSetUp(self):
        """Set up test fixtures before each test method."""
        self.clock = ManualClock()
        self.config = self.make_config()
        self.hardware = self.make_hardware(self.config)
        self.app = ScalerApplication(config=self.config, clock=self.clock, hardware=self.hardware)
        await self.app.initialize()

    async def asyncTearDown(self):
        """Tear down test fixtures after each test method."""
        await self.app.shutdown()

    def events(self, event_type):
        return self.app.event_tracer.get_events_by_type(event_type)

class TestScalerApplication(ApplicationTestCase):
    """Test cases for the full application on simulated hardware."""

    async def test_startup(self):
        """Test all services run and the startup event is published."""
        self.assertTrue(self.app.is_running)
        for service in self.app.services.values():
            self.assertTrue(service.is_running)
        self.assertEqual(len(self.events(EventType.APPLICATION_STARTUP_COMPLETED)), 1)
        self.assertTrue(self.hardware.is_initialized())

    async def test_samples_drive_the_gate(self):
        """Test sensor samples reach the gate in degrees."""
        self.hardware.set_pitch(15.0)
        await self.app.scheduler.advance(0.1)
        self.assertFalse(self.app.usage.gate.is_level)
        self.assertAlmostEqual(self.app.usage.gate.current_pitch, 15.0)

        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(0.1)
        self.assertTrue(self.app.usage.gate.is_level)
        self.assertEqual(len(self.events(EventType.LEVEL_STATE_CHANGED)), 1)
        self.assertGreater(self.app.motion.samples_published, 5)

    async def test_usage_target_starts_shake_sprint_that_completes(self):
        """Test level usage earns a shake sprint which sustained shaking completes."""
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(5.1)

        # The five-second debug target was reached
        triggers = self.events(EventType.START_SHAKE_SPRINT)
        self.assertEqual(len(triggers), 1)
        self.assertEqual(triggers[0]["event_data"]["reason"], "level_usage")
        self.assertTrue(self.app.sprints.shake.is_active)
        self.assertTrue(self.app.content_locked)
        self.assertEqual(len(self.events(EventType.SPRINT_STARTED)), 1)

        self.hardware.set_shaking(True)
        await self.app.scheduler.advance(61.0)

        shake = self.app.sprints.shake
        self.assertFalse(shake.is_active)
        self.assertEqual(shake.last_result.outcome, SprintState.COMPLETED)
        ended = self.events(EventType.SPRINT_ENDED)
        self.assertEqual(len(ended), 1)
        self.assertEqual(ended[0]["event_data"]["outcome"], "completed")
        self.assertEqual(ended[0]["event_data"]["progress"], 1.0)

        # The usage budget stays spent until something re-evaluates usage
        self.assertEqual(len(self.events(EventType.START_SHAKE_SPRINT)), 1)
        self.assertFalse(self.app.content_locked)

    async def test_sprint_times_out_without_shaking(self):
        self.config.sprint.duration_seconds = 5.0
        await self.app.trigger_sprint(SprintKind.SHAKE)
        await self.app.scheduler.advance(10.5)

        ended = self.events(EventType.SPRINT_ENDED)
        self.assertEqual(len(ended), 1)
        self.assertEqual(ended[0]["event_data"]["outcome"], "timed_out")

    async def test_second_trigger_is_ignored(self):
        """Test triggers arriving during a sprint do not start another one."""
        await self.app.trigger_sprint(SprintKind.SHAKE)
        await self.app.trigger_sprint(SprintKind.FITNESS)
        await self.app.trigger_sprint(SprintKind.SHAKE)

        self.assertTrue(self.app.sprints.shake.is_active)
        self.assertFalse(self.app.sprints.fitness.is_active)
        self.assertEqual(len(self.events(EventType.SPRINT_STARTED)), 1)

    async def test_mock_gestures_feed_the_active_sprint(self):
        """Test four mock gestures in a window give a rate of four."""
        self.assertFalse(self.app.mock_gesture_event())

        await self.app.trigger_sprint(SprintKind.SHAKE)
        await self.app.scheduler.advance(0.5)
        for _ in range(4):
            self.assertTrue(self.app.mock_gesture_event())
        await self.app.scheduler.advance(0.5)

        self.assertEqual(self.app.sprints.shake.events_per_second, 4.0)
        self.assertGreater(self.app.sprints.shake.progress, 0.0)

    async def test_acceleration_samples_count_gestures(self):
        """Test externally delivered acceleration samples reach the shake detector."""
        await self.app.on_acceleration_sample(2.0, 0.0, 1.0)
        self.assertEqual(self.app.sprints.shake.gesture_count, 0)

        await self.app.trigger_sprint(SprintKind.SHAKE)
        await self.app.scheduler.advance(0.5)
        before = self.app.sprints.shake.gesture_count

        for x in (0.0, 2.0, 0.0, 2.0, 0.0):
            await self.app.on_acceleration_sample(x, 0.0, 1.0)

        self.assertGreaterEqual(self.app.sprints.shake.gesture_count - before, 4)
        self.assertEqual(self.app.sprints.fitness.gesture_count, 0)

    async def test_background_aborts_and_zeroes(self):
        """Test backgrounding aborts the sprint and stops all usage accounting."""
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(2.0)
        self.assertGreater(self.app.usage.controller.total_usage_time, 0.0)
        await self.app.trigger_sprint(SprintKind.SHAKE)

        await self.app.on_app_did_enter_background()

        self.assertFalse(self.app.sprints.shake.is_active)
        self.assertEqual(self.events(EventType.SPRINT_ENDED)[0]["event_data"]["outcome"], "aborted")
        self.assertEqual(self.app.usage.controller.running, frozenset())
        self.assertEqual(self.app.usage.controller.total_usage_time, 0.0)

        # Samples keep arriving but nothing accumulates in the background
        await self.app.scheduler.advance(3.0)
        self.assertEqual(self.app.usage.controller.total_usage_time, 0.0)

        await self.app.on_app_will_enter_foreground()
        await self.app.scheduler.advance(2.0)
        self.assertGreater(self.app.usage.controller.total_usage_time, 0.0)

    async def test_set_mode(self):
        """Test a mode change zeroes usage and applies on the next sample."""
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(2.0)

        await self.app.set_mode(UsageMode.SHAKE_ONLY)

        controller = self.app.usage.controller
        self.assertEqual(controller.running, frozenset())
        self.assertEqual(controller.total_usage_time, 0.0)
        changed = self.events(EventType.USAGE_MODE_CHANGED)
        self.assertEqual(changed[0]["event_data"]["mode"], "shake_only")
        self.assertEqual(changed[0]["event_data"]["previous_mode"], "level_only")

        await self.app.scheduler.advance(0.1)
        self.assertEqual(len(controller.running), 2)

    async def test_content_lock_follows_orientation(self):
        """Test content is locked when not level in an orientation mode, and not otherwise."""
        self.hardware.set_pitch(40.0)
        await self.app.scheduler.advance(0.1)
        self.assertTrue(self.app.content_locked)

        await self.app.set_mode(UsageMode.FITNESS)
        self.assertFalse(self.app.content_locked)

    async def test_snapshot(self):
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(2.0)

        snapshot = self.app.snapshot()

        self.assertIsInstance(snapshot, StatusSnapshot)
        self.assertTrue(snapshot.is_level)
        self.assertFalse(snapshot.content_locked)
        self.assertEqual(snapshot.mode, "level_only")
        self.assertGreater(snapshot.total_usage_time, 0.0)
        self.assertGreater(snapshot.usage_progress, 0.0)
        self.assertTrue(snapshot.usage_remaining_display.endswith("s"))
        self.assertEqual(snapshot.shake.state, "idle")
        self.assertFalse(snapshot.fitness.is_active)

    async def test_reset(self):
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(2.0)
        await self.app.trigger_sprint(SprintKind.FITNESS)

        await self.app.reset()

        self.assertIsNone(self.app.sprints.active_session)
        self.assertEqual(self.app.usage.controller.total_usage_time, 0.0)
        self.assertEqual(self.app.sprints.fitness.progress, 0.0)

    async def test_shutdown_stops_everything(self):
        self.hardware.set_pitch(5.0)
        await self.app.scheduler.advance(1.0)
        await self.app.trigger_sprint(SprintKind.SHAKE)

        await self.app.shutdown()

        self.assertFalse(self.app.is_running)
        for service in self.app.services.values():
            self.assertFalse(service.is_running)
        self.assertEqual(self.app.scheduler.timers, [])
        self.assertFalse(self.hardware.is_initialized())

class TestWithoutMotionSensor(ApplicationTestCase):
    """Test cases for a device without a motion sensor."""

    def make_hardware(self, config):
        return UnavailableMotionHardware(config.motion)

    async def test_degrades_to_idle(self):
        """Test a missing sensor is reported once and leaves gesture detection idle."""
        self.assertTrue(self.app.is_running)
        self.assertFalse(self.app.motion.available)

        errors = self.events(EventType.HARDWARE_ERROR)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0]["event_data"]["error_type"], "sensor_unavailable")
        self.assertFalse(self.app.sprints.shake.detector.available)
        self.assertFalse(self.app.sprints.fitness.detector.available)

        # Nothing is sampled
        self.assertEqual(self.app.scheduler.timers, [])

    async def test_manual_inputs_still_work(self):
        """Test mock pitch drives the gate and sprints can run, though no gesture counts."""
        await self.app.mock_pitch(5.0)
        self.assertTrue(self.app.usage.gate.is_level)

        await self.app.trigger_sprint(SprintKind.SHAKE)
        self.assertTrue(self.app.sprints.shake.is_active)
        self.assertFalse(self.app.mock_gesture_event())

class TestArguments(unittest.TestCase):
    """Test cases for command-line parsing."""

    def test_defaults(self):
        args = parse_args([])
        self.assertIsNone(args.mode)
        self.assertFalse(args.debug)
        self.assertIsNone(args.seconds)

    def test_options(self):
        args = parse_args(["--mode", "both", "--debug", "--seconds", "3", "--pitch", "20"])
        self.assertEqual(args.mode, "both")
        self.assertTrue(args.debug)
        self.assertEqual(args.seconds, 3.0)
        self.assertEqual(args.pitch, 20.0)

    def test_invalid_mode(self):
        with self.assertRaises(SystemExit):
            parse_args(["--mode", "sideways"])

if __name__ == '__main__':
    unittest.main()
