"""
Unit tests for the OrientationGate.

The gate is a pure band check wrapped in a small observable model, so these
tests run without an event loop.
"""

import unittest

from scaler.core.config import GateConfig
from scaler.models.orientation import OrientationGate, evaluate

class TestEvaluate(unittest.TestCase):
    """Test cases for the evaluate() band check."""

    def test_bounds_are_inclusive(self):
        """Test that both band edges count as level."""
        self.assertTrue(evaluate(-10.0, -10.0, 10.0))
        self.assertTrue(evaluate(10.0, -10.0, 10.0))

    def test_just_outside_is_not_level(self):
        """Test that values beyond either edge are not level."""
        self.assertFalse(evaluate(10.001, -10.0, 10.0))
        self.assertFalse(evaluate(-10.001, -10.0, 10.0))
        self.assertFalse(evaluate(11.0, -10.0, 10.0))

    def test_matches_band_membership(self):
        """Test evaluate() against the plain comparison over a sweep of pitches."""
        low, high = -7.5, 12.0
        for tenth in range(-900, 901):
            pitch = tenth / 10.0
            self.assertEqual(evaluate(pitch, low, high), low <= pitch <= high)

class TestOrientationGate(unittest.TestCase):
    """Test cases for the OrientationGate class."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.gate = OrientationGate(GateConfig(pitch_low=-10.0, pitch_high=10.0))

    def test_initial_state(self):
        """Test the gate starts closed with zero pitch."""
        self.assertFalse(self.gate.is_level)
        self.assertEqual(self.gate.current_pitch, 0.0)
        self.assertEqual(self.gate.band, (-10.0, 10.0))

    def test_level_scenarios(self):
        """Test pitch 5 is level and pitch 15 is not, for band [-10, 10]."""
        self.gate.update(5.0)
        self.assertTrue(self.gate.is_level)

        self.gate.update(15.0)
        self.assertFalse(self.gate.is_level)
        self.assertEqual(self.gate.current_pitch, 15.0)

    def test_update_reports_only_changes(self):
        """Test update() returns True only when the level state flips."""
        self.assertTrue(self.gate.update(5.0))
        self.assertFalse(self.gate.update(6.0))
        self.assertFalse(self.gate.update(10.0))
        self.assertTrue(self.gate.update(10.5))
        self.assertFalse(self.gate.update(45.0))
        self.assertTrue(self.gate.update(-10.0))

    def test_observers_see_commits_in_order(self):
        """Test observers are notified for each changed field, in commit order."""
        changes = []
        self.gate.observe(lambda model, field, old, new: changes.append((field, old, new)))

        self.gate.update(5.0)
        self.assertEqual(changes, [
            ("current_pitch", 0.0, 5.0),
            ("is_level", False, True),
        ])

        # Same pitch again changes nothing
        changes.clear()
        self.gate.update(5.0)
        self.assertEqual(changes, [])

    def test_unsubscribe(self):
        """Test an unsubscribed observer is no longer called."""
        changes = []
        unsubscribe = self.gate.observe(lambda *args: changes.append(args))
        unsubscribe()
        self.gate.update(5.0)
        self.assertEqual(changes, [])

    def test_band_change_applies_to_next_sample(self):
        """Test a runtime band adjustment is used by the next update."""
        self.gate.update(12.0)
        self.assertFalse(self.gate.is_level)

        self.gate.set_pitch_band(high=15.0)
        self.assertTrue(self.gate.update(12.0))
        self.assertTrue(self.gate.is_level)

    def test_inverted_band_is_clamped(self):
        """Test a bound moved past the other one is clamped onto it."""
        self.gate.set_pitch_band(low=20.0)
        self.assertEqual(self.gate.band, (10.0, 10.0))

        gate = OrientationGate(GateConfig(pitch_low=-10.0, pitch_high=10.0))
        gate.set_pitch_band(high=-30.0)
        self.assertEqual(gate.band, (-10.0, -10.0))

        # A single-value band still admits exactly that pitch
        self.assertTrue(gate.update(-10.0))

    def test_band_moved_past_its_old_edges(self):
        """Test a whole new band is applied even when it lies outside the old one."""
        self.gate.set_pitch_band(low=20.0, high=30.0)
        self.assertEqual(self.gate.band, (20.0, 30.0))

        self.gate.set_pitch_band(low=-40.0, high=-30.0)
        self.assertEqual(self.gate.band, (-40.0, -30.0))

    def test_direct_config_edit_cannot_invert_band(self):
        self.gate.config.pitch_low = 20.0
        self.assertEqual(self.gate.band, (10.0, 10.0))
        self.assertTrue(self.gate.update(10.0))

    def test_out_of_range_band_is_clamped(self):
        """Test pitch bounds are clamped into [-180, 180]."""
        config = GateConfig(pitch_low=-500.0, pitch_high=500.0)
        self.assertEqual(config.pitch_low, -180.0)
        self.assertEqual(config.pitch_high, 180.0)

    def test_mock_pitch(self):
        """Test mock_pitch() behaves like a sensor sample."""
        self.assertTrue(self.gate.mock_pitch(0.0))
        self.assertTrue(self.gate.is_level)

    def test_reset(self):
        """Test reset() returns the gate to its initial values."""
        self.gate.update(3.0)
        self.gate.reset()
        self.assertFalse(self.gate.is_level)
        self.assertEqual(self.gate.current_pitch, 0.0)

if __name__ == '__main__':
    unittest.main()
