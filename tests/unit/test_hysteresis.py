"""
Unit tests for the HysteresisEngine.
"""

import unittest

from postureup.core.config import DetectionConfig
from postureup.detection.hysteresis import HysteresisEngine
from postureup.detection.models import PositionLabel, SetBrightness, SetHaptic

UPRIGHT = PositionLabel.UPRIGHT
DOWN = PositionLabel.LOOKING_DOWN


class TestHysteresisEngine(unittest.TestCase):
    """Test cases for edge-triggered actuator commands."""

    def setUp(self):
        self.engine = HysteresisEngine(DetectionConfig())
        self.engine.reset(0.8)

    def test_no_commands_while_good(self):
        self.assertEqual(self.engine.update(UPRIGHT, True, False), [])
        self.assertEqual(self.engine.update(PositionLabel.ABOVE_FACE, True, False), [])

    def test_bad_edge_dims_and_vibrates(self):
        commands = self.engine.update(DOWN, True, False)
        self.assertEqual(commands, [SetBrightness(0.01), SetHaptic(True)])
        self.assertFalse(self.engine.last_good_posture)

    def test_good_edge_restores(self):
        self.engine.update(DOWN, True, False)
        commands = self.engine.update(UPRIGHT, True, False)
        self.assertEqual(commands, [SetBrightness(0.8), SetHaptic(False)])
        self.assertTrue(self.engine.last_good_posture)

    def test_repeated_decisions_are_idempotent(self):
        """Only the first sample of a bad run produces commands."""
        batches = [self.engine.update(DOWN, True, False) for _ in range(5)]
        self.assertEqual(len(batches[0]), 2)
        self.assertEqual(batches[1:], [[]] * 4)

    def test_flicker_around_threshold_emits_per_edge_only(self):
        labels = [UPRIGHT, DOWN, DOWN, UPRIGHT, UPRIGHT, DOWN]
        batches = [self.engine.update(label, True, False) for label in labels]
        non_empty = [i for i, batch in enumerate(batches) if batch]
        self.assertEqual(non_empty, [1, 3, 5])

    def test_not_held_is_bad_posture(self):
        commands = self.engine.update(UPRIGHT, False, False)
        self.assertEqual(commands, [SetBrightness(0.01), SetHaptic(True)])

    def test_low_power_is_bad_posture(self):
        self.assertFalse(self.engine.update(UPRIGHT, True, True) == [])
        self.assertFalse(self.engine.last_good_posture)

    def test_restore_without_original_brightness_uses_full(self):
        self.engine.reset(None)
        self.engine.update(DOWN, True, False)
        commands = self.engine.update(UPRIGHT, True, False)
        self.assertEqual(commands[0], SetBrightness(1.0))

    def test_custom_dim_level(self):
        engine = HysteresisEngine(DetectionConfig(dim_level=0.2))
        engine.reset(0.6)
        self.assertEqual(engine.update(DOWN, True, False)[0], SetBrightness(0.2))


class TestRestTransitions(unittest.TestCase):
    """Low-power entry and exit commands."""

    def setUp(self):
        self.engine = HysteresisEngine(DetectionConfig())
        self.engine.reset(0.8)

    def test_enter_rest_dims_without_vibrating(self):
        self.assertEqual(self.engine.enter_rest(), [SetBrightness(0.01)])
        self.assertFalse(self.engine.last_good_posture)

    def test_enter_rest_from_bad_posture_stops_haptic(self):
        self.engine.update(DOWN, True, False)
        self.assertEqual(self.engine.enter_rest(), [SetHaptic(False)])

    def test_update_while_resting_is_silent(self):
        self.engine.enter_rest()
        self.assertEqual(self.engine.update(UPRIGHT, False, True), [])

    def test_leave_rest_restores_brightness(self):
        self.engine.enter_rest()
        self.assertEqual(self.engine.leave_rest(), [SetBrightness(0.8)])
        self.assertTrue(self.engine.last_good_posture)

    def test_bad_posture_after_wake_is_a_new_edge(self):
        self.engine.enter_rest()
        self.engine.leave_rest()
        commands = self.engine.update(DOWN, True, False)
        self.assertEqual(commands, [SetBrightness(0.01), SetHaptic(True)])

    def test_reset_forgets_previous_session(self):
        self.engine.update(DOWN, True, False)
        self.engine.reset(0.5)
        self.assertTrue(self.engine.last_good_posture)
        self.assertEqual(self.engine.update(UPRIGHT, True, False), [])


if __name__ == '__main__':
    unittest.main()
