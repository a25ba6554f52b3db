"""
Unit tests for configuration loading and validation.
"""

import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from postureup.core.config import (
    ApplicationConfig, DetectionConfig, DisplayConfig, HapticConfig, LogLevel, SensorConfig, get_config
)


class TestDetectionConfig(unittest.TestCase):
    """Defaults, environment overrides and validation for detection settings."""

    def test_defaults(self):
        config = DetectionConfig()
        self.assertEqual(config.good_posture_angle, 60.0)
        self.assertEqual(config.looking_down_angle, 30.0)
        self.assertEqual(config.above_face_z, 0.5)
        self.assertEqual(config.stationary_readings, 6)
        self.assertEqual(config.motion_threshold, 0.05)
        self.assertEqual(config.stationary_duration, 3.0)
        self.assertEqual(config.low_power_cooldown, 5.0)
        self.assertEqual(config.dim_level, 0.01)

    @patch.dict(os.environ, {
        'POSTUREUP_DETECTION_GOOD_POSTURE_ANGLE': '70',
        'POSTUREUP_DETECTION_DIM_LEVEL': '0.1',
    })
    def test_environment_overrides(self):
        config = DetectionConfig()
        self.assertEqual(config.good_posture_angle, 70.0)
        self.assertEqual(config.dim_level, 0.1)

    def test_angle_out_of_range(self):
        with self.assertRaises(ValidationError):
            DetectionConfig(good_posture_angle=95)
        with self.assertRaises(ValidationError):
            DetectionConfig(looking_down_angle=0)

    def test_angles_must_be_ordered(self):
        with self.assertRaises(ValidationError):
            DetectionConfig(good_posture_angle=40, looking_down_angle=45)

    def test_dim_level_must_be_brightness(self):
        with self.assertRaises(ValidationError):
            DetectionConfig(dim_level=1.5)

    def test_window_needs_two_readings(self):
        with self.assertRaises(ValidationError):
            DetectionConfig(stationary_readings=1)


class TestComponentConfigs(unittest.TestCase):

    def test_sample_interval_must_be_positive(self):
        self.assertEqual(SensorConfig().sample_interval, 0.5)
        with self.assertRaises(ValidationError):
            SensorConfig(sample_interval=0)

    def test_display_brightness_range(self):
        with self.assertRaises(ValidationError):
            DisplayConfig(initial_brightness=-0.1)

    def test_haptic_pattern(self):
        self.assertEqual(HapticConfig().pattern, [0, 400, 200, 400])
        with self.assertRaises(ValidationError):
            HapticConfig(pattern=[])
        with self.assertRaises(ValidationError):
            HapticConfig(pattern=[100, -1])


class TestApplicationConfig(unittest.TestCase):

    def test_combines_components(self):
        config = get_config()
        self.assertIsInstance(config, ApplicationConfig)
        self.assertIsInstance(config.detection, DetectionConfig)
        self.assertEqual(config.log_level, LogLevel.INFO)
        self.assertTrue(config.event.tracing_enabled)

    @patch.dict(os.environ, {'POSTUREUP_LOG_LEVEL': 'DEBUG', 'POSTUREUP_SENSOR_SAMPLE_INTERVAL': '0.25'})
    def test_environment_reaches_components(self):
        config = get_config()
        self.assertEqual(config.log_level, LogLevel.DEBUG)
        self.assertEqual(config.sensor.sample_interval, 0.25)


if __name__ == '__main__':
    unittest.main()
