"""
Unit tests for the StationarityDetector.
"""

import unittest

from postureup.core.config import DetectionConfig
from postureup.detection.filter import StationarityDetector
from postureup.detection.models import Sample

FLAT = Sample(0.0, 0.0, 1.0)
ON_EDGE = Sample(0.0, 1.0, 0.05)


class TestStationarityDetector(unittest.TestCase):
    """Test cases for the stationarity window."""

    def setUp(self):
        self.config = DetectionConfig()
        self.detector = StationarityDetector(self.config)

    def _feed(self, sample, count):
        return [self.detector.observe(sample) for _ in range(count)]

    def test_not_stationary_until_window_full(self):
        results = self._feed(FLAT, self.config.stationary_readings)
        self.assertEqual(results[:-1], [False] * (self.config.stationary_readings - 1))
        self.assertTrue(results[-1])

    def test_flat_on_desk_is_stationary(self):
        self.assertTrue(self._feed(FLAT, 6)[-1])

    def test_face_down_is_stationary(self):
        self.assertTrue(self._feed(Sample(0.0, 0.0, -1.0), 6)[-1])

    def test_standing_on_edge_is_stationary(self):
        self.assertTrue(self._feed(ON_EDGE, 6)[-1])

    def test_still_at_tilt_is_not_stationary(self):
        """Holding very still at reading angle does not count as set down."""
        self.assertFalse(self._feed(Sample(0.0, 0.7, 0.7), 10)[-1])

    def test_motion_breaks_stationarity(self):
        self._feed(FLAT, 5)
        self.assertFalse(self.detector.observe(Sample(0.0, 0.3, 0.95)))

    def test_small_jitter_is_tolerated(self):
        readings = [Sample(0.0, 0.01 * (i % 2), 1.0) for i in range(6)]
        results = [self.detector.observe(s) for s in readings]
        self.assertTrue(results[-1])

    def test_jitter_at_threshold_is_motion(self):
        """Deviation from the window mean must be strictly below the threshold."""
        readings = [Sample(0.0, 0.1 * (i % 2), 1.0) for i in range(6)]
        results = [self.detector.observe(s) for s in readings]
        self.assertFalse(results[-1])

    def test_window_slides(self):
        """After motion, stationarity returns once the window holds only still samples."""
        self._feed(Sample(0.0, 0.9, 0.3), 6)
        results = self._feed(FLAT, 6)
        self.assertFalse(any(results[:-1]))
        self.assertTrue(results[-1])

    def test_missing_axes_count_as_zero(self):
        self.assertTrue(self._feed(Sample(None, None, 1.0), 6)[-1])
        self.detector.reset()
        # All axes missing reads as standing on an edge
        self.assertTrue(self._feed(Sample(), 6)[-1])

    def test_reset_clears_window(self):
        self._feed(FLAT, 6)
        self.detector.reset()
        self.assertFalse(self.detector.observe(FLAT))

    def test_custom_window_size(self):
        detector = StationarityDetector(DetectionConfig(stationary_readings=3))
        results = [detector.observe(FLAT) for _ in range(3)]
        self.assertEqual(results, [False, False, True])


if __name__ == '__main__':
    unittest.main()
