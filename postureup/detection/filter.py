"""
Stationarity detection over a short window of samples.

A device counts as stationary only when it is both motionless and resting in a
plausible "set down" orientation: lying flat (|z| near 1) or standing on an
edge (|z| near 0). Holding the phone very steady at an arbitrary tilt is not
enough.
"""

import logging
from collections import deque
from statistics import fmean
from typing import Deque, Tuple

from postureup.core.config import DetectionConfig
from .models import Sample


def _axes(sample: Sample) -> Tuple[float, float, float]:
    # Missing axes count as 0.0 inside the filter
    return (
        sample.x if sample.x is not None else 0.0,
        sample.y if sample.y is not None else 0.0,
        sample.z if sample.z is not None else 0.0,
    )


class StationarityDetector:
    """
    Ring buffer of the last `stationary_readings` samples.

    observe() returns False until the buffer is full.
    """

    def __init__(self, config: DetectionConfig):
        self.window_size = config.stationary_readings
        self.motion_threshold = config.motion_threshold
        self.flat_z_min = config.flat_z_min
        self.edge_z_max = config.edge_z_max
        self.window: Deque[Tuple[float, float, float]] = deque(maxlen=self.window_size)
        self.logger = logging.getLogger(__name__)

    def reset(self) -> None:
        self.window.clear()

    def observe(self, sample: Sample) -> bool:
        """
        Add a sample to the window and report whether the device is at rest.

        Args:
            sample: Latest reading

        Returns:
            bool: True if the window is full, every sample is within
            motion_threshold of the per-axis mean, and the mean z reads flat
            or edge-on
        """
        self.window.append(_axes(sample))
        if len(self.window) < self.window_size:
            return False

        means = [fmean(axis) for axis in zip(*self.window)]
        for reading in self.window:
            for value, mean in zip(reading, means):
                if abs(value - mean) >= self.motion_threshold:
                    return False

        z = abs(means[2])
        resting = z > self.flat_z_min or z < self.edge_z_max
        if not resting:
            self.logger.debug(f"Still but not resting (|z|={z:.3f})")
        return resting
