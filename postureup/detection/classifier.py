"""
Posture classification from a single sample.

The tilt angle comes from the gravity component along the device's long axis:
0 degrees when the device lies flat, 90 degrees when it stands upright at eye
level. In landscape the x axis carries that component instead of y.
"""

import math
from typing import Optional, Tuple

from postureup.core.config import DetectionConfig
from .models import PositionLabel, Sample, is_good_posture

NEUTRAL_ANGLE = 90.0


class PostureClassifier:
    """Converts a sample into a tilt angle and a PositionLabel."""

    def __init__(self, config: DetectionConfig):
        self.good_posture_angle = config.good_posture_angle
        self.looking_down_angle = config.looking_down_angle
        self.above_face_z = config.above_face_z

    def tilt_angle(self, sample: Sample) -> float:
        """
        Tilt angle in degrees, in [0, 90].

        Missing y data yields the neutral 90 degrees; a missing x counts as 0.
        """
        if sample.y is None:
            return NEUTRAL_ANGLE
        x = sample.x if sample.x is not None else 0.0
        axis = x if abs(x) > abs(sample.y) else sample.y
        clamped = max(-1.0, min(1.0, axis))
        return abs(math.degrees(math.asin(clamped)))

    def label_for(self, angle_deg: float, z: Optional[float]) -> PositionLabel:
        """
        Label a tilt angle.

        Args:
            angle_deg: Tilt angle from tilt_angle()
            z: z axis reading, used to tell lying-down use from looking down

        Returns:
            PositionLabel: UPRIGHT, ABOVE_FACE or LOOKING_DOWN
        """
        if angle_deg >= self.good_posture_angle:
            return PositionLabel.UPRIGHT
        if angle_deg < self.looking_down_angle:
            if z is not None and z > self.above_face_z:
                return PositionLabel.ABOVE_FACE
            return PositionLabel.LOOKING_DOWN
        return PositionLabel.LOOKING_DOWN

    def classify(self, sample: Sample) -> Tuple[float, PositionLabel]:
        angle = self.tilt_angle(sample)
        return angle, self.label_for(angle, sample.z)

    @staticmethod
    def is_good_posture(label: PositionLabel) -> bool:
        return is_good_posture(label)
