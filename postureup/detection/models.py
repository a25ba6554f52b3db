"""
Data model for posture detection.

Samples, position labels, actuator commands and the per-session PostureState.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from postureup.core.errors import InvalidSample


def _coerce_axis(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if it is missing or unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class Sample:
    """
    One tri-axis motion reading, in g.

    An axis is None when the sensor did not provide a usable value for it.
    """
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None

    @classmethod
    def from_reading(cls, reading: Any) -> "Sample":
        """
        Build a Sample from a raw sensor reading.

        Accepts a Sample, a mapping with 'x', 'y', 'z' keys, an object with
        x/y/z attributes, or a 3-sequence. Bad axis values become None.

        Raises:
            InvalidSample: If the reading has no recognisable shape
        """
        if isinstance(reading, Sample):
            return reading
        if isinstance(reading, dict):
            return cls(
                _coerce_axis(reading.get("x")),
                _coerce_axis(reading.get("y")),
                _coerce_axis(reading.get("z")),
            )
        if isinstance(reading, (tuple, list)):
            if len(reading) != 3:
                raise InvalidSample(f"Expected 3 axes, got {len(reading)}")
            return cls(*(_coerce_axis(v) for v in reading))
        if all(hasattr(reading, axis) for axis in ("x", "y", "z")):
            return cls(
                _coerce_axis(reading.x),
                _coerce_axis(reading.y),
                _coerce_axis(reading.z),
            )
        raise InvalidSample(f"Unrecognised reading: {reading!r}")

    @property
    def is_complete(self) -> bool:
        return self.x is not None and self.y is not None and self.z is not None


class PositionLabel(str, Enum):
    """Discrete device position derived from the latest sample."""
    UPRIGHT = "upright"
    ABOVE_FACE = "above-face"
    LOOKING_DOWN = "looking-down"
    NOT_HELD = "not-held"
    UNKNOWN = "unknown"


GOOD_POSITIONS = frozenset({PositionLabel.UPRIGHT, PositionLabel.ABOVE_FACE})


def is_good_posture(label: PositionLabel) -> bool:
    return label in GOOD_POSITIONS


@dataclass(frozen=True)
class SetBrightness:
    level: float


@dataclass(frozen=True)
class SetHaptic:
    active: bool


ActuatorCommand = Union[SetBrightness, SetHaptic]


@dataclass
class PostureState:
    """
    Authoritative state of one detection session.

    Owned by the session service; readers get a copy via snapshot().
    """
    is_detecting: bool = False
    position_label: PositionLabel = PositionLabel.UNKNOWN
    is_held: bool = True
    is_low_power: bool = False
    last_angle_deg: float = 90.0
    original_brightness: Optional[float] = None
    brightness_permitted: bool = True
    poor_posture_count: int = 0
    last_sample: Sample = field(default_factory=Sample)

    @property
    def is_good_posture(self) -> bool:
        return is_good_posture(self.position_label) and self.is_held and not self.is_low_power

    def snapshot(self) -> "PostureState":
        return replace(self)
