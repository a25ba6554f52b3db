"""
Posture detection: sample filtering, classification, hysteresis and power state.

Everything in this package is synchronous and free of I/O; the session service
wires it to the sensor feed and the actuators.
"""

from .models import (
    Sample, PositionLabel, PostureState, SetBrightness, SetHaptic, ActuatorCommand, is_good_posture
)
from .filter import StationarityDetector
from .classifier import PostureClassifier
from .hysteresis import HysteresisEngine
from .power import PowerStateScheduler, PowerState

__all__ = [
    'Sample',
    'PositionLabel',
    'PostureState',
    'SetBrightness',
    'SetHaptic',
    'ActuatorCommand',
    'is_good_posture',
    'StationarityDetector',
    'PostureClassifier',
    'HysteresisEngine',
    'PowerStateScheduler',
    'PowerState',
]
