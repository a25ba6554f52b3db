"""
Error types for PostureUp.

None of these are fatal to the process. PermissionDenied, ActuatorWriteFailure
and InvalidSample are absorbed by the session with a safe default;
SensorUnavailable is reported to whoever asked for detection to start.
"""


class PostureUpError(Exception):
    """Base class for all PostureUp errors."""


class PermissionDenied(PostureUpError):
    """Brightness control was refused by the platform."""


class ActuatorWriteFailure(PostureUpError):
    """A brightness or haptic write did not take effect."""

    def __init__(self, actuator: str, message: str):
        super().__init__(f"{actuator}: {message}")
        self.actuator = actuator


class SensorUnavailable(PostureUpError):
    """The motion sensor feed cannot be subscribed to."""


class InvalidSample(PostureUpError):
    """A raw reading could not be interpreted as a tri-axis sample."""
