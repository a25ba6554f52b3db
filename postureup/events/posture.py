"""
Posture detection events for PostureUp.

This module defines the events a detection session publishes, and the two
control events a presentation layer can publish to start or stop it.
"""

from typing import Optional, Literal
from postureup.core.events import BaseEvent, EventType

class DetectionStartRequestedEvent(BaseEvent):
    """Request that the posture session start detecting."""
    type: Literal[EventType.DETECTION_START_REQUESTED] = EventType.DETECTION_START_REQUESTED

class DetectionStopRequestedEvent(BaseEvent):
    """Request that the posture session stop detecting."""
    type: Literal[EventType.DETECTION_STOP_REQUESTED] = EventType.DETECTION_STOP_REQUESTED

class DetectionStartedEvent(BaseEvent):
    """
    Event published when a detection session has started.

    Carries the brightness captured before any dimming, so the presentation
    layer can show what will be restored.
    """
    type: Literal[EventType.DETECTION_STARTED] = EventType.DETECTION_STARTED
    original_brightness: Optional[float] = None
    brightness_permitted: bool = True

class DetectionStoppedEvent(BaseEvent):
    """Event published when a detection session has stopped and the device is restored."""
    type: Literal[EventType.DETECTION_STOPPED] = EventType.DETECTION_STOPPED
    poor_posture_count: int = 0
    reason: Optional[str] = None  # 'requested', 'shutdown'

class PositionChangedEvent(BaseEvent):
    """
    Event published when the classified position label changes.

    Published on label changes only, not on every sample.
    """
    type: Literal[EventType.POSITION_CHANGED] = EventType.POSITION_CHANGED
    position: str  # PositionLabel value
    previous_position: str
    angle_deg: float

class PostureChangedEvent(BaseEvent):
    """
    Event published on a good/bad posture edge.

    This is the same edge that drives the brightness and haptic commands.
    """
    type: Literal[EventType.POSTURE_CHANGED] = EventType.POSTURE_CHANGED
    is_good_posture: bool
    position: str
    angle_deg: float
    poor_posture_count: int

class LowPowerEnteredEvent(BaseEvent):
    """Event published when the device has been still long enough to be considered set down."""
    type: Literal[EventType.LOW_POWER_ENTERED] = EventType.LOW_POWER_ENTERED

class LowPowerExitedEvent(BaseEvent):
    """Event published when motion wakes the session from low power."""
    type: Literal[EventType.LOW_POWER_EXITED] = EventType.LOW_POWER_EXITED
