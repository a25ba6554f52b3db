"""
Core event system for PostureUp.

This module defines the base event model and the event type enum that form the
foundation of the typed event system. All events in the system should inherit
from BaseEvent.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum
import time
import uuid

class EventType(str, Enum):
    """
    Enum defining all event types in the system.

    Using string-based enum to ensure JSON serialization works properly.
    """
    # Application lifecycle events
    APPLICATION_STARTUP_COMPLETED = "application_startup_completed"

    # Detection control (presentation layer -> session)
    DETECTION_START_REQUESTED = "detection_start_requested"
    DETECTION_STOP_REQUESTED = "detection_stop_requested"

    # Detection session events
    DETECTION_STARTED = "detection_started"
    DETECTION_STOPPED = "detection_stopped"
    POSITION_CHANGED = "position_changed"
    POSTURE_CHANGED = "posture_changed"

    # Power events
    LOW_POWER_ENTERED = "low_power_entered"
    LOW_POWER_EXITED = "low_power_exited"

    # System events
    HARDWARE_ERROR = "hardware_error"
    SERVICE_STATE_CHANGED = "service_state_changed"


def generate_trace_id() -> str:
    """Generate a unique trace ID for event tracing."""
    return str(uuid.uuid4())

class BaseEvent(BaseModel):
    """
    Base model for all events with common metadata.

    All events in the system should inherit from this class and specify the event type
    and any additional payload fields required for that event.
    """
    # Extra attributes are allowed for forward compatibility; enum values are
    # stored as plain strings.
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    type: EventType
    producer_name: str = ""
    timestamp: float = Field(default_factory=time.time)
    trace_id: Optional[str] = Field(default_factory=generate_trace_id)
