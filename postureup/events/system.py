"""
System events for PostureUp.

This module defines events related to application lifecycle, service state,
and hardware errors.
"""

from typing import Dict, Any, Optional, Literal
from postureup.core.events import BaseEvent, EventType

class ApplicationStartupCompletedEvent(BaseEvent):
    """
    Event published when application startup has completed.

    All services are running and detection may begin.
    """
    type: Literal[EventType.APPLICATION_STARTUP_COMPLETED] = EventType.APPLICATION_STARTUP_COMPLETED

class ServiceStateChangedEvent(BaseEvent):
    """
    Event published when a service changes state.

    This event is used to communicate service lifecycle changes
    (started, stopping, stopped).
    """
    type: Literal[EventType.SERVICE_STATE_CHANGED] = EventType.SERVICE_STATE_CHANGED
    service_name: str
    state: str
    error: Optional[str] = None

class HardwareErrorEvent(BaseEvent):
    """
    Event published when an actuator or sensor reports an error.

    The session keeps running; this is informational for the presentation layer.
    """
    type: Literal[EventType.HARDWARE_ERROR] = EventType.HARDWARE_ERROR
    component: str  # 'display', 'haptic', 'sensor'
    error_type: str
    error_message: str
    details: Optional[Dict[str, Any]] = None
