"""
Event definitions for PostureUp.

This package contains all event types used in the system, organized by functional area.
"""

# Re-export core types
from postureup.core.events import EventType, BaseEvent
