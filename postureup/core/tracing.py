"""
Event tracing for PostureUp.

Keeps a bounded buffer of recently published events so a detection session can
be inspected after the fact: which posture edges fired, when low power was
entered, which writes failed.
"""

from collections import Counter, deque
from typing import Any, Deque, Dict, List
from .events import BaseEvent


class EventTracer:
    """Fixed-size trace of published events; the oldest entries fall off."""

    def __init__(self, max_events: int = 1000):
        self.max_events = max_events
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_events)

    def record_event(self, event: BaseEvent) -> None:
        self.events.append({
            'timestamp': event.timestamp,
            'trace_id': event.trace_id,
            'type': event.type,
            'producer': event.producer_name,
            'event_data': event.model_dump(exclude={'timestamp', 'trace_id', 'type', 'producer_name'}),
        })

    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e['type'] == event_type]

    def get_events_by_producer(self, producer_name: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e['producer'] == producer_name]

    def get_event_count(self) -> int:
        return len(self.events)

    def clear(self) -> None:
        self.events.clear()

    def get_event_stats(self) -> Dict[str, Any]:
        """
        Returns:
            Total count plus counts per event type and per producer
        """
        return {
            'total_events': len(self.events),
            'event_types': dict(Counter(e['type'] for e in self.events)),
            'producers': dict(Counter(e['producer'] for e in self.events)),
        }
