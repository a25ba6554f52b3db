"""
Event bus for PostureUp.

Delivers typed events from the session service to whoever is listening: the
console logger in main, a presentation layer, or tests. Every published event
is checked against the registry first, so a typo in an event class never
reaches a subscriber.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Set

from .events import BaseEvent, EventType
from .registry import EventRegistry
from .tracing import EventTracer

EventHandler = Callable[[BaseEvent], Awaitable[None]]


@dataclass(frozen=True)
class Subscription:
    """One handler registration. event_type None means every event."""
    event_type: Optional[EventType]
    handler: EventHandler
    service_name: str


class EventBus:
    """
    Routes events to subscribers concurrently.

    A failing subscriber is logged and does not affect delivery to the
    others or to the publisher.
    """

    def __init__(self, registry: EventRegistry, tracer: Optional[EventTracer] = None):
        """
        Args:
            registry: Registry used to validate published events
            tracer: Optional tracer that records every accepted event
        """
        self.registry = registry
        self.tracer = tracer
        self._subscriptions: List[Subscription] = []
        self.logger = logging.getLogger(__name__)

    async def publish(self, event: BaseEvent, sender: str) -> int:
        """
        Validate, trace and deliver an event.

        Args:
            event: The event to publish
            sender: Name of the publishing service, used if the event has no producer

        Returns:
            int: Number of handlers the event was delivered to
        """
        if not event.producer_name:
            event.producer_name = sender

        try:
            self.registry.validate_schema(event)
        except (ValueError, TypeError) as e:
            self.logger.error(f"Rejected event from {sender}: {e}")
            return 0

        if self.tracer:
            self.tracer.record_event(event)

        handlers = [s.handler for s in self._subscriptions
                    if s.event_type is None or s.event_type == event.type]
        if not handlers:
            self.logger.debug(f"No subscribers for {event.type}")
            return 0

        await asyncio.gather(*(self._deliver(handler, event) for handler in handlers))
        return len(handlers)

    async def _deliver(self, handler: EventHandler, event: BaseEvent) -> None:
        try:
            await handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            name = getattr(handler, '__qualname__', repr(handler))
            self.logger.error(f"Handler {name} failed on {event.type}: {e}", exc_info=True)

    def subscribe(self, event_type: Optional[EventType], handler: EventHandler, service_name: str) -> None:
        """
        Register handler for one event type, or for every event if event_type is None.
        """
        self._subscriptions.append(Subscription(event_type, handler, service_name))
        if event_type is not None:
            self.registry.register_consumer(service_name, event_type)
        self.logger.debug(f"{service_name} subscribed to {event_type or 'all events'}")

    def unsubscribe(self, event_type: Optional[EventType], handler: EventHandler) -> None:
        """Remove a handler registration. Unknown registrations are ignored."""
        self._subscriptions = [
            s for s in self._subscriptions
            if not (s.event_type == event_type and s.handler == handler)
        ]

    def unsubscribe_service(self, service_name: str) -> int:
        """
        Remove every registration made by a service.

        Returns:
            int: Number of registrations removed
        """
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.service_name != service_name]
        return before - len(self._subscriptions)

    def get_subscribers(self, event_type: EventType) -> Set[EventHandler]:
        """Handlers that would receive an event of event_type, wildcards included."""
        return {s.handler for s in self._subscriptions
                if s.event_type is None or s.event_type == event_type}
