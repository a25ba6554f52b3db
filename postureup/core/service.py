"""
Service base class for PostureUp.

A service declares the events it publishes and the events it reacts to as
class attributes. Declared events are registered with the bus when the service
is built; consumed events are only subscribed while the service runs.
"""

import asyncio
import structlog
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional
from .events import EventType, BaseEvent
from .registry import ServiceRegistry
from .bus import EventBus


class BaseService(ABC):
    """
    Base class for all services.

    Subclasses set:
        PRODUCES_EVENTS: EventType -> {'schema': event class, 'description': str}
        CONSUMES_EVENTS: EventType -> name of the handler method

    and implement handle_event(). Lifecycle changes are mirrored into the
    ServiceRegistry and announced with a SERVICE_STATE_CHANGED event.
    """

    PRODUCES_EVENTS: ClassVar[Dict[EventType, Dict[str, Any]]] = {}
    CONSUMES_EVENTS: ClassVar[Dict[EventType, str]] = {}

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 name: Optional[str] = None,
                 config: Optional[Any] = None):
        """
        Args:
            event_bus: Bus the service publishes to and subscribes on
            service_registry: Registry tracking the service's lifecycle state
            name: Service name, defaults to the class name
            config: Configuration object for the service
        """
        self.event_bus = event_bus
        self.service_registry = service_registry
        self.name = name or self.__class__.__name__
        self.config = config
        self.logger = structlog.get_logger(service=self.name)

        self._running = False
        self._lock = asyncio.Lock()

        self._declare_events()
        self.service_registry.register_service(self.name, self)

    def _declare_events(self) -> None:
        from postureup.events.system import ServiceStateChangedEvent

        declared = {
            EventType.SERVICE_STATE_CHANGED: {
                'schema': ServiceStateChangedEvent,
                'description': "A service changed lifecycle state",
            },
            **self.PRODUCES_EVENTS,
        }
        registry = self.event_bus.registry
        for event_type, info in declared.items():
            registry.register_producer(self.name, event_type)
            registry.register_event(event_type, info['schema'], info['description'])

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Subscribe consumed events and mark the service running."""
        async with self._lock:
            if self._running:
                self.logger.warning("Service already running")
                return

            for event_type, handler_name in self.CONSUMES_EVENTS.items():
                self.event_bus.subscribe(event_type, getattr(self, handler_name), self.name)
            self._running = True
            await self._set_state('running', 'started')

    async def stop(self) -> None:
        """
        Unsubscribe and mark the service stopped.

        Subclasses release their own resources first, then call super().stop().
        """
        async with self._lock:
            if not self._running:
                self.logger.warning("Service already stopped")
                return

            await self._announce('stopping')
            removed = self.event_bus.unsubscribe_service(self.name)
            self.logger.debug("Event subscriptions removed", count=removed)
            self._running = False
            await self._set_state('stopped', 'stopped')

    async def publish(self, event: BaseEvent) -> None:
        """Publish an event under this service's name. Dropped while stopped."""
        if not self._running:
            self.logger.warning("Publish while stopped ignored", event_type=event.type)
            return
        await self.event_bus.publish(event, self.name)

    async def _set_state(self, registry_state: str, announced_state: str) -> None:
        self.service_registry.set_service_state(self.name, registry_state)
        self.logger.info(f"Service {registry_state}")
        await self._announce(announced_state)

    async def _announce(self, state: str) -> None:
        from postureup.events.system import ServiceStateChangedEvent

        await self.event_bus.publish(
            ServiceStateChangedEvent(service_name=self.name, state=state),
            self.name
        )

    @abstractmethod
    async def handle_event(self, event: BaseEvent) -> None:
        """Handle an event delivered for one of the CONSUMES_EVENTS types."""
        pass
