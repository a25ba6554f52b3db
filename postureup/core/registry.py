"""
Event and service registries for PostureUp.

EventRegistry knows every event class the application may publish and who
produces and consumes it; the bus refuses anything it does not know.
ServiceRegistry keeps the lifecycle state of each service.
"""

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Dict, Optional, Set, Type
from .events import EventType, BaseEvent


class EventRegistry:
    """Event schemas plus producer/consumer bookkeeping."""

    def __init__(self):
        self._schemas: Dict[EventType, Type[BaseEvent]] = {}
        self._descriptions: Dict[EventType, str] = {}
        self._producers: DefaultDict[EventType, Set[str]] = defaultdict(set)
        self._consumers: DefaultDict[EventType, Set[str]] = defaultdict(set)
        self._logger = logging.getLogger(__name__)

    def register_event(self, event_type: EventType, event_schema: Type[BaseEvent], description: str):
        """
        Register the event class that carries event_type.

        Re-registering the same class is harmless; a different class replaces
        the old one with a warning.
        """
        existing = self._schemas.get(event_type)
        if existing is not None and existing is not event_schema:
            self._logger.warning(f"Schema for {event_type} replaced: {existing.__name__} -> {event_schema.__name__}")
        self._schemas[event_type] = event_schema
        self._descriptions[event_type] = description

    def register_producer(self, service_name: str, event_type: EventType):
        self._producers[event_type].add(service_name)

    def register_consumer(self, service_name: str, event_type: EventType):
        self._consumers[event_type].add(service_name)

    def validate_schema(self, event: BaseEvent) -> bool:
        """
        Check an event against the class registered for its type.

        Raises:
            ValueError: If the event type was never registered
            TypeError: If the event is not an instance of the registered class
        """
        schema = self._schemas.get(event.type)
        if schema is None:
            raise ValueError(f"Unknown event type: {event.type}")
        if not isinstance(event, schema):
            raise TypeError(f"{type(event).__name__} is not a {schema.__name__} ({event.type})")
        return True

    def get_event_flow(self, event_type: EventType) -> Dict[str, Set[str]]:
        """
        Returns:
            Dict with 'producers' and 'consumers' sets for event_type
        """
        return {
            'producers': set(self._producers.get(event_type, ())),
            'consumers': set(self._consumers.get(event_type, ())),
        }

    def get_event_schema(self, event_type: EventType) -> Optional[Type[BaseEvent]]:
        return self._schemas.get(event_type)

    def describe(self) -> Dict[str, Dict[str, Any]]:
        """Summary of every registered event type, keyed by its string value."""
        return {
            str(getattr(event_type, 'value', event_type)): {
                'description': self._descriptions[event_type],
                'producers': sorted(self._producers.get(event_type, ())),
                'consumers': sorted(self._consumers.get(event_type, ())),
            }
            for event_type in self._schemas
        }


class ServiceRegistry:
    """
    Services by name and their lifecycle state.

    States: 'registered', 'running', 'stopped'.
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._states: Dict[str, str] = {}
        self._logger = logging.getLogger(__name__)

    def register_service(self, service_name: str, service_instance: Any):
        self._services[service_name] = service_instance
        self._states[service_name] = 'registered'
        self._logger.debug(f"Registered service: {service_name}")

    def get_service(self, service_name: str) -> Optional[Any]:
        return self._services.get(service_name)

    def set_service_state(self, service_name: str, state: str):
        self._states[service_name] = state
        self._logger.debug(f"Service {service_name} is {state}")

    def get_service_state(self, service_name: str) -> Optional[str]:
        return self._states.get(service_name)
