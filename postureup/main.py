"""
Main entry point for PostureUp.

This module wires the core components to simulated hardware and runs a
posture detection session. It handles signal management, logging setup, and
the application lifecycle.
"""

import argparse
import asyncio
import logging
import signal
import sys
import structlog
from typing import Dict, Optional

from postureup.core import (
    EventRegistry, ServiceRegistry, EventBus, EventTracer, BaseEvent, BaseService,
    ApplicationConfig, get_config
)
from postureup.core.events import EventType
from postureup.events.system import ApplicationStartupCompletedEvent
from postureup.hardware.base import BaseHardware
from postureup.hardware.display import BrightnessActuator
from postureup.hardware.haptic import HapticActuator
from postureup.hardware.sensor import SCENARIOS, SimulatedSensorFeed, scenario_script
from postureup.services.session import PostureSessionService

# Events worth showing on the console; everything else is logged at debug
_POSTURE_EVENTS = {
    EventType.DETECTION_STARTED,
    EventType.DETECTION_STOPPED,
    EventType.POSITION_CHANGED,
    EventType.POSTURE_CHANGED,
    EventType.LOW_POWER_ENTERED,
    EventType.LOW_POWER_EXITED,
    EventType.HARDWARE_ERROR,
}


def setup_logging(level: str = "INFO"):
    """Configure structured logging for the application."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
    )


class PostureUpApplication:
    """
    Main application class for PostureUp.

    Builds the event system, the simulated device and the posture session
    service, then keeps a detection session running until shut down.
    """

    def __init__(self, config: Optional[ApplicationConfig] = None, scenario: Optional[str] = None):
        """
        Args:
            config: Application configuration (defaults to get_config())
            scenario: Name of a scripted sensor scenario; None holds the
                device upright indefinitely
        """
        self.logger = structlog.get_logger(app="postureup")
        self.config = config or get_config()

        self.event_registry = EventRegistry()
        self.service_registry = ServiceRegistry()

        if self.config.event.tracing_enabled:
            self.event_tracer = EventTracer(max_events=self.config.event.max_trace_events)
        else:
            self.event_tracer = None

        self.event_bus = EventBus(self.event_registry, self.event_tracer)
        self.event_registry.register_event(
            EventType.APPLICATION_STARTUP_COMPLETED,
            ApplicationStartupCompletedEvent,
            "Application startup completed"
        )
        self.event_registry.register_producer("postureup", EventType.APPLICATION_STARTUP_COMPLETED)

        script = None
        if scenario is not None:
            script = scenario_script(scenario, self.config.sensor.sample_interval)
        self.sensor_feed = SimulatedSensorFeed(self.config.sensor, script=script)
        self.display = BrightnessActuator.create(self.config.display)
        self.haptic = HapticActuator.create(self.config.haptic)
        self.hardware: Dict[str, BaseHardware] = {
            "sensor": self.sensor_feed,
            "display": self.display,
            "haptic": self.haptic,
        }

        self.services: Dict[str, BaseService] = {}
        self._running = True

    async def initialize(self):
        """Initialize hardware and services, then start detection."""
        self.logger.info("Initializing PostureUp")

        try:
            for name, component in self.hardware.items():
                await component.initialize()

            self.event_bus.subscribe(None, self._log_event, "postureup")

            session = PostureSessionService(
                event_bus=self.event_bus,
                service_registry=self.service_registry,
                sensor_feed=self.sensor_feed,
                display=self.display,
                haptic=self.haptic,
                config=self.config,
            )
            self.services["posture_session"] = await self._start_service(session)

            await self.event_bus.publish(
                ApplicationStartupCompletedEvent(producer_name="postureup"),
                "postureup"
            )

            self.logger.debug("Registered events", events=self.event_registry.describe())
            await session.start_detection()
            self.logger.info("PostureUp initialization complete")

        except Exception as e:
            self.logger.error("Failed to initialize application", error=str(e), exc_info=True)
            raise

    async def _start_service(self, service: BaseService) -> BaseService:
        try:
            await service.start()
            self.logger.info(f"Service started: {service.name}")
            return service
        except Exception as e:
            self.logger.error(f"Failed to start service: {service.name}",
                              error=str(e), exc_info=True)
            raise

    async def _log_event(self, event: BaseEvent):
        fields = event.model_dump(exclude={'type', 'producer_name', 'timestamp', 'trace_id'})
        if event.type in _POSTURE_EVENTS:
            self.logger.info(f"Event: {event.type}", **fields)
        else:
            self.logger.debug(f"Event: {event.type}", **fields)

    async def run(self, duration: Optional[float] = None):
        """
        Run until interrupted, or for duration seconds if given.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration if duration is not None else None
        try:
            while self._running:
                if deadline is not None and loop.time() >= deadline:
                    self.logger.info("Run duration elapsed")
                    break
                await asyncio.sleep(0.1 if deadline is not None else 1)

        except asyncio.CancelledError:
            self.logger.info("Application task cancelled")

        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop services and release hardware. Safe to call more than once."""
        if not self.services and not any(h.is_initialized() for h in self.hardware.values()):
            return

        self._running = False
        self.logger.info("Shutting down PostureUp")

        for name, service in reversed(list(self.services.items())):
            try:
                self.logger.info(f"Stopping service: {name}")
                await service.stop()
            except Exception as e:
                self.logger.error(f"Error stopping service {name}: {e}")
        self.services.clear()

        for name, component in reversed(list(self.hardware.items())):
            try:
                await component.shutdown()
            except Exception as e:
                self.logger.error(f"Error shutting down {name}: {e}")

        self.event_bus.unsubscribe(None, self._log_event)
        if self.event_tracer:
            self.logger.info("Event summary", **self.event_tracer.get_event_stats())
        self.logger.info("PostureUp shutdown complete")

    def handle_signal(self, sig):
        """
        Handle termination signals.

        The run loop notices the flag and shuts down, which restores the
        display before the process exits.
        """
        self.logger.info(f"Received signal {sig.name}, shutting down")
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="postureup",
        description="Run a posture detection session on a simulated device."
    )
    parser.add_argument("--scenario", choices=sorted(SCENARIOS),
                        help="Replay a scripted sensor scenario instead of holding the device upright")
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--log-level", default=None,
                        help="Override the configured log level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


async def main(argv=None):
    """Application entry point."""
    args = parse_args(argv)
    config = get_config()
    setup_logging(args.log_level or config.log_level)

    app = PostureUpApplication(config, scenario=args.scenario)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(
            sig, lambda s=sig: app.handle_signal(s))

    try:
        await app.initialize()
    except Exception:
        await app.shutdown()
        raise
    await app.run(args.duration)


def cli():
    try:
        asyncio.run(main())
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
