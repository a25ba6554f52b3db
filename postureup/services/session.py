"""
Posture detection session service.

Owns the single sensor subscription for a detection session and runs every
reading through the detection pipeline:

    stationarity filter -> power-state scheduler -> classifier -> hysteresis

Resulting actuator commands are handed to one SerializedWriter per actuator,
so the pipeline never waits on hardware. State changes are published on the
event bus for the presentation layer.

Sample processing is synchronous: nothing is awaited between reading and
updating the session state, so each sample is handled as one atomic step on
the event loop.
"""

import asyncio
from typing import Any, Coroutine, List, Optional, Set

from postureup.core.bus import EventBus
from postureup.core.config import ApplicationConfig
from postureup.core.errors import InvalidSample, PermissionDenied, SensorUnavailable
from postureup.core.events import BaseEvent, EventType
from postureup.core.registry import ServiceRegistry
from postureup.core.service import BaseService
from postureup.detection.classifier import PostureClassifier
from postureup.detection.filter import StationarityDetector
from postureup.detection.hysteresis import HysteresisEngine
from postureup.detection.models import (
    ActuatorCommand, PositionLabel, PostureState, Sample, SetBrightness, SetHaptic
)
from postureup.detection.power import Clock, PowerStateScheduler, Scheduler
from postureup.events.posture import (
    DetectionStartedEvent, DetectionStoppedEvent, DetectionStartRequestedEvent,
    DetectionStopRequestedEvent, LowPowerEnteredEvent, LowPowerExitedEvent,
    PositionChangedEvent, PostureChangedEvent
)
from postureup.events.system import HardwareErrorEvent
from postureup.hardware.display import BrightnessActuator
from postureup.hardware.haptic import HapticActuator
from postureup.hardware.sensor import SensorFeed, SensorSubscription
from postureup.hardware.writer import SerializedWriter


class PostureSessionService(BaseService):
    """
    Runs posture detection sessions.

    start_detection() and stop_detection() are idempotent and may also be
    triggered over the bus with DETECTION_START_REQUESTED and
    DETECTION_STOP_REQUESTED. Stopping the service ends any active session
    first, so the device is never left dimmed or vibrating.
    """

    PRODUCES_EVENTS = {
        EventType.DETECTION_START_REQUESTED: {
            'schema': DetectionStartRequestedEvent,
            'description': "Request to start a posture detection session",
        },
        EventType.DETECTION_STOP_REQUESTED: {
            'schema': DetectionStopRequestedEvent,
            'description': "Request to stop the posture detection session",
        },
        EventType.DETECTION_STARTED: {
            'schema': DetectionStartedEvent,
            'description': "A posture detection session started",
        },
        EventType.DETECTION_STOPPED: {
            'schema': DetectionStoppedEvent,
            'description': "The posture detection session stopped and the device was restored",
        },
        EventType.POSITION_CHANGED: {
            'schema': PositionChangedEvent,
            'description': "The classified device position changed",
        },
        EventType.POSTURE_CHANGED: {
            'schema': PostureChangedEvent,
            'description': "Posture flipped between good and bad",
        },
        EventType.LOW_POWER_ENTERED: {
            'schema': LowPowerEnteredEvent,
            'description': "Device set down; session entered low power",
        },
        EventType.LOW_POWER_EXITED: {
            'schema': LowPowerExitedEvent,
            'description': "Device picked up; session left low power",
        },
        EventType.HARDWARE_ERROR: {
            'schema': HardwareErrorEvent,
            'description': "An actuator or the sensor reported an error",
        },
    }

    CONSUMES_EVENTS = {
        EventType.DETECTION_START_REQUESTED: "handle_event",
        EventType.DETECTION_STOP_REQUESTED: "handle_event",
    }

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 sensor_feed: SensorFeed,
                 display: BrightnessActuator,
                 haptic: HapticActuator,
                 config: ApplicationConfig,
                 schedule: Optional[Scheduler] = None,
                 clock: Optional[Clock] = None):
        """
        Args:
            event_bus: Bus for posture events
            service_registry: Registry the service is tracked in
            sensor_feed: Source of motion readings
            display: Brightness actuator
            haptic: Vibration actuator
            config: Application configuration
            schedule: Timer factory for the low-power timer (tests inject a fake)
            clock: Monotonic clock for the low-power cooldown (tests inject a fake)
        """
        super().__init__(event_bus, service_registry, name="posture_session", config=config)
        self.sensor_feed = sensor_feed
        self.display = display
        self.haptic = haptic

        detection = config.detection
        self.stationarity = StationarityDetector(detection)
        self.classifier = PostureClassifier(detection)
        self.hysteresis = HysteresisEngine(detection)
        self.power = PowerStateScheduler(detection, self._on_sleep, schedule=schedule, clock=clock)

        self._state = PostureState()
        self._subscription: Optional[SensorSubscription] = None
        self._session_lock = asyncio.Lock()
        self._background_tasks: Set[asyncio.Task] = set()

        self._brightness_writer = SerializedWriter("display", self.display.set_brightness, self._on_write_failure)
        self._haptic_writer = SerializedWriter("haptic", self._write_haptic, self._on_write_failure)

    @property
    def state(self) -> PostureState:
        """A copy of the current session state."""
        return self._state.snapshot()

    @property
    def is_detecting(self) -> bool:
        return self._state.is_detecting

    async def stop(self) -> None:
        """Stop the service, ending any active detection session first."""
        try:
            await self.stop_detection(reason="shutdown")
        finally:
            if self._background_tasks:
                await asyncio.gather(*self._background_tasks, return_exceptions=True)
            await super().stop()

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type == EventType.DETECTION_START_REQUESTED:
            try:
                await self.start_detection()
            except SensorUnavailable as e:
                self.logger.error("Cannot start detection", error=str(e))
                await self.publish(HardwareErrorEvent(
                    component="sensor",
                    error_type=type(e).__name__,
                    error_message=str(e),
                ))
        elif event.type == EventType.DETECTION_STOP_REQUESTED:
            await self.stop_detection()

    async def start_detection(self) -> None:
        """
        Start a detection session. No-op if one is already running.

        Raises:
            RuntimeError: If the service itself is not running
            SensorUnavailable: If the sensor feed cannot be subscribed;
                the session state is left unchanged
        """
        async with self._session_lock:
            if self._state.is_detecting:
                self.logger.info("Detection already running")
                return
            if not self._running:
                raise RuntimeError("Posture session service is not running")

            permitted = await self._acquire_brightness_permission()
            original = await self.display.get_brightness() if permitted else None

            previous_state = self._state
            self.stationarity.reset()
            self.power.reset()
            self.hysteresis.reset(original)
            self._state = PostureState(
                is_detecting=True,
                position_label=PositionLabel.UPRIGHT,
                original_brightness=original,
                brightness_permitted=permitted,
            )

            interval = self.config.sensor.sample_interval
            try:
                self._subscription = await self.sensor_feed.subscribe(interval, self._handle_reading)
            except SensorUnavailable:
                self._state = previous_state
                self.power.reset()
                raise

            self.logger.info("Detection started",
                             original_brightness=original,
                             brightness_permitted=permitted,
                             interval=interval)

        await self.publish(DetectionStartedEvent(
            original_brightness=original,
            brightness_permitted=permitted,
        ))

    async def stop_detection(self, reason: str = "requested") -> None:
        """
        Stop the detection session and restore the device. No-op if not detecting.

        Cancels the low-power timer and queues the restoring writes (original
        brightness, haptic off) before unsubscribing from the feed, then waits
        for those writes to finish. Safe to call from a handler running inside
        the feed's own delivery.
        """
        async with self._session_lock:
            if not self._state.is_detecting:
                return
            # Cleared first so a late reading or timer callback is ignored
            self._state.is_detecting = False

            self.power.cancel()
            self._brightness_writer.discard()
            self._haptic_writer.discard()
            self._restore_device()

            subscription, self._subscription = self._subscription, None
            try:
                if subscription is not None:
                    await subscription.unsubscribe()
            finally:
                await self._brightness_writer.drain()
                await self._haptic_writer.drain()

            poor_posture_count = self._state.poor_posture_count
            self.logger.info("Detection stopped", reason=reason, poor_posture_count=poor_posture_count)

        await self.publish(DetectionStoppedEvent(poor_posture_count=poor_posture_count, reason=reason))

    def process_sample(self, sample: Sample) -> List[BaseEvent]:
        """
        Run one sample through the pipeline and apply any actuator commands.

        Returns:
            Events describing what changed, for the caller to publish
        """
        state = self._state
        state.last_sample = sample
        events: List[BaseEvent] = []

        stationary = self.stationarity.observe(sample)
        if self.power.on_stationary(stationary):
            state.is_low_power = False
            self._apply(self.hysteresis.leave_rest())
            events.append(LowPowerExitedEvent())
        state.is_held = self.power.is_held

        # Settling on a desk or already asleep: keep the last classification
        if stationary or self.power.is_low_power:
            return events

        angle, label = self.classifier.classify(sample)
        state.last_angle_deg = angle
        if label != state.position_label:
            events.append(PositionChangedEvent(
                position=label.value,
                previous_position=state.position_label.value,
                angle_deg=angle,
            ))
            state.position_label = label

        was_good = self.hysteresis.last_good_posture
        self._apply(self.hysteresis.update(label, state.is_held, state.is_low_power))
        now_good = self.hysteresis.last_good_posture
        if now_good != was_good:
            if not now_good:
                state.poor_posture_count += 1
            self.logger.info("Posture changed", good=now_good, position=label.value, angle=round(angle, 1))
            events.append(PostureChangedEvent(
                is_good_posture=now_good,
                position=label.value,
                angle_deg=angle,
                poor_posture_count=state.poor_posture_count,
            ))
        return events

    async def _handle_reading(self, reading: Any) -> None:
        if not self._state.is_detecting:
            return
        try:
            sample = Sample.from_reading(reading)
        except InvalidSample as e:
            self.logger.warning("Invalid sample, using neutral reading", error=str(e))
            sample = Sample()

        for event in self.process_sample(sample):
            await self.publish(event)

    def _on_sleep(self) -> None:
        """Low-power timer fired: the device has been set down."""
        state = self._state
        if not state.is_detecting:
            return
        state.is_held = False
        state.is_low_power = True
        previous = state.position_label
        state.position_label = PositionLabel.NOT_HELD
        self._apply(self.hysteresis.enter_rest())

        events: List[BaseEvent] = [LowPowerEnteredEvent()]
        if previous != PositionLabel.NOT_HELD:
            events.insert(0, PositionChangedEvent(
                position=PositionLabel.NOT_HELD.value,
                previous_position=previous.value,
                angle_deg=state.last_angle_deg,
            ))
        self._spawn(self._publish_all(events))

    async def _acquire_brightness_permission(self) -> bool:
        try:
            await self.display.request_permission()
        except PermissionDenied as e:
            self.logger.warning("Brightness control unavailable, continuing without it", error=str(e))
            return False
        return True

    def _apply(self, commands: List[ActuatorCommand]) -> None:
        for command in commands:
            if isinstance(command, SetBrightness):
                if self._state.brightness_permitted:
                    self._brightness_writer.submit(command.level)
            elif isinstance(command, SetHaptic):
                self._haptic_writer.submit(command.active)

    def _restore_device(self) -> None:
        state = self._state
        if state.brightness_permitted and state.original_brightness is not None:
            self._brightness_writer.submit(state.original_brightness)
        self._haptic_writer.submit(False)

    async def _write_haptic(self, active: bool) -> None:
        if active:
            await self.haptic.start(self.haptic.default_pattern, repeat=self.config.haptic.repeat)
        else:
            await self.haptic.stop()

    def _on_write_failure(self, actuator: str, error: Exception) -> None:
        self._spawn(self.publish(HardwareErrorEvent(
            component=actuator,
            error_type=type(error).__name__,
            error_message=str(error),
        )))

    async def _publish_all(self, events: List[BaseEvent]) -> None:
        for event in events:
            await self.publish(event)

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
