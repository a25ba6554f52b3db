"""
Motion sensor feed abstraction for PostureUp.

A feed pushes tri-axis readings to a handler at an advisory interval. The
simulated feed replays a scripted sequence of readings, which is what the
demo entry point and the tests use; a device backend implements the same
subscribe() contract.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from postureup.core.config import SensorConfig
from postureup.core.errors import SensorUnavailable
from .base import BaseHardware

SampleHandler = Callable[[Any], Awaitable[None]]
Reading = Tuple[float, float, float]

# Feed task whose reading is being delivered; inherited by tasks the handler spawns
_delivering: ContextVar[Optional[asyncio.Task]] = ContextVar("postureup_sensor_delivering", default=None)


class SensorSubscription:
    """
    Handle for one active subscription. unsubscribe() is idempotent.

    Unsubscribing from inside the feed's own delivery (a handler, or anything
    the handler awaits) stops the feed once the current reading is handled
    instead of cancelling it mid-delivery.
    """

    def __init__(self, feed: "SensorFeed", task: asyncio.Task, stopped: Optional[asyncio.Event] = None):
        self._feed = feed
        self.task = task
        self._stopped = stopped if stopped is not None else asyncio.Event()

    @property
    def active(self) -> bool:
        return not self._stopped.is_set() and not self.task.done()

    async def unsubscribe(self) -> None:
        if self._stopped.is_set():
            return
        self._stopped.set()
        if _delivering.get() is self.task:
            self._feed.logger.debug("Sensor subscription ends after current reading")
            return
        self.task.cancel()
        try:
            await self.task
        except asyncio.CancelledError:
            pass
        self._feed.logger.debug("Sensor subscription removed")


class SensorFeed(BaseHardware, ABC):
    """Base class for motion sensor feeds."""

    def __init__(self, config: SensorConfig, name: Optional[str] = None):
        super().__init__(config, name or "SensorFeed")

    @abstractmethod
    async def subscribe(self, interval: float, handler: SampleHandler) -> SensorSubscription:
        """
        Start delivering readings to handler.

        Args:
            interval: Advisory delay between readings, in seconds
            handler: Coroutine function called with each raw reading

        Returns:
            SensorSubscription: Handle used to stop delivery

        Raises:
            SensorUnavailable: If the sensor cannot deliver readings
        """
        pass


class SimulatedSensorFeed(SensorFeed):
    """
    Sensor feed that replays a script of (x, y, z) readings.

    Once the script runs out the last reading repeats, so the device appears
    to stay where the script left it. Without a script the device is held
    upright with a little hand tremor.
    """

    def __init__(self, config: SensorConfig, script: Optional[Iterable[Any]] = None):
        super().__init__(config, "SimulatedSensorFeed")
        self.script: Optional[List[Any]] = list(script) if script is not None else None

    def _readings(self) -> Iterator[Any]:
        if self.script is None:
            while True:
                yield _hand_tremor(UPRIGHT, 0.03)
        last = None
        for reading in self.script:
            last = reading
            yield reading
        while last is not None:
            yield last

    async def subscribe(self, interval: float, handler: SampleHandler) -> SensorSubscription:
        if not self._initialized:
            raise SensorUnavailable("Simulated sensor feed is not initialized")
        stopped = asyncio.Event()
        task = asyncio.create_task(self._run(interval, handler, stopped))
        self.logger.info("Sensor subscription started", interval=interval)
        return SensorSubscription(self, task, stopped)

    async def _run(self, interval: float, handler: SampleHandler, stopped: asyncio.Event) -> None:
        _delivering.set(asyncio.current_task())
        for reading in self._readings():
            if stopped.is_set():
                return
            try:
                await handler(reading)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # A bad reading is a missed sample, not the end of the feed
                self.logger.error(f"Error handling sensor reading: {e}")
            await asyncio.sleep(interval)


def _hand_tremor(reading: Reading, tremor: float) -> Reading:
    return tuple(axis + random.gauss(0.0, tremor) for axis in reading)


UPRIGHT: Reading = (0.0, 0.97, 0.2)
LOOKING_DOWN: Reading = (0.0, 0.3, -0.9)
ABOVE_FACE: Reading = (0.0, 0.1, 0.95)
ON_DESK: Reading = (0.0, 0.0, 1.0)

# Each scenario is a list of (reading, seconds, held in hand)
SCENARIOS: Dict[str, List[Tuple[Reading, float, bool]]] = {
    # Held upright, then set down on a desk until low power kicks in
    "desk": [(UPRIGHT, 4.0, True), (ON_DESK, 6.0, False), (UPRIGHT, 2.0, True)],
    # Good posture, slouch over the phone, then recover
    "slouch": [(UPRIGHT, 3.0, True), (LOOKING_DOWN, 4.0, True), (UPRIGHT, 3.0, True)],
    # Lying down reading with the screen above the face
    "reading": [(UPRIGHT, 2.0, True), (ABOVE_FACE, 6.0, True)],
}


def scenario_script(name: str, interval: float, tremor: float = 0.04) -> List[Reading]:
    """
    Expand a named scenario into one reading per sample interval.

    Segments held in hand get gaussian tremor so they never look stationary;
    resting segments are exact.

    Raises:
        KeyError: If the scenario is unknown
    """
    script: List[Reading] = []
    for reading, seconds, held in SCENARIOS[name]:
        for _ in range(max(1, int(round(seconds / interval)))):
            script.append(_hand_tremor(reading, tremor) if held else reading)
    return script
