"""
Power-state scheduling.

Decides whether the device is being held or has been set down. A run of
stationary readings arms a one-shot timer; if the device stays still until it
fires, the session goes to sleep (low power). Any motion cancels the timer or
wakes the session immediately.

States:
    HELD -> SETTLING   stationary observed, timer armed
    SETTLING -> HELD   motion before the timer fired
    SETTLING -> ASLEEP timer fired
    ASLEEP -> HELD     motion, always immediate

After entering or leaving ASLEEP a cooldown window suppresses re-entry, so a
device resting right at the stillness boundary cannot oscillate.
"""

import asyncio
import logging
import time
from enum import Enum, auto
from typing import Any, Callable, Optional

from postureup.core.config import DetectionConfig

# schedule(delay_seconds, callback) -> handle with a cancel() method
Scheduler = Callable[[float, Callable[[], None]], Any]
Clock = Callable[[], float]


def call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Default scheduler: the running event loop's call_later."""
    return asyncio.get_running_loop().call_later(delay, callback)


class PowerState(Enum):
    HELD = auto()
    SETTLING = auto()
    ASLEEP = auto()


class PowerStateScheduler:
    """
    Held / settling / asleep state machine with one cancellable timer.

    The owner supplies on_sleep, which runs when the timer fires; waking is
    reported as the return value of on_stationary().
    """

    def __init__(self,
                 config: DetectionConfig,
                 on_sleep: Callable[[], None],
                 schedule: Optional[Scheduler] = None,
                 clock: Optional[Clock] = None):
        """
        Args:
            config: Detection configuration (stationary_duration, low_power_cooldown)
            on_sleep: Called once each time ASLEEP is entered
            schedule: Timer factory, defaults to the event loop's call_later
            clock: Monotonic time source in seconds, defaults to time.monotonic
        """
        self.stationary_duration = config.stationary_duration
        self.low_power_cooldown = config.low_power_cooldown
        self._on_sleep = on_sleep
        self._schedule = schedule or call_later
        self._clock = clock or time.monotonic

        self.state = PowerState.HELD
        self._timer = None
        self._cooldown_until: Optional[float] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_held(self) -> bool:
        return self.state is not PowerState.ASLEEP

    @property
    def is_low_power(self) -> bool:
        return self.state is PowerState.ASLEEP

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def in_cooldown(self) -> bool:
        return self._cooldown_until is not None and self._clock() < self._cooldown_until

    def reset(self) -> None:
        """Cancel any timer and return to HELD with no cooldown."""
        self.cancel()
        self.state = PowerState.HELD
        self._cooldown_until = None

    def cancel(self) -> None:
        """Disarm the timer if one is armed. Safe to call repeatedly."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            if self.state is PowerState.SETTLING:
                self.state = PowerState.HELD

    def on_stationary(self, stationary: bool) -> bool:
        """
        Feed the stationarity result for the latest sample.

        Returns:
            bool: True if this sample woke the session from low power
        """
        if stationary:
            if self.state is PowerState.HELD:
                if self.in_cooldown():
                    self.logger.debug("Stationary during cooldown; not arming low-power timer")
                else:
                    self._timer = self._schedule(self.stationary_duration, self._fire)
                    self.state = PowerState.SETTLING
                    self.logger.debug(f"Low-power timer armed ({self.stationary_duration}s)")
            return False

        self.cancel()
        if self.state is PowerState.ASLEEP:
            self.state = PowerState.HELD
            self._start_cooldown()
            self.logger.info("Motion detected, leaving low power")
            return True
        return False

    def _fire(self) -> None:
        if self._timer is None:
            # Cancelled after the loop had already queued the callback
            return
        self._timer = None
        self.state = PowerState.ASLEEP
        self._start_cooldown()
        self.logger.info("Device at rest, entering low power")
        self._on_sleep()

    def _start_cooldown(self) -> None:
        self._cooldown_until = self._clock() + self.low_power_cooldown
