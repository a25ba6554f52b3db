"""
Haptic feedback abstraction for PostureUp.

The posture alert is a vibration pattern: a list of millisecond durations
alternating wait / buzz / wait / buzz, optionally repeated until stopped.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from .base import BaseHardware
from postureup.core.config import HapticConfig
from postureup.core.errors import ActuatorWriteFailure

# Type alias for a vibration pattern in milliseconds
HapticPattern = List[int]

class HapticActuator(BaseHardware, ABC):
    """Base class for vibration motors."""

    def __init__(self, config: HapticConfig, name: Optional[str] = None):
        super().__init__(config, name or "HapticActuator")

    @property
    def default_pattern(self) -> HapticPattern:
        return list(self.config.pattern)

    @abstractmethod
    async def start(self, pattern: HapticPattern, repeat: bool = True) -> None:
        """
        Start vibrating with a pattern.

        Raises:
            ActuatorWriteFailure: If the motor could not be started
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop any vibration. Stopping an idle motor is a no-op."""
        pass

    @classmethod
    def create(cls, config: HapticConfig) -> 'HapticActuator':
        """Create the haptic actuator for the current platform."""
        return SimulatedHaptic(config)


class SimulatedHaptic(HapticActuator):
    """In-memory vibration motor that records what it was asked to do."""

    def __init__(self, config: HapticConfig):
        super().__init__(config, "SimulatedHaptic")
        self.active = False
        self.pattern: Optional[HapticPattern] = None
        self.fail_writes = False

    async def _close(self) -> None:
        self.active = False

    async def start(self, pattern: HapticPattern, repeat: bool = True) -> None:
        if self.fail_writes:
            raise ActuatorWriteFailure("haptic", "simulated write failure")
        self.active = True
        self.pattern = list(pattern)
        self.logger.debug("Haptic started", pattern=self.pattern, repeat=repeat)

    async def stop(self) -> None:
        if self.fail_writes:
            raise ActuatorWriteFailure("haptic", "simulated write failure")
        self.active = False
        self.pattern = None
        self.logger.debug("Haptic stopped")
