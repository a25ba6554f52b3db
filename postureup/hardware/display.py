"""
Display brightness abstraction for PostureUp.

Brightness control may need a one-time permission grant. When it is refused
the session keeps running and simply stops touching the brightness.
"""

from abc import ABC, abstractmethod
from typing import Optional
from .base import BaseHardware
from postureup.core.config import DisplayConfig
from postureup.core.errors import ActuatorWriteFailure, PermissionDenied

class BrightnessActuator(BaseHardware, ABC):
    """
    Base class for display brightness control.

    Levels are in [0.0, 1.0].
    """

    def __init__(self, config: DisplayConfig, name: Optional[str] = None):
        super().__init__(config, name or "BrightnessActuator")

    @abstractmethod
    async def request_permission(self) -> None:
        """
        Ask for permission to change the brightness.

        Raises:
            PermissionDenied: If the platform refuses
        """
        pass

    @abstractmethod
    async def get_brightness(self) -> float:
        """Return the current brightness level."""
        pass

    @abstractmethod
    async def set_brightness(self, level: float) -> None:
        """
        Set the brightness level.

        Raises:
            ActuatorWriteFailure: If the write did not take effect
        """
        pass

    @classmethod
    def create(cls, config: DisplayConfig) -> 'BrightnessActuator':
        """
        Create the brightness actuator for the current platform.

        Only the simulated display ships with the package.
        """
        return SimulatedDisplay(config)


class SimulatedDisplay(BrightnessActuator):
    """
    In-memory display.

    Attributes:
        permission_granted: Set False to simulate a refused permission
        fail_writes: Set True to make every write raise ActuatorWriteFailure
    """

    def __init__(self, config: DisplayConfig):
        super().__init__(config, "SimulatedDisplay")
        self.level = config.initial_brightness
        self.permission_granted = True
        self.fail_writes = False
        self.write_count = 0

    async def request_permission(self) -> None:
        if self.config.require_permission and not self.permission_granted:
            raise PermissionDenied("Brightness permission not granted")

    async def get_brightness(self) -> float:
        return self.level

    async def set_brightness(self, level: float) -> None:
        if self.fail_writes:
            raise ActuatorWriteFailure("display", "simulated write failure")
        self.level = max(0.0, min(1.0, level))
        self.write_count += 1
        self.logger.debug("Brightness set", level=self.level)
