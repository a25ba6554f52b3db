"""
Hysteresis engine: turns posture decisions into actuator commands.

Commands are emitted only when the good/bad decision flips, and a command is
dropped if its actuator was already last told the same thing. Readings that
hover around a threshold therefore cannot make the screen flicker.
"""

import logging
from typing import List, Optional

from postureup.core.config import DetectionConfig
from .models import ActuatorCommand, PositionLabel, SetBrightness, SetHaptic, is_good_posture


class HysteresisEngine:
    """
    Tracks the last good/bad decision and the last emitted actuator targets.

    Call reset() at the start of every session.
    """

    def __init__(self, config: DetectionConfig):
        self.dim_level = config.dim_level
        self.original_brightness: Optional[float] = None
        self.last_good_posture = True
        # None means nothing emitted yet; the first real command always goes out
        self._brightness_target: Optional[float] = None
        self._haptic_target: Optional[bool] = None
        self.logger = logging.getLogger(__name__)

    @property
    def restore_level(self) -> float:
        return self.original_brightness if self.original_brightness is not None else 1.0

    def reset(self, original_brightness: Optional[float]) -> None:
        """
        Start a new session.

        The device is assumed to be in its restored configuration (original
        brightness, haptic off) and in good posture.
        """
        self.original_brightness = original_brightness
        self.last_good_posture = True
        self._brightness_target = self.restore_level
        self._haptic_target = False

    def update(self, label: PositionLabel, is_held: bool, is_low_power: bool) -> List[ActuatorCommand]:
        """
        Feed the latest decision inputs.

        Args:
            label: Position label from the classifier
            is_held: False once the device is judged set down
            is_low_power: True while the session is in low power

        Returns:
            Commands to apply, empty unless the good/bad decision changed
        """
        current_good = is_held and not is_low_power and is_good_posture(label)
        if current_good == self.last_good_posture:
            return []

        self.last_good_posture = current_good
        self.logger.debug(f"Posture edge: {'good' if current_good else 'bad'} ({label.value})")
        if current_good:
            return self._emit(self.restore_level, False)
        return self._emit(self.dim_level, True)

    def enter_rest(self) -> List[ActuatorCommand]:
        """Force the low-power configuration: dim screen, haptic off."""
        self.last_good_posture = False
        return self._emit(self.dim_level, False)

    def leave_rest(self) -> List[ActuatorCommand]:
        """Restore the original brightness after low power."""
        self.last_good_posture = True
        return self._emit(self.restore_level, False)

    def _emit(self, brightness: float, haptic: bool) -> List[ActuatorCommand]:
        commands: List[ActuatorCommand] = []
        if brightness != self._brightness_target:
            self._brightness_target = brightness
            commands.append(SetBrightness(brightness))
        if haptic != self._haptic_target:
            self._haptic_target = haptic
            commands.append(SetHaptic(haptic))
        return commands
