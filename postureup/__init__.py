"""
PostureUp - posture feedback for handheld devices.

This package watches the device's motion sensor, decides whether the device is
being held at a healthy angle, and nudges the user with screen dimming and a
haptic buzz when it is not.

Features:
- Tilt-based posture classification (upright, above-face, looking-down)
- Hysteresis so actuators only change on real posture transitions
- Low-power mode when the device is set down and left still
- Typed event bus so a presentation layer can follow the session
"""

__version__ = "1.0.0"
