"""
Hardware abstractions for PostureUp: motion sensor feed, display brightness,
haptic motor, and serialized actuator writes.
"""
