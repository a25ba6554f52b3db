"""
Configuration management for PostureUp.

This module provides Pydantic settings models for type-safe configuration with
validation and environment variable integration. Every concern has its own
model and environment prefix; ApplicationConfig combines them.
"""

from typing import List
from enum import Enum
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class BaseConfig(BaseSettings):
    """
    Base configuration class with common settings for all components.

    All other configuration classes should inherit from this class.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="POSTUREUP_", extra="ignore")

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO

class DetectionConfig(BaseConfig):
    """
    Thresholds and timings for posture detection.

    Angles are in degrees, axis values in g, durations in seconds.
    """
    model_config = SettingsConfigDict(env_prefix="POSTUREUP_DETECTION_")

    # Classification
    good_posture_angle: float = 60.0   # At or above: upright
    looking_down_angle: float = 30.0   # Below: flat, either above-face or looking-down
    above_face_z: float = 0.5          # z above this while flat means screen faces the user lying down

    # Stationarity
    stationary_readings: int = 6       # Window size
    motion_threshold: float = 0.05     # Max per-axis deviation from the window mean
    flat_z_min: float = 0.9            # |z| above this: lying flat
    edge_z_max: float = 0.1            # |z| below this: standing on an edge

    # Power state
    stationary_duration: float = 3.0   # Stillness required before low power
    low_power_cooldown: float = 5.0    # Re-entry into low power is suppressed this long

    # Actuators
    dim_level: float = 0.01            # Brightness used for poor posture and low power

    @field_validator("good_posture_angle", "looking_down_angle")
    @classmethod
    def validate_angle(cls, v):
        """Validate angles are within the range asin can produce."""
        if not 0.0 < v <= 90.0:
            raise ValueError("Angles must be in (0, 90] degrees")
        return v

    @field_validator("dim_level")
    @classmethod
    def validate_dim_level(cls, v):
        """Validate dim level is a brightness."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("dim_level must be between 0.0 and 1.0")
        return v

    @field_validator("stationary_readings")
    @classmethod
    def validate_stationary_readings(cls, v):
        if v < 2:
            raise ValueError("stationary_readings must be at least 2")
        return v

    @model_validator(mode="after")
    def validate_angle_order(self):
        if self.looking_down_angle >= self.good_posture_angle:
            raise ValueError("looking_down_angle must be below good_posture_angle")
        return self

class SensorConfig(BaseConfig):
    """Configuration for the motion sensor feed."""
    model_config = SettingsConfigDict(env_prefix="POSTUREUP_SENSOR_")

    sample_interval: float = 0.5  # seconds, advisory

    @field_validator("sample_interval")
    @classmethod
    def validate_sample_interval(cls, v):
        if v <= 0:
            raise ValueError("sample_interval must be positive")
        return v

class DisplayConfig(BaseConfig):
    """Configuration for display brightness control."""
    model_config = SettingsConfigDict(env_prefix="POSTUREUP_DISPLAY_")

    initial_brightness: float = 0.8  # Starting level of the simulated display
    require_permission: bool = True

    @field_validator("initial_brightness")
    @classmethod
    def validate_brightness(cls, v):
        """Validate brightness is within range."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Brightness must be between 0.0 and 1.0")
        return v

class HapticConfig(BaseConfig):
    """Configuration for the haptic alert."""
    model_config = SettingsConfigDict(env_prefix="POSTUREUP_HAPTIC_")

    pattern: List[int] = Field(default_factory=lambda: [0, 400, 200, 400])  # ms: wait, buzz, pause, buzz
    repeat: bool = True

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        if not v or any(step < 0 for step in v):
            raise ValueError("pattern must be a non-empty list of non-negative durations")
        return v

class EventConfig(BaseConfig):
    """Configuration for the event system."""
    model_config = SettingsConfigDict(env_prefix="POSTUREUP_EVENT_")

    max_trace_events: int = 1000
    tracing_enabled: bool = True

class ApplicationConfig(BaseConfig):
    """
    Main application configuration that combines all component configurations.

    This is the top-level configuration class that should be used by the application.
    """
    model_config = SettingsConfigDict(env_nested_delimiter="__")

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    sensor: SensorConfig = Field(default_factory=SensorConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    haptic: HapticConfig = Field(default_factory=HapticConfig)
    event: EventConfig = Field(default_factory=EventConfig)

def get_config() -> ApplicationConfig:
    """
    Get the application configuration.

    Returns:
        The validated ApplicationConfig instance
    """
    return ApplicationConfig()
