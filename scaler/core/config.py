"""
Configuration management for Scaler.

This module provides pydantic settings models for type-safe configuration with
environment variable integration (SCALER_* variables and an optional .env file).

All thresholds can be adjusted at runtime for debugging. Assignments are
validated like construction, and out-of-range values are clamped to the
nearest valid value with a warning instead of being rejected.
"""

import structlog
from enum import Enum
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(component="config")

def _clamp(name: str, value: float, low: float = None, high: float = None) -> float:
    """Clamp value into [low, high], logging when it had to move."""
    clamped = value
    if low is not None and clamped < low:
        clamped = low
    if high is not None and clamped > high:
        clamped = high
    if clamped != value:
        logger.warning("Threshold clamped", setting=name, requested=value, applied=clamped)
    return clamped

class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class UsageMode(str, Enum):
    """
    Usage accounting policy.

    LEVEL_ONLY  - count usage only while level
    SHAKE_ONLY  - ignore orientation, cycle shake sprints
    FITNESS     - ignore orientation, cycle fitness sprints
    BOTH        - count usage while level, count out-of-level time otherwise
    """
    LEVEL_ONLY = "level_only"
    SHAKE_ONLY = "shake_only"
    FITNESS = "fitness"
    BOTH = "both"

class BaseConfig(BaseSettings):
    """
    Base configuration class with common settings for all components.
    """
    model_config = SettingsConfigDict(
        env_prefix="SCALER_",
        env_file=".env",
        extra="ignore",
        validate_assignment=True
    )

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO

class EventConfig(BaseConfig):
    """Configuration for the event system."""
    model_config = SettingsConfigDict(env_prefix="SCALER_EVENT_")

    max_trace_events: int = 1000
    tracing_enabled: bool = True

class GateConfig(BaseConfig):
    """Pitch band, in degrees, inside which the device counts as level."""
    model_config = SettingsConfigDict(env_prefix="SCALER_GATE_")

    pitch_low: float = -10.0
    pitch_high: float = 10.0

    @field_validator("pitch_low", "pitch_high")
    @classmethod
    def clamp_pitch(cls, v, info):
        v = _clamp(info.field_name, v, -180.0, 180.0)
        # The bound being set is clamped onto the other one
        if info.field_name == "pitch_low" and "pitch_high" in info.data:
            return _clamp("pitch_low", v, high=info.data["pitch_high"])
        if info.field_name == "pitch_high" and "pitch_low" in info.data:
            return _clamp("pitch_high", v, low=info.data["pitch_low"])
        return v

    @model_validator(mode="after")
    def check_band(self):
        if self.pitch_low > self.pitch_high:
            self.pitch_high = _clamp("pitch_high", self.pitch_high, low=self.pitch_low)
        return self

class MotionConfig(BaseConfig):
    """Motion sampling and gesture detection thresholds (deltas in g)."""
    model_config = SettingsConfigDict(env_prefix="SCALER_MOTION_")

    sample_rate_hz: float = 30.0
    shake_threshold: float = 1.0
    rep_threshold: float = 0.5

    @field_validator("sample_rate_hz")
    @classmethod
    def clamp_rate(cls, v):
        return _clamp("sample_rate_hz", v, 1.0)

    @field_validator("shake_threshold", "rep_threshold")
    @classmethod
    def clamp_threshold(cls, v, info):
        return _clamp(info.field_name, v, 0.05)

class SprintConfig(BaseConfig):
    """
    Sprint challenge parameters.

    Progress follows elapsed time while the gesture rate meets the requirement
    and decays by decay_step per tick once the grace period is over. A sprint
    that runs longer than duration * overrun_multiplier times out.
    """
    model_config = SettingsConfigDict(env_prefix="SCALER_SPRINT_")

    duration_seconds: float = 60.0
    required_shake_rate: float = 3.0
    required_rep_rate: float = 1.0
    tick_interval: float = 0.1
    rate_interval: float = 1.0
    rate_window: float = 1.0
    grace_period: float = 2.0
    decay_step: float = 0.02
    overrun_multiplier: float = 2.0

    @field_validator("duration_seconds", "overrun_multiplier")
    @classmethod
    def clamp_at_least_one(cls, v, info):
        return _clamp(info.field_name, v, 1.0)

    @field_validator("required_shake_rate", "required_rep_rate")
    @classmethod
    def clamp_required_rate(cls, v, info):
        # Events per second; fractional rates such as one rep every two seconds are valid
        return _clamp(info.field_name, v, 0.1)

    @field_validator("tick_interval")
    @classmethod
    def clamp_tick(cls, v):
        return _clamp("tick_interval", v, 0.01)

    @field_validator("rate_interval", "rate_window")
    @classmethod
    def clamp_rate_interval(cls, v, info):
        return _clamp(info.field_name, v, 0.1)

    @field_validator("grace_period")
    @classmethod
    def clamp_grace(cls, v):
        return _clamp("grace_period", v, 0.0)

    @field_validator("decay_step")
    @classmethod
    def clamp_decay(cls, v):
        return _clamp("decay_step", v, 0.001, 1.0)

class UsageConfig(BaseConfig):
    """Usage accumulator thresholds, in seconds."""
    model_config = SettingsConfigDict(env_prefix="SCALER_USAGE_")

    default_mode: UsageMode = UsageMode.LEVEL_ONLY
    tick_interval: float = 1.0
    target_usage_seconds: float = 30 * 60
    debug_target_usage_seconds: float = 5.0
    out_of_level_threshold_seconds: float = 10.0
    non_level_cycle_seconds: float = 30.0

    @field_validator("tick_interval")
    @classmethod
    def clamp_tick(cls, v):
        return _clamp("tick_interval", v, 0.01)

    @field_validator("target_usage_seconds", "debug_target_usage_seconds",
                     "out_of_level_threshold_seconds", "non_level_cycle_seconds")
    @classmethod
    def clamp_duration(cls, v, info):
        return _clamp(info.field_name, v, 1.0)

class ApplicationConfig(BaseConfig):
    """
    Main application configuration that combines all component configurations.

    This is the top-level configuration class that should be used by the application.
    """
    model_config = SettingsConfigDict(env_nested_delimiter="__")

    event: EventConfig = Field(default_factory=EventConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    sprint: SprintConfig = Field(default_factory=SprintConfig)
    usage: UsageConfig = Field(default_factory=UsageConfig)

    @property
    def target_usage_seconds(self) -> float:
        """Usage budget before a sprint, shortened in debug mode."""
        if self.debug:
            return self.usage.debug_target_usage_seconds
        return self.usage.target_usage_seconds

def get_config(**overrides) -> ApplicationConfig:
    """
    Get the application configuration.

    Args:
        **overrides: Field values taking precedence over the environment

    Returns:
        The validated ApplicationConfig instance
    """
    return ApplicationConfig(**overrides)
