"""
Motion hardware abstraction for Scaler.

A MotionHardware delivers device attitude (pitch, in radians, as the platform
sensor APIs report it) and gravity-inclusive acceleration in g. The simulated
backend is scripted from code and is what the CLI and tests run against; the
unavailable backend stands in for a device without motion sensing.
"""

import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple
from .base import BaseHardware
from scaler.core.config import MotionConfig

class SensorUnavailableError(RuntimeError):
    """Raised at setup when the device has no usable motion sensor."""

@dataclass(frozen=True)
class MotionReading:
    """One sensor tick."""
    pitch_radians: float
    acceleration: Tuple[float, float, float]

    @property
    def pitch_degrees(self) -> float:
        return math.degrees(self.pitch_radians)

class MotionHardware(BaseHardware, ABC):
    """
    Base class for motion sensor implementations.
    """

    def __init__(self, config: MotionConfig, name: Optional[str] = None):
        super().__init__(config, name or "MotionHardware")
        self.sample_interval = 1.0 / config.sample_rate_hz

    @abstractmethod
    def read(self) -> Optional[MotionReading]:
        """
        Read the latest sample.

        Returns:
            The current reading, or None if no new sample is available
        """
        pass

    @classmethod
    def create(cls, config: MotionConfig, available: bool = True) -> 'MotionHardware':
        """
        Create a motion hardware instance.

        Only the simulated backend exists in this package; platform sensor
        bindings plug in here.

        Args:
            config: Motion configuration
            available: False to model a device without motion sensing
        """
        if not available:
            return UnavailableMotionHardware(config)
        return SimulatedMotionHardware(config)

class SimulatedMotionHardware(MotionHardware):
    """
    Scripted motion source.

    Holds a pitch (set in degrees for convenience) and produces acceleration
    consistent with gravity. While shaking, every sample alternates the x axis
    by +/- shake_amplitude g so consecutive samples differ by a large delta.
    """

    def __init__(self, config: MotionConfig, name: Optional[str] = None,
                 noise: float = 0.0, seed: Optional[int] = None):
        super().__init__(config, name or "SimulatedMotionHardware")
        self.pitch_degrees = 0.0
        self.shaking = False
        self.shake_amplitude = 1.5
        self.noise = noise
        self._phase = 1.0
        self._random = random.Random(seed)

    async def _initialize_impl(self) -> None:
        self.logger.info("Simulated motion sensor ready", rate_hz=self.config.sample_rate_hz)

    async def _shutdown_impl(self) -> None:
        self.shaking = False

    def set_pitch(self, degrees: float) -> None:
        self.pitch_degrees = degrees

    def set_shaking(self, shaking: bool, amplitude: Optional[float] = None) -> None:
        self.shaking = shaking
        if amplitude is not None:
            self.shake_amplitude = amplitude

    def read(self) -> Optional[MotionReading]:
        if not self._initialized:
            return None
        pitch = math.radians(self.pitch_degrees)
        # Gravity projected onto the device axes for a pure pitch rotation
        x, y, z = 0.0, -math.sin(pitch), -math.cos(pitch)
        if self.shaking:
            self._phase = -self._phase
            x += self._phase * self.shake_amplitude
        if self.noise:
            x += self._random.gauss(0.0, self.noise)
            y += self._random.gauss(0.0, self.noise)
            z += self._random.gauss(0.0, self.noise)
        return MotionReading(pitch_radians=pitch, acceleration=(x, y, z))

class UnavailableMotionHardware(MotionHardware):
    """
    Motion hardware for a device that has no motion sensor.

    Initialization always fails with SensorUnavailableError.
    """

    async def _initialize_impl(self) -> None:
        raise SensorUnavailableError("Device motion is not available")

    async def _shutdown_impl(self) -> None:
        pass

    def read(self) -> Optional[MotionReading]:
        return None
