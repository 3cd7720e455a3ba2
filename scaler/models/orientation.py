"""
Orientation gate.

Turns pitch samples into a level / not level signal against a configurable
band. The band is inclusive on both ends and has no hysteresis.
"""

import structlog
from typing import Optional
from scaler.core.config import GateConfig
from scaler.core.observable import ObservableModel

def evaluate(pitch_degrees: float, low: float, high: float) -> bool:
    """Return True when pitch lies in [low, high]."""
    return low <= pitch_degrees <= high

class OrientationGate(ObservableModel):
    """
    Stateful wrapper around evaluate().

    Published state:
        current_pitch: last pitch seen, in degrees
        is_level: result for the last pitch against the band at that time

    update() returns True only when is_level flipped, which is what callers
    use to re-evaluate usage accounting.
    """

    def __init__(self, config: Optional[GateConfig] = None):
        super().__init__()
        self.config = config or GateConfig()
        self.logger = structlog.get_logger(component="orientation_gate")
        self.current_pitch = 0.0
        self.is_level = False

    @property
    def band(self):
        return (self.config.pitch_low, self.config.pitch_high)

    def set_pitch_band(self, low: Optional[float] = None, high: Optional[float] = None) -> None:
        """
        Adjust the band at runtime.

        A bound that would cross the other one is clamped onto it. When both
        are given inverted, the high bound is clamped onto the low one.
        """
        new_low = self.config.pitch_low if low is None else low
        new_high = self.config.pitch_high if high is None else high
        if new_low > new_high:
            if high is None:
                self.logger.warning("Pitch band inverted, clamping low bound",
                                    requested=new_low, applied=new_high)
                new_low = new_high
            else:
                self.logger.warning("Pitch band inverted, clamping high bound",
                                    requested=new_high, applied=new_low)
                new_high = new_low
        # Order matters: the config clamps a bound that crosses the other one
        if new_low > self.config.pitch_high:
            self.config.pitch_high = new_high
            self.config.pitch_low = new_low
        else:
            self.config.pitch_low = new_low
            self.config.pitch_high = new_high

    def update(self, pitch_degrees: float) -> bool:
        """
        Evaluate a new pitch sample.

        Args:
            pitch_degrees: Pitch in degrees

        Returns:
            True if the level state changed with this sample
        """
        low, high = self.band
        level = evaluate(pitch_degrees, low, high)
        was_level = self.is_level
        self._commit(current_pitch=pitch_degrees, is_level=level)

        if level != was_level:
            self.logger.info(f"Pitch gate: {'OPEN' if level else 'CLOSED'}",
                             pitch=round(pitch_degrees, 1), low=low, high=high)
            return True
        return False

    def mock_pitch(self, pitch_degrees: float) -> bool:
        """Feed a pitch as if it came from the sensor."""
        return self.update(pitch_degrees)

    def reset(self) -> None:
        self._commit(current_pitch=0.0, is_level=False)
