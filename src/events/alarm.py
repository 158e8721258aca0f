import logging
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


class AlarmError(Exception):
    """Siren could not be sounded."""


class AlarmCapability(Protocol):
    def sound(self) -> None: ...


def siren_waveform(
    sample_rate: int = 44100,
    cycle_sec: float = 1.0,
    low_hz: float = 600.0,
    high_hz: float = 1400.0,
    repeats: int = 3,
) -> np.ndarray:
    """Rising/falling sweep at full amplitude, `repeats` cycles long."""
    n = int(sample_rate * cycle_sec)
    t = np.arange(n) / sample_rate
    # triangle sweep between low_hz and high_hz
    sweep = low_hz + (high_hz - low_hz) * (1 - np.abs(2 * t / cycle_sec - 1))
    phase = 2 * np.pi * np.cumsum(sweep) / sample_rate
    cycle = np.sin(phase).astype(np.float32)
    return np.tile(cycle, repeats)


class SirenAlarm(AlarmCapability):
    """Plays a loud siren on the default output device without blocking."""

    def __init__(self, sample_rate: int = 44100, repeats: int = 3, enabled: bool = True):
        self.sample_rate = sample_rate
        self.repeats = repeats
        self.enabled = enabled
        self._waveform = siren_waveform(sample_rate=sample_rate, repeats=repeats)

    def sound(self) -> None:
        if not self.enabled:
            logger.warning("Siren disabled, not sounding")
            return

        try:
            import sounddevice as sd

            sd.play(self._waveform, self.sample_rate)
        except Exception as e:
            raise AlarmError(f"Failed to sound siren: {e}") from e

        logger.warning("Siren sounding")

    def stop(self) -> None:
        try:
            import sounddevice as sd

            sd.stop()
        except Exception as e:
            logger.error(f"Failed to stop siren: {e}")
