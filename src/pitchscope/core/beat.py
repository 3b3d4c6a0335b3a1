"""
Energy-history beat detection.

Each frame the RMS magnitude of the lowest bins is compared against the
average of the last ~second of frames; a jump well above that average is a
beat.  The rolling history belongs to one :class:`BeatDetector` per playback
session and must be reset whenever playback jumps (seek, new track).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

import numpy as np

from pitchscope.config import AnalysisConfig
from pitchscope.core.spectral import as_spectrum

# Dataclass defaults double as class attributes
DEFAULT_HISTORY_SIZE = AnalysisConfig.beat_history_size


@dataclass(frozen=True)
class BeatState:
    """Beat decision for one frame and the energies it was based on."""

    is_beat: bool
    energy: float
    average_energy: float


def bass_energy(spectrum, bass_fraction: float = AnalysisConfig.bass_fraction) -> float:
    """
    RMS magnitude of the bottom ``bass_fraction`` of the bins.

    Returns 0.0 when that range holds no bins.
    """
    mags = as_spectrum(spectrum)
    n = int(np.floor(len(mags) * bass_fraction))
    if n <= 0:
        return 0.0
    low = mags[:n]
    return float(np.sqrt(np.mean(low * low)))


class BeatDetector:
    """
    Detects beats as spikes of low-frequency energy over its recent average.

    Args:
        history_size: Number of recent frames averaged (default: 43).
        sensitivity: Ratio over the average that counts as a spike.
        energy_floor: Absolute energy a beat must exceed, so near-silence
            cannot trigger on small relative jumps.
        bass_fraction: Share of the lowest bins treated as the bass region.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        sensitivity: float = AnalysisConfig.beat_sensitivity,
        energy_floor: float = AnalysisConfig.beat_energy_floor,
        bass_fraction: float = AnalysisConfig.bass_fraction,
    ):
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self.sensitivity = sensitivity
        self.energy_floor = energy_floor
        self.bass_fraction = bass_fraction
        self._history: deque[float] = deque(maxlen=history_size)

    @property
    def history_size(self) -> int:
        return self._history.maxlen

    @property
    def history(self) -> tuple[float, ...]:
        """Recorded energies, oldest first."""
        return tuple(self._history)

    @property
    def average_energy(self) -> float:
        if not self._history:
            return 0.0
        return float(sum(self._history) / len(self._history))

    def detect(self, spectrum) -> BeatState:
        """
        Record this frame's bass energy and decide whether it is a beat.

        Frames must arrive in playback order; the average is order-sensitive.
        A buffer too short to have a bass range is reported as a non-beat and
        leaves the history untouched.
        """
        mags = as_spectrum(spectrum)
        if int(np.floor(len(mags) * self.bass_fraction)) <= 0:
            return BeatState(False, 0.0, self.average_energy)

        energy = bass_energy(mags, self.bass_fraction)
        self._history.append(energy)
        average = self.average_energy

        is_beat = energy > average * self.sensitivity and energy > self.energy_floor
        return BeatState(is_beat=bool(is_beat), energy=energy, average_energy=average)

    def reset(self) -> None:
        """Forget all recorded energies."""
        self._history.clear()
