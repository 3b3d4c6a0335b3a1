"""
Frequency-domain feature extraction over a single magnitude buffer.

The buffer is what an analyser node hands over once per frame: one
byte-quantised magnitude (0-255) per FFT bin, ``fft_size // 2`` bins long.
Everything here is a pure function of that buffer plus the sample rate and
transform size it was produced with.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class FrequencyBand:
    """A named frequency range in Hz, ``min_hz`` inclusive, ``max_hz`` exclusive."""

    name: str
    min_hz: float
    max_hz: float


# 7-band subdivision, ordered by frequency
FREQUENCY_BANDS: tuple[FrequencyBand, ...] = (
    FrequencyBand("sub_bass", 20.0, 60.0),
    FrequencyBand("bass", 60.0, 250.0),
    FrequencyBand("low_mid", 250.0, 500.0),
    FrequencyBand("mid", 500.0, 2000.0),
    FrequencyBand("high_mid", 2000.0, 4000.0),
    FrequencyBand("presence", 4000.0, 6000.0),
    FrequencyBand("brilliance", 6000.0, 20000.0),
)

BAND_NAMES: tuple[str, ...] = tuple(band.name for band in FREQUENCY_BANDS)


@dataclass(frozen=True)
class BandEnergies:
    """Average magnitude per frequency band for one frame."""

    sub_bass: float = 0.0    # 20-60Hz
    bass: float = 0.0        # 60-250Hz
    low_mid: float = 0.0     # 250-500Hz
    mid: float = 0.0         # 500-2000Hz
    high_mid: float = 0.0    # 2000-4000Hz
    presence: float = 0.0    # 4000-6000Hz
    brilliance: float = 0.0  # 6000-20000Hz

    def __getitem__(self, name: str) -> float:
        if name not in BAND_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> dict[str, float]:
        """Band name -> energy, in catalog order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def zeros(cls) -> "BandEnergies":
        return cls()


@dataclass(frozen=True)
class FrequencyPeak:
    """A local maximum of the magnitude buffer."""

    frequency: float
    amplitude: float


def as_spectrum(spectrum) -> np.ndarray:
    """
    Return the magnitude buffer as a flat float64 array.

    Byte buffers are widened first so comparisons and squares never wrap.
    """
    if spectrum is None:
        return np.zeros(0, dtype=np.float64)
    return np.asarray(spectrum, dtype=np.float64).ravel()


def bin_to_frequency(bin_index, sample_rate: float, transform_size: int):
    """Centre frequency of an FFT bin (scalar or array of bins)."""
    return bin_index * sample_rate / transform_size


def frequency_to_bin(frequency: float, sample_rate: float, transform_size: int) -> int:
    """
    Nearest FFT bin for a frequency.

    Halves round up, not to even, so band edges land on the same bins
    regardless of parity.
    """
    return int(np.floor(frequency * transform_size / sample_rate + 0.5))


def _scan_range(
    n_bins: int,
    sample_rate: float,
    transform_size: int,
    min_freq: float,
    max_freq: float,
) -> tuple[int, int]:
    """Bin range ``[lo, hi)`` for a frequency range, clipped to the buffer."""
    lo = max(frequency_to_bin(min_freq, sample_rate, transform_size), 0)
    hi = min(frequency_to_bin(max_freq, sample_rate, transform_size), n_bins)
    return lo, hi


def dominant_frequency(
    spectrum,
    sample_rate: float,
    transform_size: int,
    min_freq: float = 80.0,
    max_freq: float = 4000.0,
    threshold: float = 100.0,
) -> Optional[float]:
    """
    Frequency of the loudest bin in ``[min_freq, max_freq)``.

    Args:
        spectrum: Byte magnitude buffer.
        sample_rate: Sample rate in Hz.
        transform_size: FFT size the buffer was produced with.
        min_freq: Lower edge of the scan range in Hz.
        max_freq: Upper edge (exclusive) of the scan range in Hz.
        threshold: Minimum magnitude for the peak to count as a pitch.

    Returns:
        Frequency in Hz, or None if the range is empty or too quiet.
    """
    mags = as_spectrum(spectrum)
    lo, hi = _scan_range(len(mags), sample_rate, transform_size, min_freq, max_freq)
    if hi <= lo:
        return None

    window = mags[lo:hi]
    # argmax returns the first bin among equal maxima
    idx = int(np.argmax(window))
    if window[idx] < threshold:
        return None

    return float(bin_to_frequency(lo + idx, sample_rate, transform_size))


def frequency_peaks(
    spectrum,
    sample_rate: float,
    transform_size: int,
    num_peaks: int = 5,
    min_freq: float = 80.0,
    max_freq: float = 4000.0,
    threshold: float = 100.0,
) -> list[FrequencyPeak]:
    """
    Strongest local maxima inside ``[min_freq, max_freq)``.

    A bin is a peak when it is strictly louder than both neighbours and
    than ``threshold``.  Only bins strictly inside the scan range are
    candidates, so both neighbours always belong to the range.

    Peaks are ordered by descending amplitude; equal amplitudes keep
    ascending-frequency order (stable sort).  At most ``num_peaks`` are
    returned.
    """
    mags = as_spectrum(spectrum)
    lo = frequency_to_bin(min_freq, sample_rate, transform_size)
    hi = frequency_to_bin(max_freq, sample_rate, transform_size)

    start = max(lo + 1, 1)
    stop = min(hi - 1, len(mags) - 1)
    if stop <= start or num_peaks <= 0:
        return []

    centre = mags[start:stop]
    is_peak = (
        (centre > mags[start - 1:stop - 1])
        & (centre > mags[start + 1:stop + 1])
        & (centre > threshold)
    )
    peak_bins = np.nonzero(is_peak)[0] + start
    if peak_bins.size == 0:
        return []

    amplitudes = mags[peak_bins]
    order = np.argsort(-amplitudes, kind="stable")[:num_peaks]

    return [
        FrequencyPeak(
            frequency=float(bin_to_frequency(int(peak_bins[i]), sample_rate, transform_size)),
            amplitude=float(amplitudes[i]),
        )
        for i in order
    ]


def spectral_centroid(spectrum, sample_rate: float, transform_size: int) -> float:
    """
    Magnitude-weighted mean frequency over the whole buffer.

    Returns 0.0 for an empty or silent buffer.
    """
    mags = as_spectrum(spectrum)
    total = float(mags.sum())
    if total <= 0.0:
        return 0.0

    freqs = bin_to_frequency(np.arange(len(mags)), sample_rate, transform_size)
    return float(np.dot(freqs, mags) / total)


def band_energies(spectrum, sample_rate: float, transform_size: int) -> BandEnergies:
    """
    Average magnitude of the bins falling in each of the seven bands.

    Bands that fall outside the buffer (e.g. brilliance at low sample
    rates) or contain no bins report 0.0.
    """
    mags = as_spectrum(spectrum)
    values: dict[str, float] = {}

    for band in FREQUENCY_BANDS:
        lo, hi = _scan_range(len(mags), sample_rate, transform_size, band.min_hz, band.max_hz)
        values[band.name] = float(mags[lo:hi].mean()) if hi > lo else 0.0

    return BandEnergies(**values)


def band_for_frequency(frequency: float) -> Optional[FrequencyBand]:
    """The band containing ``frequency``, or None outside 20 Hz - 20 kHz."""
    for band in FREQUENCY_BANDS:
        if band.min_hz <= frequency < band.max_hz:
            return band
    return None
