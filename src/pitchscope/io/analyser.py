"""
Analyser-node emulation for driving the core from in-memory audio.

Live playback hands the core a byte magnitude buffer computed by the
transport's analyser.  Offline (CLI, benchmark, tests) nothing provides one,
so :class:`ByteSpectrumAnalyser` reproduces the usual analyser pipeline:
Blackman window, FFT magnitude, exponential smoothing across frames,
decibel conversion, and linear quantisation of a decibel range to 0-255.
"""

from __future__ import annotations

from typing import Optional

import librosa
import numpy as np
from scipy import signal as scipy_signal


class ByteSpectrumAnalyser:
    """
    Produces ``fft_size // 2`` byte magnitudes per time-domain window.

    Args:
        fft_size: Transform size in samples.
        smoothing: Weight of the previous frame in the magnitude average
            (0 disables smoothing).
        min_decibels: Level mapped to byte 0.
        max_decibels: Level mapped to byte 255.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ):
        if fft_size < 2 or fft_size % 2:
            raise ValueError("fft_size must be an even number >= 2")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")

        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._window = scipy_signal.get_window("blackman", fft_size, fftbins=False)
        self._previous: Optional[np.ndarray] = None

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2

    def time_domain(self, samples) -> np.ndarray:
        """The most recent ``fft_size`` samples, zero-padded at the front if short."""
        x = np.asarray(samples, dtype=np.float32).ravel()
        if x.size >= self.fft_size:
            return x[-self.fft_size:].copy()
        out = np.zeros(self.fft_size, dtype=np.float32)
        out[self.fft_size - x.size:] = x
        return out

    def byte_frequency_data(self, samples) -> np.ndarray:
        """
        Byte magnitudes for one window; updates the smoothing state.

        Returns:
            uint8 array of length ``fft_size // 2``.
        """
        x = self.time_domain(samples).astype(np.float64)
        magnitude = np.abs(np.fft.rfft(x * self._window))[: self.n_bins] / self.fft_size

        if self._previous is not None and self.smoothing > 0.0:
            magnitude = self.smoothing * self._previous + (1.0 - self.smoothing) * magnitude
        self._previous = magnitude

        db = librosa.amplitude_to_db(magnitude, ref=1.0, amin=1e-10, top_db=None)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor((db - self.min_decibels) * scale)
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def reset(self) -> None:
        """Drop smoothing state (new source or seek)."""
        self._previous = None
