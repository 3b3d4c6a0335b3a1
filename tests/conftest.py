"""Shared fixtures: synthetic windows and magnitude buffers."""

import numpy as np
import pytest

SR = 44100
FFT_SIZE = 2048


def sine_window(frequency: float, n: int = FFT_SIZE, sr: int = SR, amplitude: float = 0.8):
    """``n`` samples of a sine at ``frequency``."""
    t = np.arange(n) / sr
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


def flat_spectrum(value: float, n_bins: int = FFT_SIZE // 2) -> np.ndarray:
    """Byte magnitude buffer with every bin at ``value``."""
    return np.full(n_bins, value, dtype=np.uint8)


@pytest.fixture
def sr():
    return SR


@pytest.fixture
def fft_size():
    return FFT_SIZE


@pytest.fixture
def sine_440():
    return sine_window(440.0)


@pytest.fixture
def silence():
    return np.zeros(FFT_SIZE, dtype=np.float32)


@pytest.fixture
def empty_spectrum():
    return flat_spectrum(0)
