"""Broadband level meters for a time-domain window."""

from __future__ import annotations

import numpy as np


def _normalized(samples) -> np.ndarray:
    """Float samples in [-1, 1]; byte data centred on 128 is rescaled."""
    arr = np.asarray(samples)
    if arr.dtype == np.uint8:
        return ((arr.astype(np.float64) - 128.0) / 128.0).ravel()
    return arr.astype(np.float64).ravel()


def rms_level(samples) -> float:
    """Root-mean-square amplitude, 0.0 for an empty window."""
    x = _normalized(samples)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x)))


def peak_level(samples) -> float:
    """Largest absolute amplitude, 0.0 for an empty window."""
    x = _normalized(samples)
    if x.size == 0:
        return 0.0
    return float(np.max(np.abs(x)))
