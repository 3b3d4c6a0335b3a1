"""
Monophonic pitch estimation over a single time-domain window.

Two strategies are provided:

* :func:`yin_pitch`: the YIN estimator (de Cheveigné & Kawahara, 2002):
  cumulative-mean-normalised difference function, absolute threshold,
  parabolic refinement of the lag.  Precise, used by default.
* :func:`autocorrelation_pitch`: picks the lag of maximum normalised
  autocorrelation inside a frequency range.  Coarser (integer lags only) but
  tolerant of noise; an alternative strategy, not a second YIN pass.

Both return ``None`` when no pitch can be claimed.  A silent or noisy window
never yields 0 Hz, NaN, or a default frequency.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy import signal as scipy_signal

PITCH_METHODS = ("yin", "autocorrelation")


def _as_window(samples) -> np.ndarray:
    return np.asarray(samples, dtype=np.float64).ravel()


# ---------------------------------------------------------------------------
# YIN
# ---------------------------------------------------------------------------

def difference_function(samples) -> np.ndarray:
    """
    YIN difference function over half the window.

    ``d[tau] = sum_{i < W} (x[i] - x[i + tau])**2`` for ``tau`` in ``[0, W)``
    with ``W = len(x) // 2``.

    Expanded as ``e0 + e_tau - 2 * r(tau)``: the two energy terms come from a
    cumulative sum of squares and the cross term from a single correlation,
    which keeps a 4096-sample window well inside a 60 fps frame budget.
    """
    x = _as_window(samples)
    w = len(x) // 2
    if w == 0:
        return np.zeros(0, dtype=np.float64)

    energy = np.concatenate(([0.0], np.cumsum(x * x)))
    e0 = energy[w]
    e_tau = energy[w:2 * w] - energy[0:w]

    # cross[tau] = sum_{i < W} x[i] * x[i + tau]
    cross = scipy_signal.correlate(x[:2 * w - 1], x[:w], mode="valid")

    diff = e0 + e_tau - 2.0 * cross
    diff[0] = 0.0
    # Rounding residue from the correlation can dip just below zero
    return np.maximum(diff, 0.0)


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """
    YIN step 2: ``d'[0] = 1``, ``d'[tau] = d[tau] * tau / sum(d[1:tau + 1])``.

    Where the running sum is still zero (a silent prefix) the value is 1,
    so silence can never fall under the threshold.
    """
    cmnd = np.ones_like(diff, dtype=np.float64)
    if len(diff) < 2:
        return cmnd

    running = np.cumsum(diff[1:])
    taus = np.arange(1, len(diff), dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        cmnd[1:] = np.where(running > 0.0, diff[1:] * taus / running, 1.0)
    return cmnd


def parabolic_interpolation(values: np.ndarray, index: int) -> float:
    """
    Refine an integer minimum to a fractional position.

    Fits a parabola through ``index`` and its neighbours.  At either end of
    the array only one neighbour exists, so the lower of the two points is
    returned instead.
    """
    x0 = index - 1 if index > 0 else index
    x2 = index + 1 if index + 1 < len(values) else index

    if x0 == index:
        return float(index if values[index] <= values[x2] else x2)
    if x2 == index:
        return float(index if values[index] <= values[x0] else x0)

    s0, s1, s2 = values[x0], values[index], values[x2]
    denom = 2.0 * (2.0 * s1 - s2 - s0)
    if denom == 0.0:
        return float(index)
    return index + (s2 - s0) / denom


def yin_pitch(
    samples,
    sample_rate: float,
    threshold: float = 0.1,
) -> Optional[float]:
    """
    Estimate the fundamental frequency with the YIN algorithm.

    Args:
        samples: Time-domain window, values roughly in [-1, 1].
        sample_rate: Sample rate in Hz.
        threshold: Absolute threshold on the normalised difference.
            Lower values are stricter.

    Returns:
        Frequency in Hz, or None if no lag falls under the threshold.
    """
    x = _as_window(samples)
    if x.size == 0 or sample_rate <= 0 or not np.all(np.isfinite(x)):
        return None

    cmnd = cumulative_mean_normalized_difference(difference_function(x))

    # Absolute threshold, searched from tau = 2
    below = np.flatnonzero(cmnd[2:] < threshold)
    if below.size == 0:
        return None
    tau = int(below[0]) + 2

    # Walk down to the bottom of this dip
    while tau + 1 < len(cmnd) and cmnd[tau + 1] < cmnd[tau]:
        tau += 1

    refined = parabolic_interpolation(cmnd, tau)
    if not np.isfinite(refined) or refined <= 0.0:
        return None

    return float(sample_rate / refined)


# ---------------------------------------------------------------------------
# Autocorrelation
# ---------------------------------------------------------------------------

def autocorrelation_pitch(
    samples,
    sample_rate: float,
    min_freq: float = 80.0,
    max_freq: float = 1000.0,
    min_correlation: float = 0.01,
) -> Optional[float]:
    """
    Estimate the fundamental frequency by maximising autocorrelation.

    Lags from ``sample_rate // max_freq`` to ``sample_rate // min_freq`` are
    scored with ``sum(x[i] * x[i + lag]) / (N - lag)``; only lags shorter
    than half the window are considered.  The first lag reaching the best
    score wins.

    Returns:
        Frequency in Hz, or None when no lag is valid or the best score is
        below ``min_correlation``.
    """
    x = _as_window(samples)
    n = x.size
    if n == 0 or sample_rate <= 0 or min_freq <= 0 or max_freq <= 0:
        return None
    if not np.all(np.isfinite(x)):
        return None

    min_lag = max(int(sample_rate // max_freq), 1)
    max_lag = min(int(sample_rate // min_freq), (n - 1) // 2)
    if max_lag < min_lag:
        return None

    lags = np.arange(min_lag, max_lag + 1)
    # full[n - 1 + lag] = sum_i x[i] * x[i + lag]
    full = scipy_signal.correlate(x, x, mode="full")
    scores = full[n - 1 + lags] / (n - lags)

    best = int(np.argmax(scores))
    if scores[best] < min_correlation:
        return None

    return float(sample_rate / lags[best])


def detect_pitch(
    samples,
    sample_rate: float,
    method: str = "yin",
    **kwargs,
) -> Optional[float]:
    """
    Dispatch to one of :data:`PITCH_METHODS`.

    Extra keyword arguments go to the chosen estimator.

    Raises:
        ValueError: If ``method`` is unknown.
    """
    if method == "yin":
        return yin_pitch(samples, sample_rate, **kwargs)
    if method == "autocorrelation":
        return autocorrelation_pitch(samples, sample_rate, **kwargs)
    raise ValueError(
        f"Unknown pitch method {method!r}; expected one of {', '.join(PITCH_METHODS)}"
    )
