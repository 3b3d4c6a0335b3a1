"""
Pitchscope per-frame benchmark + parity validation.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default   window sizes 1024/2048/4096, 5 warm-up + 50 timed runs
    --quick   window sizes 1024/2048, 2 warm-up + 10 timed runs (CI-friendly)

Output: timing table against the 60 fps frame budget + parity report.

Parity check: compares the correlation-based YIN difference function against
a direct evaluation of its definition.  The two must agree to within 1e-6
relative to the window energy.
"""

import argparse
import os
import sys
import time
from typing import List

import librosa
import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pitchscope.core.pitch import (
    autocorrelation_pitch,
    difference_function,
    yin_pitch,
)
from pitchscope.core.stream import RealtimeAnalyzer
from pitchscope.io.analyser import ByteSpectrumAnalyser

_SEP = "─" * 72
SR = 44100
FRAME_BUDGET_MS = 1000.0 / 60.0


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 2, runs: int = 5, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float]) -> str:
    arr = np.array(times) * 1000
    status = "OK" if arr.max() < FRAME_BUDGET_MS else "OVER BUDGET"
    return (
        f"mean={arr.mean():.2f} ms  min={arr.min():.2f} ms  max={arr.max():.2f} ms"
        f"  [{status}]"
    )


# ---------------------------------------------------------------------------
# Parity helpers
# ---------------------------------------------------------------------------

def _direct_difference(x: np.ndarray) -> np.ndarray:
    """d[tau] evaluated straight from its definition, one lag at a time."""
    w = len(x) // 2
    out = np.empty(w)
    for tau in range(w):
        delta = x[:w] - x[tau:tau + w]
        out[tau] = np.dot(delta, delta)
    return out


def _parity_report(n: int) -> dict:
    rng = np.random.RandomState(0)
    x = librosa.tone(220.0, sr=SR, length=n) + 0.1 * rng.randn(n)
    fast = difference_function(x)
    direct = _direct_difference(x)
    scale = float(np.dot(x, x)) or 1.0
    rel = np.abs(fast - direct) / scale
    return {"max_rel_diff": float(rel.max()), "mean_rel_diff": float(rel.mean())}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Pitchscope per-frame benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Fewer window sizes and runs for fast CI runs",
    )
    args = parser.parse_args()

    if args.quick:
        sizes = [1024, 2048]
        WARMUP, RUNS = 2, 10
        label = "quick mode"
    else:
        sizes = [1024, 2048, 4096]
        WARMUP, RUNS = 5, 50
        label = "full mode"

    print(f"\nPitchscope Frame Benchmark  ({label})")
    print(f"Sample rate: {SR} Hz  |  Frame budget: {FRAME_BUDGET_MS:.2f} ms")
    print(f"Warm-up runs: {WARMUP}  |  Timed runs: {RUNS}")

    results = {}

    for n in sizes:
        signal = librosa.tone(440.0, sr=SR, length=n).astype(np.float32)

        # --------------------------------------------------------------
        # YIN
        # --------------------------------------------------------------
        _hdr(f"yin_pitch  (window {n})")
        t = _timeit(yin_pitch, signal, SR, warmup=WARMUP, runs=RUNS)
        results[f"yin_pitch_{n}"] = t
        print(f"  {_stats(t)}")
        print(f"  estimate: {yin_pitch(signal, SR):.2f} Hz (440.00 expected)")

        # --------------------------------------------------------------
        # Autocorrelation
        # --------------------------------------------------------------
        _hdr(f"autocorrelation_pitch  (window {n})")
        t = _timeit(autocorrelation_pitch, signal, SR, warmup=WARMUP, runs=RUNS)
        results[f"autocorrelation_pitch_{n}"] = t
        print(f"  {_stats(t)}")

        # --------------------------------------------------------------
        # Full frame
        # --------------------------------------------------------------
        _hdr(f"RealtimeAnalyzer.process_frame  (window {n})")
        analyser = ByteSpectrumAnalyser(fft_size=n)
        spectrum = analyser.byte_frequency_data(signal)
        session = RealtimeAnalyzer(sample_rate=SR, fft_size=n)
        t = _timeit(session.process_frame, signal, spectrum, warmup=WARMUP, runs=RUNS)
        results[f"process_frame_{n}"] = t
        print(f"  {_stats(t)}")

    # ------------------------------------------------------------------
    # Parity validation
    # ------------------------------------------------------------------
    _hdr("Parity validation (correlation vs direct difference function)")
    REL_MAX = 1e-6
    all_ok = True
    for n in (256, 1024):
        r = _parity_report(n)
        ok = r["max_rel_diff"] <= REL_MAX
        all_ok &= ok
        print(
            f"  window {n:<5}  max={r['max_rel_diff']:.2e}  mean={r['mean_rel_diff']:.2e}"
            f"  [{'PASS' if ok else 'FAIL'}]"
        )

    if all_ok:
        print("\n  All parity checks PASSED.")
    else:
        print("\n  !! PARITY FAILURES DETECTED !!")
        sys.exit(1)

    # ------------------------------------------------------------------
    # Summary table
    # ------------------------------------------------------------------
    _hdr("Summary")
    name_w = max(len(name) for name in results) + 2
    print(f"  {'Function':<{name_w}} Time (ms, mean)")
    print(f"  {'-'*name_w} ---------------")
    for name, times in results.items():
        print(f"  {name:<{name_w}} {np.mean(times)*1000:.2f}")

    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()
