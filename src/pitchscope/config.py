"""
Analysis configuration.

Every tunable of the per-frame pipeline lives on :class:`AnalysisConfig`.
Defaults reproduce the calibrated behaviour; the instrument ceiling and the
beat energy floor in particular are empirical and should only change with
evidence from real material.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)

_INT_FIELDS = frozenset({"num_peaks", "beat_history_size", "target_fps"})


@dataclass(frozen=True)
class AnalysisConfig:
    """Per-session analysis settings (immutable)."""

    # Pitch
    pitch_method: str = "yin"
    yin_threshold: float = 0.1
    autocorrelation_min_frequency: float = 80.0
    autocorrelation_max_frequency: float = 1000.0
    min_correlation: float = 0.01

    # Spectral peak picking
    min_frequency: float = 80.0
    max_frequency: float = 4000.0
    amplitude_threshold: float = 100.0
    num_peaks: int = 5

    # Beat detection
    beat_history_size: int = 43  # ~1 second at 60 fps
    beat_sensitivity: float = 1.3
    beat_energy_floor: float = 50.0
    bass_fraction: float = 0.1

    # Instrument estimation
    instrument_ceiling: float = 180.0
    instrument_active_threshold: float = 0.15

    # Session
    seek_tolerance_sec: float = 0.5
    target_fps: int = 60

    def __post_init__(self):
        from pitchscope.core.pitch import PITCH_METHODS

        # Values from JSON arrive untyped; bool is excluded since it passes as int
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _INT_FIELDS:
                expected = (int,)
            elif f.name == "pitch_method":
                expected = (str,)
            else:
                expected = (int, float)
            if isinstance(value, bool) or not isinstance(value, expected):
                raise ValueError(
                    f"{f.name} must be of type {' or '.join(t.__name__ for t in expected)}, "
                    f"got {type(value).__name__}"
                )

        if self.pitch_method not in PITCH_METHODS:
            raise ValueError(
                f"pitch_method must be one of {PITCH_METHODS}, got {self.pitch_method!r}"
            )
        if not 0.0 < self.yin_threshold < 1.0:
            raise ValueError("yin_threshold must be in (0, 1)")
        if not 0.0 < self.min_frequency < self.max_frequency:
            raise ValueError("min_frequency must be positive and below max_frequency")
        if not 0.0 < self.autocorrelation_min_frequency < self.autocorrelation_max_frequency:
            raise ValueError(
                "autocorrelation_min_frequency must be positive and below "
                "autocorrelation_max_frequency"
            )
        if self.num_peaks < 1:
            raise ValueError("num_peaks must be at least 1")
        if self.beat_history_size < 1:
            raise ValueError("beat_history_size must be at least 1")
        if not 0.0 < self.bass_fraction <= 1.0:
            raise ValueError("bass_fraction must be in (0, 1]")
        if self.instrument_ceiling <= 0:
            raise ValueError("instrument_ceiling must be positive")
        if self.seek_tolerance_sec <= 0:
            raise ValueError("seek_tolerance_sec must be positive")
        if self.target_fps < 1:
            raise ValueError("target_fps must be at least 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Union[str, Path]) -> AnalysisConfig:
    """
    Load an :class:`AnalysisConfig` from a JSON object file.

    Raises:
        ValueError: If the file does not hold a JSON object or a value is invalid.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    config = AnalysisConfig.from_dict(data)
    logger.debug("Loaded analysis config from %s", path)
    return config
