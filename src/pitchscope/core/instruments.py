"""
Instrument presence estimation from band energies.

Each catalog entry names the bands an instrument mostly lives in; its level
is the mean of those band energies scaled against an empirical ceiling.
This is a coarse frequency-signature heuristic, not source separation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Optional, Sequence

from pitchscope.config import AnalysisConfig
from pitchscope.core.spectral import BAND_NAMES, BandEnergies, band_energies

# Typical peak band energy of a loud mix; levels saturate at 1.0 above it.
DEFAULT_CEILING = AnalysisConfig.instrument_ceiling
DEFAULT_ACTIVE_THRESHOLD = AnalysisConfig.instrument_active_threshold


@dataclass(frozen=True)
class InstrumentSignature:
    """An instrument tag and the bands that characterise it."""

    id: str
    name: str
    bands: tuple[str, ...]
    description: str = ""


@lru_cache(maxsize=1)
def load_instrument_catalog() -> tuple[InstrumentSignature, ...]:
    """Load the packaged instrument catalog."""
    with resources.files("pitchscope.core").joinpath("instruments.json").open(
        "r", encoding="utf-8"
    ) as f:
        data = json.load(f)

    return tuple(
        InstrumentSignature(
            id=entry["id"],
            name=entry.get("name", entry["id"]),
            bands=tuple(entry["bands"]),
            description=entry.get("description", ""),
        )
        for entry in data["instruments"]
    )


class InstrumentEstimator:
    """
    Turns per-band energies into a 0-1 level per instrument.

    Args:
        catalog: Instrument signatures (default: the packaged catalog).
        ceiling: Energy that maps to level 1.0.
        active_threshold: Level above which an instrument counts as playing.

    Raises:
        ValueError: If a signature has no bands or names an unknown band.
    """

    def __init__(
        self,
        catalog: Optional[Sequence[InstrumentSignature]] = None,
        ceiling: float = DEFAULT_CEILING,
        active_threshold: float = DEFAULT_ACTIVE_THRESHOLD,
    ):
        if ceiling <= 0:
            raise ValueError("ceiling must be positive")

        self.catalog = tuple(catalog) if catalog is not None else load_instrument_catalog()
        self.ceiling = ceiling
        self.active_threshold = active_threshold

        for signature in self.catalog:
            if not signature.bands:
                raise ValueError(f"Instrument {signature.id!r} has no bands")
            unknown = set(signature.bands) - set(BAND_NAMES)
            if unknown:
                raise ValueError(
                    f"Instrument {signature.id!r} uses unknown bands: {sorted(unknown)}"
                )

    @property
    def instrument_ids(self) -> list[str]:
        return [signature.id for signature in self.catalog]

    def estimate(self, energies: Optional[BandEnergies]) -> dict[str, float]:
        """
        Level per instrument id, in catalog order.

        ``None`` (no spectrum, e.g. playback stopped) yields all zeros.
        """
        if energies is None:
            return {signature.id: 0.0 for signature in self.catalog}

        levels: dict[str, float] = {}
        for signature in self.catalog:
            mean_energy = sum(energies[band] for band in signature.bands) / len(signature.bands)
            levels[signature.id] = min(1.0, mean_energy / self.ceiling)
        return levels

    def estimate_spectrum(
        self,
        spectrum,
        sample_rate: float,
        transform_size: int,
    ) -> dict[str, float]:
        """Band-aggregate ``spectrum`` and estimate levels from it."""
        if spectrum is None:
            return self.estimate(None)
        return self.estimate(band_energies(spectrum, sample_rate, transform_size))

    def active(self, levels: dict[str, float]) -> list[str]:
        """Ids whose level exceeds the active threshold, in catalog order."""
        return [
            signature.id
            for signature in self.catalog
            if levels.get(signature.id, 0.0) > self.active_threshold
        ]

