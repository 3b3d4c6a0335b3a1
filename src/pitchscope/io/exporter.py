"""
Frame serialization module.

Exports analysis frames to a JSON manifest for offline inspection and for
renderers that replay an analysed track.
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from pitchscope.core.stream import AnalysisFrame


@dataclass
class ManifestMetadata:
    """Metadata header for the analysis manifest."""

    sample_rate: int
    fft_size: int
    fps: int
    duration: float
    n_frames: int
    n_beats: int
    schema_version: str = "1.0"


class FrameExporter:
    """
    Exports analysis frames to JSON.

    Absent values (no pitch, no note, no dominant frequency) are written as
    ``null`` rather than a placeholder number.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _optional(self, value: Optional[float]) -> Optional[float]:
        if value is None or not math.isfinite(value):
            return None
        return self._round(value)

    def frame_to_dict(self, frame: AnalysisFrame) -> dict[str, Any]:
        """
        Build a single frame's data dictionary.

        Args:
            frame: Analysis frame.

        Returns:
            JSON-ready dictionary.
        """
        note = None
        if frame.note is not None:
            note = {
                "name": frame.note.name,
                "note": frame.note.note,
                "octave": frame.note.octave,
                "cents": frame.note.cents,
            }

        return {
            "frame_index": frame.frame_index,
            "time": self._round(frame.time_sec),
            "has_data": frame.has_data,

            # Pitch
            "pitch_hz": self._optional(frame.pitch_hz),
            "note": note,

            # Spectrum
            "dominant_hz": self._optional(frame.dominant_hz),
            "peaks": [
                {"frequency": self._round(p.frequency), "amplitude": self._round(p.amplitude)}
                for p in frame.peaks
            ],
            "spectral_centroid": self._round(frame.spectral_centroid),
            "bands": {name: self._round(v) for name, v in frame.bands.to_dict().items()},

            # Rhythm
            "is_beat": frame.beat.is_beat,
            "beat_energy": self._round(frame.beat.energy),
            "beat_average_energy": self._round(frame.beat.average_energy),

            "instruments": {name: self._round(v) for name, v in frame.instruments.items()},

            "rms": self._round(frame.rms),
            "peak_level": self._round(frame.peak_level),
        }

    def build_manifest(
        self,
        frames: Sequence[AnalysisFrame],
        sample_rate: int,
        fft_size: int,
        fps: int,
        duration: float,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            frames: Frames in playback order.
            sample_rate: Sample rate the frames were analysed at.
            fft_size: Transform size.
            fps: Frame rate.
            duration: Analysed audio duration in seconds.

        Returns:
            Manifest dictionary ready for serialization.
        """
        metadata = ManifestMetadata(
            sample_rate=sample_rate,
            fft_size=fft_size,
            fps=fps,
            duration=self._round(duration),
            n_frames=len(frames),
            n_beats=sum(1 for f in frames if f.beat.is_beat),
        )

        return {
            "metadata": {
                "sample_rate": metadata.sample_rate,
                "fft_size": metadata.fft_size,
                "fps": metadata.fps,
                "duration": metadata.duration,
                "n_frames": metadata.n_frames,
                "n_beats": metadata.n_beats,
                "schema_version": metadata.schema_version,
            },
            "frames": [self.frame_to_dict(f) for f in frames],
        }

    def export_json(
        self,
        frames: Sequence[AnalysisFrame],
        sample_rate: int,
        fft_size: int,
        fps: int,
        duration: float,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export the manifest to a JSON file.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(frames, sample_rate, fft_size, fps, duration)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path
