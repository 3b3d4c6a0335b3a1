"""
Real-time, frame-by-frame audio analysis.

Architecture Overview
---------------------
::

    Transport / analyser node (external)
        │  time-domain window (fft_size floats)
        │  byte magnitude buffer (fft_size // 2 bins)
        ▼
    RealtimeAnalyzer.process_frame(time_domain, spectrum)
        │
        ├─► pitch.detect_pitch         (YIN or autocorrelation)
        │        └─► notes.frequency_to_note
        ├─► spectral.dominant_frequency / frequency_peaks / spectral_centroid
        ├─► spectral.band_energies
        │        └─► InstrumentEstimator.estimate
        ├─► BeatDetector.detect         (only cross-frame state)
        ├─► levels.rms_level / peak_level
        │
        └─► AnalysisFrame  (returned to the caller for rendering)

Scheduling
----------
The caller drives one ``process_frame`` per display tick (typically 60 Hz)
from a single thread.  Nothing here spawns threads, blocks or performs I/O,
and nothing is cached between frames: every field is re-derived from the
buffers passed in.  Frames must be submitted in playback order.

Failure handling
----------------
Missing or mismatched buffers produce an empty frame ("no data") instead of
an error, and an exception inside the analysis is logged and likewise
turned into an empty frame, so one bad frame never stops the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

from pitchscope.config import AnalysisConfig
from pitchscope.core.beat import BeatDetector, BeatState
from pitchscope.core.instruments import InstrumentEstimator
from pitchscope.core.levels import peak_level, rms_level
from pitchscope.core.notes import NoteInfo, frequency_to_note
from pitchscope.core.pitch import detect_pitch
from pitchscope.core.spectral import (
    BandEnergies,
    FrequencyPeak,
    band_energies,
    dominant_frequency,
    frequency_peaks,
    spectral_centroid,
)

logger = logging.getLogger(__name__)


def _frozen_levels(levels: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(levels))


@dataclass(frozen=True)
class AnalysisFrame:
    """
    Immutable analysis result for one frame.

    Absent detections are ``None``; they are never carried over from a
    previous frame.
    """

    # Timestamp of this snapshot
    frame_index: int = 0
    time_sec: float = 0.0

    # Pitch
    pitch_hz: Optional[float] = None
    note: Optional[NoteInfo] = None

    # Spectrum
    dominant_hz: Optional[float] = None
    peaks: tuple[FrequencyPeak, ...] = ()
    bands: BandEnergies = field(default_factory=BandEnergies.zeros)
    spectral_centroid: float = 0.0

    # Rhythm
    beat: BeatState = field(default_factory=lambda: BeatState(False, 0.0, 0.0))

    # Instrument id -> level [0,1]
    instruments: Mapping[str, float] = field(
        default_factory=lambda: _frozen_levels({})
    )

    # Broadband levels of the time-domain window
    rms: float = 0.0
    peak_level: float = 0.0

    has_data: bool = False

    @property
    def is_beat(self) -> bool:
        return self.beat.is_beat

    @classmethod
    def empty(
        cls,
        frame_index: int = 0,
        time_sec: float = 0.0,
        instrument_ids: tuple[str, ...] = (),
        average_energy: float = 0.0,
    ) -> "AnalysisFrame":
        """A "no data" frame: no pitch, zero energies, no beat, silent instruments."""
        return cls(
            frame_index=frame_index,
            time_sec=time_sec,
            beat=BeatState(False, 0.0, average_energy),
            instruments=_frozen_levels({i: 0.0 for i in instrument_ids}),
        )


def analyze_frame(
    time_domain,
    spectrum,
    sample_rate: float,
    transform_size: int,
    beat_detector: BeatDetector,
    estimator: InstrumentEstimator,
    config: AnalysisConfig,
    frame_index: int = 0,
    time_sec: float = 0.0,
) -> AnalysisFrame:
    """
    Combine every per-frame feature into one :class:`AnalysisFrame`.

    ``beat_detector`` is the only argument mutated: this frame's bass
    energy is appended to its history.
    """
    samples = np.asarray(time_domain, dtype=np.float64).ravel()
    mags = np.asarray(spectrum, dtype=np.float64).ravel()

    if config.pitch_method == "yin":
        pitch = detect_pitch(samples, sample_rate, "yin", threshold=config.yin_threshold)
    else:
        pitch = detect_pitch(
            samples,
            sample_rate,
            "autocorrelation",
            min_freq=config.autocorrelation_min_frequency,
            max_freq=config.autocorrelation_max_frequency,
            min_correlation=config.min_correlation,
        )

    note = frequency_to_note(pitch)
    bands = band_energies(mags, sample_rate, transform_size)
    dominant = dominant_frequency(
        mags,
        sample_rate,
        transform_size,
        min_freq=config.min_frequency,
        max_freq=config.max_frequency,
        threshold=config.amplitude_threshold,
    )
    peaks = frequency_peaks(
        mags,
        sample_rate,
        transform_size,
        num_peaks=config.num_peaks,
        min_freq=config.min_frequency,
        max_freq=config.max_frequency,
        threshold=config.amplitude_threshold,
    )
    centroid = spectral_centroid(mags, sample_rate, transform_size)
    instruments = _frozen_levels(estimator.estimate(bands))
    rms = rms_level(samples)
    peak = peak_level(samples)

    # Last, so a failure above leaves the beat history untouched
    beat = beat_detector.detect(mags)

    return AnalysisFrame(
        frame_index=frame_index,
        time_sec=time_sec,
        pitch_hz=pitch,
        note=note,
        dominant_hz=dominant,
        peaks=tuple(peaks),
        bands=bands,
        spectral_centroid=centroid,
        beat=beat,
        instruments=instruments,
        rms=rms,
        peak_level=peak,
        has_data=True,
    )


class RealtimeAnalyzer:
    """
    One analysis session per playback session.

    Owns the session's single :class:`BeatDetector` (the only mutable state
    of the pipeline) and an :class:`InstrumentEstimator`.

    Parameters
    ----------
    sample_rate:
        Audio sample rate in Hz (default: 44 100).  Fixed for the session.
    fft_size:
        Transform size in samples (default: 2048).  Time-domain windows must
        hold ``fft_size`` samples and magnitude buffers ``fft_size // 2`` bins.
    config:
        Analysis settings (default: :class:`AnalysisConfig`).
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        fft_size: int = 2048,
        config: Optional[AnalysisConfig] = None,
    ):
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if fft_size < 2:
            raise ValueError("fft_size must be at least 2")

        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.config = config or AnalysisConfig()

        self.beat_detector = BeatDetector(
            history_size=self.config.beat_history_size,
            sensitivity=self.config.beat_sensitivity,
            energy_floor=self.config.beat_energy_floor,
            bass_fraction=self.config.bass_fraction,
        )
        self.estimator = InstrumentEstimator(
            ceiling=self.config.instrument_ceiling,
            active_threshold=self.config.instrument_active_threshold,
        )

        self._frame_index: int = 0
        self._position: Optional[float] = None

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2

    @property
    def frame_index(self) -> int:
        """Index the next processed frame will get."""
        return self._frame_index

    def _empty_frame(self, frame_index: int, time_sec: float) -> AnalysisFrame:
        return AnalysisFrame.empty(
            frame_index=frame_index,
            time_sec=time_sec,
            instrument_ids=tuple(self.estimator.instrument_ids),
            average_energy=self.beat_detector.average_energy,
        )

    def process_frame(self, time_domain, spectrum) -> AnalysisFrame:
        """
        Analyse one frame.

        Parameters
        ----------
        time_domain:
            ``fft_size`` float samples in [-1, 1], or None when stopped.
        spectrum:
            ``fft_size // 2`` byte magnitudes for the same audio position,
            or None when stopped.

        Returns
        -------
        AnalysisFrame
            The frame's analysis, or an empty frame if the buffers are
            missing, mismatched, or the analysis failed.
        """
        frame_index = self._frame_index
        self._frame_index += 1
        time_sec = frame_index / self.config.target_fps

        if time_domain is None or spectrum is None:
            return self._empty_frame(frame_index, time_sec)

        n_samples = np.size(time_domain)
        n_bins = np.size(spectrum)
        if n_samples != self.fft_size or n_bins != self.n_bins:
            logger.warning(
                "Frame %d: expected %d samples and %d bins, got %d and %d; skipping",
                frame_index,
                self.fft_size,
                self.n_bins,
                n_samples,
                n_bins,
            )
            return self._empty_frame(frame_index, time_sec)

        try:
            return analyze_frame(
                time_domain,
                spectrum,
                self.sample_rate,
                self.fft_size,
                self.beat_detector,
                self.estimator,
                self.config,
                frame_index=frame_index,
                time_sec=time_sec,
            )
        except Exception:
            logger.exception("Frame %d: analysis failed", frame_index)
            return self._empty_frame(frame_index, time_sec)

    def idle_frame(self) -> AnalysisFrame:
        """Frame to show while playback is stopped; does not advance the counter."""
        return self._empty_frame(self._frame_index, self._frame_index / self.config.target_fps)

    def reset(self) -> None:
        """Clear the beat history after a seek or source change."""
        self.beat_detector.reset()
        logger.debug("Beat history reset at frame %d", self._frame_index)

    def load_source(self) -> None:
        """Start over for a newly loaded track."""
        self.reset()
        self._frame_index = 0
        self._position = None

    def observe_position(
        self,
        position_sec: float,
        elapsed_sec: Optional[float] = None,
    ) -> bool:
        """
        Track the playback position and reset on discontinuities.

        Continuous playback moves the position by ``elapsed_sec`` (default:
        one frame at the target FPS).  A position further than
        ``seek_tolerance_sec`` from that expectation is treated as a seek and
        clears the beat history.

        Returns:
            True if a seek was detected.
        """
        previous = self._position
        self._position = position_sec
        if previous is None:
            return False

        step = elapsed_sec if elapsed_sec is not None else 1.0 / self.config.target_fps
        if abs(position_sec - (previous + step)) > self.config.seek_tolerance_sec:
            logger.info("Seek detected: %.3fs -> %.3fs", previous, position_sec)
            self.reset()
            return True
        return False
