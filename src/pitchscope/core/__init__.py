"""Core per-frame analysis modules."""

from pitchscope.core.beat import BeatDetector, BeatState
from pitchscope.core.instruments import InstrumentEstimator, InstrumentSignature
from pitchscope.core.notes import NoteInfo, frequency_to_note, note_to_frequency
from pitchscope.core.pitch import autocorrelation_pitch, detect_pitch, yin_pitch
from pitchscope.core.spectral import (
    FREQUENCY_BANDS,
    BandEnergies,
    FrequencyBand,
    FrequencyPeak,
)
from pitchscope.core.stream import AnalysisFrame, RealtimeAnalyzer

__all__ = [
    "AnalysisFrame",
    "BandEnergies",
    "BeatDetector",
    "BeatState",
    "FREQUENCY_BANDS",
    "FrequencyBand",
    "FrequencyPeak",
    "InstrumentEstimator",
    "InstrumentSignature",
    "NoteInfo",
    "RealtimeAnalyzer",
    "autocorrelation_pitch",
    "detect_pitch",
    "frequency_to_note",
    "note_to_frequency",
    "yin_pitch",
]
