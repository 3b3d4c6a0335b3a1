"""Real-time pitch, spectrum and beat analysis for live audio."""

from pitchscope.config import AnalysisConfig
from pitchscope.core.beat import BeatDetector
from pitchscope.core.instruments import InstrumentEstimator
from pitchscope.core.stream import AnalysisFrame, RealtimeAnalyzer
from pitchscope.io.exporter import FrameExporter

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "AnalysisFrame",
    "BeatDetector",
    "FrameExporter",
    "InstrumentEstimator",
    "RealtimeAnalyzer",
]
