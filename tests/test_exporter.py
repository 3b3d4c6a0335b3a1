"""Tests for the JSON frame manifest."""

import json

import pytest

from conftest import flat_spectrum
from pitchscope.core.notes import frequency_to_note
from pitchscope.core.spectral import BAND_NAMES, FrequencyPeak
from pitchscope.core.stream import AnalysisFrame, RealtimeAnalyzer
from pitchscope.io.exporter import FrameExporter


@pytest.fixture
def frames(silence):
    session = RealtimeAnalyzer()
    out = [session.process_frame(silence, flat_spectrum(20)) for _ in range(10)]
    out.append(session.process_frame(silence, flat_spectrum(80)))
    out.append(session.process_frame(None, None))
    return out


class TestFrameToDict:
    def test_empty_frame_uses_nulls(self):
        data = FrameExporter().frame_to_dict(AnalysisFrame.empty(instrument_ids=("kick",)))

        assert data["has_data"] is False
        assert data["pitch_hz"] is None
        assert data["note"] is None
        assert data["dominant_hz"] is None
        assert data["peaks"] == []
        assert data["is_beat"] is False
        assert data["instruments"] == {"kick": 0.0}
        assert list(data["bands"]) == list(BAND_NAMES)

    def test_note_block(self):
        frame = AnalysisFrame(pitch_hz=440.0, note=frequency_to_note(440.0), has_data=True)
        data = FrameExporter().frame_to_dict(frame)
        assert data["note"] == {"name": "A4", "note": "A", "octave": 4, "cents": 0}

    def test_rounding(self):
        frame = AnalysisFrame(
            time_sec=1 / 3,
            peaks=(FrequencyPeak(frequency=430.6640625, amplitude=200.0),),
        )
        data = FrameExporter(precision=2).frame_to_dict(frame)
        assert data["time"] == 0.33
        assert data["peaks"] == [{"frequency": 430.66, "amplitude": 200.0}]

    def test_non_finite_pitch_is_null(self):
        frame = AnalysisFrame(pitch_hz=float("nan"))
        assert FrameExporter().frame_to_dict(frame)["pitch_hz"] is None


class TestManifest:
    def test_metadata(self, frames):
        manifest = FrameExporter().build_manifest(
            frames, sample_rate=44100, fft_size=2048, fps=60, duration=0.2
        )
        meta = manifest["metadata"]

        assert meta["schema_version"] == "1.0"
        assert meta["n_frames"] == 12
        assert meta["n_beats"] == 1
        assert meta["sample_rate"] == 44100
        assert len(manifest["frames"]) == 12

    def test_frames_in_order(self, frames):
        manifest = FrameExporter().build_manifest(frames, 44100, 2048, 60, 0.2)
        assert [f["frame_index"] for f in manifest["frames"]] == list(range(12))
        assert manifest["frames"][10]["is_beat"] is True

    def test_export_json(self, frames, tmp_path):
        path = FrameExporter().export_json(
            frames, 44100, 2048, 60, 0.2, output_path=tmp_path / "out.json"
        )

        with open(path, "r", encoding="utf-8") as f:
            loaded = json.load(f)

        assert loaded["metadata"]["n_frames"] == 12
        assert loaded["frames"][-1]["has_data"] is False
