"""Tests for energy-history beat detection."""

import numpy as np
import pytest

from conftest import flat_spectrum
from pitchscope.config import AnalysisConfig
from pitchscope.core.beat import BeatDetector, bass_energy


class TestBassEnergy:
    def test_flat_spectrum(self):
        assert bass_energy(flat_spectrum(80)) == pytest.approx(80.0)

    def test_bytes_do_not_overflow(self):
        assert bass_energy(flat_spectrum(255)) == pytest.approx(255.0)

    def test_only_low_bins_count(self):
        mags = np.zeros(1024, dtype=np.uint8)
        mags[500:] = 255
        assert bass_energy(mags) == 0.0

    def test_empty(self):
        assert bass_energy(np.zeros(0)) == 0.0
        assert bass_energy(np.zeros(5)) == 0.0


class TestBeatDetector:
    def test_first_frame_is_its_own_average(self):
        state = BeatDetector().detect(flat_spectrum(120))
        assert state.energy == pytest.approx(120.0)
        assert state.average_energy == pytest.approx(120.0)
        assert not state.is_beat

    def test_spike_over_quiet_history(self):
        detector = BeatDetector()
        for _ in range(10):
            assert not detector.detect(flat_spectrum(20)).is_beat

        state = detector.detect(flat_spectrum(80))
        assert state.is_beat
        assert state.average_energy == pytest.approx((10 * 20 + 80) / 11)

    def test_steady_energy_is_not_a_beat(self):
        detector = BeatDetector()
        states = [detector.detect(flat_spectrum(100)) for _ in range(60)]
        assert not any(s.is_beat for s in states)

    def test_energy_floor(self):
        detector = BeatDetector()
        for _ in range(10):
            detector.detect(flat_spectrum(10))
        # Four times the average, but below the absolute floor
        assert not detector.detect(flat_spectrum(40)).is_beat

    def test_history_is_capped(self):
        detector = BeatDetector(history_size=43)
        for i in range(60):
            detector.detect(flat_spectrum(i))
        assert len(detector.history) == 43
        assert detector.history[0] == pytest.approx(17.0)
        assert detector.history[-1] == pytest.approx(59.0)

    def test_short_buffer_leaves_history_alone(self):
        detector = BeatDetector()
        detector.detect(flat_spectrum(60))
        state = detector.detect(np.zeros(5))

        assert not state.is_beat
        assert state.energy == 0.0
        assert state.average_energy == pytest.approx(60.0)
        assert detector.history == (60.0,)

    def test_reset(self):
        detector = BeatDetector()
        for _ in range(10):
            detector.detect(flat_spectrum(200))
        detector.reset()

        assert detector.history == ()
        assert detector.average_energy == 0.0
        state = detector.detect(flat_spectrum(30))
        assert state.average_energy == pytest.approx(30.0)

    def test_sensitivity(self):
        lenient = BeatDetector(sensitivity=1.1)
        strict = BeatDetector(sensitivity=2.0)
        for detector in (lenient, strict):
            for _ in range(10):
                detector.detect(flat_spectrum(60))

        assert lenient.detect(flat_spectrum(80)).is_beat
        assert not strict.detect(flat_spectrum(80)).is_beat

    def test_invalid_history_size(self):
        with pytest.raises(ValueError):
            BeatDetector(history_size=0)

    def test_defaults_follow_config(self):
        config = AnalysisConfig()
        detector = BeatDetector()
        assert detector.history_size == config.beat_history_size
        assert detector.sensitivity == config.beat_sensitivity
        assert detector.energy_floor == config.beat_energy_floor
        assert detector.bass_fraction == config.bass_fraction
