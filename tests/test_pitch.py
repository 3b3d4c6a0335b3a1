"""Tests for YIN and autocorrelation pitch estimation."""

import numpy as np
import pytest

from conftest import SR, sine_window
from pitchscope.core.pitch import (
    autocorrelation_pitch,
    cumulative_mean_normalized_difference,
    detect_pitch,
    difference_function,
    parabolic_interpolation,
    yin_pitch,
)


def _direct_difference(x):
    w = len(x) // 2
    return np.array([np.sum((x[:w] - x[tau:tau + w]) ** 2) for tau in range(w)])


class TestDifferenceFunction:
    def test_matches_direct_evaluation(self):
        x = np.random.default_rng(0).standard_normal(512)
        np.testing.assert_allclose(
            difference_function(x), _direct_difference(x), rtol=1e-9, atol=1e-8
        )

    def test_half_window_length(self):
        assert len(difference_function(np.ones(101))) == 50

    def test_zero_lag_is_zero(self, sine_440):
        assert difference_function(sine_440)[0] == 0.0

    def test_never_negative(self, sine_440):
        assert np.all(difference_function(sine_440) >= 0.0)

    def test_empty_window(self):
        assert difference_function(np.zeros(1)).size == 0


class TestCMND:
    def test_first_value_is_one(self, sine_440):
        cmnd = cumulative_mean_normalized_difference(difference_function(sine_440))
        assert cmnd[0] == 1.0

    def test_silence_is_all_ones(self, silence):
        cmnd = cumulative_mean_normalized_difference(difference_function(silence))
        np.testing.assert_array_equal(cmnd, np.ones_like(cmnd))

    def test_dips_at_the_period(self):
        # 441 Hz at 44.1 kHz has a period of exactly 100 samples
        cmnd = cumulative_mean_normalized_difference(difference_function(sine_window(441.0)))
        assert cmnd[100] < 0.01


class TestParabolicInterpolation:
    def test_symmetric_minimum(self):
        assert parabolic_interpolation(np.array([3.0, 1.0, 3.0]), 1) == pytest.approx(1.0)

    def test_shifts_toward_lower_neighbour(self):
        assert parabolic_interpolation(np.array([4.0, 1.0, 2.0]), 1) == pytest.approx(1.25)

    def test_flat_returns_index(self):
        assert parabolic_interpolation(np.array([1.0, 1.0, 1.0]), 1) == 1.0

    def test_left_edge(self):
        assert parabolic_interpolation(np.array([1.0, 2.0, 3.0]), 0) == 0.0
        assert parabolic_interpolation(np.array([2.0, 1.0]), 0) == 1.0

    def test_right_edge(self):
        assert parabolic_interpolation(np.array([3.0, 2.0, 1.0]), 2) == 2.0
        assert parabolic_interpolation(np.array([1.0, 2.0]), 1) == 0.0


class TestYinPitch:
    @pytest.mark.parametrize("frequency", [110.0, 440.0, 880.0])
    def test_pure_tone(self, frequency):
        assert yin_pitch(sine_window(frequency), SR) == pytest.approx(frequency, rel=0.01)

    def test_amplitude_independent(self):
        quiet = yin_pitch(sine_window(440.0, amplitude=0.01), SR)
        assert quiet == pytest.approx(440.0, rel=0.01)

    @pytest.mark.parametrize("n", [0, 1, 2, 3, 512, 2048, 4096])
    def test_silence_is_none(self, n):
        assert yin_pitch(np.zeros(n), SR) is None

    def test_non_finite_is_none(self, sine_440):
        bad = sine_440.copy()
        bad[10] = np.nan
        assert yin_pitch(bad, SR) is None

    def test_bad_sample_rate(self, sine_440):
        assert yin_pitch(sine_440, 0) is None

    def test_window_too_short_for_period(self):
        # 50 Hz needs 882 samples per period, the window holds half of that
        assert yin_pitch(sine_window(50.0, n=1024), SR) is None


class TestAutocorrelationPitch:
    def test_tone_in_narrow_range(self):
        f = autocorrelation_pitch(sine_window(441.0), SR, min_freq=300.0, max_freq=1000.0)
        assert f == pytest.approx(441.0, rel=0.02)

    def test_default_range_finds_a_subharmonic(self, sine_440):
        f = autocorrelation_pitch(sine_440, SR)
        assert f is not None
        ratio = 440.0 / f
        assert abs(ratio - round(ratio)) < 0.05

    def test_silence_is_none(self, silence):
        assert autocorrelation_pitch(silence, SR) is None

    def test_window_too_short(self):
        # Longest admissible lag is 24, shortest is 44
        assert autocorrelation_pitch(sine_window(441.0, n=50), SR) is None

    def test_invalid_range(self, sine_440):
        assert autocorrelation_pitch(sine_440, SR, min_freq=0.0) is None
        assert autocorrelation_pitch(np.zeros(0), SR) is None


class TestDetectPitch:
    def test_default_is_yin(self, sine_440):
        assert detect_pitch(sine_440, SR) == yin_pitch(sine_440, SR)

    def test_autocorrelation_kwargs(self):
        x = sine_window(441.0)
        expected = autocorrelation_pitch(x, SR, min_freq=300.0, max_freq=1000.0)
        assert detect_pitch(x, SR, "autocorrelation", min_freq=300.0, max_freq=1000.0) == expected

    def test_unknown_method(self, sine_440):
        with pytest.raises(ValueError, match="Unknown pitch method"):
            detect_pitch(sine_440, SR, "cepstrum")
