"""Tests for AnalysisConfig and config file loading."""

import dataclasses
import json
import logging

import pytest

from pitchscope.config import AnalysisConfig, load_config


class TestAnalysisConfig:
    def test_defaults(self):
        config = AnalysisConfig()
        assert config.pitch_method == "yin"
        assert config.yin_threshold == 0.1
        assert config.beat_history_size == 43
        assert config.instrument_ceiling == 180.0
        assert config.beat_energy_floor == 50.0
        assert config.target_fps == 60

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            AnalysisConfig().target_fps = 30

    def test_int_accepted_for_float_field(self):
        assert AnalysisConfig(min_frequency=100).min_frequency == 100

    def test_dict_roundtrip(self):
        config = AnalysisConfig(pitch_method="autocorrelation", num_peaks=3)
        assert AnalysisConfig.from_dict(config.to_dict()) == config

    def test_unknown_keys_warned_and_dropped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pitchscope.config"):
            config = AnalysisConfig.from_dict({"target_fps": 30, "colour": "red"})

        assert config.target_fps == 30
        assert "colour" in caplog.text

    @pytest.mark.parametrize(
        "overrides",
        [
            {"pitch_method": "cepstrum"},
            {"yin_threshold": 0.0},
            {"yin_threshold": 1.0},
            {"min_frequency": 4000.0, "max_frequency": 80.0},
            {"autocorrelation_min_frequency": 0.0},
            {"num_peaks": 0},
            {"beat_history_size": 0},
            {"bass_fraction": 0.0},
            {"instrument_ceiling": 0.0},
            {"seek_tolerance_sec": 0.0},
            {"target_fps": 0},
            {"num_peaks": "5"},
            {"num_peaks": 2.5},
            {"num_peaks": True},
            {"yin_threshold": "0.1"},
            {"beat_sensitivity": None},
            {"target_fps": 60.0},
            {"pitch_method": 1},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            AnalysisConfig(**overrides)


class TestLoadConfig:
    def test_load(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"pitch_method": "autocorrelation", "beat_sensitivity": 1.5}))

        config = load_config(path)
        assert config.pitch_method == "autocorrelation"
        assert config.beat_sensitivity == 1.5
        assert config.num_peaks == 5

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)

    def test_wrong_type_in_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"num_peaks": "5"}))
        with pytest.raises(ValueError, match="num_peaks"):
            load_config(path)

    def test_invalid_value_in_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"target_fps": -1}))
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")
