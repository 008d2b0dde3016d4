"""Tests for engine configuration loading."""

import logging

import pytest

from gesture_hmm.config import EngineConfig, load_config, save_config


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.num_symbols == 8
        assert config.p_stay == pytest.approx(0.8)
        assert config.p_advance == pytest.approx(0.2)
        assert config.max_iterations == 10
        assert config.min_step == 4.0
        assert config.max_step == 100.0
        assert config.min_points == 10
        assert config.trim_points == 5
        assert config.seed is None

    def test_noise_std(self):
        config = EngineConfig(noise_std_x=1.5, noise_std_y=2.5)
        assert config.noise_std == (1.5, 2.5)

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gesture_hmm.config"):
            config = EngineConfig.from_dict({"min_points": 12, "colour": "red"})
        assert config.min_points == 12
        assert "colour" in caplog.text

    def test_to_dict(self):
        data = EngineConfig(seed=3).to_dict()
        assert data["seed"] == 3
        assert "noise_std" not in data


class TestLoadConfig:
    def test_no_path(self):
        assert load_config() == EngineConfig()

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.yml") == EngineConfig()

    def test_partial_override(self, tmp_path):
        path = tmp_path / "engine.yml"
        path.write_text("training_sequences: 25\nmax_step: 80.0\n")
        config = load_config(path)
        assert config.training_sequences == 25
        assert config.max_step == 80.0
        assert config.min_step == 4.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "engine.yml"
        path.write_text("")
        assert load_config(path) == EngineConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "engine.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "conf" / "engine.yml"
        config = EngineConfig(seed=9, noise_std_y=3.0, release_frames=4)
        save_config(config, path)
        assert load_config(path) == config
