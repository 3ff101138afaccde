"""Tests for configuration loading."""

import logging

from taskpulse.config import Config, ConfigModel, get_config, load_config, save_config
from taskpulse.utils.datetime import LeapDayPolicy


class TestConfigModel:
    """ConfigModel serialisation."""

    def test_defaults(self):
        config = ConfigModel()

        assert config.heatmap_days == 30
        assert config.preview_count == 5
        assert config.streak_grace_days == 1
        assert config.leap_day_policy == LeapDayPolicy.CLAMP
        assert config.uncategorized_label == "uncategorized"

    def test_yaml_round_trip(self):
        config = ConfigModel(heatmap_days=90, preview_count=3,
                             leap_day_policy=LeapDayPolicy.ROLL_FORWARD)
        loaded = ConfigModel.from_yaml(config.to_yaml())

        assert loaded.heatmap_days == 90
        assert loaded.preview_count == 3
        assert loaded.leap_day_policy == LeapDayPolicy.ROLL_FORWARD

    def test_policy_from_string(self):
        assert ConfigModel(leap_day_policy="roll_forward").leap_day_policy == LeapDayPolicy.ROLL_FORWARD

    def test_unknown_policy_falls_back_to_clamp(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = ConfigModel(leap_day_policy="sideways")
        assert config.leap_day_policy == LeapDayPolicy.CLAMP
        assert "leap_day_policy" in caplog.text

    def test_unknown_keys_are_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = ConfigModel.from_yaml("heatmap_days: 7\ntheme: dark\n")
        assert config.heatmap_days == 7
        assert "theme" in caplog.text

    def test_negative_heatmap_days(self):
        assert ConfigModel(heatmap_days=-3).heatmap_days == 0

    def test_empty_yaml_gives_defaults(self):
        assert ConfigModel.from_yaml("").heatmap_days == 30


class TestConfigManager:
    """Config loading and caching."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.heatmap_days == 30
        assert not (tmp_path / "missing.yaml").exists()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_config(ConfigModel(heatmap_days=14), path)

        assert path.exists()
        assert load_config(path).heatmap_days == 14

    def test_broken_file_is_logged_and_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("heatmap_days: [unclosed\n")

        with caplog.at_level(logging.WARNING):
            config = load_config(path)

        assert config.heatmap_days == 30
        assert "Failed to load config" in caplog.text

    def test_non_mapping_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_config(path).heatmap_days == 30

    def test_env_var_locates_config(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        save_config(ConfigModel(preview_count=9), path)
        monkeypatch.setenv("TASKPULSE_CONFIG", str(path))
        Config.reset()

        assert get_config().preview_count == 9

    def test_get_caches_instance(self):
        assert get_config() is get_config()
        first = get_config()
        Config.reset()
        assert get_config() is not first
