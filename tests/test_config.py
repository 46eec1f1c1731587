"""Tests for the config module."""
import json
from pathlib import Path

from miracle_meter.config import (
    StreakSettings,
    get_db_path,
    get_streak_settings,
    load_config,
    save_config,
    set_db_path,
)


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nonexistent.json") == {}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert load_config(path) == {}

    def test_non_object_returns_empty(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(path) == {}

    def test_loads_valid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"key": "value"}', encoding="utf-8")
        assert load_config(path) == {"key": "value"}


class TestSaveConfig:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "sub" / "dir" / "config.json"
        save_config({"nested": True}, path)
        assert json.loads(path.read_text()) == {"nested": True}

    def test_overwrites_existing(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"v": 1}, path)
        save_config({"v": 2}, path)
        assert json.loads(path.read_text()) == {"v": 2}


class TestDbPath:
    def test_not_set_returns_none(self, tmp_path):
        assert get_db_path(tmp_path / "config.json") is None

    def test_set_and_get_roundtrip(self, tmp_path):
        config_path = tmp_path / "config.json"
        target = tmp_path / "data" / "streaks.db"
        set_db_path(target, config_path)
        assert get_db_path(config_path) == target

    def test_preserves_other_keys(self, tmp_path):
        config_path = tmp_path / "config.json"
        save_config({"streaks": {"at_risk_days": 3}}, config_path)
        set_db_path(Path("/some/path.db"), config_path)
        config = load_config(config_path)
        assert config["streaks"] == {"at_risk_days": 3}
        assert config["db_path"] == "/some/path.db"


class TestStreakSettings:
    def test_defaults_without_config(self, tmp_path):
        assert get_streak_settings(tmp_path / "config.json") == StreakSettings()

    def test_defaults(self):
        settings = StreakSettings()
        assert settings.week_start_day == 0
        assert settings.at_risk_days == 2
        assert settings.recovery_days == 7
        assert settings.recovery_target_logs == 3
        assert settings.max_shields == 3

    def test_overrides(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"streaks": {"week_start_day": 6, "recovery_days": 10}}, path)
        settings = get_streak_settings(path)
        assert settings.week_start_day == 6
        assert settings.recovery_days == 10
        assert settings.max_shields == 3

    def test_invalid_values_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"streaks": {
            "week_start_day": 9,
            "recovery_days": 0,
            "max_shields": "lots",
            "at_risk_days": True,
            "unknown": 1,
        }}, path)
        assert get_streak_settings(path) == StreakSettings()

    def test_section_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"streaks": [1, 2]}, path)
        assert get_streak_settings(path) == StreakSettings()
