"""Tests for game settings."""

import pytest
import yaml

from trivia.config import DATA_DIR_ENV, GameSettings, load_settings, resolve_data_dir


class TestGameSettings:
    """Test cases for GameSettings."""

    def test_defaults(self):
        settings = GameSettings()
        assert settings.category_count == 6
        assert settings.list_timer_seconds == 30
        assert settings.list_timer_hard_seconds == 60
        assert settings.grouping_grid_size == 16
        assert settings.this_or_that_items == 5
        assert settings.outcome_history_limit == 30

    def test_category_bounds(self):
        with pytest.raises(ValueError):
            GameSettings(category_count=1)
        with pytest.raises(ValueError):
            GameSettings(category_count=9)

    def test_overrides_skip_none(self):
        settings = GameSettings().with_overrides(category_count=4, ranking_mode=None)
        assert settings.category_count == 4
        assert settings.ranking_mode == "one_shot"

    def test_unknown_keys_ignored(self):
        settings = GameSettings.from_dict({"list_strikes": 5, "colour": "red"})
        assert settings.list_strikes == 5


class TestLoadSettings:
    """Test cases for load_settings."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"settings": {"category_count": 3, "grouping_mode": "continuous"}}))
        settings = load_settings(path)
        assert settings.category_count == 3
        assert settings.grouping_mode == "continuous"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_default_file_missing_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        assert load_settings() == GameSettings()

    def test_data_dir_resolution(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        assert resolve_data_dir() == tmp_path
        assert resolve_data_dir("elsewhere").name == "elsewhere"
