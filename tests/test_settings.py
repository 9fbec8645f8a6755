"""
Tests for settings persistence and environment overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from aimtrace import settings as settings_mod
from aimtrace.core.constants import (
    DEFAULT_MAX_EXISTING_ON_START,
    DEFAULT_MOUSE_BUFFER_MINUTES,
    DEFAULT_SESSION_GAP_MINUTES,
    ENV_STATS_DIR,
)
from aimtrace.settings import (
    Settings,
    default_stats_dir,
    get_env,
    load_settings,
    save_settings,
    settings_path,
)


@pytest.mark.evergreen
class TestDefaults:
    def test_traces_dir_under_config_dir(self, isolated_home: Path):
        assert Settings.default().traces_dir == str(isolated_home / "traces")

    def test_stats_dir_from_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv(ENV_STATS_DIR, str(tmp_path / "stats"))
        assert default_stats_dir() == str(tmp_path / "stats")
        assert Settings.default().stats_dir == str(tmp_path / "stats")

    def test_numeric_defaults(self):
        s = Settings.default()
        assert s.session_gap_minutes == DEFAULT_SESSION_GAP_MINUTES
        assert s.mouse_buffer_minutes == DEFAULT_MOUSE_BUFFER_MINUTES
        assert s.max_existing_on_start == DEFAULT_MAX_EXISTING_ON_START
        assert s.mouse_tracking_enabled is False

    def test_settings_path(self, isolated_home: Path):
        assert settings_path() == isolated_home / "settings.yaml"


@pytest.mark.evergreen
class TestSanitize:
    def test_non_positive_values_reset(self):
        s = Settings(
            traces_dir="  ",
            session_gap_minutes=0,
            mouse_buffer_minutes=-5,
            max_existing_on_start=0,
        ).sanitize()
        assert s.traces_dir == Settings.default().traces_dir
        assert s.session_gap_minutes == DEFAULT_SESSION_GAP_MINUTES
        assert s.mouse_buffer_minutes == DEFAULT_MOUSE_BUFFER_MINUTES
        assert s.max_existing_on_start == DEFAULT_MAX_EXISTING_ON_START

    def test_valid_values_kept(self, tmp_path: Path):
        original = Settings(
            stats_dir=str(tmp_path),
            traces_dir=str(tmp_path / "t"),
            session_gap_minutes=5,
            mouse_tracking_enabled=True,
            mouse_buffer_minutes=2,
            max_existing_on_start=10,
        )
        assert original.sanitize() == original

    def test_sanitize_returns_copy(self):
        original = Settings(session_gap_minutes=0)
        original.sanitize()
        assert original.session_gap_minutes == 0


@pytest.mark.evergreen
class TestPersistence:
    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "settings.yaml"
        original = Settings(stats_dir="/stats", mouse_tracking_enabled=True, mouse_buffer_minutes=3)
        save_settings(original, path)
        assert load_settings(path) == original

    def test_file_is_plain_yaml(self, tmp_path: Path):
        path = save_settings(Settings(stats_dir="/stats"), tmp_path / "s.yaml")
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["stats_dir"] == "/stats"
        assert list(data)[0] == "stats_dir"

    def test_default_location(self, isolated_home: Path):
        path = save_settings(Settings())
        assert path == isolated_home / "settings.yaml"
        assert load_settings() == Settings()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "content",
        [
            "stats_dir: [unterminated",
            "- just\n- a list\n",
            "session_gap_minutes: lots\n",
        ],
    )
    def test_invalid_file(self, tmp_path: Path, content: str):
        path = tmp_path / "settings.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_empty_file_is_all_defaults(self, tmp_path: Path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == Settings()


@pytest.mark.evergreen
class TestDotenv:
    KEY = "AIMTRACE_TEST_DOTENV_VALUE"

    def test_env_file_in_config_dir(self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings_mod, "_env_loaded", False)
        monkeypatch.delenv(self.KEY, raising=False)
        isolated_home.mkdir(parents=True, exist_ok=True)
        (isolated_home / ".env").write_text(f"{self.KEY}=from-dotenv\n", encoding="utf-8")
        try:
            assert get_env(self.KEY) == "from-dotenv"
        finally:
            os.environ.pop(self.KEY, None)

    def test_real_environment_wins(self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings_mod, "_env_loaded", False)
        monkeypatch.setenv(self.KEY, "from-env")
        isolated_home.mkdir(parents=True, exist_ok=True)
        (isolated_home / ".env").write_text(f"{self.KEY}=from-dotenv\n", encoding="utf-8")
        assert get_env(self.KEY) == "from-env"
