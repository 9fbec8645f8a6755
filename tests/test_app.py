"""
Tests for the application facade.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from aimtrace.app import App
from aimtrace.events import RECORD_ADDED
from aimtrace.ingest.parser import parse_filename
from aimtrace.mouse.provider import BufferedSampleProvider
from aimtrace.settings import Settings, load_settings
from aimtrace.traces.store import TraceRecord, TraceStore

from .conftest import SPEED_FOCUS_NAME, samples_between


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "settings.yaml"


@pytest.fixture
def app(settings_file: Path):
    instance = App(settings_file=settings_file, poll_interval=60.0)
    instance.startup()
    yield instance
    instance.shutdown()


@pytest.mark.evergreen
class TestStartup:
    def test_defaults_written_on_first_run(self, app: App, settings_file: Path):
        assert settings_file.is_file()
        assert load_settings(settings_file) == app.get_settings()

    def test_existing_settings_loaded(self, settings_file: Path, tmp_path: Path):
        settings_file.write_text(f"stats_dir: {tmp_path}\nmouse_buffer_minutes: 3\n", encoding="utf-8")
        app = App(settings_file=settings_file)
        app.startup()
        try:
            assert app.get_settings().stats_dir == str(tmp_path)
            assert app.provider.buffer_duration == timedelta(minutes=3)
        finally:
            app.shutdown()

    def test_broken_settings_replaced_with_defaults(self, settings_file: Path):
        settings_file.write_text("session_gap_minutes: [", encoding="utf-8")
        app = App(settings_file=settings_file)
        app.startup()
        try:
            assert app.get_settings().session_gap_minutes == Settings.default().session_gap_minutes
            assert load_settings(settings_file) == app.get_settings()
        finally:
            app.shutdown()

    def test_provider_created_but_idle(self, app: App):
        assert isinstance(app.provider, BufferedSampleProvider)
        assert not app.provider.enabled()


@pytest.mark.evergreen
class TestWatcherControl:
    def test_start_watcher_remembers_path(self, app: App, write_log, stats_dir: Path, settings_file: Path):
        write_log(SPEED_FOCUS_NAME)
        added = []
        app.events.subscribe(RECORD_ADDED, added.append)

        ok, msg = app.start_watcher(str(stats_dir))

        assert (ok, msg) == (True, "ok")
        assert [r.file_name for r in added] == [SPEED_FOCUS_NAME]
        assert [r.file_name for r in app.get_recent_records()] == [SPEED_FOCUS_NAME]
        assert load_settings(settings_file).stats_dir == str(stats_dir)

    def test_start_while_running_is_refused(self, app: App, stats_dir: Path):
        app.start_watcher(str(stats_dir))
        ok, msg = app.start_watcher(str(stats_dir))
        assert not ok
        assert "running" in msg

    def test_restart_does_not_duplicate(self, app: App, write_log, stats_dir: Path):
        write_log(SPEED_FOCUS_NAME)
        app.start_watcher(str(stats_dir))
        app.stop_watcher()
        app.start_watcher()
        assert len(app.get_recent_records()) == 1

    def test_stop_without_watcher(self, app: App):
        assert app.stop_watcher() == (True, "not running")
        assert app.get_recent_records() == []


@pytest.mark.evergreen
class TestUpdateSettings:
    def test_enable_tracking_starts_provider(self, app: App):
        settings = app.get_settings().model_copy(
            update={"mouse_tracking_enabled": True, "mouse_buffer_minutes": 2}
        )
        assert app.update_settings(settings) == (True, "ok")
        assert app.provider.enabled()
        assert app.provider.buffer_duration == timedelta(minutes=2)

        app.update_settings(settings.model_copy(update={"mouse_tracking_enabled": False}))
        assert not app.provider.enabled()

    def test_values_are_sanitized(self, app: App):
        app.update_settings(app.get_settings().model_copy(update={"session_gap_minutes": -1}))
        assert app.get_settings().session_gap_minutes == Settings.default().session_gap_minutes

    def test_traces_dir_change_reloads_records(self, app: App, write_log, stats_dir: Path, tmp_path: Path):
        write_log(SPEED_FOCUS_NAME)
        app.start_watcher(str(stats_dir))
        assert app.get_recent_records()[0].mouse_trace == []

        new_dir = tmp_path / "new-traces"
        start = parse_filename(SPEED_FOCUS_NAME).date_played.replace(second=0)
        TraceStore(new_dir).save(
            TraceRecord(file_name=SPEED_FOCUS_NAME, mouse_trace=samples_between(start, 3))
        )

        ok, _ = app.update_settings(app.get_settings().model_copy(update={"traces_dir": str(new_dir)}))

        assert ok
        assert app.trace_store.base_dir == new_dir
        assert app.watcher.is_running()
        [rec] = app.get_recent_records()
        assert len(rec.mouse_trace) == 3

    def test_reset_settings(self, app: App, settings_file: Path, tmp_path: Path):
        app.update_settings(app.get_settings().model_copy(update={"mouse_buffer_minutes": 7}))
        assert app.reset_settings() == (True, "ok")
        assert app.get_settings() == Settings.default().sanitize()
        assert load_settings(settings_file) == Settings.default().sanitize()
