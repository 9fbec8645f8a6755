"""
Application facade.

Owns the settings, sample provider, trace store, watcher and event bus, and
keeps them consistent when settings change. This is the surface a desktop
shell or the CLI drives.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from aimtrace.core.constants import DEFAULT_POLL_INTERVAL_SECONDS
from aimtrace.errors import WatcherConfigError
from aimtrace.events import EventBus
from aimtrace.models import SessionRecord, WatcherConfig
from aimtrace.mouse.provider import BufferedSampleProvider
from aimtrace.settings import Settings, load_settings, save_settings
from aimtrace.traces.store import TraceStore
from aimtrace.watcher import DirectoryWatcher

_log = logging.getLogger(__name__)


class App:
    """Wires settings to the ingestion pipeline."""

    def __init__(
        self,
        settings_file: Optional[Path] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        provider: Optional[BufferedSampleProvider] = None,
    ):
        self.settings_file = settings_file
        self.poll_interval = poll_interval
        self.events = EventBus()
        self.trace_store = TraceStore()
        self.provider = provider
        self.watcher: Optional[DirectoryWatcher] = None
        self.settings = Settings.default()

    def _make_watcher_config(self, path: str) -> WatcherConfig:
        return WatcherConfig(
            path=path,
            poll_interval=self.poll_interval,
            session_gap=self.settings.session_gap_minutes * 60.0,
            parse_existing_on_start=True,
            parse_existing_limit=self.settings.max_existing_on_start,
        )

    def _save(self) -> None:
        try:
            save_settings(self.settings, self.settings_file)
        except OSError as e:
            _log.warning(f"Failed to save settings: {e}")

    def _apply_provider(self) -> None:
        if self.provider is None:
            self.provider = BufferedSampleProvider()
        self.provider.set_buffer_duration(
            timedelta(minutes=self.settings.mouse_buffer_minutes)
        )
        if self.settings.mouse_tracking_enabled:
            if not self.provider.enabled():
                self.provider.start()
        elif self.provider.enabled():
            self.provider.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup(self) -> None:
        """Load settings (or create defaults) and prepare the provider."""
        try:
            self.settings = load_settings(self.settings_file)
        except (OSError, ValueError) as e:
            _log.warning(f"Settings load failed, using defaults: {e}")
            self.settings = Settings.default()
            self._save()
        self.settings = self.settings.sanitize()

        self.trace_store.set_base_dir(self.settings.traces_dir)
        self._apply_provider()

    def shutdown(self) -> None:
        self.stop_watcher()
        if self.provider is not None:
            self.provider.stop()

    # ------------------------------------------------------------------
    # Watcher
    # ------------------------------------------------------------------

    def start_watcher(self, path: str = "") -> tuple[bool, str]:
        """Begin monitoring a stats directory.

        An empty path means the configured stats directory. A supplied path
        is remembered in the settings.
        """
        if not path:
            path = self.settings.stats_dir
        else:
            self.settings = self.settings.model_copy(update={"stats_dir": path})
            self._save()

        cfg = self._make_watcher_config(path)
        if self.watcher is None:
            self.watcher = DirectoryWatcher(cfg, events=self.events, trace_store=self.trace_store)
            self.watcher.set_sample_provider(self.provider)
        else:
            try:
                self.watcher.update_config(cfg)
            except WatcherConfigError as e:
                return False, str(e)
            # Drop records from the previous run so they are not announced twice
            self.watcher.clear()

        self.watcher.start()
        return True, "ok"

    def stop_watcher(self) -> tuple[bool, str]:
        if self.watcher is None:
            return True, "not running"
        self.watcher.stop()
        return True, "stopped"

    def get_recent_records(self, limit: int = 0) -> list[SessionRecord]:
        if self.watcher is None:
            return []
        return self.watcher.get_recent(limit)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> Settings:
        return self.settings

    def update_settings(self, settings: Settings) -> tuple[bool, str]:
        """Persist new settings and apply them to every component."""
        settings = settings.sanitize()
        prev_traces = self.trace_store.base_dir
        self.settings = settings
        try:
            save_settings(self.settings, self.settings_file)
        except OSError as e:
            return False, str(e)

        self._apply_provider()

        # Switch the traces directory before the watcher rescans so the
        # re-ingested records read from the new location.
        self.trace_store.set_base_dir(self.settings.traces_dir)

        if self.watcher is not None:
            cfg = self._make_watcher_config(self.settings.stats_dir)
            was_running = self.watcher.is_running()
            if was_running:
                self.watcher.stop()
            try:
                self.watcher.update_config(cfg)
            except WatcherConfigError as e:
                return False, str(e)
            # Clear old state so parse-existing repopulates from scratch
            self.watcher.clear()
            self.watcher.set_sample_provider(self.provider)
            if was_running:
                self.watcher.start()

        if self.watcher is not None and self.trace_store.base_dir != prev_traces:
            n = self.watcher.reload_traces()
            _log.info(f"Reloaded traces for {n} records after traces dir change")
        return True, "ok"

    def reset_settings(self) -> tuple[bool, str]:
        """Reset to defaults and apply them immediately."""
        return self.update_settings(Settings.default())
