"""
Directory watcher for aim-trainer session logs.

Polls a stats directory, parses every new session log, enriches it with the
motion trace recorded while it was played, and announces the result.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from aimtrace.core.constants import DEFAULT_RECENT_CAP, STOP_JOIN_TIMEOUT
from aimtrace.core.timing import ScanStats
from aimtrace.errors import (
    FilenameFormatError,
    LogParseError,
    TraceDecodeError,
    WatchPathError,
    WatcherConfigError,
)
from aimtrace.events import RECORD_ADDED, RECORD_UPDATED, WATCHER_STARTED, EventBus
from aimtrace.ingest.metrics import derive_metrics
from aimtrace.ingest.parser import is_session_log_name, parse_filename, parse_log_file
from aimtrace.ingest.window import derive_session_window
from aimtrace.models import (
    FilenameInfo,
    MotionSample,
    SessionRecord,
    WatcherConfig,
    traces_equal,
)
from aimtrace.mouse.provider import NullSampleProvider, SampleProvider
from aimtrace.traces.store import TraceRecord, TraceStore

_log = logging.getLogger(__name__)


# =============================================================================
# Filesystem Nudges
# =============================================================================


class SessionLogEventHandler(FileSystemEventHandler):
    """Wakes the poll loop when a session log appears or changes.

    Only shortens the wait until the next scan; the scan itself decides
    what is new.
    """

    def __init__(self, wake: threading.Event):
        super().__init__()
        self.wake = wake

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle(getattr(event, "dest_path", "") or event.src_path, event.is_directory)

    def _handle(self, path, is_directory: bool) -> None:
        if is_directory:
            return
        name = Path(os.fsdecode(path)).name
        if is_session_log_name(name):
            _log.debug(f"Change detected: {name}")
            self.wake.set()


# =============================================================================
# Watcher
# =============================================================================


class DirectoryWatcher:
    """Polls a directory for session logs and announces parsed records.

    Lifecycle: construct -> start() -> stop(). Configuration can only change
    while stopped. All shared state is guarded by one lock; a scan holds a
    separate scan lock so scans never overlap.
    """

    def __init__(
        self,
        config: WatcherConfig,
        events: Optional[EventBus] = None,
        trace_store: Optional[TraceStore] = None,
    ):
        self._config = config
        self.events = events if events is not None else EventBus()
        self.trace_store = trace_store if trace_store is not None else TraceStore()

        self._lock = threading.Lock()
        self._scan_lock = threading.Lock()
        self._running = False
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._observer = None

        self._seen: set[str] = set()
        self._recent: deque[SessionRecord] = deque(maxlen=self._recent_cap(config))
        self._provider: SampleProvider = NullSampleProvider()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @staticmethod
    def _recent_cap(config: WatcherConfig) -> int:
        """In-memory cap for recent records.

        With no parse-existing limit, memory is still bounded by a default.
        """
        if config.parse_existing_limit > 0:
            return config.parse_existing_limit
        return DEFAULT_RECENT_CAP

    @property
    def config(self) -> WatcherConfig:
        with self._lock:
            return self._config

    @property
    def recent_cap(self) -> int:
        with self._lock:
            return self._recent.maxlen or DEFAULT_RECENT_CAP

    def update_config(self, config: WatcherConfig) -> None:
        """Replace the configuration. Only allowed while stopped.

        Raises:
            WatcherConfigError: the watcher is running.
        """
        with self._lock:
            if self._running:
                raise WatcherConfigError("cannot update config while running")
            self._config = config
            self._recent = deque(self._recent, maxlen=self._recent_cap(config))

    def set_sample_provider(self, provider: Optional[SampleProvider]) -> None:
        """Attach a provider used for trace enrichment. The watcher never starts
        or stops it. None detaches it."""
        with self._lock:
            self._provider = provider if provider is not None else NullSampleProvider()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self) -> None:
        """Begin watching. No-op if already running.

        A missing or unreadable directory is logged, not fatal: scans find
        nothing until it appears.
        """
        with self._lock:
            if self._running:
                return
            self._running = True
            self._stop_event = threading.Event()
            self._wake_event = threading.Event()
            stop_event = self._stop_event
            wake_event = self._wake_event
            cfg = self._config

        try:
            os.stat(cfg.path)
        except FileNotFoundError:
            _log.warning(f"Watch path does not exist: {cfg.path} (will retry)")
        except OSError as e:
            _log.warning(f"Watch path not accessible: {cfg.path}: {e}")

        _log.info(f"Watching {cfg.path} every {cfg.poll_interval}s")
        self.events.emit(WATCHER_STARTED, {"path": cfg.path})

        if cfg.parse_existing_on_start:
            try:
                self.scan_once(include_all=True)
            except WatchPathError as e:
                _log.warning(str(e))

        if cfg.fs_events:
            self._start_observer(cfg.path, wake_event)

        thread = threading.Thread(
            target=self._loop,
            args=(stop_event, wake_event, cfg.poll_interval),
            name="aimtrace-watcher",
            daemon=True,
        )
        with self._lock:
            self._thread = thread
        thread.start()

    def stop(self) -> None:
        """Stop watching and wait for the poll loop to exit. No-op if stopped.

        Waits at most STOP_JOIN_TIMEOUT seconds for an in-flight scan.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            self._wake_event.set()
            thread = self._thread
            observer = self._observer
            self._thread = None
            self._observer = None

        if observer is not None:
            observer.stop()
            observer.join(timeout=STOP_JOIN_TIMEOUT)

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                _log.warning("Poll loop did not exit before timeout")

        _log.info("Watcher stopped")

    def clear(self) -> None:
        """Forget all seen paths and recent records."""
        with self._lock:
            self._seen = set()
            self._recent.clear()

    def _start_observer(self, path: str, wake: threading.Event) -> None:
        observer = Observer()
        try:
            observer.schedule(SessionLogEventHandler(wake), path, recursive=False)
            observer.start()
        except OSError as e:
            _log.warning(f"Filesystem events unavailable for {path}: {e}")
            return
        with self._lock:
            if self._running:
                self._observer = observer
                return
        observer.stop()

    def _loop(
        self,
        stop_event: threading.Event,
        wake_event: threading.Event,
        interval: float,
    ) -> None:
        while True:
            wake_event.wait(interval)
            wake_event.clear()
            if stop_event.is_set():
                return
            try:
                self.scan_once()
            except WatchPathError as e:
                _log.debug(str(e))
            except Exception as e:
                _log.error(f"Scan failed: {e}")

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _list_candidates(self, path: str) -> list[tuple[datetime, str]]:
        """Session logs in ``path`` with their played-at times, oldest first.

        Names that fail filename parsing are skipped and not recorded, so they
        are looked at again on every scan.
        """
        try:
            with os.scandir(path) as it:
                entries = list(it)
        except OSError as e:
            raise WatchPathError(f"cannot list {path}: {e}") from e

        files: list[tuple[datetime, str]] = []
        for entry in entries:
            try:
                if entry.is_dir():
                    continue
            except OSError:
                continue
            if not is_session_log_name(entry.name):
                continue
            try:
                info = parse_filename(entry.name)
            except FilenameFormatError:
                continue
            files.append((info.date_played, os.path.abspath(entry.path)))

        files.sort(key=lambda fr: fr[0])
        return files

    def scan_once(self, include_all: bool = False) -> list[SessionRecord]:
        """List the directory once and ingest every file not seen yet.

        With ``include_all`` every matched file is treated as new; if a
        parse-existing limit is set, only the newest N are parsed and the
        rest are marked seen.

        Returns the records announced by this scan, oldest first.

        Raises:
            WatchPathError: the directory cannot be listed.
        """
        with self._scan_lock:
            cfg = self.config
            stats = ScanStats()
            added: list[SessionRecord] = []

            with stats.phase("list"):
                files = self._list_candidates(cfg.path)
            stats.candidates = len(files)

            limit = cfg.parse_existing_limit
            if include_all and limit > 0 and len(files) > limit:
                older = files[: len(files) - limit]
                with self._lock:
                    for _, full in older:
                        self._seen.add(full)
                files = files[len(files) - limit :]

            for _, full in files:
                with self._lock:
                    known = full in self._seen
                if known and not include_all:
                    continue

                try:
                    with stats.phase("parse"):
                        rec = self.parse_file(full)
                except (OSError, LogParseError, FilenameFormatError) as e:
                    stats.failed += 1
                    _log.warning(f"Parse error for {full}: {e}")
                    continue

                with self._lock:
                    self._seen.add(full)
                    self._recent.append(rec)

                self.events.emit(RECORD_ADDED, rec)
                added.append(rec)

            stats.added = len(added)
            _log.debug(f"Scanned {cfg.path}: {stats.summary()}")
            return added

    # ------------------------------------------------------------------
    # Per-file ingestion
    # ------------------------------------------------------------------

    def parse_file(self, full_path: str) -> SessionRecord:
        """Parse one session log into an enriched record.

        Raises:
            FilenameFormatError: the name is not a session log name.
            OSError: the file cannot be read.
            LogParseError: the file cannot be tokenized.
        """
        file_name = os.path.basename(full_path)
        info = parse_filename(file_name)
        events, stats = parse_log_file(full_path)
        derive_metrics(events, stats, info.date_played)

        rec = SessionRecord(
            file_path=full_path,
            file_name=file_name,
            stats=stats,
            events=events,
        )
        self._enrich_trace(rec, info)
        return rec

    def _enrich_trace(self, rec: SessionRecord, info: FilenameInfo) -> None:
        """Attach the live trace for the session window, else a persisted one."""
        with self._lock:
            provider = self._provider

        if provider.enabled():
            start, end = derive_session_window(info.date_played, rec.stats, rec.events)
            if start < end:
                try:
                    rec.mouse_trace = list(provider.get_range(start, end))
                except Exception as e:
                    _log.warning(f"Sample provider failed for {rec.file_name}: {e}")
                _log.debug(
                    f"Mouse trace: {len(rec.mouse_trace)} points for {rec.file_name} "
                    f"in window {start.isoformat()} - {end.isoformat()}"
                )

        if rec.mouse_trace:
            # The first persisted capture stays authoritative.
            if not self.trace_store.exists(rec.file_name):
                try:
                    self.trace_store.save(
                        TraceRecord(
                            file_name=rec.file_name,
                            scenario_name=info.scenario_name,
                            date_played=info.date_played.isoformat(),
                            mouse_trace=rec.mouse_trace,
                        )
                    )
                except OSError as e:
                    _log.warning(f"Failed to save trace for {rec.file_name}: {e}")
            return

        persisted = self._load_persisted_trace(rec.file_name)
        if persisted:
            rec.mouse_trace = persisted

    def _load_persisted_trace(self, file_name: str) -> Optional[list[MotionSample]]:
        if not self.trace_store.exists(file_name):
            return None
        try:
            stored = self.trace_store.load(file_name)
        except (OSError, TraceDecodeError) as e:
            _log.warning(f"Failed to load trace for {file_name}: {e}")
            return None
        return stored.mouse_trace or None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_recent(self, limit: int = 0) -> list[SessionRecord]:
        """Up to ``limit`` records, most recent first. ``limit <= 0`` means all."""
        with self._lock:
            records = list(self._recent)
        records.reverse()
        if limit > 0:
            return records[:limit]
        return records

    def is_seen(self, path: str) -> bool:
        with self._lock:
            return os.path.abspath(path) in self._seen

    def reload_traces(self) -> int:
        """Re-read persisted traces for every recent record.

        Records whose non-empty persisted trace differs from the one held in
        memory are updated and announced one by one. Returns how many changed.
        """
        to_emit: list[SessionRecord] = []
        with self._lock:
            for rec in self._recent:
                persisted = self._load_persisted_trace(rec.file_name)
                if persisted and not traces_equal(rec.mouse_trace, persisted):
                    rec.mouse_trace = persisted
                    to_emit.append(rec)

        for rec in to_emit:
            self.events.emit(RECORD_UPDATED, rec)
        return len(to_emit)
