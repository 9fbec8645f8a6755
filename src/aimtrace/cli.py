"""
Main CLI for aimtrace.

Provides commands for parsing single session logs, watching a stats
directory, and inspecting persisted traces and settings.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Optional

from aimtrace import __version__
from aimtrace.core.constants import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    KEY_ACCURACY,
    KEY_DATE_PLAYED,
    KEY_REAL_AVG_TTK,
)
from aimtrace.core.utils import configure_logging, log
from aimtrace.errors import AimTraceError, TraceDecodeError, WatchPathError
from aimtrace.events import RECORD_ADDED, RECORD_UPDATED, WATCHER_STARTED
from aimtrace.ingest.parser import parse_filename
from aimtrace.models import SessionRecord, WatcherConfig
from aimtrace.settings import Settings, load_settings, save_settings, settings_path
from aimtrace.traces.store import TraceStore
from aimtrace.watcher import DirectoryWatcher


# =============================================================================
# Argument Parsing
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all subcommands."""

    parser = argparse.ArgumentParser(
        prog="aimtrace",
        description="Aim-trainer session log ingestion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  parse       Parse one session log and print its summary
  watch       Watch a stats directory and print new sessions
  traces      Inspect persisted motion traces
  settings    Show or reset settings

Examples:
  aimtrace parse "Air Tracking 180 - Challenge - 2025.09.09-16.57.00 Stats.csv"
  aimtrace watch ~/stats --limit 20
  aimtrace traces show "Air Tracking 180 - Challenge - 2025.09.09-16.57.00 Stats.csv"
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- parse ---
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse one session log",
        description="Parse a session log and print derived metrics.",
    )
    parse_parser.add_argument("file", help="Path to a '... Stats.csv' file")
    parse_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full record as JSON",
    )

    # --- watch ---
    watch_parser = subparsers.add_parser(
        "watch",
        help="Watch a stats directory",
        description="Poll a stats directory and print each new session.",
    )
    watch_parser.add_argument(
        "directory",
        nargs="?",
        help="Directory to watch (default: stats_dir from settings)",
    )
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        help=f"Poll interval in seconds (default: {DEFAULT_POLL_INTERVAL_SECONDS})",
    )
    watch_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Parse at most this many existing logs on start (default: from settings)",
    )
    watch_parser.add_argument(
        "--no-existing",
        action="store_true",
        help="Only report logs written after the watcher starts",
    )
    watch_parser.add_argument(
        "--fs-events",
        action="store_true",
        help="Also wake on filesystem events between polls",
    )

    # --- traces ---
    traces_parser = subparsers.add_parser(
        "traces",
        help="Inspect persisted traces",
        description="Inspect persisted motion traces.",
    )
    traces_parser.add_argument(
        "--dir",
        help="Trace directory (default: traces_dir from settings)",
    )
    traces_sub = traces_parser.add_subparsers(dest="traces_command", metavar="<action>")
    show_parser = traces_sub.add_parser("show", help="Summarize a stored trace")
    show_parser.add_argument("file_name", help="Session log file name")
    path_parser = traces_sub.add_parser("path", help="Print where a trace is stored")
    path_parser.add_argument("file_name", help="Session log file name")

    # --- settings ---
    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or reset settings",
        description="Show or reset persisted settings.",
    )
    settings_sub = settings_parser.add_subparsers(dest="settings_command", metavar="<action>")
    settings_sub.add_parser("show", help="Print current settings")
    settings_sub.add_parser("reset", help="Restore default settings")

    return parser


# =============================================================================
# Helpers
# =============================================================================


def _load_settings_or_default() -> Settings:
    try:
        return load_settings().sanitize()
    except (OSError, ValueError):
        return Settings.default().sanitize()


def _print_record(rec: SessionRecord) -> None:
    stats = rec.stats
    accuracy = stats.get(KEY_ACCURACY, 0.0)
    ttk = stats.get(KEY_REAL_AVG_TTK)
    ttk_text = f"{ttk:.3f}s" if isinstance(ttk, (int, float)) else "n/a"
    log.success(rec.file_name)
    log.field("Played", str(stats.get(KEY_DATE_PLAYED, "")))
    log.field("Events", str(len(rec.events)))
    log.field("Accuracy", f"{float(accuracy) * 100:.1f}%")
    log.field("Real Avg TTK", ttk_text)
    if rec.mouse_trace:
        log.field("Mouse trace", f"{len(rec.mouse_trace)} points")


# =============================================================================
# Commands
# =============================================================================


def cmd_parse(args: argparse.Namespace) -> int:
    path = Path(args.file).resolve()
    watcher = DirectoryWatcher(
        WatcherConfig(path=str(path.parent)),
        trace_store=TraceStore(_load_settings_or_default().traces_dir),
    )
    try:
        rec = watcher.parse_file(str(path))
    except (OSError, AimTraceError) as e:
        log.error(f"Could not parse {path.name}: {e}")
        return 1

    if args.json:
        print(json.dumps(rec.to_dict(), indent=2))
        return 0

    log.header(parse_filename(path.name).scenario_name)
    _print_record(rec)
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    settings = _load_settings_or_default()
    directory = args.directory or settings.stats_dir
    if not directory:
        log.error("No directory given and no stats_dir configured")
        return 1

    limit = args.limit if args.limit is not None else settings.max_existing_on_start
    config = WatcherConfig(
        path=str(Path(directory).expanduser()),
        poll_interval=args.interval,
        session_gap=settings.session_gap_minutes * 60.0,
        parse_existing_on_start=not args.no_existing,
        parse_existing_limit=max(limit, 0),
        fs_events=args.fs_events,
    )
    watcher = DirectoryWatcher(config, trace_store=TraceStore(settings.traces_dir))

    watcher.events.subscribe(
        WATCHER_STARTED, lambda payload: log.header(f"Watching {payload['path']}")
    )
    watcher.events.subscribe(RECORD_ADDED, _print_record)
    watcher.events.subscribe(
        RECORD_UPDATED, lambda rec: log.info(f"Trace updated: {rec.file_name}")
    )

    watcher.start()
    log.dim("Waiting for new sessions... (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        log.info("")
        watcher.stop()
        log.info(f"Sessions seen: {len(watcher.get_recent())}")
        log.success("Watcher stopped")
    return 0


def cmd_traces(args: argparse.Namespace) -> int:
    traces_dir = args.dir or _load_settings_or_default().traces_dir
    store = TraceStore(traces_dir)

    if args.traces_command == "path":
        print(store.path_for(args.file_name))
        return 0

    if args.traces_command == "show":
        try:
            record = store.load(args.file_name)
        except FileNotFoundError:
            log.error(f"No trace stored for {args.file_name}")
            return 1
        except TraceDecodeError as e:
            log.error(str(e))
            return 1
        log.header(record.scenario_name or record.file_name)
        log.field("File", record.file_name)
        log.field("Played", record.date_played)
        log.field("Version", str(record.version))
        log.field("Points", str(len(record.mouse_trace)))
        if record.mouse_trace:
            first, last = record.mouse_trace[0], record.mouse_trace[-1]
            log.field("First", f"{first.ts.isoformat()} ({first.x}, {first.y})")
            log.field("Last", f"{last.ts.isoformat()} ({last.x}, {last.y})")
        return 0

    log.error("Specify an action: show or path")
    return 1


def cmd_settings(args: argparse.Namespace) -> int:
    if args.settings_command == "reset":
        path = save_settings(Settings.default().sanitize())
        log.success(f"Settings reset: {path}")
        return 0

    settings = _load_settings_or_default()
    log.header(f"Settings ({settings_path()})")
    for key, value in settings.model_dump().items():
        log.field(key, str(value))
    return 0


COMMANDS = {
    "parse": cmd_parse,
    "watch": cmd_watch,
    "traces": cmd_traces,
    "settings": cmd_settings,
}


# =============================================================================
# Entry Point
# =============================================================================


def main(argv: Optional[list[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        log.set_color(False)
    configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return COMMANDS[args.command](args)
    except WatchPathError as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
