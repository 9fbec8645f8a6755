"""
Shared utilities for aimtrace: console logger, logging setup, paths.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from aimtrace.core.constants import CONFIG_DIR_NAME, ENV_HOME_DIR, TRACES_SUBDIR_NAME


# =============================================================================
# Console Logging
# =============================================================================


class Logger:
    """Console output for the CLI.

    Color is decided per write: an explicit set_color() wins, otherwise the
    stream must be a TTY.
    The stream is resolved on every write so a swapped sys.stdout is used.
    """

    _CODES = {
        "red": "91",
        "green": "92",
        "yellow": "93",
        "cyan": "96",
        "bold": "1",
        "dim": "2",
    }

    def __init__(self, use_color: Optional[bool] = None, stream: Optional[TextIO] = None):
        self._use_color = use_color
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def set_color(self, use_color: bool) -> None:
        self._use_color = use_color

    def _paint(self, text: str, *styles: str) -> str:
        use_color = self._use_color
        if use_color is None:
            use_color = self.stream.isatty()
        if not use_color or not styles:
            return text
        codes = ";".join(self._CODES[s] for s in styles)
        return f"\033[{codes}m{text}\033[0m"

    def _write(self, line: str) -> None:
        print(line, file=self.stream)

    def _tagged(self, tag: str, color: str, message: str) -> None:
        self._write(f"  {self._paint(f'[{tag}]', color)} {message}")

    def header(self, title: str) -> None:
        self._write("")
        self._write(f"{self._paint('==', 'cyan')} {self._paint(title, 'bold')}")

    def info(self, message: str) -> None:
        self._write(f"  {message}")

    def success(self, message: str) -> None:
        self._tagged("OK", "green", message)

    def warning(self, message: str) -> None:
        self._tagged("WARN", "yellow", message)

    def error(self, message: str) -> None:
        self._tagged("ERROR", "red", message)

    def dim(self, message: str) -> None:
        self._write(f"  {self._paint(message, 'dim')}")

    def field(self, label: str, value: object, width: int = 14) -> None:
        """One ``label  value`` line under a header or record."""
        self._write(f"    {self._paint(label.ljust(width), 'dim')} {value}")


log = Logger()


def configure_logging(verbose: bool = False) -> None:
    """Route library log records to stderr.

    Library modules log through ``logging.getLogger(__name__)``; the CLI
    calls this once so their warnings show up next to console output.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("aimtrace").setLevel(level)


# =============================================================================
# Path Utilities
# =============================================================================


def get_config_dir(create: bool = True) -> Path:
    """Return the application config directory ($HOME/.aimtrace).

    ``AIMTRACE_HOME`` overrides the location.
    """
    override = os.environ.get(ENV_HOME_DIR, "").strip()
    base = Path(override).expanduser() if override else Path.home() / CONFIG_DIR_NAME
    if create:
        base.mkdir(parents=True, exist_ok=True)
    return base


def default_traces_dir() -> Path:
    """Return the default trace storage directory ($HOME/.aimtrace/traces)."""
    return get_config_dir(create=False) / TRACES_SUBDIR_NAME
