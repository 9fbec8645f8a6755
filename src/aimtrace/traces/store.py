"""Per-session trace persistence.

Each session log gets at most one JSON document under the base directory:

    <base>/Air Tracking 180 - Challenge - 2025.09.09-16.57.00.json

The document is a versioned container so more per-session data can be added
later without breaking old files.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from aimtrace.core.constants import SESSION_LOG_SUFFIX, TRACE_FORMAT_VERSION
from aimtrace.core.utils import default_traces_dir
from aimtrace.errors import TraceDecodeError
from aimtrace.models import MotionSample

_log = logging.getLogger(__name__)


@dataclass
class TraceRecord:
    """Persisted enrichment for one session log."""

    file_name: str
    scenario_name: str = ""
    date_played: str = ""  # RFC 3339
    mouse_trace: list[MotionSample] = field(default_factory=list)
    version: int = TRACE_FORMAT_VERSION

    def to_dict(self) -> dict:
        d: dict = {"version": self.version, "fileName": self.file_name}
        if self.scenario_name:
            d["scenarioName"] = self.scenario_name
        if self.date_played:
            d["datePlayed"] = self.date_played
        if self.mouse_trace:
            d["mouseTrace"] = [p.to_dict() for p in self.mouse_trace]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "TraceRecord":
        return cls(
            version=int(data.get("version", 0)),
            file_name=data.get("fileName", ""),
            scenario_name=data.get("scenarioName", ""),
            date_played=data.get("datePlayed", ""),
            mouse_trace=[MotionSample.from_dict(p) for p in data.get("mouseTrace") or []],
        )


def sanitize_name(name: str) -> str:
    """Reduce an arbitrary file name to a safe stem: base name, no separators."""
    base = os.path.basename(name) or name
    return base.replace("/", "_").replace("\\", "_")


def trace_file_name(file_name: str) -> str:
    """Map a session log name to its trace document name."""
    stem = sanitize_name(file_name)
    lower = stem.lower()
    if lower.endswith(SESSION_LOG_SUFFIX):
        return stem[: -len(SESSION_LOG_SUFFIX)] + ".json"
    if lower.endswith(".csv"):
        return stem[:-4] + ".json"
    if not lower.endswith(".json"):
        return stem + ".json"
    return stem


class TraceStore:
    """JSON-file store of TraceRecords keyed by session file name."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None) -> None:
        self._base_dir: Optional[Path] = None
        self.set_base_dir(base_dir)

    @property
    def base_dir(self) -> Path:
        if self._base_dir is not None:
            return self._base_dir
        return default_traces_dir()

    def set_base_dir(self, base_dir: Optional[Union[str, Path]]) -> None:
        """Point the store at a new directory. Existing files are not moved.

        An empty value restores the default directory.
        """
        if base_dir is None or not str(base_dir).strip():
            self._base_dir = None
        else:
            self._base_dir = Path(str(base_dir).strip()).expanduser()

    def _traces_dir(self) -> Path:
        path = self.base_dir
        path.mkdir(parents=True, exist_ok=True)
        return path

    def path_for(self, file_name: str) -> Path:
        """Full JSON path for the given session file name."""
        return self._traces_dir() / trace_file_name(file_name)

    def save(self, record: TraceRecord) -> Path:
        """Write a record to disk, overwriting any existing file.

        The version is always set to the current format version.
        """
        record.version = TRACE_FORMAT_VERSION
        path = self.path_for(record.file_name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, indent=2)
        return path

    def load(self, file_name: str) -> TraceRecord:
        """Read the record for a session file name.

        Raises:
            FileNotFoundError: no record exists.
            TraceDecodeError: the file is not a valid trace document.
        """
        path = self.path_for(file_name)
        raw = path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise TraceDecodeError(f"invalid trace file {path}: {e}") from e
        if not isinstance(data, dict):
            raise TraceDecodeError(f"invalid trace file {path}: expected an object")
        try:
            return TraceRecord.from_dict(data)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise TraceDecodeError(f"invalid trace file {path}: {e}") from e

    def exists(self, file_name: str) -> bool:
        """Whether a record file exists. Never decodes it."""
        try:
            return self.path_for(file_name).is_file()
        except OSError as e:
            _log.debug(f"Trace path unavailable for {file_name}: {e}")
            return False
