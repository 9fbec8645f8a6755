"""Record types shared across the ingestion pipeline.

- MotionSample: one timestamped position in the virtual coordinate space
- SessionRecord: a parsed session log plus its optional motion trace
- WatcherConfig: runtime configuration for the directory watcher
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from aimtrace.core.constants import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SESSION_GAP_MINUTES,
)

# A summary value is an int, a float or a string. The Python type is the tag;
# see aimtrace.ingest.parser.coerce_summary_value for how raw text is mapped.
SummaryValue = Union[int, float, str]


@dataclass(frozen=True)
class MotionSample:
    """A single position sample with a timestamp."""

    ts: datetime
    x: int
    y: int

    def to_dict(self) -> dict:
        return {"ts": self.ts.isoformat(), "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "MotionSample":
        ts = data["ts"]
        if not isinstance(ts, datetime):
            ts = datetime.fromisoformat(str(ts))
        return cls(ts=ts, x=int(data.get("x", 0)), y=int(data.get("y", 0)))


def traces_equal(a: list[MotionSample], b: list[MotionSample]) -> bool:
    """Exact trace equality: same length, same ts/x/y at every index."""
    if len(a) != len(b):
        return False
    for pa, pb in zip(a, b):
        if pa.ts != pb.ts or pa.x != pb.x or pa.y != pb.y:
            return False
    return True


@dataclass
class SessionRecord:
    """One parsed session log.

    Identity is the absolute file path.
    """

    file_path: str
    file_name: str
    stats: dict[str, SummaryValue] = field(default_factory=dict)
    events: list[list[str]] = field(default_factory=list)
    mouse_trace: list[MotionSample] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the JSON-serializable shape announced to collaborators."""
        d: dict[str, Any] = {
            "filePath": self.file_path,
            "fileName": self.file_name,
            "stats": dict(self.stats),
            "events": [list(row) for row in self.events],
        }
        if self.mouse_trace:
            d["mouseTrace"] = [p.to_dict() for p in self.mouse_trace]
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        return cls(
            file_path=data["filePath"],
            file_name=data.get("fileName", ""),
            stats=dict(data.get("stats", {})),
            events=[list(row) for row in data.get("events", [])],
            mouse_trace=[MotionSample.from_dict(p) for p in data.get("mouseTrace", [])],
        )


@dataclass
class WatcherConfig:
    """Runtime configuration for the directory watcher."""

    path: str
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS  # seconds
    # Reserved for session-level grouping; not used by the watcher itself.
    session_gap: float = DEFAULT_SESSION_GAP_MINUTES * 60.0  # seconds
    parse_existing_on_start: bool = True
    parse_existing_limit: int = 0  # 0 = no limit
    fs_events: bool = False  # wake the poll loop early on filesystem events


@dataclass
class FilenameInfo:
    """Scenario name and played-at time recovered from a session log name."""

    scenario_name: str
    date_played: datetime
