"""
Shared pytest fixtures for aimtrace tests.

Every test runs with AIMTRACE_HOME pointed at a temp directory so nothing
touches the real ~/.aimtrace.

Test Tier Markers:
  @pytest.mark.evergreen - Tests that always run, never skip
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

import pytest

from aimtrace.core.constants import ENV_HOME_DIR, ENV_STATS_DIR
from aimtrace.models import MotionSample
from aimtrace.traces.store import TraceStore


# =============================================================================
# Test Data Constants
# =============================================================================

SPEED_FOCUS_NAME = "Speed Focus - Challenge - 2025.01.02-03.04.05 Stats.csv"

SPEED_FOCUS_LOG = """Kill #,Timestamp,Bot,Weapon,TTK,Shots,Hits,Accuracy,Damage Done,Damage Possible,,Efficiency,Cheated,OverShots
0,03:04:05.000,Target,pistol,0.500000s,1,1,1.000000,100.0,100.0,,1.000000,false,0
1,03:04:06.500,Target,pistol,1.500000s,2,1,0.500000,100.0,100.0,,1.000000,false,0

Weapon,Shots,Hits,Damage Done,Damage Possible,,,,,,,,
pistol,10,8,800.0,1000.0,,,,,,,,

Kills:,2
Deaths:,0
Fight Time:,1.5
Hit Count:,8
Miss Count:,2
Score:,512.5
Scenario:,Speed Focus
Challenge Start:,03:04:00.000
Game Version:,3.6.3.2024-01-01-00-00-00
"""


def make_log(
    times: list[str],
    hits: Optional[int] = 8,
    misses: Optional[int] = 2,
    challenge_start: Optional[str] = None,
) -> str:
    """Build a minimal session log with one event row per time."""
    lines = ["Kill #,Timestamp,Bot,Weapon,TTK,Shots,Hits"]
    for i, t in enumerate(times):
        lines.append(f"{i},{t},Target,pistol,0.5s,1,1")
    lines.append("")
    lines.append(f"Kills:,{len(times)}")
    if hits is not None:
        lines.append(f"Hit Count:,{hits}")
    if misses is not None:
        lines.append(f"Miss Count:,{misses}")
    if challenge_start is not None:
        lines.append(f"Challenge Start:,{challenge_start}")
    return "\n".join(lines) + "\n"


# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config directory at a temp dir for every test."""
    home = tmp_path / "aimtrace-home"
    monkeypatch.setenv(ENV_HOME_DIR, str(home))
    monkeypatch.delenv(ENV_STATS_DIR, raising=False)
    return home


# =============================================================================
# Files
# =============================================================================


@pytest.fixture
def stats_dir(tmp_path: Path) -> Path:
    path = tmp_path / "stats"
    path.mkdir()
    return path


@pytest.fixture
def write_log(stats_dir: Path) -> Callable[..., Path]:
    """Factory writing a session log into stats_dir.

    Usage:
        path = write_log("Scenario - Challenge - 2025.01.02-03.04.05 Stats.csv", text)
    """

    def _write(name: str, content: str = SPEED_FOCUS_LOG, encoding: str = "utf-8") -> Path:
        path = stats_dir / name
        path.write_bytes(content.encode(encoding))
        return path

    return _write


@pytest.fixture
def trace_store(tmp_path: Path) -> TraceStore:
    return TraceStore(tmp_path / "traces")


# =============================================================================
# Sample Provider
# =============================================================================


class FakeProvider:
    """In-memory sample provider with a fixed sample list."""

    def __init__(self, samples: Optional[list[MotionSample]] = None, enabled: bool = True):
        self.samples = list(samples or [])
        self._enabled = enabled
        self.calls: list[tuple[datetime, datetime]] = []

    def enabled(self) -> bool:
        return self._enabled

    def get_range(self, start: datetime, end: datetime) -> list[MotionSample]:
        self.calls.append((start, end))
        return [s for s in self.samples if start <= s.ts <= end]


def samples_between(start: datetime, count: int, step_ms: int = 100) -> list[MotionSample]:
    """Evenly spaced samples moving diagonally from the origin."""
    return [
        MotionSample(ts=start + timedelta(milliseconds=i * step_ms), x=i, y=-i)
        for i in range(count)
    ]


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
