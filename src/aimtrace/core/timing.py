"""Per-scan timing and counters for watcher diagnostics."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class ScanStats:
    """What one directory scan did and where the time went.

    Usage:
        stats = ScanStats()
        with stats.phase("list"):
            files = list_dir()
        stats.candidates = len(files)
    """

    candidates: int = 0
    added: int = 0
    failed: int = 0
    phases: dict[str, float] = field(default_factory=dict)

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """Accumulate wall-clock time under ``name``. Re-entering adds to it."""
        start = time.monotonic()
        try:
            yield
        finally:
            self.phases[name] = self.phases.get(name, 0.0) + (time.monotonic() - start)

    @property
    def total(self) -> float:
        return sum(self.phases.values())

    def summary(self) -> str:
        """One-line summary, e.g. ``3 candidates, 1 new, 0 failed | list 0.4ms | parse 7.9ms``."""
        head = f"{self.candidates} candidates, {self.added} new, {self.failed} failed"
        if not self.phases:
            return head
        parts = [f"{name} {format_duration(secs)}" for name, secs in self.phases.items()]
        return " | ".join([head, *parts])


def format_duration(seconds: float) -> str:
    """Short duration text: ``7.9ms`` below a second, ``2.3s`` below a minute,
    ``1m 5.3s`` above."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, remaining = divmod(seconds, 60)
    return f"{int(minutes)}m {remaining:.1f}s"
