"""Time-windowed motion sample buffers.

The watcher only needs two things from a sample source: whether it is
capturing, and a copy of the samples inside a time range. Device capture is
platform-specific and lives outside this package; it feeds a
BufferedSampleProvider through add_sample()/add_delta().
"""

from __future__ import annotations

import bisect
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable

from aimtrace.core.constants import DEFAULT_MOUSE_BUFFER_MINUTES
from aimtrace.models import MotionSample

_log = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now().astimezone()


@runtime_checkable
class SampleProvider(Protocol):
    """Read side of a motion sample source. Safe for concurrent use."""

    def enabled(self) -> bool:
        ...

    def get_range(self, start: datetime, end: datetime) -> list[MotionSample]:
        ...


class NullSampleProvider:
    """Stand-in used when no capture is attached. Always empty."""

    def enabled(self) -> bool:
        return False

    def get_range(self, start: datetime, end: datetime) -> list[MotionSample]:
        return []


class BufferedSampleProvider:
    """Thread-safe rolling buffer of motion samples.

    Samples older than ``now - buffer_duration`` are pruned on every append.
    Positions live in an unbounded virtual space: add_delta() accumulates
    relative motion without clamping to any screen.
    """

    def __init__(self, buffer_duration: Optional[timedelta] = None) -> None:
        self._lock = threading.Lock()
        self._running = False
        self._buffer_duration = buffer_duration or timedelta(
            minutes=DEFAULT_MOUSE_BUFFER_MINUTES
        )
        self._samples: list[MotionSample] = []
        self._times: list[datetime] = []
        self._vx = 0
        self._vy = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin accepting samples. No-op if already running."""
        with self._lock:
            if self._running:
                return
            self._running = True
        _log.info("Sample buffer started")

    def stop(self) -> None:
        """Stop accepting samples and drop the buffer. No-op if stopped."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._samples = []
            self._times = []
        _log.info("Sample buffer stopped")

    def enabled(self) -> bool:
        with self._lock:
            return self._running

    @property
    def buffer_duration(self) -> timedelta:
        with self._lock:
            return self._buffer_duration

    def set_buffer_duration(self, duration: timedelta) -> None:
        """Change the retention window and prune immediately."""
        with self._lock:
            self._buffer_duration = duration
            self._prune(_now())

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def add_sample(self, x: int, y: int, ts: Optional[datetime] = None) -> bool:
        """Append an absolute position. Returns False when not running."""
        with self._lock:
            if not self._running:
                return False
            self._vx = int(x)
            self._vy = int(y)
            self._append(ts or _now())
            return True

    def add_delta(self, dx: int, dy: int, ts: Optional[datetime] = None) -> bool:
        """Accumulate relative motion into the virtual position and append it."""
        with self._lock:
            if not self._running:
                return False
            self._vx += int(dx)
            self._vy += int(dy)
            self._append(ts or _now())
            return True

    def _append(self, ts: datetime) -> None:
        # Keep the buffer sorted: a late timestamp is clamped to the newest one.
        if self._times and ts < self._times[-1]:
            ts = self._times[-1]
        self._samples.append(MotionSample(ts=ts, x=self._vx, y=self._vy))
        self._times.append(ts)
        self._prune(ts)

    def _prune(self, now: datetime) -> None:
        cutoff = now - self._buffer_duration
        i = bisect.bisect_left(self._times, cutoff)
        if i > 0:
            del self._samples[:i]
            del self._times[:i]

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_range(self, start: datetime, end: datetime) -> list[MotionSample]:
        """Copy of samples with start <= ts <= end, in timestamp order."""
        with self._lock:
            if not self._samples or end < start:
                return []
            lo = bisect.bisect_left(self._times, start)
            hi = bisect.bisect_right(self._times, end)
            return list(self._samples[lo:hi])

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
