"""Session window derivation.

A session log says when the run ended (file name timestamp) but not reliably
when it began. The start is resolved from, in order:

1. the "Challenge Start" summary value
2. the time of the first event row
3. end minus FALLBACK_SESSION_SECONDS

If the start lands after the end the run crossed midnight, so it moves back
one day. The window is advisory: it slices a motion stream, nothing more.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from aimtrace.core.constants import FALLBACK_SESSION_SECONDS, KEY_CHALLENGE_START
from aimtrace.ingest.metrics import parse_time_of_day_on_date
from aimtrace.ingest.parser import localize_wall_time
from aimtrace.models import SummaryValue


def _previous_day(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t - timedelta(days=1)
    return localize_wall_time(t.replace(tzinfo=None) - timedelta(days=1))


def derive_session_window(
    end: datetime,
    summary: dict[str, SummaryValue],
    events: list[list[str]],
) -> tuple[datetime, datetime]:
    """Return (start, end) for a session that finished at ``end``."""
    start: Optional[datetime] = None

    challenge_start = summary.get(KEY_CHALLENGE_START)
    if isinstance(challenge_start, str):
        start = parse_time_of_day_on_date(challenge_start, end)

    if start is None and events and len(events[0]) > 1:
        start = parse_time_of_day_on_date(events[0][1], end)

    if start is None:
        start = end - timedelta(seconds=FALLBACK_SESSION_SECONDS)

    if start > end:
        start = _previous_day(start)

    return start, end
