"""Derived per-session metrics.

Adds three keys to a parsed summary:

- "Date Played": the file name timestamp as RFC 3339 text
- "Accuracy": Hit Count / (Hit Count + Miss Count), 0.0 when both are zero
- "Real Avg TTK": mean gap in seconds between consecutive event rows

The reported "Fight Time" is not used for TTK; its units changed between
trainer versions. Only deltas between event timestamps are trusted.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from aimtrace.core.constants import (
    KEY_ACCURACY,
    KEY_DATE_PLAYED,
    KEY_HIT_COUNT,
    KEY_MISS_COUNT,
    KEY_REAL_AVG_TTK,
)
from aimtrace.ingest.parser import localize_wall_time, summary_number
from aimtrace.models import SummaryValue

# Tried in order; %f takes microsecond or millisecond precision.
TIME_OF_DAY_FORMATS = ("%H:%M:%S.%f", "%H:%M:%S")

# %f stops at six digits; finer fractions are truncated to microseconds.
_MAX_FRACTION_DIGITS = 6


def _truncate_fraction(value: str) -> str:
    head, dot, fraction = value.partition(".")
    if dot and len(fraction) > _MAX_FRACTION_DIGITS:
        return f"{head}.{fraction[:_MAX_FRACTION_DIGITS]}"
    return value


def parse_time_of_day_on_date(value: str, date: datetime) -> Optional[datetime]:
    """Place a clock time such as ``16:56:01.123`` on the calendar day of ``date``.

    An aware ``date`` yields a local time whose offset follows the local
    daylight-saving rules for that wall time, not ``date``'s own offset. A
    naive ``date`` yields a naive result. Returns None when no format matches.
    """
    if not isinstance(value, str):
        return None
    value = _truncate_fraction(value)
    for fmt in TIME_OF_DAY_FORMATS:
        try:
            t = datetime.strptime(value, fmt)
        except ValueError:
            continue
        wall = datetime.combine(date.date(), t.time())
        if date.tzinfo is None:
            return wall
        return localize_wall_time(wall)
    return None


def compute_accuracy(summary: dict[str, SummaryValue]) -> float:
    hit = summary_number(summary.get(KEY_HIT_COUNT, 0))
    miss = summary_number(summary.get(KEY_MISS_COUNT, 0))
    denom = hit + miss
    if denom > 0:
        return hit / denom
    return 0.0


def compute_real_avg_ttk(
    events: list[list[str]], date_played: datetime
) -> Optional[float]:
    """Average seconds between consecutive event rows.

    Negative gaps are skipped in the sum but still counted as intervals.
    Returns None if fewer than two rows carry a parseable time.
    """
    if len(events) < 2:
        return None

    times: list[datetime] = []
    for row in events:
        if len(row) < 2:
            continue
        t = parse_time_of_day_on_date(row[1], date_played)
        if t is not None:
            times.append(t)

    if len(times) < 2:
        return None

    total = timedelta(0)
    for prev, cur in zip(times, times[1:]):
        dt = cur - prev
        if dt > timedelta(0):
            total += dt
    return total.total_seconds() / (len(times) - 1)


def derive_metrics(
    events: list[list[str]],
    summary: dict[str, SummaryValue],
    date_played: datetime,
) -> dict[str, SummaryValue]:
    """Augment ``summary`` in place with derived fields and return it."""
    summary[KEY_DATE_PLAYED] = date_played.isoformat()
    summary[KEY_ACCURACY] = compute_accuracy(summary)

    ttk = compute_real_avg_ttk(events, date_played)
    if ttk is not None:
        summary[KEY_REAL_AVG_TTK] = ttk

    return summary
