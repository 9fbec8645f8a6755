"""Session log parsing.

A stats export is two sections in one file:

    Kill #,Timestamp,Bot,Weapon,TTK,...        <- CSV header (dropped)
    1,16:56:01.123,Target,pistol,0.512s,...    <- event rows
    ...
    Weapon,Shots,Hits,...                      <- extra CSV tables (dropped)
    Kills:,22                                  <- first ":," switches section
    Hit Count:,180
    Challenge Start:,16:55:00.000

The file name carries the scenario name and the time the run finished:

    Air Tracking 180 - Challenge - 2025.09.09-16.57.00 Stats.csv
"""

from __future__ import annotations

import csv
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Union

from aimtrace.core.constants import SESSION_LOG_SUFFIX
from aimtrace.errors import FilenameFormatError, LogParseError
from aimtrace.ingest.encoding import wrap_text_stream
from aimtrace.models import FilenameInfo, SummaryValue

_log = logging.getLogger(__name__)

FILENAME_RE = re.compile(
    r"(?P<name>.+?)\s-\s.*?-\s(?P<dt>\d{4}\.\d{2}\.\d{2}-\d{2}\.\d{2}\.\d{2})\sStats\.csv",
    re.ASCII,
)
FILENAME_DT_FORMAT = "%Y.%m.%d-%H.%M.%S"

KV_SEPARATOR = ":,"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DIGITS = frozenset("0123456789")

ParsedLog = tuple[list[list[str]], dict[str, SummaryValue]]


# =============================================================================
# File Names
# =============================================================================


def localize_wall_time(naive: datetime) -> datetime:
    """Attach the local UTC offset in force at ``naive``'s own wall time."""
    return naive.astimezone()


def parse_filename(filename: Union[str, Path]) -> FilenameInfo:
    """Extract scenario name and played-at time from a session log name.

    Only the base name is considered. The timestamp is local time.

    Raises:
        FilenameFormatError: the name does not match the export pattern.
    """
    base = os.path.basename(str(filename))
    m = FILENAME_RE.fullmatch(base)
    if m is None:
        raise FilenameFormatError(f"filename did not match expected format: {base}")
    try:
        naive = datetime.strptime(m.group("dt"), FILENAME_DT_FORMAT)
    except ValueError as e:
        raise FilenameFormatError(f"invalid timestamp in filename {base}: {e}") from e
    return FilenameInfo(scenario_name=m.group("name"), date_played=localize_wall_time(naive))


def is_session_log_name(name: str) -> bool:
    """Report whether a file name looks like an exported stats csv."""
    return name.lower().endswith(SESSION_LOG_SUFFIX)


# =============================================================================
# Value Coercion
# =============================================================================


def coerce_summary_value(raw: str) -> SummaryValue:
    """Map trimmed summary text to int, else float, else the string itself."""
    value = raw.strip()
    if _INT_RE.fullmatch(value):
        number = int(value)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number
    if value and value.isascii() and "_" not in value:
        try:
            return float(value)
        except ValueError:
            pass
    return value


def summary_number(value: object) -> float:
    """Numeric view of a summary value; anything unparseable counts as 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


# =============================================================================
# Rows
# =============================================================================


def parse_csv_line(line: str) -> list[str]:
    """Tokenize one CSV line, honouring quotes.

    Raises:
        LogParseError: the quoting is malformed.
    """
    try:
        reader = csv.reader([line], skipinitialspace=True, strict=True)
        return next(reader, [])
    except csv.Error as e:
        raise LogParseError(f"malformed csv row {line!r}: {e}") from e


def is_event_row(rec: list[str]) -> bool:
    """True when a CSV record is a per-kill event row.

    Field 0 must be an integer index; field 1 must start with HH:MM:SS. A
    fractional-second suffix is allowed and not checked.
    """
    if len(rec) < 2:
        return False
    if not _INT_RE.fullmatch(rec[0].strip()):
        return False
    s = rec[1].strip()
    if len(s) < 8:
        return False
    if s[2] != ":" or s[5] != ":":
        return False
    return all(s[i] in _DIGITS for i in (0, 1, 3, 4, 6, 7))


# =============================================================================
# Files
# =============================================================================


def parse_log_text(text_lines) -> ParsedLog:
    """Split decoded log lines into event rows and the summary map."""
    events: list[list[str]] = []
    kv_lines: list[str] = []
    in_kv = False

    for line in text_lines:
        trimmed = line.rstrip("\r\n")
        if not trimmed:
            continue

        if not in_kv and KV_SEPARATOR in trimmed:
            in_kv = True

        if in_kv:
            kv_lines.append(trimmed)
            continue

        rec = parse_csv_line(trimmed)
        if is_event_row(rec):
            events.append(rec)

    summary: dict[str, SummaryValue] = {}
    for line in kv_lines:
        key, sep, value = line.partition(KV_SEPARATOR)
        if not sep:
            continue
        summary[key.strip()] = coerce_summary_value(value)

    return events, summary


def parse_log_file(path: Union[str, Path]) -> ParsedLog:
    """Parse a session log into (events, summary).

    Raises:
        OSError: the file cannot be read.
        LogParseError: a pre-summary line is not valid CSV.
    """
    with open(path, "rb") as f:
        text = wrap_text_stream(f)
    events, summary = parse_log_text(text)
    _log.debug(f"Parsed {path}: {len(events)} events, {len(summary)} summary keys")
    return events, summary
