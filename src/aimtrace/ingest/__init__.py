"""
aimtrace.ingest - Session log decoding, parsing and derived metrics.
"""

from aimtrace.ingest.encoding import detect_encoding, decode_bytes, wrap_text_stream
from aimtrace.ingest.parser import (
    parse_filename,
    parse_log_file,
    parse_log_text,
    is_session_log_name,
    coerce_summary_value,
    summary_number,
)
from aimtrace.ingest.metrics import (
    derive_metrics,
    compute_accuracy,
    compute_real_avg_ttk,
    parse_time_of_day_on_date,
)
from aimtrace.ingest.window import derive_session_window

__all__ = [
    "detect_encoding",
    "decode_bytes",
    "wrap_text_stream",
    "parse_filename",
    "parse_log_file",
    "parse_log_text",
    "is_session_log_name",
    "coerce_summary_value",
    "summary_number",
    "derive_metrics",
    "compute_accuracy",
    "compute_real_avg_ttk",
    "parse_time_of_day_on_date",
    "derive_session_window",
]
