"""
aimtrace.traces - Persisted motion traces, one JSON document per session log.
"""

from aimtrace.traces.store import TraceRecord, TraceStore, sanitize_name, trace_file_name

__all__ = [
    "TraceRecord",
    "TraceStore",
    "sanitize_name",
    "trace_file_name",
]
