"""
aimtrace.core - Foundation layer: constants, console logging, paths, timing.
"""

from aimtrace.core.utils import (
    log,
    Logger,
    configure_logging,
    get_config_dir,
    default_traces_dir,
)
from aimtrace.core.timing import ScanStats, format_duration

__all__ = [
    "log",
    "Logger",
    "configure_logging",
    "get_config_dir",
    "default_traces_dir",
    "ScanStats",
    "format_duration",
]
