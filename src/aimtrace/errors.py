"""Exception types raised by the ingestion pipeline.

Each class also derives from the closest built-in so callers can catch
either the specific type or the generic one.
"""

from __future__ import annotations


class AimTraceError(Exception):
    """Base class for aimtrace errors."""


class FilenameFormatError(AimTraceError, ValueError):
    """A file name does not follow the session log naming scheme."""


class LogParseError(AimTraceError, ValueError):
    """A session log could not be tokenized."""


class WatcherConfigError(AimTraceError, RuntimeError):
    """The watcher was reconfigured while running."""


class WatchPathError(AimTraceError, OSError):
    """The watch directory could not be listed."""


class TraceDecodeError(AimTraceError, ValueError):
    """A persisted trace file exists but is not a valid trace document."""
