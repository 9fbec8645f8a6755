"""
Centralized constants for aimtrace.

These are not user-editable and are never persisted. Keep magic strings and
default values here.
"""

from __future__ import annotations

# =============================================================================
# Watcher
# =============================================================================

# Bounds how many recent records are kept in memory when no explicit
# parse-existing limit is configured.
DEFAULT_RECENT_CAP = 500

DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_SESSION_GAP_MINUTES = 30
DEFAULT_MAX_EXISTING_ON_START = 500

# How long stop() waits for the poll thread before giving up.
STOP_JOIN_TIMEOUT = 5.0

# Case-insensitive suffix of exported session logs.
SESSION_LOG_SUFFIX = " stats.csv"

# =============================================================================
# Motion sampling
# =============================================================================

DEFAULT_MOUSE_BUFFER_MINUTES = 10

# Window length assumed when a log carries no usable start time.
FALLBACK_SESSION_SECONDS = 60

# =============================================================================
# Summary keys
# =============================================================================

KEY_HIT_COUNT = "Hit Count"
KEY_MISS_COUNT = "Miss Count"
KEY_CHALLENGE_START = "Challenge Start"
KEY_DATE_PLAYED = "Date Played"
KEY_ACCURACY = "Accuracy"
KEY_REAL_AVG_TTK = "Real Avg TTK"

# =============================================================================
# Settings + paths
# =============================================================================

CONFIG_DIR_NAME = ".aimtrace"
TRACES_SUBDIR_NAME = "traces"
SETTINGS_FILE_NAME = "settings.yaml"

DEFAULT_WINDOWS_STATS_DIR = (
    r"C:\Program Files (x86)\Steam\steamapps\common\FPSAimTrainer\FPSAimTrainer\stats"
)

# Overrides the default stats directory (useful in dev containers)
ENV_STATS_DIR = "AIMTRACE_STATS_DIR"
# Overrides the config base directory ($HOME/.aimtrace)
ENV_HOME_DIR = "AIMTRACE_HOME"

TRACE_FORMAT_VERSION = 1
