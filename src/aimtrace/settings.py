"""
Application settings.

Settings live in ``$HOME/.aimtrace/settings.yaml``. A ``.env`` file in the
config directory (then the working directory) is loaded once per process
without overriding variables already present in the real environment.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from aimtrace.core.constants import (
    DEFAULT_MAX_EXISTING_ON_START,
    DEFAULT_MOUSE_BUFFER_MINUTES,
    DEFAULT_SESSION_GAP_MINUTES,
    DEFAULT_WINDOWS_STATS_DIR,
    ENV_STATS_DIR,
    SETTINGS_FILE_NAME,
)
from aimtrace.core.utils import default_traces_dir, get_config_dir

_log = logging.getLogger(__name__)

_env_loaded = False


# =============================================================================
# Environment
# =============================================================================


def get_env(key: str) -> str:
    """Return an environment variable, loading ``.env`` files on first miss."""
    global _env_loaded
    value = os.environ.get(key, "")
    if value:
        return value
    if not _env_loaded:
        _env_loaded = True
        for candidate in (get_config_dir(create=False) / ".env", Path.cwd() / ".env"):
            if candidate.is_file():
                load_dotenv(candidate, override=False)
    return os.environ.get(key, "")


def default_stats_dir() -> str:
    """OS-appropriate default stats directory.

    ``AIMTRACE_STATS_DIR`` overrides it everywhere. Outside Windows there is
    no default and the user must configure one.
    """
    env = get_env(ENV_STATS_DIR).strip()
    if env:
        return str(Path(env).expanduser())
    if sys.platform == "win32":
        return DEFAULT_WINDOWS_STATS_DIR
    return ""


# =============================================================================
# Model
# =============================================================================


class Settings(BaseModel):
    """Persisted application settings."""

    stats_dir: str = Field("", description="Directory the trainer writes stats files to")
    traces_dir: str = Field("", description="Directory for persisted motion traces")
    session_gap_minutes: int = Field(
        DEFAULT_SESSION_GAP_MINUTES,
        description="Idle gap that separates play sessions",
    )
    mouse_tracking_enabled: bool = Field(False, description="Capture motion samples")
    mouse_buffer_minutes: int = Field(
        DEFAULT_MOUSE_BUFFER_MINUTES,
        description="How long captured samples are kept in memory",
    )
    max_existing_on_start: int = Field(
        DEFAULT_MAX_EXISTING_ON_START,
        description="Most recent existing logs parsed when the watcher starts",
    )

    @classmethod
    def default(cls) -> "Settings":
        """Sane defaults for a fresh install."""
        return cls(
            stats_dir=default_stats_dir(),
            traces_dir=str(default_traces_dir()),
        )

    def sanitize(self) -> "Settings":
        """Return a copy with defaults applied to empty or non-positive fields."""
        updates: dict = {}
        if not self.stats_dir:
            updates["stats_dir"] = default_stats_dir()
        if not self.traces_dir.strip():
            updates["traces_dir"] = str(default_traces_dir())
        if self.session_gap_minutes <= 0:
            updates["session_gap_minutes"] = DEFAULT_SESSION_GAP_MINUTES
        if self.mouse_buffer_minutes <= 0:
            updates["mouse_buffer_minutes"] = DEFAULT_MOUSE_BUFFER_MINUTES
        if self.max_existing_on_start <= 0:
            updates["max_existing_on_start"] = DEFAULT_MAX_EXISTING_ON_START
        return self.model_copy(update=updates)


# =============================================================================
# Persistence
# =============================================================================


def settings_path() -> Path:
    return get_config_dir() / SETTINGS_FILE_NAME


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from disk.

    Raises:
        FileNotFoundError: no settings file yet.
        ValueError: the file is not valid YAML or does not match the model.
    """
    path = path or settings_path()
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"invalid settings file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"invalid settings file {path}: expected a mapping")
    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid settings file {path}: {e}") from e


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Write settings to disk."""
    path = path or settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(settings.model_dump(), f, sort_keys=False)
    return path
