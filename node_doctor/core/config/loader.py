"""
Settings loader: reads node-doctor.yml into a validated Settings model.

The file is optional.  Every field has a default that matches the
behaviour of the tool without any configuration, and the two feed
URLs can always be overridden from the environment (handy for CI
mirrors and for tests).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SETTINGS_FILE = "node-doctor.yml"

DEFAULT_SCHEDULE_URL = "https://raw.githubusercontent.com/nodejs/Release/main/schedule.json"
DEFAULT_DIST_URL = "https://nodejs.org/dist/index.json"

ENV_SCHEDULE_URL = "NODE_DOCTOR_SCHEDULE_URL"
ENV_DIST_URL = "NODE_DOCTOR_DIST_URL"


class ConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""


class Settings(BaseModel):
    """Tunables for network probes and the collector."""

    schedule_url: str = DEFAULT_SCHEDULE_URL
    dist_url: str = DEFAULT_DIST_URL
    feed_timeout: float = Field(default=10.0, gt=0)
    registry_timeout: float = Field(default=3.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    registry_latency_warn_ms: int = Field(default=2000, ge=0)
    skip_ports: bool = False
    skip_shell: bool = False


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for node-doctor.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the settings file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def apply_env_overrides(settings: Settings) -> Settings:
    """Return a copy of settings with NODE_DOCTOR_* URL overrides applied."""
    updates: dict[str, str] = {}
    if os.environ.get(ENV_SCHEDULE_URL):
        updates["schedule_url"] = os.environ[ENV_SCHEDULE_URL]
    if os.environ.get(ENV_DIST_URL):
        updates["dist_url"] = os.environ[ENV_DIST_URL]
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def load_settings(path: Path | None = None, search: bool = True) -> Settings:
    """Load settings from YAML (if any) and apply environment overrides.

    Args:
        path: Explicit settings file. If None and ``search`` is True,
            searches upward from the cwd.
        search: Whether to look for a settings file when ``path`` is None.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_settings_file()

    if path is None:
        return apply_env_overrides(Settings())

    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "node_doctor" key or be flat
    section = data.get("node_doctor", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'node_doctor' to be a mapping in {path}")

    try:
        settings = Settings.model_validate(section)
    except Exception as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    return apply_env_overrides(settings)
