"""
Host context: which platform we diagnose and which project directory
the project-scoped checks (.nvmrc, package.json, .vscode, node_modules)
look at.

Both values are set ONCE at startup by the entry point:

    - CLI:    main.py   → context.set_project_dir(Path.cwd())
    - Tests:  conftest  → context.set_platform("linux")

Design notes:
    - Module-level singleton (not a class), like the rest of the core
      infrastructure.
    - current_platform() falls back to sys.platform when no override
      is registered.
    - get_project_dir() falls back to the process cwd.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal, Optional

Platform = Literal["darwin", "linux", "win32"]

VALID_PLATFORMS: tuple[str, ...] = ("darwin", "linux", "win32")

_platform_override: Optional[str] = None
_project_dir: Optional[Path] = None


def _detect_platform() -> str:
    if sys.platform.startswith("win"):
        return "win32"
    if sys.platform == "darwin":
        return "darwin"
    return "linux"


def set_platform(platform: str | None) -> None:
    """Force the platform tag (None restores auto-detection)."""
    global _platform_override
    _platform_override = platform


def current_platform() -> str:
    """Return the platform tag: darwin, linux or win32."""
    return _platform_override or _detect_platform()


def is_windows() -> bool:
    return current_platform() == "win32"


def is_mac() -> bool:
    return current_platform() == "darwin"


def set_project_dir(path: Path | None) -> None:
    """Register the project directory for the current process."""
    global _project_dir
    _project_dir = path


def get_project_dir() -> Path:
    """Return the project directory, or the cwd when unset."""
    return _project_dir or Path.cwd()


def home_dir() -> Path:
    """The user's home directory (honours $HOME / %USERPROFILE%)."""
    return Path.home()
