"""
Shared building blocks for detectors.

Most managers keep one directory per Node version below a root that
can be moved with an environment variable.  These helpers cover that
walk plus the per-platform data-directory conventions (XDG, macOS
Application Support, Windows AppData).
"""

from __future__ import annotations

import os
import re
from typing import Callable

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import get_node_version
from node_doctor.core import context
from node_doctor.core.models.detector import DetectorResult, Installation

ExecutableFn = Callable[[str], str]
ArchFn = Callable[[str], str]


def get_env(name: str) -> str | None:
    """Environment variable value, treating an empty string as unset."""
    return os.environ.get(name) or None


def home() -> str:
    return str(context.home_dir())


def executable_for(
    version_dir: str,
    windows: str = "node.exe",
    unix: str = os.path.join("bin", "node"),
) -> str:
    """Path of the node binary inside one version directory."""
    return os.path.join(version_dir, windows if context.is_windows() else unix)


def executable_getter(
    windows: str = "node.exe",
    unix: str = os.path.join("bin", "node"),
) -> ExecutableFn:
    return lambda version_dir: executable_for(version_dir, windows=windows, unix=unix)


def discover_installations(
    versions_dir: str,
    manager: str,
    executable: ExecutableFn = executable_for,
    arch: ArchFn | None = None,
) -> list[Installation]:
    """Walk ``versions_dir`` and return every subdirectory holding a node binary."""
    if not fs.dir_exists(versions_dir):
        return []

    installations: list[Installation] = []
    for name in fs.list_subdirs(versions_dir):
        version_dir = os.path.join(versions_dir, name)
        node_path = executable(version_dir)
        if not fs.file_exists(node_path):
            continue
        installations.append(Installation(
            version=re.sub(r"^v", "", name),
            path=version_dir,
            executable=node_path,
            size=fs.dir_size(version_dir),
            verified=get_node_version(node_path),
            manager=manager,
            arch=arch(version_dir) if arch else None,
        ))
    return installations


def read_default_version(path: str) -> str | None:
    """First-line content of an alias/default file, or None."""
    if not fs.file_exists(path):
        return None
    text = fs.read_text(path)
    if text is None:
        return None
    return text.strip() or None


def resolve_base_dir(env_var: str, fallback: str) -> str:
    return get_env(env_var) or fallback


def first_existing_dir(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate and fs.dir_exists(candidate):
            return candidate
    return None


def windows_appdata_dirs(app: str) -> tuple[str, str]:
    """(local, roaming) AppData directories for ``app``."""
    local = get_env("LOCALAPPDATA") or os.path.join(home(), "AppData", "Local")
    roaming = get_env("APPDATA") or os.path.join(home(), "AppData", "Roaming")
    return os.path.join(local, app), os.path.join(roaming, app)


def xdg_data_dir(app: str) -> str:
    data_home = get_env("XDG_DATA_HOME") or os.path.join(home(), ".local", "share")
    return os.path.join(data_home, app)


def mac_app_support_dir(app: str) -> str:
    return os.path.join(home(), "Library", "Application Support", app)


def create_detector_result(
    base_dir: str,
    installations: list[Installation],
    env_var: str | None,
    versions_dir: str | None = None,
    default_version: str | None = None,
    **extras,
) -> DetectorResult | None:
    """Standard result, or None when nothing was installed."""
    if not installations:
        return None
    return DetectorResult(
        base_dir=base_dir,
        versions_dir=versions_dir or base_dir,
        installations=installations,
        default_version=default_version,
        env_var=env_var,
        env_var_set=bool(get_env(env_var)) if env_var else None,
        **extras,
    )


# ── Version ordering ────────────────────────────────────────────


def _numeric_parts(version: str) -> list[int]:
    parts = []
    for raw in (version or "").split(".")[:3]:
        parts.append(int(raw) if raw.isdigit() else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts


def compare_versions(a: str, b: str) -> int:
    """Comparator that sorts newest first.

    Three numeric components; missing or non-numeric components count
    as zero.  Negative when ``a`` is newer than ``b``.
    """
    pa, pb = _numeric_parts(a), _numeric_parts(b)
    for x, y in zip(pa, pb):
        if x != y:
            return y - x
    return 0


def discover_arch_installations(
    versions_dir: str,
    manager: str,
    executable: ExecutableFn = executable_for,
) -> list[Installation]:
    """Walk a ``<version>/<arch>/`` layout (nvs, nodist)."""
    installations: list[Installation] = []
    for name in fs.list_subdirs(versions_dir):
        version_dir = os.path.join(versions_dir, name)
        for arch in fs.list_subdirs(version_dir):
            arch_dir = os.path.join(version_dir, arch)
            node_path = executable(arch_dir)
            if not fs.file_exists(node_path):
                continue
            installations.append(Installation(
                version=re.sub(r"^v", "", name),
                path=arch_dir,
                executable=node_path,
                size=fs.dir_size(arch_dir),
                verified=get_node_version(node_path),
                manager=manager,
                arch=arch,
            ))
    return installations
