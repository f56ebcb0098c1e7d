"""
Filesystem queries used by detectors and probes.

All helpers are read-only and tolerant: permission errors and paths
deleted mid-scan degrade to "absent" or zero instead of raising.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def file_exists(path: str | Path) -> bool:
    try:
        return Path(path).is_file()
    except OSError:
        return False


def dir_exists(path: str | Path) -> bool:
    try:
        return Path(path).is_dir()
    except OSError:
        return False


def path_exists(path: str | Path) -> bool:
    try:
        return Path(path).exists()
    except OSError:
        return False


def list_subdirs(path: str | Path) -> list[str]:
    """Names of the visible subdirectories of ``path``, sorted."""
    try:
        return sorted(
            entry.name
            for entry in os.scandir(path)
            if entry.is_dir() and not entry.name.startswith(".")
        )
    except OSError:
        return []


def list_dir(path: str | Path) -> list[str]:
    """All entry names in ``path``, sorted; empty when unreadable."""
    try:
        return sorted(os.listdir(path))
    except OSError:
        return []


def dir_size(path: str | Path) -> int:
    """Total size in bytes of regular files below ``path``.

    Symlinks are skipped so circular links and external targets are
    never counted.  Unreadable subtrees count as zero.
    """
    total = 0
    try:
        entries = list(os.scandir(path))
    except OSError:
        return 0

    for entry in entries:
        try:
            if entry.is_symlink():
                continue
            if entry.is_dir(follow_symlinks=False):
                total += dir_size(entry.path)
            else:
                total += entry.stat(follow_symlinks=False).st_size
        except OSError:
            continue
    return total


def read_text(path: str | Path) -> str | None:
    """File contents as text, or None if missing or unreadable."""
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def real_path(path: str | Path) -> str:
    """Resolve symlinks; return the input unchanged when resolution fails."""
    try:
        return os.path.realpath(path)
    except OSError:
        return str(path)


def is_writable(path: str | Path) -> bool:
    return os.access(path, os.W_OK)
