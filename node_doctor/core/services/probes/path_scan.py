"""
PATH scan: every node binary reachable through PATH, and who owns it.

The first hit is the runtime a shell actually runs; later hits are
shadowed.  Each hit is attributed to a runner (a version manager, the
OS, or a package manager's temporary shim) and annotated with its
EOL and security status from the already-fetched release feeds.
"""

from __future__ import annotations

import logging
import ntpath
import os
import posixpath
import re
from datetime import datetime
from typing import TYPE_CHECKING

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import get_node_version
from node_doctor.core import context
from node_doctor.core.models.detector import ScanResults
from node_doctor.core.models.environment import FoundNode, RunnerInfo
from node_doctor.core.services.probes.release_feeds import (
    DistIndex,
    ReleaseSchedule,
    check_eol,
    check_security,
)

if TYPE_CHECKING:
    from node_doctor.detectors.registry import DetectorRegistry

logger = logging.getLogger(__name__)

_YARN_TEMP_RE = re.compile(r"[\\/]yarn--\d+-[\d.]+")

YARN_TEMP = RunnerInfo(name="yarn-temp", icon="🧶")
PNPM_TEMP = RunnerInfo(name="pnpm-temp", icon="📦")
SYSTEM = RunnerInfo(name="system", icon="💻")
UNKNOWN = RunnerInfo(name="unknown", icon="❓")


def _is_yarn_temp(path: str) -> bool:
    return bool(_YARN_TEMP_RE.search(path)) or "/T/yarn--" in path or "\\Temp\\yarn--" in path


def _is_pnpm_temp(path: str) -> bool:
    return ".pnpm" in path or "/T/pnpm-" in path or "\\Temp\\pnpm-" in path


def identify_runner(node_path: str, results: ScanResults, registry: DetectorRegistry) -> RunnerInfo:
    """Attribute a node binary to whatever put it on PATH.

    Detectors are tried in registration order and the first one whose
    base directory prefixes the path wins.
    """
    windows = context.is_windows()
    p = (ntpath if windows else posixpath).abspath(node_path)

    if _is_yarn_temp(p):
        return YARN_TEMP
    if _is_pnpm_temp(p):
        return PNPM_TEMP
    # fnm per-shell symlink dirs live outside FNM_DIR
    if "fnm_multishells" in p:
        fnm = registry.get("fnm")
        return RunnerInfo(name="fnm", icon=fnm.icon if fnm else "⚡")

    for detector in registry.all():
        result = results.get(detector.name)
        if not result or not result.base_dir:
            continue
        if windows:
            matched = p.lower().startswith(result.base_dir.lower())
        else:
            matched = p.startswith(result.base_dir)
        if matched:
            return RunnerInfo(name=detector.name, icon=detector.icon)

    if windows:
        if p.lower().startswith("c:\\program files"):
            return SYSTEM
    elif p.startswith("/usr/bin") or p.startswith("/usr/local/bin"):
        return SYSTEM

    return UNKNOWN


def unique_path_dirs() -> list[str]:
    """PATH entries, empty ones dropped, duplicates removed in order."""
    separator = ";" if context.is_windows() else ":"
    return list(dict.fromkeys(d for d in os.environ.get("PATH", "").split(separator) if d))


def scan_path_for_nodes(
    results: ScanResults,
    registry: DetectorRegistry,
    schedule: ReleaseSchedule | None = None,
    dist_index: DistIndex | None = None,
    now: datetime | None = None,
) -> tuple[list[FoundNode], list[str]]:
    """Find node binaries on PATH.

    Returns:
        (nodes, active_managers).  ``nodes`` is in PATH order with the
        first entry marked current; ``active_managers`` lists runner
        names in first-seen order.
    """
    executable = "node.exe" if context.is_windows() else "node"
    nodes: list[FoundNode] = []
    active: list[str] = []

    for directory in unique_path_dirs():
        node_path = os.path.join(directory, executable)
        if not fs.file_exists(node_path):
            continue

        runner = identify_runner(node_path, results, registry)
        if runner.name not in active:
            active.append(runner.name)

        version = get_node_version(node_path) or "unknown"
        nodes.append(FoundNode(
            executable=node_path,
            real_path=fs.real_path(node_path),
            runner=runner,
            version=version,
            is_current=not nodes,
            eol=check_eol(version, schedule, now=now) if schedule is not None else None,
            security=check_security(version, dist_index) if dist_index is not None else None,
        ))

    logger.debug("PATH scan: %d node binar%s", len(nodes), "y" if len(nodes) == 1 else "ies")
    return nodes, active
