"""
Analysis detectors: the OS-installed runtime and the PATH itself.

Neither owns deletable installations.  ``system`` reports node binaries
in the OS locations that are not symlinks into a version manager;
``path`` reports every node binary reachable through PATH.
"""

from __future__ import annotations

import os

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import get_node_version, run_command
from node_doctor.core import context
from node_doctor.core.models.detector import (
    DetectorResult,
    Installation,
    PathAnalysis,
    PathNode,
)
from node_doctor.detectors.base import Detector
from node_doctor.detectors.managers.version_dirs import ALL

UNIX_SYSTEM_NODES = ("/usr/bin/node", "/usr/local/bin/node")
WINDOWS_SYSTEM_NODES = (
    "C:\\Program Files\\nodejs\\node.exe",
    "C:\\Program Files (x86)\\nodejs\\node.exe",
)

# Markers of a version-manager symlink target
MANAGED_MARKERS = (".nvm", "fnm", ".volta", ".asdf", "/n/versions", "Cellar")

MAX_PATH_DIRS = 20


def system_candidates() -> tuple[str, ...]:
    return WINDOWS_SYSTEM_NODES if context.is_windows() else UNIX_SYSTEM_NODES


def path_dirs() -> list[str]:
    separator = ";" if context.is_windows() else ":"
    return [d for d in os.environ.get("PATH", "").split(separator) if d]


def node_executable_name() -> str:
    return "node.exe" if context.is_windows() else "node"


class SystemDetector(Detector):
    name = "system"
    display_name = "System Installation"
    icon = "💻"
    platforms = ALL
    can_delete = False

    def detect(self) -> DetectorResult | None:
        candidates = system_candidates()
        installations: list[Installation] = []
        for node_path in candidates:
            if not fs.file_exists(node_path):
                continue
            resolved = fs.real_path(node_path)
            if any(marker in resolved for marker in MANAGED_MARKERS):
                continue
            installations.append(Installation(
                version="system",
                path=os.path.dirname(node_path),
                executable=node_path,
                size=0,
                verified=get_node_version(node_path),
                manager="system",
                real_path=resolved if resolved != node_path else None,
            ))

        if not installations:
            return None
        return DetectorResult(base_dir=candidates[0], installations=installations)


class PathDetector(Detector):
    name = "path"
    display_name = "PATH Environment"
    icon = "🛤️"
    platforms = ALL
    can_delete = False

    def detect(self) -> DetectorResult:
        dirs = path_dirs()
        executable = node_executable_name()

        found: list[PathNode] = []
        for directory in dirs:
            node_path = os.path.join(directory, executable)
            if not fs.file_exists(node_path):
                continue
            resolved = fs.real_path(node_path)
            found.append(PathNode(
                path_dir=directory,
                executable=node_path,
                real_path=resolved if resolved != node_path else None,
                verified=get_node_version(node_path),
            ))

        active = run_command("where" if context.is_windows() else "which", ["node"])
        return DetectorResult(
            base_dir="",
            installations=[],
            path_info=PathAnalysis(
                total_path_dirs=len(dirs),
                found_nodes=found,
                active_node=active,
                path_dirs=dirs[:MAX_PATH_DIRS],
            ),
        )
