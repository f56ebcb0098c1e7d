"""
Homebrew / Linuxbrew detector.

Reports the ``node`` formula and every versioned ``node@N`` keg.  Kegs
are never deleted by this tool (``brew uninstall`` owns them), so the
detector is marked non-deletable.
"""

from __future__ import annotations

import logging
import os

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import get_node_version, run_command
from node_doctor.core.models.detector import DetectorResult, Installation
from node_doctor.detectors.base import Detector

logger = logging.getLogger(__name__)

BREW_PREFIXES = ("/opt/homebrew", "/usr/local", "/home/linuxbrew/.linuxbrew")


def find_brew_prefix() -> str | None:
    for prefix in BREW_PREFIXES:
        if fs.dir_exists(os.path.join(prefix, "Cellar")):
            return prefix
    return run_command("brew", ["--prefix"])


def _scan_formula(cellar: str, formula: str) -> list[Installation]:
    formula_dir = os.path.join(cellar, formula)
    found: list[Installation] = []
    for version in fs.list_subdirs(formula_dir):
        version_dir = os.path.join(formula_dir, version)
        node_path = os.path.join(version_dir, "bin", "node")
        if not fs.file_exists(node_path):
            continue
        found.append(Installation(
            version=version,
            path=version_dir,
            executable=node_path,
            size=fs.dir_size(version_dir),
            verified=get_node_version(node_path),
            manager="homebrew",
            formula=formula,
        ))
    return found


class HomebrewDetector(Detector):
    name = "homebrew"
    display_name = "Homebrew"
    icon = "🍺"
    platforms = ("darwin", "linux")
    can_delete = False

    def detect(self) -> DetectorResult | None:
        prefix = find_brew_prefix()
        if not prefix or not fs.dir_exists(prefix):
            return None

        cellar = os.path.join(prefix, "Cellar")
        installations = _scan_formula(cellar, "node")
        for formula in fs.list_dir(cellar):
            if formula.startswith("node@"):
                installations.extend(_scan_formula(cellar, formula))

        if not installations:
            return None

        linked = os.path.join(prefix, "bin", "node")
        linked_path = fs.real_path(linked) if fs.file_exists(linked) else None
        logger.debug("Homebrew prefix %s: %d node keg(s)", prefix, len(installations))

        return DetectorResult(
            base_dir=prefix,
            installations=installations,
            cellar_dir=cellar,
            linked_path=linked_path,
        )
