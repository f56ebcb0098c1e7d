"""
Installation aggregation across managers.

Turns ScanResults into the per-manager view the health rules use and
finds versions that are installed more than once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from node_doctor.core.models.detector import ScanResults
from node_doctor.core.models.health import (
    DetectedManager,
    DuplicateVersion,
    ManagerInstallation,
)

if TYPE_CHECKING:
    from node_doctor.detectors.registry import DetectorRegistry

logger = logging.getLogger(__name__)


def detected_managers(
    registry: DetectorRegistry,
    results: ScanResults,
    platform: str | None = None,
) -> list[DetectedManager]:
    """Every applicable manager with at least one installation, in registration order.

    The PATH analysis detector is skipped; it owns no installations.
    """
    managers: list[DetectedManager] = []
    for detector in registry.for_platform(platform):
        if detector.name == "path":
            continue
        result = results.get(detector.name)
        if not result or not result.installations:
            continue
        managers.append(DetectedManager(
            name=detector.name,
            display_name=detector.display_name,
            icon=detector.icon,
            base_dir=result.base_dir or "",
            version_count=len(result.installations),
            total_size=sum(inst.size or 0 for inst in result.installations),
            env_var=result.env_var,
            env_var_set=result.env_var_set,
            installations=[
                ManagerInstallation(version=inst.version, path=inst.path, size=inst.size or 0)
                for inst in result.installations
            ],
        ))
    return managers


def detect_duplicate_versions(managers: list[DetectedManager]) -> list[DuplicateVersion]:
    """Versions installed under two or more distinct managers, largest first.

    ``managers`` on each entry lists manager names in first-seen order;
    ``total_size`` sums every copy.
    """
    by_version: dict[str, tuple[list[str], list[int]]] = {}
    for mgr in managers:
        for inst in mgr.installations:
            names, sizes = by_version.setdefault(inst.version, ([], []))
            if mgr.name not in names:
                names.append(mgr.name)
            sizes.append(inst.size or 0)

    duplicates = [
        DuplicateVersion(version=version, managers=names, total_size=sum(sizes))
        for version, (names, sizes) in by_version.items()
        if len(names) > 1
    ]
    # stable: ties keep first-seen version order
    duplicates.sort(key=lambda d: d.total_size, reverse=True)
    logger.debug("Found %d duplicate version(s)", len(duplicates))
    return duplicates


def reclaimable_bytes(duplicates: list[DuplicateVersion]) -> int:
    """Approximate bytes freed by keeping a single copy of each duplicate.

    Assumes the copies are the same size, so each entry frees
    ``total - total / copies``.
    """
    total = 0.0
    for dup in duplicates:
        if not dup.managers:
            continue
        total += dup.total_size - dup.total_size / len(dup.managers)
    return int(total)
