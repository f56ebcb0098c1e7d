"""
Detector registry: validation, lookup, scanning and aggregation.

The registry is the single point of detector management.  Scanning
runs every detector that applies to the platform, in registration
order, and isolates failures: a detector that raises is logged and
recorded as absent, never aborting the scan.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Iterable

from node_doctor.core import context
from node_doctor.core.context import VALID_PLATFORMS
from node_doctor.core.models.detector import (
    AggregatedInstallation,
    ManagerSummary,
    ScanResults,
)
from node_doctor.detectors.helpers import compare_versions

logger = logging.getLogger(__name__)

# Detectors that analyse the environment rather than own installations
ANALYSIS_ONLY = ("path", "system")


class DetectorValidationError(ValueError):
    """A detector is missing a required attribute or has an invalid one."""


class DuplicateDetectorError(ValueError):
    """A detector with the same name is already registered."""


class RegistryFrozenError(RuntimeError):
    """The registry was frozen and can no longer be modified."""


def validate_detector(detector: Any) -> str | None:
    """Return the first problem with ``detector``, or None when valid."""
    if detector is None:
        return "Detector is None"

    name = getattr(detector, "name", None)
    if not name or not isinstance(name, str):
        return 'Missing or invalid "name" property'

    display_name = getattr(detector, "display_name", None)
    if not display_name or not isinstance(display_name, str):
        return 'Missing or invalid "display_name" property'

    platforms = getattr(detector, "platforms", None)
    if not isinstance(platforms, (list, tuple)) or not platforms:
        return 'Missing or invalid "platforms" array'
    for platform in platforms:
        if platform not in VALID_PLATFORMS:
            return (
                f'Invalid platform "{platform}". '
                f"Must be one of: {', '.join(VALID_PLATFORMS)}"
            )

    if not callable(getattr(detector, "detect", None)):
        return 'Missing or invalid "detect" function'

    if not isinstance(getattr(detector, "can_delete", None), bool):
        return 'Missing or invalid "can_delete" boolean'

    return None


class DetectorRegistry:
    """Ordered collection of detectors.

    Features:
        - Validated registration with unique names
        - Platform filtering
        - Failure-isolated scanning
        - Flattened, version-sorted installation listing
        - freeze() to make the set read-only after startup
    """

    def __init__(self) -> None:
        self._detectors: list[Any] = []
        self._frozen = False

    # ── Mutation ────────────────────────────────────────────────

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Detector registry is frozen")

    def register(self, detector: Any) -> DetectorRegistry:
        """Register a detector.

        Raises:
            DetectorValidationError: If the detector is malformed.
            DuplicateDetectorError: If the name is already taken.
            RegistryFrozenError: If the registry was frozen.
        """
        self._check_mutable()
        error = validate_detector(detector)
        if error:
            raise DetectorValidationError(error)
        if any(d.name == detector.name for d in self._detectors):
            raise DuplicateDetectorError(
                f"Detector '{detector.name}' is already registered"
            )
        self._detectors.append(detector)
        logger.debug("Registered detector: %s", detector.name)
        return self

    def register_all(self, detectors: Iterable[Any]) -> DetectorRegistry:
        for detector in detectors:
            self.register(detector)
        return self

    def unregister(self, name: str) -> bool:
        self._check_mutable()
        for i, detector in enumerate(self._detectors):
            if detector.name == name:
                del self._detectors[i]
                return True
        return False

    def clear(self) -> None:
        self._check_mutable()
        self._detectors = []

    def freeze(self) -> DetectorRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Lookup ──────────────────────────────────────────────────

    def get(self, name: str) -> Any | None:
        for detector in self._detectors:
            if detector.name == name:
                return detector
        return None

    @property
    def count(self) -> int:
        return len(self._detectors)

    def names(self) -> list[str]:
        return [d.name for d in self._detectors]

    def all(self) -> list[Any]:
        return list(self._detectors)

    def for_platform(self, platform: str | None = None) -> list[Any]:
        """Detectors applicable to ``platform`` (default: the current one)."""
        platform = platform or context.current_platform()
        return [d for d in self._detectors if platform in d.platforms]

    def __len__(self) -> int:
        return len(self._detectors)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    # ── Scanning ────────────────────────────────────────────────

    def scan_all(self, platform: str | None = None) -> ScanResults:
        """Run every applicable detector.

        Returns:
            Mapping of detector name to its result, in registration
            order.  A detector that raised maps to None.
        """
        results: ScanResults = {}
        for detector in self.for_platform(platform):
            try:
                results[detector.name] = detector.detect()
            except Exception as e:
                logger.warning("Detector '%s' failed: %s", detector.name, e)
                results[detector.name] = None
        return results

    def get_all_installations(
        self,
        results: ScanResults,
        include_non_deletable: bool = False,
        platform: str | None = None,
    ) -> list[AggregatedInstallation]:
        """Flatten results into one list, newest version first.

        Installations from managers that must not be deleted (system,
        homebrew, PATH) are left out unless ``include_non_deletable``.
        """
        aggregated: list[AggregatedInstallation] = []
        for detector in self.for_platform(platform):
            if not detector.can_delete and not include_non_deletable:
                continue
            result = results.get(detector.name)
            if not result:
                continue
            for inst in result.installations:
                aggregated.append(AggregatedInstallation(
                    **inst.model_dump(),
                    detector_name=detector.name,
                    detector_display_name=detector.display_name,
                    detector_icon=detector.icon,
                    can_delete=detector.can_delete,
                ))

        # sorted() is stable: equal versions keep registration order
        return sorted(
            aggregated,
            key=functools.cmp_to_key(lambda a, b: compare_versions(a.version, b.version)),
        )

    def get_summary(
        self,
        results: ScanResults,
        platform: str | None = None,
    ) -> list[ManagerSummary]:
        """Per-manager installation count and total size."""
        summary: list[ManagerSummary] = []
        for detector in self.for_platform(platform):
            if detector.name in ANALYSIS_ONLY:
                continue
            result = results.get(detector.name)
            if not result or not result.installations:
                continue
            summary.append(ManagerSummary(
                name=detector.name,
                display_name=detector.display_name,
                icon=detector.icon,
                count=len(result.installations),
                size=sum(inst.size or 0 for inst in result.installations),
            ))
        return summary
