"""
Detector base: the contract between the registry and one version manager.

A detector knows where a single Node version manager keeps its
runtimes and reports them as a DetectorResult.  The registry only
talks to detectors through this interface.

To add a manager:
    1. Subclass Detector (or VersionDirDetector for the common layout)
    2. Fill in the metadata class attributes and implement detect()
    3. Add the instance to managers.default_detectors()
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from node_doctor.core.models.detector import DetectorResult


class Detector(ABC):
    """Abstract base class for version-manager detectors.

    detect() may raise; the registry isolates failures and records the
    manager as absent.  It returns None when the manager is not present
    or has no installations.
    """

    name: str = ""
    display_name: str = ""
    icon: str = ""
    platforms: tuple[str, ...] = ()
    can_delete: bool = True

    @abstractmethod
    def detect(self) -> DetectorResult | None:
        """Scan the filesystem for this manager's installations."""

    def supports(self, platform: str) -> bool:
        return platform in self.platforms

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
