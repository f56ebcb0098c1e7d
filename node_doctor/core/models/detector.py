"""
Detection models: what detectors report about on-disk Node installations.

A detector returns one DetectorResult (or None when its manager is not
present).  The registry flattens results into AggregatedInstallation
records for listing and cleanup UIs.
"""

from __future__ import annotations

from pydantic import Field

from node_doctor.core.models.base import DoctorModel


class Installation(DoctorModel):
    """One on-disk Node.js runtime."""

    version: str                        # "20.11.0" (no leading "v"), or "system"
    path: str                           # version directory
    executable: str                     # node / node.exe inside path
    size: int = 0                       # bytes, symlinks not followed
    verified: str | None = None         # `node --version` output, None if it did not run
    manager: str
    arch: str | None = None             # nvs / nodist keep one dir per arch
    formula: str | None = None          # homebrew formula ("node", "node@18")
    real_path: str | None = None        # resolved symlink target, when different


class PathNode(DoctorModel):
    """A node executable found in one PATH directory."""

    path_dir: str
    executable: str
    real_path: str | None = None
    verified: str | None = None


class PathAnalysis(DoctorModel):
    """Extra data reported by the PATH analysis detector."""

    total_path_dirs: int = 0
    found_nodes: list[PathNode] = Field(default_factory=list)
    active_node: str | None = None
    path_dirs: list[str] = Field(default_factory=list)


class DetectorResult(DoctorModel):
    """One manager's snapshot.

    The optional fields below ``env_var_set`` are family-specific and stay
    None for detectors that do not report them.
    """

    base_dir: str
    versions_dir: str | None = None
    installations: list[Installation] = Field(default_factory=list)
    default_version: str | None = None
    env_var: str | None = None
    env_var_set: bool | None = None

    symlink: str | None = None          # nvm-windows NVM_SYMLINK
    cellar_dir: str | None = None       # homebrew
    linked_path: str | None = None      # homebrew bin/node target
    inventory_dir: str | None = None    # volta
    path_info: PathAnalysis | None = None


ScanResults = dict[str, DetectorResult | None]


class AggregatedInstallation(Installation):
    """Installation tagged with the metadata of the detector that found it."""

    detector_name: str
    detector_display_name: str
    detector_icon: str
    can_delete: bool


class ManagerSummary(DoctorModel):
    """Per-manager count and disk usage."""

    name: str
    display_name: str
    icon: str
    count: int
    size: int
