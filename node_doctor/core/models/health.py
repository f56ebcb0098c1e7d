"""
Health models: the consolidated snapshot, the checks derived from it,
and the final assessment.

This is the machine contract consumed by CI: ``Assessment`` serializes
to camelCase JSON with ``model_dump(mode="json", by_alias=True)`` and
parses back with ``Assessment.model_validate``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import Field

from node_doctor.core.models.base import DoctorModel
from node_doctor.core.models.environment import (
    CorepackInfo,
    EnvVarInfo,
    EolStatus,
    ExtendedChecks,
    FoundNode,
    GlobalPackagesSummary,
    NodeConfigEntry,
    PackageManagersInfo,
    PermissionCheck,
    PortProcess,
    RegistrySnapshot,
    SecurityStatus,
    ShellConfigFile,
)

CheckStatus = Literal["pass", "warn", "fail"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class SystemInfo(DoctorModel):
    platform: str                       # "linux x86_64"
    arch: str
    shell: str
    node_version: str                   # authoritative PATH runtime, "unknown" if none
    npm_version: str | None = None
    mnpm_version: str | None = None
    exec_path: str | None = None


class ManagerInstallation(DoctorModel):
    version: str
    path: str
    size: int = 0


class DetectedManager(DoctorModel):
    """A manager with at least one installation on disk."""

    name: str
    display_name: str
    icon: str
    base_dir: str
    version_count: int
    total_size: int
    env_var: str | None = None
    env_var_set: bool | None = None
    installations: list[ManagerInstallation] = Field(default_factory=list)


class DuplicateVersion(DoctorModel):
    """Same version installed by two or more distinct managers."""

    version: str
    managers: list[str]
    total_size: int


class SecuritySummary(DoctorModel):
    eol: EolStatus | None = None
    vulnerabilities: SecurityStatus | None = None
    tokens: list[EnvVarInfo] = Field(default_factory=list)


class HealthData(DoctorModel):
    """Everything the rules look at, gathered in one pass."""

    system: SystemInfo
    nodes_in_path: list[FoundNode] = Field(default_factory=list)
    managers: list[DetectedManager] = Field(default_factory=list)
    active_managers: list[str] = Field(default_factory=list)
    registry: RegistrySnapshot
    security: SecuritySummary = Field(default_factory=SecuritySummary)
    port_processes: list[PortProcess] = Field(default_factory=list)
    shell_configs: list[NodeConfigEntry] = Field(default_factory=list)
    all_shell_configs: list[ShellConfigFile] = Field(default_factory=list)
    package_managers: PackageManagersInfo = Field(default_factory=PackageManagersInfo)
    duplicate_versions: list[DuplicateVersion] = Field(default_factory=list)
    environment_vars: list[EnvVarInfo] = Field(default_factory=list)
    global_packages: GlobalPackagesSummary = Field(default_factory=GlobalPackagesSummary)
    permissions: list[PermissionCheck] = Field(default_factory=list)
    corepack: CorepackInfo = Field(default_factory=CorepackInfo)
    extended_checks: ExtendedChecks = Field(default_factory=ExtendedChecks)


class Check(DoctorModel):
    """One rule evaluation result."""

    id: str
    name: str
    category: str
    status: CheckStatus
    message: str
    hint: str | None = None
    details: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "fail"


class AssessmentSummary(DoctorModel):
    total: int = 0
    passed: int = 0
    warnings: int = 0
    failed: int = 0


class Assessment(DoctorModel):
    """The complete, timestamped result of one health assessment."""

    timestamp: str = Field(default_factory=_now_iso)
    overall_status: CheckStatus = "pass"
    exit_code: int = 0
    checks: list[Check] = Field(default_factory=list)
    summary: AssessmentSummary = Field(default_factory=AssessmentSummary)
    data: HealthData
