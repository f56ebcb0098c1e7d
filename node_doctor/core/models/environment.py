"""
Environment probe records: the raw facts each probe gathers.

These are plain data holders.  Probes fill them in and rules read them;
nothing here does I/O.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from node_doctor.core.models.base import DoctorModel

EolState = Literal["eol", "maintenance", "active", "unknown"]


# ── Release feeds ───────────────────────────────────────────────


class EolStatus(DoctorModel):
    status: EolState
    eol_date: str | None = None
    maintenance_date: str | None = None
    is_lts: bool | None = None


class SecurityStatus(DoctorModel):
    vulnerable: bool
    latest_security_release: str | None = None
    details: str | None = None


# ── PATH ────────────────────────────────────────────────────────


class RunnerInfo(DoctorModel):
    """Which manager owns a node executable."""

    name: str
    icon: str


class FoundNode(DoctorModel):
    """A node executable on PATH, in PATH order."""

    executable: str
    real_path: str
    runner: RunnerInfo
    version: str
    is_current: bool = False
    eol: EolStatus | None = None
    security: SecurityStatus | None = None


# ── Registry ────────────────────────────────────────────────────


class RegistryEndpoint(DoctorModel):
    registry: str
    source: str                 # default, environment, user-npmrc, ...
    path: str | None = None


class ConfigFileInfo(DoctorModel):
    type: str
    path: str
    exists: bool


class RegistryInfo(DoctorModel):
    global_registry: RegistryEndpoint
    local_registry: RegistryEndpoint | None = None
    scopes: dict[str, RegistryEndpoint] = Field(default_factory=dict)
    config_files: list[ConfigFileInfo] = Field(default_factory=list)


class RegistryStatus(DoctorModel):
    available: bool
    latency: int = 0            # milliseconds
    status: int = 0             # HTTP status, 0 when no response
    error: str | None = None


class RegistrySnapshot(DoctorModel):
    info: RegistryInfo
    status: RegistryStatus


# ── Ports ───────────────────────────────────────────────────────


class PortProcess(DoctorModel):
    port: int
    pid: int
    name: str
    command: str = ""


# ── Shell configuration ─────────────────────────────────────────


class ShellConfigMatch(DoctorModel):
    """One line of a shell config that mentions a Node tool."""

    file: str
    line: int
    content: str
    manager: str
    path: str


class ShellConfigFile(DoctorModel):
    name: str
    path: str
    exists: bool = True
    shell: str


class ShellConfigScan(DoctorModel):
    found: list[ShellConfigFile] = Field(default_factory=list)
    node_related: list[ShellConfigMatch] = Field(default_factory=list)
    total: int = 0
    with_node_config: int = 0


class NodeConfigEntry(DoctorModel):
    """Shell config file with the set of managers it mentions."""

    name: str
    path: str
    managers: list[str] = Field(default_factory=list)


# ── Package managers ────────────────────────────────────────────


class CacheInfo(DoctorModel):
    path: str | None = None
    size: int = 0


class NpmInfo(DoctorModel):
    version: str | None = None
    cache: CacheInfo = Field(default_factory=CacheInfo)
    registry: str | None = None


class YarnInfo(DoctorModel):
    version: str | None = None
    cache: CacheInfo = Field(default_factory=CacheInfo)
    registry: str | None = None
    registry_source: str = "default"


class PnpmInfo(DoctorModel):
    version: str | None = None
    store: CacheInfo = Field(default_factory=CacheInfo)
    registry: str | None = None
    registry_source: str = "default"


class NpxInfo(DoctorModel):
    cache: CacheInfo = Field(default_factory=CacheInfo)


class PackageManagersInfo(DoctorModel):
    npm: NpmInfo = Field(default_factory=NpmInfo)
    yarn: YarnInfo = Field(default_factory=YarnInfo)
    pnpm: PnpmInfo = Field(default_factory=PnpmInfo)
    npx: NpxInfo = Field(default_factory=NpxInfo)


class GlobalPackage(DoctorModel):
    name: str
    version: str
    path: str
    manager: Literal["npm", "yarn", "pnpm"]
    size: int | None = None


class PackageCount(DoctorModel):
    count: int = 0
    size: int = 0


class GlobalPackagesSummary(DoctorModel):
    npm: PackageCount = Field(default_factory=PackageCount)
    yarn: PackageCount = Field(default_factory=PackageCount)
    pnpm: PackageCount = Field(default_factory=PackageCount)
    total_count: int = 0
    total_size: int = 0
    duplicates: list[str] = Field(default_factory=list)


class EnvVarInfo(DoctorModel):
    """Presence flag only; values are never recorded."""

    name: str
    is_set: bool


class PermissionCheck(DoctorModel):
    name: str
    path: str
    exists: bool
    writable: bool


class CorepackInfo(DoctorModel):
    installed: bool = False
    version: str | None = None
    enabled: bool = False
    managed_managers: list[str] = Field(default_factory=list)
    package_manager_field: str | None = None


# ── Extended heuristics ─────────────────────────────────────────


class NpmPrefixCheck(DoctorModel):
    prefix: str | None = None
    active_manager: str | None = None
    expected_prefix: str | None = None
    mismatch: bool = False


class SlowStartupPattern(DoctorModel):
    file: str
    manager: str
    line: int
    suggestion: str


class ShellSlowStartupCheck(DoctorModel):
    has_slow_patterns: bool = False
    patterns: list[SlowStartupPattern] = Field(default_factory=list)


class VersionFileInfo(DoctorModel):
    file: str
    version: str
    path: str


class VersionFileConflict(DoctorModel):
    has_conflict: bool = False
    files: list[VersionFileInfo] = Field(default_factory=list)
    distinct_versions: list[str] = Field(default_factory=list)


class PythonInfo(DoctorModel):
    available: bool = False
    version: str | None = None
    path: str | None = None


class BuildToolsInfo(DoctorModel):
    available: bool = False
    type: str | None = None


class NodeGypReadiness(DoctorModel):
    ready: bool = True
    python: PythonInfo = Field(default_factory=PythonInfo)
    build_tools: BuildToolsInfo | None = None     # Windows only
    missing: list[str] = Field(default_factory=list)


class NpmCacheHealth(DoctorModel):
    path: str | None = None
    size: int = 0
    healthy: bool = True
    issues: list[str] = Field(default_factory=list)


class GlobalNpmLocation(DoctorModel):
    npm_root: str | None = None
    active_manager: str | None = None
    correct_location: bool = True
    expected_location: str | None = None


class SymlinkHealth(DoctorModel):
    working: bool = True
    is_admin: bool = False
    using_junctions: bool = False
    issues: list[str] = Field(default_factory=list)


class StaleNodeModules(DoctorModel):
    exists: bool = False
    built_with_version: str | None = None
    current_version: str = "unknown"
    major_mismatch: bool = False
    recommendation: str | None = None


class IdeIntegration(DoctorModel):
    has_vscode: bool = False
    vscode_issues: list[str] = Field(default_factory=list)
    terminal_inherit_env: bool | None = None
    eslint_node_path: bool | None = None


class EngineRequirement(DoctorModel):
    required: str | None = None
    current: str | None = None
    satisfied: bool = True


class EngineCheck(DoctorModel):
    node: EngineRequirement
    npm: EngineRequirement | None = None


class ExtendedChecks(DoctorModel):
    npm_prefix: NpmPrefixCheck = Field(default_factory=NpmPrefixCheck)
    shell_slow_startup: ShellSlowStartupCheck = Field(default_factory=ShellSlowStartupCheck)
    version_file_conflict: VersionFileConflict = Field(default_factory=VersionFileConflict)
    node_gyp_readiness: NodeGypReadiness = Field(default_factory=NodeGypReadiness)
    npm_cache_health: NpmCacheHealth = Field(default_factory=NpmCacheHealth)
    global_npm_location: GlobalNpmLocation = Field(default_factory=GlobalNpmLocation)
    symlink_health: SymlinkHealth | None = None
    stale_node_modules: StaleNodeModules = Field(default_factory=StaleNodeModules)
    ide_integration: IdeIntegration = Field(default_factory=IdeIntegration)
    engines_check: EngineCheck | None = None
