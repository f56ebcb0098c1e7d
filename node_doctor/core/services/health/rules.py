"""
Health rules: HealthData in, a fixed, ordered list of Checks out.

Each rule looks at one concern and appends zero or one Check.  Rules
are pure; the order of ``RULES`` is the order of the report.
"""

from __future__ import annotations

from typing import Callable

from node_doctor.core.models.health import Check, HealthData
from node_doctor.core.services import semver
from node_doctor.core.services.aggregation import reclaimable_bytes

REGISTRY_LATENCY_WARN_MS = 2000

Rule = Callable[[HealthData], Check | None]


# ── PATH & managers ─────────────────────────────────────────────


def node_in_path(data: HealthData) -> Check:
    if not data.nodes_in_path:
        return Check(
            id="node-in-path",
            name="Node.js in PATH",
            category="path",
            status="fail",
            message="No Node.js found in PATH",
            hint="Install Node.js or add it to your PATH",
        )
    primary = data.nodes_in_path[0]
    return Check(
        id="node-in-path",
        name="Node.js in PATH",
        category="path",
        status="pass",
        message=f"Node.js {primary.version} via {primary.runner.name}",
        details=primary.executable,
    )


def path_shadowing(data: HealthData) -> Check | None:
    nodes = data.nodes_in_path
    if len(nodes) <= 1:
        return None
    return Check(
        id="path-shadowing",
        name="PATH Shadowing",
        category="path",
        status="warn",
        message=f"{len(nodes) - 1} shadowed Node version(s) in PATH",
        hint="Multiple Node installations may cause version conflicts",
        details=", ".join(f"{n.version} ({n.runner.name})" for n in nodes),
    )


def multiple_managers(data: HealthData) -> Check:
    active = data.active_managers
    if len(active) > 1:
        return Check(
            id="multiple-managers",
            name="Version Managers",
            category="managers",
            status="warn",
            message=f"{len(active)} version managers active in PATH",
            hint="Consider using only one version manager to avoid conflicts",
            details=f"Active: {', '.join(active)}",
        )
    if len(active) == 1:
        message = f"Using {active[0]}"
    elif data.managers:
        message = f"{len(data.managers)} manager(s) installed"
    else:
        message = "No version managers detected (using system Node)"
    return Check(
        id="multiple-managers",
        name="Version Managers",
        category="managers",
        status="pass",
        message=message,
    )


# ── Network & security ──────────────────────────────────────────


def registry_status(data: HealthData, latency_warn_ms: int = REGISTRY_LATENCY_WARN_MS) -> Check:
    status = data.registry.status
    url = data.registry.info.global_registry.registry
    if not status.available:
        return Check(
            id="registry-status",
            name="NPM Registry",
            category="registry",
            status="fail",
            message="NPM registry unreachable",
            hint="Check network connection",
            details=status.error or url,
        )
    if status.latency > latency_warn_ms:
        return Check(
            id="registry-latency",
            name="NPM Registry",
            category="registry",
            status="warn",
            message=f"High registry latency: {status.latency}ms",
            hint="Consider using a closer mirror",
            details=url,
        )
    return Check(
        id="registry-status",
        name="NPM Registry",
        category="registry",
        status="pass",
        message=f"Registry OK ({status.latency}ms)",
        details=url,
    )


def node_eol(data: HealthData) -> Check:
    eol = data.security.eol
    version = data.system.node_version
    base = {"id": "node-eol", "name": "Node.js EOL Status", "category": "security"}
    if eol is None:
        return Check(
            **base, status="warn",
            message="Could not fetch release schedule",
            hint="Check internet connection.",
        )
    if eol.status == "eol":
        return Check(
            **base, status="fail",
            message=f"Node.js {version} is End-of-Life (EOL)",
            hint=f"Support ended on {eol.eol_date}. Upgrade immediately.",
        )
    if eol.status == "maintenance":
        return Check(
            **base, status="warn",
            message=f"Node.js {version} is in Maintenance mode",
            hint=f"Support ends on {eol.eol_date}. Plan your upgrade.",
        )
    if eol.status == "active":
        return Check(**base, status="pass", message=f"Node.js {version} is actively supported")
    return Check(
        **base, status="warn",
        message=f"Node.js {version} status unknown",
        hint="Could not match version to release schedule.",
    )


def node_security(data: HealthData) -> Check:
    vulns = data.security.vulnerabilities
    base = {"id": "node-security", "name": "Node.js Security", "category": "security"}
    if vulns is None:
        return Check(**base, status="warn", message="Could not fetch security data")
    if not vulns.vulnerable:
        return Check(**base, status="pass", message="No known security vulnerabilities")
    return Check(
        **base, status="warn",
        message=f"Node.js {data.system.node_version} has known vulnerabilities",
        hint=vulns.details,
        details=f"Upgrade to {vulns.latest_security_release}" if vulns.latest_security_release else None,
    )


def port_conflicts(data: HealthData) -> Check:
    procs = data.port_processes
    if not procs:
        return Check(
            id="port-conflicts",
            name="Port Conflicts",
            category="ports",
            status="pass",
            message="No Node.js processes blocking ports",
        )
    return Check(
        id="port-conflicts",
        name="Port Conflicts",
        category="ports",
        status="warn",
        message=f"{len(procs)} Node.js process(es) using ports",
        hint="Stop these processes if they are not meant to be running",
        details="; ".join(f"Port {p.port}: {p.name}" for p in procs),
    )


# ── Disk & environment ──────────────────────────────────────────


def duplicate_versions(data: HealthData) -> Check | None:
    dups = data.duplicate_versions
    if dups:
        wasted_mb = round(reclaimable_bytes(dups) / 1024 / 1024)
        return Check(
            id="duplicate-versions",
            name="Duplicate Versions",
            category="disk",
            status="warn",
            message=f"{len(dups)} version(s) installed in multiple managers",
            hint=f"Consider removing duplicates to save ~{wasted_mb} MB",
            details="; ".join(f"{d.version} in {', '.join(d.managers)}" for d in dups),
        )
    if len(data.managers) > 1:
        return Check(
            id="duplicate-versions",
            name="Duplicate Versions",
            category="disk",
            status="pass",
            message="No duplicate versions across managers",
        )
    return None


def env_node_options(data: HealthData) -> Check | None:
    if not any(v.name == "NODE_OPTIONS" and v.is_set for v in data.environment_vars):
        return None
    return Check(
        id="env-node-options",
        name="NODE_OPTIONS",
        category="environment",
        status="warn",
        message="NODE_OPTIONS environment variable is set",
        hint="This may affect Node.js behavior unexpectedly",
    )


def global_duplicates(data: HealthData) -> Check | None:
    dups = data.global_packages.duplicates
    if not dups:
        return None
    return Check(
        id="global-duplicates",
        name="Global Package Duplicates",
        category="globals",
        status="warn",
        message=f"{len(dups)} package(s) installed globally in multiple managers",
        hint="Consider consolidating to one package manager",
        details=", ".join(dups),
    )


def permission_issues(data: HealthData) -> Check | None:
    blocked = [p for p in data.permissions if p.exists and not p.writable]
    if not blocked:
        return None
    return Check(
        id="permission-issues",
        name="Directory Permissions",
        category="permissions",
        status="warn",
        message=f"{len(blocked)} directory(ies) not writable",
        hint="May cause npm install -g failures. Check ownership/permissions.",
        details=", ".join(p.name for p in blocked),
    )


def corepack_status(data: HealthData) -> Check | None:
    corepack = data.corepack
    if not (corepack.installed and corepack.package_manager_field and not corepack.enabled):
        return None
    return Check(
        id="corepack-status",
        name="Corepack",
        category="corepack",
        status="warn",
        message="packageManager field found but corepack not enabled",
        hint='Run "corepack enable" to use the specified package manager',
        details=corepack.package_manager_field,
    )


# ── Extended ────────────────────────────────────────────────────


def npm_prefix(data: HealthData) -> Check | None:
    check = data.extended_checks.npm_prefix
    if check.mismatch:
        return Check(
            id="npm-prefix-mismatch",
            name="npm Prefix",
            category="configuration",
            status="warn",
            message=f"npm prefix doesn't match active version manager ({check.active_manager})",
            hint="Global packages may install to wrong location. Check npm config.",
            details=f"Current: {check.prefix}, Expected: {check.expected_prefix}",
        )
    if check.prefix:
        return Check(
            id="npm-prefix-mismatch",
            name="npm Prefix",
            category="configuration",
            status="pass",
            message="npm prefix matches version manager",
            details=check.prefix,
        )
    return None


def shell_startup(data: HealthData) -> Check:
    check = data.extended_checks.shell_slow_startup
    if not check.has_slow_patterns:
        return Check(
            id="shell-startup-slow",
            name="Shell Startup",
            category="shell",
            status="pass",
            message="No slow startup patterns detected",
        )
    return Check(
        id="shell-startup-slow",
        name="Shell Startup",
        category="shell",
        status="warn",
        message=f"{len(check.patterns)} slow startup pattern(s) detected",
        hint=check.patterns[0].suggestion or "Consider lazy loading version managers",
        details="; ".join(f"{p.file}: {p.manager}" for p in check.patterns),
    )


def version_files(data: HealthData) -> Check | None:
    check = data.extended_checks.version_file_conflict
    if check.has_conflict:
        return Check(
            id="version-file-conflict",
            name="Version File Conflict",
            category="project",
            status="warn",
            message=f"{len(check.files)} version files with different versions",
            hint="Align version files to prevent confusion across tools",
            details=", ".join(f"{f.file}: {f.version}" for f in check.files),
        )
    if check.files:
        return Check(
            id="version-file-conflict",
            name="Version Files",
            category="project",
            status="pass",
            message=f"{len(check.files)} version file(s) in sync",
            details=", ".join(f.file for f in check.files),
        )
    return None


def engines_compliance(data: HealthData) -> Check | None:
    engines = data.extended_checks.engines_check
    if engines is None:
        return None
    base = {"id": "engines-mismatch", "name": "engines Compliance", "category": "project"}
    node = engines.node
    if not node.satisfied:
        return Check(
            **base, status="fail",
            message=f"Node {node.current} doesn't match required {node.required}",
            hint=f"Switch to Node {node.required} for this project",
        )
    if engines.npm is not None and not engines.npm.satisfied:
        return Check(
            **base, status="warn",
            message=f"npm {engines.npm.current} doesn't match required {engines.npm.required}",
            hint=f"Update npm to {engines.npm.required}",
        )
    if node.required and semver.parse(node.current) is not None:
        return Check(
            **base, status="pass",
            message=f"Node {node.current} satisfies required {node.required}",
        )
    return None


def node_gyp(data: HealthData) -> Check:
    check = data.extended_checks.node_gyp_readiness
    if check.ready:
        return Check(
            id="node-gyp-readiness",
            name="node-gyp Readiness",
            category="build",
            status="pass",
            message="Build tools available for native modules",
            details=check.python.version or None,
        )
    return Check(
        id="node-gyp-readiness",
        name="node-gyp Readiness",
        category="build",
        status="warn",
        message=f"Missing build tools: {', '.join(check.missing)}",
        hint="Native module compilation may fail. Install missing dependencies.",
        details=f"Python: {check.python.version}" if check.python.version else "Python not found",
    )


def npm_cache(data: HealthData) -> Check | None:
    check = data.extended_checks.npm_cache_health
    if not check.healthy:
        return Check(
            id="npm-cache-health",
            name="npm Cache",
            category="disk",
            status="warn",
            message=check.issues[0] if check.issues else "Cache issues detected",
            hint='Run "npm cache clean --force" to fix',
            details=check.path or None,
        )
    if check.path:
        return Check(
            id="npm-cache-health",
            name="npm Cache",
            category="disk",
            status="pass",
            message=f"Cache healthy ({round(check.size / 1024 / 1024)} MB)",
            details=check.path,
        )
    return None


def global_npm_location(data: HealthData) -> Check | None:
    check = data.extended_checks.global_npm_location
    if check.correct_location:
        return None
    return Check(
        id="global-npm-location",
        name="Global npm Location",
        category="configuration",
        status="warn",
        message="npm global root may not match version manager",
        hint="Global packages might not be found. Check npm config prefix.",
        details=f"Current: {check.npm_root}",
    )


def symlink_support(data: HealthData) -> Check | None:
    check = data.extended_checks.symlink_health
    if check is None or not check.issues:
        return None
    if not check.working:
        return Check(
            id="symlink-health",
            name="Symlink Support",
            category="permissions",
            status="warn",
            message="Symlinks not fully working",
            hint=check.issues[0],
            details="Falling back to junctions" if check.using_junctions else None,
        )
    if not check.is_admin:
        return Check(
            id="symlink-health",
            name="Symlink Support",
            category="permissions",
            status="pass",
            message="Symlinks working (via Developer Mode)",
        )
    return None


def stale_node_modules(data: HealthData) -> Check | None:
    check = data.extended_checks.stale_node_modules
    if not check.exists:
        return None
    if check.major_mismatch:
        return Check(
            id="stale-node-modules",
            name="node_modules Freshness",
            category="project",
            status="warn",
            message=f"node_modules may be stale (built for Node {check.built_with_version})",
            hint=check.recommendation or 'Run "npm rebuild" or reinstall',
            details=f"Current Node: {check.current_version}",
        )
    return Check(
        id="stale-node-modules",
        name="node_modules Freshness",
        category="project",
        status="pass",
        message="node_modules appears compatible",
    )


def ide_integration(data: HealthData) -> Check | None:
    check = data.extended_checks.ide_integration
    if not check.has_vscode:
        return None
    if check.vscode_issues:
        return Check(
            id="ide-integration",
            name="IDE Integration",
            category="ide",
            status="warn",
            message=f"{len(check.vscode_issues)} VSCode configuration issue(s)",
            hint=check.vscode_issues[0],
            details="; ".join(check.vscode_issues),
        )
    return Check(
        id="ide-integration",
        name="IDE Integration",
        category="ide",
        status="pass",
        message="VSCode settings look good",
    )


# ── Evaluation ──────────────────────────────────────────────────

RULES: list[Rule] = [
    node_in_path,
    path_shadowing,
    multiple_managers,
    registry_status,
    node_eol,
    node_security,
    port_conflicts,
    duplicate_versions,
    env_node_options,
    global_duplicates,
    permission_issues,
    corepack_status,
    npm_prefix,
    shell_startup,
    version_files,
    engines_compliance,
    node_gyp,
    npm_cache,
    global_npm_location,
    symlink_support,
    stale_node_modules,
    ide_integration,
]

EXTENDED_CHECK_IDS = (
    "npm-prefix-mismatch",
    "shell-startup-slow",
    "version-file-conflict",
    "engines-mismatch",
    "node-gyp-readiness",
    "npm-cache-health",
    "global-npm-location",
    "symlink-health",
    "stale-node-modules",
    "ide-integration",
)


def assess_health_checks(
    data: HealthData,
    latency_warn_ms: int = REGISTRY_LATENCY_WARN_MS,
) -> list[Check]:
    """Evaluate every rule against the snapshot, in report order."""
    checks: list[Check] = []
    for rule in RULES:
        if rule is registry_status:
            check = registry_status(data, latency_warn_ms)
        else:
            check = rule(data)
        if check is not None:
            checks.append(check)
    return checks
