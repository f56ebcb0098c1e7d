"""
Package-manager probes: npm, yarn, pnpm and npx metadata.

Versions, cache/store locations and sizes, per-manager registry
overrides, and the globally installed packages of each manager.  A
manager that is not installed simply reports empty values.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import run_command
from node_doctor.core import context
from node_doctor.core.models.environment import (
    CacheInfo,
    GlobalPackage,
    GlobalPackagesSummary,
    NpmInfo,
    NpxInfo,
    PackageCount,
    PackageManagersInfo,
    PnpmInfo,
    YarnInfo,
)
from node_doctor.core.services.probes.registry import parse_npmrc, parse_yarnrc_yml

logger = logging.getLogger(__name__)

_YARN_GLOBAL_RE = re.compile(r'info "(@?[^@]+)@([^"]+)"')


def _cache_at(path: str | None) -> CacheInfo:
    if not path:
        return CacheInfo()
    return CacheInfo(path=path, size=fs.dir_size(path) if fs.path_exists(path) else 0)


def default_npm_cache_dir() -> str:
    home = str(context.home_dir())
    if context.is_windows():
        return os.path.join(home, "AppData", "Local", "npm-cache")
    return os.path.join(home, ".npm")


def npm_cache_dir() -> str:
    return run_command("npm", ["config", "get", "cache"]) or default_npm_cache_dir()


def npm_version() -> str | None:
    return run_command("npm", ["--version"])


def mnpm_version() -> str | None:
    return run_command("mnpm", ["--version"])


# ── Registries ──────────────────────────────────────────────────


def yarn_registry() -> tuple[str | None, str]:
    """(registry, source) for yarn."""
    configured = run_command("yarn", ["config", "get", "registry"])
    if configured and configured != "undefined" and "Usage:" not in configured:
        return configured, "yarn config"

    home = str(context.home_dir())
    yarnrc = parse_npmrc(os.path.join(home, ".yarnrc"))
    if yarnrc and yarnrc.registry:
        return yarnrc.registry, "~/.yarnrc"

    berry = parse_yarnrc_yml(os.path.join(home, ".yarnrc.yml"))
    if berry and berry.registry:
        return berry.registry, "~/.yarnrc.yml"

    return None, "default"


def pnpm_registry() -> tuple[str | None, str]:
    """(registry, source) for pnpm, which shares npm's rc file."""
    configured = run_command("pnpm", ["config", "get", "registry"])
    if configured and configured not in ("undefined", "null"):
        return configured, "pnpm config"

    npmrc = parse_npmrc(os.path.join(str(context.home_dir()), ".npmrc"))
    if npmrc and npmrc.registry:
        return npmrc.registry, "~/.npmrc"

    return None, "default"


def get_package_managers_info() -> PackageManagersInfo:
    npm_cache = _cache_at(npm_cache_dir())

    npx_dir = os.path.join(npm_cache.path, "_npx") if npm_cache.path else None
    npx_cache = _cache_at(npx_dir) if npx_dir and fs.path_exists(npx_dir) else CacheInfo()

    yarn_reg, yarn_source = yarn_registry()
    pnpm_reg, pnpm_source = pnpm_registry()

    return PackageManagersInfo(
        npm=NpmInfo(version=npm_version(), cache=npm_cache),
        yarn=YarnInfo(
            version=run_command("yarn", ["--version"]),
            cache=_cache_at(run_command("yarn", ["cache", "dir"])),
            registry=yarn_reg,
            registry_source=yarn_source,
        ),
        pnpm=PnpmInfo(
            version=run_command("pnpm", ["--version"]),
            store=_cache_at(run_command("pnpm", ["store", "path"])),
            registry=pnpm_reg,
            registry_source=pnpm_source,
        ),
        npx=NpxInfo(cache=npx_cache),
    )


# ── Global packages ─────────────────────────────────────────────


def _package_path(declared: str | None, root: str | None, name: str) -> str:
    if declared:
        return declared
    if root:
        candidate = os.path.join(root, name)
        if fs.dir_exists(candidate):
            return candidate
    return "unknown"


def parse_list_json(output: str, manager: str, root: str | None) -> list[GlobalPackage]:
    """Parse ``npm|pnpm list -g --depth=0 --json``.

    pnpm wraps the tree in a one-element array; npm does not.
    """
    try:
        parsed: Any = json.loads(output)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse %s list output: %s", manager, e)
        return []
    if isinstance(parsed, list):
        parsed = parsed[0] if parsed else {}
    if not isinstance(parsed, dict):
        return []

    packages: list[GlobalPackage] = []
    for name, info in (parsed.get("dependencies") or {}).items():
        info = info if isinstance(info, dict) else {}
        path = _package_path(info.get("path"), root, name)
        packages.append(GlobalPackage(
            name=name,
            version=info.get("version") or "unknown",
            path=path,
            manager=manager,
            size=fs.dir_size(path) if path != "unknown" else None,
        ))
    return packages


def parse_yarn_global_list(output: str, root: str | None) -> list[GlobalPackage]:
    """Parse ``yarn global list --depth=0`` (classic) text output."""
    packages: list[GlobalPackage] = []
    for line in output.splitlines():
        match = _YARN_GLOBAL_RE.search(line)
        if not match:
            continue
        name, version = match.group(1), match.group(2)
        path = _package_path(None, root, name)
        packages.append(GlobalPackage(
            name=name,
            version=version,
            path=path,
            manager="yarn",
            size=fs.dir_size(path) if path != "unknown" else None,
        ))
    return packages


def list_global_packages() -> dict[str, list[GlobalPackage]]:
    """Global packages per manager (npm, yarn, pnpm)."""
    result: dict[str, list[GlobalPackage]] = {"npm": [], "yarn": [], "pnpm": []}

    npm_list = run_command("npm", ["list", "-g", "--depth=0", "--json"])
    if npm_list:
        result["npm"] = parse_list_json(npm_list, "npm", run_command("npm", ["root", "-g"]))

    yarn_list = run_command("yarn", ["global", "list", "--depth=0"])
    if yarn_list:
        yarn_dir = run_command("yarn", ["global", "dir"])
        yarn_root = os.path.join(yarn_dir, "node_modules") if yarn_dir else None
        result["yarn"] = parse_yarn_global_list(yarn_list, yarn_root)

    pnpm_list = run_command("pnpm", ["list", "-g", "--depth=0", "--json"])
    if pnpm_list:
        result["pnpm"] = parse_list_json(pnpm_list, "pnpm", run_command("pnpm", ["root", "-g"]))

    return result


def summarize_global_packages(globals_by_manager: dict[str, list[GlobalPackage]]) -> GlobalPackagesSummary:
    """Counts, sizes, and names installed by more than one manager."""
    counts: dict[str, PackageCount] = {}
    owners: dict[str, list[str]] = {}
    for manager in ("npm", "yarn", "pnpm"):
        packages = globals_by_manager.get(manager, [])
        counts[manager] = PackageCount(
            count=len(packages),
            size=sum(pkg.size or 0 for pkg in packages),
        )
        for pkg in packages:
            owners.setdefault(pkg.name, []).append(manager)

    return GlobalPackagesSummary(
        npm=counts["npm"],
        yarn=counts["yarn"],
        pnpm=counts["pnpm"],
        total_count=sum(c.count for c in counts.values()),
        total_size=sum(c.size for c in counts.values()),
        duplicates=[name for name, managers in owners.items() if len(managers) > 1],
    )


def collect_global_packages_summary() -> GlobalPackagesSummary:
    return summarize_global_packages(list_global_packages())
