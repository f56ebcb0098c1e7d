"""
Environment probes: variables, directory permissions, corepack.

Only the presence of variables is recorded, never their values, so the
snapshot is safe to print or upload from CI.
"""

from __future__ import annotations

import json
import logging
import os

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import run_command
from node_doctor.core import context
from node_doctor.core.models.environment import CorepackInfo, EnvVarInfo, PermissionCheck

logger = logging.getLogger(__name__)

NODE_ENV_VARS = (
    "NODE_ENV",
    "NODE_OPTIONS",
    "NODE_PATH",
    "NODE_EXTRA_CA_CERTS",
    "NPM_CONFIG_REGISTRY",
    "NPM_CONFIG_PREFIX",
    "npm_config_registry",
    "YARN_REGISTRY",
    "PNPM_HOME",
    "COREPACK_HOME",
    "NVM_DIR",
    "FNM_DIR",
    "VOLTA_HOME",
    "N_PREFIX",
)

TOKEN_VARS = ("NPM_TOKEN", "GITHUB_TOKEN", "GH_TOKEN", "NODE_AUTH_TOKEN")

COREPACK_MANAGERS = ("yarn", "pnpm", "npm")


def _presence(names: tuple[str, ...]) -> list[EnvVarInfo]:
    return [EnvVarInfo(name=name, is_set=bool(os.environ.get(name))) for name in names]


def collect_environment_vars() -> list[EnvVarInfo]:
    return _presence(NODE_ENV_VARS)


def collect_auth_tokens() -> list[EnvVarInfo]:
    return _presence(TOKEN_VARS)


# ── Permissions ─────────────────────────────────────────────────


def _permission(name: str, path: str) -> PermissionCheck:
    exists = fs.path_exists(path)
    return PermissionCheck(
        name=name,
        path=path,
        exists=exists,
        writable=exists and fs.is_writable(path),
    )


def npm_global_modules_dir(prefix: str) -> str:
    if context.is_windows():
        return os.path.join(prefix, "node_modules")
    return os.path.join(prefix, "lib", "node_modules")


def check_permissions() -> list[PermissionCheck]:
    """Writability of npm's global modules dir and the npm/yarn caches."""
    checks: list[PermissionCheck] = []

    prefix = run_command("npm", ["config", "get", "prefix"])
    if prefix:
        checks.append(_permission("npm global", npm_global_modules_dir(prefix)))

    npm_cache = run_command("npm", ["config", "get", "cache"])
    if npm_cache:
        checks.append(_permission("npm cache", npm_cache))

    yarn_cache = run_command("yarn", ["cache", "dir"])
    if yarn_cache:
        checks.append(_permission("yarn cache", yarn_cache))

    return checks


# ── Corepack ────────────────────────────────────────────────────


def read_package_json(directory=None) -> dict | None:
    """The project's package.json as a dict, or None."""
    path = os.path.join(str(directory or context.get_project_dir()), "package.json")
    text = fs.read_text(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Invalid package.json at %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def get_corepack_info() -> CorepackInfo:
    info = CorepackInfo()
    version = run_command("corepack", ["--version"])
    if not version:
        return info
    info.installed = True
    info.version = version

    corepack_home = os.environ.get("COREPACK_HOME") or os.path.join(
        str(context.home_dir()), ".corepack"
    )
    if fs.path_exists(corepack_home):
        info.enabled = True
        entries = fs.list_dir(corepack_home)
        info.managed_managers = [
            manager for manager in COREPACK_MANAGERS
            if any(entry.startswith(manager) for entry in entries)
        ]

    package_json = read_package_json()
    if package_json and package_json.get("packageManager"):
        info.package_manager_field = str(package_json["packageManager"])

    return info
