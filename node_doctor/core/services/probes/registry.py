"""
npm registry probe: which registry is configured, and is it reachable.

Configuration is read from the same places npm and yarn read it:
environment variables, project/user/global ``.npmrc``, ``.yarnrc`` and
``.yarnrc.yml``.  Reachability is a single timed HEAD request that
never raises.
"""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import yaml

from node_doctor.adapters.network.http import FetchError, HttpResponse, fetch
from node_doctor.adapters.shell import filesystem as fs
from node_doctor.core import context
from node_doctor.core.models.environment import (
    ConfigFileInfo,
    RegistryEndpoint,
    RegistryInfo,
    RegistryStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org/"
REGISTRY_TIMEOUT = 3.0

_SCOPE_KEY_RE = re.compile(r"^@[\w-]+:registry$")
_EQ_LINE_RE = re.compile(r"^([^=]+)=(.+)$")
_SPACE_LINE_RE = re.compile(r'^"?([^"\s]+)"?\s+"?([^"]+)"?$')


@dataclass
class RcConfig:
    """Registry settings extracted from one rc file."""

    registry: str | None = None
    scopes: dict[str, str] = field(default_factory=dict)


# ── Parsers ─────────────────────────────────────────────────────


def _unquote(value: str) -> str:
    return re.sub(r"""^["']|["']$""", "", value.strip())


def parse_npmrc_text(text: str) -> RcConfig:
    """Parse ``.npmrc`` (``key=value``) or classic ``.yarnrc`` (``key "value"``)."""
    config = RcConfig()
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", ";")):
            continue
        match = _EQ_LINE_RE.match(stripped) or _SPACE_LINE_RE.match(stripped)
        if not match:
            continue
        key, value = match.group(1).strip(), _unquote(match.group(2))
        if key == "registry":
            config.registry = value
        elif _SCOPE_KEY_RE.match(key):
            config.scopes[key.removesuffix(":registry")] = value
    return config


def parse_npmrc(path: str | Path) -> RcConfig | None:
    text = fs.read_text(path)
    if not text:
        return None
    return parse_npmrc_text(text)


def parse_yarnrc_yml(path: str | Path) -> RcConfig | None:
    """Yarn Berry ``.yarnrc.yml``: npmRegistryServer plus npmScopes."""
    text = fs.read_text(path)
    if not text:
        return None
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug("Unparseable %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        return None

    config = RcConfig()
    server = data.get("npmRegistryServer")
    if isinstance(server, str) and server.strip():
        config.registry = server.strip()
    scopes = data.get("npmScopes")
    if isinstance(scopes, dict):
        for scope, settings in scopes.items():
            if isinstance(settings, dict) and settings.get("npmRegistryServer"):
                config.scopes[f"@{scope}"] = str(settings["npmRegistryServer"]).strip()
    return config


# ── Config discovery ────────────────────────────────────────────


def global_npmrc_path() -> str:
    if context.is_windows():
        app_data = os.environ.get("APPDATA") or os.path.join(
            str(context.home_dir()), "AppData", "Roaming"
        )
        return os.path.join(app_data, "npm", "etc", "npmrc")
    prefix = os.environ.get("npm_config_prefix") or "/usr/local"
    return os.path.join(prefix, "etc", "npmrc")


def config_locations() -> dict[str, str]:
    """Config file type → path, in listing order."""
    project = str(context.get_project_dir())
    home = str(context.home_dir())
    return {
        "project-npmrc": os.path.join(project, ".npmrc"),
        "user-npmrc": os.path.join(home, ".npmrc"),
        "global-npmrc": global_npmrc_path(),
        "project-yarnrc": os.path.join(project, ".yarnrc"),
        "user-yarnrc": os.path.join(home, ".yarnrc"),
        "project-yarnrc-yml": os.path.join(project, ".yarnrc.yml"),
    }


def detect_npm_registry() -> RegistryInfo:
    """Resolve the effective registry and every scoped registry.

    Precedence for the global registry: environment, then the user
    ``.npmrc``, then the global ``npmrc``.  A project ``.npmrc``
    registry is reported separately as the local registry.  For scopes
    the first file (project before user before global) wins.
    """
    locations = config_locations()
    info = RegistryInfo(
        global_registry=RegistryEndpoint(registry=DEFAULT_REGISTRY, source="default"),
        config_files=[
            ConfigFileInfo(type=kind, path=path, exists=fs.file_exists(path))
            for kind, path in locations.items()
        ],
    )

    parsed: dict[str, RcConfig | None] = {
        kind: (parse_yarnrc_yml(path) if kind.endswith("-yml") else parse_npmrc(path))
        for kind, path in locations.items()
    }

    env_registry = os.environ.get("npm_config_registry") or os.environ.get("NPM_CONFIG_REGISTRY")
    if env_registry:
        info.global_registry = RegistryEndpoint(registry=env_registry, source="environment")
    else:
        project = parsed["project-npmrc"]
        if project and project.registry:
            info.local_registry = RegistryEndpoint(
                registry=project.registry,
                source="project-npmrc",
                path=locations["project-npmrc"],
            )
        for kind in ("user-npmrc", "global-npmrc"):
            config = parsed[kind]
            if config and config.registry:
                info.global_registry = RegistryEndpoint(
                    registry=config.registry, source=kind, path=locations[kind],
                )
                break

    for kind in (
        "project-npmrc",
        "project-yarnrc",
        "project-yarnrc-yml",
        "user-npmrc",
        "user-yarnrc",
        "global-npmrc",
    ):
        config = parsed[kind]
        if not config:
            continue
        for scope, registry in config.scopes.items():
            if scope not in info.scopes:
                info.scopes[scope] = RegistryEndpoint(
                    registry=registry, source=kind, path=locations[kind],
                )

    return info


# ── Reachability ────────────────────────────────────────────────


def check_registry_status(
    url: str | None,
    timeout: float = REGISTRY_TIMEOUT,
    fetch_fn: Callable[..., HttpResponse] = fetch,
    clock: Callable[[], float] = time.monotonic,
) -> RegistryStatus:
    """HEAD the registry root and time it.

    401 counts as reachable (private registry, auth required).
    """
    if not url:
        return RegistryStatus(available=False, latency=0, status=0)

    target = url if url.endswith("/") else f"{url}/"
    start = clock()
    try:
        response = fetch_fn(target, method="HEAD", timeout=timeout)
    except FetchError as e:
        latency = int((clock() - start) * 1000)
        logger.debug("Registry %s unreachable: %s", target, e)
        return RegistryStatus(available=False, latency=latency, status=0, error=str(e))

    latency = int((clock() - start) * 1000)
    return RegistryStatus(
        available=response.ok or response.status == 401,
        latency=latency,
        status=response.status,
    )
