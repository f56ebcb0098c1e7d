"""
Shell startup-file scan: which rc files mention Node tooling.

Every known startup file for bash, zsh, fish, PowerShell, nushell,
elvish, xonsh and (t)csh is checked for the current platform.  Each
non-blank line is matched against an ordered pattern table; the first
pattern that matches attributes the line to a manager.  Directory
entries (fish ``conf.d``, oh-my-zsh ``custom``) scan their script files.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import command_exists
from node_doctor.core import context
from node_doctor.core.models.environment import (
    NodeConfigEntry,
    ShellConfigFile,
    ShellConfigMatch,
    ShellConfigScan,
)

logger = logging.getLogger(__name__)

PathFn = Callable[[], str]

DIR_SCRIPT_SUFFIXES = (".fish", ".zsh", ".sh", ".ps1")


# ── Locations ───────────────────────────────────────────────────


def _home(*parts: str) -> PathFn:
    return lambda: os.path.join(str(context.home_dir()), *parts)


def _zdotdir(*parts: str) -> PathFn:
    return lambda: os.path.join(os.environ.get("ZDOTDIR") or str(context.home_dir()), *parts)


def _xdg_config(*parts: str) -> PathFn:
    def resolve() -> str:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(str(context.home_dir()), ".config")
        return os.path.join(base, *parts)
    return resolve


def _appdata(*parts: str) -> PathFn:
    def resolve() -> str:
        base = os.environ.get("APPDATA") or os.path.join(str(context.home_dir()), "AppData", "Roaming")
        return os.path.join(base, *parts)
    return resolve


@dataclass(frozen=True)
class ShellConfigLocation:
    name: str
    shell: str
    unix: PathFn | None = None
    windows: PathFn | None = None
    is_dir: bool = False

    def path(self) -> str | None:
        fn = self.windows if context.is_windows() else self.unix
        return fn() if fn else None


def _everywhere(name: str, shell: str, fn: PathFn, is_dir: bool = False) -> ShellConfigLocation:
    return ShellConfigLocation(name=name, shell=shell, unix=fn, windows=fn, is_dir=is_dir)


SHELL_CONFIG_LOCATIONS: tuple[ShellConfigLocation, ...] = (
    _everywhere(".bashrc", "bash", _home(".bashrc")),
    _everywhere(".bash_profile", "bash", _home(".bash_profile")),
    _everywhere(".bash_login", "bash", _home(".bash_login")),
    _everywhere(".bash_logout", "bash", _home(".bash_logout")),
    _everywhere(".bash_aliases", "bash", _home(".bash_aliases")),
    _everywhere(".bash_functions", "bash", _home(".bash_functions")),
    _everywhere(".profile", "bash/sh", _home(".profile")),
    _everywhere(".zshrc", "zsh", _zdotdir(".zshrc")),
    _everywhere(".zprofile", "zsh", _zdotdir(".zprofile")),
    _everywhere(".zshenv", "zsh", _zdotdir(".zshenv")),
    _everywhere(".zlogin", "zsh", _zdotdir(".zlogin")),
    _everywhere(".zlogout", "zsh", _zdotdir(".zlogout")),
    ShellConfigLocation(
        "config.fish", "fish",
        unix=_xdg_config("fish", "config.fish"),
        windows=_appdata("fish", "config.fish"),
    ),
    ShellConfigLocation(
        "conf.d", "fish",
        unix=_xdg_config("fish", "conf.d"),
        windows=_appdata("fish", "conf.d"),
        is_dir=True,
    ),
    _everywhere("oh-my-zsh custom", "zsh (oh-my-zsh)", _home(".oh-my-zsh", "custom"), is_dir=True),
    ShellConfigLocation(
        "PowerShell Profile", "PowerShell",
        unix=_xdg_config("powershell", "Microsoft.PowerShell_profile.ps1"),
        windows=_home("Documents", "WindowsPowerShell", "Microsoft.PowerShell_profile.ps1"),
    ),
    ShellConfigLocation(
        "PowerShell Profile (All Hosts)", "PowerShell",
        unix=_xdg_config("powershell", "profile.ps1"),
        windows=_home("Documents", "WindowsPowerShell", "profile.ps1"),
    ),
    ShellConfigLocation(
        "PowerShell Profile (OneDrive)", "PowerShell",
        windows=_home("OneDrive", "Documents", "WindowsPowerShell", "Microsoft.PowerShell_profile.ps1"),
    ),
    ShellConfigLocation(
        "PowerShell Core Profile", "pwsh",
        unix=_xdg_config("powershell", "Microsoft.PowerShell_profile.ps1"),
        windows=_home("Documents", "PowerShell", "Microsoft.PowerShell_profile.ps1"),
    ),
    ShellConfigLocation(
        "PowerShell Core Profile (OneDrive)", "pwsh",
        windows=_home("OneDrive", "Documents", "PowerShell", "Microsoft.PowerShell_profile.ps1"),
    ),
    ShellConfigLocation(
        "config.nu", "nushell",
        unix=_xdg_config("nushell", "config.nu"),
        windows=_appdata("nushell", "config.nu"),
    ),
    ShellConfigLocation(
        "env.nu", "nushell",
        unix=_xdg_config("nushell", "env.nu"),
        windows=_appdata("nushell", "env.nu"),
    ),
    ShellConfigLocation(
        "rc.elv", "elvish",
        unix=_xdg_config("elvish", "rc.elv"),
        windows=_appdata("elvish", "rc.elv"),
    ),
    _everywhere(".xonshrc", "xonsh", _home(".xonshrc")),
    ShellConfigLocation(
        "rc.xsh", "xonsh",
        unix=_xdg_config("xonsh", "rc.xsh"),
        windows=_appdata("xonsh", "rc.xsh"),
    ),
    ShellConfigLocation(".cshrc", "csh", unix=_home(".cshrc")),
    ShellConfigLocation(".tcshrc", "tcsh", unix=_home(".tcshrc")),
)


# ── Patterns ────────────────────────────────────────────────────

# Ordered: specific manager markers first, generic tool names last
_PATTERN_TABLE: tuple[tuple[str, str], ...] = (
    (r"NVM_DIR", "nvm"),
    (r"NVM_BIN", "nvm"),
    (r"\.nvm", "nvm"),
    (r"nvm\.sh", "nvm"),
    (r"NVM_HOME", "nvm-windows"),
    (r"NVM_SYMLINK", "nvm-windows"),
    (r"fnm\s+env", "fnm"),
    (r"FNM_", "fnm"),
    (r"\.fnm", "fnm"),
    (r"fnm\s+use", "fnm"),
    (r"VOLTA_HOME", "volta"),
    (r"\.volta", "volta"),
    (r"volta\s+setup", "volta"),
    (r"load\.fish.*volta", "volta"),
    (r"ASDF_DIR", "asdf"),
    (r"ASDF_DATA_DIR", "asdf"),
    (r"ASDF_CONFIG_FILE", "asdf"),
    (r"\.asdf", "asdf"),
    (r"asdf\.sh", "asdf"),
    (r"N_PREFIX", "n"),
    (r"N_NODE_MIRROR", "n"),
    (r"N_CACHE_PREFIX", "n"),
    (r"/n/versions", "n"),
    (r"MISE_DATA_DIR", "mise"),
    (r"MISE_CONFIG_DIR", "mise"),
    (r"MISE_CACHE_DIR", "mise"),
    (r"mise\s+activate", "mise"),
    (r"\.local/share/mise", "mise"),
    (r"VFOX_HOME", "vfox"),
    (r"\.version-fox", "vfox"),
    (r"vfox\s+activate", "vfox"),
    (r"NODENV_ROOT", "nodenv"),
    (r"NODENV_VERSION", "nodenv"),
    (r"NODENV_DIR", "nodenv"),
    (r"\.nodenv", "nodenv"),
    (r"nodenv\s+init", "nodenv"),
    (r"NVS_HOME", "nvs"),
    (r"\.nvs", "nvs"),
    (r"nvs\.sh", "nvs"),
    (r"NODIST_PREFIX", "nodist"),
    (r"NODIST_VERSION", "nodist"),
    (r"nodist_bash_profile", "nodist"),
    (r"PROTO_HOME", "proto"),
    (r"\.proto", "proto"),
    (r"proto\s+use", "proto"),
    (r"proto\s+setup", "proto"),
    (r"nodebrew", "nodebrew"),
    (r"GNVM_", "gnvm"),
    (r"gnvm\.exe", "gnvm"),
    (r"NODE_HOME", "gnvm"),
    (r"NDENV_ROOT", "ndenv"),
    (r"\.ndenv", "ndenv"),
    (r"ndenv\s+init", "ndenv"),
    (r"SNM_DIR", "snm"),
    (r"\.snm", "snm"),
    (r"snm\s+env", "snm"),
    (r"NVMD_DIR", "nvmd"),
    (r"nvmd", "nvmd"),
    (r"TNVM_DIR", "tnvm"),
    (r"tnvm", "tnvm"),
    (r"/opt/homebrew/bin/node", "homebrew"),
    (r"/usr/local/bin/node", "homebrew"),
    (r"/home/linuxbrew/.linuxbrew", "homebrew"),
    (r"HOMEBREW_PREFIX.*node", "homebrew"),
    (r"COREPACK_HOME", "corepack"),
    (r"corepack\s+enable", "corepack"),
    (r"nodejs|node\.js", "node"),
    (r"npm", "npm"),
    (r"pnpm", "pnpm"),
    (r"yarn", "yarn"),
    (r"corepack", "corepack"),
)

NODE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), manager) for pattern, manager in _PATTERN_TABLE
)


def match_line(line: str) -> str | None:
    """Manager attributed to ``line`` by the first matching pattern."""
    for pattern, manager in NODE_PATTERNS:
        if pattern.search(line):
            return manager
    return None


def scan_text(
    text: str,
    file: str,
    path: str,
    skip_comments: bool = True,
) -> list[ShellConfigMatch]:
    matches: list[ShellConfigMatch] = []
    for index, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if skip_comments and stripped.startswith("#"):
            continue
        manager = match_line(line)
        if manager:
            matches.append(ShellConfigMatch(
                file=file, line=index, content=line, manager=manager, path=path,
            ))
    return matches


# ── Scan ────────────────────────────────────────────────────────


def _applicable(location: ShellConfigLocation) -> bool:
    if context.is_windows() or location.shell != "PowerShell":
        return True
    # Windows PowerShell profiles only matter off Windows when pwsh is installed
    return command_exists("pwsh")


def _scan_dir(location: ShellConfigLocation, directory: str) -> tuple[list[ShellConfigMatch], int]:
    matches: list[ShellConfigMatch] = []
    files_with_node = 0
    prefix = location.name.rstrip("/")
    for name in fs.list_dir(directory):
        if not name.endswith(DIR_SCRIPT_SUFFIXES):
            continue
        full_path = os.path.join(directory, name)
        text = fs.read_text(full_path)
        if not text:
            continue
        found = scan_text(text, f"{prefix}/{name}", full_path, skip_comments=False)
        if found:
            matches.extend(found)
            files_with_node += 1
    return matches, files_with_node


def detect_shell_configs() -> ShellConfigScan:
    """Scan every applicable startup file for Node-related lines."""
    scan = ShellConfigScan()
    for location in SHELL_CONFIG_LOCATIONS:
        if not _applicable(location):
            continue
        path = location.path()
        if not path:
            continue

        exists = fs.dir_exists(path) if location.is_dir else fs.file_exists(path)
        if not exists:
            continue

        scan.found.append(ShellConfigFile(name=location.name, path=path, shell=location.shell))
        scan.total += 1

        if location.is_dir:
            matches, with_node = _scan_dir(location, path)
            scan.node_related.extend(matches)
            scan.with_node_config += with_node
            continue

        text = fs.read_text(path)
        if not text:
            continue
        matches = scan_text(text, location.name, path)
        if matches:
            scan.node_related.extend(matches)
            scan.with_node_config += 1

    logger.debug(
        "Shell configs: %d found, %d with Node config",
        scan.total, scan.with_node_config,
    )
    return scan


def aggregate_shell_configs(matches: list[ShellConfigMatch]) -> list[NodeConfigEntry]:
    """Group matches by file path, managers in first-seen order."""
    by_path: dict[str, NodeConfigEntry] = {}
    for match in matches:
        entry = by_path.get(match.path)
        if entry is None:
            entry = by_path[match.path] = NodeConfigEntry(name=match.file, path=match.path)
        if match.manager not in entry.managers:
            entry.managers.append(match.manager)
    return list(by_path.values())
