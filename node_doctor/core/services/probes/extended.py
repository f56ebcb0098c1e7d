"""
Extended heuristics: the less obvious ways a Node toolchain goes wrong.

Each probe returns a small record from ``core.models.environment``;
the health rules decide what is worth reporting.  Probes never raise
for a missing tool or file, they just report what they could see.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import run, run_command
from node_doctor.core import context
from node_doctor.core.models.environment import (
    BuildToolsInfo,
    EngineCheck,
    EngineRequirement,
    ExtendedChecks,
    GlobalNpmLocation,
    IdeIntegration,
    NodeGypReadiness,
    NpmCacheHealth,
    NpmPrefixCheck,
    PythonInfo,
    ShellConfigMatch,
    ShellSlowStartupCheck,
    SlowStartupPattern,
    StaleNodeModules,
    SymlinkHealth,
    VersionFileConflict,
    VersionFileInfo,
)
from node_doctor.core.services import semver
from node_doctor.core.services.probes.environment import read_package_json

logger = logging.getLogger(__name__)

NPM_CACHE_CEILING = 5 * 1024 * 1024 * 1024
CACHE_VERIFY_TIMEOUT = 30.0
NATIVE_MODULES_INSPECTED = 3
STALE_MAJOR_DELTA = 2


def _home(*parts: str) -> str:
    return os.path.join(str(context.home_dir()), *parts)


def _contained(haystack: str, needles: list[str]) -> bool:
    return any(needle in haystack for needle in needles)


# ── npm prefix ──────────────────────────────────────────────────


def expected_prefixes(manager: str) -> list[str]:
    """Where a manager's npm prefix normally lives, most likely first."""
    if manager == "nvm":
        nvm_dir = os.environ.get("NVM_DIR") or _home(".nvm")
        return [_home(".nvm", "versions", "node"), os.path.join(nvm_dir, "versions", "node")]
    if manager == "fnm":
        return [
            _home(".fnm", "node-versions"),
            _home("Library", "Application Support", "fnm", "node-versions"),
        ]
    if manager == "volta":
        return [_home(".volta")]
    if manager == "n":
        return [_home("n"), "/usr/local"]
    if manager == "asdf":
        return [_home(".asdf", "installs", "nodejs")]
    if manager == "mise":
        return [_home(".local", "share", "mise", "installs", "node")]
    if manager == "homebrew":
        return ["/opt/homebrew", "/usr/local"]
    return []


def check_npm_prefix(active_managers: list[str]) -> NpmPrefixCheck:
    result = NpmPrefixCheck()
    prefix = run_command("npm", ["config", "get", "prefix"])
    if not prefix:
        return result
    result.prefix = prefix
    if not active_managers:
        return result

    manager = active_managers[0]
    result.active_manager = manager
    expected = expected_prefixes(manager)
    if expected:
        result.expected_prefix = expected[0]
        result.mismatch = not _contained(prefix, expected) and manager not in prefix
    return result


# ── Shell startup ───────────────────────────────────────────────

SLOW_PATTERNS = [
    (re.compile(r"\$\(nvm\s+", re.IGNORECASE), "nvm",
     "Use nvm lazy loading: export NVM_LAZY=1 or defer nvm initialization"),
    (re.compile(r'eval\s+"\$\(fnm\s+env', re.IGNORECASE), "fnm",
     "fnm is fast by default. Check if you have redundant eval calls."),
    (re.compile(r"source.*nvm\.sh", re.IGNORECASE), "nvm",
     "Consider using fnm for faster shell startup (drop-in replacement)"),
    (re.compile(r'eval\s+"\$\(nodenv\s+init', re.IGNORECASE), "nodenv",
     "nodenv init can be slow. Consider using shims directly or lazy loading."),
    (re.compile(r'eval\s+"\$\(rbenv.*nodenv', re.IGNORECASE), "nodenv",
     "Multiple env tool initializations detected. Consider consolidating."),
    (re.compile(r"n\s+--help.*>", re.IGNORECASE), "n",
     "n --help in shell config can slow startup. Remove if not needed."),
]


def check_shell_slow_startup(matches: list[ShellConfigMatch]) -> ShellSlowStartupCheck:
    """Flag known-slow init lines and files that start several managers."""
    result = ShellSlowStartupCheck()
    managers_by_file: dict[str, list[str]] = {}

    for match in matches:
        for pattern, manager, suggestion in SLOW_PATTERNS:
            if pattern.search(match.content):
                result.patterns.append(SlowStartupPattern(
                    file=match.file,
                    manager=manager,
                    line=match.line,
                    suggestion=suggestion,
                ))
        managers = managers_by_file.setdefault(match.file, [])
        if match.manager not in managers:
            managers.append(match.manager)

    for file, managers in managers_by_file.items():
        if len(managers) > 1:
            result.patterns.append(SlowStartupPattern(
                file=file,
                manager=", ".join(managers),
                line=0,
                suggestion=f"Multiple version managers initialized in {file}. Use only one.",
            ))

    result.has_slow_patterns = bool(result.patterns)
    return result


# ── Version files ───────────────────────────────────────────────

_TOOL_VERSIONS_RE = re.compile(r"^nodejs\s+(\S+)", re.MULTILINE)
_ENGINE_VERSION_RE = re.compile(r"(\d+)(?:\.\d+)?(?:\.\d+)?")


def _normalize_version(version: str) -> str:
    if version.startswith("v"):
        version = version[1:]
    if version.startswith("lts/"):
        version = version[4:]
    return version


def _first_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[0].strip() if lines else ""


def check_version_file_conflict(project_dir=None) -> VersionFileConflict:
    """Compare the pins in .nvmrc, .node-version, .tool-versions and engines."""
    root = str(project_dir or context.get_project_dir())
    result = VersionFileConflict()

    for name in (".nvmrc", ".node-version"):
        path = os.path.join(root, name)
        text = fs.read_text(path)
        if text is None:
            continue
        version = _first_line(text)
        if version:
            result.files.append(VersionFileInfo(file=name, version=version, path=path))

    tool_versions = os.path.join(root, ".tool-versions")
    text = fs.read_text(tool_versions)
    if text is not None:
        match = _TOOL_VERSIONS_RE.search(text)
        if match:
            result.files.append(VersionFileInfo(
                file=".tool-versions", version=match.group(1), path=tool_versions,
            ))

    package_json = read_package_json(root)
    engines = (package_json or {}).get("engines") or {}
    node_range = engines.get("node") if isinstance(engines, dict) else None
    if isinstance(node_range, str) and node_range:
        match = _ENGINE_VERSION_RE.search(node_range)
        result.files.append(VersionFileInfo(
            file="package.json (engines)",
            version=match.group(0) if match else node_range,
            path=os.path.join(root, "package.json"),
        ))

    distinct = dict.fromkeys(_normalize_version(f.version) for f in result.files)
    result.distinct_versions = list(distinct)
    result.has_conflict = len(result.distinct_versions) > 1
    return result


# ── node-gyp ────────────────────────────────────────────────────


def _which(command: str) -> str | None:
    locator = "where" if context.is_windows() else "which"
    output = run_command(locator, [command])
    if not output:
        return None
    return output.splitlines()[0].strip()


def _find_python() -> PythonInfo:
    candidates = ["python", "python3", "py"] if context.is_windows() else ["python3", "python"]
    for candidate in candidates:
        result = run(candidate, ["--version"])
        if result is None or not result.ok:
            continue
        version = (result.stdout or result.stderr).strip()
        if version:
            return PythonInfo(available=True, version=version, path=_which(candidate))
    return PythonInfo()


def visual_studio_build_tools_dirs() -> list[str]:
    roots = [
        os.environ.get("ProgramFiles(x86)", "C:\\Program Files (x86)"),
        os.environ.get("ProgramFiles", "C:\\Program Files"),
    ]
    return [
        os.path.join(root, "Microsoft Visual Studio", year, "BuildTools")
        for root in roots
        for year in ("2019", "2022")
    ]


def _windows_build_tools() -> BuildToolsInfo:
    tools = BuildToolsInfo()
    if any(fs.path_exists(path) for path in visual_studio_build_tools_dirs()):
        tools.available = True
        tools.type = "Visual Studio Build Tools"

    prefix = run_command("npm", ["config", "get", "prefix"])
    if prefix and fs.path_exists(os.path.join(prefix, "node_modules", "windows-build-tools")):
        tools.available = True
        tools.type = "windows-build-tools"
    return tools


def check_node_gyp_readiness() -> NodeGypReadiness:
    """Python plus a C/C++ toolchain, which native addons need to compile."""
    result = NodeGypReadiness(python=_find_python())
    if not result.python.available:
        result.missing.append("Python")

    if context.is_windows():
        result.build_tools = _windows_build_tools()
        if not result.build_tools.available:
            result.missing.append("Visual Studio Build Tools")
    else:
        for tool in ("make", "g++", "gcc"):
            if not _which(tool):
                result.missing.append(tool)

    result.ready = not result.missing
    return result


# ── npm cache ───────────────────────────────────────────────────


def check_npm_cache_health() -> NpmCacheHealth:
    result = NpmCacheHealth()
    cache = run_command("npm", ["config", "get", "cache"])
    if not cache:
        return result
    result.path = cache

    if fs.path_exists(cache):
        result.size = fs.dir_size(cache)
        if result.size > NPM_CACHE_CEILING:
            result.issues.append('Cache size exceeds 5GB. Consider running "npm cache clean --force"')
            result.healthy = False
        if not fs.path_exists(os.path.join(cache, "_cacache")):
            result.issues.append("Cache structure may be corrupted (missing _cacache)")
            result.healthy = False
    else:
        result.issues.append("Cache directory does not exist")

    # a timeout or missing npm is inconclusive, only a failed verify counts
    verify = run("npm", ["cache", "verify"], timeout=CACHE_VERIFY_TIMEOUT)
    if verify is not None and not verify.ok:
        result.issues.append("npm cache verify failed")
        result.healthy = False

    return result


# ── Global npm root ─────────────────────────────────────────────


def expected_global_roots(manager: str) -> list[str]:
    if manager == "nvm":
        return [_home(".nvm")]
    if manager == "fnm":
        return [_home(".fnm"), _home("Library", "Application Support", "fnm")]
    if manager == "volta":
        return [_home(".volta", "tools")]
    if manager == "n":
        return [_home("n"), "/usr/local/lib/node_modules"]
    if manager == "homebrew":
        return ["/opt/homebrew", "/usr/local"]
    if manager == "system":
        return ["/usr/lib", "/usr/local/lib"]
    return []


def check_global_npm_location(active_managers: list[str]) -> GlobalNpmLocation:
    result = GlobalNpmLocation()
    root = run_command("npm", ["root", "-g"])
    if not root:
        return result
    result.npm_root = root
    if not active_managers:
        return result

    manager = active_managers[0]
    result.active_manager = manager
    expected = expected_global_roots(manager)
    if expected:
        result.expected_location = expected[0]
        result.correct_location = _contained(root, expected)
    return result


# ── Symlinks (Windows) ──────────────────────────────────────────


def check_symlink_health() -> SymlinkHealth | None:
    """Whether junctions and directory symlinks can be created.

    Version managers on Windows switch versions by relinking a directory,
    so this decides whether ``nvm use`` can work at all.  None elsewhere.
    """
    if not context.is_windows():
        return None

    admin = run("net", ["session"])
    result = SymlinkHealth(is_admin=admin is not None and admin.ok)

    with tempfile.TemporaryDirectory(prefix="node-doctor-symlink-", ignore_cleanup_errors=True) as tmp:
        target = os.path.join(tmp, "target")
        os.mkdir(target)

        junction = run("cmd", ["/c", "mklink", "/J", os.path.join(tmp, "link"), target])
        if junction is None or not junction.ok:
            message = (junction.stderr or junction.stdout).strip() if junction else "mklink unavailable"
            result.working = False
            result.issues.append(f"Symlinks not working: {message}")
        else:
            result.using_junctions = True
            try:
                os.symlink(target, os.path.join(tmp, "link2"), target_is_directory=True)
            except OSError as e:
                logger.debug("Directory symlink failed: %s", e)
                result.issues.append("Symbolic links require admin rights or Developer Mode")

    if not result.is_admin and not result.issues:
        result.issues.append("Enable Developer Mode for better symlink support")
    return result


# ── node_modules freshness ──────────────────────────────────────

_MAJOR_RE = re.compile(r"^v?(\d+)")


def _major_of(version: str | None) -> int | None:
    match = _MAJOR_RE.match(version or "")
    return int(match.group(1)) if match else None


def _native_modules(node_modules: str) -> list[str]:
    return [
        os.path.join(node_modules, name)
        for name in fs.list_subdirs(node_modules)
        if fs.dir_exists(os.path.join(node_modules, name, "build"))
        or fs.file_exists(os.path.join(node_modules, name, "binding.gyp"))
    ]


def check_stale_node_modules(current_version: str, project_dir=None) -> StaleNodeModules:
    """Detect native addons that were compiled for a different Node major."""
    root = str(project_dir or context.get_project_dir())
    result = StaleNodeModules(current_version=current_version)
    node_modules = os.path.join(root, "node_modules")
    if not fs.dir_exists(node_modules):
        return result
    result.exists = True

    lock_text = fs.read_text(os.path.join(root, "package-lock.json"))
    if lock_text:
        try:
            lock = json.loads(lock_text)
        except json.JSONDecodeError as e:
            logger.debug("Invalid package-lock.json: %s", e)
            lock = {}
        root_pkg = ((lock.get("packages") or {}).get("") or {}) if isinstance(lock, dict) else {}
        engine = (root_pkg.get("engines") or {}).get("node")
        if engine:
            result.built_with_version = str(engine)

    current_major = _major_of(current_version)
    for module in _native_modules(node_modules)[:NATIVE_MODULES_INSPECTED]:
        if not fs.dir_exists(os.path.join(module, "build", "Release")):
            continue
        engines = (read_package_json(root) or {}).get("engines") or {}
        match = re.search(r"\d+", str(engines.get("node") or ""))
        if match and current_major is not None:
            required = int(match.group())
            if required and abs(current_major - required) >= STALE_MAJOR_DELTA:
                result.major_mismatch = True
                result.built_with_version = f"v{required}"
                result.recommendation = (
                    'Native modules may need rebuild. Run "npm rebuild" or remove node_modules.'
                )
        break

    return result


# ── IDE ─────────────────────────────────────────────────────────

_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def parse_jsonc(text: str) -> dict | None:
    """Parse VSCode's JSON-with-comments; None when still not valid JSON."""
    stripped = _BLOCK_COMMENT_RE.sub("", _LINE_COMMENT_RE.sub("", text))
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        logger.debug("Unparseable VSCode settings: %s", e)
        return None
    return data if isinstance(data, dict) else None


def check_ide_integration(project_dir=None) -> IdeIntegration:
    root = str(project_dir or context.get_project_dir())
    vscode = os.path.join(root, ".vscode")
    result = IdeIntegration()
    if not fs.dir_exists(vscode):
        return result
    result.has_vscode = True

    text = fs.read_text(os.path.join(vscode, "settings.json"))
    settings = parse_jsonc(text) if text else None
    if settings is not None:
        if settings.get("terminal.integrated.inheritEnv") is False:
            result.vscode_issues.append(
                "terminal.integrated.inheritEnv is false - may not pick up nvm/fnm"
            )
            result.terminal_inherit_env = False
        else:
            result.terminal_inherit_env = True

        eslint_path = settings.get("eslint.nodePath")
        if eslint_path:
            result.eslint_node_path = True
            if not fs.path_exists(str(eslint_path)):
                result.vscode_issues.append(
                    f"eslint.nodePath points to non-existent path: {eslint_path}"
                )

        serialized = json.dumps(settings)
        if "/node/" in serialized or "\\\\node\\\\" in serialized:
            result.vscode_issues.append(
                "Settings contain hardcoded node paths - may break with version changes"
            )

    text = fs.read_text(os.path.join(vscode, "extensions.json"))
    extensions = parse_jsonc(text) if text else None
    if extensions is not None:
        recommended = [str(r).lower() for r in extensions.get("recommendations") or []]
        has_manager_ext = any("nvm" in r or "fnm" in r for r in recommended)
        if not has_manager_ext and fs.file_exists(os.path.join(root, ".nvmrc")):
            result.vscode_issues.append(
                "Project has .nvmrc but no nvm VSCode extension recommended"
            )

    return result


# ── engines ─────────────────────────────────────────────────────


def check_engines(current_version: str, npm_version: str | None, project_dir=None) -> EngineCheck | None:
    package_json = read_package_json(project_dir)
    engines = (package_json or {}).get("engines")
    if not isinstance(engines, dict) or not engines:
        return None

    node_range = engines.get("node")
    if not isinstance(node_range, str):
        node_range = None
    # an unreadable runtime version cannot be judged against a range
    node_satisfied = True
    if node_range and semver.parse(current_version) is not None:
        node_satisfied = semver.engines_satisfies(current_version, node_range)
    check = EngineCheck(node=EngineRequirement(
        required=node_range,
        current=current_version,
        satisfied=node_satisfied,
    ))

    npm_range = engines.get("npm")
    if isinstance(npm_range, str) and npm_range:
        check.npm = EngineRequirement(
            required=npm_range,
            current=npm_version,
            satisfied=bool(npm_version) and semver.engines_satisfies(npm_version, npm_range),
        )
    return check


# ── Bundle ──────────────────────────────────────────────────────


def collect_extended_checks(
    active_managers: list[str],
    shell_matches: list[ShellConfigMatch],
    current_version: str,
    npm_version: str | None = None,
) -> ExtendedChecks:
    return ExtendedChecks(
        npm_prefix=check_npm_prefix(active_managers),
        shell_slow_startup=check_shell_slow_startup(shell_matches),
        version_file_conflict=check_version_file_conflict(),
        node_gyp_readiness=check_node_gyp_readiness(),
        npm_cache_health=check_npm_cache_health(),
        global_npm_location=check_global_npm_location(active_managers),
        symlink_health=check_symlink_health(),
        stale_node_modules=check_stale_node_modules(current_version),
        ide_integration=check_ide_integration(),
        engines_check=check_engines(current_version, npm_version),
    )
