"""
Shared test fixtures and configuration.

No test touches the real machine: HOME points into tmp_path, manager
environment variables are cleared, and every subprocess goes through
``fake_commands``, which answers only the commands a test registers.
"""

import subprocess
import types
from pathlib import Path

import pytest

from node_doctor.adapters.shell import command
from node_doctor.core import context
from node_doctor.core.models.detector import DetectorResult, Installation
from node_doctor.core.services.probes.release_feeds import FEED_CACHE
from node_doctor.detectors.base import Detector

MANAGER_ENV_VARS = (
    "NVM_DIR", "FNM_DIR", "VOLTA_HOME", "ASDF_DATA_DIR", "N_PREFIX",
    "MISE_DATA_DIR", "VFOX_HOME", "NODENV_ROOT", "NVS_HOME", "PROTO_HOME",
    "NVM_HOME", "NVM_SYMLINK", "NODIST_PREFIX", "NODEBREW_ROOT", "GNVM_HOME",
    "NODE_HOME", "NDENV_ROOT", "SNM_DIR", "NVMD_DIR", "TNVM_DIR",
    "XDG_DATA_HOME", "XDG_CONFIG_HOME", "ZDOTDIR", "LOCALAPPDATA", "APPDATA",
    "NODE_OPTIONS", "npm_config_registry", "NPM_CONFIG_REGISTRY", "npm_config_prefix",
    "COREPACK_HOME", "NODE_DOCTOR_SCHEDULE_URL", "NODE_DOCTOR_DIST_URL",
    "NODE_DOCTOR_LOG_LEVEL", "NODE_DOCTOR_LOG_FILE", "NODE_DOCTOR_LOG_FILE_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_context():
    """Reset process-wide state between tests."""
    yield
    context.set_platform(None)
    context.set_project_dir(None)
    FEED_CACHE.clear()


@pytest.fixture
def home(tmp_path: Path, monkeypatch) -> Path:
    """A fresh, empty home directory with manager env vars cleared."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    for name in MANAGER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home_dir


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project directory registered in the core context."""
    proj = tmp_path / "project"
    proj.mkdir()
    context.set_project_dir(proj)
    return proj


@pytest.fixture
def linux():
    context.set_platform("linux")
    return "linux"


@pytest.fixture
def windows():
    context.set_platform("win32")
    return "win32"


# ── Subprocess fake ─────────────────────────────────────────────


class FakeCommands:
    """Scripted answers for ``subprocess.run``, keyed by (command, args).

    ``args=None`` registers a fallback for any arguments.  Unregistered
    commands behave like a missing binary.
    """

    TIMEOUT = object()

    def __init__(self):
        self.responses: dict[tuple, object] = {}
        self.calls: list[list[str]] = []

    def set(self, cmd, args=None, stdout="", returncode=0, stderr=""):
        key = (cmd, tuple(args) if args is not None else None)
        self.responses[key] = types.SimpleNamespace(
            returncode=returncode, stdout=stdout, stderr=stderr,
        )
        return self

    def timeout(self, cmd, args=None):
        self.responses[(cmd, tuple(args) if args is not None else None)] = self.TIMEOUT
        return self

    def run(self, argv, capture_output=True, text=True, timeout=None, cwd=None):
        self.calls.append(list(argv))
        cmd, args = argv[0], tuple(argv[1:])
        response = self.responses.get((cmd, args), self.responses.get((cmd, None)))
        if response is None:
            raise FileNotFoundError(cmd)
        if response is self.TIMEOUT:
            raise subprocess.TimeoutExpired(argv, timeout)
        return response


@pytest.fixture
def fake_commands(monkeypatch) -> FakeCommands:
    fake = FakeCommands()
    monkeypatch.setattr(command, "_resolve", lambda cmd: cmd)
    monkeypatch.setattr(
        command,
        "subprocess",
        types.SimpleNamespace(run=fake.run, TimeoutExpired=subprocess.TimeoutExpired),
    )
    monkeypatch.setattr(command.shutil, "which", lambda cmd: None)
    return fake


# ── Detector fakes ──────────────────────────────────────────────


class FakeDetector(Detector):
    """Detector returning a canned result (or raising a canned error)."""

    def __init__(
        self,
        name,
        result=None,
        platforms=("darwin", "linux", "win32"),
        can_delete=True,
        error=None,
        display_name=None,
        icon="*",
    ):
        self.name = name
        self.display_name = display_name if display_name is not None else name.upper()
        self.icon = icon
        self.platforms = platforms
        self.can_delete = can_delete
        self.error = error
        self.result = result
        self.calls = 0

    def detect(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def make_result(manager: str, versions, base_dir=None, size=10) -> DetectorResult:
    base = base_dir or f"/opt/{manager}"
    return DetectorResult(
        base_dir=base,
        installations=[
            Installation(
                version=v,
                path=f"{base}/{v}",
                executable=f"{base}/{v}/bin/node",
                size=size,
                manager=manager,
            )
            for v in versions
        ],
    )


@pytest.fixture
def detector_factory():
    return FakeDetector


@pytest.fixture
def result_factory():
    return make_result
