"""
Tests for the node-doctor CLI.
"""

import json
import logging

import pytest
from click.testing import CliRunner

import node_doctor.core.services.health as health_service
import node_doctor.detectors as detectors
from node_doctor import __version__
from node_doctor.core.models.environment import (
    RegistryEndpoint,
    RegistryInfo,
    RegistrySnapshot,
    RegistryStatus,
)
from node_doctor.core.models.health import Check, HealthData, SystemInfo
from node_doctor.core.services.health.assessment import summarize
from node_doctor.detectors.registry import DetectorRegistry
from node_doctor.main import cli


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner(home, tmp_path, monkeypatch):
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return CliRunner()


@pytest.fixture
def fake_registry(monkeypatch, detector_factory, result_factory):
    registry = DetectorRegistry().register_all([
        detector_factory("nvm", result_factory("nvm", ["18.19.0", "20.11.0"], size=2048), icon="N"),
        detector_factory("system", result_factory("system", ["21.0.0"]), can_delete=False),
    ])
    monkeypatch.setattr(detectors, "build_default_registry", lambda freeze=True: registry)
    return registry


def _data() -> HealthData:
    return HealthData(
        system=SystemInfo(platform="linux x86_64", arch="x86_64", shell="/bin/sh", node_version="v20.11.0"),
        registry=RegistrySnapshot(
            info=RegistryInfo(global_registry=RegistryEndpoint(registry="https://r.test/", source="default")),
            status=RegistryStatus(available=True, latency=12, status=200),
        ),
    )


@pytest.fixture
def fake_assessment(monkeypatch):
    """Replace the full assessment with a canned one; records the kwargs."""
    state = {"status": "pass", "calls": []}

    def fake_run(results, registry, **kwargs):
        state["calls"].append(kwargs)
        check = Check(id="node-in-path", name="Node.js in PATH", category="path",
                      status=state["status"], message="canned")
        return summarize([check], _data())

    monkeypatch.setattr(health_service, "run_health_assessment", fake_run)
    return state


class TestGroup:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "diagnose your Node.js toolchain" in result.output
        for command in ("check", "list", "info"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestCheck:
    def test_passing_exit_zero(self, runner, fake_registry, fake_assessment):
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "Status: PASS" in result.output

    def test_failing_exit_one(self, runner, fake_registry, fake_assessment):
        fake_assessment["status"] = "fail"
        result = runner.invoke(cli, ["check", "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["overallStatus"] == "fail"
        assert payload["exitCode"] == 1

    def test_skip_flags_and_settings(self, runner, fake_registry, fake_assessment):
        runner.invoke(cli, ["check", "--skip-ports"])
        kwargs = fake_assessment["calls"][0]
        assert kwargs["skip_ports"] is True
        assert kwargs["skip_shell"] is False

    def test_settings_file_skips_shell(self, runner, fake_registry, fake_assessment):
        with open("node-doctor.yml", "w") as f:
            f.write("node_doctor:\n  skip_shell: true\n  registry_latency_warn_ms: 500\n")
        runner.invoke(cli, ["check"])
        kwargs = fake_assessment["calls"][0]
        assert kwargs["skip_shell"] is True
        assert kwargs["settings"].registry_latency_warn_ms == 500

    def test_invalid_config_exits_two(self, runner, fake_registry, fake_assessment, tmp_path):
        bad = tmp_path / "bad.yml"
        bad.write_text("registry_timeout: -1\n")
        result = runner.invoke(cli, ["-c", str(bad), "check"])
        assert result.exit_code == 2
        assert fake_assessment["calls"] == []


class TestList:
    def test_json_excludes_system_by_default(self, runner, fake_registry):
        result = runner.invoke(cli, ["list", "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [(i["version"], i["detectorName"]) for i in payload] == [
            ("20.11.0", "nvm"),
            ("18.19.0", "nvm"),
        ]

    def test_all_includes_system(self, runner, fake_registry):
        result = runner.invoke(cli, ["list", "--json", "--all"])
        versions = [i["version"] for i in json.loads(result.stdout)]
        assert versions == ["21.0.0", "20.11.0", "18.19.0"]

    def test_text(self, runner, fake_registry):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "2 installation(s)" in result.output
        assert "N 20.11.0" in result.output
        assert "2.0 KB" in result.output

    def test_empty(self, runner, monkeypatch):
        monkeypatch.setattr(detectors, "build_default_registry", lambda freeze=True: DetectorRegistry())
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "No Node.js installations found." in result.output


class TestInfo:
    def test_json_snapshot(self, runner, fake_registry, monkeypatch):
        seen = {}

        def fake_collect(results, registry, **kwargs):
            seen.update(kwargs)
            return _data()

        monkeypatch.setattr(health_service, "collect_health_data", fake_collect)

        result = runner.invoke(cli, ["info", "--json", "--skip-shell"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["system"]["nodeVersion"] == "v20.11.0"
        assert seen["skip_shell"] is True

    def test_text(self, runner, fake_registry, monkeypatch):
        monkeypatch.setattr(health_service, "collect_health_data", lambda results, registry, **kw: _data())
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "Node v20.11.0" in result.output
        assert "https://r.test/ (12ms)" in result.output
