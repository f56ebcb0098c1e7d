"""
Tests for the built-in detectors against fake home directories.
"""

import functools
from pathlib import Path

import pytest

from node_doctor.detectors.helpers import compare_versions, discover_installations
from node_doctor.detectors.managers import homebrew
from node_doctor.detectors.managers.data_dirs import FnmDetector, MiseDetector, NvsDetector
from node_doctor.detectors.managers.environment import PathDetector
from node_doctor.detectors.managers.homebrew import HomebrewDetector
from node_doctor.detectors.managers.version_dirs import (
    GnvmDetector,
    NvmDetector,
    VersionDirDetector,
    VoltaDetector,
)
from node_doctor.detectors.managers.windows import NodistDetector, NvmWindowsDetector


def touch(path: Path, content: str = "#!/bin/sh\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestNvm:
    def test_absent(self, home, linux, fake_commands):
        assert NvmDetector().detect() is None

    def test_discovers_versions_with_binary(self, home, linux, fake_commands):
        node = touch(home / ".nvm" / "versions" / "node" / "v20.11.0" / "bin" / "node")
        (home / ".nvm" / "versions" / "node" / "v18.0.0").mkdir()
        touch(home / ".nvm" / "alias" / "default", "lts/iron\n")
        fake_commands.set(str(node), ["--version"], stdout="v20.11.0\n")

        result = NvmDetector().detect()

        assert result is not None
        assert result.base_dir == str(home / ".nvm")
        assert [i.version for i in result.installations] == ["20.11.0"]
        inst = result.installations[0]
        assert inst.verified == "v20.11.0"
        assert inst.manager == "nvm"
        assert inst.size > 0
        assert result.default_version == "lts/iron"
        assert result.env_var == "NVM_DIR"
        assert result.env_var_set is False

    def test_env_var_moves_root(self, home, linux, fake_commands, tmp_path, monkeypatch):
        root = tmp_path / "custom-nvm"
        touch(root / "versions" / "node" / "v16.20.2" / "bin" / "node")
        monkeypatch.setenv("NVM_DIR", str(root))

        result = NvmDetector().detect()

        assert result.base_dir == str(root)
        assert result.env_var_set is True
        assert result.installations[0].verified is None


class TestVolta:
    def test_inventory_dir(self, home, linux, fake_commands):
        touch(home / ".volta" / "tools" / "image" / "node" / "20.1.0" / "bin" / "node")
        result = VoltaDetector().detect()
        assert result.inventory_dir == str(home / ".volta" / "tools" / "inventory" / "node")
        assert result.versions_dir == str(home / ".volta" / "tools" / "image" / "node")


class TestDataDirManagers:
    def test_fnm_xdg_layout(self, home, linux, fake_commands):
        fnm = home / ".local" / "share" / "fnm"
        touch(fnm / "node-versions" / "v20.0.0" / "installation" / "bin" / "node")
        touch(fnm / "aliases" / "default", "v20.0.0")

        result = FnmDetector().detect()

        assert result.base_dir == str(fnm)
        assert result.installations[0].version == "20.0.0"
        assert result.default_version == "v20.0.0"

    def test_fnm_missing_env_dir(self, home, linux, fake_commands, monkeypatch, tmp_path):
        monkeypatch.setenv("FNM_DIR", str(tmp_path / "nope"))
        assert FnmDetector().detect() is None

    def test_mise(self, home, linux, fake_commands):
        touch(home / ".local" / "share" / "mise" / "installs" / "node" / "22.3.0" / "bin" / "node")
        result = MiseDetector().detect()
        assert [i.version for i in result.installations] == ["22.3.0"]

    def test_nvs_records_arch(self, home, linux, fake_commands):
        touch(home / ".nvs" / "node" / "18.19.0" / "x64" / "bin" / "node")
        result = NvsDetector().detect()
        inst = result.installations[0]
        assert inst.version == "18.19.0"
        assert inst.arch == "x64"


class TestWindowsManagers:
    def test_nvm_windows(self, home, windows, fake_commands, tmp_path, monkeypatch):
        nvm_home = tmp_path / "nvm"
        touch(nvm_home / "v20.1.0" / "node.exe")
        touch(nvm_home / "settings" / "node.exe")
        monkeypatch.setenv("NVM_HOME", str(nvm_home))
        monkeypatch.setenv("NVM_SYMLINK", "C:\\nodejs")

        result = NvmWindowsDetector().detect()

        assert [i.version for i in result.installations] == ["20.1.0"]
        assert result.symlink == "C:\\nodejs"
        assert result.env_var_set is True

    def test_nodist(self, home, windows, fake_commands, tmp_path, monkeypatch):
        prefix = tmp_path / "nodist"
        touch(prefix / "v" / "16.0.0" / "x86" / "node.exe")
        monkeypatch.setenv("NODIST_PREFIX", str(prefix))

        result = NodistDetector().detect()

        assert result.installations[0].arch == "x86"
        assert result.env_var == "NODIST_PREFIX"

    def test_gnvm_prefers_gnvm_home(self, home, windows, fake_commands, tmp_path, monkeypatch):
        gnvm = tmp_path / "gnvm"
        touch(gnvm / "14.0.0" / "node.exe")
        monkeypatch.setenv("GNVM_HOME", str(gnvm))
        monkeypatch.setenv("NODE_HOME", str(tmp_path / "elsewhere"))

        result = GnvmDetector().detect()

        assert result.base_dir == str(gnvm)
        assert result.installations[0].version == "14.0.0"


class TestHomebrew:
    def test_formula_and_versioned_kegs(self, linux, fake_commands, tmp_path, monkeypatch):
        prefix = tmp_path / "brew"
        touch(prefix / "Cellar" / "node" / "21.6.1" / "bin" / "node")
        touch(prefix / "Cellar" / "node@18" / "18.19.0" / "bin" / "node")
        (prefix / "Cellar" / "python@3.12").mkdir()
        monkeypatch.setattr(homebrew, "BREW_PREFIXES", (str(prefix),))

        result = HomebrewDetector().detect()

        assert result.cellar_dir == str(prefix / "Cellar")
        assert [(i.version, i.formula) for i in result.installations] == [
            ("21.6.1", "node"),
            ("18.19.0", "node@18"),
        ]
        assert result.linked_path is None

    def test_no_brew(self, linux, fake_commands, tmp_path, monkeypatch):
        monkeypatch.setattr(homebrew, "BREW_PREFIXES", (str(tmp_path / "none"),))
        assert HomebrewDetector().detect() is None


class TestPathDetector:
    def test_reports_path_nodes(self, home, linux, fake_commands, tmp_path, monkeypatch):
        bin_a = tmp_path / "a"
        touch(bin_a / "node")
        (tmp_path / "b").mkdir()
        monkeypatch.setenv("PATH", f"{bin_a}:{tmp_path / 'b'}")
        fake_commands.set("which", ["node"], stdout=f"{bin_a / 'node'}\n")

        result = PathDetector().detect()

        info = result.path_info
        assert info.total_path_dirs == 2
        assert [n.path_dir for n in info.found_nodes] == [str(bin_a)]
        assert info.active_node == str(bin_a / "node")
        assert result.installations == []


class TestHelpers:
    def test_compare_versions_newest_first(self):
        versions = ["18.2.0", "20.1", "9", "20.10.0", "lts"]
        ordered = sorted(versions, key=functools.cmp_to_key(compare_versions))
        assert ordered == ["20.10.0", "20.1", "18.2.0", "9", "lts"]

    def test_discover_missing_dir(self, tmp_path):
        assert discover_installations(str(tmp_path / "missing"), "nvm") == []

    def test_version_dir_layout_needs_default_root(self):
        class Incomplete(VersionDirDetector):
            name = "incomplete"
            display_name = "Incomplete"
            icon = "?"
            platforms = ("linux",)

        with pytest.raises(TypeError):
            Incomplete()
