"""
Managers with the common "one directory per version" layout.

Each detector here is declarative: an environment variable that moves
the root, a default root, the versions subdirectory and optionally a
file holding the default alias.
"""

from __future__ import annotations

import os
from abc import abstractmethod

from node_doctor.core.models.detector import DetectorResult
from node_doctor.detectors.base import Detector
from node_doctor.detectors import helpers

UNIX = ("darwin", "linux")
ALL = ("darwin", "linux", "win32")


class VersionDirDetector(Detector):
    """Detector for ``<root>/<versions_subdir>/<version>/bin/node`` layouts."""

    env_var: str = ""
    versions_subdir: tuple[str, ...] = ()
    default_file: tuple[str, ...] | None = None
    windows_exe: str = "node.exe"
    unix_exe: str = os.path.join("bin", "node")

    @abstractmethod
    def default_base_dir(self) -> str:
        """Root used when the environment variable is unset."""

    def base_dir(self) -> str | None:
        return helpers.resolve_base_dir(self.env_var, self.default_base_dir())

    def versions_dir(self, base_dir: str) -> str:
        return os.path.join(base_dir, *self.versions_subdir)

    def result_extras(self, base_dir: str) -> dict:
        return {}

    def detect(self) -> DetectorResult | None:
        base_dir = self.base_dir()
        if not base_dir:
            return None

        versions_dir = self.versions_dir(base_dir)
        installations = helpers.discover_installations(
            versions_dir,
            self.name,
            executable=helpers.executable_getter(self.windows_exe, self.unix_exe),
        )
        default_version = None
        if self.default_file:
            default_version = helpers.read_default_version(
                os.path.join(base_dir, *self.default_file)
            )
        return helpers.create_detector_result(
            base_dir,
            installations,
            self.env_var,
            versions_dir=versions_dir,
            default_version=default_version,
            **self.result_extras(base_dir),
        )


def _in_home(*parts: str) -> str:
    return os.path.join(helpers.home(), *parts)


class NvmDetector(VersionDirDetector):
    name = "nvm"
    display_name = "NVM (Node Version Manager)"
    icon = "🌿"
    platforms = UNIX
    env_var = "NVM_DIR"
    versions_subdir = ("versions", "node")
    default_file = ("alias", "default")

    def default_base_dir(self) -> str:
        return _in_home(".nvm")


class VoltaDetector(VersionDirDetector):
    name = "volta"
    display_name = "Volta"
    icon = "⚡"
    platforms = ALL
    env_var = "VOLTA_HOME"
    versions_subdir = ("tools", "image", "node")

    def default_base_dir(self) -> str:
        return _in_home(".volta")

    def result_extras(self, base_dir: str) -> dict:
        return {"inventory_dir": os.path.join(base_dir, "tools", "inventory", "node")}


class AsdfDetector(VersionDirDetector):
    name = "asdf"
    display_name = "asdf (version manager)"
    icon = "🔧"
    platforms = UNIX
    env_var = "ASDF_DATA_DIR"
    versions_subdir = ("installs", "nodejs")

    def default_base_dir(self) -> str:
        return _in_home(".asdf")


class NDetector(VersionDirDetector):
    name = "n"
    display_name = "n (node version manager)"
    icon = "📦"
    platforms = UNIX
    env_var = "N_PREFIX"
    versions_subdir = ("n", "versions", "node")

    def default_base_dir(self) -> str:
        return "/usr/local"


class NodenvDetector(VersionDirDetector):
    name = "nodenv"
    display_name = "nodenv"
    icon = "💎"
    platforms = UNIX
    env_var = "NODENV_ROOT"
    versions_subdir = ("versions",)
    default_file = ("version",)

    def default_base_dir(self) -> str:
        return _in_home(".nodenv")


class ProtoDetector(VersionDirDetector):
    name = "proto"
    display_name = "proto (moonrepo)"
    icon = "🌙"
    platforms = ALL
    env_var = "PROTO_HOME"
    versions_subdir = ("tools", "node")

    def default_base_dir(self) -> str:
        return _in_home(".proto")


class NodebrewDetector(VersionDirDetector):
    name = "nodebrew"
    display_name = "nodebrew"
    icon = "🍺"
    platforms = UNIX
    env_var = "NODEBREW_ROOT"
    versions_subdir = ("node",)

    def default_base_dir(self) -> str:
        return _in_home(".nodebrew")


class GnvmDetector(VersionDirDetector):
    """GNVM keeps version folders directly in its root."""

    name = "gnvm"
    display_name = "GNVM"
    icon = "🔷"
    platforms = ("win32",)
    env_var = "NODE_HOME"
    unix_exe = "node.exe"

    def default_base_dir(self) -> str:
        return _in_home("AppData", "Roaming", "gnvm")

    def base_dir(self) -> str | None:
        return (
            helpers.get_env("GNVM_HOME")
            or helpers.get_env("NODE_HOME")
            or self.default_base_dir()
        )


class NdenvDetector(VersionDirDetector):
    name = "ndenv"
    display_name = "ndenv"
    icon = "💎"
    platforms = UNIX
    env_var = "NDENV_ROOT"
    versions_subdir = ("versions",)
    default_file = ("version",)

    def default_base_dir(self) -> str:
        return _in_home(".ndenv")


class SnmDetector(VersionDirDetector):
    name = "snm"
    display_name = "snm"
    icon = "🦀"
    platforms = UNIX
    env_var = "SNM_DIR"
    versions_subdir = ("releases",)

    def default_base_dir(self) -> str:
        return _in_home(".snm")


class NvmdDetector(VersionDirDetector):
    name = "nvmd"
    display_name = "nvm-desktop"
    icon = "🖥️"
    platforms = ALL
    env_var = "NVMD_DIR"
    versions_subdir = ("versions",)
    default_file = ("default",)

    def default_base_dir(self) -> str:
        return _in_home(".nvmd")


class TnvmDetector(VersionDirDetector):
    name = "tnvm"
    display_name = "tnvm"
    icon = "☁️"
    platforms = UNIX
    env_var = "TNVM_DIR"
    versions_subdir = ("versions", "node")

    def default_base_dir(self) -> str:
        return _in_home(".tnvm")
