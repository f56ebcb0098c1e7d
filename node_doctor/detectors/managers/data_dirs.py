"""
Managers whose root follows per-platform data-directory conventions.

fnm, mise, vfox and nvs do not have a single home-relative default:
depending on the OS they live under Application Support, the XDG data
home or AppData.  Each returns None when no root directory exists.
"""

from __future__ import annotations

import os

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.core import context
from node_doctor.core.models.detector import DetectorResult
from node_doctor.detectors import helpers
from node_doctor.detectors.base import Detector
from node_doctor.detectors.managers.version_dirs import ALL


class FnmDetector(Detector):
    name = "fnm"
    display_name = "FNM (Fast Node Manager)"
    icon = "⚡"
    platforms = ALL

    def base_dir(self) -> str | None:
        env = helpers.get_env("FNM_DIR")
        if env:
            return env if fs.dir_exists(env) else None
        if context.is_windows():
            return helpers.first_existing_dir(*helpers.windows_appdata_dirs("fnm"))
        return helpers.first_existing_dir(
            helpers.mac_app_support_dir("fnm"),
            helpers.xdg_data_dir("fnm"),
            os.path.join(helpers.home(), ".fnm"),
        )

    def detect(self) -> DetectorResult | None:
        fnm_dir = self.base_dir()
        if not fnm_dir:
            return None

        versions_dir = os.path.join(fnm_dir, "node-versions")
        installations = helpers.discover_installations(
            versions_dir,
            self.name,
            executable=lambda version_dir: helpers.executable_for(
                os.path.join(version_dir, "installation")
            ),
        )
        return helpers.create_detector_result(
            fnm_dir,
            installations,
            "FNM_DIR",
            versions_dir=versions_dir,
            default_version=helpers.read_default_version(
                os.path.join(fnm_dir, "aliases", "default")
            ),
        )


class MiseDetector(Detector):
    name = "mise"
    display_name = "mise (polyglot version manager)"
    icon = "🛠️"
    platforms = ALL

    def detect(self) -> DetectorResult | None:
        mise_dir = helpers.get_env("MISE_DATA_DIR") or helpers.xdg_data_dir("mise")
        if not fs.dir_exists(mise_dir):
            return None

        node_dir = os.path.join(mise_dir, "installs", "node")
        if not fs.dir_exists(node_dir):
            return None

        return helpers.create_detector_result(
            mise_dir,
            helpers.discover_installations(node_dir, self.name),
            "MISE_DATA_DIR",
            versions_dir=node_dir,
        )


class VfoxDetector(Detector):
    name = "vfox"
    display_name = "vfox (version manager)"
    icon = "🦊"
    platforms = ALL

    def base_dir(self) -> str | None:
        env = helpers.get_env("VFOX_HOME")
        if env:
            return env if fs.dir_exists(env) else None
        if context.is_windows():
            local, _ = helpers.windows_appdata_dirs("vfox")
            return helpers.first_existing_dir(local)
        if context.is_mac():
            return helpers.first_existing_dir(
                helpers.mac_app_support_dir("vfox"),
                helpers.xdg_data_dir("vfox"),
            )
        return helpers.first_existing_dir(
            helpers.xdg_data_dir("vfox"),
            os.path.join(helpers.home(), ".vfox"),
        )

    def detect(self) -> DetectorResult | None:
        vfox_home = self.base_dir()
        if not vfox_home:
            return None

        node_dir = os.path.join(vfox_home, "cache", "nodejs")
        return helpers.create_detector_result(
            vfox_home,
            helpers.discover_installations(node_dir, self.name),
            "VFOX_HOME",
            versions_dir=node_dir,
        )


class NvsDetector(Detector):
    """NVS keeps ``node/<version>/<arch>/`` and records the arch."""

    name = "nvs"
    display_name = "NVS (Node Version Switcher)"
    icon = "🔄"
    platforms = ALL

    def base_dir(self) -> str | None:
        env = helpers.get_env("NVS_HOME")
        if env:
            return env if fs.dir_exists(env) else None
        if context.is_windows():
            return helpers.first_existing_dir(*helpers.windows_appdata_dirs("nvs"))
        return helpers.first_existing_dir(
            os.path.join(helpers.home(), ".nvs"),
            helpers.xdg_data_dir("nvs"),
        )

    def detect(self) -> DetectorResult | None:
        nvs_home = self.base_dir()
        if not nvs_home:
            return None

        node_dir = os.path.join(nvs_home, "node")
        if not fs.dir_exists(node_dir):
            return None

        return helpers.create_detector_result(
            nvs_home,
            helpers.discover_arch_installations(node_dir, self.name),
            "NVS_HOME",
            versions_dir=node_dir,
            default_version=helpers.read_default_version(
                os.path.join(nvs_home, "default")
            ),
        )
