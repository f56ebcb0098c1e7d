"""
Windows-only managers: NVM for Windows and Nodist.

Both are located solely through their environment variables; without
them there is no conventional location to look at.
"""

from __future__ import annotations

import os
import re

from node_doctor.adapters.shell import filesystem as fs
from node_doctor.adapters.shell.command import get_node_version
from node_doctor.core.models.detector import DetectorResult, Installation
from node_doctor.detectors import helpers
from node_doctor.detectors.base import Detector

_VERSION_DIR_RE = re.compile(r"^v?\d+")


class NvmWindowsDetector(Detector):
    name = "nvm-windows"
    display_name = "NVM for Windows"
    icon = "🪟"
    platforms = ("win32",)

    def detect(self) -> DetectorResult | None:
        nvm_home = helpers.get_env("NVM_HOME")
        if not nvm_home or not fs.dir_exists(nvm_home):
            return None

        installations: list[Installation] = []
        for name in fs.list_subdirs(nvm_home):
            if not _VERSION_DIR_RE.match(name):
                continue
            version_dir = os.path.join(nvm_home, name)
            node_path = os.path.join(version_dir, "node.exe")
            if not fs.file_exists(node_path):
                continue
            installations.append(Installation(
                version=name.removeprefix("v"),
                path=version_dir,
                executable=node_path,
                size=fs.dir_size(version_dir),
                verified=get_node_version(node_path),
                manager=self.name,
            ))

        if not installations:
            return None

        return DetectorResult(
            base_dir=nvm_home,
            versions_dir=nvm_home,
            installations=installations,
            env_var="NVM_HOME",
            env_var_set=True,
            symlink=helpers.get_env("NVM_SYMLINK"),
        )


class NodistDetector(Detector):
    """Nodist keeps ``v/<version>/<arch>/node.exe``."""

    name = "nodist"
    display_name = "Nodist"
    icon = "🎯"
    platforms = ("win32",)

    def detect(self) -> DetectorResult | None:
        prefix = helpers.get_env("NODIST_PREFIX")
        if not prefix or not fs.dir_exists(prefix):
            return None

        node_dir = os.path.join(prefix, "v")
        if not fs.dir_exists(node_dir):
            return None

        installations = helpers.discover_arch_installations(
            node_dir,
            self.name,
            executable=lambda arch_dir: os.path.join(arch_dir, "node.exe"),
        )
        return helpers.create_detector_result(
            prefix, installations, "NODIST_PREFIX", versions_dir=node_dir,
        )
