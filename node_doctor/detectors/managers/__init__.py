"""
Built-in detectors, one per supported version manager.

Registration order matters: it is the scan order and the tie-break when
several managers' base directories contain the same PATH entry.
"""

from __future__ import annotations

from node_doctor.detectors.base import Detector
from node_doctor.detectors.managers.data_dirs import (
    FnmDetector,
    MiseDetector,
    NvsDetector,
    VfoxDetector,
)
from node_doctor.detectors.managers.environment import PathDetector, SystemDetector
from node_doctor.detectors.managers.homebrew import HomebrewDetector
from node_doctor.detectors.managers.version_dirs import (
    AsdfDetector,
    GnvmDetector,
    NdenvDetector,
    NDetector,
    NodebrewDetector,
    NodenvDetector,
    NvmdDetector,
    NvmDetector,
    ProtoDetector,
    SnmDetector,
    TnvmDetector,
    VersionDirDetector,
    VoltaDetector,
)
from node_doctor.detectors.managers.windows import NodistDetector, NvmWindowsDetector


def default_detectors() -> list[Detector]:
    """Fresh instances of every built-in detector, in registration order."""
    return [
        NvmDetector(),
        FnmDetector(),
        VoltaDetector(),
        AsdfDetector(),
        NDetector(),
        MiseDetector(),
        VfoxDetector(),
        NodenvDetector(),
        NvsDetector(),
        ProtoDetector(),
        NvmWindowsDetector(),
        NodistDetector(),
        HomebrewDetector(),
        NodebrewDetector(),
        GnvmDetector(),
        NdenvDetector(),
        SnmDetector(),
        NvmdDetector(),
        TnvmDetector(),
        SystemDetector(),
        PathDetector(),
    ]


__all__ = [
    "default_detectors",
    "VersionDirDetector",
    "NvmDetector",
    "FnmDetector",
    "VoltaDetector",
    "AsdfDetector",
    "NDetector",
    "MiseDetector",
    "VfoxDetector",
    "NodenvDetector",
    "NvsDetector",
    "ProtoDetector",
    "NvmWindowsDetector",
    "NodistDetector",
    "HomebrewDetector",
    "NodebrewDetector",
    "GnvmDetector",
    "NdenvDetector",
    "SnmDetector",
    "NvmdDetector",
    "TnvmDetector",
    "SystemDetector",
    "PathDetector",
]
