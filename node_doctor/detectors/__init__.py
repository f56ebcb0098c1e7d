"""
Detectors — locate Node.js runtimes installed by each version manager.

    registry = build_default_registry()
    results = registry.scan_all()
"""

from __future__ import annotations

from node_doctor.detectors.base import Detector
from node_doctor.detectors.managers import default_detectors
from node_doctor.detectors.registry import (
    DetectorRegistry,
    DetectorValidationError,
    DuplicateDetectorError,
    RegistryFrozenError,
)


def build_default_registry(freeze: bool = True) -> DetectorRegistry:
    """Registry holding every built-in detector, frozen unless asked otherwise."""
    registry = DetectorRegistry().register_all(default_detectors())
    return registry.freeze() if freeze else registry


__all__ = [
    "Detector",
    "DetectorRegistry",
    "DetectorValidationError",
    "DuplicateDetectorError",
    "RegistryFrozenError",
    "build_default_registry",
    "default_detectors",
]
