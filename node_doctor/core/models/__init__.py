"""
Domain models: Pydantic types for node-doctor.

All models are re-exported here for convenient access:

    from node_doctor.core.models import Installation, DetectorResult, Check, Assessment
"""

from node_doctor.core.models.detector import (
    AggregatedInstallation,
    DetectorResult,
    Installation,
    ManagerSummary,
    PathAnalysis,
    PathNode,
    ScanResults,
)
from node_doctor.core.models.health import (
    Assessment,
    AssessmentSummary,
    Check,
    CheckStatus,
    DetectedManager,
    DuplicateVersion,
    HealthData,
    ManagerInstallation,
    SecuritySummary,
    SystemInfo,
)

__all__ = [
    # detector.py
    "AggregatedInstallation",
    "DetectorResult",
    "Installation",
    "ManagerSummary",
    "PathAnalysis",
    "PathNode",
    "ScanResults",
    # health.py
    "Assessment",
    "AssessmentSummary",
    "Check",
    "CheckStatus",
    "DetectedManager",
    "DuplicateVersion",
    "HealthData",
    "ManagerInstallation",
    "SecuritySummary",
    "SystemInfo",
]
