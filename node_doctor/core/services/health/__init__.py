"""
Health assessment: collect a snapshot, evaluate rules, summarize.

    from node_doctor.core.services.health import run_health_assessment

    assessment = run_health_assessment(results, registry)
    sys.exit(assessment.exit_code)
"""

from node_doctor.core.services.health.assessment import (
    format_as_json,
    format_as_text,
    run_health_assessment,
    summarize,
)
from node_doctor.core.services.health.collector import collect_health_data
from node_doctor.core.services.health.rules import assess_health_checks

__all__ = [
    "assess_health_checks",
    "collect_health_data",
    "format_as_json",
    "format_as_text",
    "run_health_assessment",
    "summarize",
]
