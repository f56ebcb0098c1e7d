"""
Assessment: summarize checks into an overall status and render reports.

``summarize`` is pure; ``run_health_assessment`` is the one-call entry
point used by the CLI and by anything scripting node-doctor.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from node_doctor.core.config.loader import Settings
from node_doctor.core.models.detector import ScanResults
from node_doctor.core.models.health import (
    Assessment,
    AssessmentSummary,
    Check,
    CheckStatus,
    HealthData,
)
from node_doctor.core.services.health.collector import collect_health_data
from node_doctor.core.services.health.rules import EXTENDED_CHECK_IDS, assess_health_checks
from node_doctor.core.services.probes.release_feeds import ReleaseFeeds

if TYPE_CHECKING:
    from node_doctor.detectors.registry import DetectorRegistry

logger = logging.getLogger(__name__)

STATUS_ICONS = {"pass": "✓", "warn": "⚠", "fail": "✗"}


def summarize(checks: list[Check], data: HealthData) -> Assessment:
    """Count checks by status and derive the overall status and exit code."""
    summary = AssessmentSummary(
        total=len(checks),
        passed=sum(1 for c in checks if c.status == "pass"),
        warnings=sum(1 for c in checks if c.status == "warn"),
        failed=sum(1 for c in checks if c.status == "fail"),
    )

    overall: CheckStatus
    if summary.failed:
        overall = "fail"
    elif summary.warnings:
        overall = "warn"
    else:
        overall = "pass"

    return Assessment(
        overall_status=overall,
        exit_code=1 if summary.failed else 0,
        checks=checks,
        summary=summary,
        data=data,
    )


def run_health_assessment(
    results: ScanResults,
    registry: DetectorRegistry,
    *,
    skip_ports: bool = False,
    skip_shell: bool = False,
    feeds: ReleaseFeeds | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> Assessment:
    """Collect, evaluate and summarize in one call."""
    settings = settings or Settings()
    data = collect_health_data(
        results,
        registry,
        skip_ports=skip_ports,
        skip_shell=skip_shell,
        feeds=feeds,
        settings=settings,
        now=now,
    )
    checks = assess_health_checks(data, latency_warn_ms=settings.registry_latency_warn_ms)
    assessment = summarize(checks, data)
    logger.info(
        "Health assessment: %s (%d passed, %d warnings, %d failed)",
        assessment.overall_status,
        assessment.summary.passed,
        assessment.summary.warnings,
        assessment.summary.failed,
    )
    return assessment


# ── Rendering ───────────────────────────────────────────────────


def format_as_json(assessment: Assessment) -> str:
    return json.dumps(assessment.model_dump(mode="json", by_alias=True), indent=2)


def format_as_text(assessment: Assessment) -> str:
    """Plain-text report, one fact per line, no terminal escape codes."""
    data = assessment.data
    lines: list[str] = [
        "",
        "  Node Doctor - Health Assessment",
        f"  {assessment.timestamp}",
        "",
        f"  Status: {assessment.overall_status.upper()}",
        "",
        "  System",
        f"    Platform:  {data.system.platform}",
        f"    Node:      {data.system.node_version}",
        f"    npm:       {data.system.npm_version or 'not found'}",
        f"    Shell:     {data.system.shell}",
        "",
        "  Checks",
    ]
    for check in assessment.checks:
        lines.append(f"    {STATUS_ICONS[check.status]} {check.name}: {check.message}")
        if check.details:
            lines.append(f"      {check.details}")
    lines += [
        "",
        "  Summary",
        f"    Total:    {assessment.summary.total}",
        f"    Passed:   {assessment.summary.passed}",
        f"    Warnings: {assessment.summary.warnings}",
        f"    Failed:   {assessment.summary.failed}",
        "",
    ]

    if data.managers:
        lines.append("  Version Managers")
        for mgr in data.managers:
            state = "(active)" if mgr.name in data.active_managers else "(installed)"
            lines.append(f"    {mgr.name}: {mgr.version_count} versions {state}")
        lines.append("")

    if data.port_processes:
        lines.append("  Port Processes")
        for proc in data.port_processes:
            lines.append(f"    Port {proc.port}: {proc.name} (PID {proc.pid})")
        lines.append("")

    flagged = [c for c in assessment.checks if c.id in EXTENDED_CHECK_IDS and c.status != "pass"]
    if flagged:
        lines.append("  Extended Environment Checks")
        for check in flagged:
            lines.append(f"    {STATUS_ICONS[check.status]} {check.name}: {check.message}")
            if check.hint:
                lines.append(f"      {check.hint}")
        lines.append("")

    if assessment.exit_code != 0:
        lines.append(f"  Exit code: {assessment.exit_code}")
        lines.append("")

    return "\n".join(lines)
