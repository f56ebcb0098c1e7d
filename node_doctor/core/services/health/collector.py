"""
Health data collector: one pass over every probe, bundled into HealthData.

The three network-bound probes (registry HEAD, release schedule,
distribution index) run concurrently and are joined before anything
else starts, so the PATH annotations and the security rules see the
same feed data.  Everything after that is local and sequential.
"""

from __future__ import annotations

import logging
import os
import platform
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from node_doctor.core import context
from node_doctor.core.config.loader import Settings
from node_doctor.core.models.detector import ScanResults
from node_doctor.core.models.environment import (
    RegistrySnapshot,
    RegistryStatus,
    ShellConfigScan,
)
from node_doctor.core.models.health import HealthData, SecuritySummary, SystemInfo
from node_doctor.core.services.aggregation import detect_duplicate_versions, detected_managers
from node_doctor.core.services.probes import environment as env_probe
from node_doctor.core.services.probes.extended import collect_extended_checks
from node_doctor.core.services.probes.package_managers import (
    collect_global_packages_summary,
    get_package_managers_info,
    mnpm_version,
    npm_version,
)
from node_doctor.core.services.probes.path_scan import scan_path_for_nodes
from node_doctor.core.services.probes.ports import find_node_processes
from node_doctor.core.services.probes.registry import check_registry_status, detect_npm_registry
from node_doctor.core.services.probes.release_feeds import (
    ReleaseFeeds,
    check_eol,
    check_security,
)
from node_doctor.core.services.probes.shell_config import (
    aggregate_shell_configs,
    detect_shell_configs,
)

if TYPE_CHECKING:
    from node_doctor.detectors.registry import DetectorRegistry

logger = logging.getLogger(__name__)


def _default_shell() -> str:
    shell = os.environ.get("SHELL")
    if shell:
        return shell
    return "cmd.exe" if context.is_windows() else "unknown"


def _fan_out(jobs: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    """Run jobs concurrently and wait for all of them.

    A job that raises is logged and recorded as None.
    """
    outcomes: dict[str, Any] = {}
    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        futures = {pool.submit(fn): name for name, fn in jobs.items()}
        for future in as_completed(futures):
            name = futures[future]
            try:
                outcomes[name] = future.result()
            except Exception as exc:
                logger.warning("Probe '%s' failed: %s", name, exc)
                outcomes[name] = None
    return outcomes


def collect_health_data(
    results: ScanResults,
    registry: DetectorRegistry,
    *,
    skip_ports: bool = False,
    skip_shell: bool = False,
    feeds: ReleaseFeeds | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> HealthData:
    """Gather the full environment snapshot for rule evaluation.

    Args:
        results: Output of ``registry.scan_all()``.
        registry: The detector registry that produced ``results``.
        skip_ports: Do not scan listening ports.
        skip_shell: Do not read shell config files.
        feeds: Release feed source (default: shared, memoized feeds).
        settings: Timeouts and feed URLs.
        now: Clock for EOL classification (default: current UTC time).
    """
    settings = settings or Settings()
    feeds = feeds or ReleaseFeeds(settings)

    registry_info = detect_npm_registry()
    registry_url = registry_info.global_registry.registry

    outcomes = _fan_out({
        "registry": lambda: check_registry_status(registry_url, timeout=settings.registry_timeout),
        "schedule": feeds.release_schedule,
        "dist_index": feeds.dist_index,
    })
    registry_status = outcomes["registry"] or RegistryStatus(
        available=False, error="registry probe failed",
    )
    schedule = outcomes["schedule"]
    dist_index = outcomes["dist_index"]

    nodes, active_managers = scan_path_for_nodes(
        results, registry, schedule=schedule, dist_index=dist_index, now=now,
    )
    current_version = nodes[0].version if nodes else "unknown"

    managers = detected_managers(registry, results)

    port_processes = [] if skip_ports else find_node_processes()

    shell_scan = ShellConfigScan() if skip_shell else detect_shell_configs()

    npm = npm_version()
    system = SystemInfo(
        platform=f"{context.current_platform()} {platform.machine()}",
        arch=platform.machine(),
        shell=_default_shell(),
        node_version=current_version,
        npm_version=npm,
        mnpm_version=mnpm_version(),
        exec_path=nodes[0].executable if nodes else None,
    )

    security = SecuritySummary(
        eol=check_eol(current_version, schedule, now=now) if schedule is not None else None,
        vulnerabilities=check_security(current_version, dist_index) if dist_index is not None else None,
        tokens=env_probe.collect_auth_tokens(),
    )

    data = HealthData(
        system=system,
        nodes_in_path=nodes,
        managers=managers,
        active_managers=active_managers,
        registry=RegistrySnapshot(info=registry_info, status=registry_status),
        security=security,
        port_processes=port_processes,
        shell_configs=aggregate_shell_configs(shell_scan.node_related),
        all_shell_configs=shell_scan.found,
        package_managers=get_package_managers_info(),
        duplicate_versions=detect_duplicate_versions(managers),
        environment_vars=env_probe.collect_environment_vars(),
        global_packages=collect_global_packages_summary(),
        permissions=env_probe.check_permissions(),
        corepack=env_probe.get_corepack_info(),
        extended_checks=collect_extended_checks(
            active_managers, shell_scan.node_related, current_version, npm,
        ),
    )
    logger.debug(
        "Collected health data: %d node(s) in PATH, %d manager(s), %d port process(es)",
        len(nodes), len(managers), len(port_processes),
    )
    return data
