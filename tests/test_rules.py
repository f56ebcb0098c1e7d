"""
Tests for the health rules: which checks appear, in which order, with
which status and wording.
"""

import pytest

from node_doctor.core.models.environment import (
    CorepackInfo,
    EngineCheck,
    EngineRequirement,
    EnvVarInfo,
    EolStatus,
    FoundNode,
    GlobalPackagesSummary,
    PermissionCheck,
    PortProcess,
    RegistryEndpoint,
    RegistryInfo,
    RegistrySnapshot,
    RegistryStatus,
    RunnerInfo,
    SecurityStatus,
    SymlinkHealth,
)
from node_doctor.core.models.health import (
    DuplicateVersion,
    HealthData,
    SecuritySummary,
    SystemInfo,
)
from node_doctor.core.services.health.rules import (
    assess_health_checks,
    corepack_status,
    duplicate_versions,
    engines_compliance,
    multiple_managers,
    node_eol,
    node_in_path,
    node_security,
    path_shadowing,
    permission_issues,
    port_conflicts,
    registry_status,
    symlink_support,
)

REGISTRY = "https://registry.npmjs.org/"


def found(version, runner, executable=None):
    return FoundNode(
        executable=executable or f"/opt/{runner}/{version}/bin/node",
        real_path=executable or f"/opt/{runner}/{version}/bin/node",
        runner=RunnerInfo(name=runner, icon="*"),
        version=version,
    )


def health(**overrides) -> HealthData:
    fields = dict(
        system=SystemInfo(platform="linux x86_64", arch="x86_64", shell="/bin/bash", node_version="v20.11.0"),
        registry=RegistrySnapshot(
            info=RegistryInfo(global_registry=RegistryEndpoint(registry=REGISTRY, source="default")),
            status=RegistryStatus(available=True, latency=120, status=200),
        ),
        security=SecuritySummary(
            eol=EolStatus(status="active"),
            vulnerabilities=SecurityStatus(vulnerable=False),
        ),
    )
    fields.update(overrides)
    return HealthData(**fields)


class TestPathRules:
    def test_no_node(self):
        check = node_in_path(health())
        assert check.status == "fail"
        assert check.message == "No Node.js found in PATH"
        assert check.hint == "Install Node.js or add it to your PATH"

    def test_primary_node(self):
        check = node_in_path(health(nodes_in_path=[found("v20.11.0", "nvm")]))
        assert check.status == "pass"
        assert check.message == "Node.js v20.11.0 via nvm"
        assert check.details == "/opt/nvm/v20.11.0/bin/node"

    def test_shadowing(self):
        data = health(nodes_in_path=[found("v20.11.0", "nvm"), found("v18.0.0", "system")])
        check = path_shadowing(data)
        assert check.message == "1 shadowed Node version(s) in PATH"
        assert check.details == "v20.11.0 (nvm), v18.0.0 (system)"

    def test_no_shadowing_with_single_node(self):
        assert path_shadowing(health(nodes_in_path=[found("v20.11.0", "nvm")])) is None

    @pytest.mark.parametrize("active,managers,status,message", [
        (["nvm", "volta"], 0, "warn", "2 version managers active in PATH"),
        (["nvm"], 0, "pass", "Using nvm"),
        ([], 0, "pass", "No version managers detected (using system Node)"),
    ])
    def test_managers(self, active, managers, status, message):
        check = multiple_managers(health(active_managers=active))
        assert (check.status, check.message) == (status, message)


class TestRegistryRule:
    def test_unreachable(self):
        data = health(registry=RegistrySnapshot(
            info=RegistryInfo(global_registry=RegistryEndpoint(registry=REGISTRY, source="default")),
            status=RegistryStatus(available=False, error="timed out"),
        ))
        check = registry_status(data)
        assert check.id == "registry-status"
        assert check.status == "fail"
        assert check.details == "timed out"

    @pytest.mark.parametrize("latency,check_id,status", [
        (2000, "registry-status", "pass"),
        (2001, "registry-latency", "warn"),
    ])
    def test_latency_threshold(self, latency, check_id, status):
        data = health()
        data.registry.status.latency = latency
        check = registry_status(data)
        assert (check.id, check.status) == (check_id, status)

    def test_configurable_threshold(self):
        data = health()
        data.registry.status.latency = 600
        checks = assess_health_checks(data, latency_warn_ms=500)
        assert "registry-latency" in [c.id for c in checks]


class TestSecurityRules:
    def test_eol(self):
        data = health(security=SecuritySummary(eol=EolStatus(status="eol", eol_date="2023-09-11")))
        data.system.node_version = "v16.20.2"
        check = node_eol(data)
        assert check.status == "fail"
        assert check.message == "Node.js v16.20.2 is End-of-Life (EOL)"
        assert check.hint == "Support ended on 2023-09-11. Upgrade immediately."

    def test_maintenance(self):
        data = health(security=SecuritySummary(eol=EolStatus(status="maintenance", eol_date="2025-04-30")))
        check = node_eol(data)
        assert check.status == "warn"
        assert check.hint == "Support ends on 2025-04-30. Plan your upgrade."

    def test_feed_unavailable(self):
        data = health(security=SecuritySummary())
        assert node_eol(data).message == "Could not fetch release schedule"
        assert node_security(data).message == "Could not fetch security data"

    def test_vulnerable(self):
        data = health(security=SecuritySummary(
            eol=EolStatus(status="active"),
            vulnerabilities=SecurityStatus(
                vulnerable=True,
                latest_security_release="v20.11.1",
                details="Newer security release available: v20.11.1",
            ),
        ))
        check = node_security(data)
        assert check.status == "warn"
        assert check.message == "Node.js v20.11.0 has known vulnerabilities"
        assert check.details == "Upgrade to v20.11.1"


class TestLocalRules:
    def test_ports(self):
        data = health(port_processes=[
            PortProcess(port=3000, pid=1, name="node"),
            PortProcess(port=5173, pid=2, name="vite"),
        ])
        check = port_conflicts(data)
        assert check.status == "warn"
        assert check.details == "Port 3000: node; Port 5173: vite"

    def test_duplicates_reclaimable_mb(self):
        mb = 1024 * 1024
        data = health(duplicate_versions=[
            DuplicateVersion(version="20.0.0", managers=["nvm", "fnm"], total_size=100 * mb),
        ])
        check = duplicate_versions(data)
        assert check.hint == "Consider removing duplicates to save ~50 MB"
        assert check.details == "20.0.0 in nvm, fnm"

    def test_no_duplicates_single_manager_silent(self):
        assert duplicate_versions(health()) is None

    def test_permissions_only_existing_dirs(self):
        data = health(permissions=[
            PermissionCheck(name="npm global", path="/a", exists=True, writable=False),
            PermissionCheck(name="yarn cache", path="/b", exists=False, writable=False),
        ])
        check = permission_issues(data)
        assert check.message == "1 directory(ies) not writable"
        assert check.details == "npm global"

    def test_corepack_field_without_enable(self):
        data = health(corepack=CorepackInfo(installed=True, package_manager_field="pnpm@9.1.0"))
        assert corepack_status(data).details == "pnpm@9.1.0"
        data.corepack.enabled = True
        assert corepack_status(data) is None


class TestExtendedRules:
    def test_engines_node_fails(self):
        data = health()
        data.extended_checks.engines_check = EngineCheck(
            node=EngineRequirement(required=">=22", current="v20.11.0", satisfied=False),
        )
        check = engines_compliance(data)
        assert check.status == "fail"
        assert check.message == "Node v20.11.0 doesn't match required >=22"

    def test_engines_npm_warns(self):
        data = health()
        data.extended_checks.engines_check = EngineCheck(
            node=EngineRequirement(required=None, current="v20.11.0", satisfied=True),
            npm=EngineRequirement(required=">=10", current="9.0.0", satisfied=False),
        )
        assert engines_compliance(data).status == "warn"

    def test_engines_skipped_for_unknown_runtime(self):
        data = health()
        data.extended_checks.engines_check = EngineCheck(
            node=EngineRequirement(required=">=18", current="unknown", satisfied=True),
        )
        assert engines_compliance(data) is None

    def test_symlinks_developer_mode(self):
        data = health()
        data.extended_checks.symlink_health = SymlinkHealth(
            working=True, is_admin=False, issues=["Enable Developer Mode for better symlink support"],
        )
        check = symlink_support(data)
        assert check.status == "pass"
        assert check.message == "Symlinks working (via Developer Mode)"


class TestAssessHealthChecks:
    def test_baseline_order(self):
        checks = assess_health_checks(health(nodes_in_path=[found("v20.11.0", "nvm")]))
        assert [c.id for c in checks] == [
            "node-in-path",
            "multiple-managers",
            "registry-status",
            "node-eol",
            "node-security",
            "port-conflicts",
            "shell-startup-slow",
            "node-gyp-readiness",
        ]

    def test_optional_rules_appear(self):
        data = health(
            nodes_in_path=[found("v20.11.0", "nvm"), found("v18.0.0", "volta")],
            active_managers=["nvm", "volta"],
            environment_vars=[EnvVarInfo(name="NODE_OPTIONS", is_set=True)],
            global_packages=GlobalPackagesSummary(duplicates=["typescript"]),
        )
        ids = [c.id for c in assess_health_checks(data)]
        assert ids.index("path-shadowing") == 1
        assert "env-node-options" in ids
        assert "global-duplicates" in ids
