"""
Tests for npm registry configuration discovery and reachability.
"""

import textwrap

from node_doctor.adapters.network.http import FetchError, HttpResponse
from node_doctor.core.services.probes.registry import (
    DEFAULT_REGISTRY,
    check_registry_status,
    detect_npm_registry,
    parse_npmrc_text,
    parse_yarnrc_yml,
)


def _clock(*ticks):
    values = iter(ticks)
    return lambda: next(values)


class TestParsers:
    def test_npmrc(self):
        config = parse_npmrc_text(textwrap.dedent("""\
            # comment
            ; another
            registry=https://mirror.example.com/
            @acme:registry="https://npm.acme.dev/"
            //npm.acme.dev/:_authToken=${NPM_TOKEN}
        """))
        assert config.registry == "https://mirror.example.com/"
        assert config.scopes == {"@acme": "https://npm.acme.dev/"}

    def test_classic_yarnrc(self):
        config = parse_npmrc_text('registry "https://registry.yarnpkg.com"\n')
        assert config.registry == "https://registry.yarnpkg.com"

    def test_yarnrc_yml(self, tmp_path):
        path = tmp_path / ".yarnrc.yml"
        path.write_text(textwrap.dedent("""\
            npmRegistryServer: "https://yarn.mirror.test"
            npmScopes:
              acme:
                npmRegistryServer: "https://npm.acme.dev"
        """))
        config = parse_yarnrc_yml(path)
        assert config.registry == "https://yarn.mirror.test"
        assert config.scopes == {"@acme": "https://npm.acme.dev"}

    def test_yarnrc_yml_invalid(self, tmp_path):
        path = tmp_path / ".yarnrc.yml"
        path.write_text("npmScopes: [unclosed\n")
        assert parse_yarnrc_yml(path) is None


class TestDetectRegistry:
    def test_default(self, home, project_dir, linux, monkeypatch, tmp_path):
        monkeypatch.setenv("npm_config_prefix", str(tmp_path / "prefix"))
        info = detect_npm_registry()
        assert info.global_registry.registry == DEFAULT_REGISTRY
        assert info.global_registry.source == "default"
        assert info.local_registry is None
        assert [f.type for f in info.config_files][:3] == ["project-npmrc", "user-npmrc", "global-npmrc"]
        assert not any(f.exists for f in info.config_files)

    def test_environment_wins(self, home, project_dir, linux, monkeypatch):
        (home / ".npmrc").write_text("registry=https://user.test/\n")
        monkeypatch.setenv("npm_config_registry", "https://env.test/")
        info = detect_npm_registry()
        assert info.global_registry.registry == "https://env.test/"
        assert info.global_registry.source == "environment"

    def test_user_npmrc_and_project_local(self, home, project_dir, linux):
        (home / ".npmrc").write_text("registry=https://user.test/\n@acme:registry=https://user-acme.test/\n")
        (project_dir / ".npmrc").write_text("registry=https://project.test/\n@acme:registry=https://proj-acme.test/\n")

        info = detect_npm_registry()

        assert info.global_registry.registry == "https://user.test/"
        assert info.global_registry.source == "user-npmrc"
        assert info.local_registry.registry == "https://project.test/"
        # project file is consulted first for scopes
        assert info.scopes["@acme"].registry == "https://proj-acme.test/"
        assert info.scopes["@acme"].source == "project-npmrc"


class TestRegistryStatus:
    def test_available(self):
        seen = {}

        def fake_fetch(url, method="GET", timeout=10.0):
            seen.update(url=url, method=method, timeout=timeout)
            return HttpResponse(status=200)

        status = check_registry_status(
            "https://registry.npmjs.org", fetch_fn=fake_fetch, clock=_clock(1.0, 1.25),
        )
        assert status.available is True
        assert status.latency == 250
        assert status.status == 200
        assert seen == {"url": "https://registry.npmjs.org/", "method": "HEAD", "timeout": 3.0}

    def test_unauthorized_counts_as_available(self):
        status = check_registry_status(
            "https://private.test/",
            fetch_fn=lambda url, method, timeout: HttpResponse(status=401),
            clock=_clock(0.0, 0.1),
        )
        assert status.available is True
        assert status.status == 401

    def test_server_error_unavailable(self):
        status = check_registry_status(
            "https://r.test/",
            fetch_fn=lambda url, method, timeout: HttpResponse(status=503),
            clock=_clock(0.0, 0.1),
        )
        assert status.available is False

    def test_transport_error(self):
        def boom(url, method, timeout):
            raise FetchError("timed out")

        status = check_registry_status("https://r.test/", fetch_fn=boom, clock=_clock(0.0, 3.0))
        assert status.available is False
        assert status.status == 0
        assert status.error == "timed out"
        assert status.latency == 3000

    def test_no_url(self):
        assert check_registry_status(None).available is False
