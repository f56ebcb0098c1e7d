"""
Tests for version parsing and engines matching.
"""

import pytest

from node_doctor.core.services import semver


class TestParse:
    def test_full_and_partial(self):
        assert semver.parse("v20.11.1") == (20, 11, 1)
        assert semver.parse("18.2") == (18, 2, 0)
        assert semver.parse("16") == (16, 0, 0)

    def test_invalid(self):
        assert semver.parse("unknown") is None
        assert semver.parse("") is None
        assert semver.parse(None) is None
        assert semver.valid("lts/iron") is None

    def test_major_raises_on_invalid(self):
        with pytest.raises(ValueError):
            semver.major("nope")

    def test_compare(self):
        assert semver.compare("20.0.0", "18.19.1") == 1
        assert semver.compare("v18.0.0", "18.0.0") == 0
        assert semver.gt("18.19.1", "18.19.0")
        assert not semver.gt("18.19.0", "18.19.0")


class TestEnginesSatisfies:
    def test_exact(self):
        assert semver.engines_satisfies("v20.11.0", "20.11.0")
        assert not semver.engines_satisfies("v20.11.1", "20.11.0")

    def test_operators(self):
        assert semver.engines_satisfies("v20.0.0", ">=18")
        assert not semver.engines_satisfies("v16.0.0", ">=18.0.0")
        assert semver.engines_satisfies("v18.9.0", "^18.2.0")
        assert semver.engines_satisfies("v18.2.5", "~18.2.0")
        assert semver.engines_satisfies("v20.4.0", "20.x")
        assert semver.engines_satisfies("v22.0.0", "20")

    def test_unknown_range_is_lenient(self):
        assert semver.engines_satisfies("v12.0.0", "lts/*")
