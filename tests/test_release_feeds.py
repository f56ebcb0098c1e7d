"""
Tests for release-feed fetching and EOL / security classification.
"""

import json
from datetime import UTC, datetime

from node_doctor.adapters.network.http import FetchError, HttpResponse, RetryingFetcher
from node_doctor.core.config.loader import Settings
from node_doctor.core.reliability.feed_cache import FeedCache
from node_doctor.core.reliability.retry_policy import RetryPolicy
from node_doctor.core.services.probes.release_feeds import (
    ReleaseFeeds,
    check_eol,
    check_security,
)

SCHEDULE = {
    "v16": {"start": "2021-04-20", "lts": "2021-10-26", "maintenance": "2022-10-18", "end": "2023-09-11"},
    "v18": {"start": "2022-04-19", "lts": "2022-10-25", "maintenance": "2023-10-18", "end": "2025-04-30"},
    "v22": {"start": "2024-04-24", "lts": "2024-10-29", "maintenance": "2025-10-21", "end": "2027-04-30"},
}

NOW = datetime(2024, 6, 1, tzinfo=UTC)


class TestCheckEol:
    def test_end_of_life(self):
        status = check_eol("v16.20.2", SCHEDULE, now=NOW)
        assert status.status == "eol"
        assert status.eol_date == "2023-09-11"
        assert status.is_lts is True

    def test_maintenance(self):
        status = check_eol("v18.19.0", SCHEDULE, now=NOW)
        assert status.status == "maintenance"
        assert status.maintenance_date == "2023-10-18"

    def test_active(self):
        assert check_eol("v22.2.0", SCHEDULE, now=NOW).status == "active"

    def test_unscheduled_major(self):
        assert check_eol("v21.0.0", SCHEDULE, now=NOW).status == "unknown"

    def test_unparseable_version(self):
        assert check_eol("unknown", SCHEDULE, now=NOW).status == "unknown"

    def test_naive_now_is_utc(self):
        assert check_eol("v16.0.0", SCHEDULE, now=datetime(2024, 1, 1)).status == "eol"


class TestCheckSecurity:
    RELEASES = [
        {"version": "v20.11.1", "security": True},
        {"version": "v20.11.0", "security": False},
        {"version": "v20.10.0", "security": True},
        {"version": "v20.9.0", "security": False},
        {"version": "v18.19.1", "security": True},
        {"version": "v21.6.2", "security": True},
    ]

    def test_nearest_security_release(self):
        status = check_security("v20.9.0", self.RELEASES)
        assert status.vulnerable is True
        assert status.latest_security_release == "v20.10.0"
        assert status.details == "Newer security release available: v20.10.0"

    def test_up_to_date(self):
        assert check_security("v20.11.1", self.RELEASES).vulnerable is False

    def test_other_major_ignored(self):
        assert check_security("v19.0.0", self.RELEASES).vulnerable is False

    def test_invalid_version_not_vulnerable(self):
        assert check_security("unknown", self.RELEASES).vulnerable is False


def _feeds(responses, cache=None):
    calls = []

    def fake_fetch(url, timeout=10.0):
        calls.append(url)
        outcome = responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    fetcher = RetryingFetcher(RetryPolicy(max_attempts=2, base_delay=0), fetch_fn=fake_fetch, sleep=lambda s: None)
    settings = Settings(schedule_url="https://feeds.test/schedule.json", dist_url="https://feeds.test/index.json")
    return ReleaseFeeds(settings, cache=cache or FeedCache(), fetcher=fetcher), calls


class TestReleaseFeeds:
    def test_fetch_and_memoize(self):
        body = json.dumps(SCHEDULE).encode()
        feeds, calls = _feeds({"https://feeds.test/schedule.json": HttpResponse(status=200, body=body)})

        assert feeds.release_schedule() == SCHEDULE
        assert feeds.release_schedule() == SCHEDULE
        assert calls == ["https://feeds.test/schedule.json"]

    def test_failure_returns_none_and_is_not_cached(self):
        cache = FeedCache()
        feeds, calls = _feeds(
            {"https://feeds.test/index.json": FetchError("connection refused")}, cache=cache,
        )

        assert feeds.dist_index() is None
        assert "https://feeds.test/index.json" not in cache
        assert len(calls) == 2

    def test_wrong_payload_type(self):
        feeds, _ = _feeds({"https://feeds.test/index.json": HttpResponse(status=200, body=b"{}")})
        assert feeds.dist_index() is None

    def test_not_found_is_final(self):
        feeds, calls = _feeds({"https://feeds.test/schedule.json": HttpResponse(status=404)})
        assert feeds.release_schedule() is None
        assert len(calls) == 1

    def test_invalid_json(self):
        feeds, _ = _feeds({"https://feeds.test/schedule.json": HttpResponse(status=200, body=b"<html>")})
        assert feeds.release_schedule() is None
