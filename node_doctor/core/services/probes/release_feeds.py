"""
Release feeds: the Node.js release schedule and distribution index.

The schedule (``schedule.json``) maps ``v{major}`` to its support
window; the distribution index (``index.json``) lists every release and
flags the ones that shipped security fixes.  Both are fetched with
retry and memoized in a FeedCache, keyed by URL, so one assessment
downloads each at most once.  A fetch that fails for good yields None
and the dependent checks degrade to warnings.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from node_doctor.adapters.network.http import FetchError, RetryingFetcher
from node_doctor.core.config.loader import Settings
from node_doctor.core.models.environment import EolStatus, SecurityStatus
from node_doctor.core.reliability.feed_cache import FeedCache
from node_doctor.core.reliability.retry_policy import RetryPolicy
from node_doctor.core.services import semver

logger = logging.getLogger(__name__)

ReleaseSchedule = dict[str, dict[str, Any]]
DistIndex = list[dict[str, Any]]

# Shared by every ReleaseFeeds built without an explicit cache
FEED_CACHE = FeedCache()


class ReleaseFeeds:
    """Memoized access to the two remote release feeds."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: FeedCache | None = None,
        fetcher: RetryingFetcher | None = None,
    ):
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else FEED_CACHE
        self.fetcher = fetcher or RetryingFetcher(RetryPolicy(
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
        ))

    def _load_json(self, url: str, expected: type) -> Any | None:
        try:
            response = self.fetcher.get(url, timeout=self.settings.feed_timeout)
        except FetchError as e:
            logger.warning("Could not fetch %s: %s", url, e)
            return None
        if not response.ok:
            logger.warning("Fetching %s returned HTTP %d", url, response.status)
            return None
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Invalid JSON from %s: %s", url, e)
            return None
        if not isinstance(data, expected):
            logger.warning("Unexpected payload from %s: %s", url, type(data).__name__)
            return None
        return data

    def release_schedule(self) -> ReleaseSchedule | None:
        url = self.settings.schedule_url
        return self.cache.get_or_load(url, lambda: self._load_json(url, dict))

    def dist_index(self) -> DistIndex | None:
        url = self.settings.dist_url
        return self.cache.get_or_load(url, lambda: self._load_json(url, list))


# ── Classification (pure) ───────────────────────────────────────


def _parse_date(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def check_eol(
    version: str,
    schedule: ReleaseSchedule,
    now: datetime | None = None,
) -> EolStatus:
    """Classify ``version`` against the release schedule.

    ``eol`` once the end date has passed, ``maintenance`` once the
    maintenance date has passed, ``active`` otherwise.  ``unknown`` when
    the version does not parse or its major line is not scheduled.
    """
    parsed = semver.parse(version)
    if parsed is None:
        return EolStatus(status="unknown")

    release = schedule.get(f"v{parsed.major}")
    if not isinstance(release, dict):
        return EolStatus(status="unknown")

    end = _parse_date(release.get("end"))
    if end is None:
        return EolStatus(status="unknown")

    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    is_lts = bool(release.get("lts"))
    if now > end:
        return EolStatus(status="eol", eol_date=release["end"], is_lts=is_lts)

    maintenance = _parse_date(release.get("maintenance"))
    if maintenance is not None and now > maintenance:
        return EolStatus(
            status="maintenance",
            eol_date=release["end"],
            maintenance_date=release["maintenance"],
            is_lts=is_lts,
        )

    return EolStatus(status="active", eol_date=release["end"], is_lts=is_lts)


def check_security(version: str, releases: DistIndex) -> SecurityStatus:
    """Whether a newer security release exists on the same major line.

    The remediation target is the nearest such release, not the latest.
    """
    if semver.valid(version) is None:
        return SecurityStatus(vulnerable=False)

    current_major = semver.major(version)
    candidates = []
    for release in releases:
        release_version = release.get("version")
        if not release.get("security") or semver.parse(release_version) is None:
            continue
        if semver.major(release_version) != current_major:
            continue
        if semver.gt(release_version, version):
            candidates.append(release_version)

    if not candidates:
        return SecurityStatus(vulnerable=False)

    nearest = min(candidates, key=semver.parse)
    return SecurityStatus(
        vulnerable=True,
        latest_security_release=nearest,
        details=f"Newer security release available: {nearest}",
    )
