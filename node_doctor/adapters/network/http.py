"""
HTTP fetch layer: bounded-time requests over urllib.

``fetch`` performs one request and returns an HttpResponse for every
HTTP status (4xx/5xx included); only transport failures (DNS, refused
connection, timeout) raise FetchError.  ``RetryingFetcher`` wraps a
fetch function with a RetryPolicy.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable

from node_doctor import __version__
from node_doctor.core.reliability.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

USER_AGENT = f"node-doctor/{__version__}"


class FetchError(Exception):
    """Raised when a request got no HTTP response at all."""


@dataclass
class HttpResponse:
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


FetchFn = Callable[..., HttpResponse]


def fetch(url: str, method: str = "GET", timeout: float = 10.0) -> HttpResponse:
    """Perform one HTTP request.

    Raises:
        FetchError: On transport failure or timeout.
    """
    req = urllib.request.Request(
        url,
        method=method,
        headers={"User-Agent": USER_AGENT},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read() if method != "HEAD" else b""
            return HttpResponse(
                status=resp.getcode(),
                body=body,
                headers=dict(resp.headers.items()),
            )
    except urllib.error.HTTPError as e:
        # urllib raises for 4xx/5xx; callers still want the status
        try:
            body = e.read() or b""
        except OSError:
            body = b""
        return HttpResponse(status=e.code, body=body, headers=dict(e.headers.items()) if e.headers else {})
    except (urllib.error.URLError, TimeoutError, OSError, ValueError) as e:
        reason = getattr(e, "reason", e)
        raise FetchError(str(reason)[:200]) from e


class RetryingFetcher:
    """Apply a RetryPolicy around a fetch function.

    4xx responses come back immediately.  5xx responses are retried and
    the last one is returned when the budget runs out.  Transport errors
    are retried and re-raised on the final attempt.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        fetch_fn: FetchFn = fetch,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy or RetryPolicy()
        self._fetch = fetch_fn
        self._sleep = sleep

    def get(self, url: str, timeout: float = 10.0) -> HttpResponse:
        policy = self.policy
        for attempt in range(policy.max_attempts):
            try:
                response = self._fetch(url, timeout=timeout)
            except FetchError as e:
                if policy.is_last(attempt):
                    raise
                delay = policy.delay_for(attempt)
                logger.debug(
                    "Fetch %s failed (%s), retry %d/%d in %.1fs",
                    url, e, attempt + 1, policy.max_attempts - 1, delay,
                )
                self._sleep(delay)
                continue

            if response.ok or not policy.retryable_status(response.status):
                return response

            if policy.is_last(attempt):
                return response

            delay = policy.delay_for(attempt)
            logger.debug(
                "Fetch %s returned %d, retry %d/%d in %.1fs",
                url, response.status, attempt + 1, policy.max_attempts - 1, delay,
            )
            self._sleep(delay)

        raise FetchError(f"Max retries exceeded for {url}")
