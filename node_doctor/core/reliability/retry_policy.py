"""
Retry policy: how many times to try a network call and how long to wait.

A policy is a plain value that is handed to the fetch layer.  Waits
grow exponentially: base_delay, then 2 × base_delay, then 4 × base_delay.
Client errors (4xx, "not found" included) are final: retrying them
cannot change the answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


def server_error(status: int) -> bool:
    """Default retryable-status predicate: 5xx only."""
    return 500 <= status < 600


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one logical request.

    Args:
        max_attempts: Total attempts, including the first one.
        base_delay: Seconds to wait after the first failed attempt.
        retryable_status: Predicate deciding whether an HTTP status
            should be retried.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    retryable_status: Callable[[int], bool] = field(default=server_error)

    def delay_for(self, attempt: int) -> float:
        """Backoff before the next try, given the 0-based attempt that failed."""
        return self.base_delay * (2 ** attempt)

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.max_attempts - 1


NO_RETRY = RetryPolicy(max_attempts=1, base_delay=0.0)
