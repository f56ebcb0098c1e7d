"""
Feed cache: in-process memo for remote release feeds.

The release schedule and the distribution index are fetched at most
once per cache lifetime and shared by every consumer in the process.
Only successful results are stored, so a failed fetch is attempted
again on the next assessment.

The clock is injectable and the TTL defaults to None (never expires)
so tests can control staleness without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    stored_at: float


class FeedCache:
    """Thread-safe key/value memo with an optional TTL."""

    def __init__(
        self,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float | None:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._ttl is not None and self._clock() - entry.stored_at > self._ttl:
                logger.debug("Feed cache entry expired: %s", key)
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def get_or_load(self, key: str, loader: Callable[[], Any | None]) -> Any | None:
        """Return the cached value, calling ``loader`` on a miss.

        A ``None`` from the loader means "failed" and is not cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
