"""Time-boxed in-memory cache for per-symbol price points.

Owned by whoever builds the FeedFetcher and passed in explicitly, so tests
and separate dashboards never share cached values by accident.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class ResponseCache(Generic[V]):
    """Key/value store whose entries expire after a per-entry TTL."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> V | None:
        """Return the cached value, or ``None`` if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        logger.debug("Cache hit for %s", key)
        return value

    def put(self, key: Hashable, value: V, ttl: float | None = None) -> None:
        """Store *value*; *ttl* overrides the default lifetime for this entry."""
        lifetime = self._ttl if ttl is None else ttl
        if lifetime <= 0:
            return
        self._entries[key] = (self._clock() + lifetime, value)

    def clear(self) -> None:
        self._entries.clear()
