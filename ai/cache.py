"""In-process TTL cache for completed analyses.

Entries are deep-copied on the way in and out so callers can mutate results
freely. The cache is bounded; when full, the oldest entry is evicted.
"""
from __future__ import annotations

import copy
import hashlib
import logging
import time
from collections import OrderedDict
from typing import Any, Callable

logger = logging.getLogger(__name__)


def md5_key(text: str, prefix_chars: int = 1000) -> str:
    """Cache key from the start of a document."""
    return hashlib.md5(text[:prefix_chars].encode("utf-8")).hexdigest()


class AnalysisCache:
    """Bounded, expiring map from document key to analysis payload."""

    def __init__(self, ttl_seconds: float, max_size: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry {evicted[:8]}")
        self._entries[key] = (self._clock(), copy.deepcopy(value))

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
        }
