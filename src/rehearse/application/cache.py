"""
Query cache — short-lived memoization in front of the due-set queries.

Entries are keyed by query name and expire after a fixed TTL measured
against the reference instant of the read. Any lifecycle mutation clears
the whole cache so the next read reflects it.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from rehearse.domain.constants import CACHE_TTL_SECONDS
from rehearse.domain.models import ReviewPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    timestamp: datetime
    result: tuple[ReviewPlan, ...]

    def is_live(self, as_of: datetime, ttl_seconds: float) -> bool:
        # Reads from before the entry was stored never reuse it.
        age = (as_of - self.timestamp).total_seconds()
        return 0 <= age < ttl_seconds


class QueryCache:
    """
    Time-boxed cache of query results.

    Results are copied in and out, so callers may mutate what they get back.
    Thread-safe. A result computed while an invalidation happens is returned
    to its caller but not stored.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get_or_compute(
        self,
        key: str,
        as_of: datetime,
        compute: Callable[[], list[ReviewPlan]],
    ) -> list[ReviewPlan]:
        with self._lock:
            entry = self._entries.get(key)
            generation = self._generation
        if entry is not None and entry.is_live(as_of, self.ttl_seconds):
            logger.debug(f"Cache hit for '{key}'")
            return [replace(plan) for plan in entry.result]

        logger.debug(f"Cache miss for '{key}'")
        result = compute()
        with self._lock:
            if generation == self._generation:
                self._entries[key] = CacheEntry(
                    timestamp=as_of, result=tuple(replace(plan) for plan in result)
                )
        return list(result)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        with self._lock:
            self._generation += 1
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
