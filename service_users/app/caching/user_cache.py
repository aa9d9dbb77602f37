"""
In-process user snapshot cache.
"""

import time
from typing import Any, Callable, Dict, Optional

from cachetools import TTLCache

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..models import User


DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL_SECONDS = 15.0


class UserCache:
    """Bounded, time-limited cache of user snapshots keyed by user id.

    Entries expire ``ttl`` seconds after their last insert and are reported
    absent from then on, whether or not they have been physically evicted.
    When full, the least recently accessed entry is evicted first. The cache
    never talks to the network.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl: float = DEFAULT_TTL_SECONDS,
        *,
        timer: Callable[[], float] = time.monotonic,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.max_entries = max_entries
        self.ttl = ttl
        self.metrics = metrics
        self.logger = get_logger("users.cache")
        self._store: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl, timer=timer)
        self._hits = 0
        self._misses = 0

    def get(self, user_id: int) -> Optional[User]:
        """Return a copy of the cached user, or None when absent or expired."""
        user = self._store.get(user_id)

        if user is None:
            self._misses += 1
            self._record_lookup("miss")
            return None

        self._hits += 1
        self._record_lookup("hit")
        return user.model_copy(deep=True)

    def put(self, user_id: int, user: User) -> None:
        """Insert or replace the snapshot for ``user_id`` and reset its age.

        The cache keeps its own copy; later changes to ``user`` are not seen.
        """
        self._store.expire()
        self._store[user_id] = user.model_copy(deep=True)
        self.logger.debug("User cached", cached_user_id=user_id, size=len(self._store))
        if self.metrics:
            self.metrics.set_gauge("user_cache_entries", len(self._store))

    def invalidate(self, user_id: int) -> None:
        self._store.pop(user_id, None)

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._store

    def __len__(self) -> int:
        self._store.expire()
        return len(self._store)

    def _record_lookup(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("user_cache_lookups_total", result=result)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self),
            "capacity": self.max_entries,
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
        }
