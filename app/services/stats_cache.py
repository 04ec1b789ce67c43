"""In-process cache for freshly computed stats so read paths can skip recomputation."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import get_settings
from app.services.history import history_range
from app.services.stat_snapshots import SYSTEM_SCOPE, current, latest_version

logger = logging.getLogger(__name__)

STATS_KEY = "stats"
HISTORY_RANGE_KEY = "history_range"
# Id of the system StatVersion the cached stats were read from.
STATS_VERSION_KEY = "stats_version"


class StatsCache:
    """
    Small TTL key/value store. Writers push values after recomputing; readers fall back
    to recomputing on a miss. Not required for correctness.
    """

    def __init__(self, ttl_seconds: float, timer: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._timer = timer
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._timer() + self._ttl, value)
        logger.debug("Stats cache write: key=%s", key)

    def read(self, key: str) -> Any | None:
        """Cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._timer() >= expires_at:
                del self._entries[key]
                return None
            return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_cache: StatsCache | None = None
_cache_lock = threading.Lock()


def get_stats_cache() -> StatsCache | None:
    """Process-wide cache, or None when STATS_CACHE_ENABLED is false."""
    global _cache
    settings = get_settings()
    if not settings.STATS_CACHE_ENABLED:
        return None
    with _cache_lock:
        if _cache is None:
            _cache = StatsCache(ttl_seconds=settings.STATS_CACHE_TTL_SEC)
        return _cache


def publish_system_stats(
    session: Session,
    cache: StatsCache | None,
    clock: Clock | None = None,
) -> None:
    """Push the system scope's current counters and history range. No-op without a cache."""
    if cache is None:
        return
    counters = current(session, SYSTEM_SCOPE, clock)
    version = latest_version(session, SYSTEM_SCOPE)
    cache.write(STATS_KEY, counters)
    cache.write(STATS_VERSION_KEY, version.id if version is not None else None)
    cache.write(HISTORY_RANGE_KEY, history_range(session, SYSTEM_SCOPE, clock))


def read_system_stats(session: Session, cache: StatsCache | None) -> dict[str, int] | None:
    """
    Cached system counters, or None on a miss.

    Versions can be written by another process (the snapshot job), so an entry only
    counts as a hit while it was read from the latest system version.
    """
    if cache is None:
        return None
    counters = cache.read(STATS_KEY)
    if counters is None:
        return None
    version = latest_version(session, SYSTEM_SCOPE)
    if version is None or cache.read(STATS_VERSION_KEY) != version.id:
        logger.debug("Stats cache stale: cached_version=%s", cache.read(STATS_VERSION_KEY))
        return None
    return counters
