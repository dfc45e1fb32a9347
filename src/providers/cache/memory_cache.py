"""In-process cache tier using cachetools.TLRUCache.

Fast and volatile: everything is gone on restart.  Unlike a plain
``TTLCache`` every entry keeps its own expiry, taken from
:attr:`CacheEntry.expires_at`, so entries promoted from the durable tier
keep the deadline they were written with.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import ICacheProvider
from src.models.cache import CacheEntry, CacheHit, CacheSource

logger = structlog.get_logger(logger_name=__name__)


def _entry_deadline(_key: str, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at


class MemoryCacheProvider(ICacheProvider):
    """In-memory TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    clock:
        Wall-clock source in epoch seconds.  Shared with the durable tier
        so both agree on when an entry dies.
    """

    def __init__(self, max_size: int = 2048, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._cache: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max_size, ttu=_entry_deadline, timer=clock
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheHit | None:
        """Return the live value for *key*, purging expired entries first."""
        self._cache.expire()
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", tier="memory", key=key)
            return None
        if entry.is_expired(self._clock()):
            self._cache.pop(key, None)
            logger.debug("cache_expired", tier="memory", key=key)
            return None
        logger.debug("cache_hit", tier="memory", key=key)
        return CacheHit(value=entry.value, source=CacheSource.MEMORY)

    async def set(self, key: str, value: Any, ttl: float) -> None:
        await self.put_entry(CacheEntry(key=key, value=value, expires_at=self._clock() + ttl))

    async def put_entry(self, entry: CacheEntry) -> None:
        """Store a prepared entry, keeping its ``expires_at``."""
        if entry.is_expired(self._clock()):
            self._cache.pop(entry.key, None)
            return
        self._cache[entry.key] = entry
        logger.debug("cache_set", tier="memory", key=entry.key)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", tier="memory", key=key)

    async def clear_prefix(self, prefix: str) -> int:
        self._cache.expire()
        doomed = [key for key in list(self._cache.keys()) if key.startswith(prefix)]
        for key in doomed:
            self._cache.pop(key, None)
        logger.debug("cache_clear_prefix", tier="memory", prefix=prefix, removed=len(doomed))
        return len(doomed)

    def get_provider_name(self) -> str:
        return "memory"

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
