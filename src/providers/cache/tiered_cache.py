"""Two-tier read-through cache: in-process memory in front of JSON files.

# ─── HOW THE TIERS INTERACT ────────────────────────────────────────────
#
#   get(key)
#     memory hit ───────────────────────────────→ {value, source: memory}
#     memory miss → disk hit → promote to memory → {value, source: disk}
#     memory miss → disk miss ──────────────────→ None
#
#   set(key, value, ttl)
#     one CacheEntry (one expires_at) written to both tiers.  A disk
#     failure is logged and swallowed: the cache quietly becomes
#     memory-only instead of failing the caller.
#
#   clear_prefix(prefix)
#     linear scan of both tiers; returns the number of records removed
#     across both (a key present in both tiers counts twice).
#     Refused when the cache was built for production.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from src.interfaces.cache_provider import ICacheProvider
from src.models.cache import CacheEntry, CacheHit, CacheSource
from src.providers.cache.file_cache import FileCacheProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.utils.errors import CacheError, ForbiddenInProductionError
from src.utils.logging import get_logger


class TieredCacheProvider(ICacheProvider):
    """Memory tier backed by a durable file tier with read-through promotion.

    Parameters
    ----------
    memory:
        The fast, volatile tier.
    durable:
        The slower tier that survives restarts.
    allow_admin:
        When ``False`` (production), :meth:`clear_prefix` raises
        :class:`ForbiddenInProductionError`.
    clock:
        Wall-clock source in epoch seconds; should be the one both tiers use.
    """

    def __init__(
        self,
        memory: MemoryCacheProvider,
        durable: FileCacheProvider,
        allow_admin: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._memory = memory
        self._durable = durable
        self._allow_admin = allow_admin
        self._clock = clock
        self._logger = get_logger(__name__)

    @property
    def allow_admin(self) -> bool:
        return self._allow_admin

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheHit | None:
        hit = await self._memory.get(key)
        if hit is not None:
            return hit

        try:
            entry = await self._durable.get_entry(key)
        except CacheError as exc:
            self._logger.warning("durable_cache_read_failed", key=key, error=str(exc))
            return None
        if entry is None:
            return None

        await self._memory.put_entry(entry)
        self._logger.debug("cache_promoted", key=key)
        return CacheHit(value=entry.value, source=CacheSource.DISK)

    async def set(self, key: str, value: Any, ttl: float) -> None:
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)
        await self._memory.put_entry(entry)
        try:
            await self._durable.put_entry(entry)
        except CacheError as exc:
            self._logger.warning("durable_cache_write_failed", key=key, error=str(exc))

    async def delete(self, key: str) -> None:
        await self._memory.delete(key)
        try:
            await self._durable.delete(key)
        except OSError as exc:
            self._logger.warning("durable_cache_delete_failed", key=key, error=str(exc))

    async def clear_prefix(self, prefix: str) -> int:
        """Remove every entry under *prefix* from both tiers.

        Raises
        ------
        ForbiddenInProductionError
            If administrative operations are disabled.
        """
        if not self._allow_admin:
            raise ForbiddenInProductionError(
                message="Cache prefix clearing is disabled in production",
                provider_name=self.get_provider_name(),
            )
        removed = await self._memory.clear_prefix(prefix)
        try:
            removed += await self._durable.clear_prefix(prefix)
        except OSError as exc:
            self._logger.warning("durable_cache_clear_failed", prefix=prefix, error=str(exc))
        self._logger.info("cache_prefix_cleared", prefix=prefix, removed=removed)
        return removed

    def get_provider_name(self) -> str:
        return "tiered"
