"""Abstract base class for cache tiers.

Defines the key-value contract shared by the in-process tier, the durable
file tier and the two-tier composite the services actually receive.  Every
operation is async so a tier backed by disk or network never blocks the
event loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.cache import CacheHit


class ICacheProvider(ABC):
    """Contract for TTL key-value caches with prefix invalidation."""

    @abstractmethod
    async def get(self, key: str) -> CacheHit | None:
        """Retrieve the entry stored under *key*.

        Parameters
        ----------
        key:
            The logical cache key.

        Returns
        -------
        CacheHit or None
            The value plus the tier that answered, or ``None`` if the key
            is absent or expired.  An expired entry found during the lookup
            is deleted from its tier.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float) -> None:
        """Store *value* under *key* for *ttl* seconds.

        Parameters
        ----------
        key:
            The logical cache key.
        value:
            A JSON-serializable value.
        ttl:
            Time-to-live in seconds.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*.  No-op if absent."""

    @abstractmethod
    async def clear_prefix(self, prefix: str) -> int:
        """Remove every entry whose logical key starts with *prefix*.

        Returns
        -------
        int
            How many entries were removed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this tier, e.g. ``"memory"``."""
