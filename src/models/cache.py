"""Pydantic v2 models for cache entries and cache lookups.

A :class:`CacheEntry` is the unit stored by every cache tier.  The durable
tier serializes it verbatim to JSON, which is why the logical ``key`` travels
inside the record: the file name is only a hash of that key.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheSource(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Which tier answered a cache lookup.

    ``LIVE`` never comes out of a cache; API responses use it to say the
    value was fetched from upstream on this request.
    """

    MEMORY = "memory"
    DISK = "disk"
    LIVE = "live"


class CacheEntry(BaseModel):
    """A cached value with an absolute expiry timestamp (epoch seconds)."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Logical cache key, e.g. 'setlist:union:<mbid>:5'.")
    value: Any = Field(description="JSON-serializable payload.")
    expires_at: float = Field(description="Unix timestamp after which the entry is dead.")

    def is_expired(self, now: float) -> bool:
        """An entry is dead from the instant ``now`` reaches ``expires_at``."""
        return now >= self.expires_at


class CacheHit(BaseModel):
    """Result of a successful cache lookup."""

    model_config = ConfigDict(frozen=True)

    value: Any
    source: CacheSource


class CacheStatus(BaseModel):
    """How a service answered: from which tier, or live, and under which key.

    Carried through to API responses as ``cached`` / ``cache_key`` /
    ``cache_source``.
    """

    model_config = ConfigDict(frozen=True)

    cached: bool = False
    cache_key: str
    cache_source: CacheSource = CacheSource.LIVE

    @classmethod
    def live(cls, cache_key: str) -> CacheStatus:
        return cls(cached=False, cache_key=cache_key, cache_source=CacheSource.LIVE)

    @classmethod
    def from_hit(cls, cache_key: str, hit: CacheHit) -> CacheStatus:
        return cls(cached=True, cache_key=cache_key, cache_source=hit.source)
