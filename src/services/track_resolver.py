"""Two-phase matching of (artist, song title) pairs to catalog tracks.

Phase 1, strict
    ``track:<title> artist:<artist>`` with limit 5.  The first hit that
    credits the requested artist (after normalization) is accepted with
    confidence 1.0.

Phase 2, fallback (only when phase 1 found nothing)
    ``track:<title>`` with limit 10, artist ignored.  Every hit is scored::

        title similarity (1.0 exact / 0.8 containment / 0)
        - 0.4 if the title looks like karaoke, a tribute, a remix ...
        + popularity / 100 * 0.1

    The best hit is accepted only if its score is strictly above 0.5.

Successful resolutions are cached for 30 days under
``catalog:resolve:<artist>:<title>``.  Misses are not cached, so a song
that is added to the catalog later will be picked up.

The free-query :meth:`TrackResolver.search` is a cached pass-through used
by the popular-tracks fallback; it applies no scoring.
"""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.catalog_provider import ICatalogSearchProvider
from src.models.cache import CacheStatus
from src.models.track import MatchMode, ResolvedTrack, TrackSummary
from src.utils.logging import get_logger
from src.utils.text_normalizer import (
    clean_artist_input,
    contains_noise_term,
    normalize_catalog_text,
    title_similarity,
)

RESOLVE_KEY_PREFIX = "catalog:resolve:"
SEARCH_KEY_PREFIX = "catalog:search:"

STRICT_LIMIT = 5
FALLBACK_LIMIT = 10
ACCEPT_THRESHOLD = 0.5
NOISE_PENALTY = 0.4
POPULARITY_WEIGHT = 0.1

MAX_SEARCH_LIMIT = 50
DEFAULT_QUERY_LIMIT = 10
DEFAULT_ARTIST_LIMIT = 20

_DEFAULT_TTL_SECONDS = 30 * 24 * 60 * 60

_SUMMARIES = TypeAdapter(list[TrackSummary])


def clamp_search_limit(limit: int | None, default: int = DEFAULT_QUERY_LIMIT) -> int:
    """Clamp a requested result count into ``1..50``; ``None`` means *default*."""
    if limit is None:
        return default
    return max(1, min(MAX_SEARCH_LIMIT, limit))


def artist_query(artist: str, quoted: bool = True) -> str:
    """Build an artist-restricted catalog query, e.g. ``artist:"Nick Cave"``."""
    cleaned = clean_artist_input(artist)
    return f'artist:"{cleaned}"' if quoted else f"artist:{cleaned}"


def resolve_cache_key(artist: str, title: str) -> str:
    return f"{RESOLVE_KEY_PREFIX}{normalize_catalog_text(artist)}:{normalize_catalog_text(title)}"


def search_cache_key(query: str, limit: int) -> str:
    return f"{SEARCH_KEY_PREFIX}{query}:{limit}"


def score_fallback_candidate(summary: TrackSummary, normalized_title: str) -> float:
    """Score one title-only hit against the normalized requested title."""
    score = title_similarity(summary.name, normalized_title)
    if contains_noise_term(summary.name):
        score -= NOISE_PENALTY
    score += summary.popularity / 100 * POPULARITY_WEIGHT
    return score


class TrackResolver:
    """Resolve songs to catalog tracks through the cache and the catalog collaborator.

    Parameters
    ----------
    provider:
        Catalog search collaborator.
    cache:
        Shared cache instance.
    resolve_ttl:
        Lifetime of a cached resolution, in seconds.
    search_ttl:
        Lifetime of a cached free-query result, in seconds.
    """

    def __init__(
        self,
        provider: ICatalogSearchProvider,
        cache: ICacheProvider,
        resolve_ttl: float = _DEFAULT_TTL_SECONDS,
        search_ttl: float = _DEFAULT_TTL_SECONDS,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._resolve_ttl = resolve_ttl
        self._search_ttl = search_ttl
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Resolve mode
    # ------------------------------------------------------------------

    async def resolve(self, artist: str, title: str) -> ResolvedTrack | None:
        track, _ = await self.resolve_with_status(artist, title)
        return track

    async def resolve_with_status(
        self, artist: str, title: str
    ) -> tuple[ResolvedTrack | None, CacheStatus]:
        """Match *title* by *artist*; ``None`` when neither phase finds a track."""
        artist_clean = normalize_catalog_text(artist)
        title_clean = normalize_catalog_text(title)
        key = resolve_cache_key(artist, title)
        if not artist_clean or not title_clean:
            return None, CacheStatus.live(key)

        hit = await self._cache.get(key)
        if hit is not None:
            try:
                return ResolvedTrack.model_validate(hit.value), CacheStatus.from_hit(key, hit)
            except ValidationError:
                self._logger.warning("track_cache_entry_invalid", key=key)

        track = await self._match_strict(artist_clean, title_clean)
        if track is None:
            track = await self._match_fallback(title_clean)

        if track is None:
            self._logger.info("track_unresolved", artist=artist, title=title)
            return None, CacheStatus.live(key)

        await self._cache.set(key, track.model_dump(mode="json"), self._resolve_ttl)
        return track, CacheStatus.live(key)

    async def _match_strict(self, artist_clean: str, title_clean: str) -> ResolvedTrack | None:
        query = f"track:{title_clean} artist:{artist_clean}"
        response = await self._provider.search_tracks(query, STRICT_LIMIT)
        if not response.is_ok or response.payload is None:
            self._logger.warning("strict_search_failed", query=query, error=response.error)
            return None

        for summary in response.payload:
            if any(normalize_catalog_text(a.name) == artist_clean for a in summary.artists):
                self._logger.debug("track_resolved_strict", query=query, catalog_id=summary.id)
                return ResolvedTrack.from_summary(summary, MatchMode.STRICT, 1.0)
        return None

    async def _match_fallback(self, title_clean: str) -> ResolvedTrack | None:
        query = f"track:{title_clean}"
        response = await self._provider.search_tracks(query, FALLBACK_LIMIT)
        if not response.is_ok or response.payload is None:
            self._logger.warning("fallback_search_failed", query=query, error=response.error)
            return None
        if not response.payload:
            return None

        scored = sorted(
            ((score_fallback_candidate(s, title_clean), s) for s in response.payload),
            key=lambda pair: pair[0],
            reverse=True,
        )
        best_score, best = scored[0]
        if best_score <= ACCEPT_THRESHOLD:
            self._logger.debug("fallback_rejected", query=query, best_score=round(best_score, 3))
            return None

        self._logger.debug(
            "track_resolved_fallback",
            query=query,
            catalog_id=best.id,
            score=round(best_score, 3),
        )
        return ResolvedTrack.from_summary(best, MatchMode.FALLBACK, best_score)

    # ------------------------------------------------------------------
    # Free-query mode
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[TrackSummary]:
        summaries, _ = await self.search_with_status(query, limit)
        return summaries

    async def search_with_status(
        self, query: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> tuple[list[TrackSummary], CacheStatus]:
        """Pass *query* through to the catalog, in upstream order.

        An upstream failure yields an empty list, which is not cached.
        """
        limit = clamp_search_limit(limit)
        key = search_cache_key(query, limit)

        hit = await self._cache.get(key)
        if hit is not None:
            try:
                return _SUMMARIES.validate_python(hit.value), CacheStatus.from_hit(key, hit)
            except ValidationError:
                self._logger.warning("search_cache_entry_invalid", key=key)

        response = await self._provider.search_tracks(query, limit)
        if not response.is_ok or response.payload is None:
            self._logger.warning("catalog_search_failed", query=query, error=response.error)
            return [], CacheStatus.live(key)

        summaries = list(response.payload)
        await self._cache.set(
            key, _SUMMARIES.dump_python(summaries, mode="json"), self._search_ttl
        )
        return summaries, CacheStatus.live(key)
