"""Free-text artist name to canonical identity.

Queries the artist-search collaborator and picks the most plausible
candidate:

  1. An exact case-insensitive name match wins outright
     (``needs_choice = False``).
  2. Otherwise the shortest candidate name wins.  Tribute acts and cover
     bands tend to carry longer names ("Metallica Tribute Band").
     ``needs_choice`` is set when there was more than one candidate to
     choose from.

Resolutions are cached under ``setlist:artist:<normalized name>`` for a
week; artist identity upstream almost never changes.  Upstream failures
are raised, never cached, so a transient error does not poison the cache.
"""

from __future__ import annotations

from pydantic import ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.setlist_provider import IArtistSearchProvider
from src.models.artist import ArtistCandidate, ArtistResolution, ResolvedArtist
from src.models.cache import CacheStatus
from src.utils.errors import ArtistResolutionError
from src.utils.logging import get_logger
from src.utils.text_normalizer import normalize_artist_query

ARTIST_KEY_PREFIX = "setlist:artist:"
_DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60
_MAX_CANDIDATES = 10


def artist_cache_key(name: str) -> str:
    return f"{ARTIST_KEY_PREFIX}{normalize_artist_query(name)}"


def pick_best(
    query: str, candidates: list[ArtistCandidate]
) -> tuple[ResolvedArtist | None, bool]:
    """Return ``(best, needs_choice)`` for *candidates* of *query*."""
    wanted = normalize_artist_query(query)
    for candidate in candidates:
        if normalize_artist_query(candidate.name) == wanted:
            return ResolvedArtist(name=candidate.name, canonical_id=candidate.canonical_id), False

    if not candidates:
        return None, False

    # sorted() is stable, so equal lengths keep upstream relevance order.
    shortest = sorted(candidates, key=lambda c: len(c.name))[0]
    best = ResolvedArtist(name=shortest.name, canonical_id=shortest.canonical_id)
    return best, len(candidates) > 1


class ArtistResolver:
    """Resolve artist names through the cache and the artist-search collaborator."""

    def __init__(
        self,
        provider: IArtistSearchProvider,
        cache: ICacheProvider,
        ttl: float = _DEFAULT_TTL_SECONDS,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._ttl = ttl
        self._logger = get_logger(__name__)

    async def resolve(self, name: str) -> ArtistResolution:
        resolution, _ = await self.resolve_with_status(name)
        return resolution

    async def resolve_with_status(self, name: str) -> tuple[ArtistResolution, CacheStatus]:
        """Resolve *name* and report where the answer came from.

        Raises
        ------
        ArtistResolutionError
            If the upstream search did not succeed.
        ConfigurationError
            If the collaborator has no credentials.
        """
        query = name.strip()
        key = artist_cache_key(query)
        if not query:
            return ArtistResolution(query=query), CacheStatus.live(key)

        hit = await self._cache.get(key)
        if hit is not None:
            try:
                resolution = ArtistResolution.model_validate(hit.value)
            except ValidationError:
                self._logger.warning("artist_cache_entry_invalid", key=key)
            else:
                self._logger.debug("artist_resolved_from_cache", query=query, source=hit.source)
                return resolution, CacheStatus.from_hit(key, hit)

        response = await self._provider.search_artists(query)
        if not response.is_ok or response.payload is None:
            self._logger.warning(
                "artist_search_failed",
                query=query,
                status=response.status.value,
                error=response.error,
            )
            raise ArtistResolutionError(
                message=f"Artist search failed for '{query}': {response.error}",
                provider_name=self._provider.get_provider_name(),
            )

        candidates = [c for c in response.payload if c.canonical_id]
        best, needs_choice = pick_best(query, candidates)
        resolution = ArtistResolution(
            query=query,
            best=best,
            needs_choice=needs_choice,
            candidates=candidates[:_MAX_CANDIDATES],
        )

        await self._cache.set(key, resolution.model_dump(mode="json"), self._ttl)
        self._logger.info(
            "artist_resolved",
            query=query,
            best=best.name if best else None,
            needs_choice=needs_choice,
            candidates=len(candidates),
        )
        return resolution, CacheStatus.live(key)
