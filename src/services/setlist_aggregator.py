"""Union of an artist's recent live setlists.

# ─── HOW AGGREGATION WORKS ────────────────────────────────────────────
#
#   page 1 ─┐
#   page 2 ─┼─→ qualify each performance ─→ union song titles ─→ cache
#   ...     │     (has songs, recent date)    (dedupe, first-seen order)
#   page 5 ─┘
#
# Pagination stops at the first of:
#   - ``limit`` qualifying performances collected
#   - the page bound (5) reached
#   - an empty page
#   - ``page * itemsPerPage >= total``
#   - an upstream failure (work with what we have)
#
# "Recent" means the current or the previous calendar year.  Dates that
# do not parse count as old rather than raising.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from pydantic import ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.setlist_provider import IPerformanceProvider
from src.models.artist import ResolvedArtist
from src.models.cache import CacheStatus
from src.models.setlist import (
    AggregatedSetlist,
    AggregationStats,
    LatestSetlist,
    PerformanceRecord,
    SetlistSource,
    SetlistVenue,
)
from src.utils.errors import UpstreamError
from src.utils.logging import get_logger
from src.utils.text_normalizer import dedupe_key, is_structural_marker, normalize_setlist_title

UNION_KEY_PREFIX = "setlist:union:"
MAX_SETLIST_LIMIT = 5
DEFAULT_MAX_PAGES = 5
LATEST_MIN_SONGS = 5
_DEFAULT_TTL_SECONDS = 24 * 60 * 60
_UNKNOWN_ARTIST = "Unknown"


def clamp_setlist_limit(limit: int | None) -> int:
    """Clamp a requested setlist count into ``1..5``; ``None`` means 5."""
    if limit is None:
        return MAX_SETLIST_LIMIT
    return max(1, min(MAX_SETLIST_LIMIT, limit))


def union_cache_key(canonical_id: str, limit: int) -> str:
    return f"{UNION_KEY_PREFIX}{canonical_id}:{limit}"


def _venue_of(performance: PerformanceRecord) -> SetlistVenue:
    return SetlistVenue(
        name=performance.venue_name,
        city=performance.city,
        country=performance.country,
    )


def union_songs(
    performances: list[PerformanceRecord],
) -> tuple[list[str], list[SetlistSource]]:
    """Merge song titles across *performances*.

    Titles are normalized and deduplicated on their lower-cased form;
    structural markers ("intro", "tape", ...) are dropped from both the
    union and each performance's song count.
    """
    seen: set[str] = set()
    songs: list[str] = []
    sources: list[SetlistSource] = []

    for performance in performances:
        song_count = 0
        for raw_title in performance.song_names:
            key = dedupe_key(raw_title)
            if is_structural_marker(key):
                continue
            song_count += 1
            if key not in seen:
                seen.add(key)
                songs.append(normalize_setlist_title(raw_title))

        sources.append(
            SetlistSource(
                id=performance.id,
                event_date=performance.event_date,
                venue=_venue_of(performance),
                song_count=song_count,
            )
        )
    return songs, sources


class SetlistAggregator:
    """Build (and cache) the union setlist for a canonical artist id.

    Parameters
    ----------
    provider:
        Paginated performance-listing collaborator.
    cache:
        Shared cache instance.
    ttl:
        Lifetime of a cached union, in seconds.
    max_pages:
        Safety bound on pages fetched per aggregation.
    today:
        Returns the current date; injectable so the recency window is testable.
    """

    def __init__(
        self,
        provider: IPerformanceProvider,
        cache: ICacheProvider,
        ttl: float = _DEFAULT_TTL_SECONDS,
        max_pages: int = DEFAULT_MAX_PAGES,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._ttl = ttl
        self._max_pages = max_pages
        self._today = today
        self._logger = get_logger(__name__)

    async def aggregate(self, canonical_id: str, limit: int = MAX_SETLIST_LIMIT) -> AggregatedSetlist:
        aggregated, _ = await self.aggregate_with_status(canonical_id, limit)
        return aggregated

    async def aggregate_with_status(
        self, canonical_id: str, limit: int = MAX_SETLIST_LIMIT
    ) -> tuple[AggregatedSetlist, CacheStatus]:
        """Return the union setlist for *canonical_id* over *limit* performances.

        Zero qualifying performances yield an empty, well-formed result that
        is not cached, so a newly recorded show is picked up on the next call.
        A result built after an upstream failure is not cached either.
        """
        limit = clamp_setlist_limit(limit)
        key = union_cache_key(canonical_id, limit)

        hit = await self._cache.get(key)
        if hit is not None:
            try:
                return AggregatedSetlist.model_validate(hit.value), CacheStatus.from_hit(key, hit)
            except ValidationError:
                self._logger.warning("setlist_cache_entry_invalid", key=key)

        aggregated, complete = await self._collect(canonical_id, limit)
        if complete and aggregated.songs:
            await self._cache.set(key, aggregated.model_dump(mode="json"), self._ttl)
        return aggregated, CacheStatus.live(key)

    async def latest(self, canonical_id: str) -> LatestSetlist:
        """Return the first performance on page 1 with at least five songs.

        Raises
        ------
        UpstreamError
            If the listing call fails.
        """
        response = await self._provider.list_performances(canonical_id, page=1)
        if not response.is_ok or response.payload is None:
            raise UpstreamError(
                message=f"Setlist listing failed for '{canonical_id}': {response.error}",
                provider_name=self._provider.get_provider_name(),
                status_code=response.status_code,
            )

        for performance in response.payload.performances:
            if len(performance.song_names) >= LATEST_MIN_SONGS:
                return LatestSetlist(
                    artist=ResolvedArtist(
                        name=performance.artist_name or _UNKNOWN_ARTIST,
                        canonical_id=performance.artist_id or canonical_id,
                    ),
                    event_date=performance.event_date,
                    venue=_venue_of(performance),
                    songs=list(performance.song_names),
                )

        return LatestSetlist(
            artist=ResolvedArtist(name=_UNKNOWN_ARTIST, canonical_id=canonical_id)
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _is_recent(self, performance: PerformanceRecord) -> bool:
        event_date = performance.parsed_date()
        if event_date is None:
            return False
        this_year = self._today().year
        return event_date.year in (this_year, this_year - 1)

    async def _collect(self, canonical_id: str, limit: int) -> tuple[AggregatedSetlist, bool]:
        """Paginate and qualify; the flag is ``False`` if any page failed."""
        qualifying: list[PerformanceRecord] = []
        scanned = skipped_empty = skipped_old = pages_fetched = 0
        complete = True
        page = 1

        while len(qualifying) < limit and page <= self._max_pages:
            response = await self._provider.list_performances(canonical_id, page=page)
            pages_fetched += 1
            if not response.is_ok or response.payload is None:
                self._logger.warning(
                    "setlist_page_failed",
                    canonical_id=canonical_id,
                    page=page,
                    status=response.status.value,
                    error=response.error,
                )
                complete = False
                break

            listing = response.payload
            if not listing.performances:
                break

            for performance in listing.performances:
                if len(qualifying) >= limit:
                    break
                scanned += 1
                if not any(name.strip() for name in performance.song_names):
                    skipped_empty += 1
                elif not self._is_recent(performance):
                    skipped_old += 1
                else:
                    qualifying.append(performance)

            if listing.is_last_page():
                break
            page += 1

        songs, sources = union_songs(qualifying)
        first = qualifying[0] if qualifying else None
        artist = ResolvedArtist(
            name=(first.artist_name if first else "") or _UNKNOWN_ARTIST,
            canonical_id=canonical_id,
        )
        stats = AggregationStats(
            setlists_scanned=scanned,
            setlists_used=len(sources),
            skipped_empty=skipped_empty,
            skipped_old=skipped_old,
            total_union_songs=len(songs),
            pages_fetched=pages_fetched,
        )

        self._logger.info(
            "setlist_aggregated",
            canonical_id=canonical_id,
            limit=limit,
            songs=len(songs),
            **stats.model_dump(exclude={"total_union_songs"}),
        )
        return AggregatedSetlist(artist=artist, sources=sources, songs=songs, stats=stats), complete
