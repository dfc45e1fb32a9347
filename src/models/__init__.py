"""setlistify domain models, re-exported for convenience.

Other parts of the codebase can import from ``src.models`` directly
instead of from the individual submodules:

    - artist.py    artist candidates and the resolver's answer
    - cache.py     cache records, hits and per-response cache status
    - setlist.py   live performances and the aggregated setlist union
    - track.py     catalog search hits and resolved tracks
    - playlist.py  the per-artist state machine and generation results

If you add a new model class, add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.artist import ArtistCandidate, ArtistResolution, ResolvedArtist
from src.models.cache import CacheEntry, CacheHit, CacheSource, CacheStatus
from src.models.playlist import (
    ArtistPlaylistGroup,
    ArtistProvenance,
    ArtistStage,
    GenerationResult,
    GenerationStats,
    GenerationStatus,
    MissingTrack,
    status_from_counts,
)
from src.models.setlist import (
    AggregatedSetlist,
    AggregationStats,
    LatestSetlist,
    PerformancePage,
    PerformanceRecord,
    SetlistSource,
    SetlistVenue,
)
from src.models.track import CatalogArtist, MatchMode, ResolvedTrack, TrackSource, TrackSummary

__all__ = [
    # artist
    "ArtistCandidate",
    "ArtistResolution",
    "ResolvedArtist",
    # cache
    "CacheEntry",
    "CacheHit",
    "CacheSource",
    "CacheStatus",
    # setlist
    "AggregatedSetlist",
    "AggregationStats",
    "LatestSetlist",
    "PerformancePage",
    "PerformanceRecord",
    "SetlistSource",
    "SetlistVenue",
    # track
    "CatalogArtist",
    "MatchMode",
    "ResolvedTrack",
    "TrackSource",
    "TrackSummary",
    # playlist
    "ArtistPlaylistGroup",
    "ArtistProvenance",
    "ArtistStage",
    "GenerationResult",
    "GenerationStats",
    "GenerationStatus",
    "MissingTrack",
    "status_from_counts",
]
