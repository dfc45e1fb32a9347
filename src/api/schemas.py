"""Pydantic request/response schemas for the setlistify API.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# These models define the shape of every HTTP request and response body.
# FastAPI uses them to validate input (422 on bad requests), serialize
# output (``response_model=...``) and generate the OpenAPI docs.
#
# Convention: request schemas end with "Request", response schemas with
# "Response".  Responses backed by the cache embed ``CacheMeta`` fields
# (``cached``, ``cache_key``, ``cache_source``).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from src.models.artist import ArtistCandidate, ResolvedArtist
from src.models.cache import CacheSource, CacheStatus
from src.models.playlist import GenerationResult
from src.models.setlist import AggregationStats, SetlistSource, SetlistVenue
from src.models.track import ResolvedTrack, TrackSummary


class CacheMeta(BaseModel):
    """Where the response came from."""

    cached: bool = False
    cache_key: str = ""
    cache_source: CacheSource = CacheSource.LIVE

    @staticmethod
    def fields_from(status: CacheStatus) -> dict[str, Any]:
        return {
            "cached": status.cached,
            "cache_key": status.cache_key,
            "cache_source": status.cache_source,
        }


# ---------------------------------------------------------------------------
# Setlist endpoints
# ---------------------------------------------------------------------------


class ArtistSearchResponse(CacheMeta):
    """Artist resolution for a free-text name."""

    query: str
    best: ResolvedArtist | None = None
    needs_choice: bool = False
    candidates: list[ArtistCandidate] = Field(default_factory=list)


class SetlistUnionResponse(CacheMeta):
    """Deduplicated union of recent setlists."""

    artist: ResolvedArtist
    sources: list[SetlistSource] = Field(default_factory=list)
    songs: list[str] = Field(default_factory=list)
    stats: AggregationStats


class LatestSetlistResponse(BaseModel):
    """First recent performance with a usable song list."""

    artist: ResolvedArtist
    event_date: str | None = None
    venue: SetlistVenue | None = None
    songs: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalog endpoints
# ---------------------------------------------------------------------------


class TrackResolveResponse(CacheMeta):
    """Result of resolving one (artist, track) pair; ``track`` is null on a miss."""

    mode: Literal["resolve"] = "resolve"
    track: ResolvedTrack | None = None


class TrackSearchResponse(CacheMeta):
    """Free-query catalog search results in upstream order."""

    mode: Literal["search"] = "search"
    query: str
    limit: int
    tracks: list[TrackSummary] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Playlist endpoints
# ---------------------------------------------------------------------------


class GeneratePlaylistRequest(BaseModel):
    """Artists to build a playlist for, in display order."""

    artists: list[str] = Field(..., min_length=1, max_length=25)
    run_id: str | None = Field(
        default=None,
        max_length=64,
        description="Optional client-chosen id; subscribe to /ws/progress/{run_id} first.",
    )


class RetryMissingRequest(BaseModel):
    """A previous generation result whose missing tracks should be retried."""

    result: GenerationResult


class PlaylistResponse(BaseModel):
    """A generation (or retry) result plus the flat URI list for playlist creation."""

    result: GenerationResult
    track_uris: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: GenerationResult) -> PlaylistResponse:
        return cls(result=result, track_uris=result.track_uris)


# ---------------------------------------------------------------------------
# Cache administration
# ---------------------------------------------------------------------------


class CacheEntryResponse(BaseModel):
    """A raw cache lookup."""

    key: str
    found: bool
    source: CacheSource | None = None
    value: Any = None


class CacheClearResponse(BaseModel):
    prefix: str
    removed: int


# ---------------------------------------------------------------------------
# Health / errors
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    environment: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
