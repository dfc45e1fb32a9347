"""Playlist generation models and the per-artist state machine.

A generation run walks each requested artist through::

    IDLE -> RESOLVING_ARTIST -> AGGREGATING_SETLIST
         -> (RESOLVING_TRACKS | FALLBACK_SEARCH) -> MERGED

An artist that cannot be resolved, or whose fallback search finds nothing,
jumps straight to MERGED and is listed in ``missing_setlists``.

All models are frozen.  The orchestrator builds new instances with
``model_copy(update={...})`` instead of mutating shared lists, which is what
lets :meth:`PlaylistGenerationPipeline.retry_missing` be a pure function of
the previous result.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.setlist import AggregationStats
from src.models.track import ResolvedTrack, TrackSource


class ArtistStage(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Per-artist steps of a generation run."""

    IDLE = "IDLE"
    RESOLVING_ARTIST = "RESOLVING_ARTIST"
    AGGREGATING_SETLIST = "AGGREGATING_SETLIST"
    RESOLVING_TRACKS = "RESOLVING_TRACKS"
    FALLBACK_SEARCH = "FALLBACK_SEARCH"
    MERGED = "MERGED"

    def can_transition_to(self, target: ArtistStage) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[ArtistStage, frozenset[ArtistStage]] = {
    ArtistStage.IDLE: frozenset({ArtistStage.RESOLVING_ARTIST}),
    ArtistStage.RESOLVING_ARTIST: frozenset({ArtistStage.AGGREGATING_SETLIST, ArtistStage.MERGED}),
    ArtistStage.AGGREGATING_SETLIST: frozenset(
        {ArtistStage.RESOLVING_TRACKS, ArtistStage.FALLBACK_SEARCH}
    ),
    ArtistStage.RESOLVING_TRACKS: frozenset({ArtistStage.MERGED}),
    ArtistStage.FALLBACK_SEARCH: frozenset({ArtistStage.MERGED}),
    ArtistStage.MERGED: frozenset(),
}


class GenerationStatus(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Overall status of a run.

    IDLE and RUNNING are reported while a run is in flight.  The terminal
    value is derived only from matched/missing counts; see
    :func:`status_from_counts`.
    """

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


def status_from_counts(matched: int, missing: int) -> GenerationStatus:
    """success = all matched, partial = some of each, error = nothing matched."""
    if matched > 0 and missing == 0:
        return GenerationStatus.SUCCESS
    if matched > 0:
        return GenerationStatus.PARTIAL
    return GenerationStatus.ERROR


class MissingTrack(BaseModel):
    """A setlist song that could not be matched to a catalog track."""

    model_config = ConfigDict(frozen=True)

    artist: str
    song: str


class ArtistProvenance(BaseModel):
    """Where an artist's tracks came from, for display and debugging."""

    model_config = ConfigDict(frozen=True)

    canonical_id: str | None = None
    setlist_url: str | None = None
    event_date: str | None = None
    venue: str | None = None
    city: str | None = None
    aggregation: AggregationStats | None = None
    fallback_used: bool = False
    # Popular-tracks fallback only: hits before and after the artist filter.
    raw_count: int | None = None
    filtered_count: int | None = None


class ArtistPlaylistGroup(BaseModel):
    """Tracks for one requested artist, in setlist (or upstream search) order."""

    model_config = ConfigDict(frozen=True)

    artist: str
    tracks: list[ResolvedTrack] = Field(default_factory=list)
    original_song_count: int = 0
    provenance: ArtistProvenance = Field(default_factory=ArtistProvenance)
    stage: ArtistStage = ArtistStage.IDLE

    @property
    def missing_count(self) -> int:
        return max(0, self.original_song_count - len(self.tracks))


class GenerationStats(BaseModel):
    """Aggregate counters for a run.

    ``total`` is the number of setlist songs considered, ``matched`` the
    number of unique catalog tracks and ``missing`` the songs left unmatched.
    """

    model_config = ConfigDict(frozen=True)

    total: int = 0
    matched: int = 0
    missing: int = 0
    missing_setlists: list[str] = Field(default_factory=list)
    fallback_used: bool = False


class GenerationResult(BaseModel):
    """Complete output of a generation (or retry) run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    artists: list[str] = Field(default_factory=list)
    groups: list[ArtistPlaylistGroup] = Field(default_factory=list)
    missing_tracks: list[MissingTrack] = Field(default_factory=list)
    stats: GenerationStats = Field(default_factory=GenerationStats)
    status: GenerationStatus = GenerationStatus.IDLE
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    completed_at: datetime | None = None

    @property
    def track_uris(self) -> list[str]:
        """Catalog URIs in playlist order, ready for a playlist-creation call."""
        return [track.uri for group in self.groups for track in group.tracks if track.uri]

    def tracks_from(self, source: TrackSource) -> list[ResolvedTrack]:
        return [t for group in self.groups for t in group.tracks if t.source == source]
