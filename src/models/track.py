"""Catalog track models.

:class:`TrackSummary` mirrors one item of the catalog search response.
:class:`ResolvedTrack` is a track chosen for a (artist, title) pair by the
two-phase matcher, tagged with how it was matched.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MatchMode(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """How a track was matched to a setlist title.

    STRICT:   the catalog artist equals the requested artist after normalization.
    FALLBACK: title-only search, accepted on similarity score.
    """

    STRICT = "strict"
    FALLBACK = "fallback"


class TrackSource(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Where a playlist track came from."""

    SETLIST = "setlist"
    POPULAR_TRACKS = "popular_tracks"


class CatalogArtist(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    id: str | None = None


class TrackSummary(BaseModel):
    """One catalog search hit."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    artists: list[CatalogArtist] = Field(default_factory=list)
    uri: str = ""
    external_url: str | None = None
    duration_ms: int = 0
    popularity: int = Field(default=0, ge=0, le=100)

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else ""

    @classmethod
    def from_spotify(cls, item: dict[str, Any]) -> TrackSummary:
        """Parse one element of Spotify's ``tracks.items[]``.

        Raises
        ------
        ValueError
            If the element lacks an ``id`` or ``name``.
        """
        if not isinstance(item, dict) or not item.get("id") or not item.get("name"):
            raise ValueError("track item lacks id or name")

        artists = [
            CatalogArtist(name=a["name"], id=a.get("id"))
            for a in (item.get("artists") or [])
            if isinstance(a, dict) and a.get("name")
        ]
        popularity = item.get("popularity") or 0
        return cls(
            id=str(item["id"]),
            name=str(item["name"]),
            artists=artists,
            uri=item.get("uri") or "",
            external_url=(item.get("external_urls") or {}).get("spotify"),
            duration_ms=int(item.get("duration_ms") or 0),
            popularity=max(0, min(100, int(popularity))),
        )


class ResolvedTrack(BaseModel):
    """A catalog track matched to a requested song.

    ``confidence`` is 1.0 for strict matches and the fallback score otherwise.
    ``artist`` and ``resolved_artist_name`` both start as the first artist
    the catalog credits.  The orchestrator then overwrites ``artist`` with
    the requesting artist as the caller knows it; direct resolver and
    catalog-search results keep the catalog artist.
    """

    model_config = ConfigDict(frozen=True)

    artist: str
    title: str
    catalog_id: str
    uri: str = ""
    url: str | None = None
    duration_ms: int = 0
    match_mode: MatchMode | None = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    resolved_artist_name: str | None = None
    source: TrackSource = TrackSource.SETLIST

    @classmethod
    def from_summary(
        cls,
        summary: TrackSummary,
        match_mode: MatchMode | None = None,
        confidence: float = 1.0,
    ) -> ResolvedTrack:
        return cls(
            artist=summary.primary_artist,
            title=summary.name,
            catalog_id=summary.id,
            uri=summary.uri,
            url=summary.external_url,
            duration_ms=summary.duration_ms,
            match_mode=match_mode,
            confidence=max(0.0, min(1.0, confidence)),
            resolved_artist_name=summary.primary_artist or None,
        )
