"""Pydantic v2 models for live performances and aggregated setlists.

:class:`PerformanceRecord` is one live event as returned by the
performance-listing collaborator.  :meth:`PerformanceRecord.from_setlistfm`
validates the raw setlist.fm JSON once, at the boundary, so the aggregator
never has to deal with missing keys.

:class:`AggregatedSetlist` is the union of several recent performances and
is cached as a single unit.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.artist import ResolvedArtist

# setlist.fm writes event dates as day-month-year, e.g. "23-08-2025".
_EVENT_DATE_FORMAT = "%d-%m-%Y"

_SETLIST_URL_TEMPLATE = "https://www.setlist.fm/setlist/id/{id}.html"


class PerformanceRecord(BaseModel):
    """A single live performance with its ordered song list."""

    model_config = ConfigDict(frozen=True)

    id: str
    event_date: str = Field(description="Raw 'dd-mm-yyyy' date string from upstream.")
    artist_name: str = ""
    artist_id: str = ""
    venue_name: str = ""
    city: str = ""
    country: str = ""
    song_names: list[str] = Field(default_factory=list)

    def parsed_date(self) -> date | None:
        """Return the event date, or ``None`` when it cannot be parsed."""
        try:
            return datetime.strptime(self.event_date.strip(), _EVENT_DATE_FORMAT).date()
        except (ValueError, AttributeError):
            return None

    @property
    def url(self) -> str:
        return _SETLIST_URL_TEMPLATE.format(id=self.id)

    @classmethod
    def from_setlistfm(cls, item: dict[str, Any]) -> PerformanceRecord:
        """Parse one element of setlist.fm's ``setlist[]`` array.

        Song names are flattened across every set (main set, encores) in
        order.  Entries without a name are skipped.

        Raises
        ------
        ValueError
            If the element has no ``id``.
        """
        if not isinstance(item, dict) or not item.get("id"):
            raise ValueError("setlist element has no id")

        venue = item.get("venue") or {}
        city = venue.get("city") or {}
        country = city.get("country") or {}
        artist = item.get("artist") or {}

        song_names: list[str] = []
        sets = (item.get("sets") or {}).get("set") or []
        for set_block in sets:
            for song in (set_block or {}).get("song") or []:
                name = (song or {}).get("name")
                if isinstance(name, str) and name:
                    song_names.append(name)

        return cls(
            id=str(item["id"]),
            event_date=str(item.get("eventDate") or ""),
            artist_name=artist.get("name") or "",
            artist_id=artist.get("mbid") or "",
            venue_name=venue.get("name") or "",
            city=city.get("name") or "",
            country=country.get("name") or "",
            song_names=song_names,
        )


class PerformancePage(BaseModel):
    """One page of the performance listing."""

    model_config = ConfigDict(frozen=True)

    performances: list[PerformanceRecord] = Field(default_factory=list)
    page: int = 1
    total_count: int = 0
    items_per_page: int = 20

    def is_last_page(self) -> bool:
        return self.page * self.items_per_page >= self.total_count


class SetlistVenue(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    city: str = ""
    country: str = ""


class SetlistSource(BaseModel):
    """Provenance of one performance that contributed to the union."""

    model_config = ConfigDict(frozen=True)

    id: str
    event_date: str
    venue: SetlistVenue = Field(default_factory=SetlistVenue)
    song_count: int = 0

    @property
    def url(self) -> str:
        return _SETLIST_URL_TEMPLATE.format(id=self.id)


class AggregationStats(BaseModel):
    """Diagnostics for one aggregation run.

    ``setlists_scanned`` counts every performance looked at;
    ``setlists_used`` the ones that qualified.  Rejections are split into
    ``skipped_empty`` (no songs) and ``skipped_old`` (outside the
    current/previous calendar year, or an unparseable date).
    """

    model_config = ConfigDict(frozen=True)

    setlists_scanned: int = 0
    setlists_used: int = 0
    skipped_empty: int = 0
    skipped_old: int = 0
    total_union_songs: int = 0
    pages_fetched: int = 0


class AggregatedSetlist(BaseModel):
    """Deduplicated union of songs across an artist's recent performances."""

    model_config = ConfigDict(frozen=True)

    artist: ResolvedArtist
    sources: list[SetlistSource] = Field(default_factory=list)
    songs: list[str] = Field(default_factory=list)
    stats: AggregationStats = Field(default_factory=AggregationStats)

    @property
    def is_empty(self) -> bool:
        return not self.songs


class LatestSetlist(BaseModel):
    """The most recent performance carrying a usable song list."""

    model_config = ConfigDict(frozen=True)

    artist: ResolvedArtist
    event_date: str | None = None
    venue: SetlistVenue | None = None
    songs: list[str] = Field(default_factory=list)
