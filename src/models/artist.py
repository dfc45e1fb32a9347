"""Artist identity models.

An :class:`ArtistCandidate` is what the artist-search collaborator returns
once candidates without a canonical identifier have been dropped.
:class:`ArtistResolution` is the outcome of resolving one free-text name,
and :class:`ResolvedArtist` is the identity handed to setlist aggregation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ArtistCandidate(BaseModel):
    """An artist returned by the upstream artist search.

    ``canonical_id`` is the MusicBrainz identifier setlist.fm exposes as
    ``mbid``.  ``similarity`` is a display-only fuzzy score against the
    query; it does not take part in picking the best candidate.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    canonical_id: str
    disambiguation: str | None = None
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)


class ResolvedArtist(BaseModel):
    """An artist with a stable upstream identity."""

    model_config = ConfigDict(frozen=True)

    name: str
    canonical_id: str


class ArtistResolution(BaseModel):
    """Outcome of resolving a free-text artist name.

    ``needs_choice`` is set when several candidates came back and none
    matched the query exactly, so a caller may want a human to pick.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    best: ResolvedArtist | None = None
    needs_choice: bool = False
    candidates: list[ArtistCandidate] = Field(default_factory=list, max_length=10)

    def choose(self) -> ResolvedArtist | None:
        """Pick the identity to use without asking anyone.

        ``best`` if present, else the candidate whose name equals the query
        case-insensitively, else the first candidate.
        """
        if self.best is not None:
            return self.best
        wanted = self.query.strip().lower()
        for candidate in self.candidates:
            if candidate.name.strip().lower() == wanted:
                return ResolvedArtist(name=candidate.name, canonical_id=candidate.canonical_id)
        if self.candidates:
            first = self.candidates[0]
            return ResolvedArtist(name=first.name, canonical_id=first.canonical_id)
        return None
