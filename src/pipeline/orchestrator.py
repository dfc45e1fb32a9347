"""Central orchestrator for playlist generation.

Turns a list of artist names into per-artist groups of catalog tracks by
chaining the three services::

    ArtistResolver ──→ SetlistAggregator ──→ TrackResolver (per song)
                                   │
                                   └─ empty union ──→ popular-tracks search

ARCHITECTURE NOTE:
    Artists are processed one at a time in the order given, and songs one
    at a time in setlist order, so progress can be reported as "song i of
    N".  Every failure below the configuration level is contained at the
    smallest scope: an unresolvable artist becomes a *missing setlist*, an
    unmatched song becomes a *missing track*, and the run carries on.

    Results are frozen models.  :meth:`PlaylistGenerationPipeline.retry_missing`
    builds a new :class:`GenerationResult` from the previous one with
    ``model_copy(update={...})`` and never touches the input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

import structlog

from src.models.artist import ResolvedArtist
from src.models.playlist import (
    ArtistPlaylistGroup,
    ArtistProvenance,
    ArtistStage,
    GenerationResult,
    GenerationStats,
    MissingTrack,
    status_from_counts,
)
from src.models.setlist import AggregatedSetlist
from src.models.track import ResolvedTrack, TrackSource, TrackSummary
from src.pipeline.progress_tracker import ProgressTracker
from src.services.artist_resolver import ArtistResolver
from src.services.setlist_aggregator import MAX_SETLIST_LIMIT, SetlistAggregator
from src.services.track_resolver import TrackResolver, artist_query
from src.utils.errors import ArtistResolutionError, PipelineError
from src.utils.logging import get_logger
from src.utils.text_normalizer import artist_names_overlap, clean_artist_input

POPULAR_TRACKS_TARGET = 10
POPULAR_TRACKS_EXTENDED_LIMIT = 50


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _advance(current: ArtistStage, target: ArtistStage) -> ArtistStage:
    if not current.can_transition_to(target):
        raise PipelineError(message=f"Illegal stage transition {current.value} -> {target.value}")
    return target


def _unique_artists(artists: list[str]) -> list[str]:
    """Strip names, drop blanks and case-insensitive repeats, keep order."""
    seen: set[str] = set()
    unique: list[str] = []
    for name in artists:
        cleaned = name.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            unique.append(cleaned)
    return unique


def dedupe_groups(groups: list[ArtistPlaylistGroup]) -> list[ArtistPlaylistGroup]:
    """Drop repeated catalog ids across all groups; first occurrence wins."""
    seen: set[str] = set()
    deduped: list[ArtistPlaylistGroup] = []
    for group in groups:
        kept: list[ResolvedTrack] = []
        for track in group.tracks:
            if track.catalog_id in seen:
                continue
            seen.add(track.catalog_id)
            kept.append(track)
        deduped.append(group.model_copy(update={"tracks": kept}))
    return deduped


def _uses_popular_tracks(groups: list[ArtistPlaylistGroup]) -> bool:
    return any(t.source == TrackSource.POPULAR_TRACKS for g in groups for t in g.tracks)


@dataclass
class _ArtistOutcome:
    """What processing one artist produced."""

    group: ArtistPlaylistGroup | None = None
    missing_tracks: list[MissingTrack] = field(default_factory=list)
    setlist_songs: int = 0
    missing_setlist: bool = False


class PlaylistGenerationPipeline:
    """Sequential, per-artist playlist generation.

    All services are injected; the progress tracker is optional so the
    pipeline can run headless from the CLI or tests.
    """

    def __init__(
        self,
        artist_resolver: ArtistResolver,
        setlist_aggregator: SetlistAggregator,
        track_resolver: TrackResolver,
        progress_tracker: ProgressTracker | None = None,
        setlist_limit: int = MAX_SETLIST_LIMIT,
        popular_tracks_target: int = POPULAR_TRACKS_TARGET,
        popular_tracks_extended_limit: int = POPULAR_TRACKS_EXTENDED_LIMIT,
    ) -> None:
        self._artist_resolver = artist_resolver
        self._setlist_aggregator = setlist_aggregator
        self._track_resolver = track_resolver
        self._progress_tracker = progress_tracker
        self._setlist_limit = setlist_limit
        self._popular_target = popular_tracks_target
        self._popular_extended_limit = popular_tracks_extended_limit
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, artists: list[str], run_id: str | None = None) -> GenerationResult:
        """Build a playlist for *artists*, in the order given.

        Raises
        ------
        PipelineError
            If no non-blank artist name was supplied.
        ConfigurationError
            If an upstream collaborator has no credentials.
        """
        names = _unique_artists(artists)
        if not names:
            raise PipelineError(message="At least one artist name is required")

        run_id = run_id or uuid4().hex
        started_at = _now()
        self._logger.info("generation_started", run_id=run_id, artists=names)

        groups: list[ArtistPlaylistGroup] = []
        missing_tracks: list[MissingTrack] = []
        missing_setlists: list[str] = []
        total = 0

        try:
            for index, name in enumerate(names):
                outcome = await self._process_artist(run_id, name, index, len(names))
                if outcome.group is not None:
                    groups.append(outcome.group)
                missing_tracks.extend(outcome.missing_tracks)
                if outcome.missing_setlist:
                    missing_setlists.append(name)
                total += outcome.setlist_songs

            groups = dedupe_groups(groups)
            matched = sum(len(g.tracks) for g in groups)
            status = status_from_counts(matched, len(missing_tracks))
            result = GenerationResult(
                run_id=run_id,
                artists=names,
                groups=groups,
                missing_tracks=missing_tracks,
                stats=GenerationStats(
                    total=total,
                    matched=matched,
                    missing=len(missing_tracks),
                    missing_setlists=missing_setlists,
                    fallback_used=_uses_popular_tracks(groups),
                ),
                status=status,
                started_at=started_at,
                completed_at=_now(),
            )

            await self._report(run_id, ArtistStage.MERGED, 100.0, f"Done: {status.value}")
        finally:
            # Finished runs keep no snapshot.
            if self._progress_tracker is not None:
                self._progress_tracker.forget(run_id)

        self._logger.info(
            "generation_complete",
            run_id=run_id,
            status=status.value,
            total=total,
            matched=matched,
            missing=len(missing_tracks),
            missing_setlists=missing_setlists,
        )
        return result

    async def retry_missing(self, result: GenerationResult) -> GenerationResult:
        """Re-attempt only the missing tracks of *result*.

        Newly matched tracks are appended to their artist's group.  A track
        whose catalog id is already in the playlist leaves ``missing_tracks``
        but is not added twice, so ``stats.matched`` does not grow for it:
        ``matched`` always equals the number of tracks in the playlist.
        Aggregation is never re-run and *result* is not modified.
        """
        groups = list(result.groups)
        position = {group.artist: i for i, group in enumerate(groups)}
        seen_ids = {t.catalog_id for g in groups for t in g.tracks}
        still_missing: list[MissingTrack] = []

        for item in result.missing_tracks:
            track = await self._track_resolver.resolve(item.artist, item.song)
            slot = position.get(item.artist)
            if track is None or slot is None:
                still_missing.append(item)
                continue
            if track.catalog_id in seen_ids:
                continue
            seen_ids.add(track.catalog_id)
            tagged = track.model_copy(update={"artist": item.artist, "source": TrackSource.SETLIST})
            group = groups[slot]
            groups[slot] = group.model_copy(update={"tracks": [*group.tracks, tagged]})

        matched = sum(len(g.tracks) for g in groups)
        stats = result.stats.model_copy(
            update={
                "matched": matched,
                "missing": len(still_missing),
                "fallback_used": _uses_popular_tracks(groups),
            }
        )
        status = status_from_counts(matched, len(still_missing))
        self._logger.info(
            "retry_complete",
            run_id=result.run_id,
            recovered=len(result.missing_tracks) - len(still_missing),
            still_missing=len(still_missing),
            status=status.value,
        )
        return result.model_copy(
            update={
                "groups": groups,
                "missing_tracks": still_missing,
                "stats": stats,
                "status": status,
                "completed_at": _now(),
            }
        )

    # ------------------------------------------------------------------
    # Per-artist processing
    # ------------------------------------------------------------------

    async def _process_artist(
        self, run_id: str, name: str, index: int, count: int
    ) -> _ArtistOutcome:
        outcome = _ArtistOutcome()
        span = 100.0 / count
        base = index * span

        stage = _advance(ArtistStage.IDLE, ArtistStage.RESOLVING_ARTIST)
        await self._report(run_id, stage, base, f"Resolving artist {name}", name)

        identity = await self._choose_identity(name)
        if identity is None:
            _advance(stage, ArtistStage.MERGED)
            outcome.missing_setlist = True
            return outcome

        stage = _advance(stage, ArtistStage.AGGREGATING_SETLIST)
        await self._report(run_id, stage, base, f"Fetching recent setlists for {name}", name)
        setlist = await self._setlist_aggregator.aggregate(identity.canonical_id, self._setlist_limit)

        if setlist.songs:
            stage = _advance(stage, ArtistStage.RESOLVING_TRACKS)
            tracks = await self._resolve_songs(run_id, name, setlist.songs, base, span, outcome)
            outcome.setlist_songs = len(setlist.songs)
            provenance = self._setlist_provenance(identity, setlist)
            original_count = len(setlist.songs)
        else:
            stage = _advance(stage, ArtistStage.FALLBACK_SEARCH)
            await self._report(run_id, stage, base, f"Using popular tracks for {name}", name)
            popular, raw_count = await self._popular_tracks(name)
            tracks = [self._popular_track(name, summary) for summary in popular]
            outcome.missing_setlist = not tracks
            provenance = ArtistProvenance(
                canonical_id=identity.canonical_id,
                aggregation=setlist.stats,
                fallback_used=True,
                raw_count=raw_count,
                filtered_count=len(popular),
            )
            original_count = len(tracks)

        stage = _advance(stage, ArtistStage.MERGED)
        outcome.group = ArtistPlaylistGroup(
            artist=name,
            tracks=tracks,
            original_song_count=original_count,
            provenance=provenance,
            stage=stage,
        )
        return outcome

    async def _choose_identity(self, name: str) -> ResolvedArtist | None:
        try:
            resolution = await self._artist_resolver.resolve(name)
        except ArtistResolutionError as exc:
            self._logger.warning("artist_resolution_failed", artist=name, error=str(exc))
            return None
        identity = resolution.choose()
        if identity is None:
            self._logger.info("artist_not_found", artist=name)
        return identity

    async def _resolve_songs(
        self,
        run_id: str,
        name: str,
        songs: list[str],
        base: float,
        span: float,
        outcome: _ArtistOutcome,
    ) -> list[ResolvedTrack]:
        tracks: list[ResolvedTrack] = []
        for position, song in enumerate(songs, start=1):
            await self._report(
                run_id,
                ArtistStage.RESOLVING_TRACKS,
                base + span * (position - 1) / len(songs),
                f"Matching {name}: song {position} of {len(songs)}",
                name,
            )
            track = await self._track_resolver.resolve(name, song)
            if track is None:
                outcome.missing_tracks.append(MissingTrack(artist=name, song=song))
                continue
            tracks.append(
                track.model_copy(update={"artist": name, "source": TrackSource.SETLIST})
            )
        return tracks

    async def _popular_tracks(self, name: str) -> tuple[list[TrackSummary], int]:
        """Artist-restricted search used when no recent setlist exists.

        Returns the hits crediting the artist (at most the target count)
        and the number of raw hits the last search returned.
        """
        cleaned = clean_artist_input(name)
        query = artist_query(cleaned, quoted=True)
        raw = await self._track_resolver.search(query, self._popular_target)
        if not raw:
            query = artist_query(cleaned, quoted=False)
            raw = await self._track_resolver.search(query, self._popular_target)

        def credits_artist(summary: TrackSummary) -> bool:
            return artist_names_overlap(cleaned, summary.primary_artist)

        valid = [s for s in raw if credits_artist(s)][: self._popular_target]
        if len(valid) < self._popular_target and raw:
            extended = await self._track_resolver.search(query, self._popular_extended_limit)
            known = {s.id for s in valid}
            for summary in extended:
                if len(valid) >= self._popular_target:
                    break
                if summary.id not in known and credits_artist(summary):
                    valid.append(summary)
                    known.add(summary.id)
            self._logger.debug(
                "fallback_search_extended", artist=name, raw=len(extended), filtered=len(valid)
            )
            raw = extended

        return valid, len(raw)

    @staticmethod
    def _popular_track(name: str, summary: TrackSummary) -> ResolvedTrack:
        return ResolvedTrack.from_summary(summary).model_copy(
            update={"artist": name, "source": TrackSource.POPULAR_TRACKS}
        )

    @staticmethod
    def _setlist_provenance(identity: ResolvedArtist, setlist: AggregatedSetlist) -> ArtistProvenance:
        latest = setlist.sources[0] if setlist.sources else None
        return ArtistProvenance(
            canonical_id=identity.canonical_id,
            setlist_url=latest.url if latest else None,
            event_date=latest.event_date if latest else None,
            venue=latest.venue.name if latest else None,
            city=latest.venue.city if latest else None,
            aggregation=setlist.stats,
        )

    async def _report(
        self,
        run_id: str,
        stage: ArtistStage,
        progress: float,
        message: str,
        artist: str | None = None,
    ) -> None:
        if self._progress_tracker is not None:
            await self._progress_tracker.update(run_id, stage, progress, message, artist)
