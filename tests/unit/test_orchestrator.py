"""Unit tests for PlaylistGenerationPipeline with mocked services."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.artist import ArtistResolution, ResolvedArtist
from src.models.playlist import (
    ArtistPlaylistGroup,
    ArtistStage,
    GenerationResult,
    GenerationStats,
    GenerationStatus,
    MissingTrack,
)
from src.models.setlist import AggregatedSetlist, AggregationStats, SetlistSource, SetlistVenue
from src.models.track import MatchMode, ResolvedTrack, TrackSource
from src.pipeline.orchestrator import PlaylistGenerationPipeline, dedupe_groups
from src.pipeline.progress_tracker import ProgressTracker
from src.services.artist_resolver import ArtistResolver
from src.services.setlist_aggregator import SetlistAggregator
from src.services.track_resolver import TrackResolver
from src.utils.errors import ArtistResolutionError, ConfigurationError, PipelineError


# ======================================================================
# Shared helpers
# ======================================================================


def _resolution(name: str, mbid: str) -> ArtistResolution:
    return ArtistResolution(query=name, best=ResolvedArtist(name=name, canonical_id=mbid))


def _setlist(mbid: str, songs: list[str]) -> AggregatedSetlist:
    sources = (
        [
            SetlistSource(
                id="7bd6b6a8",
                event_date="10-05-2025",
                venue=SetlistVenue(name="Olympiastadion", city="Berlin", country="Germany"),
                song_count=len(songs),
            )
        ]
        if songs
        else []
    )
    return AggregatedSetlist(
        artist=ResolvedArtist(name="Metallica", canonical_id=mbid),
        sources=sources,
        songs=songs,
        stats=AggregationStats(setlists_used=len(sources), total_union_songs=len(songs)),
    )


def _track(catalog_id: str, title: str, artist: str = "Metallica") -> ResolvedTrack:
    return ResolvedTrack(
        artist=artist,
        title=title,
        catalog_id=catalog_id,
        uri=f"spotify:track:{catalog_id}",
        match_mode=MatchMode.STRICT,
        resolved_artist_name=artist,
    )


@pytest.fixture
def artist_resolver() -> MagicMock:
    resolver = MagicMock(spec=ArtistResolver)
    resolver.resolve = AsyncMock(side_effect=lambda name: _resolution(name, f"mbid-{name.lower()}"))
    return resolver


@pytest.fixture
def setlist_aggregator() -> MagicMock:
    aggregator = MagicMock(spec=SetlistAggregator)
    aggregator.aggregate = AsyncMock(return_value=_setlist("mbid-metallica", []))
    return aggregator


@pytest.fixture
def track_resolver() -> MagicMock:
    resolver = MagicMock(spec=TrackResolver)
    resolver.resolve = AsyncMock(return_value=None)
    resolver.search = AsyncMock(return_value=[])
    return resolver


@pytest.fixture
def pipeline(
    artist_resolver: MagicMock, setlist_aggregator: MagicMock, track_resolver: MagicMock
) -> PlaylistGenerationPipeline:
    return PlaylistGenerationPipeline(
        artist_resolver=artist_resolver,
        setlist_aggregator=setlist_aggregator,
        track_resolver=track_resolver,
        progress_tracker=ProgressTracker(),
    )


# ======================================================================
# generate: setlist path
# ======================================================================


class TestGenerateFromSetlists:
    @pytest.mark.asyncio
    async def test_songs_resolved_in_order(
        self,
        pipeline: PlaylistGenerationPipeline,
        setlist_aggregator: MagicMock,
        track_resolver: MagicMock,
    ) -> None:
        setlist_aggregator.aggregate.return_value = _setlist(
            "mbid-metallica", ["Creeping Death", "Orion", "One"]
        )
        track_resolver.resolve.side_effect = [
            _track("1", "Creeping Death"),
            None,
            _track("3", "One"),
        ]

        result = await pipeline.generate(["Metallica"], run_id="run-1")

        group = result.groups[0]
        assert [t.title for t in group.tracks] == ["Creeping Death", "One"]
        assert all(t.source == TrackSource.SETLIST for t in group.tracks)
        assert group.stage == ArtistStage.MERGED
        assert group.original_song_count == 3
        assert group.provenance.city == "Berlin"
        assert group.provenance.setlist_url.endswith("/7bd6b6a8.html")
        assert result.missing_tracks == [MissingTrack(artist="Metallica", song="Orion")]
        assert result.stats.total == 3
        assert result.stats.matched == 2
        assert result.status == GenerationStatus.PARTIAL
        setlist_aggregator.aggregate.assert_awaited_once_with("mbid-metallica", 5)

    @pytest.mark.asyncio
    async def test_duplicate_catalog_ids_are_dropped_across_artists(
        self,
        pipeline: PlaylistGenerationPipeline,
        setlist_aggregator: MagicMock,
        track_resolver: MagicMock,
    ) -> None:
        setlist_aggregator.aggregate.return_value = _setlist("x", ["Under Pressure"])
        track_resolver.resolve.return_value = _track("up", "Under Pressure", artist="Queen")

        result = await pipeline.generate(["Queen", "David Bowie"])

        assert [len(g.tracks) for g in result.groups] == [1, 0]
        assert result.stats.matched == 1
        assert result.status == GenerationStatus.SUCCESS
        assert result.groups[1].tracks == []

    @pytest.mark.asyncio
    async def test_artist_names_deduplicated(
        self, pipeline: PlaylistGenerationPipeline, artist_resolver: MagicMock
    ) -> None:
        result = await pipeline.generate(["Metallica", " metallica ", "", "Slayer"])
        assert result.artists == ["Metallica", "Slayer"]
        assert artist_resolver.resolve.await_count == 2

    @pytest.mark.asyncio
    async def test_no_artists_raises(self, pipeline: PlaylistGenerationPipeline) -> None:
        with pytest.raises(PipelineError):
            await pipeline.generate(["  ", ""])

    @pytest.mark.asyncio
    async def test_progress_reported(
        self,
        artist_resolver: MagicMock,
        setlist_aggregator: MagicMock,
        track_resolver: MagicMock,
    ) -> None:
        tracker = ProgressTracker()
        updates: list[tuple[float, str]] = []
        tracker.register_listener(
            "run-p", lambda rid, stage, progress, msg: updates.append((progress, msg))
        )
        setlist_aggregator.aggregate.return_value = _setlist("m", ["One", "Two"])
        track_resolver.resolve.return_value = None
        pipeline = PlaylistGenerationPipeline(
            artist_resolver, setlist_aggregator, track_resolver, progress_tracker=tracker
        )

        await pipeline.generate(["Metallica"], run_id="run-p")

        assert "Matching Metallica: song 2 of 2" in [msg for _, msg in updates]
        assert updates[-1][0] == 100.0

    @pytest.mark.asyncio
    async def test_finished_runs_leave_no_snapshot(
        self,
        artist_resolver: MagicMock,
        setlist_aggregator: MagicMock,
        track_resolver: MagicMock,
    ) -> None:
        tracker = ProgressTracker()
        pipeline = PlaylistGenerationPipeline(
            artist_resolver, setlist_aggregator, track_resolver, progress_tracker=tracker
        )

        for i in range(20):
            await pipeline.generate(["Nobody"], run_id=f"run-{i}")

        assert tracker._statuses == {}

    @pytest.mark.asyncio
    async def test_failed_run_leaves_no_snapshot(
        self,
        artist_resolver: MagicMock,
        setlist_aggregator: MagicMock,
        track_resolver: MagicMock,
    ) -> None:
        tracker = ProgressTracker()
        setlist_aggregator.aggregate.side_effect = ConfigurationError(
            message="SETLISTFM_API_KEY is not configured"
        )
        pipeline = PlaylistGenerationPipeline(
            artist_resolver, setlist_aggregator, track_resolver, progress_tracker=tracker
        )

        with pytest.raises(ConfigurationError):
            await pipeline.generate(["Metallica"], run_id="run-f")

        assert tracker._statuses == {}


# ======================================================================
# generate: missing setlists and popular-tracks fallback
# ======================================================================


class TestGenerateFallback:
    @pytest.mark.asyncio
    async def test_unresolvable_artist_is_a_missing_setlist(
        self, pipeline: PlaylistGenerationPipeline, artist_resolver: MagicMock
    ) -> None:
        artist_resolver.resolve.side_effect = ArtistResolutionError(message="HTTP 503")

        result = await pipeline.generate(["Metallica"])

        assert result.groups == []
        assert result.stats.missing_setlists == ["Metallica"]
        assert result.status == GenerationStatus.ERROR

    @pytest.mark.asyncio
    async def test_unknown_artist_is_a_missing_setlist(
        self, pipeline: PlaylistGenerationPipeline, artist_resolver: MagicMock
    ) -> None:
        artist_resolver.resolve.side_effect = None
        artist_resolver.resolve.return_value = ArtistResolution(query="Zzyzx")
        result = await pipeline.generate(["Zzyzx"])
        assert result.stats.missing_setlists == ["Zzyzx"]

    @pytest.mark.asyncio
    async def test_empty_setlist_uses_popular_tracks(
        self,
        pipeline: PlaylistGenerationPipeline,
        track_resolver: MagicMock,
        make_summary,
    ) -> None:
        hits = [
            make_summary("1", "Enter Sandman"),
            make_summary("2", "Nothing Else Matters"),
            make_summary("3", "Enter Sandman (Karaoke)", artist="Karaoke Kings"),
            make_summary("4", "One", artist="Metallica & San Francisco Symphony"),
        ]
        track_resolver.search.return_value = hits

        result = await pipeline.generate(["Metallica"])

        group = result.groups[0]
        assert [t.catalog_id for t in group.tracks] == ["1", "2", "4"]
        assert all(t.source == TrackSource.POPULAR_TRACKS for t in group.tracks)
        assert all(t.artist == "Metallica" for t in group.tracks)
        assert group.provenance.fallback_used is True
        assert group.provenance.filtered_count == 3
        assert result.stats.fallback_used is True
        assert result.stats.missing_setlists == []
        assert result.status == GenerationStatus.SUCCESS
        searches = [c.args for c in track_resolver.search.await_args_list]
        assert searches == [('artist:"Metallica"', 10), ('artist:"Metallica"', 50)]

    @pytest.mark.asyncio
    async def test_unquoted_retry_when_quoted_search_is_empty(
        self, pipeline: PlaylistGenerationPipeline, track_resolver: MagicMock, make_summary
    ) -> None:
        track_resolver.search.side_effect = [
            [],
            [make_summary(str(i), f"Song {i}") for i in range(10)],
        ]
        result = await pipeline.generate(["Metallica"])
        assert len(result.groups[0].tracks) == 10
        assert track_resolver.search.await_args_list[1].args == ("artist:Metallica", 10)

    @pytest.mark.asyncio
    async def test_fallback_with_no_hits_is_a_missing_setlist(
        self, pipeline: PlaylistGenerationPipeline
    ) -> None:
        result = await pipeline.generate(["Metallica"])
        assert result.groups[0].tracks == []
        assert result.stats.missing_setlists == ["Metallica"]
        assert result.status == GenerationStatus.ERROR


# ======================================================================
# retry_missing
# ======================================================================


class TestRetryMissing:
    def _result(self) -> GenerationResult:
        return GenerationResult(
            run_id="run-r",
            artists=["Metallica"],
            groups=[ArtistPlaylistGroup(artist="Metallica", tracks=[_track("1", "One")])],
            missing_tracks=[
                MissingTrack(artist="Metallica", song="Orion"),
                MissingTrack(artist="Metallica", song="The Call of Ktulu"),
            ],
            stats=GenerationStats(total=3, matched=1, missing=2),
            status=GenerationStatus.PARTIAL,
        )

    @pytest.mark.asyncio
    async def test_one_of_two_recovered(
        self, pipeline: PlaylistGenerationPipeline, track_resolver: MagicMock
    ) -> None:
        track_resolver.resolve.side_effect = [_track("2", "Orion"), None]
        before = self._result()

        after = await pipeline.retry_missing(before)

        assert after.stats.missing == before.stats.missing - 1
        assert after.stats.matched == before.stats.matched + 1
        assert after.groups[0].tracks[0] == before.groups[0].tracks[0]
        assert after.groups[0].tracks[1].title == "Orion"
        assert after.missing_tracks == [MissingTrack(artist="Metallica", song="The Call of Ktulu")]
        assert after.status == GenerationStatus.PARTIAL
        # The input is never modified.
        assert len(before.groups[0].tracks) == 1
        assert len(before.missing_tracks) == 2

    @pytest.mark.asyncio
    async def test_all_recovered_is_success(
        self, pipeline: PlaylistGenerationPipeline, track_resolver: MagicMock
    ) -> None:
        track_resolver.resolve.side_effect = [_track("2", "Orion"), _track("3", "Ktulu")]
        after = await pipeline.retry_missing(self._result())
        assert after.status == GenerationStatus.SUCCESS
        assert after.missing_tracks == []

    @pytest.mark.asyncio
    async def test_already_present_track_not_added_twice(
        self, pipeline: PlaylistGenerationPipeline, track_resolver: MagicMock
    ) -> None:
        track_resolver.resolve.side_effect = [_track("1", "One"), None]
        after = await pipeline.retry_missing(self._result())
        assert [t.catalog_id for t in after.groups[0].tracks] == ["1"]
        assert len(after.missing_tracks) == 1
        assert after.stats.matched == 1


# ======================================================================
# dedupe_groups
# ======================================================================


def test_dedupe_groups_first_occurrence_wins() -> None:
    groups = [
        ArtistPlaylistGroup(artist="A", tracks=[_track("x", "X"), _track("x", "X again")]),
        ArtistPlaylistGroup(artist="B", tracks=[_track("x", "X"), _track("y", "Y")]),
    ]
    deduped = dedupe_groups(groups)
    assert [t.title for t in deduped[0].tracks] == ["X"]
    assert [t.catalog_id for t in deduped[1].tracks] == ["y"]
