"""Unit tests for the command-line interface in src.cli.commands."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.cli.commands import _build_parser, _format_generation, _run, main
from src.models.artist import ArtistCandidate, ArtistResolution, ResolvedArtist
from src.models.playlist import (
    ArtistPlaylistGroup,
    ArtistProvenance,
    GenerationResult,
    GenerationStats,
    GenerationStatus,
    MissingTrack,
)
from src.models.track import MatchMode, ResolvedTrack
from src.utils.errors import ConfigurationError


# ======================================================================
# Shared helpers
# ======================================================================


def _result() -> GenerationResult:
    track = ResolvedTrack(
        artist="Metallica",
        title="One",
        catalog_id="1",
        uri="spotify:track:1",
        match_mode=MatchMode.STRICT,
        resolved_artist_name="Metallica",
    )
    return GenerationResult(
        run_id="run-cli",
        artists=["Metallica", "Zzyzx"],
        groups=[
            ArtistPlaylistGroup(
                artist="Metallica",
                tracks=[track],
                original_song_count=2,
                provenance=ArtistProvenance(
                    canonical_id="m",
                    setlist_url="https://www.setlist.fm/setlist/id/abc.html",
                    event_date="10-05-2025",
                    venue="Olympiastadion",
                    city="Berlin",
                ),
            )
        ],
        missing_tracks=[MissingTrack(artist="Metallica", song="Orion")],
        stats=GenerationStats(total=2, matched=1, missing=1, missing_setlists=["Zzyzx"]),
        status=GenerationStatus.PARTIAL,
    )


def _components() -> dict:
    pipeline = MagicMock()
    pipeline.generate = AsyncMock(return_value=_result())
    pipeline.retry_missing = AsyncMock(side_effect=lambda result: result)

    artist_resolver = MagicMock()
    artist_resolver.resolve = AsyncMock(
        return_value=ArtistResolution(
            query="Metallica",
            best=ResolvedArtist(name="Metallica", canonical_id="m"),
            candidates=[ArtistCandidate(name="Metallica", canonical_id="m")],
        )
    )

    track_resolver = MagicMock()
    track_resolver.resolve = AsyncMock(return_value=None)
    track_resolver.search = AsyncMock(return_value=[])

    cache = MagicMock()
    cache.clear_prefix = AsyncMock(return_value=4)

    return {
        "pipeline": pipeline,
        "artist_resolver": artist_resolver,
        "setlist_aggregator": MagicMock(),
        "track_resolver": track_resolver,
        "cache": cache,
        "http_client": AsyncMock(),
    }


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_generate_takes_many_artists(self) -> None:
        args = _build_parser().parse_args(["--json", "generate", "Metallica", "Nick Cave"])
        assert args.command == "generate"
        assert args.artists == ["Metallica", "Nick Cave"]
        assert args.json_output is True
        assert args.retry is False

    def test_setlist_limit(self) -> None:
        args = _build_parser().parse_args(["setlist", "mbid-1", "--limit", "3"])
        assert (args.mbid, args.limit) == ("mbid-1", 3)

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])

    def test_search_without_query_is_rejected(self) -> None:
        with pytest.raises(SystemExit):
            main(["search", "--track", "One"])


# ======================================================================
# Formatting
# ======================================================================


def test_format_generation_lists_tracks_and_missing() -> None:
    text = _format_generation(_result())
    assert "Status: partial" in text
    assert "Metallica  [SETLIST]  1/2" in text
    assert "Olympiastadion" in text
    assert "- One  [Metallica] (strict 1.00)" in text
    assert "No setlists found for: Zzyzx" in text
    assert "Metallica: Orion" in text


# ======================================================================
# _run
# ======================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_generate_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        args = _build_parser().parse_args(["--json", "generate", "Metallica", "Zzyzx"])

        with patch("src.main.build_pipeline", return_value=components):
            code = await _run(args)

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["run_id"] == "run-cli"
        assert payload["stats"]["missing_setlists"] == ["Zzyzx"]
        components["pipeline"].generate.assert_awaited_once_with(["Metallica", "Zzyzx"])
        components["pipeline"].retry_missing.assert_not_awaited()
        components["http_client"].aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generate_with_retry(self) -> None:
        components = _components()
        args = _build_parser().parse_args(["generate", "Metallica", "--retry"])
        with patch("src.main.build_pipeline", return_value=components):
            await _run(args)
        components["pipeline"].retry_missing.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_artist_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        args = _build_parser().parse_args(["artist", "Metallica"])
        with patch("src.main.build_pipeline", return_value=_components()):
            await _run(args)
        assert "best: Metallica (m)" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_search_by_artist_builds_query(self) -> None:
        components = _components()
        args = _build_parser().parse_args(["search", "--artist", "Radiohead", "--limit", "5"])
        with patch("src.main.build_pipeline", return_value=components):
            await _run(args)
        components["track_resolver"].search.assert_awaited_once_with('artist:"Radiohead"', 5)

    @pytest.mark.asyncio
    async def test_search_resolve_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        args = _build_parser().parse_args(["search", "--artist", "Radiohead", "--track", "Creep"])
        with patch("src.main.build_pipeline", return_value=components):
            await _run(args)
        components["track_resolver"].resolve.assert_awaited_once_with("Radiohead", "Creep")
        assert "no match" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_cache_clear(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        args = _build_parser().parse_args(["cache-clear", "catalog:"])
        with patch("src.main.build_pipeline", return_value=components):
            await _run(args)
        components["cache"].clear_prefix.assert_awaited_once_with("catalog:")
        assert "removed 4" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_application_error_exits_nonzero(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        components = _components()
        components["pipeline"].generate.side_effect = ConfigurationError(
            message="SETLISTFM_API_KEY is not configured", provider_name="setlistfm"
        )
        args = _build_parser().parse_args(["generate", "Metallica"])

        with patch("src.main.build_pipeline", return_value=components):
            code = await _run(args)

        assert code == 1
        assert "SETLISTFM_API_KEY" in capsys.readouterr().err
        components["http_client"].aclose.assert_awaited_once()


# ======================================================================
# main
# ======================================================================


def test_main_json_suppresses_logs_and_exits() -> None:
    with patch("src.cli.commands._suppress_logs") as suppress, patch(
        "src.main.build_pipeline", return_value=_components()
    ), pytest.raises(SystemExit) as exc_info:
        main(["--json", "artist", "Metallica"])

    suppress.assert_called_once()
    assert exc_info.value.code == 0
