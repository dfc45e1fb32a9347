# =============================================================================
# src/cli/commands.py - setlistify command-line interface
# =============================================================================
#
# Runs the same services as the API without starting a web server:
#
#   python -m src.cli generate "Metallica" "Nick Cave"   # full playlist run
#   python -m src.cli artist "Metalica"                  # resolve one name
#   python -m src.cli setlist <mbid> --limit 3           # union setlist
#   python -m src.cli search --artist Radiohead --track Creep
#   python -m src.cli search --q "paint it black" --limit 5
#   python -m src.cli cache-clear setlist:union:         # non-production only
#
# --json prints machine-readable output and implies --quiet, which sends
# all logging to stderr at WARNING+ so stdout holds only the result.
# =============================================================================

"""Standalone CLI for setlistify.

Usage::

    python -m src.cli generate "Metallica" "Nick Cave"
    python -m src.cli artist "Metallica" --json
    python -m src.cli setlist 65f4f0c5-ef9e-490c-aee3-909e7ae6b2ab
    python -m src.cli search --artist Radiohead --track Creep
    python -m src.cli cache-clear catalog:
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from pydantic import BaseModel

from src.models.playlist import GenerationResult
from src.services.track_resolver import artist_query
from src.utils.errors import SetlistifyError

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_generation(result: GenerationResult) -> str:
    """Render a generation result as a human-readable report."""
    sep = "=" * 60
    stats = result.stats
    lines = [
        sep,
        "  setlistify: Playlist Report",
        sep,
        f"Status: {result.status.value}  |  setlist songs: {stats.total}  |  "
        f"matched: {stats.matched}  |  missing: {stats.missing}",
        "",
    ]

    for group in result.groups:
        origin = "POPULAR TRACKS" if group.provenance.fallback_used else "SETLIST"
        lines.append(f"{group.artist}  [{origin}]  {len(group.tracks)}/{group.original_song_count}")
        if group.provenance.setlist_url:
            where = ", ".join(p for p in (group.provenance.venue, group.provenance.city) if p)
            lines.append(f"  latest show: {group.provenance.event_date} {where}")
            lines.append(f"  {group.provenance.setlist_url}")
        for track in group.tracks:
            mode = f" ({track.match_mode.value} {track.confidence:.2f})" if track.match_mode else ""
            lines.append(f"    - {track.title}  [{track.resolved_artist_name}]{mode}")
        lines.append("")

    if stats.missing_setlists:
        lines.append(f"No setlists found for: {', '.join(stats.missing_setlists)}")
    if result.missing_tracks:
        lines.append("MISSING TRACKS")
        lines.extend(f"  - {m.artist}: {m.song}" for m in result.missing_tracks)

    return "\n".join(lines)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _emit(value: Any, json_output: bool, text: str | None = None) -> None:
    if json_output or text is None:
        print(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False, default=str))
    else:
        print(text)


# ---------------------------------------------------------------------------
# Command runners
# ---------------------------------------------------------------------------


def _suppress_logs() -> None:
    """Send structlog and stdlib logging to stderr at WARNING+.

    Must run before ``src.main`` is imported, because importing it
    configures logging and structlog caches loggers on first use.
    """
    import structlog

    os.environ["LOG_LEVEL"] = "WARNING"

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _dispatch(args: argparse.Namespace, components: dict[str, Any]) -> None:
    json_output = args.json_output

    if args.command == "generate":
        result = await components["pipeline"].generate(args.artists)
        if args.retry and result.missing_tracks:
            result = await components["pipeline"].retry_missing(result)
        _emit(result, json_output, _format_generation(result))

    elif args.command == "artist":
        resolution = await components["artist_resolver"].resolve(args.name)
        best = resolution.best
        text = "\n".join(
            [f"best: {best.name} ({best.canonical_id})" if best else "best: none"]
            + [f"needs choice: {resolution.needs_choice}"]
            + [f"  - {c.name} ({c.canonical_id})" for c in resolution.candidates]
        )
        _emit(resolution, json_output, text)

    elif args.command == "setlist":
        aggregated = await components["setlist_aggregator"].aggregate(args.mbid, args.limit)
        text = "\n".join(
            [f"{aggregated.artist.name}: {len(aggregated.songs)} songs "
             f"from {aggregated.stats.setlists_used} setlists"]
            + [f"  {i}. {song}" for i, song in enumerate(aggregated.songs, start=1)]
        )
        _emit(aggregated, json_output, text)

    elif args.command == "search":
        resolver = components["track_resolver"]
        if args.artist and args.track:
            track = await resolver.resolve(args.artist, args.track)
            text = (
                f"{track.title} by {track.resolved_artist_name} "
                f"[{track.match_mode.value if track.match_mode else '-'} {track.confidence:.2f}] "
                f"{track.uri}"
                if track
                else "no match"
            )
            _emit(track, json_output, text)
        else:
            query = args.q or artist_query(args.artist)
            summaries = await resolver.search(query, args.limit)
            text = "\n".join(f"  - {s.name} [{s.primary_artist}] {s.uri}" for s in summaries)
            _emit(summaries, json_output, text or "no results")

    elif args.command == "cache-clear":
        removed = await components["cache"].clear_prefix(args.prefix)
        _emit({"prefix": args.prefix, "removed": removed}, json_output, f"removed {removed}")


async def _run(args: argparse.Namespace) -> int:
    from src.main import build_pipeline

    components = build_pipeline()
    try:
        await _dispatch(args, components)
    except SetlistifyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Build playlists from the songs artists actually play live.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (implied by --json).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a playlist for one or more artists.")
    generate.add_argument("artists", nargs="+", help="Artist names, in playlist order.")
    generate.add_argument(
        "--retry", action="store_true", help="Retry missing tracks once before printing."
    )

    artist = sub.add_parser("artist", help="Resolve an artist name to its canonical id.")
    artist.add_argument("name")

    setlist = sub.add_parser("setlist", help="Union of an artist's recent setlists.")
    setlist.add_argument("mbid", help="Canonical (MusicBrainz) artist id.")
    setlist.add_argument("--limit", type=int, default=5, help="Setlists to merge (1-5).")

    search = sub.add_parser("search", help="Resolve a song or run a free-text track search.")
    search.add_argument("--artist")
    search.add_argument("--track")
    search.add_argument("--q", help="Free-text catalog query.")
    search.add_argument("--limit", type=int, default=10, help="Results (1-50).")

    clear = sub.add_parser("cache-clear", help="Remove cache entries by key prefix.")
    clear.add_argument("prefix")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, configure logging and run the chosen command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "search" and not (args.q or args.artist):
        parser.error("search needs --q or --artist")

    if args.quiet or args.json_output:
        _suppress_logs()

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
