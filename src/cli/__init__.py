# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line access to the playlist pipeline for operators and scripts.
# Subcommands live in commands.py and share the service assembly in
# src.main.build_pipeline, so the CLI and the API behave identically and
# share the same on-disk cache.
#
#   - Uses argparse (no Click/Typer).
#   - src.main is imported lazily so --quiet can configure logging first.
# =============================================================================

"""CLI tools for setlistify.

- ``python -m src.cli generate ARTIST [ARTIST ...]``: full playlist run
- ``python -m src.cli artist NAME``: resolve an artist name
- ``python -m src.cli setlist MBID``: union of recent setlists
- ``python -m src.cli search``: resolve a song or search the catalog
- ``python -m src.cli cache-clear PREFIX``: administrative cache clear
"""
