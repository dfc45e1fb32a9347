# =============================================================================
# src/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables ``python -m src.cli <command> ...``; see commands.py for the
# available subcommands.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.commands import main

main()
