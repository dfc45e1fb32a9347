"""Setlist providers."""

from src.providers.setlist.setlistfm_provider import SetlistFmProvider

__all__ = ["SetlistFmProvider"]
