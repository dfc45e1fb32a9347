"""Catalog search providers."""

from src.providers.catalog.spotify_provider import SpotifyCatalogProvider

__all__ = ["SpotifyCatalogProvider"]
