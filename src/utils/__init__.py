"""Utility modules for setlistify.

- **errors** -- Domain exception hierarchy rooted at SetlistifyError; each
  layer raises its own subclass so the API can map failures to HTTP codes.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **text_normalizer** -- Artist-query cleanup, setlist title dedupe keys
  and the fuzzy comparisons used by the track matcher.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ArtistResolutionError,
    CacheError,
    ConfigurationError,
    ForbiddenInProductionError,
    PipelineError,
    SetlistifyError,
    UpstreamError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Text normalization ----------------------------------------------------
from src.utils.text_normalizer import (
    dedupe_key,
    name_similarity,
    normalize_artist_query,
    title_similarity,
)

__all__ = [
    "ArtistResolutionError",
    "CacheError",
    "ConfigurationError",
    "ForbiddenInProductionError",
    "PipelineError",
    "SetlistifyError",
    "UpstreamError",
    "configure_logging",
    "dedupe_key",
    "get_logger",
    "name_similarity",
    "normalize_artist_query",
    "title_similarity",
]
