"""Setlistify FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and builds the single cache instance every service
shares.

Also provides the standalone ``build_pipeline`` helper for CLI or
scripting usage outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.api.websocket import websocket_progress
from src.config.loader import cache_ttls, load_config
from src.config.settings import Settings
from src.pipeline.orchestrator import PlaylistGenerationPipeline
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.cache.file_cache import FileCacheProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.tiered_cache import TieredCacheProvider
from src.providers.catalog.spotify_provider import SpotifyCatalogProvider
from src.providers.setlist.setlistfm_provider import SetlistFmProvider
from src.services.artist_resolver import ArtistResolver
from src.services.setlist_aggregator import SetlistAggregator
from src.services.track_resolver import TrackResolver
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=settings.is_production(),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Cache assembly
# ---------------------------------------------------------------------------


def build_cache(app_settings: Settings) -> TieredCacheProvider:
    """Create the tiered cache and its on-disk directory.

    Called once per process; the instance is injected everywhere.
    """
    memory = MemoryCacheProvider(max_size=app_settings.memory_cache_max_size)
    durable = FileCacheProvider(directory=app_settings.cache_dir)
    durable.initialize()
    return TieredCacheProvider(
        memory=memory,
        durable=durable,
        allow_admin=not app_settings.is_production(),
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    app_config = app_config if app_config is not None else config
    ttls = cache_ttls(app_config)
    pipeline_config = app_config.get("pipeline", {})

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout)
    cache = build_cache(app_settings)
    progress_tracker = ProgressTracker()

    # -- Upstream providers --
    setlist_provider = SetlistFmProvider(settings=app_settings, http_client=http_client)
    catalog_provider = SpotifyCatalogProvider(settings=app_settings, http_client=http_client)

    # -- Services --
    artist_resolver = ArtistResolver(
        provider=setlist_provider,
        cache=cache,
        ttl=ttls["artist"],
    )
    setlist_aggregator = SetlistAggregator(
        provider=setlist_provider,
        cache=cache,
        ttl=ttls["setlist_union"],
        max_pages=int(pipeline_config.get("max_pages", 5)),
    )
    track_resolver = TrackResolver(
        provider=catalog_provider,
        cache=cache,
        resolve_ttl=ttls["catalog_resolve"],
        search_ttl=ttls["catalog_search"],
    )

    # -- Pipeline --
    pipeline = PlaylistGenerationPipeline(
        artist_resolver=artist_resolver,
        setlist_aggregator=setlist_aggregator,
        track_resolver=track_resolver,
        progress_tracker=progress_tracker,
        setlist_limit=int(pipeline_config.get("setlist_limit", 5)),
        popular_tracks_target=int(pipeline_config.get("popular_tracks_target", 10)),
        popular_tracks_extended_limit=int(
            pipeline_config.get("popular_tracks_extended_limit", 50)
        ),
    )

    provider_registry = {
        setlist_provider.get_provider_name(): setlist_provider.is_available(),
        catalog_provider.get_provider_name(): catalog_provider.is_available(),
    }

    return {
        "settings": app_settings,
        "config": app_config,
        "http_client": http_client,
        "cache": cache,
        "progress_tracker": progress_tracker,
        "setlist_provider": setlist_provider,
        "catalog_provider": catalog_provider,
        "artist_resolver": artist_resolver,
        "setlist_aggregator": setlist_aggregator,
        "track_resolver": track_resolver,
        "pipeline": pipeline,
        "provider_registry": provider_registry,
    }


def build_pipeline(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Build the components for use outside the web server (CLI, scripts).

    The caller owns ``components["http_client"]`` and must close it.
    """
    return _build_all(custom_settings or settings)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=components["provider_registry"],
        cache_dir=settings.cache_dir,
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="setlistify API",
        version=_VERSION,
        description=(
            "Turn artist names into playlists of what they actually play live: "
            "recent setlists from setlist.fm, matched to Spotify catalog tracks."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/progress/{run_id}")
    async def ws_progress(websocket: WebSocket, run_id: str) -> None:
        await websocket_progress(websocket, run_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
