"""FastAPI API routes for setlistify.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                        Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/setlist/artist          GET     Resolve a free-text artist name
# /api/v1/setlist/union           GET     Union of recent setlists (1..5)
# /api/v1/setlist/latest          GET     Latest setlist with >= 5 songs
# /api/v1/catalog/search          GET     Resolve (artist+track) or search
# /api/v1/playlists/generate      POST    Full generation run
# /api/v1/playlists/retry         POST    Retry the missing tracks of a run
# /api/v1/cache                   GET     Inspect one cache key (non-prod)
# /api/v1/cache/clear             POST    Clear keys by prefix (non-prod)
# /api/v1/health                  GET     Health check + provider status
#
# DEPENDENCY INJECTION PATTERN:
# Each route declares its dependencies as Annotated parameters; the
# helpers below read the singletons that main._build_all put on app.state.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.schemas import (
    ArtistSearchResponse,
    CacheClearResponse,
    CacheEntryResponse,
    CacheMeta,
    ErrorResponse,
    GeneratePlaylistRequest,
    HealthResponse,
    LatestSetlistResponse,
    PlaylistResponse,
    RetryMissingRequest,
    SetlistUnionResponse,
    TrackResolveResponse,
    TrackSearchResponse,
)
from src.config.settings import Settings
from src.pipeline.orchestrator import PlaylistGenerationPipeline
from src.providers.cache.tiered_cache import TieredCacheProvider
from src.services.artist_resolver import ArtistResolver
from src.services.setlist_aggregator import SetlistAggregator, clamp_setlist_limit
from src.services.track_resolver import (
    DEFAULT_ARTIST_LIMIT,
    DEFAULT_QUERY_LIMIT,
    TrackResolver,
    artist_query,
    clamp_search_limit,
)
from src.utils.errors import ForbiddenInProductionError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_cache(request: Request) -> TieredCacheProvider:
    return request.app.state.cache


def _get_artist_resolver(request: Request) -> ArtistResolver:
    return request.app.state.artist_resolver


def _get_setlist_aggregator(request: Request) -> SetlistAggregator:
    return request.app.state.setlist_aggregator


def _get_track_resolver(request: Request) -> TrackResolver:
    return request.app.state.track_resolver


def _get_pipeline(request: Request) -> PlaylistGenerationPipeline:
    return request.app.state.pipeline


SettingsDep = Annotated[Settings, Depends(_get_settings)]
CacheDep = Annotated[TieredCacheProvider, Depends(_get_cache)]
ArtistResolverDep = Annotated[ArtistResolver, Depends(_get_artist_resolver)]
AggregatorDep = Annotated[SetlistAggregator, Depends(_get_setlist_aggregator)]
TrackResolverDep = Annotated[TrackResolver, Depends(_get_track_resolver)]
PipelineDep = Annotated[PlaylistGenerationPipeline, Depends(_get_pipeline)]


def _require_text(value: str | None, name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"Missing {name}")
    return cleaned


# ---------------------------------------------------------------------------
# Setlist
# ---------------------------------------------------------------------------


@router.get(
    "/setlist/artist",
    response_model=ArtistSearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Resolve a free-text artist name to a canonical identity",
)
async def search_artist(
    resolver: ArtistResolverDep,
    name: str | None = Query(default=None, max_length=200),
) -> ArtistSearchResponse:
    query = _require_text(name, "name")
    resolution, status = await resolver.resolve_with_status(query)
    return ArtistSearchResponse(
        query=resolution.query,
        best=resolution.best,
        needs_choice=resolution.needs_choice,
        candidates=resolution.candidates,
        **CacheMeta.fields_from(status),
    )


@router.get(
    "/setlist/union",
    response_model=SetlistUnionResponse,
    responses=_ERROR_RESPONSES,
    summary="Deduplicated union of an artist's recent setlists",
)
async def setlist_union(
    aggregator: AggregatorDep,
    mbid: str | None = Query(default=None, max_length=64),
    limit: int | None = Query(default=None),
) -> SetlistUnionResponse:
    canonical_id = _require_text(mbid, "mbid")
    aggregated, status = await aggregator.aggregate_with_status(
        canonical_id, clamp_setlist_limit(limit)
    )
    return SetlistUnionResponse(
        artist=aggregated.artist,
        sources=aggregated.sources,
        songs=aggregated.songs,
        stats=aggregated.stats,
        **CacheMeta.fields_from(status),
    )


@router.get(
    "/setlist/latest",
    response_model=LatestSetlistResponse,
    responses=_ERROR_RESPONSES,
    summary="Most recent setlist with at least five songs",
)
async def latest_setlist(
    aggregator: AggregatorDep,
    mbid: str | None = Query(default=None, max_length=64),
) -> LatestSetlistResponse:
    canonical_id = _require_text(mbid, "mbid")
    latest = await aggregator.latest(canonical_id)
    return LatestSetlistResponse(**latest.model_dump())


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@router.get(
    "/catalog/search",
    response_model=TrackResolveResponse | TrackSearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Resolve an (artist, track) pair or run a free-text track search",
)
async def catalog_search(
    resolver: TrackResolverDep,
    artist: str | None = Query(default=None, max_length=200),
    track: str | None = Query(default=None, max_length=300),
    q: str | None = Query(default=None, max_length=300),
    limit: int | None = Query(default=None),
) -> TrackResolveResponse | TrackSearchResponse:
    artist = (artist or "").strip() or None
    track = (track or "").strip() or None
    q = (q or "").strip() or None

    if artist and track and not q:
        resolved, status = await resolver.resolve_with_status(artist, track)
        return TrackResolveResponse(track=resolved, **CacheMeta.fields_from(status))

    if q:
        query, effective = q, clamp_search_limit(limit, DEFAULT_QUERY_LIMIT)
    elif artist:
        query, effective = artist_query(artist), clamp_search_limit(limit, DEFAULT_ARTIST_LIMIT)
    elif track:
        query, effective = f"track:{track}", clamp_search_limit(limit, DEFAULT_QUERY_LIMIT)
    else:
        raise HTTPException(status_code=400, detail="Missing parameters")

    summaries, status = await resolver.search_with_status(query, effective)
    return TrackSearchResponse(
        query=query,
        limit=effective,
        tracks=summaries,
        **CacheMeta.fields_from(status),
    )


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------


@router.post(
    "/playlists/generate",
    response_model=PlaylistResponse,
    responses=_ERROR_RESPONSES,
    summary="Generate a live-repertoire playlist for a list of artists",
)
async def generate_playlist(
    body: GeneratePlaylistRequest,
    pipeline: PipelineDep,
) -> PlaylistResponse:
    _logger.info("playlist_generate_requested", artists=len(body.artists), run_id=body.run_id)
    result = await pipeline.generate(body.artists, run_id=body.run_id)
    return PlaylistResponse.from_result(result)


@router.post(
    "/playlists/retry",
    response_model=PlaylistResponse,
    responses=_ERROR_RESPONSES,
    summary="Retry the missing tracks of a previous result",
)
async def retry_missing(
    body: RetryMissingRequest,
    pipeline: PipelineDep,
) -> PlaylistResponse:
    result = await pipeline.retry_missing(body.result)
    return PlaylistResponse.from_result(result)


# ---------------------------------------------------------------------------
# Cache administration (non-production only)
# ---------------------------------------------------------------------------


@router.get(
    "/cache",
    response_model=CacheEntryResponse,
    responses=_ERROR_RESPONSES,
    summary="Inspect a single cache key",
)
async def inspect_cache(
    cache: CacheDep,
    key: str | None = Query(default=None, max_length=500),
) -> CacheEntryResponse:
    if not cache.allow_admin:
        raise ForbiddenInProductionError(
            message="Cache inspection is disabled in production",
            provider_name=cache.get_provider_name(),
        )
    cache_key = _require_text(key, "key")
    hit = await cache.get(cache_key)
    if hit is None:
        return CacheEntryResponse(key=cache_key, found=False)
    return CacheEntryResponse(key=cache_key, found=True, source=hit.source, value=hit.value)


@router.post(
    "/cache/clear",
    response_model=CacheClearResponse,
    responses=_ERROR_RESPONSES,
    summary="Remove every cache entry whose key starts with a prefix",
)
async def clear_cache(
    cache: CacheDep,
    prefix: str | None = Query(default=None, max_length=500),
) -> CacheClearResponse:
    if not cache.allow_admin:
        raise ForbiddenInProductionError(
            message="Cache clearing is disabled in production",
            provider_name=cache.get_provider_name(),
        )
    cache_prefix = _require_text(prefix, "prefix")
    removed = await cache.clear_prefix(cache_prefix)
    return CacheClearResponse(prefix=cache_prefix, removed=removed)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, settings: SettingsDep) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, bool] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    if providers and all(providers.values()):
        status = "healthy"
    elif any(providers.values()):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=_VERSION,
        environment=settings.app_env,
        providers=providers,
    )
