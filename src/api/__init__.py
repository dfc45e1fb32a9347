"""Setlistify API layer: routes, schemas, WebSocket, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ArtistSearchResponse,
    ErrorResponse,
    GeneratePlaylistRequest,
    HealthResponse,
    PlaylistResponse,
    RetryMissingRequest,
    SetlistUnionResponse,
    TrackResolveResponse,
    TrackSearchResponse,
)
from src.api.websocket import websocket_progress

__all__ = [
    "ArtistSearchResponse",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "GeneratePlaylistRequest",
    "HealthResponse",
    "PlaylistResponse",
    "RequestLoggingMiddleware",
    "RetryMissingRequest",
    "SetlistUnionResponse",
    "TrackResolveResponse",
    "TrackSearchResponse",
    "configure_cors",
    "router",
    "websocket_progress",
]
