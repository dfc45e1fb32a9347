"""Spotify Web API catalog search provider.

Authenticates with the client-credentials grant (no user involved) and
runs ``/v1/search?type=track`` queries.  The access token is cached on the
instance until shortly before it expires, so a generation run that
resolves dozens of songs costs one token request.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.catalog_provider import ICatalogSearchProvider
from src.interfaces.upstream import UpstreamResponse
from src.models.track import TrackSummary
from src.utils.errors import ConfigurationError, UpstreamError
from src.utils.logging import get_logger

_TOKEN_URL = "https://accounts.spotify.com/api/token"
_SEARCH_URL = "https://api.spotify.com/v1/search"
_TOKEN_EXPIRY_MARGIN = 60.0  # seconds
_MAX_LIMIT = 50


class SpotifyCatalogProvider(ICatalogSearchProvider):
    """Track search against the Spotify catalog.

    Parameters
    ----------
    settings:
        Application settings holding ``spotify_client_id`` and
        ``spotify_client_secret``.
    http_client:
        Shared async HTTP client, owned and closed by the application.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0
        self._token_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _credentials(self) -> tuple[str, str]:
        client_id = self._settings.spotify_client_id
        client_secret = self._settings.spotify_client_secret
        if not client_id or not client_secret:
            raise ConfigurationError(
                message="SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are not configured",
                provider_name=self.get_provider_name(),
            )
        return client_id, client_secret

    async def _get_token(self) -> str:
        """Return a valid access token, requesting a new one when needed.

        Raises
        ------
        ConfigurationError
            If client credentials are missing.
        UpstreamError
            If the token endpoint fails.
        """
        client_id, client_secret = self._credentials()
        async with self._token_lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token

            try:
                response = await self._http.post(
                    _TOKEN_URL,
                    data={"grant_type": "client_credentials"},
                    auth=(client_id, client_secret),
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(
                    message=f"Token request failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            if response.status_code != 200:
                raise UpstreamError(
                    message=f"Token request returned HTTP {response.status_code}",
                    provider_name=self.get_provider_name(),
                    status_code=response.status_code,
                )

            try:
                body = response.json()
                token = str(body["access_token"])
                expires_in = float(body.get("expires_in", 3600))
            except (ValueError, KeyError, TypeError) as exc:
                raise UpstreamError(
                    message=f"Token response is malformed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            self._access_token = token
            self._token_expires_at = time.monotonic() + max(0.0, expires_in - _TOKEN_EXPIRY_MARGIN)
            self._logger.debug("spotify_token_refreshed", expires_in=expires_in)
            return token

    @staticmethod
    def _parse_items(body: Any) -> list[TrackSummary] | None:
        """Parse ``tracks.items``; ``None`` when the body has the wrong shape."""
        if not isinstance(body, dict):
            return None
        tracks = body.get("tracks")
        if not isinstance(tracks, dict):
            return None
        items = tracks.get("items") or []
        if not isinstance(items, list):
            return None

        summaries: list[TrackSummary] = []
        for item in items:
            # Spotify occasionally returns null placeholders in items.
            try:
                summaries.append(TrackSummary.from_spotify(item))
            except ValueError:
                continue
        return summaries

    # -- ICatalogSearchProvider ------------------------------------------------

    async def search_tracks(self, query: str, limit: int) -> UpstreamResponse[list[TrackSummary]]:
        limit = max(1, min(_MAX_LIMIT, limit))
        try:
            token = await self._get_token()
        except UpstreamError as exc:
            self._logger.warning("spotify_token_failed", error=exc.message)
            return UpstreamResponse.upstream_error(exc.message, status_code=exc.status_code)

        try:
            response = await self._http.get(
                _SEARCH_URL,
                params={"q": query, "type": "track", "limit": limit},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            self._logger.warning("spotify_search_failed", query=query, error=str(exc))
            return UpstreamResponse.upstream_error(f"Spotify search failed: {exc}")

        if response.status_code == 401:
            # Token revoked or expired early; the next call fetches a new one.
            self._access_token = None
        if response.status_code != 200:
            self._logger.warning("spotify_http_error", query=query, status=response.status_code)
            return UpstreamResponse.upstream_error(
                f"Spotify search returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            return UpstreamResponse.malformed(f"Spotify body is not JSON: {exc}")

        summaries = self._parse_items(body)
        if summaries is None:
            return UpstreamResponse.malformed("Spotify body lacks tracks.items")

        self._logger.debug("spotify_search", query=query, limit=limit, result_count=len(summaries))
        return UpstreamResponse.ok(summaries)

    def get_provider_name(self) -> str:
        return "spotify"

    def is_available(self) -> bool:
        return bool(self._settings.spotify_client_id and self._settings.spotify_client_secret)
