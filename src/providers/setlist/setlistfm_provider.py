"""setlist.fm REST API provider.

Implements both :class:`IArtistSearchProvider` and
:class:`IPerformanceProvider` over the setlist.fm 1.0 API using a shared
``httpx.AsyncClient``.  Raw JSON is validated here, once, and handed to the
services as :class:`UpstreamResponse` variants.

setlist.fm allows roughly two requests per second per key, so calls are
spaced by a small throttle.  Nothing is retried automatically.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.setlist_provider import IArtistSearchProvider, IPerformanceProvider
from src.interfaces.upstream import UpstreamResponse
from src.models.artist import ArtistCandidate
from src.models.setlist import PerformancePage, PerformanceRecord
from src.utils.errors import ConfigurationError
from src.utils.logging import get_logger
from src.utils.text_normalizer import name_similarity

_BASE_URL = "https://api.setlist.fm/rest/1.0"
_MIN_REQUEST_INTERVAL = 0.5  # seconds
_MAX_CANDIDATES = 10
_ERROR_BODY_PREVIEW = 200


class SetlistFmProvider(IArtistSearchProvider, IPerformanceProvider):
    """Artist search and performance listing backed by setlist.fm.

    Parameters
    ----------
    settings:
        Application settings; ``setlistfm_api_key`` is read on every call so
        a missing key is reported at first use.
    http_client:
        Shared async HTTP client, owned and closed by the application.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client
        self._last_request_time: float = 0.0
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce minimum interval between API requests."""
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < _MIN_REQUEST_INTERVAL:
            await asyncio.sleep(_MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.monotonic()

    def _headers(self) -> dict[str, str]:
        api_key = self._settings.setlistfm_api_key
        if not api_key:
            raise ConfigurationError(
                message="SETLISTFM_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )
        return {
            "Accept": "application/json",
            "Accept-Language": "en",
            "x-api-key": api_key,
        }

    async def _get_json(
        self, path: str, params: dict[str, Any]
    ) -> tuple[Any | None, UpstreamResponse[Any] | None]:
        """GET *path*; return ``(json, None)`` or ``(None, failure_variant)``."""
        headers = self._headers()
        await self._throttle()
        try:
            response = await self._http.get(f"{_BASE_URL}{path}", params=params, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.warning("setlistfm_request_failed", path=path, error=str(exc))
            return None, UpstreamResponse.upstream_error(f"setlist.fm request failed: {exc}")

        if response.status_code != 200:
            self._logger.warning(
                "setlistfm_http_error",
                path=path,
                status=response.status_code,
                body=response.text[:_ERROR_BODY_PREVIEW],
            )
            return None, UpstreamResponse.upstream_error(
                f"setlist.fm returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json(), None
        except ValueError as exc:
            return None, UpstreamResponse.malformed(f"setlist.fm body is not JSON: {exc}")

    @staticmethod
    def _as_list(value: Any) -> list[Any]:
        """setlist.fm returns a bare object instead of a one-element array."""
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    # -- IArtistSearchProvider -------------------------------------------------

    async def search_artists(self, name: str) -> UpstreamResponse[list[ArtistCandidate]]:
        data, failure = await self._get_json(
            "/search/artists", {"artistName": name, "p": 1, "sort": "relevance"}
        )
        if failure is not None:
            # setlist.fm answers 404 when nothing matches.
            if failure.status_code == 404:
                return UpstreamResponse.ok([])
            return failure
        if not isinstance(data, dict):
            return UpstreamResponse.malformed("artist search body is not an object")

        candidates: list[ArtistCandidate] = []
        for item in self._as_list(data.get("artist")):
            if not isinstance(item, dict) or not item.get("mbid") or not item.get("name"):
                continue
            candidates.append(
                ArtistCandidate(
                    name=str(item["name"]),
                    canonical_id=str(item["mbid"]),
                    disambiguation=item.get("disambiguation") or None,
                    similarity=name_similarity(name, str(item["name"])),
                )
            )

        self._logger.debug("setlistfm_artist_search", query=name, result_count=len(candidates))
        return UpstreamResponse.ok(candidates)

    # -- IPerformanceProvider --------------------------------------------------

    async def list_performances(
        self, canonical_id: str, page: int = 1
    ) -> UpstreamResponse[PerformancePage]:
        data, failure = await self._get_json(f"/artist/{canonical_id}/setlists", {"p": page})
        if failure is not None:
            if failure.status_code == 404:
                return UpstreamResponse.ok(PerformancePage(page=page))
            return failure
        if not isinstance(data, dict):
            return UpstreamResponse.malformed("setlist page body is not an object")

        performances: list[PerformanceRecord] = []
        for item in self._as_list(data.get("setlist")):
            try:
                performances.append(PerformanceRecord.from_setlistfm(item))
            except ValueError:
                self._logger.debug("setlistfm_setlist_skipped", canonical_id=canonical_id)

        try:
            total = int(data.get("total") or 0)
            items_per_page = int(data.get("itemsPerPage") or 20)
        except (TypeError, ValueError):
            return UpstreamResponse.malformed("setlist page has invalid pagination metadata")

        self._logger.debug(
            "setlist_page_fetched",
            canonical_id=canonical_id,
            page=page,
            performances=len(performances),
            total=total,
        )
        return UpstreamResponse.ok(
            PerformancePage(
                performances=performances,
                page=page,
                total_count=total,
                items_per_page=max(1, items_per_page),
            )
        )

    def get_provider_name(self) -> str:
        return "setlistfm"

    def is_available(self) -> bool:
        return bool(self._settings.setlistfm_api_key)
