"""Unit tests for the setlist.fm and Spotify provider adapters."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.config.settings import Settings
from src.interfaces.upstream import UpstreamStatus
from src.providers.catalog.spotify_provider import SpotifyCatalogProvider
from src.providers.setlist.setlistfm_provider import SetlistFmProvider
from src.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    defaults = {
        "setlistfm_api_key": "test-setlistfm-key",
        "spotify_client_id": "test-client-id",
        "spotify_client_secret": "test-client-secret",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _response(status_code: int, json_body=None, text: str | None = None) -> httpx.Response:
    if json_body is not None:
        return httpx.Response(status_code, json=json_body)
    return httpx.Response(status_code, text=text or "")


# ======================================================================
# setlist.fm
# ======================================================================


class TestSetlistFmProvider:
    @pytest.fixture()
    def client(self) -> AsyncMock:
        return AsyncMock(spec=httpx.AsyncClient)

    def test_provider_name_and_availability(self, client: AsyncMock) -> None:
        assert SetlistFmProvider(_settings(), client).get_provider_name() == "setlistfm"
        assert SetlistFmProvider(_settings(), client).is_available() is True
        assert SetlistFmProvider(_settings(setlistfm_api_key=""), client).is_available() is False

    @pytest.mark.asyncio
    async def test_missing_key_raises_configuration_error(self, client: AsyncMock) -> None:
        provider = SetlistFmProvider(_settings(setlistfm_api_key=""), client)
        with pytest.raises(ConfigurationError):
            await provider.search_artists("Metallica")
        client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_artists_parses_and_filters(self, client: AsyncMock) -> None:
        client.get.return_value = _response(
            200,
            {
                "artist": [
                    {"mbid": "65f4f0c5-ef9e-490c-aee3-909e7ae6b2ab", "name": "Metallica"},
                    {"name": "Metallica Tribute (no mbid)"},
                    {"mbid": "abc", "name": "Metallica Tribute", "disambiguation": "Swiss"},
                ]
            },
        )
        provider = SetlistFmProvider(_settings(), client)

        response = await provider.search_artists("Metallica")

        assert response.is_ok
        assert [c.canonical_id for c in response.payload] == [
            "65f4f0c5-ef9e-490c-aee3-909e7ae6b2ab",
            "abc",
        ]
        assert response.payload[0].similarity == 1.0
        assert response.payload[1].disambiguation == "Swiss"
        kwargs = client.get.await_args.kwargs
        assert kwargs["headers"]["x-api-key"] == "test-setlistfm-key"
        assert kwargs["params"]["artistName"] == "Metallica"

    @pytest.mark.asyncio
    async def test_single_object_is_treated_as_list(self, client: AsyncMock) -> None:
        client.get.return_value = _response(200, {"artist": {"mbid": "m", "name": "Slayer"}})
        response = await SetlistFmProvider(_settings(), client).search_artists("Slayer")
        assert [c.name for c in response.payload] == ["Slayer"]

    @pytest.mark.asyncio
    async def test_not_found_is_empty(self, client: AsyncMock) -> None:
        client.get.return_value = _response(404, text='{"code":404,"status":"Not Found"}')
        response = await SetlistFmProvider(_settings(), client).search_artists("Zzyzx")
        assert response.is_ok
        assert response.payload == []

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_error(self, client: AsyncMock) -> None:
        client.get.return_value = _response(503, text="busy")
        response = await SetlistFmProvider(_settings(), client).search_artists("Metallica")
        assert response.status == UpstreamStatus.UPSTREAM_ERROR
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_error(self, client: AsyncMock) -> None:
        client.get.side_effect = httpx.ConnectError("connection refused")
        response = await SetlistFmProvider(_settings(), client).search_artists("Metallica")
        assert response.status == UpstreamStatus.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, client: AsyncMock) -> None:
        client.get.return_value = _response(200, text="<html>oops</html>")
        response = await SetlistFmProvider(_settings(), client).search_artists("Metallica")
        assert response.status == UpstreamStatus.MALFORMED

    @pytest.mark.asyncio
    async def test_list_performances(self, client: AsyncMock) -> None:
        client.get.return_value = _response(
            200,
            {
                "type": "setlists",
                "itemsPerPage": 20,
                "page": 2,
                "total": 45,
                "setlist": [
                    {
                        "id": "63de4613",
                        "eventDate": "23-08-2025",
                        "artist": {"mbid": "m", "name": "Metallica"},
                        "venue": {"name": "Olympiastadion", "city": {"name": "Berlin"}},
                        "sets": {"set": [{"song": [{"name": "One"}, {"name": "Battery"}]}]},
                    },
                    {"eventDate": "no id, skipped"},
                ],
            },
        )
        provider = SetlistFmProvider(_settings(), client)

        response = await provider.list_performances("m", page=2)

        page = response.payload
        assert [p.id for p in page.performances] == ["63de4613"]
        assert page.performances[0].song_names == ["One", "Battery"]
        assert page.total_count == 45
        assert page.page == 2
        assert not page.is_last_page()
        assert client.get.await_args.args[0].endswith("/artist/m/setlists")

    @pytest.mark.asyncio
    async def test_list_performances_bad_pagination_is_malformed(self, client: AsyncMock) -> None:
        client.get.return_value = _response(200, {"setlist": [], "total": "many"})
        response = await SetlistFmProvider(_settings(), client).list_performances("m")
        assert response.status == UpstreamStatus.MALFORMED

    @pytest.mark.asyncio
    async def test_list_performances_not_found_is_empty_page(self, client: AsyncMock) -> None:
        client.get.return_value = _response(404, text="")
        response = await SetlistFmProvider(_settings(), client).list_performances("m", page=3)
        assert response.is_ok
        assert response.payload.performances == []
        assert response.payload.is_last_page()

    @pytest.mark.asyncio
    async def test_consecutive_calls_are_spaced(self, client: AsyncMock) -> None:
        client.get.return_value = _response(200, {"artist": []})
        provider = SetlistFmProvider(_settings(), client)
        with patch(
            "src.providers.setlist.setlistfm_provider.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            await provider.search_artists("a")
            await provider.search_artists("b")
        sleep.assert_awaited_once()
        assert 0 < sleep.await_args.args[0] <= 0.5


# ======================================================================
# Spotify
# ======================================================================


def _token_response() -> httpx.Response:
    return _response(200, {"access_token": "tok-123", "token_type": "Bearer", "expires_in": 3600})


def _search_body(*items) -> dict:
    return {"tracks": {"items": list(items), "total": len(items)}}


def _item(track_id: str, name: str, artist: str = "Metallica") -> dict:
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": artist, "id": "a1"}],
        "uri": f"spotify:track:{track_id}",
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "duration_ms": 300000,
        "popularity": 70,
    }


class TestSpotifyCatalogProvider:
    @pytest.fixture()
    def client(self) -> MagicMock:
        client = AsyncMock(spec=httpx.AsyncClient)
        client.post.return_value = _token_response()
        return client

    def test_availability_needs_both_credentials(self, client: MagicMock) -> None:
        assert SpotifyCatalogProvider(_settings(), client).is_available() is True
        provider = SpotifyCatalogProvider(_settings(spotify_client_secret=""), client)
        assert provider.is_available() is False

    @pytest.mark.asyncio
    async def test_missing_credentials_raise(self, client: MagicMock) -> None:
        provider = SpotifyCatalogProvider(_settings(spotify_client_id=""), client)
        with pytest.raises(ConfigurationError):
            await provider.search_tracks("track:one", 5)

    @pytest.mark.asyncio
    async def test_search_parses_items_and_reuses_token(self, client: MagicMock) -> None:
        client.get.return_value = _response(
            200, _search_body(_item("1", "One"), None, {"name": "no id"}, _item("2", "Battery"))
        )
        provider = SpotifyCatalogProvider(_settings(), client)

        first = await provider.search_tracks("track:one artist:metallica", 5)
        await provider.search_tracks("track:battery", 5)

        assert [s.id for s in first.payload] == ["1", "2"]
        assert first.payload[0].primary_artist == "Metallica"
        client.post.assert_awaited_once()
        assert client.post.await_args.kwargs["auth"] == ("test-client-id", "test-client-secret")
        kwargs = client.get.await_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
        assert kwargs["params"] == {"q": "track:battery", "type": "track", "limit": 5}

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, client: MagicMock) -> None:
        client.get.return_value = _response(200, _search_body())
        await SpotifyCatalogProvider(_settings(), client).search_tracks("q", 500)
        assert client.get.await_args.kwargs["params"]["limit"] == 50

    @pytest.mark.asyncio
    async def test_unauthorized_drops_token(self, client: MagicMock) -> None:
        client.get.side_effect = [
            _response(401, {"error": {"status": 401}}),
            _response(200, _search_body()),
        ]
        provider = SpotifyCatalogProvider(_settings(), client)

        failed = await provider.search_tracks("q", 5)
        retried = await provider.search_tracks("q", 5)

        assert failed.status == UpstreamStatus.UPSTREAM_ERROR
        assert failed.status_code == 401
        assert retried.is_ok
        assert client.post.await_count == 2

    @pytest.mark.asyncio
    async def test_token_failure_is_upstream_error(self, client: MagicMock) -> None:
        client.post.return_value = _response(400, {"error": "invalid_client"})
        response = await SpotifyCatalogProvider(_settings(), client).search_tracks("q", 5)
        assert response.status == UpstreamStatus.UPSTREAM_ERROR
        assert response.status_code == 400
        client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_body_without_tracks_is_malformed(self, client: MagicMock) -> None:
        client.get.return_value = _response(200, {"artists": {}})
        response = await SpotifyCatalogProvider(_settings(), client).search_tracks("q", 5)
        assert response.status == UpstreamStatus.MALFORMED

    @pytest.mark.asyncio
    async def test_transport_error(self, client: MagicMock) -> None:
        client.get.side_effect = httpx.ReadTimeout("timed out")
        response = await SpotifyCatalogProvider(_settings(), client).search_tracks("q", 5)
        assert response.status == UpstreamStatus.UPSTREAM_ERROR
