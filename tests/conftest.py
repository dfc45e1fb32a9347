"""Shared pytest fixtures for the setlistify test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.catalog_provider import ICatalogSearchProvider
from src.interfaces.setlist_provider import IArtistSearchProvider, IPerformanceProvider
from src.interfaces.upstream import UpstreamResponse
from src.models.setlist import PerformancePage, PerformanceRecord
from src.models.track import CatalogArtist, TrackSummary
from src.providers.cache.file_cache import FileCacheProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.tiered_cache import TieredCacheProvider

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch-seconds clock shared by every cache tier."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def today() -> Callable[[], date]:
    """Fixed 'today' for recency checks: recent means 2025 or 2024."""
    return lambda: date(2025, 6, 1)


# ---------------------------------------------------------------------------
# Caches
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100, clock=clock)


@pytest.fixture
def file_cache(cache_dir: Path, clock: FakeClock) -> FileCacheProvider:
    provider = FileCacheProvider(directory=cache_dir, clock=clock)
    provider.initialize()
    return provider


@pytest.fixture
def tiered_cache(
    memory_cache: MemoryCacheProvider, file_cache: FileCacheProvider, clock: FakeClock
) -> TieredCacheProvider:
    return TieredCacheProvider(memory=memory_cache, durable=file_cache, clock=clock)


@pytest.fixture
def mock_cache() -> MagicMock:
    """A cache that always misses and records writes."""
    cache = MagicMock(spec=ICacheProvider)
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock()
    cache.clear_prefix = AsyncMock(return_value=0)
    cache.get_provider_name.return_value = "mock"
    return cache


# ---------------------------------------------------------------------------
# Upstream collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_artist_provider() -> MagicMock:
    provider = MagicMock(spec=IArtistSearchProvider)
    provider.search_artists = AsyncMock(return_value=UpstreamResponse.ok([]))
    provider.get_provider_name.return_value = "mock_setlist"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_performance_provider() -> MagicMock:
    provider = MagicMock(spec=IPerformanceProvider)
    provider.list_performances = AsyncMock(return_value=UpstreamResponse.ok(PerformancePage()))
    provider.get_provider_name.return_value = "mock_setlist"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_catalog_provider() -> MagicMock:
    provider = MagicMock(spec=ICatalogSearchProvider)
    provider.search_tracks = AsyncMock(return_value=UpstreamResponse.ok([]))
    provider.get_provider_name.return_value = "mock_catalog"
    provider.is_available.return_value = True
    return provider


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_performance() -> Callable[..., PerformanceRecord]:
    def _make(
        perf_id: str,
        songs: list[str],
        event_date: str = "10-05-2025",
        artist_name: str = "Metallica",
        artist_id: str = "mbid-metallica",
        venue: str = "Olympiastadion",
        city: str = "Berlin",
    ) -> PerformanceRecord:
        return PerformanceRecord(
            id=perf_id,
            event_date=event_date,
            artist_name=artist_name,
            artist_id=artist_id,
            venue_name=venue,
            city=city,
            country="Germany",
            song_names=songs,
        )

    return _make


@pytest.fixture
def make_summary() -> Callable[..., TrackSummary]:
    def _make(
        track_id: str,
        name: str,
        artist: str = "Metallica",
        popularity: int = 50,
    ) -> TrackSummary:
        return TrackSummary(
            id=track_id,
            name=name,
            artists=[CatalogArtist(name=artist, id=f"artist-{artist.lower()}")] if artist else [],
            uri=f"spotify:track:{track_id}",
            external_url=f"https://open.spotify.com/track/{track_id}",
            duration_ms=240_000,
            popularity=popularity,
        )

    return _make
