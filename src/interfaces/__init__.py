"""Abstract contracts for every external collaborator.

Services depend only on these interfaces; concrete adapters live in
``src/providers/`` and are wired together in ``src/main.py``.  Unit tests
inject ``MagicMock(spec=...)`` fakes in their place.

CONCRETE PROVIDER MAP:
    Interface                 ->  Concrete implementations (in src/providers/)
    ---------------------------------------------------------------------
    IArtistSearchProvider     ->  SetlistFmProvider
    IPerformanceProvider      ->  SetlistFmProvider
    ICatalogSearchProvider    ->  SpotifyCatalogProvider
    ICacheProvider            ->  MemoryCacheProvider, FileCacheProvider,
                                  TieredCacheProvider

Upstream calls return an :class:`UpstreamResponse` rather than raising, so
each service decides how far a failure is allowed to spread.
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.catalog_provider import ICatalogSearchProvider
from src.interfaces.setlist_provider import IArtistSearchProvider, IPerformanceProvider
from src.interfaces.upstream import UpstreamResponse, UpstreamStatus

__all__ = [
    "IArtistSearchProvider",
    "ICacheProvider",
    "ICatalogSearchProvider",
    "IPerformanceProvider",
    "UpstreamResponse",
    "UpstreamStatus",
]
