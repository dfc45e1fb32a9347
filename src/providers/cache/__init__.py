"""Cache providers.

``MemoryCacheProvider`` (volatile) and ``FileCacheProvider`` (durable,
hash-named JSON files) are composed by ``TieredCacheProvider``, which is
the single instance built at startup and injected into every service.
"""

from src.providers.cache.file_cache import FileCacheProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.tiered_cache import TieredCacheProvider

__all__ = ["FileCacheProvider", "MemoryCacheProvider", "TieredCacheProvider"]
