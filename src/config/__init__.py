"""Configuration module: exports Settings, load_config, and a module-level singleton."""

from src.config.loader import cache_ttls, load_config
from src.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "cache_ttls", "load_config", "settings"]
