"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Layers (later layers override earlier):
#
#   1. Built-in defaults   (DEFAULT_CONFIG below)
#   2. config/config.yaml  (checked into the repo)
#   3. .env / environment  (via Settings)
#
# _deep_merge does recursive dict merging:
#   base = {"cache": {"ttl": {"artist": 604800}}}
#   overrides = {"cache": {"dir": ".cache"}}
#   result = {"cache": {"ttl": {"artist": 604800}, "dir": ".cache"}}
# ──────────────────────────────────────────────────────────────────────
"""

import copy
from pathlib import Path

import yaml

from src.config.settings import Settings

_DAY = 24 * 60 * 60

DEFAULT_CONFIG: dict = {
    "cache": {
        "ttl": {
            "artist": 7 * _DAY,
            "setlist_union": _DAY,
            "catalog_resolve": 30 * _DAY,
            "catalog_search": 30 * _DAY,
        },
    },
    "pipeline": {
        "setlist_limit": 5,
        "max_pages": 5,
        "popular_tracks_target": 10,
        "popular_tracks_extended_limit": 50,
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge in; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            # safe_load only; config files never need arbitrary objects.
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "cache": {
            "dir": settings.cache_dir,
            "memory_max_size": settings.memory_cache_max_size,
        },
        "http": {
            "timeout": settings.http_timeout,
        },
        "providers": {
            "configured": settings.get_configured_providers(),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def cache_ttls(config: dict) -> dict[str, float]:
    """Return the ``cache.ttl`` table as floats (seconds)."""
    return {name: float(value) for name, value in config["cache"]["ttl"].items()}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
