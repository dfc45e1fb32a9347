"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. Environment variables, e.g. SETLISTFM_API_KEY=abc123 (always win)
#   2. .env file in the working directory (local development)
#
# Field ``setlistfm_api_key`` maps to env var ``SETLISTFM_API_KEY``.
# Defaults apply when neither source sets a field.
#
# Empty credentials are legal here.  The provider that needs a credential
# checks for it at first use and raises ConfigurationError, so the service
# can still boot (and serve cached data) without every key configured.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Setlistify application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Upstream credentials ===
    setlistfm_api_key: str = ""
    spotify_client_id: str = ""
    spotify_client_secret: str = ""

    # === Cache ===
    cache_dir: str = ".cache"
    memory_cache_max_size: int = 2048

    # === HTTP ===
    http_timeout: float = 15.0  # seconds, per upstream call

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def get_configured_providers(self) -> list[str]:
        """Return the upstream providers whose credentials are present."""
        providers: list[str] = []
        if self.setlistfm_api_key:
            providers.append("setlistfm")
        if self.spotify_client_id and self.spotify_client_secret:
            providers.append("spotify")
        return providers
