"""Custom exception hierarchy for setlistify.

All application exceptions inherit from :class:`SetlistifyError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream collaborator (e.g. "setlistfm", "spotify", "file_cache") caused the
failure.

The hierarchy is organized by pipeline concern:

    SetlistifyError  (base -- catch-all for any setlistify error)
    +-- ConfigurationError          (missing credentials / bad config)
    +-- UpstreamError               (transport or HTTP failure of a collaborator)
    +-- ArtistResolutionError       (artist search returned non-success)
    +-- CacheError                  (durable cache tier I/O failure)
    +-- PipelineError               (orchestration misuse)
    +-- ForbiddenInProductionError  (admin operation attempted in production)

Only :class:`ConfigurationError` is meant to escape a generation run.
Upstream failures are degraded to empty results by the services; the
exceptions exist so the boundary code can say *why* a result is empty.
"""


class SetlistifyError(Exception):
    """Base exception for all setlistify errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    ``__str__`` prefixes the provider name in brackets, e.g.
    ``[spotify] Token request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(SetlistifyError):
    """Raised when configuration is invalid or credentials are missing.

    Fatal: surfaced immediately to the caller and never retried.
    """

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream collaborators
# ---------------------------------------------------------------------------

class UpstreamError(SetlistifyError):
    """Raised when an upstream HTTP call fails or returns a non-success status."""

    def __init__(
        self,
        message: str = "Upstream service call failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._status_code = status_code
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code


class ArtistResolutionError(SetlistifyError):
    """Raised when the artist search collaborator answers with a non-success response."""

    def __init__(
        self,
        message: str = "Artist resolution failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Cache / orchestration
# ---------------------------------------------------------------------------

class CacheError(SetlistifyError):
    """Raised by a cache tier when its storage cannot be read or written."""

    def __init__(
        self,
        message: str = "Cache storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(SetlistifyError):
    """Raised when the playlist generation pipeline is misused."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ForbiddenInProductionError(SetlistifyError):
    """Raised when an administrative cache operation is invoked in production."""

    def __init__(
        self,
        message: str = "Operation is forbidden in production",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
