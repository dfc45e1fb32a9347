"""Abstract base classes for the setlist collaborators.

Two contracts, usually implemented by the same adapter:

- :class:`IArtistSearchProvider` maps a free-text name to candidate artists
  that carry a canonical identifier.
- :class:`IPerformanceProvider` lists an artist's live performances one
  page at a time, newest first.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.interfaces.upstream import UpstreamResponse
from src.models.artist import ArtistCandidate
from src.models.setlist import PerformancePage


class IArtistSearchProvider(ABC):
    """Contract for upstream artist search."""

    @abstractmethod
    async def search_artists(self, name: str) -> UpstreamResponse[list[ArtistCandidate]]:
        """Search for artists matching *name*.

        Candidates without a canonical identifier must already be filtered
        out.  Upstream relevance order is preserved.

        Raises
        ------
        src.utils.errors.ConfigurationError
            If the provider has no API credentials.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"setlistfm"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""


class IPerformanceProvider(ABC):
    """Contract for paginated live-performance listings."""

    @abstractmethod
    async def list_performances(
        self, canonical_id: str, page: int = 1
    ) -> UpstreamResponse[PerformancePage]:
        """Fetch one page of performances for the artist *canonical_id*.

        Parameters
        ----------
        canonical_id:
            Canonical artist identifier (MusicBrainz id).
        page:
            1-indexed page number.

        Raises
        ------
        src.utils.errors.ConfigurationError
            If the provider has no API credentials.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"setlistfm"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
