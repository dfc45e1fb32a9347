"""Abstract base class for the music catalog search collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.interfaces.upstream import UpstreamResponse
from src.models.track import TrackSummary


class ICatalogSearchProvider(ABC):
    """Contract for catalog track search.

    The query string uses the catalog's field filter syntax, e.g.
    ``track:creep artist:radiohead`` or ``artist:"Nick Cave"``; the
    services build these strings, providers only transport them.
    """

    @abstractmethod
    async def search_tracks(self, query: str, limit: int) -> UpstreamResponse[list[TrackSummary]]:
        """Run a track search.

        Parameters
        ----------
        query:
            Search expression.
        limit:
            Maximum number of results (1-50).

        Returns
        -------
        UpstreamResponse[list[TrackSummary]]
            Hits in upstream order.

        Raises
        ------
        src.utils.errors.ConfigurationError
            If client credentials are not configured.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"spotify"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
