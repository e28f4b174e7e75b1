"""Port interface for the secondary music catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.requests.entities import MatchedTrack


class TrackCatalog(ABC):
    """Interface for searching and looking up catalog tracks.

    Methods raise ``CatalogLookupError`` on failure.
    """

    @property
    def enabled(self) -> bool:
        return True

    @abstractmethod
    async def search(self, query: str, limit: int = 5) -> list[MatchedTrack]:
        """Search tracks; returned descriptors carry no score."""
        ...

    @abstractmethod
    async def get_track(self, track_id: str) -> MatchedTrack | None:
        ...

    @abstractmethod
    def extract_track_id(self, url: str) -> str | None:
        """Extract a catalog track id from a share link."""
        ...

    async def close(self) -> None:
        return None
