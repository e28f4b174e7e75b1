"""
Request Domain Repository Interfaces

Abstract base classes defining the contracts for data persistence.
Implementations live in the infrastructure layer and raise
``PersistenceError`` when a read or write cannot be completed.
"""

from abc import ABC, abstractmethod
from typing import Any

from song_request_queue.domain.requests.entities import QueueState, SongRequest
from song_request_queue.domain.requests.value_objects import ArchiveStats, ContentFilter


class RequestStore(ABC):
    """Durable store for the queue, the active slot and the archive."""

    @abstractmethod
    async def load_state(self) -> QueueState:
        """Load the queue (in position order) and the active request."""
        ...

    @abstractmethod
    async def save_queue(self, requests: list[SongRequest]) -> None:
        """Replace the whole persisted queue in one transaction.

        Args:
            requests: The queue in order; positions are assigned from it.
        """
        ...

    @abstractmethod
    async def save_active(self, request: SongRequest | None) -> None:
        """Persist the active slot, clearing it when ``request`` is None."""
        ...

    @abstractmethod
    async def append_archive(self, request: SongRequest) -> None:
        """Append a finished request to the archive."""
        ...

    @abstractmethod
    async def list_archive(self, limit: int | None = None) -> list[SongRequest]:
        """Return archived requests, most recent first."""
        ...

    @abstractmethod
    async def get_archived(self, request_id: str) -> SongRequest | None:
        ...

    @abstractmethod
    async def delete_archived(self, request_id: str) -> bool:
        """Delete one archive entry.

        Returns:
            True if an entry was deleted, False if none matched.
        """
        ...

    @abstractmethod
    async def clear_archive(self) -> int:
        """Delete every archive entry and return how many were removed."""
        ...

    @abstractmethod
    async def archive_stats(self, limit: int = 20, min_count: int = 2) -> ArchiveStats:
        """Aggregate the archive into top requesters, songs and artists.

        Args:
            limit: Maximum entries per leaderboard.
            min_count: Entries archived fewer times than this are left out.
        """
        ...


class EligibilityStore(ABC):
    """Durable store for block-list, content filters and tunable settings."""

    @abstractmethod
    async def list_blocked(self) -> set[str]:
        ...

    @abstractmethod
    async def add_blocked(self, login: str) -> bool:
        """Block a login. Returns False if it was already blocked."""
        ...

    @abstractmethod
    async def remove_blocked(self, login: str) -> bool:
        """Unblock a login. Returns False if it was not blocked."""
        ...

    @abstractmethod
    async def list_filters(self) -> set[ContentFilter]:
        ...

    @abstractmethod
    async def add_filter(self, content_filter: ContentFilter) -> bool:
        ...

    @abstractmethod
    async def remove_filter(self, content_filter: ContentFilter) -> bool:
        ...

    @abstractmethod
    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Read a JSON-encoded setting value."""
        ...

    @abstractmethod
    async def set_setting(self, key: str, value: Any) -> None:
        ...
