"""Query for all-time leaderboards over the archive."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from song_request_queue.domain.shared.types import PositiveInt

if TYPE_CHECKING:
    from ...domain.requests.repository import RequestStore
    from ...domain.requests.value_objects import ArchiveStats


class GetArchiveStatsQuery(BaseModel):
    """Entries seen fewer than ``min_count`` times are omitted from every list."""

    model_config = ConfigDict(frozen=True)

    limit: PositiveInt = 20
    min_count: PositiveInt = 2


class GetArchiveStatsHandler:

    def __init__(self, *, request_store: RequestStore) -> None:
        self._store = request_store

    async def handle(self, query: GetArchiveStatsQuery) -> ArchiveStats:
        return await self._store.archive_stats(limit=query.limit, min_count=query.min_count)
