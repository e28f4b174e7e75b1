"""Query for listing recently archived requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from song_request_queue.domain.requests.entities import SongRequest
from song_request_queue.domain.shared.types import PositiveInt

if TYPE_CHECKING:
    from ...domain.requests.repository import RequestStore


class GetArchiveQuery(BaseModel):
    """``limit`` of None falls back to the configured page size."""

    model_config = ConfigDict(frozen=True)

    limit: PositiveInt | None = None


class ArchiveInfo(BaseModel):
    requests: list[SongRequest] = Field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.requests)

    @property
    def is_empty(self) -> bool:
        return len(self.requests) == 0


class GetArchiveHandler:

    def __init__(self, *, request_store: RequestStore, default_limit: int = 50) -> None:
        self._store = request_store
        self._default_limit = default_limit

    async def handle(self, query: GetArchiveQuery) -> ArchiveInfo:
        limit = query.limit or self._default_limit
        return ArchiveInfo(requests=await self._store.list_archive(limit))
