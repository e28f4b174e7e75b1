"""Query for retrieving the current queue and active request."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from song_request_queue.domain.shared.datetime_utils import format_duration

from ..services.lifecycle_coordinator import QueueSnapshot

if TYPE_CHECKING:
    from ..services.lifecycle_coordinator import LifecycleCoordinator


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)


class QueueInfo(QueueSnapshot):

    @property
    def is_empty(self) -> bool:
        return not self.queue

    @property
    def total_duration_formatted(self) -> str:
        return format_duration(self.total_duration_seconds)


class GetQueueHandler:

    def __init__(self, *, coordinator: LifecycleCoordinator) -> None:
        self._coordinator = coordinator

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        snapshot = await self._coordinator.snapshot()
        return QueueInfo(
            queue=snapshot.queue,
            active=snapshot.active,
            total_duration_seconds=snapshot.total_duration_seconds,
        )
