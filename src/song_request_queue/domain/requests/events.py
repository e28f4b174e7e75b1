"""Domain events for the song request bounded context.

Every event is published only after the state change it describes has
been written to the store.
"""

from __future__ import annotations

from pydantic import Field

from song_request_queue.domain.requests.entities import (
    MatchedTrack,
    Requester,
    SongRequest,
)
from song_request_queue.domain.requests.value_objects import (
    ContentFilter,
    DeclineReason,
    PriorityClass,
)
from song_request_queue.domain.shared.events import DomainEvent
from song_request_queue.domain.shared.types import NonEmptyStr, PositiveInt


class QueueChanged(DomainEvent):
    """The ordered queue was replaced; carries the full new sequence."""

    requests: tuple[SongRequest, ...] = ()


class ActiveChanged(DomainEvent):
    request: SongRequest | None = None


class ArchiveAppended(DomainEvent):
    request: SongRequest


class ArchiveChanged(DomainEvent):
    """Archive entries were deleted by an operator."""

    removed_ids: tuple[str, ...] = ()
    cleared: bool = False


class SubmissionAccepted(DomainEvent):
    request: SongRequest
    position: PositiveInt


class SubmissionDeclined(DomainEvent):
    requester: Requester
    source_ref: str
    reason: DeclineReason
    message: NonEmptyStr


class EnrichmentAttached(DomainEvent):
    request_id: NonEmptyStr
    match: MatchedTrack | None = None


class EligibilityChanged(DomainEvent):
    blocked: frozenset[str] = Field(default_factory=frozenset)
    filters: frozenset[ContentFilter] = Field(default_factory=frozenset)
    ceilings: dict[PriorityClass, int] = Field(default_factory=dict)
