"""Core domain entities for the song request bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from song_request_queue.domain.requests.value_objects import (
    ContentFilter,
    DonationInfo,
    PriorityClass,
    RequestStatus,
    new_request_id,
)
from song_request_queue.domain.shared.datetime_utils import format_duration, utcnow
from song_request_queue.domain.shared.types import (
    DurationCeilingSeconds,
    DurationSeconds,
    HttpUrlStr,
    LoginStr,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
    UnitInterval,
    UtcDatetimeField,
    VideoIdStr,
)


class Requester(BaseModel):
    """The audience member a request belongs to."""

    model_config = ConfigDict(frozen=True, strict=True)

    display_name: NonEmptyStr
    login: LoginStr | None = None
    avatar_url: HttpUrlStr | None = None

    @property
    def identity_key(self) -> str:
        """Case-insensitive key used for blocking and per-requester limits."""
        return (self.login or self.display_name).casefold()

    def is_identified_by(self, handle: str) -> bool:
        handle = handle.strip().casefold()
        if not handle:
            return False
        if self.login and self.login.casefold() == handle:
            return True
        return self.display_name.casefold() == handle


class MatchedTrack(BaseModel):
    """Descriptor of the equivalent track found on the secondary catalog."""

    model_config = ConfigDict(frozen=True, strict=True)

    catalog_id: NonEmptyStr
    name: NonEmptyStr
    performers: tuple[str, ...] = ()
    album_name: str | None = None
    album_image_url: HttpUrlStr | None = None
    duration_ms: NonNegativeInt | None = None
    external_url: HttpUrlStr | None = None
    has_preview: bool = False
    score: UnitInterval | None = None

    @property
    def performer_names(self) -> str:
        return ", ".join(self.performers)


class SongRequest(BaseModel):
    """A resolved, admitted song request.

    Instances are immutable; every state change produces a copy through
    ``model_copy`` so snapshots handed to listeners never change under them.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    id: NonEmptyStr = Field(default_factory=new_request_id)
    video_id: VideoIdStr
    source_url: HttpUrlStr
    title: TrackTitleStr
    artist: NonEmptyStr
    channel_id: str | None = None
    duration_seconds: DurationSeconds
    thumbnail_url: HttpUrlStr | None = None

    requester: Requester
    priority: PriorityClass = PriorityClass.STANDARD
    submitted_at: UtcDatetimeField = Field(default_factory=utcnow)
    status: RequestStatus = RequestStatus.QUEUED

    match: MatchedTrack | None = None
    bypassed: bool = False
    donation: DonationInfo | None = None
    archived_at: UtcDatetimeField | None = None

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_seconds)

    @property
    def is_elevated(self) -> bool:
        return self.priority is PriorityClass.ELEVATED

    def was_requested_by(self, handle: str) -> bool:
        return self.requester.is_identified_by(handle)

    def activated(self) -> SongRequest:
        return self.model_copy(update={"status": RequestStatus.ACTIVE})

    def archived(self) -> SongRequest:
        return self.model_copy(
            update={"status": RequestStatus.ARCHIVED, "archived_at": utcnow()}
        )

    def removed(self) -> SongRequest:
        return self.model_copy(update={"status": RequestStatus.REMOVED})

    def with_match(self, match: MatchedTrack | None) -> SongRequest:
        return self.model_copy(update={"match": match})

    def requeued(self) -> SongRequest:
        """Return a brand-new queued request seeded from this one's metadata.

        The copy is marked ``bypassed``: putting a request back is an operator
        override of the normal eligibility rules.
        """
        return self.model_copy(
            update={
                "id": new_request_id(),
                "submitted_at": utcnow(),
                "status": RequestStatus.QUEUED,
                "archived_at": None,
                "bypassed": True,
            }
        )


class EligibilityPolicy(BaseModel):
    """Current block-list, content filters and per-class duration ceilings."""

    model_config = ConfigDict(frozen=True, strict=True)

    blocked: frozenset[str] = frozenset()
    filters: frozenset[ContentFilter] = frozenset()
    standard_max_duration: DurationCeilingSeconds = 300
    elevated_max_duration: DurationCeilingSeconds = 600

    def ceiling_for(self, priority: PriorityClass) -> int:
        if priority is PriorityClass.ELEVATED:
            return self.elevated_max_duration
        return self.standard_max_duration

    def is_blocked(self, requester: Requester) -> bool:
        names = {requester.display_name.casefold()}
        if requester.login:
            names.add(requester.login.casefold())
        return any(name in self.blocked for name in names)

    def matching_filter(self, title: str, artist: str) -> ContentFilter | None:
        for content_filter in sorted(self.filters, key=lambda f: (f.category.value, f.term)):
            if content_filter.matches(title, artist):
                return content_filter
        return None


class QueueState(BaseModel):
    """Aggregate holding the ordered queue and the active slot.

    Owned by the lifecycle coordinator; nothing else mutates it.
    """

    model_config = ConfigDict(strict=True)

    queue: list[SongRequest] = Field(default_factory=list)
    active: SongRequest | None = None

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def total_duration_seconds(self) -> int:
        return sum(r.duration_seconds for r in self.queue)

    def index_of(self, request_id: str) -> int | None:
        for i, request in enumerate(self.queue):
            if request.id == request_id:
                return i
        return None

    def get(self, request_id: str) -> SongRequest | None:
        index = self.index_of(request_id)
        return self.queue[index] if index is not None else None

    def pop(self, request_id: str) -> SongRequest | None:
        index = self.index_of(request_id)
        if index is None:
            return None
        return self.queue.pop(index)

    def contains_video(self, video_id: str) -> bool:
        return any(r.video_id == video_id for r in self.queue)

    def has_outstanding(self, requester: Requester) -> bool:
        """True when the requester already has a request waiting in the queue."""
        handles = [requester.display_name]
        if requester.login:
            handles.append(requester.login)
        return any(
            request.was_requested_by(handle) for request in self.queue for handle in handles
        )

    def snapshot(self) -> tuple[SongRequest, ...]:
        return tuple(self.queue)
