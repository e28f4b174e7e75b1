"""Immutable value objects for the song request bounded context."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from song_request_queue.domain.shared.messages import ErrorMessages
from song_request_queue.domain.shared.types import NonEmptyStr, NonNegativeFloat, PositiveInt


def new_request_id() -> str:
    """Generate a fresh, opaque request id."""
    return uuid4().hex


class PriorityClass(Enum):
    """Queue priority of a request; elevated requests were paid for."""

    STANDARD = "standard"
    ELEVATED = "elevated"


class RequestStatus(Enum):
    QUEUED = "queued"
    ACTIVE = "active"
    ARCHIVED = "archived"
    REMOVED = "removed"


class FilterCategory(Enum):
    """Which resolved field a content filter is checked against."""

    TITLE = "title"
    ARTIST = "artist"
    KEYWORD = "keyword"  # title or artist


class DeclineReason(Enum):
    """Caller-visible reason codes for a declined submission."""

    BLOCKED = "blocked"
    OUTSTANDING_REQUEST = "outstanding_request"
    DURATION_EXCEEDED = "duration_exceeded"
    CONTENT_FILTERED = "content_filtered"
    DUPLICATE_SOURCE = "duplicate_source"
    INVALID_REFERENCE = "invalid_reference"
    RESOLUTION_FAILED = "resolution_failed"


class ContentFilter(BaseModel):
    """A forbidden term, matched case-insensitively as a substring."""

    model_config = ConfigDict(frozen=True, strict=True)

    term: NonEmptyStr
    category: FilterCategory

    @field_validator("term", mode="before")
    @classmethod
    def _normalize_term(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
            if not v:
                raise ValueError(ErrorMessages.EMPTY_FILTER_TERM)
        return v

    def matches(self, title: str, artist: str) -> bool:
        needle = self.term.casefold()
        match self.category:
            case FilterCategory.TITLE:
                return needle in title.casefold()
            case FilterCategory.ARTIST:
                return needle in artist.casefold()
            case FilterCategory.KEYWORD:
                return needle in title.casefold() or needle in artist.casefold()
        return False


class DonationInfo(BaseModel):
    """Payment details carried by an elevated submission."""

    model_config = ConfigDict(frozen=True, strict=True)

    amount: NonNegativeFloat
    currency: NonEmptyStr = "USD"


class RequesterTally(BaseModel):
    model_config = ConfigDict(frozen=True)

    requester_name: str
    request_count: PositiveInt


class SongTally(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    artist: str
    play_count: PositiveInt


class ArtistTally(BaseModel):
    model_config = ConfigDict(frozen=True)

    artist: str
    play_count: PositiveInt


class ArchiveStats(BaseModel):
    """All-time leaderboards over the archive, each sorted by count descending."""

    model_config = ConfigDict(frozen=True)

    top_requesters: list[RequesterTally] = Field(default_factory=list)
    top_songs: list[SongTally] = Field(default_factory=list)
    top_artists: list[ArtistTally] = Field(default_factory=list)
