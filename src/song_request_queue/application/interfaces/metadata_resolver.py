"""Port interface for resolving video references to canonical metadata."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from song_request_queue.domain.shared.datetime_utils import format_duration
from song_request_queue.domain.shared.types import (
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    TrackTitleStr,
    VideoIdStr,
)


class VideoMetadata(BaseModel):
    """Canonical description of a resolved video."""

    model_config = ConfigDict(frozen=True, strict=True)

    video_id: VideoIdStr
    source_url: HttpUrlStr
    title: TrackTitleStr
    artist: NonEmptyStr
    channel_id: str | None = None
    duration_seconds: DurationSeconds
    thumbnail_url: HttpUrlStr | None = None

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_seconds)


class MetadataResolver(ABC):
    """Interface for turning a user-supplied video reference into metadata.

    Implementations must reject unparsable references with
    ``ValidationError`` before any network I/O, and report lookup
    failures with ``ResolutionError``. Resolution is idempotent.
    """

    @abstractmethod
    def parse_reference(self, reference: str) -> str:
        """Extract the video id from a reference, or raise ``ValidationError``."""
        ...

    @abstractmethod
    async def resolve(self, reference: str) -> VideoMetadata:
        ...

    async def close(self) -> None:
        """Release network resources held by the resolver."""
        return None
