"""MetadataResolver implementation using yt-dlp, for deployments without an API key."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final, cast

from pydantic import BaseModel, ConfigDict, field_validator
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from song_request_queue.application.interfaces.metadata_resolver import (
    MetadataResolver,
    VideoMetadata,
)
from song_request_queue.config.settings import YouTubeSettings
from song_request_queue.domain.shared.exceptions import ResolutionError
from song_request_queue.domain.shared.messages import ErrorMessages, LogTemplates
from song_request_queue.domain.shared.types import NonNegativeInt, PositiveInt
from song_request_queue.infrastructure.youtube.references import canonical_url, parse_video_id
from song_request_queue.infrastructure.youtube.youtube_resolver import UNKNOWN_CHANNEL

logger = logging.getLogger(__name__)

DEFAULT_RETRIES: Final[int] = 3
_NOT_FOUND_MARKERS: Final[tuple[str, ...]] = (
    "video unavailable",
    "private video",
    "does not exist",
    "has been removed",
)


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpVideoInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Extra fields from yt-dlp are silently ignored. Before-validators coerce
    garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    title: str | None = None
    channel: str | None = None
    uploader: str | None = None
    channel_id: str | None = None
    duration: NonNegativeInt | None = None
    thumbnail: str | None = None

    @field_validator(
        "id", "title", "channel", "uploader", "channel_id", "thumbnail", mode="before"
    )
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to non-negative int; return None for garbage values."""
        if v is None:
            return None
        try:
            val = int(v)
            return val if val >= 0 else None
        except (TypeError, ValueError):
            return None


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    skip_download: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = 10


def _is_http_url(value: str | None) -> bool:
    return value is not None and value.startswith(("http://", "https://"))


class YtDlpMetadataResolver(MetadataResolver):

    def __init__(self, settings: YouTubeSettings | None = None) -> None:
        self._settings = settings or YouTubeSettings()
        self._opts = YtDlpOpts(socket_timeout=max(1, int(self._settings.timeout_s)))

    def parse_reference(self, reference: str) -> str:
        return parse_video_id(reference)

    def _extract_info_sync(self, url: str) -> YtDlpVideoInfo:
        with YoutubeDL(params=cast(Any, self._opts.model_dump())) as ydl:
            data = ydl.extract_info(url, download=False)
        if not isinstance(data, dict):
            raise ResolutionError(ResolutionError.NOT_FOUND, ErrorMessages.VIDEO_NOT_FOUND)
        return YtDlpVideoInfo.model_validate(dict(data))

    async def resolve(self, reference: str) -> VideoMetadata:
        video_id = self.parse_reference(reference)
        url = canonical_url(video_id)
        logger.debug(LogTemplates.RESOLVER_LOOKUP, video_id)

        try:
            info = await asyncio.to_thread(self._extract_info_sync, url)
        except DownloadError as e:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            message = str(e).lower()
            if any(marker in message for marker in _NOT_FOUND_MARKERS):
                raise ResolutionError(
                    ResolutionError.NOT_FOUND, ErrorMessages.VIDEO_NOT_FOUND
                ) from e
            raise ResolutionError(
                ResolutionError.UPSTREAM_ERROR,
                ErrorMessages.VIDEO_LOOKUP_FAILED.format(error=e),
            ) from e

        try:
            return VideoMetadata(
                video_id=video_id,
                source_url=url,
                title=info.title or video_id,
                artist=info.channel or info.uploader or UNKNOWN_CHANNEL,
                channel_id=info.channel_id,
                duration_seconds=info.duration or 0,
                thumbnail_url=info.thumbnail if _is_http_url(info.thumbnail) else None,
            )
        except ValueError as e:
            raise ResolutionError(ResolutionError.UPSTREAM_ERROR, str(e)) from e
