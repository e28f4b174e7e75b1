"""MetadataResolver implementation backed by the YouTube Data API v3."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from song_request_queue.application.interfaces.metadata_resolver import (
    MetadataResolver,
    VideoMetadata,
)
from song_request_queue.config.settings import YouTubeSettings
from song_request_queue.domain.shared.constants import ExternalUrls
from song_request_queue.domain.shared.exceptions import ResolutionError
from song_request_queue.domain.shared.messages import ErrorMessages, LogTemplates
from song_request_queue.infrastructure.youtube.references import (
    canonical_url,
    parse_iso_duration,
    parse_video_id,
)

logger = logging.getLogger(__name__)

THUMBNAIL_PREFERENCE: Final[tuple[str, ...]] = ("maxres", "high", "medium", "default")
UNKNOWN_CHANNEL: Final[str] = "Unknown Channel"


# ── Pydantic models for API payloads ───────────────────────────────────


class Thumbnail(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str | None = None


class Snippet(BaseModel):
    """Trimmed ``snippet`` part of a video resource."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    title: str = ""
    channel_title: str = Field(default="", alias="channelTitle")
    channel_id: str | None = Field(default=None, alias="channelId")
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)

    @field_validator("title", "channel_title", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""


class ContentDetails(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    duration: str = "PT0S"


class VideoResource(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    content_details: ContentDetails = Field(
        default_factory=ContentDetails, alias="contentDetails"
    )


class VideoListResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    items: list[VideoResource] = Field(default_factory=list)


def best_thumbnail(video_id: str, thumbnails: dict[str, Thumbnail]) -> str:
    for size in THUMBNAIL_PREFERENCE:
        thumbnail = thumbnails.get(size)
        if thumbnail is not None and thumbnail.url:
            return thumbnail.url
    return ExternalUrls.YOUTUBE_THUMBNAIL_FALLBACK.format(video_id=video_id)


class YouTubeDataResolver(MetadataResolver):
    """Resolves videos with one ``videos.list`` call (snippet + contentDetails)."""

    def __init__(
        self,
        settings: YouTubeSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or YouTubeSettings()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=ExternalUrls.YOUTUBE_API_BASE, timeout=self._settings.timeout_s
            )
        return self._client

    def parse_reference(self, reference: str) -> str:
        return parse_video_id(reference)

    async def resolve(self, reference: str) -> VideoMetadata:
        video_id = self.parse_reference(reference)
        logger.debug(LogTemplates.RESOLVER_LOOKUP, video_id)

        try:
            response = await self._get_client().get(
                f"{ExternalUrls.YOUTUBE_API_BASE}/videos",
                params={
                    "id": video_id,
                    "part": "snippet,contentDetails",
                    "key": self._settings.api_key.get_secret_value(),
                },
            )
            response.raise_for_status()
            payload = VideoListResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(LogTemplates.RESOLVER_FAILED, video_id, e)
            raise ResolutionError(
                ResolutionError.UPSTREAM_ERROR,
                ErrorMessages.VIDEO_LOOKUP_FAILED.format(error=e),
            ) from e

        if not payload.items:
            raise ResolutionError(ResolutionError.NOT_FOUND, ErrorMessages.VIDEO_NOT_FOUND)

        return self._to_metadata(payload.items[0], video_id)

    @staticmethod
    def _to_metadata(item: VideoResource, video_id: str) -> VideoMetadata:
        snippet = item.snippet
        try:
            return VideoMetadata(
                video_id=video_id,
                source_url=canonical_url(video_id),
                title=snippet.title or video_id,
                artist=snippet.channel_title or UNKNOWN_CHANNEL,
                channel_id=snippet.channel_id,
                duration_seconds=parse_iso_duration(item.content_details.duration),
                thumbnail_url=best_thumbnail(video_id, snippet.thumbnails),
            )
        except ValueError as e:
            raise ResolutionError(ResolutionError.UPSTREAM_ERROR, str(e)) from e

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
