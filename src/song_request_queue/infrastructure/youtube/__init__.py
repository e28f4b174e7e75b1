"""YouTube infrastructure - Data API and yt-dlp metadata resolvers."""

from song_request_queue.infrastructure.youtube.references import (
    parse_iso_duration,
    parse_video_id,
)
from song_request_queue.infrastructure.youtube.youtube_resolver import YouTubeDataResolver
from song_request_queue.infrastructure.youtube.ytdlp_resolver import YtDlpMetadataResolver

__all__ = [
    "YouTubeDataResolver",
    "YtDlpMetadataResolver",
    "parse_iso_duration",
    "parse_video_id",
]
