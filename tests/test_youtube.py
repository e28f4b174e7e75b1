"""
Tests for the YouTube metadata resolvers

Tests for:
- parse_video_id() across link shapes
- parse_iso_duration()
- YouTubeDataResolver against a mocked Data API
- YtDlpMetadataResolver with yt-dlp extraction patched out
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from pydantic import SecretStr
from yt_dlp.utils import DownloadError

from song_request_queue.config.settings import YouTubeSettings
from song_request_queue.domain.shared.exceptions import ResolutionError, ValidationError
from song_request_queue.infrastructure.youtube.references import (
    parse_iso_duration,
    parse_video_id,
)
from song_request_queue.infrastructure.youtube.youtube_resolver import YouTubeDataResolver
from song_request_queue.infrastructure.youtube.ytdlp_resolver import (
    YtDlpMetadataResolver,
    YtDlpVideoInfo,
)

VIDEO_ID = "dQw4w9WgXcQ"


# =============================================================================
# Reference parsing
# =============================================================================


class TestParseVideoId:
    @pytest.mark.parametrize(
        "reference",
        [
            f"https://www.youtube.com/watch?v={VIDEO_ID}",
            f"https://youtube.com/watch?feature=share&v={VIDEO_ID}&t=42",
            f"https://m.youtube.com/watch?v={VIDEO_ID}",
            f"https://music.youtube.com/watch?v={VIDEO_ID}&list=RD",
            f"https://youtu.be/{VIDEO_ID}?si=abc",
            f"https://www.youtube.com/embed/{VIDEO_ID}",
            f"https://www.youtube.com/shorts/{VIDEO_ID}",
            f"https://www.youtube.com/live/{VIDEO_ID}",
            f"youtube.com/watch?v={VIDEO_ID}",
            f"please play https://youtu.be/{VIDEO_ID} thanks",
            f"  {VIDEO_ID}  ",
        ],
    )
    def test_accepted_shapes(self, reference):
        assert parse_video_id(reference) == VIDEO_ID

    @pytest.mark.parametrize(
        "reference",
        [
            "",
            "   ",
            "never gonna give you up",
            "https://vimeo.com/123456",
            "https://www.youtube.com/watch?v=short",
            f"https://www.youtube.com/watch?v={VIDEO_ID}XYZ",
        ],
    )
    def test_rejected_shapes(self, reference):
        with pytest.raises(ValidationError) as exc_info:
            parse_video_id(reference)
        assert exc_info.value.field == "source_ref"


class TestParseIsoDuration:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("PT3M33S", 213),
            ("PT1H2M3S", 3723),
            ("PT45S", 45),
            ("PT10M", 600),
            ("P1DT1S", 86_401),
            ("P0D", 0),
            ("PT0S", 0),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_iso_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "3:33", "1H", "PT1.5S"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_iso_duration(value)


# =============================================================================
# Data API resolver
# =============================================================================


def _video_payload(**snippet_overrides):
    snippet = {
        "title": "Rick Astley - Never Gonna Give You Up (Official Music Video)",
        "channelTitle": "Rick Astley",
        "channelId": "UCuAXFkgsw1L7xaCfnd5JJOw",
        "thumbnails": {
            "default": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg"},
            "high": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"},
        },
    }
    snippet.update(snippet_overrides)
    return {
        "items": [
            {"id": VIDEO_ID, "snippet": snippet, "contentDetails": {"duration": "PT3M33S"}}
        ]
    }


def _resolver(handler) -> YouTubeDataResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YouTubeDataResolver(YouTubeSettings(api_key=SecretStr("test-key")), client=client)


class TestYouTubeDataResolver:
    @pytest.mark.asyncio
    async def test_resolves_metadata(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=_video_payload())

        metadata = await _resolver(handler).resolve(f"https://youtu.be/{VIDEO_ID}")

        assert seen["params"]["id"] == VIDEO_ID
        assert seen["params"]["part"] == "snippet,contentDetails"
        assert seen["params"]["key"] == "test-key"
        assert metadata.video_id == VIDEO_ID
        assert metadata.source_url == f"https://www.youtube.com/watch?v={VIDEO_ID}"
        assert metadata.artist == "Rick Astley"
        assert metadata.duration_seconds == 213
        assert metadata.thumbnail_url.endswith("hqdefault.jpg")

    @pytest.mark.asyncio
    async def test_missing_thumbnails_use_fallback(self):
        def handler(request):
            return httpx.Response(200, json=_video_payload(thumbnails={}))

        metadata = await _resolver(handler).resolve(VIDEO_ID)
        assert metadata.thumbnail_url == f"https://img.youtube.com/vi/{VIDEO_ID}/0.jpg"

    @pytest.mark.asyncio
    async def test_blank_channel_uses_placeholder(self):
        def handler(request):
            return httpx.Response(200, json=_video_payload(channelTitle=""))

        metadata = await _resolver(handler).resolve(VIDEO_ID)
        assert metadata.artist == "Unknown Channel"

    @pytest.mark.asyncio
    async def test_no_items_is_not_found(self):
        def handler(request):
            return httpx.Response(200, json={"items": []})

        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(handler).resolve(VIDEO_ID)
        assert exc_info.value.reason == ResolutionError.NOT_FOUND

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_error(self):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        with pytest.raises(ResolutionError) as exc_info:
            await _resolver(handler).resolve(VIDEO_ID)
        assert exc_info.value.reason == ResolutionError.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_invalid_reference_makes_no_request(self):
        handler = MagicMock()

        with pytest.raises(ValidationError):
            await _resolver(handler).resolve("not a video")
        handler.assert_not_called()


# =============================================================================
# yt-dlp resolver
# =============================================================================


class TestYtDlpVideoInfo:
    def test_coerces_garbage(self):
        info = YtDlpVideoInfo.model_validate(
            {"id": "  ", "title": 5, "duration": "abc", "channel": " Chan "}
        )
        assert info.id is None
        assert info.title is None
        assert info.duration is None
        assert info.channel == "Chan"

    def test_negative_duration_dropped(self):
        assert YtDlpVideoInfo.model_validate({"duration": -3}).duration is None


class TestYtDlpMetadataResolver:
    @pytest.mark.asyncio
    async def test_resolves_metadata(self):
        resolver = YtDlpMetadataResolver()
        info = YtDlpVideoInfo(
            id=VIDEO_ID,
            title="Never Gonna Give You Up",
            uploader="RickAstleyVEVO",
            duration=213,
            thumbnail="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        )

        with patch.object(resolver, "_extract_info_sync", return_value=info) as extract:
            metadata = await resolver.resolve(f"https://youtu.be/{VIDEO_ID}")

        extract.assert_called_once_with(f"https://www.youtube.com/watch?v={VIDEO_ID}")
        assert metadata.artist == "RickAstleyVEVO"
        assert metadata.duration_seconds == 213
        assert metadata.thumbnail_url.startswith("https://")

    @pytest.mark.asyncio
    async def test_unavailable_video_is_not_found(self):
        resolver = YtDlpMetadataResolver()
        error = DownloadError("ERROR: [youtube] dQw4w9WgXcQ: Video unavailable")

        with patch.object(resolver, "_extract_info_sync", side_effect=error):
            with pytest.raises(ResolutionError) as exc_info:
                await resolver.resolve(VIDEO_ID)
        assert exc_info.value.reason == ResolutionError.NOT_FOUND

    @pytest.mark.asyncio
    async def test_other_download_error_is_upstream_error(self):
        resolver = YtDlpMetadataResolver()
        error = DownloadError("ERROR: Unable to download webpage: timed out")

        with patch.object(resolver, "_extract_info_sync", side_effect=error):
            with pytest.raises(ResolutionError) as exc_info:
                await resolver.resolve(VIDEO_ID)
        assert exc_info.value.reason == ResolutionError.UPSTREAM_ERROR

    def test_extract_info_uses_youtube_dl(self):
        resolver = YtDlpMetadataResolver()
        ydl = MagicMock()
        ydl.__enter__.return_value = ydl
        ydl.extract_info.return_value = {"id": VIDEO_ID, "title": "Song", "duration": 10}

        with patch(
            "song_request_queue.infrastructure.youtube.ytdlp_resolver.YoutubeDL",
            return_value=ydl,
        ) as youtube_dl:
            info = resolver._extract_info_sync("https://www.youtube.com/watch?v=x")

        assert info.title == "Song"
        params = youtube_dl.call_args.kwargs["params"]
        assert params["skip_download"] is True
        assert params["noplaylist"] is True
