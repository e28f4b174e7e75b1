"""Parsing of user-supplied YouTube references and API duration strings."""

from __future__ import annotations

import re
from typing import Final

from song_request_queue.domain.shared.constants import ExternalUrls
from song_request_queue.domain.shared.exceptions import ValidationError
from song_request_queue.domain.shared.messages import ErrorMessages

_VIDEO_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:[^#\s]*&)?v=|embed/|shorts/|live/|v/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])",
    re.IGNORECASE,
)
_BARE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]{11}$")
_ISO_DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$"
)


def parse_video_id(reference: str) -> str:
    """Extract an 11-character video id from a URL, a bare id, or text containing a URL.

    Accepts watch, short-link, embed, shorts and live URLs on any YouTube
    host (www., m., music.).

    Raises:
        ValidationError: If no video id can be found.
    """
    text = reference.strip()
    if not text:
        raise ValidationError(ErrorMessages.EMPTY_SOURCE_REFERENCE, field="source_ref")

    match = _VIDEO_URL_PATTERN.search(text)
    if match:
        return match.group(1)

    if _BARE_ID_PATTERN.match(text):
        return text

    raise ValidationError(
        ErrorMessages.INVALID_SOURCE_REFERENCE.format(reference=text[:100]),
        field="source_ref",
    )


def canonical_url(video_id: str) -> str:
    return ExternalUrls.YOUTUBE_WATCH.format(video_id=video_id)


def parse_iso_duration(value: str) -> int:
    """Convert an ISO-8601 duration such as ``PT1H2M3S`` to seconds.

    Missing components count as zero.

    Raises:
        ValueError: If the string is not a compact ISO-8601 duration.
    """
    match = _ISO_DURATION_PATTERN.match(value.strip())
    if not match:
        raise ValueError(ErrorMessages.INVALID_ISO_DURATION.format(value=value))

    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return ((days * 24 + hours) * 60 + minutes) * 60 + seconds
