"""Pure-function utilities for parsing and cleaning video titles."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

# ── Precompiled patterns ────────────────────────────────────────────────

_BRACKETED: Final[re.Pattern[str]] = re.compile(r"\([^)]*\)|\[[^\]]*\]|【[^】]*】")

_MARKETING_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"official\s*(?:music\s*)?(?:video|audio)", re.IGNORECASE),
    re.compile(r"\blyrics?(?:\s*video)?\b", re.IGNORECASE),
    re.compile(r"\bvisuali[sz]er\b", re.IGNORECASE),
    re.compile(r"\bremaster(?:ed)?\b", re.IGNORECASE),
    re.compile(r"\b(?:audio|track|version)\b", re.IGNORECASE),
    re.compile(r"\b(?:hd|hq|4k)\b", re.IGNORECASE),
]

_FEATURING: Final[re.Pattern[str]] = re.compile(r"\b(?:ft|feat|featuring)\b\.?", re.IGNORECASE)
_QUOTES: Final[re.Pattern[str]] = re.compile(r"[\"'“”‘’]")
_TOPIC_SUFFIX: Final[re.Pattern[str]] = re.compile(r"\s*-\s*topic$", re.IGNORECASE)
_SEPARATOR_PUNCTUATION: Final[re.Pattern[str]] = re.compile(r"\s*[|＊・:\-–—]\s*")
_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")

# A plain hyphen only separates when spaced, so "Jay-Z" stays whole.
_DASH_SPLIT: Final[re.Pattern[str]] = re.compile(r"^(.*?)(?:\s+-\s+|\s*[–—]\s*)(.*)$")
_PIPE_SPLIT: Final[re.Pattern[str]] = re.compile(r"^(.*?)\s*\|\s*(.*)$")
_BY_SPLIT: Final[re.Pattern[str]] = re.compile(r"^(.*?)\s+by\s+(.*?)$", re.IGNORECASE)
_QUOTED_TITLE: Final[re.Pattern[str]] = re.compile(r"^([\w\s]+?)\s+[\"“]([^\"“”]+)[\"”]")

_TOPIC_MARKER: Final[re.Pattern[str]] = re.compile(r"\s*-\s*topic\s*$", re.IGNORECASE)

# Channel names containing any of these are labels or aggregators, not artists.
_GENERIC_CHANNEL_WORDS: Final[tuple[str, ...]] = (
    "vevo",
    "official",
    "music",
    "records",
    "channel",
    "label",
    "audio",
    "video",
)


@dataclass(frozen=True, slots=True)
class TitleCandidates:
    """Artist/title interpretations of a video title.

    ``artist`` and ``title`` are the primary reading ("Artist - Title");
    the swapped pair covers "Title - Artist". Empty strings mean the
    interpretation is unavailable.
    """

    artist: str
    title: str
    swapped_artist: str = ""
    swapped_title: str = ""
    cleaned_title: str = ""

    @property
    def has_swap(self) -> bool:
        return bool(self.swapped_artist and self.swapped_title) and (
            self.swapped_artist != self.artist or self.swapped_title != self.title
        )


def is_topic_channel(channel: str) -> bool:
    """True for auto-generated catalog channels such as "Artist - Topic"."""
    return bool(_TOPIC_MARKER.search(channel))


def strip_topic_marker(channel: str) -> str:
    return _TOPIC_MARKER.sub("", channel).strip()


def clean_title(title: str) -> str:
    """Strip annotations and marketing noise from a title for catalog search."""
    result = _BRACKETED.sub(" ", title)
    for pattern in _MARKETING_PATTERNS:
        result = pattern.sub(" ", result)
    result = _FEATURING.sub("feat", result)
    result = _QUOTES.sub("", result)
    result = _TOPIC_SUFFIX.sub("", result.strip())
    result = _SEPARATOR_PUNCTUATION.sub(" ", result)
    return _WHITESPACE.sub(" ", result).strip()


def is_generic_channel(channel: str) -> bool:
    """True when a channel name looks like a label or aggregator rather than an artist."""
    key = channel.casefold()
    return any(word in key for word in _GENERIC_CHANNEL_WORDS)


def decompose(title: str, channel: str = "") -> TitleCandidates:
    """Split a video title into candidate artist and title strings.

    An ``Artist "Title"`` form wins outright. Otherwise tries a dash, then
    a pipe, then a "<title> by <artist>" form. Auto-generated catalog
    channels are trusted differently: with no separator the channel name
    is the artist, and with one the second segment is taken as the artist
    without a swapped reading. When nothing yields an artist, a channel
    name that does not look like a label stands in for one.
    """
    cleaned = clean_title(title)

    quoted = _QUOTED_TITLE.match(title)
    if quoted:
        return TitleCandidates(
            artist=clean_title(quoted.group(1)),
            title=clean_title(quoted.group(2)) or cleaned,
            cleaned_title=cleaned,
        )

    artist = ""
    song = cleaned
    swapped_artist = ""
    swapped_title = ""

    separator = _DASH_SPLIT.match(title) or _PIPE_SPLIT.match(title)
    by_match = None if separator else _BY_SPLIT.match(cleaned)

    if separator:
        artist = clean_title(separator.group(1))
        song = clean_title(separator.group(2))
        swapped_artist, swapped_title = song, artist
    elif by_match:
        song = by_match.group(1).strip()
        artist = by_match.group(2).strip()

    if is_topic_channel(channel) and not by_match:
        if separator:
            song, artist = artist, song
        else:
            artist = strip_topic_marker(channel)
            song = cleaned
        swapped_artist = swapped_title = ""

    if not artist and channel.strip() and not is_generic_channel(channel):
        artist = _WHITESPACE.sub(" ", channel).strip()
        song = cleaned

    return TitleCandidates(
        artist=artist,
        title=song or cleaned,
        swapped_artist=swapped_artist,
        swapped_title=swapped_title,
        cleaned_title=cleaned,
    )


def build_search_queries(title: str, channel: str = "") -> list[str]:
    """Produce catalog queries for a video, most specific first, without duplicates."""
    candidates = decompose(title, channel)
    channel_name = strip_topic_marker(channel)
    queries: list[str] = []

    def add(query: str) -> None:
        query = _WHITESPACE.sub(" ", query).strip()
        if query and query not in queries:
            queries.append(query)

    if candidates.artist and candidates.title:
        add(f"{candidates.artist} {candidates.title}")
        add(f"track:{candidates.title} artist:{candidates.artist}")

    if candidates.has_swap:
        add(f"{candidates.swapped_artist} {candidates.swapped_title}")
        add(f"track:{candidates.swapped_title} artist:{candidates.swapped_artist}")

    add(candidates.cleaned_title)

    channel_key = channel_name.casefold()
    if channel_key and channel_key not in candidates.artist.casefold():
        if candidates.title and channel_key not in candidates.title.casefold():
            add(f"{channel_name} {candidates.title}")
        if candidates.cleaned_title and channel_key not in candidates.cleaned_title.casefold():
            add(f"{channel_name} {candidates.cleaned_title}")

    if title.strip() != candidates.cleaned_title:
        add(title)

    return queries
