"""Application-wide constants: config keys, tables and SQL fragments."""

from __future__ import annotations


class ConfigKeys:
    """Environment variable names recognised by the settings layer.

    Nested groups use the ``__`` delimiter, e.g. ``YOUTUBE__API_KEY``.
    """

    ENVIRONMENT = "ENVIRONMENT"
    DEBUG = "DEBUG"
    LOG_LEVEL = "LOG_LEVEL"

    DATABASE_URL = "DATABASE__URL"
    YOUTUBE_API_KEY = "YOUTUBE__API_KEY"
    YOUTUBE_BACKEND = "YOUTUBE__BACKEND"
    SPOTIFY_CLIENT_ID = "SPOTIFY__CLIENT_ID"
    SPOTIFY_CLIENT_SECRET = "SPOTIFY__CLIENT_SECRET"
    TWITCH_CLIENT_ID = "TWITCH__CLIENT_ID"
    TWITCH_CLIENT_SECRET = "TWITCH__CLIENT_SECRET"


class DatabaseTables:
    """SQLite table names."""

    QUEUED_REQUESTS = "queued_requests"
    ACTIVE_REQUEST = "active_request"
    ARCHIVED_REQUESTS = "archived_requests"
    BLOCKED_IDENTITIES = "blocked_identities"
    CONTENT_FILTERS = "content_filters"
    SETTINGS = "settings"


class SettingKeys:
    """Keys of operator-tunable values persisted in the settings table."""

    STANDARD_MAX_DURATION = "standard_max_duration_seconds"
    ELEVATED_MAX_DURATION = "elevated_max_duration_seconds"


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    These pragmas are applied to each connection to ensure consistent behavior.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class MatchingConstants:
    """Tunables of the secondary-catalog track matcher."""

    MIN_MATCH_SCORE = 0.5
    TITLE_WEIGHT = 0.6
    ARTIST_WEIGHT = 0.4
    STRONG_SIDE_THRESHOLD = 0.8
    WEAK_SIDE_THRESHOLD = 0.4
    STRONG_BONUS = 0.1
    BALANCED_THRESHOLD = 0.6
    BALANCED_BONUS = 0.05
    CONTAINMENT_BONUS = 0.1
    DEFAULT_RESULTS_PER_QUERY = 5


class ExternalUrls:
    """Base URLs of third-party services."""

    YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
    YOUTUBE_WATCH = "https://www.youtube.com/watch?v={video_id}"
    YOUTUBE_THUMBNAIL_FALLBACK = "https://img.youtube.com/vi/{video_id}/0.jpg"
    SPOTIFY_API_BASE = "https://api.spotify.com/v1"
    SPOTIFY_TOKEN = "https://accounts.spotify.com/api/token"
    TWITCH_API_BASE = "https://api.twitch.tv/helix"
    TWITCH_TOKEN = "https://id.twitch.tv/oauth2/token"
