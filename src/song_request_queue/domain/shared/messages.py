"""Centralized message constants for error messages, decline notices, and logging."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Request Validation Errors
    EMPTY_REQUEST_ID = "Request ID cannot be empty"
    EMPTY_SOURCE_REFERENCE = "Video reference cannot be empty"
    INVALID_SOURCE_REFERENCE = "Could not find a YouTube video ID in '{reference}'"
    INVALID_CATALOG_URL = "Not a Spotify track link: '{url}'"
    EMPTY_FILTER_TERM = "Content filter term cannot be empty"
    EMPTY_LOGIN = "Login cannot be empty"

    # Reorder Errors
    REORDER_UNKNOWN_ID = "Reorder names request '{request_id}' which is not queued"
    REORDER_DUPLICATE_ID = "Reorder names request '{request_id}' more than once"

    # Ownership Errors
    NOT_REQUEST_OWNER = "Only the requester can withdraw this request"

    # Resolution Errors
    VIDEO_NOT_FOUND = "Video not found"
    VIDEO_LOOKUP_FAILED = "Video lookup failed: {error}"
    INVALID_ISO_DURATION = "Invalid ISO-8601 duration: '{value}'"
    YOUTUBE_API_KEY_NOT_SET = "YOUTUBE__API_KEY is not set; falling back to yt-dlp"

    # Catalog Errors
    CATALOG_CREDENTIALS_MISSING = "Spotify client credentials are not configured"
    CATALOG_TOKEN_FAILED = "Spotify token request failed: {error}"

    # Coordinator Errors
    COORDINATOR_NOT_RUNNING = "Lifecycle coordinator is not running"
    UNSUPPORTED_COMMAND = "Unsupported command: {command}"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"


class DeclineMessages:
    """Short, human-readable texts returned with a declined submission."""

    BLOCKED = "You are not allowed to request songs."
    OUTSTANDING_REQUEST = (
        "You already have a song in the queue. Wait until it plays before requesting another."
    )
    DURATION_EXCEEDED = "Song is too long ({duration}). Maximum allowed is {ceiling}."
    CONTENT_FILTERED = "This song is not allowed on the stream."
    DUPLICATE_SOURCE = "This song is already in the queue."
    INVALID_REFERENCE = "That doesn't look like a YouTube link."
    RESOLUTION_FAILED = "Could not look up that video."


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Application Lifecycle
    APP_STARTING = "Starting song request queue (environment: %s)"
    APP_READY = "Song request queue ready"
    APP_STOPPING = "Shutting down song request queue"
    APP_FATAL_ERROR = "Fatal error: %s"

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Persistence
    QUEUE_SAVED = "Queue saved (%d requests)"
    ACTIVE_SAVED = "Active request saved: %s"
    ARCHIVE_APPENDED = "Archived request %s"
    PERSISTENCE_FAILED = "Persistence failed during %s: %s"
    STATE_LOADED = "Loaded state: %d queued, active=%s"

    # Coordinator
    COORDINATOR_STARTED = "Lifecycle coordinator started"
    COORDINATOR_STOPPED = "Lifecycle coordinator stopped"
    COORDINATOR_COMMAND_FAILED = "Coordinator command %s failed: %s"
    REQUEST_ADMITTED = "Admitted request %s (%s) at position %d"
    REQUEST_REMOVED = "Removed request %s"
    REQUEST_ACTIVATED = "Request %s is now active"
    REQUEST_REQUEUED = "Requeued archived request %s as %s"
    ACTIVE_FINISHED = "Finished active request %s"
    FINISH_NOOP = "Finish requested with nothing active"
    QUEUE_CLEARED = "Queue cleared (%d requests)"
    QUEUE_REORDERED = "Queue reordered (%d requests)"
    OPERATOR_COMMAND_FAILED = "Operator command %s failed: %s"
    REQUEST_MOVED_TO_FRONT = "Moved request %s to the front"
    REQUEST_WITHDRAWN = "Request %s withdrawn by %s"
    MATCH_EDITED = "Match for request %s set to %s"
    ARCHIVE_DELETED = "Deleted archived request %s"
    ARCHIVE_CLEARED = "Archive cleared (%d entries)"
    BLOCKLIST_UPDATED = "Block-list updated (+%d, -%d)"
    FILTERS_UPDATED = "Content filters updated (+%d, -%d)"
    CEILING_UPDATED = "Duration ceiling for %s set to %ds"

    # Submission pipeline
    SUBMISSION_RECEIVED = "Submission from %s (%s): %s"
    SUBMISSION_DECLINED = "Declined submission from %s: %s"
    IDENTITY_LOOKUP_FAILED = "Identity lookup failed for %s: %s"

    # Resolver
    RESOLVER_LOOKUP = "Resolving video %s"
    RESOLVER_FAILED = "Video lookup failed for %s: %s"
    YTDLP_FAILED_EXTRACT_INFO = "yt-dlp failed to extract info for %s"

    # Matcher / catalog
    MATCH_QUERIES = "Matching '%s' by '%s' with %d queries"
    MATCH_QUERY_FAILED = "Catalog query '%s' failed: %s"
    MATCH_FOUND = "Matched '%s' to catalog track %s (score %.2f)"
    MATCH_NOT_FOUND = "No catalog match above threshold for '%s'"
    MATCH_FAILED = "Track matching failed for '%s': %s"
    CATALOG_TOKEN_REFRESHED = "Spotify access token refreshed (expires in %ds)"
    CATALOG_TOKEN_REJECTED = "Spotify rejected access token, refreshing"
    CATALOG_DISABLED = "Spotify credentials missing; track matching disabled"

    # Identity directory
    IDENTITY_TOKEN_REFRESHED = "Twitch app token refreshed"
