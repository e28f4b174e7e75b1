"""Date/time helpers.

Every timestamp in the system is a timezone-aware UTC ``datetime``; the
persistence layer stores them as ISO 8601 strings with an explicit offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from ...domain.shared.messages import ErrorMessages


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    """Wrapper that guarantees an aware UTC datetime and its storage format."""

    dt: datetime

    def __post_init__(self) -> None:
        if self.dt.tzinfo is None:
            raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
        object.__setattr__(self, "dt", self.dt.astimezone(UTC))

    @classmethod
    def now(cls) -> UtcDateTime:
        return cls(datetime.now(UTC))

    @classmethod
    def from_iso(cls, value: str) -> UtcDateTime:
        """Parse an offset-qualified ISO 8601 string (a trailing 'Z' is accepted)."""
        return cls(datetime.fromisoformat(value))

    @property
    def iso(self) -> str:
        return self.dt.isoformat()


def utcnow() -> datetime:
    return datetime.now(UTC)


def format_duration(seconds: int | None) -> str:
    """Format a duration as M:SS, or H:MM:SS once it reaches an hour."""
    if seconds is None:
        return "Unknown"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
