"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the request and matching contexts is
defined here once, so models can simply annotate their fields::

    from song_request_queue.domain.shared.types import NonEmptyStr, UnitInterval

    class MyModel(BaseModel):
        name: NonEmptyStr
        score: UnitInterval
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

NonNegativeFloat = Annotated[float, Field(ge=0.0)]
"""Float >= 0.0."""

UnitInterval = Annotated[float, Field(ge=0.0, le=1.0)]
"""Float in [0.0, 1.0], used for similarity and match scores."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Video or track title: 1-500 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""

VideoIdStr = Annotated[str, Field(pattern=r"^[A-Za-z0-9_-]{11}$")]
"""YouTube video id: exactly 11 URL-safe characters."""

LoginStr = Annotated[str, Field(min_length=1, max_length=64)]
"""Platform login handle."""


# ── Domain-specific numeric constraints ─────────────────────────────

DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
"""Video duration in seconds: 0 … 86 400 (24 hours)."""

DurationCeilingSeconds = Annotated[int, Field(ge=1, le=86_400)]
"""Per-class duration ceiling in seconds: 1 … 86 400."""


# ── Settings-specific constraints ──────────────────────────────────

BusyTimeoutMs = Annotated[int, Field(ge=1000, le=30000)]
"""Database busy timeout in milliseconds: 1 000 … 30 000."""

ConnectionTimeoutS = Annotated[int, Field(ge=1, le=60)]
"""Database connection timeout in seconds: 1 … 60."""

HttpTimeoutS = Annotated[float, Field(gt=0.0, le=120.0)]
"""Outbound HTTP timeout in seconds."""


# ── Datetime constraints ────────────────────────────────────────────

def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
