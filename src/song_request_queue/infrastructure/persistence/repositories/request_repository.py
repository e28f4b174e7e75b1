"""SQLite implementation of the request store."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import aiosqlite

from song_request_queue.domain.requests.entities import (
    MatchedTrack,
    QueueState,
    Requester,
    SongRequest,
)
from song_request_queue.domain.requests.repository import RequestStore
from song_request_queue.domain.requests.value_objects import (
    ArchiveStats,
    ArtistTally,
    DonationInfo,
    PriorityClass,
    RequestStatus,
    RequesterTally,
    SongTally,
)
from song_request_queue.domain.shared.datetime_utils import UtcDateTime
from song_request_queue.domain.shared.exceptions import PersistenceError
from song_request_queue.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_REQUEST_COLUMNS = (
    "id",
    "video_id",
    "source_url",
    "title",
    "artist",
    "channel_id",
    "duration_seconds",
    "thumbnail_url",
    "requester_name",
    "requester_login",
    "requester_avatar",
    "priority",
    "submitted_at",
    "bypassed",
    "match_json",
    "donation_json",
)


# Requesters are grouped by identity: login when present, else display name.
_TOP_REQUESTERS_SQL = """
SELECT MIN(requester_name) AS requester_name, COUNT(*) AS request_count
FROM archived_requests
GROUP BY LOWER(COALESCE(NULLIF(requester_login, ''), requester_name))
HAVING COUNT(*) >= ?
ORDER BY request_count DESC, MIN(seq) ASC
LIMIT ?
"""

_TOP_SONGS_SQL = """
SELECT title, artist, COUNT(*) AS play_count
FROM archived_requests
GROUP BY title, artist
HAVING COUNT(*) >= ?
ORDER BY play_count DESC, MIN(seq) ASC
LIMIT ?
"""

_TOP_ARTISTS_SQL = """
SELECT artist, COUNT(*) AS play_count
FROM archived_requests
WHERE artist != ''
GROUP BY artist
HAVING COUNT(*) >= ?
ORDER BY play_count DESC, MIN(seq) ASC
LIMIT ?
"""


def _insert_sql(table: str, extra_columns: tuple[str, ...] = ()) -> str:
    columns = _REQUEST_COLUMNS + extra_columns
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


@asynccontextmanager
async def _guard(operation: str) -> AsyncGenerator[None, None]:
    try:
        yield
    except aiosqlite.Error as e:
        raise PersistenceError(operation, f"{operation} failed: {e}") from e


class SQLiteRequestStore(RequestStore):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def load_state(self) -> QueueState:
        async with _guard("load_state"):
            queue_rows = await self._db.fetch_all(
                "SELECT * FROM queued_requests ORDER BY position ASC"
            )
            active_row = await self._db.fetch_one("SELECT * FROM active_request WHERE slot = 1")

        queue = [self._row_to_request(row, RequestStatus.QUEUED) for row in queue_rows]
        active = (
            self._row_to_request(active_row, RequestStatus.ACTIVE) if active_row else None
        )
        logger.info(LogTemplates.STATE_LOADED, len(queue), active.id if active else None)
        return QueueState(queue=queue, active=active)

    async def save_queue(self, requests: list[SongRequest]) -> None:
        async with _guard("save_queue"), self._db.transaction() as conn:
            await conn.execute("DELETE FROM queued_requests")
            sql = _insert_sql("queued_requests", ("position",))
            for position, request in enumerate(requests):
                await conn.execute(sql, (*self._request_to_params(request), position))

        logger.debug(LogTemplates.QUEUE_SAVED, len(requests))

    async def save_active(self, request: SongRequest | None) -> None:
        async with _guard("save_active"), self._db.transaction() as conn:
            await conn.execute("DELETE FROM active_request")
            if request is not None:
                await conn.execute(
                    _insert_sql("active_request", ("slot",)),
                    (*self._request_to_params(request), 1),
                )

        logger.debug(LogTemplates.ACTIVE_SAVED, request.id if request else None)

    async def append_archive(self, request: SongRequest) -> None:
        archived_at = request.archived_at or UtcDateTime.now().dt
        async with _guard("append_archive"):
            await self._db.execute(
                _insert_sql("archived_requests", ("archived_at",)),
                (*self._request_to_params(request), UtcDateTime(archived_at).iso),
            )

        logger.debug(LogTemplates.ARCHIVE_APPENDED, request.id)

    async def list_archive(self, limit: int | None = None) -> list[SongRequest]:
        sql = "SELECT * FROM archived_requests ORDER BY seq DESC"
        params: tuple[Any, ...] = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)

        async with _guard("list_archive"):
            rows = await self._db.fetch_all(sql, params)
        return [self._row_to_request(row, RequestStatus.ARCHIVED) for row in rows]

    async def get_archived(self, request_id: str) -> SongRequest | None:
        async with _guard("get_archived"):
            row = await self._db.fetch_one(
                "SELECT * FROM archived_requests WHERE id = ?", (request_id,)
            )
        return self._row_to_request(row, RequestStatus.ARCHIVED) if row else None

    async def delete_archived(self, request_id: str) -> bool:
        async with _guard("delete_archived"):
            cursor = await self._db.execute(
                "DELETE FROM archived_requests WHERE id = ?", (request_id,)
            )
        return cursor.rowcount > 0

    async def clear_archive(self) -> int:
        async with _guard("clear_archive"):
            cursor = await self._db.execute("DELETE FROM archived_requests")
        return max(cursor.rowcount, 0)

    async def archive_stats(self, limit: int = 20, min_count: int = 2) -> ArchiveStats:
        params = (min_count, limit)
        async with _guard("archive_stats"):
            requesters = await self._db.fetch_all(_TOP_REQUESTERS_SQL, params)
            songs = await self._db.fetch_all(_TOP_SONGS_SQL, params)
            artists = await self._db.fetch_all(_TOP_ARTISTS_SQL, params)

        return ArchiveStats(
            top_requesters=[RequesterTally(**row) for row in requesters],
            top_songs=[SongTally(**row) for row in songs],
            top_artists=[ArtistTally(**row) for row in artists],
        )

    # ---- Row mapping ----

    @staticmethod
    def _request_to_params(request: SongRequest) -> tuple[Any, ...]:
        return (
            request.id,
            request.video_id,
            request.source_url,
            request.title,
            request.artist,
            request.channel_id,
            request.duration_seconds,
            request.thumbnail_url,
            request.requester.display_name,
            request.requester.login,
            request.requester.avatar_url,
            request.priority.value,
            UtcDateTime(request.submitted_at).iso,
            int(request.bypassed),
            request.match.model_dump_json() if request.match else None,
            request.donation.model_dump_json() if request.donation else None,
        )

    @staticmethod
    def _row_to_request(row: dict[str, Any], status: RequestStatus) -> SongRequest:
        match_json = row.get("match_json")
        donation_json = row.get("donation_json")
        archived_at = row.get("archived_at")

        return SongRequest(
            id=row["id"],
            video_id=row["video_id"],
            source_url=row["source_url"],
            title=row["title"],
            artist=row["artist"],
            channel_id=row["channel_id"],
            duration_seconds=row["duration_seconds"],
            thumbnail_url=row["thumbnail_url"],
            requester=Requester(
                display_name=row["requester_name"],
                login=row["requester_login"],
                avatar_url=row["requester_avatar"],
            ),
            priority=PriorityClass(row["priority"]),
            submitted_at=UtcDateTime.from_iso(row["submitted_at"]).dt,
            status=status,
            bypassed=bool(row["bypassed"]),
            match=MatchedTrack.model_validate_json(match_json)
            if match_json
            else None,
            donation=DonationInfo.model_validate_json(donation_json)
            if donation_json
            else None,
            archived_at=UtcDateTime.from_iso(archived_at).dt if archived_at else None,
        )
