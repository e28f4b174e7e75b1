"""SQLite implementation of the eligibility store."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import aiosqlite

from song_request_queue.domain.requests.repository import EligibilityStore
from song_request_queue.domain.requests.value_objects import ContentFilter, FilterCategory
from song_request_queue.domain.shared.datetime_utils import UtcDateTime
from song_request_queue.domain.shared.exceptions import PersistenceError

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteEligibilityStore(EligibilityStore):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def list_blocked(self) -> set[str]:
        try:
            rows = await self._db.fetch_all("SELECT login FROM blocked_identities")
        except aiosqlite.Error as e:
            raise PersistenceError("list_blocked") from e
        return {row["login"].casefold() for row in rows}

    async def add_blocked(self, login: str) -> bool:
        try:
            cursor = await self._db.execute(
                "INSERT OR IGNORE INTO blocked_identities (login) VALUES (?)",
                (login.strip().casefold(),),
            )
        except aiosqlite.Error as e:
            raise PersistenceError("add_blocked") from e
        return cursor.rowcount > 0

    async def remove_blocked(self, login: str) -> bool:
        try:
            cursor = await self._db.execute(
                "DELETE FROM blocked_identities WHERE login = ?",
                (login.strip().casefold(),),
            )
        except aiosqlite.Error as e:
            raise PersistenceError("remove_blocked") from e
        return cursor.rowcount > 0

    async def list_filters(self) -> set[ContentFilter]:
        try:
            rows = await self._db.fetch_all("SELECT term, category FROM content_filters")
        except aiosqlite.Error as e:
            raise PersistenceError("list_filters") from e
        return {
            ContentFilter(term=row["term"], category=FilterCategory(row["category"]))
            for row in rows
        }

    async def add_filter(self, content_filter: ContentFilter) -> bool:
        try:
            cursor = await self._db.execute(
                "INSERT OR IGNORE INTO content_filters (term, category) VALUES (?, ?)",
                (content_filter.term, content_filter.category.value),
            )
        except aiosqlite.Error as e:
            raise PersistenceError("add_filter") from e
        return cursor.rowcount > 0

    async def remove_filter(self, content_filter: ContentFilter) -> bool:
        try:
            cursor = await self._db.execute(
                "DELETE FROM content_filters WHERE term = ? AND category = ?",
                (content_filter.term, content_filter.category.value),
            )
        except aiosqlite.Error as e:
            raise PersistenceError("remove_filter") from e
        return cursor.rowcount > 0

    async def get_setting(self, key: str, default: Any = None) -> Any:
        try:
            row = await self._db.fetch_one("SELECT value FROM settings WHERE key = ?", (key,))
        except aiosqlite.Error as e:
            raise PersistenceError("get_setting") from e
        if row is None:
            return default
        return json.loads(row["value"])

    async def set_setting(self, key: str, value: Any) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(value), UtcDateTime.now().iso),
            )
        except aiosqlite.Error as e:
            raise PersistenceError("set_setting") from e
        logger.debug("Setting %s updated", key)
