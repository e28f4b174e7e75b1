"""Persistence layer - SQLite database and repositories."""

from song_request_queue.infrastructure.persistence.database import Database

__all__ = ["Database"]
