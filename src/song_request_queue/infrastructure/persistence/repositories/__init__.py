"""SQLite repository implementations."""

from song_request_queue.infrastructure.persistence.repositories.eligibility_repository import (
    SQLiteEligibilityStore,
)
from song_request_queue.infrastructure.persistence.repositories.request_repository import (
    SQLiteRequestStore,
)

__all__ = [
    "SQLiteEligibilityStore",
    "SQLiteRequestStore",
]
