"""
Application Queries (CQRS Read Side)

Query objects and their handlers for read operations.
Queries never modify system state.
"""

from song_request_queue.application.queries.get_archive import (
    ArchiveInfo,
    GetArchiveHandler,
    GetArchiveQuery,
)
from song_request_queue.application.queries.get_archive_stats import (
    GetArchiveStatsHandler,
    GetArchiveStatsQuery,
)
from song_request_queue.application.queries.get_queue import (
    GetQueueHandler,
    GetQueueQuery,
    QueueInfo,
)

__all__ = [
    # Queue
    "GetQueueQuery",
    "GetQueueHandler",
    "QueueInfo",
    # Archive
    "GetArchiveQuery",
    "GetArchiveHandler",
    "ArchiveInfo",
    # Statistics
    "GetArchiveStatsQuery",
    "GetArchiveStatsHandler",
]
