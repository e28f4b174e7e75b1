"""
Requests Bounded Context

Domain logic for request admission, queue ordering and the
queued → active → archived lifecycle.
"""

from song_request_queue.domain.requests.entities import (
    EligibilityPolicy,
    MatchedTrack,
    QueueState,
    Requester,
    SongRequest,
)
from song_request_queue.domain.requests.repository import EligibilityStore, RequestStore
from song_request_queue.domain.requests.services import EligibilityFilter, QueueOrderingEngine
from song_request_queue.domain.requests.value_objects import (
    ArchiveStats,
    ArtistTally,
    ContentFilter,
    DeclineReason,
    DonationInfo,
    FilterCategory,
    PriorityClass,
    RequesterTally,
    RequestStatus,
    SongTally,
)

__all__ = [
    # Entities
    "EligibilityPolicy",
    "MatchedTrack",
    "QueueState",
    "Requester",
    "SongRequest",
    # Value Objects
    "ArchiveStats",
    "ArtistTally",
    "ContentFilter",
    "DeclineReason",
    "DonationInfo",
    "FilterCategory",
    "PriorityClass",
    "RequestStatus",
    "RequesterTally",
    "SongTally",
    # Repositories
    "EligibilityStore",
    "RequestStore",
    # Services
    "EligibilityFilter",
    "QueueOrderingEngine",
]
