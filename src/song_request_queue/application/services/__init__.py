"""Application services: the lifecycle coordinator and the track matcher."""

from song_request_queue.application.services.lifecycle_coordinator import (
    CommandOutcome,
    LifecycleCoordinator,
    QueueSnapshot,
)
from song_request_queue.application.services.track_matcher import TrackMatcher

__all__ = [
    "CommandOutcome",
    "LifecycleCoordinator",
    "QueueSnapshot",
    "TrackMatcher",
]
