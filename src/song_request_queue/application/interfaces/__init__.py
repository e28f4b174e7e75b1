"""Port interfaces implemented by the infrastructure layer."""

from song_request_queue.application.interfaces.identity_directory import (
    IdentityDirectory,
    IdentityProfile,
)
from song_request_queue.application.interfaces.metadata_resolver import (
    MetadataResolver,
    VideoMetadata,
)
from song_request_queue.application.interfaces.track_catalog import TrackCatalog

__all__ = [
    "IdentityDirectory",
    "IdentityProfile",
    "MetadataResolver",
    "TrackCatalog",
    "VideoMetadata",
]
