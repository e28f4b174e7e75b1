"""Spotify infrastructure - secondary catalog client."""

from song_request_queue.infrastructure.spotify.spotify_catalog import (
    SpotifyCatalog,
    extract_track_id,
)

__all__ = ["SpotifyCatalog", "extract_track_id"]
