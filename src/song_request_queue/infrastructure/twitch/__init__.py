"""Twitch infrastructure - viewer identity lookups."""

from song_request_queue.infrastructure.twitch.identity_directory import TwitchIdentityDirectory

__all__ = ["TwitchIdentityDirectory"]
