"""Song request queue for live streams: admission, ordering and lifecycle."""

__version__ = "0.1.0"
