"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories)
- YouTube metadata resolution (Data API and yt-dlp)
- Spotify catalog search
- Twitch identity lookup
"""
