"""TrackCatalog implementation backed by the Spotify Web API."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Final
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field

from song_request_queue.application.interfaces.track_catalog import TrackCatalog
from song_request_queue.config.settings import SpotifySettings
from song_request_queue.domain.requests.entities import MatchedTrack
from song_request_queue.domain.shared.constants import ExternalUrls
from song_request_queue.domain.shared.exceptions import CatalogLookupError
from song_request_queue.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_S: Final[int] = 60
TRACK_ID_LENGTH: Final[int] = 22
SPOTIFY_HOST: Final[str] = "open.spotify.com"


def _http_or_none(value: str | None) -> str | None:
    if value and value.startswith(("http://", "https://")):
        return value
    return None


# ── Pydantic models for API payloads ───────────────────────────────────


class SpotifyImage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str | None = None


class SpotifyAlbum(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    images: list[SpotifyImage] = Field(default_factory=list)


class SpotifyArtist(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""


class SpotifyTrack(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    name: str = ""
    artists: list[SpotifyArtist] = Field(default_factory=list)
    album: SpotifyAlbum = Field(default_factory=SpotifyAlbum)
    duration_ms: int | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)
    preview_url: str | None = None

    def to_descriptor(self) -> MatchedTrack | None:
        """Convert to a domain descriptor, or None if the entry is unusable."""
        if not self.id or not self.name.strip():
            return None
        performers = tuple(a.name.strip() for a in self.artists if a.name.strip())
        if not performers:
            return None

        image = next((i.url for i in self.album.images if i.url), None)
        return MatchedTrack(
            catalog_id=self.id,
            name=self.name.strip(),
            performers=performers,
            album_name=self.album.name,
            album_image_url=_http_or_none(image),
            duration_ms=self.duration_ms if self.duration_ms and self.duration_ms > 0 else None,
            external_url=_http_or_none(self.external_urls.get("spotify")),
            has_preview=bool(self.preview_url),
        )


class SpotifyTrackPage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    items: list[SpotifyTrack] = Field(default_factory=list)


class SpotifySearchResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    tracks: SpotifyTrackPage = Field(default_factory=SpotifyTrackPage)


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    expires_in: int = 3600


def extract_track_id(url: str) -> str | None:
    """Extract the 22-character track id from an ``open.spotify.com`` track link.

    Handles ``/track/<id>`` and localized ``/intl-xx/track/<id>`` paths and
    ignores anything the user typed after the link.
    """
    parts = url.strip().split()
    if not parts:
        return None

    parsed = urlparse(parts[0])
    if parsed.hostname != SPOTIFY_HOST:
        return None

    segments = [s for s in parsed.path.split("/") if s]
    track_id: str | None = None
    if len(segments) >= 2 and segments[0] == "track":
        track_id = segments[1]
    elif len(segments) >= 3 and segments[0].startswith("intl-") and segments[1] == "track":
        track_id = segments[2]

    if track_id and len(track_id) >= TRACK_ID_LENGTH:
        return track_id[:TRACK_ID_LENGTH]
    return None


class SpotifyCatalog(TrackCatalog):
    """Client-credentials Spotify client.

    The access token is cached until shortly before it expires. A 401 on
    a catalog call discards the token and retries the call once.
    """

    def __init__(
        self,
        settings: SpotifySettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or SpotifySettings()
        self._client = client
        self._owns_client = client is None
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

        if not self._settings.has_credentials:
            logger.warning(LogTemplates.CATALOG_DISABLED)

    @property
    def enabled(self) -> bool:
        return self._settings.has_credentials

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_s)
        return self._client

    def extract_track_id(self, url: str) -> str | None:
        return extract_track_id(url)

    def _clear_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    async def _get_token(self) -> str:
        async with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            if not self._settings.has_credentials:
                raise CatalogLookupError("token", ErrorMessages.CATALOG_CREDENTIALS_MISSING)

            try:
                response = await self._get_client().post(
                    ExternalUrls.SPOTIFY_TOKEN,
                    data={"grant_type": "client_credentials"},
                    auth=(
                        self._settings.client_id.get_secret_value(),
                        self._settings.client_secret.get_secret_value(),
                    ),
                )
                response.raise_for_status()
                token = TokenResponse.model_validate(response.json())
            except (httpx.HTTPError, ValueError) as e:
                self._clear_token()
                raise CatalogLookupError(
                    "token", ErrorMessages.CATALOG_TOKEN_FAILED.format(error=e)
                ) from e

            self._token = token.access_token
            self._token_expires_at = (
                time.monotonic() + token.expires_in - TOKEN_EXPIRY_MARGIN_S
            )
            logger.info(LogTemplates.CATALOG_TOKEN_REFRESHED, token.expires_in)
            return self._token

    async def _get_json(self, path: str, params: dict[str, Any] | None, query: str) -> Any:
        url = f"{ExternalUrls.SPOTIFY_API_BASE}{path}"
        try:
            for attempt in range(2):
                token = await self._get_token()
                response = await self._get_client().get(
                    url, params=params, headers={"Authorization": f"Bearer {token}"}
                )
                if response.status_code == httpx.codes.UNAUTHORIZED and attempt == 0:
                    logger.warning(LogTemplates.CATALOG_TOKEN_REJECTED)
                    self._clear_token()
                    continue
                if response.status_code == httpx.codes.NOT_FOUND:
                    return None
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogLookupError(query, f"Spotify request failed: {e}") from e
        return None

    async def search(self, query: str, limit: int = 5) -> list[MatchedTrack]:
        params: dict[str, Any] = {"q": query, "type": "track", "limit": limit}
        if self._settings.market:
            params["market"] = self._settings.market

        data = await self._get_json("/search", params, query)
        if data is None:
            return []

        try:
            page = SpotifySearchResponse.model_validate(data)
            tracks = [item.to_descriptor() for item in page.tracks.items]
        except ValueError as e:
            raise CatalogLookupError(query, f"Unexpected search payload: {e}") from e

        return [track for track in tracks if track is not None]

    async def get_track(self, track_id: str) -> MatchedTrack | None:
        data = await self._get_json(f"/tracks/{track_id}", None, track_id)
        if data is None:
            return None

        try:
            return SpotifyTrack.model_validate(data).to_descriptor()
        except ValueError as e:
            raise CatalogLookupError(track_id, f"Unexpected track payload: {e}") from e

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
