"""IdentityDirectory implementation backed by the Twitch Helix users endpoint."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Final

import httpx
from pydantic import BaseModel, ConfigDict, Field

from song_request_queue.application.interfaces.identity_directory import (
    IdentityDirectory,
    IdentityProfile,
)
from song_request_queue.config.settings import TwitchSettings
from song_request_queue.domain.shared.constants import ExternalUrls
from song_request_queue.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_S: Final[int] = 60
_LOGIN_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_]{1,25}$")


class AppToken(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    expires_in: int = 3600


class HelixUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    login: str
    display_name: str = ""
    profile_image_url: str | None = None


class HelixUsersResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    data: list[HelixUser] = Field(default_factory=list)


class TwitchIdentityDirectory(IdentityDirectory):
    """Looks up viewer profiles with an app access token.

    Lookups are best effort: any failure is logged and reported as None.
    """

    def __init__(
        self,
        settings: TwitchSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or TwitchSettings()
        self._client = client
        self._owns_client = client is None
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_s)
        return self._client

    async def _get_token(self) -> str:
        async with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            response = await self._get_client().post(
                ExternalUrls.TWITCH_TOKEN,
                data={
                    "client_id": self._settings.client_id.get_secret_value(),
                    "client_secret": self._settings.client_secret.get_secret_value(),
                    "grant_type": "client_credentials",
                },
            )
            response.raise_for_status()
            token = AppToken.model_validate(response.json())

            self._token = token.access_token
            self._token_expires_at = time.monotonic() + token.expires_in - TOKEN_EXPIRY_MARGIN_S
            logger.debug(LogTemplates.IDENTITY_TOKEN_REFRESHED)
            return self._token

    async def lookup(self, handle: str) -> IdentityProfile | None:
        login = handle.strip().lstrip("@").lower()
        if not self._settings.has_credentials or not _LOGIN_PATTERN.match(login):
            return None

        try:
            token = await self._get_token()
            response = await self._get_client().get(
                f"{ExternalUrls.TWITCH_API_BASE}/users",
                params={"login": login},
                headers={
                    "Client-Id": self._settings.client_id.get_secret_value(),
                    "Authorization": f"Bearer {token}",
                },
            )
            if response.status_code == httpx.codes.UNAUTHORIZED:
                self._token = None
            response.raise_for_status()
            payload = HelixUsersResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(LogTemplates.IDENTITY_LOOKUP_FAILED, login, e)
            return None

        if not payload.data:
            return None

        user = payload.data[0]
        avatar = user.profile_image_url
        return IdentityProfile(
            login=user.login,
            display_name=user.display_name or user.login,
            avatar_url=avatar if avatar and avatar.startswith("https://") else None,
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
