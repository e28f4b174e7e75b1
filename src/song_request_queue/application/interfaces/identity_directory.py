"""Port interface for looking up requester profiles on the streaming platform."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from song_request_queue.domain.shared.types import HttpUrlStr, LoginStr, NonEmptyStr


class IdentityProfile(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    login: LoginStr
    display_name: NonEmptyStr
    avatar_url: HttpUrlStr | None = None


class IdentityDirectory(ABC):
    """Best-effort handle → profile lookup. Returns None when unknown or on error."""

    @abstractmethod
    async def lookup(self, handle: str) -> IdentityProfile | None:
        ...

    async def close(self) -> None:
        return None
