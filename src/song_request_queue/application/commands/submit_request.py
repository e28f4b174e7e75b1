"""Command and handler for a viewer submitting a song request."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from ...domain.requests.entities import Requester, SongRequest
from ...domain.requests.events import SubmissionDeclined
from ...domain.requests.value_objects import DeclineReason, DonationInfo, PriorityClass
from ...domain.shared.exceptions import PolicyError, ResolutionError, ValidationError
from ...domain.shared.messages import DeclineMessages, LogTemplates
from ...domain.shared.types import LoginStr, NonEmptyStr, PositiveInt

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.identity_directory import IdentityDirectory
    from ..interfaces.metadata_resolver import MetadataResolver
    from ..services.lifecycle_coordinator import LifecycleCoordinator
    from ..services.track_matcher import TrackMatcher

logger = logging.getLogger(__name__)


class SubmissionStatus(Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"


class SubmitRequestCommand(BaseModel):
    """A viewer asks for a video to be queued."""

    model_config = ConfigDict(frozen=True, strict=True)

    source_ref: NonEmptyStr
    requester_name: NonEmptyStr
    requester_login: LoginStr | None = None
    priority: PriorityClass = PriorityClass.STANDARD
    bypass: bool = False
    donation: DonationInfo | None = None

    @field_validator("source_ref", "requester_name", mode="before")
    @classmethod
    def _strip(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def requester(self) -> Requester:
        return Requester(display_name=self.requester_name, login=self.requester_login)


class SubmissionResult(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    status: SubmissionStatus
    message: str
    request: SongRequest | None = None
    position: PositiveInt | None = None
    reason: DeclineReason | None = None
    persisted: bool = True

    @property
    def is_success(self) -> bool:
        return self.status is SubmissionStatus.ACCEPTED

    @classmethod
    def accepted(
        cls, request: SongRequest, position: int, *, persisted: bool = True
    ) -> SubmissionResult:
        return cls(
            status=SubmissionStatus.ACCEPTED,
            message=f"Added to queue: {request.title} (position {position})",
            request=request,
            position=position,
            persisted=persisted,
        )

    @classmethod
    def declined(cls, reason: DeclineReason, message: str) -> SubmissionResult:
        return cls(status=SubmissionStatus.DECLINED, message=message, reason=reason)


class SubmitRequestHandler:
    """Runs the admission pipeline for one submission.

    Pre-checks, resolution, identity lookup and matching run in the caller's
    task; only the final insertion goes through the coordinator, which
    re-checks eligibility against the state at that moment. Submissions from
    the same requester are handled one at a time.
    """

    def __init__(
        self,
        *,
        coordinator: LifecycleCoordinator,
        resolver: MetadataResolver,
        matcher: TrackMatcher | None,
        identity_directory: IdentityDirectory | None,
        event_bus: EventBus,
    ) -> None:
        self._coordinator = coordinator
        self._resolver = resolver
        self._matcher = matcher
        self._identities = identity_directory
        self._bus = event_bus
        self._requester_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: Counter[str] = Counter()

    async def handle(self, command: SubmitRequestCommand) -> SubmissionResult:
        requester = command.requester
        logger.info(
            LogTemplates.SUBMISSION_RECEIVED,
            requester.display_name,
            command.priority.value,
            command.source_ref,
        )

        async with self._serialized(requester.identity_key):
            try:
                request = await self._build_request(command, requester)
                outcome = await self._coordinator.admit(request, bypass=command.bypass)
            except ValidationError as e:
                return await self._decline(
                    command,
                    requester,
                    DeclineReason.INVALID_REFERENCE,
                    DeclineMessages.INVALID_REFERENCE,
                    e,
                )
            except ResolutionError as e:
                return await self._decline(
                    command,
                    requester,
                    DeclineReason.RESOLUTION_FAILED,
                    DeclineMessages.RESOLUTION_FAILED,
                    e,
                )
            except PolicyError as e:
                return await self._decline(command, requester, e.reason, e.message, e)

        assert outcome.request is not None and outcome.position is not None
        return SubmissionResult.accepted(
            outcome.request, outcome.position, persisted=outcome.persisted
        )

    @asynccontextmanager
    async def _serialized(self, key: str) -> AsyncIterator[None]:
        """Hold the requester's lock, dropping it once nobody holds or awaits it."""
        lock = self._requester_locks.setdefault(key, asyncio.Lock())
        self._lock_holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[key] -= 1
            if not self._lock_holders[key]:
                del self._lock_holders[key]
                del self._requester_locks[key]

    async def _build_request(
        self, command: SubmitRequestCommand, requester: Requester
    ) -> SongRequest:
        await self._coordinator.precheck(requester, command.priority, bypass=command.bypass)

        metadata = await self._resolver.resolve(command.source_ref)
        requester = await self._enrich_requester(requester)

        match = None
        if self._matcher is not None:
            match = await self._matcher.find_equivalent(metadata.title, metadata.artist)

        return SongRequest(
            video_id=metadata.video_id,
            source_url=metadata.source_url,
            title=metadata.title,
            artist=metadata.artist,
            channel_id=metadata.channel_id,
            duration_seconds=metadata.duration_seconds,
            thumbnail_url=metadata.thumbnail_url,
            requester=requester,
            priority=command.priority,
            match=match,
            bypassed=command.bypass,
            donation=command.donation,
        )

    async def _enrich_requester(self, requester: Requester) -> Requester:
        """Attach the platform login and avatar when the directory knows the viewer."""
        if self._identities is None:
            return requester

        handle = requester.login or requester.display_name
        try:
            profile = await self._identities.lookup(handle)
        except Exception as e:
            logger.warning(LogTemplates.IDENTITY_LOOKUP_FAILED, handle, e)
            return requester

        if profile is None:
            return requester
        return Requester(
            display_name=requester.display_name,
            login=profile.login,
            avatar_url=profile.avatar_url,
        )

    async def _decline(
        self,
        command: SubmitRequestCommand,
        requester: Requester,
        reason: DeclineReason,
        message: str,
        error: Exception,
    ) -> SubmissionResult:
        logger.info(LogTemplates.SUBMISSION_DECLINED, requester.display_name, error)
        await self._bus.publish(
            SubmissionDeclined(
                requester=requester,
                source_ref=command.source_ref,
                reason=reason,
                message=message,
            )
        )
        return SubmissionResult.declined(reason, message)
