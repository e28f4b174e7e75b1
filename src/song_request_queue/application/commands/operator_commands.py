"""Commands and handler for queue, archive and policy management.

Operator commands come from the control surface (and, for withdraw, from
the requester). They all go through the lifecycle coordinator; the handler
translates domain errors into results the caller can show.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...domain.requests.value_objects import ContentFilter, PriorityClass
from ...domain.shared.exceptions import (
    CatalogLookupError,
    DomainError,
    EntityNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import DurationCeilingSeconds, LoginStr, NonEmptyStr
from ..services.lifecycle_coordinator import CommandOutcome

if TYPE_CHECKING:
    from ..interfaces.track_catalog import TrackCatalog
    from ..services.lifecycle_coordinator import LifecycleCoordinator

logger = logging.getLogger(__name__)


class _OperatorCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)


class RemoveRequestCommand(_OperatorCommand):
    request_id: NonEmptyStr


class WithdrawRequestCommand(_OperatorCommand):
    """A requester deletes their own queued request."""

    request_id: NonEmptyStr
    login: LoginStr


class ClearQueueCommand(_OperatorCommand):
    pass


class ReorderQueueCommand(_OperatorCommand):
    ordered_ids: tuple[str, ...]


class MoveToFrontCommand(_OperatorCommand):
    request_id: NonEmptyStr


class SetActiveCommand(_OperatorCommand):
    """Promote a queued request; ``None`` archives the active one and clears the slot."""

    request_id: NonEmptyStr | None = None


class FinishActiveCommand(_OperatorCommand):
    pass


class SkipToNextCommand(_OperatorCommand):
    pass


class RequeueFromArchiveCommand(_OperatorCommand):
    archived_id: NonEmptyStr


class DeleteArchivedCommand(_OperatorCommand):
    archived_id: NonEmptyStr


class ClearArchiveCommand(_OperatorCommand):
    pass


class EditLinkCommand(_OperatorCommand):
    """Replace a request's matched track with a catalog link, or clear it."""

    request_id: NonEmptyStr
    track_url: str | None = None

    @field_validator("track_url", mode="before")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class UpdateBlocklistCommand(_OperatorCommand):
    add: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()


class UpdateContentFiltersCommand(_OperatorCommand):
    add: tuple[ContentFilter, ...] = ()
    remove: tuple[ContentFilter, ...] = ()


class SetDurationCeilingCommand(_OperatorCommand):
    priority: PriorityClass
    seconds: DurationCeilingSeconds


OperatorCommand = (
    RemoveRequestCommand
    | WithdrawRequestCommand
    | ClearQueueCommand
    | ReorderQueueCommand
    | MoveToFrontCommand
    | SetActiveCommand
    | FinishActiveCommand
    | SkipToNextCommand
    | RequeueFromArchiveCommand
    | DeleteArchivedCommand
    | ClearArchiveCommand
    | EditLinkCommand
    | UpdateBlocklistCommand
    | UpdateContentFiltersCommand
    | SetDurationCeilingCommand
)


class OperatorStatus(Enum):
    SUCCESS = "success"
    NO_CHANGE = "no_change"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    FORBIDDEN = "forbidden"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


class OperatorResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OperatorStatus
    message: str = ""
    outcome: CommandOutcome | None = Field(default=None)

    @property
    def is_success(self) -> bool:
        return self.status in {OperatorStatus.SUCCESS, OperatorStatus.NO_CHANGE}

    @classmethod
    def from_outcome(cls, outcome: CommandOutcome) -> OperatorResult:
        status = OperatorStatus.SUCCESS if outcome.changed else OperatorStatus.NO_CHANGE
        return cls(status=status, outcome=outcome)

    @classmethod
    def error(cls, status: OperatorStatus, message: str) -> OperatorResult:
        return cls(status=status, message=message)


class OperatorCommandHandler:
    """Dispatches operator commands to the lifecycle coordinator."""

    def __init__(
        self,
        *,
        coordinator: LifecycleCoordinator,
        catalog: TrackCatalog | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._catalog = catalog

    async def handle(self, command: OperatorCommand) -> OperatorResult:
        try:
            outcome = await self._dispatch(command)
        except EntityNotFoundError as e:
            return OperatorResult.error(OperatorStatus.NOT_FOUND, e.message)
        except ValidationError as e:
            return OperatorResult.error(OperatorStatus.INVALID, e.message)
        except PermissionDeniedError as e:
            return OperatorResult.error(OperatorStatus.FORBIDDEN, e.message)
        except CatalogLookupError as e:
            return OperatorResult.error(OperatorStatus.UNAVAILABLE, e.message)
        except PersistenceError as e:
            logger.error(LogTemplates.OPERATOR_COMMAND_FAILED, type(command).__name__, e)
            return OperatorResult.error(OperatorStatus.FAILED, e.message)
        except DomainError as e:
            return OperatorResult.error(OperatorStatus.FAILED, e.message)

        return OperatorResult.from_outcome(outcome)

    async def _dispatch(self, command: OperatorCommand) -> CommandOutcome:
        coordinator = self._coordinator
        match command:
            case RemoveRequestCommand(request_id=request_id):
                return await coordinator.remove(request_id)
            case WithdrawRequestCommand(request_id=request_id, login=login):
                return await coordinator.withdraw(request_id, login)
            case ClearQueueCommand():
                return await coordinator.clear_queue()
            case ReorderQueueCommand(ordered_ids=ordered_ids):
                return await coordinator.reorder(list(ordered_ids))
            case MoveToFrontCommand(request_id=request_id):
                return await coordinator.move_to_front(request_id)
            case SetActiveCommand(request_id=request_id):
                return await coordinator.set_active(request_id)
            case FinishActiveCommand():
                return await coordinator.finish_active()
            case SkipToNextCommand():
                return await coordinator.skip_to_next()
            case RequeueFromArchiveCommand(archived_id=archived_id):
                return await coordinator.requeue_from_archive(archived_id)
            case DeleteArchivedCommand(archived_id=archived_id):
                return await coordinator.delete_archived(archived_id)
            case ClearArchiveCommand():
                return await coordinator.clear_archive()
            case EditLinkCommand():
                return await self._edit_link(command)
            case UpdateBlocklistCommand(add=add, remove=remove):
                return await coordinator.update_blocklist(add=add, remove=remove)
            case UpdateContentFiltersCommand(add=add, remove=remove):
                return await coordinator.update_content_filters(add=add, remove=remove)
            case SetDurationCeilingCommand(priority=priority, seconds=seconds):
                return await coordinator.set_duration_ceiling(priority, seconds)
        raise ValidationError(
            ErrorMessages.UNSUPPORTED_COMMAND.format(command=type(command).__name__)
        )

    async def _edit_link(self, command: EditLinkCommand) -> CommandOutcome:
        if command.track_url is None:
            return await self._coordinator.attach_match(command.request_id, None)

        if self._catalog is None or not self._catalog.enabled:
            raise CatalogLookupError(command.track_url, ErrorMessages.CATALOG_CREDENTIALS_MISSING)

        track_id = self._catalog.extract_track_id(command.track_url)
        if track_id is None:
            raise ValidationError(
                ErrorMessages.INVALID_CATALOG_URL.format(url=command.track_url),
                field="track_url",
            )

        track = await self._catalog.get_track(track_id)
        if track is None:
            raise EntityNotFoundError("CatalogTrack", track_id)
        return await self._coordinator.attach_match(command.request_id, track)
