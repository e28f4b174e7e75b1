"""Lifecycle Coordinator - sole owner of the queue, the active slot and the policy.

All mutations run one at a time on a single worker task that drains an
inbox of commands. Each command applies its change in memory, awaits the
store write, and only then publishes the matching events, so listeners
observe changes in application order and never ahead of persistence.
Event handlers run inline on the worker and must not await coordinator
commands themselves.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict

from ...domain.requests.entities import (
    EligibilityPolicy,
    MatchedTrack,
    QueueState,
    Requester,
    SongRequest,
)
from ...domain.requests.events import (
    ActiveChanged,
    ArchiveAppended,
    ArchiveChanged,
    EligibilityChanged,
    EnrichmentAttached,
    QueueChanged,
    SubmissionAccepted,
)
from ...domain.requests.services import EligibilityFilter, QueueOrderingEngine
from ...domain.requests.value_objects import ContentFilter, PriorityClass
from ...domain.shared.constants import SettingKeys
from ...domain.shared.exceptions import (
    DomainError,
    EntityNotFoundError,
    InvalidOperationError,
    PermissionDeniedError,
    PersistenceError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import NonNegativeInt, PositiveInt

if TYPE_CHECKING:
    from ...domain.requests.repository import EligibilityStore, RequestStore
    from ...domain.shared.events import DomainEvent, EventBus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CommandOutcome(BaseModel):
    """What a coordinator command did.

    ``persisted`` is False when the in-memory change was applied and
    announced but the store write failed.
    """

    model_config = ConfigDict(frozen=True)

    changed: bool = True
    persisted: bool = True
    request: SongRequest | None = None
    position: PositiveInt | None = None
    count: NonNegativeInt = 0


class QueueSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    queue: tuple[SongRequest, ...] = ()
    active: SongRequest | None = None
    total_duration_seconds: NonNegativeInt = 0

    @property
    def queue_length(self) -> int:
        return len(self.queue)


@dataclass
class _Envelope:
    name: str
    run: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any] = field(
        default_factory=lambda: asyncio.get_running_loop().create_future()
    )


class LifecycleCoordinator:
    def __init__(
        self,
        *,
        request_store: RequestStore,
        eligibility_store: EligibilityStore,
        event_bus: EventBus,
        standard_max_duration: int = 300,
        elevated_max_duration: int = 600,
    ) -> None:
        self._requests = request_store
        self._eligibility = eligibility_store
        self._bus = event_bus
        self._default_ceilings = (standard_max_duration, elevated_max_duration)

        self._state = QueueState()
        self._policy = EligibilityPolicy(
            standard_max_duration=standard_max_duration,
            elevated_max_duration=elevated_max_duration,
        )
        self._inbox: asyncio.Queue[_Envelope | None] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done() and not self._stopping

    # ---- Lifecycle ----

    async def start(self) -> None:
        """Load persisted state and policy, then start the worker."""
        if self._worker is not None and not self._worker.done():
            return

        self._state = await self._requests.load_state()
        self._policy = await self._load_policy()
        self._inbox = asyncio.Queue()
        self._stopping = False
        self._worker = asyncio.create_task(self._run(), name="lifecycle-coordinator")
        logger.info(LogTemplates.COORDINATOR_STARTED)

    async def stop(self) -> None:
        """Finish every command already posted, then stop the worker.

        Commands posted after ``stop`` begins are rejected with
        ``InvalidOperationError`` instead of waiting on a worker that is gone.
        """
        if self._worker is None:
            return
        self._stopping = True
        await self._inbox.put(None)
        try:
            await self._worker
        finally:
            self._worker = None
            self._reject_pending()
        logger.info(LogTemplates.COORDINATOR_STOPPED)

    async def _load_policy(self) -> EligibilityPolicy:
        standard_default, elevated_default = self._default_ceilings
        return EligibilityPolicy(
            blocked=frozenset(await self._eligibility.list_blocked()),
            filters=frozenset(await self._eligibility.list_filters()),
            standard_max_duration=int(
                await self._eligibility.get_setting(
                    SettingKeys.STANDARD_MAX_DURATION, standard_default
                )
            ),
            elevated_max_duration=int(
                await self._eligibility.get_setting(
                    SettingKeys.ELEVATED_MAX_DURATION, elevated_default
                )
            ),
        )

    async def _run(self) -> None:
        while True:
            envelope = await self._inbox.get()
            if envelope is None:
                break
            if envelope.future.cancelled():
                continue
            try:
                result = await envelope.run()
            except DomainError as e:
                logger.debug(LogTemplates.COORDINATOR_COMMAND_FAILED, envelope.name, e)
                if not envelope.future.cancelled():
                    envelope.future.set_exception(e)
            except Exception as e:
                logger.exception(LogTemplates.COORDINATOR_COMMAND_FAILED, envelope.name, e)
                if not envelope.future.cancelled():
                    envelope.future.set_exception(e)
            else:
                if not envelope.future.cancelled():
                    envelope.future.set_result(result)

    def _reject_pending(self) -> None:
        while not self._inbox.empty():
            envelope = self._inbox.get_nowait()
            if envelope is not None and not envelope.future.done():
                envelope.future.set_exception(
                    InvalidOperationError(
                        envelope.name, "stopped", ErrorMessages.COORDINATOR_NOT_RUNNING
                    )
                )

    async def _submit(self, name: str, run: Callable[[], Awaitable[T]]) -> T:
        if not self.is_running:
            raise InvalidOperationError(name, "stopped", ErrorMessages.COORDINATOR_NOT_RUNNING)
        envelope = _Envelope(name=name, run=run)
        await self._inbox.put(envelope)
        return await envelope.future

    # ---- Helpers (worker only) ----

    async def _persist(self, operation: str, write: Awaitable[Any]) -> bool:
        try:
            await write
        except PersistenceError as e:
            logger.error(LogTemplates.PERSISTENCE_FAILED, operation, e)
            return False
        return True

    async def _publish(self, *events: DomainEvent) -> None:
        for event in events:
            await self._bus.publish(event)

    def _queue_changed(self) -> QueueChanged:
        return QueueChanged(requests=self._state.snapshot())

    async def _archive(self, request: SongRequest) -> tuple[SongRequest, bool]:
        archived = request.archived()
        persisted = await self._persist("append_archive", self._requests.append_archive(archived))
        return archived, persisted

    def _require_queued(self, request_id: str) -> SongRequest:
        request = self._state.get(request_id)
        if request is None:
            raise EntityNotFoundError("SongRequest", request_id)
        return request

    def _policy_changed(self) -> EligibilityChanged:
        return EligibilityChanged(
            blocked=self._policy.blocked,
            filters=self._policy.filters,
            ceilings={
                PriorityClass.STANDARD: self._policy.standard_max_duration,
                PriorityClass.ELEVATED: self._policy.elevated_max_duration,
            },
        )

    # ---- Admission ----

    async def precheck(
        self, requester: Requester, priority: PriorityClass, *, bypass: bool = False
    ) -> None:
        """Run the metadata-free eligibility checks against current state.

        Raises:
            PolicyError: If the requester is blocked or already has a request waiting.
        """

        async def run() -> None:
            EligibilityFilter.precheck(
                self._policy, self._state, requester, priority, bypass=bypass
            )

        await self._submit("precheck", run)

    async def admit(self, request: SongRequest, *, bypass: bool = False) -> CommandOutcome:
        """Re-check eligibility against current state and insert the request.

        Raises:
            PolicyError: If the request is no longer eligible.
        """

        async def run() -> CommandOutcome:
            EligibilityFilter.check(self._policy, self._state, request, bypass=bypass)
            index = QueueOrderingEngine.insert(self._state.queue, request)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.REQUEST_ADMITTED, request.id, request.title, index + 1)
            await self._publish(
                self._queue_changed(),
                SubmissionAccepted(request=request, position=index + 1),
                EnrichmentAttached(request_id=request.id, match=request.match),
            )
            return CommandOutcome(persisted=persisted, request=request, position=index + 1)

        return await self._submit("admit", run)

    # ---- Queue edits ----

    async def remove(self, request_id: str) -> CommandOutcome:
        async def run() -> CommandOutcome:
            self._require_queued(request_id)
            request = self._state.pop(request_id)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.REQUEST_REMOVED, request_id)
            await self._publish(self._queue_changed())
            return CommandOutcome(
                persisted=persisted, request=request.removed() if request else None
            )

        return await self._submit("remove", run)

    async def withdraw(self, request_id: str, login: str) -> CommandOutcome:
        """Remove a queued request on behalf of the viewer who submitted it.

        Raises:
            EntityNotFoundError: If the request is not queued.
            PermissionDeniedError: If ``login`` does not own the request.
        """

        async def run() -> CommandOutcome:
            request = self._require_queued(request_id)
            if not request.was_requested_by(login):
                raise PermissionDeniedError("withdraw", ErrorMessages.NOT_REQUEST_OWNER)
            self._state.pop(request_id)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.REQUEST_WITHDRAWN, request_id, login)
            await self._publish(self._queue_changed())
            return CommandOutcome(persisted=persisted, request=request.removed())

        return await self._submit("withdraw", run)

    async def clear_queue(self) -> CommandOutcome:
        async def run() -> CommandOutcome:
            count = len(self._state.queue)
            if count == 0:
                return CommandOutcome(changed=False)
            self._state.queue = []
            persisted = await self._persist("save_queue", self._requests.save_queue([]))
            logger.info(LogTemplates.QUEUE_CLEARED, count)
            await self._publish(self._queue_changed())
            return CommandOutcome(persisted=persisted, count=count)

        return await self._submit("clear_queue", run)

    async def reorder(self, ordered_ids: list[str]) -> CommandOutcome:
        """Replace the queue order wholesale.

        Raises:
            ValidationError: If an id is unknown or repeated.
        """

        async def run() -> CommandOutcome:
            self._state.queue = QueueOrderingEngine.reorder(self._state.queue, ordered_ids)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.QUEUE_REORDERED, len(self._state.queue))
            await self._publish(self._queue_changed())
            return CommandOutcome(persisted=persisted, count=len(self._state.queue))

        return await self._submit("reorder", run)

    async def move_to_front(self, request_id: str) -> CommandOutcome:
        async def run() -> CommandOutcome:
            request = self._require_queued(request_id)
            QueueOrderingEngine.move_to_front(self._state.queue, request_id)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.REQUEST_MOVED_TO_FRONT, request_id)
            await self._publish(self._queue_changed())
            return CommandOutcome(persisted=persisted, request=request, position=1)

        return await self._submit("move_to_front", run)

    async def attach_match(self, request_id: str, match: MatchedTrack | None) -> CommandOutcome:
        """Replace or clear the matched track of a queued or active request."""

        async def run() -> CommandOutcome:
            active = self._state.active
            if active is not None and active.id == request_id:
                updated = active.with_match(match)
                self._state.active = updated
                persisted = await self._persist(
                    "save_active", self._requests.save_active(updated)
                )
            else:
                index = self._state.index_of(request_id)
                if index is None:
                    raise EntityNotFoundError("SongRequest", request_id)
                updated = self._state.queue[index].with_match(match)
                self._state.queue[index] = updated
                persisted = await self._persist(
                    "save_queue", self._requests.save_queue(self._state.queue)
                )

            logger.info(LogTemplates.MATCH_EDITED, request_id, match.catalog_id if match else None)
            await self._publish(EnrichmentAttached(request_id=request_id, match=match))
            return CommandOutcome(persisted=persisted, request=updated)

        return await self._submit("attach_match", run)

    # ---- Active slot ----

    async def set_active(self, request_id: str | None) -> CommandOutcome:
        """Promote a queued request, archiving the current active one first.

        With ``None`` the active request is archived and the slot cleared.

        Raises:
            EntityNotFoundError: If ``request_id`` is not queued.
        """

        async def run() -> CommandOutcome:
            if request_id is None:
                return await self._finish()

            self._require_queued(request_id)
            events: list[DomainEvent] = []
            persisted = True

            previous = self._state.active
            if previous is not None:
                archived, ok = await self._archive(previous)
                persisted &= ok
                events.append(ArchiveAppended(request=archived))

            promoted = self._state.pop(request_id)
            assert promoted is not None
            return await self._activate(promoted, events, persisted)

        return await self._submit("set_active", run)

    async def finish_active(self) -> CommandOutcome:
        """Archive the active request. A no-op when nothing is active."""
        return await self._submit("finish_active", self._finish)

    async def skip_to_next(self) -> CommandOutcome:
        """Archive the active request and promote the head of the queue."""

        async def run() -> CommandOutcome:
            if not self._state.queue:
                return await self._finish()

            events: list[DomainEvent] = []
            persisted = True
            if self._state.active is not None:
                archived, ok = await self._archive(self._state.active)
                persisted &= ok
                events.append(ArchiveAppended(request=archived))

            promoted = self._state.queue.pop(0)
            return await self._activate(promoted, events, persisted)

        return await self._submit("skip_to_next", run)

    async def _activate(
        self, promoted: SongRequest, events: list[DomainEvent], persisted: bool
    ) -> CommandOutcome:
        active = promoted.activated()
        self._state.active = active
        persisted &= await self._persist("save_active", self._requests.save_active(active))
        persisted &= await self._persist(
            "save_queue", self._requests.save_queue(self._state.queue)
        )
        logger.info(LogTemplates.REQUEST_ACTIVATED, active.id)
        events.extend([ActiveChanged(request=active), self._queue_changed()])
        await self._publish(*events)
        return CommandOutcome(persisted=persisted, request=active)

    async def _finish(self) -> CommandOutcome:
        previous = self._state.active
        if previous is None:
            logger.debug(LogTemplates.FINISH_NOOP)
            return CommandOutcome(changed=False)

        archived, persisted = await self._archive(previous)
        self._state.active = None
        persisted &= await self._persist("save_active", self._requests.save_active(None))
        logger.info(LogTemplates.ACTIVE_FINISHED, previous.id)
        await self._publish(ArchiveAppended(request=archived), ActiveChanged(request=None))
        return CommandOutcome(persisted=persisted, request=archived)

    # ---- Archive ----

    async def requeue_from_archive(self, archived_id: str) -> CommandOutcome:
        """Queue a fresh copy of an archived request at the head of the queue.

        Raises:
            EntityNotFoundError: If no archive entry has ``archived_id``.
        """

        async def run() -> CommandOutcome:
            archived = await self._requests.get_archived(archived_id)
            if archived is None:
                raise EntityNotFoundError("ArchivedRequest", archived_id)

            request = archived.requeued()
            self._state.queue.insert(0, request)
            persisted = await self._persist(
                "save_queue", self._requests.save_queue(self._state.queue)
            )
            logger.info(LogTemplates.REQUEST_REQUEUED, archived_id, request.id)
            await self._publish(self._queue_changed())
            return CommandOutcome(persisted=persisted, request=request, position=1)

        return await self._submit("requeue_from_archive", run)

    async def delete_archived(self, archived_id: str) -> CommandOutcome:
        async def run() -> CommandOutcome:
            if not await self._requests.delete_archived(archived_id):
                raise EntityNotFoundError("ArchivedRequest", archived_id)
            logger.info(LogTemplates.ARCHIVE_DELETED, archived_id)
            await self._publish(ArchiveChanged(removed_ids=(archived_id,)))
            return CommandOutcome(count=1)

        return await self._submit("delete_archived", run)

    async def clear_archive(self) -> CommandOutcome:
        async def run() -> CommandOutcome:
            count = await self._requests.clear_archive()
            logger.info(LogTemplates.ARCHIVE_CLEARED, count)
            await self._publish(ArchiveChanged(cleared=True))
            return CommandOutcome(count=count)

        return await self._submit("clear_archive", run)

    # ---- Eligibility lists ----

    async def update_blocklist(
        self, *, add: Iterable[str] = (), remove: Iterable[str] = ()
    ) -> CommandOutcome:
        to_add = {login.strip().casefold() for login in add if login.strip()}
        to_remove = {login.strip().casefold() for login in remove if login.strip()}

        async def run() -> CommandOutcome:
            persisted = True
            for login in sorted(to_add):
                persisted &= await self._persist(
                    "add_blocked", self._eligibility.add_blocked(login)
                )
            for login in sorted(to_remove):
                persisted &= await self._persist(
                    "remove_blocked", self._eligibility.remove_blocked(login)
                )

            self._policy = self._policy.model_copy(
                update={"blocked": frozenset((self._policy.blocked | to_add) - to_remove)}
            )
            logger.info(LogTemplates.BLOCKLIST_UPDATED, len(to_add), len(to_remove))
            await self._publish(self._policy_changed())
            return CommandOutcome(persisted=persisted, count=len(self._policy.blocked))

        return await self._submit("update_blocklist", run)

    async def update_content_filters(
        self,
        *,
        add: Iterable[ContentFilter] = (),
        remove: Iterable[ContentFilter] = (),
    ) -> CommandOutcome:
        to_add = set(add)
        to_remove = set(remove)

        async def run() -> CommandOutcome:
            persisted = True
            for content_filter in to_add:
                persisted &= await self._persist(
                    "add_filter", self._eligibility.add_filter(content_filter)
                )
            for content_filter in to_remove:
                persisted &= await self._persist(
                    "remove_filter", self._eligibility.remove_filter(content_filter)
                )

            self._policy = self._policy.model_copy(
                update={"filters": frozenset((self._policy.filters | to_add) - to_remove)}
            )
            logger.info(LogTemplates.FILTERS_UPDATED, len(to_add), len(to_remove))
            await self._publish(self._policy_changed())
            return CommandOutcome(persisted=persisted, count=len(self._policy.filters))

        return await self._submit("update_content_filters", run)

    async def set_duration_ceiling(self, priority: PriorityClass, seconds: int) -> CommandOutcome:
        key, attribute = {
            PriorityClass.STANDARD: (SettingKeys.STANDARD_MAX_DURATION, "standard_max_duration"),
            PriorityClass.ELEVATED: (SettingKeys.ELEVATED_MAX_DURATION, "elevated_max_duration"),
        }[priority]

        async def run() -> CommandOutcome:
            ceilings = {
                "standard_max_duration": self._policy.standard_max_duration,
                "elevated_max_duration": self._policy.elevated_max_duration,
                attribute: seconds,
            }
            self._policy = EligibilityPolicy(
                blocked=self._policy.blocked, filters=self._policy.filters, **ceilings
            )
            persisted = await self._persist(
                "set_setting", self._eligibility.set_setting(key, seconds)
            )
            logger.info(LogTemplates.CEILING_UPDATED, priority.value, seconds)
            await self._publish(self._policy_changed())
            return CommandOutcome(persisted=persisted)

        return await self._submit("set_duration_ceiling", run)

    # ---- Snapshots ----

    async def snapshot(self) -> QueueSnapshot:
        async def run() -> QueueSnapshot:
            return QueueSnapshot(
                queue=self._state.snapshot(),
                active=self._state.active,
                total_duration_seconds=self._state.total_duration_seconds,
            )

        return await self._submit("snapshot", run)

    async def policy(self) -> EligibilityPolicy:
        async def run() -> EligibilityPolicy:
            return self._policy

        return await self._submit("policy", run)
