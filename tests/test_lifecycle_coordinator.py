"""
Tests for the LifecycleCoordinator

Tests for:
- Admission and priority ordering through the actor
- Active slot transitions (set active, finish, skip)
- Archive operations (requeue, delete, clear)
- Eligibility list updates and persisted duration ceilings
- Persist-then-notify ordering and persistence failures

Runs against the in-memory SQLite stores from conftest.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from song_request_queue.application.services.lifecycle_coordinator import (
    LifecycleCoordinator,
    _Envelope,
)
from song_request_queue.domain.requests.entities import QueueState, Requester
from song_request_queue.domain.requests.events import (
    ActiveChanged,
    ArchiveAppended,
    ArchiveChanged,
    EligibilityChanged,
    EnrichmentAttached,
    QueueChanged,
    SubmissionAccepted,
)
from song_request_queue.domain.requests.value_objects import (
    ContentFilter,
    DeclineReason,
    FilterCategory,
    PriorityClass,
    RequestStatus,
)
from song_request_queue.domain.shared.exceptions import (
    EntityNotFoundError,
    InvalidOperationError,
    PermissionDeniedError,
    PersistenceError,
    PolicyError,
    ValidationError,
)

ELEVATED = PriorityClass.ELEVATED


def _types(events):
    return [type(e) for e in events]


# =============================================================================
# Admission
# =============================================================================


class TestAdmit:
    """Tests for LifecycleCoordinator.admit."""

    @pytest.mark.asyncio
    async def test_admit_persists_then_notifies(
        self, coordinator, request_store, recorded_events, make_request
    ):
        request = make_request()

        outcome = await coordinator.admit(request)

        assert outcome.position == 1
        assert outcome.persisted
        assert _types(recorded_events) == [QueueChanged, SubmissionAccepted, EnrichmentAttached]
        assert recorded_events[0].requests == (request,)
        assert recorded_events[1].position == 1
        assert recorded_events[2].request_id == request.id
        assert recorded_events[2].match is None

        state = await request_store.load_state()
        assert [r.id for r in state.queue] == [request.id]

    @pytest.mark.asyncio
    async def test_admit_announces_matched_track(
        self, coordinator, recorded_events, make_request, sample_match
    ):
        request = make_request(match=sample_match)

        await coordinator.admit(request)

        enrichment = [e for e in recorded_events if isinstance(e, EnrichmentAttached)]
        assert len(enrichment) == 1
        assert enrichment[0].request_id == request.id
        assert enrichment[0].match == sample_match

    @pytest.mark.asyncio
    async def test_elevated_lands_before_standard(self, coordinator, make_request):
        s1 = make_request(requester="a")
        s2 = make_request(requester="b")
        e1 = make_request(requester="c", priority=ELEVATED)
        e2 = make_request(requester="d", priority=ELEVATED)

        for request in (s1, s2, e1):
            await coordinator.admit(request)
        outcome = await coordinator.admit(e2)

        assert outcome.position == 2
        snapshot = await coordinator.snapshot()
        assert [r.id for r in snapshot.queue] == [e1.id, e2.id, s1.id, s2.id]

    @pytest.mark.asyncio
    async def test_duplicate_source_declined_at_insertion(self, coordinator, make_request):
        await coordinator.admit(make_request(requester="a", video_id="dQw4w9WgXcQ"))

        with pytest.raises(PolicyError) as exc_info:
            await coordinator.admit(make_request(requester="b", video_id="dQw4w9WgXcQ"))
        assert exc_info.value.reason is DeclineReason.DUPLICATE_SOURCE

        snapshot = await coordinator.snapshot()
        assert snapshot.queue_length == 1

    @pytest.mark.asyncio
    async def test_bypass_allows_duplicate(self, coordinator, make_request):
        await coordinator.admit(make_request(requester="a", video_id="dQw4w9WgXcQ"))
        await coordinator.admit(
            make_request(requester="b", video_id="dQw4w9WgXcQ", bypassed=True), bypass=True
        )

        snapshot = await coordinator.snapshot()
        assert snapshot.queue_length == 2

    @pytest.mark.asyncio
    async def test_declined_admission_emits_nothing(
        self, coordinator, recorded_events, make_request
    ):
        with pytest.raises(PolicyError):
            await coordinator.admit(make_request(duration_seconds=9000))
        assert recorded_events == []

    @pytest.mark.asyncio
    async def test_precheck_uses_current_queue(self, coordinator, make_request):
        await coordinator.admit(make_request(requester="viewer"))

        with pytest.raises(PolicyError) as exc_info:
            await coordinator.precheck(Requester(display_name="Viewer"), PriorityClass.STANDARD)
        assert exc_info.value.reason is DeclineReason.OUTSTANDING_REQUEST

        await coordinator.precheck(Requester(display_name="Viewer"), ELEVATED)


# =============================================================================
# Queue edits
# =============================================================================


class TestQueueEdits:
    """Tests for remove, withdraw, clear, reorder and move-to-front."""

    @pytest.mark.asyncio
    async def test_remove(self, coordinator, recorded_events, make_request):
        request = make_request()
        await coordinator.admit(request)
        recorded_events.clear()

        outcome = await coordinator.remove(request.id)

        assert outcome.request.status is RequestStatus.REMOVED
        assert _types(recorded_events) == [QueueChanged]
        assert recorded_events[0].requests == ()

    @pytest.mark.asyncio
    async def test_remove_unknown_raises(self, coordinator):
        with pytest.raises(EntityNotFoundError):
            await coordinator.remove("missing")

    @pytest.mark.asyncio
    async def test_withdraw_by_owner_case_insensitive(self, coordinator, make_request):
        request = make_request(requester="Viewer", login="viewer_login")
        await coordinator.admit(request)

        await coordinator.withdraw(request.id, "VIEWER_LOGIN")

        assert (await coordinator.snapshot()).queue == ()

    @pytest.mark.asyncio
    async def test_withdraw_by_other_forbidden(self, coordinator, make_request):
        request = make_request(requester="Viewer", login="viewer_login")
        await coordinator.admit(request)

        with pytest.raises(PermissionDeniedError):
            await coordinator.withdraw(request.id, "someone_else")

        assert (await coordinator.snapshot()).queue_length == 1

    @pytest.mark.asyncio
    async def test_clear_queue(self, coordinator, request_store, make_request):
        await coordinator.admit(make_request(requester="a"))
        await coordinator.admit(make_request(requester="b"))

        outcome = await coordinator.clear_queue()

        assert outcome.count == 2
        assert (await request_store.load_state()).queue == []

    @pytest.mark.asyncio
    async def test_clear_empty_queue_is_noop(self, coordinator, recorded_events):
        outcome = await coordinator.clear_queue()
        assert not outcome.changed
        assert recorded_events == []

    @pytest.mark.asyncio
    async def test_reorder_is_authoritative_and_persisted(
        self, coordinator, request_store, make_request
    ):
        a, b, c = (make_request(requester=n) for n in "abc")
        for request in (a, b, c):
            await coordinator.admit(request)

        await coordinator.reorder([c.id, a.id, b.id])

        state = await request_store.load_state()
        assert [r.id for r in state.queue] == [c.id, a.id, b.id]

    @pytest.mark.asyncio
    async def test_reorder_with_unknown_id_changes_nothing(self, coordinator, make_request):
        a = make_request()
        await coordinator.admit(a)

        with pytest.raises(ValidationError):
            await coordinator.reorder(["missing", a.id])
        assert [r.id for r in (await coordinator.snapshot()).queue] == [a.id]

    @pytest.mark.asyncio
    async def test_move_to_front(self, coordinator, make_request):
        e1 = make_request(requester="a", priority=ELEVATED)
        s1 = make_request(requester="b")
        await coordinator.admit(e1)
        await coordinator.admit(s1)

        await coordinator.move_to_front(s1.id)

        assert [r.id for r in (await coordinator.snapshot()).queue] == [s1.id, e1.id]

    @pytest.mark.asyncio
    async def test_attach_match_to_queued_request(
        self, coordinator, recorded_events, make_request, sample_match
    ):
        request = make_request()
        await coordinator.admit(request)
        recorded_events.clear()

        await coordinator.attach_match(request.id, sample_match)

        assert _types(recorded_events) == [EnrichmentAttached]
        assert recorded_events[0].match == sample_match
        assert (await coordinator.snapshot()).queue[0].match == sample_match

    @pytest.mark.asyncio
    async def test_attach_match_to_active_request(
        self, coordinator, request_store, make_request, sample_match
    ):
        request = make_request()
        await coordinator.admit(request)
        await coordinator.set_active(request.id)

        await coordinator.attach_match(request.id, sample_match)

        assert (await request_store.load_state()).active.match == sample_match


# =============================================================================
# Active slot
# =============================================================================


class TestActiveSlot:
    """Tests for set_active, finish_active and skip_to_next."""

    @pytest.mark.asyncio
    async def test_set_active_archives_previous_first(
        self, coordinator, request_store, recorded_events, make_request
    ):
        first, second = make_request(requester="a"), make_request(requester="b")
        await coordinator.admit(first)
        await coordinator.admit(second)
        await coordinator.set_active(first.id)
        recorded_events.clear()

        outcome = await coordinator.set_active(second.id)

        assert outcome.request.status is RequestStatus.ACTIVE
        assert _types(recorded_events) == [ArchiveAppended, ActiveChanged, QueueChanged]
        assert recorded_events[0].request.id == first.id

        state = await request_store.load_state()
        assert state.active.id == second.id
        assert state.queue == []
        archive = await request_store.list_archive()
        assert [r.id for r in archive] == [first.id]

    @pytest.mark.asyncio
    async def test_set_active_unknown_leaves_active_alone(self, coordinator, make_request):
        request = make_request()
        await coordinator.admit(request)
        await coordinator.set_active(request.id)

        with pytest.raises(EntityNotFoundError):
            await coordinator.set_active("missing")

        assert (await coordinator.snapshot()).active.id == request.id

    @pytest.mark.asyncio
    async def test_set_active_none_clears_slot(self, coordinator, make_request):
        request = make_request()
        await coordinator.admit(request)
        await coordinator.set_active(request.id)

        await coordinator.set_active(None)

        assert (await coordinator.snapshot()).active is None

    @pytest.mark.asyncio
    async def test_finish_with_nothing_active_is_noop(
        self, coordinator, request_store, recorded_events
    ):
        outcome = await coordinator.finish_active()
        outcome_again = await coordinator.finish_active()

        assert not outcome.changed
        assert not outcome_again.changed
        assert recorded_events == []
        assert await request_store.list_archive() == []

    @pytest.mark.asyncio
    async def test_finish_archives_active(
        self, coordinator, request_store, recorded_events, make_request
    ):
        request = make_request()
        await coordinator.admit(request)
        await coordinator.set_active(request.id)
        recorded_events.clear()

        outcome = await coordinator.finish_active()

        assert outcome.request.status is RequestStatus.ARCHIVED
        assert _types(recorded_events) == [ArchiveAppended, ActiveChanged]
        assert recorded_events[1].request is None
        assert (await request_store.load_state()).active is None
        assert len(await request_store.list_archive()) == 1

    @pytest.mark.asyncio
    async def test_skip_to_next_promotes_head(self, coordinator, request_store, make_request):
        first, second = make_request(requester="a"), make_request(requester="b")
        await coordinator.admit(first)
        await coordinator.admit(second)
        await coordinator.set_active(first.id)

        outcome = await coordinator.skip_to_next()

        assert outcome.request.id == second.id
        archive = await request_store.list_archive()
        assert [r.id for r in archive] == [first.id]

    @pytest.mark.asyncio
    async def test_skip_with_empty_queue_finishes(self, coordinator, make_request):
        request = make_request()
        await coordinator.admit(request)
        await coordinator.set_active(request.id)

        await coordinator.skip_to_next()

        assert (await coordinator.snapshot()).active is None

    @pytest.mark.asyncio
    async def test_notifications_follow_writes(
        self, coordinator, request_store, event_bus, make_request
    ):
        """Every ActiveChanged observer sees the store already updated."""
        seen = []

        async def on_active(event):
            state = await request_store.load_state()
            seen.append((event.request.id if event.request else None,
                         state.active.id if state.active else None))

        event_bus.subscribe(ActiveChanged, on_active)
        first, second = make_request(requester="a"), make_request(requester="b")
        await coordinator.admit(first)
        await coordinator.admit(second)

        await coordinator.set_active(first.id)
        await coordinator.skip_to_next()
        await coordinator.finish_active()

        assert seen == [(first.id, first.id), (second.id, second.id), (None, None)]


# =============================================================================
# Archive
# =============================================================================


class TestArchive:
    """Tests for requeue, delete and clear of archive entries."""

    async def _archive_one(self, coordinator, request):
        await coordinator.admit(request)
        await coordinator.set_active(request.id)
        await coordinator.finish_active()

    @pytest.mark.asyncio
    async def test_requeue_creates_new_request_at_head(self, coordinator, make_request):
        archived = make_request(requester="a")
        await self._archive_one(coordinator, archived)
        elevated = make_request(requester="b", priority=ELEVATED)
        await coordinator.admit(elevated)

        outcome = await coordinator.requeue_from_archive(archived.id)

        requeued = outcome.request
        assert requeued.id != archived.id
        assert requeued.video_id == archived.video_id
        assert requeued.submitted_at >= archived.submitted_at
        queue = (await coordinator.snapshot()).queue
        assert [r.id for r in queue] == [requeued.id, elevated.id]
        assert requeued.bypassed

    @pytest.mark.asyncio
    async def test_requeued_entry_plays_with_archived_metadata(
        self, coordinator, request_store, make_request
    ):
        original = make_request(title="Old Song", artist="Old Artist", duration_seconds=95)
        await self._archive_one(coordinator, original)
        archived = await request_store.get_archived(original.id)

        outcome = await coordinator.requeue_from_archive(archived.id)
        await coordinator.set_active(outcome.request.id)

        active = (await coordinator.snapshot()).active
        assert active.id == outcome.request.id
        assert (active.title, active.artist, active.duration_seconds) == (
            archived.title,
            archived.artist,
            archived.duration_seconds,
        )
        assert active.video_id == archived.video_id
        assert active.requester == archived.requester

    @pytest.mark.asyncio
    async def test_requeue_unknown_raises(self, coordinator):
        with pytest.raises(EntityNotFoundError):
            await coordinator.requeue_from_archive("missing")

    @pytest.mark.asyncio
    async def test_delete_archived(
        self, coordinator, request_store, recorded_events, make_request
    ):
        request = make_request()
        await self._archive_one(coordinator, request)
        recorded_events.clear()

        await coordinator.delete_archived(request.id)

        assert await request_store.list_archive() == []
        assert _types(recorded_events) == [ArchiveChanged]
        assert recorded_events[0].removed_ids == (request.id,)

    @pytest.mark.asyncio
    async def test_delete_unknown_archived_raises(self, coordinator):
        with pytest.raises(EntityNotFoundError):
            await coordinator.delete_archived("missing")

    @pytest.mark.asyncio
    async def test_clear_archive(self, coordinator, request_store, make_request):
        await self._archive_one(coordinator, make_request(requester="a"))
        await self._archive_one(coordinator, make_request(requester="b"))

        outcome = await coordinator.clear_archive()

        assert outcome.count == 2
        assert await request_store.list_archive() == []


# =============================================================================
# Eligibility lists
# =============================================================================


class TestEligibilityUpdates:
    """Tests for block-list, content filters and duration ceilings."""

    @pytest.mark.asyncio
    async def test_blocklist_update_applies_and_persists(
        self, coordinator, eligibility_store, recorded_events
    ):
        await coordinator.update_blocklist(add=["Troll"])

        with pytest.raises(PolicyError) as exc_info:
            await coordinator.precheck(Requester(display_name="troll"), PriorityClass.STANDARD)
        assert exc_info.value.reason is DeclineReason.BLOCKED
        assert await eligibility_store.list_blocked() == {"troll"}
        assert _types(recorded_events) == [EligibilityChanged]

        await coordinator.update_blocklist(remove=["TROLL"])
        await coordinator.precheck(Requester(display_name="troll"), PriorityClass.STANDARD)

    @pytest.mark.asyncio
    async def test_content_filter_update(self, coordinator, eligibility_store, make_request):
        banned = ContentFilter(term="banned", category=FilterCategory.KEYWORD)
        await coordinator.update_content_filters(add=[banned])

        with pytest.raises(PolicyError):
            await coordinator.admit(make_request(title="Banned Anthem"))
        assert await eligibility_store.list_filters() == {banned}

    @pytest.mark.asyncio
    async def test_duration_ceiling_persists_across_restart(
        self, coordinator, request_store, eligibility_store, event_bus, make_request
    ):
        await coordinator.set_duration_ceiling(PriorityClass.STANDARD, 120)
        with pytest.raises(PolicyError):
            await coordinator.admit(make_request(duration_seconds=150))

        restarted = LifecycleCoordinator(
            request_store=request_store,
            eligibility_store=eligibility_store,
            event_bus=event_bus,
        )
        await restarted.start()
        try:
            policy = await restarted.policy()
            assert policy.standard_max_duration == 120
            assert policy.elevated_max_duration == 600
        finally:
            await restarted.stop()


# =============================================================================
# Lifecycle and failures
# =============================================================================


def _failing_stores():
    request_store = MagicMock()
    request_store.load_state = AsyncMock(return_value=QueueState())
    request_store.save_queue = AsyncMock(side_effect=PersistenceError("save_queue"))
    request_store.save_active = AsyncMock(side_effect=PersistenceError("save_active"))
    request_store.append_archive = AsyncMock(side_effect=PersistenceError("append_archive"))

    eligibility_store = MagicMock()
    eligibility_store.list_blocked = AsyncMock(return_value=set())
    eligibility_store.list_filters = AsyncMock(return_value=set())
    eligibility_store.get_setting = AsyncMock(side_effect=lambda key, default=None: default)
    return request_store, eligibility_store


class TestCoordinatorLifecycle:
    """Tests for start/stop and persistence failure handling."""

    @pytest.mark.asyncio
    async def test_commands_rejected_when_stopped(
        self, request_store, eligibility_store, event_bus
    ):
        coordinator = LifecycleCoordinator(
            request_store=request_store,
            eligibility_store=eligibility_store,
            event_bus=event_bus,
        )

        with pytest.raises(InvalidOperationError):
            await coordinator.snapshot()

    @pytest.mark.asyncio
    async def test_command_posted_during_stop_is_rejected(self, coordinator):
        stopping = asyncio.create_task(coordinator.stop())
        snapshot = asyncio.create_task(coordinator.snapshot())

        await stopping
        done, _ = await asyncio.wait({snapshot}, timeout=1)

        assert snapshot in done
        with pytest.raises(InvalidOperationError):
            snapshot.result()
        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_commands_posted_before_stop_still_complete(self, coordinator, make_request):
        request = make_request()
        admitting = asyncio.create_task(coordinator.admit(request))
        stopping = asyncio.create_task(coordinator.stop())

        await asyncio.wait_for(stopping, timeout=1)

        assert (await admitting).request.id == request.id

    @pytest.mark.asyncio
    async def test_stop_fails_envelopes_left_behind_the_sentinel(self, coordinator):
        stopping = asyncio.create_task(coordinator.stop())
        await asyncio.sleep(0)

        async def never_runs():
            raise AssertionError("ran after stop")

        stranded = _Envelope(name="stranded", run=never_runs)
        coordinator._inbox.put_nowait(stranded)
        await stopping

        with pytest.raises(InvalidOperationError):
            stranded.future.result()

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, coordinator):
        await coordinator.stop()
        await coordinator.start()

        assert coordinator.is_running
        assert (await coordinator.snapshot()).queue == ()

    @pytest.mark.asyncio
    async def test_start_loads_persisted_state(
        self, request_store, eligibility_store, event_bus, make_request
    ):
        queued = make_request()
        await request_store.save_queue([queued])

        coordinator = LifecycleCoordinator(
            request_store=request_store,
            eligibility_store=eligibility_store,
            event_bus=event_bus,
        )
        await coordinator.start()
        try:
            assert [r.id for r in (await coordinator.snapshot()).queue] == [queued.id]
        finally:
            await coordinator.stop()
        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_persistence_failure_still_applies_and_notifies(
        self, event_bus, recorded_events, make_request
    ):
        request_store, eligibility_store = _failing_stores()
        coordinator = LifecycleCoordinator(
            request_store=request_store,
            eligibility_store=eligibility_store,
            event_bus=event_bus,
        )
        await coordinator.start()
        try:
            request = make_request()
            outcome = await coordinator.admit(request)
            activated = await coordinator.set_active(request.id)

            assert not outcome.persisted
            assert not activated.persisted
            assert (await coordinator.snapshot()).active.id == request.id
            assert QueueChanged in _types(recorded_events)
            assert ActiveChanged in _types(recorded_events)
        finally:
            await coordinator.stop()

    @pytest.mark.asyncio
    async def test_concurrent_commands_are_serialized(self, coordinator, make_request):
        requests = [make_request(requester=f"viewer{i}") for i in range(10)]

        outcomes = await asyncio.gather(*(coordinator.admit(r) for r in requests))

        positions = sorted(o.position for o in outcomes)
        assert positions == list(range(1, 11))
        assert (await coordinator.snapshot()).queue_length == 10

    @pytest.mark.asyncio
    async def test_handler_failure_does_not_break_coordinator(
        self, coordinator, event_bus, make_request
    ):
        async def broken(event):
            raise RuntimeError("listener bug")

        event_bus.subscribe(QueueChanged, broken)

        outcome = await coordinator.admit(make_request())
        assert outcome.position == 1
        assert coordinator.is_running
