"""
Request Domain Services

Eligibility rules and queue ordering: business logic that spans the
queue aggregate, the policy lists and a single incoming request.
"""

from __future__ import annotations

from song_request_queue.domain.requests.entities import (
    EligibilityPolicy,
    QueueState,
    Requester,
    SongRequest,
)
from song_request_queue.domain.requests.value_objects import DeclineReason, PriorityClass
from song_request_queue.domain.shared.datetime_utils import format_duration
from song_request_queue.domain.shared.exceptions import PolicyError, ValidationError
from song_request_queue.domain.shared.messages import DeclineMessages, ErrorMessages


class EligibilityFilter:
    """Decides whether a submission may enter the queue.

    Checks never touch persistence. Every check is skipped when the
    submission carries the bypass flag.
    """

    @classmethod
    def precheck(
        cls,
        policy: EligibilityPolicy,
        state: QueueState,
        requester: Requester,
        priority: PriorityClass,
        *,
        bypass: bool = False,
    ) -> None:
        """Run the checks that need no resolved metadata.

        Raises:
            PolicyError: If the requester is blocked, or is a standard-class
                requester who already has a request waiting.
        """
        if bypass:
            return

        if policy.is_blocked(requester):
            raise PolicyError(DeclineReason.BLOCKED, DeclineMessages.BLOCKED)

        if priority is PriorityClass.STANDARD and state.has_outstanding(requester):
            raise PolicyError(
                DeclineReason.OUTSTANDING_REQUEST, DeclineMessages.OUTSTANDING_REQUEST
            )

    @classmethod
    def check(
        cls,
        policy: EligibilityPolicy,
        state: QueueState,
        request: SongRequest,
        *,
        bypass: bool = False,
    ) -> None:
        """Run every check against a resolved request.

        Raises:
            PolicyError: On the first failing check.
        """
        if bypass:
            return

        cls.precheck(policy, state, request.requester, request.priority)

        ceiling = policy.ceiling_for(request.priority)
        if request.duration_seconds > ceiling:
            raise PolicyError(
                DeclineReason.DURATION_EXCEEDED,
                DeclineMessages.DURATION_EXCEEDED.format(
                    duration=request.duration_formatted,
                    ceiling=format_duration(ceiling),
                ),
            )

        if policy.matching_filter(request.title, request.artist) is not None:
            raise PolicyError(DeclineReason.CONTENT_FILTERED, DeclineMessages.CONTENT_FILTERED)

        if state.contains_video(request.video_id):
            raise PolicyError(DeclineReason.DUPLICATE_SOURCE, DeclineMessages.DUPLICATE_SOURCE)


class QueueOrderingEngine:
    """Decides where requests land in the queue.

    Elevated requests go ahead of every standard request but behind
    earlier elevated ones; standard requests append. A manual reorder
    replaces the whole sequence, and later insertions splice into it
    using the same rule.
    """

    @classmethod
    def insertion_index(cls, queue: list[SongRequest], priority: PriorityClass) -> int:
        if priority is PriorityClass.ELEVATED:
            for index, request in enumerate(queue):
                if not request.is_elevated:
                    return index
        return len(queue)

    @classmethod
    def insert(cls, queue: list[SongRequest], request: SongRequest) -> int:
        """Insert ``request`` in place and return its zero-based position."""
        index = cls.insertion_index(queue, request.priority)
        queue.insert(index, request)
        return index

    @classmethod
    def reorder(cls, queue: list[SongRequest], ordered_ids: list[str]) -> list[SongRequest]:
        """Build the queue named by ``ordered_ids``.

        Queued requests the list omits keep their relative order after the
        named ones.

        Raises:
            ValidationError: If an id is unknown or named twice.
        """
        by_id = {request.id: request for request in queue}
        seen: set[str] = set()
        reordered: list[SongRequest] = []

        for request_id in ordered_ids:
            if request_id in seen:
                raise ValidationError(
                    ErrorMessages.REORDER_DUPLICATE_ID.format(request_id=request_id),
                    field="ordered_ids",
                )
            request = by_id.get(request_id)
            if request is None:
                raise ValidationError(
                    ErrorMessages.REORDER_UNKNOWN_ID.format(request_id=request_id),
                    field="ordered_ids",
                )
            seen.add(request_id)
            reordered.append(request)

        reordered.extend(request for request in queue if request.id not in seen)
        return reordered

    @classmethod
    def move_to_front(cls, queue: list[SongRequest], request_id: str) -> bool:
        """Move a request to the head regardless of its class."""
        for index, request in enumerate(queue):
            if request.id == request_id:
                queue.insert(0, queue.pop(index))
                return True
        return False
