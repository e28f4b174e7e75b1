"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from song_request_queue.application.commands.operator_commands import (
    ClearArchiveCommand,
    ClearQueueCommand,
    DeleteArchivedCommand,
    EditLinkCommand,
    FinishActiveCommand,
    MoveToFrontCommand,
    OperatorCommand,
    OperatorCommandHandler,
    OperatorResult,
    OperatorStatus,
    RemoveRequestCommand,
    ReorderQueueCommand,
    RequeueFromArchiveCommand,
    SetActiveCommand,
    SetDurationCeilingCommand,
    SkipToNextCommand,
    UpdateBlocklistCommand,
    UpdateContentFiltersCommand,
    WithdrawRequestCommand,
)
from song_request_queue.application.commands.submit_request import (
    SubmissionResult,
    SubmissionStatus,
    SubmitRequestCommand,
    SubmitRequestHandler,
)

__all__ = [
    # Submit
    "SubmitRequestCommand",
    "SubmitRequestHandler",
    "SubmissionResult",
    "SubmissionStatus",
    # Queue
    "RemoveRequestCommand",
    "WithdrawRequestCommand",
    "ClearQueueCommand",
    "ReorderQueueCommand",
    "MoveToFrontCommand",
    "EditLinkCommand",
    # Active slot
    "SetActiveCommand",
    "FinishActiveCommand",
    "SkipToNextCommand",
    # Archive
    "RequeueFromArchiveCommand",
    "DeleteArchivedCommand",
    "ClearArchiveCommand",
    # Policy
    "UpdateBlocklistCommand",
    "UpdateContentFiltersCommand",
    "SetDurationCeilingCommand",
    # Handler
    "OperatorCommand",
    "OperatorCommandHandler",
    "OperatorResult",
    "OperatorStatus",
]
