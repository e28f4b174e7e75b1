"""
Shared Domain Kernel

Contains types, messages and exceptions shared across all bounded contexts.
"""

from song_request_queue.domain.shared.exceptions import (
    CatalogLookupError,
    DomainError,
    EntityNotFoundError,
    InvalidOperationError,
    PermissionDeniedError,
    PersistenceError,
    PolicyError,
    ResolutionError,
    ValidationError,
)

__all__ = [
    "CatalogLookupError",
    "DomainError",
    "EntityNotFoundError",
    "InvalidOperationError",
    "PermissionDeniedError",
    "PersistenceError",
    "PolicyError",
    "ResolutionError",
    "ValidationError",
]
