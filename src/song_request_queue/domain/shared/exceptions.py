"""Base exception classes for domain-level errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from song_request_queue.domain.requests.value_objects import DeclineReason


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, identifier: str | int, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg, code="ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class ResolutionError(DomainError):
    """Raised when a video reference cannot be resolved to metadata."""

    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"

    def __init__(self, reason: str, message: str | None = None) -> None:
        msg = message or f"Metadata resolution failed: {reason}"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.reason = reason


class PolicyError(DomainError):
    """Raised when a submission violates an eligibility rule."""

    def __init__(self, reason: DeclineReason, message: str) -> None:
        super().__init__(message, code="POLICY_VIOLATION")
        self.reason = reason


class PermissionDeniedError(DomainError):
    """Raised when an actor may not act on the given entity."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Not permitted to perform '{operation}'"
        super().__init__(msg, code="PERMISSION_DENIED")
        self.operation = operation


class PersistenceError(DomainError):
    """Raised when a durable write or read fails."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Persistence failed during '{operation}'"
        super().__init__(msg, code="PERSISTENCE_ERROR")
        self.operation = operation


class CatalogLookupError(DomainError):
    """Raised by catalog clients when a lookup cannot be completed."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Catalog lookup failed for '{query}'"
        super().__init__(msg, code="CATALOG_LOOKUP_ERROR")
        self.query = query


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
