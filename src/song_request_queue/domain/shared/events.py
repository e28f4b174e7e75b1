"""Domain event bus for publishing and subscribing to events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from song_request_queue.domain.shared.datetime_utils import utcnow
from song_request_queue.domain.shared.types import NonEmptyStr, UtcDatetimeField

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]
Unsubscribe = Callable[[], None]


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


class EventBus:
    """In-memory pub/sub bus.

    A handler subscribed to an event class also receives every subclass of
    it, so subscribing to ``DomainEvent`` observes the whole stream (used by
    broadcasters that forward every change to an overlay).

    All handlers for one event run concurrently and are awaited before
    ``publish`` returns; consecutive publishes are therefore seen in order.
    A failing handler is logged and never affects the others or the caller.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = {}

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> Unsubscribe:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed %s to %s", _name(handler), event_type.__name__)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed %s from %s", _name(handler), event_type.__name__)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler[Any]]:
        """Handlers for ``event_type`` and its bases, most specific first, no repeats."""
        resolved: list[EventHandler[Any]] = []
        for cls in event_type.__mro__:
            for handler in self._handlers.get(cls, ()):
                if handler not in resolved:
                    resolved.append(handler)
        return resolved

    async def publish(self, event: DomainEvent) -> None:
        event_name = type(event).__name__
        handlers = self.handlers_for(type(event))
        if not handlers:
            logger.debug("No handlers for %s", event_name)
            return

        logger.debug("Publishing %s to %d handlers", event_name, len(handlers))

        async def deliver(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception:
                logger.exception("Handler %s failed on %s", _name(handler), event_name)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(deliver(handler))

    def clear(self) -> None:
        self._handlers.clear()
        logger.debug("Cleared all event handlers")


def _name(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", repr(handler))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the process-wide bus and its handlers (for testing)."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
