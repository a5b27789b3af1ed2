"""Typed event channel between the orchestration engine and the UI.

The orchestrator publishes through the ``EventSink`` protocol; UIs either
register a synchronous listener or iterate ``subscribe()``. The channel
enforces the per-app ordering rules: no progress after an app's terminal
event and at most one terminal event per operation.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Protocol, runtime_checkable

from launchkit.domain.events import (
    TERMINAL_EVENT_TYPES,
    LauncherEvent,
    ProgressEvent,
)
from launchkit.logger import get_logger

logger = get_logger(__name__)

EventListener = Callable[[LauncherEvent], None]

_CLOSED = object()


@runtime_checkable
class EventSink(Protocol):
    """Receives lifecycle events for app operations."""

    def open(self, app_id: str) -> None:
        """Start a new operation for ``app_id``."""
        ...

    def publish(self, event: LauncherEvent) -> None:
        """Deliver one event."""
        ...


class NullEventSink:
    """Event sink that discards everything (headless use and tests)."""

    def open(self, app_id: str) -> None:
        """No-op."""

    def publish(self, event: LauncherEvent) -> None:
        """No-op."""


class EventChannel:
    """Fan-out of lifecycle events to listeners and async subscribers."""

    def __init__(self) -> None:
        """Initialize an empty channel."""
        self._listeners: list[EventListener] = []
        self._queues: list[asyncio.Queue[object]] = []
        self._terminated: set[str] = set()

    def open(self, app_id: str) -> None:
        """Reset ordering state for a new operation on ``app_id``."""
        self._terminated.discard(app_id)

    def is_terminated(self, app_id: str) -> bool:
        """Whether the current operation for ``app_id`` has settled."""
        return app_id in self._terminated

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        """Register a synchronous listener.

        Returns:
            Callable that removes the listener

        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def publish(self, event: LauncherEvent) -> None:
        """Deliver ``event`` unless it violates the ordering rules."""
        app_id = event.app_id
        if isinstance(event, ProgressEvent):
            if app_id in self._terminated:
                logger.debug("Dropping late progress for %s", app_id)
                return
        elif isinstance(event, TERMINAL_EVENT_TYPES):
            if app_id in self._terminated:
                logger.debug(
                    "Dropping duplicate %s for %s",
                    type(event).__name__,
                    app_id,
                )
                return
            self._terminated.add(app_id)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed for %s", app_id)

        for queue in self._queues:
            queue.put_nowait(event)

    async def subscribe(self) -> AsyncIterator[LauncherEvent]:
        """Iterate events published from now on until ``close()``."""
        queue: asyncio.Queue[object] = asyncio.Queue()
        self._queues.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item  # type: ignore[misc]
        finally:
            self._queues.remove(queue)

    def close(self) -> None:
        """End every active subscription."""
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
