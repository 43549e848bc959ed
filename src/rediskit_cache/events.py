"""Lifecycle events raised by a Cache and its client."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

import structlog

logger = structlog.get_logger()

type Listener = Callable[..., Awaitable[None] | None]


class CacheEvent(StrEnum):
    """The fixed set of events a Cache forwards to listeners."""

    CONNECT = "connect"
    READY = "ready"
    ERROR = "error"
    CLOSE = "close"
    RECONNECTING = "reconnecting"
    END = "end"
    WARNING = "warning"


class EventEmitter:
    """Minimal listener registry for ``CacheEvent``s.

    Listeners run in registration order and may be plain callables or
    coroutine functions. Exceptions raised by a listener propagate to the
    code that emitted the event.
    """

    def __init__(self) -> None:
        """Initialize with no listeners."""
        self._listeners: dict[CacheEvent, list[tuple[Listener, bool]]] = {
            event: [] for event in CacheEvent
        }

    def on(self, event: CacheEvent | str, listener: Listener) -> None:
        """Register a listener called on every emission of ``event``."""
        self._listeners[CacheEvent(event)].append((listener, False))

    def once(self, event: CacheEvent | str, listener: Listener) -> None:
        """Register a listener removed after its first call."""
        self._listeners[CacheEvent(event)].append((listener, True))

    def off(self, event: CacheEvent | str, listener: Listener) -> None:
        """Remove the most recently added registration of ``listener``."""
        entries = self._listeners[CacheEvent(event)]
        for index in range(len(entries) - 1, -1, -1):
            if entries[index][0] == listener:
                del entries[index]
                return

    def listener_count(self, event: CacheEvent | str) -> int:
        """Return how many listeners are registered for ``event``."""
        return len(self._listeners[CacheEvent(event)])

    async def emit(self, event: CacheEvent | str, *args: Any) -> bool:
        """Call every listener of ``event``; return whether any existed."""
        name = CacheEvent(event)
        entries = self._listeners[name]
        if not entries:
            return False
        snapshot = list(entries)
        self._listeners[name] = [entry for entry in entries if not entry[1]]
        logger.debug("cache_event_emitted", cache_event=name.value, listeners=len(snapshot))
        for listener, _ in snapshot:
            result = listener(*args)
            if inspect.isawaitable(result):
                await result
        return True
