"""Command surface the Cache needs from a key-value client."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueClient(Protocol):
    """Subset of the ``redis.asyncio`` client API used by the Cache.

    Both ``Redis`` and ``RedisCluster`` satisfy it; so does any test double
    exposing the same coroutines.
    """

    async def get(self, name: str) -> Any:
        """Return the raw value stored at ``name`` or None."""
        ...

    async def set(self, name: str, value: str) -> Any:
        """Store ``value`` at ``name`` without expiry."""
        ...

    async def setex(self, name: str, time: int | timedelta, value: str) -> Any:
        """Store ``value`` at ``name`` expiring after ``time`` seconds."""
        ...

    async def delete(self, *names: str) -> int:
        """Delete keys, returning how many were removed."""
        ...

    async def exists(self, *names: str) -> int:
        """Return how many of the given keys exist."""
        ...

    async def flushall(self) -> Any:
        """Remove every key from every database."""
        ...

    async def ping(self) -> Any:
        """Check the connection."""
        ...

    async def aclose(self) -> None:
        """Close the client and release its connections."""
        ...
