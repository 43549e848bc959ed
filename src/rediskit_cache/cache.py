"""Async Redis cache facade with typed get/set and cache-aside helpers."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import timedelta
from types import TracebackType
from typing import Any, Self, TypeVar

import structlog
from redis.exceptions import RedisClusterException, RedisError

from rediskit_cache.client_factory import NodeLike, build_client, to_node_addresses
from rediskit_cache.events import CacheEvent, EventEmitter, Listener
from rediskit_cache.serialization import Serializable, deserialize, serialize
from rediskit_core.config.settings import Settings
from rediskit_core.constants import DEFAULT_HOST, DEFAULT_PORT, OK
from rediskit_core.exceptions import CacheError, SerializationError
from rediskit_core.interfaces.cache import KeyValueClient
from rediskit_core.models.connection import (
    ClusterConnection,
    ClusterOptions,
    ConnectionOptions,
    ConnectionSpec,
    ExistingClient,
    HostPortConnection,
    NodeAddress,
    OptionsConnection,
    PathConnection,
    PortConnection,
    SentinelConnection,
)

logger = structlog.get_logger()

T = TypeVar("T")
F = TypeVar("F")

type Source[V] = V | Callable[[], V] | Callable[[], Awaitable[V]]
type TTL = int | timedelta

# Errors raised by the client for failed commands
STORE_ERRORS: tuple[type[BaseException], ...] = (RedisError, RedisClusterException, OSError)


class Cache:
    """Redis-backed cache with JSON-aware values and TTL support.

    Wraps exactly one ``redis.asyncio`` client. Reads fail open (a broken
    store looks like a cache miss), writes and deletes fail closed with
    ``CacheError``. Nothing is cached in process.

    A listener that raises while ``error``, ``warning`` or ``reconnecting``
    is being reported is logged as ``cache_listener_failed`` and skipped, so
    ``get`` and ``flush`` keep failing open and write failures still surface
    as ``CacheError``.

    Example::

        async with Cache.from_host("localhost", 6379) as cache:
            await cache.set("user:1", {"name": "John Doe"}, ttl=3600)
            user = await cache.get("user:1")
    """

    def __init__(self, connection: ConnectionSpec | None = None) -> None:
        """Build or borrow the client described by ``connection``.

        Defaults to ``localhost:6379``. Only clients built here are closed
        by ``close()``.
        """
        self._events = EventEmitter()
        resolved = connection or HostPortConnection(host=DEFAULT_HOST, port=DEFAULT_PORT)
        self._client, self._owns_client = build_client(resolved, on_retry=self._on_retry)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_port(cls, port: int) -> Cache:
        """Connect to localhost on ``port``."""
        return cls(PortConnection(port=port))

    @classmethod
    def from_host(cls, host: str, port: int = DEFAULT_PORT) -> Cache:
        """Connect to ``host:port``."""
        return cls(HostPortConnection(host=host, port=port))

    @classmethod
    def from_path(cls, path: str) -> Cache:
        """Connect through a ``redis://`` URL or a unix socket path."""
        return cls(PathConnection(path=path))

    @classmethod
    def from_options(cls, options: ConnectionOptions | None = None, **kwargs: Any) -> Cache:
        """Connect with explicit client options (or keyword arguments)."""
        resolved = options or ConnectionOptions.model_validate(kwargs)
        return cls(OptionsConnection(options=resolved))

    @classmethod
    def from_client(cls, client: KeyValueClient) -> Cache:
        """Wrap an existing client without taking ownership of it."""
        return cls(ExistingClient(client=client))

    @classmethod
    def from_settings(cls, settings: Settings) -> Cache:
        """Connect using the variant resolved from application settings."""
        return cls(settings.connection())

    @classmethod
    def cluster(
        cls,
        nodes: Iterable[NodeLike],
        options: ClusterOptions | Mapping[str, Any] | None = None,
    ) -> Cache:
        """Create a Cache backed by a Redis Cluster client."""
        if options is None:
            cluster_options = ClusterOptions()
        elif isinstance(options, ClusterOptions):
            cluster_options = options
        else:
            cluster_options = ClusterOptions.model_validate(dict(options))
        return cls(ClusterConnection(nodes=to_node_addresses(nodes), options=cluster_options))

    @classmethod
    def sentinel(
        cls,
        sentinels: Iterable[NodeAddress | tuple[str, int]],
        service_name: str,
        options: ConnectionOptions | None = None,
    ) -> Cache:
        """Create a Cache bound to the master of a sentinel-managed set."""
        return cls(
            SentinelConnection(
                sentinels=to_node_addresses(sentinels),
                service_name=service_name,
                options=options or ConnectionOptions(),
            )
        )

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """Return the decoded value at ``key``, or None when absent.

        Store failures are logged and reported as a miss.
        """
        try:
            data = await self._client.get(key)
            return deserialize(data) if data else None
        except STORE_ERRORS as exc:
            return await self._fail_open("GET", exc, None)

    async def set(self, key: str, value: Serializable, ttl: TTL | None = None) -> str:
        """Store ``value`` at ``key``, expiring after ``ttl`` seconds if given."""
        try:
            serialized = serialize(value)
            if ttl:
                await self._client.setex(key, ttl, serialized)
            else:
                await self._client.set(key, serialized)
            return OK
        except (*STORE_ERRORS, SerializationError) as exc:
            raise await self._wrap_error("SET", exc) from exc

    async def delete(self, key: str) -> int:
        """Delete ``key`` and return the number of keys removed."""
        try:
            return int(await self._client.delete(key))
        except STORE_ERRORS as exc:
            raise await self._wrap_error("DELETE", exc) from exc

    async def flush(self) -> str:
        """Remove every key from the store the client is connected to.

        Irreversible and global: on a cluster this clears every primary.
        Failures are logged and ``"OK"`` is still returned.
        """
        try:
            await self._client.flushall()
            return OK
        except STORE_ERRORS as exc:
            return await self._fail_open("FLUSH", exc, OK)

    async def exists(self, key: str) -> bool:
        """Return whether ``key`` is present; client errors propagate."""
        count = await self._client.exists(key)
        return count > 0

    # ------------------------------------------------------------------
    # Cache-aside patterns
    # ------------------------------------------------------------------

    async def remember(self, key: str, ttl: TTL, source: Source[T]) -> T:
        """Return the cached value or compute, store (with TTL) and return it.

        ``source`` is only resolved on a miss. Concurrent callers may both
        compute on the same miss; the last write wins.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        result = await _resolve(source)
        await self.set(key, result, ttl)  # type: ignore[arg-type]
        return result

    async def forever(self, key: str, source: Source[T]) -> T:
        """Like ``remember`` but the stored entry never expires."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        result = await _resolve(source)
        await self.set(key, result)  # type: ignore[arg-type]
        return result

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: CacheEvent | str, listener: Listener) -> Self:
        """Call ``listener`` every time ``event`` fires."""
        self._events.on(event, listener)
        logger.debug("cache_event_listener_added", cache_event=str(event), once=False)
        return self

    def once(self, event: CacheEvent | str, listener: Listener) -> Self:
        """Call ``listener`` the next time ``event`` fires only."""
        self._events.once(event, listener)
        logger.debug("cache_event_listener_added", cache_event=str(event), once=True)
        return self

    def off(self, event: CacheEvent | str, listener: Listener) -> Self:
        """Stop calling ``listener`` for ``event``."""
        self._events.off(event, listener)
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def client(self) -> KeyValueClient:
        """Return the underlying Redis or RedisCluster client."""
        return self._client

    async def connect(self) -> Self:
        """Ping the store and announce the connection as ready."""
        try:
            await self._client.ping()
        except STORE_ERRORS as exc:
            raise await self._wrap_error("CONNECT", exc) from exc
        logger.info("cache_connected")
        await self._events.emit(CacheEvent.CONNECT)
        await self._events.emit(CacheEvent.READY)
        return self

    async def close(self) -> None:
        """Close the client if this Cache created it."""
        await self._events.emit(CacheEvent.CLOSE)
        if self._owns_client:
            await self._client.aclose()
        logger.info("cache_closed", owned=self._owns_client)
        await self._events.emit(CacheEvent.END)

    async def __aenter__(self) -> Self:
        """Connect on entering an ``async with`` block."""
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close on leaving an ``async with`` block."""
        await self.close()

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def _wrap_error(self, operation: str, error: BaseException) -> CacheError:
        """Log a failed operation, announce it and build its ``CacheError``."""
        message = f"Cache {operation} operation failed: {error}"
        logger.error("cache_operation_failed", operation=operation, message=message)
        await self._emit_safely(CacheEvent.ERROR, error)
        return CacheError(operation, str(error), error)

    async def _fail_open(self, operation: str, error: BaseException, fallback: F) -> F:
        """Report a failed operation and degrade to ``fallback``."""
        cache_error = await self._wrap_error(operation, error)
        await self._emit_safely(CacheEvent.WARNING, cache_error)
        return fallback

    async def _on_retry(self, error: BaseException) -> None:
        """Report a failed attempt the client is about to retry."""
        logger.warning("cache_reconnecting", error=str(error))
        await self._emit_safely(CacheEvent.RECONNECTING, error)

    async def _emit_safely(self, event: CacheEvent, *args: Any) -> None:
        """Emit a failure event, logging listener errors instead of raising them."""
        try:
            await self._events.emit(event, *args)
        except Exception as exc:
            logger.warning(
                "cache_listener_failed",
                cache_event=str(event),
                error=str(exc),
                error_type=type(exc).__name__,
            )


async def _resolve(source: Source[T]) -> T:
    """Resolve a literal, a callable or an async callable to its value."""
    if callable(source):
        result = source()
        if inspect.isawaitable(result):
            return await result
        return result  # type: ignore[return-value]
    return source
