"""Build redis-py asyncio clients from connection variants."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.asyncio.cluster import ClusterNode, RedisCluster
from redis.asyncio.retry import Retry
from redis.asyncio.sentinel import Sentinel, SentinelManagedSSLConnection
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from rediskit_core.constants import DEFAULT_HOST, DEFAULT_RETRIES, URL_SCHEMES
from rediskit_core.exceptions import ConnectionConfigError
from rediskit_core.interfaces.cache import KeyValueClient
from rediskit_core.models.connection import (
    ClusterConnection,
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

type RetryHook = Callable[[BaseException], Awaitable[None]]
type NodeLike = NodeAddress | ClusterNode | tuple[str, int] | Mapping[str, Any]

_RETRY_ON = [RedisConnectionError, RedisTimeoutError]


class _SharedHook:
    """Retry hook that deep-copies to itself.

    redis-py deep-copies the retry policy for each pooled connection; the
    hook, usually a bound method of the Cache, is shared by every copy.
    """

    def __init__(self, hook: RetryHook) -> None:
        self._hook = hook

    def __deepcopy__(self, memo: dict[int, Any]) -> _SharedHook:
        return self

    async def __call__(self, error: BaseException) -> None:
        await self._hook(error)


class ObservedRetry(Retry):
    """Retry policy that reports each failed attempt it will retry.

    Only the public ``call_with_retry(do, fail)`` contract of redis-py's
    ``Retry`` is relied on; the attempt limit is tracked here.
    """

    def __init__(
        self,
        retries: int,
        on_failure: RetryHook | None = None,
    ) -> None:
        """Initialize with exponential backoff and ``retries`` attempts."""
        super().__init__(ExponentialBackoff(), retries)
        self._attempt_limit = retries
        self._on_failure = _SharedHook(on_failure) if on_failure is not None else None

    async def call_with_retry(
        self,
        do: Callable[[], Awaitable[Any]],
        fail: Callable[[Any], Any],
    ) -> Any:
        """Run ``do`` under the retry policy, reporting failures that are retried."""
        hook = self._on_failure
        if hook is None:
            return await super().call_with_retry(do, fail)

        failures = 0

        async def _fail(error: BaseException) -> None:
            nonlocal failures
            failures += 1
            await fail(error)
            # A negative limit retries forever
            if self._attempt_limit < 0 or failures <= self._attempt_limit:
                await hook(error)

        return await super().call_with_retry(do, _fail)


def build_client(
    connection: ConnectionSpec,
    *,
    on_retry: RetryHook | None = None,
) -> tuple[KeyValueClient, bool]:
    """Create the client described by ``connection``.

    Returns the client and whether the caller owns it. A borrowed
    ``ExistingClient`` is returned unchanged and not owned.
    """
    if isinstance(connection, ExistingClient):
        return connection.client, False
    if isinstance(connection, ClusterConnection):
        client: KeyValueClient = RedisCluster(
            startup_nodes=[ClusterNode(node.host, node.port) for node in connection.nodes],
            decode_responses=True,
            **connection.options.to_client_kwargs(),
        )
        logger.debug("cache_client_built", mode="cluster", nodes=len(connection.nodes))
        return client, True
    if isinstance(connection, SentinelConnection):
        return _sentinel_client(connection, on_retry), True

    retry_kwargs = _retry_kwargs(DEFAULT_RETRIES, on_retry)
    if isinstance(connection, PortConnection):
        client = Redis(
            host=DEFAULT_HOST, port=connection.port, decode_responses=True, **retry_kwargs
        )
    elif isinstance(connection, HostPortConnection):
        client = Redis(
            host=connection.host, port=connection.port, decode_responses=True, **retry_kwargs
        )
    elif isinstance(connection, PathConnection):
        if connection.path.startswith(URL_SCHEMES):
            client = Redis.from_url(connection.path, decode_responses=True, **retry_kwargs)
        else:
            client = Redis(unix_socket_path=connection.path, decode_responses=True, **retry_kwargs)
    elif isinstance(connection, OptionsConnection):
        client = Redis(**_single_node_kwargs(connection.options, on_retry))
    else:
        msg = f"Unsupported connection variant: {type(connection).__name__}"
        raise ConnectionConfigError(msg)
    logger.debug("cache_client_built", mode=connection.kind)
    return client, True


def to_node_addresses(nodes: Iterable[NodeLike]) -> list[NodeAddress]:
    """Normalize cluster node descriptors to ``NodeAddress`` values."""
    addresses: list[NodeAddress] = []
    for node in nodes:
        if isinstance(node, NodeAddress):
            addresses.append(node)
        elif isinstance(node, ClusterNode):
            addresses.append(NodeAddress(host=node.host, port=node.port))
        elif isinstance(node, tuple):
            host, port = node
            addresses.append(NodeAddress(host=host, port=port))
        elif isinstance(node, Mapping):
            addresses.append(NodeAddress.model_validate(dict(node)))
        else:
            msg = f"Unsupported cluster node descriptor: {node!r}"
            raise ConnectionConfigError(msg)
    if not addresses:
        msg = "At least one cluster node is required"
        raise ConnectionConfigError(msg)
    return addresses


def _sentinel_client(connection: SentinelConnection, on_retry: RetryHook | None) -> Redis:
    """Create a client bound to the sentinel-managed master."""
    kwargs = _single_node_kwargs(connection.options, on_retry)
    for key in ("host", "port", "unix_socket_path"):
        kwargs.pop(key, None)
    if kwargs.pop("ssl", False):
        kwargs["connection_class"] = SentinelManagedSSLConnection
    sentinel = Sentinel(
        [(node.host, node.port) for node in connection.sentinels],
        **kwargs,
    )
    logger.debug(
        "cache_client_built",
        mode="sentinel",
        service=connection.service_name,
        sentinels=len(connection.sentinels),
    )
    return sentinel.master_for(connection.service_name)


def _single_node_kwargs(options: ConnectionOptions, on_retry: RetryHook | None) -> dict[str, Any]:
    """Merge option kwargs with the forced decoding and retry policy."""
    kwargs = options.to_client_kwargs()
    kwargs["decode_responses"] = True
    kwargs.update(_retry_kwargs(options.retries, on_retry))
    return kwargs


def _retry_kwargs(retries: int, on_retry: RetryHook | None) -> dict[str, Any]:
    """Return the retry keyword arguments for a single-node client."""
    if retries <= 0:
        return {}
    return {"retry": ObservedRetry(retries, on_retry), "retry_on_error": list(_RETRY_ON)}
