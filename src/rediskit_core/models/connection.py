"""Connection variants used to build the Redis client behind a Cache."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from rediskit_core.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_RETRIES
from rediskit_core.exceptions import ConnectionConfigError


class NodeAddress(BaseModel):
    """A single host/port pair (cluster node or sentinel)."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default=DEFAULT_HOST, description="Node hostname or IP")
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536, description="Node TCP port")

    @classmethod
    def parse(cls, text: str) -> NodeAddress:
        """Parse a ``host:port`` string."""
        host, sep, port = text.strip().rpartition(":")
        if not sep or not host or not port.isdigit():
            msg = f"Expected 'host:port', got {text!r}"
            raise ConnectionConfigError(msg)
        return cls(host=host, port=int(port))


class ConnectionOptions(BaseModel):
    """Options for a single-node client.

    Unknown keys are accepted and passed straight to ``redis.asyncio.Redis``.
    """

    model_config = ConfigDict(extra="allow")

    host: str = Field(default=DEFAULT_HOST, description="Redis hostname")
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536, description="Redis TCP port")
    db: int = Field(default=0, ge=0, description="Logical database index")
    username: str | None = Field(default=None, description="ACL username")
    password: SecretStr | None = Field(default=None, description="ACL or AUTH password")
    unix_socket_path: str | None = Field(default=None, description="Unix socket path")
    ssl: bool = Field(default=False, description="Connect over TLS")
    client_name: str | None = Field(default=None, description="CLIENT SETNAME value")
    socket_timeout: float | None = Field(default=None, description="Command timeout (s)")
    socket_connect_timeout: float | None = Field(default=None, description="Connect timeout (s)")
    retries: int = Field(
        default=DEFAULT_RETRIES,
        ge=0,
        description="Reconnect attempts made by the client's retry policy",
    )

    def to_client_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``redis.asyncio.Redis``."""
        kwargs = self.model_dump(exclude_none=True, exclude={"password", "retries"})
        if self.unix_socket_path is not None:
            # Socket connections ignore TCP and TLS settings
            for key in ("host", "port", "ssl"):
                kwargs.pop(key, None)
        if self.password is not None:
            kwargs["password"] = self.password.get_secret_value()
        return kwargs


class ClusterOptions(BaseModel):
    """Options for a cluster client; unknown keys go to ``RedisCluster``."""

    model_config = ConfigDict(extra="allow")

    username: str | None = Field(default=None, description="ACL username")
    password: SecretStr | None = Field(default=None, description="ACL or AUTH password")
    ssl: bool = Field(default=False, description="Connect over TLS")
    read_from_replicas: bool = Field(default=False, description="Route reads to replicas")
    require_full_coverage: bool = Field(
        default=True, description="Fail when some hash slots are not covered"
    )
    socket_timeout: float | None = Field(default=None, description="Command timeout (s)")
    socket_connect_timeout: float | None = Field(default=None, description="Connect timeout (s)")

    def to_client_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``RedisCluster``."""
        kwargs = self.model_dump(exclude_none=True, exclude={"password"})
        if self.password is not None:
            kwargs["password"] = self.password.get_secret_value()
        return kwargs


class PortConnection(BaseModel):
    """Connect to localhost on the given port."""

    kind: Literal["port"] = "port"
    port: int = Field(gt=0, lt=65536, description="Redis TCP port")


class HostPortConnection(BaseModel):
    """Connect to a host and port."""

    kind: Literal["host_port"] = "host_port"
    host: str = Field(default=DEFAULT_HOST, description="Redis hostname")
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536, description="Redis TCP port")


class PathConnection(BaseModel):
    """Connect through a ``redis://`` style URL or a unix socket path."""

    kind: Literal["path"] = "path"
    path: str = Field(min_length=1, description="Connection URL or unix socket path")


class OptionsConnection(BaseModel):
    """Connect with a full set of client options."""

    kind: Literal["options"] = "options"
    options: ConnectionOptions = Field(default_factory=ConnectionOptions)


class ExistingClient(BaseModel):
    """Wrap an already constructed client; the Cache borrows it."""

    kind: Literal["client"] = "client"
    client: Any = Field(description="redis.asyncio.Redis or RedisCluster instance")


class SentinelConnection(BaseModel):
    """Connect to the master of a sentinel-managed replica set."""

    kind: Literal["sentinel"] = "sentinel"
    sentinels: list[NodeAddress] = Field(min_length=1, description="Sentinel addresses")
    service_name: str = Field(min_length=1, description="Monitored master name")
    options: ConnectionOptions = Field(default_factory=ConnectionOptions)


class ClusterConnection(BaseModel):
    """Connect to a Redis Cluster through its startup nodes."""

    kind: Literal["cluster"] = "cluster"
    nodes: list[NodeAddress] = Field(min_length=1, description="Cluster startup nodes")
    options: ClusterOptions = Field(default_factory=ClusterOptions)


ConnectionSpec = (
    PortConnection
    | HostPortConnection
    | PathConnection
    | OptionsConnection
    | ExistingClient
    | SentinelConnection
    | ClusterConnection
)
