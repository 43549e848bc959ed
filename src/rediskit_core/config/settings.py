"""Application settings using pydantic-settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rediskit_core.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_RETRIES
from rediskit_core.models.connection import (
    ClusterConnection,
    ClusterOptions,
    ConnectionOptions,
    ConnectionSpec,
    NodeAddress,
    OptionsConnection,
    PathConnection,
    SentinelConnection,
)


class Settings(BaseSettings):
    """Central configuration for rediskit-cache."""

    model_config = SettingsConfigDict(env_prefix="RK_", env_file=".env", extra="ignore")

    # --- Single node ---
    redis_url: str | None = Field(
        default=None,
        description="Connection URL (redis://, rediss:// or unix://); overrides host/port",
    )
    host: str = Field(default=DEFAULT_HOST, description="Redis hostname")
    port: int = Field(default=DEFAULT_PORT, description="Redis TCP port")
    db: int = Field(default=0, description="Logical database index")
    username: str | None = Field(default=None, description="ACL username")
    password: SecretStr | None = Field(default=None, description="ACL or AUTH password")
    socket_path: str | None = Field(default=None, description="Unix socket path")

    # --- Cluster / sentinel ---
    cluster_nodes: list[str] = Field(
        default_factory=list,
        description="Cluster startup nodes as 'host:port' strings; enables cluster mode",
    )
    sentinel_nodes: list[str] = Field(
        default_factory=list,
        description="Sentinel addresses as 'host:port' strings; enables sentinel mode",
    )
    sentinel_service: str | None = Field(
        default=None,
        description="Master name monitored by the sentinels",
    )

    # --- Client behaviour ---
    socket_timeout: float | None = Field(default=None, description="Command timeout in seconds")
    socket_connect_timeout: float | None = Field(
        default=None, description="Connect timeout in seconds"
    )
    retries: int = Field(default=DEFAULT_RETRIES, ge=0, description="Client reconnect attempts")

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["console", "json"] = Field(
        default="console", description="Log renderer"
    )

    @model_validator(mode="after")
    def validate_sentinel_config(self) -> Settings:
        """Require a service name whenever sentinels are configured."""
        if self.sentinel_nodes and not self.sentinel_service:
            msg = "sentinel_service required when sentinel_nodes is set"
            raise ValueError(msg)
        return self

    def connection(self) -> ConnectionSpec:
        """Resolve settings to a connection variant.

        Precedence: cluster, sentinel, URL, socket path, host/port options.
        """
        if self.cluster_nodes:
            return ClusterConnection(
                nodes=[NodeAddress.parse(node) for node in self.cluster_nodes],
                options=ClusterOptions(
                    username=self.username,
                    password=self.password,
                    socket_timeout=self.socket_timeout,
                    socket_connect_timeout=self.socket_connect_timeout,
                ),
            )
        if self.sentinel_nodes:
            return SentinelConnection(
                sentinels=[NodeAddress.parse(node) for node in self.sentinel_nodes],
                service_name=self.sentinel_service or "",
                options=self._connection_options(),
            )
        if self.redis_url:
            return PathConnection(path=self.redis_url)
        return OptionsConnection(options=self._connection_options())

    def _connection_options(self) -> ConnectionOptions:
        """Build single-node client options from these settings."""
        return ConnectionOptions(
            host=self.host,
            port=self.port,
            db=self.db,
            username=self.username,
            password=self.password,
            unix_socket_path=self.socket_path,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_connect_timeout,
            retries=self.retries,
        )
