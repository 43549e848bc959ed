"""Domain models for rediskit-cache."""

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

__all__ = [
    "ClusterConnection",
    "ClusterOptions",
    "ConnectionOptions",
    "ConnectionSpec",
    "ExistingClient",
    "HostPortConnection",
    "NodeAddress",
    "OptionsConnection",
    "PathConnection",
    "PortConnection",
    "SentinelConnection",
]
