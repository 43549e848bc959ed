"""Async Redis cache facade: typed values, TTLs and cache-aside helpers."""

from redis.asyncio import Redis
from redis.asyncio.cluster import ClusterNode, RedisCluster

from rediskit_cache.cache import Cache
from rediskit_cache.events import CacheEvent
from rediskit_core.exceptions import CacheError
from rediskit_core.models.connection import ClusterOptions, ConnectionOptions, NodeAddress

__version__ = "1.1.3"

__all__ = [
    "Cache",
    "CacheError",
    "CacheEvent",
    "ClusterNode",
    "ClusterOptions",
    "ConnectionOptions",
    "NodeAddress",
    "Redis",
    "RedisCluster",
    "__version__",
]
