"""Public interface re-exports for rediskit_core."""

from rediskit_core.interfaces.cache import KeyValueClient

__all__ = [
    "KeyValueClient",
]
