"""Settings factories for unit and integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

if TYPE_CHECKING:
    from rediskit_core.config.settings import Settings


def make_settings(**overrides: object) -> MagicMock:
    """Create a mock Settings with sensible defaults.

    Override any attribute via keyword arguments.
    """
    settings = MagicMock()
    settings.redis_url = None
    settings.host = "localhost"
    settings.port = 6379
    settings.db = 0
    settings.username = None
    settings.password = None
    settings.socket_path = None
    settings.cluster_nodes = []
    settings.sentinel_nodes = []
    settings.sentinel_service = None
    settings.socket_timeout = None
    settings.socket_connect_timeout = None
    settings.retries = 3
    settings.log_level = "INFO"
    settings.log_format = "console"

    for key, value in overrides.items():
        setattr(settings, key, value)

    return settings


def make_real_settings(**overrides: object) -> Settings:
    """Create a real Settings pointing at the test Redis (database 1)."""
    from rediskit_core.config.settings import Settings as _Settings

    defaults: dict[str, object] = {
        "redis_url": "redis://localhost:6379/1",
        "socket_connect_timeout": 2.0,
        "retries": 0,
    }
    defaults.update(overrides)
    return _Settings(_env_file=None, **defaults)  # type: ignore[arg-type, call-arg]
