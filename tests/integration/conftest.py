"""Integration test fixtures: a real Redis on localhost:6379."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from rediskit_core.config.settings import Settings

# ---------------------------------------------------------------------------
# Service health checks (with retry for CI container start-up)
# ---------------------------------------------------------------------------

REDIS_HOST = "localhost"
REDIS_PORT = 6379
TEST_REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/1"


def _tcp_reachable(
    host: str,
    port: int,
    timeout: float = 1.0,
    retries: int = 10,
    delay: float = 2.0,
) -> bool:
    """Check if a TCP service is reachable, retrying on failure."""
    for attempt in range(retries):
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError:
            if attempt < retries - 1:
                time.sleep(delay)
    return False


_redis_up = _tcp_reachable(REDIS_HOST, REDIS_PORT, retries=5, delay=1.0)

require_redis = pytest.mark.skipif(
    not _redis_up,
    reason="Redis not reachable on localhost:6379; start one with `docker run -p 6379:6379 redis`",
)
skip_no_redis = require_redis


# ---------------------------------------------------------------------------
# Redis fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[Redis, None]:
    """Function-scoped Redis client on test DB 1, flushed before each test."""
    if not _redis_up:
        pytest.skip("Redis not available")

    client = Redis.from_url(TEST_REDIS_URL, decode_responses=True)
    await client.flushdb()
    yield client
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def real_settings() -> Settings:
    """Real Settings pointing at the test Redis."""
    from tests.mocks.mock_settings import make_real_settings

    return make_real_settings(redis_url=TEST_REDIS_URL)


# ---------------------------------------------------------------------------
# Logging cleanup
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Save and restore root logger handlers around each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
