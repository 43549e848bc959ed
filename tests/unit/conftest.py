"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from rediskit_cache.cache import Cache
from tests.mocks.mock_redis import FakeClock, FakeRedis, make_mock_redis


@pytest.fixture
def clock() -> FakeClock:
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    """Return an empty in-memory Redis double."""
    return FakeRedis(clock)


@pytest.fixture
def cache(fake_redis: FakeRedis) -> Cache:
    """Return a Cache borrowing the in-memory Redis double."""
    return Cache.from_client(fake_redis)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Return a MagicMock Redis client with AsyncMock commands."""
    return make_mock_redis()


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Save and restore root logger handlers around each test.

    Logging and CLI tests call configure_logging(), which replaces the
    root handlers.
    """
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
