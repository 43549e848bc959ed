"""Shared constants for rediskit-cache."""

from __future__ import annotations

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379

# Confirmation token returned by successful writes and flushes
OK = "OK"

URL_SCHEMES = ("redis://", "rediss://", "unix://")

# Reconnect attempts made by clients the Cache builds itself
DEFAULT_RETRIES = 3
