"""Tests for Settings configuration."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from rediskit_core.config.settings import Settings
from rediskit_core.models.connection import (
    ClusterConnection,
    OptionsConnection,
    PathConnection,
    SentinelConnection,
)


def _load(env: dict[str, str]) -> Settings:
    """Build Settings from exactly ``env``, ignoring any .env file."""
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.mark.unit
class TestSettings:
    """Test Settings validation and defaults."""

    def test_default_settings(self) -> None:
        """Defaults target localhost:6379 database 0."""
        s = _load({})
        assert s.redis_url is None
        assert s.host == "localhost"
        assert s.port == 6379
        assert s.db == 0
        assert s.retries == 3
        assert s.log_level == "INFO"
        assert s.log_format == "console"

    def test_env_prefix(self) -> None:
        """RK_ prefixed variables are read."""
        s = _load(
            {
                "RK_HOST": "cache.internal",
                "RK_PORT": "6380",
                "RK_DB": "2",
                "RK_PASSWORD": "s3cret",
                "RK_LOG_FORMAT": "json",
            }
        )
        assert s.host == "cache.internal"
        assert s.port == 6380
        assert s.db == 2
        assert s.password is not None
        assert s.password.get_secret_value() == "s3cret"
        assert s.log_format == "json"

    def test_password_hidden_in_repr(self) -> None:
        """Secrets are masked."""
        s = _load({"RK_PASSWORD": "s3cret"})
        assert "s3cret" not in repr(s)

    def test_invalid_log_format_raises(self) -> None:
        """Only console and json renderers exist."""
        with pytest.raises(ValidationError):
            _load({"RK_LOG_FORMAT": "xml"})

    def test_sentinel_without_service_raises(self) -> None:
        """Sentinel mode needs the master name."""
        with pytest.raises(ValidationError, match="sentinel_service required"):
            _load({"RK_SENTINEL_NODES": '["10.0.0.5:26379"]'})


@pytest.mark.unit
class TestConnectionResolution:
    """Tests for Settings.connection precedence."""

    def test_host_port_options_by_default(self) -> None:
        """Without URL or nodes, single-node options are used."""
        conn = _load({"RK_HOST": "10.0.0.7", "RK_SOCKET_TIMEOUT": "1.5"}).connection()
        assert isinstance(conn, OptionsConnection)
        assert conn.options.host == "10.0.0.7"
        assert conn.options.socket_timeout == 1.5

    def test_socket_path_in_options(self) -> None:
        """A socket path is carried into the options."""
        conn = _load({"RK_SOCKET_PATH": "/var/run/redis.sock"}).connection()
        assert isinstance(conn, OptionsConnection)
        kwargs = conn.options.to_client_kwargs()
        assert kwargs["unix_socket_path"] == "/var/run/redis.sock"
        assert "host" not in kwargs

    def test_url_beats_host(self) -> None:
        """A URL takes precedence over host/port."""
        conn = _load(
            {"RK_REDIS_URL": "redis://10.0.0.8:6379/4", "RK_HOST": "ignored"}
        ).connection()
        assert isinstance(conn, PathConnection)
        assert conn.path == "redis://10.0.0.8:6379/4"

    def test_sentinel_beats_url(self) -> None:
        """Sentinel nodes take precedence over a URL."""
        conn = _load(
            {
                "RK_REDIS_URL": "redis://10.0.0.8:6379",
                "RK_SENTINEL_NODES": '["10.0.0.5:26379", "10.0.0.6:26379"]',
                "RK_SENTINEL_SERVICE": "mymaster",
                "RK_DB": "1",
            }
        ).connection()
        assert isinstance(conn, SentinelConnection)
        assert conn.service_name == "mymaster"
        assert [(n.host, n.port) for n in conn.sentinels] == [
            ("10.0.0.5", 26379),
            ("10.0.0.6", 26379),
        ]
        assert conn.options.db == 1

    def test_cluster_beats_everything(self) -> None:
        """Cluster nodes win over sentinel and URL settings."""
        conn = _load(
            {
                "RK_REDIS_URL": "redis://10.0.0.8:6379",
                "RK_CLUSTER_NODES": '["10.0.0.1:7000", "10.0.0.2:7001"]',
                "RK_SENTINEL_NODES": '["10.0.0.5:26379"]',
                "RK_SENTINEL_SERVICE": "mymaster",
                "RK_PASSWORD": "pw",
            }
        ).connection()
        assert isinstance(conn, ClusterConnection)
        assert [n.port for n in conn.nodes] == [7000, 7001]
        assert conn.options.to_client_kwargs()["password"] == "pw"
