"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import re
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars

if TYPE_CHECKING:
    from rediskit_core.config.settings import Settings

# redis-py logs connection churn on these at DEBUG/INFO
_CLIENT_LOGGERS = ("redis", "redis.asyncio", "redis.cluster")

_CONTEXT_KEYS = ("cache_target", "cache_endpoint")

# Userinfo ends at the last "@" of the authority, as urllib splits it
_URL_PASSWORD = re.compile(r"(\b(?:rediss?|unix)://[^:/@\s]*:)[^\s/?#]*@")
_QUERY_PASSWORD = re.compile(r"([?&]password=)[^&#\s]*")
_MASK = "***"


def configure_logging(settings: Settings) -> None:
    """Configure structlog with JSON or console rendering.

    Routes stdlib logging (including redis-py's own loggers) through the
    same processors, so connection URLs are masked on every record.
    """
    shared_processors = _shared_processors()
    level = _resolve_level(settings.log_level)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_processors(settings.log_format),
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_cache_context(target: str, endpoint: str | None = None) -> None:
    """Tag subsequent log entries with the cache connection they concern.

    ``endpoint`` is usually the connection URL; its password is masked
    when the entry is rendered.
    """
    if endpoint:
        bind_contextvars(cache_target=target, cache_endpoint=endpoint)
    else:
        bind_contextvars(cache_target=target)


def clear_cache_context() -> None:
    """Drop the connection tags bound by ``bind_cache_context``."""
    unbind_contextvars(*_CONTEXT_KEYS)


def redact_url(text: str) -> str:
    """Mask passwords in Redis connection URLs found in ``text``."""
    masked = _URL_PASSWORD.sub(rf"\g<1>{_MASK}@", text)
    return _QUERY_PASSWORD.sub(rf"\g<1>{_MASK}", masked)


def _redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor masking URL passwords in every string value."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_url(value)
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_credentials,
    ]


def _render_processors(log_format: str) -> list[structlog.types.Processor]:
    """Pick the final processors for ``log_format``.

    JSON output carries exceptions as structured tracebacks; the console
    renderer prints them itself.
    """
    if log_format == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def _resolve_level(level_name: str) -> int:
    """Convert a level name string to a logging level int."""
    level = logging.getLevelNamesMapping().get(level_name.upper())
    return level if level is not None else logging.INFO
