"""Encoding of cache values to and from their stored text form.

Strings are stored verbatim. Booleans and numbers are stored as their plain
text, which is also their JSON text. Everything else goes through compact
JSON. Reads try JSON first and fall back to the raw text, so a stored
string ``"5"`` reads back as the int ``5``.
"""

from __future__ import annotations

import json
from typing import Any

from rediskit_core.exceptions import SerializationError

type Serializable = (
    str | int | float | bool | None | list[Any] | tuple[Any, ...] | dict[str, Any]
)

_SEPARATORS = (",", ":")


def serialize(value: Serializable) -> str:
    """Encode a value to the text stored in Redis."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool | int | float):
        return json.dumps(value)
    try:
        return json.dumps(value, separators=_SEPARATORS, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        msg = f"Failed to serialize data: {exc}"
        raise SerializationError(msg) from exc


def deserialize(data: str | bytes) -> Any:
    """Decode stored text, returning it unchanged when it is not JSON.

    Invalid UTF-8 from clients without ``decode_responses`` is replaced
    rather than rejected. ``NaN`` and ``Infinity`` are not JSON and come
    back as strings, as does text nested too deeply to parse.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return text


def _reject_constant(name: str) -> Any:
    """Refuse the non-standard constants Python's json module accepts."""
    msg = f"{name} is not valid JSON"
    raise ValueError(msg)
