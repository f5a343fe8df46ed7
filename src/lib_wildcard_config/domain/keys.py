"""Hierarchical key conventions shared by every provider.

Purpose
-------
Configuration keys are flat strings whose segments are joined with ``:``
(``"logging:level:default"``). Providers store values under such keys and the
host pipeline navigates them one segment at a time. This module keeps the
conventions in one place so file-backed, in-memory, environment and wildcard
providers agree on them.

Contents
--------
* :data:`KEY_DELIMITER` – the segment separator.
* :func:`combine` – joins segments into a key.
* :func:`key_sort_key` – ordering used when providers report child segments.
* :func:`child_segment` – extracts the segment directly below a prefix.
* :func:`flatten_mapping` – converts a parsed document into flat string data.

System Role
-----------
Pure functions without I/O; used by :mod:`lib_wildcard_config.application` and
the adapters.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any, Final

from .errors import InvalidFormat

KEY_DELIMITER: Final[str] = ":"


def combine(*segments: str) -> str:
    """Join *segments* with :data:`KEY_DELIMITER`.

    Examples
    --------
    >>> combine("logging", "level", "default")
    'logging:level:default'
    """

    return KEY_DELIMITER.join(segments)


def key_sort_key(segment: str) -> tuple[int, int, str]:
    """Sort key placing numeric segments first (numerically), then the rest case-insensitively.

    Array items flattened as ``0``, ``1``, ``10`` must enumerate in index order
    rather than lexical order.

    Examples
    --------
    >>> sorted(["b", "10", "A", "2"], key=key_sort_key)
    ['2', '10', 'A', 'b']
    """

    if segment.isdigit():
        return (0, int(segment), "")
    return (1, 0, segment.casefold())


def child_segment(key: str, prefix: str) -> str | None:
    """Return the segment of *key* directly below *prefix* or ``None`` when outside it.

    *prefix* is either empty (top level) or a parent path ending with
    :data:`KEY_DELIMITER`. Matching is case-insensitive.

    Examples
    --------
    >>> child_segment("Logging:Level:Default", "logging:")
    'Level'
    >>> child_segment("service:port", "logging:") is None
    True
    """

    if prefix and not key.casefold().startswith(prefix.casefold()):
        return None
    remainder = key[len(prefix) :]
    index = remainder.find(KEY_DELIMITER)
    return remainder if index < 0 else remainder[:index]


def flatten_mapping(mapping: Mapping[str, Any], *, path: str | None = None) -> dict[str, str]:
    """Flatten a parsed document into ``{"a:b:c": "value"}`` pairs.

    Why
    ----
    Every provider answers lookups over string keys and string values; the
    structured parsers produce nested Python objects.

    What
    ----
    * nested mappings contribute one segment per level;
    * sequences contribute their index (``servers:0:host``);
    * empty mappings and sequences keep their key with an empty value;
    * scalars are rendered as text (``true``/``false`` for booleans, ``""`` for
      ``None``, ISO-8601 for dates and times).

    Raises
    ------
    InvalidFormat
        When two keys differ only by case, which would make lookups ambiguous.
        *path* is only used for the message.

    Examples
    --------
    >>> flatten_mapping({"service": {"port": 8080, "tls": True}, "hosts": ["a", "b"]})
    {'service:port': '8080', 'service:tls': 'true', 'hosts:0': 'a', 'hosts:1': 'b'}
    """

    data: dict[str, str] = {}
    seen: set[str] = set()
    _flatten_value(data, seen, mapping, [], path)
    return data


def _flatten_value(
    data: dict[str, str],
    seen: set[str],
    value: Any,
    segments: list[str],
    path: str | None,
) -> None:
    if isinstance(value, Mapping):
        if not value and segments:
            _store(data, seen, segments, "", path)
        for key, child in value.items():
            _flatten_value(data, seen, child, [*segments, str(key)], path)
        return
    if isinstance(value, (list, tuple)):
        if not value:
            _store(data, seen, segments, "", path)
        for index, child in enumerate(value):
            _flatten_value(data, seen, child, [*segments, str(index)], path)
        return
    _store(data, seen, segments, _render_scalar(value), path)


def _store(data: dict[str, str], seen: set[str], segments: list[str], value: str, path: str | None) -> None:
    key = combine(*segments)
    folded = key.casefold()
    if folded in seen:
        origin = f" in {path}" if path else ""
        raise InvalidFormat(f"A duplicate key '{key}' was found{origin}")
    seen.add(folded)
    data[key] = value


def _render_scalar(value: Any) -> str:
    """Render a parsed scalar the way it would be written in a config file."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)
