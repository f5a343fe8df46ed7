"""Domain-level configuration snapshot value object.

Purpose
-------
Provide an immutable, nested view of a fully resolved configuration together
with provenance (which provider supplied each value). The host pipeline produces
it via :meth:`lib_wildcard_config.application.pipeline.ConfigurationRoot.as_config`
and the CLI serialises it.

Contents
--------
* :class:`SourceInfo` – typed provenance record for a resolved key.
* :class:`Config` – ``Mapping`` implementation with colon-path helpers.
* :data:`EMPTY_CONFIG` – canonical empty instance.

System Role
-----------
Live providers answer lookups against the current snapshot of their files;
:class:`Config` freezes one moment of that state so it can be logged, diffed or
dumped as JSON without touching the providers again.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, TypedDict

from .keys import KEY_DELIMITER


class SourceInfo(TypedDict):
    """Describe the origin of a resolved configuration key.

    Attributes
    ----------
    provider:
        Diagnostic name of the provider that won for this key (``str(provider)``).
    key:
        Fully qualified colon key, e.g. ``"service:timeout"``.
    """

    provider: str
    key: str


@dataclass(frozen=True, slots=True)
class Config(Mapping[str, Any]):
    """Immutable mapping over a resolved configuration tree.

    Parameters
    ----------
    _data:
        Nested mapping whose leaves are strings.
    _meta:
        Mapping from colon keys to :class:`SourceInfo`.

    Examples
    --------
    >>> cfg = Config(
    ...     {"service": {"timeout": "30"}},
    ...     {"service:timeout": {"provider": "MemoryConfigurationProvider", "key": "service:timeout"}},
    ... )
    >>> cfg.get("service:timeout")
    '30'
    >>> cfg.get("SERVICE:Timeout")
    '30'
    >>> cfg.origin("service:timeout")["provider"]
    'MemoryConfigurationProvider'
    """

    _data: Mapping[str, Any]
    _meta: Mapping[str, SourceInfo]

    def __post_init__(self) -> None:
        """Wrap incoming mappings in ``MappingProxyType`` to guarantee immutability."""

        object.__setattr__(self, "_data", MappingProxyType(dict(self._data)))
        object.__setattr__(self, "_meta", MappingProxyType(dict(self._meta)))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def as_dict(self) -> dict[str, Any]:
        """Return a deep, mutable ``dict`` copy of the configuration tree.

        Examples
        --------
        >>> cfg = Config({"service": {"timeout": "5"}}, {})
        >>> clone = cfg.as_dict()
        >>> clone["service"]["timeout"] = "10"
        >>> cfg.get("service:timeout")
        '5'
        """

        return _deepcopy_mapping(self._data)

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the configuration to JSON.

        Examples
        --------
        >>> Config({"service": {"timeout": "5"}}, {}).to_json()
        '{"service":{"timeout":"5"}}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def get(self, key: str, default: Any = None) -> Any:  # type: ignore[override]
        """Resolve *key* as a colon path (case-insensitive) and return ``default`` when missing."""

        current: Any = self._data
        for part in key.split(KEY_DELIMITER):
            if not isinstance(current, Mapping):
                return default
            match = _find_key(current, part)
            if match is None:
                return default
            current = current[match]
        return current

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no provider produced it."""

        folded = key.casefold()
        for meta_key, info in self._meta.items():
            if meta_key.casefold() == folded:
                return info
        return None

    def provenance(self) -> dict[str, SourceInfo]:
        """Return a plain copy of the provenance table."""

        return {key: dict(info) for key, info in self._meta.items()}  # type: ignore[misc]


EMPTY_CONFIG = Config({}, {})


def _find_key(mapping: Mapping[str, Any], part: str) -> str | None:
    if part in mapping:
        return part
    folded = part.casefold()
    for candidate in mapping:
        if candidate.casefold() == folded:
            return candidate
    return None


def _deepcopy_mapping(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively clone a mapping so callers receive a mutable copy.

    ``copy.deepcopy`` cannot copy ``mappingproxy`` objects, so nested proxies are
    rebuilt as plain dictionaries here.
    """

    result: dict[str, Any] = {}
    for key, value in mapping.items():
        result[key] = _deepcopy_mapping(value) if isinstance(value, Mapping) else value
    return result
