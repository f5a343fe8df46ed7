"""Dictionary-backed provider base shared by the leaf providers.

Purpose
-------
Most providers hold a flat ``{colon_key: value}`` mapping and only differ in
how they fill it. :class:`KeyValueConfigurationProvider` implements lookup and
child-key enumeration over that mapping once, so the JSON/TOML/YAML, memory and
environment providers only implement :meth:`load`.

Contents
--------
* :class:`KeyValueConfigurationProvider` – case-insensitive flat store.
* :class:`FileLoadExceptionContext` – passed to ``on_load_exception`` handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..domain.keys import KEY_DELIMITER, child_segment, key_sort_key


class KeyValueConfigurationProvider:
    """Serve lookups from a flat mapping whose keys compare case-insensitively.

    Subclasses call :meth:`_replace_data` from :meth:`load`. The mapping is
    swapped in one assignment so readers on other threads see either the old or
    the new data.

    Examples
    --------
    >>> provider = KeyValueConfigurationProvider()
    >>> provider._replace_data({"Logging:Level": "info", "logging:format": "json"})
    >>> provider.try_get("LOGGING:LEVEL")
    (True, 'info')
    >>> provider.get_child_keys([], "logging")
    ['format', 'Level']
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, str | None]] = {}

    def load(self) -> None:
        """Nothing to read by default."""

    def try_get(self, key: str) -> tuple[bool, str | None]:
        entry = self._data.get(key.casefold())
        if entry is None:
            return False, None
        return True, entry[1]

    def get_child_keys(self, earlier_keys: Iterable[str], parent_path: str | None) -> list[str]:
        """Return *earlier_keys* plus the segments directly below *parent_path*, sorted.

        The sort is stable and *earlier_keys* go first, so among spellings that
        differ only in case the one from an earlier provider stays in front.
        """

        prefix = "" if parent_path is None else parent_path + KEY_DELIMITER
        segments = list(earlier_keys)
        segments.extend(
            segment
            for original, _ in self._data.values()
            if (segment := child_segment(original, prefix)) is not None
        )
        segments.sort(key=key_sort_key)
        return segments

    def close(self) -> None:
        """Nothing to release by default."""

    def _replace_data(self, data: Mapping[str, str | None]) -> None:
        self._data = {key.casefold(): (key, value) for key, value in data.items()}

    def __str__(self) -> str:
        return type(self).__name__


@dataclass(slots=True)
class FileLoadExceptionContext:
    """Describe a failed file load to an ``on_load_exception`` handler.

    Handlers may set :attr:`ignore` to ``True`` to keep the provider usable with
    its previous data instead of raising.
    """

    provider: Any
    exception: BaseException
    ignore: bool = False
