"""Host configuration pipeline: builder and root.

Purpose
-------
Chain several configuration sources into one resolvable key space. Sources are
registered on a :class:`ConfigurationBuilder`; :meth:`ConfigurationBuilder.build`
materialises each into a provider and returns a :class:`ConfigurationRoot` that
answers lookups across them.

Contents
--------
* :class:`ConfigurationBuilder` – ordered source list plus shared properties
  (the base file provider).
* :class:`ConfigurationRoot` – ordered provider pipeline with explicit
  precedence and key accumulation.

System Role
-----------
Precedence follows registration order: a later-registered provider overrides an
earlier one (``json files → environment`` style layering). Child-key
enumeration threads the keys contributed so far through the providers in
registration order and de-duplicates once at the end, so providers never have
to know about each other.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

from ..domain.config import Config, EMPTY_CONFIG, SourceInfo
from ..domain.errors import InvalidArgument
from ..domain.keys import combine
from ..observability import log_debug, log_info, make_event
from .ports import ConfigurationProvider, ConfigurationSource, FileProvider

FILE_PROVIDER_PROPERTY = "FileProvider"


class ConfigurationBuilder:
    """Collect sources in registration order and build them into a root.

    Examples
    --------
    >>> from lib_wildcard_config import add_in_memory_collection
    >>> root = add_in_memory_collection(ConfigurationBuilder(), {"service:port": "80"}).build()
    >>> root["service:port"]
    '80'
    """

    def __init__(self) -> None:
        self.sources: list[ConfigurationSource] = []
        self.properties: dict[str, Any] = {}

    def add(self, source: ConfigurationSource) -> ConfigurationBuilder:
        if source is None:
            raise InvalidArgument("source must not be None")
        self.sources.append(source)
        return self

    def set_base_path(self, base_path: str | Path) -> ConfigurationBuilder:
        """Use a physical directory rooted at *base_path* as the default file provider."""

        from ..adapters.file_providers.physical import PhysicalFileProvider

        return self.set_file_provider(PhysicalFileProvider(base_path))

    def set_file_provider(self, file_provider: FileProvider) -> ConfigurationBuilder:
        if file_provider is None:
            raise InvalidArgument("file_provider must not be None")
        self.properties[FILE_PROVIDER_PROPERTY] = file_provider
        return self

    def get_file_provider(self) -> FileProvider:
        """Return the configured default file provider, falling back to the working directory."""

        provider = self.properties.get(FILE_PROVIDER_PROPERTY)
        if provider is None:
            from ..adapters.file_providers.physical import PhysicalFileProvider

            provider = PhysicalFileProvider(Path.cwd())
        return provider

    def build(self) -> ConfigurationRoot:
        """Build every registered source, in order, into a :class:`ConfigurationRoot`.

        When a source fails to build, the providers built before it are closed
        and the error propagates.
        """

        providers: list[ConfigurationProvider] = []
        try:
            for source in self.sources:
                providers.append(source.build(self))
        except Exception:
            for provider in providers:
                provider.close()
            raise
        log_info("configuration_built", **make_event("pipeline", None, {"providers": len(providers)}))
        return ConfigurationRoot(providers)


class ConfigurationRoot:
    """Resolve keys across an ordered sequence of providers."""

    def __init__(self, providers: list[ConfigurationProvider]) -> None:
        self._providers: tuple[ConfigurationProvider, ...] = tuple(providers)

    @property
    def providers(self) -> tuple[ConfigurationProvider, ...]:
        return self._providers

    def try_get(self, key: str) -> tuple[bool, str | None]:
        """Return the value from the last-registered provider that has *key*."""

        for provider in reversed(self._providers):
            found, value = provider.try_get(key)
            if found:
                return True, value
        return False, None

    def get(self, key: str, default: str | None = None) -> str | None:
        found, value = self.try_get(key)
        return value if found else default

    def __getitem__(self, key: str) -> str | None:
        found, value = self.try_get(key)
        if not found:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.try_get(key)[0]

    def get_children_keys(self, parent_path: str | None = None) -> list[str]:
        """Return distinct child segments below *parent_path* across all providers.

        Each provider receives the keys accumulated from the providers before it;
        duplicates are dropped case-insensitively keeping the first spelling.
        """

        accumulated: list[str] = []
        for provider in self._providers:
            accumulated = list(provider.get_child_keys(accumulated, parent_path))
        seen: set[str] = set()
        distinct: list[str] = []
        for segment in accumulated:
            folded = segment.casefold()
            if folded not in seen:
                seen.add(folded)
                distinct.append(segment)
        return distinct

    def reload(self) -> None:
        """Reload every provider in registration order."""

        for provider in self._providers:
            provider.load()
        log_info("configuration_reloaded", **make_event("pipeline", None, {"providers": len(self._providers)}))

    def close(self) -> None:
        for provider in self._providers:
            provider.close()

    def as_config(self) -> Config:
        """Freeze the currently resolved values into an immutable :class:`Config`."""

        data: dict[str, Any] = {}
        meta: dict[str, SourceInfo] = {}
        self._collect(None, data, meta)
        if not meta:
            return EMPTY_CONFIG
        log_debug("configuration_snapshot", **make_event("pipeline", None, {"keys": len(meta)}))
        return Config(data, meta)

    def _collect(self, parent: str | None, target: dict[str, Any], meta: dict[str, SourceInfo]) -> None:
        for segment in self.get_children_keys(parent):
            key = segment if parent is None else combine(parent, segment)
            if self.get_children_keys(key):
                branch: dict[str, Any] = {}
                self._collect(key, branch, meta)
                target[segment] = branch
                continue
            winner = self._winner(key)
            if winner is None:
                continue
            provider, value = winner
            target[segment] = value
            meta[key] = {"provider": str(provider), "key": key}

    def _winner(self, key: str) -> tuple[ConfigurationProvider, str | None] | None:
        for provider in reversed(self._providers):
            found, value = provider.try_get(key)
            if found:
                return provider, value
        return None

    def __iter__(self) -> Iterator[str]:
        return iter(self.get_children_keys(None))

    def __enter__(self) -> ConfigurationRoot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
