"""Wildcard configuration source and aggregation provider.

Purpose
-------
Let one glob pattern (``appsettings.*.json``) act as a single configuration
provider backed by every file it matches. The provider discovers the files,
builds one child provider per file through an injected factory, and answers
lookups across the children with first-discovered-file-wins precedence.

Contents
--------
* :class:`ProviderState` – lifecycle of a :class:`WildcardConfigurationProvider`.
* :class:`WildcardConfigurationSource` – descriptor holding the pattern, base
  file provider, reload settings and child factory.
* :class:`WildcardConfigurationProvider` – the aggregate.

System Role
-----------
Registered through :func:`lib_wildcard_config.core.add_wildcard` and friends;
built by :meth:`lib_wildcard_config.application.pipeline.ConfigurationBuilder.build`.

Concurrency
-----------
``load`` assembles the new list of children off to the side and publishes it
as one tuple assignment. Readers bind the current tuple once per call and
iterate that reference, so a reload on a watcher thread never exposes a
partially built set of children. Writers are serialised by a lock; readers take
none.
"""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..domain.errors import InvalidArgument, InvalidOperation
from ..observability import log_debug, log_error, log_info, make_event
from .ports import ChildProviderFactory, ConfigurationProvider, DirectoryFileProvider, FileProvider, LoadExceptionHandler

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .pipeline import ConfigurationBuilder


class ProviderState(enum.Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(slots=True)
class WildcardConfigurationSource:
    """Describe a wildcard registration.

    Attributes
    ----------
    path:
        Glob relative to the file provider's root (``*`` and ``?``; no recursion).
    file_provider:
        Base directory capability; resolved from the builder when left unset.
    optional:
        ``True`` for wildcard registrations, so zero matches is not an error.
    reload_on_change / reload_delay / on_load_exception:
        Shared settings copied onto every child source.
    provider_factory:
        Strategy building the child provider for each matched filename.
    """

    path: str | None = None
    file_provider: FileProvider | None = None
    reload_on_change: bool = False
    reload_delay: float = 0.25
    on_load_exception: LoadExceptionHandler | None = None
    provider_factory: ChildProviderFactory | None = None

    @property
    def optional(self) -> bool:
        """Always ``True``: a pattern matching no files yields an empty provider."""

        return True

    def build(self, builder: ConfigurationBuilder) -> WildcardConfigurationProvider:
        """Fill defaults from *builder* and return a loaded provider."""

        self.ensure_defaults(builder)
        return WildcardConfigurationProvider(self)

    def ensure_defaults(self, builder: ConfigurationBuilder) -> None:
        if self.file_provider is None:
            self.file_provider = builder.get_file_provider()

    def resolve_file_provider(self) -> None:
        """Split an absolute pattern into a physical root and a relative pattern.

        Only applies while :attr:`file_provider` is unset. The root is the
        nearest existing ancestor directory of the pattern.

        Examples
        --------
        >>> import tempfile
        >>> tmp = tempfile.TemporaryDirectory()
        >>> source = WildcardConfigurationSource(path=str(Path(tmp.name) / "settings.*.json"))
        >>> source.resolve_file_provider()
        >>> source.path, source.file_provider.root == str(Path(tmp.name).resolve())
        ('settings.*.json', True)
        >>> tmp.cleanup()
        """

        if self.file_provider is not None or not self.path or not Path(self.path).is_absolute():
            return
        from ..adapters.file_providers.physical import PhysicalFileProvider

        candidate = Path(self.path)
        pattern_parts: list[str] = []
        directory = candidate.parent
        pattern_parts.append(candidate.name)
        while directory != directory.parent and not directory.is_dir():
            pattern_parts.insert(0, directory.name)
            directory = directory.parent
        if not directory.is_dir():
            return
        self.file_provider = PhysicalFileProvider(directory)
        self.path = "/".join(pattern_parts)


class WildcardConfigurationProvider:
    """Merge the child providers built for every file matching a glob.

    Lookups consult the children in discovery order (file names sorted
    lexicographically) and return the first hit, so ``appsettings.a.json``
    overrides ``appsettings.b.json``.
    """

    def __init__(self, source: WildcardConfigurationSource) -> None:
        if source is None:
            raise InvalidArgument("source must not be None")
        if source.provider_factory is None:
            raise InvalidOperation("Wildcard source must have a provider factory")
        self.source = source
        self.state = ProviderState.UNLOADED
        self._children: tuple[ConfigurationProvider, ...] = ()
        self._load_lock = threading.Lock()
        self._watch = None
        self.load()
        if source.reload_on_change:
            self._start_watch()

    @property
    def children(self) -> tuple[ConfigurationProvider, ...]:
        """Current snapshot of child providers."""

        return self._children

    def load(self) -> None:
        """Discover matching files and rebuild the children snapshot.

        Raises
        ------
        InvalidOperation
            When the file provider cannot enumerate a physical directory.
        Exception
            Whatever a child raises while loading; the previous snapshot stays
            published.
        """

        directory = self.source.file_provider
        if not isinstance(directory, DirectoryFileProvider):
            raise InvalidOperation(f"FileProvider was unexpected type '{type(directory).__name__}'")
        with self._load_lock:
            pattern = self.source.path or ""
            filenames = directory.glob(pattern)
            log_debug("wildcard_discovered", **make_event("wildcard", pattern, {"files": list(filenames)}))
            children = self._build_children(filenames)
            previous, self._children = self._children, children
            self.state = ProviderState.LOADED
            _close_all(previous)
        log_info("wildcard_loaded", **make_event("wildcard", pattern, {"files": len(children)}))

    def _build_children(self, filenames: Iterable[str]) -> tuple[ConfigurationProvider, ...]:
        factory = self.source.provider_factory
        assert factory is not None
        built: list[ConfigurationProvider] = []
        try:
            for filename in filenames:
                child = factory.build(self.source, filename)
                built.append(child)
                child.load()
        except Exception as exc:
            log_error(
                "wildcard_load_failed",
                **make_event("wildcard", self.source.path, {"error": str(exc), "built": len(built)}),
            )
            _close_all(built)
            if self.state is ProviderState.UNLOADED:
                self.state = ProviderState.FAILED
            raise
        return tuple(built)

    def try_get(self, key: str) -> tuple[bool, str | None]:
        for child in self._children:
            found, value = child.try_get(key)
            if found:
                return True, value
        return False, None

    def get_child_keys(self, earlier_keys: Iterable[str], parent_path: str | None) -> list[str]:
        """Concatenate each child's segments in snapshot order, then *earlier_keys*.

        Duplicates are kept; the host pipeline de-duplicates once for all
        providers.
        """

        keys: list[str] = []
        for child in self._children:
            keys.extend(child.get_child_keys((), parent_path))
        keys.extend(earlier_keys)
        return keys

    def close(self) -> None:
        """Stop watching the pattern, release every child and return to ``UNLOADED``."""

        if self._watch is not None:
            self._watch.close()
            self._watch = None
        with self._load_lock:
            previous, self._children = self._children, ()
            self.state = ProviderState.UNLOADED
        _close_all(previous)

    def _start_watch(self) -> None:
        from ..adapters.file_providers.watch import on_change

        file_provider = self.source.file_provider
        pattern = self.source.path or ""
        assert file_provider is not None
        self._watch = on_change(lambda: file_provider.watch(pattern), self._reload, delay=self.source.reload_delay)

    def _reload(self) -> None:
        try:
            self.load()
        except Exception as exc:  # noqa: BLE001 - reported via log_error
            log_error("wildcard_reload_failed", **make_event("wildcard", self.source.path, {"error": str(exc)}))

    def __str__(self) -> str:
        return f"{type(self).__name__} for '{self.source.path}'"


def _close_all(providers: Iterable[ConfigurationProvider]) -> None:
    for provider in providers:
        provider.close()
