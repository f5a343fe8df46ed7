"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts that providers, sources, and file-system
adapters must satisfy so the wildcard provider and the host pipeline can
orchestrate them without depending on concrete implementations.

Contents
--------
* :class:`ConfigurationProvider` – key lookup and enumeration over one key space.
* :class:`ConfigurationSource` – builds a provider for a given builder.
* :class:`ChangeToken` – signals that watched files changed.
* :class:`FileProvider` – reads files relative to some location and watches them.
* :class:`DirectoryFileProvider` – a file provider backed by a real directory
  that can enumerate files matching a glob.
* :class:`ChildProviderFactory` – strategy creating one child provider per
  matched filename.

System Role
-----------
Leaf providers (JSON, TOML, YAML, memory, environment) and the wildcard
aggregate implement the same :class:`ConfigurationProvider` contract; the
aggregate is simply a provider composed of other providers. All protocols are
``runtime_checkable`` so contract tests and the wildcard provider's capability
check can use ``isinstance``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .pipeline import ConfigurationBuilder


@runtime_checkable
class ConfigurationProvider(Protocol):
    """Expose a hierarchical, colon-delimited key space.

    Methods
    -------
    :meth:`load`
        (Re)read the backing data; raises when the data is invalid.
    :meth:`try_get`
        Return ``(True, value)`` when the key exists, ``(False, None)`` otherwise.
    :meth:`get_child_keys`
        Return the immediate child segments below ``parent_path`` together with
        ``earlier_keys`` contributed by providers registered before this one.
    :meth:`close`
        Release watchers and other resources.
    """

    def load(self) -> None: ...

    def try_get(self, key: str) -> tuple[bool, str | None]: ...

    def get_child_keys(self, earlier_keys: Iterable[str], parent_path: str | None) -> list[str]: ...

    def close(self) -> None: ...


@runtime_checkable
class ConfigurationSource(Protocol):
    """Describe how to build a provider once the builder is finalised."""

    def build(self, builder: ConfigurationBuilder) -> ConfigurationProvider: ...


@runtime_checkable
class ChangeToken(Protocol):
    """Report whether watched content changed since the token was issued."""

    @property
    def has_changed(self) -> bool: ...


@runtime_checkable
class FileProvider(Protocol):
    """Read and watch files addressed by paths relative to the provider."""

    def read_bytes(self, subpath: str) -> bytes:
        """Return the file contents or raise :class:`~lib_wildcard_config.domain.errors.NotFound`."""

    def watch(self, pattern: str) -> ChangeToken:
        """Return a token that flips once files matching *pattern* change."""


@runtime_checkable
class DirectoryFileProvider(FileProvider, Protocol):
    """A file provider rooted at a physical directory.

    Only this kind can back a wildcard source because only a real directory can
    be enumerated.
    """

    @property
    def root(self) -> str: ...

    def glob(self, pattern: str) -> Sequence[str]:
        """Return sorted file names under :attr:`root` matching *pattern* (single level)."""


@runtime_checkable
class ChildProviderFactory(Protocol):
    """Build the child provider for one file matched by a wildcard source."""

    def build(self, source: Any, filename: str) -> ConfigurationProvider: ...


LoadExceptionHandler = Callable[[Any], None]
"""Callback invoked with a :class:`~lib_wildcard_config.application.provider.FileLoadExceptionContext`."""
