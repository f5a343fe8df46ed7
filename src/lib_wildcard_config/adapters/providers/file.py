"""File-backed configuration sources and providers.

Purpose
-------
Bind one structured file (JSON, TOML or YAML) to the provider contract. These
are the children a wildcard source creates for each matched file, and they can
also be registered on their own for single-file sources.

Contents
--------
* :class:`FileConfigurationSource` and the JSON/TOML/YAML subclasses.
* :class:`FileConfigurationProvider` and the JSON/TOML/YAML subclasses.
* :class:`StructuredChildFactory` – child factory used by wildcard sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ...application.ports import FileProvider, LoadExceptionHandler
from ...application.provider import FileLoadExceptionContext, KeyValueConfigurationProvider
from ...domain.errors import NotFound
from ...domain.keys import flatten_mapping
from ...observability import log_debug, log_error, make_event
from ..file_loaders.structured import FILE_LOADERS, BaseFileLoader

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...application.pipeline import ConfigurationBuilder
    from ...application.wildcard import WildcardConfigurationSource


@dataclass(slots=True)
class FileConfigurationSource:
    """Describe a single configuration file relative to a file provider."""

    format: ClassVar[str] = "json"

    path: str | None = None
    file_provider: FileProvider | None = None
    optional: bool = False
    reload_on_change: bool = False
    reload_delay: float = 0.25
    on_load_exception: LoadExceptionHandler | None = None

    def build(self, builder: ConfigurationBuilder) -> FileConfigurationProvider:
        """Fill the file provider from *builder* and return a loaded provider."""

        if self.file_provider is None:
            self.file_provider = builder.get_file_provider()
        provider = _PROVIDERS[self.format](self)
        try:
            provider.load()
        except Exception:
            provider.close()
            raise
        return provider


@dataclass(slots=True)
class JsonConfigurationSource(FileConfigurationSource):
    format: ClassVar[str] = "json"


@dataclass(slots=True)
class TomlConfigurationSource(FileConfigurationSource):
    format: ClassVar[str] = "toml"


@dataclass(slots=True)
class YamlConfigurationSource(FileConfigurationSource):
    format: ClassVar[str] = "yaml"


class FileConfigurationProvider(KeyValueConfigurationProvider):
    """Load one file through its file provider and serve the flattened keys.

    ``load`` may run again from a watcher thread; the flat data is replaced in
    one assignment so concurrent readers see either version in full.
    """

    loader: ClassVar[BaseFileLoader] = FILE_LOADERS["json"]

    def __init__(self, source: FileConfigurationSource) -> None:
        super().__init__()
        self.source = source
        self._watch = None
        if source.reload_on_change and source.file_provider is not None and source.path:
            from ..file_providers.physical import literal_pattern
            from ..file_providers.watch import on_change

            file_provider, path = source.file_provider, literal_pattern(source.path)
            self._watch = on_change(lambda: file_provider.watch(path), self._reload, delay=source.reload_delay)

    def load(self) -> None:
        """Read and parse the file.

        Raises
        ------
        NotFound
            The file is missing and the source is not optional.
        InvalidFormat
            The file could not be parsed.
        """

        source = self.source
        path = source.path or ""
        if source.file_provider is None:
            raise NotFound(f"No file provider configured for {path}")
        try:
            payload = source.file_provider.read_bytes(path)
        except NotFound as exc:
            if source.optional:
                log_debug("config_file_missing", **make_event("file", path, {"optional": True}))
                self._replace_data({})
                return
            self._handle(exc)
            return
        try:
            data = flatten_mapping(self.loader.parse(payload, path=path), path=path)
        except Exception as exc:
            self._handle(exc)
            return
        self._replace_data(data)

    def _handle(self, exc: Exception) -> None:
        handler = self.source.on_load_exception
        if handler is not None:
            context = FileLoadExceptionContext(provider=self, exception=exc)
            handler(context)
            if context.ignore:
                return
        raise exc

    def _reload(self) -> None:
        try:
            self.load()
        except Exception as exc:  # noqa: BLE001 - reported via log_error
            log_error("config_file_reload_failed", **make_event("file", self.source.path, {"error": str(exc)}))

    def close(self) -> None:
        if self._watch is not None:
            self._watch.close()
            self._watch = None

    def __str__(self) -> str:
        optional = "Optional" if self.source.optional else "Required"
        return f"{type(self).__name__} for '{self.source.path}' ({optional})"


class JsonConfigurationProvider(FileConfigurationProvider):
    loader = FILE_LOADERS["json"]


class TomlConfigurationProvider(FileConfigurationProvider):
    loader = FILE_LOADERS["toml"]


class YamlConfigurationProvider(FileConfigurationProvider):
    loader = FILE_LOADERS["yaml"]


_PROVIDERS: dict[str, type[FileConfigurationProvider]] = {
    "json": JsonConfigurationProvider,
    "toml": TomlConfigurationProvider,
    "yaml": YamlConfigurationProvider,
}


class StructuredChildFactory:
    """Build one file provider per filename matched by a wildcard source.

    Shared settings (file provider, reload flag and delay, load-exception
    handler) are copied from the wildcard source; ``optional`` is always
    ``False`` because a matched file must parse.

    Examples
    --------
    >>> from lib_wildcard_config.application.wildcard import WildcardConfigurationSource
    >>> parent = WildcardConfigurationSource(path="*.json", reload_on_change=False)
    >>> child = StructuredChildFactory(JsonConfigurationSource).build(parent, "a.json")
    >>> child.source.path, child.source.optional
    ('a.json', False)
    """

    def __init__(self, source_type: type[FileConfigurationSource] = JsonConfigurationSource) -> None:
        self.source_type = source_type

    def build(self, source: WildcardConfigurationSource, filename: str) -> FileConfigurationProvider:
        child_source = self.source_type(
            path=filename,
            file_provider=source.file_provider,
            optional=False,
            reload_on_change=source.reload_on_change,
            reload_delay=source.reload_delay,
            on_load_exception=source.on_load_exception,
        )
        return _PROVIDERS[child_source.format](child_source)

    def __repr__(self) -> str:
        return f"StructuredChildFactory({self.source_type.__name__})"
