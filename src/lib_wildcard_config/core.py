"""Composition root for ``lib_wildcard_config``.

Purpose
-------
Provide the registration helpers that put wildcard (and single-file, memory,
environment) sources onto a :class:`ConfigurationBuilder`, plus
:func:`read_config` which wires a typical pipeline in one call.

Contents
--------
* :func:`add_wildcard` – generic registration taking a configure callback.
* :func:`add_json_wildcard` / :func:`add_toml_wildcard` / :func:`add_yaml_wildcard`
  – wildcard registrations whose children parse the given format.
* :func:`add_json_file` / :func:`add_toml_file` / :func:`add_yaml_file` –
  single-file registrations.
* :func:`add_in_memory_collection` / :func:`add_environment_variables`.
* :func:`build_configuration` / :func:`read_config` – one-call pipelines.

System Role
-----------
All helpers validate their arguments before any I/O and return the builder so
registrations chain. Precedence across registrations follows the builder
(later wins); precedence inside a wildcard follows sorted file names (first
wins).
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Final, Mapping

from .adapters.providers.env import EnvironmentVariablesConfigurationSource
from .adapters.providers.file import (
    FileConfigurationSource,
    JsonConfigurationSource,
    StructuredChildFactory,
    TomlConfigurationSource,
    YamlConfigurationSource,
)
from .adapters.providers.memory import MemoryConfigurationSource
from .application.pipeline import ConfigurationBuilder, ConfigurationRoot
from .application.ports import FileProvider
from .application.wildcard import WildcardConfigurationSource
from .domain.config import Config
from .domain.errors import InvalidArgument
from .observability import bind_trace_id, log_debug, make_event

# Child source types keyed by format name; ``yml`` is an alias.
SOURCE_TYPES: Final[dict[str, type[FileConfigurationSource]]] = {
    "json": JsonConfigurationSource,
    "toml": TomlConfigurationSource,
    "yaml": YamlConfigurationSource,
    "yml": YamlConfigurationSource,
}


def add_wildcard(
    builder: ConfigurationBuilder,
    configure: Callable[[WildcardConfigurationSource], None],
) -> ConfigurationBuilder:
    """Create a wildcard source, let *configure* fill it in, and add it to *builder*.

    Examples
    --------
    >>> builder = ConfigurationBuilder()
    >>> add_wildcard(builder, lambda s: setattr(s, "path", "*.json")) is builder
    True
    >>> builder.sources[0].path
    '*.json'
    """

    if builder is None:
        raise InvalidArgument("builder must not be None")
    if configure is None:
        raise InvalidArgument("configure must not be None")
    source = WildcardConfigurationSource()
    configure(source)
    return builder.add(source)


def add_json_wildcard(
    builder: ConfigurationBuilder,
    path: str,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """Register every JSON file matching *path* as one configuration source.

    Parameters
    ----------
    builder:
        Builder receiving the source.
    path:
        Glob relative to *provider* (or the builder's base path). An absolute
        pattern resolves its own directory.
    reload_on_change:
        Reload matched files (and rescan the pattern) when they change.
    provider:
        Base directory; defaults to the builder's file provider.

    Raises
    ------
    InvalidArgument
        When *builder* is ``None`` or *path* is ``None``/empty.
    """

    return _add_structured_wildcard(builder, path, reload_on_change, provider, JsonConfigurationSource)


def add_toml_wildcard(
    builder: ConfigurationBuilder,
    path: str,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """TOML flavour of :func:`add_json_wildcard`."""

    return _add_structured_wildcard(builder, path, reload_on_change, provider, TomlConfigurationSource)


def add_yaml_wildcard(
    builder: ConfigurationBuilder,
    path: str,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """YAML flavour of :func:`add_json_wildcard`."""

    return _add_structured_wildcard(builder, path, reload_on_change, provider, YamlConfigurationSource)


def _add_structured_wildcard(
    builder: ConfigurationBuilder,
    path: str,
    reload_on_change: bool,
    provider: FileProvider | None,
    source_type: type[FileConfigurationSource],
) -> ConfigurationBuilder:
    if builder is None:
        raise InvalidArgument("builder must not be None")
    if not path:
        raise InvalidArgument("path must not be None or empty")

    def configure(source: WildcardConfigurationSource) -> None:
        source.provider_factory = StructuredChildFactory(source_type)
        source.file_provider = provider
        source.path = path
        source.reload_on_change = reload_on_change
        source.resolve_file_provider()

    return add_wildcard(builder, configure)


def add_json_file(
    builder: ConfigurationBuilder,
    path: str,
    optional: bool = False,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """Register a single JSON file."""

    return _add_file(builder, path, optional, reload_on_change, provider, JsonConfigurationSource)


def add_toml_file(
    builder: ConfigurationBuilder,
    path: str,
    optional: bool = False,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """Register a single TOML file."""

    return _add_file(builder, path, optional, reload_on_change, provider, TomlConfigurationSource)


def add_yaml_file(
    builder: ConfigurationBuilder,
    path: str,
    optional: bool = False,
    reload_on_change: bool = False,
    *,
    provider: FileProvider | None = None,
) -> ConfigurationBuilder:
    """Register a single YAML file."""

    return _add_file(builder, path, optional, reload_on_change, provider, YamlConfigurationSource)


def _add_file(
    builder: ConfigurationBuilder,
    path: str,
    optional: bool,
    reload_on_change: bool,
    provider: FileProvider | None,
    source_type: type[FileConfigurationSource],
) -> ConfigurationBuilder:
    if builder is None:
        raise InvalidArgument("builder must not be None")
    if not path:
        raise InvalidArgument("path must not be None or empty")
    if provider is None and Path(path).is_absolute():
        from .adapters.file_providers.physical import PhysicalFileProvider

        provider = PhysicalFileProvider(Path(path).parent)
        path = Path(path).name
    source = source_type(path=path, file_provider=provider, optional=optional, reload_on_change=reload_on_change)
    return builder.add(source)


def add_in_memory_collection(
    builder: ConfigurationBuilder,
    initial_data: Mapping[str, str | None] | None = None,
) -> ConfigurationBuilder:
    """Register a fixed mapping of colon keys."""

    if builder is None:
        raise InvalidArgument("builder must not be None")
    return builder.add(MemoryConfigurationSource(dict(initial_data or {})))


def add_environment_variables(
    builder: ConfigurationBuilder,
    prefix: str = "",
    *,
    environ: Mapping[str, str] | None = None,
) -> ConfigurationBuilder:
    """Register environment variables starting with *prefix* (``__`` nests)."""

    if builder is None:
        raise InvalidArgument("builder must not be None")
    return builder.add(EnvironmentVariablesConfigurationSource(prefix=prefix, environ=environ))


def build_configuration(
    pattern: str,
    *,
    base_dir: str | Path | None = None,
    format: str = "json",
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigurationRoot:
    """Build a pipeline made of one wildcard source, optionally followed by environment overrides.

    Raises
    ------
    InvalidArgument
        When *format* is not one of :data:`SOURCE_TYPES`.
    """

    source_type = SOURCE_TYPES.get(format.lower().lstrip("."))
    if source_type is None:
        raise InvalidArgument(f"Unsupported format '{format}', expected one of: {', '.join(SOURCE_TYPES)}")

    bind_trace_id(None)
    builder = ConfigurationBuilder()
    if base_dir is not None:
        builder.set_base_path(base_dir)
    _add_structured_wildcard(builder, pattern, False, None, source_type)
    if env_prefix is not None:
        add_environment_variables(builder, env_prefix, environ=environ)
    log_debug("pipeline_prepared", **make_event("wildcard", pattern, {"format": format, "env_prefix": env_prefix}))
    return builder.build()


def read_config(
    pattern: str,
    *,
    base_dir: str | Path | None = None,
    format: str = "json",
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Return the merged configuration for *pattern* as an immutable :class:`Config`.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / "appsettings.a.json").write_text('{"shared": "A"}', encoding="utf-8")
    >>> _ = (Path(tmp.name) / "appsettings.b.json").write_text('{"shared": "B", "only": "b"}', encoding="utf-8")
    >>> cfg = read_config("appsettings.*.json", base_dir=tmp.name)
    >>> cfg.get("shared"), cfg.get("only")
    ('A', 'b')
    >>> tmp.cleanup()
    """

    root = build_configuration(pattern, base_dir=base_dir, format=format, env_prefix=env_prefix, environ=environ)
    with root:
        return root.as_config()


__all__ = [
    "SOURCE_TYPES",
    "add_wildcard",
    "add_json_wildcard",
    "add_toml_wildcard",
    "add_yaml_wildcard",
    "add_json_file",
    "add_toml_file",
    "add_yaml_file",
    "add_in_memory_collection",
    "add_environment_variables",
    "build_configuration",
    "read_config",
]
