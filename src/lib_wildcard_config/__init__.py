"""Public package surface for ``lib_wildcard_config``.

Register a glob such as ``appsettings.*.json`` as one configuration source whose
files are merged first-file-wins, alongside memory, single-file and environment
sources in a :class:`ConfigurationBuilder` pipeline.
"""

from __future__ import annotations

from .adapters.file_providers.physical import NullFileProvider, PhysicalFileProvider
from .adapters.providers.file import (
    JsonConfigurationProvider,
    JsonConfigurationSource,
    StructuredChildFactory,
    TomlConfigurationProvider,
    TomlConfigurationSource,
    YamlConfigurationProvider,
    YamlConfigurationSource,
)
from .application.pipeline import ConfigurationBuilder, ConfigurationRoot
from .application.provider import FileLoadExceptionContext
from .application.wildcard import ProviderState, WildcardConfigurationProvider, WildcardConfigurationSource
from .core import (
    add_environment_variables,
    add_in_memory_collection,
    add_json_file,
    add_json_wildcard,
    add_toml_file,
    add_toml_wildcard,
    add_wildcard,
    add_yaml_file,
    add_yaml_wildcard,
    build_configuration,
    read_config,
)
from .domain.config import Config, EMPTY_CONFIG
from .domain.errors import ConfigError, InvalidArgument, InvalidFormat, InvalidOperation, NotFound
from .observability import bind_trace_id, get_logger

__all__ = [
    "Config",
    "ConfigError",
    "ConfigurationBuilder",
    "ConfigurationRoot",
    "EMPTY_CONFIG",
    "FileLoadExceptionContext",
    "InvalidArgument",
    "InvalidFormat",
    "InvalidOperation",
    "JsonConfigurationProvider",
    "JsonConfigurationSource",
    "NotFound",
    "NullFileProvider",
    "PhysicalFileProvider",
    "ProviderState",
    "StructuredChildFactory",
    "TomlConfigurationProvider",
    "TomlConfigurationSource",
    "WildcardConfigurationProvider",
    "WildcardConfigurationSource",
    "YamlConfigurationProvider",
    "YamlConfigurationSource",
    "add_environment_variables",
    "add_in_memory_collection",
    "add_json_file",
    "add_json_wildcard",
    "add_toml_file",
    "add_toml_wildcard",
    "add_wildcard",
    "add_yaml_file",
    "add_yaml_wildcard",
    "bind_trace_id",
    "build_configuration",
    "get_logger",
    "read_config",
]
