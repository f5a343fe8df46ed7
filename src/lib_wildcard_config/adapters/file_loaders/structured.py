"""Structured configuration file parsers.

Purpose
-------
Convert the bytes of one configuration file into a Python mapping. Parsers are
small wrappers around ``tomllib``/``json``/``yaml.safe_load`` so error handling
and observability live in one place.

Contents
--------
* :class:`BaseFileLoader` – shared mapping validation.
* :class:`TOMLFileLoader` – TOML documents.
* :class:`JSONFileLoader` – JSON documents.
* :class:`YAMLFileLoader` – YAML documents.
* :data:`FILE_LOADERS` – loaders keyed by format name.

System Role
-----------
Invoked by :class:`lib_wildcard_config.adapters.providers.file.FileConfigurationProvider`
after the file provider returned the raw bytes. Reading files is not a parser
concern, which keeps these classes trivially testable.
"""

from __future__ import annotations

import json
import tomllib
from typing import Mapping

import yaml

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    format: str = ""

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_wildcard_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data  # type: ignore[return-value]

    def _invalid(self, path: str, exc: Exception) -> InvalidFormat:
        log_error("config_file_invalid", source="file", path=path, format=self.format, error=str(exc))
        return InvalidFormat(f"Invalid {self.format.upper()} in {path}: {exc}")

    def _loaded(self, data: object, path: str) -> Mapping[str, object]:
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", source="file", path=path, format=self.format)
        return result


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents using the standard library parser."""

    format = "toml"

    def parse(self, payload: bytes, *, path: str) -> Mapping[str, object]:
        """Return mapping extracted from TOML *payload*.

        Examples
        --------
        >>> TOMLFileLoader().parse(b'key = "value"', path="demo.toml")["key"]
        'value'
        """

        try:
            data = tomllib.loads(payload.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return self._loaded(data, path)


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    format = "json"

    def parse(self, payload: bytes, *, path: str) -> Mapping[str, object]:
        """Return mapping extracted from JSON *payload*.

        Examples
        --------
        >>> JSONFileLoader().parse(b'{"enabled": true}', path="demo.json")["enabled"]
        True
        """

        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return self._loaded(data, path)


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents with ``yaml.safe_load``; an empty document is an empty mapping."""

    format = "yaml"

    def parse(self, payload: bytes, *, path: str) -> Mapping[str, object]:
        """Return mapping extracted from YAML *payload*.

        Examples
        --------
        >>> YAMLFileLoader().parse(b"key: 1", path="demo.yaml")["key"]
        1
        >>> YAMLFileLoader().parse(b"# nothing here", path="demo.yaml")
        {}
        """

        try:
            data = yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc) from exc
        if data is None:
            data = {}
        return self._loaded(data, path)


FILE_LOADERS: dict[str, BaseFileLoader] = {
    "json": JSONFileLoader(),
    "toml": TOMLFileLoader(),
    "yaml": YAMLFileLoader(),
    "yml": YAMLFileLoader(),
}
