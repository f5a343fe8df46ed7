"""Environment variable configuration source.

Purpose
-------
Translate process environment variables into colon keys so they can override
file-based sources registered earlier in the pipeline.

Key behaviours
--------------
* Filters on an optional prefix, matched case-insensitively; the prefix is
  stripped from the resulting keys.
* ``__`` acts as the nesting delimiter (``SERVICE__PORT`` → ``SERVICE:PORT``).
* Values stay strings; lookups are case-insensitive like every other provider.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

from ...application.provider import KeyValueConfigurationProvider
from ...domain.keys import KEY_DELIMITER
from ...observability import log_debug, make_event

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...application.pipeline import ConfigurationBuilder

_NESTING = "__"


@dataclass(slots=True)
class EnvironmentVariablesConfigurationSource:
    prefix: str = ""
    environ: Mapping[str, str] | None = None

    def build(self, builder: ConfigurationBuilder) -> EnvironmentVariablesConfigurationProvider:
        return EnvironmentVariablesConfigurationProvider(self)


class EnvironmentVariablesConfigurationProvider(KeyValueConfigurationProvider):
    """Load environment variables that belong to the configuration namespace.

    Examples
    --------
    >>> env = {'DEMO_SERVICE__PORT': '8080', 'OTHER': 'x'}
    >>> provider = EnvironmentVariablesConfigurationProvider(EnvironmentVariablesConfigurationSource('DEMO_', env))
    >>> provider.load()
    >>> provider.try_get('service:port')
    (True, '8080')
    >>> provider.try_get('OTHER')
    (False, None)
    """

    def __init__(self, source: EnvironmentVariablesConfigurationSource) -> None:
        super().__init__()
        self.source = source
        self.load()

    def load(self) -> None:
        environ = self.source.environ if self.source.environ is not None else os.environ
        prefix = self.source.prefix.casefold()
        data: dict[str, str] = {}
        for key, value in environ.items():
            if prefix and not key.casefold().startswith(prefix):
                continue
            stripped = key[len(self.source.prefix) :]
            if not stripped:
                continue
            data[stripped.replace(_NESTING, KEY_DELIMITER)] = value
        self._replace_data(data)
        log_debug("env_variables_loaded", **make_event("env", None, {"prefix": self.source.prefix, "keys": sorted(data)}))

    def __str__(self) -> str:
        return f"{type(self).__name__} Prefix: '{self.source.prefix}'"
