"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the wildcard provider, the
host pipeline, and consuming applications. The hierarchy lives in the domain
layer so outer layers may depend on it without creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`InvalidFormat` – a matched file could not be parsed.
* :class:`NotFound` – a required configuration file is missing.
* :class:`InvalidArgument` – a registration call received unusable arguments.
* :class:`InvalidOperation` – a source or provider is in a state that cannot
  perform the requested operation.

System Role
-----------
Registration helpers raise :class:`InvalidArgument` before any I/O happens.
Child providers raise :class:`InvalidFormat` / :class:`NotFound` and the
wildcard provider lets them propagate verbatim. Callers catch
:class:`ConfigError` to handle every library failure uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_wildcard_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class InvalidFormat(ConfigError):
    """Raised when a configuration file cannot be parsed into flat key/value data.

    Typical Sources
    ---------------
    Structured file parsers (:mod:`tomllib`, :mod:`json`, :mod:`yaml`) and the
    key flattener when two keys collide case-insensitively.
    """


class NotFound(ConfigError):
    """Represents a missing configuration file that was not marked optional."""


class InvalidArgument(ConfigError, ValueError):
    """Raised when a registration helper receives a missing or empty argument.

    Subclasses :class:`ValueError` so generic argument validation in host
    applications keeps working.
    """


class InvalidOperation(ConfigError, RuntimeError):
    """Raised when a provider cannot perform an operation in its current setup.

    Examples: the base file provider cannot enumerate a physical directory, or a
    wildcard source was built without a child provider factory.
    """
