"""In-memory configuration source.

Used for defaults registered ahead of file sources and for overrides in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping

from ...application.provider import KeyValueConfigurationProvider

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ...application.pipeline import ConfigurationBuilder


@dataclass(slots=True)
class MemoryConfigurationSource:
    initial_data: Mapping[str, str | None] = field(default_factory=dict)

    def build(self, builder: ConfigurationBuilder) -> MemoryConfigurationProvider:
        return MemoryConfigurationProvider(self)


class MemoryConfigurationProvider(KeyValueConfigurationProvider):
    """Serve a fixed mapping of colon keys.

    Examples
    --------
    >>> provider = MemoryConfigurationProvider(MemoryConfigurationSource({"a:b": "1"}))
    >>> provider.try_get("A:B")
    (True, '1')
    """

    def __init__(self, source: MemoryConfigurationSource) -> None:
        super().__init__()
        self.source = source
        self._replace_data(source.initial_data)
