"""Shared fixtures for building configuration directories and observing child factories."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from lib_wildcard_config.adapters.providers.file import JsonConfigurationSource, StructuredChildFactory

APPSETTINGS_A: Mapping[str, Any] = {"key1": "value1", "shared": "A"}
APPSETTINGS_B: Mapping[str, Any] = {"key2": "value2", "shared": "B"}


def write_json(directory: Path, name: str, payload: Mapping[str, Any]) -> Path:
    """Write *payload* as JSON to ``directory / name`` and return the path."""

    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def write_appsettings(directory: Path) -> None:
    """Write the two overlapping ``appsettings.*.json`` files used across the suite."""

    write_json(directory, "appsettings.a.json", APPSETTINGS_A)
    write_json(directory, "appsettings.b.json", APPSETTINGS_B)


@dataclass
class RecordingFactory:
    """Child factory that delegates to the JSON factory and remembers what it built.

    ``before_build`` runs ahead of every child construction, which lets tests
    observe the aggregate while a load is still in progress.
    """

    delegate: StructuredChildFactory = field(default_factory=lambda: StructuredChildFactory(JsonConfigurationSource))
    before_build: Callable[[str], None] | None = None
    calls: list[str] = field(default_factory=list)
    built: list[Any] = field(default_factory=list)

    def build(self, source: Any, filename: str) -> Any:
        if self.before_build is not None:
            self.before_build(filename)
        self.calls.append(filename)
        child = self.delegate.build(source, filename)
        self.built.append(child)
        return child


@dataclass
class StubChild:
    """Minimal child provider with a fixed mapping that records ``close`` calls."""

    data: dict[str, str]
    closed: bool = False
    loads: int = 0

    def load(self) -> None:
        self.loads += 1

    def try_get(self, key: str) -> tuple[bool, str | None]:
        if key in self.data:
            return True, self.data[key]
        return False, None

    def get_child_keys(self, earlier_keys, parent_path):
        return sorted({key.split(":")[0] for key in self.data}) + list(earlier_keys)

    def close(self) -> None:
        self.closed = True
