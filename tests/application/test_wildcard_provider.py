"""Behaviour of the wildcard aggregation provider.

Covers discovery order, first-file-wins precedence, the empty case, failure
propagation, snapshot replacement on reload and release of superseded children.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_wildcard_config import (
    InvalidArgument,
    InvalidFormat,
    InvalidOperation,
    NullFileProvider,
    PhysicalFileProvider,
    ProviderState,
    WildcardConfigurationProvider,
    WildcardConfigurationSource,
)
from tests.support import RecordingFactory, StubChild, write_appsettings, write_json


def _source(root: Path, pattern: str = "appsettings.*.json", factory=None) -> WildcardConfigurationSource:
    return WildcardConfigurationSource(
        path=pattern,
        file_provider=PhysicalFileProvider(root),
        provider_factory=factory or RecordingFactory(),
    )


def test_first_discovered_file_wins(tmp_path: Path) -> None:
    """Sorted discovery puts ``a`` before ``b`` so ``a`` supplies the shared key."""

    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))

    assert provider.try_get("key1") == (True, "value1")
    assert provider.try_get("key2") == (True, "value2")
    assert provider.try_get("shared") == (True, "A")
    assert provider.try_get("missing") == (False, None)


def test_children_follow_sorted_file_names(tmp_path: Path) -> None:
    for name in ("appsettings.c.json", "appsettings.a.json", "appsettings.b.json"):
        write_json(tmp_path, name, {"name": name})
    factory = RecordingFactory()

    WildcardConfigurationProvider(_source(tmp_path, factory=factory))

    assert factory.calls == ["appsettings.a.json", "appsettings.b.json", "appsettings.c.json"]


def test_zero_matches_behaves_as_empty_provider(tmp_path: Path) -> None:
    provider = WildcardConfigurationProvider(_source(tmp_path, "nothing.*.json"))

    assert provider.state is ProviderState.LOADED
    assert provider.children == ()
    assert provider.try_get("key1") == (False, None)
    assert provider.get_child_keys([], None) == []
    assert provider.get_child_keys(["earlier"], None) == ["earlier"]


def test_get_child_keys_concatenates_children_then_earlier_keys(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))

    keys = provider.get_child_keys(["from-earlier"], None)

    assert keys == ["key1", "shared", "key2", "shared", "from-earlier"]
    assert set(keys) == {"key1", "key2", "shared", "from-earlier"}


def test_nested_keys_are_reachable(tmp_path: Path) -> None:
    write_json(tmp_path, "appsettings.a.json", {"logging": {"level": "debug"}})
    write_json(tmp_path, "appsettings.b.json", {"logging": {"level": "info", "format": "json"}})
    provider = WildcardConfigurationProvider(_source(tmp_path))

    assert provider.try_get("Logging:Level") == (True, "debug")
    assert provider.try_get("logging:format") == (True, "json")
    assert provider.get_child_keys([], "logging") == ["level", "format", "level"]


def test_children_are_never_optional_and_inherit_reload_settings(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    source = _source(tmp_path)
    source.reload_delay = 1.5

    provider = WildcardConfigurationProvider(source)

    assert source.optional is True
    for child in provider.children:
        assert child.source.optional is False
        assert child.source.reload_on_change is False
        assert child.source.reload_delay == 1.5
        assert child.source.file_provider is source.file_provider


def test_reload_on_change_is_forwarded_to_children(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    source = _source(tmp_path)
    source.reload_on_change = True

    provider = WildcardConfigurationProvider(source)
    try:
        assert [child.source.reload_on_change for child in provider.children] == [True, True]
    finally:
        provider.close()


def test_malformed_file_fails_load_on_first_attempt(tmp_path: Path) -> None:
    write_json(tmp_path, "appsettings.a.json", {"key1": "value1"})
    (tmp_path / "appsettings.b.json").write_text("{not json", encoding="utf-8")
    factory = RecordingFactory()

    with pytest.raises(InvalidFormat):
        WildcardConfigurationProvider(_source(tmp_path, factory=factory))

    assert factory.calls == ["appsettings.a.json", "appsettings.b.json"]


def test_failed_reload_keeps_previous_snapshot(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))
    before = provider.children

    (tmp_path / "appsettings.c.json").write_text("[1, 2", encoding="utf-8")
    write_json(tmp_path, "appsettings.0.json", {"key1": "overridden"})

    with pytest.raises(InvalidFormat):
        provider.load()

    assert provider.children is before
    assert provider.state is ProviderState.LOADED
    assert provider.try_get("key1") == (True, "value1")


def test_added_file_becomes_visible_after_reload(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))
    assert provider.try_get("key3") == (False, None)

    write_json(tmp_path, "appsettings.c.json", {"key3": "value3", "shared": "C"})
    provider.load()

    assert provider.try_get("key3") == (True, "value3")
    assert provider.try_get("shared") == (True, "A")
    assert len(provider.children) == 3


def test_readers_see_previous_snapshot_while_load_is_in_progress(tmp_path: Path) -> None:
    """Lookups issued mid-load must be answered entirely from the old children."""

    write_appsettings(tmp_path)
    factory = RecordingFactory()
    provider = WildcardConfigurationProvider(_source(tmp_path, factory=factory))
    old_children = provider.children
    write_json(tmp_path, "appsettings.0.json", {"shared": "zero", "key0": "new"})
    observed: list[tuple[object, ...]] = []

    def observe(_: str) -> None:
        observed.append((provider.children, provider.try_get("shared"), provider.try_get("key0")))

    factory.before_build = observe
    provider.load()

    assert len(observed) == 3
    for children, shared, key0 in observed:
        assert children is old_children
        assert shared == (True, "A")
        assert key0 == (False, None)
    assert provider.try_get("shared") == (True, "zero")


def test_superseded_children_are_closed_after_swap(tmp_path: Path) -> None:
    class Factory:
        def __init__(self) -> None:
            self.built: list[StubChild] = []

        def build(self, source, filename):
            child = StubChild({"file": filename})
            self.built.append(child)
            return child

    write_appsettings(tmp_path)
    factory = Factory()
    provider = WildcardConfigurationProvider(_source(tmp_path, factory=factory))
    first_generation = list(factory.built)

    provider.load()

    assert all(child.closed for child in first_generation)
    assert not any(child.closed for child in factory.built[2:])
    assert all(child.loads == 1 for child in factory.built)


def test_partially_built_children_are_closed_on_failure(tmp_path: Path) -> None:
    class Factory:
        def __init__(self) -> None:
            self.built: list[StubChild] = []

        def build(self, source, filename):
            if filename.endswith("b.json"):
                raise InvalidFormat("broken")
            child = StubChild({})
            self.built.append(child)
            return child

    write_appsettings(tmp_path)
    factory = Factory()

    with pytest.raises(InvalidFormat, match="broken"):
        WildcardConfigurationProvider(_source(tmp_path, factory=factory))

    assert [child.closed for child in factory.built] == [True]


def test_non_physical_file_provider_is_rejected() -> None:
    source = WildcardConfigurationSource(
        path="*.json",
        file_provider=NullFileProvider(),
        provider_factory=RecordingFactory(),
    )

    with pytest.raises(InvalidOperation, match="NullFileProvider"):
        WildcardConfigurationProvider(source)


def test_missing_factory_is_an_invalid_operation(tmp_path: Path) -> None:
    source = WildcardConfigurationSource(path="*.json", file_provider=PhysicalFileProvider(tmp_path))

    with pytest.raises(InvalidOperation, match="provider factory"):
        WildcardConfigurationProvider(source)


def test_missing_source_is_an_invalid_argument() -> None:
    with pytest.raises(InvalidArgument):
        WildcardConfigurationProvider(None)  # type: ignore[arg-type]


def test_str_names_kind_and_pattern(tmp_path: Path) -> None:
    provider = WildcardConfigurationProvider(_source(tmp_path))

    assert str(provider) == "WildcardConfigurationProvider for 'appsettings.*.json'"


def test_close_releases_children(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))

    provider.close()

    assert provider.children == ()
    assert provider.try_get("key1") == (False, None)
    assert provider.state is ProviderState.UNLOADED


def test_failed_load_after_close_marks_provider_failed(tmp_path: Path) -> None:
    write_appsettings(tmp_path)
    provider = WildcardConfigurationProvider(_source(tmp_path))
    provider.close()
    (tmp_path / "appsettings.b.json").write_text("{", encoding="utf-8")

    with pytest.raises(InvalidFormat):
        provider.load()

    assert provider.state is ProviderState.FAILED
    assert provider.children == ()
