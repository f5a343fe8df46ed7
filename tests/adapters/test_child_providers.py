"""File-backed, memory and environment providers."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from lib_wildcard_config import (
    ConfigurationBuilder,
    FileLoadExceptionContext,
    InvalidFormat,
    JsonConfigurationProvider,
    JsonConfigurationSource,
    NotFound,
    PhysicalFileProvider,
    TomlConfigurationSource,
    YamlConfigurationSource,
    add_environment_variables,
    add_json_file,
    add_toml_file,
    add_toml_wildcard,
    add_yaml_file,
    add_yaml_wildcard,
)


def _json_provider(root: Path, name: str, **overrides) -> JsonConfigurationProvider:
    source = JsonConfigurationSource(path=name, file_provider=PhysicalFileProvider(root), **overrides)
    return JsonConfigurationProvider(source)


def test_json_provider_flattens_document(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text('{"Service": {"Port": 8080, "Hosts": ["x", "y"]}}', encoding="utf-8")
    provider = _json_provider(tmp_path, "a.json")

    provider.load()

    assert provider.try_get("service:port") == (True, "8080")
    assert provider.try_get("SERVICE:HOSTS:1") == (True, "y")
    assert provider.get_child_keys([], "service") == ["Hosts", "Hosts", "Port"]
    assert provider.get_child_keys([], "service:hosts") == ["0", "1"]


def test_required_file_missing_raises(tmp_path: Path) -> None:
    provider = _json_provider(tmp_path, "missing.json")

    with pytest.raises(NotFound):
        provider.load()


def test_optional_file_missing_is_empty(tmp_path: Path) -> None:
    provider = _json_provider(tmp_path, "missing.json", optional=True)

    provider.load()

    assert provider.get_child_keys([], None) == []


def test_duplicate_keys_are_a_format_error(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text('{"name": "a", "NAME": "b"}', encoding="utf-8")

    with pytest.raises(InvalidFormat, match="duplicate key"):
        _json_provider(tmp_path, "a.json").load()


def test_load_exception_handler_can_ignore(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text('{"name": "a"}', encoding="utf-8")
    contexts: list[FileLoadExceptionContext] = []

    def handler(context: FileLoadExceptionContext) -> None:
        contexts.append(context)
        context.ignore = True

    provider = _json_provider(tmp_path, "a.json", on_load_exception=handler)
    provider.load()
    (tmp_path / "a.json").write_text("{broken", encoding="utf-8")

    provider.load()

    assert isinstance(contexts[0].exception, InvalidFormat)
    assert contexts[0].provider is provider
    assert provider.try_get("name") == (True, "a")


def test_load_exception_handler_without_ignore_reraises(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text("{broken", encoding="utf-8")
    seen: list[FileLoadExceptionContext] = []

    with pytest.raises(InvalidFormat):
        _json_provider(tmp_path, "a.json", on_load_exception=seen.append).load()
    assert len(seen) == 1


def test_single_file_registration_with_absolute_path(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text('{"a": "1"}', encoding="utf-8")

    root = add_json_file(ConfigurationBuilder(), str(tmp_path / "settings.json")).build()

    assert root["a"] == "1"


def test_toml_wildcard(tmp_path: Path) -> None:
    conf = tmp_path / "conf.d"
    conf.mkdir()
    (conf / "10-base.toml").write_text('[service]\ntimeout = 5\nname = "base"\n', encoding="utf-8")
    (conf / "20-extra.toml").write_text("[service]\ntimeout = 30\nretries = 3\n", encoding="utf-8")

    root = add_toml_wildcard(ConfigurationBuilder().set_base_path(tmp_path), "conf.d/*.toml").build()

    assert root["service:timeout"] == "5"
    assert root["service:retries"] == "3"
    assert root.providers[0].children[0].source.__class__ is TomlConfigurationSource


def test_yaml_wildcard(tmp_path: Path) -> None:
    (tmp_path / "a.yaml").write_text("feature:\n  enabled: true\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("", encoding="utf-8")

    root = add_yaml_wildcard(ConfigurationBuilder().set_base_path(tmp_path), "*.yaml").build()

    assert root["feature:enabled"] == "true"
    assert [type(child.source) for child in root.providers[0].children] == [
        YamlConfigurationSource,
        YamlConfigurationSource,
    ]


def test_environment_variables_strip_prefix_and_nest() -> None:
    environ = {"DEMO_SERVICE__PORT": "8080", "DEMO_": "ignored", "PATH": "/bin"}

    root = add_environment_variables(ConfigurationBuilder(), "DEMO_", environ=environ).build()

    assert root["service:port"] == "8080"
    assert root.get("PATH") is None
    assert root.get_children_keys() == ["SERVICE"]


def test_single_file_registration_loads_on_build(tmp_path: Path) -> None:
    (tmp_path / "settings.toml").write_text("[service]\nport = 8080\n", encoding="utf-8")

    root = add_toml_file(ConfigurationBuilder().set_base_path(tmp_path), "settings.toml").build()

    assert root["service:port"] == "8080"


def test_missing_required_single_file_fails_build(tmp_path: Path) -> None:
    builder = add_json_file(ConfigurationBuilder().set_base_path(tmp_path), "missing.json")

    with pytest.raises(NotFound):
        builder.build()


def test_missing_optional_single_file_builds_empty(tmp_path: Path) -> None:
    root = add_yaml_file(ConfigurationBuilder().set_base_path(tmp_path), "missing.yaml", optional=True).build()

    assert root.get_children_keys() == []


def test_bracketed_file_name_reloads_on_change(tmp_path: Path) -> None:
    target = tmp_path / "appsettings.[prod].json"
    target.write_text('{"mode": "old"}', encoding="utf-8")
    source = JsonConfigurationSource(
        path=target.name,
        file_provider=PhysicalFileProvider(tmp_path, poll_interval=0.01),
        reload_on_change=True,
        reload_delay=0.0,
    )
    provider = JsonConfigurationProvider(source)
    provider.load()
    try:
        target.write_text('{"mode": "new-value"}', encoding="utf-8")
        deadline = time.monotonic() + 5
        while provider.try_get("mode") != (True, "new-value") and time.monotonic() < deadline:
            time.sleep(0.01)
        assert provider.try_get("mode") == (True, "new-value")
    finally:
        provider.close()


def test_str_names_file_and_optionality(tmp_path: Path) -> None:
    assert str(_json_provider(tmp_path, "a.json")) == "JsonConfigurationProvider for 'a.json' (Required)"
