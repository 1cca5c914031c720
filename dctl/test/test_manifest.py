from __future__ import annotations

import yaml

from dctl.core.result import Err, Ok
from dctl.manifest import (
    interpolate,
    manifest_name,
    render_manifest,
    vars_from_env,
    vars_from_flags,
    vars_from_yaml,
)


def test_vars_from_flags() -> None:
    assert vars_from_flags(["a=1", "b=x=y"]) == Ok({"a": "1", "b": "x=y"})


def test_vars_from_flags_rejects_missing_equals() -> None:
    result = vars_from_flags(["novalue"])
    assert isinstance(result, Err)
    assert "name=value" in result.error.message


def test_vars_from_env_strips_prefix() -> None:
    environ = {"DEP_password": "pw", "DEP_": "ignored", "OTHER_x": "no"}
    assert vars_from_env(["DEP"], environ) == {"password": "pw"}


def test_vars_from_yaml() -> None:
    assert vars_from_yaml(b"db:\n  port: 5432\n", "vars.yml") == Ok({"db": {"port": 5432}})
    assert vars_from_yaml(b"", "empty.yml") == Ok({})


def test_vars_from_yaml_rejects_lists() -> None:
    result = vars_from_yaml(b"- a\n- b\n", "vars.yml")
    assert isinstance(result, Err)
    assert "to contain a map" in result.error.message


def test_whole_value_keeps_structure() -> None:
    doc = {"properties": "((db))", "port": "((db.port))"}
    result = interpolate(doc, {"db": {"host": "h", "port": 5432}})
    assert result == Ok({"properties": {"host": "h", "port": 5432}, "port": 5432})


def test_embedded_values_are_stringified() -> None:
    result = interpolate(["postgres://((host)):((port))/db"], {"host": "h", "port": 5432})
    assert result == Ok(["postgres://h:5432/db"])


def test_embedded_map_is_left_in_place() -> None:
    result = interpolate("url: ((db))", {"db": {"a": 1}})
    assert result == Ok("url: ((db))")


def test_missing_variables_kept_unless_strict() -> None:
    doc = {"a": "((missing))", "b": "x-((other))"}
    assert interpolate(doc, {}) == Ok(doc)

    result = interpolate(doc, {}, strict=True)
    assert isinstance(result, Err)
    assert result.error.message == "Expected to find variables: missing, other"


def test_render_manifest_round_trips_yaml() -> None:
    content = b"name: ((name))\ninstance_groups:\n- name: web\n  instances: ((count))\n"
    result = render_manifest(content, {"name": "cf", "count": 2}, source="m.yml")
    assert isinstance(result, Ok)
    assert yaml.safe_load(result.value) == {
        "name": "cf",
        "instance_groups": [{"name": "web", "instances": 2}],
    }
    assert manifest_name(result.value) == "cf"


def test_render_manifest_invalid_yaml() -> None:
    result = render_manifest(b"name: [unclosed", {}, source="m.yml")
    assert isinstance(result, Err)
    assert "Invalid YAML in manifest m.yml" in result.error.message


def test_manifest_name_without_name() -> None:
    assert manifest_name("- a\n") is None
    assert manifest_name("name: 3\n") is None
