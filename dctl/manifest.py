"""Manifest variable interpolation.

Manifests reference variables as ``((name))``. A value that is exactly one
variable is replaced by the variable's value (which may be a map or list);
variables embedded in a longer string must resolve to scalars. Dotted names
(``((db.password))``) look into map values.

Variables come from, lowest precedence first: ``--vars-env PREFIX``
(``PREFIX_name`` environment variables), ``--vars-file`` YAML maps, and
``-v name=value`` flags.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping, Sequence

import yaml

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok, Result
from dctl.core.structured import as_str_dict

__all__ = [
    "Variables",
    "interpolate",
    "manifest_name",
    "render_manifest",
    "vars_from_env",
    "vars_from_flags",
    "vars_from_yaml",
]

logger = logging.getLogger(__name__)

_VAR_RE = re.compile(r"\(\(([-\w./]+)\)\)")

type Variables = dict[str, object]


def vars_from_flags(flags: Sequence[str]) -> Result[Variables, UsageError]:
    variables: Variables = {}
    for flag in flags:
        name, sep, value = flag.partition("=")
        if not sep or not name:
            return Err(UsageError(f"Expected variable as name=value, got '{flag}'"))
        variables[name] = value
    return Ok(variables)


def vars_from_env(prefixes: Sequence[str], environ: Mapping[str, str] | None = None) -> Variables:
    env = os.environ if environ is None else environ
    variables: Variables = {}
    for prefix in prefixes:
        start = f"{prefix}_"
        for key, value in env.items():
            if key.startswith(start) and len(key) > len(start):
                variables[key[len(start) :]] = value
    return variables


def vars_from_yaml(content: bytes, source: str) -> Result[Variables, UsageError]:
    try:
        data = yaml.safe_load(content) if content.strip() else {}
    except yaml.YAMLError as e:
        return Err(UsageError(f"Invalid YAML in vars file {source}: {e}"))
    table = as_str_dict(data if data is not None else {})
    if table is None:
        return Err(UsageError(f"Expected vars file {source} to contain a map"))
    return Ok(dict(table))


def _lookup(variables: Variables, name: str) -> tuple[bool, object]:
    head, *rest = name.split(".")
    if head not in variables:
        return False, None
    value: object = variables[head]
    for key in rest:
        table = as_str_dict(value)
        if table is None or key not in table:
            return False, None
        value = table[key]
    return True, value


class _Interpolator:
    def __init__(self, variables: Variables) -> None:
        self._variables = variables
        self.missing: set[str] = set()

    def string(self, value: str) -> object:
        whole = _VAR_RE.fullmatch(value)
        if whole:
            found, replacement = _lookup(self._variables, whole.group(1))
            if found:
                return replacement
            self.missing.add(whole.group(1))
            return value

        def sub(match: re.Match[str]) -> str:
            found, replacement = _lookup(self._variables, match.group(1))
            if not found:
                self.missing.add(match.group(1))
                return match.group(0)
            if isinstance(replacement, (dict, list)):
                self.missing.add(match.group(1))
                return match.group(0)
            return str(replacement)

        return _VAR_RE.sub(sub, value)

    def walk(self, node: object) -> object:
        if isinstance(node, str):
            return self.string(node)
        if isinstance(node, list):
            return [self.walk(item) for item in node]
        if isinstance(node, dict):
            return {k: self.walk(v) for k, v in node.items()}
        return node


def interpolate(
    document: object, variables: Variables, *, strict: bool = False
) -> Result[object, UsageError]:
    """Replace ``((var))`` references throughout a parsed document.

    With ``strict`` every referenced variable must be defined.
    """
    interpolator = _Interpolator(variables)
    result = interpolator.walk(document)
    if interpolator.missing:
        names = ", ".join(sorted(interpolator.missing))
        if strict:
            return Err(UsageError(f"Expected to find variables: {names}"))
        logger.debug("leaving undefined variables in place: %s", names)
    return Ok(result)


def render_manifest(
    content: bytes, variables: Variables, *, source: str, strict: bool = False
) -> Result[str, UsageError]:
    """Parse a YAML manifest, interpolate it and dump it back to YAML."""
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        return Err(UsageError(f"Invalid YAML in manifest {source}: {e}"))

    result = interpolate(document, variables, strict=strict)
    if isinstance(result, Err):
        return result
    return Ok(yaml.safe_dump(result.value, default_flow_style=False, sort_keys=False))


def manifest_name(rendered: str) -> str | None:
    """``name`` of a rendered manifest, if it has one."""
    try:
        table = as_str_dict(yaml.safe_load(rendered))
    except yaml.YAMLError:
        return None
    if table is None:
        return None
    name = table.get("name")
    return name if isinstance(name, str) else None
