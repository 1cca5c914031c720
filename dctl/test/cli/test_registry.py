from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.core import TyperGroup

from dctl.cli.app import app
from dctl.cli.chain import Chain
from dctl.cli.context import build_deps
from dctl.cli.options import GlobalOptions, NoOptions
from dctl.cli.registry import Registry, Requires, build_registry
from dctl.cli.session import FakeSession, SessionProtocol
from dctl.core.config import Config
from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok
from dctl.output.console import MockConsole
from dctl.platform.fs import FileSystem


class NeverCalled:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(
        self, options: GlobalOptions, config: Config, env: bool, dep: bool
    ) -> SessionProtocol:
        self.calls += 1
        return FakeSession()


@pytest.fixture
def factory() -> NeverCalled:
    return NeverCalled()


@pytest.fixture
def registry(tmp_path: Path, factory: NeverCalled) -> Registry:
    deps = build_deps(console=MockConsole(), fs=FileSystem(home_dir=tmp_path), factory=factory)
    return build_registry(deps)


def test_every_typer_command_is_registered(registry: Registry) -> None:
    group = typer.main.get_command(app)
    assert isinstance(group, TyperGroup)
    assert sorted(group.commands) == registry.names()


def test_building_resolves_nothing(registry: Registry, factory: NeverCalled) -> None:
    assert len(registry.names()) == 58
    assert factory.calls == 0


@pytest.mark.parametrize(
    ("name", "requires"),
    [
        ("version", Requires.NONE),
        ("build-manifest", Requires.GLOBAL),
        ("environments", Requires.CONFIG),
        ("log-in", Requires.SESSION),
        ("vms", Requires.DIRECTOR),
        ("ssh", Requires.DEPLOYMENT),
        ("recreate", Requires.DEPLOYMENT),
        ("deploy", Requires.DIRECTOR_AND_DEPLOYMENT),
        ("upload-release", Requires.PROVIDERS_AND_DIRECTOR),
        ("sync-blobs", Requires.PROVIDERS),
    ],
)
def test_requirement_kinds(registry: Registry, name: str, requires: Requires) -> None:
    spec = registry.spec(name)
    assert spec is not None
    assert spec.requires is requires


def test_bind_unknown(registry: Registry, tmp_path: Path) -> None:
    deps = build_deps(console=MockConsole(), fs=FileSystem(home_dir=tmp_path))
    result = registry.bind("frobnicate", Chain(GlobalOptions(), deps), NoOptions(), ())
    assert result == Err(UsageError("Unknown command 'frobnicate'"))


def test_bind_does_not_run(registry: Registry, tmp_path: Path, factory: NeverCalled) -> None:
    deps = build_deps(console=MockConsole(), fs=FileSystem(home_dir=tmp_path), factory=factory)
    result = registry.bind("vms", Chain(GlobalOptions(), deps), NoOptions(), ("extra",))
    assert isinstance(result, Ok)
    assert result.value.requires is Requires.DIRECTOR
    assert factory.calls == 0
