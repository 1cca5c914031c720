from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from dctl.cli.init import GlobalContextInitializer, InitState, setup_logging
from dctl.cli.options import GlobalOptions
from dctl.core.errors import InitError
from dctl.core.result import Err, Ok, Result
from dctl.output.console import MockConsole
from dctl.platform.fs import FileSystem


@pytest.fixture(autouse=True)
def _restore_tempdir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tempfile, "tempdir", tempfile.tempdir)


class CountingLogging:
    def __init__(self, result: Result[None, InitError] | None = None) -> None:
        self.calls = 0
        self.result: Result[None, InitError] = result if result is not None else Ok(None)

    def __call__(self) -> Result[None, InitError]:
        self.calls += 1
        return self.result


def test_runs_setup_once(tmp_path: Path) -> None:
    console = MockConsole()
    logging_setup = CountingLogging()
    init = GlobalContextInitializer(
        console, FileSystem(home_dir=tmp_path), configure_logging=logging_setup
    )
    assert init.state is InitState.UNEXECUTED

    assert init.ensure_initialized(GlobalOptions(json=True, non_interactive=True)) == Ok(None)
    assert init.ensure_initialized(GlobalOptions(tty=True)) == Ok(None)

    assert init.state is InitState.EXECUTED
    assert logging_setup.calls == 1
    assert console.mode_calls == ["tty:False", "color", "json", "non-interactive"]
    assert (tmp_path / ".dctl" / "tmp").is_dir()


def test_no_color_skips_color(tmp_path: Path) -> None:
    console = MockConsole()
    init = GlobalContextInitializer(
        console, FileSystem(home_dir=tmp_path), configure_logging=CountingLogging()
    )
    init.ensure_initialized(GlobalOptions(no_color=True))
    assert console.mode_calls == ["tty:False"]


def test_failure_is_memoized_and_not_retried(tmp_path: Path) -> None:
    logging_setup = CountingLogging(Err(InitError("bad log level")))
    init = GlobalContextInitializer(
        MockConsole(), FileSystem(home_dir=tmp_path), configure_logging=logging_setup
    )

    first = init.ensure_initialized(GlobalOptions())
    second = init.ensure_initialized(GlobalOptions())

    assert first == Err(InitError("bad log level"))
    assert second == first
    assert logging_setup.calls == 1
    assert not (tmp_path / ".dctl" / "tmp").exists()


def test_temp_root_failure(tmp_path: Path) -> None:
    (tmp_path / "blocked").write_text("a file, not a dir")
    init = GlobalContextInitializer(
        MockConsole(),
        FileSystem(home_dir=tmp_path),
        configure_logging=CountingLogging(),
        tmp_path="~/blocked/tmp",
    )
    result = init.ensure_initialized(GlobalOptions())
    assert isinstance(result, Err)
    assert result.error.path == tmp_path / "blocked" / "tmp"


def test_try_init_claims_once(tmp_path: Path) -> None:
    init = GlobalContextInitializer(MockConsole(), FileSystem(home_dir=tmp_path))
    assert init.try_init()
    assert not init.try_init()


def test_setup_logging_rejects_unknown_level() -> None:
    result = setup_logging("chatty")
    assert isinstance(result, Err)
    assert "Unknown log level 'chatty'" in result.error.message
