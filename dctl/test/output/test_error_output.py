"""Tests for dctl.output.errors module."""

from __future__ import annotations

import pytest

from dctl.core.errors import (
    CommandError,
    ConfigError,
    DeploymentError,
    DirectorError,
    ErrorCode,
    ExtraArgsError,
    InitError,
    ReleaseError,
    SessionError,
    SshError,
    UsageError,
)
from dctl.output.console import MockConsole, Style
from dctl.output.errors import error_exit_code, print_error


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ExtraArgsError(("x",)), ErrorCode.USER_ERROR),
        (UsageError("bad flag"), ErrorCode.USER_ERROR),
        (SessionError("no url"), ErrorCode.USER_ERROR),
        (InitError("no temp"), ErrorCode.ENV_ERROR),
        (ConfigError("bad toml"), ErrorCode.ENV_ERROR),
        (DirectorError("unreachable"), ErrorCode.NETWORK_ERROR),
        (DirectorError("task failed", task_id=7), ErrorCode.COMMAND_ERROR),
        (DeploymentError("unset", no_deployment=True), ErrorCode.NETWORK_ERROR),
        (ReleaseError("no jobs"), ErrorCode.IO_ERROR),
        (SshError("exit 255"), ErrorCode.IO_ERROR),
    ],
)
def test_error_exit_code(error: CommandError, code: ErrorCode) -> None:
    assert error_exit_code(error) == int(code)


def test_print_error_prints_message_unchanged() -> None:
    console = MockConsole()
    print_error(DirectorError("fake-connection-error"), console)
    assert console.messages == ["error: fake-connection-error"]


def test_print_error_includes_hint() -> None:
    console = MockConsole()
    print_error(SessionError("Expected non-empty Director URL", hint="Pass --environment"), console)
    assert console.messages == [
        "error: Expected non-empty Director URL",
        "hint: Pass --environment",
    ]
    assert console.outputs[1].style == Style.DIM


def test_print_error_points_at_failed_task() -> None:
    console = MockConsole()
    print_error(DirectorError("task failed", task_id=12), console)
    assert console.messages[-1] == "hint: run `dctl task 12` for details"
