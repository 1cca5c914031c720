"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import typer

from dctl.core.errors import CommandError, UsageError
from dctl.core.result import Err, Ok, Result
from dctl.output.console import Table

from ..options import Invocation, NoOptions, ParsedInvocation

if TYPE_CHECKING:
    from dctl.output.console import ConsoleProtocol
    from dctl.platform.fs import FileSystem

EXTRA_ARGS = {"allow_extra_args": True}
PASSTHROUGH_ARGS = {"allow_extra_args": True, "ignore_unknown_options": True}


def invocation(ctx: typer.Context) -> Invocation:
    obj = ctx.obj
    if not isinstance(obj, Invocation):
        raise RuntimeError("dctl commands must be run through the dispatcher")
    return obj


def fs_of(ctx: typer.Context) -> FileSystem:
    return invocation(ctx).fs


def record(ctx: typer.Context, command: str, options: object | None = None) -> None:
    """Store the parsed command for the dispatcher; nothing runs here."""
    inv = invocation(ctx)
    inv.parsed = ParsedInvocation(
        options=inv.options,
        command=command,
        command_options=options if options is not None else NoOptions(),
        extra_args=tuple(ctx.args),
    )


def confirm(console: ConsoleProtocol) -> Result[None, UsageError]:
    answered = console.ask_confirmation()
    if isinstance(answered, Err):
        return Err(UsageError(answered.error.message))
    return Ok(None)


def show_table(
    console: ConsoleProtocol,
    title: str,
    headers: tuple[str, ...],
    rows: Iterable[tuple[str, ...]],
    *,
    noun: str,
) -> None:
    items = tuple(rows)
    console.table(Table(title=title, headers=headers, rows=items, notes=(f"{len(items)} {noun}",)))


def done(result: Result[object, CommandError]) -> Result[None, CommandError]:
    """Drop the value of a successful result."""
    if isinstance(result, Err):
        return result
    return Ok(None)


def parse_task_id(value: str) -> Result[int, CommandError]:
    if not value.isdigit():
        return Err(UsageError(f"Expected task ID to be a number, got '{value}'"))
    return Ok(int(value))
