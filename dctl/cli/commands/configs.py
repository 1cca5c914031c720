"""Cloud and runtime config commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import FileArg, NoOptions, RuntimeConfigOpts, UpdateConfigOpts
from ._helpers import confirm, fs_of, record

if TYPE_CHECKING:
    from dctl.director.api import Director

    from ..context import CommandContext


def cloud_config(ctx: typer.Context) -> None:
    """Show the current cloud config."""
    record(ctx, "cloud-config")


def update_cloud_config(
    ctx: typer.Context, path: str = typer.Argument(..., help="Cloud config file")
) -> None:
    """Replace the cloud config."""
    record(ctx, "update-cloud-config", UpdateConfigOpts(FileArg(fs_of(ctx), path)))


def runtime_config(
    ctx: typer.Context, name: str = typer.Option("default", "--name", help="Runtime config name")
) -> None:
    """Show a runtime config."""
    record(ctx, "runtime-config", RuntimeConfigOpts(name=name))


def update_runtime_config(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Runtime config file"),
    name: str = typer.Option("default", "--name", help="Runtime config name"),
) -> None:
    """Replace a runtime config."""
    record(ctx, "update-runtime-config", UpdateConfigOpts(FileArg(fs_of(ctx), path), name=name))


def _show(cx: CommandContext, kind: str, content: str) -> CmdResult:
    if not content:
        cx.console.warning(f"No {kind} config")
        return Ok(None)
    cx.console.block(content)
    return Ok(None)


def run_cloud_config(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    content = director.latest_cloud_config()
    if isinstance(content, Err):
        return content
    return _show(cx, "cloud", content.value)


def run_update_cloud_config(cx: CommandContext, opts: UpdateConfigOpts, director: Director) -> CmdResult:
    content = opts.config.read_bytes()
    if isinstance(content, Err):
        return content
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    updated = director.update_cloud_config(content.value)
    if isinstance(updated, Err):
        return updated
    cx.console.success("Updated cloud config")
    return Ok(None)


def run_runtime_config(cx: CommandContext, opts: RuntimeConfigOpts, director: Director) -> CmdResult:
    content = director.latest_runtime_config(opts.name)
    if isinstance(content, Err):
        return content
    return _show(cx, f"'{opts.name}' runtime", content.value)


def run_update_runtime_config(
    cx: CommandContext, opts: UpdateConfigOpts, director: Director
) -> CmdResult:
    content = opts.config.read_bytes()
    if isinstance(content, Err):
        return content
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    updated = director.update_runtime_config(opts.name, content.value)
    if isinstance(updated, Err):
        return updated
    cx.console.success(f"Updated runtime config '{opts.name}'")
    return Ok(None)
