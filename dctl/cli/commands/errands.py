"""Errand commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import DeploymentError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import DirOrCwdArg, NoOptions, RunErrandOpts
from ._helpers import fs_of, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Deployment, ErrandResult

    from ..chain import DirectorAndDeployment
    from ..context import CommandContext


def errands(ctx: typer.Context) -> None:
    """List errands of the deployment."""
    record(ctx, "errands")


def run_errand(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Errand name"),
    keep_alive: bool = typer.Option(False, "--keep-alive", help="Keep the errand VM after it ran"),
    when_changed: bool = typer.Option(
        False, "--when-changed", help="Skip if the errand ran with the same configuration"
    ),
    download_logs: bool = typer.Option(False, "--download-logs", help="Download errand logs"),
    logs_dir: str | None = typer.Option(None, "--logs-dir", help="Destination for downloaded logs"),
) -> None:
    """Run an errand."""
    opts = RunErrandOpts(
        name=name,
        keep_alive=keep_alive,
        when_changed=when_changed,
        download_logs=download_logs,
        logs_dir=DirOrCwdArg(fs_of(ctx), logs_dir),
    )
    record(ctx, "run-errand", opts)


def run_errands(cx: CommandContext, _opts: NoOptions, deployment: Deployment) -> CmdResult:
    found = deployment.errands()
    if isinstance(found, Err):
        return found
    show_table(cx.console, "Errands", ("Name",), ((n,) for n in sorted(found.value)), noun="errands")
    return Ok(None)


def _show_result(cx: CommandContext, result: ErrandResult) -> None:
    cx.console.header(f"Exit code {result.exit_code}")
    if result.stdout:
        cx.console.print("Stdout:")
        cx.console.block(result.stdout)
    if result.stderr:
        cx.console.print("Stderr:")
        cx.console.block(result.stderr)


def run_run_errand(
    cx: CommandContext, opts: RunErrandOpts, handles: DirectorAndDeployment
) -> CmdResult:
    deployment = handles.deployment
    ran = deployment.run_errand(opts.name, opts.keep_alive, opts.when_changed)
    if isinstance(ran, Err):
        return ran

    for index, result in enumerate(ran.value):
        _show_result(cx, result)
        if not opts.download_logs or not result.logs_blobstore_id:
            continue
        dest_dir = (opts.logs_dir or DirOrCwdArg(cx.fs)).resolve()
        if isinstance(dest_dir, Err):
            return dest_dir
        dest = dest_dir.value / f"{deployment.name}.{opts.name}.{index}.tgz"
        downloaded = handles.director.download_resource(result.logs_blobstore_id, dest)
        if isinstance(downloaded, Err):
            return downloaded
        cx.console.success(f"Downloaded errand logs to {dest}")

    failed = [r.exit_code for r in ran.value if r.exit_code != 0]
    if failed:
        return Err(
            DeploymentError(
                f"Errand '{opts.name}' completed with exit code {failed[0]}",
                name=deployment.name,
            )
        )
    cx.console.success(f"Errand '{opts.name}' completed successfully")
    return Ok(None)
