"""Persistent disk snapshot commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import IdOpts, NoOptions, SlugOpts, parse_slug
from ._helpers import confirm, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Deployment

    from ..context import CommandContext


def snapshots(ctx: typer.Context) -> None:
    """List snapshots of the deployment."""
    record(ctx, "snapshots")


def take_snapshot(
    ctx: typer.Context,
    slug: str | None = typer.Argument(None, help="Instance group or group/id"),
) -> None:
    """Take a snapshot of one instance, or of the whole deployment."""
    record(ctx, "take-snapshot", SlugOpts(slug=slug))


def delete_snapshot(ctx: typer.Context, cid: str = typer.Argument(..., help="Snapshot CID")) -> None:
    """Delete one snapshot."""
    record(ctx, "delete-snapshot", IdOpts(cid))


def delete_snapshots(ctx: typer.Context) -> None:
    """Delete every snapshot of the deployment."""
    record(ctx, "delete-snapshots")


def run_snapshots(cx: CommandContext, _opts: NoOptions, deployment: Deployment) -> CmdResult:
    found = deployment.snapshots()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        f"Deployment '{deployment.name}'",
        ("Instance", "CID", "Created At", "Clean"),
        (
            (s.instance, s.cid, s.created_at, "true" if s.clean else "false")
            for s in sorted(found.value, key=lambda s: (s.instance, s.created_at))
        ),
        noun="snapshots",
    )
    return Ok(None)


def run_take_snapshot(cx: CommandContext, opts: SlugOpts, deployment: Deployment) -> CmdResult:
    slug = parse_slug(opts.slug)
    taken = deployment.take_snapshot(slug)
    if isinstance(taken, Err):
        return taken
    cx.console.success(f"Took snapshot of {slug or deployment.name}")
    return Ok(None)


def run_delete_snapshot(cx: CommandContext, opts: IdOpts, deployment: Deployment) -> CmdResult:
    if not opts.value:
        return Err(UsageError("Expected non-empty snapshot CID"))
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = deployment.delete_snapshot(opts.value)
    if isinstance(deleted, Err):
        return deleted
    cx.console.success(f"Deleted snapshot '{opts.value}'")
    return Ok(None)


def run_delete_snapshots(cx: CommandContext, _opts: NoOptions, deployment: Deployment) -> CmdResult:
    cx.console.info(f"Using deployment '{deployment.name}'")
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = deployment.delete_snapshots()
    if isinstance(deleted, Err):
        return deleted
    cx.console.success("Deleted all snapshots")
    return Ok(None)
