"""Orphaned disks, resurrection and clean-up."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import CleanUpOpts, IdOpts, NoOptions, ResurrectionOpts
from ._helpers import confirm, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Director

    from ..context import CommandContext


def disks(ctx: typer.Context) -> None:
    """List orphaned disks."""
    record(ctx, "disks")


def delete_disk(ctx: typer.Context, cid: str = typer.Argument(..., help="Disk CID")) -> None:
    """Delete an orphaned disk."""
    record(ctx, "delete-disk", IdOpts(cid))


def vm_resurrection(
    ctx: typer.Context, state: str = typer.Argument(..., metavar="on|off")
) -> None:
    """Enable or disable VM resurrection director-wide."""
    if state.lower() not in ("on", "off"):
        raise typer.BadParameter(f"Expected 'on' or 'off', got '{state}'")
    record(ctx, "vm-resurrection", ResurrectionOpts(enabled=state.lower() == "on"))


def clean_up(
    ctx: typer.Context,
    all_: bool = typer.Option(False, "--all", help="Also remove orphaned disks and unused stemcells"),
) -> None:
    """Clean up releases, stemcells and disks that are not in use."""
    record(ctx, "clean-up", CleanUpOpts(remove_all=all_))


def run_disks(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    found = director.orphan_disks()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Orphaned disks",
        ("Disk CID", "Size", "Deployment", "Instance", "Orphaned At"),
        ((d.cid, f"{d.size} MiB", d.deployment, d.instance, d.orphaned_at) for d in found.value),
        noun="disks",
    )
    return Ok(None)


def run_delete_disk(cx: CommandContext, opts: IdOpts, director: Director) -> CmdResult:
    if not opts.value:
        return Err(UsageError("Expected non-empty disk CID"))
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = director.delete_orphan_disk(opts.value)
    if isinstance(deleted, Err):
        return deleted
    cx.console.success(f"Deleted disk '{opts.value}'")
    return Ok(None)


def run_vm_resurrection(cx: CommandContext, opts: ResurrectionOpts, director: Director) -> CmdResult:
    changed = director.enable_resurrection(opts.enabled)
    if isinstance(changed, Err):
        return changed
    cx.console.success(f"VM resurrection {'enabled' if opts.enabled else 'disabled'}")
    return Ok(None)


def run_clean_up(cx: CommandContext, opts: CleanUpOpts, director: Director) -> CmdResult:
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    cleaned = director.clean_up(opts.remove_all)
    if isinstance(cleaned, Err):
        return cleaned
    cx.console.success("Cleaned up")
    return Ok(None)
