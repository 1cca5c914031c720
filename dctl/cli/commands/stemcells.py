"""Stemcell commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import DeleteStemcellOpts, NoOptions, UploadStemcellOpts, parse_name_version
from ._helpers import confirm, fs_of, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Director

    from ..context import CommandContext


def stemcells(ctx: typer.Context) -> None:
    """List stemcells."""
    record(ctx, "stemcells")


def upload_stemcell(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Stemcell tarball path or URL"),
    sha1: str = typer.Option("", "--sha1", help="SHA1 of a remote stemcell"),
    fix: bool = typer.Option(False, "--fix", help="Replace a stemcell with the same name and version"),
) -> None:
    """Upload a stemcell."""
    record(ctx, "upload-stemcell", UploadStemcellOpts(source, fs_of(ctx), sha1=sha1, fix=fix))


def delete_stemcell(
    ctx: typer.Context,
    name_version: str = typer.Argument(..., metavar="NAME/VERSION"),
    force: bool = typer.Option(False, "--force", help="Ignore errors"),
) -> None:
    """Delete a stemcell."""
    record(ctx, "delete-stemcell", DeleteStemcellOpts(name_version, force=force))


def run_stemcells(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    found = director.stemcells()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Stemcells",
        ("Name", "Version", "OS", "CID", "Deployments"),
        (
            (s.name, f"{s.version}*" if s.deployments else s.version, s.os, s.cid, str(s.deployments))
            for s in sorted(found.value, key=lambda s: (s.name, s.version))
        ),
        noun="stemcells",
    )
    return Ok(None)


def run_upload_stemcell(cx: CommandContext, opts: UploadStemcellOpts, director: Director) -> CmdResult:
    if opts.source.startswith(("http://", "https://")):
        uploaded = director.upload_stemcell_url(opts.source, opts.sha1, fix=opts.fix)
    else:
        path = opts.fs.expand_path(opts.source)
        if isinstance(path, Err):
            return Err(UsageError(path.error.message))
        if not opts.fs.exists(path.value):
            return Err(UsageError(f"Stemcell file not found: {path.value}"))
        uploaded = director.upload_stemcell_file(path.value, fix=opts.fix)

    if isinstance(uploaded, Err):
        return uploaded
    cx.console.success(f"Uploaded stemcell from {opts.source}")
    return Ok(None)


def run_delete_stemcell(cx: CommandContext, opts: DeleteStemcellOpts, director: Director) -> CmdResult:
    parsed = parse_name_version(opts.name_version)
    if isinstance(parsed, Err):
        return parsed
    name, version = parsed.value
    if version is None:
        return Err(UsageError(f"Expected NAME/VERSION, got '{opts.name_version}'"))

    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = director.delete_stemcell(name, version, opts.force)
    if isinstance(deleted, Err):
        return deleted
    cx.console.success(f"Deleted stemcell '{opts.name_version}'")
    return Ok(None)
