"""Release blob commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import AddBlobOpts, DirOpts, DirOrCwdArg, FileArg, RemoveBlobOpts
from ._helpers import fs_of, record, show_table

if TYPE_CHECKING:
    from dctl.release.blobs import BlobsDir

    from ..context import CommandContext

_DIR_HELP = "Release directory (default: current directory)"


def blobs(ctx: typer.Context, dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP)) -> None:
    """List tracked blobs."""
    record(ctx, "blobs", DirOpts(DirOrCwdArg(fs_of(ctx), dir)))


def add_blob(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Local file to track"),
    blobs_path: str = typer.Argument(..., help="Path inside blobs/"),
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
) -> None:
    """Track a file as a blob."""
    fs = fs_of(ctx)
    record(ctx, "add-blob", AddBlobOpts(DirOrCwdArg(fs, dir), FileArg(fs, path), blobs_path))


def remove_blob(
    ctx: typer.Context,
    blobs_path: str = typer.Argument(..., help="Path inside blobs/"),
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
) -> None:
    """Stop tracking a blob."""
    record(ctx, "remove-blob", RemoveBlobOpts(DirOrCwdArg(fs_of(ctx), dir), blobs_path))


def upload_blobs(
    ctx: typer.Context, dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP)
) -> None:
    """Upload blobs that are not in the blobstore yet."""
    record(ctx, "upload-blobs", DirOpts(DirOrCwdArg(fs_of(ctx), dir)))


def sync_blobs(
    ctx: typer.Context, dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP)
) -> None:
    """Download blobs that are missing locally."""
    record(ctx, "sync-blobs", DirOpts(DirOrCwdArg(fs_of(ctx), dir)))


def run_blobs(cx: CommandContext, _opts: DirOpts, blobs_dir: BlobsDir) -> CmdResult:
    found = blobs_dir.blobs()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Blobs",
        ("Path", "Size", "Blobstore ID", "SHA1"),
        ((b.path, str(b.size), b.object_id or "(local)", b.sha1) for b in found.value),
        noun="blobs",
    )
    return Ok(None)


def run_add_blob(cx: CommandContext, opts: AddBlobOpts, blobs_dir: BlobsDir) -> CmdResult:
    src = opts.path.expanded()
    if isinstance(src, Err):
        return src
    tracked = blobs_dir.track_blob(opts.blobs_path, src.value)
    if isinstance(tracked, Err):
        return tracked
    cx.console.success(f"Added blob '{opts.blobs_path}'")
    return Ok(None)


def run_remove_blob(cx: CommandContext, opts: RemoveBlobOpts, blobs_dir: BlobsDir) -> CmdResult:
    removed = blobs_dir.untrack_blob(opts.blobs_path)
    if isinstance(removed, Err):
        return removed
    cx.console.success(f"Removed blob '{opts.blobs_path}'")
    return Ok(None)


def run_upload_blobs(cx: CommandContext, _opts: DirOpts, blobs_dir: BlobsDir) -> CmdResult:
    uploaded = blobs_dir.upload_blobs()
    if isinstance(uploaded, Err):
        return uploaded
    for blob in uploaded.value:
        cx.console.print(f"  {blob.path} -> {blob.object_id}")
    cx.console.success(f"Uploaded {len(uploaded.value)} blobs")
    return Ok(None)


def run_sync_blobs(cx: CommandContext, _opts: DirOpts, blobs_dir: BlobsDir) -> CmdResult:
    synced = blobs_dir.sync_blobs()
    if isinstance(synced, Err):
        return synced
    cx.console.success(f"Downloaded {len(synced.value)} blobs")
    return Ok(None)
