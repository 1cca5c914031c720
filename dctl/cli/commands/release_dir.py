"""Release directory commands: init, generate, create, finalize."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import ReleaseError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import (
    CreateReleaseOpts,
    DirOpts,
    DirOrCwdArg,
    FileArg,
    FinalizeReleaseOpts,
    GenerateOpts,
    InitReleaseOpts,
)
from ._helpers import fs_of, record

if TYPE_CHECKING:
    from dctl.release.dir import ReleaseDir

    from ..context import CommandContext

_DIR_HELP = "Release directory (default: current directory)"


def init_release(
    ctx: typer.Context,
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
    git: bool = typer.Option(False, "--git", help="Also write a .gitignore"),
) -> None:
    """Initialize a release directory."""
    record(ctx, "init-release", InitReleaseOpts(DirOrCwdArg(fs_of(ctx), dir), git=git))


def reset_release(
    ctx: typer.Context, dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP)
) -> None:
    """Remove dev releases and build caches."""
    record(ctx, "reset-release", DirOpts(DirOrCwdArg(fs_of(ctx), dir)))


def generate_job(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Job name"),
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
) -> None:
    """Create a job skeleton."""
    record(ctx, "generate-job", GenerateOpts(DirOrCwdArg(fs_of(ctx), dir), name))


def generate_package(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Package name"),
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
) -> None:
    """Create a package skeleton."""
    record(ctx, "generate-package", GenerateOpts(DirOrCwdArg(fs_of(ctx), dir), name))


def finalize_release(
    ctx: typer.Context,
    tarball: str = typer.Argument(..., help="Dev release tarball"),
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
    name: str | None = typer.Option(None, "--name", help="Override the release name"),
    version: str | None = typer.Option(None, "--version", help="Final version"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing final version"),
) -> None:
    """Turn a release tarball into a final release."""
    fs = fs_of(ctx)
    opts = FinalizeReleaseOpts(
        DirOrCwdArg(fs, dir), FileArg(fs, tarball), name=name, version=version, force=force
    )
    record(ctx, "finalize-release", opts)


def create_release(
    ctx: typer.Context,
    dir: str | None = typer.Option(None, "--dir", help=_DIR_HELP),
    name: str | None = typer.Option(None, "--name", help="Release name"),
    version: str | None = typer.Option(None, "--version", help="Release version"),
    final: bool = typer.Option(False, "--final", help="Create a final release"),
    tarball: str | None = typer.Option(None, "--tarball", help="Also write the release here"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing --tarball"),
) -> None:
    """Create a dev or final release from the release directory."""
    opts = CreateReleaseOpts(
        DirOrCwdArg(fs_of(ctx), dir),
        name=name,
        version=version,
        final=final,
        tarball=tarball,
        force=force,
    )
    record(ctx, "create-release", opts)


def run_init_release(cx: CommandContext, opts: InitReleaseOpts, release_dir: ReleaseDir) -> CmdResult:
    initialized = release_dir.init(opts.git)
    if isinstance(initialized, Err):
        return initialized
    cx.console.success(f"Initialized release directory {release_dir.root}")
    return Ok(None)


def run_reset_release(cx: CommandContext, _opts: DirOpts, release_dir: ReleaseDir) -> CmdResult:
    reset = release_dir.reset()
    if isinstance(reset, Err):
        return reset
    cx.console.success("Removed dev releases and build caches")
    return Ok(None)


def run_generate_job(cx: CommandContext, opts: GenerateOpts, release_dir: ReleaseDir) -> CmdResult:
    generated = release_dir.generate_job(opts.name)
    if isinstance(generated, Err):
        return generated
    cx.console.success(f"Generated job '{opts.name}'")
    return Ok(None)


def run_generate_package(
    cx: CommandContext, opts: GenerateOpts, release_dir: ReleaseDir
) -> CmdResult:
    generated = release_dir.generate_package(opts.name)
    if isinstance(generated, Err):
        return generated
    cx.console.success(f"Generated package '{opts.name}'")
    return Ok(None)


def run_finalize_release(
    cx: CommandContext, opts: FinalizeReleaseOpts, release_dir: ReleaseDir
) -> CmdResult:
    tarball = opts.tarball.expanded()
    if isinstance(tarball, Err):
        return tarball
    finalized = release_dir.finalize_release(tarball.value, opts.name, opts.version, opts.force)
    if isinstance(finalized, Err):
        return finalized
    release = finalized.value
    cx.console.success(f"Added final release '{release.name}/{release.version}'")
    return Ok(None)


def run_create_release(
    cx: CommandContext, opts: CreateReleaseOpts, release_dir: ReleaseDir
) -> CmdResult:
    built = release_dir.build_release(opts.name, opts.version, opts.final)
    if isinstance(built, Err):
        return built
    release = built.value

    saved = release_dir.save_release(release, opts.final)
    if isinstance(saved, Err):
        return saved

    if opts.tarball:
        dest = cx.fs.expand_path(opts.tarball)
        if isinstance(dest, Err):
            return Err(ReleaseError(dest.error.message))
        if cx.fs.exists(dest.value) and not opts.force:
            return Err(ReleaseError(f"Release tarball {dest.value} already exists", path=dest.value))
        written = release_dir.write_tarball(release, dest.value)
        if isinstance(written, Err):
            return written
        cx.console.info(f"Release tarball: {written.value}")

    kind = "final" if opts.final else "dev"
    cx.console.success(f"Created {kind} release '{release.name}/{release.version}'")
    cx.console.print(f"  {saved.value}")
    return Ok(None)
