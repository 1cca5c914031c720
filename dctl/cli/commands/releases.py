"""Release commands against the director."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import ReleaseError, UsageError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import (
    DeleteReleaseOpts,
    DirOrCwdArg,
    ExportReleaseOpts,
    InspectReleaseOpts,
    NoOptions,
    UploadReleaseOpts,
    parse_name_version,
)
from ._helpers import confirm, fs_of, record, show_table

if TYPE_CHECKING:
    from pathlib import Path

    from dctl.director.api import Director

    from ..chain import DirectorAndDeployment, ReleaseProviders
    from ..context import CommandContext


def _is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def releases(ctx: typer.Context) -> None:
    """List releases."""
    record(ctx, "releases")


def delete_release(
    ctx: typer.Context,
    name_version: str = typer.Argument(..., metavar="NAME[/VERSION]"),
    force: bool = typer.Option(False, "--force", help="Ignore errors"),
) -> None:
    """Delete a release, or one version of it."""
    record(ctx, "delete-release", DeleteReleaseOpts(name_version, force=force))


def inspect_release(
    ctx: typer.Context, name_version: str = typer.Argument(..., metavar="NAME/VERSION")
) -> None:
    """List the jobs and packages of a release."""
    record(ctx, "inspect-release", InspectReleaseOpts(name_version))


def upload_release(
    ctx: typer.Context,
    source: str | None = typer.Argument(None, help="Release tarball path or URL"),
    sha1: str = typer.Option("", "--sha1", help="SHA1 of a remote release"),
    rebase: bool = typer.Option(False, "--rebase", help="Rebase release onto latest version"),
    fix: bool = typer.Option(False, "--fix", help="Replace corrupt jobs and packages"),
    dir: str | None = typer.Option(None, "--dir", help="Release directory"),
) -> None:
    """Upload a release (latest dev release of --dir when SOURCE is omitted)."""
    opts = UploadReleaseOpts(
        dir=DirOrCwdArg(fs_of(ctx), dir), source=source, sha1=sha1, rebase=rebase, fix=fix
    )
    record(ctx, "upload-release", opts)


def export_release(
    ctx: typer.Context,
    release: str = typer.Argument(..., metavar="NAME/VERSION"),
    os: str = typer.Argument(..., metavar="OS/VERSION"),
    dir: str | None = typer.Option(None, "--dir", help="Destination directory"),
) -> None:
    """Compile a release against a stemcell and download it."""
    record(ctx, "export-release", ExportReleaseOpts(release, os, DirOrCwdArg(fs_of(ctx), dir)))


def run_releases(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    found = director.releases()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Releases",
        ("Name", "Version", "Commit Hash"),
        (
            (r.name, f"{r.version}*" if r.currently_deployed else r.version, r.commit_hash)
            for r in sorted(found.value, key=lambda r: (r.name, r.version))
        ),
        noun="releases",
    )
    return Ok(None)


def run_delete_release(cx: CommandContext, opts: DeleteReleaseOpts, director: Director) -> CmdResult:
    parsed = parse_name_version(opts.name_version)
    if isinstance(parsed, Err):
        return parsed
    name, version = parsed.value

    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = director.delete_release(name, version, opts.force)
    if isinstance(deleted, Err):
        return deleted
    cx.console.success(f"Deleted release '{opts.name_version}'")
    return Ok(None)


def run_inspect_release(cx: CommandContext, opts: InspectReleaseOpts, director: Director) -> CmdResult:
    parsed = parse_name_version(opts.name_version)
    if isinstance(parsed, Err):
        return parsed
    name, version = parsed.value
    if version is None:
        return Err(UsageError(f"Expected NAME/VERSION, got '{opts.name_version}'"))

    details = director.inspect_release(name, version)
    if isinstance(details, Err):
        return details
    rows = [("job", j) for j in details.value.jobs] + [("package", p) for p in details.value.packages]
    show_table(cx.console, f"Release '{name}/{version}'", ("Type", "Name"), rows, noun="items")
    return Ok(None)


def _upload_tarball(
    cx: CommandContext,
    opts: UploadReleaseOpts,
    providers: ReleaseProviders,
    director: Director,
    root: Path,
    tarball: Path,
) -> CmdResult:
    release = providers.release_dir.new_release_reader(root).read_archive(tarball)
    if isinstance(release, Err):
        return release
    name, version = release.value.name, release.value.version

    if not (opts.rebase or opts.fix):
        exists = director.has_release(name, version)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            cx.console.info(f"Release '{name}/{version}' already exists")
            return Ok(None)

    uploaded = director.upload_release_file(tarball, rebase=opts.rebase, fix=opts.fix)
    if isinstance(uploaded, Err):
        return uploaded
    cx.console.success(f"Uploaded release '{name}/{version}'")
    return Ok(None)


def run_upload_release(
    cx: CommandContext,
    opts: UploadReleaseOpts,
    root: Path,
    providers: ReleaseProviders,
    director: Director,
) -> CmdResult:
    if opts.source and _is_url(opts.source):
        uploaded = director.upload_release_url(
            opts.source, opts.sha1, rebase=opts.rebase, fix=opts.fix
        )
        if isinstance(uploaded, Err):
            return uploaded
        cx.console.success(f"Uploaded release from {opts.source}")
        return Ok(None)

    if opts.source:
        tarball = cx.fs.expand_path(opts.source)
        if isinstance(tarball, Err):
            return Err(ReleaseError(tarball.error.message))
        return _upload_tarball(cx, opts, providers, director, root, tarball.value)

    release_dir = providers.release_dir.new_fs_release_dir(root)
    name = release_dir.default_name()
    latest = release_dir.latest_release_path(name)
    if latest is None:
        return Err(
            ReleaseError(
                f"Expected a dev release of '{name}' in {root}; run `dctl create-release`",
                path=root,
            )
        )
    return _upload_tarball(cx, opts, providers, director, root, latest)


def run_export_release(
    cx: CommandContext, opts: ExportReleaseOpts, handles: DirectorAndDeployment
) -> CmdResult:
    release = parse_name_version(opts.release)
    if isinstance(release, Err):
        return release
    stemcell_os = parse_name_version(opts.os)
    if isinstance(stemcell_os, Err):
        return stemcell_os
    (name, version), (os_name, os_version) = release.value, stemcell_os.value
    if version is None or os_version is None:
        return Err(UsageError("Expected release and stemcell as NAME/VERSION"))

    dest_dir = opts.dir.resolve()
    if isinstance(dest_dir, Err):
        return dest_dir

    blob = handles.deployment.export_release(name, version, os_name, os_version)
    if isinstance(blob, Err):
        return blob

    dest = dest_dir.value / f"{name}-{version}-{os_name}-{os_version}.tgz"
    downloaded = handles.director.download_resource(blob.value.blobstore_id, dest)
    if isinstance(downloaded, Err):
        return downloaded
    cx.console.success(f"Exported release to {dest}")
    return Ok(None)
