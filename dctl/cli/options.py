"""Parsed command options.

Typer commands only build these values; the registry hands them to command
bodies once the resolution chain has succeeded. Arguments that touch the
filesystem carry the ``FileSystem`` they read through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.errors import ReleaseError, UsageError
from dctl.core.result import Err, Ok, Result
from dctl.director.api import InstanceSlug
from dctl.platform.paths import DEFAULT_CONFIG_PATH

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Flags shared by every command (``dctl [GLOBAL OPTIONS] COMMAND``)."""

    environment: str | None = None
    ca_cert: str | None = None
    client: str | None = None
    client_secret: str | None = None
    deployment: str | None = None
    config_path: str = DEFAULT_CONFIG_PATH
    tty: bool = False
    no_color: bool = False
    json: bool = False
    non_interactive: bool = False


@dataclass(frozen=True, slots=True)
class DirOrCwdArg:
    """``--dir`` value; the current working directory when not given."""

    fs: FileSystem
    path: str | None = None

    def resolve(self) -> Result[Path, ReleaseError]:
        if not self.path:
            return Ok(Path.cwd())
        expanded = self.fs.expand_path(self.path)
        if isinstance(expanded, Err):
            return Err(ReleaseError(expanded.error.message))
        return Ok(expanded.value)


@dataclass(frozen=True, slots=True)
class FileArg:
    """Path to a local file given on the command line."""

    fs: FileSystem
    path: str

    def expanded(self) -> Result[Path, UsageError]:
        expanded = self.fs.expand_path(self.path)
        if isinstance(expanded, Err):
            return Err(UsageError(expanded.error.message))
        return Ok(expanded.value)

    def read_bytes(self) -> Result[bytes, UsageError]:
        path = self.expanded()
        if isinstance(path, Err):
            return path
        content = self.fs.read_bytes(path.value)
        if isinstance(content, Err):
            return Err(UsageError(content.error.message))
        return Ok(content.value)


def parse_slug(value: str | None) -> InstanceSlug | None:
    return InstanceSlug.parse(value) if value else None


def parse_name_version(value: str) -> Result[tuple[str, str | None], UsageError]:
    """Split ``name/version``; the version part is optional."""
    name, sep, version = value.partition("/")
    if not name or (sep and not version):
        return Err(UsageError(f"Expected NAME[/VERSION], got '{value}'"))
    return Ok((name, version or None))


@dataclass(frozen=True, slots=True)
class NoOptions:
    pass


@dataclass(frozen=True, slots=True)
class ManifestOpts:
    """Manifest file plus interpolation variables (build-manifest, deploy)."""

    manifest: FileArg
    vars: tuple[str, ...] = ()
    vars_files: tuple[FileArg, ...] = ()
    vars_env: tuple[str, ...] = ()
    var_errs: bool = False


@dataclass(frozen=True, slots=True)
class EnvironmentOpts:
    url: str | None = None
    alias: str | None = None


@dataclass(frozen=True, slots=True)
class LogInOpts:
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class DeploymentOpts:
    name: str | None = None


@dataclass(frozen=True, slots=True)
class TaskOpts:
    task_id: int | None = None
    output: str = "event"


@dataclass(frozen=True, slots=True)
class TasksOpts:
    recent: int | None = None
    include_all: bool = False


@dataclass(frozen=True, slots=True)
class IdOpts:
    """Single numeric or string identifier (cancel-task, delete-disk, ...)."""

    value: str


@dataclass(frozen=True, slots=True)
class DeleteReleaseOpts:
    name_version: str
    force: bool = False


@dataclass(frozen=True, slots=True)
class InspectReleaseOpts:
    name_version: str


@dataclass(frozen=True, slots=True)
class UploadStemcellOpts:
    source: str
    fs: FileSystem
    sha1: str = ""
    fix: bool = False


@dataclass(frozen=True, slots=True)
class DeleteStemcellOpts:
    name_version: str
    force: bool = False


@dataclass(frozen=True, slots=True)
class UpdateConfigOpts:
    config: FileArg
    name: str = "default"


@dataclass(frozen=True, slots=True)
class RuntimeConfigOpts:
    name: str = "default"


@dataclass(frozen=True, slots=True)
class ResurrectionOpts:
    enabled: bool


@dataclass(frozen=True, slots=True)
class CleanUpOpts:
    remove_all: bool = False


@dataclass(frozen=True, slots=True)
class ForceOpts:
    force: bool = False


@dataclass(frozen=True, slots=True)
class SlugOpts:
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class ChangeStateOpts:
    slug: str | None = None
    force: bool = False
    skip_drain: bool = False


@dataclass(frozen=True, slots=True)
class CloudCheckOpts:
    auto: bool = False
    report: bool = False


@dataclass(frozen=True, slots=True)
class SshOpts:
    slug: str | None = None
    command: tuple[str, ...] = ()
    strict_host_keys: bool = True


@dataclass(frozen=True, slots=True)
class ScpOpts:
    src: str
    dst: str
    recursive: bool = False
    strict_host_keys: bool = True


@dataclass(frozen=True, slots=True)
class RunErrandOpts:
    name: str
    keep_alive: bool = False
    when_changed: bool = False
    download_logs: bool = False
    logs_dir: DirOrCwdArg | None = None


@dataclass(frozen=True, slots=True)
class LogsOpts:
    logs_dir: DirOrCwdArg
    slug: str | None = None
    jobs: tuple[str, ...] = ()
    agent: bool = False


@dataclass(frozen=True, slots=True)
class ExportReleaseOpts:
    release: str
    os: str
    dir: DirOrCwdArg


@dataclass(frozen=True, slots=True)
class DeployOpts:
    manifest: ManifestOpts
    recreate: bool = False
    fix: bool = False
    skip_drain: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class UploadReleaseOpts:
    dir: DirOrCwdArg
    source: str | None = None
    sha1: str = ""
    rebase: bool = False
    fix: bool = False


@dataclass(frozen=True, slots=True)
class DirOpts:
    dir: DirOrCwdArg


@dataclass(frozen=True, slots=True)
class InitReleaseOpts:
    dir: DirOrCwdArg
    git: bool = False


@dataclass(frozen=True, slots=True)
class GenerateOpts:
    dir: DirOrCwdArg
    name: str


@dataclass(frozen=True, slots=True)
class FinalizeReleaseOpts:
    dir: DirOrCwdArg
    tarball: FileArg
    name: str | None = None
    version: str | None = None
    force: bool = False


@dataclass(frozen=True, slots=True)
class CreateReleaseOpts:
    dir: DirOrCwdArg
    name: str | None = None
    version: str | None = None
    final: bool = False
    tarball: str | None = None
    force: bool = False


@dataclass(frozen=True, slots=True)
class AddBlobOpts:
    dir: DirOrCwdArg
    path: FileArg
    blobs_path: str


@dataclass(frozen=True, slots=True)
class RemoveBlobOpts:
    dir: DirOrCwdArg
    blobs_path: str


@dataclass(frozen=True, slots=True)
class ParsedInvocation:
    """What typer parsed: global options, the command and its options."""

    options: GlobalOptions
    command: str
    command_options: object = None
    extra_args: tuple[str, ...] = ()


@dataclass
class Invocation:
    """Click context object filled in while typer parses argv.

    The group callback sets ``options``; the matched command sets ``parsed``.
    ``message`` holds version output when parsing stopped early.
    """

    fs: FileSystem
    options: GlobalOptions = field(default_factory=GlobalOptions)
    parsed: ParsedInvocation | None = None
    message: str | None = None
