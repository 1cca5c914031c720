"""Director and Deployment capability interfaces.

Commands only see these protocols. ``DirectorClient`` implements them over
HTTP; ``FakeDirector``/``FakeDeployment`` implement them for tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dctl.core.errors import DeploymentError, DirectorError
from dctl.core.result import Result

__all__ = [
    "Deployment",
    "DeploymentSummary",
    "Director",
    "ErrandResult",
    "Info",
    "InstanceSlug",
    "Lock",
    "OrphanDisk",
    "Problem",
    "ReleaseDetails",
    "ReleaseSummary",
    "Snapshot",
    "SshHost",
    "Stemcell",
    "Task",
    "TaskResultBlob",
    "VmInfo",
]


@dataclass(frozen=True, slots=True)
class InstanceSlug:
    """``group`` or ``group/id`` selector for instance-level operations."""

    group: str
    index_or_id: str | None = None

    @classmethod
    def parse(cls, value: str) -> InstanceSlug:
        group, _, rest = value.partition("/")
        return cls(group=group, index_or_id=rest or None)

    def __str__(self) -> str:
        return f"{self.group}/{self.index_or_id}" if self.index_or_id else self.group


@dataclass(frozen=True, slots=True)
class Info:
    name: str
    uuid: str
    version: str
    user: str | None = None
    cpi: str | None = None


@dataclass(frozen=True, slots=True)
class DeploymentSummary:
    name: str
    releases: tuple[str, ...] = ()
    stemcells: tuple[str, ...] = ()
    cloud_config: str = "none"


@dataclass(frozen=True, slots=True)
class ReleaseSummary:
    name: str
    version: str
    currently_deployed: bool = False
    commit_hash: str = ""


@dataclass(frozen=True, slots=True)
class ReleaseDetails:
    name: str
    version: str
    jobs: tuple[str, ...] = ()
    packages: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Stemcell:
    name: str
    os: str
    version: str
    cid: str
    deployments: int = 0


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    state: str
    description: str
    user: str = ""
    deployment: str = ""
    started_at: int = 0
    result: str = ""

    @property
    def is_finished(self) -> bool:
        return self.state in ("done", "error", "cancelled", "timeout")


@dataclass(frozen=True, slots=True)
class Lock:
    type: str
    resource: str
    expires_at: str


@dataclass(frozen=True, slots=True)
class OrphanDisk:
    cid: str
    size: int
    deployment: str
    instance: str
    orphaned_at: str


@dataclass(frozen=True, slots=True)
class VmInfo:
    instance: str
    process_state: str
    ips: tuple[str, ...] = ()
    vm_cid: str = ""
    az: str = ""
    vm_type: str = ""
    resurrection_paused: bool = False


@dataclass(frozen=True, slots=True)
class Problem:
    id: int
    type: str
    description: str
    resolutions: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class Snapshot:
    instance: str
    cid: str
    created_at: str
    clean: bool


@dataclass(frozen=True, slots=True)
class ErrandResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    logs_blobstore_id: str | None = None


@dataclass(frozen=True, slots=True)
class TaskResultBlob:
    """Blob produced by a task (logs tarball, exported release)."""

    blobstore_id: str
    sha1: str = ""


@dataclass(frozen=True, slots=True)
class SshHost:
    instance: str
    host: str
    host_public_key: str = ""


class Deployment(Protocol):
    """Handle on one named deployment."""

    @property
    def name(self) -> str: ...

    def manifest(self) -> Result[str, DirectorError]: ...

    def update(
        self,
        manifest: bytes,
        *,
        recreate: bool = False,
        fix: bool = False,
        skip_drain: bool = False,
        dry_run: bool = False,
    ) -> Result[None, DirectorError]: ...

    def delete(self, force: bool) -> Result[None, DirectorError]: ...

    def errands(self) -> Result[list[str], DirectorError]: ...

    def run_errand(
        self, name: str, keep_alive: bool, when_changed: bool
    ) -> Result[list[ErrandResult], DirectorError]: ...

    def snapshots(self) -> Result[list[Snapshot], DirectorError]: ...

    def take_snapshot(self, slug: InstanceSlug | None) -> Result[None, DirectorError]: ...

    def delete_snapshot(self, cid: str) -> Result[None, DirectorError]: ...

    def delete_snapshots(self) -> Result[None, DirectorError]: ...

    def instance_infos(self) -> Result[list[VmInfo], DirectorError]: ...

    def vm_infos(self) -> Result[list[VmInfo], DirectorError]: ...

    def change_state(
        self,
        state: str,
        slug: InstanceSlug | None,
        *,
        skip_drain: bool = False,
        force: bool = False,
    ) -> Result[None, DirectorError]:
        """Move instances to ``started``, ``stopped``, ``detached``, ``restart`` or ``recreate``."""
        ...

    def problems(self) -> Result[list[Problem], DirectorError]: ...

    def resolve_problems(self, answers: dict[int, str]) -> Result[None, DirectorError]: ...

    def fetch_logs(
        self, slug: InstanceSlug | None, filters: Sequence[str], agent: bool
    ) -> Result[TaskResultBlob, DirectorError]: ...

    def setup_ssh(
        self, slug: InstanceSlug | None, username: str, public_key: str
    ) -> Result[list[SshHost], DirectorError]: ...

    def cleanup_ssh(self, slug: InstanceSlug | None, username: str) -> Result[None, DirectorError]: ...

    def export_release(
        self, release: str, version: str, os: str, os_version: str
    ) -> Result[TaskResultBlob, DirectorError]: ...


class Director(Protocol):
    """Authenticated (or anonymous) handle on one director."""

    @property
    def url(self) -> str: ...

    def info(self) -> Result[Info, DirectorError]: ...

    def is_authenticated(self) -> Result[bool, DirectorError]: ...

    def find_deployment(self, name: str) -> Result[Deployment, DeploymentError]: ...

    def deployments(self) -> Result[list[DeploymentSummary], DirectorError]: ...

    def releases(self) -> Result[list[ReleaseSummary], DirectorError]: ...

    def has_release(self, name: str, version: str) -> Result[bool, DirectorError]: ...

    def upload_release_file(
        self, path: Path, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]: ...

    def upload_release_url(
        self, url: str, sha1: str, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]: ...

    def delete_release(
        self, name: str, version: str | None, force: bool
    ) -> Result[None, DirectorError]: ...

    def inspect_release(self, name: str, version: str) -> Result[ReleaseDetails, DirectorError]: ...

    def stemcells(self) -> Result[list[Stemcell], DirectorError]: ...

    def upload_stemcell_file(self, path: Path, *, fix: bool = False) -> Result[None, DirectorError]: ...

    def upload_stemcell_url(
        self, url: str, sha1: str, *, fix: bool = False
    ) -> Result[None, DirectorError]: ...

    def delete_stemcell(self, name: str, version: str, force: bool) -> Result[None, DirectorError]: ...

    def tasks(
        self, *, recent: int | None, include_all: bool, deployment: str | None
    ) -> Result[list[Task], DirectorError]: ...

    def task(self, task_id: int) -> Result[Task, DirectorError]: ...

    def task_output(self, task_id: int, kind: str) -> Result[str, DirectorError]: ...

    def cancel_task(self, task_id: int) -> Result[None, DirectorError]: ...

    def locks(self) -> Result[list[Lock], DirectorError]: ...

    def orphan_disks(self) -> Result[list[OrphanDisk], DirectorError]: ...

    def delete_orphan_disk(self, cid: str) -> Result[None, DirectorError]: ...

    def latest_cloud_config(self) -> Result[str, DirectorError]: ...

    def update_cloud_config(self, manifest: bytes) -> Result[None, DirectorError]: ...

    def latest_runtime_config(self, name: str) -> Result[str, DirectorError]: ...

    def update_runtime_config(self, name: str, manifest: bytes) -> Result[None, DirectorError]: ...

    def enable_resurrection(self, enabled: bool) -> Result[None, DirectorError]: ...

    def clean_up(self, remove_all: bool) -> Result[None, DirectorError]: ...

    def download_resource(self, blobstore_id: str, dest: Path) -> Result[None, DirectorError]: ...
