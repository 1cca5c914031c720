"""In-memory Director and Deployment doubles.

Every call is recorded in ``calls`` as ``(method, args)``. Return values are
plain attributes; set an ``*_error`` attribute to make that operation fail.

Usage:
    director = FakeDirector(deployments_result=[DeploymentSummary("cf")])
    director.info_error = DirectorError("fake-connection-error")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dctl.core.errors import DeploymentError, DirectorError
from dctl.core.result import Err, Ok, Result

from .api import (
    Deployment,
    DeploymentSummary,
    ErrandResult,
    Info,
    InstanceSlug,
    Lock,
    OrphanDisk,
    Problem,
    ReleaseDetails,
    ReleaseSummary,
    Snapshot,
    SshHost,
    Stemcell,
    Task,
    TaskResultBlob,
    VmInfo,
)

__all__ = ["FakeDeployment", "FakeDirector"]


def _calls() -> list[tuple[str, tuple[object, ...]]]:
    return []


@dataclass
class FakeDeployment:
    deployment_name: str = "fake-dep"
    manifest_result: str = ""
    errands_result: list[str] = field(default_factory=list)
    errand_results: list[ErrandResult] = field(default_factory=list)
    snapshots_result: list[Snapshot] = field(default_factory=list)
    instances_result: list[VmInfo] = field(default_factory=list)
    vms_result: list[VmInfo] = field(default_factory=list)
    problems_result: list[Problem] = field(default_factory=list)
    logs_result: TaskResultBlob = field(default_factory=lambda: TaskResultBlob("logs-blob-id"))
    ssh_hosts: list[SshHost] = field(default_factory=list)
    export_result: TaskResultBlob = field(default_factory=lambda: TaskResultBlob("export-blob-id"))
    error: DirectorError | None = None
    calls: list[tuple[str, tuple[object, ...]]] = field(default_factory=_calls)

    @property
    def name(self) -> str:
        return self.deployment_name

    def _record[T](self, method: str, value: T, *args: object) -> Result[T, DirectorError]:
        self.calls.append((method, args))
        if self.error is not None:
            return Err(self.error)
        return Ok(value)

    def called(self, method: str) -> list[tuple[object, ...]]:
        return [args for name, args in self.calls if name == method]

    def manifest(self) -> Result[str, DirectorError]:
        return self._record("manifest", self.manifest_result)

    def update(
        self,
        manifest: bytes,
        *,
        recreate: bool = False,
        fix: bool = False,
        skip_drain: bool = False,
        dry_run: bool = False,
    ) -> Result[None, DirectorError]:
        return self._record("update", None, manifest, recreate, fix, skip_drain, dry_run)

    def delete(self, force: bool) -> Result[None, DirectorError]:
        return self._record("delete", None, force)

    def errands(self) -> Result[list[str], DirectorError]:
        return self._record("errands", self.errands_result)

    def run_errand(
        self, name: str, keep_alive: bool, when_changed: bool
    ) -> Result[list[ErrandResult], DirectorError]:
        return self._record("run_errand", self.errand_results, name, keep_alive, when_changed)

    def snapshots(self) -> Result[list[Snapshot], DirectorError]:
        return self._record("snapshots", self.snapshots_result)

    def take_snapshot(self, slug: InstanceSlug | None) -> Result[None, DirectorError]:
        return self._record("take_snapshot", None, slug)

    def delete_snapshot(self, cid: str) -> Result[None, DirectorError]:
        return self._record("delete_snapshot", None, cid)

    def delete_snapshots(self) -> Result[None, DirectorError]:
        return self._record("delete_snapshots", None)

    def instance_infos(self) -> Result[list[VmInfo], DirectorError]:
        return self._record("instance_infos", self.instances_result)

    def vm_infos(self) -> Result[list[VmInfo], DirectorError]:
        return self._record("vm_infos", self.vms_result)

    def change_state(
        self,
        state: str,
        slug: InstanceSlug | None,
        *,
        skip_drain: bool = False,
        force: bool = False,
    ) -> Result[None, DirectorError]:
        return self._record("change_state", None, state, slug, skip_drain, force)

    def problems(self) -> Result[list[Problem], DirectorError]:
        return self._record("problems", self.problems_result)

    def resolve_problems(self, answers: dict[int, str]) -> Result[None, DirectorError]:
        return self._record("resolve_problems", None, answers)

    def fetch_logs(
        self, slug: InstanceSlug | None, filters: Sequence[str], agent: bool
    ) -> Result[TaskResultBlob, DirectorError]:
        return self._record("fetch_logs", self.logs_result, slug, tuple(filters), agent)

    def setup_ssh(
        self, slug: InstanceSlug | None, username: str, public_key: str
    ) -> Result[list[SshHost], DirectorError]:
        return self._record("setup_ssh", self.ssh_hosts, slug, username, public_key)

    def cleanup_ssh(self, slug: InstanceSlug | None, username: str) -> Result[None, DirectorError]:
        return self._record("cleanup_ssh", None, slug, username)

    def export_release(
        self, release: str, version: str, os: str, os_version: str
    ) -> Result[TaskResultBlob, DirectorError]:
        return self._record("export_release", self.export_result, release, version, os, os_version)


@dataclass
class FakeDirector:
    director_url: str = "https://director.example.com:25555"
    info_result: Info = field(default_factory=lambda: Info("fake-director", "uuid", "1.0", "admin"))
    authenticated: bool = True
    deployment: FakeDeployment | None = None
    find_deployment_error: DeploymentError | None = None
    deployments_result: list[DeploymentSummary] = field(default_factory=list)
    releases_result: list[ReleaseSummary] = field(default_factory=list)
    release_details: ReleaseDetails | None = None
    stemcells_result: list[Stemcell] = field(default_factory=list)
    tasks_result: list[Task] = field(default_factory=list)
    task_result: Task | None = None
    task_output_result: str = ""
    locks_result: list[Lock] = field(default_factory=list)
    disks_result: list[OrphanDisk] = field(default_factory=list)
    cloud_config: str = ""
    runtime_config: str = ""
    resources: dict[str, bytes] = field(default_factory=dict)
    error: DirectorError | None = None
    info_error: DirectorError | None = None
    calls: list[tuple[str, tuple[object, ...]]] = field(default_factory=_calls)

    @property
    def url(self) -> str:
        return self.director_url

    def _record[T](self, method: str, value: T, *args: object) -> Result[T, DirectorError]:
        self.calls.append((method, args))
        if self.error is not None:
            return Err(self.error)
        return Ok(value)

    def called(self, method: str) -> list[tuple[object, ...]]:
        return [args for name, args in self.calls if name == method]

    def info(self) -> Result[Info, DirectorError]:
        self.calls.append(("info", ()))
        if self.info_error is not None:
            return Err(self.info_error)
        return Ok(self.info_result)

    def is_authenticated(self) -> Result[bool, DirectorError]:
        self.calls.append(("is_authenticated", ()))
        if self.info_error is not None:
            return Err(self.info_error)
        return Ok(self.authenticated)

    def find_deployment(self, name: str) -> Result[Deployment, DeploymentError]:
        self.calls.append(("find_deployment", (name,)))
        if self.find_deployment_error is not None:
            return Err(self.find_deployment_error)
        if self.deployment is None:
            self.deployment = FakeDeployment(deployment_name=name)
        return Ok(self.deployment)

    def deployments(self) -> Result[list[DeploymentSummary], DirectorError]:
        return self._record("deployments", self.deployments_result)

    def releases(self) -> Result[list[ReleaseSummary], DirectorError]:
        return self._record("releases", self.releases_result)

    def has_release(self, name: str, version: str) -> Result[bool, DirectorError]:
        found = any(r.name == name and r.version == version for r in self.releases_result)
        return self._record("has_release", found, name, version)

    def upload_release_file(
        self, path: Path, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._record("upload_release_file", None, path, rebase, fix)

    def upload_release_url(
        self, url: str, sha1: str, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._record("upload_release_url", None, url, sha1, rebase, fix)

    def delete_release(
        self, name: str, version: str | None, force: bool
    ) -> Result[None, DirectorError]:
        return self._record("delete_release", None, name, version, force)

    def inspect_release(self, name: str, version: str) -> Result[ReleaseDetails, DirectorError]:
        details = self.release_details or ReleaseDetails(name=name, version=version)
        return self._record("inspect_release", details, name, version)

    def stemcells(self) -> Result[list[Stemcell], DirectorError]:
        return self._record("stemcells", self.stemcells_result)

    def upload_stemcell_file(self, path: Path, *, fix: bool = False) -> Result[None, DirectorError]:
        return self._record("upload_stemcell_file", None, path, fix)

    def upload_stemcell_url(
        self, url: str, sha1: str, *, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._record("upload_stemcell_url", None, url, sha1, fix)

    def delete_stemcell(self, name: str, version: str, force: bool) -> Result[None, DirectorError]:
        return self._record("delete_stemcell", None, name, version, force)

    def tasks(
        self, *, recent: int | None, include_all: bool, deployment: str | None
    ) -> Result[list[Task], DirectorError]:
        return self._record("tasks", self.tasks_result, recent, include_all, deployment)

    def task(self, task_id: int) -> Result[Task, DirectorError]:
        task = self.task_result or Task(id=task_id, state="done", description="fake")
        return self._record("task", task, task_id)

    def task_output(self, task_id: int, kind: str) -> Result[str, DirectorError]:
        return self._record("task_output", self.task_output_result, task_id, kind)

    def cancel_task(self, task_id: int) -> Result[None, DirectorError]:
        return self._record("cancel_task", None, task_id)

    def locks(self) -> Result[list[Lock], DirectorError]:
        return self._record("locks", self.locks_result)

    def orphan_disks(self) -> Result[list[OrphanDisk], DirectorError]:
        return self._record("orphan_disks", self.disks_result)

    def delete_orphan_disk(self, cid: str) -> Result[None, DirectorError]:
        return self._record("delete_orphan_disk", None, cid)

    def latest_cloud_config(self) -> Result[str, DirectorError]:
        return self._record("latest_cloud_config", self.cloud_config)

    def update_cloud_config(self, manifest: bytes) -> Result[None, DirectorError]:
        return self._record("update_cloud_config", None, manifest)

    def latest_runtime_config(self, name: str) -> Result[str, DirectorError]:
        return self._record("latest_runtime_config", self.runtime_config, name)

    def update_runtime_config(self, name: str, manifest: bytes) -> Result[None, DirectorError]:
        return self._record("update_runtime_config", None, name, manifest)

    def enable_resurrection(self, enabled: bool) -> Result[None, DirectorError]:
        return self._record("enable_resurrection", None, enabled)

    def clean_up(self, remove_all: bool) -> Result[None, DirectorError]:
        return self._record("clean_up", None, remove_all)

    def download_resource(self, blobstore_id: str, dest: Path) -> Result[None, DirectorError]:
        result = self._record("download_resource", None, blobstore_id, dest)
        if isinstance(result, Ok):
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(self.resources.get(blobstore_id, b""))
        return result
