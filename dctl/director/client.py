"""Director API client.

``DirectorClient`` maps ``Director`` operations onto director HTTP endpoints.
Long-running operations answer with a redirect to ``/tasks/<id>``; the
client polls that task until it finishes and turns failed tasks into
``DirectorError`` values carrying the task id.

Usage:
    transport = RealHttpTransport(url, ca_cert=cert, credentials=creds)
    director = DirectorClient(transport)
    match director.deployments():
        case Ok(deployments):
            ...
"""

from __future__ import annotations

import json
import logging
import time
import urllib.parse
from collections.abc import Callable, Sequence
from pathlib import Path

from dctl.core.errors import DeploymentError, DirectorError
from dctl.core.result import Err, Ok, Result
from dctl.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_text,
    str_dicts,
)

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
from .transport import HttpError, HttpResponse, HttpTransport

__all__ = ["DeploymentClient", "DirectorClient"]

logger = logging.getLogger(__name__)

YAML = "text/yaml"


def _q(value: str) -> str:
    return urllib.parse.quote(value, safe="")


def _director_error(error: HttpError) -> DirectorError:
    return DirectorError(message=str(error), status=error.status)


def _slug_path(slug: InstanceSlug | None) -> str:
    if slug is None:
        return "/jobs/*"
    if slug.index_or_id is None:
        return f"/jobs/{_q(slug.group)}"
    return f"/jobs/{_q(slug.group)}/{_q(slug.index_or_id)}"


def _task_from(data: StrDict) -> Task:
    return Task(
        id=get_int(data, "id") or 0,
        state=get_str(data, "state") or "",
        description=get_str(data, "description") or "",
        user=get_str(data, "user") or "",
        deployment=get_str(data, "deployment") or "",
        started_at=get_int(data, "started_at") or 0,
        result=get_str(data, "result") or "",
    )


def _vm_from(data: StrDict) -> VmInfo:
    ips = tuple(ip for ip in (data.get("ips") or []) if isinstance(ip, str))
    group = get_str(data, "job_name") or "?"
    ident = get_str(data, "id") or str(get_int(data, "index") or 0)
    return VmInfo(
        instance=f"{group}/{ident}",
        process_state=get_str(data, "job_state") or get_str(data, "process_state") or "",
        ips=ips,
        vm_cid=get_str(data, "vm_cid") or "",
        az=get_str(data, "az") or "",
        vm_type=get_str(data, "vm_type") or get_str(data, "resource_pool") or "",
        resurrection_paused=get_bool(data, "resurrection_paused") or False,
    )


class DirectorClient:
    """``Director`` implementation over an ``HttpTransport``."""

    def __init__(
        self,
        transport: HttpTransport,
        *,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._poll_interval = poll_interval
        self._sleep = sleep

    @property
    def url(self) -> str:
        return self._transport.base_url

    # -- plumbing -----------------------------------------------------------

    def _get(self, path: str) -> Result[HttpResponse, DirectorError]:
        result = self._transport.request("GET", path)
        if isinstance(result, Err):
            return Err(_director_error(result.error))
        return Ok(result.value)

    def _get_json(self, path: str) -> Result[object, DirectorError]:
        result = self._get(path)
        if isinstance(result, Err):
            return result
        try:
            return Ok(result.value.json())
        except (ValueError, UnicodeDecodeError) as e:
            return Err(DirectorError(f"Unmarshaling director response from {path}: {e}"))

    def _get_list(self, path: str) -> Result[list[StrDict], DirectorError]:
        result = self._get_json(path)
        if isinstance(result, Err):
            return result
        return Ok(str_dicts(result.value))

    def _task_id(self, response: HttpResponse, path: str) -> Result[int, DirectorError]:
        if response.status != 302 or not response.location:
            return Err(DirectorError(f"Expected task redirect from {path}, got {response.status}"))
        tail = urllib.parse.urlparse(response.location).path.rstrip("/").rsplit("/", 1)[-1]
        if not tail.isdigit():
            return Err(DirectorError(f"Unexpected task location '{response.location}'"))
        return Ok(int(tail))

    def _run_task(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> Result[int, DirectorError]:
        """Start an asynchronous operation and wait for its task."""
        started = self._transport.request(method, path, body, content_type)
        if isinstance(started, Err):
            return Err(_director_error(started.error))
        return self._wait_redirect(started.value, path)

    def _wait_redirect(self, response: HttpResponse, path: str) -> Result[int, DirectorError]:
        task_id = self._task_id(response, path)
        if isinstance(task_id, Err):
            return task_id
        waited = self.wait_task(task_id.value)
        if isinstance(waited, Err):
            return waited
        return Ok(task_id.value)

    def wait_task(self, task_id: int) -> Result[Task, DirectorError]:
        while True:
            result = self.task(task_id)
            if isinstance(result, Err):
                return result
            task = result.value
            if task.is_finished:
                break
            logger.debug("task %d is %s", task_id, task.state)
            self._sleep(self._poll_interval)

        if task.state != "done":
            return Err(
                DirectorError(
                    f"Expected task '{task_id}' to succeed but state is '{task.state}'"
                    + (f": {task.result}" if task.result else ""),
                    task_id=task_id,
                )
            )
        return Ok(task)

    def _task_results(self, task_id: int) -> Result[list[StrDict], DirectorError]:
        output = self.task_output(task_id, "result")
        if isinstance(output, Err):
            return output
        results: list[StrDict] = []
        for line in output.value.splitlines():
            if not line.strip():
                continue
            try:
                item = as_str_dict(json.loads(line))
            except ValueError as e:
                return Err(DirectorError(f"Unmarshaling task {task_id} result: {e}", task_id=task_id))
            if item is not None:
                results.append(item)
        return Ok(results)

    def _task_blob(self, task_id: int) -> Result[TaskResultBlob, DirectorError]:
        output = self.task_output(task_id, "result")
        if isinstance(output, Err):
            return output
        text = output.value.strip()
        try:
            data = as_str_dict(json.loads(text))
        except ValueError:
            data = None
        if data is None:
            # Older directors answer with the bare blobstore id.
            return Ok(TaskResultBlob(blobstore_id=text))
        return Ok(
            TaskResultBlob(
                blobstore_id=get_str(data, "blobstore_id") or "",
                sha1=get_str(data, "sha1") or "",
            )
        )

    # -- Director -----------------------------------------------------------

    def info(self) -> Result[Info, DirectorError]:
        result = self._get_json("/info")
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        return Ok(
            Info(
                name=get_str(data, "name") or "",
                uuid=get_str(data, "uuid") or "",
                version=get_str(data, "version") or "",
                user=get_str(data, "user"),
                cpi=get_str(data, "cpi"),
            )
        )

    def is_authenticated(self) -> Result[bool, DirectorError]:
        result = self.info()
        if isinstance(result, Err):
            return result
        return Ok(bool(result.value.user))

    def find_deployment(self, name: str) -> Result[Deployment, DeploymentError]:
        if not name.strip():
            return Err(
                DeploymentError("Expected non-empty deployment name", no_deployment=True)
            )
        return Ok(DeploymentClient(name, self, self._transport))

    def deployments(self) -> Result[list[DeploymentSummary], DirectorError]:
        result = self._get_list("/deployments")
        if isinstance(result, Err):
            return result

        def names(items: object, key: str = "name") -> tuple[str, ...]:
            out: list[str] = []
            for item in str_dicts(items):
                name = get_str(item, key)
                version = get_str(item, "version")
                if name:
                    out.append(f"{name}/{version}" if version else name)
            return tuple(out)

        return Ok(
            [
                DeploymentSummary(
                    name=get_str(d, "name") or "",
                    releases=names(d.get("releases")),
                    stemcells=names(d.get("stemcells")),
                    cloud_config=get_str(d, "cloud_config") or "none",
                )
                for d in result.value
            ]
        )

    def releases(self) -> Result[list[ReleaseSummary], DirectorError]:
        result = self._get_list("/releases")
        if isinstance(result, Err):
            return result
        out: list[ReleaseSummary] = []
        for rel in result.value:
            name = get_str(rel, "name") or ""
            for ver in str_dicts(rel.get("release_versions")):
                out.append(
                    ReleaseSummary(
                        name=name,
                        version=get_str(ver, "version") or "",
                        currently_deployed=get_bool(ver, "currently_deployed") or False,
                        commit_hash=get_str(ver, "commit_hash") or "",
                    )
                )
        return Ok(out)

    def has_release(self, name: str, version: str) -> Result[bool, DirectorError]:
        result = self.releases()
        if isinstance(result, Err):
            return result
        return Ok(any(r.name == name and r.version == version for r in result.value))

    def _upload_query(self, rebase: bool, fix: bool) -> str:
        params = {k: "true" for k, v in (("rebase", rebase), ("fix", fix)) if v}
        return "?" + urllib.parse.urlencode(params) if params else ""

    def _upload_file(self, path: str, file_path: Path) -> Result[None, DirectorError]:
        started = self._transport.upload_file("POST", path, file_path, "application/x-compressed")
        if isinstance(started, Err):
            return Err(_director_error(started.error))
        waited = self._wait_redirect(started.value, path)
        return waited if isinstance(waited, Err) else Ok(None)

    def _upload_url(self, path: str, url: str, sha1: str) -> Result[None, DirectorError]:
        body: dict[str, str] = {"location": url}
        if sha1:
            body["sha1"] = sha1
        result = self._run_task("POST", path, json.dumps(body).encode())
        return result if isinstance(result, Err) else Ok(None)

    def upload_release_file(
        self, path: Path, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._upload_file("/releases" + self._upload_query(rebase, fix), path)

    def upload_release_url(
        self, url: str, sha1: str, *, rebase: bool = False, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._upload_url("/releases" + self._upload_query(rebase, fix), url, sha1)

    def delete_release(
        self, name: str, version: str | None, force: bool
    ) -> Result[None, DirectorError]:
        params: dict[str, str] = {}
        if version:
            params["version"] = version
        if force:
            params["force"] = "true"
        query = "?" + urllib.parse.urlencode(params) if params else ""
        result = self._run_task("DELETE", f"/releases/{_q(name)}{query}")
        return result if isinstance(result, Err) else Ok(None)

    def inspect_release(self, name: str, version: str) -> Result[ReleaseDetails, DirectorError]:
        result = self._get_json(f"/releases/{_q(name)}?version={_q(version)}")
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        jobs = tuple(get_str(j, "name") or "" for j in str_dicts(data.get("jobs")))
        packages = tuple(get_str(p, "name") or "" for p in str_dicts(data.get("packages")))
        return Ok(ReleaseDetails(name=name, version=version, jobs=jobs, packages=packages))

    def stemcells(self) -> Result[list[Stemcell], DirectorError]:
        result = self._get_list("/stemcells")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                Stemcell(
                    name=get_str(s, "name") or "",
                    os=get_str(s, "operating_system") or "",
                    version=get_str(s, "version") or "",
                    cid=get_str(s, "cid") or "",
                    deployments=len(str_dicts(s.get("deployments"))),
                )
                for s in result.value
            ]
        )

    def upload_stemcell_file(self, path: Path, *, fix: bool = False) -> Result[None, DirectorError]:
        return self._upload_file("/stemcells" + self._upload_query(False, fix), path)

    def upload_stemcell_url(
        self, url: str, sha1: str, *, fix: bool = False
    ) -> Result[None, DirectorError]:
        return self._upload_url("/stemcells" + self._upload_query(False, fix), url, sha1)

    def delete_stemcell(self, name: str, version: str, force: bool) -> Result[None, DirectorError]:
        query = "?force=true" if force else ""
        result = self._run_task("DELETE", f"/stemcells/{_q(name)}/{_q(version)}{query}")
        return result if isinstance(result, Err) else Ok(None)

    def tasks(
        self, *, recent: int | None, include_all: bool, deployment: str | None
    ) -> Result[list[Task], DirectorError]:
        params: dict[str, str] = {"verbose": "2" if include_all else "1"}
        if recent is None:
            params["state"] = "processing,cancelling,queued"
        else:
            params["limit"] = str(recent)
        if deployment:
            params["deployment"] = deployment
        result = self._get_list("/tasks?" + urllib.parse.urlencode(params))
        if isinstance(result, Err):
            return result
        return Ok([_task_from(t) for t in result.value])

    def task(self, task_id: int) -> Result[Task, DirectorError]:
        result = self._get_json(f"/tasks/{task_id}")
        if isinstance(result, Err):
            return result
        return Ok(_task_from(as_str_dict(result.value) or {}))

    def task_output(self, task_id: int, kind: str) -> Result[str, DirectorError]:
        result = self._get(f"/tasks/{task_id}/output?type={_q(kind)}")
        if isinstance(result, Err):
            return result
        return Ok(result.value.text())

    def cancel_task(self, task_id: int) -> Result[None, DirectorError]:
        result = self._transport.request("DELETE", f"/task/{task_id}")
        if isinstance(result, Err):
            return Err(_director_error(result.error))
        return Ok(None)

    def locks(self) -> Result[list[Lock], DirectorError]:
        result = self._get_list("/locks")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                Lock(
                    type=get_str(lock, "type") or "",
                    resource=":".join(
                        r for r in (lock.get("resource") or []) if isinstance(r, str)
                    ),
                    expires_at=get_str(lock, "timeout") or "",
                )
                for lock in result.value
            ]
        )

    def orphan_disks(self) -> Result[list[OrphanDisk], DirectorError]:
        result = self._get_list("/disks?orphaned=true")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                OrphanDisk(
                    cid=get_str(d, "disk_cid") or "",
                    size=get_int(d, "size") or 0,
                    deployment=get_str(d, "deployment_name") or "",
                    instance=get_str(d, "instance_name") or "",
                    orphaned_at=get_str(d, "orphaned_at") or "",
                )
                for d in result.value
            ]
        )

    def delete_orphan_disk(self, cid: str) -> Result[None, DirectorError]:
        result = self._run_task("DELETE", f"/disks/{_q(cid)}")
        return result if isinstance(result, Err) else Ok(None)

    def _latest_config(self, path: str) -> Result[str, DirectorError]:
        result = self._get_list(path)
        if isinstance(result, Err):
            return result
        if not result.value:
            return Err(DirectorError(f"No config found at {path.split('?')[0]}", status=404))
        return Ok(get_text(result.value[0], "properties") or "")

    def _post_config(self, path: str, manifest: bytes) -> Result[None, DirectorError]:
        result = self._transport.request("POST", path, manifest, YAML)
        if isinstance(result, Err):
            return Err(_director_error(result.error))
        return Ok(None)

    def latest_cloud_config(self) -> Result[str, DirectorError]:
        return self._latest_config("/cloud_configs?limit=1")

    def update_cloud_config(self, manifest: bytes) -> Result[None, DirectorError]:
        return self._post_config("/cloud_configs", manifest)

    def latest_runtime_config(self, name: str) -> Result[str, DirectorError]:
        return self._latest_config(f"/runtime_configs?limit=1&name={_q(name)}")

    def update_runtime_config(self, name: str, manifest: bytes) -> Result[None, DirectorError]:
        return self._post_config(f"/runtime_configs?name={_q(name)}", manifest)

    def enable_resurrection(self, enabled: bool) -> Result[None, DirectorError]:
        body = json.dumps({"resurrection_paused": not enabled}).encode()
        result = self._transport.request("PUT", "/resurrection", body)
        if isinstance(result, Err):
            return Err(_director_error(result.error))
        return Ok(None)

    def clean_up(self, remove_all: bool) -> Result[None, DirectorError]:
        body = json.dumps({"config": {"remove_all": remove_all}}).encode()
        result = self._run_task("POST", "/cleanup", body)
        return result if isinstance(result, Err) else Ok(None)

    def download_resource(self, blobstore_id: str, dest: Path) -> Result[None, DirectorError]:
        result = self._transport.download(f"/resources/{_q(blobstore_id)}", dest)
        if isinstance(result, Err):
            return Err(_director_error(result.error))
        return Ok(None)


class DeploymentClient:
    """``Deployment`` implementation bound to one deployment name."""

    def __init__(self, name: str, director: DirectorClient, transport: HttpTransport) -> None:
        self._name = name
        self._director = director
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    @property
    def _path(self) -> str:
        return f"/deployments/{_q(self._name)}"

    def _task(
        self, method: str, suffix: str, body: bytes | None = None, content_type: str = "application/json"
    ) -> Result[int, DirectorError]:
        return self._director._run_task(method, self._path + suffix, body, content_type)

    def _done(self, result: Result[int, DirectorError]) -> Result[None, DirectorError]:
        return result if isinstance(result, Err) else Ok(None)

    def manifest(self) -> Result[str, DirectorError]:
        result = self._director._get_json(self._path)
        if isinstance(result, Err):
            return result
        return Ok(get_text(as_str_dict(result.value) or {}, "manifest") or "")

    def update(
        self,
        manifest: bytes,
        *,
        recreate: bool = False,
        fix: bool = False,
        skip_drain: bool = False,
        dry_run: bool = False,
    ) -> Result[None, DirectorError]:
        flags = {"recreate": recreate, "fix": fix, "skip_drain": skip_drain, "dry_run": dry_run}
        params = {k: "true" for k, v in flags.items() if v}
        query = "?" + urllib.parse.urlencode(params) if params else ""
        result = self._director._run_task("POST", "/deployments" + query, manifest, YAML)
        return self._done(result)

    def delete(self, force: bool) -> Result[None, DirectorError]:
        return self._done(self._task("DELETE", "?force=true" if force else ""))

    def errands(self) -> Result[list[str], DirectorError]:
        result = self._director._get_list(self._path + "/errands")
        if isinstance(result, Err):
            return result
        return Ok([get_str(e, "name") or "" for e in result.value])

    def run_errand(
        self, name: str, keep_alive: bool, when_changed: bool
    ) -> Result[list[ErrandResult], DirectorError]:
        body = json.dumps({"keep-alive": keep_alive, "when-changed": when_changed}).encode()
        task_id = self._task("POST", f"/errands/{_q(name)}/runs", body)
        if isinstance(task_id, Err):
            return task_id
        results = self._director._task_results(task_id.value)
        if isinstance(results, Err):
            return results
        out: list[ErrandResult] = []
        for item in results.value:
            logs = as_str_dict(item.get("logs")) or {}
            out.append(
                ErrandResult(
                    exit_code=get_int(item, "exit_code") or 0,
                    stdout=get_text(item, "stdout") or "",
                    stderr=get_text(item, "stderr") or "",
                    logs_blobstore_id=get_str(logs, "blobstore_id"),
                )
            )
        return Ok(out)

    def snapshots(self) -> Result[list[Snapshot], DirectorError]:
        result = self._director._get_list(self._path + "/snapshots")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                Snapshot(
                    instance=f"{get_str(s, 'job') or '?'}/{get_str(s, 'uuid') or get_int(s, 'index') or 0}",
                    cid=get_str(s, "snapshot_cid") or "",
                    created_at=get_str(s, "created_at") or "",
                    clean=get_bool(s, "clean") or False,
                )
                for s in result.value
            ]
        )

    def take_snapshot(self, slug: InstanceSlug | None) -> Result[None, DirectorError]:
        suffix = "/snapshots" if slug is None else _slug_path(slug) + "/snapshots"
        return self._done(self._task("POST", suffix))

    def delete_snapshot(self, cid: str) -> Result[None, DirectorError]:
        return self._done(self._task("DELETE", f"/snapshots/{_q(cid)}"))

    def delete_snapshots(self) -> Result[None, DirectorError]:
        return self._done(self._task("DELETE", "/snapshots"))

    def _vms(self, suffix: str) -> Result[list[VmInfo], DirectorError]:
        task_id = self._task("GET", suffix)
        if isinstance(task_id, Err):
            return task_id
        results = self._director._task_results(task_id.value)
        if isinstance(results, Err):
            return results
        return Ok([_vm_from(item) for item in results.value])

    def instance_infos(self) -> Result[list[VmInfo], DirectorError]:
        return self._vms("/instances?format=full")

    def vm_infos(self) -> Result[list[VmInfo], DirectorError]:
        return self._vms("/vms?format=full")

    def change_state(
        self,
        state: str,
        slug: InstanceSlug | None,
        *,
        skip_drain: bool = False,
        force: bool = False,
    ) -> Result[None, DirectorError]:
        params = {"state": state}
        if skip_drain:
            params["skip_drain"] = "true"
        if force:
            params["force"] = "true"
        manifest = self.manifest()
        if isinstance(manifest, Err):
            return manifest
        suffix = _slug_path(slug) + "?" + urllib.parse.urlencode(params)
        return self._done(self._task("PUT", suffix, manifest.value.encode(), YAML))

    def problems(self) -> Result[list[Problem], DirectorError]:
        scan = self._task("POST", "/scans")
        if isinstance(scan, Err):
            return scan
        result = self._director._get_list(self._path + "/problems")
        if isinstance(result, Err):
            return result
        problems: list[Problem] = []
        for p in result.value:
            resolutions = tuple(
                (get_str(r, "name") or "", get_str(r, "plan") or "")
                for r in str_dicts(p.get("resolutions"))
            )
            problems.append(
                Problem(
                    id=get_int(p, "id") or 0,
                    type=get_str(p, "type") or "",
                    description=get_str(p, "description") or "",
                    resolutions=resolutions,
                )
            )
        return Ok(problems)

    def resolve_problems(self, answers: dict[int, str]) -> Result[None, DirectorError]:
        body = json.dumps({"resolutions": {str(k): v for k, v in answers.items()}}).encode()
        return self._done(self._task("PUT", "/problems", body))

    def fetch_logs(
        self, slug: InstanceSlug | None, filters: Sequence[str], agent: bool
    ) -> Result[TaskResultBlob, DirectorError]:
        params = {"type": "agent" if agent else "job"}
        if filters:
            params["filters"] = ",".join(filters)
        suffix = _slug_path(slug) + "/logs?" + urllib.parse.urlencode(params)
        task_id = self._task("GET", suffix)
        if isinstance(task_id, Err):
            return task_id
        return self._director._task_blob(task_id.value)

    def _ssh(
        self, command: str, slug: InstanceSlug | None, params: StrDict
    ) -> Result[int, DirectorError]:
        target: StrDict = {"job": slug.group if slug else None}
        if slug and slug.index_or_id:
            target["ids"] = [slug.index_or_id]
        body = json.dumps(
            {"command": command, "deployment_name": self._name, "target": target, "params": params}
        ).encode()
        return self._task("POST", "/ssh", body)

    def setup_ssh(
        self, slug: InstanceSlug | None, username: str, public_key: str
    ) -> Result[list[SshHost], DirectorError]:
        task_id = self._ssh("setup", slug, {"user": username, "public_key": public_key})
        if isinstance(task_id, Err):
            return task_id
        output = self._director.task_output(task_id.value, "result")
        if isinstance(output, Err):
            return output
        try:
            items = str_dicts(json.loads(output.value or "[]"))
        except ValueError as e:
            return Err(DirectorError(f"Unmarshaling ssh result: {e}", task_id=task_id.value))
        return Ok(
            [
                SshHost(
                    instance=f"{get_str(i, 'job') or '?'}/{get_str(i, 'id') or get_int(i, 'index') or 0}",
                    host=get_str(i, "ip") or "",
                    host_public_key=get_str(i, "host_public_key") or "",
                )
                for i in items
                if get_str(i, "status") in (None, "success")
            ]
        )

    def cleanup_ssh(self, slug: InstanceSlug | None, username: str) -> Result[None, DirectorError]:
        return self._done(self._ssh("cleanup", slug, {"user_regex": f"^{username}$"}))

    def export_release(
        self, release: str, version: str, os: str, os_version: str
    ) -> Result[TaskResultBlob, DirectorError]:
        body = json.dumps(
            {
                "deployment_name": self._name,
                "release_name": release,
                "release_version": version,
                "stemcell_os": os,
                "stemcell_version": os_version,
            }
        ).encode()
        task_id = self._director._run_task("POST", "/releases/export", body)
        if isinstance(task_id, Err):
            return task_id
        return self._director._task_blob(task_id.value)
