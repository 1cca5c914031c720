"""Command bodies that act on one deployment."""

from __future__ import annotations

from pathlib import Path

import pytest

from dctl.cli.chain import DirectorAndDeployment
from dctl.cli.commands import deployments, errands, instances, snapshots
from dctl.cli.context import CommandContext, build_deps
from dctl.cli.options import (
    ChangeStateOpts,
    CloudCheckOpts,
    DeployOpts,
    DirOrCwdArg,
    FileArg,
    GlobalOptions,
    ForceOpts,
    IdOpts,
    LogsOpts,
    ManifestOpts,
    NoOptions,
    RunErrandOpts,
    SlugOpts,
)
from dctl.core.errors import DeploymentError, DirectorError, UsageError
from dctl.core.result import Err, Ok
from dctl.director.api import ErrandResult, InstanceSlug, Problem, Snapshot, VmInfo
from dctl.director.fakes import FakeDeployment, FakeDirector
from dctl.output.console import MockConsole
from dctl.platform.fs import FileSystem


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def fs(tmp_path: Path) -> FileSystem:
    return FileSystem(home_dir=tmp_path)


@pytest.fixture
def cx(console: MockConsole, fs: FileSystem) -> CommandContext:
    return CommandContext(build_deps(console=console, fs=fs), GlobalOptions())


@pytest.fixture
def deployment() -> FakeDeployment:
    return FakeDeployment(deployment_name="cf")


@pytest.fixture
def handles(deployment: FakeDeployment) -> DirectorAndDeployment:
    return DirectorAndDeployment(FakeDirector(deployment=deployment), deployment)


def _manifest(fs: FileSystem, tmp_path: Path, content: str) -> ManifestOpts:
    path = tmp_path / "manifest.yml"
    path.write_text(content)
    return ManifestOpts(manifest=FileArg(fs, str(path)), vars=("size=large",))


class TestDeploy:
    def test_updates_with_rendered_manifest(
        self,
        cx: CommandContext,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
        console: MockConsole,
    ) -> None:
        opts = DeployOpts(_manifest(fs, tmp_path, "name: cf\nvm_type: ((size))\n"), fix=True)

        assert deployments.run_deploy(cx, opts, handles) == Ok(None)

        ((manifest, recreate, fix, skip_drain, dry_run),) = deployment.called("update")
        assert manifest == b"name: cf\nvm_type: large\n"
        assert (recreate, fix, skip_drain, dry_run) == (False, True, False, False)
        assert console.messages[-1] == "OK Deployed 'cf'"

    def test_name_mismatch(
        self,
        cx: CommandContext,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
    ) -> None:
        opts = DeployOpts(_manifest(fs, tmp_path, "name: redis\n"))

        result = deployments.run_deploy(cx, opts, handles)

        assert result == Err(
            DeploymentError(
                "Expected manifest to specify deployment name 'cf' but was 'redis'", name="cf"
            )
        )
        assert deployment.called("update") == []

    def test_declined_confirmation(
        self,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
    ) -> None:
        console = MockConsole(confirm=False)
        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions())

        result = deployments.run_deploy(cx, DeployOpts(_manifest(fs, tmp_path, "{}")), handles)

        assert result == Err(UsageError("Stopped"))
        assert deployment.called("update") == []

    def test_dry_run(
        self,
        cx: CommandContext,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        console: MockConsole,
    ) -> None:
        opts = DeployOpts(_manifest(fs, tmp_path, "name: cf\n"), dry_run=True)
        assert deployments.run_deploy(cx, opts, handles) == Ok(None)
        assert console.messages[-1] == "OK Deployed 'cf' (dry run)"


def test_build_manifest_prints_rendered(
    cx: CommandContext, fs: FileSystem, tmp_path: Path, console: MockConsole
) -> None:
    opts = _manifest(fs, tmp_path, "vm_type: ((size))\n")
    assert deployments.run_build_manifest(cx, opts) == Ok(None)
    assert console.messages == ["vm_type: large\n"]


def test_delete_deployment(
    cx: CommandContext, deployment: FakeDeployment, console: MockConsole
) -> None:
    assert deployments.run_delete_deployment(cx, ForceOpts(force=True), deployment) == Ok(None)
    assert deployment.called("delete") == [(True,)]
    assert console.messages == ["info: Using deployment 'cf'", "OK Deleted deployment 'cf'"]


class TestInstances:
    def test_change_state_all(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        run = instances.change_state_body("stop")

        assert run(cx, ChangeStateOpts(skip_drain=True), deployment) == Ok(None)

        assert deployment.called("change_state") == [("stopped", None, True, False)]
        assert console.messages[-1] == "OK Stop all instances: done"

    def test_change_state_one(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        run = instances.change_state_body("start")

        assert run(cx, ChangeStateOpts(slug="router/0", force=True), deployment) == Ok(None)

        slug = InstanceSlug("router", "0")
        assert deployment.called("change_state") == [("started", slug, False, True)]
        assert console.messages[-1] == "OK Start router/0: done"

    def test_instances_table(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        deployment.instances_result = [
            VmInfo("web/1", "running", ips=("10.0.0.2",), az="z1"),
            VmInfo("db/0", "failing", ips=("10.0.0.3", "10.0.0.4"), az="z2"),
        ]

        assert instances.run_instances(cx, NoOptions(), deployment) == Ok(None)

        table = console.tables[0]
        assert table.rows == (
            ("db/0", "failing", "z2", "10.0.0.3, 10.0.0.4"),
            ("web/1", "running", "z1", "10.0.0.2"),
        )
        assert table.notes == ("2 instances",)

    def test_vms_for_every_deployment(self, console: MockConsole, fs: FileSystem) -> None:
        from dctl.director.api import DeploymentSummary

        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions())
        director = FakeDirector(
            deployments_result=[DeploymentSummary("cf"), DeploymentSummary("redis")]
        )

        assert instances.run_vms(cx, NoOptions(), director) == Ok(None)

        assert director.called("find_deployment") == [("cf",), ("redis",)]
        assert len(console.tables) == 2

    def test_vms_for_selected_deployment(self, console: MockConsole, fs: FileSystem) -> None:
        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions(deployment="cf"))
        director = FakeDirector()

        assert instances.run_vms(cx, NoOptions(), director) == Ok(None)

        assert director.called("deployments") == []
        assert director.called("find_deployment") == [("cf",)]

    def test_logs_download(
        self,
        cx: CommandContext,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
    ) -> None:
        opts = LogsOpts(DirOrCwdArg(fs, str(tmp_path / "logs")), slug="web/0", jobs=("nginx",))

        assert instances.run_logs(cx, opts, handles) == Ok(None)

        assert deployment.called("fetch_logs") == [(InstanceSlug("web", "0"), ("nginx",), False)]
        (saved,) = (tmp_path / "logs").iterdir()
        assert saved.name.startswith("web.0-")
        assert saved.suffix == ".tgz"


class TestCloudCheck:
    PROBLEMS = [
        Problem(1, "unresponsive_agent", "VM for 'web/0' is not responding",
                (("reboot_vm", "Reboot VM"), ("recreate_vm", "Recreate VM"))),
        Problem(2, "missing_disk", "Disk 'disk-1' is missing",
                (("delete_disk_reference", "Delete disk reference"),)),
    ]  # fmt: skip

    def test_report_only(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        deployment.problems_result = self.PROBLEMS
        assert instances.run_cloud_check(cx, CloudCheckOpts(report=True), deployment) == Ok(None)
        assert len(console.tables[0].rows) == 2
        assert deployment.called("resolve_problems") == []

    def test_auto_picks_first_resolution(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        deployment.problems_result = self.PROBLEMS

        assert instances.run_cloud_check(cx, CloudCheckOpts(auto=True), deployment) == Ok(None)

        assert deployment.called("resolve_problems") == [
            ({1: "reboot_vm", 2: "delete_disk_reference"},)
        ]
        assert console.messages[-1] == "OK Resolved 2 problems"

    def test_interactive_choice(self, fs: FileSystem, deployment: FakeDeployment) -> None:
        console = MockConsole(answers=["2", "1"])
        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions())
        deployment.problems_result = self.PROBLEMS

        assert instances.run_cloud_check(cx, CloudCheckOpts(), deployment) == Ok(None)

        assert deployment.called("resolve_problems") == [
            ({1: "recreate_vm", 2: "delete_disk_reference"},)
        ]

    def test_out_of_range_choice(self, fs: FileSystem, deployment: FakeDeployment) -> None:
        console = MockConsole(answers=["7"])
        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions())
        deployment.problems_result = self.PROBLEMS

        result = instances.run_cloud_check(cx, CloudCheckOpts(), deployment)

        assert result == Err(UsageError("Expected a resolution between 1 and 2"))
        assert deployment.called("resolve_problems") == []


class TestErrands:
    def test_success(
        self,
        cx: CommandContext,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
        console: MockConsole,
    ) -> None:
        deployment.errand_results = [ErrandResult(0, stdout="migrated\n")]

        assert errands.run_run_errand(cx, RunErrandOpts("migrate"), handles) == Ok(None)

        assert deployment.called("run_errand") == [("migrate", False, False)]
        assert "migrated\n" in console.messages
        assert console.messages[-1] == "OK Errand 'migrate' completed successfully"

    def test_failure_downloads_logs_then_fails(
        self,
        cx: CommandContext,
        fs: FileSystem,
        tmp_path: Path,
        handles: DirectorAndDeployment,
        deployment: FakeDeployment,
    ) -> None:
        deployment.errand_results = [
            ErrandResult(0, logs_blobstore_id="blob-a"),
            ErrandResult(3, stderr="boom", logs_blobstore_id="blob-b"),
        ]
        assert isinstance(handles.director, FakeDirector)
        handles.director.resources = {"blob-a": b"a", "blob-b": b"b"}
        opts = RunErrandOpts(
            "smoke-tests", download_logs=True, logs_dir=DirOrCwdArg(fs, str(tmp_path))
        )

        result = errands.run_run_errand(cx, opts, handles)

        assert result == Err(
            DeploymentError("Errand 'smoke-tests' completed with exit code 3", name="cf")
        )
        assert (tmp_path / "cf.smoke-tests.0.tgz").read_bytes() == b"a"
        assert (tmp_path / "cf.smoke-tests.1.tgz").read_bytes() == b"b"

    def test_list(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        deployment.errands_result = ["smoke-tests", "migrate"]
        assert errands.run_errands(cx, NoOptions(), deployment) == Ok(None)
        assert console.tables[0].rows == (("migrate",), ("smoke-tests",))


class TestSnapshots:
    def test_table_sorted(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        deployment.snapshots_result = [
            Snapshot("web/1", "snap-2", "2026-01-02", True),
            Snapshot("web/0", "snap-1", "2026-01-01", False),
        ]
        assert snapshots.run_snapshots(cx, NoOptions(), deployment) == Ok(None)
        assert [row[1] for row in console.tables[0].rows] == ["snap-1", "snap-2"]

    def test_take_for_instance(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        assert snapshots.run_take_snapshot(cx, SlugOpts("db/0"), deployment) == Ok(None)
        assert deployment.called("take_snapshot") == [(InstanceSlug("db", "0"),)]
        assert console.messages == ["OK Took snapshot of db/0"]

    def test_delete_requires_cid(self, cx: CommandContext, deployment: FakeDeployment) -> None:
        result = snapshots.run_delete_snapshot(cx, IdOpts(""), deployment)
        assert result == Err(UsageError("Expected non-empty snapshot CID"))
        assert deployment.called("delete_snapshot") == []

    def test_delete_all(
        self, cx: CommandContext, deployment: FakeDeployment, console: MockConsole
    ) -> None:
        assert snapshots.run_delete_snapshots(cx, NoOptions(), deployment) == Ok(None)
        assert deployment.called("delete_snapshots") == [()]
        assert console.messages[-1] == "OK Deleted all snapshots"


def test_director_failure_is_returned(cx: CommandContext, deployment: FakeDeployment) -> None:
    deployment.error = DirectorError("Expected task '12' to succeed", task_id=12)
    result = snapshots.run_snapshots(cx, NoOptions(), deployment)
    assert result == Err(DirectorError("Expected task '12' to succeed", task_id=12))
