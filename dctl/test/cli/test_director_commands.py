"""Command bodies that only need an authenticated director."""

from __future__ import annotations

from pathlib import Path

import pytest

from dctl.cli.chain import DirectorAndDeployment, ReleaseProviders
from dctl.cli.commands import configs, maintenance, releases, stemcells, tasks
from dctl.cli.context import CommandContext, build_deps
from dctl.cli.options import (
    CleanUpOpts,
    DeleteReleaseOpts,
    DeleteStemcellOpts,
    DirOrCwdArg,
    ExportReleaseOpts,
    FileArg,
    GlobalOptions,
    IdOpts,
    InspectReleaseOpts,
    NoOptions,
    ResurrectionOpts,
    RuntimeConfigOpts,
    TaskOpts,
    TasksOpts,
    UpdateConfigOpts,
    UploadReleaseOpts,
    UploadStemcellOpts,
)
from dctl.core.errors import ReleaseError, UsageError
from dctl.core.result import Err, Ok
from dctl.director.api import ReleaseDetails, ReleaseSummary, Stemcell, Task
from dctl.director.fakes import FakeDeployment, FakeDirector
from dctl.output.console import MockConsole
from dctl.platform.fs import FileSystem
from dctl.release import ReleaseDirProvider, ReleaseProvider


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
def director() -> FakeDirector:
    return FakeDirector()


class TestTasks:
    def test_latest_task_when_no_id(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        director.tasks_result = [Task(42, "done", "create deployment")]
        director.task_result = Task(42, "done", "create deployment")
        director.task_output_result = "Task 42 done\n"

        assert tasks.run_task(cx, TaskOpts(), director) == Ok(None)

        assert director.called("tasks") == [(1, True, None)]
        assert director.called("task_output") == [(42, "event")]
        assert console.messages == ["Task 42 | done | create deployment", "Task 42 done\n"]

    def test_no_tasks(self, cx: CommandContext, director: FakeDirector) -> None:
        result = tasks.run_task(cx, TaskOpts(), director)
        assert result == Err(UsageError("No tasks found", hint="Pass a task ID"))

    def test_explicit_id_with_debug_output(
        self, cx: CommandContext, director: FakeDirector
    ) -> None:
        assert tasks.run_task(cx, TaskOpts(task_id=7, output="debug"), director) == Ok(None)
        assert director.called("tasks") == []
        assert director.called("task_output") == [(7, "debug")]

    def test_recent_table(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        director.tasks_result = [
            Task(2, "processing", "deploy", user="admin", deployment="cf"),
            Task(1, "done", "delete", started_at=0),
        ]

        assert tasks.run_tasks(cx, TasksOpts(recent=5), director) == Ok(None)

        table = console.tables[0]
        assert table.title == "Recent tasks"
        assert table.rows[0] == ("2", "processing", "-", "admin", "cf", "deploy", "")
        assert director.called("tasks") == [(5, False, None)]

    def test_running_tasks_filtered_by_deployment(
        self, console: MockConsole, fs: FileSystem, director: FakeDirector
    ) -> None:
        cx = CommandContext(build_deps(console=console, fs=fs), GlobalOptions(deployment="cf"))
        assert tasks.run_tasks(cx, TasksOpts(), director) == Ok(None)
        assert console.tables[0].title == "Running tasks"
        assert director.called("tasks") == [(None, False, "cf")]

    @pytest.mark.parametrize("value", ["abc", "-1", "4.2"])
    def test_cancel_rejects_non_numeric(
        self, cx: CommandContext, director: FakeDirector, value: str
    ) -> None:
        result = tasks.run_cancel_task(cx, IdOpts(value), director)
        assert result == Err(UsageError(f"Expected task ID to be a number, got '{value}'"))
        assert director.called("cancel_task") == []

    def test_cancel(self, cx: CommandContext, director: FakeDirector, console: MockConsole) -> None:
        assert tasks.run_cancel_task(cx, IdOpts("12"), director) == Ok(None)
        assert director.called("cancel_task") == [(12,)]
        assert console.messages == ["OK Task 12 is being cancelled"]


class TestReleases:
    def test_marks_deployed_versions(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        director.releases_result = [
            ReleaseSummary("redis", "2", currently_deployed=True, commit_hash="abc123"),
            ReleaseSummary("cf", "280"),
        ]

        assert releases.run_releases(cx, NoOptions(), director) == Ok(None)

        assert console.tables[0].rows == (("cf", "280", ""), ("redis", "2*", "abc123"))

    def test_delete_whole_release(self, cx: CommandContext, director: FakeDirector) -> None:
        assert releases.run_delete_release(cx, DeleteReleaseOpts("redis"), director) == Ok(None)
        assert director.called("delete_release") == [("redis", None, False)]

    def test_delete_one_version(self, cx: CommandContext, director: FakeDirector) -> None:
        opts = DeleteReleaseOpts("redis/2", force=True)
        assert releases.run_delete_release(cx, opts, director) == Ok(None)
        assert director.called("delete_release") == [("redis", "2", True)]

    def test_delete_bad_name(self, cx: CommandContext, director: FakeDirector) -> None:
        result = releases.run_delete_release(cx, DeleteReleaseOpts("redis/"), director)
        assert result == Err(UsageError("Expected NAME[/VERSION], got 'redis/'"))

    def test_inspect_requires_version(self, cx: CommandContext, director: FakeDirector) -> None:
        result = releases.run_inspect_release(cx, InspectReleaseOpts("redis"), director)
        assert result == Err(UsageError("Expected NAME/VERSION, got 'redis'"))

    def test_inspect(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        director.release_details = ReleaseDetails("redis", "2", jobs=("redis",), packages=("gcc",))
        assert releases.run_inspect_release(cx, InspectReleaseOpts("redis/2"), director) == Ok(None)
        assert console.tables[0].rows == (("job", "redis"), ("package", "gcc"))


class TestUploadRelease:
    @pytest.fixture
    def providers(self, fs: FileSystem) -> ReleaseProviders:
        release = ReleaseProvider(fs)
        return ReleaseProviders(release, ReleaseDirProvider(fs, release))

    @pytest.fixture
    def root(self, providers: ReleaseProviders, tmp_path: Path) -> Path:
        root = tmp_path / "redis-release"
        release_dir = providers.release_dir.new_fs_release_dir(root)
        assert release_dir.init(git=False) == Ok(None)
        assert release_dir.generate_job("redis-server") == Ok(None)
        return root

    def test_from_url(
        self,
        cx: CommandContext,
        fs: FileSystem,
        providers: ReleaseProviders,
        director: FakeDirector,
        tmp_path: Path,
    ) -> None:
        url = "https://example.com/redis-2.tgz"
        opts = UploadReleaseOpts(DirOrCwdArg(fs), source=url, sha1="abc", rebase=True)

        assert releases.run_upload_release(cx, opts, tmp_path, providers, director) == Ok(None)

        assert director.called("upload_release_url") == [(url, "abc", True, False)]

    def test_latest_dev_release(
        self,
        cx: CommandContext,
        fs: FileSystem,
        providers: ReleaseProviders,
        director: FakeDirector,
        root: Path,
        console: MockConsole,
    ) -> None:
        release_dir = providers.release_dir.new_fs_release_dir(root)
        built = release_dir.build_release(None, None, False)
        assert isinstance(built, Ok)
        assert isinstance(release_dir.save_release(built.value, False), Ok)

        opts = UploadReleaseOpts(DirOrCwdArg(fs, str(root)))
        assert releases.run_upload_release(cx, opts, root, providers, director) == Ok(None)

        ((path, _rebase, _fix),) = director.called("upload_release_file")
        assert path == release_dir.latest_release_path("redis-release")
        assert console.messages[-1] == "OK Uploaded release 'redis-release/0+dev.1'"

    def test_skips_existing_release(
        self,
        cx: CommandContext,
        fs: FileSystem,
        providers: ReleaseProviders,
        director: FakeDirector,
        root: Path,
        console: MockConsole,
    ) -> None:
        release_dir = providers.release_dir.new_fs_release_dir(root)
        built = release_dir.build_release(None, None, False)
        assert isinstance(built, Ok)
        tarball = root / "redis.tgz"
        assert isinstance(release_dir.write_tarball(built.value, tarball), Ok)
        director.releases_result = [ReleaseSummary("redis-release", "0+dev.1")]

        opts = UploadReleaseOpts(DirOrCwdArg(fs, str(root)), source=str(tarball))
        assert releases.run_upload_release(cx, opts, root, providers, director) == Ok(None)

        assert director.called("upload_release_file") == []
        assert console.messages == ["info: Release 'redis-release/0+dev.1' already exists"]

    def test_no_dev_release(
        self,
        cx: CommandContext,
        fs: FileSystem,
        providers: ReleaseProviders,
        director: FakeDirector,
        root: Path,
    ) -> None:
        opts = UploadReleaseOpts(DirOrCwdArg(fs, str(root)))
        result = releases.run_upload_release(cx, opts, root, providers, director)
        assert isinstance(result, Err)
        assert isinstance(result.error, ReleaseError)
        assert director.called("upload_release_file") == []


def test_export_release(cx: CommandContext, fs: FileSystem, tmp_path: Path) -> None:
    deployment = FakeDeployment(deployment_name="cf")
    director = FakeDirector(deployment=deployment, resources={"export-blob-id": b"compiled"})
    opts = ExportReleaseOpts("redis/2", "ubuntu-jammy/1.50", DirOrCwdArg(fs, str(tmp_path)))

    result = releases.run_export_release(cx, opts, DirectorAndDeployment(director, deployment))

    assert result == Ok(None)
    assert deployment.called("export_release") == [("redis", "2", "ubuntu-jammy", "1.50")]
    assert (tmp_path / "redis-2-ubuntu-jammy-1.50.tgz").read_bytes() == b"compiled"


class TestStemcells:
    def test_table(self, cx: CommandContext, director: FakeDirector, console: MockConsole) -> None:
        director.stemcells_result = [
            Stemcell("bosh-warden", "ubuntu-jammy", "1.50", "cid-2", deployments=2),
            Stemcell("bosh-warden", "ubuntu-jammy", "1.40", "cid-1"),
        ]
        assert stemcells.run_stemcells(cx, NoOptions(), director) == Ok(None)
        assert [row[1] for row in console.tables[0].rows] == ["1.40", "1.50*"]

    def test_upload_file(
        self, cx: CommandContext, fs: FileSystem, tmp_path: Path, director: FakeDirector
    ) -> None:
        (tmp_path / "stemcell.tgz").write_bytes(b"image")
        opts = UploadStemcellOpts("~/stemcell.tgz", fs, fix=True)

        assert stemcells.run_upload_stemcell(cx, opts, director) == Ok(None)

        assert director.called("upload_stemcell_file") == [(tmp_path / "stemcell.tgz", True)]

    def test_upload_missing_file(
        self, cx: CommandContext, fs: FileSystem, tmp_path: Path, director: FakeDirector
    ) -> None:
        result = stemcells.run_upload_stemcell(cx, UploadStemcellOpts("~/nope.tgz", fs), director)
        assert result == Err(UsageError(f"Stemcell file not found: {tmp_path / 'nope.tgz'}"))

    def test_upload_url(self, cx: CommandContext, fs: FileSystem, director: FakeDirector) -> None:
        url = "https://example.com/stemcell.tgz"
        assert stemcells.run_upload_stemcell(cx, UploadStemcellOpts(url, fs), director) == Ok(None)
        assert director.called("upload_stemcell_url") == [(url, "", False)]

    def test_delete_requires_version(self, cx: CommandContext, director: FakeDirector) -> None:
        result = stemcells.run_delete_stemcell(cx, DeleteStemcellOpts("bosh-warden"), director)
        assert isinstance(result, Err)
        assert director.called("delete_stemcell") == []


class TestConfigs:
    def test_empty_cloud_config(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        assert configs.run_cloud_config(cx, NoOptions(), director) == Ok(None)
        assert console.messages == ["warning: No cloud config"]

    def test_runtime_config(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        director.runtime_config = "addons: []\n"
        opts = RuntimeConfigOpts(name="dns")
        assert configs.run_runtime_config(cx, opts, director) == Ok(None)
        assert director.called("latest_runtime_config") == [("dns",)]
        assert console.messages == ["addons: []\n"]

    def test_update_cloud_config(
        self, cx: CommandContext, fs: FileSystem, tmp_path: Path, director: FakeDirector
    ) -> None:
        (tmp_path / "cloud.yml").write_text("azs: []\n")
        opts = UpdateConfigOpts(FileArg(fs, str(tmp_path / "cloud.yml")))

        assert configs.run_update_cloud_config(cx, opts, director) == Ok(None)

        assert director.called("update_cloud_config") == [(b"azs: []\n",)]

    def test_update_missing_file(
        self, cx: CommandContext, fs: FileSystem, tmp_path: Path, director: FakeDirector
    ) -> None:
        opts = UpdateConfigOpts(FileArg(fs, str(tmp_path / "missing.yml")), name="dns")
        result = configs.run_update_runtime_config(cx, opts, director)
        assert isinstance(result, Err)
        assert isinstance(result.error, UsageError)
        assert director.called("update_runtime_config") == []


class TestMaintenance:
    def test_resurrection(
        self, cx: CommandContext, director: FakeDirector, console: MockConsole
    ) -> None:
        opts = ResurrectionOpts(enabled=False)
        assert maintenance.run_vm_resurrection(cx, opts, director) == Ok(None)
        assert director.called("enable_resurrection") == [(False,)]
        assert console.messages == ["OK VM resurrection disabled"]

    def test_clean_up_all(self, cx: CommandContext, director: FakeDirector) -> None:
        assert maintenance.run_clean_up(cx, CleanUpOpts(remove_all=True), director) == Ok(None)
        assert director.called("clean_up") == [(True,)]

    def test_clean_up_declined(self, fs: FileSystem, director: FakeDirector) -> None:
        cx = CommandContext(build_deps(console=MockConsole(confirm=False), fs=fs), GlobalOptions())
        result = maintenance.run_clean_up(cx, CleanUpOpts(), director)
        assert result == Err(UsageError("Stopped"))
        assert director.called("clean_up") == []

    def test_delete_disk(self, cx: CommandContext, director: FakeDirector) -> None:
        assert maintenance.run_delete_disk(cx, IdOpts("disk-1"), director) == Ok(None)
        assert director.called("delete_orphan_disk") == [("disk-1",)]
