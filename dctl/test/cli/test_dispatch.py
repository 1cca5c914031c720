"""End-to-end tests: argv through typer, registry and chain to an Outcome."""

from __future__ import annotations

import tempfile
from pathlib import Path

import click
import pytest
import typer

from dctl.cli.context import Deps, build_deps
from dctl.cli.dispatch import Dispatcher, OutcomeKind
from dctl.cli.init import GlobalContextInitializer
from dctl.cli.options import GlobalOptions
from dctl.cli.session import FakeSession, SessionFactory, SessionProtocol, session_factory
from dctl.core.config import Config, Credentials, save_config
from dctl.core.errors import (
    DeploymentError,
    DirectorError,
    ErrorCode,
    ExtraArgsError,
    InitError,
    ReleaseError,
    UsageError,
)
from dctl.core.result import Err, Ok, Result
from dctl.director.api import Director, SshHost
from dctl.director.fakes import FakeDeployment, FakeDirector
from dctl.output.console import MockConsole
from dctl.platform.fs import FileSystem, FsError
from dctl.platform.process import ProcessError
from dctl.ssh import SshKey, SshRunner

LAB = "https://10.0.0.6:25555"
PROD = "https://10.0.1.6:25555"


class CountingFs(FileSystem):
    def __init__(self, home_dir: Path) -> None:
        super().__init__(home_dir=home_dir)
        self.reads: list[Path] = []

    def read_text(self, path: Path) -> Result[str, FsError]:
        self.reads.append(path)
        return super().read_text(path)


class RecordingFactory:
    def __init__(self, session: FakeSession | None = None) -> None:
        self.session = session if session is not None else FakeSession()
        self.calls = 0

    def __call__(
        self,
        options: GlobalOptions,
        config: Config,
        respect_environment: bool,
        respect_deployment: bool,
    ) -> SessionProtocol:
        self.calls += 1
        return self.session


def _no_logging() -> Result[None, InitError]:
    return Ok(None)


def _deps(console: MockConsole, fs: FileSystem, factory: SessionFactory) -> Deps:
    deps = build_deps(console=console, fs=fs, factory=factory)
    deps.initializer = GlobalContextInitializer(console, fs, configure_logging=_no_logging)
    return deps


@pytest.fixture(autouse=True)
def _restore_tempdir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tempfile, "tempdir", tempfile.tempdir)


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def fs(tmp_path: Path) -> CountingFs:
    return CountingFs(tmp_path)


@pytest.fixture
def factory() -> RecordingFactory:
    return RecordingFactory()


@pytest.fixture
def dispatcher(console: MockConsole, fs: CountingFs, factory: RecordingFactory) -> Dispatcher:
    return Dispatcher(_deps(console, fs, factory))


class TestParsing:
    def test_no_args_shows_help(self, dispatcher: Dispatcher) -> None:
        outcome = dispatcher.run([])
        assert outcome.kind is OutcomeKind.HELP
        assert outcome.exit_code == 0

    def test_version_flag(self, dispatcher: Dispatcher, console: MockConsole) -> None:
        outcome = dispatcher.run(["--version"])
        assert outcome.kind is OutcomeKind.HELP
        assert outcome.message == "version 0.1.0"
        assert console.mode_calls == []

    def test_version_command(self, dispatcher: Dispatcher, factory: RecordingFactory) -> None:
        outcome = dispatcher.run(["version"])
        assert outcome.kind is OutcomeKind.HELP
        assert outcome.message == "version 0.1.0"
        assert factory.calls == 0

    def test_unknown_command(self, dispatcher: Dispatcher) -> None:
        outcome = dispatcher.run(["frobnicate"])
        assert outcome.kind is OutcomeKind.ERROR
        assert isinstance(outcome.error, UsageError)
        assert "frobnicate" in outcome.error.message
        assert outcome.exit_code == ErrorCode.USER_ERROR

    def test_typer_parses_with_standalone_click(self) -> None:
        assert typer.Abort is click.exceptions.Abort
        assert issubclass(typer.BadParameter, click.ClickException)

    def test_bad_option_value(self, dispatcher: Dispatcher) -> None:
        outcome = dispatcher.run(["tasks", "--recent", "many"])
        assert isinstance(outcome.error, UsageError)

    def test_bad_resurrection_state(self, dispatcher: Dispatcher) -> None:
        outcome = dispatcher.run(["vm-resurrection", "maybe"])
        assert isinstance(outcome.error, UsageError)
        assert "Expected 'on' or 'off'" in outcome.error.message

    def test_extra_args_rejected_before_session(
        self, dispatcher: Dispatcher, factory: RecordingFactory
    ) -> None:
        outcome = dispatcher.run(["deployments", "extra", "args"])
        assert outcome.error == ExtraArgsError(("extra", "args"))
        assert factory.calls == 0


class TestConfigCommands:
    def test_environments_lists_aliases_without_session(
        self,
        dispatcher: Dispatcher,
        console: MockConsole,
        fs: CountingFs,
        factory: RecordingFactory,
        tmp_path: Path,
    ) -> None:
        path = tmp_path / ".dctl" / "config.toml"
        config = Config(path=path).set_environment(PROD, "prod").set_environment(LAB, "lab")
        assert save_config(config, fs) == Ok(None)

        outcome = dispatcher.run(["environments"])

        assert outcome.kind is OutcomeKind.SUCCESS
        assert console.tables[0].rows == ((LAB, "lab"), (PROD, "prod"))
        assert fs.reads == [path]
        assert factory.calls == 0

    def test_global_setup_runs_once_across_commands(
        self, dispatcher: Dispatcher, console: MockConsole
    ) -> None:
        assert dispatcher.run(["environments"]).kind is OutcomeKind.SUCCESS
        assert dispatcher.run(["--json", "environments"]).kind is OutcomeKind.SUCCESS
        assert console.mode_calls == ["tty:False", "color"]


class TestDirectorCommands:
    def test_auth_error_surfaces_unchanged(
        self, console: MockConsole, fs: CountingFs
    ) -> None:
        error = DirectorError("fake-auth-error", status=401)
        session = FakeSession(director_error=error)
        dispatcher = Dispatcher(_deps(console, fs, RecordingFactory(session)))

        outcome = dispatcher.run(["-e", LAB, "vms"])

        assert outcome.error == error
        assert outcome.exit_code == ErrorCode.NETWORK_ERROR
        assert session.fake_director is None
        assert console.tables == []

    def test_upload_release_resolves_dir_before_session(
        self, dispatcher: Dispatcher, console: MockConsole, factory: RecordingFactory
    ) -> None:
        outcome = dispatcher.run(["upload-release", "--dir", "~dctl-no-such-user/release"])

        assert isinstance(outcome.error, ReleaseError)
        assert outcome.exit_code == ErrorCode.IO_ERROR
        assert factory.calls == 0
        assert console.mode_calls == []

    def test_deployments_table(
        self, dispatcher: Dispatcher, console: MockConsole, factory: RecordingFactory
    ) -> None:
        from dctl.director.api import DeploymentSummary

        factory.session.fake_director = FakeDirector(
            deployments_result=[DeploymentSummary("redis"), DeploymentSummary("cf")]
        )

        outcome = dispatcher.run(["deployments"])

        assert outcome.kind is OutcomeKind.SUCCESS
        assert [row[0] for row in console.tables[0].rows] == ["cf", "redis"]

    def test_missing_deployment_for_director_and_deployment_command(
        self, console: MockConsole, fs: CountingFs
    ) -> None:
        directors: list[FakeDirector] = []

        def builder(url: str, ca_cert: str | None, credentials: Credentials | None) -> Director:
            directors.append(FakeDirector(director_url=url))
            return directors[-1]

        dispatcher = Dispatcher(_deps(console, fs, session_factory(console, fs, builder)))

        outcome = dispatcher.run(
            ["-e", LAB, "--client", "admin", "--client-secret", "s", "logs", "web/0"]
        )

        assert outcome.kind is OutcomeKind.ERROR
        assert isinstance(outcome.error, DeploymentError)
        assert outcome.error.no_deployment
        assert len(directors) == 1
        assert directors[0].called("find_deployment") == []


class TestSsh:
    def test_trailing_args_become_remote_command(
        self,
        console: MockConsole,
        fs: CountingFs,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        import dctl.cli.commands.ssh_cmds as ssh_cmds

        key_dir = tmp_path / "key"
        key_dir.mkdir()
        key = SshKey(private_key=key_dir / "id_rsa", public_key="ssh-rsa AAAA")

        def fake_generate_key(_fs: FileSystem) -> Result[SshKey, object]:
            return Ok(key)

        monkeypatch.setattr(ssh_cmds, "generate_key", fake_generate_key)

        deployment = FakeDeployment(
            deployment_name="cf", ssh_hosts=[SshHost("web/0", "10.0.0.5", "ssh-rsa HOST")]
        )
        session = FakeSession(name="cf", fake_director=FakeDirector(deployment=deployment))
        commands: list[list[str]] = []

        def runner(cmd: list[str]) -> Result[object, ProcessError]:
            commands.append(cmd)
            return Ok(None)

        deps = _deps(console, fs, RecordingFactory(session))
        deps.ssh = SshRunner(fs, runner)

        outcome = Dispatcher(deps).run(["-d", "cf", "ssh", "web/0", "uptime", "-a"])

        assert outcome.kind is OutcomeKind.SUCCESS
        assert commands[0][-2:] == ["uptime", "-a"]
        assert commands[0][-3].endswith("@10.0.0.5")
        setup = deployment.called("setup_ssh")
        cleanup = deployment.called("cleanup_ssh")
        assert len(setup) == 1 and len(cleanup) == 1
        assert setup[0][1] == cleanup[0][1]
        assert not key_dir.exists()

    def test_cleanup_runs_when_ssh_fails(
        self,
        console: MockConsole,
        fs: CountingFs,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        import dctl.cli.commands.ssh_cmds as ssh_cmds

        key = SshKey(private_key=tmp_path / "key" / "id_rsa", public_key="ssh-rsa AAAA")
        monkeypatch.setattr(ssh_cmds, "generate_key", lambda _fs: Ok(key))

        deployment = FakeDeployment(
            deployment_name="cf", ssh_hosts=[SshHost("web/0", "10.0.0.5")]
        )
        session = FakeSession(name="cf", fake_director=FakeDirector(deployment=deployment))

        def runner(cmd: list[str]) -> Result[object, ProcessError]:
            return Err(ProcessError(tuple(cmd), 255, "", ""))

        deps = _deps(console, fs, RecordingFactory(session))
        deps.ssh = SshRunner(fs, runner)

        outcome = Dispatcher(deps).run(["ssh", "web", "-c", "ls -la"])

        assert outcome.kind is OutcomeKind.ERROR
        assert outcome.exit_code == ErrorCode.IO_ERROR
        assert len(deployment.called("cleanup_ssh")) == 1


def test_main_prints_error_and_exits(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    import dctl.cli.dispatch as dispatch

    console = MockConsole()
    fs = FileSystem(home_dir=tmp_path)
    monkeypatch.setattr(dispatch, "build_deps", lambda: _deps(console, fs, RecordingFactory()))
    monkeypatch.setattr("sys.argv", ["dctl", "locks", "extra"])

    with pytest.raises(SystemExit) as exc:
        dispatch.main()

    assert exc.value.code == ErrorCode.USER_ERROR
    assert console.messages == [
        "error: Extra arguments are not supported for this command: extra"
    ]
    assert console.flushed == 1
