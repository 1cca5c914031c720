"""Collaborators shared by every command of one process."""

from __future__ import annotations

from dataclasses import dataclass

from dctl.output.console import ConsoleProtocol, RichConsole
from dctl.platform.fs import FileSystem
from dctl.ssh import SshRunner

from .init import GlobalContextInitializer
from .options import GlobalOptions
from .session import SessionFactory, session_factory


@dataclass(slots=True)
class Deps:
    """Console, filesystem and factories handed to the registry.

    ``initializer`` lives as long as the process; it is what makes global
    setup run once across several dispatched commands.
    """

    console: ConsoleProtocol
    fs: FileSystem
    initializer: GlobalContextInitializer
    session_factory: SessionFactory
    ssh: SshRunner


def build_deps(
    console: ConsoleProtocol | None = None,
    fs: FileSystem | None = None,
    factory: SessionFactory | None = None,
) -> Deps:
    console = console if console is not None else RichConsole()
    fs = fs if fs is not None else FileSystem()
    return Deps(
        console=console,
        fs=fs,
        initializer=GlobalContextInitializer(console, fs),
        session_factory=factory if factory is not None else session_factory(console, fs),
        ssh=SshRunner(fs),
    )


@dataclass(frozen=True, slots=True)
class CommandContext:
    """What a command body sees besides its options and resolved handles."""

    deps: Deps
    options: GlobalOptions

    @property
    def console(self) -> ConsoleProtocol:
        return self.deps.console

    @property
    def fs(self) -> FileSystem:
        return self.deps.fs
