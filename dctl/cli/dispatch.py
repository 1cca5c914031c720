"""Dispatcher: parse argv with typer, then run the bound command.

Parsing never runs a command body. The typer commands record a
``ParsedInvocation``; the dispatcher looks the command up in the registry,
binds it to a fresh ``Chain`` and runs it. Every path ends in an
``Outcome``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto

import click
import typer

from dctl.core.errors import CommandError, UsageError
from dctl.core.result import Err
from dctl.output.errors import error_exit_code, print_error

from .app import VERSION_MESSAGE, app
from .chain import Chain
from .context import Deps, build_deps
from .options import Invocation
from .registry import Registry, Requires, build_registry

__all__ = ["Dispatcher", "Outcome", "OutcomeKind", "main"]

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    SUCCESS = auto()
    ERROR = auto()
    HELP = auto()


@dataclass(frozen=True, slots=True)
class Outcome:
    kind: OutcomeKind
    error: CommandError | None = None
    message: str | None = None

    @property
    def exit_code(self) -> int:
        if self.kind is OutcomeKind.ERROR and self.error is not None:
            return error_exit_code(self.error)
        return 0


class Dispatcher:
    """Runs one command per ``run`` call; reusable across calls."""

    def __init__(self, deps: Deps, registry: Registry | None = None) -> None:
        self._deps = deps
        self._registry = registry if registry is not None else build_registry(deps)

    def _parse(self, argv: Sequence[str]) -> Invocation | Outcome:
        inv = Invocation(fs=self._deps.fs)
        command = typer.main.get_command(app)
        # typer in the pinned range parses with the standalone click package.
        try:
            command.main(
                args=list(argv) or ["--help"],
                prog_name="dctl",
                standalone_mode=False,
                obj=inv,
            )
        except click.ClickException as e:
            return Outcome(OutcomeKind.ERROR, error=UsageError(e.format_message()))
        except click.exceptions.Abort:
            return Outcome(OutcomeKind.ERROR, error=UsageError("Aborted"))
        return inv

    def run(self, argv: Sequence[str]) -> Outcome:
        parsed = self._parse(argv)
        if isinstance(parsed, Outcome):
            return parsed
        if parsed.parsed is None:
            return Outcome(OutcomeKind.HELP, message=parsed.message)

        invocation = parsed.parsed
        chain = Chain(invocation.options, self._deps)
        entry = self._registry.bind(
            invocation.command, chain, invocation.command_options, invocation.extra_args
        )
        if isinstance(entry, Err):
            return Outcome(OutcomeKind.ERROR, error=entry.error)

        logger.debug("running %s (%s)", entry.value.name, entry.value.requires.name.lower())
        result = entry.value.run()
        if isinstance(result, Err):
            return Outcome(OutcomeKind.ERROR, error=result.error)
        if entry.value.requires is Requires.NONE:
            return Outcome(OutcomeKind.HELP, message=VERSION_MESSAGE)
        return Outcome(OutcomeKind.SUCCESS)


def main() -> None:
    deps = build_deps()
    outcome = Dispatcher(deps).run(sys.argv[1:])
    if outcome.error is not None:
        print_error(outcome.error, deps.console)
    elif outcome.message:
        deps.console.print(outcome.message)
    deps.console.flush()
    sys.exit(outcome.exit_code)
