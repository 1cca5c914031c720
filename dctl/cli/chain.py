"""Resolution chain.

Each method wraps the next step of a command and resolves one shared
dependency before calling it: leftover arguments, global setup, config,
session, director, deployment, release providers. The first failure is
returned unchanged and nothing after it runs.

Usage:
    chain = Chain(options, deps)
    run = chain.reject_extra_args(chain.director(lambda director: body(director)))
    result = run(extra_args)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.config import Config, load_config
from dctl.core.errors import CommandError, ConfigError, ExtraArgsError
from dctl.core.result import Err, Result
from dctl.release.providers import ReleaseDirProvider, ReleaseProvider

if TYPE_CHECKING:
    from dctl.director.api import Deployment, Director
    from dctl.release.blobs import BlobsDir
    from dctl.release.dir import ReleaseDir

    from .context import Deps
    from .options import DirOrCwdArg, GlobalOptions
    from .session import SessionProtocol

__all__ = [
    "Chain",
    "CmdResult",
    "DirectorAndDeployment",
    "ReleaseProviders",
    "Run",
    "SessionMode",
]

logger = logging.getLogger(__name__)

type CmdResult = Result[None, CommandError]
type Run = Callable[[], CmdResult]


class SessionMode(Enum):
    """Which global flags a session honours: (environment, deployment)."""

    AUTHENTICATED = (True, True)
    ALIAS_ONLY = (False, False)
    ENVIRONMENT_ONLY = (True, False)

    @property
    def respect_environment(self) -> bool:
        return self.value[0]

    @property
    def respect_deployment(self) -> bool:
        return self.value[1]


@dataclass(frozen=True, slots=True)
class DirectorAndDeployment:
    director: Director
    deployment: Deployment


@dataclass(frozen=True, slots=True)
class ReleaseProviders:
    release: ReleaseProvider
    release_dir: ReleaseDirProvider


class Chain:
    """Resolvers bound to one invocation's global options."""

    def __init__(self, options: GlobalOptions, deps: Deps) -> None:
        self.options = options
        self._deps = deps

    # -- argument gate ------------------------------------------------------

    def reject_extra_args(self, next: Run) -> Callable[[Sequence[str]], CmdResult]:
        def gate(args: Sequence[str]) -> CmdResult:
            if args:
                return Err(ExtraArgsError(tuple(args)))
            return next()

        return gate

    def reject_extra_args_with_dir(
        self, next: Callable[[Path], CmdResult]
    ) -> Callable[[Sequence[str], DirOrCwdArg], CmdResult]:
        def gate(args: Sequence[str], dir_arg: DirOrCwdArg) -> CmdResult:
            if args:
                return Err(ExtraArgsError(tuple(args)))
            path = dir_arg.resolve()
            if isinstance(path, Err):
                return path
            return next(path.value)

        return gate

    # -- global setup and config --------------------------------------------

    def global_opts(self, next: Run) -> Run:
        def run() -> CmdResult:
            initialized = self._deps.initializer.ensure_initialized(self.options)
            if isinstance(initialized, Err):
                return initialized
            return next()

        return run

    def _load_config(self) -> Result[Config, ConfigError]:
        path = self._deps.fs.expand_path(self.options.config_path)
        if isinstance(path, Err):
            return Err(ConfigError(f"Expanding config path: {path.error.message}"))
        logger.debug("loading config from %s", path.value)
        return load_config(path.value, self._deps.fs)

    def config(self, next: Callable[[Config], CmdResult]) -> Run:
        def step() -> CmdResult:
            config = self._load_config()
            if isinstance(config, Err):
                return config
            return next(config.value)

        return self.global_opts(step)

    # -- session and director ------------------------------------------------

    def session(
        self,
        next: Callable[[SessionProtocol, Config], CmdResult],
        mode: SessionMode = SessionMode.AUTHENTICATED,
    ) -> Run:
        def step(config: Config) -> CmdResult:
            logger.debug("building %s session", mode.name.lower())
            session = self._deps.session_factory(
                self.options, config, mode.respect_environment, mode.respect_deployment
            )
            return next(session, config)

        return self.config(step)

    def director(self, next: Callable[[Director], CmdResult]) -> Run:
        def step(session: SessionProtocol, _config: Config) -> CmdResult:
            director = session.director()
            if isinstance(director, Err):
                return director
            return next(director.value)

        return self.session(step)

    def deployment(self, next: Callable[[Deployment], CmdResult]) -> Run:
        def step(session: SessionProtocol, _config: Config) -> CmdResult:
            deployment = session.deployment()
            if isinstance(deployment, Err):
                return deployment
            return next(deployment.value)

        return self.session(step)

    def director_and_deployment(self, next: Callable[[DirectorAndDeployment], CmdResult]) -> Run:
        def step(session: SessionProtocol, _config: Config) -> CmdResult:
            director = session.director()
            if isinstance(director, Err):
                return director
            deployment = session.deployment()
            if isinstance(deployment, Err):
                return deployment
            return next(DirectorAndDeployment(director.value, deployment.value))

        return self.session(step)

    # -- release providers ---------------------------------------------------

    def _providers(self) -> ReleaseProviders:
        release = ReleaseProvider(self._deps.fs)
        return ReleaseProviders(release, ReleaseDirProvider(self._deps.fs, release))

    def release_providers(self, next: Callable[[ReleaseProviders], CmdResult]) -> Run:
        return self.global_opts(lambda: next(self._providers()))

    def providers_and_director(
        self, next: Callable[[ReleaseProviders, Director], CmdResult]
    ) -> Run:
        return self.director(lambda director: next(self._providers(), director))

    def release_dir(self, next: Callable[[ReleaseDir], CmdResult]) -> Callable[[Path], CmdResult]:
        def with_dir(path: Path) -> CmdResult:
            return self.release_providers(
                lambda providers: next(providers.release_dir.new_fs_release_dir(path))
            )()

        return with_dir

    def blobs_dir(self, next: Callable[[BlobsDir], CmdResult]) -> Callable[[Path], CmdResult]:
        def with_dir(path: Path) -> CmdResult:
            return self.release_providers(
                lambda providers: next(providers.release_dir.new_fs_blobs_dir(path))
            )()

        return with_dir