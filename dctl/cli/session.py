"""Per-invocation session: environment, credentials and director handles.

A session is cheap to build; nothing talks to the network until
``director()`` or ``deployment()`` is called. The authenticated director is
memoized, so one session never logs in twice.

Usage:
    session = Session(options, config, console, fs)
    match session.deployment():
        case Ok(deployment):
            ...
        case Err(error):
            ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Protocol

from dctl.core.config import Config, Credentials
from dctl.core.errors import CommandError, DeploymentError, DirectorError, SessionError
from dctl.core.result import Err, Ok, Result
from dctl.director.client import DirectorClient
from dctl.director.fakes import FakeDirector
from dctl.director.transport import RealHttpTransport

if TYPE_CHECKING:
    from dctl.director.api import Deployment, Director
    from dctl.output.console import ConsoleProtocol
    from dctl.platform.fs import FileSystem

    from .options import GlobalOptions

__all__ = [
    "DirectorBuilder",
    "FakeSession",
    "Session",
    "SessionFactory",
    "SessionProtocol",
    "build_director",
    "read_ca_cert",
    "session_factory",
]

logger = logging.getLogger(__name__)

PEM_MARKER = "-----BEGIN"

type DirectorBuilder = Callable[[str, str | None, Credentials | None], Director]


def build_director(url: str, ca_cert: str | None, credentials: Credentials | None) -> Director:
    return DirectorClient(RealHttpTransport(url, ca_cert=ca_cert, credentials=credentials))


def read_ca_cert(value: str | None, fs: FileSystem) -> Result[str | None, SessionError]:
    """Resolve a --ca-cert value: inline PEM is used as is, anything else is a path."""
    if not value:
        return Ok(None)
    if value.lstrip().startswith(PEM_MARKER):
        return Ok(value)

    path = fs.expand_path(value)
    if isinstance(path, Err):
        return Err(SessionError(path.error.message))
    content = fs.read_text(path.value)
    if isinstance(content, Err):
        return Err(SessionError(f"Reading CA certificate: {content.error.message}"))
    return Ok(content.value)


class SessionProtocol(Protocol):
    def environment(self) -> str: ...

    def credentials(self) -> Credentials: ...

    def director(self) -> Result[Director, CommandError]: ...

    def anonymous_director(self) -> Result[Director, CommandError]: ...

    def login_director(self, credentials: Credentials) -> Result[Director, CommandError]: ...

    def deployment_name(self) -> str: ...

    def deployment(self) -> Result[Deployment, CommandError]: ...

    def for_environment(self, url: str) -> SessionProtocol: ...


type SessionFactory = Callable[[GlobalOptions, Config, bool, bool], SessionProtocol]


class Session:
    """Session over persisted config and global flags."""

    def __init__(
        self,
        options: GlobalOptions,
        config: Config,
        console: ConsoleProtocol,
        fs: FileSystem,
        *,
        respect_environment: bool = True,
        respect_deployment: bool = True,
        builder: DirectorBuilder = build_director,
    ) -> None:
        self._options = options
        self._config = config
        self._console = console
        self._fs = fs
        self._respect_environment = respect_environment
        self._respect_deployment = respect_deployment
        self._builder = builder
        self._director: Director | None = None

    def environment(self) -> str:
        """Director URL, with aliases resolved; empty when not respected."""
        if not self._respect_environment or not self._options.environment:
            return ""
        return self._config.resolve_environment(self._options.environment)

    def credentials(self) -> Credentials:
        stored = self._config.credentials(self.environment())
        if self._options.client:
            return Credentials(client=self._options.client, client_secret=self._options.client_secret)
        return stored

    def _ca_cert(self, url: str) -> Result[str | None, SessionError]:
        if not self._options.ca_cert:
            return Ok(self._config.ca_cert(url))
        return read_ca_cert(self._options.ca_cert, self._fs)

    def _require_environment(self) -> Result[str, SessionError]:
        url = self.environment()
        if not url:
            return Err(
                SessionError(
                    "Expected non-empty Director URL",
                    hint="Pass --environment or set DCTL_ENVIRONMENT",
                )
            )
        return Ok(url)

    def _prompt_credentials(self) -> Result[Credentials, SessionError]:
        if not self._console.is_interactive():
            return Err(
                SessionError(
                    "Director credentials required but the session is non-interactive",
                    hint="Run `dctl log-in` or pass --client/--client-secret",
                )
            )
        username = self._console.ask_text("Username")
        if isinstance(username, Err):
            return Err(SessionError(username.error.message))
        password = self._console.ask_password("Password")
        if isinstance(password, Err):
            return Err(SessionError(password.error.message))
        return Ok(Credentials(username=username.value, password=password.value))

    def _connect(self, credentials: Credentials | None) -> Result[Director, CommandError]:
        url = self._require_environment()
        if isinstance(url, Err):
            return url
        ca_cert = self._ca_cert(url.value)
        if isinstance(ca_cert, Err):
            return ca_cert
        return Ok(self._builder(url.value, ca_cert.value, credentials))

    def _authenticate(self, director: Director) -> Result[Director, CommandError]:
        authenticated = director.is_authenticated()
        if isinstance(authenticated, Err):
            return authenticated
        if not authenticated.value:
            return Err(DirectorError(f"Not authenticated with director {director.url}", status=401))
        return Ok(director)

    def director(self) -> Result[Director, CommandError]:
        if self._director is not None:
            return Ok(self._director)

        url = self._require_environment()
        if isinstance(url, Err):
            return url

        credentials = self.credentials()
        if not credentials.is_complete:
            prompted = self._prompt_credentials()
            if isinstance(prompted, Err):
                return prompted
            credentials = prompted.value

        logger.debug("connecting to %s as %s", url.value, credentials.principal)
        connected = self._connect(credentials)
        if isinstance(connected, Err):
            return connected
        authenticated = self._authenticate(connected.value)
        if isinstance(authenticated, Err):
            return authenticated

        self._director = authenticated.value
        return Ok(self._director)

    def anonymous_director(self) -> Result[Director, CommandError]:
        return self._connect(None)

    def for_environment(self, url: str) -> Session:
        """Session bound to ``url`` instead of the global environment flag."""
        return Session(
            replace(self._options, environment=url),
            self._config,
            self._console,
            self._fs,
            respect_environment=True,
            respect_deployment=False,
            builder=self._builder,
        )

    def login_director(self, credentials: Credentials) -> Result[Director, CommandError]:
        """Connect with ``credentials`` and check the director accepts them."""
        connected = self._connect(credentials)
        if isinstance(connected, Err):
            return connected
        return self._authenticate(connected.value)

    def deployment_name(self) -> str:
        if self._options.deployment:
            return self._options.deployment
        if not self._respect_deployment:
            return ""
        return self._config.deployment(self.environment()) or ""

    def deployment(self) -> Result[Deployment, CommandError]:
        name = self.deployment_name()
        if not name:
            return Err(
                DeploymentError(
                    "Expected non-empty deployment name",
                    no_deployment=True,
                    hint="Pass --deployment or run `dctl deployment NAME`",
                )
            )

        director = self.director()
        if isinstance(director, Err):
            return director
        return director.value.find_deployment(name)


def session_factory(
    console: ConsoleProtocol, fs: FileSystem, builder: DirectorBuilder = build_director
) -> SessionFactory:
    def build(
        options: GlobalOptions,
        config: Config,
        respect_environment: bool,
        respect_deployment: bool,
    ) -> SessionProtocol:
        return Session(
            options,
            config,
            console,
            fs,
            respect_environment=respect_environment,
            respect_deployment=respect_deployment,
            builder=builder,
        )

    return build


@dataclass
class FakeSession:
    """Session double returning a ``FakeDirector`` or canned errors."""

    env: str = "https://director.example.com:25555"
    fake_director: FakeDirector | None = None
    director_error: CommandError | None = None
    deployment_error: CommandError | None = None
    name: str = "fake-dep"
    stored_credentials: Credentials = field(default_factory=Credentials)
    director_calls: int = 0
    deployment_calls: int = 0

    def environment(self) -> str:
        return self.env

    def credentials(self) -> Credentials:
        return self.stored_credentials

    def _fake(self) -> Result[Director, CommandError]:
        if self.director_error is not None:
            return Err(self.director_error)
        if self.fake_director is None:
            self.fake_director = FakeDirector(director_url=self.env)
        return Ok(self.fake_director)

    def director(self) -> Result[Director, CommandError]:
        self.director_calls += 1
        return self._fake()

    def anonymous_director(self) -> Result[Director, CommandError]:
        return self._fake()

    def login_director(self, credentials: Credentials) -> Result[Director, CommandError]:
        return self._fake()

    def for_environment(self, url: str) -> FakeSession:
        self.env = url
        return self

    def deployment_name(self) -> str:
        return self.name

    def deployment(self) -> Result[Deployment, CommandError]:
        self.deployment_calls += 1
        if self.deployment_error is not None:
            return Err(self.deployment_error)
        director = self.director()
        if isinstance(director, Err):
            return director
        return director.value.find_deployment(self.name)
