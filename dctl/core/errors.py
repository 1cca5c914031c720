"""Error values and exit codes.

Each layer of the resolution chain has its own error type. They are plain
frozen dataclasses carried inside ``Err``; nothing here is raised. The
dispatcher prints whichever one reaches it and maps it to an ``ErrorCode``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

__all__ = [
    "CommandError",
    "ConfigError",
    "DeploymentError",
    "DirectorError",
    "ErrorCode",
    "ExtraArgsError",
    "InitError",
    "ReleaseError",
    "SessionError",
    "SshError",
    "UsageError",
]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success (also used for help/version output)
    - 1: User error (bad arguments, missing credentials)
    - 2: Environment error (setup or configuration failed)
    - 3: Command error (the director rejected or failed an operation)
    - 4: Network error (director unreachable, authentication failed)
    - 5: I/O error (release files, blobs, ssh)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    COMMAND_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


@dataclass(frozen=True, slots=True)
class ExtraArgsError:
    """Positional arguments were left over after parsing."""

    args: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Extra arguments are not supported for this command: {', '.join(self.args)}"


@dataclass(frozen=True, slots=True)
class UsageError:
    """Argument parsing failed (unknown command, bad flag, bad value)."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class InitError:
    """Process-wide setup (UI, logging, temp root) failed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Config file could not be expanded, read, parsed or written."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class SessionError:
    """Session could not supply an environment or credentials."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class DirectorError:
    """Director unreachable, authentication refused, or a request failed.

    Attributes:
        message: Error description
        status: HTTP status (0 for connection errors)
        task_id: Director task that failed, if any
    """

    message: str
    status: int = 0
    task_id: int | None = None


@dataclass(frozen=True, slots=True)
class DeploymentError:
    """Deployment could not be selected or resolved.

    ``no_deployment`` is set when no deployment name was given at all, as
    opposed to a name the director does not know.
    """

    message: str
    name: str = ""
    no_deployment: bool = False
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Release directory, blob store or archive operation failed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class SshError:
    """ssh/scp could not be started or exited non-zero."""

    message: str
    returncode: int = -1


type CommandError = (
    ExtraArgsError
    | UsageError
    | InitError
    | ConfigError
    | SessionError
    | DirectorError
    | DeploymentError
    | ReleaseError
    | SshError
)
