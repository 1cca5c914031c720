"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dctl.core.errors import (
    CommandError,
    ConfigError,
    DeploymentError,
    DirectorError,
    ErrorCode,
    ExtraArgsError,
    InitError,
    ReleaseError,
    SessionError,
    SshError,
    UsageError,
)
from dctl.output.console import Style

if TYPE_CHECKING:
    from dctl.output.console import ConsoleProtocol

__all__ = ["error_exit_code", "print_error"]


def print_error(error: CommandError, console: ConsoleProtocol) -> None:
    """Print the error exactly as the failing layer reported it."""
    console.error(error.message)
    match error:
        case UsageError(hint=hint) | SessionError(hint=hint) | DeploymentError(hint=hint):
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case DirectorError(task_id=task_id) if task_id is not None:
            console.print(f"hint: run `dctl task {task_id}` for details", Style.DIM)
        case _:
            pass


def error_exit_code(error: CommandError) -> int:
    match error:
        case ExtraArgsError() | UsageError() | SessionError():
            return int(ErrorCode.USER_ERROR)
        case InitError() | ConfigError():
            return int(ErrorCode.ENV_ERROR)
        case DirectorError(task_id=task_id) if task_id is not None:
            return int(ErrorCode.COMMAND_ERROR)
        case DirectorError() | DeploymentError():
            return int(ErrorCode.NETWORK_ERROR)
        case ReleaseError() | SshError():
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.COMMAND_ERROR)
