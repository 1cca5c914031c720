"""Core domain types: results, errors, configuration."""

from .config import Config, Credentials, EnvironmentEntry, load_config, save_config
from .errors import (
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
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "Credentials",
    "EnvironmentEntry",
    "load_config",
    "save_config",
    # errors
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
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
