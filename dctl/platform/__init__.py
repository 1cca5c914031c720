"""Platform abstraction layer."""

from .fs import FileSystem, FsError
from .paths import DEFAULT_CONFIG_PATH, DEFAULT_TMP_PATH, home
from .process import ProcessError, run, run_attached

__all__ = [
    # fs
    "FileSystem",
    "FsError",
    # paths
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_TMP_PATH",
    "home",
    # process
    "ProcessError",
    "run",
    "run_attached",
]
