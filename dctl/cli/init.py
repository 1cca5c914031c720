"""Process-wide setup, run at most once per process.

UI mode flags, logging and the temp-directory root are global state. The
first command that needs them runs the setup; every later command sees the
outcome of that first run.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING

from dctl.core.errors import InitError
from dctl.core.result import Err, Ok, Result
from dctl.platform.paths import DEFAULT_TMP_PATH

if TYPE_CHECKING:
    from dctl.output.console import ConsoleProtocol
    from dctl.platform.fs import FileSystem

    from .options import GlobalOptions

__all__ = ["GlobalContextInitializer", "InitState", "setup_logging"]

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "DCTL_LOG_LEVEL"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level_name: str | None = None) -> Result[None, InitError]:
    """Install a Rich handler on stderr for the ``dctl`` logger.

    ``level_name`` defaults to ``$DCTL_LOG_LEVEL``; ``none`` (or unset) only
    lets warnings through.
    """
    name = (level_name if level_name is not None else os.environ.get(LOG_LEVEL_ENV, "none")).lower()
    if name not in _LEVELS and name != "none":
        return Err(InitError(f"Unknown log level '{name}' in {LOG_LEVEL_ENV}"))

    from rich.console import Console
    from rich.logging import RichHandler

    root = logging.getLogger("dctl")
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(console=Console(file=sys.stderr), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(_LEVELS.get(name, logging.WARNING))
    root.propagate = False
    return Ok(None)


class InitState(Enum):
    UNEXECUTED = auto()
    EXECUTED = auto()


class GlobalContextInitializer:
    """Runs UI, logging and temp-root setup exactly once.

    The state flips to ``EXECUTED`` before any effect runs, so a failing
    setup is not retried. Later calls return the first run's result.
    """

    def __init__(
        self,
        console: ConsoleProtocol,
        fs: FileSystem,
        *,
        configure_logging: Callable[[], Result[None, InitError]] = setup_logging,
        tmp_path: str = DEFAULT_TMP_PATH,
    ) -> None:
        self._console = console
        self._fs = fs
        self._configure_logging = configure_logging
        self._tmp_path = tmp_path
        self._state = InitState.UNEXECUTED
        self._result: Result[None, InitError] = Ok(None)

    @property
    def state(self) -> InitState:
        return self._state

    def try_init(self) -> bool:
        """Claim the one-time setup; False if it was already claimed."""
        if self._state is InitState.EXECUTED:
            return False
        self._state = InitState.EXECUTED
        return True

    def ensure_initialized(self, options: GlobalOptions) -> Result[None, InitError]:
        if not self.try_init():
            return self._result
        self._result = self._run(options)
        return self._result

    def _run(self, options: GlobalOptions) -> Result[None, InitError]:
        self._console.enable_tty(options.tty)
        if not options.no_color:
            self._console.enable_color()
        if options.json:
            self._console.enable_json()
        if options.non_interactive:
            self._console.enable_non_interactive()

        configured = self._configure_logging()
        if isinstance(configured, Err):
            return configured

        tmp = self._fs.expand_path(self._tmp_path)
        if isinstance(tmp, Err):
            return Err(InitError(f"Expanding temp root: {tmp.error.message}"))

        changed = self._fs.change_temp_root(tmp.value)
        if isinstance(changed, Err):
            return Err(InitError(changed.error.message, path=tmp.value))

        logger.debug("initialized (tty=%s json=%s temp=%s)", options.tty, options.json, tmp.value)
        return Ok(None)
