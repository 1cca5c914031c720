"""User-level locations used by dctl.

Everything dctl persists lives under ``~/.dctl``:

  ~/.dctl/config.toml   environments, credentials, default deployments
  ~/.dctl/tmp/          temp root for downloads and archives
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_TMP_PATH",
    "home",
]

APP_DIR = ".dctl"

# Kept unexpanded; the filesystem collaborator expands them.
DEFAULT_CONFIG_PATH = f"~/{APP_DIR}/config.toml"
DEFAULT_TMP_PATH = f"~/{APP_DIR}/tmp"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get the user's home directory.

    HOME (USERPROFILE on Windows) wins over ``Path.home()`` so containers
    and CI can redirect it.
    """
    for var in ("HOME", "USERPROFILE"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return Path.home()


def clear_caches() -> None:
    """Forget the cached home directory (tests change HOME)."""
    home.cache_clear()
