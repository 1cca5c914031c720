"""Filesystem collaborator.

Commands never touch ``Path.home()`` or ``tempfile`` directly; they go
through a ``FileSystem`` so tests can point home at ``tmp_path``.

Usage:
    fs = FileSystem()
    match fs.expand_path("~/.dctl/tmp"):
        case Ok(path):
            fs.change_temp_root(path)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dctl.core.result import Err, Ok, Result
from dctl.platform.files import atomic_write_bytes
from dctl.platform.paths import home

__all__ = ["FileSystem", "FsError"]


@dataclass(frozen=True, slots=True)
class FsError:
    message: str
    path: Path | None = None


class FileSystem:
    """Local filesystem access with Result-based errors."""

    def __init__(self, home_dir: Path | None = None) -> None:
        self._home = home_dir
        self._temp_root: Path | None = None

    @property
    def home_dir(self) -> Path:
        return self._home if self._home is not None else home()

    @property
    def temp_root(self) -> Path | None:
        """Temp root set by ``change_temp_root``, if any."""
        return self._temp_root

    def expand_path(self, path: str) -> Result[Path, FsError]:
        """Expand ``~`` and make the path absolute."""
        if not path:
            return Err(FsError("Expected non-empty path"))

        try:
            if path == "~":
                expanded = self.home_dir
            elif path.startswith("~/"):
                expanded = self.home_dir / path[2:]
            else:
                expanded = Path(path).expanduser()
            return Ok(expanded.absolute())
        except (RuntimeError, OSError) as e:
            return Err(FsError(f"Expanding path '{path}': {e}"))

    def change_temp_root(self, path: Path) -> Result[None, FsError]:
        """Create ``path`` and make it the root for all later temp files."""
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(FsError(f"Creating temp root {path}: {e}", path=path))

        tempfile.tempdir = str(path)
        self._temp_root = path
        return Ok(None)

    def temp_dir(self, prefix: str = "dctl-") -> Result[Path, FsError]:
        try:
            return Ok(Path(tempfile.mkdtemp(prefix=prefix)))
        except OSError as e:
            return Err(FsError(f"Creating temp dir: {e}"))

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_bytes(self, path: Path) -> Result[bytes, FsError]:
        try:
            return Ok(path.read_bytes())
        except FileNotFoundError:
            return Err(FsError(f"File not found: {path}", path=path))
        except PermissionError:
            return Err(FsError(f"Permission denied reading: {path}", path=path))
        except OSError as e:
            return Err(FsError(f"Reading {path}: {e}", path=path))

    def read_text(self, path: Path) -> Result[str, FsError]:
        result = self.read_bytes(path)
        if isinstance(result, Err):
            return result
        try:
            return Ok(result.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(FsError(f"Invalid UTF-8 in {path}: {e}", path=path))

    def write_bytes(
        self, path: Path, content: bytes, *, mode: int | None = None
    ) -> Result[None, FsError]:
        try:
            atomic_write_bytes(path, content, mode=mode)
        except OSError as e:
            return Err(FsError(f"Writing {path}: {e}", path=path))
        return Ok(None)

    def write_text(
        self, path: Path, content: str, *, mode: int | None = None
    ) -> Result[None, FsError]:
        return self.write_bytes(path, content.encode("utf-8"), mode=mode)

    def mkdir(self, path: Path) -> Result[None, FsError]:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(FsError(f"Creating directory {path}: {e}", path=path))
        return Ok(None)

    def remove_all(self, path: Path) -> Result[None, FsError]:
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except OSError as e:
            return Err(FsError(f"Removing {path}: {e}", path=path))
        return Ok(None)

    def copy_file(self, src: Path, dest: Path) -> Result[None, FsError]:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)
        except OSError as e:
            return Err(FsError(f"Copying {src} to {dest}: {e}", path=src))
        return Ok(None)
