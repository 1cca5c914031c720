"""Factories for release readers, writers, release dirs and blob dirs.

Commands get these from the ``PROVIDERS`` chain layer instead of building
them directly, so one ``FileSystem`` is shared and tests can swap it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .archive import ArchiveWriter, ReleaseReader
from .blobs import BlobsDir
from .dir import ReleaseDir

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem

__all__ = ["ReleaseDirProvider", "ReleaseProvider"]


class ReleaseProvider:
    def __init__(self, fs: FileSystem) -> None:
        self._fs = fs

    def new_archive_writer(self) -> ArchiveWriter:
        return ArchiveWriter()


class ReleaseDirProvider:
    """Builds release-directory collaborators rooted at a path."""

    def __init__(self, fs: FileSystem, release_provider: ReleaseProvider) -> None:
        self._fs = fs
        self._release_provider = release_provider

    def new_release_reader(self, path: Path) -> ReleaseReader:
        return ReleaseReader(path, self._fs)

    def new_fs_release_dir(self, path: Path) -> ReleaseDir:
        return ReleaseDir(
            root=path,
            fs=self._fs,
            reader=self.new_release_reader(path),
            writer=self._release_provider.new_archive_writer(),
        )

    def new_fs_blobs_dir(self, path: Path) -> BlobsDir:
        return BlobsDir(path, self._fs)
