"""Release directories, release tarballs and blobs."""

from .archive import ArchiveWriter, ReleaseReader
from .blobs import Blob, BlobsDir
from .dir import ReleaseDir
from .model import Release, ReleaseJob, ReleasePackage
from .providers import ReleaseDirProvider, ReleaseProvider

__all__ = [
    "ArchiveWriter",
    "Blob",
    "BlobsDir",
    "Release",
    "ReleaseDir",
    "ReleaseDirProvider",
    "ReleaseJob",
    "ReleasePackage",
    "ReleaseProvider",
    "ReleaseReader",
]
