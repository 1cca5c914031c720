"""Blobs tracked by a release directory.

``config/blobs.json`` maps a blob path to its size, SHA1 and, once uploaded,
the blobstore object id:

  {"redis/redis-7.2.tgz": {"size": 3456, "sha1": "...", "object_id": "..."}}

Blob contents live under ``blobs/<path>``. Only the ``local`` blobstore
provider from ``config/final.json`` is supported; its objects are plain files
named by object id.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.errors import ReleaseError
from dctl.core.result import Err, Ok, Result
from dctl.core.structured import as_str_dict, get_int, get_str, get_table

from .archive import read_final_config

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem

__all__ = ["Blob", "BlobsDir"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Blob:
    path: str
    size: int
    sha1: str
    object_id: str | None = None

    @property
    def uploaded(self) -> bool:
        return self.object_id is not None

    def as_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"size": self.size, "sha1": self.sha1}
        if self.object_id:
            data["object_id"] = self.object_id
        return data


def _sha1(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


class BlobsDir:
    """Blob index and blob files of one release directory."""

    def __init__(self, root: Path, fs: FileSystem) -> None:
        self.root = root
        self._fs = fs

    @property
    def index_path(self) -> Path:
        return self.root / "config" / "blobs.json"

    def blob_path(self, path: str) -> Path:
        return self.root / "blobs" / path

    def blobs(self) -> Result[list[Blob], ReleaseError]:
        """Tracked blobs, sorted by path."""
        if not self._fs.exists(self.index_path):
            return Ok([])

        raw = self._fs.read_text(self.index_path)
        if isinstance(raw, Err):
            return Err(ReleaseError(raw.error.message, path=self.index_path))

        try:
            data = as_str_dict(json.loads(raw.value or "{}"))
        except ValueError as e:
            return Err(ReleaseError(f"Invalid JSON in {self.index_path}: {e}", path=self.index_path))
        if data is None:
            return Err(ReleaseError(f"Expected an object in {self.index_path}", path=self.index_path))

        blobs: list[Blob] = []
        for path, value in data.items():
            entry = as_str_dict(value)
            sha1 = get_str(entry, "sha1") if entry is not None else None
            if entry is None or sha1 is None:
                return Err(ReleaseError(f"Invalid blob entry '{path}' in {self.index_path}"))
            blobs.append(
                Blob(
                    path=path,
                    size=get_int(entry, "size") or 0,
                    sha1=sha1,
                    object_id=get_str(entry, "object_id"),
                )
            )
        return Ok(sorted(blobs, key=lambda b: b.path))

    def _save(self, blobs: list[Blob]) -> Result[None, ReleaseError]:
        data = {b.path: b.as_dict() for b in sorted(blobs, key=lambda b: b.path)}
        written = self._fs.write_text(self.index_path, json.dumps(data, indent=2) + "\n")
        if isinstance(written, Err):
            return Err(ReleaseError(written.error.message, path=self.index_path))
        return Ok(None)

    def _blobstore(self) -> Result[Path, ReleaseError]:
        blobstore = get_table(read_final_config(self.root, self._fs), "blobstore") or {}
        provider = get_str(blobstore, "provider") or "local"
        if provider != "local":
            return Err(ReleaseError(f"Unsupported blobstore provider '{provider}'"))

        store = get_str(get_table(blobstore, "options") or {}, "blobstore_path")
        if store is None:
            return Err(ReleaseError("Expected blobstore_path in config/final.json"))
        return Ok(Path(store))

    def track_blob(self, path: str, src: Path) -> Result[Blob, ReleaseError]:
        """Copy ``src`` to ``blobs/<path>`` and start tracking it."""
        content = self._fs.read_bytes(src)
        if isinstance(content, Err):
            return Err(ReleaseError(content.error.message, path=src))

        blobs = self.blobs()
        if isinstance(blobs, Err):
            return blobs

        copied = self._fs.copy_file(src, self.blob_path(path))
        if isinstance(copied, Err):
            return Err(ReleaseError(copied.error.message, path=src))

        blob = Blob(path=path, size=len(content.value), sha1=_sha1(content.value))
        saved = self._save([b for b in blobs.value if b.path != path] + [blob])
        if isinstance(saved, Err):
            return saved
        logger.debug("tracking blob %s (%d bytes)", path, blob.size)
        return Ok(blob)

    def untrack_blob(self, path: str) -> Result[None, ReleaseError]:
        blobs = self.blobs()
        if isinstance(blobs, Err):
            return blobs

        remaining = [b for b in blobs.value if b.path != path]
        if len(remaining) == len(blobs.value):
            return Err(ReleaseError(f"Blob '{path}' is not tracked"))

        removed = self._fs.remove_all(self.blob_path(path))
        if isinstance(removed, Err):
            return Err(ReleaseError(removed.error.message, path=removed.error.path))
        return self._save(remaining)

    def upload_blobs(self) -> Result[list[Blob], ReleaseError]:
        """Upload blobs without an object id; returns the newly uploaded ones."""
        blobs = self.blobs()
        if isinstance(blobs, Err):
            return blobs

        pending = [b for b in blobs.value if not b.uploaded]
        if not pending:
            return Ok([])

        store = self._blobstore()
        if isinstance(store, Err):
            return store

        uploaded: list[Blob] = []
        for blob in pending:
            object_id = str(uuid.uuid4())
            copied = self._fs.copy_file(self.blob_path(blob.path), store.value / object_id)
            if isinstance(copied, Err):
                return Err(ReleaseError(copied.error.message, path=copied.error.path))
            uploaded.append(Blob(blob.path, blob.size, blob.sha1, object_id))
            logger.debug("uploaded blob %s as %s", blob.path, object_id)

        done = {b.path for b in uploaded}
        saved = self._save([b for b in blobs.value if b.path not in done] + uploaded)
        if isinstance(saved, Err):
            return saved
        return Ok(uploaded)

    def sync_blobs(self) -> Result[list[Blob], ReleaseError]:
        """Download uploaded blobs missing locally; returns the downloaded ones."""
        blobs = self.blobs()
        if isinstance(blobs, Err):
            return blobs

        missing = [b for b in blobs.value if b.uploaded and not self._has_local_copy(b)]
        if not missing:
            return Ok([])

        store = self._blobstore()
        if isinstance(store, Err):
            return store

        for blob in missing:
            source = store.value / str(blob.object_id)
            content = self._fs.read_bytes(source)
            if isinstance(content, Err):
                return Err(ReleaseError(content.error.message, path=source))
            if _sha1(content.value) != blob.sha1:
                return Err(
                    ReleaseError(f"Expected blob '{blob.path}' to have SHA1 '{blob.sha1}'", path=source)
                )
            written = self._fs.write_bytes(self.blob_path(blob.path), content.value)
            if isinstance(written, Err):
                return Err(ReleaseError(written.error.message, path=written.error.path))
            logger.debug("downloaded blob %s", blob.path)
        return Ok(missing)

    def _has_local_copy(self, blob: Blob) -> bool:
        content = self._fs.read_bytes(self.blob_path(blob.path))
        return isinstance(content, Ok) and _sha1(content.value) == blob.sha1
