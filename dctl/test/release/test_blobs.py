from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from dctl.core.result import Err, Ok
from dctl.platform.fs import FileSystem
from dctl.release import BlobsDir


@pytest.fixture
def store(tmp_path: Path) -> Path:
    return tmp_path / "blobstore"


@pytest.fixture
def blobs_dir(tmp_path: Path, store: Path) -> BlobsDir:
    root = tmp_path / "release"
    (root / "config").mkdir(parents=True)
    final = {"name": "redis", "blobstore": {"provider": "local", "options": {"blobstore_path": str(store)}}}
    (root / "config" / "final.json").write_text(json.dumps(final))
    return BlobsDir(root, FileSystem(home_dir=tmp_path))


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "redis-7.2.tgz"
    path.write_bytes(b"redis sources")
    return path


def test_no_index_means_no_blobs(blobs_dir: BlobsDir) -> None:
    assert blobs_dir.blobs() == Ok([])


def test_track_blob(blobs_dir: BlobsDir, source: Path) -> None:
    result = blobs_dir.track_blob("redis/redis-7.2.tgz", source)

    assert isinstance(result, Ok)
    assert result.value.sha1 == hashlib.sha1(b"redis sources").hexdigest()
    assert not result.value.uploaded
    assert blobs_dir.blob_path("redis/redis-7.2.tgz").read_bytes() == b"redis sources"
    index = json.loads(blobs_dir.index_path.read_text())
    assert index == {"redis/redis-7.2.tgz": {"size": 13, "sha1": result.value.sha1}}


def test_track_missing_file(blobs_dir: BlobsDir, tmp_path: Path) -> None:
    result = blobs_dir.track_blob("x", tmp_path / "missing")
    assert isinstance(result, Err)
    assert result.error.path == tmp_path / "missing"


def test_untrack_blob(blobs_dir: BlobsDir, source: Path) -> None:
    blobs_dir.track_blob("redis.tgz", source)

    assert blobs_dir.untrack_blob("redis.tgz") == Ok(None)
    assert blobs_dir.blobs() == Ok([])
    assert not blobs_dir.blob_path("redis.tgz").exists()

    again = blobs_dir.untrack_blob("redis.tgz")
    assert isinstance(again, Err)
    assert again.error.message == "Blob 'redis.tgz' is not tracked"


def test_upload_then_sync(blobs_dir: BlobsDir, source: Path, store: Path) -> None:
    blobs_dir.track_blob("redis.tgz", source)

    uploaded = blobs_dir.upload_blobs()
    assert isinstance(uploaded, Ok)
    (blob,) = uploaded.value
    assert blob.object_id is not None
    assert (store / blob.object_id).read_bytes() == b"redis sources"
    assert blobs_dir.upload_blobs() == Ok([])

    blobs_dir.blob_path("redis.tgz").unlink()
    synced = blobs_dir.sync_blobs()
    assert isinstance(synced, Ok)
    assert [b.path for b in synced.value] == ["redis.tgz"]
    assert blobs_dir.blob_path("redis.tgz").read_bytes() == b"redis sources"
    assert blobs_dir.sync_blobs() == Ok([])


def test_sync_detects_corruption(blobs_dir: BlobsDir, source: Path, store: Path) -> None:
    blobs_dir.track_blob("redis.tgz", source)
    uploaded = blobs_dir.upload_blobs()
    assert isinstance(uploaded, Ok)
    object_id = uploaded.value[0].object_id
    assert object_id is not None
    (store / object_id).write_bytes(b"tampered")
    blobs_dir.blob_path("redis.tgz").unlink()

    result = blobs_dir.sync_blobs()
    assert isinstance(result, Err)
    assert "to have SHA1" in result.error.message


def test_unsupported_provider(blobs_dir: BlobsDir, source: Path) -> None:
    final = {"name": "redis", "blobstore": {"provider": "s3", "options": {}}}
    (blobs_dir.root / "config" / "final.json").write_text(json.dumps(final))
    blobs_dir.track_blob("redis.tgz", source)

    result = blobs_dir.upload_blobs()
    assert isinstance(result, Err)
    assert result.error.message == "Unsupported blobstore provider 's3'"


def test_invalid_index(blobs_dir: BlobsDir) -> None:
    blobs_dir.index_path.write_text("[1, 2]")
    result = blobs_dir.blobs()
    assert isinstance(result, Err)
    assert "Expected an object" in result.error.message
