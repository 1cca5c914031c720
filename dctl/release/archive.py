"""Release reading and archive writing."""

from __future__ import annotations

import io
import json
import logging
import tarfile
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.errors import ReleaseError
from dctl.core.result import Err, Ok, Result
from dctl.core.structured import as_str_dict, get_str, str_dicts
from dctl.platform.process import run

from .model import MANIFEST_NAME, Release, ReleaseJob, ReleasePackage, fingerprint_dir

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem

__all__ = ["ArchiveWriter", "ReleaseReader", "read_final_config"]

logger = logging.getLogger(__name__)


def read_final_config(root: Path, fs: FileSystem) -> dict[str, object]:
    path = root / "config" / "final.json"
    if not fs.exists(path):
        return {}
    raw = fs.read_text(path)
    if isinstance(raw, Err):
        return {}
    try:
        return as_str_dict(json.loads(raw.value)) or {}
    except ValueError:
        return {}


class ReleaseReader:
    """Reads a release from a release directory or from a tarball."""

    def __init__(self, root: Path, fs: FileSystem) -> None:
        self._root = root
        self._fs = fs

    def read(self, path: Path | None = None) -> Result[Release, ReleaseError]:
        """Read the release directory, or the tarball at ``path``."""
        if path is not None:
            return self.read_archive(path)
        return self.read_dir()

    def read_dir(self) -> Result[Release, ReleaseError]:
        config = read_final_config(self._root, self._fs)
        name = get_str(config, "name") or self._root.name

        try:
            jobs = tuple(
                ReleaseJob(name=p.name, fingerprint=fingerprint_dir(p), path=p)
                for p in sorted((self._root / "jobs").glob("*"))
                if p.is_dir()
            )
            packages = tuple(
                ReleasePackage(name=p.name, fingerprint=fingerprint_dir(p), path=p)
                for p in sorted((self._root / "packages").glob("*"))
                if p.is_dir()
            )
        except OSError as e:
            return Err(ReleaseError(f"Reading release directory {self._root}: {e}", path=self._root))

        if not jobs and not packages:
            return Err(
                ReleaseError(
                    f"Expected release directory {self._root} to contain jobs or packages",
                    path=self._root,
                )
            )

        commit = run(["git", "rev-parse", "--short", "HEAD"], cwd=self._root)
        commit_hash = commit.value.strip() if isinstance(commit, Ok) else "unknown"
        logger.debug("read release %s from %s (commit %s)", name, self._root, commit_hash)
        return Ok(Release(name=name, version="", jobs=jobs, packages=packages, commit_hash=commit_hash))

    def read_archive(self, path: Path) -> Result[Release, ReleaseError]:
        try:
            with tarfile.open(path, "r:gz") as tar:
                member = tar.extractfile(MANIFEST_NAME)
                if member is None:
                    return Err(ReleaseError(f"{MANIFEST_NAME} missing in {path}", path=path))
                data = as_str_dict(json.loads(member.read().decode("utf-8")))
        except KeyError:
            return Err(ReleaseError(f"{MANIFEST_NAME} missing in {path}", path=path))
        except (tarfile.TarError, OSError, ValueError) as e:
            return Err(ReleaseError(f"Reading release tarball {path}: {e}", path=path))

        if data is None or not get_str(data, "name"):
            return Err(ReleaseError(f"Invalid {MANIFEST_NAME} in {path}", path=path))

        return Ok(
            Release(
                name=get_str(data, "name") or "",
                version=get_str(data, "version") or "",
                commit_hash=get_str(data, "commit_hash") or "unknown",
                jobs=tuple(
                    ReleaseJob(name=get_str(j, "name") or "", fingerprint=get_str(j, "fingerprint") or "")
                    for j in str_dicts(data.get("jobs"))
                ),
                packages=tuple(
                    ReleasePackage(
                        name=get_str(p, "name") or "", fingerprint=get_str(p, "fingerprint") or ""
                    )
                    for p in str_dicts(data.get("packages"))
                ),
                archive=path,
            )
        )


def _add_bytes(tar: tarfile.TarFile, name: str, content: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(content)
    info.mode = 0o644
    tar.addfile(info, io.BytesIO(content))


def _dir_tgz(path: Path) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for file in sorted(p for p in path.rglob("*") if p.is_file()):
            tar.add(file, arcname=file.relative_to(path).as_posix())
    return buf.getvalue()


class ArchiveWriter:
    """Writes a ``Release`` as a release tarball."""

    def write(self, release: Release, dest: Path) -> Result[Path, ReleaseError]:
        manifest = json.dumps(release.manifest(), indent=2).encode()
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with tarfile.open(dest, "w:gz") as tar:
                _add_bytes(tar, MANIFEST_NAME, manifest)
                if release.archive is not None:
                    self._copy_members(release.archive, tar)
                else:
                    for job in release.jobs:
                        if job.path is not None:
                            _add_bytes(tar, f"jobs/{job.name}.tgz", _dir_tgz(job.path))
                    for pkg in release.packages:
                        if pkg.path is not None:
                            _add_bytes(tar, f"packages/{pkg.name}.tgz", _dir_tgz(pkg.path))
        except (tarfile.TarError, OSError) as e:
            return Err(ReleaseError(f"Writing release tarball {dest}: {e}", path=dest))

        logger.debug("wrote release %s/%s to %s", release.name, release.version, dest)
        return Ok(dest)

    def _copy_members(self, source: Path, tar: tarfile.TarFile) -> None:
        with tarfile.open(source, "r:gz") as src:
            for member in src.getmembers():
                if member.name == MANIFEST_NAME or not member.isfile():
                    continue
                handle = src.extractfile(member)
                if handle is not None:
                    tar.addfile(member, handle)
