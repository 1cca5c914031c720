"""Release directory on disk.

Layout managed here:

  config/final.json       release name and blobstore settings
  config/blobs.json       tracked blobs (see blobs.py)
  jobs/<name>/            job spec, monit file, templates
  packages/<name>/        package spec and packaging script
  src/                    package sources
  dev_releases/<name>/    dev release tarballs (0+dev.N)
  releases/<name>/        final release tarballs (N)
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.errors import ReleaseError
from dctl.core.result import Err, Ok, Result
from dctl.core.structured import get_str

from .archive import ArchiveWriter, ReleaseReader, read_final_config
from .model import Release

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem, FsError

__all__ = ["ReleaseDir"]

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")
_DEV_VERSION_RE = re.compile(r"^0\+dev\.(\d+)$")

GITIGNORE = """config/dev.json
config/private.json
blobs
dev_releases
releases/*.tgz
releases/**/*.tgz
.blobs
.dev_builds
.idea
.DS_Store
*.swp
*~
"""


def _release_error(error: FsError) -> ReleaseError:
    return ReleaseError(error.message, path=error.path)


class ReleaseDir:
    """Filesystem-backed release directory."""

    def __init__(
        self,
        root: Path,
        fs: FileSystem,
        reader: ReleaseReader,
        writer: ArchiveWriter,
    ) -> None:
        self.root = root
        self._fs = fs
        self._reader = reader
        self._writer = writer

    def _write(self, path: Path, content: str) -> Result[None, ReleaseError]:
        written = self._fs.write_text(path, content)
        if isinstance(written, Err):
            return Err(_release_error(written.error))
        return Ok(None)

    def _mkdir(self, path: Path) -> Result[None, ReleaseError]:
        made = self._fs.mkdir(path)
        if isinstance(made, Err):
            return Err(_release_error(made.error))
        return Ok(None)

    def default_name(self) -> str:
        return get_str(read_final_config(self.root, self._fs), "name") or self.root.name

    def init(self, git: bool) -> Result[None, ReleaseError]:
        final = self.root / "config" / "final.json"
        if self._fs.exists(final):
            return Err(ReleaseError(f"Release directory {self.root} is already initialized", path=final))

        for sub in ("config", "jobs", "packages", "src"):
            made = self._mkdir(self.root / sub)
            if isinstance(made, Err):
                return made

        name = self.root.name
        config = {
            "name": name,
            "blobstore": {"provider": "local", "options": {"blobstore_path": f"/tmp/{name}-blobs"}},
        }
        written = self._write(final, json.dumps(config, indent=2) + "\n")
        if isinstance(written, Err):
            return written

        written = self._write(self.root / "config" / "blobs.json", "{}\n")
        if isinstance(written, Err) or not git:
            return written
        return self._write(self.root / ".gitignore", GITIGNORE)

    def reset(self) -> Result[None, ReleaseError]:
        """Remove dev releases and build caches."""
        for sub in ("dev_releases", ".dev_builds", ".blobs"):
            removed = self._fs.remove_all(self.root / sub)
            if isinstance(removed, Err):
                return Err(_release_error(removed.error))
        return Ok(None)

    def generate_job(self, name: str) -> Result[None, ReleaseError]:
        if not _NAME_RE.match(name):
            return Err(ReleaseError(f"Invalid job name '{name}'"))

        job = self.root / "jobs" / name
        if self._fs.exists(job):
            return Err(ReleaseError(f"Job '{name}' already exists", path=job))

        spec = {"name": name, "templates": {}, "packages": [], "properties": {}}
        for path, content in (
            (job / "spec", json.dumps(spec, indent=2) + "\n"),
            (job / "monit", ""),
        ):
            written = self._write(path, content)
            if isinstance(written, Err):
                return written
        return self._mkdir(job / "templates")

    def generate_package(self, name: str) -> Result[None, ReleaseError]:
        if not _NAME_RE.match(name):
            return Err(ReleaseError(f"Invalid package name '{name}'"))

        pkg = self.root / "packages" / name
        if self._fs.exists(pkg):
            return Err(ReleaseError(f"Package '{name}' already exists", path=pkg))

        spec = {"name": name, "dependencies": [], "files": []}
        packaging = "set -e -x\n\n# Build and install into ${BOSH_INSTALL_TARGET}\n"
        for path, content in (
            (pkg / "spec", json.dumps(spec, indent=2) + "\n"),
            (pkg / "packaging", packaging),
        ):
            written = self._write(path, content)
            if isinstance(written, Err):
                return written
        return Ok(None)

    def _versions(self, sub: str, name: str) -> list[str]:
        folder = self.root / sub / name
        if not folder.is_dir():
            return []
        prefix = f"{name}-"
        return [p.name[len(prefix) : -len(".tgz")] for p in folder.glob(f"{prefix}*.tgz")]

    def next_dev_version(self, name: str) -> str:
        builds = [
            int(m.group(1))
            for v in self._versions("dev_releases", name)
            if (m := _DEV_VERSION_RE.match(v))
        ]
        return f"0+dev.{max(builds, default=0) + 1}"

    def next_final_version(self, name: str) -> str:
        finals = [int(v) for v in self._versions("releases", name) if v.isdigit()]
        return str(max(finals, default=0) + 1)

    def release_path(self, release: Release, final: bool) -> Path:
        sub = "releases" if final else "dev_releases"
        return self.root / sub / release.name / f"{release.name}-{release.version}.tgz"

    def build_release(
        self, name: str | None, version: str | None, final: bool
    ) -> Result[Release, ReleaseError]:
        """Read the directory and assign the release its next version."""
        result = self._reader.read_dir()
        if isinstance(result, Err):
            return result

        release_name = name or result.value.name
        if version is None:
            if final:
                version = self.next_final_version(release_name)
            else:
                version = self.next_dev_version(release_name)
        release = Release(
            name=release_name,
            version=version,
            jobs=result.value.jobs,
            packages=result.value.packages,
            commit_hash=result.value.commit_hash,
        )

        path = self.release_path(release, final)
        if self._fs.exists(path):
            return Err(ReleaseError(f"Release version '{version}' already exists", path=path))
        return Ok(release)

    def save_release(self, release: Release, final: bool) -> Result[Path, ReleaseError]:
        return self._writer.write(release, self.release_path(release, final))

    def write_tarball(self, release: Release, dest: Path) -> Result[Path, ReleaseError]:
        """Write ``release`` to an arbitrary path outside the release dir."""
        return self._writer.write(release, dest)

    def finalize_release(
        self, tarball: Path, name: str | None, version: str | None, force: bool
    ) -> Result[Release, ReleaseError]:
        result = self._reader.read_archive(tarball)
        if isinstance(result, Err):
            return result

        release_name = name or result.value.name
        release = result.value
        if release_name != release.name:
            release = replace(release, name=release_name)
        release = release.with_version(version or self.next_final_version(release_name))

        dest = self.release_path(release, final=True)
        if self._fs.exists(dest) and not force:
            return Err(ReleaseError(f"Release version '{release.version}' already exists", path=dest))

        written = self._writer.write(release, dest)
        if isinstance(written, Err):
            return written
        logger.debug("finalized %s as %s", tarball, dest)
        return Ok(release)

    def latest_release_path(self, name: str) -> Path | None:
        """Newest dev release tarball for ``name``, if any was created."""
        builds = [
            (int(m.group(1)), v)
            for v in self._versions("dev_releases", name)
            if (m := _DEV_VERSION_RE.match(v))
        ]
        if not builds:
            return None
        _, version = max(builds)
        return self.root / "dev_releases" / name / f"{name}-{version}.tgz"
