"""Release data model.

A release is a named, versioned set of jobs and packages. It is read either
from a release directory (sources on disk) or from a release tarball, and
written as a tarball holding ``release.MF`` plus one ``.tgz`` per job and
package.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from pathlib import Path

__all__ = [
    "MANIFEST_NAME",
    "Release",
    "ReleaseJob",
    "ReleasePackage",
    "fingerprint_dir",
]

MANIFEST_NAME = "release.MF"


@dataclass(frozen=True, slots=True)
class ReleaseJob:
    name: str
    fingerprint: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleasePackage:
    name: str
    fingerprint: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class Release:
    """Release contents.

    Attributes:
        name: Release name
        version: Version (``0+dev.N`` for dev releases)
        commit_hash: Source commit, when known
        jobs: Jobs, sorted by name
        packages: Packages, sorted by name
        archive: Tarball the release was read from, if any
    """

    name: str
    version: str
    jobs: tuple[ReleaseJob, ...] = ()
    packages: tuple[ReleasePackage, ...] = ()
    commit_hash: str = "unknown"
    archive: Path | None = None

    def with_version(self, version: str) -> Release:
        return replace(self, version=version)

    def find_job(self, name: str) -> ReleaseJob | None:
        for job in self.jobs:
            if job.name == name:
                return job
        return None

    def manifest(self) -> dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "commit_hash": self.commit_hash,
            "jobs": [{"name": j.name, "fingerprint": j.fingerprint} for j in self.jobs],
            "packages": [{"name": p.name, "fingerprint": p.fingerprint} for p in self.packages],
        }


def fingerprint_dir(path: Path) -> str:
    """SHA1 over relative file names and contents, in sorted order."""
    digest = hashlib.sha1()
    for file in sorted(p for p in path.rglob("*") if p.is_file()):
        digest.update(file.relative_to(path).as_posix().encode())
        digest.update(b"\0")
        digest.update(file.read_bytes())
    return digest.hexdigest()
