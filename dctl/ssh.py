"""ssh and scp into deployment instances.

The director installs a throwaway user with a generated public key on the
target instances (``Deployment.setup_ssh``); this module generates that key,
writes the hosts' public keys to a private known_hosts file and runs the
system ``ssh``/``scp`` binaries against each host.
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dctl.core.errors import SshError
from dctl.core.result import Err, Ok, Result
from dctl.director.api import InstanceSlug, SshHost
from dctl.platform.process import ProcessError, run, run_attached

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem

__all__ = ["ScpArgs", "SshKey", "SshRunner", "generate_key", "new_username"]

logger = logging.getLogger(__name__)

# group[/id]:path, but not a Windows drive letter
_REMOTE_RE = re.compile(r"^(?P<slug>[A-Za-z0-9_.-]{2,}(?:/[A-Za-z0-9_.-]+)?):(?P<path>.*)$")

type Runner = Callable[[list[str]], Result[object, ProcessError]]


def _attached(cmd: list[str]) -> Result[object, ProcessError]:
    return run_attached(cmd)


def new_username() -> str:
    return f"dctl_{secrets.token_hex(4)}"


@dataclass(frozen=True, slots=True)
class SshKey:
    private_key: Path
    public_key: str

    @property
    def work_dir(self) -> Path:
        return self.private_key.parent


def generate_key(fs: FileSystem) -> Result[SshKey, SshError]:
    """Generate an RSA key pair in a fresh temp dir."""
    work_dir = fs.temp_dir(prefix="dctl-ssh-")
    if isinstance(work_dir, Err):
        return Err(SshError(work_dir.error.message))

    key = work_dir.value / "id_rsa"
    generated = run(["ssh-keygen", "-t", "rsa", "-b", "2048", "-N", "", "-q", "-f", str(key)])
    if isinstance(generated, Err):
        return Err(SshError(f"Generating ssh key: {generated.error}", generated.error.returncode))

    public = fs.read_text(key.with_suffix(".pub"))
    if isinstance(public, Err):
        return Err(SshError(public.error.message))
    return Ok(SshKey(private_key=key, public_key=public.value.strip()))


@dataclass(frozen=True, slots=True)
class ScpArgs:
    """``scp`` source and destination, exactly one of them remote.

    A remote side is written ``group[/id]:path``.
    """

    slug: InstanceSlug
    src: str
    dst: str
    upload: bool

    @classmethod
    def parse(cls, src: str, dst: str) -> Result[ScpArgs, SshError]:
        remote_src = _REMOTE_RE.match(src)
        remote_dst = _REMOTE_RE.match(dst)
        if bool(remote_src) == bool(remote_dst):
            return Err(SshError("Expected exactly one of source and destination to be remote"))

        remote = remote_dst or remote_src
        assert remote is not None
        slug = InstanceSlug.parse(remote.group("slug"))
        path = remote.group("path")
        if remote_dst:
            return Ok(cls(slug=slug, src=src, dst=path, upload=True))
        return Ok(cls(slug=slug, src=path, dst=dst, upload=False))

    def for_target(self, target: str) -> list[str]:
        if self.upload:
            return [self.src, f"{target}:{self.dst}"]
        return [f"{target}:{self.src}", self.dst]


class SshRunner:
    """Runs ssh/scp against hosts returned by ``setup_ssh``."""

    def __init__(self, fs: FileSystem, runner: Runner = _attached) -> None:
        self._fs = fs
        self._runner = runner

    def _known_hosts(self, key: SshKey, hosts: Sequence[SshHost]) -> Result[Path, SshError]:
        path = key.work_dir / "known_hosts"
        lines = [f"{h.host} {h.host_public_key}" for h in hosts if h.host_public_key]
        written = self._fs.write_text(path, "\n".join(lines) + "\n" if lines else "", mode=0o600)
        if isinstance(written, Err):
            return Err(SshError(written.error.message))
        return Ok(path)

    def _options(self, key: SshKey, known_hosts: Path, strict: bool) -> list[str]:
        return [
            "-o", "PasswordAuthentication=no",
            "-o", "IdentitiesOnly=yes",
            "-o", "ServerAliveInterval=30",
            "-o", f"StrictHostKeyChecking={'yes' if strict else 'no'}",
            "-o", f"UserKnownHostsFile={known_hosts}",
            "-i", str(key.private_key),
        ]  # fmt: skip

    def _run_each(
        self, hosts: Sequence[SshHost], build: Callable[[SshHost], list[str]]
    ) -> Result[None, SshError]:
        if not hosts:
            return Err(SshError("Expected at least one instance to connect to"))

        for host in hosts:
            cmd = build(host)
            logger.debug("running %s for %s", cmd[0], host.instance)
            result = self._runner(cmd)
            if isinstance(result, Err):
                return Err(
                    SshError(
                        f"Running {cmd[0]} on {host.instance} ({host.host}): {result.error}",
                        result.error.returncode,
                    )
                )
        return Ok(None)

    def ssh(
        self,
        hosts: Sequence[SshHost],
        username: str,
        key: SshKey,
        command: Sequence[str],
        *,
        strict_host_keys: bool = True,
    ) -> Result[None, SshError]:
        """Open a shell on each host, or run ``command`` on each host."""
        known_hosts = self._known_hosts(key, hosts)
        if isinstance(known_hosts, Err):
            return known_hosts
        options = self._options(key, known_hosts.value, strict_host_keys)

        def build(host: SshHost) -> list[str]:
            tty = [] if command else ["-t"]
            return ["ssh", *tty, *options, f"{username}@{host.host}", *command]

        return self._run_each(hosts, build)

    def scp(
        self,
        hosts: Sequence[SshHost],
        username: str,
        key: SshKey,
        args: ScpArgs,
        *,
        recursive: bool = False,
        strict_host_keys: bool = True,
    ) -> Result[None, SshError]:
        known_hosts = self._known_hosts(key, hosts)
        if isinstance(known_hosts, Err):
            return known_hosts
        options = self._options(key, known_hosts.value, strict_host_keys)
        flags = ["-r"] if recursive else []

        def build(host: SshHost) -> list[str]:
            return ["scp", *flags, *options, *args.for_target(f"{username}@{host.host}")]

        return self._run_each(hosts, build)
