"""ssh and scp into deployment instances."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import typer

from dctl.core.errors import CommandError, SshError
from dctl.core.result import Err, Result
from dctl.ssh import ScpArgs, SshKey, generate_key, new_username

from ..chain import CmdResult
from ..options import ScpOpts, SshOpts, parse_slug
from ._helpers import record

if TYPE_CHECKING:
    from dctl.director.api import Deployment, InstanceSlug, SshHost

    from ..context import CommandContext

logger = logging.getLogger(__name__)

_STRICT_HELP = "Verify host keys returned by the director"


def ssh(
    ctx: typer.Context,
    slug: str | None = typer.Argument(None, help="Instance group or group/id"),
    command: str | None = typer.Option(None, "--command", "-c", help="Command to run"),
    strict_host_keys: bool = typer.Option(
        True, "--strict-host-key-checking/--no-strict-host-key-checking", help=_STRICT_HELP
    ),
) -> None:
    """Open a shell on instances, or run a command on them.

    Arguments after the instance slug are passed to the remote command.
    """
    words = tuple(shlex.split(command)) if command else tuple(ctx.args)
    record(ctx, "ssh", SshOpts(slug=slug, command=words, strict_host_keys=strict_host_keys))


def scp(
    ctx: typer.Context,
    src: str = typer.Argument(..., help="Local path or group[/id]:path"),
    dst: str = typer.Argument(..., help="Local path or group[/id]:path"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Copy directories"),
    strict_host_keys: bool = typer.Option(
        True, "--strict-host-key-checking/--no-strict-host-key-checking", help=_STRICT_HELP
    ),
) -> None:
    """Copy files to or from instances."""
    record(
        ctx,
        "scp",
        ScpOpts(src=src, dst=dst, recursive=recursive, strict_host_keys=strict_host_keys),
    )


def _remove_key(cx: CommandContext, key: SshKey) -> None:
    removed = cx.fs.remove_all(key.work_dir)
    if isinstance(removed, Err):
        logger.debug("removing ssh key dir: %s", removed.error.message)


def _with_ssh_access(
    cx: CommandContext,
    deployment: Deployment,
    slug: InstanceSlug | None,
    body: Callable[[Sequence[SshHost], str, SshKey], Result[None, SshError]],
) -> CmdResult:
    """Install a throwaway user on ``slug``, run ``body``, then remove the user."""
    key = generate_key(cx.fs)
    if isinstance(key, Err):
        return key

    username = new_username()
    hosts = deployment.setup_ssh(slug, username, key.value.public_key)
    if isinstance(hosts, Err):
        _remove_key(cx, key.value)
        return hosts

    result: Result[None, CommandError] = body(hosts.value, username, key.value)

    cleaned = deployment.cleanup_ssh(slug, username)
    _remove_key(cx, key.value)
    if isinstance(cleaned, Err):
        if isinstance(result, Err):
            logger.warning("cleaning up ssh user %s: %s", username, cleaned.error.message)
            return result
        return cleaned
    return result


def run_ssh(cx: CommandContext, opts: SshOpts, deployment: Deployment) -> CmdResult:
    slug = parse_slug(opts.slug)

    def body(hosts: Sequence[SshHost], username: str, key: SshKey) -> Result[None, SshError]:
        return cx.deps.ssh.ssh(
            hosts, username, key, opts.command, strict_host_keys=opts.strict_host_keys
        )

    return _with_ssh_access(cx, deployment, slug, body)


def run_scp(cx: CommandContext, opts: ScpOpts, deployment: Deployment) -> CmdResult:
    args = ScpArgs.parse(opts.src, opts.dst)
    if isinstance(args, Err):
        return args

    def body(hosts: Sequence[SshHost], username: str, key: SshKey) -> Result[None, SshError]:
        return cx.deps.ssh.scp(
            hosts,
            username,
            key,
            args.value,
            recursive=opts.recursive,
            strict_host_keys=opts.strict_host_keys,
        )

    return _with_ssh_access(cx, deployment, args.value.slug, body)
