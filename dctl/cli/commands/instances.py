"""Instance commands: vms, instances, state changes, cloud-check, logs."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import typer

from dctl.core.errors import CommandError, UsageError
from dctl.core.result import Err, Ok, Result

from ..chain import CmdResult
from ..options import ChangeStateOpts, CloudCheckOpts, DirOrCwdArg, LogsOpts, NoOptions, parse_slug
from ._helpers import confirm, fs_of, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Deployment, Director, Problem, VmInfo

    from ..chain import DirectorAndDeployment
    from ..context import CommandContext

_SLUG_HELP = "Instance group or group/id"


def vms(ctx: typer.Context) -> None:
    """List VMs of the deployment, or of every deployment."""
    record(ctx, "vms")


def instances(ctx: typer.Context) -> None:
    """List instances of the deployment."""
    record(ctx, "instances")


def _state_command(name: str, doc: str) -> Callable[..., None]:
    def command(
        ctx: typer.Context,
        slug: str | None = typer.Argument(None, help=_SLUG_HELP),
        force: bool = typer.Option(False, "--force", help="No-op for the director, kept for scripts"),
        skip_drain: bool = typer.Option(False, "--skip-drain", help="Skip running drain scripts"),
    ) -> None:
        record(ctx, name, ChangeStateOpts(slug=slug, force=force, skip_drain=skip_drain))

    command.__doc__ = doc
    command.__name__ = name.replace("-", "_")
    return command


start = _state_command("start", "Start instances.")
stop = _state_command("stop", "Stop instances.")
restart = _state_command("restart", "Restart instances.")
recreate = _state_command("recreate", "Recreate instances.")


def cloud_check(
    ctx: typer.Context,
    auto: bool = typer.Option(False, "--auto", "-a", help="Resolve problems automatically"),
    report: bool = typer.Option(False, "--report", "-r", help="Only list problems"),
) -> None:
    """Scan for and resolve cloud problems."""
    record(ctx, "cloud-check", CloudCheckOpts(auto=auto, report=report))


def logs(
    ctx: typer.Context,
    slug: str | None = typer.Argument(None, help=_SLUG_HELP),
    job: list[str] | None = typer.Option(None, "--job", help="Limit to these jobs"),
    agent: bool = typer.Option(False, "--agent", help="Include agent logs"),
    dir: str | None = typer.Option(None, "--dir", help="Destination directory"),
) -> None:
    """Fetch instance logs as a tarball."""
    opts = LogsOpts(logs_dir=DirOrCwdArg(fs_of(ctx), dir), slug=slug, jobs=tuple(job or ()), agent=agent)
    record(ctx, "logs", opts)


def _vm_rows(items: list[VmInfo]) -> list[tuple[str, ...]]:
    return [
        (v.instance, v.process_state, v.az, ", ".join(v.ips), v.vm_cid, v.vm_type)
        for v in sorted(items, key=lambda v: v.instance)
    ]


_VM_HEADERS = ("Instance", "Process State", "AZ", "IPs", "VM CID", "VM Type")


def _show_vms(cx: CommandContext, deployment: Deployment) -> CmdResult:
    found = deployment.vm_infos()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console, f"Deployment '{deployment.name}'", _VM_HEADERS, _vm_rows(found.value), noun="vms"
    )
    return Ok(None)


def run_vms(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    names: list[str]
    if cx.options.deployment:
        names = [cx.options.deployment]
    else:
        summaries = director.deployments()
        if isinstance(summaries, Err):
            return summaries
        names = [d.name for d in summaries.value]

    for name in names:
        deployment = director.find_deployment(name)
        if isinstance(deployment, Err):
            return deployment
        shown = _show_vms(cx, deployment.value)
        if isinstance(shown, Err):
            return shown
    return Ok(None)


def run_instances(cx: CommandContext, _opts: NoOptions, deployment: Deployment) -> CmdResult:
    found = deployment.instance_infos()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        f"Deployment '{deployment.name}'",
        ("Instance", "Process State", "AZ", "IPs"),
        (row[:4] for row in _vm_rows(found.value)),
        noun="instances",
    )
    return Ok(None)


_STATES = {
    "start": "started",
    "stop": "stopped",
    "restart": "restart",
    "recreate": "recreate",
}


def change_state_body(
    command: str,
) -> Callable[[CommandContext, ChangeStateOpts, Deployment], CmdResult]:
    state = _STATES[command]

    def run(cx: CommandContext, opts: ChangeStateOpts, deployment: Deployment) -> CmdResult:
        slug = parse_slug(opts.slug)
        cx.console.info(f"Using deployment '{deployment.name}'")
        confirmed = confirm(cx.console)
        if isinstance(confirmed, Err):
            return confirmed
        changed = deployment.change_state(state, slug, skip_drain=opts.skip_drain, force=opts.force)
        if isinstance(changed, Err):
            return changed
        target = str(slug) if slug else "all instances"
        cx.console.success(f"{command.capitalize()} {target}: done")
        return Ok(None)

    return run


def _problem_rows(problems: list[Problem]) -> list[tuple[str, ...]]:
    return [(str(p.id), p.type, p.description) for p in problems]


def _choose(cx: CommandContext, problem: Problem) -> Result[str, CommandError]:
    cx.console.header(f"Problem {problem.id}: {problem.description}")
    for i, (_, label) in enumerate(problem.resolutions, start=1):
        cx.console.print(f"  {i}: {label}")
    answer = cx.console.ask_text("Resolution")
    if isinstance(answer, Err):
        return Err(UsageError(answer.error.message))
    choice = answer.value.strip()
    if not choice.isdigit() or not 1 <= int(choice) <= len(problem.resolutions):
        return Err(UsageError(f"Expected a resolution between 1 and {len(problem.resolutions)}"))
    return Ok(problem.resolutions[int(choice) - 1][0])


def run_cloud_check(cx: CommandContext, opts: CloudCheckOpts, deployment: Deployment) -> CmdResult:
    found = deployment.problems()
    if isinstance(found, Err):
        return found
    problems = found.value

    show_table(
        cx.console, "Problems", ("#", "Type", "Description"), _problem_rows(problems), noun="problems"
    )
    if opts.report or not problems:
        return Ok(None)

    answers: dict[int, str] = {}
    for problem in problems:
        if not problem.resolutions:
            continue
        if opts.auto or not cx.console.is_interactive():
            answers[problem.id] = problem.resolutions[0][0]
            continue
        chosen = _choose(cx, problem)
        if isinstance(chosen, Err):
            return chosen
        answers[problem.id] = chosen.value

    resolved = deployment.resolve_problems(answers)
    if isinstance(resolved, Err):
        return resolved
    cx.console.success(f"Resolved {len(answers)} problems")
    return Ok(None)


def run_logs(cx: CommandContext, opts: LogsOpts, handles: DirectorAndDeployment) -> CmdResult:
    dest_dir = opts.logs_dir.resolve()
    if isinstance(dest_dir, Err):
        return dest_dir

    deployment = handles.deployment
    slug = parse_slug(opts.slug)
    blob = deployment.fetch_logs(slug, opts.jobs, opts.agent)
    if isinstance(blob, Err):
        return blob

    stamp = time.strftime("%Y%m%d-%H%M%S", time.gmtime())
    target = str(slug).replace("/", ".") if slug else deployment.name
    dest = dest_dir.value / f"{target}-{stamp}.tgz"
    downloaded = handles.director.download_resource(blob.value.blobstore_id, dest)
    if isinstance(downloaded, Err):
        return downloaded
    cx.console.success(f"Downloaded logs to {dest}")
    return Ok(None)
