"""Director task and lock commands."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import typer

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok

from ..chain import CmdResult
from ..options import IdOpts, NoOptions, TaskOpts, TasksOpts
from ._helpers import parse_task_id, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Director, Task

    from ..context import CommandContext


def task(
    ctx: typer.Context,
    task_id: int | None = typer.Argument(None, help="Task ID (latest task if omitted)"),
    event: bool = typer.Option(False, "--event", help="Show event output (default)"),
    cpi: bool = typer.Option(False, "--cpi", help="Show CPI output"),
    debug: bool = typer.Option(False, "--debug", help="Show debug output"),
    result: bool = typer.Option(False, "--result", help="Show result output"),
) -> None:
    """Show a task's state and output."""
    output = "result" if result else "debug" if debug else "cpi" if cpi else "event"
    record(ctx, "task", TaskOpts(task_id=task_id, output=output))


def tasks(
    ctx: typer.Context,
    recent: int | None = typer.Option(None, "--recent", "-r", help="Number of recent tasks"),
    all_: bool = typer.Option(False, "--all", "-a", help="Include all task types"),
) -> None:
    """List running or recent tasks."""
    record(ctx, "tasks", TasksOpts(recent=recent, include_all=all_))


def cancel_task(ctx: typer.Context, task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Cancel a task at its next checkpoint."""
    record(ctx, "cancel-task", IdOpts(task_id))


def locks(ctx: typer.Context) -> None:
    """List current locks."""
    record(ctx, "locks")


def _started(task: Task) -> str:
    if not task.started_at:
        return "-"
    return time.strftime("%a %b %d %H:%M:%S UTC %Y", time.gmtime(task.started_at))


def _task_rows(items: list[Task]) -> list[tuple[str, ...]]:
    return [
        (str(t.id), t.state, _started(t), t.user, t.deployment, t.description, t.result)
        for t in items
    ]


def run_task(cx: CommandContext, opts: TaskOpts, director: Director) -> CmdResult:
    task_id = opts.task_id
    if task_id is None:
        latest = director.tasks(recent=1, include_all=True, deployment=cx.options.deployment)
        if isinstance(latest, Err):
            return latest
        if not latest.value:
            return Err(UsageError("No tasks found", hint="Pass a task ID"))
        task_id = latest.value[0].id

    found = director.task(task_id)
    if isinstance(found, Err):
        return found
    output = director.task_output(task_id, opts.output)
    if isinstance(output, Err):
        return output

    t = found.value
    cx.console.header(f"Task {t.id} | {t.state} | {t.description}")
    if output.value:
        cx.console.block(output.value)
    return Ok(None)


def run_tasks(cx: CommandContext, opts: TasksOpts, director: Director) -> CmdResult:
    found = director.tasks(
        recent=opts.recent, include_all=opts.include_all, deployment=cx.options.deployment
    )
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Recent tasks" if opts.recent else "Running tasks",
        ("ID", "State", "Started At", "User", "Deployment", "Description", "Result"),
        _task_rows(found.value),
        noun="tasks",
    )
    return Ok(None)


def run_cancel_task(cx: CommandContext, opts: IdOpts, director: Director) -> CmdResult:
    task_id = parse_task_id(opts.value)
    if isinstance(task_id, Err):
        return task_id
    cancelled = director.cancel_task(task_id.value)
    if isinstance(cancelled, Err):
        return cancelled
    cx.console.success(f"Task {task_id.value} is being cancelled")
    return Ok(None)


def run_locks(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    found = director.locks()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Locks",
        ("Type", "Resource", "Expires at"),
        ((lock.type, lock.resource, lock.expires_at) for lock in found.value),
        noun="locks",
    )
    return Ok(None)
