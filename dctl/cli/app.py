"""Typer surface of dctl.

Commands registered here only parse arguments; see ``dispatch.py`` for what
runs them.
"""

from __future__ import annotations

import typer

from dctl import __version__

from .commands import (
    blobs,
    configs,
    deployments,
    environment,
    errands,
    instances,
    maintenance,
    release_dir,
    releases,
    snapshots,
    ssh_cmds,
    stemcells,
    tasks,
)
from .commands._helpers import EXTRA_ARGS, PASSTHROUGH_ARGS, invocation, record
from .options import GlobalOptions

VERSION_MESSAGE = f"version {__version__}"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _show_version(ctx: typer.Context, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    invocation(ctx).message = VERSION_MESSAGE
    raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
    environment_: str | None = typer.Option(
        None, "--environment", "-e", envvar="DCTL_ENVIRONMENT", help="Director URL or alias"
    ),
    ca_cert: str | None = typer.Option(
        None, "--ca-cert", envvar="DCTL_CA_CERT", help="Director CA certificate path or PEM value"
    ),
    client: str | None = typer.Option(
        None, "--client", envvar="DCTL_CLIENT", help="Override username or client"
    ),
    client_secret: str | None = typer.Option(
        None, "--client-secret", envvar="DCTL_CLIENT_SECRET", help="Override password or secret"
    ),
    deployment: str | None = typer.Option(
        None, "--deployment", "-d", envvar="DCTL_DEPLOYMENT", help="Deployment name"
    ),
    config: str | None = typer.Option(
        None, "--config", envvar="DCTL_CONFIG", help="Config file path"
    ),
    tty: bool = typer.Option(False, "--tty", help="Force TTY-like output"),
    no_color: bool = typer.Option(False, "--no-color", help="Toggle off colored output"),
    json: bool = typer.Option(False, "--json", help="Output as JSON"),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", "-n", help="Don't ask for user input"
    ),
) -> None:
    inv = invocation(ctx)
    defaults = GlobalOptions()
    inv.options = GlobalOptions(
        environment=environment_,
        ca_cert=ca_cert,
        client=client,
        client_secret=client_secret,
        deployment=deployment,
        config_path=config or defaults.config_path,
        tty=tty,
        no_color=no_color,
        json=json,
        non_interactive=non_interactive,
    )


def version(ctx: typer.Context) -> None:
    """Show version."""
    record(ctx, "version")


# Commands
app.command("version", context_settings=EXTRA_ARGS)(version)
app.command("build-manifest", context_settings=EXTRA_ARGS)(deployments.build_manifest)

app.command("environments", context_settings=EXTRA_ARGS)(environment.environments)
app.command("environment", context_settings=EXTRA_ARGS)(environment.environment)
app.command("log-in", context_settings=EXTRA_ARGS)(environment.log_in)
app.command("log-out", context_settings=EXTRA_ARGS)(environment.log_out)
app.command("deployment", context_settings=EXTRA_ARGS)(environment.deployment)

app.command("task", context_settings=EXTRA_ARGS)(tasks.task)
app.command("tasks", context_settings=EXTRA_ARGS)(tasks.tasks)
app.command("cancel-task", context_settings=EXTRA_ARGS)(tasks.cancel_task)
app.command("locks", context_settings=EXTRA_ARGS)(tasks.locks)

app.command("deployments", context_settings=EXTRA_ARGS)(deployments.deployments)
app.command("manifest", context_settings=EXTRA_ARGS)(deployments.manifest)
app.command("deploy", context_settings=EXTRA_ARGS)(deployments.deploy)
app.command("delete-deployment", context_settings=EXTRA_ARGS)(deployments.delete_deployment)

app.command("releases", context_settings=EXTRA_ARGS)(releases.releases)
app.command("delete-release", context_settings=EXTRA_ARGS)(releases.delete_release)
app.command("inspect-release", context_settings=EXTRA_ARGS)(releases.inspect_release)
app.command("upload-release", context_settings=EXTRA_ARGS)(releases.upload_release)
app.command("export-release", context_settings=EXTRA_ARGS)(releases.export_release)

app.command("stemcells", context_settings=EXTRA_ARGS)(stemcells.stemcells)
app.command("upload-stemcell", context_settings=EXTRA_ARGS)(stemcells.upload_stemcell)
app.command("delete-stemcell", context_settings=EXTRA_ARGS)(stemcells.delete_stemcell)

app.command("cloud-config", context_settings=EXTRA_ARGS)(configs.cloud_config)
app.command("update-cloud-config", context_settings=EXTRA_ARGS)(configs.update_cloud_config)
app.command("runtime-config", context_settings=EXTRA_ARGS)(configs.runtime_config)
app.command("update-runtime-config", context_settings=EXTRA_ARGS)(configs.update_runtime_config)

app.command("disks", context_settings=EXTRA_ARGS)(maintenance.disks)
app.command("delete-disk", context_settings=EXTRA_ARGS)(maintenance.delete_disk)
app.command("vm-resurrection", context_settings=EXTRA_ARGS)(maintenance.vm_resurrection)
app.command("clean-up", context_settings=EXTRA_ARGS)(maintenance.clean_up)

app.command("vms", context_settings=EXTRA_ARGS)(instances.vms)
app.command("instances", context_settings=EXTRA_ARGS)(instances.instances)
app.command("start", context_settings=EXTRA_ARGS)(instances.start)
app.command("stop", context_settings=EXTRA_ARGS)(instances.stop)
app.command("restart", context_settings=EXTRA_ARGS)(instances.restart)
app.command("recreate", context_settings=EXTRA_ARGS)(instances.recreate)
app.command("cloud-check", context_settings=EXTRA_ARGS)(instances.cloud_check)
app.command("logs", context_settings=EXTRA_ARGS)(instances.logs)

app.command("errands", context_settings=EXTRA_ARGS)(errands.errands)
app.command("run-errand", context_settings=EXTRA_ARGS)(errands.run_errand)

app.command("snapshots", context_settings=EXTRA_ARGS)(snapshots.snapshots)
app.command("take-snapshot", context_settings=EXTRA_ARGS)(snapshots.take_snapshot)
app.command("delete-snapshot", context_settings=EXTRA_ARGS)(snapshots.delete_snapshot)
app.command("delete-snapshots", context_settings=EXTRA_ARGS)(snapshots.delete_snapshots)

app.command("ssh", context_settings=PASSTHROUGH_ARGS)(ssh_cmds.ssh)
app.command("scp", context_settings=EXTRA_ARGS)(ssh_cmds.scp)

app.command("init-release", context_settings=EXTRA_ARGS)(release_dir.init_release)
app.command("reset-release", context_settings=EXTRA_ARGS)(release_dir.reset_release)
app.command("generate-job", context_settings=EXTRA_ARGS)(release_dir.generate_job)
app.command("generate-package", context_settings=EXTRA_ARGS)(release_dir.generate_package)
app.command("finalize-release", context_settings=EXTRA_ARGS)(release_dir.finalize_release)
app.command("create-release", context_settings=EXTRA_ARGS)(release_dir.create_release)

app.command("blobs", context_settings=EXTRA_ARGS)(blobs.blobs)
app.command("add-blob", context_settings=EXTRA_ARGS)(blobs.add_blob)
app.command("remove-blob", context_settings=EXTRA_ARGS)(blobs.remove_blob)
app.command("upload-blobs", context_settings=EXTRA_ARGS)(blobs.upload_blobs)
app.command("sync-blobs", context_settings=EXTRA_ARGS)(blobs.sync_blobs)
