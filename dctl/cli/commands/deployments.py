"""Deployment manifest commands: deployments, manifest, deploy, delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.errors import CommandError, DeploymentError
from dctl.core.result import Err, Ok, Result
from dctl.manifest import (
    Variables,
    manifest_name,
    render_manifest,
    vars_from_env,
    vars_from_flags,
    vars_from_yaml,
)

from ..chain import CmdResult
from ..options import DeployOpts, FileArg, ForceOpts, ManifestOpts, NoOptions
from ._helpers import confirm, fs_of, record, show_table

if TYPE_CHECKING:
    from dctl.director.api import Deployment, Director

    from ..chain import DirectorAndDeployment
    from ..context import CommandContext


_VAR_HELP = "Set variable (name=value)"
_VARS_FILE_HELP = "Load variables from a YAML file"
_VARS_ENV_HELP = "Load variables from environment variables with this prefix"


def _manifest_opts(
    ctx: typer.Context,
    manifest: str,
    var: list[str] | None,
    vars_file: list[str] | None,
    vars_env: list[str] | None,
    var_errs: bool,
) -> ManifestOpts:
    fs = fs_of(ctx)
    return ManifestOpts(
        manifest=FileArg(fs, manifest),
        vars=tuple(var or ()),
        vars_files=tuple(FileArg(fs, p) for p in vars_file or ()),
        vars_env=tuple(vars_env or ()),
        var_errs=var_errs,
    )


def build_manifest(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Manifest file"),
    var: list[str] | None = typer.Option(None, "--var", "-v", help=_VAR_HELP),
    vars_file: list[str] | None = typer.Option(None, "--vars-file", "-l", help=_VARS_FILE_HELP),
    vars_env: list[str] | None = typer.Option(None, "--vars-env", help=_VARS_ENV_HELP),
    var_errs: bool = typer.Option(False, "--var-errs", help="Fail on undefined variables"),
) -> None:
    """Interpolate variables into a manifest and print it."""
    record(ctx, "build-manifest", _manifest_opts(ctx, manifest, var, vars_file, vars_env, var_errs))


def deployments(ctx: typer.Context) -> None:
    """List deployments."""
    record(ctx, "deployments")


def manifest(ctx: typer.Context) -> None:
    """Show the deployment's manifest."""
    record(ctx, "manifest")


def delete_deployment(
    ctx: typer.Context, force: bool = typer.Option(False, "--force", help="Ignore errors")
) -> None:
    """Delete the deployment."""
    record(ctx, "delete-deployment", ForceOpts(force=force))


def deploy(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Manifest file"),
    var: list[str] | None = typer.Option(None, "--var", "-v", help=_VAR_HELP),
    vars_file: list[str] | None = typer.Option(None, "--vars-file", "-l", help=_VARS_FILE_HELP),
    vars_env: list[str] | None = typer.Option(None, "--vars-env", help=_VARS_ENV_HELP),
    var_errs: bool = typer.Option(False, "--var-errs", help="Fail on undefined variables"),
    recreate: bool = typer.Option(False, "--recreate", help="Recreate all VMs"),
    fix: bool = typer.Option(False, "--fix", help="Recreate unresponsive instances"),
    skip_drain: bool = typer.Option(False, "--skip-drain", help="Skip running drain scripts"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Render without changing anything"),
) -> None:
    """Update the deployment from a manifest."""
    opts = DeployOpts(
        manifest=_manifest_opts(ctx, manifest, var, vars_file, vars_env, var_errs),
        recreate=recreate,
        fix=fix,
        skip_drain=skip_drain,
        dry_run=dry_run,
    )
    record(ctx, "deploy", opts)


def _render(opts: ManifestOpts) -> Result[str, CommandError]:
    variables: Variables = vars_from_env(opts.vars_env)
    for file_arg in opts.vars_files:
        content = file_arg.read_bytes()
        if isinstance(content, Err):
            return content
        loaded = vars_from_yaml(content.value, file_arg.path)
        if isinstance(loaded, Err):
            return loaded
        variables.update(loaded.value)

    flags = vars_from_flags(opts.vars)
    if isinstance(flags, Err):
        return flags
    variables.update(flags.value)

    content = opts.manifest.read_bytes()
    if isinstance(content, Err):
        return content
    rendered = render_manifest(
        content.value, variables, source=opts.manifest.path, strict=opts.var_errs
    )
    if isinstance(rendered, Err):
        return rendered
    return Ok(rendered.value)


def run_build_manifest(cx: CommandContext, opts: ManifestOpts) -> CmdResult:
    rendered = _render(opts)
    if isinstance(rendered, Err):
        return rendered
    cx.console.block(rendered.value)
    return Ok(None)


def run_deployments(cx: CommandContext, _opts: NoOptions, director: Director) -> CmdResult:
    found = director.deployments()
    if isinstance(found, Err):
        return found
    show_table(
        cx.console,
        "Deployments",
        ("Name", "Release(s)", "Stemcell(s)", "Cloud Config"),
        (
            (d.name, ", ".join(d.releases), ", ".join(d.stemcells), d.cloud_config)
            for d in sorted(found.value, key=lambda d: d.name)
        ),
        noun="deployments",
    )
    return Ok(None)


def run_manifest(cx: CommandContext, _opts: NoOptions, deployment: Deployment) -> CmdResult:
    content = deployment.manifest()
    if isinstance(content, Err):
        return content
    cx.console.block(content.value)
    return Ok(None)


def run_delete_deployment(cx: CommandContext, opts: ForceOpts, deployment: Deployment) -> CmdResult:
    cx.console.info(f"Using deployment '{deployment.name}'")
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed
    deleted = deployment.delete(opts.force)
    if isinstance(deleted, Err):
        return deleted
    cx.console.success(f"Deleted deployment '{deployment.name}'")
    return Ok(None)


def run_deploy(cx: CommandContext, opts: DeployOpts, handles: DirectorAndDeployment) -> CmdResult:
    rendered = _render(opts.manifest)
    if isinstance(rendered, Err):
        return rendered

    deployment = handles.deployment
    name = manifest_name(rendered.value)
    if name is not None and name != deployment.name:
        return Err(
            DeploymentError(
                f"Expected manifest to specify deployment name '{deployment.name}' but was '{name}'",
                name=deployment.name,
            )
        )

    cx.console.info(f"Using deployment '{deployment.name}' on {handles.director.url}")
    confirmed = confirm(cx.console)
    if isinstance(confirmed, Err):
        return confirmed

    updated = deployment.update(
        rendered.value.encode("utf-8"),
        recreate=opts.recreate,
        fix=opts.fix,
        skip_drain=opts.skip_drain,
        dry_run=opts.dry_run,
    )
    if isinstance(updated, Err):
        return updated
    cx.console.success(f"Deployed '{deployment.name}'" + (" (dry run)" if opts.dry_run else ""))
    return Ok(None)
