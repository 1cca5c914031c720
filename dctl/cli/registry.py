"""Command registry.

Maps each command name to what it needs resolved before its body runs and
to the wiring that composes the resolution chain around that body. Building
the registry has no side effects; binding a command to one invocation's
chain and options yields a ``CommandEntry`` whose ``run`` does the work.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from dctl.core.errors import UsageError
from dctl.core.result import Err, Ok, Result

from .chain import Chain, CmdResult, DirectorAndDeployment, ReleaseProviders, Run, SessionMode
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
from .context import CommandContext

if TYPE_CHECKING:
    from pathlib import Path

    from dctl.core.config import Config
    from dctl.director.api import Deployment, Director
    from dctl.release.blobs import BlobsDir
    from dctl.release.dir import ReleaseDir

    from .context import Deps
    from .session import SessionProtocol

__all__ = [
    "CommandEntry",
    "CommandSpec",
    "Registry",
    "Requires",
    "Wire",
    "build_registry",
]


class Requires(Enum):
    """Dependencies a command needs resolved before its body runs."""

    NONE = auto()
    GLOBAL = auto()
    CONFIG = auto()
    SESSION = auto()
    DIRECTOR = auto()
    DEPLOYMENT = auto()
    DIRECTOR_AND_DEPLOYMENT = auto()
    PROVIDERS = auto()
    PROVIDERS_AND_DIRECTOR = auto()


type Wire = Callable[[Chain, CommandContext, Any, Sequence[str]], CmdResult]


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    requires: Requires
    wire: Wire


@dataclass(frozen=True, slots=True)
class CommandEntry:
    """A command bound to one invocation, ready to run."""

    name: str
    requires: Requires
    options: object
    run: Run


class Registry:
    def __init__(self, deps: Deps, specs: Sequence[CommandSpec]) -> None:
        self._deps = deps
        self._specs = {spec.name: spec for spec in specs}

    def names(self) -> list[str]:
        return sorted(self._specs)

    def spec(self, name: str) -> CommandSpec | None:
        return self._specs.get(name)

    def bind(
        self, name: str, chain: Chain, options: object, extra_args: Sequence[str]
    ) -> Result[CommandEntry, UsageError]:
        spec = self._specs.get(name)
        if spec is None:
            return Err(UsageError(f"Unknown command '{name}'"))
        cx = CommandContext(self._deps, chain.options)
        args = tuple(extra_args)
        return Ok(
            CommandEntry(
                name=name,
                requires=spec.requires,
                options=options,
                run=lambda: spec.wire(chain, cx, options, args),
            )
        )


# -- wiring per requirement kind ---------------------------------------------


def _none() -> Wire:
    def wire(chain: Chain, _cx: CommandContext, _opts: Any, extra: Sequence[str]) -> CmdResult:
        return chain.reject_extra_args(lambda: Ok(None))(extra)

    return wire


def _global(body: Callable[[CommandContext, Any], CmdResult]) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        return chain.reject_extra_args(chain.global_opts(lambda: body(cx, opts)))(extra)

    return wire


def _config(body: Callable[[CommandContext, Any, Config], CmdResult]) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        return chain.reject_extra_args(chain.config(lambda config: body(cx, opts, config)))(extra)

    return wire


def _session(
    body: Callable[[CommandContext, Any, SessionProtocol, Config], CmdResult], mode: SessionMode
) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        run = chain.session(lambda session, config: body(cx, opts, session, config), mode=mode)
        return chain.reject_extra_args(run)(extra)

    return wire


def _director(body: Callable[[CommandContext, Any, Director], CmdResult]) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        run = chain.director(lambda director: body(cx, opts, director))
        return chain.reject_extra_args(run)(extra)

    return wire


def _deployment(
    body: Callable[[CommandContext, Any, Deployment], CmdResult], *, gate: bool = True
) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        run = chain.deployment(lambda deployment: body(cx, opts, deployment))
        if not gate:
            return run()
        return chain.reject_extra_args(run)(extra)

    return wire


def _director_and_deployment(
    body: Callable[[CommandContext, Any, DirectorAndDeployment], CmdResult],
) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        run = chain.director_and_deployment(lambda handles: body(cx, opts, handles))
        return chain.reject_extra_args(run)(extra)

    return wire


def _release_dir(body: Callable[[CommandContext, Any, ReleaseDir], CmdResult]) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        with_dir = chain.release_dir(lambda release: body(cx, opts, release))
        return chain.reject_extra_args_with_dir(with_dir)(extra, opts.dir)

    return wire


def _blobs_dir(body: Callable[[CommandContext, Any, BlobsDir], CmdResult]) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        with_dir = chain.blobs_dir(lambda blobs_dir: body(cx, opts, blobs_dir))
        return chain.reject_extra_args_with_dir(with_dir)(extra, opts.dir)

    return wire


def _providers_and_director(
    body: Callable[[CommandContext, Any, Path, ReleaseProviders, Director], CmdResult],
) -> Wire:
    def wire(chain: Chain, cx: CommandContext, opts: Any, extra: Sequence[str]) -> CmdResult:
        def with_dir(root: Path) -> CmdResult:
            return chain.providers_and_director(
                lambda providers, director: body(cx, opts, root, providers, director)
            )()

        return chain.reject_extra_args_with_dir(with_dir)(extra, opts.dir)

    return wire


def _specs() -> list[CommandSpec]:
    R = Requires
    specs = [
        CommandSpec("version", R.NONE, _none()),
        CommandSpec("build-manifest", R.GLOBAL, _global(deployments.run_build_manifest)),
        # config and session
        CommandSpec("environments", R.CONFIG, _config(environment.run_environments)),
        CommandSpec(
            "environment",
            R.SESSION,
            _session(environment.run_environment, SessionMode.ALIAS_ONLY),
        ),
        CommandSpec(
            "log-in", R.SESSION, _session(environment.run_log_in, SessionMode.AUTHENTICATED)
        ),
        CommandSpec(
            "log-out", R.SESSION, _session(environment.run_log_out, SessionMode.AUTHENTICATED)
        ),
        CommandSpec(
            "deployment",
            R.SESSION,
            _session(environment.run_deployment, SessionMode.ENVIRONMENT_ONLY),
        ),
        # director
        CommandSpec("task", R.DIRECTOR, _director(tasks.run_task)),
        CommandSpec("tasks", R.DIRECTOR, _director(tasks.run_tasks)),
        CommandSpec("cancel-task", R.DIRECTOR, _director(tasks.run_cancel_task)),
        CommandSpec("locks", R.DIRECTOR, _director(tasks.run_locks)),
        CommandSpec("deployments", R.DIRECTOR, _director(deployments.run_deployments)),
        CommandSpec("releases", R.DIRECTOR, _director(releases.run_releases)),
        CommandSpec("delete-release", R.DIRECTOR, _director(releases.run_delete_release)),
        CommandSpec("inspect-release", R.DIRECTOR, _director(releases.run_inspect_release)),
        CommandSpec("stemcells", R.DIRECTOR, _director(stemcells.run_stemcells)),
        CommandSpec("upload-stemcell", R.DIRECTOR, _director(stemcells.run_upload_stemcell)),
        CommandSpec("delete-stemcell", R.DIRECTOR, _director(stemcells.run_delete_stemcell)),
        CommandSpec("disks", R.DIRECTOR, _director(maintenance.run_disks)),
        CommandSpec("delete-disk", R.DIRECTOR, _director(maintenance.run_delete_disk)),
        CommandSpec("vm-resurrection", R.DIRECTOR, _director(maintenance.run_vm_resurrection)),
        CommandSpec("clean-up", R.DIRECTOR, _director(maintenance.run_clean_up)),
        CommandSpec("cloud-config", R.DIRECTOR, _director(configs.run_cloud_config)),
        CommandSpec(
            "update-cloud-config", R.DIRECTOR, _director(configs.run_update_cloud_config)
        ),
        CommandSpec("runtime-config", R.DIRECTOR, _director(configs.run_runtime_config)),
        CommandSpec(
            "update-runtime-config", R.DIRECTOR, _director(configs.run_update_runtime_config)
        ),
        CommandSpec("vms", R.DIRECTOR, _director(instances.run_vms)),
        # deployment
        CommandSpec(
            "delete-deployment", R.DEPLOYMENT, _deployment(deployments.run_delete_deployment)
        ),
        CommandSpec("manifest", R.DEPLOYMENT, _deployment(deployments.run_manifest)),
        CommandSpec("errands", R.DEPLOYMENT, _deployment(errands.run_errands)),
        CommandSpec("snapshots", R.DEPLOYMENT, _deployment(snapshots.run_snapshots)),
        CommandSpec("take-snapshot", R.DEPLOYMENT, _deployment(snapshots.run_take_snapshot)),
        CommandSpec("delete-snapshot", R.DEPLOYMENT, _deployment(snapshots.run_delete_snapshot)),
        CommandSpec(
            "delete-snapshots", R.DEPLOYMENT, _deployment(snapshots.run_delete_snapshots)
        ),
        CommandSpec("instances", R.DEPLOYMENT, _deployment(instances.run_instances)),
        CommandSpec("cloud-check", R.DEPLOYMENT, _deployment(instances.run_cloud_check)),
        CommandSpec("ssh", R.DEPLOYMENT, _deployment(ssh_cmds.run_ssh, gate=False)),
        CommandSpec("scp", R.DEPLOYMENT, _deployment(ssh_cmds.run_scp)),
        # director and deployment
        CommandSpec(
            "run-errand", R.DIRECTOR_AND_DEPLOYMENT, _director_and_deployment(errands.run_run_errand)
        ),
        CommandSpec("logs", R.DIRECTOR_AND_DEPLOYMENT, _director_and_deployment(instances.run_logs)),
        CommandSpec(
            "export-release",
            R.DIRECTOR_AND_DEPLOYMENT,
            _director_and_deployment(releases.run_export_release),
        ),
        CommandSpec(
            "deploy", R.DIRECTOR_AND_DEPLOYMENT, _director_and_deployment(deployments.run_deploy)
        ),
        # release providers
        CommandSpec(
            "upload-release",
            R.PROVIDERS_AND_DIRECTOR,
            _providers_and_director(releases.run_upload_release),
        ),
        CommandSpec("init-release", R.PROVIDERS, _release_dir(release_dir.run_init_release)),
        CommandSpec("reset-release", R.PROVIDERS, _release_dir(release_dir.run_reset_release)),
        CommandSpec("generate-job", R.PROVIDERS, _release_dir(release_dir.run_generate_job)),
        CommandSpec(
            "generate-package", R.PROVIDERS, _release_dir(release_dir.run_generate_package)
        ),
        CommandSpec(
            "finalize-release", R.PROVIDERS, _release_dir(release_dir.run_finalize_release)
        ),
        CommandSpec("create-release", R.PROVIDERS, _release_dir(release_dir.run_create_release)),
        CommandSpec("blobs", R.PROVIDERS, _blobs_dir(blobs.run_blobs)),
        CommandSpec("add-blob", R.PROVIDERS, _blobs_dir(blobs.run_add_blob)),
        CommandSpec("remove-blob", R.PROVIDERS, _blobs_dir(blobs.run_remove_blob)),
        CommandSpec("upload-blobs", R.PROVIDERS, _blobs_dir(blobs.run_upload_blobs)),
        CommandSpec("sync-blobs", R.PROVIDERS, _blobs_dir(blobs.run_sync_blobs)),
    ]
    for state in ("start", "stop", "restart", "recreate"):
        specs.append(
            CommandSpec(state, R.DEPLOYMENT, _deployment(instances.change_state_body(state)))
        )
    return specs


def build_registry(deps: Deps) -> Registry:
    return Registry(deps, _specs())
