"""Environment, login and default-deployment commands.

These only touch the config file and (for ``environment``/``log-in``/
``deployment NAME``) the director's info endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from dctl.core.config import Config, Credentials, save_config
from dctl.core.errors import DeploymentError, SessionError
from dctl.core.result import Err, Ok, Result

from ..chain import CmdResult
from ..options import DeploymentOpts, EnvironmentOpts, LogInOpts, NoOptions
from ..session import read_ca_cert
from ._helpers import record, show_table

if TYPE_CHECKING:
    from ..context import CommandContext
    from ..session import SessionProtocol


# -- typer surface ------------------------------------------------------------


def environments(ctx: typer.Context) -> None:
    """List environments."""
    record(ctx, "environments")


def environment(
    ctx: typer.Context,
    url: str | None = typer.Argument(None, help="Director URL or alias"),
    alias: str | None = typer.Argument(None, help="Alias to save for URL"),
) -> None:
    """Show director info, or alias a director URL."""
    record(ctx, "environment", EnvironmentOpts(url=url, alias=alias))


def log_in(
    ctx: typer.Context,
    username: str | None = typer.Option(None, "--username", help="Username (prompted if omitted)"),
    password: str | None = typer.Option(None, "--password", help="Password (prompted if omitted)"),
) -> None:
    """Log in and store credentials for the environment."""
    record(ctx, "log-in", LogInOpts(username=username, password=password))


def log_out(ctx: typer.Context) -> None:
    """Forget stored credentials for the environment."""
    record(ctx, "log-out")


def deployment(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Deployment to make the default"),
) -> None:
    """Show or set the default deployment."""
    record(ctx, "deployment", DeploymentOpts(name=name))


# -- bodies -------------------------------------------------------------------


def _save(cx: CommandContext, config: Config) -> CmdResult:
    saved = save_config(config, cx.fs)
    if isinstance(saved, Err):
        return saved
    return Ok(None)


def _require_url(session: SessionProtocol) -> Result[str, SessionError]:
    url = session.environment()
    if not url:
        return Err(
            SessionError("Expected non-empty Director URL", hint="Pass --environment or set DCTL_ENVIRONMENT")
        )
    return Ok(url)


def run_environments(cx: CommandContext, _opts: NoOptions, config: Config) -> CmdResult:
    show_table(
        cx.console,
        "Environments",
        ("URL", "Alias"),
        ((e.url, e.alias or "") for e in config.environments()),
        noun="environments",
    )
    return Ok(None)


def run_environment(
    cx: CommandContext, opts: EnvironmentOpts, session: SessionProtocol, config: Config
) -> CmdResult:
    target = opts.url or cx.options.environment
    if not target:
        return Err(
            SessionError("Expected non-empty Director URL", hint="Pass URL or --environment")
        )
    url = config.resolve_environment(target)

    if opts.alias:
        ca_cert = read_ca_cert(cx.options.ca_cert, cx.fs)
        if isinstance(ca_cert, Err):
            return ca_cert
        config = config.set_environment(url, opts.alias, ca_cert.value or config.ca_cert(url))

    director = session.for_environment(url).anonymous_director()
    if isinstance(director, Err):
        return director
    info = director.value.info()
    if isinstance(info, Err):
        return info

    if opts.alias:
        saved = _save(cx, config)
        if isinstance(saved, Err):
            return saved

    i = info.value
    show_table(
        cx.console,
        f"Using environment '{url}'",
        ("Name", "UUID", "Version", "CPI", "User"),
        [(i.name, i.uuid, i.version, i.cpi or "", i.user or "(not logged in)")],
        noun="directors",
    )
    return Ok(None)


def run_log_in(
    cx: CommandContext, opts: LogInOpts, session: SessionProtocol, config: Config
) -> CmdResult:
    url = _require_url(session)
    if isinstance(url, Err):
        return url

    credentials = session.credentials()
    if not credentials.is_client:
        username = opts.username
        if not username:
            asked = cx.console.ask_text("Username")
            if isinstance(asked, Err):
                return Err(SessionError(asked.error.message))
            username = asked.value
        password = opts.password
        if not password:
            asked = cx.console.ask_password("Password")
            if isinstance(asked, Err):
                return Err(SessionError(asked.error.message))
            password = asked.value
        credentials = Credentials(username=username, password=password)

    director = session.login_director(credentials)
    if isinstance(director, Err):
        return director

    saved = _save(cx, config.set_credentials(url.value, credentials))
    if isinstance(saved, Err):
        return saved
    cx.console.success(f"Logged in to '{url.value}'")
    return Ok(None)


def run_log_out(
    cx: CommandContext, _opts: NoOptions, session: SessionProtocol, config: Config
) -> CmdResult:
    url = _require_url(session)
    if isinstance(url, Err):
        return url
    saved = _save(cx, config.unset_credentials(url.value))
    if isinstance(saved, Err):
        return saved
    cx.console.success(f"Logged out from '{url.value}'")
    return Ok(None)


def run_deployment(
    cx: CommandContext, opts: DeploymentOpts, session: SessionProtocol, config: Config
) -> CmdResult:
    url = _require_url(session)
    if isinstance(url, Err):
        return url

    name = opts.name or session.deployment_name()
    if not name:
        return Err(
            DeploymentError(
                "Expected non-empty deployment name",
                no_deployment=True,
                hint="Pass NAME to set the default deployment",
            )
        )

    director = session.director()
    if isinstance(director, Err):
        return director
    summaries = director.value.deployments()
    if isinstance(summaries, Err):
        return summaries

    found = next((d for d in summaries.value if d.name == name), None)
    if found is None:
        return Err(DeploymentError(f"Deployment '{name}' does not exist", name=name))

    if opts.name:
        saved = _save(cx, config.set_deployment(url.value, name))
        if isinstance(saved, Err):
            return saved

    show_table(
        cx.console,
        f"Using deployment '{name}'",
        ("Name", "Release(s)", "Stemcell(s)", "Cloud Config"),
        [(found.name, ", ".join(found.releases), ", ".join(found.stemcells), found.cloud_config)],
        noun="deployments",
    )
    return Ok(None)
