"""Command-line interface: typer parsing, resolution chain and dispatch."""

from .chain import Chain, CmdResult, DirectorAndDeployment, ReleaseProviders, SessionMode
from .context import CommandContext, Deps, build_deps
from .options import GlobalOptions
from .registry import Registry, Requires, build_registry

__all__ = [
    "Chain",
    "CmdResult",
    "CommandContext",
    "Deps",
    "DirectorAndDeployment",
    "GlobalOptions",
    "Registry",
    "ReleaseProviders",
    "Requires",
    "SessionMode",
    "build_deps",
    "build_registry",
]
