"""Persisted named-environment configuration.

The config file maps director URLs to an alias, CA certificate, stored
credentials and a default deployment:

  [environments."https://10.0.0.6:25555"]
  alias = "lab"
  ca_cert = "-----BEGIN CERTIFICATE-----\\n..."
  username = "admin"
  password = "secret"
  deployment = "cf"

``Config`` is immutable. Mutators return a new ``Config``; ``save_config``
writes it back atomically.
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import ConfigError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table, get_text

if TYPE_CHECKING:
    from dctl.platform.fs import FileSystem

__all__ = [
    "Config",
    "ConfigError",
    "Credentials",
    "EnvironmentEntry",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)

CONFIG_FILE_MODE = 0o600


@dataclass(frozen=True, slots=True)
class Credentials:
    """Director credentials: a UAA client pair or a username/password pair."""

    client: str | None = None
    client_secret: str | None = None
    username: str | None = None
    password: str | None = None

    @property
    def is_client(self) -> bool:
        return bool(self.client and self.client_secret)

    @property
    def is_complete(self) -> bool:
        return self.is_client or bool(self.username and self.password)

    @property
    def principal(self) -> str | None:
        """Name the director will see (client id or username)."""
        return self.client if self.client else self.username


@dataclass(frozen=True, slots=True)
class EnvironmentEntry:
    """One configured director."""

    url: str
    alias: str | None = None
    ca_cert: str | None = None
    credentials: Credentials = field(default_factory=Credentials)
    deployment: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Environment table, keyed by director URL."""

    path: Path | None = None
    entries: tuple[EnvironmentEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: StrDict, path: Path | None = None) -> Config:
        """Create Config from parsed TOML."""
        envs: StrDict = {}
        if "environments" in data:
            found = get_table(data, "environments")
            if found is None:
                raise ValueError("'environments' must be a table")
            envs = found
        entries: list[EnvironmentEntry] = []
        for url, raw in envs.items():
            table = as_str_dict(raw)
            if table is None:
                raise ValueError(f"environment '{url}' must be a table")
            entries.append(
                EnvironmentEntry(
                    url=url,
                    alias=get_str(table, "alias"),
                    ca_cert=get_text(table, "ca_cert"),
                    credentials=Credentials(
                        client=get_str(table, "client"),
                        client_secret=get_text(table, "client_secret"),
                        username=get_str(table, "username"),
                        password=get_text(table, "password"),
                    ),
                    deployment=get_str(table, "deployment"),
                )
            )
        return cls(path=path, entries=tuple(entries))

    def environments(self) -> list[EnvironmentEntry]:
        return sorted(self.entries, key=lambda e: e.url)

    def find(self, url: str) -> EnvironmentEntry | None:
        for entry in self.entries:
            if entry.url == url:
                return entry
        return None

    def resolve_environment(self, url_or_alias: str) -> str:
        """Map an alias to its URL; anything else is returned as given."""
        for entry in self.entries:
            if entry.alias and entry.alias == url_or_alias:
                return entry.url
        return url_or_alias

    def ca_cert(self, url: str) -> str | None:
        entry = self.find(url)
        return entry.ca_cert if entry else None

    def credentials(self, url: str) -> Credentials:
        entry = self.find(url)
        return entry.credentials if entry else Credentials()

    def deployment(self, url: str) -> str | None:
        entry = self.find(url)
        return entry.deployment if entry else None

    def _with_entry(self, url: str, **changes: object) -> Config:
        current = self.find(url) or EnvironmentEntry(url=url)
        updated = replace(current, **changes)  # type: ignore[arg-type]
        others = tuple(e for e in self.entries if e.url != url)
        return replace(self, entries=(*others, updated))

    def set_environment(self, url: str, alias: str, ca_cert: str | None = None) -> Config:
        """Alias ``url``; an alias names at most one environment."""
        cleared = tuple(
            replace(e, alias=None) if e.alias == alias and e.url != url else e
            for e in self.entries
        )
        return replace(self, entries=cleared)._with_entry(url, alias=alias, ca_cert=ca_cert)

    def set_credentials(self, url: str, credentials: Credentials) -> Config:
        return self._with_entry(url, credentials=credentials)

    def unset_credentials(self, url: str) -> Config:
        return self._with_entry(url, credentials=Credentials())

    def set_deployment(self, url: str, name: str) -> Config:
        return self._with_entry(url, deployment=name)


def _toml_str(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes.
    return json.dumps(value, ensure_ascii=False)


def render_config(config: Config) -> str:
    lines: list[str] = []
    for entry in config.environments():
        if lines:
            lines.append("")
        lines.append(f"[environments.{_toml_str(entry.url)}]")
        values = [
            ("alias", entry.alias),
            ("ca_cert", entry.ca_cert),
            ("client", entry.credentials.client),
            ("client_secret", entry.credentials.client_secret),
            ("username", entry.credentials.username),
            ("password", entry.credentials.password),
            ("deployment", entry.deployment),
        ]
        for key, value in values:
            if value:
                lines.append(f"{key} = {_toml_str(value)}")
    return "\n".join(lines) + "\n" if lines else ""


def load_config(path: Path, fs: FileSystem) -> Result[Config, ConfigError]:
    """Load configuration from a TOML file.

    A missing file yields an empty Config bound to ``path``.
    """
    if not fs.exists(path):
        logger.debug("config %s does not exist, using empty config", path)
        return Ok(Config(path=path))

    raw = fs.read_text(path)
    if isinstance(raw, Err):
        return Err(ConfigError(raw.error.message, path=path))

    try:
        data = tomllib.loads(raw.value)
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax in {path}: {e}", path=path))

    try:
        return Ok(Config.from_dict(data, path=path))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure in {path}: {e}", path=path))


def save_config(config: Config, fs: FileSystem) -> Result[None, ConfigError]:
    if config.path is None:
        return Err(ConfigError("Config has no path to save to"))

    written = fs.write_text(config.path, render_config(config), mode=CONFIG_FILE_MODE)
    if isinstance(written, Err):
        return Err(ConfigError(written.error.message, path=config.path))
    return Ok(None)
