"""Console (UI) abstraction.

Commands and resolvers talk to a ``ConsoleProtocol`` instead of printing:
``RichConsole`` renders with Rich (or collects JSON with ``--json``), and
``MockConsole`` records everything for tests. Output mode switches
(tty, color, json, non-interactive) are applied once by the global
initializer.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

from dctl.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "PromptError",
    "RichConsole",
    "Style",
    "Table",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class PromptError:
    """Prompt could not be answered (non-interactive, EOF, declined)."""

    message: str


@dataclass(frozen=True, slots=True)
class Table:
    """Tabular command output."""

    title: str
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    notes: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        keys = [h.lower().replace(" ", "_") for h in self.headers]
        return {
            "title": self.title,
            "rows": [dict(zip(keys, row, strict=False)) for row in self.rows],
            "notes": list(self.notes),
        }


class ConsoleProtocol(Protocol):
    """Protocol for console output and prompts."""

    def enable_tty(self, force: bool) -> None: ...

    def enable_color(self) -> None: ...

    def enable_json(self) -> None: ...

    def enable_non_interactive(self) -> None: ...

    def is_interactive(self) -> bool: ...

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...

    def block(self, text: str) -> None:
        """Print a raw block (manifests, configs) without markup."""
        ...

    def table(self, table: Table) -> None: ...

    def ask_text(self, label: str) -> Result[str, PromptError]: ...

    def ask_password(self, label: str) -> Result[str, PromptError]: ...

    def ask_confirmation(self) -> Result[None, PromptError]:
        """Ask to continue; Err when declined. Auto-confirms when non-interactive."""
        ...

    def flush(self) -> None:
        """Emit buffered output (JSON mode)."""
        ...


class RichConsole:
    """Production console backed by Rich."""

    def __init__(self) -> None:
        self._force_tty = False
        self._color = False
        self._json = False
        self._interactive = True
        self._lines: list[str] = []
        self._blocks: list[str] = []
        self._tables: list[dict[str, object]] = []
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }
        self._console = self._build()
        self._err_console = self._build(stderr=True)

    def _build(self, stderr: bool = False) -> Console:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        return Console(
            stderr=stderr,
            force_terminal=True if self._force_tty else None,
            no_color=not self._color,
            highlight=False,
        )

    def enable_tty(self, force: bool) -> None:
        self._force_tty = force
        self._console = self._build()

    def enable_color(self) -> None:
        self._color = True
        self._console = self._build()
        self._err_console = self._build(stderr=True)

    def enable_json(self) -> None:
        self._json = True

    def enable_non_interactive(self) -> None:
        self._interactive = False

    def is_interactive(self) -> bool:
        return self._interactive and not self._json and sys.stdin.isatty()

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        if self._json:
            self._lines.append(message)
            return
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style)
        else:
            self._console.print(message)

    def success(self, message: str) -> None:
        if self._json:
            self._lines.append(message)
            return
        self._console.print(f"[green]OK[/green] {message}")

    def error(self, message: str) -> None:
        if self._json:
            self._lines.append(f"error: {message}")
            return
        self._err_console.print(f"[red bold]error:[/red bold] {message}")

    def warning(self, message: str) -> None:
        if self._json:
            self._lines.append(f"warning: {message}")
            return
        self._err_console.print(f"[yellow]warning:[/yellow] {message}")

    def info(self, message: str) -> None:
        if self._json:
            self._lines.append(message)
            return
        self._console.print(f"[cyan]info:[/cyan] {message}")

    def header(self, message: str) -> None:
        if self._json:
            return
        self._console.print(f"\n[blue bold]{message}[/blue bold]")

    def newline(self) -> None:
        if not self._json:
            self._console.print()

    def block(self, text: str) -> None:
        if self._json:
            self._blocks.append(text)
            return
        self._console.out(text, end="" if text.endswith("\n") else "\n")

    def table(self, table: Table) -> None:
        if self._json:
            self._tables.append(table.as_dict())
            return

        from rich.table import Table as RichTable

        rich_table = RichTable(title=table.title, title_justify="left", box=None)
        for header in table.headers:
            rich_table.add_column(header, style="")
        for row in table.rows:
            rich_table.add_row(*row)
        self._console.print(rich_table)
        for note in table.notes:
            self._console.print(note, style="dim")

    def _ask(self, label: str, password: bool) -> Result[str, PromptError]:
        if not self.is_interactive():
            return Err(PromptError(f"Cannot ask for '{label}' in non-interactive mode"))

        from rich.prompt import Prompt

        try:
            return Ok(Prompt.ask(label, password=password, console=self._err_console))
        except (EOFError, KeyboardInterrupt):
            return Err(PromptError(f"No answer given for '{label}'"))

    def ask_text(self, label: str) -> Result[str, PromptError]:
        return self._ask(label, password=False)

    def ask_password(self, label: str) -> Result[str, PromptError]:
        return self._ask(label, password=True)

    def ask_confirmation(self) -> Result[None, PromptError]:
        if not self.is_interactive():
            return Ok(None)

        from rich.prompt import Confirm

        try:
            confirmed = Confirm.ask("Continue?", console=self._err_console)
        except (EOFError, KeyboardInterrupt):
            confirmed = False
        if not confirmed:
            return Err(PromptError("Stopped"))
        return Ok(None)

    def flush(self) -> None:
        if not self._json:
            return
        payload = {"Tables": self._tables, "Blocks": self._blocks, "Lines": self._lines}
        sys.stdout.write(json.dumps(payload, indent=4) + "\n")
        self._tables, self._blocks, self._lines = [], [], []


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


def _empty_tables() -> list[Table]:
    return []


def _empty_answers() -> list[str]:
    return []


@dataclass
class MockConsole:
    """Console that captures output and answers prompts from a queue.

    Use this in tests to verify output without printing anything.
    ``mode_calls`` records every enable_* call in order.
    """

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)
    tables: list[Table] = field(default_factory=_empty_tables)
    answers: list[str] = field(default_factory=_empty_answers)
    interactive: bool = True
    confirm: bool = True
    json_mode: bool = False
    mode_calls: list[str] = field(default_factory=list)
    flushed: int = 0

    def enable_tty(self, force: bool) -> None:
        self.mode_calls.append(f"tty:{force}")

    def enable_color(self) -> None:
        self.mode_calls.append("color")

    def enable_json(self) -> None:
        self.mode_calls.append("json")
        self.json_mode = True

    def enable_non_interactive(self) -> None:
        self.mode_calls.append("non-interactive")
        self.interactive = False

    def is_interactive(self) -> bool:
        return self.interactive

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    def block(self, text: str) -> None:
        self.outputs.append(OutputRecord(text, Style.DEFAULT))

    def table(self, table: Table) -> None:
        self.tables.append(table)

    def _answer(self, label: str) -> Result[str, PromptError]:
        if not self.interactive:
            return Err(PromptError(f"Cannot ask for '{label}' in non-interactive mode"))
        if not self.answers:
            return Err(PromptError(f"No answer given for '{label}'"))
        return Ok(self.answers.pop(0))

    def ask_text(self, label: str) -> Result[str, PromptError]:
        return self._answer(label)

    def ask_password(self, label: str) -> Result[str, PromptError]:
        return self._answer(label)

    def ask_confirmation(self) -> Result[None, PromptError]:
        if not self.interactive or self.confirm:
            return Ok(None)
        return Err(PromptError("Stopped"))

    def flush(self) -> None:
        self.flushed += 1

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
