"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    PromptError,
    RichConsole,
    Style,
    Table,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "PromptError",
    "RichConsole",
    "Style",
    "Table",
]
