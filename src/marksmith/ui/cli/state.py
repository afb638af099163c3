"""Per-invocation state shared by the marksmith commands.

`CLIState` carries the verbosity flags of the running command, Rich consoles
bound to the current standard streams, and the `RenderActivity` gathered from
pipeline events while a document renders.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
import sys
from typing import TYPE_CHECKING

import click

from marksmith.core.exceptions import exception_messages


if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "CLIState",
    "IncludeRecord",
    "RenderActivity",
    "configure_cli_state",
    "debug_enabled",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_cli_state",
]


@dataclass(frozen=True, slots=True)
class IncludeRecord:
    """Document spliced in by an ``[INCLUDE]`` tag."""

    target: Path
    depth: int


@dataclass(slots=True)
class RenderActivity:
    """Includes and templates loaded while rendering one document."""

    includes: list[IncludeRecord] = field(default_factory=list)
    templates: list[Path] = field(default_factory=list)

    def clear(self) -> None:
        self.includes.clear()
        self.templates.clear()

    def __bool__(self) -> bool:
        return bool(self.includes or self.templates)


@dataclass(slots=True)
class CLIState:
    verbosity: int = 0
    show_tracebacks: bool = False
    activity: RenderActivity = field(default_factory=RenderActivity)
    _consoles: dict[str, Console] = field(default_factory=dict, init=False, repr=False)

    def console(self, *, stderr: bool = False) -> Console:
        """Return a Rich console writing to the current stdout or stderr.

        Consoles follow stream swaps, such as the ones done by test runners.
        """
        from rich.console import Console

        name = "stderr" if stderr else "stdout"
        stream = sys.stderr if stderr else sys.stdout
        console = self._consoles.get(name)
        if console is None or console.file is not stream:
            console = Console(file=stream, highlight=not stderr)
            self._consoles[name] = console
        return console


_CURRENT: ContextVar[CLIState | None] = ContextVar("marksmith_cli_state", default=None)


def get_cli_state(ctx: click.Context | None = None) -> CLIState:
    """Return the state stored on ``ctx``, or on the active click context."""
    if ctx is None:
        ctx = click.get_current_context(silent=True)
    if ctx is not None:
        state = ctx.ensure_object(CLIState)
    else:
        state = _CURRENT.get() or CLIState()
    _CURRENT.set(state)
    return state


def configure_cli_state(
    ctx: click.Context | None = None,
    *,
    verbosity: int = 0,
    debug: bool = False,
) -> CLIState:
    """Apply the flags of one command and reset the recorded render activity."""
    state = get_cli_state(ctx)
    state.verbosity = max(0, verbosity)
    state.show_tracebacks = debug
    state.activity.clear()
    return state


_LEVEL_STYLES = {
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
}


def _print(level: str, message: str, exception: BaseException | None = None) -> None:
    from rich.text import Text

    state = get_cli_state()
    style = _LEVEL_STYLES[level]
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))

    if exception is not None and state.verbosity >= 1:
        causes = exception_messages(exception)
        if state.verbosity < 2:
            causes = causes[-1:]
        for cause in causes:
            if cause not in message:
                text.append(f"\n  {cause}", style=style)

    state.console(stderr=True).print(text)


def emit_info(message: str) -> None:
    _print("info", message)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    _print("warning", message, exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    """Print an error unless the pipeline already reported it as a diagnostic."""
    if exception is not None and getattr(exception, "reported", False):
        return
    _print("error", message, exception)


def debug_enabled() -> bool:
    state = _CURRENT.get()
    return state is not None and state.show_tracebacks
