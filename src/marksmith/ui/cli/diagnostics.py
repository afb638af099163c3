"""Route pipeline diagnostics to the terminal.

Warnings and errors are printed to stderr as soon as a document records them.
Include and template events become typed entries of the state's
`RenderActivity`; they are echoed live only with ``--verbose``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from marksmith.core.diagnostics import format_event_message

from .state import CLIState, IncludeRecord, emit_error, emit_info, emit_warning


class CliEmitter:
    """`DiagnosticEmitter` writing to the CLI consoles."""

    def __init__(self, state: CLIState, *, debug_enabled: bool = False) -> None:
        self.state = state
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        activity = self.state.activity
        if name == "include":
            activity.includes.append(
                IncludeRecord(Path(str(payload["target"])), int(payload.get("depth") or 0))
            )
        elif name == "template_loaded":
            activity.templates.append(Path(str(payload["path"])))

        if self.state.verbosity >= 1:
            message = format_event_message(name, payload)
            if message:
                emit_info(message)


__all__ = ["CliEmitter"]
