"""Rich-aware presenters for CLI output and diagnostics."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer

from marksmith.core.diagnostics import Diagnostic, Severity

from .state import CLIState


if TYPE_CHECKING:  # pragma: no cover - typing only
    from rich.console import Console


_SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def _get_console(state: CLIState, *, stderr: bool = False) -> Console | None:
    """Return the Rich console for the requested stream when it is a terminal."""
    console = state.console(stderr=stderr)
    if getattr(console, "is_terminal", False):
        return console
    return None


def _build_table(*, title: str | None, columns: Sequence[str], header_style: str = "bold cyan") -> Any:
    """Create a Rich table with the house style."""
    from rich import box
    from rich.table import Table

    table = Table(
        title=title or None,
        box=box.SQUARE,
        show_edge=True,
        header_style=header_style,
    )
    for column in columns:
        table.add_column(column)
    return table


def _format_path(path: Path | None) -> str:
    """Format a path relative to the current working directory for display."""
    if path is None:
        return ""
    resolved = path.resolve()
    try:
        return str(resolved.relative_to(Path.cwd()))
    except ValueError:
        return str(resolved)


def _format_location(diagnostic: Diagnostic) -> str:
    location = _format_path(diagnostic.path)
    if diagnostic.line is not None:
        location = f"{location}:{diagnostic.line}:{diagnostic.column or 1}"
    return location


def present_diagnostics(state: CLIState, diagnostics: Sequence[Diagnostic]) -> None:
    """Summarise diagnostics once a render has finished.

    Individual diagnostics are already streamed by the emitter, so the table is
    only shown with ``--verbose``.
    """
    if not diagnostics or state.verbosity < 1:
        return

    console = _get_console(state, stderr=True)
    if console is not None:
        from rich.text import Text

        table = _build_table(title="Diagnostics", columns=["Severity", "Location", "Key", "Message"])
        for diagnostic in diagnostics:
            table.add_row(
                Text(diagnostic.severity.value, style=_SEVERITY_STYLES[diagnostic.severity]),
                _format_location(diagnostic),
                diagnostic.key or "",
                diagnostic.message,
            )
        console.print(table)
        return

    typer.echo("Diagnostics:", err=True)
    for diagnostic in diagnostics:
        location = _format_location(diagnostic)
        prefix = f"{location}: " if location else ""
        typer.echo(f"  - {prefix}{diagnostic.severity.value}: {diagnostic.message}", err=True)


def present_metadata(
    state: CLIState,
    metadata: Mapping[str, Sequence[str]],
    *,
    title: str | None = None,
) -> None:
    """Render the metadata header of a document."""
    console = _get_console(state)
    if console is not None:
        table = _build_table(title=title or "Metadata", columns=["Key", "Values"])
        for key, values in metadata.items():
            table.add_row(key, "\n".join(values))
        console.print(table)
        return

    if title:
        typer.echo(f"# {title}")
    for key, values in metadata.items():
        typer.echo(f"{key}: {', '.join(values)}")


def present_render_summary(state: CLIState, source: Path, output: Path | None) -> None:
    """Report where the rendered HTML was written."""
    if output is None or state.verbosity < 1:
        return
    console = _get_console(state, stderr=True)
    if console is not None:
        table = _build_table(title=None, columns=["Artifact", "Location"])
        table.add_row("source", _format_path(source))
        table.add_row("html", _format_path(output))
        console.print(table)
        return
    typer.echo(f"Rendered {_format_path(source)} -> {_format_path(output)}", err=True)


def present_activity(state: CLIState) -> None:
    """List the includes and templates used by the last render.

    One summary line with ``-v``; the include tree and template paths with ``-vv``.
    """
    activity = state.activity
    if state.verbosity >= 1 and activity.includes:
        typer.echo(f"Included documents: {len(activity.includes)}", err=True)
    if state.verbosity >= 2:
        for record in activity.includes:
            typer.echo(f"  {'  ' * record.depth}- {_format_path(record.target)}", err=True)
        for template in activity.templates:
            typer.echo(f"Template: {_format_path(template)}", err=True)
    activity.clear()


__all__ = [
    "present_activity",
    "present_diagnostics",
    "present_metadata",
    "present_render_summary",
]
