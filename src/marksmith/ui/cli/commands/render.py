"""Implementation of the ``marksmith render`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import click
import typer

from marksmith.adapters.markdown import DEFAULT_MARKDOWN_EXTENSIONS, resolve_markdown_extensions
from marksmith.api.service import RenderSession
from marksmith.core.config import MarksmithConfig, load_config
from marksmith.core.exceptions import ConfigurationError, DocumentRenderError, exception_hint

from .._options import (
    DIAGNOSTICS_PANEL,
    ConfigOption,
    DebugOption,
    DisableMarkdownExtensionsOption,
    InputPathArgument,
    MarkdownExtensionsOption,
    OutputPathOption,
    StrictOption,
    TemplateRootOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_activity, present_diagnostics, present_render_summary
from ..state import CLIState, configure_cli_state, emit_error


def resolve_cli_config(
    input_path: Path,
    config_path: Path | None,
    template_root: Path | None,
    *,
    markdown_extensions: list[str] | None = None,
    disable_markdown_extensions: list[str] | None = None,
) -> MarksmithConfig:
    """Load the configuration for ``input_path`` and apply command line overrides."""
    try:
        config = load_config(config_path, root=input_path.parent)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    updates: dict[str, object] = {}
    if template_root is not None:
        updates["template_root"] = template_root.resolve()
    if markdown_extensions or disable_markdown_extensions:
        updates["markdown_extensions"] = resolve_markdown_extensions(
            markdown_extensions,
            disable_markdown_extensions,
            base=config.markdown_extensions,
        )
    return config.model_copy(update=updates) if updates else config


def build_session(config: MarksmithConfig, state: CLIState) -> RenderSession:
    emitter = CliEmitter(state, debug_enabled=state.show_tracebacks)
    try:
        return RenderSession(config, emitter=emitter)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


def render(
    input_path: InputPathArgument,
    output: OutputPathOption = None,
    config_path: ConfigOption = None,
    template_root: TemplateRootOption = None,
    markdown_extensions: MarkdownExtensionsOption = None,
    disable_markdown_extensions: DisableMarkdownExtensionsOption = None,
    list_extensions: Annotated[
        bool,
        typer.Option(
            "--list-extensions",
            help="List Markdown extensions enabled by default and exit.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
    strict: StrictOption = False,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Render a marksmith document into HTML."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = configure_cli_state(typer_ctx, verbosity=verbose, debug=debug)

    if list_extensions:
        for extension in DEFAULT_MARKDOWN_EXTENSIONS:
            typer.echo(extension)
        raise typer.Exit()

    config = resolve_cli_config(
        input_path,
        config_path,
        template_root,
        markdown_extensions=markdown_extensions,
        disable_markdown_extensions=disable_markdown_extensions,
    )
    session = build_session(config, state)

    try:
        result = session.render_file(input_path)
    except DocumentRenderError as exc:
        present_diagnostics(state, exc.diagnostics)
        hint = exception_hint(exc) or str(exc)
        emit_error(f"Rendering aborted: {hint}")
        raise typer.Exit(code=1) from exc

    if output is not None:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result.html, encoding=config.encoding)
        except OSError as exc:
            emit_error(str(exc), exception=exc)
            raise typer.Exit(code=1) from exc
    else:
        typer.echo(result.html)

    present_activity(state)
    present_diagnostics(state, result.diagnostics)
    present_render_summary(state, input_path, output)

    if strict and result.has_errors:
        raise typer.Exit(code=1)


__all__ = ["build_session", "render", "resolve_cli_config"]
