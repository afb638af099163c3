"""Implementation of the ``marksmith metadata`` command."""

from __future__ import annotations

import click
import typer

from marksmith.core.exceptions import DocumentRenderError

from .._options import ConfigOption, DebugOption, InputPathArgument, StrictOption, VerboseOption
from ..presenter import present_diagnostics, present_metadata
from ..state import configure_cli_state, emit_error
from .render import build_session, resolve_cli_config


def metadata(
    input_path: InputPathArgument,
    config_path: ConfigOption = None,
    strict: StrictOption = False,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Print the metadata header of a marksmith document."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = configure_cli_state(typer_ctx, verbosity=verbose, debug=debug)

    config = resolve_cli_config(input_path, config_path, None)
    session = build_session(config, state)

    try:
        result = session.extract_metadata(input_path)
    except DocumentRenderError as exc:
        emit_error(str(exc))
        raise typer.Exit(code=1) from exc

    present_metadata(state, result.metadata, title=result.title)
    present_diagnostics(state, result.diagnostics)

    if strict and result.has_errors:
        raise typer.Exit(code=1)


__all__ = ["metadata"]
