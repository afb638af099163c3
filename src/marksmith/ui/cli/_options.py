"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
RENDERING_PANEL = "Rendering"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

InputPathArgument = Annotated[
    Path,
    typer.Argument(
        metavar="INPUT",
        help="Source document written in the marksmith markdown dialect.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file (marksmith.toml or pyproject.toml). Defaults to marksmith.toml next to INPUT.",
        exists=True,
        dir_okay=False,
        show_default=False,
        rich_help_panel=INPUTS_PANEL,
    ),
]

TemplateRootOption = Annotated[
    Path | None,
    typer.Option(
        "--template-root",
        "-t",
        help="Folder holding Include/Templates/Objects. Defaults to the folder of INPUT.",
        file_okay=False,
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

MarkdownExtensionsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--enable-extension",
        "-x",
        help=(
            "Additional Markdown extensions to enable (comma or space separated values are accepted)."
        ),
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

DisableMarkdownExtensionsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--disable-extension",
        "-X",
        help=(
            "Markdown extensions to disable. Provide a comma separated list or repeat the option "
            "multiple times. Use --list-extensions to see the extensions enabled by default."
        ),
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output HTML file. Defaults to stdout.",
        dir_okay=False,
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

StrictOption = Annotated[
    bool,
    typer.Option(
        "--strict",
        help="Exit with a non-zero status when error diagnostics were reported.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "DIAGNOSTICS_PANEL",
    "INPUTS_PANEL",
    "OUTPUT_PANEL",
    "RENDERING_PANEL",
    "ConfigOption",
    "DebugOption",
    "DisableMarkdownExtensionsOption",
    "InputPathArgument",
    "MarkdownExtensionsOption",
    "OutputPathOption",
    "StrictOption",
    "TemplateRootOption",
    "VerboseOption",
]
