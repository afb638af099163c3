"""Rendering context primitives shared across the element tree."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .diagnostics import DiagnosticEmitter, DiagnosticList, NullEmitter
from .templates import TemplateRenderer


if TYPE_CHECKING:  # pragma: no cover - typing only
    from marksmith.adapters.markdown import MarkdownConverter

    from .documents import Document


@dataclass(slots=True)
class RenderContext:
    """Collaborators available to elements while one top-level render runs."""

    templates: TemplateRenderer
    markdown: MarkdownConverter
    diagnostics: DiagnosticList
    load_document: Callable[[Path], Document]
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)


__all__ = ["RenderContext"]
