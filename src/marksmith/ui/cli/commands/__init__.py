"""CLI command implementations exposed via `marksmith.ui.cli`."""

from __future__ import annotations

from .metadata import metadata
from .render import render


__all__ = ["metadata", "render"]
