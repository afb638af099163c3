"""Bind named parameters into object templates."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import TemplateError as JinjaTemplateError

from ..exceptions import TemplateLoadError
from .cache import TemplateCache


OBJECT_TEMPLATE_DIR = Path("Include") / "Templates" / "Objects"
OBJECT_TEMPLATE_SUFFIX = ".html"

METADATA_LIST_TEMPLATE = "{{ values | join(', ') }}"


def object_template_path(root: Path, tag: str) -> Path:
    """Return the conventional template location for object ``tag`` under ``root``."""
    return root / OBJECT_TEMPLATE_DIR / f"{tag}{OBJECT_TEMPLATE_SUFFIX}"


class TemplateRenderer:
    """Render cached templates against a binding mapping."""

    def __init__(self, cache: TemplateCache | None = None) -> None:
        self.cache = cache if cache is not None else TemplateCache()

    def render(self, template: Path, bindings: Mapping[str, Any]) -> str:
        """Render the template stored at ``template``.

        Unused bindings are ignored; placeholders without a binding render empty.
        """
        compiled = self.cache.get(template)
        try:
            return compiled.render(dict(bindings))
        except JinjaTemplateError as exc:
            raise TemplateLoadError(f"Failed to render template {template}: {exc}", template=template) from exc

    def render_string(self, source: str, bindings: Mapping[str, Any]) -> str:
        """Render an inline template source."""
        compiled = self.cache.from_string(source)
        try:
            return compiled.render(dict(bindings))
        except JinjaTemplateError as exc:
            raise TemplateLoadError(f"Failed to render inline template: {exc}", template="<string>") from exc

    def render_metadata_list(self, values: list[str]) -> str:
        """Render the comma separated display form of metadata ``values``."""
        return self.render_string(METADATA_LIST_TEMPLATE, {"values": values}).strip()


__all__ = [
    "METADATA_LIST_TEMPLATE",
    "OBJECT_TEMPLATE_DIR",
    "OBJECT_TEMPLATE_SUFFIX",
    "TemplateRenderer",
    "object_template_path",
]
