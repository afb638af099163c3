"""Public template helpers shared across the rendering pipeline."""

from __future__ import annotations

from .cache import TemplateCache, build_environment
from .renderer import (
    METADATA_LIST_TEMPLATE,
    OBJECT_TEMPLATE_DIR,
    OBJECT_TEMPLATE_SUFFIX,
    TemplateRenderer,
    object_template_path,
)


__all__ = [
    "METADATA_LIST_TEMPLATE",
    "OBJECT_TEMPLATE_DIR",
    "OBJECT_TEMPLATE_SUFFIX",
    "TemplateCache",
    "TemplateRenderer",
    "build_environment",
    "object_template_path",
]
