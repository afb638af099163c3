"""Markdown conversion utilities for marksmith."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import re
from threading import Lock
from typing import Any, Protocol, runtime_checkable

import markdown

from marksmith.core.config import DEFAULT_MARKDOWN_EXTENSIONS


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MarkdownConversionError",
    "MarkdownConverter",
    "PythonMarkdownConverter",
    "deduplicate_markdown_extensions",
    "normalize_markdown_extensions",
    "render_markdown",
    "resolve_markdown_extensions",
]


DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "footnotes": {
        "UNIQUE_IDS": True,
    },
}


class MarkdownConversionError(Exception):
    """Raised when Markdown cannot be converted into HTML."""


@runtime_checkable
class MarkdownConverter(Protocol):
    """Collaborator turning plain prose into HTML."""

    def convert(self, text: str) -> str: ...


class _MarkdownCacheEntry:
    __slots__ = ("lock", "processor")

    def __init__(self, processor: Any) -> None:
        self.processor = processor
        self.lock = Lock()


_MARKDOWN_CACHE: dict[tuple[str, ...], _MarkdownCacheEntry] = {}
_MARKDOWN_CACHE_GUARD = Lock()


def deduplicate_markdown_extensions(values: Iterable[str]) -> list[str]:
    """Remove duplicate extensions while preserving order and case."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def normalize_markdown_extensions(
    values: Iterable[str] | str | None,
) -> list[str]:
    """Normalise extension names from CLI-friendly strings into a flat list."""
    if values is None:
        return []

    if isinstance(values, str):
        candidates: Iterable[str] = [values]
    else:
        candidates = values

    normalized: list[str] = []
    for value in candidates:
        if not isinstance(value, str):
            continue
        chunks = re.split(r"[,\s\x00]+", value)
        normalized.extend(chunk for chunk in chunks if chunk)
    return deduplicate_markdown_extensions(normalized)


def resolve_markdown_extensions(
    requested: Iterable[str] | None,
    disabled: Iterable[str] | None,
    *,
    base: Sequence[str] | None = None,
) -> list[str]:
    """Return the active Markdown extension list after applying overrides."""
    enabled = normalize_markdown_extensions(requested)
    disabled_normalized = {
        extension.lower() for extension in normalize_markdown_extensions(disabled)
    }

    defaults = DEFAULT_MARKDOWN_EXTENSIONS if base is None else base
    combined = deduplicate_markdown_extensions(list(defaults) + enabled)

    if not disabled_normalized:
        return combined

    return [extension for extension in combined if extension.lower() not in disabled_normalized]


def render_markdown(source: str, extensions: Sequence[str] | None = None) -> str:
    """Convert Markdown source into HTML using a shared processor."""
    extensions_key = tuple(
        normalize_markdown_extensions(
            DEFAULT_MARKDOWN_EXTENSIONS if extensions is None else extensions
        )
    )
    entry = _resolve_markdown_entry(extensions_key)
    try:
        with entry.lock:
            processor = entry.processor
            processor.reset()
            return processor.convert(source)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc


class PythonMarkdownConverter:
    """Default collaborator backed by Python-Markdown."""

    def __init__(self, extensions: Sequence[str] | None = None) -> None:
        self.extensions = tuple(
            normalize_markdown_extensions(
                DEFAULT_MARKDOWN_EXTENSIONS if extensions is None else extensions
            )
        )

    def convert(self, text: str) -> str:
        return render_markdown(text, self.extensions)


def _resolve_markdown_entry(extensions_key: tuple[str, ...]) -> _MarkdownCacheEntry:
    entry = _MARKDOWN_CACHE.get(extensions_key)
    if entry is not None:
        return entry
    with _MARKDOWN_CACHE_GUARD:
        entry = _MARKDOWN_CACHE.get(extensions_key)
        if entry is None:
            entry = _MarkdownCacheEntry(_build_markdown_processor(extensions_key))
            _MARKDOWN_CACHE[extensions_key] = entry
    return entry


def _build_markdown_processor(extensions_key: tuple[str, ...]) -> Any:
    active_extensions = list(extensions_key)
    extension_configs = {
        name: dict(DEFAULT_EXTENSION_CONFIGS[name])
        for name in active_extensions
        if name in DEFAULT_EXTENSION_CONFIGS
    }
    try:
        return markdown.Markdown(extensions=active_extensions, extension_configs=extension_configs)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to initialize Markdown processor: {exc}") from exc
