"""Custom exception hierarchy for the document transformation pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .diagnostics import Diagnostic


class MarksmithError(RuntimeError):
    """Base exception for document transformation failures."""

    #: Set once the failure has been recorded as a diagnostic.
    reported: bool = False


class ConfigurationError(MarksmithError):
    """Raised when configuration files or values cannot be validated."""


class RewriteError(MarksmithError):
    """Raised by a replacement callable to abandon one rewrite match."""


class ParseError(MarksmithError):
    """Raised when tag structure cannot be recovered locally."""

    def __init__(self, message: str, *, offset: int | None = None, tag: str | None = None) -> None:
        super().__init__(message)
        self.offset = offset
        self.tag = tag


class DuplicateParameterError(ParseError):
    """Raised when an object declares the same parameter name twice."""


class TemplateLoadError(MarksmithError):
    """Raised when a template resource cannot be located or parsed."""

    def __init__(self, message: str, *, template: str | Path | None = None) -> None:
        super().__init__(message)
        self.template = template


class TemplateNotFoundError(TemplateLoadError):
    """Raised when no template resource exists for an object tag."""


class CyclicIncludeError(MarksmithError):
    """Raised when an include target is already on the include stack."""

    def __init__(self, target: Path, stack: Sequence[Path]) -> None:
        chain = " -> ".join(str(entry) for entry in [*stack, target])
        super().__init__(f"Cyclic include detected: {chain}")
        self.target = target
        self.stack = list(stack)


class IncludeNotFoundError(MarksmithError):
    """Raised when an include target cannot be read."""


class DocumentRenderError(MarksmithError):
    """Fatal render failure carrying the diagnostics collected so far."""

    def __init__(self, message: str, *, diagnostics: Sequence[Diagnostic] = ()) -> None:
        super().__init__(message)
        self.diagnostics = list(diagnostics)


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "CyclicIncludeError",
    "DocumentRenderError",
    "DuplicateParameterError",
    "IncludeNotFoundError",
    "MarksmithError",
    "ParseError",
    "RewriteError",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "exception_hint",
    "exception_messages",
]
