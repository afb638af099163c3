"""Diagnostic abstractions shared across the transformation pipeline."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity attached to a diagnostic record."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A message reported against an offset of the original source file."""

    severity: Severity
    message: str
    key: str | None = None
    offset: int | None = None
    path: Path | None = None
    line: int | None = None
    column: int | None = None

    @property
    def location(self) -> str:
        """Return a ``path:line:column`` style location string."""
        parts: list[str] = []
        if self.path is not None:
            parts.append(str(self.path))
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)

    def __str__(self) -> str:
        location = self.location
        prefix = f"{location}: " if location else ""
        return f"{prefix}{self.severity.value}: {self.message}"


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "diagnostic":
        location = data.get("location")
        message = data.get("message") or ""
        return f"{location}: {message}" if location else str(message)

    if name == "include":
        target = data.get("target") or "<unknown>"
        depth = data.get("depth")
        suffix = f" (depth {depth})" if depth is not None else ""
        return f"Including: {target}{suffix}"

    if name == "template_loaded":
        return f"Loaded template: {data.get('path') or '<unknown>'}"

    return None


@dataclass(slots=True)
class DiagnosticList:
    """Ordered collection of diagnostics mirrored to an emitter as they arrive."""

    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)
    _items: list[Diagnostic] = field(default_factory=list, init=False, repr=False)

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        """Record ``diagnostic`` and forward it to the emitter."""
        self._items.append(diagnostic)
        text = str(diagnostic)
        if diagnostic.severity is Severity.ERROR:
            self.emitter.error(text)
        elif diagnostic.severity is Severity.WARNING:
            self.emitter.warning(text)
        else:
            self.emitter.event(
                "diagnostic",
                {"location": diagnostic.location, "message": diagnostic.message},
            )
        return diagnostic

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def by_severity(self, severity: Severity) -> list[Diagnostic]:
        return [item for item in self._items if item.severity is severity]

    @property
    def errors(self) -> list[Diagnostic]:
        return self.by_severity(Severity.ERROR)

    @property
    def has_errors(self) -> bool:
        return any(item.severity is Severity.ERROR for item in self._items)

    def as_list(self) -> list[Diagnostic]:
        """Return a snapshot of the recorded diagnostics."""
        return list(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "Diagnostic",
    "DiagnosticEmitter",
    "DiagnosticList",
    "LoggingEmitter",
    "NullEmitter",
    "Severity",
    "format_event_message",
]
