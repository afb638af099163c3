"""Position-mapped rewriting passes applied before tag parsing."""

from __future__ import annotations

from collections.abc import Mapping
import re

from .diagnostics import Diagnostic, Severity
from .exceptions import RewriteError
from .messages import MessageCatalog
from .rewriter import replace
from .textmap import TextPositionMap


LINE_ENDING_PATTERN = re.compile(r"\r\n?")
VARIABLE_PATTERN = re.compile(r"%(?P<name>[A-Za-z][\w.-]*)%")


def normalize_line_endings(text: str, text_map: TextPositionMap) -> str:
    """Rewrite ``\\r\\n`` and lone ``\\r`` into ``\\n``."""
    result = replace(LINE_ENDING_PATTERN, text, lambda _match: "\n", name="line-endings")
    result.apply_to(text_map)
    return result.text


def expand_variables(
    text: str,
    variables: Mapping[str, str],
    text_map: TextPositionMap,
    *,
    messages: MessageCatalog | None = None,
) -> tuple[str, list[Diagnostic]]:
    """Replace ``%name%`` references with their value from ``variables``.

    Names are matched case-insensitively. Unknown names are left untouched and
    reported with Warning severity.
    """
    catalog = messages or MessageCatalog()
    lookup = {key.lower(): value for key, value in variables.items()}

    def _substitute(match: re.Match[str]) -> str:
        name = match.group("name")
        try:
            return lookup[name.lower()]
        except KeyError as exc:
            raise RewriteError(f"unknown variable {name}") from exc

    result = replace(VARIABLE_PATTERN, text, _substitute, name="variables")
    diagnostics = [
        Diagnostic(
            Severity.WARNING,
            catalog.message("UnresolvedVariable", failure.text.strip("%")),
            key=failure.text.strip("%"),
            offset=text_map.map_offset(failure.start),
        )
        for failure in result.failures
    ]
    result.apply_to(text_map)
    return result.text, diagnostics


__all__ = [
    "LINE_ENDING_PATTERN",
    "VARIABLE_PATTERN",
    "expand_variables",
    "normalize_line_endings",
]
