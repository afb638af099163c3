"""Extraction and validation of the ``key: value`` metadata header block.

Architecture
: The header block is located with the pattern rewriter and replaced by an
  empty string so metadata never reaches the rendered output. The change is
  folded into the document position map so later diagnostics still resolve to
  source offsets.
: Values are stored per lower-cased key in encounter order. Reserved keys keep
  their first value only; later occurrences are reported and discarded.
: Title, crumbs and related links are derived while lines are read, and a
  rendered "list of values" string is registered per key for templates.

Usage Example
:
    >>> manager = MetadataManager()
    >>> body, diagnostics = manager.extract("Title: Guide\\nPlatform: Linux\\n\\nBody")
    >>> body, manager.title, manager.get("platform")
    ('Body', 'Guide', ['Linux'])
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace as replace_fields
import logging
import re

from .config import MetadataRules
from .diagnostics import Diagnostic, Severity
from .messages import MessageCatalog
from .rewriter import replace
from .templates import TemplateRenderer
from .textmap import TextPositionMap


logger = logging.getLogger(__name__)

__all__ = [
    "HEADER_PATTERN",
    "MetadataManager",
    "RelatedLink",
]

_ROW = r"[A-Za-z0-9][0-9A-Za-z _-]*:[^\n]*"

HEADER_PATTERN = re.compile(rf"\A{_ROW}(?:\n{_ROW})*(?:\n+|\Z)")

_ROW_PATTERN = re.compile(
    r"^(?P<key>[A-Za-z0-9][0-9A-Za-z _-]*?)[ ]*:[ ]*(?P<value>[^\n]*)$",
    re.MULTILINE,
)

_LINK_PATTERN = re.compile(r"^\[(?P<label>[^\]]*)\]\((?P<target>[^)\s]+)\)$")


@dataclass(frozen=True, slots=True)
class RelatedLink:
    """Reference declared through a ``related`` metadata line."""

    target: str
    label: str | None = None

    @classmethod
    def parse(cls, value: str) -> RelatedLink:
        candidate = value.strip()
        match = _LINK_PATTERN.match(candidate)
        if match is None:
            return cls(target=candidate)
        label = match.group("label").strip() or None
        return cls(target=match.group("target"), label=label)


class MetadataManager:
    """Multi-valued metadata store populated from a document header."""

    def __init__(
        self,
        rules: MetadataRules | None = None,
        *,
        renderer: TemplateRenderer | None = None,
        messages: MessageCatalog | None = None,
        check_required: bool = True,
    ) -> None:
        self.rules = rules or MetadataRules()
        self.renderer = renderer or TemplateRenderer()
        self.messages = messages or MessageCatalog()
        self.check_required = check_required
        self.title: str | None = None
        self.crumbs: list[str] = []
        self.related: list[RelatedLink] = []
        self.variables: dict[str, str] = {}
        self._values: dict[str, list[str]] = {}
        self._extracted = False

    def extract(
        self, text: str, text_map: TextPositionMap | None = None
    ) -> tuple[str, list[Diagnostic]]:
        """Strip the header block from ``text`` and record its values.

        When ``text_map`` is given, diagnostic offsets are translated through
        it before the header removal is folded in.
        """
        if self._extracted:
            raise RuntimeError("Metadata has already been extracted for this document.")
        self._extracted = True

        diagnostics: list[Diagnostic] = []

        def _strip_header(match: re.Match[str]) -> str:
            for row in _ROW_PATTERN.finditer(match.group(0)):
                diagnostic = self._record_row(
                    row.group("key"), row.group("value"), match.start() + row.start()
                )
                if diagnostic is not None:
                    diagnostics.append(diagnostic)
            return ""

        result = replace(HEADER_PATTERN, text, _strip_header, name="metadata")

        if self.check_required:
            diagnostics.extend(self._missing_diagnostics())

        if text_map is not None:
            diagnostics = [_remap(diagnostic, text_map) for diagnostic in diagnostics]
            result.apply_to(text_map)

        for key, values in self._values.items():
            self.variables[key] = self.renderer.render_metadata_list(values)

        logger.debug("extracted %d metadata keys", len(self._values))
        return result.text, diagnostics

    def _record_row(self, raw_key: str, raw_value: str, offset: int) -> Diagnostic | None:
        key_name = raw_key.strip()
        value = raw_value.strip()
        if any(character.isspace() for character in key_name):
            return Diagnostic(
                Severity.WARNING,
                self.messages.message("MetadataNamesMustNotContainSpaces", key_name),
                key=key_name,
                offset=offset,
            )

        key = key_name.lower()
        if key in self.rules.unique and key in self._values:
            return Diagnostic(
                Severity.WARNING,
                self.messages.message("DuplicateMetadataDetected", key_name),
                key=key_name,
                offset=offset,
            )

        self._values.setdefault(key, []).append(value)

        if value:
            if key == "title" and self.title is None:
                self.title = value
            elif key == "crumbs":
                self.crumbs.append(value)
            elif key == "related":
                self.related.append(RelatedLink.parse(value))
        return None

    def _missing_diagnostics(self) -> Iterator[Diagnostic]:
        # Absent keys are reported against the top of the document.
        for severity, keys in (
            (Severity.ERROR, self.rules.required),
            (Severity.INFO, self.rules.informational),
        ):
            for key in keys:
                if key not in self._values:
                    yield Diagnostic(
                        severity,
                        self.messages.message("MissingMetadata", key),
                        key=key,
                        offset=0,
                    )

    def contains(self, name: str) -> bool:
        return name.lower() in self._values

    def get(self, name: str) -> list[str]:
        """Return the values recorded for ``name``; raises ``KeyError`` when absent."""
        return list(self._values[name.lower()])

    def get_first(self, name: str, default: str | None = None) -> str | None:
        values = self._values.get(name.lower())
        return values[0] if values else default

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for key, values in self._values.items():
            yield key, list(values)

    def as_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._values.items()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __len__(self) -> int:
        return len(self._values)


def _remap(diagnostic: Diagnostic, text_map: TextPositionMap) -> Diagnostic:
    if diagnostic.offset is None:
        return diagnostic
    return replace_fields(diagnostic, offset=text_map.map_offset(diagnostic.offset))
