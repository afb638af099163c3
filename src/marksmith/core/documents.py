"""Document abstraction tying preprocessing, parsing and rendering together.

Architecture
: A `Document` is created per source file and owns its position map,
  metadata store and element arena. None of them are shared across threads.
: `parse` runs the rewriting passes in order (line endings, metadata header,
  ``%variable%`` expansion), folding each batch of changes into the position
  map, then builds the element tree from the remaining text.
: Diagnostics are reported with offsets of the parsed text and translated back
  to the original source before they are recorded.

Usage Example
:
    >>> from pathlib import Path
    >>> doc = Document(Path("guide.md"), "Title: Guide\\n\\nHello")
    >>> doc.parse().title
    'Guide'
    >>> doc.text
    'Hello'
"""

from __future__ import annotations

from dataclasses import replace
import logging
from pathlib import Path
from typing import Any

from .config import MarksmithConfig
from .context import RenderContext
from .diagnostics import Diagnostic, DiagnosticList, Severity
from .elements import Element, ElementTree, ElementVisitor, render_sequence
from .messages import MessageCatalog
from .metadata import MetadataManager
from .parser import DocumentParser
from .preprocess import expand_variables, normalize_line_endings
from .templates import TemplateRenderer
from .textmap import TextPositionMap


logger = logging.getLogger(__name__)

__all__ = ["Document", "read_source"]


def read_source(path: Path, encoding: str = "utf-8") -> str:
    """Read ``path`` keeping its line endings so offsets match the file on disk."""
    return path.read_bytes().decode(encoding)


class Document:
    """Root unit of transformation for one source file."""

    def __init__(
        self,
        path: Path,
        source: str,
        *,
        config: MarksmithConfig | None = None,
        templates: TemplateRenderer | None = None,
        diagnostics: DiagnosticList | None = None,
        messages: MessageCatalog | None = None,
        template_root: Path | None = None,
        is_root: bool = True,
    ) -> None:
        self.path = Path(path)
        self.folder = self.path.parent
        self.source = source
        self.config = config or MarksmithConfig()
        self.templates = templates or TemplateRenderer()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticList()
        self.messages = messages or MessageCatalog()
        self.template_root = template_root or self.config.template_root or self.folder
        self.is_root = is_root
        self.text_map = TextPositionMap()
        self.tree = ElementTree()
        self.metadata = MetadataManager(
            self.config.metadata,
            renderer=self.templates,
            messages=self.messages,
            check_required=is_root,
        )
        self.text = source
        self.elements: list[Element] = []
        self._metadata_read = False
        self._parsed = False

    @classmethod
    def from_path(
        cls, path: Path, *, config: MarksmithConfig | None = None, **kwargs: Any
    ) -> Document:
        """Read ``path`` and return an unparsed document."""
        encoding = config.encoding if config is not None else "utf-8"
        source = read_source(Path(path), encoding)
        return cls(Path(path), source, config=config, **kwargs)

    @property
    def title(self) -> str | None:
        return self.metadata.title

    @property
    def variables(self) -> dict[str, str]:
        return self.metadata.variables

    @property
    def parsed(self) -> bool:
        return self._parsed

    def parse_metadata(self) -> MetadataManager:
        """Normalise line endings and consume the metadata header once."""
        if not self._metadata_read:
            self._metadata_read = True
            text = normalize_line_endings(self.source, self.text_map)
            text, diagnostics = self.metadata.extract(text, self.text_map)
            for diagnostic in diagnostics:
                self._record(diagnostic)
            self.text = text
        return self.metadata

    def parse(self) -> Document:
        """Run the rewriting passes and build the element tree once."""
        if self._parsed:
            return self
        self._parsed = True

        self.parse_metadata()
        text = self.text
        if self.config.expand_variables:
            text, diagnostics = expand_variables(
                text, self.metadata.variables, self.text_map, messages=self.messages
            )
            for diagnostic in diagnostics:
                self._record(diagnostic)

        self.text = text
        self.elements = DocumentParser(self, self.template_root).parse(text)
        logger.debug("parsed %s into %d elements", self.path, len(self.tree))
        return self

    def render(self, include_stack: list[Path], context: RenderContext) -> str:
        """Render the element tree depth first."""
        self.parse()
        return render_sequence(self.elements, include_stack, context)

    def walk(self, visitor: ElementVisitor) -> None:
        for element in self.elements:
            element.walk(visitor)

    def report(
        self,
        severity: Severity,
        message: str,
        *,
        key: str | None = None,
        offset: int | None = None,
    ) -> Diagnostic:
        """Record a diagnostic whose ``offset`` refers to the parsed text."""
        mapped = self.text_map.map_offset(offset) if offset is not None else None
        return self._record(Diagnostic(severity, message, key=key, offset=mapped))

    def locate(self, offset: int) -> tuple[int, int]:
        """Return the 1-based line and column of an original source offset."""
        offset = max(0, min(offset, len(self.source)))
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def _record(self, diagnostic: Diagnostic) -> Diagnostic:
        line = column = None
        if diagnostic.offset is not None:
            line, column = self.locate(diagnostic.offset)
        return self.diagnostics.add(replace(diagnostic, path=self.path, line=line, column=column))

    def __repr__(self) -> str:
        return f"<Document {self.path}>"
