"""Render orchestration shared by the CLI and embedding hosts.

Architecture
: `RenderSession` holds the collaborators that outlive one document: the
  configuration, the compiled template cache, the markdown converter and the
  message catalog. A session can serve several renders, including from
  separate threads.
: Each `render_*` call owns its diagnostic list, include stack and included
  document cache. Nothing parsed for one call is reused by another.
: Fatal failures are wrapped in `DocumentRenderError`, which still carries the
  diagnostics collected up to the failure.

Usage Example
:
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> with TemporaryDirectory() as tmpdir:
    ...     path = Path(tmpdir) / "guide.md"
    ...     _ = path.write_text("Title: Guide\\n\\nHello", encoding="utf-8")
    ...     result = RenderSession().render_file(path)
    ...     result.title, result.html
    ('Guide', '<p>Hello</p>')
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import NoReturn

from marksmith.adapters.markdown import (
    MarkdownConversionError,
    MarkdownConverter,
    PythonMarkdownConverter,
)
from marksmith.core.config import MarksmithConfig
from marksmith.core.context import RenderContext
from marksmith.core.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    DiagnosticList,
    NullEmitter,
    Severity,
)
from marksmith.core.documents import Document, read_source
from marksmith.core.exceptions import DocumentRenderError, IncludeNotFoundError, MarksmithError
from marksmith.core.messages import MessageCatalog
from marksmith.core.templates import TemplateCache, TemplateRenderer


logger = logging.getLogger(__name__)

__all__ = ["RenderResult", "RenderSession"]


@dataclass(slots=True)
class RenderResult:
    """Outcome of rendering one root document."""

    html: str
    diagnostics: list[Diagnostic]
    document: Document

    @property
    def title(self) -> str | None:
        return self.document.title

    @property
    def metadata(self) -> dict[str, list[str]]:
        return self.document.metadata.as_dict()

    @property
    def has_errors(self) -> bool:
        return any(item.severity is Severity.ERROR for item in self.diagnostics)


class _IncludeLoader:
    """Load and parse included documents once per render call."""

    def __init__(
        self,
        session: RenderSession,
        diagnostics: DiagnosticList,
        template_root: Path,
    ) -> None:
        self.session = session
        self.diagnostics = diagnostics
        self.template_root = template_root
        self._documents: dict[Path, Document] = {}

    def __call__(self, path: Path) -> Document:
        document = self._documents.get(path)
        if document is not None:
            return document
        try:
            document = Document.from_path(
                path,
                config=self.session.config,
                templates=self.session.templates,
                diagnostics=self.diagnostics,
                messages=self.session.messages,
                template_root=self.template_root,
                is_root=False,
            )
        except (OSError, UnicodeDecodeError) as exc:
            raise IncludeNotFoundError(f"Unable to read include {path}: {exc}") from exc
        document.parse()
        self._documents[path] = document
        return document


class RenderSession:
    """Render documents against a shared configuration and template cache."""

    def __init__(
        self,
        config: MarksmithConfig | None = None,
        *,
        markdown: MarkdownConverter | None = None,
        template_cache: TemplateCache | None = None,
        emitter: DiagnosticEmitter | None = None,
        messages: MessageCatalog | None = None,
    ) -> None:
        self.config = config or MarksmithConfig()
        self.emitter: DiagnosticEmitter = emitter if emitter is not None else NullEmitter()
        self.template_cache = template_cache or TemplateCache(encoding=self.config.encoding)
        self.templates = TemplateRenderer(self.template_cache)
        self.markdown: MarkdownConverter = markdown or PythonMarkdownConverter(
            self.config.markdown_extensions
        )
        if messages is None:
            messages = (
                MessageCatalog.from_yaml(self.config.messages)
                if self.config.messages is not None
                else MessageCatalog()
            )
        self.messages = messages

    def render_file(self, path: Path | str) -> RenderResult:
        """Read ``path`` and render it as a root document."""
        resolved = Path(path).resolve()
        try:
            source = read_source(resolved, self.config.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentRenderError(f"Unable to read {resolved}: {exc}") from exc
        return self.render_text(source, resolved)

    def render_text(self, text: str, path: Path | str) -> RenderResult:
        """Render ``text`` as if it had been read from ``path``."""
        resolved = Path(path).resolve()
        diagnostics = DiagnosticList(self.emitter)
        document = self._root_document(resolved, text, diagnostics)
        context = RenderContext(
            templates=self.templates,
            markdown=self.markdown,
            diagnostics=diagnostics,
            load_document=_IncludeLoader(self, diagnostics, document.template_root),
            emitter=self.emitter,
        )

        logger.debug("rendering %s", resolved)
        try:
            document.parse()
            html = document.render([resolved], context)
        except (MarksmithError, MarkdownConversionError) as exc:
            self._fail(exc, diagnostics, resolved)
        return RenderResult(html=html, diagnostics=diagnostics.as_list(), document=document)

    def extract_metadata(self, path: Path | str) -> RenderResult:
        """Read only the metadata header of ``path``."""
        resolved = Path(path).resolve()
        try:
            source = read_source(resolved, self.config.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentRenderError(f"Unable to read {resolved}: {exc}") from exc
        diagnostics = DiagnosticList(self.emitter)
        document = self._root_document(resolved, source, diagnostics)
        try:
            document.parse_metadata()
        except MarksmithError as exc:
            self._fail(exc, diagnostics, resolved)
        return RenderResult(html="", diagnostics=diagnostics.as_list(), document=document)

    def _root_document(self, path: Path, text: str, diagnostics: DiagnosticList) -> Document:
        return Document(
            path,
            text,
            config=self.config,
            templates=self.templates,
            diagnostics=diagnostics,
            messages=self.messages,
            template_root=self.config.template_root or path.parent,
            is_root=True,
        )

    def _fail(self, exc: Exception, diagnostics: DiagnosticList, path: Path) -> NoReturn:
        if not getattr(exc, "reported", False):
            diagnostics.add(Diagnostic(Severity.ERROR, str(exc), path=path))
        error = DocumentRenderError(
            f"Failed to render {path}: {exc}", diagnostics=diagnostics.as_list()
        )
        error.reported = True
        raise error from exc
