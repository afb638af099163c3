"""Element tree produced by the tag parser.

Architecture
: Ownership flows root to leaf: a document owns its top-level elements,
  objects own their parameters, parameters own their content.
: Parent links are ids into the document `ElementTree` arena, resolved on
  demand, so a child never holds its parent alive.
: Every element renders itself into a text buffer and can be walked with a
  visitor receiving pre- and post-children callbacks.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Generic, Protocol, TypeVar

from .diagnostics import Severity
from .exceptions import (
    CyclicIncludeError,
    DuplicateParameterError,
    IncludeNotFoundError,
    ParseError,
    TemplateLoadError,
)


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .context import RenderContext
    from .documents import Document


logger = logging.getLogger(__name__)

__all__ = [
    "ContentElement",
    "Element",
    "ElementOrigin",
    "ElementTree",
    "ElementVisitor",
    "IncludeElement",
    "ObjectElement",
    "ObjectParamElement",
    "collect",
    "render_sequence",
]


@dataclass(frozen=True, slots=True)
class ElementOrigin:
    """Span of the parsed document text an element was built from."""

    start: int
    text: str

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    def contains(self, other: ElementOrigin) -> bool:
        return self.start <= other.start and other.end <= self.end


class ElementVisitor(Protocol):
    """Callbacks invoked by `Element.walk`."""

    def pre_children_visit(self, element: Element) -> None: ...

    def post_children_visit(self, element: Element) -> None: ...


class ElementTree:
    """Arena storing every element of one document in creation order."""

    def __init__(self) -> None:
        self._nodes: list[Element] = []

    def add(self, element: Element, parent: Element | None = None) -> int:
        if parent is not None:
            if parent.document is not element.document:
                raise ParseError("Parent element belongs to another document.")
            if not parent.origin.contains(element.origin):
                raise ParseError(
                    f"Element at {element.origin.start} lies outside its parent span "
                    f"{parent.origin.start}-{parent.origin.end}.",
                    offset=element.origin.start,
                )
        element.element_id = len(self._nodes)
        element.parent_id = parent.element_id if parent is not None else None
        self._nodes.append(element)
        return element.element_id

    def parent_of(self, element: Element) -> Element | None:
        if element.parent_id is None:
            return None
        return self._nodes[element.parent_id]

    def ancestors(self, element: Element) -> Iterator[Element]:
        current = self.parent_of(element)
        while current is not None:
            yield current
            current = self.parent_of(current)

    @property
    def roots(self) -> list[Element]:
        return [node for node in self._nodes if node.parent_id is None]

    def __iter__(self) -> Iterator[Element]:
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)


class Element:
    """Base class for parsed document nodes."""

    kind: ClassVar[str] = "element"

    def __init__(self, document: Document, origin: ElementOrigin, parent: Element | None = None) -> None:
        self.document = document
        self.origin = origin
        self.element_id = -1
        self.parent_id: int | None = None
        document.tree.add(self, parent)

    @property
    def parent(self) -> Element | None:
        return self.document.tree.parent_of(self)

    def children(self) -> Sequence[Element]:
        return ()

    def render(self, buffer: io.StringIO, include_stack: list[Path], context: RenderContext) -> None:
        raise NotImplementedError

    def walk(self, visitor: ElementVisitor) -> None:
        visitor.pre_children_visit(self)
        for child in self.children():
            child.walk(visitor)
        visitor.post_children_visit(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} #{self.element_id} @{self.origin.start}>"


def render_sequence(
    elements: Sequence[Element], include_stack: list[Path], context: RenderContext
) -> str:
    """Render ``elements`` in order, joining non-empty outputs with newlines."""
    parts: list[str] = []
    for element in elements:
        buffer = io.StringIO()
        element.render(buffer, include_stack, context)
        rendered = buffer.getvalue()
        if rendered:
            parts.append(rendered)
    return "\n".join(parts)


class ContentElement(Element):
    """Plain prose handed to the markdown collaborator."""

    kind = "content"

    def __init__(
        self,
        document: Document,
        origin: ElementOrigin,
        text: str,
        parent: Element | None = None,
    ) -> None:
        super().__init__(document, origin, parent)
        self.text = text

    def render(self, buffer: io.StringIO, include_stack: list[Path], context: RenderContext) -> None:
        if not self.text.strip():
            return
        buffer.write(context.markdown.convert(self.text))


class ObjectParamElement(Element):
    """Markdown parameter of an object, parsed into its own sub-tree."""

    kind = "param"

    def __init__(
        self,
        document: Document,
        origin: ElementOrigin,
        name: str,
        parent: Element | None = None,
        *,
        indentation: str = "",
    ) -> None:
        super().__init__(document, origin, parent)
        self.name = name
        self.indentation = indentation
        self.elements: list[Element] = []

    def children(self) -> Sequence[Element]:
        return self.elements

    def render_inner(self, include_stack: list[Path], context: RenderContext) -> str:
        return render_sequence(self.elements, include_stack, context)

    def render(self, buffer: io.StringIO, include_stack: list[Path], context: RenderContext) -> None:
        buffer.write(self.render_inner(include_stack, context))


class ObjectElement(Element):
    """Template instantiation binding literal and markdown parameters."""

    kind = "object"

    def __init__(
        self,
        document: Document,
        origin: ElementOrigin,
        name: str,
        template: Path,
        parent: Element | None = None,
    ) -> None:
        super().__init__(document, origin, parent)
        self.name = name
        self.template = template
        self.literal_params: dict[str, str] = {}
        self.markdown_params: dict[str, ObjectParamElement] = {}

    def _claim(self, name: str, offset: int) -> None:
        if name in self.literal_params or name in self.markdown_params:
            message = self.document.messages.message("DuplicateParameter", name, self.name)
            self.document.report(Severity.ERROR, message, key=name, offset=offset)
            error = DuplicateParameterError(message, offset=offset, tag=name)
            error.reported = True
            raise error

    def add_literal(self, name: str, value: str, *, offset: int | None = None) -> None:
        self._claim(name, self.origin.start if offset is None else offset)
        self.literal_params[name] = value

    def add_markdown(self, param: ObjectParamElement) -> None:
        self._claim(param.name, param.origin.start)
        self.markdown_params[param.name] = param

    def children(self) -> Sequence[Element]:
        return list(self.markdown_params.values())

    def bindings(self, include_stack: list[Path], context: RenderContext) -> dict[str, str]:
        """Return document variables overlaid with this object's parameters."""
        values = dict(self.document.variables)
        values.update(self.literal_params)
        for name, param in self.markdown_params.items():
            values[name] = param.render_inner(include_stack, context)
        return values

    def render(self, buffer: io.StringIO, include_stack: list[Path], context: RenderContext) -> None:
        bindings = self.bindings(include_stack, context)
        if self.template not in context.templates.cache:
            context.emitter.event("template_loaded", {"path": str(self.template)})
        try:
            rendered = context.templates.render(self.template, bindings)
        except TemplateLoadError as exc:
            message = self.document.messages.message("TemplateRenderFailed", self.name, exc)
            self.document.report(Severity.ERROR, message, key=self.name, offset=self.origin.start)
            exc.reported = True
            raise
        buffer.write(rendered)


class IncludeElement(Element):
    """Reference to another document spliced in at render time."""

    kind = "include"

    def __init__(
        self,
        document: Document,
        origin: ElementOrigin,
        target: str,
        parent: Element | None = None,
    ) -> None:
        super().__init__(document, origin, parent)
        self.target = target

    def resolve(self) -> Path:
        """Return the absolute include path relative to the including document."""
        candidate = Path(self.target)
        if not candidate.is_absolute():
            candidate = self.document.folder / candidate
        if not candidate.suffix:
            candidate = candidate.with_suffix(".md")
        return candidate.resolve()

    def render(self, buffer: io.StringIO, include_stack: list[Path], context: RenderContext) -> None:
        path = self.resolve()
        if path in include_stack:
            message = self.document.messages.message("CyclicInclude", self.target)
            self.document.report(Severity.ERROR, message, key=self.target, offset=self.origin.start)
            error = CyclicIncludeError(path, include_stack)
            error.reported = True
            raise error

        include_stack.append(path)
        try:
            context.emitter.event("include", {"target": str(path), "depth": len(include_stack) - 1})
            try:
                target = context.load_document(path)
            except IncludeNotFoundError as exc:
                logger.debug("include %s failed", path, exc_info=exc)
                self.document.report(
                    Severity.ERROR,
                    self.document.messages.message("IncludeNotFound", self.target),
                    key=self.target,
                    offset=self.origin.start,
                )
                return
            buffer.write(target.render(include_stack, context))
        finally:
            include_stack.pop()


_E = TypeVar("_E", bound=Element)


class _Collector(Generic[_E]):
    def __init__(self, kind: type[_E]) -> None:
        self.kind = kind
        self.found: list[_E] = []

    def pre_children_visit(self, element: Element) -> None:
        if isinstance(element, self.kind):
            self.found.append(element)

    def post_children_visit(self, element: Element) -> None:
        return


def collect(elements: Sequence[Element], kind: type[_E]) -> list[_E]:
    """Return every element of class ``kind`` in document order."""
    collector = _Collector(kind)
    for element in elements:
        element.walk(collector)
    return collector.found
