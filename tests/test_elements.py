from __future__ import annotations

from pathlib import Path

import pytest

from marksmith.core.documents import Document
from marksmith.core.elements import (
    ContentElement,
    Element,
    ElementOrigin,
    IncludeElement,
    ObjectParamElement,
    collect,
)
from marksmith.core.exceptions import ParseError


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def pre_children_visit(self, element: Element) -> None:
        self.events.append(("enter", element.kind))

    def post_children_visit(self, element: Element) -> None:
        self.events.append(("leave", element.kind))


def test_arena_assigns_ids_and_resolves_parents(tmp_path: Path) -> None:
    document = Document(tmp_path / "doc.md", "")
    param = ObjectParamElement(document, ElementOrigin(0, "[PARAM:x]hello[/PARAM]"), "x")
    child = ContentElement(document, ElementOrigin(9, "hello"), "hello", param)

    assert (param.element_id, child.element_id) == (0, 1)
    assert child.parent is param
    assert param.parent is None
    assert list(document.tree.ancestors(child)) == [param]
    assert document.tree.roots == [param]
    assert len(document.tree) == 2


def test_child_outside_parent_span_is_rejected(tmp_path: Path) -> None:
    document = Document(tmp_path / "doc.md", "")
    param = ObjectParamElement(document, ElementOrigin(0, "abc"), "x")

    with pytest.raises(ParseError):
        ContentElement(document, ElementOrigin(2, "cdef"), "cdef", param)


def test_parent_from_another_document_is_rejected(tmp_path: Path) -> None:
    first = Document(tmp_path / "a.md", "")
    second = Document(tmp_path / "b.md", "")
    param = ObjectParamElement(first, ElementOrigin(0, "abc"), "x")

    with pytest.raises(ParseError):
        ContentElement(second, ElementOrigin(0, "a"), "a", param)


def test_walk_visits_in_document_order(tmp_path: Path, object_templates) -> None:
    object_templates("Card", "{{ Body }}")
    text = "Lead\n\n[OBJECT:Card][PARAM:Body]inner [INCLUDE:x][/PARAM][/OBJECT]\n\nTail"
    document = Document(tmp_path / "doc.md", text).parse()
    recorder = _Recorder()

    document.walk(recorder)

    assert recorder.events == [
        ("enter", "content"),
        ("leave", "content"),
        ("enter", "object"),
        ("enter", "param"),
        ("enter", "content"),
        ("leave", "content"),
        ("enter", "include"),
        ("leave", "include"),
        ("leave", "param"),
        ("leave", "object"),
        ("enter", "content"),
        ("leave", "content"),
    ]


def test_collect_gathers_nested_includes(tmp_path: Path, object_templates) -> None:
    object_templates("Card", "{{ Body }}")
    text = "[INCLUDE:a]\n[OBJECT:Card][PARAM:Body][INCLUDE:b][/PARAM][/OBJECT]"
    document = Document(tmp_path / "doc.md", text).parse()

    includes = collect(document.elements, IncludeElement)

    assert [include.target for include in includes] == ["a", "b"]
    assert [include.resolve().name for include in includes] == ["a.md", "b.md"]


def test_include_keeps_explicit_suffix(tmp_path: Path) -> None:
    document = Document(tmp_path / "docs" / "doc.md", "[INCLUDE:../shared/part.txt]").parse()

    (include,) = document.elements

    assert isinstance(include, IncludeElement)
    assert include.resolve() == (tmp_path / "shared" / "part.txt").resolve()
