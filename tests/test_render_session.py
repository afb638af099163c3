from __future__ import annotations

from pathlib import Path

import pytest

from marksmith.api import RenderResult, RenderSession
from marksmith.core.config import MarksmithConfig
from marksmith.core.diagnostics import Diagnostic, Severity
from marksmith.core.exceptions import (
    CyclicIncludeError,
    DocumentRenderError,
    DuplicateParameterError,
    TemplateLoadError,
    TemplateNotFoundError,
)


SETUP_GUIDE = (
    "Title: Setup Guide\n"
    "Platform: Windows\n"
    "\n"
    "[OBJECT:Note]\n"
    "[PARAMLITERAL:Body]\n"
    "    Install the SDK.\n"
    "[/PARAMLITERAL]\n"
    "[/OBJECT]"
)


class _RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, object]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload) -> None:
        self.events.append((name, dict(payload)))


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_setup_guide_example(tmp_path: Path, object_templates, echo_markdown) -> None:
    object_templates("Note", '<div class="note">{{ Body }}</div>\n')
    source = _write(tmp_path / "guide.md", SETUP_GUIDE)

    result = RenderSession(markdown=echo_markdown).render_file(source)

    assert isinstance(result, RenderResult)
    assert result.title == "Setup Guide"
    assert result.metadata["platform"] == ["Windows"]
    assert result.html == '<div class="note">Install the SDK.</div>'
    assert not result.has_errors
    assert echo_markdown.calls == []


def test_rendering_is_deterministic(tmp_path: Path, object_templates) -> None:
    object_templates("Note", "<aside>{{ Body }} ({{ platform }})</aside>")
    source = _write(
        tmp_path / "guide.md",
        SETUP_GUIDE + "\n\nSome *text* with %platform% and %unknown%.\n\n[INCLUDE:missing]",
    )
    session = RenderSession()

    first = session.render_file(source)
    second = session.render_file(source)

    assert first.html == second.html
    assert first.diagnostics == second.diagnostics
    assert "<aside>Install the SDK. (Windows)</aside>" in first.html
    assert "<em>text</em> with Windows and %unknown%." in first.html


def test_missing_required_metadata_still_renders(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Platform: Linux\n\nHello world")

    result = RenderSession(markdown=echo_markdown).render_file(source)

    errors = [item for item in result.diagnostics if item.severity is Severity.ERROR]
    assert [item.key for item in errors] == ["title"]
    assert result.has_errors
    assert (errors[0].line, errors[0].column) == (1, 1)
    assert result.html == "<p>Hello world</p>"


def test_duplicate_title_reports_once(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: One\nTitle: Two\n\nBody")

    result = RenderSession(markdown=echo_markdown).render_file(source)

    duplicates = [item for item in result.diagnostics if item.severity is Severity.WARNING]
    assert result.title == "One"
    assert len(duplicates) == 1
    assert (duplicates[0].path, duplicates[0].line, duplicates[0].column) == (source.resolve(), 2, 1)


def test_content_is_joined_around_objects(tmp_path: Path, object_templates, echo_markdown) -> None:
    object_templates("Badge", "<b>{{ Label }}</b>")
    source = _write(
        tmp_path / "doc.md",
        "Title: T\n\nBefore\n\n[OBJECT:Badge][PARAMLITERAL:Label]new[/PARAMLITERAL][/OBJECT]\n\nAfter",
    )

    result = RenderSession(markdown=echo_markdown).render_file(source)

    assert result.html == "<p>Before</p>\n<b>new</b>\n<p>After</p>"


def test_markdown_params_are_rendered_before_binding(
    tmp_path: Path, object_templates, echo_markdown
) -> None:
    object_templates("Card", "<section><h2>{{ Heading }}</h2>{{ Body }}</section>")
    source = _write(
        tmp_path / "doc.md",
        "Title: T\n\n"
        "[OBJECT:Card]\n"
        "[PARAMLITERAL:Heading]%title%[/PARAMLITERAL]\n"
        "[PARAM:Body]\n"
        "Welcome aboard.\n"
        "[/PARAM]\n"
        "[/OBJECT]",
    )

    result = RenderSession(markdown=echo_markdown).render_file(source)

    assert result.html == "<section><h2>T</h2><p>Welcome aboard.</p></section>"
    assert echo_markdown.calls == ["Welcome aboard."]


def test_object_parameters_override_document_variables(
    tmp_path: Path, object_templates, echo_markdown
) -> None:
    object_templates("Show", "{{ title }}")
    source = _write(
        tmp_path / "doc.md",
        "Title: Document\n\n[OBJECT:Show][PARAMLITERAL:title]Param[/PARAMLITERAL][/OBJECT]",
    )

    result = RenderSession(markdown=echo_markdown).render_file(source)

    assert result.html == "Param"


def test_includes_are_spliced_relative_to_including_document(
    tmp_path: Path, echo_markdown
) -> None:
    _write(tmp_path / "parts" / "intro.md", "Intro [INCLUDE:../shared/footer]")
    _write(tmp_path / "shared" / "footer.md", "Footer")
    source = _write(tmp_path / "doc.md", "Title: T\n\n[INCLUDE:parts/intro.md]\n\nEnd")
    emitter = _RecordingEmitter()

    result = RenderSession(markdown=echo_markdown, emitter=emitter).render_file(source)

    assert result.html == "<p>Intro</p>\n<p>Footer</p>\n<p>End</p>"
    include_events = [payload for name, payload in emitter.events if name == "include"]
    assert [Path(str(event["target"])).name for event in include_events] == ["intro.md", "footer.md"]
    assert [event["depth"] for event in include_events] == [1, 2]


def test_included_documents_skip_required_metadata(tmp_path: Path, echo_markdown) -> None:
    _write(tmp_path / "part.md", "Author: Someone\n\nPart body")
    source = _write(tmp_path / "doc.md", "Title: T\nDescription: D\n\n[INCLUDE:part]")

    result = RenderSession(markdown=echo_markdown).render_file(source)

    assert result.diagnostics == []
    assert result.html == "<p>Part body</p>"


def test_missing_include_is_node_local(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: T\n\nBefore\n\n[INCLUDE:nowhere]\n\nAfter")
    emitter = _RecordingEmitter()

    result = RenderSession(markdown=echo_markdown, emitter=emitter).render_file(source)

    assert result.html == "<p>Before</p>\n<p>After</p>"
    (error,) = [item for item in result.diagnostics if item.severity is Severity.ERROR]
    assert error.key == "nowhere"
    assert error.line == 5
    assert any("nowhere" in message for message in emitter.errors)


def test_cyclic_include_fails_the_render(tmp_path: Path, echo_markdown) -> None:
    _write(tmp_path / "b.md", "B body\n\n[INCLUDE:a]")
    source = _write(tmp_path / "a.md", "Title: A\n\n[INCLUDE:b.md]")

    with pytest.raises(DocumentRenderError) as excinfo:
        RenderSession(markdown=echo_markdown).render_file(source)

    error = excinfo.value
    assert isinstance(error.__cause__, CyclicIncludeError)
    assert error.__cause__.stack == [source.resolve(), (tmp_path / "b.md").resolve()]
    cyclic = [item for item in error.diagnostics if item.severity is Severity.ERROR]
    assert len(cyclic) == 1
    assert cyclic[0].path == (tmp_path / "b.md").resolve()


def test_self_include_is_cyclic(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "a.md", "Title: A\n\n[INCLUDE:a.md]")

    with pytest.raises(DocumentRenderError) as excinfo:
        RenderSession(markdown=echo_markdown).render_file(source)

    assert isinstance(excinfo.value.__cause__, CyclicIncludeError)


def test_missing_template_fails_the_render(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: T\n\n[OBJECT:Ghost][/OBJECT]")

    with pytest.raises(DocumentRenderError) as excinfo:
        RenderSession(markdown=echo_markdown).render_file(source)

    assert isinstance(excinfo.value.__cause__, TemplateNotFoundError)
    assert [item.key for item in excinfo.value.diagnostics if item.severity is Severity.ERROR] == [
        "Ghost"
    ]


@pytest.mark.parametrize("template", ["{% if %}broken", "{{ missing() }}"])
def test_broken_template_is_reported_at_the_object(
    tmp_path: Path, object_templates, echo_markdown, template: str
) -> None:
    object_templates("N", template)
    source = _write(tmp_path / "doc.md", "Title: T\n\n[OBJECT:N][/OBJECT]\n")

    with pytest.raises(DocumentRenderError) as excinfo:
        RenderSession(markdown=echo_markdown).render_file(source)

    assert isinstance(excinfo.value.__cause__, TemplateLoadError)
    errors = [item for item in excinfo.value.diagnostics if item.severity is Severity.ERROR]
    assert len(errors) == 1
    assert errors[0].key == "N"
    assert (errors[0].line, errors[0].column) == (3, 1)
    assert errors[0].message.startswith("Template for object 'N' failed")


def test_duplicate_parameter_fails_the_render(
    tmp_path: Path, object_templates, echo_markdown
) -> None:
    object_templates("Note", "{{ Body }}")
    source = _write(
        tmp_path / "doc.md",
        "Title: T\n\n[OBJECT:Note]\n[PARAMLITERAL:Body]a[/PARAMLITERAL]\n[PARAMLITERAL:Body]b[/PARAMLITERAL]\n[/OBJECT]",
    )

    with pytest.raises(DocumentRenderError) as excinfo:
        RenderSession(markdown=echo_markdown).render_file(source)

    assert isinstance(excinfo.value.__cause__, DuplicateParameterError)
    (error,) = [item for item in excinfo.value.diagnostics if item.severity is Severity.ERROR]
    assert error.line == 5


def test_template_root_from_config(tmp_path: Path, echo_markdown) -> None:
    root = tmp_path / "site"
    _write(root / "Include" / "Templates" / "Objects" / "Note.html", "[{{ Body }}]")
    source = _write(
        tmp_path / "docs" / "doc.md",
        "Title: T\n\n[OBJECT:Note][PARAMLITERAL:Body]x[/PARAMLITERAL][/OBJECT]",
    )

    session = RenderSession(MarksmithConfig(template_root=root), markdown=echo_markdown)

    assert session.render_file(source).html == "[x]"


def test_variable_expansion_can_be_disabled(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: T\n\nKeep %title% as is")

    session = RenderSession(MarksmithConfig(expand_variables=False), markdown=echo_markdown)

    assert session.render_file(source).html == "<p>Keep %title% as is</p>"


def test_crlf_sources_report_original_lines(tmp_path: Path, echo_markdown) -> None:
    source = tmp_path / "doc.md"
    source.write_bytes(b"Title: T\r\n\r\nLine\r\n[/PARAM]\r\n")

    result = RenderSession(markdown=echo_markdown).render_file(source)

    (error,) = [item for item in result.diagnostics if item.severity is Severity.ERROR]
    assert (error.line, error.column) == (4, 1)
    assert error.offset == len("Title: T\r\n\r\nLine\r\n")


def test_render_text_uses_path_for_includes(tmp_path: Path, echo_markdown) -> None:
    _write(tmp_path / "part.md", "Part")

    result = RenderSession(markdown=echo_markdown).render_text(
        "Title: T\n\n[INCLUDE:part]", tmp_path / "virtual.md"
    )

    assert result.html == "<p>Part</p>"


def test_extract_metadata_skips_rendering(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: Only\nTags: a\n\n[OBJECT:Ghost][/OBJECT]")

    result = RenderSession(markdown=echo_markdown).extract_metadata(source)

    assert result.title == "Only"
    assert result.metadata == {"title": ["Only"], "tags": ["a"]}
    assert result.html == ""
    assert echo_markdown.calls == []


def test_unreadable_source_raises(tmp_path: Path) -> None:
    with pytest.raises(DocumentRenderError, match="Unable to read"):
        RenderSession().render_file(tmp_path / "missing.md")


def test_diagnostics_are_forwarded_to_emitter(tmp_path: Path, echo_markdown) -> None:
    source = _write(tmp_path / "doc.md", "Title: T\nTitle: U\n\nBody")
    emitter = _RecordingEmitter()

    result = RenderSession(markdown=echo_markdown, emitter=emitter).render_file(source)

    assert len(emitter.warnings) == 1
    assert "Duplicate metadata" in emitter.warnings[0]
    info = [payload for name, payload in emitter.events if name == "diagnostic"]
    assert [payload["message"] for payload in info] == ["Missing metadata 'description'."]
    assert all(isinstance(item, Diagnostic) for item in result.diagnostics)
