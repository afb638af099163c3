from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from marksmith.core.exceptions import TemplateLoadError
from marksmith.core.templates import TemplateCache, TemplateRenderer, object_template_path


def test_object_template_path_follows_convention(tmp_path: Path) -> None:
    assert object_template_path(tmp_path, "Note") == (
        tmp_path / "Include" / "Templates" / "Objects" / "Note.html"
    )


def test_render_binds_parameters(tmp_path: Path, object_templates) -> None:
    path = object_templates("Note", "<div>{{ Title }}: {{ Body }}</div>\n")
    renderer = TemplateRenderer()

    html = renderer.render(path, {"Title": "Hi", "Body": "there", "Unused": "x"})

    assert html == "<div>Hi: there</div>"


def test_unbound_placeholder_renders_empty(tmp_path: Path, object_templates) -> None:
    path = object_templates("Note", "[{{ Missing }}]")

    assert TemplateRenderer().render(path, {}) == "[]"


def test_missing_template_raises(tmp_path: Path) -> None:
    with pytest.raises(TemplateLoadError) as excinfo:
        TemplateRenderer().render(tmp_path / "absent.html", {})

    assert excinfo.value.template == (tmp_path / "absent.html").resolve()


def test_invalid_template_raises(tmp_path: Path, object_templates) -> None:
    path = object_templates("Broken", "{% if %}")

    with pytest.raises(TemplateLoadError, match="Unable to parse template"):
        TemplateRenderer().render(path, {})


def test_cache_compiles_each_template_once(tmp_path: Path, object_templates) -> None:
    path = object_templates("Note", "{{ Body }}")
    cache = TemplateCache()

    first = cache.get(path)
    path.write_text("changed {{ Body }}", encoding="utf-8")
    second = cache.get(path)

    assert first is second
    assert path in cache
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_cache_is_shared_across_threads(tmp_path: Path, object_templates) -> None:
    path = object_templates("Note", "{{ Body }}")
    cache = TemplateCache()

    with ThreadPoolExecutor(max_workers=8) as pool:
        templates = list(pool.map(lambda _index: cache.get(path), range(32)))

    assert all(template is templates[0] for template in templates)


def test_metadata_list_rendering() -> None:
    renderer = TemplateRenderer()

    assert renderer.render_metadata_list(["Linux", "macOS"]) == "Linux, macOS"
    assert renderer.render_metadata_list([]) == ""
    assert renderer.render_string("{{ a }}-{{ b }}", {"a": 1, "b": 2}) == "1-2"
