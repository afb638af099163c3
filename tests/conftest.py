from __future__ import annotations

from pathlib import Path

import pytest


class EchoMarkdown:
    """Markdown stand-in wrapping prose in a paragraph without parsing it."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def convert(self, text: str) -> str:
        self.calls.append(text)
        return f"<p>{text.strip()}</p>"


@pytest.fixture
def echo_markdown() -> EchoMarkdown:
    return EchoMarkdown()


@pytest.fixture
def object_templates(tmp_path: Path):
    """Return a helper writing ``Include/Templates/Objects/<name>.html`` under ``tmp_path``."""
    folder = tmp_path / "Include" / "Templates" / "Objects"

    def _write(name: str, source: str) -> Path:
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / f"{name}.html"
        path.write_text(source, encoding="utf-8")
        return path

    return _write
