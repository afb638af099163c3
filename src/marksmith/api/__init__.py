"""Facade exposing the host-facing render API.

Usage Example
:
    >>> from marksmith.api import RenderSession
    >>> session = RenderSession()
    >>> session.render_text("Title: Demo\\n\\nHello", "demo.md").title
    'Demo'
"""

from __future__ import annotations

from .service import RenderResult, RenderSession


__all__ = ["RenderResult", "RenderSession"]
