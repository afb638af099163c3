"""Primary public API for marksmith."""

from __future__ import annotations

from marksmith.api import RenderResult, RenderSession
from marksmith.core.config import MarksmithConfig, MetadataRules, load_config
from marksmith.core.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    LoggingEmitter,
    NullEmitter,
    Severity,
)
from marksmith.core.documents import Document
from marksmith.core.exceptions import (
    ConfigurationError,
    CyclicIncludeError,
    DocumentRenderError,
    DuplicateParameterError,
    IncludeNotFoundError,
    MarksmithError,
    ParseError,
    TemplateLoadError,
    TemplateNotFoundError,
)
from marksmith.core.messages import MessageCatalog
from marksmith.version import get_version


__version__ = get_version()

__all__ = [
    "ConfigurationError",
    "CyclicIncludeError",
    "Diagnostic",
    "DiagnosticEmitter",
    "Document",
    "DocumentRenderError",
    "DuplicateParameterError",
    "IncludeNotFoundError",
    "LoggingEmitter",
    "MarksmithConfig",
    "MarksmithError",
    "MessageCatalog",
    "MetadataRules",
    "NullEmitter",
    "ParseError",
    "RenderResult",
    "RenderSession",
    "Severity",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "__version__",
    "get_version",
    "load_config",
]
