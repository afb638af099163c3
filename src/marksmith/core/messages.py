"""Localised message lookup used to phrase diagnostics."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_MESSAGES: dict[str, str] = {
    "MetadataNamesMustNotContainSpaces": "Metadata key '{0}' must not contain spaces; line ignored.",
    "DuplicateMetadataDetected": "Duplicate metadata '{0}' detected; keeping the first value.",
    "MissingMetadata": "Missing metadata '{0}'.",
    "UnresolvedVariable": "Unresolved variable '%{0}%'; left as-is.",
    "UnterminatedTag": "Unterminated [{0}:{1}] block; treated as literal content.",
    "UnexpectedClosingTag": "Unexpected closing tag [/{0}]; treated as literal content.",
    "ParamOutsideObject": "Parameter tag [{0}:{1}] outside of an object; treated as literal content.",
    "DuplicateParameter": "Parameter '{0}' is declared more than once in object '{1}'.",
    "TemplateNotFound": "No template found for object '{0}' (expected {1}).",
    "TemplateRenderFailed": "Template for object '{0}' failed: {1}",
    "IncludeNotFound": "Include target '{0}' could not be read.",
    "CyclicInclude": "Cyclic include of '{0}'.",
}


class MessageCatalog:
    """Resolve message keys to display text, falling back to the built-in set."""

    def __init__(self, messages: Mapping[str, str] | None = None) -> None:
        self._messages = dict(DEFAULT_MESSAGES)
        if messages:
            self._messages.update(messages)

    @classmethod
    def from_yaml(cls, path: Path) -> MessageCatalog:
        """Load overrides from a flat YAML mapping of key to format string."""
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Unable to load message catalog '{path}': {exc}") from exc
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"Message catalog '{path}' must contain a mapping.")
        return cls({str(key): str(value) for key, value in payload.items()})

    def __contains__(self, key: object) -> bool:
        return key in self._messages

    def message(self, key: str, *args: Any) -> str:
        """Return the formatted message for ``key``."""
        template = self._messages.get(key)
        if template is None:
            logger.debug("unknown message key %s", key)
            suffix = f": {', '.join(str(arg) for arg in args)}" if args else ""
            return f"{key}{suffix}"
        try:
            return template.format(*args)
        except (IndexError, KeyError):
            logger.debug("message %s expects different arguments", key, exc_info=True)
            return template


__all__ = ["DEFAULT_MESSAGES", "MessageCatalog"]
