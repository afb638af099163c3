"""Configuration models used by the document renderer.

MetadataRules

`required` (`list[str]`)
: Metadata keys every root document must declare. A missing key is reported
  with Error severity; rendering continues.

`informational` (`list[str]`)
: Metadata keys whose absence is reported with Info severity.

`unique` (`list[str]`)
: Keys that accept a single value. The first occurrence wins and later ones
  are reported as duplicates.

MarksmithConfig

`template_root` (`Path | None`)
: Folder holding `Include/Templates/Objects/<Name>.html` resources. Defaults
  to the folder of the document being rendered.

`encoding` (`str`)
: Encoding used to read documents and templates.

`markdown_extensions` (`list[str]`)
: Python-Markdown extensions enabled for plain prose.

`messages` (`Path | None`)
: YAML file overriding diagnostic message text.

`expand_variables` (`bool`)
: Replace `%key%` references with rendered metadata values.

`metadata` (`MetadataRules`)
: Validation rules applied to the header block.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import tomllib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


DEFAULT_CONFIG_NAME = "marksmith.toml"

DEFAULT_MARKDOWN_EXTENSIONS = [
    "abbr",
    "attr_list",
    "def_list",
    "footnotes",
    "tables",
    "admonition",
    "md_in_html",
    "pymdownx.superfences",
    "pymdownx.betterem",
    "pymdownx.tilde",
]


class MetadataRules(BaseModel):
    """Validation rules for the metadata header block."""

    model_config = ConfigDict(extra="forbid")

    required: list[str] = Field(default_factory=lambda: ["title"])
    informational: list[str] = Field(default_factory=lambda: ["description"])
    unique: list[str] = Field(
        default_factory=lambda: ["title", "description", "template", "force-publish-files"]
    )

    @field_validator("required", "informational", "unique", mode="after")
    @classmethod
    def _fold_case(cls, value: list[str]) -> list[str]:
        folded: list[str] = []
        for entry in value:
            key = entry.strip().lower()
            if key and key not in folded:
                folded.append(key)
        return folded


class MarksmithConfig(BaseModel):
    """Top-level renderer configuration."""

    model_config = ConfigDict(extra="forbid")

    template_root: Path | None = None
    encoding: str = "utf-8"
    markdown_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MARKDOWN_EXTENSIONS)
    )
    messages: Path | None = None
    expand_variables: bool = True
    metadata: MetadataRules = Field(default_factory=MetadataRules)

    def resolve_relative_to(self, base: Path) -> MarksmithConfig:
        """Return a copy whose relative paths are anchored at ``base``."""
        updates: dict[str, Any] = {}
        for name in ("template_root", "messages"):
            value = getattr(self, name)
            if value is not None and not value.is_absolute():
                updates[name] = (base / value).resolve()
        return self.model_copy(update=updates) if updates else self


def config_from_mapping(payload: Mapping[str, Any]) -> MarksmithConfig:
    """Validate a raw mapping, raising ``ConfigurationError`` on failure."""
    try:
        return MarksmithConfig.model_validate(dict(payload))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid marksmith configuration: {exc}") from exc


def _extract_section(data: Mapping[str, Any], path: Path) -> Mapping[str, Any]:
    if path.name == "pyproject.toml":
        tool = data.get("tool", {})
        section = tool.get("marksmith", {}) if isinstance(tool, Mapping) else {}
    else:
        section = data.get("marksmith", data)
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Section 'marksmith' in {path} must be a table.")
    return section


def load_config(path: Path | None = None, *, root: Path | None = None) -> MarksmithConfig:
    """Load configuration from ``path`` or from ``marksmith.toml`` under ``root``.

    A missing default file yields the default configuration; a missing explicit
    file is an error.
    """
    explicit = path is not None
    if path is None:
        base = root if root is not None else Path.cwd()
        path = base / DEFAULT_CONFIG_NAME
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        if explicit:
            raise ConfigurationError(f"Configuration file not found: {path}") from exc
        return MarksmithConfig()
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Unable to parse {path}: {exc}") from exc
    config = config_from_mapping(_extract_section(data, path))
    return config.resolve_relative_to(path.parent.resolve())


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MarksmithConfig",
    "MetadataRules",
    "config_from_mapping",
    "load_config",
]
