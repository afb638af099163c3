"""Process or session scoped cache of compiled Jinja templates."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, TemplateSyntaxError

from ..exceptions import TemplateLoadError


logger = logging.getLogger(__name__)


def build_environment(search_path: Path | None = None, *, encoding: str = "utf-8") -> Environment:
    """Return the Jinja environment shared by object templates."""
    loader = FileSystemLoader(str(search_path), encoding=encoding) if search_path else None
    return Environment(
        loader=loader,
        autoescape=False,
        keep_trailing_newline=False,
    )


class TemplateCache:
    """Compiled templates keyed by resolved path.

    Lookups of cached entries take no lock; the first load of a path is
    serialised so each template is parsed once for the lifetime of the cache.
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._templates: dict[Path, Template] = {}
        self._environments: dict[Path, Environment] = {}
        self._strings: dict[str, Template] = {}
        self._guard = Lock()
        self._inline_environment = build_environment(encoding=encoding)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, Path):
            return False
        return path.resolve() in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, path: Path) -> Template:
        """Return the compiled template stored at ``path``."""
        resolved = path.resolve()
        template = self._templates.get(resolved)
        if template is not None:
            return template
        with self._guard:
            template = self._templates.get(resolved)
            if template is None:
                template = self._load(resolved)
                self._templates[resolved] = template
        return template

    def from_string(self, source: str) -> Template:
        """Return a compiled template for an in-memory source string."""
        template = self._strings.get(source)
        if template is not None:
            return template
        with self._guard:
            template = self._strings.get(source)
            if template is None:
                try:
                    template = self._inline_environment.from_string(source)
                except TemplateSyntaxError as exc:
                    raise TemplateLoadError(
                        f"Unable to parse inline template: {exc}", template="<string>"
                    ) from exc
                self._strings[source] = template
        return template

    def clear(self) -> None:
        with self._guard:
            self._templates.clear()
            self._environments.clear()
            self._strings.clear()

    def _environment_for(self, folder: Path) -> Environment:
        environment = self._environments.get(folder)
        if environment is None:
            environment = build_environment(folder, encoding=self.encoding)
            self._environments[folder] = environment
        return environment

    def _load(self, path: Path) -> Template:
        if not path.is_file():
            raise TemplateLoadError(f"Template file does not exist: {path}", template=path)
        environment = self._environment_for(path.parent)
        try:
            template = environment.get_template(path.name)
        except TemplateNotFound as exc:
            raise TemplateLoadError(f"Template file does not exist: {path}", template=path) from exc
        except TemplateSyntaxError as exc:
            raise TemplateLoadError(
                f"Unable to parse template {path} (line {exc.lineno}): {exc.message}",
                template=path,
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateLoadError(f"Unable to read template {path}: {exc}", template=path) from exc
        logger.debug("loaded template %s", path)
        return template


__all__ = ["TemplateCache", "build_environment"]
