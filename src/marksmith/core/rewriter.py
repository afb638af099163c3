"""Regex driven find-and-replace that records every substitution."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
import logging
import re

from .exceptions import RewriteError
from .textmap import ChangeRecord, TextPositionMap


logger = logging.getLogger(__name__)

Replacement = Callable[[re.Match[str]], str]


@dataclass(frozen=True, slots=True)
class RewriteRule:
    """Pattern paired with the callable computing its replacement text."""

    pattern: re.Pattern[str]
    replacement: Replacement
    name: str = ""

    @classmethod
    def compile(
        cls, pattern: str, replacement: Replacement, *, flags: int = 0, name: str = ""
    ) -> RewriteRule:
        return cls(re.compile(pattern, flags), replacement, name or pattern)


@dataclass(frozen=True, slots=True)
class RewriteFailure:
    """A match whose replacement callable raised ``RewriteError``."""

    rule: str
    start: int
    text: str
    error: RewriteError


@dataclass(slots=True)
class RewriteResult:
    """Rewritten text plus the change batches that produced it."""

    text: str
    batches: list[tuple[ChangeRecord, ...]] = field(default_factory=list)
    failures: list[RewriteFailure] = field(default_factory=list)

    @property
    def changes(self) -> list[ChangeRecord]:
        """Flattened view over every batch, in application order."""
        return [change for batch in self.batches for change in batch]

    def apply_to(self, text_map: TextPositionMap) -> None:
        """Fold every batch into ``text_map`` in application order."""
        for batch in self.batches:
            text_map.apply_changes(batch)


def replace(
    pattern: re.Pattern[str] | str,
    text: str,
    replacement: Replacement,
    *,
    name: str = "",
) -> RewriteResult:
    """Apply a single rule over ``text``."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return Rewriter([RewriteRule(compiled, replacement, name or compiled.pattern)]).rewrite(text)


class Rewriter:
    """Apply an ordered list of rules, each over the output of the previous one."""

    def __init__(self, rules: Iterable[RewriteRule]) -> None:
        self.rules: Sequence[RewriteRule] = tuple(rules)

    def rewrite(self, text: str) -> RewriteResult:
        result = RewriteResult(text=text)
        for rule in self.rules:
            current, batch = self._apply_rule(rule, result.text, result.failures)
            result.text = current
            result.batches.append(batch)
        return result

    @staticmethod
    def _apply_rule(
        rule: RewriteRule, text: str, failures: list[RewriteFailure]
    ) -> tuple[str, tuple[ChangeRecord, ...]]:
        pieces: list[str] = []
        changes: list[ChangeRecord] = []
        cursor = 0
        for match in rule.pattern.finditer(text):
            try:
                substitute = rule.replacement(match)
            except RewriteError as exc:
                logger.debug("rule %s skipped match at %d: %s", rule.name, match.start(), exc)
                failures.append(RewriteFailure(rule.name, match.start(), match.group(0), exc))
                continue
            pieces.append(text[cursor : match.start()])
            pieces.append(substitute)
            changes.append(ChangeRecord(match.start(), match.end() - match.start(), substitute))
            cursor = match.end()
        if not changes:
            return text, ()
        pieces.append(text[cursor:])
        return "".join(pieces), tuple(changes)


__all__ = [
    "Replacement",
    "RewriteFailure",
    "RewriteResult",
    "RewriteRule",
    "Rewriter",
    "replace",
]
