"""Two-phase tag parser turning document text into an element tree.

Phase one (`scan_tags`) locates every ``[TAG:argument]`` opener and ``[/TAG]``
closer together with its line position and leading indentation. Phase two
(`build_blocks`) pairs them with a stack:

- a block whose closer sits on the opener line is a single-line block;
- otherwise the opener must start its line and the closer must start a line
  with the same indentation;
- ``PARAMLITERAL`` content is opaque, nested tags inside it are ignored;
- stray closers and unterminated openers are reported and left as text.

`DocumentParser` finally converts blocks into elements, keeping every origin
offset absolute to the document text.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
import textwrap
from typing import TYPE_CHECKING

from .diagnostics import Severity
from .elements import (
    ContentElement,
    Element,
    ElementOrigin,
    IncludeElement,
    ObjectElement,
    ObjectParamElement,
)
from .exceptions import TemplateNotFoundError
from .templates import object_template_path


if TYPE_CHECKING:  # pragma: no cover - typing only
    from .documents import Document


logger = logging.getLogger(__name__)

__all__ = [
    "BlockScan",
    "DocumentParser",
    "ScanIssue",
    "TagBlock",
    "TagToken",
    "build_blocks",
    "literal_content",
    "scan_tags",
]

OBJECT = "OBJECT"
PARAM = "PARAM"
PARAMLITERAL = "PARAMLITERAL"
INCLUDE = "INCLUDE"

_TAG_PATTERN = re.compile(
    r"\[(?P<closing>/)?(?P<tag>OBJECT|PARAMLITERAL|PARAM|INCLUDE)(?::(?P<argument>[^\]\n]*))?\]",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class TagToken:
    """One opener or closer located in the document text."""

    tag: str
    argument: str
    start: int
    end: int
    closing: bool
    line: int
    indentation: str | None

    @property
    def at_line_start(self) -> bool:
        return self.indentation is not None


@dataclass(slots=True)
class TagBlock:
    """A matched opener/closer pair, or a standalone include tag."""

    opener: TagToken
    closer: TagToken | None = None
    children: list[TagBlock] = field(default_factory=list)

    @property
    def tag(self) -> str:
        return self.opener.tag

    @property
    def argument(self) -> str:
        return self.opener.argument

    @property
    def start(self) -> int:
        return self.opener.start - len(self.indentation) if self.multiline else self.opener.start

    @property
    def end(self) -> int:
        return self.closer.end if self.closer is not None else self.opener.end

    @property
    def indentation(self) -> str:
        return self.opener.indentation or ""

    @property
    def multiline(self) -> bool:
        return self.closer is not None and self.closer.line != self.opener.line

    def content_bounds(self, text: str) -> tuple[int, int]:
        """Return the content span, minus the line breaks framing a multi-line block."""
        if self.closer is None:
            return self.opener.end, self.opener.end
        start, end = self.opener.end, self.closer.start
        if self.multiline:
            end -= len(self.closer.indentation or "")
            if start < end and text[start] == "\n":
                start += 1
            if start < end and text[end - 1] == "\n":
                end -= 1
        return start, end


@dataclass(frozen=True, slots=True)
class ScanIssue:
    """Recoverable structural problem found while pairing tags."""

    kind: str
    token: TagToken


@dataclass(slots=True)
class BlockScan:
    blocks: list[TagBlock]
    issues: list[ScanIssue] = field(default_factory=list)


def scan_tags(text: str) -> list[TagToken]:
    """Locate every tag token in ``text``."""
    tokens: list[TagToken] = []
    line = 1
    line_start = 0
    cursor = 0
    for match in _TAG_PATTERN.finditer(text):
        newlines = text.count("\n", cursor, match.start())
        if newlines:
            line += newlines
            line_start = text.rfind("\n", cursor, match.start()) + 1
        cursor = match.start()

        closing = match.group("closing") is not None
        argument = (match.group("argument") or "").strip()
        if not closing and not argument:
            continue

        prefix = text[line_start : match.start()]
        indentation = prefix if prefix.strip(" ") == "" else None
        tokens.append(
            TagToken(
                tag=match.group("tag").upper(),
                argument=argument,
                start=match.start(),
                end=match.end(),
                closing=closing,
                line=line,
                indentation=indentation,
            )
        )
    return tokens


def _closes(opener: TagToken, closer: TagToken) -> bool:
    if opener.line == closer.line:
        return True
    return opener.at_line_start and closer.indentation == opener.indentation


@dataclass(slots=True)
class _Open:
    token: TagToken
    children: list[TagBlock] = field(default_factory=list)


def _pair(tokens: Sequence[TagToken]) -> tuple[list[TagBlock], list[ScanIssue], list[TagToken]]:
    roots: list[TagBlock] = []
    stack: list[_Open] = []
    issues: list[ScanIssue] = []

    def _siblings() -> list[TagBlock]:
        return stack[-1].children if stack else roots

    def _abandon(entry: _Open) -> None:
        issues.append(ScanIssue("unterminated", entry.token))
        _siblings().extend(entry.children)

    for token in tokens:
        if stack and stack[-1].token.tag == PARAMLITERAL:
            if token.closing and token.tag == PARAMLITERAL and _closes(stack[-1].token, token):
                entry = stack.pop()
                _siblings().append(TagBlock(entry.token, token))
            continue

        if not token.closing:
            if token.tag == INCLUDE:
                _siblings().append(TagBlock(token))
            else:
                stack.append(_Open(token))
            continue

        same_tag = [index for index, entry in enumerate(stack) if entry.token.tag == token.tag]
        if not same_tag:
            issues.append(ScanIssue("unexpected_close", token))
            continue
        target = next(
            (index for index in reversed(same_tag) if _closes(stack[index].token, token)),
            None,
        )
        if target is None:
            # Closer with a foreign indentation is plain content.
            continue
        while len(stack) - 1 > target:
            _abandon(stack.pop())
        entry = stack.pop()
        _siblings().append(TagBlock(entry.token, token, entry.children))

    unterminated_literals = [entry.token for entry in stack if entry.token.tag == PARAMLITERAL]
    while stack:
        _abandon(stack.pop())
    return _sorted(roots), issues, unterminated_literals


def _sorted(blocks: list[TagBlock]) -> list[TagBlock]:
    blocks.sort(key=lambda block: block.opener.start)
    for block in blocks:
        _sorted(block.children)
    return blocks


def build_blocks(text: str, tokens: Iterable[TagToken]) -> BlockScan:
    """Pair ``tokens`` into a block tree, recovering from malformed nesting.

    An unterminated ``PARAMLITERAL`` hides every later tag, so it is dropped
    and pairing restarts until no such opener remains.
    """
    remaining = list(tokens)
    dropped: list[ScanIssue] = []
    while True:
        roots, issues, literals = _pair(remaining)
        if not literals:
            break
        first = literals[0]
        dropped.append(ScanIssue("unterminated", first))
        remaining = [token for token in remaining if token is not first]
    issues = sorted([*dropped, *issues], key=lambda issue: issue.token.start)
    return BlockScan(roots, issues)


def _strip_indentation(text: str, indentation: str) -> str:
    if not indentation:
        return text
    return re.sub(rf"^{re.escape(indentation)}", "", text, flags=re.MULTILINE)


def literal_content(text: str, block: TagBlock) -> str:
    """Return the verbatim value of a literal parameter block.

    The opener indentation is removed from every line, at most one blank line
    is trimmed at each end, and the remainder is dedented.
    """
    start, end = block.content_bounds(text)
    value = _strip_indentation(text[start:end], block.indentation)
    lines = value.split("\n")
    if len(lines) > 1 and not lines[0].strip():
        lines.pop(0)
    if len(lines) > 1 and not lines[-1].strip():
        lines.pop()
    return textwrap.dedent("\n".join(lines))


class DocumentParser:
    """Build the element tree of one document."""

    def __init__(self, document: Document, template_root: Path) -> None:
        self.document = document
        self.template_root = template_root

    def parse(self, text: str) -> list[Element]:
        scan = build_blocks(text, scan_tags(text))
        for issue in scan.issues:
            self._report_issue(issue)
        return self._build(text, 0, len(text), scan.blocks, None, "")

    def parse_object(self, tag_name: str, block: TagBlock, text: str, parent: Element | None = None) -> ObjectElement:
        """Create the object element for ``block``, binding its parameters."""
        template = object_template_path(self.template_root, tag_name)
        if not template.is_file():
            message = self.document.messages.message("TemplateNotFound", tag_name, template)
            self.document.report(Severity.ERROR, message, key=tag_name, offset=block.start)
            error = TemplateNotFoundError(message, template=template)
            error.reported = True
            raise error

        origin = ElementOrigin(block.start, text[block.start : block.end])
        obj = ObjectElement(self.document, origin, tag_name, template, parent)
        for child in block.children:
            if child.tag == PARAMLITERAL:
                obj.add_literal(child.argument, literal_content(text, child), offset=child.start)
            elif child.tag == PARAM:
                obj.add_markdown(self._parse_param(child, text, obj))
            else:
                logger.debug(
                    "ignoring [%s:%s] outside of a parameter in object %s",
                    child.tag,
                    child.argument,
                    tag_name,
                )
        return obj

    def _parse_param(self, block: TagBlock, text: str, parent: ObjectElement) -> ObjectParamElement:
        origin = ElementOrigin(block.start, text[block.start : block.end])
        param = ObjectParamElement(
            self.document, origin, block.argument, parent, indentation=block.indentation
        )
        start, end = block.content_bounds(text)
        param.elements = self._build(text, start, end, block.children, param, block.indentation)
        return param

    def _build(
        self,
        text: str,
        start: int,
        end: int,
        blocks: Sequence[TagBlock],
        parent: Element | None,
        indentation: str,
    ) -> list[Element]:
        elements: list[Element] = []
        cursor = start
        for block in self._expand_misplaced(blocks):
            if block.start < cursor or block.end > end:
                continue
            self._append_content(elements, text, cursor, block.start, parent, indentation)
            if block.tag == OBJECT:
                elements.append(self.parse_object(block.argument, block, text, parent))
            else:
                origin = ElementOrigin(block.start, text[block.start : block.end])
                elements.append(IncludeElement(self.document, origin, block.argument, parent))
            cursor = block.end
        self._append_content(elements, text, cursor, end, parent, indentation)
        return elements

    def _expand_misplaced(self, blocks: Sequence[TagBlock]) -> Iterator[TagBlock]:
        for block in blocks:
            if block.tag in (PARAM, PARAMLITERAL):
                self.document.report(
                    Severity.WARNING,
                    self.document.messages.message("ParamOutsideObject", block.tag, block.argument),
                    key=block.argument,
                    offset=block.opener.start,
                )
                if block.tag == PARAM:
                    yield from self._expand_misplaced(block.children)
                continue
            yield block

    def _append_content(
        self,
        elements: list[Element],
        text: str,
        start: int,
        end: int,
        parent: Element | None,
        indentation: str,
    ) -> None:
        raw = text[start:end]
        if not raw.strip():
            return
        origin = ElementOrigin(start, raw)
        elements.append(
            ContentElement(self.document, origin, _strip_indentation(raw, indentation), parent)
        )

    def _report_issue(self, issue: ScanIssue) -> None:
        token = issue.token
        messages = self.document.messages
        if issue.kind == "unexpected_close":
            message = messages.message("UnexpectedClosingTag", token.tag)
        else:
            message = messages.message("UnterminatedTag", token.tag, token.argument)
        self.document.report(
            Severity.ERROR, message, key=token.argument or token.tag, offset=token.start
        )
