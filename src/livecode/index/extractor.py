"""Line-oriented structure extraction for JS/TS sources.

Scans lines in order and recognises class, function and method declarations
with regexes, tracking the "current enclosing class" the way a reader
skimming the file would: a class line opens it, a blank line closes it.

A separate punctuation pass matches braces and parentheses (skipping
strings and comments) so each declaration can be given a body span, which
the call-graph builder uses to attribute call sites to their caller.

The extractor does not assign symbol ids; see ``identity.py``.
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass

from livecode.buffer.text_buffer import LineIndex
from livecode.index.schema import Position, Range, SymbolKind, SymbolMetrics

logger = logging.getLogger(__name__)

# ── Declaration patterns ──────────────────────────────────────────────────────

_IDENT = r"(?P<name>[A-Za-z0-9_$]+)"

_CLASS_RE = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+" + _IDENT
)
_FUNCTION_RE = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function(?:\s*\*\s*|\s+)" + _IDENT
)
_METHOD_RE = re.compile(
    r"^\s*(?:(?:public|private|protected)\s+)?(?:static\s+)?(?:async\s+)?" + _IDENT + r"\s*\("
)
_BLANK_RE = re.compile(r"^\s*$")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

# Statements that look like ``name(`` but never declare a method
_NOT_METHODS = frozenset({
    "if", "for", "while", "switch", "catch", "return", "function", "typeof",
    "new", "super", "await", "do", "else", "throw", "with", "yield", "delete",
    "void", "case",
})

# Branch points counted for the complexity metric
_BRANCH_RE = re.compile(r"\b(?:if|for|while|case|catch)\b|&&|\|\||(?<!\?)\?(?![.?])")

_MAX_DOC_LOOKBACK = 50


@dataclass(frozen=True)
class Declaration:
    """One recognised declaration, before identity assignment."""

    name: str
    kind: SymbolKind
    line: int                   # 1-based
    column: int                 # 1-based column of the identifier
    container: int | None = None  # index of the enclosing class declaration
    body_range: Range | None = None
    summary: str | None = None
    metrics: SymbolMetrics | None = None

    @property
    def selection_range(self) -> Range:
        return Range(self.line, self.column, self.line, self.column + len(self.name))


@dataclass(frozen=True)
class Extraction:
    """Result of scanning one text."""

    declarations: tuple[Declaration, ...]
    line_count: int
    last_line_length: int

    @property
    def file_range(self) -> Range:
        """Line 1 column 1 through the end of the last line."""
        return Range(1, 1, max(1, self.line_count), self.last_line_length + 1)


# ── Punctuation pass ──────────────────────────────────────────────────────────

class _Punctuation:
    """Code-level ``{ } ( ) ;`` with their offsets and matched pairs."""

    def __init__(self, text: str) -> None:
        self.offsets: list[int] = []
        self.chars: list[str] = []
        self.pairs: dict[int, int] = {}
        self._scan(text)

    def _scan(self, text: str) -> None:
        stack: list[tuple[str, int]] = []
        i, n = 0, len(text)
        while i < n:
            ch = text[i]
            if ch in "\"'`":
                i = _skip_string(text, i)
                continue
            if ch == "/" and i + 1 < n and text[i + 1] in "/*":
                if text[i + 1] == "/":
                    j = text.find("\n", i)
                    i = n if j < 0 else j
                else:
                    j = text.find("*/", i + 2)
                    i = n if j < 0 else j + 2
                continue
            if ch in "{(":
                stack.append((ch, i))
                self._add(i, ch)
            elif ch in "})":
                opener = "{" if ch == "}" else "("
                if stack and stack[-1][0] == opener:
                    self.pairs[stack.pop()[1]] = i
                self._add(i, ch)
            elif ch == ";":
                self._add(i, ch)
            i += 1

    def _add(self, offset: int, ch: str) -> None:
        self.offsets.append(offset)
        self.chars.append(ch)

    def body_after(self, offset: int) -> tuple[int, int | None] | None:
        """Find the ``{ ... }`` block that follows a declaration at *offset*.

        Parenthesised groups (parameter lists) are skipped; a ``;``, ``)`` or
        ``}`` reached first means the declaration has no body.  The closing
        offset is None when the block is never closed.
        """
        idx = bisect.bisect_left(self.offsets, offset)
        while idx < len(self.offsets):
            off, ch = self.offsets[idx], self.chars[idx]
            if ch == "(":
                close = self.pairs.get(off)
                if close is None:
                    return None
                idx = bisect.bisect_right(self.offsets, close)
                continue
            if ch == "{":
                return off, self.pairs.get(off)
            return None
        return None


def _skip_string(text: str, start: int) -> int:
    """Return the offset just past the string literal opening at *start*."""
    quote = text[start]
    i, n = start + 1, len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return n


# ── Public API ────────────────────────────────────────────────────────────────

class StructureExtractor:
    """Extract class/function/method declarations from JS/TS text.

    Usage::

        extraction = StructureExtractor().extract("class Foo {\\n  bar() {}\\n}")
        [d.name for d in extraction.declarations]   # ["Foo", "bar"]
    """

    def extract(self, text: str) -> Extraction:
        lines = _LINE_BREAK_RE.split(text)
        line_index = LineIndex(text)
        punctuation = _Punctuation(text)

        declarations: list[Declaration] = []
        current_class: int | None = None

        for i, line in enumerate(lines):
            lineno = i + 1

            m = _CLASS_RE.match(line)
            if m:
                declarations.append(self._declare(
                    m, SymbolKind.CLASS, lineno, None, text, lines, line_index, punctuation,
                ))
                current_class = len(declarations) - 1
                continue

            m = _FUNCTION_RE.match(line)
            if m:
                declarations.append(self._declare(
                    m, SymbolKind.FUNCTION, lineno, None, text, lines, line_index, punctuation,
                ))
                continue

            m = _METHOD_RE.match(line)
            if m and current_class is not None and self._is_method_line(m, line):
                declarations.append(self._declare(
                    m, SymbolKind.METHOD, lineno, current_class, text, lines, line_index,
                    punctuation,
                ))
                continue

            # A blank line is taken as the end of the class body
            if _BLANK_RE.match(line):
                current_class = None

        return Extraction(
            declarations=tuple(declarations),
            line_count=len(lines),
            last_line_length=len(lines[-1]),
        )

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _is_method_line(match: re.Match[str], line: str) -> bool:
        if match.group("name") in _NOT_METHODS:
            return False
        # ``foo();`` is a call statement, not a declaration
        return not line.rstrip().endswith(";")

    def _declare(
        self,
        match: re.Match[str],
        kind: SymbolKind,
        lineno: int,
        container: int | None,
        text: str,
        lines: list[str],
        line_index: LineIndex,
        punctuation: _Punctuation,
    ) -> Declaration:
        name = match.group("name")
        column = match.start("name") + 1
        name_offset = line_index.offset_at(Position(lineno, column))

        body_range: Range | None = None
        metrics: SymbolMetrics | None = None
        body = punctuation.body_after(name_offset + len(name))
        if body is not None:
            _, close = body
            end_offset = close if close is not None else len(text)
            end = line_index.position_at(end_offset)
            body_range = Range(lineno, column, end.line, end.column + 1)
            complexity = None
            if kind is not SymbolKind.CLASS:
                complexity = 1 + len(_BRANCH_RE.findall(text, name_offset, end_offset + 1))
            metrics = SymbolMetrics(
                lines_of_code=end.line - lineno + 1,
                complexity=complexity,
            )

        return Declaration(
            name=name,
            kind=kind,
            line=lineno,
            column=column,
            container=container,
            body_range=body_range,
            summary=_doc_summary(lines, lineno - 1),
            metrics=metrics,
        )


def _doc_summary(lines: list[str], decl_idx: int) -> str | None:
    """First text line of a ``/** ... */`` block ending right above *decl_idx*."""
    end = decl_idx - 1
    if end < 0 or not lines[end].strip().endswith("*/"):
        return None

    start = end
    floor = max(0, end - _MAX_DOC_LOOKBACK)
    while start >= floor and "/*" not in lines[start]:
        start -= 1
    if start < floor or "/**" not in lines[start]:
        return None

    for raw in lines[start:end + 1]:
        text = raw.strip()
        text = text.removeprefix("/**").removesuffix("*/").strip()
        text = text.lstrip("*").strip()
        if text and not text.startswith("@"):
            return text
    return None
