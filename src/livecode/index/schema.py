"""Immutable dataclass models shared by the indexer, graph and history."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ── Kinds ─────────────────────────────────────────────────────────────────────

class SymbolKind(str, Enum):
    FILE = "file"
    CLASS = "class"
    METHOD = "method"
    FUNCTION = "function"
    PROPERTY = "property"
    VARIABLE = "variable"
    UNKNOWN = "unknown"


class EdgeKind(str, Enum):
    CALL = "call"
    IMPORT = "import"
    EXPORT = "export"


class HistoryEventKind(str, Enum):
    SYMBOL_ADDED = "symbol_added"
    SYMBOL_REMOVED = "symbol_removed"
    SYMBOL_CHANGED = "symbol_changed"


# Kinds that can be the target of a call edge
CALLABLE_KINDS = frozenset({SymbolKind.FUNCTION, SymbolKind.METHOD})


# ── Positions ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True, order=True)
class Position:
    """1-based line/column position inside a document."""

    line: int
    column: int


@dataclass(frozen=True)
class Range:
    """1-based span; the end column points just past the last character."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @property
    def start(self) -> Position:
        return Position(self.start_line, self.start_column)

    @property
    def end(self) -> Position:
        return Position(self.end_line, self.end_column)

    def contains(self, position: Position) -> bool:
        """Inclusive containment, with column checks only on the boundary lines."""
        if position.line < self.start_line or position.line > self.end_line:
            return False
        if position.line == self.start_line and position.column < self.start_column:
            return False
        if position.line == self.end_line and position.column > self.end_column:
            return False
        return True

    def contains_range(self, other: Range) -> bool:
        return self.contains(other.start) and self.contains(other.end)


# ── Symbols and snapshots ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SymbolMetrics:
    """Cheap structural metrics."""

    lines_of_code: int
    complexity: int | None = None


@dataclass(frozen=True)
class Symbol:
    """Immutable representation of a structural unit extracted from one file."""

    id: str
    name: str
    kind: SymbolKind
    file_id: str
    range: Range
    selection_range: Range
    container_id: str | None = None
    summary: str | None = None          # first line of a preceding /** */ block
    metrics: SymbolMetrics | None = None
    body_range: Range | None = None     # declaration through closing brace


@dataclass(frozen=True)
class Snapshot:
    """Structural extraction result for one file at one content version.

    ``symbols`` is in document order with the File symbol first.  ``source``
    is the text the symbols were extracted from.
    """

    file_id: str
    version: int
    language_id: str
    symbols: tuple[Symbol, ...]
    created_at: float   # Unix timestamp
    source: str = field(default="", repr=False)

    @property
    def file_symbol(self) -> Symbol:
        return self.symbols[0]

    def get_symbol(self, symbol_id: str) -> Symbol | None:
        for symbol in self.symbols:
            if symbol.id == symbol_id:
                return symbol
        return None


# ── Graph edges ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Edge:
    """Directed relationship between two symbol ids."""

    from_id: str
    to_id: str
    kind: EdgeKind = EdgeKind.CALL


# ── History ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SnapshotRef:
    """Pins a history event to the snapshot version that produced it."""

    file_id: str
    version: int


@dataclass(frozen=True)
class HistoryEvent:
    """A recorded symbol-level change."""

    id: int
    file_id: str
    kind: HistoryEventKind
    timestamp: float    # Unix timestamp
    summary: str
    snapshot_ref: SnapshotRef
    symbol_id: str | None = None
