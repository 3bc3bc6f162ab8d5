"""Read-only queries layered over the indexer, call graph and history.

These back the CLI's ``impact`` command and any editor surface that wants
an explanation, a deletion-impact estimate, a timeline or recent-change
highlights for a file.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from livecode.graph.call_graph import CallGraphBuilder, enclosing_symbol
from livecode.history.recorder import HistoryRecorder
from livecode.index.schema import Position, Range, Symbol, SymbolKind
from livecode.index.structure_indexer import StructureIndexer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolExplanation:
    symbol_id: str
    name: str
    kind: SymbolKind
    file_id: str
    location: Range
    caller_count: int
    callee_count: int

    def describe(self) -> str:
        return "\n".join([
            f"Symbol: {self.name}",
            f"Location: {self.file_id}:{self.location.start_line}:{self.location.start_column}",
            f"Direct callers: {self.caller_count}",
            f"Direct callees: {self.callee_count}",
        ])


@dataclass(frozen=True)
class TimelineItem:
    """One history event as a timeline row."""

    handle: int
    label: str
    timestamp: float


def explain_symbol(
    indexer: StructureIndexer,
    graph: CallGraphBuilder,
    file_id: str,
    symbol_id: str,
) -> SymbolExplanation | None:
    snapshot = indexer.get_snapshot(file_id)
    symbol = snapshot.get_symbol(symbol_id) if snapshot else None
    if symbol is None:
        return None
    return SymbolExplanation(
        symbol_id=symbol.id,
        name=symbol.name,
        kind=symbol.kind,
        file_id=symbol.file_id,
        location=symbol.selection_range,
        caller_count=len(graph.get_callers(symbol.id)),
        callee_count=len(graph.get_callees(symbol.id)),
    )


def deletion_impact(graph: CallGraphBuilder, symbol_id: str) -> list[str]:
    """Ids of every symbol that reaches *symbol_id* through call edges.

    Breadth-first over callers, nearest first.  The symbol itself is not
    reported, even when it is recursive.
    """
    impacted: list[str] = []
    seen = {symbol_id}
    queue = deque([symbol_id])
    while queue:
        current = queue.popleft()
        for edge in graph.get_callers(current):
            if edge.from_id in seen:
                continue
            seen.add(edge.from_id)
            impacted.append(edge.from_id)
            queue.append(edge.from_id)
    return impacted


def find_conceptual_duplicates(
    indexer: StructureIndexer,
    file_id: str,
    symbol_id: str,
) -> list[Symbol]:
    """Other symbols in the same file that share the symbol's name."""
    snapshot = indexer.get_snapshot(file_id)
    symbol = snapshot.get_symbol(symbol_id) if snapshot else None
    if symbol is None:
        return []
    return [s for s in snapshot.symbols if s.name == symbol.name and s.id != symbol.id]


def timeline_items(history: HistoryRecorder, file_id: str) -> list[TimelineItem]:
    return [
        TimelineItem(handle=e.id, label=e.summary, timestamp=e.timestamp)
        for e in history.get_events_for_file(file_id)
    ]


def recent_change_ranges(
    history: HistoryRecorder,
    indexer: StructureIndexer,
    file_id: str,
    limit: int = 5,
) -> list[Range]:
    """Ranges of symbols touched by the last *limit* events that still exist."""
    snapshot = indexer.get_snapshot(file_id)
    if snapshot is None or limit <= 0:
        return []

    ranges: list[Range] = []
    for event in history.get_events_for_file(file_id)[-limit:]:
        if event.symbol_id is None:
            continue
        symbol = snapshot.get_symbol(event.symbol_id)
        if symbol is not None and symbol.range not in ranges:
            ranges.append(symbol.range)
    return ranges


def describe_symbol_at(
    indexer: StructureIndexer,
    file_id: str,
    position: Position,
) -> Symbol | None:
    """Innermost non-file symbol at *position*, judged by declaration body."""
    snapshot = indexer.get_snapshot(file_id)
    if snapshot is None:
        return None

    scopes = [s for s in snapshot.symbols if s.kind is not SymbolKind.FILE]
    return enclosing_symbol(scopes, position)
