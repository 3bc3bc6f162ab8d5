"""CallGraphBuilder: intra-file call edges derived from structure snapshots.

For each updated snapshot the builder scans the snapshot's source for
``name(`` occurrences of every function/method name in the file and links
the enclosing symbol of each occurrence to every same-named callable.  It
is a name-based heuristic: same-named symbols in different containers all
become targets, and calls through aliases are missed.

Edges of a file are replaced as a unit: the previous set is removed from
the caller/callee indexes, the new set inserted, and only then is
``on_graph_updated`` fired.
"""

from __future__ import annotations

import logging
import re

from livecode.buffer.text_buffer import LineIndex
from livecode.events.hub import EventHub
from livecode.events.specs import hookimpl
from livecode.index.schema import (
    CALLABLE_KINDS,
    Edge,
    EdgeKind,
    Position,
    Snapshot,
    Symbol,
    SymbolKind,
)
from livecode.index.structure_indexer import StructureIndexer

logger = logging.getLogger(__name__)

_IDENT_CHAR = r"A-Za-z0-9_$"


def compute_call_edges(snapshot: Snapshot) -> tuple[Edge, ...]:
    """Return the deduplicated call edges of one snapshot, in discovery order."""
    text = snapshot.source
    line_index = LineIndex(text)

    targets_by_name: dict[str, list[Symbol]] = {}
    for symbol in snapshot.symbols:
        if symbol.kind in CALLABLE_KINDS:
            targets_by_name.setdefault(symbol.name, []).append(symbol)

    # ``function a(`` itself is not a call of ``a``
    declaration_sites = {
        (s.name, s.selection_range.start)
        for targets in targets_by_name.values()
        for s in targets
    }
    scopes = [s for s in snapshot.symbols if s.kind is not SymbolKind.FILE]

    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()
    for name, targets in targets_by_name.items():
        pattern = re.compile(rf"(?<![{_IDENT_CHAR}]){re.escape(name)}\s*\(")
        for match in pattern.finditer(text):
            position = line_index.position_at(match.start())
            if (name, position) in declaration_sites:
                continue

            caller = enclosing_symbol(scopes, position) or snapshot.file_symbol
            for target in targets:
                key = (caller.id, target.id)
                if key in seen:
                    continue
                seen.add(key)
                edges.append(Edge(from_id=caller.id, to_id=target.id, kind=EdgeKind.CALL))

    return tuple(edges)


def enclosing_symbol(symbols: list[Symbol], position: Position) -> Symbol | None:
    """Innermost symbol whose body (or range, without a body) holds *position*."""
    best: Symbol | None = None
    best_start: Position | None = None
    for symbol in symbols:
        scope = symbol.body_range or symbol.range
        if not scope.contains(position):
            continue
        if best_start is None or scope.start >= best_start:
            best, best_start = symbol, scope.start
    return best


class CallGraphBuilder:
    """Global caller/callee indexes over the call edges of every indexed file.

    Usage::

        graph = CallGraphBuilder(indexer, hub)
        for edge in graph.get_callers(symbol.id):
            print(edge.from_id)
    """

    def __init__(self, indexer: StructureIndexer, hub: EventHub) -> None:
        self._indexer = indexer
        self._hub = hub

        self._file_edges: dict[str, tuple[Edge, ...]] = {}
        self._outgoing: dict[str, list[Edge]] = {}
        self._incoming: dict[str, list[Edge]] = {}

        self._hub.register(self)

    def dispose(self) -> None:
        self._hub.unregister(self)
        self._file_edges.clear()
        self._outgoing.clear()
        self._incoming.clear()

    # ── Public: queries ───────────────────────────────────────────────────────

    def get_snapshot(self, file_id: str) -> Snapshot | None:
        return self._indexer.get_snapshot(file_id)

    def get_callees(self, symbol_id: str) -> list[Edge]:
        return list(self._outgoing.get(symbol_id, ()))

    def get_callers(self, symbol_id: str) -> list[Edge]:
        return list(self._incoming.get(symbol_id, ()))

    def get_edges_for_file(self, file_id: str) -> list[Edge]:
        return list(self._file_edges.get(file_id, ()))

    def get_exported_symbols(self, file_id: str) -> list[Symbol]:
        """Every top-level, non-file symbol of the file's current snapshot."""
        snapshot = self._indexer.get_snapshot(file_id)
        if snapshot is None:
            return []
        return [
            s for s in snapshot.symbols
            if s.kind is not SymbolKind.FILE and s.container_id is None
        ]

    def get_imports_of_file(self, file_id: str) -> list[str]:
        # Imports are not resolved across files yet.
        return []

    def files(self) -> list[str]:
        return sorted(self._file_edges)

    # ── Notifications ─────────────────────────────────────────────────────────

    @hookimpl
    def on_snapshot_updated(self, file_id: str) -> None:
        snapshot = self._indexer.get_snapshot(file_id)
        if snapshot is None:
            return

        try:
            new_edges = compute_call_edges(snapshot)
        except Exception as exc:
            logger.debug("Failed to rebuild graph for %s: %s", file_id, exc, exc_info=True)
            return

        self._replace(file_id, new_edges)
        self._hub.fire_graph_updated(file_id)

    @hookimpl
    def on_document_removed(self, file_id: str) -> None:
        old = self._file_edges.pop(file_id, None)
        if old is None:
            return
        self._remove_edges(old)
        self._hub.fire_graph_updated(file_id)

    # ── Index maintenance ─────────────────────────────────────────────────────

    def _replace(self, file_id: str, edges: tuple[Edge, ...]) -> None:
        old = self._file_edges.get(file_id)
        if old:
            self._remove_edges(old)
        self._file_edges[file_id] = edges
        self._add_edges(edges)

    def _add_edges(self, edges: tuple[Edge, ...]) -> None:
        for edge in edges:
            self._outgoing.setdefault(edge.from_id, []).append(edge)
            self._incoming.setdefault(edge.to_id, []).append(edge)

    def _remove_edges(self, edges: tuple[Edge, ...]) -> None:
        for edge in edges:
            _discard(self._outgoing, edge.from_id, edge)
            _discard(self._incoming, edge.to_id, edge)


def _discard(index: dict[str, list[Edge]], key: str, edge: Edge) -> None:
    bucket = index.get(key)
    if bucket is None:
        return
    remaining = [e for e in bucket if e != edge]
    if remaining:
        index[key] = remaining
    else:
        del index[key]
