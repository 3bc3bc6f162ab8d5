"""Structure index: per-file symbol snapshots kept current as documents change.

Only the data model is re-exported here; import the engines from their
modules (``livecode.index.structure_indexer``, ``livecode.index.extractor``).
"""

from livecode.index.schema import (
    Edge,
    EdgeKind,
    HistoryEvent,
    HistoryEventKind,
    Position,
    Range,
    Snapshot,
    SnapshotRef,
    Symbol,
    SymbolKind,
    SymbolMetrics,
)

__all__ = [
    "Edge",
    "EdgeKind",
    "HistoryEvent",
    "HistoryEventKind",
    "Position",
    "Range",
    "Snapshot",
    "SnapshotRef",
    "Symbol",
    "SymbolKind",
    "SymbolMetrics",
]
