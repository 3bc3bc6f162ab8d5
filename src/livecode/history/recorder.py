"""HistoryRecorder: append-only, per-file log of symbol-level changes.

Each snapshot update is diffed against the last snapshot the recorder saw
for that file.  The first snapshot after a document is opened is only a
baseline.  Closing a document forgets that baseline but keeps the log.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field

from livecode.events.hub import EventHub
from livecode.events.specs import hookimpl
from livecode.index.schema import HistoryEvent, HistoryEventKind, Snapshot, SnapshotRef
from livecode.index.structure_indexer import StructureIndexer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolChange:
    """One difference between two snapshots of a file."""

    kind: HistoryEventKind
    symbol_id: str
    summary: str


def diff_snapshots(previous: Snapshot, current: Snapshot) -> list[SymbolChange]:
    """Removals in *previous* order, then additions and renames in *current* order."""
    prev_names = {s.id: s.name for s in previous.symbols}
    next_names = {s.id: s.name for s in current.symbols}

    changes: list[SymbolChange] = []
    for symbol_id, name in prev_names.items():
        if symbol_id not in next_names:
            changes.append(SymbolChange(
                HistoryEventKind.SYMBOL_REMOVED, symbol_id, f"Removed symbol {name}",
            ))

    for symbol_id, name in next_names.items():
        old_name = prev_names.get(symbol_id)
        if old_name is None:
            changes.append(SymbolChange(
                HistoryEventKind.SYMBOL_ADDED, symbol_id, f"Added symbol {name}",
            ))
        elif old_name != name:
            changes.append(SymbolChange(
                HistoryEventKind.SYMBOL_CHANGED, symbol_id, f"Renamed symbol {old_name} -> {name}",
            ))
    return changes


@dataclass
class _FileHistory:
    file_id: str
    events: list[HistoryEvent] = field(default_factory=list)
    last_snapshot: Snapshot | None = None


class HistoryRecorder:
    """Records ``HistoryEvent``s as snapshots of open documents change."""

    def __init__(self, indexer: StructureIndexer, hub: EventHub) -> None:
        self._indexer = indexer
        self._hub = hub
        self._per_file: dict[str, _FileHistory] = {}
        self._event_ids = itertools.count(1)

        self._hub.register(self)

    def dispose(self) -> None:
        self._hub.unregister(self)

    # ── Public: queries ───────────────────────────────────────────────────────

    def get_events_for_file(self, file_id: str) -> list[HistoryEvent]:
        history = self._per_file.get(file_id)
        return list(history.events) if history else []

    def get_events_for_symbol(self, symbol_id: str) -> list[HistoryEvent]:
        events = [
            event
            for history in self._per_file.values()
            for event in history.events
            if event.symbol_id == symbol_id
        ]
        return sorted(events, key=lambda e: e.id)

    def get_snapshot_at(self, event: HistoryEvent) -> Snapshot | None:
        """The file's *current* snapshot; older snapshot bodies are not kept."""
        return self._indexer.get_snapshot(event.file_id)

    def files(self) -> list[str]:
        return sorted(self._per_file)

    def has_baseline(self, file_id: str) -> bool:
        history = self._per_file.get(file_id)
        return history is not None and history.last_snapshot is not None

    # ── Notifications ─────────────────────────────────────────────────────────

    @hookimpl
    def on_snapshot_updated(self, file_id: str) -> None:
        snapshot = self._indexer.get_snapshot(file_id)
        if snapshot is None:
            return

        history = self._per_file.setdefault(file_id, _FileHistory(file_id))
        previous = history.last_snapshot
        try:
            changes = diff_snapshots(previous, snapshot) if previous is not None else []
        except Exception as exc:
            logger.debug("Failed to record history for %s: %s", file_id, exc, exc_info=True)
            return

        history.last_snapshot = snapshot
        if not changes:
            return

        ref = SnapshotRef(file_id=snapshot.file_id, version=snapshot.version)
        now = time.time()
        for change in changes:
            event = HistoryEvent(
                id=next(self._event_ids),
                file_id=file_id,
                kind=change.kind,
                timestamp=now,
                summary=change.summary,
                snapshot_ref=ref,
                symbol_id=change.symbol_id,
            )
            history.events.append(event)
            self._hub.fire_history_event_recorded(event)

    @hookimpl
    def on_document_removed(self, file_id: str) -> None:
        history = self._per_file.get(file_id)
        if history is not None:
            history.last_snapshot = None
