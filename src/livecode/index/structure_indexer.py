"""StructureIndexer: keeps a versioned symbol snapshot per open document.

Listens to text-buffer notifications on the ``EventHub`` and recomputes a
file's snapshot once edits have been quiet for the debounce period:

  on_document_added            -> start tracking a supported document and
                                 schedule its first snapshot
  on_document_content_changed  -> (re)start the file's debounce timer
  on_document_removed          -> cancel pending work, drop snapshot and
                                 identity lineage

Every successful recomputation replaces the file's snapshot in one
assignment and then fires ``on_snapshot_updated`` exactly once.  Failed or
skipped passes leave the previous snapshot in place and fire nothing.
"""

from __future__ import annotations

import logging
import time
from pathlib import PurePosixPath

from livecode.buffer.text_buffer import Document, TextBuffer
from livecode.core.config import IndexerConfig
from livecode.core.debounce import Debouncer
from livecode.events.hub import EventHub
from livecode.events.specs import hookimpl
from livecode.index.extractor import StructureExtractor
from livecode.index.identity import IdentityLineage, file_symbol_id
from livecode.index.schema import (
    Position,
    Range,
    Snapshot,
    Symbol,
    SymbolKind,
    SymbolMetrics,
)

logger = logging.getLogger(__name__)


class StructureIndexer:
    """Incremental, debounced symbol extraction for open documents.

    Parameters
    ----------
    buffer:
        Source of document content (caller owns lifecycle).
    hub:
        Event hub the indexer subscribes to and publishes on.
    config:
        Debounce delay, size ceiling and supported language ids.
    """

    def __init__(
        self,
        buffer: TextBuffer,
        hub: EventHub,
        config: IndexerConfig | None = None,
    ) -> None:
        self._buffer = buffer
        self._hub = hub
        self._config = config or IndexerConfig()
        self._extractor = StructureExtractor()

        self._snapshots: dict[str, Snapshot] = {}
        self._lineages: dict[str, IdentityLineage] = {}
        self._tracked: set[str] = set()
        self._debouncer = Debouncer(self._config.debounce_seconds, self._run_scheduled)

        self._hub.register(self)

    def start(self) -> None:
        """Begin tracking documents that were already open."""
        for file_id in self._buffer.list_documents():
            self._observe(file_id)

    def dispose(self) -> None:
        self._debouncer.dispose()
        self._hub.unregister(self)
        self._tracked.clear()
        self._snapshots.clear()
        self._lineages.clear()

    # ── Public: queries ───────────────────────────────────────────────────────

    def get_snapshot(self, file_id: str) -> Snapshot | None:
        """Last computed snapshot, or None if none yet or unsupported."""
        return self._snapshots.get(file_id)

    def get_symbol_at_position(self, file_id: str, position: Position) -> Symbol | None:
        """First symbol, in snapshot order, whose range contains *position*."""
        snapshot = self._snapshots.get(file_id)
        if snapshot is None:
            return None
        for symbol in snapshot.symbols:
            if symbol.range.contains(position):
                return symbol
        return None

    def tracked_files(self) -> list[str]:
        return sorted(self._tracked)

    def is_pending(self, file_id: str) -> bool:
        return self._debouncer.is_pending(file_id)

    # ── Public: forcing work ──────────────────────────────────────────────────

    def recompute(self, file_id: str) -> Snapshot | None:
        """Recompute *file_id* now, even if its content did not change."""
        self._debouncer.cancel(file_id)
        return self._recompute(file_id)

    def flush(self, file_id: str | None = None) -> None:
        """Run pending debounced recomputations without waiting."""
        self._debouncer.flush(file_id)

    # ── Text buffer notifications ─────────────────────────────────────────────

    @hookimpl
    def on_document_added(self, file_id: str) -> None:
        self._observe(file_id)

    @hookimpl
    def on_document_content_changed(self, file_id: str) -> None:
        if file_id not in self._tracked:
            self._observe(file_id)
            return
        self._debouncer.schedule(file_id)

    @hookimpl
    def on_document_removed(self, file_id: str) -> None:
        self._forget(file_id)

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _observe(self, file_id: str) -> None:
        doc = self._buffer.get_document(file_id)
        if doc is None or not self._config.is_supported(doc.language_id):
            return
        self._tracked.add(file_id)
        self._debouncer.schedule(file_id)

    def _forget(self, file_id: str) -> None:
        self._debouncer.cancel(file_id)
        self._tracked.discard(file_id)
        self._snapshots.pop(file_id, None)
        self._lineages.pop(file_id, None)

    def _run_scheduled(self, file_id: str) -> None:
        doc = self._buffer.get_document(file_id)
        current = self._snapshots.get(file_id)
        if doc is not None and current is not None and doc.version == current.version:
            logger.debug("Snapshot of %s already at version %d", file_id, doc.version)
            return
        self._recompute(file_id)

    def _recompute(self, file_id: str) -> Snapshot | None:
        doc = self._buffer.get_document(file_id)
        if doc is None or not self._config.is_supported(doc.language_id):
            if file_id in self._tracked:
                logger.debug("Dropping %s: no longer an indexed document", file_id)
                self._forget(file_id)
            return None

        if doc.length > self._config.max_document_chars:
            logger.debug("Skipping large document %s (%d chars)", file_id, doc.length)
            return None

        current = self._snapshots.get(file_id)
        if current is not None and doc.version < current.version:
            logger.debug(
                "Ignoring stale version %d of %s (have %d)", doc.version, file_id, current.version
            )
            return None

        try:
            snapshot = self._build_snapshot(doc, current)
        except Exception as exc:
            logger.debug("Failed to compute snapshot for %s: %s", file_id, exc, exc_info=True)
            return None

        self._snapshots[file_id] = snapshot
        self._hub.fire_snapshot_updated(file_id)
        return snapshot

    def _build_snapshot(self, doc: Document, previous: Snapshot | None) -> Snapshot:
        extraction = self._extractor.extract(doc.content)
        lineage = self._lineages.get(doc.file_id)
        if lineage is None:
            lineage = IdentityLineage(doc.file_id, self._config.max_retired_ids)
            self._lineages[doc.file_id] = lineage
        ids = lineage.assign(extraction.declarations, previous)

        symbols = [
            Symbol(
                id=file_symbol_id(doc.file_id),
                name=PurePosixPath(doc.file_id).name or doc.file_id,
                kind=SymbolKind.FILE,
                file_id=doc.file_id,
                range=extraction.file_range,
                selection_range=Range(1, 1, 1, 1),
                metrics=SymbolMetrics(lines_of_code=extraction.line_count),
            )
        ]
        for decl, symbol_id in zip(extraction.declarations, ids):
            selection = decl.selection_range
            symbols.append(Symbol(
                id=symbol_id,
                name=decl.name,
                kind=decl.kind,
                file_id=doc.file_id,
                range=selection,
                selection_range=selection,
                container_id=ids[decl.container] if decl.container is not None else None,
                summary=decl.summary,
                metrics=decl.metrics,
                body_range=decl.body_range,
            ))

        return Snapshot(
            file_id=doc.file_id,
            version=doc.version,
            language_id=doc.language_id,
            symbols=tuple(symbols),
            created_at=time.time(),
            source=doc.content,
        )
