"""Session management - wires buffer, indexer, graph and history together."""

from __future__ import annotations

import logging
from pathlib import Path

from livecode.buffer.text_buffer import Document, InMemoryTextBuffer
from livecode.core.config import LiveCodeConfig, load_config
from livecode.events.hub import EventHub
from livecode.graph.call_graph import CallGraphBuilder
from livecode.graph.insights import recent_change_ranges
from livecode.history.recorder import HistoryRecorder
from livecode.index.schema import Range
from livecode.index.structure_indexer import StructureIndexer

logger = logging.getLogger(__name__)


class LiveCodeSession:
    """A livecode session encapsulating all components."""

    def __init__(
        self,
        config: LiveCodeConfig | None = None,
        project_dir: Path | None = None,
        buffer: InMemoryTextBuffer | None = None,
    ) -> None:
        self.config = config or load_config(project_dir)
        self.project_dir = project_dir or Path.cwd()

        self.hub = EventHub()
        self.buffer = buffer or InMemoryTextBuffer()
        self.buffer.bind(self.hub)

        # Graph and history subscribe before the indexer picks up open documents
        self.indexer = StructureIndexer(self.buffer, self.hub, self.config.indexer)
        self.graph = CallGraphBuilder(self.indexer, self.hub)
        self.history = HistoryRecorder(self.indexer, self.hub)
        self.indexer.start()

        logger.debug(
            "Session ready (debounce=%dms, languages=%s)",
            self.config.indexer.debounce_ms,
            ",".join(self.config.indexer.supported_languages),
        )

    def open(self, file_id: str, content: str, language_id: str) -> Document:
        return self.buffer.open(file_id, content, language_id)

    def update(self, file_id: str, content: str) -> Document | None:
        return self.buffer.set_content(file_id, content)

    def close(self, file_id: str) -> bool:
        return self.buffer.close(file_id)

    def recent_changes(self, file_id: str) -> list[Range]:
        """Ranges touched by the file's most recent history events."""
        return recent_change_ranges(
            self.history, self.indexer, file_id, self.config.insights.recent_changes_limit
        )

    def flush(self) -> None:
        """Run every pending recomputation now."""
        self.indexer.flush()

    def dispose(self) -> None:
        self.history.dispose()
        self.graph.dispose()
        self.indexer.dispose()
