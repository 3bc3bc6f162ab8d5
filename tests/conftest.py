"""Shared test fixtures for livecode."""

from __future__ import annotations

import pytest

from livecode.buffer.text_buffer import InMemoryTextBuffer
from livecode.core.config import IndexerConfig
from livecode.events.hub import EventHub
from livecode.events.specs import hookimpl
from livecode.graph.call_graph import CallGraphBuilder
from livecode.history.recorder import HistoryRecorder
from livecode.index.structure_indexer import StructureIndexer


class EventLog:
    """Subscriber that remembers every notification it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def args_for(self, hook: str) -> list[object]:
        return [arg for name, arg in self.calls if name == hook]

    @hookimpl
    def on_document_added(self, file_id):
        self.calls.append(("document_added", file_id))

    @hookimpl
    def on_document_removed(self, file_id):
        self.calls.append(("document_removed", file_id))

    @hookimpl
    def on_document_content_changed(self, file_id):
        self.calls.append(("content_changed", file_id))

    @hookimpl
    def on_snapshot_updated(self, file_id):
        self.calls.append(("snapshot_updated", file_id))

    @hookimpl
    def on_graph_updated(self, file_id):
        self.calls.append(("graph_updated", file_id))

    @hookimpl
    def on_history_event_recorded(self, event):
        self.calls.append(("history_event", event))


@pytest.fixture
def hub():
    return EventHub()


@pytest.fixture
def event_log(hub):
    log = EventLog()
    hub.register(log)
    return log


@pytest.fixture
def buffer(hub):
    return InMemoryTextBuffer(hub)


@pytest.fixture
def indexer_config():
    return IndexerConfig(debounce_ms=20)


@pytest.fixture
def indexer(buffer, hub, indexer_config):
    idx = StructureIndexer(buffer, hub, indexer_config)
    yield idx
    idx.dispose()


@pytest.fixture
def graph(indexer, hub):
    builder = CallGraphBuilder(indexer, hub)
    yield builder
    builder.dispose()


@pytest.fixture
def history(indexer, hub):
    recorder = HistoryRecorder(indexer, hub)
    yield recorder
    recorder.dispose()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a temporary project directory with a couple of sources."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.ts").write_text(
        "function main() {\n  helper();\n}\n\nfunction helper() {}\n"
    )
    (tmp_path / "src" / "util.js").write_text("function util() {}\n")
    return tmp_path
