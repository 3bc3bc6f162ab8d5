"""Tests for CallGraphBuilder and call-edge extraction."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

from livecode.buffer.text_buffer import InMemoryTextBuffer
from livecode.events.hub import EventHub
from livecode.events.specs import hookimpl
from livecode.graph.call_graph import CallGraphBuilder, compute_call_edges, enclosing_symbol
from livecode.index.schema import Edge, EdgeKind, Position, Symbol, SymbolKind
from livecode.index.structure_indexer import StructureIndexer


def _by_name(indexer: StructureIndexer, file_id: str) -> dict[str, Symbol]:
    return {s.name: s for s in indexer.get_snapshot(file_id).symbols}


class TestCallEdges:
    def test_simple_call(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a(){ b(); }\nfunction b(){}", "typescript")
        syms = _by_name(indexer, "a.ts")
        a, b = syms["a"], syms["b"]

        assert graph.get_callees(a.id) == [Edge(a.id, b.id, EdgeKind.CALL)]
        callers = graph.get_callers(b.id)
        assert len(callers) == 1
        assert callers[0].from_id == a.id

    def test_declaration_is_not_a_call(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() {}\nfunction b() {}", "typescript")
        assert graph.get_edges_for_file("a.ts") == []

    def test_top_level_call_comes_from_file(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function b() {}\nb();\n", "typescript")
        syms = _by_name(indexer, "a.ts")
        (edge,) = graph.get_callers(syms["b"].id)
        assert edge.from_id == indexer.get_snapshot("a.ts").file_symbol.id

    def test_method_call_attributed_to_innermost_symbol(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        text = (
            "class Service {\n"
            "  start() {\n"
            "    this.load();\n"
            "  }\n"
            "  load() {}\n"
            "}"
        )
        buffer.open("a.ts", text, "typescript")
        syms = _by_name(indexer, "a.ts")
        (edge,) = graph.get_callers(syms["load"].id)
        assert edge.from_id == syms["start"].id

    def test_same_name_targets_all_candidates(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        text = (
            "class A {\n  run() {}\n}\n"
            "class B {\n  run() {}\n}\n"
            "function main() { run(); }"
        )
        buffer.open("a.ts", text, "typescript")
        snapshot = indexer.get_snapshot("a.ts")
        main = next(s for s in snapshot.symbols if s.name == "main")
        runs = [s.id for s in snapshot.symbols if s.name == "run"]

        assert sorted(e.to_id for e in graph.get_callees(main.id)) == sorted(runs)

    def test_repeated_calls_are_deduplicated(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() { b(); b(); b (); }\nfunction b() {}", "typescript")
        assert len(graph.get_edges_for_file("a.ts")) == 1

    def test_recursive_call(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function fact(n) {\n  return n * fact(n - 1);\n}", "typescript")
        fact = _by_name(indexer, "a.ts")["fact"]
        assert graph.get_callers(fact.id) == [Edge(fact.id, fact.id)]

    def test_identifier_boundaries(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() { $b(); ab(); }\nfunction b() {}", "typescript")
        assert graph.get_edges_for_file("a.ts") == []

    def test_classes_are_not_call_targets(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "class Foo {}\nfunction make() { return Foo(); }", "typescript")
        assert graph.get_edges_for_file("a.ts") == []

    def test_unknown_symbol_has_no_edges(self, graph: CallGraphBuilder) -> None:
        assert graph.get_callers("nope") == []
        assert graph.get_callees("nope") == []


class TestReplacement:
    def test_second_snapshot_replaces_edges(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() { b(); }\nfunction b() {}", "typescript")
        old = _by_name(indexer, "a.ts")
        buffer.set_content("a.ts", "function a() {}\nfunction b() { a(); }")
        new = _by_name(indexer, "a.ts")

        assert graph.get_edges_for_file("a.ts") == [Edge(new["b"].id, new["a"].id)]
        assert graph.get_callers(old["b"].id) == []
        assert graph.get_callees(old["a"].id) == []

    def test_graph_updated_once_per_snapshot(
        self,
        buffer: InMemoryTextBuffer,
        indexer: StructureIndexer,
        graph: CallGraphBuilder,
        event_log: Any,
    ) -> None:
        buffer.open("a.ts", "function a() {}", "typescript")
        buffer.set_content("a.ts", "function a() { a(); }")
        assert event_log.args_for("graph_updated") == ["a.ts", "a.ts"]

    def test_edges_visible_when_graph_updated_fires(
        self,
        hub: EventHub,
        buffer: InMemoryTextBuffer,
        indexer: StructureIndexer,
        graph: CallGraphBuilder,
    ) -> None:
        seen = []

        class Listener:
            @hookimpl
            def on_graph_updated(self, file_id: str) -> None:
                seen.append(graph.get_edges_for_file(file_id))

        hub.register(Listener())
        buffer.open("a.ts", "function a() { b(); }\nfunction b() {}", "typescript")
        assert len(seen) == 1
        assert len(seen[0]) == 1

    def test_failure_keeps_previous_edges(
        self,
        buffer: InMemoryTextBuffer,
        indexer: StructureIndexer,
        graph: CallGraphBuilder,
        event_log: Any,
    ) -> None:
        buffer.open("a.ts", "function a() { b(); }\nfunction b() {}", "typescript")
        before = graph.get_edges_for_file("a.ts")
        event_log.calls.clear()

        with patch("livecode.graph.call_graph.compute_call_edges", side_effect=RuntimeError("boom")):
            buffer.set_content("a.ts", "function a() {}\nfunction b() {}")

        assert graph.get_edges_for_file("a.ts") == before
        assert event_log.args_for("graph_updated") == []

    def test_close_drops_edges(
        self,
        buffer: InMemoryTextBuffer,
        indexer: StructureIndexer,
        graph: CallGraphBuilder,
        event_log: Any,
    ) -> None:
        buffer.open("a.ts", "function a() { b(); }\nfunction b() {}", "typescript")
        b = _by_name(indexer, "a.ts")["b"]
        event_log.calls.clear()

        buffer.close("a.ts")

        assert graph.get_edges_for_file("a.ts") == []
        assert graph.get_callers(b.id) == []
        assert graph.files() == []
        assert event_log.args_for("graph_updated") == ["a.ts"]

    def test_files_are_independent(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() { b(); }\nfunction b() {}", "typescript")
        buffer.open("c.ts", "function c() { d(); }\nfunction d() {}", "typescript")
        buffer.close("a.ts")
        assert graph.files() == ["c.ts"]
        assert len(graph.get_edges_for_file("c.ts")) == 1


class TestQueries:
    def test_exported_symbols_are_top_level(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "class A {\n  m() {}\n}\nfunction f() {}", "typescript")
        assert [s.name for s in graph.get_exported_symbols("a.ts")] == ["A", "f"]

    def test_exported_symbols_of_unknown_file(self, graph: CallGraphBuilder) -> None:
        assert graph.get_exported_symbols("nope.ts") == []

    def test_imports_are_not_resolved(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "import { x } from './x';\nfunction a() {}", "typescript")
        assert graph.get_imports_of_file("a.ts") == []

    def test_get_snapshot_delegates(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer, graph: CallGraphBuilder
    ) -> None:
        buffer.open("a.ts", "function a() {}", "typescript")
        assert graph.get_snapshot("a.ts") is indexer.get_snapshot("a.ts")


class TestHelpers:
    def test_compute_call_edges_is_pure(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a(){ b(); }\nfunction b(){}", "typescript")
        snapshot = indexer.get_snapshot("a.ts")
        assert compute_call_edges(snapshot) == compute_call_edges(snapshot)

    def test_enclosing_symbol_prefers_innermost(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "class A {\n  m() {\n    x();\n  }\n}", "typescript")
        snapshot = indexer.get_snapshot("a.ts")
        scopes = [s for s in snapshot.symbols if s.kind is not SymbolKind.FILE]
        assert enclosing_symbol(scopes, Position(3, 5)).name == "m"
        assert enclosing_symbol(scopes, Position(5, 1)).name == "A"
        assert enclosing_symbol(scopes, Position(9, 1)) is None
