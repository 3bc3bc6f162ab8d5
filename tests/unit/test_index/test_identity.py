"""Tests for symbol identity across successive snapshots."""

from __future__ import annotations

import time
from unittest.mock import patch

from livecode.buffer.text_buffer import InMemoryTextBuffer
from livecode.index.extractor import StructureExtractor
from livecode.index.identity import IdentityLineage, file_symbol_id, natural_id
from livecode.index.schema import Snapshot, Symbol
from livecode.index.structure_indexer import StructureIndexer


def _ids(indexer: StructureIndexer, file_id: str) -> dict[str, str]:
    return {s.name: s.id for s in indexer.get_snapshot(file_id).symbols[1:]}


def _step(lineage: IdentityLineage, text: str, previous: Snapshot | None) -> Snapshot:
    """Assign ids for *text* and wrap them in a snapshot for the next step."""
    decls = StructureExtractor().extract(text).declarations
    ids = lineage.assign(decls, previous)
    symbols = tuple(
        Symbol(
            id=symbol_id,
            name=decl.name,
            kind=decl.kind,
            file_id=lineage.file_id,
            range=decl.selection_range,
            selection_range=decl.selection_range,
            container_id=ids[decl.container] if decl.container is not None else None,
        )
        for decl, symbol_id in zip(decls, ids)
    )
    version = previous.version + 1 if previous else 1
    return Snapshot(lineage.file_id, version, "typescript", symbols, created_at=0.0)


def _shift_cycles(lineage: IdentityLineage, cycles: int) -> list[str]:
    snapshot = _step(lineage, "function a() {}", None)
    seen = [snapshot.symbols[0].id]
    for _ in range(cycles):
        snapshot = _step(lineage, "\nfunction a() {}", snapshot)
        snapshot = _step(lineage, "function a() {}", snapshot)
        seen.append(snapshot.symbols[0].id)
    return seen


class TestNaturalId:
    def test_top_level(self) -> None:
        assert natural_id("a.ts", "run", 3) == "a.ts::run@3"

    def test_method_is_qualified_by_container(self) -> None:
        assert natural_id("a.ts", "run", 3, "a.ts::A@1") == "a.ts::run@a.ts::A@1@3"

    def test_file_symbol(self) -> None:
        assert file_symbol_id("a.ts") == "a.ts::<file>@1"


class TestLineage:
    def test_fresh_lineage_uses_natural_ids(self) -> None:
        decls = StructureExtractor().extract("function a() {}\nfunction b() {}").declarations
        assert IdentityLineage("a.ts").assign(decls, None) == ["a.ts::a@1", "a.ts::b@2"]

    def test_unchanged_declarations_keep_ids(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}\nfunction b() {}", "typescript")
        before = _ids(indexer, "a.ts")
        buffer.set_content("a.ts", "function a() { return 1; }\nfunction b() {}")
        assert _ids(indexer, "a.ts") == before

    def test_same_line_rename_keeps_id(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}\n", "typescript")
        old = _ids(indexer, "a.ts")["a"]
        buffer.set_content("a.ts", "function a2() {}\n")
        assert _ids(indexer, "a.ts") == {"a2": old}

    def test_renamed_method_keeps_container(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "class A {\n  run() {}\n}", "typescript")
        old = _ids(indexer, "a.ts")
        buffer.set_content("a.ts", "class A {\n  start() {}\n}")
        new = _ids(indexer, "a.ts")
        assert new["start"] == old["run"]
        assert new["A"] == old["A"]

    def test_rename_to_existing_name_is_not_a_rename(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}\nfunction b() {}", "typescript")
        old = _ids(indexer, "a.ts")
        buffer.set_content("a.ts", "function b() {}\n")
        new = _ids(indexer, "a.ts")
        assert new["b"] not in old.values()

    def test_line_shift_gives_new_id(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}", "typescript")
        old = _ids(indexer, "a.ts")["a"]
        buffer.set_content("a.ts", "\nfunction a() {}")
        assert _ids(indexer, "a.ts")["a"] != old

    def test_retired_id_is_never_rebound(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}\nfunction b() {}", "typescript")
        old_b = _ids(indexer, "a.ts")["b"]
        buffer.set_content("a.ts", "function a() {}\n")
        buffer.set_content("a.ts", "function a() {}\nfunction b() {}")
        new_b = _ids(indexer, "a.ts")["b"]
        assert new_b != old_b
        assert new_b == f"{old_b}#2"

    def test_lineage_resets_when_document_closes(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        buffer.open("a.ts", "function a() {}", "typescript")
        old = _ids(indexer, "a.ts")
        buffer.close("a.ts")
        buffer.open("a.ts", "function a() {}", "typescript")
        assert _ids(indexer, "a.ts") == old


class TestSuffixes:
    def test_suffix_counter_continues_per_candidate(self) -> None:
        lineage = IdentityLineage("a.ts")
        assert _shift_cycles(lineage, 3) == [
            "a.ts::a@1",
            "a.ts::a@1#2",
            "a.ts::a@1#3",
            "a.ts::a@1#4",
        ]

    def test_retired_ids_stay_bounded(self) -> None:
        lineage = IdentityLineage("a.ts", max_retired=4)
        snapshot = _step(lineage, "function a() {}", None)
        for _ in range(50):
            snapshot = _step(lineage, "\nfunction a() {}", snapshot)
            assert len(lineage.retired) <= 4
            snapshot = _step(lineage, "function a() {}", snapshot)
            assert len(lineage.retired) <= 4
            assert snapshot.symbols[0].id not in lineage.retired

    def test_shift_undo_cycles_are_deterministic(self) -> None:
        first = _shift_cycles(IdentityLineage("a.ts", max_retired=4), 50)
        second = _shift_cycles(IdentityLineage("a.ts", max_retired=4), 50)
        assert first == second

    def test_natural_id_returns_once_retirement_ages_out(self) -> None:
        seen = _shift_cycles(IdentityLineage("a.ts", max_retired=4), 50)
        assert seen[3] == "a.ts::a@1"

    def test_unbounded_lineage_never_rebinds(self) -> None:
        seen = _shift_cycles(IdentityLineage("a.ts"), 50)
        assert len(set(seen)) == len(seen)


class TestLargeDocuments:
    def test_line_shift_on_large_document(
        self, buffer: InMemoryTextBuffer, indexer: StructureIndexer
    ) -> None:
        text = "".join(f"function f{i}() {{}}\n" for i in range(8000))
        buffer.open("big.ts", text, "typescript")
        before = _ids(indexer, "big.ts")

        with patch.object(
            IdentityLineage, "_unused", autospec=True, side_effect=IdentityLineage._unused
        ) as unused:
            started = time.perf_counter()
            buffer.set_content("big.ts", "\n" + text)
            elapsed = time.perf_counter() - started

        after = _ids(indexer, "big.ts")
        assert len(after) == 8000
        assert len(set(after.values())) == 8000
        assert not set(after.values()) & set(before.values())
        assert unused.call_count == 8000
        assert len({id(c.args[2]) for c in unused.call_args_list}) == 1
        assert elapsed < 5.0
