"""Symbol identity across successive snapshots of one file.

A symbol's natural id is derived from the file, its name (qualified by the
container id for methods) and its declaration line.  Within one lineage of
snapshots, ids are carried forward:

  * a declaration identical in kind, container, name and line to a previous
    symbol keeps that symbol's id;
  * a declaration that took over a previous symbol's line under a new name,
    where the old name is gone and the new one is new, is the same symbol
    renamed and keeps its id;
  * anything else gets its natural id, suffixed ``#n`` if that id was
    already used in this lineage, so a retired id is never rebound.  Only the
    most recent retirements are remembered.

Line shifts are not reconciled: a declaration pushed down by an inserted
line gets a new id.
"""

from __future__ import annotations

from livecode.index.extractor import Declaration
from livecode.index.schema import Snapshot, SymbolKind

FILE_SYMBOL_KEY = "<file>"
DEFAULT_MAX_RETIRED = 4096


def natural_id(file_id: str, name: str, line: int, container_id: str | None = None) -> str:
    key = name if container_id is None else f"{name}@{container_id}"
    return f"{file_id}::{key}@{line}"


def file_symbol_id(file_id: str) -> str:
    return natural_id(file_id, FILE_SYMBOL_KEY, 1)


class IdentityLineage:
    """Assigns ids to the declarations of successive snapshots of one file.

    At most *max_retired* retired ids are remembered, oldest dropped first.
    """

    def __init__(self, file_id: str, max_retired: int = DEFAULT_MAX_RETIRED) -> None:
        self.file_id = file_id
        self.max_retired = max_retired
        self._retired: dict[str, None] = {}
        self._next_suffix: dict[str, int] = {}

    @property
    def retired(self) -> frozenset[str]:
        return frozenset(self._retired)

    def assign(
        self,
        declarations: tuple[Declaration, ...],
        previous: Snapshot | None,
    ) -> list[str]:
        """Return one id per declaration, reconciled against *previous*."""
        prev = [s for s in previous.symbols if s.kind is not SymbolKind.FILE] if previous else []
        exact = {(s.kind, s.container_id, s.name, s.selection_range.start_line): s for s in prev}
        by_slot = {(s.kind, s.container_id, s.selection_range.start_line): s for s in prev}
        prev_names = {(s.kind, s.name) for s in prev}
        next_names = {(d.kind, d.name) for d in declarations}
        prev_ids = {s.id for s in prev}

        taken = set(prev_ids)
        consumed: set[str] = set()
        ids: list[str] = []
        for decl in declarations:
            container_id = ids[decl.container] if decl.container is not None else None

            match = exact.get((decl.kind, container_id, decl.name, decl.line))
            if match is None or match.id in consumed:
                match = None
                slot = by_slot.get((decl.kind, container_id, decl.line))
                if (
                    slot is not None
                    and slot.id not in consumed
                    and (decl.kind, decl.name) not in prev_names
                    and (slot.kind, slot.name) not in next_names
                ):
                    match = slot

            if match is not None:
                consumed.add(match.id)
                ids.append(match.id)
            else:
                candidate = natural_id(self.file_id, decl.name, decl.line, container_id)
                assigned = self._unused(candidate, taken)
                taken.add(assigned)
                ids.append(assigned)

        for symbol in prev:
            if symbol.id not in consumed:
                self._retire(symbol.id)
        return ids

    def _unused(self, candidate: str, taken: set[str]) -> str:
        if candidate not in taken and candidate not in self._retired:
            return candidate
        n = self._next_suffix.get(candidate, 2)
        result = f"{candidate}#{n}"
        while result in taken or result in self._retired:
            n += 1
            result = f"{candidate}#{n}"
        self._next_suffix.pop(candidate, None)
        self._next_suffix[candidate] = n + 1
        if len(self._next_suffix) > self.max_retired:
            del self._next_suffix[next(iter(self._next_suffix))]
        return result

    def _retire(self, symbol_id: str) -> None:
        self._retired.pop(symbol_id, None)
        self._retired[symbol_id] = None
        while len(self._retired) > self.max_retired:
            oldest = next(iter(self._retired))
            del self._retired[oldest]
            self._next_suffix.pop(oldest, None)
