"""Text-buffer collaborator: the document source the indexer reads from.

``TextBuffer`` is the interface a host editor implements.  ``InMemoryTextBuffer``
is a complete in-process implementation that publishes document
notifications through an ``EventHub``; the CLI and the tests drive the
engines through it.
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from livecode.index.schema import Position

if TYPE_CHECKING:
    from livecode.events.hub import EventHub

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class Document:
    """Immutable view of one open document."""

    file_id: str
    content: str
    language_id: str
    version: int

    @property
    def length(self) -> int:
        return len(self.content)


class TextBuffer(Protocol):
    """What the indexing engines need from the host's text buffers."""

    def get_document(self, file_id: str) -> Document | None: ...

    def list_documents(self) -> list[str]: ...

    def position_at(self, file_id: str, offset: int) -> Position | None: ...


class LineIndex:
    """Maps character offsets of a text to 1-based line/column positions."""

    def __init__(self, text: str) -> None:
        self._length = len(text)
        self._starts = [0]
        for match in _LINE_BREAK_RE.finditer(text):
            self._starts.append(match.end())

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def position_at(self, offset: int) -> Position:
        """Return the position of *offset*, clamped to the text bounds."""
        offset = max(0, min(offset, self._length))
        line_idx = bisect.bisect_right(self._starts, offset) - 1
        return Position(line_idx + 1, offset - self._starts[line_idx] + 1)

    def offset_at(self, position: Position) -> int:
        """Inverse of ``position_at`` for positions inside the text."""
        line_idx = max(0, min(position.line - 1, len(self._starts) - 1))
        return min(self._starts[line_idx] + max(position.column - 1, 0), self._length)


class InMemoryTextBuffer:
    """Dictionary-backed ``TextBuffer`` that announces changes on an ``EventHub``.

    Usage::

        buffer = InMemoryTextBuffer(hub)
        buffer.open("src/app.ts", "function main() {}", "typescript")
        buffer.set_content("src/app.ts", "function main2() {}")
        buffer.close("src/app.ts")
    """

    def __init__(self, hub: EventHub | None = None) -> None:
        self._hub = hub
        self._documents: dict[str, Document] = {}

    def bind(self, hub: EventHub) -> None:
        """Attach the hub notifications are published on."""
        self._hub = hub

    # ── TextBuffer protocol ──────────────────────────────────────────────────

    def get_document(self, file_id: str) -> Document | None:
        return self._documents.get(file_id)

    def list_documents(self) -> list[str]:
        return list(self._documents)

    def position_at(self, file_id: str, offset: int) -> Position | None:
        doc = self._documents.get(file_id)
        if doc is None:
            return None
        return LineIndex(doc.content).position_at(offset)

    # ── Mutation ─────────────────────────────────────────────────────────────

    def open(self, file_id: str, content: str, language_id: str, version: int = 1) -> Document:
        """Open a document.  Re-opening an open document replaces its content."""
        existing = self._documents.get(file_id)
        if existing is not None:
            return self._replace(existing, content=content, language_id=language_id)

        doc = Document(file_id=file_id, content=content, language_id=language_id, version=version)
        self._documents[file_id] = doc
        if self._hub is not None:
            self._hub.fire_document_added(file_id)
        return doc

    def set_content(self, file_id: str, content: str) -> Document | None:
        """Replace the whole content; bumps the version.  None if not open."""
        doc = self._documents.get(file_id)
        if doc is None:
            logger.debug("set_content on unknown document %s", file_id)
            return None
        return self._replace(doc, content=content)

    def apply_edit(self, file_id: str, start: int, end: int, text: str) -> Document | None:
        """Replace ``content[start:end]`` with *text*; bumps the version."""
        doc = self._documents.get(file_id)
        if doc is None:
            logger.debug("apply_edit on unknown document %s", file_id)
            return None
        start = max(0, min(start, doc.length))
        end = max(start, min(end, doc.length))
        return self._replace(doc, content=doc.content[:start] + text + doc.content[end:])

    def close(self, file_id: str) -> bool:
        """Close a document.  Returns False if it was not open."""
        if self._documents.pop(file_id, None) is None:
            return False
        if self._hub is not None:
            self._hub.fire_document_removed(file_id)
        return True

    def _replace(self, doc: Document, **changes: str) -> Document:
        updated = replace(doc, version=doc.version + 1, **changes)
        self._documents[doc.file_id] = updated
        if self._hub is not None:
            self._hub.fire_document_content_changed(doc.file_id)
        return updated
