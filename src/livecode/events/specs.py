"""Hook specifications for livecode notifications, using pluggy."""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("livecode")
hookimpl = pluggy.HookimplMarker("livecode")


class LiveCodeHookSpec:
    """Notifications published by text buffers and the indexing engines.

    Subscribers implement any subset of these hooks with ``@hookimpl``.
    The order in which subscribers of one hook run is not defined.
    """

    # ── Text buffer ──────────────────────────────────────────────────────────

    @hookspec
    def on_document_added(self, file_id: str) -> None:
        """Called when a document is opened.

        Args:
            file_id: Identity of the document.
        """

    @hookspec
    def on_document_removed(self, file_id: str) -> None:
        """Called when a document is closed or disposed.

        Args:
            file_id: Identity of the document.
        """

    @hookspec
    def on_document_content_changed(self, file_id: str) -> None:
        """Called after every content edit of an open document.

        Args:
            file_id: Identity of the document.
        """

    # ── Engines ──────────────────────────────────────────────────────────────

    @hookspec
    def on_snapshot_updated(self, file_id: str) -> None:
        """Called once per successful structure recomputation of a file."""

    @hookspec
    def on_graph_updated(self, file_id: str) -> None:
        """Called after the call-graph edges of a file were replaced."""

    @hookspec
    def on_history_event_recorded(self, event: object) -> None:
        """Called for every appended ``HistoryEvent``.

        Args:
            event: The recorded HistoryEvent.
        """
