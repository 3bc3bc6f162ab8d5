"""EventHub: observer registry wrapping pluggy with per-subscriber isolation."""

from __future__ import annotations

import logging
from typing import Any

import pluggy

from livecode.events.specs import LiveCodeHookSpec

logger = logging.getLogger(__name__)


class EventHub:
    """Registers subscribers and delivers livecode notifications to them.

    Uses pluggy for registration and hook validation.  Delivery calls every
    implementation on its own so a broken subscriber cannot keep the others
    from seeing an event, and never raises into the publisher.

    Example::

        hub = EventHub()

        class Printer:
            @hookimpl
            def on_snapshot_updated(self, file_id):
                print("snapshot", file_id)

        hub.register(Printer())
        hub.fire_snapshot_updated("src/app.ts")
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager("livecode")
        self._pm.add_hookspecs(LiveCodeHookSpec)

    # ── Registration ─────────────────────────────────────────────────────────

    def register(self, subscriber: object) -> None:
        """Register an object whose methods are decorated with ``@hookimpl``."""
        if self._pm.is_registered(subscriber):
            return
        self._pm.register(subscriber)

    def unregister(self, subscriber: object) -> None:
        if self._pm.is_registered(subscriber):
            self._pm.unregister(subscriber)

    def is_registered(self, subscriber: object) -> bool:
        return self._pm.is_registered(subscriber)

    def subscriber_count(self, hook_name: str) -> int:
        return len(getattr(self._pm.hook, hook_name).get_hookimpls())

    # ── Delivery ─────────────────────────────────────────────────────────────

    def fire_document_added(self, file_id: str) -> None:
        self._dispatch("on_document_added", file_id=file_id)

    def fire_document_removed(self, file_id: str) -> None:
        self._dispatch("on_document_removed", file_id=file_id)

    def fire_document_content_changed(self, file_id: str) -> None:
        self._dispatch("on_document_content_changed", file_id=file_id)

    def fire_snapshot_updated(self, file_id: str) -> None:
        self._dispatch("on_snapshot_updated", file_id=file_id)

    def fire_graph_updated(self, file_id: str) -> None:
        self._dispatch("on_graph_updated", file_id=file_id)

    def fire_history_event_recorded(self, event: object) -> None:
        self._dispatch("on_history_event_recorded", event=event)

    def _dispatch(self, hook_name: str, **kwargs: Any) -> None:
        caller = getattr(self._pm.hook, hook_name)
        for impl in caller.get_hookimpls():
            call_kwargs = {name: kwargs[name] for name in impl.argnames}
            try:
                impl.function(**call_kwargs)
            except Exception:
                logger.exception(
                    "Subscriber %s failed handling %s", impl.plugin_name, hook_name
                )
