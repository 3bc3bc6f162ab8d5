"""Per-key debounce timers on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run ``callback(key)`` once a key has been quiet for *delay* seconds.

    Each key owns at most one pending ``TimerHandle``; scheduling a key that
    is already pending resets its timer instead of queueing a second run.
    When no event loop is running the callback runs immediately.
    """

    def __init__(self, delay: float, callback: Callable[[str], None]) -> None:
        self._delay = max(delay, 0.0)
        self._callback = callback
        self._handles: dict[str, asyncio.TimerHandle] = {}

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, key: str) -> None:
        """(Re)start the quiet period for *key*."""
        self.cancel(key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._run(key)
            return
        self._handles[key] = loop.call_later(self._delay, self._fire, key)

    def cancel(self, key: str) -> bool:
        """Drop the pending run for *key*.  Returns True if one was pending."""
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def is_pending(self, key: str) -> bool:
        return key in self._handles

    def pending(self) -> list[str]:
        return list(self._handles)

    def flush(self, key: str | None = None) -> None:
        """Run pending work now: for *key* only, or for every pending key."""
        keys = [key] if key is not None else self.pending()
        for k in keys:
            if self.cancel(k):
                self._run(k)

    def dispose(self) -> None:
        for key in self.pending():
            self.cancel(key)

    def _fire(self, key: str) -> None:
        self._handles.pop(key, None)
        self._run(key)

    def _run(self, key: str) -> None:
        try:
            self._callback(key)
        except Exception as exc:
            logger.debug("Debounced callback failed for %s: %s", key, exc)
