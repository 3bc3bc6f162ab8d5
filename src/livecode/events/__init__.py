"""livecode notification system powered by pluggy."""

from livecode.events.hub import EventHub
from livecode.events.specs import LiveCodeHookSpec, hookimpl, hookspec

__all__ = [
    "EventHub",
    "LiveCodeHookSpec",
    "hookimpl",
    "hookspec",
]
