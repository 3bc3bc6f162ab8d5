"""Text-buffer collaborator interface and in-memory implementation."""

from livecode.buffer.text_buffer import Document, InMemoryTextBuffer, LineIndex, TextBuffer

__all__ = [
    "Document",
    "InMemoryTextBuffer",
    "LineIndex",
    "TextBuffer",
]
