"""Symbol-level change history recorded from successive snapshots."""

from livecode.history.recorder import HistoryRecorder, SymbolChange, diff_snapshots

__all__ = [
    "HistoryRecorder",
    "SymbolChange",
    "diff_snapshots",
]
