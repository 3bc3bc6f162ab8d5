"""Rich-based output rendering for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from livecode.graph.insights import SymbolExplanation
from livecode.index.schema import Edge, HistoryEvent, HistoryEventKind, Snapshot, Symbol

_EVENT_STYLES = {
    HistoryEventKind.SYMBOL_ADDED: "green",
    HistoryEventKind.SYMBOL_REMOVED: "red",
    HistoryEventKind.SYMBOL_CHANGED: "yellow",
}


def _short_id(symbol_id: str) -> str:
    """Drop the ``file::`` prefix of a symbol id for display."""
    return symbol_id.split("::", 1)[-1]


class Renderer:
    """Renders formatted output to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def header(self, title: str) -> None:
        label = Text(title, style="bold magenta")
        self.console.print()
        try:
            self.console.rule(label, style="dim magenta")
        except UnicodeEncodeError:
            self.console.print(f"--- {title} ---", style="bold magenta")

    def symbols(self, snapshot: Snapshot, verbose: bool = False) -> None:
        """Render the symbol table of one snapshot."""
        table = Table(title=f"{snapshot.file_id} (v{snapshot.version})", expand=False)
        table.add_column("Kind", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Line", justify="right")
        table.add_column("Container", style="dim")
        if verbose:
            table.add_column("LOC", justify="right")
            table.add_column("CC", justify="right")
            table.add_column("Summary", style="dim")

        names = {s.id: s.name for s in snapshot.symbols}
        for symbol in snapshot.symbols:
            row = [
                symbol.kind.value,
                symbol.name,
                str(symbol.selection_range.start_line),
                names.get(symbol.container_id, "") if symbol.container_id else "",
            ]
            if verbose:
                metrics = symbol.metrics
                row += [
                    str(metrics.lines_of_code) if metrics else "",
                    str(metrics.complexity) if metrics and metrics.complexity is not None else "",
                    symbol.summary or "",
                ]
            table.add_row(*row)
        self.console.print(table)

    def edges(self, edges: list[Edge]) -> None:
        if not edges:
            self.info("No call edges.")
            return
        table = Table(title="Calls", expand=False)
        table.add_column("Caller", style="cyan")
        table.add_column("Callee", style="green")
        for edge in edges:
            table.add_row(_short_id(edge.from_id), _short_id(edge.to_id))
        self.console.print(table)

    def exported(self, symbols: list[Symbol]) -> None:
        names = ", ".join(s.name for s in symbols) or "(none)"
        self.console.print(Text.assemble(("Top-level: ", "dim"), names))

    def history(self, events: list[HistoryEvent]) -> None:
        if not events:
            self.info("No symbol changes.")
            return
        for event in events:
            style = _EVENT_STYLES.get(event.kind, "white")
            line = Text()
            line.append(f"#{event.id} ", style="dim")
            line.append(event.summary, style=style)
            line.append(f"  (v{event.snapshot_ref.version})", style="dim")
            self.console.print(line)

    def explanation(self, explanation: SymbolExplanation, impacted: list[str]) -> None:
        lines = [explanation.describe()]
        if impacted:
            lines.append(f"Potentially impacted symbols if deleted: {len(impacted)}")
            lines += [f"  {_short_id(symbol_id)}" for symbol_id in impacted]
        else:
            lines.append("No direct impact detected from deleting this symbol.")
        self.console.print(Panel("\n".join(lines), title=explanation.name, border_style="blue", expand=False))

    def error(self, message: str) -> None:
        """Display an error message."""
        self.console.print(Text(f"Error: {message}", style="bold red"))

    def info(self, message: str) -> None:
        """Display an info message."""
        self.console.print(Text(message, style="dim"))

    def warning(self, message: str) -> None:
        """Display a warning."""
        self.console.print(Text(f"Warning: {message}", style="yellow"))
