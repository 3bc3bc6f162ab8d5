"""livecode - live structure index, call graph and symbol history for JS/TS."""

import logging
import sys
from pathlib import Path

_HELP = """\
Usage: livecode analyze <file>... [--verbose]
       livecode diff <old-file> <new-file> [--verbose]
       livecode impact <file> <symbol-name> [--verbose]

Commands:
  analyze    Print symbols, call edges and top-level symbols of each file
  diff       Treat <new-file> as the next version of <old-file> and print
             the symbol-level history events between them
  impact     Explain a symbol and list what could break if it were deleted

Options:
  --verbose, -v   Show metrics and summaries, and log at DEBUG level
  --help, -h      Show this help message and exit
"""

_LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
}


def language_for(path: Path) -> str:
    """Language id for *path* from its extension; ``plaintext`` if unknown."""
    return _LANGUAGES.get(path.suffix.lower(), "plaintext")


def main() -> None:
    """Entry point for the livecode CLI."""
    args = sys.argv[1:]

    if not args or "--help" in args or "-h" in args:
        print(_HELP)
        sys.exit(0)

    verbose = "--verbose" in args or "-v" in args
    rest = [a for a in args[1:] if a not in ("--verbose", "-v")]
    _configure_logging(verbose)

    command = args[0]
    if command == "analyze":
        status = _run_analyze(rest, verbose)
    elif command == "diff":
        status = _run_diff(rest)
    elif command == "impact":
        status = _run_impact(rest)
    else:
        print(f"Unknown command: {command}")
        print("Run 'livecode --help' for usage.")
        sys.exit(1)

    if status:
        sys.exit(status)


def _configure_logging(verbose: bool) -> None:
    from livecode.core.config import EnvSettings

    level = "DEBUG" if verbose else EnvSettings().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _run_analyze(args: list[str], verbose: bool) -> int:
    """Open every file in one session and render what was indexed."""
    if not args:
        print("Usage: livecode analyze <file>... [--verbose]")
        sys.exit(1)

    from livecode.cli.renderer import Renderer
    from livecode.core.session import LiveCodeSession

    renderer = Renderer()
    session = LiveCodeSession()
    status = 0
    try:
        for arg in args:
            path = Path(arg)
            content = _read(path)
            if content is None:
                renderer.error(f"Cannot read {arg}")
                status = 1
                continue
            session.open(path.as_posix(), content, language_for(path))
        session.flush()

        for arg in args:
            file_id = Path(arg).as_posix()
            snapshot = session.indexer.get_snapshot(file_id)
            if snapshot is None:
                if session.buffer.get_document(file_id) is not None:
                    renderer.warning(f"{arg}: not indexed (unsupported language or too large)")
                continue
            renderer.header(file_id)
            renderer.symbols(snapshot, verbose=verbose)
            renderer.edges(session.graph.get_edges_for_file(file_id))
            renderer.exported(session.graph.get_exported_symbols(file_id))
    finally:
        session.dispose()
    return status


def _run_diff(args: list[str]) -> int:
    """Feed two files as successive versions of one document."""
    if len(args) != 2:
        print("Usage: livecode diff <old-file> <new-file>")
        sys.exit(1)

    from livecode.cli.renderer import Renderer
    from livecode.core.session import LiveCodeSession

    renderer = Renderer()
    old_path, new_path = Path(args[0]), Path(args[1])
    old_text, new_text = _read(old_path), _read(new_path)
    if old_text is None or new_text is None:
        renderer.error(f"Cannot read {old_path if old_text is None else new_path}")
        return 1

    session = LiveCodeSession()
    try:
        file_id = old_path.as_posix()
        session.open(file_id, old_text, language_for(old_path))
        session.flush()
        session.update(file_id, new_text)
        session.flush()

        if session.indexer.get_snapshot(file_id) is None:
            renderer.warning(f"{file_id}: not indexed (unsupported language or too large)")
            return 1
        renderer.header(f"{old_path.name} -> {new_path.name}")
        renderer.history(session.history.get_events_for_file(file_id))
        ranges = session.recent_changes(file_id)
        if ranges:
            spans = ", ".join(f"{r.start_line}-{r.end_line}" for r in ranges)
            renderer.info(f"Recently changed lines: {spans}")
    finally:
        session.dispose()
    return 0


def _run_impact(args: list[str]) -> int:
    """Explain the first symbol named *name* and its transitive callers."""
    if len(args) != 2:
        print("Usage: livecode impact <file> <symbol-name>")
        sys.exit(1)

    from livecode.cli.renderer import Renderer
    from livecode.core.session import LiveCodeSession
    from livecode.graph.insights import deletion_impact, explain_symbol, find_conceptual_duplicates
    from livecode.index.schema import SymbolKind

    renderer = Renderer()
    path, name = Path(args[0]), args[1]
    content = _read(path)
    if content is None:
        renderer.error(f"Cannot read {args[0]}")
        return 1

    session = LiveCodeSession()
    try:
        file_id = path.as_posix()
        session.open(file_id, content, language_for(path))
        session.flush()

        snapshot = session.indexer.get_snapshot(file_id)
        symbol = None
        if snapshot is not None:
            symbol = next(
                (s for s in snapshot.symbols if s.name == name and s.kind is not SymbolKind.FILE),
                None,
            )
        if symbol is None:
            renderer.error(f"No symbol named {name!r} in {file_id}")
            return 1

        explanation = explain_symbol(session.indexer, session.graph, file_id, symbol.id)
        renderer.explanation(explanation, deletion_impact(session.graph, symbol.id))
        duplicates = find_conceptual_duplicates(session.indexer, file_id, symbol.id)
        if duplicates:
            lines = ", ".join(f"line {d.selection_range.start_line}" for d in duplicates)
            renderer.warning(f"{len(duplicates)} other symbol(s) named {name!r}: {lines}")
    finally:
        session.dispose()
    return 0


if __name__ == "__main__":
    main()
