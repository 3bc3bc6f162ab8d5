"""Intra-file call graph and the insight queries built on it."""

from livecode.graph.call_graph import CallGraphBuilder, compute_call_edges, enclosing_symbol

__all__ = [
    "CallGraphBuilder",
    "compute_call_edges",
    "enclosing_symbol",
]
