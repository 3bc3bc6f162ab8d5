"""livecode - live structure index, call graph and symbol history for JS/TS sources."""

__version__ = "0.1.0"
