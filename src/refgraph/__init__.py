"""refgraph - query API over cross-referencing datafiles."""

__version__ = "0.1.0"
