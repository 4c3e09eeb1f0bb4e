"""Exceptions raised by refgraph components."""

from __future__ import annotations


class RefgraphError(Exception):
    """Base class for refgraph errors."""


class LoadError(RefgraphError):
    """The backing source of datafiles is unreadable or malformed."""


class SchemaError(RefgraphError):
    """The type catalogue is malformed."""


class QueryError(RefgraphError):
    """A query selection does not match the type catalogue."""
