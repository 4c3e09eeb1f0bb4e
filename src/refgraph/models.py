"""Core refgraph data models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Tuple

REF_KEY = "$ref"
SCHEMA_KEY = "$schema"


class Shape(enum.Enum):
    """Cardinality a caller expects for a resolved field."""

    SCALAR = "scalar"
    LIST = "list"


@dataclass(frozen=True, slots=True)
class Record:
    """A single datafile: its path, its ``$schema`` tag and its fields."""

    path: str
    schema: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        return self.data[name]

    def __contains__(self, name: object) -> bool:
        return name in self.data

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """Return the document as it appears on disk."""
        return {SCHEMA_KEY: self.schema, **self.data}


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Complete set of loaded records, valid as a unit."""

    records: Tuple[Record, ...] = ()
    by_path: Dict[str, Record] = field(default_factory=dict)
    sha256: str = ""

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def ready(self) -> bool:
        return self.count > 0 and self.sha256 != ""
