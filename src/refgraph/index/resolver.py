"""Field resolution over a record snapshot."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

from refgraph.index.store import is_non_empty_array, is_reference, resolve_reference
from refgraph.models import REF_KEY, Record, Shape, Snapshot

LOGGER = logging.getLogger(__name__)

SCHEMA_FIELD = "schema"

ReferenceLookup = Callable[[Any], Any]


class FieldResolver:
    """Compute the value of ``field_name`` on a record, dereferencing one hop.

    A resolver is bound to a single snapshot so every field read during one
    query sees the same record set, even if the store reloads meanwhile.
    """

    def __init__(self, snapshot: Snapshot, *, lookup: ReferenceLookup | None = None) -> None:
        self.snapshot = snapshot
        self._lookup = lookup or (lambda value: resolve_reference(snapshot, value))

    def resolve(self, record: Record, field_name: str, shape: Shape = Shape.SCALAR) -> Any:
        if field_name == SCHEMA_FIELD:
            return record.schema

        if field_name not in record:
            return None
        value = record[field_name]

        if is_non_empty_array(value):
            return self._resolve_sequence(value, shape)

        if is_reference(value):
            target = self._lookup(value)
            if target is None:
                LOGGER.debug("Dangling reference %s in %s", value[REF_KEY], record.path)
            return target

        return value

    def _resolve_sequence(self, values: Any, shape: Shape) -> Any:
        # Mixed or plain sequences are returned untouched, markers included.
        if not all(is_reference(item) for item in values):
            return values

        resolved: List[Any] = []
        for item in values:
            target = self._lookup(item)
            if target is None:
                LOGGER.debug("Dropping dangling reference %s", item[REF_KEY])
                continue
            if shape is Shape.LIST and isinstance(target, (list, tuple)):
                resolved.extend(target)
            else:
                resolved.append(target)
        return resolved
