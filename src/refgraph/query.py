"""Execute nested field selections against the record store."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from refgraph.errors import QueryError
from refgraph.index.resolver import FieldResolver
from refgraph.index.store import RecordStore, filter_by_schema
from refgraph.models import Record
from refgraph.schema import Catalogue, ObjectType

LOGGER = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class QueryExecutor:
    """Evaluate a selection such as ``{"bot": {"name": None, "owner": {"name": None}}}``.

    Root fields are the catalogue's queries. Each level of the selection maps
    field names to ``None`` (scalar leaves) or to a nested selection for
    fields whose type is another record type.
    """

    def __init__(self, store: RecordStore, catalogue: Catalogue) -> None:
        self.store = store
        self.catalogue = catalogue

    def execute(self, selection: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(selection, Mapping) or not selection:
            raise QueryError("Query must select at least one root field")

        for name, sub in selection.items():
            query = self.catalogue.queries.get(name)
            if query is None:
                raise QueryError(f"Unknown query field '{name}'")
            self._validate(self.catalogue.types[query.type_name], sub, name)

        resolver = FieldResolver(self.store.snapshot)
        data: Dict[str, Any] = {}
        for name, sub in selection.items():
            query = self.catalogue.queries[name]
            object_type = self.catalogue.types[query.type_name]
            records = filter_by_schema(resolver.snapshot, query.schema)
            LOGGER.debug("Query %s matched %d records", name, len(records))
            data[name] = [self._project(resolver, record, object_type, sub) for record in records]
        return data

    def _validate(self, object_type: ObjectType, selection: Any, where: str) -> None:
        if not isinstance(selection, Mapping) or not selection:
            raise QueryError(f"Field '{where}' of type '{object_type.name}' needs a sub-selection")
        for field_name, sub in selection.items():
            field_def = object_type.fields.get(field_name)
            if field_def is None:
                raise QueryError(f"Unknown field '{field_name}' on type '{object_type.name}'")
            if field_def.is_object:
                self._validate(self.catalogue.types[field_def.type_name], sub, field_name)
            elif sub:
                raise QueryError(f"Field '{field_name}' is a scalar and takes no sub-selection")

    def _project(
        self,
        resolver: FieldResolver,
        record: Record,
        object_type: ObjectType,
        selection: Mapping[str, Any],
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for field_name, sub in selection.items():
            field_def = object_type.fields[field_name]
            value = resolver.resolve(record, field_name, field_def.shape)
            if field_def.is_object:
                nested = self.catalogue.types[field_def.type_name]
                result[field_name] = self._project_value(resolver, value, nested, sub)
            else:
                result[field_name] = _plain(value)
        return result

    def _project_value(
        self,
        resolver: FieldResolver,
        value: Any,
        object_type: ObjectType,
        selection: Mapping[str, Any],
    ) -> Any:
        # Anything that did not resolve to a record is passed through as-is.
        if isinstance(value, Record):
            return self._project(resolver, value, object_type, selection)
        if isinstance(value, (list, tuple)):
            items: List[Any] = [
                self._project_value(resolver, item, object_type, selection) for item in value
            ]
            return items
        return value
