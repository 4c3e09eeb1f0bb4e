"""Type catalogue describing which fields each record type exposes.

The catalogue is a YAML document with two sections::

    types:
      Bot_v1:
        name: String!
        owner: User_v1
        roles: "[Role_v1]"
    queries:
      bot: {type: Bot_v1, schema: /access/bot-1.yml}

A field type is a scalar (``String``, ``Int``, ``Float``, ``Boolean``,
``JSON``) or the name of another declared type, optionally wrapped in
``[...]`` for lists. The list wrapper is parsed once here into a
:class:`~refgraph.models.Shape` so nothing downstream inspects type strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from refgraph.errors import SchemaError
from refgraph.models import Shape

SCALAR_TYPES = frozenset({"String", "Int", "Float", "Boolean", "JSON"})

_TYPE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True, slots=True)
class FieldDef:
    name: str
    type_name: str
    shape: Shape = Shape.SCALAR
    non_null: bool = False

    @property
    def is_object(self) -> bool:
        return self.type_name not in SCALAR_TYPES

    def describe(self) -> str:
        text = self.type_name
        if self.shape is Shape.LIST:
            text = f"[{text}]"
        return f"{text}!" if self.non_null else text


@dataclass(frozen=True, slots=True)
class ObjectType:
    name: str
    fields: Dict[str, FieldDef] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class QueryDef:
    """Root query field returning every record of one ``$schema``."""

    name: str
    type_name: str
    schema: str


def parse_type(name: str, expression: str) -> FieldDef:
    """Parse a field type expression such as ``[User_v1]`` or ``String!``."""
    text = str(expression).strip()
    non_null = text.endswith("!")
    if non_null:
        text = text[:-1].strip()

    shape = Shape.SCALAR
    if text.startswith("[") and text.endswith("]"):
        shape = Shape.LIST
        text = text[1:-1].strip().rstrip("!").strip()

    if not _TYPE_NAME.match(text):
        raise SchemaError(f"Invalid type expression for field '{name}': {expression!r}")
    return FieldDef(name=name, type_name=text, shape=shape, non_null=non_null)


@dataclass(slots=True)
class Catalogue:
    types: Dict[str, ObjectType] = field(default_factory=dict)
    queries: Dict[str, QueryDef] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, document: Any) -> "Catalogue":
        if not isinstance(document, Mapping):
            raise SchemaError("Type catalogue must be a mapping")

        raw_types = document.get("types") or {}
        raw_queries = document.get("queries") or {}
        if not isinstance(raw_types, Mapping) or not isinstance(raw_queries, Mapping):
            raise SchemaError("'types' and 'queries' must be mappings")

        types: Dict[str, ObjectType] = {}
        for type_name, raw_fields in raw_types.items():
            if not isinstance(raw_fields, Mapping):
                raise SchemaError(f"Fields of type '{type_name}' must be a mapping")
            fields: Dict[str, FieldDef] = {}
            for field_name, spec in raw_fields.items():
                if isinstance(spec, Mapping):
                    spec = spec.get("type")
                if spec is None:
                    raise SchemaError(f"Field '{type_name}.{field_name}' has no type")
                fields[field_name] = parse_type(field_name, spec)
            # Every record exposes its $schema tag.
            fields.setdefault("schema", FieldDef(name="schema", type_name="String", non_null=True))
            types[type_name] = ObjectType(name=type_name, fields=fields)

        queries: Dict[str, QueryDef] = {}
        for query_name, spec in raw_queries.items():
            if not isinstance(spec, Mapping) or "type" not in spec or "schema" not in spec:
                raise SchemaError(f"Query '{query_name}' needs 'type' and 'schema'")
            queries[query_name] = QueryDef(
                name=query_name, type_name=str(spec["type"]), schema=str(spec["schema"])
            )

        catalogue = cls(types=types, queries=queries)
        catalogue._validate()
        return catalogue

    @classmethod
    def from_yaml(cls, text: str) -> "Catalogue":
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise SchemaError(f"Invalid catalogue YAML: {exc}") from exc
        return cls.from_dict(document)

    def _validate(self) -> None:
        for object_type in self.types.values():
            for field_def in object_type.fields.values():
                if field_def.is_object and field_def.type_name not in self.types:
                    raise SchemaError(
                        f"Field '{object_type.name}.{field_def.name}' uses unknown type "
                        f"'{field_def.type_name}'"
                    )
        for query in self.queries.values():
            if query.type_name not in self.types:
                raise SchemaError(f"Query '{query.name}' uses unknown type '{query.type_name}'")

    def describe(self) -> Dict[str, Any]:
        return {
            "types": {
                name: {field_name: f.describe() for field_name, f in object_type.fields.items()}
                for name, object_type in self.types.items()
            },
            "queries": {
                name: {"type": f"[{query.type_name}]", "schema": query.schema}
                for name, query in self.queries.items()
            },
        }


def _load_default() -> str:
    resource = files("refgraph.schemas").joinpath("base.yml")
    return resource.read_text(encoding="utf-8")


def load_catalogue(path: Path | None = None) -> Catalogue:
    """Load the catalogue at ``path``, or the packaged default one."""
    if path is None:
        return Catalogue.from_yaml(_load_default())
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaError(f"Unable to read catalogue {path}: {exc}") from exc
    return Catalogue.from_yaml(text)
