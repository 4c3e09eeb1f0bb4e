"""Tests for the type catalogue."""

from __future__ import annotations

from pathlib import Path

import pytest

from refgraph.errors import SchemaError
from refgraph.models import Shape
from refgraph.schema import Catalogue, load_catalogue, parse_type


class TestParseType:
    """Test field type expressions."""

    def test_plain_scalar(self) -> None:
        field_def = parse_type("name", "String")

        assert field_def.type_name == "String"
        assert field_def.shape is Shape.SCALAR
        assert not field_def.non_null
        assert not field_def.is_object

    def test_non_null(self) -> None:
        assert parse_type("name", "String!").non_null

    def test_list_of_objects(self) -> None:
        field_def = parse_type("roles", "[Role_v1]")

        assert field_def.type_name == "Role_v1"
        assert field_def.shape is Shape.LIST
        assert field_def.is_object

    def test_non_null_list_of_non_null(self) -> None:
        field_def = parse_type("roles", "[Role_v1!]!")

        assert field_def.type_name == "Role_v1"
        assert field_def.shape is Shape.LIST
        assert field_def.non_null
        assert field_def.describe() == "[Role_v1]!"

    @pytest.mark.parametrize("expression", ["", "[", "Role v1", "[[Role_v1]]"])
    def test_invalid(self, expression: str) -> None:
        with pytest.raises(SchemaError):
            parse_type("bad", expression)


class TestCatalogue:
    """Test catalogue construction."""

    def test_from_yaml(self) -> None:
        catalogue = Catalogue.from_yaml(
            """
types:
  Role_v1:
    name: String!
  User_v1:
    name: String!
    roles:
      type: "[Role_v1]"
queries:
  user: {type: User_v1, schema: /access/user-1.yml}
"""
        )

        user = catalogue.types["User_v1"]
        assert user.fields["roles"].shape is Shape.LIST
        assert "schema" in user.fields
        assert catalogue.queries["user"].schema == "/access/user-1.yml"

    def test_unknown_field_type(self) -> None:
        with pytest.raises(SchemaError, match="unknown type 'Nope'"):
            Catalogue.from_dict({"types": {"A": {"b": "Nope"}}})

    def test_unknown_query_type(self) -> None:
        with pytest.raises(SchemaError, match="unknown type"):
            Catalogue.from_dict({"queries": {"a": {"type": "A", "schema": "/a.yml"}}})

    def test_query_without_schema(self) -> None:
        with pytest.raises(SchemaError, match="needs 'type' and 'schema'"):
            Catalogue.from_dict({"types": {"A": {}}, "queries": {"a": {"type": "A"}}})

    def test_not_a_mapping(self) -> None:
        with pytest.raises(SchemaError):
            Catalogue.from_yaml("- a\n- b\n")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(SchemaError, match="Invalid catalogue YAML"):
            Catalogue.from_yaml("types: [unclosed")

    def test_describe(self) -> None:
        catalogue = Catalogue.from_dict(
            {
                "types": {"A": {"items": "[A]"}},
                "queries": {"a": {"type": "A", "schema": "/a.yml"}},
            }
        )

        assert catalogue.describe() == {
            "types": {"A": {"items": "[A]", "schema": "String!"}},
            "queries": {"a": {"type": "[A]", "schema": "/a.yml"}},
        }


class TestLoadCatalogue:
    """Test loading catalogues from disk."""

    def test_default_catalogue(self) -> None:
        catalogue = load_catalogue()

        assert set(catalogue.queries) == {"user", "bot"}
        assert catalogue.types["Bot_v1"].fields["owner"].type_name == "User_v1"

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.yml"
        path.write_text("types:\n  A:\n    name: String\n", encoding="utf-8")

        assert "A" in load_catalogue(path).types

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaError, match="Unable to read"):
            load_catalogue(tmp_path / "missing.yml")
