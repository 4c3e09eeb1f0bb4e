"""Tests for datafile loaders."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from refgraph.errors import LoadError
from refgraph.ingestion.loader import (
    BundleLoader,
    DirectoryLoader,
    build_record,
    make_loader,
)
from refgraph.models import Record


def _write_bundle(path: Path, datafiles: dict) -> Path:
    path.write_text(json.dumps({"datafiles": datafiles}), encoding="utf-8")
    return path


class TestBuildRecord:
    """Test build_record helper."""

    def test_strips_schema_key(self) -> None:
        record = build_record("/a.yml", {"$schema": "/s.yml", "name": "a"})

        assert record == Record(path="/a.yml", schema="/s.yml", data={"name": "a"})

    def test_missing_schema_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Documents without $schema are skipped with a warning."""
        with caplog.at_level("WARNING"):
            assert build_record("/a.yml", {"name": "a"}) is None
        assert "missing $schema" in caplog.text

    def test_non_mapping_skipped(self) -> None:
        assert build_record("/a.yml", ["not", "a", "mapping"]) is None

    def test_non_string_field_names_rejected(self) -> None:
        with pytest.raises(LoadError, match="Non-string field names"):
            build_record("/a.yml", {"$schema": "/s.yml", 1: "one", "name": "b"})


class TestBundleLoader:
    """Test BundleLoader."""

    def test_loads_in_bundle_order(self, tmp_path: Path) -> None:
        bundle = _write_bundle(
            tmp_path / "data.json",
            {
                "/users/b.yml": {"$schema": "/access/user-1.yml", "name": "b"},
                "/users/a.yml": {"$schema": "/access/user-1.yml", "name": "a"},
                "/bots/x.yml": {"$schema": "/access/bot-1.yml", "name": "x"},
            },
        )

        records = BundleLoader(bundle)()

        assert [r.path for r in records] == ["/users/b.yml", "/users/a.yml", "/bots/x.yml"]
        assert records[2].schema == "/access/bot-1.yml"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError, match="Unable to read bundle"):
            BundleLoader(tmp_path / "missing.json")()

    def test_invalid_json(self, tmp_path: Path) -> None:
        bundle = tmp_path / "data.json"
        bundle.write_text("{not json", encoding="utf-8")

        with pytest.raises(LoadError, match="Invalid JSON"):
            BundleLoader(bundle)()

    def test_missing_datafiles_key(self, tmp_path: Path) -> None:
        bundle = tmp_path / "data.json"
        bundle.write_text(json.dumps({"resources": {}}), encoding="utf-8")

        with pytest.raises(LoadError, match="datafiles"):
            BundleLoader(bundle)()

    def test_top_level_not_object(self, tmp_path: Path) -> None:
        bundle = tmp_path / "data.json"
        bundle.write_text("[]", encoding="utf-8")

        with pytest.raises(LoadError):
            BundleLoader(bundle)()

    def test_empty_datafiles(self, tmp_path: Path) -> None:
        bundle = _write_bundle(tmp_path / "data.json", {})

        assert BundleLoader(bundle)() == []


class TestDirectoryLoader:
    """Test DirectoryLoader."""

    def test_loads_yaml_and_json(self, tmp_path: Path) -> None:
        users = tmp_path / "users"
        users.mkdir()
        (users / "jdoe.yml").write_text(
            "$schema: /access/user-1.yml\nname: jdoe\n", encoding="utf-8"
        )
        (tmp_path / "bot.json").write_text(
            json.dumps({"$schema": "/access/bot-1.yml", "owner": {"$ref": "/users/jdoe.yml"}}),
            encoding="utf-8",
        )

        records = DirectoryLoader(tmp_path)()

        by_path = {r.path: r for r in records}
        assert set(by_path) == {"/users/jdoe.yml", "/bot.json"}
        assert by_path["/users/jdoe.yml"]["name"] == "jdoe"
        assert by_path["/bot.json"]["owner"] == {"$ref": "/users/jdoe.yml"}

    def test_skips_documents_without_schema(self, tmp_path: Path) -> None:
        (tmp_path / "plain.yml").write_text("name: nobody\n", encoding="utf-8")

        assert DirectoryLoader(tmp_path)() == []

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        (tmp_path / "broken.yml").write_text("name: [unclosed\n", encoding="utf-8")

        with pytest.raises(LoadError, match="Failed to parse"):
            DirectoryLoader(tmp_path)()

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(LoadError, match="not found"):
            DirectoryLoader(tmp_path / "nope")()


class TestMakeLoader:
    """Test make_loader dispatch."""

    def test_directory(self, tmp_path: Path) -> None:
        assert isinstance(make_loader(tmp_path), DirectoryLoader)

    def test_file(self, tmp_path: Path) -> None:
        assert isinstance(make_loader(tmp_path / "data.json"), BundleLoader)
