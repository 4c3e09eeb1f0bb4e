"""Datafile loaders.

A loader is any callable returning the full list of records on each call.
Two sources are supported: a JSON bundle holding every datafile keyed by its
path, and a directory tree of YAML/JSON documents.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Sequence

import yaml

from refgraph.errors import LoadError
from refgraph.models import SCHEMA_KEY, Record
from refgraph.utils.files import iter_datafile_paths, record_path

LOGGER = logging.getLogger(__name__)

Loader = Callable[[], Sequence[Record]]


def build_record(path: str, document: Any) -> Record | None:
    """Turn a parsed document into a record, or ``None`` if it has no ``$schema``.

    Raises :class:`LoadError` for field names that are not strings.
    """
    if not isinstance(document, Mapping):
        LOGGER.warning("Skipping %s: document is not a mapping", path)
        return None
    bad_keys = [key for key in document if not isinstance(key, str)]
    if bad_keys:
        raise LoadError(f"Non-string field names in {path}: {bad_keys!r}")
    schema = document.get(SCHEMA_KEY)
    if not isinstance(schema, str) or not schema:
        LOGGER.warning("Skipping %s: missing %s", path, SCHEMA_KEY)
        return None
    data: Dict[str, Any] = {key: value for key, value in document.items() if key != SCHEMA_KEY}
    return Record(path=path, schema=schema, data=data)


class BundleLoader:
    """Load records from a single JSON bundle file.

    The bundle is a mapping with a ``datafiles`` key whose value maps each
    record path to its document.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __call__(self) -> List[Record]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadError(f"Unable to read bundle {self.path}: {exc}") from exc

        try:
            bundle = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LoadError(f"Invalid JSON in bundle {self.path}: {exc}") from exc

        if not isinstance(bundle, Mapping):
            raise LoadError(f"Bundle {self.path} is not a JSON object")
        datafiles = bundle.get("datafiles")
        if not isinstance(datafiles, Mapping):
            raise LoadError(f"Bundle {self.path} has no 'datafiles' mapping")

        records: List[Record] = []
        for path, document in datafiles.items():
            record = build_record(path, document)
            if record is not None:
                records.append(record)
        return records


class DirectoryLoader:
    """Load records from every datafile below a directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def __call__(self) -> List[Record]:
        if not self.root.is_dir():
            raise LoadError(f"Datafiles directory not found: {self.root}")

        records: List[Record] = []
        for file_path in iter_datafile_paths([self.root]):
            path = record_path(self.root, file_path)
            document = self._parse(file_path)
            record = build_record(path, document)
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _parse(file_path: Path) -> Any:
        try:
            text = file_path.read_text(encoding="utf-8")
            if file_path.suffix.lower() == ".json":
                return json.loads(text)
            return yaml.safe_load(text)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
            raise LoadError(f"Failed to parse {file_path}: {exc}") from exc


def make_loader(path: Path) -> Loader:
    """Pick the loader matching ``path``: directories are walked, files are bundles."""
    path = Path(path)
    if path.is_dir():
        return DirectoryLoader(path)
    return BundleLoader(path)
