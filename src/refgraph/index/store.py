"""In-memory record store."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any, Dict, List, Sequence

from refgraph.errors import LoadError
from refgraph.ingestion.loader import Loader
from refgraph.models import REF_KEY, Record, Snapshot

LOGGER = logging.getLogger(__name__)

EMPTY_SNAPSHOT = Snapshot()


def is_reference(value: Any) -> bool:
    """Whether ``value`` points at another record: exactly ``{"$ref": "<path>"}``."""
    return (
        isinstance(value, dict)
        and len(value) == 1
        and isinstance(value.get(REF_KEY), str)
    )


def is_non_empty_array(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def _tag_value(value: Any) -> Dict[str, str]:
    # YAML dates and sets have no JSON form; keep their type in the hash.
    return {"__type__": type(value).__name__, "value": str(value)}


def compute_fingerprint(records: Sequence[Record]) -> str:
    """sha256 over the canonical serialization of ``records`` in load order.

    Raises :class:`LoadError` when a document cannot be serialized, e.g. it
    has non-string keys or a self-referencing YAML anchor.
    """
    try:
        payload = json.dumps(
            [{"path": record.path, "document": record.to_dict()} for record in records],
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            default=_tag_value,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise LoadError(f"Unable to fingerprint datafiles: {exc}") from exc
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def build_snapshot(records: Sequence[Record]) -> Snapshot:
    if not records:
        return EMPTY_SNAPSHOT
    by_path: Dict[str, Record] = {}
    for record in records:
        if record.path in by_path:
            LOGGER.warning("Duplicate datafile path %s, keeping the last one", record.path)
        by_path[record.path] = record
    return Snapshot(
        records=tuple(records),
        by_path=by_path,
        sha256=compute_fingerprint(records),
    )


def filter_by_schema(snapshot: Snapshot, schema: str) -> List[Record]:
    return [record for record in snapshot.records if record.schema == schema]


def resolve_reference(snapshot: Snapshot, value: Any) -> Record | None:
    if not is_reference(value):
        return None
    return snapshot.by_path.get(value[REF_KEY])


class RecordStore:
    """Owns the current snapshot of loaded records.

    Readers grab :attr:`snapshot` once and work against it; :meth:`load`
    builds a new snapshot and swaps it in with a single assignment, so a
    reader never observes a half-loaded set.
    """

    is_reference = staticmethod(is_reference)
    is_non_empty_array = staticmethod(is_non_empty_array)

    def __init__(self, loader: Loader) -> None:
        self.loader = loader
        self._snapshot = EMPTY_SNAPSHOT
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def sha256(self) -> str:
        return self._snapshot.sha256

    @property
    def count(self) -> int:
        return self._snapshot.count

    @property
    def ready(self) -> bool:
        return self._snapshot.ready

    def load(self) -> bool:
        """(Re)load every record. Returns ``False`` and keeps the old snapshot on failure."""
        with self._lock:
            try:
                records = list(self.loader())
                snapshot = build_snapshot(records)
            except LoadError as exc:
                LOGGER.error("Failed to load datafiles: %s", exc)
                return False

            self._snapshot = snapshot

        LOGGER.info("Loaded %d datafiles (sha256 %s)", snapshot.count, snapshot.sha256 or "-")
        return True

    def filter_by_schema(self, schema: str) -> List[Record]:
        return filter_by_schema(self._snapshot, schema)

    def resolve_reference(self, value: Any) -> Record | None:
        return resolve_reference(self._snapshot, value)

    def get(self, path: str) -> Record | None:
        return self._snapshot.by_path.get(path)
