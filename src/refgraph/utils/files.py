"""Utility helpers for working with datafiles on disk."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

DATAFILE_SUFFIXES = (".yml", ".yaml", ".json")


def iter_datafile_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield datafile paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_datafile_paths(
                sorted(child for child in item.rglob("*") if child.is_file())
            )
        elif item.is_file() and item.suffix.lower() in DATAFILE_SUFFIXES:
            yield item


def record_path(root: Path, path: Path) -> str:
    """Identifier of a datafile: its POSIX path relative to ``root`` with a leading slash."""
    return "/" + path.relative_to(root).as_posix()
