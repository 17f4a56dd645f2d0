"""Persistence backends for the bookmark collection.

Both backends implement ``load() -> Store`` and ``save(store)``; saves are
all-or-nothing and a missing backing file loads as an empty store.
"""

from __future__ import annotations

from pathlib import Path

from .codec import store_from_json, store_to_json
from .json_store import JSONStorage
from .sqlite_store import SQLiteStorage

SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})


def open_storage(path: Path) -> JSONStorage | SQLiteStorage:
    """Pick the backend from the file suffix."""
    if path.suffix.lower() in SQLITE_SUFFIXES:
        return SQLiteStorage(path)
    return JSONStorage(path)


__all__ = [
    "JSONStorage",
    "SQLiteStorage",
    "open_storage",
    "store_from_json",
    "store_to_json",
]
