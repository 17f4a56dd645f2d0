"""SQLite backend.

The whole store is rewritten inside one transaction, so a failed save
leaves the previous contents intact. A ``position`` column keeps manual
sibling order across reloads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from pathlib import Path

from ..errors import StorageFailure
from ..model import Bookmark, Folder, Store, utc_now
from .codec import format_datetime, parse_datetime

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS folders (
    id TEXT PRIMARY KEY NOT NULL,
    name TEXT NOT NULL,
    parent_id TEXT,
    pinned INTEGER NOT NULL DEFAULT 0,
    pin_order INTEGER NOT NULL DEFAULT 0,
    position INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_folders_parent_id ON folders(parent_id);
CREATE TABLE IF NOT EXISTS bookmarks (
    id TEXT PRIMARY KEY NOT NULL,
    title TEXT NOT NULL,
    url TEXT NOT NULL,
    folder_id TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    visited_at TEXT,
    pinned INTEGER NOT NULL DEFAULT 0,
    pin_order INTEGER NOT NULL DEFAULT 0,
    position INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_bookmarks_folder_id ON bookmarks(folder_id);
CREATE INDEX IF NOT EXISTS idx_bookmarks_url ON bookmarks(url);
"""


def _decode_tags(raw: str) -> list[str]:
    try:
        tags = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(tags, list):
        return []
    return [tag for tag in tags if isinstance(tag, str)]


class SQLiteStorage:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.execute("PRAGMA busy_timeout = 5000")
        conn.executescript(_SCHEMA)
        conn.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()
        return conn

    def load(self) -> Store:
        if not self.path.exists():
            logger.info("no database at %s, starting empty", self.path)
            return Store()
        try:
            with closing(self._connect()) as conn:
                folder_rows = conn.execute(
                    "SELECT id, name, parent_id, pinned, pin_order FROM folders ORDER BY position"
                ).fetchall()
                bookmark_rows = conn.execute(
                    "SELECT id, title, url, folder_id, tags, created_at, visited_at, pinned, pin_order "
                    "FROM bookmarks ORDER BY position"
                ).fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise StorageFailure(f"Failed to read {self.path}: {exc}") from exc

        folders = [
            Folder(id=row[0], name=row[1], parent_id=row[2], pinned=bool(row[3]), pin_order=row[4])
            for row in folder_rows
        ]
        bookmarks = [
            Bookmark(
                id=row[0],
                title=row[1],
                url=row[2],
                folder_id=row[3],
                tags=_decode_tags(row[4]),
                created_at=parse_datetime(row[5]) or utc_now(),
                visited_at=parse_datetime(row[6]),
                pinned=bool(row[7]),
                pin_order=row[8],
            )
            for row in bookmark_rows
        ]
        return Store(folders=folders, bookmarks=bookmarks)

    def save(self, store: Store) -> None:
        try:
            with closing(self._connect()) as conn:
                with conn:
                    conn.execute("DELETE FROM bookmarks")
                    conn.execute("DELETE FROM folders")
                    conn.executemany(
                        "INSERT INTO folders (id, name, parent_id, pinned, pin_order, position) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        [
                            (f.id, f.name, f.parent_id, int(f.pinned), f.pin_order, position)
                            for position, f in enumerate(store.folders)
                        ],
                    )
                    conn.executemany(
                        "INSERT INTO bookmarks (id, title, url, folder_id, tags, created_at, visited_at, "
                        "pinned, pin_order, position) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        [
                            (
                                b.id,
                                b.title,
                                b.url,
                                b.folder_id,
                                json.dumps(list(b.tags)),
                                format_datetime(b.created_at),
                                format_datetime(b.visited_at) if b.visited_at else None,
                                int(b.pinned),
                                b.pin_order,
                                position,
                            )
                            for position, b in enumerate(store.bookmarks)
                        ],
                    )
        except (sqlite3.Error, OSError) as exc:
            raise StorageFailure(f"Failed to save {self.path}: {exc}") from exc
        logger.debug("saved %s", self.path)

    def reset(self) -> None:
        if not self.path.exists():
            return
        try:
            with closing(self._connect()) as conn:
                with conn:
                    conn.execute("DELETE FROM bookmarks")
                    conn.execute("DELETE FROM folders")
        except (sqlite3.Error, OSError) as exc:
            raise StorageFailure(f"Failed to reset {self.path}: {exc}") from exc
