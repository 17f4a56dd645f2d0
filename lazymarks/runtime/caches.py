"""On-disk caches of the last link check and the last organize analysis.

Each cache is one JSON object ``{"timestamp": ..., "results": [...]}``
under the user cache dir. Records point at bookmarks and folders by id;
loading re-binds them to the live store and drops ids that no longer exist.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from ..culler import LinkResult, LinkStatus
from ..errors import StorageFailure
from ..model import BookmarkItem, FolderItem, Item, Store
from ..storage.codec import format_datetime, parse_datetime
from .config import CACHE_DIR
from .organize import OrganizeEntry

logger = logging.getLogger(__name__)

CULL_CACHE_FILENAME = "cull-cache.json"
ORGANIZE_CACHE_FILENAME = "organize-cache.json"


class _JSONCache:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def _write(self, saved_at: datetime, records: list[dict[str, object]]) -> None:
        payload = json.dumps({"timestamp": format_datetime(saved_at), "results": records}, indent=2) + "\n"
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".cache-", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StorageFailure(f"Failed to write cache {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def _read(self) -> tuple[list[dict[str, object]], datetime | None]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageFailure(f"Cache load failed: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise StorageFailure(f"Cache load failed: unexpected content in {self.path}")
        records = [record for record in data["results"] if isinstance(record, dict)]
        return records, parse_datetime(data.get("timestamp"))


class CullCache(_JSONCache):
    """Problem links from the last check; healthy results are not kept."""

    def save(self, results: list[LinkResult], saved_at: datetime) -> None:
        records: list[dict[str, object]] = [
            {
                "bookmarkId": result.bookmark.id,
                "status": result.status.value,
                "statusCode": result.status_code,
                "error": result.error,
            }
            for result in results
            if result.status is not LinkStatus.HEALTHY
        ]
        self._write(saved_at, records)
        logger.debug("cached %d problem links", len(records))

    def load(self, store: Store) -> tuple[list[LinkResult], datetime | None]:
        records, saved_at = self._read()
        results: list[LinkResult] = []
        for record in records:
            bookmark = store.find_bookmark(_text(record.get("bookmarkId")) or None)
            try:
                status = LinkStatus(record.get("status"))
            except ValueError:
                continue
            if bookmark is None or status is LinkStatus.HEALTHY:
                continue
            code = record.get("statusCode")
            results.append(
                LinkResult(
                    bookmark,
                    status,
                    status_code=code if isinstance(code, int) and not isinstance(code, bool) else 0,
                    error=_text(record.get("error")),
                )
            )
        return results, saved_at


class OrganizeCache(_JSONCache):
    """Suggestions from the last folder-wide organize analysis."""

    def save(self, entries: list[OrganizeEntry], saved_at: datetime) -> None:
        records: list[dict[str, object]] = [
            {
                "itemId": entry.item.id,
                "isFolder": entry.item.is_folder,
                "currentPath": entry.current_path,
                "suggestedPath": entry.suggested_path,
                "isNewFolder": entry.is_new_folder,
                "currentTags": list(entry.current_tags),
                "suggestedTags": list(entry.suggested_tags),
            }
            for entry in entries
        ]
        self._write(saved_at, records)
        logger.debug("cached %d organize suggestions", len(records))

    def load(self, store: Store) -> tuple[list[OrganizeEntry], datetime | None]:
        records, saved_at = self._read()
        entries: list[OrganizeEntry] = []
        for record in records:
            item_id = _text(record.get("itemId"))
            item: Item | None = None
            if record.get("isFolder") is True:
                folder = store.find_folder(item_id or None)
                item = FolderItem(folder) if folder is not None else None
            else:
                bookmark = store.find_bookmark(item_id or None)
                item = BookmarkItem(bookmark) if bookmark is not None else None
            if item is None:
                continue
            entries.append(
                OrganizeEntry(
                    item=item,
                    current_path=_text(record.get("currentPath")) or "/",
                    suggested_path=_text(record.get("suggestedPath")) or "/",
                    is_new_folder=record.get("isNewFolder") is True,
                    current_tags=_text_list(record.get("currentTags")),
                    suggested_tags=_text_list(record.get("suggestedTags")),
                )
            )
        return entries, saved_at


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _text_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def default_caches(cache_dir: Path | None = None) -> tuple[CullCache, OrganizeCache]:
    root = cache_dir or CACHE_DIR
    return CullCache(root / CULL_CACHE_FILENAME), OrganizeCache(root / ORGANIZE_CACHE_FILENAME)
