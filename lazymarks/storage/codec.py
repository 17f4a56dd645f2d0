"""JSON wire format for folders, bookmarks and whole stores.

Datetimes are RFC 3339 strings. Optional keys may be missing and fall back
to defaults; records without an id or a required text field are rejected.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ..errors import StorageFailure
from ..model import Bookmark, Folder, Store, utc_now


def format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_datetime(value: object) -> datetime | None:
    """Parse an RFC 3339 string; ``None`` for missing or malformed values."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_id(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _pin_order(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def folder_to_json(folder: Folder) -> dict[str, object]:
    return {
        "id": folder.id,
        "name": folder.name,
        "parentId": folder.parent_id,
        "pinned": folder.pinned,
        "pinOrder": folder.pin_order,
    }


def folder_from_json(data: object) -> Folder:
    if not isinstance(data, dict):
        raise StorageFailure("folder record is not an object")
    folder_id = data.get("id")
    name = data.get("name")
    if not isinstance(folder_id, str) or not folder_id:
        raise StorageFailure("folder record has no id")
    if not isinstance(name, str):
        raise StorageFailure(f"folder {folder_id} has no name")
    return Folder(
        id=folder_id,
        name=name,
        parent_id=_optional_id(data.get("parentId")),
        pinned=data.get("pinned") is True,
        pin_order=_pin_order(data.get("pinOrder")),
    )


def bookmark_to_json(bookmark: Bookmark) -> dict[str, object]:
    return {
        "id": bookmark.id,
        "title": bookmark.title,
        "url": bookmark.url,
        "folderId": bookmark.folder_id,
        "tags": list(bookmark.tags),
        "createdAt": format_datetime(bookmark.created_at),
        "visitedAt": format_datetime(bookmark.visited_at) if bookmark.visited_at else None,
        "pinned": bookmark.pinned,
        "pinOrder": bookmark.pin_order,
    }


def bookmark_from_json(data: object) -> Bookmark:
    if not isinstance(data, dict):
        raise StorageFailure("bookmark record is not an object")
    bookmark_id = data.get("id")
    title = data.get("title")
    url = data.get("url")
    if not isinstance(bookmark_id, str) or not bookmark_id:
        raise StorageFailure("bookmark record has no id")
    if not isinstance(title, str) or not isinstance(url, str):
        raise StorageFailure(f"bookmark {bookmark_id} lacks a title or url")
    tags = data.get("tags")
    return Bookmark(
        id=bookmark_id,
        title=title,
        url=url,
        folder_id=_optional_id(data.get("folderId")),
        tags=[tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else [],
        created_at=parse_datetime(data.get("createdAt")) or utc_now(),
        visited_at=parse_datetime(data.get("visitedAt")),
        pinned=data.get("pinned") is True,
        pin_order=_pin_order(data.get("pinOrder")),
    )


def store_to_json(store: Store) -> dict[str, object]:
    return {
        "folders": [folder_to_json(folder) for folder in store.folders],
        "bookmarks": [bookmark_to_json(bookmark) for bookmark in store.bookmarks],
    }


def store_from_json(data: object) -> Store:
    if not isinstance(data, dict):
        raise StorageFailure("bookmark data is not a JSON object")
    folders = data.get("folders") or []
    bookmarks = data.get("bookmarks") or []
    if not isinstance(folders, list) or not isinstance(bookmarks, list):
        raise StorageFailure("folders and bookmarks must be lists")
    return Store(
        folders=[folder_from_json(item) for item in folders],
        bookmarks=[bookmark_from_json(item) for item in bookmarks],
    )
