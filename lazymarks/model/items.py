"""Folder/bookmark records and the item sum type shown in panes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def new_id() -> str:
    """Return a fresh random identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Folder:
    """Named container; ``parent_id is None`` means the root level."""

    id: str
    name: str
    parent_id: str | None = None
    pinned: bool = False
    pin_order: int = 0

    @classmethod
    def create(cls, name: str, parent_id: str | None = None) -> Folder:
        return cls(id=new_id(), name=name, parent_id=parent_id)


@dataclass
class Bookmark:
    """Saved URL with title, tags, and timestamps."""

    id: str
    title: str
    url: str
    folder_id: str | None = None
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    visited_at: datetime | None = None
    pinned: bool = False
    pin_order: int = 0

    @classmethod
    def create(
        cls,
        title: str,
        url: str,
        folder_id: str | None = None,
        tags: list[str] | None = None,
    ) -> Bookmark:
        return cls(
            id=new_id(),
            title=title,
            url=url,
            folder_id=folder_id,
            tags=list(tags or []),
        )


@dataclass(frozen=True)
class FolderItem:
    """Pane entry wrapping a folder."""

    folder: Folder
    is_folder = True

    @property
    def id(self) -> str:
        return self.folder.id

    @property
    def title(self) -> str:
        return self.folder.name


@dataclass(frozen=True)
class BookmarkItem:
    """Pane entry wrapping a bookmark."""

    bookmark: Bookmark
    is_folder = False

    @property
    def id(self) -> str:
        return self.bookmark.id

    @property
    def title(self) -> str:
        return self.bookmark.title


Item = FolderItem | BookmarkItem
