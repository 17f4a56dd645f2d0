"""Pane orderings: manual, alphabetical, newest, recently visited."""

from __future__ import annotations

import enum
from datetime import datetime

from .items import Bookmark, BookmarkItem, Folder, FolderItem, Item


class SortMode(enum.Enum):
    MANUAL = "manual"
    ALPHA = "alpha"
    CREATED = "created"
    VISITED = "visited"

    @property
    def label(self) -> str:
        return _LABELS[self]

    def next(self) -> SortMode:
        members = list(SortMode)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def parse(cls, value: object) -> SortMode:
        """Return the mode named by ``value`` or ``MANUAL`` when unknown."""
        for mode in cls:
            if mode.value == value:
                return mode
        return cls.MANUAL


_LABELS = {
    SortMode.MANUAL: "Manual",
    SortMode.ALPHA: "A-Z",
    SortMode.CREATED: "Created",
    SortMode.VISITED: "Visited",
}


def _visited_key(bookmark: Bookmark) -> tuple[int, float]:
    if bookmark.visited_at is None:
        return (1, 0.0)
    return (0, -bookmark.visited_at.timestamp())


def _created_key(bookmark: Bookmark) -> float:
    created: datetime = bookmark.created_at
    return -created.timestamp()


def sorted_items(folders: list[Folder], bookmarks: list[Bookmark], mode: SortMode) -> list[Item]:
    """Return pane items for one container; folders always precede bookmarks.

    All sorts are stable so ties keep manual order.
    """
    if mode is SortMode.ALPHA:
        folders = sorted(folders, key=lambda f: f.name.casefold())
        bookmarks = sorted(bookmarks, key=lambda b: b.title.casefold())
    elif mode is SortMode.CREATED:
        bookmarks = sorted(bookmarks, key=_created_key)
    elif mode is SortMode.VISITED:
        bookmarks = sorted(bookmarks, key=_visited_key)

    items: list[Item] = [FolderItem(folder) for folder in folders]
    items.extend(BookmarkItem(bookmark) for bookmark in bookmarks)
    return items
