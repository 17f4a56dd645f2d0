"""Bookmark collection model: records, store, paths, and orderings."""

from .items import Bookmark, BookmarkItem, Folder, FolderItem, Item, new_id, utc_now
from .sorting import SortMode, sorted_items
from .store import Store

__all__ = [
    "Bookmark",
    "BookmarkItem",
    "Folder",
    "FolderItem",
    "Item",
    "SortMode",
    "Store",
    "new_id",
    "sorted_items",
    "utc_now",
]
