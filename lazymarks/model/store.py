"""In-memory bookmark collection.

Folders and bookmarks live in two flat ordered lists linked by parent ids.
Backing-list order is the manual sibling order shown in panes.
"""

from __future__ import annotations

from ..errors import NotFound
from .items import Bookmark, BookmarkItem, Folder, FolderItem, Item
from .merge import merge_into


class Store:
    """Forest of folders and bookmarks keyed by id."""

    def __init__(
        self,
        folders: list[Folder] | None = None,
        bookmarks: list[Bookmark] | None = None,
    ) -> None:
        self.folders: list[Folder] = list(folders or [])
        self.bookmarks: list[Bookmark] = list(bookmarks or [])

    # Queries

    def children_folders(self, parent_id: str | None) -> list[Folder]:
        return [folder for folder in self.folders if folder.parent_id == parent_id]

    def children_bookmarks(self, parent_id: str | None) -> list[Bookmark]:
        return [bookmark for bookmark in self.bookmarks if bookmark.folder_id == parent_id]

    def find_folder(self, folder_id: str | None) -> Folder | None:
        if folder_id is None:
            return None
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        return None

    def find_bookmark(self, bookmark_id: str | None) -> Bookmark | None:
        if bookmark_id is None:
            return None
        for bookmark in self.bookmarks:
            if bookmark.id == bookmark_id:
                return bookmark
        return None

    def get_folder(self, folder_id: str) -> Folder:
        """Return folder ``folder_id`` or raise ``NotFound``."""
        folder = self.find_folder(folder_id)
        if folder is None:
            raise NotFound(f"Folder not found: {folder_id}")
        return folder

    def get_bookmark(self, bookmark_id: str) -> Bookmark:
        """Return bookmark ``bookmark_id`` or raise ``NotFound``."""
        bookmark = self.find_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFound(f"Bookmark not found: {bookmark_id}")
        return bookmark

    def has_bookmark_url(self, url: str) -> bool:
        return any(bookmark.url == url for bookmark in self.bookmarks)

    def all_tags(self) -> list[str]:
        """Return every tag in use, deduplicated and sorted."""
        tags: set[str] = set()
        for bookmark in self.bookmarks:
            tags.update(tag for tag in bookmark.tags if tag)
        return sorted(tags)

    def is_empty(self) -> bool:
        return not self.folders and not self.bookmarks

    # Mutation

    def add_folder(self, folder: Folder) -> None:
        self.folders.append(folder)

    def add_bookmark(self, bookmark: Bookmark) -> None:
        self.bookmarks.append(bookmark)

    def insert_folder_at(self, folder: Folder, sibling_index: int) -> None:
        """Insert ``folder`` at position ``sibling_index`` among its siblings."""
        position = _global_position(
            [existing.parent_id == folder.parent_id for existing in self.folders],
            sibling_index,
        )
        self.folders.insert(position, folder)

    def insert_bookmark_at(self, bookmark: Bookmark, sibling_index: int) -> None:
        """Insert ``bookmark`` at position ``sibling_index`` among its siblings."""
        position = _global_position(
            [existing.folder_id == bookmark.folder_id for existing in self.bookmarks],
            sibling_index,
        )
        self.bookmarks.insert(position, bookmark)

    def remove_folder(self, folder_id: str) -> bool:
        """Remove one folder node. Descendants are left in place."""
        for index, folder in enumerate(self.folders):
            if folder.id == folder_id:
                del self.folders[index]
                return True
        return False

    def remove_bookmark(self, bookmark_id: str) -> bool:
        for index, bookmark in enumerate(self.bookmarks):
            if bookmark.id == bookmark_id:
                del self.bookmarks[index]
                return True
        return False

    # Pins

    def _next_pin_order(self) -> int:
        orders = [f.pin_order for f in self.folders if f.pinned]
        orders.extend(b.pin_order for b in self.bookmarks if b.pinned)
        return max(orders, default=0) + 1

    def toggle_pin(self, item_id: str) -> bool:
        """Flip the pinned flag of a folder or bookmark and return the new value."""
        target: Folder | Bookmark | None = self.find_folder(item_id)
        if target is None:
            target = self.find_bookmark(item_id)
        if target is None:
            raise NotFound(f"Item not found: {item_id}")
        if target.pinned:
            target.pinned = False
            target.pin_order = 0
        else:
            target.pin_order = self._next_pin_order()
            target.pinned = True
        return target.pinned

    def pinned_items(self) -> list[Item]:
        """Pinned folders and bookmarks ordered by ``pin_order``."""
        items: list[Item] = [FolderItem(f) for f in self.folders if f.pinned]
        items.extend(BookmarkItem(b) for b in self.bookmarks if b.pinned)
        return sorted(items, key=_pin_order_of)

    def swap_pin_order(self, first_id: str, second_id: str) -> None:
        """Exchange the pin positions of two pinned items."""
        first = self.find_folder(first_id) or self.get_bookmark(first_id)
        second = self.find_folder(second_id) or self.get_bookmark(second_id)
        first.pin_order, second.pin_order = second.pin_order, first.pin_order

    def import_merge(
        self,
        folders: list[Folder],
        bookmarks: list[Bookmark],
    ) -> tuple[int, int]:
        """Merge imported records; see ``lazymarks.model.merge``."""
        return merge_into(self, folders, bookmarks)


def _pin_order_of(item: Item) -> int:
    if isinstance(item, FolderItem):
        return item.folder.pin_order
    return item.bookmark.pin_order


def _global_position(is_sibling: list[bool], sibling_index: int) -> int:
    """Map a local sibling index to a backing-list insert position.

    Out-of-range indexes place the item after the last sibling, or at the end
    of the list when there are no siblings yet.
    """
    sibling_positions = [pos for pos, flag in enumerate(is_sibling) if flag]
    if not sibling_positions:
        return len(is_sibling)
    if 0 <= sibling_index < len(sibling_positions):
        return sibling_positions[sibling_index]
    return sibling_positions[-1] + 1
