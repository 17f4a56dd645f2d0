"""Single-slot yank/cut buffer and paste placement."""

from __future__ import annotations

import copy
from dataclasses import replace

from ..model import Bookmark, BookmarkItem, Folder, FolderItem, Item, Store, new_id


class ClipboardBuffer:
    """Holds a snapshot of at most one folder or bookmark.

    The snapshot is a deep copy, so later edits to (or removal of) the
    original never change what gets pasted.
    """

    def __init__(self) -> None:
        self._item: Item | None = None

    @property
    def item(self) -> Item | None:
        return self._item

    def is_empty(self) -> bool:
        return self._item is None

    def yank(self, item: Item) -> None:
        """Replace the buffer contents with a snapshot of ``item``."""
        if isinstance(item, FolderItem):
            self._item = FolderItem(copy.deepcopy(item.folder))
        else:
            self._item = BookmarkItem(copy.deepcopy(item.bookmark))

    def clear(self) -> None:
        self._item = None

    def duplicate(self, parent_id: str | None) -> Item | None:
        """Return a fresh-id copy of the buffered item placed under ``parent_id``.

        Folders are copied shallowly: only the folder node, never its contents.
        """
        item = self._item
        if item is None:
            return None
        if isinstance(item, FolderItem):
            return FolderItem(Folder(id=new_id(), name=item.folder.name, parent_id=parent_id))
        source: Bookmark = item.bookmark
        return BookmarkItem(
            replace(
                source,
                id=new_id(),
                folder_id=parent_id,
                tags=list(source.tags),
                pinned=False,
                pin_order=0,
            )
        )


def _sibling_index(siblings: list, anchor_id: str) -> int | None:
    for index, sibling in enumerate(siblings):
        if sibling.id == anchor_id:
            return index
    return None


def paste(
    store: Store,
    buffer: ClipboardBuffer,
    parent_id: str | None,
    anchor: Item | None,
    before: bool,
) -> Item | None:
    """Insert a copy of the buffer next to ``anchor`` among its siblings.

    The position comes from store order, so filtered or sorted views paste
    where the anchor really sits. A folder pasted on a bookmark goes after
    the last folder; a bookmark pasted on a folder goes first among the
    bookmarks. Returns the pasted item, or ``None`` when the buffer is empty.
    """
    pasted = buffer.duplicate(parent_id)
    if pasted is None:
        return None

    offset = 0 if before else 1
    if isinstance(pasted, FolderItem):
        siblings = store.children_folders(parent_id)
        index = None
        if isinstance(anchor, FolderItem):
            index = _sibling_index(siblings, anchor.id)
        store.insert_folder_at(pasted.folder, len(siblings) if index is None else index + offset)
    else:
        index = None
        if isinstance(anchor, BookmarkItem):
            index = _sibling_index(store.children_bookmarks(parent_id), anchor.id)
        store.insert_bookmark_at(pasted.bookmark, 0 if index is None else index + offset)
    return pasted
