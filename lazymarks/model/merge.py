"""Merge imported folders/bookmarks into an existing collection.

Imported folders are matched by name under the same resolved parent and
reused; bookmarks whose URL is already present anywhere are skipped.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from .items import Bookmark, Folder, new_id

if TYPE_CHECKING:
    from .store import Store


def parents_first(folders: list[Folder]) -> list[Folder]:
    """Order folders so every parent present in the batch precedes its children.

    Folders whose parent never appears in the batch keep their relative order.
    """
    batch_ids = {folder.id for folder in folders}
    placed: set[str] = set()
    ordered: list[Folder] = []
    remaining = list(folders)
    while remaining:
        progressed = False
        deferred: list[Folder] = []
        for folder in remaining:
            parent = folder.parent_id
            if parent is None or parent not in batch_ids or parent in placed:
                ordered.append(folder)
                placed.add(folder.id)
                progressed = True
            else:
                deferred.append(folder)
        if not progressed:
            # parent cycle inside the batch
            ordered.extend(deferred)
            break
        remaining = deferred
    return ordered


def merge_into(store: Store, folders: list[Folder], bookmarks: list[Bookmark]) -> tuple[int, int]:
    """Merge records into ``store`` and return ``(added, skipped)`` bookmark counts."""
    id_map: dict[str, str] = {}

    for folder in parents_first(folders):
        parent_id = folder.parent_id
        if parent_id is not None:
            parent_id = id_map.get(parent_id, parent_id)

        existing = next(
            (f for f in store.children_folders(parent_id) if f.name == folder.name),
            None,
        )
        if existing is not None:
            id_map[folder.id] = existing.id
            continue

        created = Folder(id=new_id(), name=folder.name, parent_id=parent_id)
        store.add_folder(created)
        id_map[folder.id] = created.id

    added = 0
    skipped = 0
    for bookmark in bookmarks:
        if store.has_bookmark_url(bookmark.url):
            skipped += 1
            continue
        folder_id = bookmark.folder_id
        if folder_id is not None:
            folder_id = id_map.get(folder_id, folder_id)
        store.add_bookmark(
            replace(
                bookmark,
                id=new_id(),
                folder_id=folder_id,
                tags=list(bookmark.tags),
                pinned=False,
                pin_order=0,
            )
        )
        added += 1
    return added, skipped
