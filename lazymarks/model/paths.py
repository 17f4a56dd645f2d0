"""Slash-separated folder path helpers ("/", "/Dev/React")."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .items import Folder

if TYPE_CHECKING:
    from .store import Store

ROOT_PATH = "/"


def ancestor_ids(store: Store, folder_id: str | None) -> list[str]:
    """Return folder ids from the top-level ancestor down to ``folder_id``.

    Stops at a missing parent (orphan) or a repeated id (cycle).
    """
    chain: list[str] = []
    seen: set[str] = set()
    current = store.find_folder(folder_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        chain.append(current.id)
        current = store.find_folder(current.parent_id)
    chain.reverse()
    return chain


def folder_path(store: Store, folder_id: str | None) -> str:
    if folder_id is None:
        return ROOT_PATH
    names = [store.get_folder(fid).name for fid in ancestor_ids(store, folder_id)]
    if not names:
        return ROOT_PATH
    return ROOT_PATH + "/".join(names)


def folder_paths(store: Store, exclude_subtree_of: str | None = None) -> list[tuple[str, str | None]]:
    """Return ``(path, folder_id)`` pairs depth-first, root first.

    ``exclude_subtree_of`` drops that folder and all of its descendants.
    """
    out: list[tuple[str, str | None]] = [(ROOT_PATH, None)]

    def walk(parent_id: str | None, prefix: str) -> None:
        for folder in store.children_folders(parent_id):
            if folder.id == exclude_subtree_of:
                continue
            path = f"{prefix}/{folder.name}"
            out.append((path, folder.id))
            walk(folder.id, path)

    walk(None, "")
    return out


def split_path(path: str) -> list[str]:
    return [part.strip() for part in path.split("/") if part.strip()]


def find_folder_by_path(store: Store, path: str) -> Folder | None:
    parent_id: str | None = None
    folder: Folder | None = None
    for name in split_path(path):
        folder = next(
            (f for f in store.children_folders(parent_id) if f.name == name),
            None,
        )
        if folder is None:
            return None
        parent_id = folder.id
    return folder


def get_or_create_folder_by_path(store: Store, path: str) -> str | None:
    """Resolve ``path`` to a folder id, creating missing segments.

    Returns ``None`` for the root path.
    """
    parent_id: str | None = None
    for name in split_path(path):
        existing = next(
            (f for f in store.children_folders(parent_id) if f.name == name),
            None,
        )
        if existing is None:
            existing = Folder.create(name, parent_id)
            store.add_folder(existing)
        parent_id = existing.id
    return parent_id


def is_descendant(store: Store, ancestor_id: str, candidate_id: str | None) -> bool:
    """Return whether ``candidate_id`` is ``ancestor_id`` or lies beneath it."""
    if candidate_id is None:
        return False
    return ancestor_id in ancestor_ids(store, candidate_id)
