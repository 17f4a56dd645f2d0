"""Folder-wide AI organize: collect, analyze, then walk the suggestions.

``analyze_items`` runs on a background worker and only sees snapshots
(``OrganizeRequest``), never the live store. The entry helpers below run on
the event loop and apply or skip one suggestion at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..ai import OrganizeSuggestion
from ..errors import ExternalServiceFailure, ValidationFailed
from ..model import BookmarkItem, FolderItem, Item, Store
from ..model.paths import find_folder_by_path, folder_path, get_or_create_folder_by_path, split_path
from .editing import move_item
from .navigation import refresh_items
from .state import AppState, Mode

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = "low"


@dataclass(frozen=True)
class OrganizeRequest:
    item: Item
    title: str
    url: str
    current_path: str
    tags: tuple[str, ...]
    is_folder: bool


@dataclass
class OrganizeEntry:
    """One suggested change waiting for accept, skip, move or delete."""

    item: Item
    current_path: str
    suggested_path: str
    is_new_folder: bool
    current_tags: list[str] = field(default_factory=list)
    suggested_tags: list[str] = field(default_factory=list)
    processed: bool = False

    @property
    def moves(self) -> bool:
        return self.suggested_path != self.current_path

    @property
    def retags(self) -> bool:
        return not self.item.is_folder and not tags_equal(self.current_tags, self.suggested_tags)


def tags_equal(first: list[str], second: list[str]) -> bool:
    """Order-independent comparison; duplicates do not count twice."""
    return len(first) == len(second) and set(first) == set(second)


def normalize_path(path: str) -> str:
    return "/" + "/".join(split_path(path))


def collect_folder_items(store: Store, folder_id: str) -> list[Item]:
    """Bookmarks of ``folder_id``, then each subfolder followed by its contents."""
    items: list[Item] = [BookmarkItem(b) for b in store.children_bookmarks(folder_id)]
    for folder in store.children_folders(folder_id):
        items.append(FolderItem(folder))
        items.extend(collect_folder_items(store, folder.id))
    return items


def build_requests(store: Store, items: list[Item]) -> list[OrganizeRequest]:
    out: list[OrganizeRequest] = []
    for item in items:
        if isinstance(item, FolderItem):
            parent_id, url, tags = item.folder.parent_id, "", ()
        else:
            parent_id, url, tags = item.bookmark.folder_id, item.bookmark.url, tuple(item.bookmark.tags)
        out.append(
            OrganizeRequest(
                item=item,
                title=item.title,
                url=url,
                current_path=folder_path(store, parent_id),
                tags=tags,
                is_folder=item.is_folder,
            )
        )
    return out


def analyze_items(
    requests: list[OrganizeRequest],
    suggest: Callable[..., OrganizeSuggestion],
    context: str,
    on_progress: Callable[[int, int], None] | None = None,
) -> list[OrganizeEntry]:
    """Ask for a suggestion per item and keep the confident, changing ones.

    Items whose request fails are skipped. When every request fails the last
    error is raised, so a missing API key is not reported as "nothing to do".
    """
    entries: list[OrganizeEntry] = []
    total = len(requests)
    failures = 0
    last_error: ExternalServiceFailure | None = None
    for done, request in enumerate(requests, start=1):
        try:
            suggestion = suggest(
                request.title,
                request.url,
                request.current_path,
                list(request.tags),
                request.is_folder,
                context,
            )
        except ExternalServiceFailure as exc:
            logger.info("organize suggestion failed for %r: %s", request.title, exc)
            failures += 1
            last_error = exc
            suggestion = None
        if on_progress is not None:
            on_progress(done, total)
        if suggestion is None or suggestion.confidence == LOW_CONFIDENCE:
            continue
        entry = OrganizeEntry(
            item=request.item,
            current_path=request.current_path,
            suggested_path=normalize_path(suggestion.folder_path),
            is_new_folder=suggestion.is_new_folder,
            current_tags=list(request.tags),
            suggested_tags=[] if request.is_folder else list(suggestion.tags),
        )
        if entry.moves or entry.retags:
            entries.append(entry)
    if total and failures == total and last_error is not None:
        raise last_error
    return entries


def live_entries(store: Store, entries: list[OrganizeEntry]) -> list[OrganizeEntry]:
    """Drop entries whose item was removed while the analysis ran."""
    out: list[OrganizeEntry] = []
    for entry in entries:
        if isinstance(entry.item, FolderItem):
            alive = store.find_folder(entry.item.id) is not None
        else:
            alive = store.find_bookmark(entry.item.id) is not None
        if alive:
            out.append(entry)
    return out


# Walking the results list


def current_entry(state: AppState) -> OrganizeEntry | None:
    organize = state.organize
    if 0 <= organize.cursor < len(organize.entries):
        return organize.entries[organize.cursor]
    return None


def unprocessed_count(state: AppState) -> int:
    return sum(1 for entry in state.organize.entries if not entry.processed)


def next_unprocessed(state: AppState) -> None:
    organize = state.organize
    for idx in range(organize.cursor + 1, len(organize.entries)):
        if not organize.entries[idx].processed:
            organize.cursor = idx
            return


def prev_unprocessed(state: AppState) -> None:
    organize = state.organize
    for idx in range(organize.cursor - 1, -1, -1):
        if not organize.entries[idx].processed:
            organize.cursor = idx
            return


def finish_entry(state: AppState, entry: OrganizeEntry) -> None:
    """Mark ``entry`` done; leave the list when nothing is left to review."""
    entry.processed = True
    if unprocessed_count(state) == 0:
        state.organize.reset_results()
        state.mode = Mode.NORMAL
    else:
        state.mode = Mode.ORGANIZE_RESULTS
        next_unprocessed(state)
        if entry is current_entry(state):
            prev_unprocessed(state)
    state.dirty = True


def accept_entry(state: AppState, entry: OrganizeEntry) -> str:
    """Apply the folder and tag changes of ``entry`` and describe them."""
    store = state.store
    moved = tagged = created = False
    if entry.moves:
        item = entry.item
        if isinstance(item, FolderItem):
            own_path = folder_path(store, item.id)
            if entry.suggested_path == own_path or entry.suggested_path.startswith(own_path + "/"):
                raise ValidationFailed("Cannot move a folder into itself")
        created = find_folder_by_path(store, entry.suggested_path) is None and entry.suggested_path != "/"
        target_id = get_or_create_folder_by_path(store, entry.suggested_path)
        move_item(state, item, target_id)
        moved = True
    if entry.retags:
        store.get_bookmark(entry.item.id).tags = list(entry.suggested_tags)
        state.mark_store_changed()
        tagged = True

    if moved and tagged:
        action = "Moved (new folder) + tagged" if created else "Moved + tagged"
    elif moved:
        action = "Moved (new folder)" if created else "Moved"
    elif tagged:
        action = "Tagged"
    else:
        action = "Organized"
    finish_entry(state, entry)
    refresh_items(state)
    return f"{action}: {entry.item.title}"


def delete_entry(state: AppState, entry: OrganizeEntry) -> str:
    """Remove the entry's item from the store (folders single-node)."""
    if isinstance(entry.item, FolderItem):
        state.store.remove_folder(entry.item.id)
    else:
        state.store.remove_bookmark(entry.item.id)
    state.mark_store_changed()
    finish_entry(state, entry)
    refresh_items(state)
    return f"Deleted: {entry.item.title}"
