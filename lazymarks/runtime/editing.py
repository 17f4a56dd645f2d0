"""Store-mutating actions: add/edit dialogs, clipboard, pins, moves.

Functions raise ``ValidationFailed`` or ``NotFound`` for the reducer to turn
into status messages; on success they mark the store dirty so the loop
persists it after the current batch of events.
"""

from __future__ import annotations

from ..errors import NotFound, ValidationFailed
from ..model import Bookmark, BookmarkItem, Folder, FolderItem, Item
from ..model.paths import (
    folder_path,
    folder_paths,
    get_or_create_folder_by_path,
    is_descendant,
)
from .clipboard import paste
from .navigation import clamp_cursor, display_items, refresh_items, selected_item
from .state import AppState, Mode


def parse_tags(text: str) -> list[str]:
    """Split comma-separated tags, trimming and dropping empty parts."""
    return [part.strip() for part in text.split(",") if part.strip()]


def enter_mode(state: AppState, mode: Mode) -> None:
    state.mode = mode
    state.chord_pending = None
    state.dirty = True


def return_to_normal(state: AppState) -> None:
    enter_mode(state, Mode.NORMAL)


def close_dialog(state: AppState) -> None:
    """Leave a dialog for the view that opened it (normal mode by default)."""
    mode = state.return_mode
    state.return_mode = Mode.NORMAL
    enter_mode(state, mode)


# Add / edit dialogs


def open_add_bookmark(state: AppState) -> None:
    state.modal.reset()
    enter_mode(state, Mode.ADD_BOOKMARK)


def open_add_folder(state: AppState) -> None:
    state.modal.reset()
    enter_mode(state, Mode.ADD_FOLDER)


def open_edit(state: AppState, item: Item | None = None, return_mode: Mode = Mode.NORMAL) -> bool:
    if item is None:
        item = selected_item(state)
    if item is None:
        return False
    state.return_mode = return_mode
    modal = state.modal
    modal.reset()
    modal.edit_item_id = item.id
    if isinstance(item, FolderItem):
        modal.title.set(item.folder.name)
        enter_mode(state, Mode.EDIT_FOLDER)
    else:
        modal.title.set(item.bookmark.title)
        modal.url.set(item.bookmark.url)
        enter_mode(state, Mode.EDIT_BOOKMARK)
    return True


def open_edit_tags(state: AppState) -> bool:
    item = selected_item(state)
    if not isinstance(item, BookmarkItem):
        return False
    modal = state.modal
    modal.reset()
    modal.edit_item_id = item.id
    modal.tags.set(", ".join(item.bookmark.tags))
    modal.all_tags = state.store.all_tags()
    enter_mode(state, Mode.EDIT_TAGS)
    return True


def modal_field_count(mode: Mode) -> int:
    if mode in {Mode.ADD_BOOKMARK, Mode.EDIT_BOOKMARK}:
        return 2
    if mode is Mode.QUICK_ADD_CONFIRM:
        return 3
    return 1


def submit_modal(state: AppState) -> str:
    """Commit the open dialog and return a status line.

    Raises ``ValidationFailed`` for empty required fields, leaving the
    dialog open, and ``NotFound`` when the edited item has vanished.
    """
    modal = state.modal
    store = state.store
    mode = state.mode
    title = modal.title.value.strip()
    url = modal.url.value.strip()

    if mode is Mode.ADD_FOLDER:
        if not title:
            raise ValidationFailed("Folder name cannot be empty")
        store.add_folder(Folder.create(title, state.browser.current_folder_id))
        message = f"Folder added: {title}"
    elif mode is Mode.ADD_BOOKMARK:
        if not title or not url:
            raise ValidationFailed("Title and URL are required")
        store.add_bookmark(Bookmark.create(title, url, state.browser.current_folder_id))
        message = f"Bookmark added: {title}"
    elif mode is Mode.EDIT_FOLDER:
        if not title:
            raise ValidationFailed("Folder name cannot be empty")
        store.get_folder(modal.edit_item_id or "").name = title
        message = f"Folder renamed: {title}"
    elif mode is Mode.EDIT_BOOKMARK:
        if not title or not url:
            raise ValidationFailed("Title and URL are required")
        bookmark = store.get_bookmark(modal.edit_item_id or "")
        bookmark.title = title
        bookmark.url = url
        message = f"Bookmark updated: {title}"
    elif mode is Mode.EDIT_TAGS:
        bookmark = store.get_bookmark(modal.edit_item_id or "")
        bookmark.tags = parse_tags(modal.tags.value)
        message = "Tags updated"
    else:
        raise ValidationFailed(f"Nothing to submit in {mode.value} mode")

    state.mark_store_changed()
    close_dialog(state)
    refresh_items(state)
    return message


# Tag autocompletion


def update_tag_suggestions(state: AppState) -> None:
    modal = state.modal
    text = modal.tags.value
    fragment = text.rsplit(",", 1)[-1].strip().casefold()
    if not fragment:
        modal.tag_suggestions = []
        modal.tag_suggestion_idx = -1
        return
    used = {part.strip().casefold() for part in text.split(",")}
    modal.tag_suggestions = [
        tag for tag in modal.all_tags if tag.casefold().startswith(fragment) and tag.casefold() not in used
    ]
    if modal.tag_suggestion_idx >= len(modal.tag_suggestions):
        modal.tag_suggestion_idx = -1


def cycle_tag_suggestion(state: AppState, delta: int) -> bool:
    modal = state.modal
    count = len(modal.tag_suggestions)
    if count == 0:
        return False
    if modal.tag_suggestion_idx < 0:
        modal.tag_suggestion_idx = 0 if delta > 0 else count - 1
    else:
        modal.tag_suggestion_idx = (modal.tag_suggestion_idx + delta) % count
    return True


def insert_tag_suggestion(state: AppState) -> bool:
    modal = state.modal
    if not 0 <= modal.tag_suggestion_idx < len(modal.tag_suggestions):
        return False
    tag = modal.tag_suggestions[modal.tag_suggestion_idx]
    text = modal.tags.value
    head, sep, _ = text.rpartition(",")
    modal.tags.set(f"{head}{sep} {tag}" if sep else tag)
    modal.tag_suggestions = []
    modal.tag_suggestion_idx = -1
    return True


# Clipboard


def yank_selected(state: AppState) -> str | None:
    item = selected_item(state)
    if item is None:
        return None
    state.clipboard.yank(item)
    return f"Yanked: {item.title}"


def remove_item(state: AppState, item: Item) -> str:
    """Cut ``item`` into the clipboard buffer and drop it from the store."""
    if isinstance(item, FolderItem):
        found = state.store.remove_folder(item.id)
    else:
        found = state.store.remove_bookmark(item.id)
    if not found:
        raise NotFound(f"Item not found: {item.title}")
    state.clipboard.yank(item)
    state.mark_store_changed()
    refresh_items(state)
    clamp_cursor(state)
    return f"Cut: {item.title}"


def cut_selected(state: AppState) -> str | None:
    """Cut the selection; folders may need confirmation first.

    Returns a status line, or ``None`` when nothing happened yet (no
    selection, or the confirmation dialog was opened instead).
    """
    item = selected_item(state)
    if item is None:
        return None
    if isinstance(item, FolderItem) and state.confirm_delete:
        state.pending_delete = item
        enter_mode(state, Mode.CONFIRM_DELETE)
        return None
    return remove_item(state, item)


def confirm_pending_delete(state: AppState) -> str | None:
    item = state.pending_delete
    state.pending_delete = None
    return_to_normal(state)
    if item is None:
        return None
    return remove_item(state, item)


def paste_buffer(state: AppState, before: bool) -> str:
    if state.clipboard.is_empty():
        return "Nothing to paste"
    pasted = paste(
        state.store,
        state.clipboard,
        state.browser.current_folder_id,
        selected_item(state),
        before,
    )
    state.mark_store_changed()
    refresh_items(state)
    if pasted is not None:
        for idx, item in enumerate(display_items(state)):
            if item.id == pasted.id:
                state.browser.cursor = idx
                break
        return f"Pasted: {pasted.title}"
    return "Nothing to paste"


# Pins, sort, confirmation toggle


def toggle_pin(state: AppState, item: Item) -> str:
    pinned = state.store.toggle_pin(item.id)
    state.mark_store_changed()
    refresh_items(state)
    return f"Pinned: {item.title}" if pinned else f"Unpinned: {item.title}"


def swap_pinned(state: AppState, delta: int) -> bool:
    """Move the selected pinned item up or down the pinned pane."""
    target = state.pinned_cursor + delta
    if not 0 <= state.pinned_cursor < len(state.pinned_items) or not 0 <= target < len(state.pinned_items):
        return False
    state.store.swap_pin_order(state.pinned_items[state.pinned_cursor].id, state.pinned_items[target].id)
    state.mark_store_changed()
    refresh_items(state)
    state.pinned_cursor = target
    return True


def cycle_sort(state: AppState) -> str:
    state.browser.sort_mode = state.browser.sort_mode.next()
    refresh_items(state)
    return f"Sort: {state.browser.sort_mode.label}"


def toggle_confirm_delete(state: AppState) -> str:
    state.confirm_delete = not state.confirm_delete
    return "Delete confirmation on" if state.confirm_delete else "Delete confirmation off"


# Move picker


def item_parent_id(item: Item) -> str | None:
    if isinstance(item, FolderItem):
        return item.folder.parent_id
    return item.bookmark.folder_id


def open_move(
    state: AppState,
    item: Item | None = None,
    return_mode: Mode = Mode.NORMAL,
    selected_path: str | None = None,
) -> bool:
    """Open the folder picker for ``item`` (the selection by default).

    The picker starts on ``selected_path``, or on the item's current folder.
    """
    if item is None:
        item = selected_item(state)
    if item is None:
        return False
    exclude = item.id if isinstance(item, FolderItem) else None
    choices = folder_paths(state.store, exclude_subtree_of=exclude)
    if selected_path is None:
        selected_path = folder_path(state.store, item_parent_id(item))
    state.move.item = item
    state.move.organize_entry = None
    state.move.picker.load(choices, selected_path=selected_path)
    state.return_mode = return_mode
    enter_mode(state, Mode.MOVE)
    return True


def move_item(state: AppState, item: Item, target_id: str | None) -> None:
    """Reparent ``item``; folders may not move into their own subtree."""
    store = state.store
    if isinstance(item, FolderItem):
        folder = store.get_folder(item.id)
        if target_id is not None and is_descendant(store, folder.id, target_id):
            raise ValidationFailed("Cannot move a folder into itself")
        folder.parent_id = target_id
    else:
        store.get_bookmark(item.id).folder_id = target_id
    state.mark_store_changed()


def submit_move(state: AppState) -> str:
    item = state.move.item
    choice = state.move.picker.selected()
    if item is None or choice is None:
        raise ValidationFailed("No folder selected")
    path, target_id = choice
    move_item(state, item, target_id)
    state.move.item = None
    state.move.organize_entry = None
    close_dialog(state)
    refresh_items(state)
    return f"Moved {item.title} to {path}"


# Quick add / organize commits


def submit_quick_add(state: AppState) -> str:
    modal = state.modal
    title = modal.title.value.strip()
    url = state.quick_add.url.value.strip()
    if not title or not url:
        raise ValidationFailed("Title and URL are required")
    choice = state.quick_add.picker.selected()
    if choice is None:
        folder_id = None
    elif choice[1] is not None:
        folder_id = state.store.get_folder(choice[1]).id
    else:
        # only the suggested path can be missing from the store
        folder_id = get_or_create_folder_by_path(state.store, choice[0])
    state.store.add_bookmark(Bookmark.create(title, url, folder_id, parse_tags(modal.tags.value)))
    state.mark_store_changed()
    return_to_normal(state)
    refresh_items(state)
    return f"Bookmark added: {title}"


def accept_organize(state: AppState) -> str:
    """Apply the pending AI organize suggestion to its item."""
    organize = state.organize
    item = organize.item
    suggestion = organize.suggestion
    organize.item = None
    organize.suggestion = None
    return_to_normal(state)
    if item is None or suggestion is None:
        return "Nothing to apply"

    store = state.store
    target_path = suggestion.folder_path or "/"
    if isinstance(item, FolderItem) and target_path != organize.current_path:
        own_path = folder_path(store, item.id)
        if target_path == own_path or target_path.startswith(own_path + "/"):
            raise ValidationFailed("Cannot move a folder into itself")
    target_id = get_or_create_folder_by_path(store, target_path)
    move_item(state, item, target_id)
    if isinstance(item, BookmarkItem) and suggestion.tags:
        store.get_bookmark(item.id).tags = list(suggestion.tags)
    refresh_items(state)
    return f"Organized {item.title} into {folder_path(store, target_id)}"
