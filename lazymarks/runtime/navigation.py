"""Browse-location and cursor operations on ``AppState``.

These helpers never touch the store's contents; they rebuild the visible
item lists from it and move the browser and pinned-pane cursors.
"""

from __future__ import annotations

from ..model import FolderItem, Item, sorted_items
from ..model.paths import ancestor_ids
from ..search import rank
from .state import AppState, Pane


def refresh_pinned(state: AppState) -> None:
    state.pinned_items = state.store.pinned_items()
    if state.pinned_cursor >= len(state.pinned_items):
        state.pinned_cursor = max(len(state.pinned_items) - 1, 0)
    if not state.pinned_items and state.focused_pane is Pane.PINNED:
        state.focused_pane = Pane.BROWSER


def refresh_items(state: AppState) -> None:
    """Rebuild the current folder's item list and clamp the cursor."""
    browser = state.browser
    store = state.store
    if browser.current_folder_id is not None and store.find_folder(browser.current_folder_id) is None:
        # current folder vanished (deleted elsewhere); fall back to root
        browser.reset_to_root()
        state.search.reset_filter()
    browser.items = sorted_items(
        store.children_folders(browser.current_folder_id),
        store.children_bookmarks(browser.current_folder_id),
        browser.sort_mode,
    )
    refresh_pinned(state)
    clamp_cursor(state)
    state.dirty = True


def display_items(state: AppState) -> list[Item]:
    """Items shown in the current pane, narrowed by the sticky filter.

    Filtered matches keep rank order within each kind, folders first.
    """
    query = state.search.filter_query
    if not query:
        return state.browser.items
    ranked = rank(query, state.browser.items, _item_label)
    return [item for item in ranked if item.is_folder] + [item for item in ranked if not item.is_folder]


def _item_label(item: Item) -> str:
    return item.title


def selected_item(state: AppState) -> Item | None:
    items = display_items(state)
    cursor = state.browser.cursor
    if 0 <= cursor < len(items):
        return items[cursor]
    return None


def selected_pinned_item(state: AppState) -> Item | None:
    if 0 <= state.pinned_cursor < len(state.pinned_items):
        return state.pinned_items[state.pinned_cursor]
    return None


def clamp_cursor(state: AppState) -> None:
    count = len(display_items(state))
    state.browser.cursor = max(0, min(state.browser.cursor, count - 1))


def move_cursor(state: AppState, delta: int) -> None:
    """Move the browser cursor, clamped to the list without wrapping."""
    count = len(display_items(state))
    if count == 0:
        state.browser.cursor = 0
        return
    state.browser.cursor = max(0, min(state.browser.cursor + delta, count - 1))
    state.dirty = True


def jump_top(state: AppState) -> None:
    state.browser.cursor = 0
    state.dirty = True


def jump_bottom(state: AppState) -> None:
    state.browser.cursor = max(len(display_items(state)) - 1, 0)
    state.dirty = True


def _change_folder(state: AppState, folder_id: str | None) -> None:
    state.browser.current_folder_id = folder_id
    state.browser.cursor = 0
    state.search.reset_filter()
    refresh_items(state)


def enter_folder(state: AppState, folder_id: str) -> None:
    browser = state.browser
    if browser.current_folder_id is not None:
        browser.folder_stack.append(browser.current_folder_id)
    _change_folder(state, folder_id)


def leave_folder(state: AppState) -> bool:
    """Go to the parent folder; return ``False`` when already at the root."""
    browser = state.browser
    if browser.at_root:
        return False
    parent_id = browser.folder_stack.pop() if browser.folder_stack else None
    _change_folder(state, parent_id)
    return True


def navigate_to(state: AppState, folder_id: str | None, item_id: str | None = None) -> None:
    """Show ``folder_id`` with a stack rebuilt from its ancestors.

    When ``item_id`` is listed there the cursor lands on it.
    """
    browser = state.browser
    if folder_id is not None and state.store.find_folder(folder_id) is None:
        folder_id = None
    browser.folder_stack = ancestor_ids(state.store, folder_id)[:-1] if folder_id is not None else []
    _change_folder(state, folder_id)
    if item_id is None:
        return
    for idx, item in enumerate(browser.items):
        if item.id == item_id:
            browser.cursor = idx
            break


def navigate_to_item(state: AppState, item: Item) -> None:
    """Open the folder containing ``item`` and select it."""
    if isinstance(item, FolderItem):
        navigate_to(state, item.folder.parent_id, item.id)
    else:
        navigate_to(state, item.bookmark.folder_id, item.id)
    state.focused_pane = Pane.BROWSER


def move_pinned_cursor(state: AppState, delta: int) -> None:
    count = len(state.pinned_items)
    if count == 0:
        state.pinned_cursor = 0
        return
    state.pinned_cursor = max(0, min(state.pinned_cursor + delta, count - 1))
    state.dirty = True


def focus_pinned(state: AppState) -> bool:
    if not state.pinned_items:
        return False
    state.focused_pane = Pane.PINNED
    state.dirty = True
    return True


def focus_browser(state: AppState) -> None:
    state.focused_pane = Pane.BROWSER
    state.dirty = True
