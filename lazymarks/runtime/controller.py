"""Event reducer for the interactive session.

``handle_event`` receives one event at a time (key press, terminal resize,
or a finished background request) and applies it to ``AppState``. Expected
failures are reported through the status line; nothing raised by a key
handler ends the session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..ai import OrganizeSuggestion, Suggestion, build_context
from ..culler import LinkResult, group_results
from ..errors import ExternalServiceFailure, LazymarksError, StorageFailure, ValidationFailed
from ..input.chords import resolve_chord
from ..input.key_registry import KeyComboBinding, KeyComboRegistry
from ..model import Bookmark, BookmarkItem, FolderItem, Item, utc_now
from ..model.paths import folder_path, folder_paths, get_or_create_folder_by_path
from ..search import rank
from . import editing, organize
from .caches import CullCache, OrganizeCache
from .navigation import (
    enter_folder,
    focus_browser,
    focus_pinned,
    jump_bottom,
    jump_top,
    leave_folder,
    move_cursor,
    move_pinned_cursor,
    navigate_to,
    navigate_to_item,
    refresh_items,
    selected_item,
    selected_pinned_item,
)
from .requests import ProgressCounter, TaskResult
from .state import AppState, Mode, Pane

logger = logging.getLogger(__name__)

TO_REVIEW_FOLDER = "To Review"


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


Event = KeyEvent | ResizeEvent | TaskResult


@dataclass(frozen=True)
class ControllerServices:
    """External operations the reducer may invoke.

    ``submit_task`` runs work off the event loop and returns a request id;
    its result comes back later as a ``TaskResult`` event. ``check_links``
    takes the bookmarks, the excluded domains and a progress callback. The
    caches are optional; without them every check and analysis runs fresh.
    """

    submit_task: Callable[[str, Callable[[], object]], int]
    open_url: Callable[[str], None]
    read_clipboard: Callable[[], str]
    write_clipboard: Callable[[str], None]
    suggest_bookmark: Callable[[str, str], Suggestion]
    suggest_organize: Callable[..., OrganizeSuggestion]
    check_links: Callable[..., list[LinkResult]]
    now: Callable[[], datetime] = field(default=utc_now)
    cull_cache: CullCache | None = None
    organize_cache: OrganizeCache | None = None


def handle_event(state: AppState, event: Event, services: ControllerServices) -> bool:
    """Apply one event and return ``True`` when the session should end."""
    try:
        if isinstance(event, ResizeEvent):
            state.width = max(1, event.width)
            state.height = max(1, event.height)
            state.dirty = True
        elif isinstance(event, TaskResult):
            handle_task_result(state, event, services)
        else:
            handle_key(state, event.key, services)
    except LazymarksError as exc:
        logger.info("%s: %s", type(exc).__name__, exc)
        state.set_error(str(exc))
    return state.quit


def handle_key(state: AppState, key: str, services: ControllerServices) -> None:
    if key == "CTRL_C" or (key == "q" and not state.mode.has_text_input):
        state.quit = True
        return
    handler = _MODE_HANDLERS[state.mode]
    handler(state, key, services)
    state.dirty = True


# Normal mode


def _open_item(state: AppState, item: Item, services: ControllerServices) -> None:
    if isinstance(item, FolderItem):
        enter_folder(state, item.id)
        return
    bookmark = state.store.get_bookmark(item.id)
    services.open_url(bookmark.url)
    bookmark.visited_at = services.now()
    state.mark_store_changed()
    state.set_status(f"Opened: {bookmark.title}")


def _copy_url(state: AppState, services: ControllerServices) -> None:
    item = selected_item(state)
    if not isinstance(item, BookmarkItem):
        return
    services.write_clipboard(item.bookmark.url)
    state.set_success("URL copied to clipboard")


def _open_search(state: AppState) -> None:
    search = state.search
    search.reset_global()
    search.all_items = [FolderItem(f) for f in state.store.folders]
    search.all_items.extend(BookmarkItem(b) for b in state.store.bookmarks)
    search.matches = list(search.all_items)
    editing.enter_mode(state, Mode.SEARCH)


def _open_filter(state: AppState) -> None:
    state.search.filter_field.set(state.search.filter_query)
    editing.enter_mode(state, Mode.FILTER)


def _open_quick_add(state: AppState, services: ControllerServices) -> None:
    state.quick_add.reset()
    state.modal.reset()
    try:
        clip = services.read_clipboard().strip()
    except ExternalServiceFailure:
        clip = ""
    if clip.startswith(("http://", "https://")):
        state.quick_add.url.set(clip)
    editing.enter_mode(state, Mode.QUICK_ADD)


def _is_web_url(text: str) -> bool:
    return text.startswith(("http://", "https://")) and len(text) > len("https://")


def _read_later(state: AppState, services: ControllerServices) -> None:
    url = services.read_clipboard().strip()
    if not url:
        raise ValidationFailed("No URL in clipboard")
    if not _is_web_url(url):
        raise ValidationFailed("Invalid URL in clipboard")
    context = build_context(state.store)
    start_request(
        state,
        services,
        "read_later",
        f"Adding to {state.config.quick_add_folder}...",
        lambda: services.suggest_bookmark(url, context),
        {"url": url},
    )


def _start_organize(state: AppState, services: ControllerServices) -> None:
    item = selected_pinned_item(state) if state.focused_pane is Pane.PINNED else selected_item(state)
    if item is None:
        return
    if isinstance(item, FolderItem):
        _start_folder_organize(state, services, item.id)
        return
    store = state.store
    url, tags = item.bookmark.url, list(item.bookmark.tags)
    current_path = folder_path(store, item.bookmark.folder_id)
    context = build_context(store)
    title = item.title
    start_request(
        state,
        services,
        "organize",
        f"Analyzing {title}...",
        lambda: services.suggest_organize(title, url, current_path, tags, False, context),
        {"item": item, "current_path": current_path},
    )


def _start_folder_organize(state: AppState, services: ControllerServices, folder_id: str) -> None:
    """Offer cached suggestions for this folder when there are any."""
    state.organize.pending_folder_id = folder_id
    cache = services.organize_cache
    if cache is not None and cache.exists():
        try:
            entries, saved_at = cache.load(state.store)
        except StorageFailure as exc:
            logger.warning("ignoring organize cache: %s", exc)
        else:
            in_folder = {item.id for item in organize.collect_folder_items(state.store, folder_id)}
            entries = [entry for entry in entries if entry.item.id in in_folder]
            if entries:
                state.organize.cached = entries
                state.organize.cached_at = saved_at
                state.organize.menu_cursor = 0
                editing.enter_mode(state, Mode.ORGANIZE_MENU)
                return
    _run_folder_organize(state, services, folder_id)


def _run_folder_organize(state: AppState, services: ControllerServices, folder_id: str) -> None:
    store = state.store
    folder = store.get_folder(folder_id)
    items = organize.collect_folder_items(store, folder_id)
    if not items:
        state.set_status("No items to organize")
        return
    requests = organize.build_requests(store, items)
    context = build_context(store)
    progress = ProgressCounter(len(requests))
    start_request(
        state,
        services,
        "organize_folder",
        f"Analyzing {len(requests)} items in {folder.name}",
        lambda: organize.analyze_items(requests, services.suggest_organize, context, progress.update),
        progress=progress,
    )


def _start_cull(state: AppState, services: ControllerServices) -> None:
    """Offer the last check's results when a cull cache exists."""
    cache = services.cull_cache
    if cache is not None and cache.exists():
        try:
            results, saved_at = cache.load(state.store)
        except StorageFailure as exc:
            logger.warning("ignoring cull cache: %s", exc)
        else:
            state.cull.cached = results
            state.cull.cached_at = saved_at
            state.cull.menu_cursor = 0
            editing.enter_mode(state, Mode.CULL_MENU)
            return
    _run_cull(state, services)


def _run_cull(state: AppState, services: ControllerServices) -> None:
    bookmarks = list(state.store.bookmarks)
    if not bookmarks:
        state.set_status("No bookmarks to check")
        return
    excludes = list(state.config.cull_exclude_domains)
    progress = ProgressCounter(len(bookmarks))
    start_request(
        state,
        services,
        "cull",
        f"Checking {len(bookmarks)} links",
        lambda: services.check_links(bookmarks, excludes, progress.update),
        progress=progress,
    )


def _normal_global_bindings(state: AppState, services: ControllerServices) -> KeyComboRegistry:
    def show_help() -> None:
        editing.enter_mode(state, Mode.HELP)

    def toggle_confirm() -> None:
        state.set_status(editing.toggle_confirm_delete(state))

    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("?",), show_help),
        KeyComboBinding(("0",), lambda: focus_pinned(state) or None),
        KeyComboBinding(("s",), lambda: _open_search(state)),
        KeyComboBinding(("/",), lambda: _open_filter(state)),
        KeyComboBinding(("i",), lambda: _open_quick_add(state, services)),
        KeyComboBinding(("L",), lambda: _read_later(state, services)),
        KeyComboBinding(("C",), lambda: _start_cull(state, services)),
        KeyComboBinding(("O",), lambda: _start_organize(state, services)),
        KeyComboBinding(("c",), toggle_confirm),
        KeyComboBinding(("a",), lambda: editing.open_add_bookmark(state)),
        KeyComboBinding(("A",), lambda: editing.open_add_folder(state)),
    )


def _browser_bindings(state: AppState, services: ControllerServices) -> KeyComboRegistry:
    def open_selected() -> None:
        item = selected_item(state)
        if item is not None:
            _open_item(state, item, services)

    def go_back() -> None:
        if not leave_folder(state):
            focus_pinned(state)

    def yank() -> None:
        message = editing.yank_selected(state)
        if message:
            state.set_status(message)

    def cut() -> None:
        message = editing.cut_selected(state)
        if message:
            state.set_status(message)

    def paste(before: bool) -> None:
        state.set_status(editing.paste_buffer(state, before))

    def toggle_pin() -> None:
        item = selected_item(state)
        if item is not None:
            state.set_status(editing.toggle_pin(state, item))

    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("j", "DOWN"), lambda: move_cursor(state, 1)),
        KeyComboBinding(("k", "UP"), lambda: move_cursor(state, -1)),
        KeyComboBinding(("gg",), lambda: jump_top(state)),
        KeyComboBinding(("G",), lambda: jump_bottom(state)),
        KeyComboBinding(("l", "RIGHT", "ENTER"), open_selected),
        KeyComboBinding(("h", "LEFT", "ESC"), go_back),
        KeyComboBinding(("yy",), yank),
        KeyComboBinding(("dd", "x"), cut),
        KeyComboBinding(("p",), lambda: paste(False)),
        KeyComboBinding(("P",), lambda: paste(True)),
        KeyComboBinding(("e",), lambda: editing.open_edit(state) or None),
        KeyComboBinding(("t",), lambda: editing.open_edit_tags(state) or None),
        KeyComboBinding(("m",), lambda: editing.open_move(state) or None),
        KeyComboBinding(("*",), toggle_pin),
        KeyComboBinding(("o",), lambda: state.set_status(editing.cycle_sort(state))),
        KeyComboBinding(("Y",), lambda: _copy_url(state, services)),
        KeyComboBinding(("TAB",), lambda: focus_pinned(state) or None),
    )


def _activate_pinned(state: AppState, services: ControllerServices) -> None:
    item = selected_pinned_item(state)
    if item is None:
        return
    if isinstance(item, FolderItem):
        navigate_to(state, item.id)
        focus_browser(state)
        return
    _open_item(state, item, services)


def _pinned_bindings(state: AppState, services: ControllerServices) -> KeyComboRegistry:
    def unpin() -> None:
        item = selected_pinned_item(state)
        if item is not None:
            state.set_status(editing.toggle_pin(state, item))

    def activate_nth(index: int) -> None:
        if index < len(state.pinned_items):
            state.pinned_cursor = index
            _activate_pinned(state, services)

    registry = KeyComboRegistry().register_bindings(
        KeyComboBinding(("j", "DOWN"), lambda: move_pinned_cursor(state, 1)),
        KeyComboBinding(("k", "UP"), lambda: move_pinned_cursor(state, -1)),
        KeyComboBinding(("gg",), lambda: setattr(state, "pinned_cursor", 0)),
        KeyComboBinding(("G",), lambda: setattr(state, "pinned_cursor", max(len(state.pinned_items) - 1, 0))),
        KeyComboBinding(("l", "RIGHT", "ENTER"), lambda: _activate_pinned(state, services)),
        KeyComboBinding(("J",), lambda: editing.swap_pinned(state, 1) or None),
        KeyComboBinding(("K",), lambda: editing.swap_pinned(state, -1) or None),
        KeyComboBinding(("dd", "x", "*"), unpin),
        KeyComboBinding(("h", "LEFT", "ESC"), lambda: None),
        KeyComboBinding(("TAB",), lambda: focus_browser(state)),
    )
    for digit in range(1, 10):
        registry.bind((str(digit),), lambda index=digit - 1: activate_nth(index))
    return registry


def _handle_normal(state: AppState, key: str, services: ControllerServices) -> None:
    pending, action = resolve_chord(state.chord_pending, key)
    state.chord_pending = pending
    if action is None:
        return
    state.clear_status()
    if _normal_global_bindings(state, services).dispatch(action) is not None:
        return
    if state.focused_pane is Pane.PINNED:
        _pinned_bindings(state, services).dispatch(action)
    else:
        _browser_bindings(state, services).dispatch(action)


# Text-input modes


def _handle_filter(state: AppState, key: str, services: ControllerServices) -> None:
    search = state.search
    if key in {"ESC", "ENTER"}:
        editing.return_to_normal(state)
        return
    if key == "BACKSPACE" and not search.filter_field.value:
        search.reset_filter()
        editing.return_to_normal(state)
        return
    if key in {"DOWN", "CTRL_N"}:
        move_cursor(state, 1)
        return
    if key in {"UP", "CTRL_P"}:
        move_cursor(state, -1)
        return
    if search.filter_field.handle_key(key):
        search.filter_query = search.filter_field.value
        state.browser.cursor = 0


def _handle_search(state: AppState, key: str, services: ControllerServices) -> None:
    search = state.search
    if key == "ESC":
        search.reset_global()
        editing.return_to_normal(state)
        return
    if key == "ENTER":
        if 0 <= search.cursor < len(search.matches):
            item = search.matches[search.cursor]
            search.reset_global()
            editing.return_to_normal(state)
            navigate_to_item(state, item)
        return
    if key in {"DOWN", "CTRL_N"}:
        search.cursor = min(search.cursor + 1, max(len(search.matches) - 1, 0))
        return
    if key in {"UP", "CTRL_P"}:
        search.cursor = max(search.cursor - 1, 0)
        return
    if search.query.handle_key(key):
        search.matches = rank(search.query.value, search.all_items, lambda item: item.title)
        search.cursor = 0


def _modal_fields(state: AppState) -> list:
    modal = state.modal
    if state.mode in {Mode.ADD_BOOKMARK, Mode.EDIT_BOOKMARK}:
        return [modal.title, modal.url]
    if state.mode is Mode.EDIT_TAGS:
        return [modal.tags]
    return [modal.title]


def _submit(state: AppState, submit: Callable[[AppState], str]) -> None:
    try:
        message = submit(state)
    except ValidationFailed as exc:
        state.modal.error = str(exc)
        state.set_error(str(exc))
        return
    state.set_success(message)


def _handle_modal(state: AppState, key: str, services: ControllerServices) -> None:
    modal = state.modal
    if key == "ESC":
        modal.reset()
        editing.close_dialog(state)
        return
    if key == "ENTER":
        _submit(state, editing.submit_modal)
        return
    fields = _modal_fields(state)
    if key in {"TAB", "SHIFT_TAB"}:
        step = 1 if key == "TAB" else -1
        modal.focus = (modal.focus + step) % len(fields)
        return
    fields[min(modal.focus, len(fields) - 1)].handle_key(key)


def _handle_edit_tags(state: AppState, key: str, services: ControllerServices) -> None:
    modal = state.modal
    if key == "ESC":
        modal.reset()
        editing.close_dialog(state)
        return
    if key == "ENTER":
        if editing.insert_tag_suggestion(state):
            return
        _submit(state, editing.submit_modal)
        return
    if key == "TAB":
        if editing.cycle_tag_suggestion(state, 1):
            editing.insert_tag_suggestion(state)
        return
    if key == "DOWN":
        editing.cycle_tag_suggestion(state, 1)
        return
    if key == "UP":
        editing.cycle_tag_suggestion(state, -1)
        return
    if modal.tags.handle_key(key):
        editing.update_tag_suggestions(state)


def _handle_confirm_delete(state: AppState, key: str, services: ControllerServices) -> None:
    if key in {"ENTER", "y", "Y"}:
        message = editing.confirm_pending_delete(state)
        if message:
            state.set_status(message)
    elif key in {"ESC", "n", "N"}:
        state.pending_delete = None
        editing.return_to_normal(state)
        state.set_status("Delete cancelled")


def _handle_picker_key(picker, key: str) -> bool:
    """Shared folder-picker keys; return whether ``key`` was used."""
    if key in {"DOWN", "CTRL_N", "TAB"}:
        picker.move(1)
        return True
    if key in {"UP", "CTRL_P", "SHIFT_TAB"}:
        picker.move(-1)
        return True
    if picker.query.handle_key(key):
        picker.apply_query()
        return True
    return False


def _handle_move(state: AppState, key: str, services: ControllerServices) -> None:
    move = state.move
    if key == "ESC":
        move.item = None
        move.organize_entry = None
        editing.close_dialog(state)
        return
    if key == "ENTER":
        entry = move.organize_entry
        try:
            message = editing.submit_move(state)
        except ValidationFailed as exc:
            state.set_error(str(exc))
            return
        state.set_success(message)
        if isinstance(entry, organize.OrganizeEntry):
            organize.finish_entry(state, entry)
        return
    _handle_picker_key(move.picker, key)


def _handle_quick_add(state: AppState, key: str, services: ControllerServices) -> None:
    if key == "ESC":
        state.quick_add.reset()
        editing.return_to_normal(state)
        return
    if key == "ENTER":
        url = state.quick_add.url.value.strip()
        if not url:
            state.set_error("URL cannot be empty")
            return
        context = build_context(state.store)
        start_request(
            state,
            services,
            "quick_add",
            "Asking AI for suggestions...",
            lambda: services.suggest_bookmark(url, context),
            {"url": url},
        )
        return
    state.quick_add.url.handle_key(key)


def _handle_quick_add_confirm(state: AppState, key: str, services: ControllerServices) -> None:
    modal = state.modal
    picker = state.quick_add.picker
    if key == "ESC":
        state.quick_add.reset()
        modal.reset()
        editing.return_to_normal(state)
        return
    if key == "ENTER":
        _submit(state, editing.submit_quick_add)
        return
    if key in {"TAB", "SHIFT_TAB"}:
        step = 1 if key == "TAB" else -1
        modal.focus = (modal.focus + step) % 3
        return
    if modal.focus == 0:
        modal.title.handle_key(key)
    elif modal.focus == 1:
        modal.tags.handle_key(key)
    else:
        _handle_picker_key(picker, key)


def _handle_organize_confirm(state: AppState, key: str, services: ControllerServices) -> None:
    if key in {"ENTER", "y", "Y"}:
        state.set_success(editing.accept_organize(state))
    elif key in {"ESC", "n", "N"}:
        state.organize.item = None
        state.organize.suggestion = None
        editing.return_to_normal(state)


def _menu_choice(cursor: int, key: str) -> tuple[int, bool]:
    """Two-option fresh/cached menu: return the new cursor and whether to run."""
    if key in {"j", "DOWN", "TAB"}:
        return 1, False
    if key in {"k", "UP", "SHIFT_TAB"}:
        return 0, False
    if key in {"1", "2"}:
        return int(key) - 1, True
    return cursor, key in {"ENTER", "l", "RIGHT"}


def _handle_organize_menu(state: AppState, key: str, services: ControllerServices) -> None:
    org = state.organize
    if key in {"ESC", "h", "LEFT"}:
        org.cached = []
        editing.return_to_normal(state)
        return
    org.menu_cursor, chosen = _menu_choice(org.menu_cursor, key)
    if not chosen:
        return
    cached, org.cached = org.cached, []
    editing.return_to_normal(state)
    if org.menu_cursor == 1:
        _show_organize_entries(state, organize.live_entries(state.store, cached))
    elif org.pending_folder_id is not None:
        _run_folder_organize(state, services, org.pending_folder_id)


def _handle_organize_results(state: AppState, key: str, services: ControllerServices) -> None:
    entry = organize.current_entry(state)
    if entry is None or key in {"ESC", "h", "LEFT"}:
        state.organize.reset_results()
        editing.return_to_normal(state)
        return
    if key in {"j", "DOWN"}:
        organize.next_unprocessed(state)
    elif key in {"k", "UP"}:
        organize.prev_unprocessed(state)
    elif key in {"ENTER", "y", "Y"}:
        state.set_success(organize.accept_entry(state, entry))
    elif key == "s":
        organize.finish_entry(state, entry)
        state.set_status(f"Skipped: {entry.item.title}")
    elif key == "o":
        if isinstance(entry.item, BookmarkItem):
            _open_item(state, entry.item, services)
    elif key == "m":
        if editing.open_move(state, entry.item, Mode.ORGANIZE_RESULTS, entry.suggested_path):
            state.move.organize_entry = entry
    elif key == "d":
        state.set_success(organize.delete_entry(state, entry))


def _handle_cull_menu(state: AppState, key: str, services: ControllerServices) -> None:
    cull = state.cull
    if key in {"ESC", "h", "LEFT"}:
        cull.cached = []
        editing.return_to_normal(state)
        return
    cull.menu_cursor, chosen = _menu_choice(cull.menu_cursor, key)
    if not chosen:
        return
    cached, cull.cached = cull.cached, []
    editing.return_to_normal(state)
    if cull.menu_cursor == 1:
        live_ids = {bookmark.id for bookmark in state.store.bookmarks}
        _show_cull_groups(state, [result for result in cached if result.bookmark.id in live_ids])
    else:
        _run_cull(state, services)


def _leave_cull(state: AppState, message: str) -> None:
    state.cull.reset()
    editing.return_to_normal(state)
    state.set_success(message)


def _delete_cull_group(state: AppState) -> None:
    """Remove every bookmark of the selected group from the collection."""
    cull = state.cull
    group = cull.groups.pop(cull.group_cursor)
    removed = sum(1 for result in group.results if state.store.remove_bookmark(result.bookmark.id))
    if removed:
        state.mark_store_changed()
        refresh_items(state)
    logger.info("cull removed %d bookmarks from group %s", removed, group.label)
    message = f"Deleted {removed} bookmarks"
    if not cull.groups:
        _leave_cull(state, f"{message}. Cull complete!")
        return
    cull.group_cursor = min(cull.group_cursor, len(cull.groups) - 1)
    state.set_success(message)


def _handle_cull_results(state: AppState, key: str, services: ControllerServices) -> None:
    cull = state.cull
    if key in {"ESC", "h", "LEFT"} or not cull.groups:
        cull.reset()
        editing.return_to_normal(state)
        return
    if key in {"j", "DOWN"}:
        cull.group_cursor = min(cull.group_cursor + 1, len(cull.groups) - 1)
    elif key in {"k", "UP"}:
        cull.group_cursor = max(cull.group_cursor - 1, 0)
    elif key in {"ENTER", "l", "RIGHT"}:
        cull.item_cursor = 0
        editing.enter_mode(state, Mode.CULL_INSPECT)
    elif key == "d":
        _delete_cull_group(state)


def _drop_cull_result(state: AppState) -> bool:
    """Forget the selected result; an emptied group leaves the list.

    Returns ``True`` once no groups are left and the view has closed.
    """
    cull = state.cull
    group = cull.groups[cull.group_cursor]
    group.results.pop(cull.item_cursor)
    if group.results:
        cull.item_cursor = min(cull.item_cursor, len(group.results) - 1)
        return False
    cull.groups.pop(cull.group_cursor)
    cull.item_cursor = 0
    if not cull.groups:
        cull.reset()
        editing.return_to_normal(state)
        return True
    cull.group_cursor = min(cull.group_cursor, len(cull.groups) - 1)
    editing.enter_mode(state, Mode.CULL_RESULTS)
    return False


def _handle_cull_inspect(state: AppState, key: str, services: ControllerServices) -> None:
    cull = state.cull
    group = cull.current_group()
    if group is None:
        cull.reset()
        editing.return_to_normal(state)
        return
    if key in {"ESC", "h", "LEFT"}:
        editing.enter_mode(state, Mode.CULL_RESULTS)
        return
    result = cull.current_result()
    if key in {"j", "DOWN"}:
        cull.item_cursor = min(cull.item_cursor + 1, len(group.results) - 1)
        return
    if key in {"k", "UP"}:
        cull.item_cursor = max(cull.item_cursor - 1, 0)
        return
    if result is None:
        return
    item = BookmarkItem(result.bookmark)
    if key in {"ENTER", "o", "l"}:
        _open_item(state, item, services)
    elif key in {"d", "x"}:
        try:
            message = editing.remove_item(state, item)
        finally:
            finished = _drop_cull_result(state)
        if finished:
            state.set_success(f"{message}. Cull complete!")
        else:
            state.set_status(message)
    elif key == "e":
        editing.open_edit(state, item, Mode.CULL_INSPECT)
    elif key == "m":
        editing.open_move(state, item, Mode.CULL_INSPECT)
    elif key == "g":
        cull.reset()
        editing.return_to_normal(state)
        navigate_to_item(state, item)


def _handle_loading(state: AppState, key: str, services: ControllerServices) -> None:
    if key == "ESC":
        logger.debug("cancelled %s request %s", state.loading.kind, state.loading.request_id)
        state.loading.clear()
        editing.return_to_normal(state)
        state.set_status("Cancelled")


def _handle_help(state: AppState, key: str, services: ControllerServices) -> None:
    editing.return_to_normal(state)


_MODE_HANDLERS: dict[Mode, Callable[[AppState, str, ControllerServices], None]] = {
    Mode.NORMAL: _handle_normal,
    Mode.FILTER: _handle_filter,
    Mode.SEARCH: _handle_search,
    Mode.ADD_BOOKMARK: _handle_modal,
    Mode.ADD_FOLDER: _handle_modal,
    Mode.EDIT_FOLDER: _handle_modal,
    Mode.EDIT_BOOKMARK: _handle_modal,
    Mode.EDIT_TAGS: _handle_edit_tags,
    Mode.CONFIRM_DELETE: _handle_confirm_delete,
    Mode.MOVE: _handle_move,
    Mode.QUICK_ADD: _handle_quick_add,
    Mode.QUICK_ADD_CONFIRM: _handle_quick_add_confirm,
    Mode.ORGANIZE_CONFIRM: _handle_organize_confirm,
    Mode.ORGANIZE_MENU: _handle_organize_menu,
    Mode.ORGANIZE_RESULTS: _handle_organize_results,
    Mode.CULL_MENU: _handle_cull_menu,
    Mode.CULL_RESULTS: _handle_cull_results,
    Mode.CULL_INSPECT: _handle_cull_inspect,
    Mode.LOADING: _handle_loading,
    Mode.HELP: _handle_help,
}


# Background requests


def start_request(
    state: AppState,
    services: ControllerServices,
    kind: str,
    label: str,
    work: Callable[[], object],
    payload: dict[str, object] | None = None,
    progress: ProgressCounter | None = None,
) -> int:
    """Submit ``work`` and wait for its result in ``LOADING`` mode.

    ``progress`` is shown next to the label while the worker updates it.
    """
    request_id = services.submit_task(kind, work)
    state.loading.request_id = request_id
    state.loading.kind = kind
    state.loading.label = label
    state.loading.payload = dict(payload or {})
    state.loading.progress = progress
    editing.enter_mode(state, Mode.LOADING)
    return request_id


def _quick_add_choices(state: AppState, suggested_path: str) -> list[tuple[str, str | None]]:
    """Current folder, then the suggestion, then root, then every other folder."""
    store = state.store
    known = folder_paths(store)
    ordered: list[tuple[str, str | None]] = []
    seen: set[str] = set()

    def add(path: str, folder_id: str | None) -> None:
        key = folder_id if folder_id is not None else path
        if key not in seen:
            seen.add(key)
            ordered.append((path, folder_id))

    current_id = state.browser.current_folder_id
    if current_id is not None:
        add(folder_path(store, current_id), current_id)
    if suggested_path:
        add(suggested_path, next((fid for path, fid in known if path == suggested_path), None))
    add("/", None)
    for path, folder_id in known:
        add(path, folder_id)
    return ordered


def handle_task_result(state: AppState, result: TaskResult, services: ControllerServices) -> None:
    loading = state.loading
    if loading.request_id is None or result.request_id != loading.request_id:
        logger.debug("dropping stale %s result %d", result.kind, result.request_id)
        return
    kind = loading.kind
    payload = dict(loading.payload)
    loading.clear()
    editing.return_to_normal(state)
    error = result.error

    if kind == "quick_add":
        _finish_quick_add(state, payload, result.value, error)
    elif kind == "read_later":
        _finish_read_later(state, payload, result.value, error)
    elif kind == "organize":
        _finish_organize(state, payload, result.value, error)
    elif kind == "organize_folder":
        _finish_folder_organize(state, services, result.value, error)
    elif kind == "cull":
        _finish_cull(state, services, result.value, error)


def _finish_quick_add(state: AppState, payload: dict, value: object, error: BaseException | None) -> None:
    url = str(payload.get("url", ""))
    if error is not None or not isinstance(value, Suggestion):
        folder_id = get_or_create_folder_by_path(state.store, TO_REVIEW_FOLDER)
        state.store.add_bookmark(Bookmark.create(url, url, folder_id))
        state.mark_store_changed()
        refresh_items(state)
        state.set_error(f"AI failed, saved to '{TO_REVIEW_FOLDER}': {error}")
        return
    suggested_path = organize.normalize_path(value.folder_path)
    modal = state.modal
    modal.reset()
    modal.title.set(value.title)
    modal.tags.set(", ".join(value.tags))
    state.quick_add.suggested_path = suggested_path
    state.quick_add.picker.load(_quick_add_choices(state, suggested_path), selected_path=suggested_path)
    editing.enter_mode(state, Mode.QUICK_ADD_CONFIRM)


def _finish_read_later(state: AppState, payload: dict, value: object, error: BaseException | None) -> None:
    url = str(payload.get("url", ""))
    folder_name = state.config.quick_add_folder
    folder_id = get_or_create_folder_by_path(state.store, folder_name)
    if error is None and isinstance(value, Suggestion):
        title, tags = value.title, list(value.tags)
    else:
        title, tags = url, []
    state.store.add_bookmark(Bookmark.create(title, url, folder_id, tags))
    state.mark_store_changed()
    refresh_items(state)
    if error is None:
        state.set_success(f"Added to {folder_name}: {title}")
    else:
        state.set_status("AI unavailable - saved with URL as title")


def _finish_organize(state: AppState, payload: dict, value: object, error: BaseException | None) -> None:
    if error is not None or not isinstance(value, OrganizeSuggestion):
        state.set_error(f"AI organize failed: {error}")
        return
    item = payload.get("item")
    current_path = str(payload.get("current_path", "/"))
    suggestion = OrganizeSuggestion(
        folder_path=organize.normalize_path(value.folder_path),
        is_new_folder=value.is_new_folder,
        tags=list(value.tags),
        confidence=value.confidence,
    )
    current_tags = item.bookmark.tags if isinstance(item, BookmarkItem) else []
    if suggestion.folder_path == current_path and (
        not suggestion.tags or organize.tags_equal(suggestion.tags, current_tags)
    ):
        state.set_success("Already well organized")
        return
    state.organize.item = item
    state.organize.current_path = current_path
    state.organize.suggestion = suggestion
    editing.enter_mode(state, Mode.ORGANIZE_CONFIRM)


def _show_organize_entries(state: AppState, entries: list) -> None:
    org = state.organize
    org.reset_results()
    if not entries:
        state.set_success("All items already well organized!")
        return
    org.entries = entries
    editing.enter_mode(state, Mode.ORGANIZE_RESULTS)
    state.set_status(f"{len(entries)} suggestions")


def _finish_folder_organize(
    state: AppState, services: ControllerServices, value: object, error: BaseException | None
) -> None:
    if error is not None or not isinstance(value, list):
        state.set_error(f"AI organize failed: {error}")
        return
    entries = organize.live_entries(state.store, value)
    if services.organize_cache is not None:
        try:
            services.organize_cache.save(entries, services.now())
        except StorageFailure as exc:
            logger.warning("organize cache not saved: %s", exc)
    _show_organize_entries(state, entries)


def _show_cull_groups(state: AppState, results: list[LinkResult]) -> None:
    cull = state.cull
    cull.reset()
    cull.groups = group_results(results)
    if not cull.groups:
        state.set_success("All bookmarks healthy!")
        return
    editing.enter_mode(state, Mode.CULL_RESULTS)
    state.set_status(f"{cull.problem_count()} problem links in {len(cull.groups)} groups")


def _finish_cull(state: AppState, services: ControllerServices, value: object, error: BaseException | None) -> None:
    if error is not None or not isinstance(value, list):
        state.set_error(f"Link check failed: {error}")
        return
    live_ids = {bookmark.id for bookmark in state.store.bookmarks}
    results = [result for result in value if result.bookmark.id in live_ids]
    if services.cull_cache is not None:
        try:
            services.cull_cache.save(results, services.now())
        except StorageFailure as exc:
            logger.warning("cull cache not saved: %s", exc)
    _show_cull_groups(state, results)


__all__ = [
    "ControllerServices",
    "Event",
    "KeyEvent",
    "ResizeEvent",
    "handle_event",
    "handle_key",
    "handle_task_result",
    "start_request",
]
