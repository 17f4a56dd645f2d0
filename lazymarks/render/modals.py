"""Dialog boxes drawn over the pane view.

Each builder returns the content rows of one box; ``draw_box`` frames them.
"""

from __future__ import annotations

from ..ansi import display_width, pad_ansi_line
from ..input.text_field import TextField
from ..layout import (
    MODAL_PERCENT_LARGE,
    MOVE_PICKER_MAX_VISIBLE,
    QUICK_ADD_PICKER_MAX_VISIBLE,
    modal_width,
    truncate_text,
    visible_list_window,
)
from ..model import BookmarkItem
from ..runtime.state import AppState, FolderPicker, Mode

LABEL_SGR = "\033[38;5;245m"
ERROR_SGR = "\033[1;38;5;203m"
HINT_SGR = "\033[2;38;5;245m"
NEW_SGR = "\033[38;5;114m"
RESET = "\033[0m"

SPINNER_FRAMES: tuple[str, ...] = ("|", "/", "-", "\\")
MENU_DATE_FORMAT = "%Y-%m-%d %H:%M"


def draw_box(title: str, body: list[str], width: int) -> list[str]:
    inner = max(width - 4, 1)
    head, _ = truncate_text(title, max(inner - 2, 1))
    top = "┌─ " + head + " " + "─" * max(width - display_width(head) - 5, 0) + "┐"
    rows = [top]
    for line in body:
        rows.append("│ " + pad_ansi_line(line, inner) + " │")
    rows.append("└" + "─" * max(width - 2, 0) + "┘")
    return rows


def field_view(field: TextField, width: int, focused: bool) -> str:
    """Render ``field`` scrolled so its cursor stays inside ``width`` columns."""
    if width <= 1:
        return ""
    start = max(0, field.cursor - width + 1)
    window = TextField(value=field.value[start : start + width], limit=field.limit, cursor=field.cursor - start)
    return window.render(focused)


def _field_row(label: str, field: TextField, inner: int, focused: bool) -> str:
    prefix = f"{label:<7}"
    marker = ">" if focused else " "
    return f"{marker}{LABEL_SGR}{prefix}{RESET}" + field_view(field, inner - len(prefix) - 1, focused)


def _picker_rows(picker: FolderPicker, inner: int, max_visible: int, focused: bool = True) -> list[str]:
    rows = [_field_row("Folder", picker.query, inner, focused)]
    start, end = visible_list_window(max_visible, picker.index, len(picker.filtered))
    if not picker.filtered:
        rows.append(f"{HINT_SGR}  no matching folders{RESET}")
    for idx in range(start, end):
        path, folder_id = picker.filtered[idx]
        label, _ = truncate_text(path, inner - 10)
        if folder_id is None and path != "/":
            label += f" {NEW_SGR}(new){RESET}"
        if idx == picker.index:
            rows.append(f"\033[7m> {label}\033[0m")
        else:
            rows.append(f"  {label}")
    return rows


def _hint(text: str) -> str:
    return f"{HINT_SGR}{text}{RESET}"


def modal_rows(state: AppState, width: int, spinner_frame: int = 0) -> list[str] | None:
    """Return the framed dialog for the current mode, or ``None``."""
    mode = state.mode
    modal = state.modal
    box_width = modal_width(width)
    inner = max(box_width - 4, 1)
    body: list[str] = []

    if mode in {Mode.ADD_BOOKMARK, Mode.EDIT_BOOKMARK}:
        title = "Add Bookmark" if mode is Mode.ADD_BOOKMARK else "Edit Bookmark"
        body.append(_field_row("Title", modal.title, inner, modal.focus == 0))
        body.append(_field_row("URL", modal.url, inner, modal.focus == 1))
        hint = "Tab: next field  Enter: save  Esc: cancel"
    elif mode in {Mode.ADD_FOLDER, Mode.EDIT_FOLDER}:
        title = "Add Folder" if mode is Mode.ADD_FOLDER else "Rename Folder"
        body.append(_field_row("Name", modal.title, inner, True))
        hint = "Enter: save  Esc: cancel"
    elif mode is Mode.EDIT_TAGS:
        title = "Edit Tags"
        body.append(_field_row("Tags", modal.tags, inner, True))
        for idx, tag in enumerate(modal.tag_suggestions[:MOVE_PICKER_MAX_VISIBLE]):
            body.append(f"\033[7m  {tag}\033[0m" if idx == modal.tag_suggestion_idx else f"  {tag}")
        hint = "comma separated  Tab: complete  Enter: save  Esc: cancel"
    elif mode is Mode.CONFIRM_DELETE:
        title = "Delete Folder"
        name = state.pending_delete.title if state.pending_delete is not None else ""
        body.append(f'Delete folder "{truncate_text(name, inner - 17)[0]}"?')
        hint = "y/Enter: delete  n/Esc: cancel"
    elif mode is Mode.MOVE:
        item = state.move.item
        title = f"Move {item.title}" if item is not None else "Move"
        body.extend(_picker_rows(state.move.picker, inner, MOVE_PICKER_MAX_VISIBLE))
        hint = "Up/Down: choose  Enter: move  Esc: cancel"
    elif mode is Mode.QUICK_ADD:
        title = "Quick Add"
        body.append(_field_row("URL", state.quick_add.url, inner, True))
        hint = "Enter: ask AI  Esc: cancel"
    elif mode is Mode.QUICK_ADD_CONFIRM:
        title = "Quick Add"
        box_width = modal_width(width, MODAL_PERCENT_LARGE)
        inner = max(box_width - 4, 1)
        url, _ = truncate_text(state.quick_add.url.value, inner - 8)
        body.append(f" {LABEL_SGR}{'URL':<7}{RESET}{url}")
        body.append(_field_row("Title", modal.title, inner, modal.focus == 0))
        body.append(_field_row("Tags", modal.tags, inner, modal.focus == 1))
        body.extend(_picker_rows(state.quick_add.picker, inner, QUICK_ADD_PICKER_MAX_VISIBLE, modal.focus == 2))
        hint = "Tab: next field  Enter: save  Esc: cancel"
    elif mode is Mode.ORGANIZE_CONFIRM:
        organize = state.organize
        suggestion = organize.suggestion
        title = "Organize"
        if organize.item is not None and suggestion is not None:
            body.append(truncate_text(organize.item.title, inner)[0])
            body.append(f"{LABEL_SGR}From{RESET}  {organize.current_path}")
            target = suggestion.folder_path
            if suggestion.is_new_folder:
                target += f" {NEW_SGR}(new folder){RESET}"
            body.append(f"{LABEL_SGR}To{RESET}    {target}")
            if isinstance(organize.item, BookmarkItem) and suggestion.tags:
                body.append(f"{LABEL_SGR}Tags{RESET}  {', '.join(suggestion.tags)}")
            body.append(f"{LABEL_SGR}Confidence{RESET} {suggestion.confidence}")
        hint = "y/Enter: apply  n/Esc: cancel"
    elif mode in {Mode.CULL_MENU, Mode.ORGANIZE_MENU}:
        if mode is Mode.CULL_MENU:
            title = "Check Links"
            cursor, saved_at = state.cull.menu_cursor, state.cull.cached_at
            fresh = "Run a fresh check"
            cached = f"Use cached results ({len(state.cull.cached)} problems"
        else:
            title = "Organize Folder"
            cursor, saved_at = state.organize.menu_cursor, state.organize.cached_at
            fresh = "Run a fresh analysis"
            cached = f"Use cached suggestions ({len(state.organize.cached)} items"
        if saved_at is not None:
            cached += ", saved " + saved_at.astimezone().strftime(MENU_DATE_FORMAT)
        for idx, option in enumerate((fresh, cached + ")")):
            line = f"{idx + 1}. {truncate_text(option, inner - 3)[0]}"
            body.append(f"\033[7m{line}\033[0m" if idx == cursor else line)
        hint = "j/k: choose  Enter: run  Esc: cancel"
    elif mode is Mode.LOADING:
        title = "Working"
        spinner = SPINNER_FRAMES[spinner_frame % len(SPINNER_FRAMES)]
        line = f"{spinner} {state.loading.label}"
        progress = state.loading.progress
        if progress is not None:
            done, total = progress.snapshot()
            line += f" ({done}/{total})"
        body.append(line)
        hint = "Esc: cancel"
    else:
        return None

    if modal.error and mode.has_text_input:
        body.append(f"{ERROR_SGR}{truncate_text(modal.error, inner)[0]}{RESET}")
    body.append("")
    body.append(_hint(hint))
    return draw_box(title, body, box_width)
