"""Rendering for the Miller-column bookmark view.

``render_frame`` turns ``AppState`` into one complete ANSI frame string
without mutating it. Panes left to right: pinned (when any), parent,
current folder, preview of the selection.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..ansi import display_width, pad_ansi_line
from ..layout import (
    fuzzy_layout,
    item_width,
    pane_height,
    pane_width,
    truncate_ansi_aware,
    truncate_text,
    truncate_with_prefix_suffix,
    viewport_offset,
    visible_height,
)
from ..model import BookmarkItem, FolderItem, Item, sorted_items
from ..model.paths import folder_path
from ..runtime.navigation import display_items, selected_item, selected_pinned_item
from ..runtime.state import AppState, MessageKind, Mode, Pane
from .help import render_help_page
from .modals import field_view, modal_rows

FOLDER_SGR = "\033[1;38;5;81m"
PIN_SGR = "\033[38;5;214m"
DIM_SGR = "\033[2;38;5;245m"
HEADER_SGR = "\033[1;38;5;229m"
RESET = "\033[0m"
STATUS_SGR = {
    MessageKind.INFO: "\033[38;5;252m",
    MessageKind.SUCCESS: "\033[38;5;114m",
    MessageKind.ERROR: "\033[1;38;5;203m",
}
PANE_SEPARATOR = f" {DIM_SGR}│{RESET} "
PANE_HEADER_LINES = 2
DATE_FORMAT = "%Y-%m-%d %H:%M"


@dataclass(frozen=True)
class PaneView:
    title: str
    items: list[Item]
    cursor: int
    focused: bool
    numbered: bool = False


def selected_with_ansi(text: str) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text:
        return text
    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace("\033[0m", "\033[0;7m") + "\033[0m"


def build_status_line(left_text: str, width: int, right_text: str = "│ ? Help") -> str:
    usable = max(1, width - 1)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left, _ = truncate_text(left_text, left_limit)
    gap = " " * (usable - display_width(left) - len(right_text))
    return f"{left}{gap}{right_text}"


def format_item(item: Item, width: int, number: int | None = None) -> str:
    prefix = f"{number} " if number is not None else ""
    if isinstance(item, FolderItem):
        prefix += "▸ "
    else:
        prefix += "  "
    suffix = " *" if _is_pinned(item) and number is None else ""
    text = truncate_with_prefix_suffix(item.title, width, prefix, suffix)
    if isinstance(item, FolderItem):
        return FOLDER_SGR + text + RESET
    return text


def _is_pinned(item: Item) -> bool:
    if isinstance(item, FolderItem):
        return item.folder.pinned
    return item.bookmark.pinned


def render_pane(view: PaneView, width: int, height: int) -> list[str]:
    """Return ``height`` rows of exactly ``width`` columns."""
    title, _ = truncate_text(view.title, width)
    header_sgr = HEADER_SGR if view.focused else DIM_SGR
    rows = [pad_ansi_line(header_sgr + title + RESET, width), DIM_SGR + "─" * width + RESET]
    body_height = visible_height(height, PANE_HEADER_LINES)
    total = len(view.items)
    if total == 0:
        rows.append(pad_ansi_line(DIM_SGR + " (empty)" + RESET, width))
    start = viewport_offset(max(view.cursor, 0), total, body_height)
    content_width = item_width(width)
    for idx in range(start, min(start + body_height, total)):
        number = idx + 1 if view.numbered and idx < 9 else None
        label = pad_ansi_line(" " + format_item(view.items[idx], content_width, number), width)
        if idx == view.cursor:
            label = selected_with_ansi(label) if view.focused else "\033[2;7m" + label + RESET
        rows.append(label)
    while len(rows) < height:
        rows.append(" " * width)
    return rows[:height]


def _bookmark_details(state: AppState, item: BookmarkItem, width: int) -> list[str]:
    bookmark = item.bookmark
    lines = [FOLDER_SGR + truncate_text(bookmark.title, width)[0] + RESET, ""]
    url = bookmark.url
    while url and len(lines) < 8:
        chunk, rest = _split_width(url, width)
        lines.append(chunk)
        url = rest
    if url:
        lines[-1] = truncate_text(lines[-1] + url, width)[0]
    lines.append("")
    if bookmark.tags:
        lines.append(truncate_text("Tags: " + ", ".join(bookmark.tags), width)[0])
    lines.append(truncate_text("Folder: " + folder_path(state.store, bookmark.folder_id), width)[0])
    lines.append("Added: " + bookmark.created_at.astimezone().strftime(DATE_FORMAT))
    if bookmark.visited_at is not None:
        lines.append("Visited: " + bookmark.visited_at.astimezone().strftime(DATE_FORMAT))
    if bookmark.pinned:
        lines.append(PIN_SGR + "Pinned" + RESET)
    return lines


def _split_width(text: str, width: int) -> tuple[str, str]:
    used = 0
    for idx, ch in enumerate(text):
        used += display_width(ch)
        if used > width:
            return text[:idx], text[idx:]
    return text, ""


def _children(state: AppState, folder_id: str | None) -> list[Item]:
    store = state.store
    return sorted_items(
        store.children_folders(folder_id),
        store.children_bookmarks(folder_id),
        state.browser.sort_mode,
    )


def render_preview(state: AppState, item: Item | None, width: int, height: int) -> list[str]:
    if isinstance(item, FolderItem):
        return render_pane(PaneView(item.title, _children(state, item.id), -1, False), width, height)
    if isinstance(item, BookmarkItem):
        rows = [pad_ansi_line(DIM_SGR + "Preview" + RESET, width), DIM_SGR + "─" * width + RESET]
        rows.extend(pad_ansi_line(" " + line, width) for line in _bookmark_details(state, item, width - 2))
        while len(rows) < height:
            rows.append(" " * width)
        return rows[:height]
    return render_pane(PaneView("Preview", [], -1, False), width, height)


def _parent_view(state: AppState) -> PaneView:
    browser = state.browser
    if browser.at_root:
        return PaneView("", [], -1, False)
    folder = state.store.find_folder(browser.current_folder_id or "")
    parent_id = folder.parent_id if folder is not None else None
    items = _children(state, parent_id)
    cursor = next((idx for idx, item in enumerate(items) if item.id == browser.current_folder_id), -1)
    title = folder_path(state.store, parent_id)
    return PaneView(title, items, cursor, False)


def _header_line(state: AppState, width: int) -> str:
    browser = state.browser
    path = folder_path(state.store, browser.current_folder_id)
    parts = [f"{HEADER_SGR}lazymarks{RESET}", path, f"{DIM_SGR}[{browser.sort_mode.label}]{RESET}"]
    if state.mode is Mode.FILTER:
        parts.append("/" + field_view(state.search.filter_field, max(width // 3, 10), True))
    elif state.search.filter_query:
        parts.append(f"{DIM_SGR}[filter: {state.search.filter_query}]{RESET}")
    if not state.confirm_delete:
        parts.append(f"{DIM_SGR}[no delete confirm]{RESET}")
    if state.unsaved:
        parts.append(f"{STATUS_SGR[MessageKind.ERROR]}[unsaved]{RESET}")
    return pad_ansi_line(" " + "  ".join(parts), width)


def _compose_columns(columns: list[list[str]], height: int) -> list[str]:
    return [" " + PANE_SEPARATOR.join(column[row] for column in columns) for row in range(height)]


def render_browser(state: AppState) -> list[str]:
    """Return the rows of the pane view (without the status line)."""
    width, height = state.width, state.height
    browser = state.browser
    has_pinned = bool(state.pinned_items)
    layout = pane_width(width, has_pinned, browser.at_root)
    pane_h = min(pane_height(height), max(height - 3, 1))
    browser_focused = state.focused_pane is Pane.BROWSER

    current_title = folder_path(state.store, browser.current_folder_id)
    current = PaneView(current_title, display_items(state), browser.cursor, browser_focused)
    pinned = PaneView(
        "Pinned", state.pinned_items, state.pinned_cursor, not browser_focused, numbered=True
    )

    if state.focused_pane is Pane.PINNED:
        preview_item = selected_pinned_item(state)
    else:
        preview_item = selected_item(state)

    columns: list[list[str]] = []
    if has_pinned:
        columns.append(render_pane(pinned, layout.width, pane_h))
    if layout.count == 4 or not has_pinned:
        columns.append(render_pane(_parent_view(state), layout.width, pane_h))
    columns.append(render_pane(current, layout.width, pane_h))
    columns.append(render_preview(state, preview_item, layout.width, pane_h))

    rows = [_header_line(state, width), ""]
    rows.extend(_compose_columns(columns, pane_h))
    return rows


def render_search(state: AppState) -> list[str]:
    width, height = state.width, state.height
    search = state.search
    layout = fuzzy_layout(width, height)
    count = f"{len(search.matches)}/{len(search.all_items)}"
    prompt = f" {HEADER_SGR}Search{RESET} " + field_view(search.query, max(width - 20, 10), True)
    rows = [pad_ansi_line(prompt + f"  {DIM_SGR}{count}{RESET}", width), ""]
    list_rows: list[str] = []
    start = viewport_offset(search.cursor, len(search.matches), layout.list_height)
    for idx in range(start, min(start + layout.list_height, len(search.matches))):
        label = pad_ansi_line(" " + format_item(search.matches[idx], item_width(layout.list_width)), layout.list_width)
        list_rows.append(selected_with_ansi(label) if idx == search.cursor else label)
    while len(list_rows) < layout.list_height:
        list_rows.append(" " * layout.list_width)

    selected = search.matches[search.cursor] if 0 <= search.cursor < len(search.matches) else None
    preview = render_preview(state, selected, layout.preview_width, layout.list_height)
    rows.extend(_compose_columns([list_rows, preview], layout.list_height))
    rows.append("")
    rows.append(f" {DIM_SGR}Up/Down or Ctrl+N/P move  Enter go to  Esc close{RESET}")
    return rows


def _list_rows(labels: list[str], cursor: int, width: int, height: int) -> list[str]:
    rows: list[str] = []
    start = viewport_offset(cursor, len(labels), height)
    for idx in range(start, min(start + height, len(labels))):
        label = pad_ansi_line(" " + truncate_ansi_aware(labels[idx], width - 2), width)
        rows.append(selected_with_ansi(label) if idx == cursor else label)
    return rows


def render_cull(state: AppState) -> list[str]:
    """Problem groups, one row each: label, size and what they mean."""
    width, height = state.width, state.height
    cull = state.cull
    header = f" {HEADER_SGR}Link check{RESET}  {cull.problem_count()} problem links in {len(cull.groups)} groups"
    rows = [pad_ansi_line(header, width), ""]
    labels = [
        f"{group.label}  {len(group.results)} links  {DIM_SGR}{group.description}{RESET}" for group in cull.groups
    ]
    rows.extend(_list_rows(labels, cull.group_cursor, width, max(height - 5, 1)))
    rows.append("")
    rows.append(f" {DIM_SGR}j/k move  Enter inspect  d delete group  Esc close{RESET}")
    return rows


def render_cull_inspect(state: AppState) -> list[str]:
    width, height = state.width, state.height
    cull = state.cull
    group = cull.current_group()
    results = group.results if group is not None else []
    title = group.label if group is not None else ""
    rows = [pad_ansi_line(f" {HEADER_SGR}{title}{RESET}  {len(results)} links", width), ""]
    labels = [
        f"[{result.reason}] {result.bookmark.title}  {DIM_SGR}{result.bookmark.url}{RESET}" for result in results
    ]
    rows.extend(_list_rows(labels, cull.item_cursor, width, max(height - 5, 1)))
    rows.append("")
    rows.append(f" {DIM_SGR}j/k move  o open  d/x cut  e edit  m move  g go to  Esc groups{RESET}")
    return rows


def _organize_label(entry) -> str:
    marker = f"{DIM_SGR}done{RESET} " if entry.processed else ""
    kind = "[F] " if entry.item.is_folder else ""
    parts = [f"{marker}{kind}{entry.item.title}"]
    if entry.moves:
        target = entry.suggested_path + (" (new)" if entry.is_new_folder else "")
        parts.append(f"{DIM_SGR}{entry.current_path} ->{RESET} {target}")
    if entry.retags:
        parts.append(f"{DIM_SGR}tags ->{RESET} {', '.join(entry.suggested_tags) or '(none)'}")
    return "  ".join(parts)


def render_organize_results(state: AppState) -> list[str]:
    width, height = state.width, state.height
    organize = state.organize
    remaining = sum(1 for entry in organize.entries if not entry.processed)
    header = f" {HEADER_SGR}Organize{RESET}  {remaining} of {len(organize.entries)} suggestions left"
    rows = [pad_ansi_line(header, width), ""]
    labels = [_organize_label(entry) for entry in organize.entries]
    rows.extend(_list_rows(labels, organize.cursor, width, max(height - 5, 1)))
    rows.append("")
    rows.append(f" {DIM_SGR}j/k next/prev  y/Enter accept  s skip  m move  d delete  o open  Esc close{RESET}")
    return rows


def overlay(rows: list[str], box: list[str], width: int) -> list[str]:
    """Centre ``box`` over ``rows``; covered rows are blanked outside the box."""
    out = list(rows)
    top = max((len(out) - len(box)) // 2, 0)
    for offset, line in enumerate(box):
        row = top + offset
        if row >= len(out):
            break
        left = max((width - display_width(line)) // 2, 0)
        out[row] = pad_ansi_line(" " * left + line, width)
    return out


def render_frame(state: AppState, spinner_frame: int = 0) -> str:
    """Compose the full-screen frame for the current state."""
    width = max(state.width, 1)
    height = max(state.height, 1)
    body_height = max(height - 1, 1)
    # dialogs opened from a review list draw over that list
    view = state.return_mode if state.return_mode is not Mode.NORMAL else state.mode

    if state.mode is Mode.HELP:
        rows = render_help_page(width, body_height)
    elif state.mode is Mode.SEARCH:
        rows = render_search(state)
    elif view is Mode.CULL_RESULTS:
        rows = render_cull(state)
    elif view is Mode.CULL_INSPECT:
        rows = render_cull_inspect(state)
    elif view is Mode.ORGANIZE_RESULTS:
        rows = render_organize_results(state)
    else:
        rows = render_browser(state)

    rows = [pad_ansi_line(row, width) for row in rows[:body_height]]
    while len(rows) < body_height:
        rows.append(" " * width)

    box = modal_rows(state, width, spinner_frame)
    if box is not None:
        rows = overlay(rows, box, width)

    status = state.status
    left = status.text if status is not None else ""
    line = build_status_line(left, width)
    if status is not None:
        line = STATUS_SGR[status.kind] + line + RESET
    rows.append(line)
    return "\033[H" + "\r\n".join(row + "\033[K" for row in rows[:height])


__all__ = [
    "PaneView",
    "build_status_line",
    "format_item",
    "overlay",
    "render_browser",
    "render_frame",
    "render_pane",
    "render_preview",
    "selected_with_ansi",
]
