"""Pane, modal, and text geometry.

Everything here is a pure function of terminal size and list state, so the
renderer and the key handlers agree on what is visible.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ansi import ANSI_ESCAPE_RE, RESET, char_display_width, display_width

HEIGHT_REDUCTION = 7
MIN_PANE_HEIGHT = 5
THREE_PANE_OFFSET = 8
FOUR_PANE_OFFSET = 10
MIN_PANE_WIDTH = 20
MIN_PANE_WIDTH_FOUR = 15
CONTENT_PADDING = 4
PINNED_HEADER_HEIGHT = 4

MODAL_PERCENT = 40
MODAL_PERCENT_LARGE = 50
MODAL_MIN_WIDTH = 50
MODAL_MAX_WIDTH = 80
MODAL_SCREEN_MARGIN = 4
MOVE_PICKER_MAX_VISIBLE = 8
QUICK_ADD_PICKER_MAX_VISIBLE = 5

FUZZY_LIST_PERCENT = 40
FUZZY_PREVIEW_PERCENT = 55
FUZZY_HEADER_HEIGHT = 8

ELLIPSIS = "..."

TITLE_MAX_CHARS = 100
URL_MAX_CHARS = 500
TAGS_MAX_CHARS = 200
SEARCH_MAX_CHARS = 100
FILTER_MAX_CHARS = 50


@dataclass(frozen=True)
class PaneLayout:
    width: int
    count: int


@dataclass(frozen=True)
class FuzzyLayout:
    list_width: int
    preview_width: int
    list_height: int


def pane_height(term_height: int) -> int:
    return max(term_height - HEIGHT_REDUCTION, MIN_PANE_HEIGHT)


def pane_width(term_width: int, has_pinned: bool, at_root: bool) -> PaneLayout:
    """Return per-pane width and pane count.

    A pinned column is added only away from the root; at the root the pinned
    pane replaces the (empty) parent column.
    """
    if has_pinned and not at_root:
        count = 4
        width = max((term_width - FOUR_PANE_OFFSET) // count, MIN_PANE_WIDTH_FOUR)
    else:
        count = 3
        width = max((term_width - THREE_PANE_OFFSET) // count, MIN_PANE_WIDTH)
    return PaneLayout(width=width, count=count)


def item_width(width: int) -> int:
    return max(width - CONTENT_PADDING, 1)


def visible_height(height: int, header_lines: int) -> int:
    return max(height - header_lines, 1)


def viewport_offset(selected: int, total: int, height: int) -> int:
    """Return first visible row keeping ``selected`` centred where possible."""
    if total <= height or height <= 0:
        return 0
    offset = selected - height // 2
    return max(0, min(offset, total - height))


def visible_list_window(max_visible: int, selected: int, total: int) -> tuple[int, int]:
    """Return ``(start, end)`` slice bounds for a short scrolling picker list."""
    if total <= max_visible:
        return 0, total
    start = viewport_offset(selected, total, max_visible)
    return start, start + max_visible


def modal_width(term_width: int, percent: int = MODAL_PERCENT) -> int:
    width = term_width * percent // 100
    width = max(MODAL_MIN_WIDTH, min(width, MODAL_MAX_WIDTH))
    width = min(width, term_width - MODAL_SCREEN_MARGIN)
    return max(width, 1)


def fuzzy_layout(term_width: int, term_height: int) -> FuzzyLayout:
    return FuzzyLayout(
        list_width=max(term_width * FUZZY_LIST_PERCENT // 100, 1),
        preview_width=max(term_width * FUZZY_PREVIEW_PERCENT // 100, 1),
        list_height=max(term_height - FUZZY_HEADER_HEIGHT, 1),
    )


def truncate_text(text: str, width: int) -> tuple[str, bool]:
    """Fit plain ``text`` into ``width`` display columns.

    Returns the fitted text and whether it was shortened. Shortened text ends
    with ``ELLIPSIS``; a width too small for the ellipsis yields a prefix of it.
    """
    if width <= 0:
        return "", bool(text)
    if display_width(text) <= width:
        return text, False
    ellipsis_width = len(ELLIPSIS)
    if width <= ellipsis_width:
        return ELLIPSIS[:width], True

    budget = width - ellipsis_width
    out: list[str] = []
    used = 0
    for ch in text:
        w = char_display_width(ch)
        if used + w > budget:
            break
        out.append(ch)
        used += w
    return "".join(out) + ELLIPSIS, True


def truncate_with_prefix_suffix(text: str, width: int, prefix: str = "", suffix: str = "") -> str:
    """Truncate ``text`` so ``prefix + text + suffix`` fits in ``width`` columns."""
    available = width - display_width(prefix) - display_width(suffix)
    if available <= 0:
        fitted, _ = truncate_text(prefix + suffix, width)
        return fitted
    fitted, _ = truncate_text(text, available)
    return prefix + fitted + suffix


def truncate_ansi_aware(styled: str, width: int) -> str:
    """Truncate styled text, keeping escapes and closing with a reset."""
    if width <= 0:
        return ""
    if display_width(styled) <= width:
        return styled
    if width <= len(ELLIPSIS):
        return ELLIPSIS[:width]

    budget = width - len(ELLIPSIS)
    out: list[str] = []
    used = 0
    i = 0
    n = len(styled)
    while i < n:
        if styled[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(styled, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        w = char_display_width(styled[i])
        if used + w > budget:
            break
        out.append(styled[i])
        used += w
        i += 1
    return "".join(out) + ELLIPSIS + RESET
