"""Help modal content and rendering.

Stores keybinding text for the browser and pinned panes and the dialogs.
Rendering helpers here are presentation-only and side-effect free.
"""

from __future__ import annotations

from ..ansi import display_width, pad_ansi_line

_K = "\033[38;5;229m"
_H = "\033[1;38;5;81m"
_R = "\033[0m"

HELP_BROWSER_LINES: tuple[str, ...] = (
    f"{_H}BROWSE{_R}",
    f"{_K}j/k{_R} move  {_K}h/l{_R} parent/open  {_K}gg/G{_R} top/bottom",
    f"{_K}Enter{_R} open folder or bookmark  {_K}Esc{_R} back",
    f"{_K}s{_R} search everything  {_K}/{_R} filter this folder",
    f"{_K}o{_R} cycle sort  {_K}Y{_R} copy URL",
)

HELP_EDIT_LINES: tuple[str, ...] = (
    f"{_H}EDIT{_R}",
    f"{_K}a{_R} add bookmark  {_K}A{_R} add folder",
    f"{_K}e{_R} edit  {_K}t{_R} tags  {_K}m{_R} move  {_K}*{_R} pin",
    f"{_K}yy{_R} yank  {_K}dd/x{_R} cut  {_K}p/P{_R} paste after/before",
    f"{_K}c{_R} toggle delete confirmation",
)

HELP_PINNED_LINES: tuple[str, ...] = (
    f"{_H}PINNED{_R}",
    f"{_K}0/Tab{_R} focus pinned  {_K}1-9{_R} open nth",
    f"{_K}J/K{_R} reorder  {_K}dd/x/*{_R} unpin",
)

HELP_EXTRA_LINES: tuple[str, ...] = (
    f"{_H}AI + LINKS{_R}",
    f"{_K}i{_R} quick add with AI  {_K}L{_R} read later from clipboard",
    f"{_K}O{_R} organize a bookmark, or everything inside a folder",
    f"{_K}C{_R} check links (offers the last results when cached)",
    f"{_K}?{_R} help  {_K}q{_R} quit",
)

HELP_REVIEW_LINES: tuple[str, ...] = (
    f"{_H}REVIEW LISTS{_R}",
    f"links: {_K}Enter{_R} inspect group  {_K}d{_R} delete group",
    f"group: {_K}d/x{_R} cut  {_K}o{_R} open  {_K}e{_R} edit  {_K}m{_R} move  {_K}g{_R} go to",
    f"organize: {_K}y/Enter{_R} accept  {_K}s{_R} skip  {_K}m{_R} move  {_K}d{_R} delete",
)

HELP_FOOTER = "\033[2;38;5;245mpress any key to close\033[0m"


def help_lines() -> list[str]:
    out: list[str] = []
    for section in (HELP_BROWSER_LINES, HELP_EDIT_LINES, HELP_PINNED_LINES, HELP_EXTRA_LINES, HELP_REVIEW_LINES):
        out.extend(section)
        out.append("")
    out.append(HELP_FOOTER)
    return out


def render_help_page(width: int, height: int) -> list[str]:
    """Return ``height`` padded rows with the help text centred horizontally."""
    lines = help_lines()
    body_width = min(max(display_width(line) for line in lines), max(width - 4, 1))
    left = max((width - body_width) // 2, 0)
    top = max((height - len(lines)) // 2, 0)
    rows = [" " * width for _ in range(top)]
    for line in lines:
        rows.append(pad_ansi_line(" " * left + line, width))
    while len(rows) < height:
        rows.append(" " * width)
    return rows[:height]
