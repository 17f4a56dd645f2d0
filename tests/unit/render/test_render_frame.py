"""Tests for full-frame rendering of panes, dialogs and the status row."""

from __future__ import annotations

import unittest

from lazymarks.ansi import display_width, strip_ansi
from lazymarks.culler import LinkResult, LinkStatus, group_results
from lazymarks.model import Bookmark, BookmarkItem, Folder, Store
from lazymarks.render import build_status_line, overlay, render_frame
from lazymarks.render.help import render_help_page
from lazymarks.render.modals import draw_box
from lazymarks.runtime.navigation import enter_folder, refresh_items
from lazymarks.runtime.organize import OrganizeEntry
from lazymarks.runtime.requests import ProgressCounter
from lazymarks.runtime.state import AppState, Mode


def _state(width: int = 100, height: int = 30) -> AppState:
    dev = Folder(id="dev", name="Development")
    store = Store(
        folders=[dev, Folder(id="react", name="React", parent_id="dev")],
        bookmarks=[
            Bookmark(id="gh", title="GitHub", url="https://github.com", folder_id="dev", tags=["code"]),
            Bookmark(id="hn", title="Hacker News", url="https://news.ycombinator.com"),
        ],
    )
    state = AppState(store=store, width=width, height=height)
    refresh_items(state)
    return state


def _plain_rows(frame: str) -> list[str]:
    assert frame.startswith("\033[H")
    return [strip_ansi(row) for row in frame[len("\033[H") :].split("\r\n")]


class RenderFrameTests(unittest.TestCase):
    def test_frame_fills_terminal_exactly(self) -> None:
        state = _state()

        rows = _plain_rows(render_frame(state))

        self.assertEqual(len(rows), 30)
        for row in rows[:-1]:
            self.assertEqual(display_width(row), 100)

    def test_current_folder_items_and_preview_are_shown(self) -> None:
        state = _state()
        enter_folder(state, "dev")

        text = "\n".join(_plain_rows(render_frame(state)))

        self.assertIn("/Development", text)
        self.assertIn("React", text)
        self.assertIn("GitHub", text)

    def test_status_message_on_last_row(self) -> None:
        state = _state()
        state.set_error("Save failed: disk full")

        rows = _plain_rows(render_frame(state))

        self.assertTrue(rows[-1].startswith("Save failed: disk full"))
        self.assertTrue(rows[-1].endswith("? Help"))

    def test_add_bookmark_dialog_is_overlaid(self) -> None:
        state = _state()
        state.mode = Mode.ADD_BOOKMARK
        state.modal.title.set("My page")

        text = "\n".join(_plain_rows(render_frame(state)))

        self.assertIn("Add Bookmark", text)
        self.assertIn("My page", text)
        self.assertIn("Esc: cancel", text)

    def test_help_and_search_modes_replace_panes(self) -> None:
        state = _state()
        state.mode = Mode.HELP
        self.assertIn("press any key to close", "\n".join(_plain_rows(render_frame(state))))

        state.mode = Mode.SEARCH
        state.search.all_items = list(state.browser.items)
        state.search.matches = list(state.browser.items)
        self.assertIn("Search", _plain_rows(render_frame(state))[0])

    def test_tiny_terminal_does_not_crash(self) -> None:
        state = _state(width=10, height=3)

        rows = _plain_rows(render_frame(state))

        self.assertEqual(len(rows), 3)


    def test_cull_groups_and_inspect_views(self) -> None:
        state = _state()
        gh, hn = state.store.bookmarks
        dead = LinkResult(hn, LinkStatus.DEAD, 404)
        slow = LinkResult(gh, LinkStatus.UNREACHABLE, error="Timeout")
        state.cull.groups = group_results([slow, dead])
        state.mode = Mode.CULL_RESULTS

        text = "\n".join(_plain_rows(render_frame(state)))
        self.assertIn("2 problem links in 2 groups", text)
        self.assertIn("DEAD  1 links", text)
        self.assertIn("Timeout  1 links", text)

        state.mode = Mode.CULL_INSPECT
        text = "\n".join(_plain_rows(render_frame(state)))
        self.assertIn("[HTTP 404] Hacker News", text)

    def test_edit_dialog_from_inspect_keeps_link_list_behind(self) -> None:
        state = _state()
        state.cull.groups = group_results([LinkResult(state.store.bookmarks[1], LinkStatus.DEAD, 410)])
        state.mode = Mode.EDIT_BOOKMARK
        state.return_mode = Mode.CULL_INSPECT

        text = "\n".join(_plain_rows(render_frame(state)))

        self.assertIn("Edit Bookmark", text)
        self.assertIn("[HTTP 410] Hacker News", text)

    def test_organize_results_list(self) -> None:
        state = _state()
        gh = BookmarkItem(state.store.bookmarks[0])
        state.organize.entries = [
            OrganizeEntry(gh, "/Development", "/Code", True, ["code"], ["code", "git"]),
        ]
        state.mode = Mode.ORGANIZE_RESULTS

        text = "\n".join(_plain_rows(render_frame(state)))

        self.assertIn("1 of 1 suggestions left", text)
        self.assertIn("/Development -> /Code (new)", text)
        self.assertIn("tags -> code, git", text)

    def test_loading_shows_progress_counts(self) -> None:
        state = _state()
        state.mode = Mode.LOADING
        state.loading.label = "Checking 40 links"
        state.loading.progress = ProgressCounter(40)
        state.loading.progress.update(12, 40)

        self.assertIn("Checking 40 links (12/40)", "\n".join(_plain_rows(render_frame(state))))

    def test_cull_menu_lists_both_options(self) -> None:
        state = _state()
        state.mode = Mode.CULL_MENU
        state.cull.cached = [LinkResult(state.store.bookmarks[1], LinkStatus.DEAD, 404)]
        state.cull.menu_cursor = 1

        text = "\n".join(_plain_rows(render_frame(state)))

        self.assertIn("1. Run a fresh check", text)
        self.assertIn("2. Use cached results (1 problems)", text)


class RenderHelperTests(unittest.TestCase):
    def test_build_status_line_pads_to_width(self) -> None:
        line = build_status_line("hello", 30)

        self.assertEqual(len(line), 29)
        self.assertTrue(line.startswith("hello"))

    def test_draw_box_has_requested_width(self) -> None:
        box = draw_box("Title", ["one", "two"], 20)

        self.assertEqual(len(box), 4)
        for line in box:
            self.assertEqual(display_width(line), 20)

    def test_overlay_centres_box(self) -> None:
        rows = overlay([" " * 10] * 5, ["xx"], 10)

        self.assertEqual(rows[2], "    xx    ")

    def test_help_page_height(self) -> None:
        self.assertEqual(len(render_help_page(80, 40)), 40)


if __name__ == "__main__":
    unittest.main()
