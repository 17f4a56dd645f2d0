"""Tests for the interactive reducer.

Drives ``handle_event`` with key sequences and fake services, checking
navigation, chords, clipboard flows, dialogs and background requests.
"""

from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from lazymarks.ai import OrganizeSuggestion, Suggestion
from lazymarks.culler import LinkResult, LinkStatus
from lazymarks.errors import ExternalServiceFailure
from lazymarks.model import Bookmark, Folder, Store
from lazymarks.model.paths import find_folder_by_path
from lazymarks.runtime.caches import default_caches
from lazymarks.runtime.controller import ControllerServices, KeyEvent, ResizeEvent, handle_event
from lazymarks.runtime.navigation import display_items, refresh_items, selected_item
from lazymarks.runtime.requests import TaskResult
from lazymarks.runtime.state import AppState, MessageKind, Mode, Pane

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeServices:
    def __init__(self) -> None:
        self.submitted: list[tuple[int, str, object]] = []
        self.opened: list[str] = []
        self.clipboard = ""
        self.copied: list[str] = []
        self.open_error: Exception | None = None
        self.link_results: list[LinkResult] = []
        self.organize_suggestions: dict[str, OrganizeSuggestion] = {}
        self.organize_error: Exception | None = None

    def submit_task(self, kind, work) -> int:
        request_id = len(self.submitted) + 1
        self.submitted.append((request_id, kind, work))
        return request_id

    def open_url(self, url: str) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened.append(url)

    def read_clipboard(self) -> str:
        return self.clipboard

    def write_clipboard(self, text: str) -> None:
        self.copied.append(text)

    def check_links(self, bookmarks, excludes, on_progress=None) -> list[LinkResult]:
        if on_progress is not None:
            on_progress(len(bookmarks), len(bookmarks))
        return list(self.link_results)

    def suggest_organize(self, title, url, current_path, tags, is_folder, context) -> OrganizeSuggestion:
        if self.organize_error is not None:
            raise self.organize_error
        return self.organize_suggestions.get(title, OrganizeSuggestion(current_path, False, list(tags), "low"))

    def build(self, cull_cache=None, organize_cache=None) -> ControllerServices:
        return ControllerServices(
            submit_task=self.submit_task,
            open_url=self.open_url,
            read_clipboard=self.read_clipboard,
            write_clipboard=self.write_clipboard,
            suggest_bookmark=lambda url, context: Suggestion("unused", "/", []),
            suggest_organize=self.suggest_organize,
            check_links=self.check_links,
            now=lambda: NOW,
            cull_cache=cull_cache,
            organize_cache=organize_cache,
        )


def _store() -> Store:
    return Store(
        folders=[
            Folder(id="dev", name="Dev"),
            Folder(id="react", name="React", parent_id="dev"),
            Folder(id="news", name="News"),
        ],
        bookmarks=[
            Bookmark(id="docs", title="React Docs", url="https://react.dev", folder_id="react", tags=["react"]),
            Bookmark(id="router", title="Router", url="https://reactrouter.com", folder_id="react"),
            Bookmark(id="hn", title="Hacker News", url="https://news.ycombinator.com"),
            Bookmark(id="lobste", title="Lobsters", url="https://lobste.rs"),
        ],
    )


class ControllerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.fake = FakeServices()
        self.services = self.fake.build()
        self.state = AppState(store=_store())
        refresh_items(self.state)

    def press(self, *keys: str) -> None:
        for key in keys:
            handle_event(self.state, KeyEvent(key), self.services)

    def type_text(self, text: str) -> None:
        self.press(*text)

    def titles(self) -> list[str]:
        return [item.title for item in self.state.browser.items]

    def _finish(self, value=None, error=None, request_id=None) -> None:
        rid, kind, _ = self.fake.submitted[-1]
        handle_event(
            self.state,
            TaskResult(request_id if request_id is not None else rid, kind, value=value, error=error),
            self.services,
        )

    def _run(self) -> None:
        """Run the last submitted work inline and deliver its result."""
        _, _, work = self.fake.submitted[-1]
        try:
            value = work()
        except Exception as exc:
            self._finish(error=exc)
        else:
            self._finish(value=value)


class NavigationTests(ControllerTestCase):
    def test_cursor_clamps_without_wrapping(self) -> None:
        self.press("k")
        self.assertEqual(self.state.browser.cursor, 0)
        self.press("j", "j", "j", "j", "j", "j")
        self.assertEqual(self.state.browser.cursor, 3)

    def test_chord_cancelled_by_other_key(self) -> None:
        self.press("j", "j", "g", "j")

        self.assertEqual(self.state.browser.cursor, 3)
        self.assertIsNone(self.state.chord_pending)

    def test_gg_and_G(self) -> None:
        self.press("G")
        self.assertEqual(self.state.browser.cursor, 3)
        self.press("g", "g")
        self.assertEqual(self.state.browser.cursor, 0)

    def test_enter_and_leave_folders(self) -> None:
        self.press("l")
        self.assertEqual(self.state.browser.current_folder_id, "dev")
        self.assertEqual(self.state.browser.folder_stack, [])
        self.press("ENTER")
        self.assertEqual(self.state.browser.current_folder_id, "react")
        self.assertEqual(self.state.browser.folder_stack, ["dev"])
        self.assertEqual(self.titles(), ["React Docs", "Router"])

        self.press("h")
        self.assertEqual(self.state.browser.current_folder_id, "dev")
        self.press("ESC")
        self.assertIsNone(self.state.browser.current_folder_id)
        self.assertEqual(self.state.browser.cursor, 0)

    def test_open_bookmark_stamps_visit_and_marks_dirty(self) -> None:
        self.press("G", "ENTER")

        self.assertEqual(self.fake.opened, ["https://lobste.rs"])
        self.assertEqual(self.state.store.get_bookmark("lobste").visited_at, NOW)
        self.assertTrue(self.state.store_dirty)

    def test_open_failure_becomes_error_status(self) -> None:
        self.fake.open_error = ExternalServiceFailure("Failed to open URL: no browser available")

        self.press("G", "l")

        self.assertEqual(self.state.status.kind, MessageKind.ERROR)
        self.assertIsNone(self.state.store.get_bookmark("lobste").visited_at)
        self.assertFalse(self.state.quit)

    def test_quit_keys(self) -> None:
        self.press("q")
        self.assertTrue(self.state.quit)

    def test_q_types_in_text_input(self) -> None:
        self.press("a", "q")

        self.assertFalse(self.state.quit)
        self.assertEqual(self.state.modal.title.value, "q")

    def test_resize_updates_dimensions(self) -> None:
        handle_event(self.state, ResizeEvent(120, 40), self.services)

        self.assertEqual((self.state.width, self.state.height), (120, 40))

    def test_sort_cycles(self) -> None:
        self.press("o")
        self.assertEqual(self.state.status.text, "Sort: A-Z")
        self.assertEqual(self.titles()[2:], ["Hacker News", "Lobsters"])


class FilterAndSearchTests(ControllerTestCase):
    def test_filter_lists_folders_before_bookmarks(self) -> None:
        self.state = AppState(
            store=Store(
                folders=[Folder(id="notes-f", name="Old notes archive")],
                bookmarks=[Bookmark(id="notes-b", title="notes", url="https://notes.example")],
            )
        )
        refresh_items(self.state)

        self.press("/")
        self.type_text("notes")

        self.assertEqual([item.id for item in display_items(self.state)], ["notes-f", "notes-b"])

    def test_filter_is_sticky_until_folder_change(self) -> None:
        self.press("/")
        self.type_text("lob")
        self.press("ENTER")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.search.filter_query, "lob")
        self.assertEqual(selected_item(self.state).id, "lobste")

    def test_entering_folder_clears_filter(self) -> None:
        self.press("/")
        self.type_text("dev")
        self.press("ENTER", "l")

        self.assertEqual(self.state.browser.current_folder_id, "dev")
        self.assertEqual(self.state.search.filter_query, "")

    def test_backspace_on_empty_filter_clears_it(self) -> None:
        self.press("/", "x", "BACKSPACE")
        self.assertEqual(self.state.mode, Mode.FILTER)
        self.press("BACKSPACE")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.search.filter_query, "")

    def test_search_navigates_to_result(self) -> None:
        self.press("s")
        self.type_text("router")
        self.assertEqual(self.state.search.matches[0].id, "router")
        self.press("ENTER")

        browser = self.state.browser
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(browser.current_folder_id, "react")
        self.assertEqual(browser.folder_stack, ["dev"])
        self.assertEqual(selected_item(self.state).id, "router")

    def test_search_escape_leaves_location(self) -> None:
        self.press("s", "r", "ESC")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertIsNone(self.state.browser.current_folder_id)


class ClipboardFlowTests(ControllerTestCase):
    def _use_root_bookmarks(self, *titles: str) -> None:
        self.state = AppState(
            store=Store(bookmarks=[Bookmark(id=t, title=t, url=f"https://{t}.example") for t in titles])
        )
        refresh_items(self.state)

    def _assert_pasted_after(self, anchor_id: str) -> None:
        order = [b.id for b in self.state.store.children_bookmarks(None)]
        pasted = selected_item(self.state)
        self.assertNotIn(pasted.id, {"apple", "banana", "apricot", "zebra", "mango"})
        self.assertEqual(order.index(pasted.id), order.index(anchor_id) + 1)

    def test_paste_under_filter_lands_after_selection(self) -> None:
        self._use_root_bookmarks("apple", "banana", "apricot")
        self.press("/")
        self.type_text("ap")
        self.press("ENTER")
        self.assertNotIn("banana", [item.id for item in display_items(self.state)])

        self.press("y", "y", "j")
        anchor = selected_item(self.state).id
        self.press("p")

        self._assert_pasted_after(anchor)
        self.assertEqual(len(self.state.store.bookmarks), 4)

    def test_paste_under_alpha_sort_lands_after_selection(self) -> None:
        self._use_root_bookmarks("zebra", "apple", "mango")
        self.press("o")
        self.assertEqual(self.titles(), ["apple", "mango", "zebra"])

        self.press("y", "y", "p")

        self._assert_pasted_after("apple")
        self.assertEqual([b.title for b in self.state.store.bookmarks], ["zebra", "apple", "apple", "mango"])

    def test_cut_bookmark_then_paste_after_and_before(self) -> None:
        self.press("G", "d", "d")
        self.assertIsNone(self.state.store.find_bookmark("lobste"))
        self.assertEqual(self.state.browser.cursor, 2)

        self.press("p")
        self.assertEqual(self.titles()[2:], ["Hacker News", "Lobsters"])
        pasted = selected_item(self.state)
        self.assertEqual(pasted.title, "Lobsters")
        self.assertNotEqual(pasted.id, "lobste")

        self.press("P")
        self.assertEqual(self.titles()[2:], ["Hacker News", "Lobsters", "Lobsters"])

    def test_paste_empty_buffer(self) -> None:
        self.press("p")

        self.assertEqual(self.state.status.text, "Nothing to paste")
        self.assertFalse(self.state.store_dirty)

    def test_folder_cut_needs_confirmation(self) -> None:
        self.press("d", "d")
        self.assertEqual(self.state.mode, Mode.CONFIRM_DELETE)
        self.press("n")
        self.assertIsNotNone(self.state.store.find_folder("dev"))

        self.press("x", "y")
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertIsNone(self.state.store.find_folder("dev"))
        self.assertEqual(self.titles(), ["News", "Hacker News", "Lobsters"])

    def test_confirmation_toggle_skips_dialog(self) -> None:
        self.press("c", "x")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertIsNone(self.state.store.find_folder("dev"))

    def test_yank_folder_pastes_shallow_copy(self) -> None:
        self.press("y", "y", "j", "l", "p")

        copies = [f for f in self.state.store.folders if f.name == "Dev" and f.id != "dev"]
        self.assertEqual(len(copies), 1)
        self.assertEqual(copies[0].parent_id, "news")
        self.assertEqual(self.state.store.children_folders(copies[0].id), [])


class DialogTests(ControllerTestCase):
    def test_add_bookmark_in_current_folder(self) -> None:
        self.press("l", "a")
        self.type_text("PyPI")
        self.press("TAB")
        self.type_text("https://pypi.org")
        self.press("ENTER")

        added = next(b for b in self.state.store.bookmarks if b.title == "PyPI")
        self.assertEqual(added.folder_id, "dev")
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.kind, MessageKind.SUCCESS)

    def test_empty_folder_name_keeps_dialog_open(self) -> None:
        self.press("A", "ENTER")

        self.assertEqual(self.state.mode, Mode.ADD_FOLDER)
        self.assertEqual(self.state.status.kind, MessageKind.ERROR)
        self.assertEqual(len(self.state.store.folders), 3)

    def test_escape_discards_edit(self) -> None:
        self.press("e", "CTRL_U")
        self.type_text("Renamed")
        self.press("ESC")

        self.assertEqual(self.state.store.get_folder("dev").name, "Dev")
        self.assertFalse(self.state.store_dirty)

    def test_edit_tags_with_autocomplete(self) -> None:
        self.press("G", "t")
        self.type_text("re")
        self.assertEqual(self.state.modal.tag_suggestions, ["react"])
        self.press("TAB")
        self.assertEqual(self.state.modal.tags.value, "react")
        self.type_text(", misc ,")
        self.press("ENTER")

        self.assertEqual(self.state.store.get_bookmark("lobste").tags, ["react", "misc"])

    def test_move_folder_picker_excludes_own_subtree(self) -> None:
        self.press("m")
        paths = [path for path, _ in self.state.move.picker.choices]
        self.assertEqual(paths, ["/", "/News"])
        self.press("DOWN", "ENTER")

        self.assertEqual(self.state.store.get_folder("dev").parent_id, "news")

    def test_move_bookmark_by_filtering(self) -> None:
        self.press("G", "m")
        self.type_text("react")
        self.press("ENTER")

        self.assertEqual(self.state.store.get_bookmark("lobste").folder_id, "react")

    def test_help_closes_on_any_key(self) -> None:
        self.press("?")
        self.assertEqual(self.state.mode, Mode.HELP)
        self.press("j")
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.browser.cursor, 0)


class PinnedPaneTests(ControllerTestCase):
    def test_pin_focus_and_activate_folder(self) -> None:
        self.press("l", "*", "h", "h")

        self.assertEqual([item.id for item in self.state.pinned_items], ["react"])
        self.assertEqual(self.state.focused_pane, Pane.PINNED)

        self.press("ENTER")
        self.assertEqual(self.state.focused_pane, Pane.BROWSER)
        self.assertEqual(self.state.browser.current_folder_id, "react")
        self.assertEqual(self.state.browser.folder_stack, ["dev"])

    def test_reorder_and_unpin(self) -> None:
        self.press("G", "*", "k", "*", "0")
        self.assertEqual([item.id for item in self.state.pinned_items], ["lobste", "hn"])

        self.press("J")
        self.assertEqual([item.id for item in self.state.pinned_items], ["hn", "lobste"])
        self.assertEqual(self.state.pinned_cursor, 1)

        self.press("x")
        self.assertEqual([item.id for item in self.state.pinned_items], ["hn"])

    def test_number_key_opens_nth_pinned(self) -> None:
        self.press("G", "*", "0", "1")

        self.assertEqual(self.fake.opened, ["https://lobste.rs"])


class BackgroundRequestTests(ControllerTestCase):
    def test_stale_result_after_escape_is_discarded(self) -> None:
        self.fake.clipboard = "https://example.com/article"
        self.press("L")
        self.assertEqual(self.state.mode, Mode.LOADING)
        self.press("ESC")
        self.assertEqual(self.state.mode, Mode.NORMAL)

        self._finish(value=Suggestion("Article", "/", []))

        self.assertFalse(self.state.store.has_bookmark_url("https://example.com/article"))

    def test_result_with_other_id_is_ignored(self) -> None:
        self.fake.clipboard = "https://example.com/article"
        self.press("L")

        self._finish(value=Suggestion("Article", "/", []), request_id=99)

        self.assertEqual(self.state.mode, Mode.LOADING)

    def test_read_later_success_and_fallback(self) -> None:
        self.fake.clipboard = "https://example.com/a"
        self.press("L")
        self._finish(value=Suggestion("Article A", "/", ["x"]))

        folder = find_folder_by_path(self.state.store, "/Read Later")
        saved = [b for b in self.state.store.bookmarks if b.folder_id == folder.id]
        self.assertEqual([(b.title, b.tags) for b in saved], [("Article A", ["x"])])

        self.fake.clipboard = "https://example.com/b"
        self.press("L")
        self._finish(error=ExternalServiceFailure("no key"))
        saved = [b for b in self.state.store.bookmarks if b.folder_id == folder.id]
        self.assertEqual(saved[-1].title, "https://example.com/b")

    def test_read_later_rejects_non_web_clipboard(self) -> None:
        self.fake.clipboard = "not a url"
        self.press("L")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.kind, MessageKind.ERROR)
        self.assertEqual(self.fake.submitted, [])

    def test_quick_add_confirm_creates_suggested_folder(self) -> None:
        self.fake.clipboard = "https://fastapi.tiangolo.com"
        self.press("i")
        self.assertEqual(self.state.quick_add.url.value, "https://fastapi.tiangolo.com")
        self.press("ENTER")
        self._finish(value=Suggestion("FastAPI", "/Dev/Python", ["python", "web"]))

        self.assertEqual(self.state.mode, Mode.QUICK_ADD_CONFIRM)
        self.assertEqual(self.state.quick_add.picker.selected(), ("/Dev/Python", None))
        self.press("ENTER")

        folder = find_folder_by_path(self.state.store, "/Dev/Python")
        self.assertIsNotNone(folder)
        added = self.state.store.children_bookmarks(folder.id)
        self.assertEqual([(b.title, b.tags) for b in added], [("FastAPI", ["python", "web"])])

    def test_quick_add_files_under_picked_folder_with_slash_in_name(self) -> None:
        self.state.store.add_folder(Folder(id="ab", name="a/b"))
        folder_count = len(self.state.store.folders)
        self.fake.clipboard = "https://example.com/slash"
        self.press("i", "ENTER")
        self._finish(value=Suggestion("Slash", "/News", []))

        self.press("TAB", "TAB")
        self.type_text("a/b")
        self.assertEqual(self.state.quick_add.picker.selected(), ("/a/b", "ab"))
        self.press("ENTER")

        added = self.state.store.children_bookmarks("ab")
        self.assertEqual([b.title for b in added], ["Slash"])
        self.assertEqual(len(self.state.store.folders), folder_count)
        self.assertIsNone(find_folder_by_path(self.state.store, "/a"))

    def test_quick_add_ai_failure_saves_to_review(self) -> None:
        self.press("i")
        self.type_text("https://x.example")
        self.press("ENTER")
        self._finish(error=ExternalServiceFailure("timeout"))

        folder = find_folder_by_path(self.state.store, "/To Review")
        self.assertEqual(self.state.store.children_bookmarks(folder.id)[0].url, "https://x.example")
        self.assertEqual(self.state.status.kind, MessageKind.ERROR)

    def test_organize_accept_moves_and_retags(self) -> None:
        self.press("G", "O")
        self._finish(value=OrganizeSuggestion("/News/Aggregators", True, ["links"], "high"))
        self.assertEqual(self.state.mode, Mode.ORGANIZE_CONFIRM)
        self.press("y")

        bookmark = self.state.store.get_bookmark("lobste")
        folder = find_folder_by_path(self.state.store, "/News/Aggregators")
        self.assertEqual(bookmark.folder_id, folder.id)
        self.assertEqual(bookmark.tags, ["links"])

    def test_cull_with_healthy_links(self) -> None:
        self.press("C")
        self._finish(value=[])

        self.assertEqual(self.state.status.text, "All bookmarks healthy!")

    def test_organize_failure_on_every_item_is_reported(self) -> None:
        self.fake.organize_error = ExternalServiceFailure("no API key")
        self.press("O")
        self._run()

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.kind, MessageKind.ERROR)
        self.assertIn("no API key", self.state.status.text)


class CullFlowTests(ControllerTestCase):
    def setUp(self) -> None:
        super().setUp()
        store = self.state.store
        self.fake.link_results = [
            LinkResult(store.get_bookmark("docs"), LinkStatus.UNREACHABLE, error="Timeout"),
            LinkResult(store.get_bookmark("hn"), LinkStatus.DEAD, 404),
            LinkResult(store.get_bookmark("lobste"), LinkStatus.UNREACHABLE, error="Timeout"),
            LinkResult(store.get_bookmark("router"), LinkStatus.HEALTHY, 200),
        ]

    def check(self) -> None:
        self.press("C")
        self._run()

    def test_results_are_grouped_dead_first(self) -> None:
        self.check()

        cull = self.state.cull
        self.assertEqual(self.state.mode, Mode.CULL_RESULTS)
        self.assertEqual([g.label for g in cull.groups], ["DEAD", "Timeout"])
        self.assertEqual([r.bookmark.id for r in cull.groups[1].results], ["docs", "lobste"])
        self.assertEqual(self.state.status.text, "3 problem links in 2 groups")

    def test_progress_counter_follows_the_check(self) -> None:
        self.press("C")
        progress = self.state.loading.progress
        self.assertEqual(progress.snapshot(), (0, 4))
        self.assertEqual(self.state.loading.label, "Checking 4 links")

        self._run()

        self.assertEqual(progress.snapshot(), (4, 4))
        self.assertIsNone(self.state.loading.progress)

    def test_cut_from_inspect_uses_the_buffer(self) -> None:
        self.check()
        self.press("j", "ENTER")
        self.assertEqual(self.state.mode, Mode.CULL_INSPECT)

        self.press("j", "x")

        self.assertIsNone(self.state.store.find_bookmark("lobste"))
        self.assertEqual(self.state.clipboard.item.id, "lobste")
        self.assertEqual(self.state.mode, Mode.CULL_INSPECT)
        self.assertEqual([r.bookmark.id for r in self.state.cull.groups[1].results], ["docs"])

        self.press("d")
        self.assertEqual(self.state.mode, Mode.CULL_RESULTS)
        self.assertEqual([g.label for g in self.state.cull.groups], ["DEAD"])

        self.press("ENTER", "x")
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.text, "Cut: Hacker News. Cull complete!")

    def test_delete_group_skips_the_buffer(self) -> None:
        self.check()
        self.press("j", "d")

        store = self.state.store
        self.assertIsNone(store.find_bookmark("docs"))
        self.assertIsNone(store.find_bookmark("lobste"))
        self.assertTrue(self.state.clipboard.is_empty())
        self.assertEqual(self.state.mode, Mode.CULL_RESULTS)
        self.assertEqual(self.state.cull.group_cursor, 0)
        self.assertEqual(self.state.status.text, "Deleted 2 bookmarks")
        self.assertTrue(self.state.store_dirty)

        self.press("d")
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.text, "Deleted 1 bookmarks. Cull complete!")

    def test_edit_from_inspect_returns_to_inspect(self) -> None:
        self.check()
        self.press("ENTER", "e")
        self.assertEqual(self.state.mode, Mode.EDIT_BOOKMARK)
        self.assertEqual(self.state.modal.title.value, "Hacker News")

        self.type_text(" (archive)")
        self.press("ENTER")

        self.assertEqual(self.state.mode, Mode.CULL_INSPECT)
        self.assertEqual(self.state.store.get_bookmark("hn").title, "Hacker News (archive)")
        self.assertEqual(self.state.cull.current_result().bookmark.title, "Hacker News (archive)")

        self.press("e", "ESC")
        self.assertEqual(self.state.mode, Mode.CULL_INSPECT)
        self.assertEqual(self.state.return_mode, Mode.NORMAL)

    def test_move_from_inspect_returns_to_inspect(self) -> None:
        self.check()
        self.press("ENTER", "m")
        self.type_text("news")
        self.press("ENTER")

        self.assertEqual(self.state.store.get_bookmark("hn").folder_id, "news")
        self.assertEqual(self.state.mode, Mode.CULL_INSPECT)

    def test_go_to_leaves_the_results(self) -> None:
        self.check()
        self.press("j", "ENTER", "g")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.browser.current_folder_id, "react")
        self.assertEqual(selected_item(self.state).id, "docs")
        self.assertEqual(self.state.cull.groups, [])


class CullCacheFlowTests(ControllerTestCase):
    def setUp(self) -> None:
        super().setUp()
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.cull_cache, self.organize_cache = default_caches(Path(tmp.name))
        self.services = self.fake.build(cull_cache=self.cull_cache, organize_cache=self.organize_cache)
        self.fake.link_results = [LinkResult(self.state.store.get_bookmark("hn"), LinkStatus.DEAD, 404)]

    def test_fresh_check_writes_the_cache(self) -> None:
        self.press("C")
        self._run()

        results, saved_at = self.cull_cache.load(self.state.store)
        self.assertEqual([r.bookmark.id for r in results], ["hn"])
        self.assertEqual(saved_at, NOW)

    def test_menu_offers_cached_results(self) -> None:
        self.cull_cache.save(self.fake.link_results, NOW)

        self.press("C")
        self.assertEqual(self.state.mode, Mode.CULL_MENU)
        self.assertEqual(len(self.state.cull.cached), 1)
        self.press("j", "ENTER")

        self.assertEqual(self.fake.submitted, [])
        self.assertEqual(self.state.mode, Mode.CULL_RESULTS)
        self.assertEqual(self.state.cull.groups[0].results[0].bookmark.id, "hn")

    def test_menu_fresh_option_runs_a_new_check(self) -> None:
        self.cull_cache.save(self.fake.link_results, NOW)

        self.press("C", "ENTER")

        self.assertEqual(self.state.mode, Mode.LOADING)
        self.assertEqual(self.fake.submitted[-1][1], "cull")

    def test_cached_results_skip_deleted_bookmarks(self) -> None:
        self.cull_cache.save(self.fake.link_results, NOW)
        self.state.store.remove_bookmark("hn")

        self.press("C", "2")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.text, "All bookmarks healthy!")

    def test_unreadable_cache_falls_back_to_fresh_check(self) -> None:
        self.cull_cache.path.parent.mkdir(parents=True, exist_ok=True)
        self.cull_cache.path.write_text("{broken", encoding="utf-8")

        with self.assertLogs("lazymarks.runtime.controller", level="WARNING"):
            self.press("C")

        self.assertEqual(self.state.mode, Mode.LOADING)

    def test_organize_menu_reuses_suggestions_for_the_folder(self) -> None:
        self.fake.organize_suggestions["Router"] = OrganizeSuggestion("/News", False, [], "high")
        self.press("O")
        self._run()
        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.press("ESC")

        self.press("O")
        self.assertEqual(self.state.mode, Mode.ORGANIZE_MENU)
        self.press("2")

        self.assertEqual(len(self.fake.submitted), 1)
        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.assertEqual([e.item.id for e in self.state.organize.entries], ["router"])

    def test_organize_menu_not_shown_for_another_folder(self) -> None:
        self.organize_cache.save([], NOW)
        self.press("j", "O")

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.text, "No items to organize")


class FolderOrganizeTests(ControllerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.fake.organize_suggestions = {
            "React Docs": OrganizeSuggestion("/Docs", True, ["react", "docs"], "high"),
            "Router": OrganizeSuggestion("/Dev/React", False, ["routing"], "medium"),
        }

    def analyze(self) -> None:
        self.press("O")
        self.assertEqual(self.fake.submitted[-1][1], "organize_folder")
        self._run()

    def test_folder_items_are_analyzed_recursively(self) -> None:
        self.press("O")
        self.assertEqual(self.state.loading.label, "Analyzing 3 items in Dev")
        self._run()

        entries = self.state.organize.entries
        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.assertEqual([e.item.id for e in entries], ["docs", "router"])
        self.assertTrue(entries[0].moves and entries[0].retags)
        self.assertFalse(entries[1].moves)

    def test_accept_then_skip(self) -> None:
        self.analyze()
        self.press("y")

        store = self.state.store
        docs = store.get_bookmark("docs")
        self.assertEqual(docs.folder_id, find_folder_by_path(store, "/Docs").id)
        self.assertEqual(docs.tags, ["react", "docs"])
        self.assertEqual(self.state.status.text, "Moved (new folder) + tagged: React Docs")
        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.assertEqual(self.state.organize.cursor, 1)

        self.press("s")
        self.assertEqual(store.get_bookmark("router").tags, [])
        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.organize.entries, [])

    def test_move_marks_entry_done_and_delete_removes(self) -> None:
        self.fake.organize_suggestions["React Docs"] = OrganizeSuggestion("/News", False, [], "high")
        self.analyze()

        self.press("m")
        self.assertEqual(self.state.mode, Mode.MOVE)
        self.assertEqual(self.state.move.picker.selected(), ("/News", "news"))
        self.press("ENTER")

        self.assertEqual(self.state.store.get_bookmark("docs").folder_id, "news")
        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.assertTrue(self.state.organize.entries[0].processed)

        self.press("d")
        self.assertIsNone(self.state.store.find_bookmark("router"))
        self.assertTrue(self.state.clipboard.is_empty())
        self.assertEqual(self.state.mode, Mode.NORMAL)

    def test_escape_from_move_returns_to_results(self) -> None:
        self.analyze()
        self.press("m", "ESC")

        self.assertEqual(self.state.mode, Mode.ORGANIZE_RESULTS)
        self.assertFalse(self.state.organize.entries[0].processed)

    def test_navigation_skips_processed_entries(self) -> None:
        self.fake.organize_suggestions["React"] = OrganizeSuggestion("/News", False, [], "high")
        self.analyze()
        self.assertEqual([e.item.id for e in self.state.organize.entries], ["react", "docs", "router"])

        self.press("j", "s")
        self.assertEqual(self.state.organize.cursor, 2)
        self.press("k")
        self.assertEqual(self.state.organize.cursor, 0)

    def test_well_organized_folder(self) -> None:
        self.fake.organize_suggestions = {}
        self.analyze()

        self.assertEqual(self.state.mode, Mode.NORMAL)
        self.assertEqual(self.state.status.text, "All items already well organized!")


if __name__ == "__main__":
    unittest.main()
