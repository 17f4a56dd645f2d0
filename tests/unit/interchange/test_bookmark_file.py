"""Tests for Netscape bookmark-file parsing and export."""

from __future__ import annotations

import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from lazymarks.errors import ImportParseFailure
from lazymarks.interchange import default_export_path, export_html, parse_html_bookmarks, read_html_bookmarks, write_export
from lazymarks.model import Bookmark, Folder, Store

BROWSER_EXPORT = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3 ADD_DATE="1700000000">Bookmarks Bar</H3>
    <DL><p>
        <DT><H3>Dev &amp; Ops</H3>
        <DL><p>
            <DT><A HREF="https://docs.python.org/" ADD_DATE="1600000000">Python docs</A>
        </DL><p>
        <DT><A HREF="https://github.com/">GitHub</A>
    </DL><p>
    <DT><A HREF="https://news.ycombinator.com/" ADD_DATE="bogus"></A>
    <DT><A>no href</A>
</DL><p>
"""


class ParseTests(unittest.TestCase):
    def test_nesting_is_preserved(self) -> None:
        folders, bookmarks = parse_html_bookmarks(BROWSER_EXPORT)

        self.assertEqual([f.name for f in folders], ["Bookmarks Bar", "Dev & Ops"])
        bar, dev = folders
        self.assertIsNone(bar.parent_id)
        self.assertEqual(dev.parent_id, bar.id)

        by_url = {b.url: b for b in bookmarks}
        self.assertEqual(len(bookmarks), 3)
        self.assertEqual(by_url["https://docs.python.org/"].folder_id, dev.id)
        self.assertEqual(by_url["https://github.com/"].folder_id, bar.id)
        self.assertIsNone(by_url["https://news.ycombinator.com/"].folder_id)

    def test_titles_and_timestamps(self) -> None:
        _, bookmarks = parse_html_bookmarks(BROWSER_EXPORT)
        by_url = {b.url: b for b in bookmarks}

        python_docs = by_url["https://docs.python.org/"]
        self.assertEqual(python_docs.title, "Python docs")
        self.assertEqual(python_docs.created_at, datetime.fromtimestamp(1600000000, tz=timezone.utc))
        hn = by_url["https://news.ycombinator.com/"]
        self.assertEqual(hn.title, "https://news.ycombinator.com/")
        self.assertIsNotNone(hn.created_at.tzinfo)

    def test_non_bookmark_file_is_rejected(self) -> None:
        with self.assertRaises(ImportParseFailure):
            parse_html_bookmarks("<html><body><p>hello</p></body></html>")

    def test_missing_file_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ImportParseFailure):
                read_html_bookmarks(Path(tmp) / "missing.html")

    def test_import_merge_skips_duplicate_urls(self) -> None:
        existing_bar = Folder(id="bar", name="Bookmarks Bar")
        store = Store(
            folders=[existing_bar],
            bookmarks=[Bookmark(id="gh", title="GitHub", url="https://github.com/", folder_id="bar")],
        )
        folders, bookmarks = parse_html_bookmarks(BROWSER_EXPORT)

        added, skipped = store.import_merge(folders, bookmarks)

        self.assertEqual((added, skipped), (2, 1))
        self.assertEqual([f.name for f in store.children_folders(None)], ["Bookmarks Bar"])
        dev = store.children_folders("bar")[0]
        self.assertEqual([b.title for b in store.children_bookmarks(dev.id)], ["Python docs"])


class ExportTests(unittest.TestCase):
    def _store(self) -> Store:
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return Store(
            folders=[Folder(id="f", name="A <b>"), Folder(id="g", name="Inner", parent_id="f")],
            bookmarks=[
                Bookmark(id="1", title="Q&A", url="https://x.example/?a=1&b=2", folder_id="g", created_at=created),
                Bookmark(id="2", title="Top", url="https://top.example", created_at=created),
            ],
        )

    def test_markup_shape(self) -> None:
        text = export_html(self._store())
        lines = text.splitlines()

        self.assertEqual(lines[0], "<!DOCTYPE NETSCAPE-Bookmark-file-1>")
        self.assertIn("    <DT><H3>A &lt;b&gt;</H3>", lines)
        self.assertIn(
            '            <DT><A HREF="https://x.example/?a=1&amp;b=2" ADD_DATE="1704067200">Q&amp;A</A>',
            lines,
        )
        self.assertEqual(lines[-1], "</DL><p>")

    def test_export_can_be_imported_again(self) -> None:
        folders, bookmarks = parse_html_bookmarks(export_html(self._store()))

        self.assertEqual([f.name for f in folders], ["A <b>", "Inner"])
        self.assertEqual(folders[1].parent_id, folders[0].id)
        self.assertEqual([(b.title, b.url) for b in bookmarks][0], ("Q&A", "https://x.example/?a=1&b=2"))
        self.assertIsNone(bookmarks[1].folder_id)

    def test_write_export_creates_parent_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = write_export(self._store(), Path(tmp) / "out" / "bookmarks.html")

            self.assertTrue(target.read_text(encoding="utf-8").startswith("<!DOCTYPE"))

    def test_default_export_path(self) -> None:
        path = default_export_path(date(2025, 2, 3))

        self.assertEqual(path.name, "bookmarks-export-2025-02-03.html")
        self.assertEqual(path.parent.name, "Downloads")


if __name__ == "__main__":
    unittest.main()
