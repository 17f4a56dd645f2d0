"""Parse browser bookmark exports (``NETSCAPE-Bookmark-file-1``).

``<H3>`` names a folder whose contents follow in the next ``<DL>``;
``<A HREF ADD_DATE>`` is a bookmark in the innermost open folder. The
records returned carry provisional ids meant for ``Store.import_merge``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from html.parser import HTMLParser
from pathlib import Path

from ..errors import ImportParseFailure
from ..model import Bookmark, Folder, new_id, utc_now

logger = logging.getLogger(__name__)


def _parse_add_date(value: str | None) -> datetime:
    if not value:
        return utc_now()
    try:
        return datetime.fromtimestamp(int(value.strip()), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return utc_now()


class _BookmarkFileParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.folders: list[Folder] = []
        self.bookmarks: list[Bookmark] = []
        self.saw_list = False
        self._stack: list[str] = []
        self._pushed: list[bool] = []
        self._pending_folder: Folder | None = None
        self._in_h3 = False
        self._anchor_attrs: dict[str, str | None] | None = None
        self._text: list[str] = []

    def _current_parent(self) -> str | None:
        return self._stack[-1] if self._stack else None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "h3":
            self._in_h3 = True
            self._text = []
        elif tag == "a":
            self._anchor_attrs = {key.lower(): value for key, value in attrs}
            self._text = []
        elif tag == "dl":
            self.saw_list = True
            if self._pending_folder is not None:
                self._stack.append(self._pending_folder.id)
                self._pending_folder = None
                self._pushed.append(True)
            else:
                self._pushed.append(False)

    def handle_endtag(self, tag: str) -> None:
        if tag == "h3" and self._in_h3:
            self._in_h3 = False
            name = "".join(self._text).strip()
            if name:
                folder = Folder(id=new_id(), name=name, parent_id=self._current_parent())
                self.folders.append(folder)
                self._pending_folder = folder
        elif tag == "a" and self._anchor_attrs is not None:
            attrs = self._anchor_attrs
            self._anchor_attrs = None
            href = (attrs.get("href") or "").strip()
            if not href:
                return
            title = "".join(self._text).strip() or href
            self.bookmarks.append(
                Bookmark(
                    id=new_id(),
                    title=title,
                    url=href,
                    folder_id=self._current_parent(),
                    created_at=_parse_add_date(attrs.get("add_date")),
                )
            )
        elif tag == "dl" and self._pushed:
            if self._pushed.pop() and self._stack:
                self._stack.pop()

    def handle_data(self, data: str) -> None:
        if self._in_h3 or self._anchor_attrs is not None:
            self._text.append(data)


def parse_html_bookmarks(text: str) -> tuple[list[Folder], list[Bookmark]]:
    """Return ``(folders, bookmarks)`` parsed from bookmark-file markup.

    Parents always precede children in the folder list.
    """
    parser = _BookmarkFileParser()
    try:
        parser.feed(text)
        parser.close()
    except Exception as exc:
        raise ImportParseFailure(f"Failed to parse bookmark file: {exc}") from exc
    if not parser.saw_list and not parser.bookmarks:
        raise ImportParseFailure("Not a bookmark file: no <DL> list found")
    logger.info("parsed %d folders, %d bookmarks", len(parser.folders), len(parser.bookmarks))
    return parser.folders, parser.bookmarks


def read_html_bookmarks(path: Path) -> tuple[list[Folder], list[Bookmark]]:
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise ImportParseFailure(f"Failed to read {path}: {exc}") from exc
    return parse_html_bookmarks(raw.decode("utf-8", errors="replace"))
