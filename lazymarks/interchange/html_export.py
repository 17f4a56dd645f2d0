"""Write the collection as a browser-importable bookmark file."""

from __future__ import annotations

import html
from datetime import date
from pathlib import Path

from ..errors import StorageFailure
from ..model import Store

INDENT = "    "


def default_export_path(today: date | None = None) -> Path:
    stamp = (today or date.today()).isoformat()
    return Path.home() / "Downloads" / f"bookmarks-export-{stamp}.html"


def export_html(store: Store) -> str:
    out = [
        "<!DOCTYPE NETSCAPE-Bookmark-file-1>",
        '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">',
        "<TITLE>Bookmarks</TITLE>",
        "<H1>Bookmarks</H1>",
        "<DL><p>",
    ]

    def write_items(parent_id: str | None, depth: int) -> None:
        prefix = INDENT * depth
        for folder in store.children_folders(parent_id):
            out.append(f"{prefix}<DT><H3>{html.escape(folder.name)}</H3>")
            out.append(f"{prefix}<DL><p>")
            write_items(folder.id, depth + 1)
            out.append(f"{prefix}</DL><p>")
        for bookmark in store.children_bookmarks(parent_id):
            timestamp = int(bookmark.created_at.timestamp())
            out.append(
                f'{prefix}<DT><A HREF="{html.escape(bookmark.url)}" ADD_DATE="{timestamp}">'
                f"{html.escape(bookmark.title)}</A>"
            )

    write_items(None, 1)
    out.append("</DL><p>")
    return "\n".join(out) + "\n"


def write_export(store: Store, path: Path) -> Path:
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(export_html(store), encoding="utf-8")
    except OSError as exc:
        raise StorageFailure(f"Failed to write {target}: {exc}") from exc
    return target
