"""Compact text description of the collection sent along with AI prompts."""

from __future__ import annotations

from ..model import Store

MAX_SAMPLE_TITLES = 3


def build_context(store: Store) -> str:
    """List folder paths with a few sample titles, then the known tags."""
    lines = ["Available folders (with sample bookmarks):"]

    def walk(parent_id: str | None, prefix: str) -> None:
        for folder in store.children_folders(parent_id):
            path = f"{prefix}/{folder.name}"
            lines.append(path)
            samples = store.children_bookmarks(folder.id)[:MAX_SAMPLE_TITLES]
            if samples:
                lines.append("  - " + ", ".join(f'"{b.title}"' for b in samples))
            walk(folder.id, path)

    walk(None, "")
    text = "\n".join(lines) + "\n"
    tags = store.all_tags()
    if tags:
        text += "\nExisting tags: " + ", ".join(tags)
    return text
