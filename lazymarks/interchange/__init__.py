"""Netscape bookmark-file import and export."""

from .html_export import default_export_path, export_html, write_export
from .html_import import parse_html_bookmarks, read_html_bookmarks

__all__ = [
    "default_export_path",
    "export_html",
    "parse_html_bookmarks",
    "read_html_bookmarks",
    "write_export",
]
