"""OS integration: default browser and system clipboard."""

from __future__ import annotations

import logging
import webbrowser

import pyperclip

from .errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


def open_url(url: str) -> None:
    try:
        opened = webbrowser.open(url, new=2)
    except webbrowser.Error as exc:
        raise ExternalServiceFailure(f"Failed to open URL: {exc}") from exc
    if not opened:
        raise ExternalServiceFailure("Failed to open URL: no browser available")
    logger.debug("opened %s", url)


def read_clipboard() -> str:
    try:
        return pyperclip.paste() or ""
    except pyperclip.PyperclipException as exc:
        raise ExternalServiceFailure(f"Failed to read clipboard: {exc}") from exc


def write_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ExternalServiceFailure(f"Failed to copy to clipboard: {exc}") from exc
