"""Exception hierarchy shared by library code and its boundaries.

Library modules raise these; the TUI reducer turns them into status messages
and the CLI turns them into exit code 1.
"""

from __future__ import annotations


class LazymarksError(Exception):
    """Base class for all expected, user-reportable failures."""


class NotFound(LazymarksError):
    """An id did not resolve to a folder or bookmark."""


class ValidationFailed(LazymarksError):
    """User input was rejected (empty name, bad URL, ...)."""


class StorageFailure(LazymarksError):
    """Loading or saving the bookmark collection failed."""


class ExternalServiceFailure(LazymarksError):
    """The AI service, browser, or OS clipboard could not be used."""


class ImportParseFailure(LazymarksError):
    """An import file could not be read or parsed."""
