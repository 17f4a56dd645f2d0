"""Logging setup.

The TUI owns the terminal, so records go to a file under the user log
directory. Non-interactive commands may also echo to stderr.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from platformdirs import user_log_dir

from .config import APP_NAME

LOG_DIR = Path(user_log_dir(APP_NAME, appauthor=False))
LOG_FILENAME = "lazymarks.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, stderr: bool = False, log_dir: Path | None = None) -> None:
    """Attach handlers to the ``lazymarks`` logger (idempotent)."""
    root = logging.getLogger(APP_NAME)
    level = logging.DEBUG if verbose else logging.INFO
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    target_dir = log_dir or LOG_DIR
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        file_handler: logging.Handler = logging.FileHandler(target_dir / LOG_FILENAME, encoding="utf-8")
    except OSError:
        file_handler = logging.NullHandler()
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    if stderr and verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(stream_handler)
    root.propagate = False
