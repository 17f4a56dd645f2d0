"""JSON file backend."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import StorageFailure
from ..model import Store
from .codec import store_from_json, store_to_json

logger = logging.getLogger(__name__)


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Store:
        """Read the store; a missing file yields an empty store."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("no data file at %s, starting empty", self.path)
            return Store()
        except OSError as exc:
            raise StorageFailure(f"Failed to read {self.path}: {exc}") from exc
        if not text.strip():
            return Store()
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise StorageFailure(f"Malformed bookmark file {self.path}: {exc}") from exc
        store = store_from_json(data)
        logger.debug("loaded %d folders, %d bookmarks", len(store.folders), len(store.bookmarks))
        return store

    def save(self, store: Store) -> None:
        """Write through a temp file and ``os.replace`` so saves are atomic."""
        payload = json.dumps(store_to_json(store), indent=2, ensure_ascii=False) + "\n"
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".bookmarks-", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StorageFailure(f"Failed to save {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.debug("saved %s", self.path)

    def reset(self) -> None:
        """Delete the backing file."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageFailure(f"Failed to remove {self.path}: {exc}") from exc
