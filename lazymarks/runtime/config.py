"""Persistent JSON config helpers.

Stores the quick-add folder, link-check domain exclusions, delete
confirmation and the preferred sort mode. Reads never raise:
malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir, user_data_dir

from ..model import SortMode

logger = logging.getLogger(__name__)

APP_NAME = "lazymarks"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DATA_DIR = Path(user_data_dir(APP_NAME, appauthor=False))
CACHE_DIR = Path(user_cache_dir(APP_NAME, appauthor=False))
JSON_DATA_FILENAME = "bookmarks.json"
SQLITE_DATA_FILENAME = "bookmarks.db"
DATA_PATH_ENV = "LAZYMARKS_DATA"

DEFAULT_QUICK_ADD_FOLDER = "Read Later"
DEFAULT_CULL_EXCLUDE_DOMAINS = ("github.com", "gitlab.com")


@dataclass
class Config:
    quick_add_folder: str = DEFAULT_QUICK_ADD_FOLDER
    cull_exclude_domains: list[str] = field(default_factory=lambda: list(DEFAULT_CULL_EXCLUDE_DOMAINS))
    confirm_delete: bool = True
    sort_mode: SortMode = SortMode.MANUAL

    def to_json(self) -> dict[str, object]:
        return {
            "quick_add_folder": self.quick_add_folder,
            "cull_exclude_domains": list(self.cull_exclude_domains),
            "confirm_delete": self.confirm_delete,
            "sort_mode": self.sort_mode.value,
        }


def load_config_data(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("ignoring unreadable config %s: %s", config_path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Path | None = None) -> Config:
    """Build a ``Config`` from disk, keeping defaults for invalid values."""
    data = load_config_data(path)
    config = Config()

    folder = data.get("quick_add_folder")
    if isinstance(folder, str) and folder.strip():
        config.quick_add_folder = folder.strip()

    domains = data.get("cull_exclude_domains")
    if isinstance(domains, list):
        config.cull_exclude_domains = [d.strip() for d in domains if isinstance(d, str) and d.strip()]

    confirm = data.get("confirm_delete")
    if isinstance(confirm, bool):
        config.confirm_delete = confirm

    config.sort_mode = SortMode.parse(data.get("sort_mode"))
    return config


def save_config(config: Config, path: Path | None = None) -> bool:
    """Persist ``config`` as pretty-printed JSON; return whether it was written."""
    config_path = path or CONFIG_PATH
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(config.to_json(), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", config_path, exc)
        return False
    return True


def default_data_path() -> Path:
    """Return the bookmark data file, honouring ``LAZYMARKS_DATA``.

    An existing SQLite database wins over the JSON file.
    """
    override = os.environ.get(DATA_PATH_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    sqlite_path = DATA_DIR / SQLITE_DATA_FILENAME
    if sqlite_path.exists():
        return sqlite_path
    return DATA_DIR / JSON_DATA_FILENAME
