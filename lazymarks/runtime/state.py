"""Application state aggregate for the interactive session.

One ``AppState`` instance holds the store, navigation, every sub-mode's
scratch state, and the pending background request. The reducer in
``lazymarks.runtime.controller`` is the only code that mutates it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from ..input.text_field import TextField
from ..layout import (
    FILTER_MAX_CHARS,
    SEARCH_MAX_CHARS,
    TAGS_MAX_CHARS,
    TITLE_MAX_CHARS,
    URL_MAX_CHARS,
)
from ..model import Item, SortMode, Store
from .clipboard import ClipboardBuffer
from .config import Config
from .requests import ProgressCounter


class Mode(enum.Enum):
    NORMAL = "normal"
    FILTER = "filter"
    SEARCH = "search"
    ADD_BOOKMARK = "add_bookmark"
    ADD_FOLDER = "add_folder"
    EDIT_FOLDER = "edit_folder"
    EDIT_BOOKMARK = "edit_bookmark"
    EDIT_TAGS = "edit_tags"
    CONFIRM_DELETE = "confirm_delete"
    MOVE = "move"
    QUICK_ADD = "quick_add"
    QUICK_ADD_CONFIRM = "quick_add_confirm"
    ORGANIZE_CONFIRM = "organize_confirm"
    ORGANIZE_MENU = "organize_menu"
    ORGANIZE_RESULTS = "organize_results"
    CULL_MENU = "cull_menu"
    CULL_RESULTS = "cull_results"
    CULL_INSPECT = "cull_inspect"
    LOADING = "loading"
    HELP = "help"

    @property
    def has_text_input(self) -> bool:
        """Whether printable keys edit a field (so ``q`` must not quit)."""
        return self in TEXT_INPUT_MODES


TEXT_INPUT_MODES = frozenset(
    {
        Mode.FILTER,
        Mode.SEARCH,
        Mode.ADD_BOOKMARK,
        Mode.ADD_FOLDER,
        Mode.EDIT_FOLDER,
        Mode.EDIT_BOOKMARK,
        Mode.EDIT_TAGS,
        Mode.MOVE,
        Mode.QUICK_ADD,
        Mode.QUICK_ADD_CONFIRM,
    }
)


class Pane(enum.Enum):
    BROWSER = "browser"
    PINNED = "pinned"


class MessageKind(enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    kind: MessageKind
    text: str


@dataclass
class BrowserNav:
    """Miller-column browse location.

    ``current_folder_id is None`` means the root. The root is never pushed on
    ``folder_stack``; the stack only ever holds real folder ids.
    """

    current_folder_id: str | None = None
    folder_stack: list[str] = field(default_factory=list)
    cursor: int = 0
    items: list[Item] = field(default_factory=list)
    sort_mode: SortMode = SortMode.MANUAL

    @property
    def at_root(self) -> bool:
        return self.current_folder_id is None

    def reset_to_root(self) -> None:
        self.current_folder_id = None
        self.folder_stack = []
        self.cursor = 0


@dataclass
class ModalState:
    """Fields shared by the add/edit dialogs and quick-add confirmation."""

    title: TextField = field(default_factory=lambda: TextField(limit=TITLE_MAX_CHARS))
    url: TextField = field(default_factory=lambda: TextField(limit=URL_MAX_CHARS))
    tags: TextField = field(default_factory=lambda: TextField(limit=TAGS_MAX_CHARS))
    focus: int = 0
    edit_item_id: str | None = None
    error: str = ""
    all_tags: list[str] = field(default_factory=list)
    tag_suggestions: list[str] = field(default_factory=list)
    tag_suggestion_idx: int = -1

    def reset(self) -> None:
        self.title.set("")
        self.url.set("")
        self.tags.set("")
        self.focus = 0
        self.edit_item_id = None
        self.error = ""
        self.all_tags = []
        self.tag_suggestions = []
        self.tag_suggestion_idx = -1


@dataclass
class SearchState:
    """Global fuzzy search plus the sticky local filter."""

    query: TextField = field(default_factory=lambda: TextField(limit=SEARCH_MAX_CHARS))
    all_items: list[Item] = field(default_factory=list)
    matches: list[Item] = field(default_factory=list)
    cursor: int = 0
    filter_field: TextField = field(default_factory=lambda: TextField(limit=FILTER_MAX_CHARS))
    filter_query: str = ""

    def reset_global(self) -> None:
        self.query.set("")
        self.all_items = []
        self.matches = []
        self.cursor = 0

    def reset_filter(self) -> None:
        self.filter_field.set("")
        self.filter_query = ""


@dataclass
class FolderPicker:
    """Filterable list of ``(path, folder_id)`` choices."""

    query: TextField = field(default_factory=lambda: TextField(limit=TITLE_MAX_CHARS))
    choices: list[tuple[str, str | None]] = field(default_factory=list)
    filtered: list[tuple[str, str | None]] = field(default_factory=list)
    index: int = 0

    def load(self, choices: list[tuple[str, str | None]], selected_path: str | None = None) -> None:
        self.query.set("")
        self.choices = list(choices)
        self.filtered = list(choices)
        self.index = 0
        if selected_path is not None:
            for idx, (path, _) in enumerate(self.filtered):
                if path == selected_path:
                    self.index = idx
                    break

    def apply_query(self) -> None:
        needle = self.query.value.casefold()
        if not needle:
            self.filtered = list(self.choices)
        else:
            self.filtered = [choice for choice in self.choices if needle in choice[0].casefold()]
        if self.index >= len(self.filtered):
            self.index = 0

    def move(self, delta: int) -> None:
        if not self.filtered:
            self.index = 0
            return
        self.index = (self.index + delta) % len(self.filtered)

    def selected(self) -> tuple[str, str | None] | None:
        if 0 <= self.index < len(self.filtered):
            return self.filtered[self.index]
        return None


@dataclass
class MoveState:
    item: Item | None = None
    picker: FolderPicker = field(default_factory=FolderPicker)
    # set when the move was started from the organize results list
    organize_entry: object | None = None


@dataclass
class QuickAddState:
    url: TextField = field(default_factory=lambda: TextField(limit=URL_MAX_CHARS))
    picker: FolderPicker = field(default_factory=FolderPicker)
    suggested_path: str = ""

    def reset(self) -> None:
        self.url.set("")
        self.picker = FolderPicker()
        self.suggested_path = ""


@dataclass
class OrganizeState:
    """Single-item confirmation plus the folder-wide results list.

    ``entries`` holds ``lazymarks.runtime.organize.OrganizeEntry`` values;
    ``cached`` is what the fresh-or-cached menu offers.
    """

    item: Item | None = None
    current_path: str = ""
    suggestion: object | None = None
    entries: list = field(default_factory=list)
    cursor: int = 0
    menu_cursor: int = 0
    cached: list = field(default_factory=list)
    cached_at: datetime | None = None
    pending_folder_id: str | None = None

    def reset_results(self) -> None:
        self.entries = []
        self.cursor = 0


@dataclass
class CullState:
    """Problem links grouped by ``lazymarks.culler.group_results``."""

    groups: list = field(default_factory=list)
    group_cursor: int = 0
    item_cursor: int = 0
    menu_cursor: int = 0
    cached: list = field(default_factory=list)
    cached_at: datetime | None = None

    def reset(self) -> None:
        self.groups = []
        self.group_cursor = 0
        self.item_cursor = 0
        self.cached = []
        self.cached_at = None

    def current_group(self):
        if 0 <= self.group_cursor < len(self.groups):
            return self.groups[self.group_cursor]
        return None

    def current_result(self):
        group = self.current_group()
        if group is not None and 0 <= self.item_cursor < len(group.results):
            return group.results[self.item_cursor]
        return None

    def problem_count(self) -> int:
        return sum(len(group.results) for group in self.groups)


@dataclass
class LoadingState:
    """Pending background request; results with another id are stale."""

    request_id: int | None = None
    kind: str = ""
    label: str = ""
    payload: dict[str, object] = field(default_factory=dict)
    progress: ProgressCounter | None = None

    def clear(self) -> None:
        self.request_id = None
        self.kind = ""
        self.label = ""
        self.payload = {}
        self.progress = None


@dataclass
class AppState:
    store: Store
    config: Config = field(default_factory=Config)
    mode: Mode = Mode.NORMAL
    return_mode: Mode = Mode.NORMAL
    browser: BrowserNav = field(default_factory=BrowserNav)
    focused_pane: Pane = Pane.BROWSER
    pinned_items: list[Item] = field(default_factory=list)
    pinned_cursor: int = 0
    chord_pending: str | None = None
    clipboard: ClipboardBuffer = field(default_factory=ClipboardBuffer)
    confirm_delete: bool = True
    pending_delete: Item | None = None
    modal: ModalState = field(default_factory=ModalState)
    search: SearchState = field(default_factory=SearchState)
    move: MoveState = field(default_factory=MoveState)
    quick_add: QuickAddState = field(default_factory=QuickAddState)
    organize: OrganizeState = field(default_factory=OrganizeState)
    cull: CullState = field(default_factory=CullState)
    loading: LoadingState = field(default_factory=LoadingState)
    status: StatusMessage | None = None
    width: int = 80
    height: int = 24
    store_dirty: bool = False
    store_version: int = 0
    failed_save_version: int | None = None
    unsaved: bool = False
    quit: bool = False
    dirty: bool = True

    def set_status(self, text: str, kind: MessageKind = MessageKind.INFO) -> None:
        self.status = StatusMessage(kind, text)
        self.dirty = True

    def set_error(self, text: str) -> None:
        self.set_status(text, MessageKind.ERROR)

    def set_success(self, text: str) -> None:
        self.set_status(text, MessageKind.SUCCESS)

    def clear_status(self) -> None:
        self.status = None

    def mark_store_changed(self) -> None:
        self.store_dirty = True
        self.store_version += 1
        self.dirty = True
