"""Main interactive event loop for the terminal UI.

Coordinates rendering, input decoding, background results and persistence.
This loop is wiring only; behavior lives in ``controller.handle_event``.
"""

from __future__ import annotations

import logging
import shutil
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..ai import AIClient
from ..culler import check_urls
from ..errors import StorageFailure
from ..input.reader import read_key
from ..model import Store
from .. import system
from ..render import render_frame
from .caches import default_caches
from .config import Config
from .controller import ControllerServices, KeyEvent, ResizeEvent, handle_event
from .navigation import refresh_items
from .requests import BackgroundTasks
from .state import AppState
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 100
    spinner_frame_seconds: float = 0.12


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected operations used by ``run_main_loop``."""

    read_key: Callable[[int], str]
    write_frame: Callable[[str], None]
    terminal_size: Callable[[], tuple[int, int]]
    save_store: Callable[[Store], None]


def flush_store(state: AppState, save_store: Callable[[Store], None], force: bool = False) -> bool:
    """Persist the store when a batch of events changed it.

    A failed save keeps the in-memory state and marks it unsaved. It is
    retried after the next store change, or when ``force`` is set on quit,
    never on idle ticks.
    """
    if not state.store_dirty:
        return True
    if not force and state.failed_save_version == state.store_version:
        return False
    try:
        save_store(state.store)
    except StorageFailure as exc:
        logger.error("save failed: %s", exc)
        state.failed_save_version = state.store_version
        state.unsaved = True
        state.set_error(f"Save failed: {exc}")
        return False
    state.store_dirty = False
    state.failed_save_version = None
    state.unsaved = False
    return True


def run_main_loop(
    state: AppState,
    tasks: BackgroundTasks,
    services: ControllerServices,
    callbacks: RuntimeLoopCallbacks,
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
) -> None:
    """Run until a quit action occurs; the terminal must already be raw."""
    ops = callbacks
    spinner_frame = 0
    while True:
        width, height = ops.terminal_size()
        if (width, height) != (state.width, state.height):
            handle_event(state, ResizeEvent(width, height), services)

        for result in tasks.drain_results():
            handle_event(state, result, services)

        if state.loading.request_id is not None:
            next_frame = int(time.monotonic() / timing.spinner_frame_seconds)
            if next_frame != spinner_frame:
                spinner_frame = next_frame
                state.dirty = True

        if state.dirty:
            ops.write_frame(render_frame(state, spinner_frame))
            state.dirty = False

        key = ops.read_key(timing.key_timeout_ms)
        if key:
            if handle_event(state, KeyEvent(key), services):
                break
        flush_store(state, ops.save_store)

    flush_store(state, ops.save_store, force=True)


def build_services(tasks: BackgroundTasks, ai: AIClient) -> ControllerServices:
    def check_links(bookmarks, exclude_domains, on_progress=None):
        return check_urls(bookmarks, exclude_domains, on_progress=on_progress)

    cull_cache, organize_cache = default_caches()

    return ControllerServices(
        submit_task=tasks.submit,
        open_url=system.open_url,
        read_clipboard=system.read_clipboard,
        write_clipboard=system.write_clipboard,
        suggest_bookmark=ai.suggest_bookmark,
        suggest_organize=ai.suggest_organize,
        check_links=check_links,
        cull_cache=cull_cache,
        organize_cache=organize_cache,
    )


def run_app(storage, config: Config) -> None:
    """Load the collection and run the interactive session until quit."""
    store = storage.load()
    state = AppState(store=store, config=config, confirm_delete=config.confirm_delete)
    state.browser.sort_mode = config.sort_mode
    refresh_items(state)

    tasks = BackgroundTasks()
    services = build_services(tasks, AIClient())
    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd)

    def terminal_size() -> tuple[int, int]:
        size = shutil.get_terminal_size((80, 24))
        return size.columns, size.lines

    callbacks = RuntimeLoopCallbacks(
        read_key=lambda timeout_ms: read_key(stdin_fd, timeout_ms=timeout_ms),
        write_frame=terminal.write_frame,
        terminal_size=terminal_size,
        save_store=storage.save,
    )
    logger.info("interactive session started: %d folders, %d bookmarks", len(store.folders), len(store.bookmarks))
    with terminal.raw_mode():
        run_main_loop(state, tasks, services, callbacks)
    if state.unsaved:
        raise StorageFailure("Some changes could not be saved")
