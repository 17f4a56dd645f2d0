"""Background worker for AI and link-check calls.

Workers only compute; results are queued and drained by the main loop,
which feeds them through the reducer as ``TaskResult`` events. Every
request carries an id so the reducer can drop answers nobody waits for.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskResult:
    """Completed background call delivered back to the event loop."""

    request_id: int
    kind: str
    value: object = None
    error: BaseException | None = None


class ProgressCounter:
    """Completed/total counts written by a worker and read by the loop."""

    def __init__(self, total: int = 0) -> None:
        self._lock = threading.Lock()
        self._done = 0
        self._total = total

    def update(self, done: int, total: int) -> None:
        with self._lock:
            self._done = done
            self._total = total

    def snapshot(self) -> tuple[int, int]:
        with self._lock:
            return self._done, self._total


class BackgroundTasks:
    """Run callables on daemon threads and collect their results."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_request_id = 1
        self._results: Queue[TaskResult] = Queue()

    def submit(self, kind: str, work: Callable[[], object]) -> int:
        """Start ``work`` in the background and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1

        def run() -> None:
            try:
                value = work()
            except Exception as exc:
                logger.info("background %s request %d failed: %s", kind, request_id, exc)
                self._results.put(TaskResult(request_id, kind, error=exc))
                return
            self._results.put(TaskResult(request_id, kind, value=value))

        worker = threading.Thread(target=run, name=f"lazymarks-{kind}", daemon=True)
        worker.start()
        return request_id

    def drain_results(self) -> list[TaskResult]:
        """Drain all completed results."""
        out: list[TaskResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out

    def wait_result(self, timeout: float) -> TaskResult | None:
        """Block up to ``timeout`` seconds for one result."""
        try:
            return self._results.get(timeout=timeout)
        except Empty:
            return None


__all__ = ["BackgroundTasks", "ProgressCounter", "TaskResult"]
