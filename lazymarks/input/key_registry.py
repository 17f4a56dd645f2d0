"""Key-combo registry used by every mode handler.

Mode handlers build one registry per focus (browser pane, pinned pane,
global keys) and dispatch decoded key tokens or completed chords to it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool | None]


class KeyComboRegistry:
    """Small key-dispatch table with optional key normalization strategy."""

    def __init__(self, normalize: Callable[[str], str] | None = None) -> None:
        """Create an empty table; ``normalize`` folds tokens before lookup."""
        self._normalize = normalize if normalize is not None else self._identity
        self._handlers: dict[str, Callable[[], bool | None]] = {}

    @staticmethod
    def _identity(key: str) -> str:
        """Exact-match lookup: tokens such as ``"G"`` and ``"g"`` stay distinct."""
        return key

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding; a later binding for the same token wins."""
        for combo in binding.combos:
            self._handlers[self._normalize(combo)] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        """Register multiple bindings and return ``self`` for fluent usage."""
        for binding in bindings:
            self.register_binding(binding)
        return self

    def bind(self, combos: tuple[str, ...], handler: Callable[[], bool | None]) -> KeyComboRegistry:
        """Shorthand for bindings built in a loop, like the ``1``-``9`` pin keys."""
        return self.register_binding(KeyComboBinding(combos, handler))

    def handles(self, key: str) -> bool:
        """Return whether ``key`` (or a chord name like ``"gg"``) is bound."""
        return self._normalize(key) in self._handlers

    def dispatch(self, key: str) -> bool | None:
        """Run the action bound to ``key``.

        Returns ``None`` when the key is unbound so callers can fall through
        to the next registry. Actions that return nothing count as handled.
        """
        handler = self._handlers.get(self._normalize(key))
        if handler is None:
            return None
        result = handler()
        return True if result is None else result
