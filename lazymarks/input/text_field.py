"""Single-line editable text buffer used by every input mode."""

from __future__ import annotations

from dataclasses import dataclass

EDIT_KEYS = frozenset({"BACKSPACE", "CTRL_U", "LEFT", "RIGHT"})


def is_printable_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


@dataclass
class TextField:
    """Text with a cursor and a character limit."""

    value: str = ""
    limit: int = 100
    cursor: int = -1

    def __post_init__(self) -> None:
        self.value = self.value[: self.limit]
        if self.cursor < 0 or self.cursor > len(self.value):
            self.cursor = len(self.value)

    def set(self, value: str) -> None:
        self.value = value[: self.limit]
        self.cursor = len(self.value)

    def handle_key(self, key: str) -> bool:
        """Apply an editing key; return whether ``key`` was consumed."""
        if is_printable_key(key):
            if len(self.value) >= self.limit:
                return True
            self.value = self.value[: self.cursor] + key + self.value[self.cursor :]
            self.cursor += 1
            return True
        if key == "BACKSPACE":
            if self.cursor > 0:
                self.value = self.value[: self.cursor - 1] + self.value[self.cursor :]
                self.cursor -= 1
            return True
        if key == "CTRL_U":
            self.value = ""
            self.cursor = 0
            return True
        if key == "LEFT":
            self.cursor = max(0, self.cursor - 1)
            return True
        if key == "RIGHT":
            self.cursor = min(len(self.value), self.cursor + 1)
            return True
        return False

    def render(self, focused: bool = True) -> str:
        """Return value with a reverse-video cursor cell when focused."""
        if not focused:
            return self.value
        before = self.value[: self.cursor]
        at = self.value[self.cursor : self.cursor + 1] or " "
        after = self.value[self.cursor + 1 :]
        return f"{before}\033[7m{at}\033[27m{after}"
