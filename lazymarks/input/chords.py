"""Two-key chord detection (``gg``, ``dd``, ``yy``)."""

from __future__ import annotations

CHORD_PREFIXES = frozenset({"g", "d", "y"})
CHORDS = {"g": "gg", "d": "dd", "y": "yy"}


def resolve_chord(pending: str | None, key: str) -> tuple[str | None, str | None]:
    """Advance chord state by one key.

    Returns ``(new_pending, action)``. ``action`` is a completed chord name,
    the key itself when it does not take part in a chord, or ``None`` while a
    prefix is waiting for its second key. A key that breaks a pending chord is
    delivered as its own action, or starts a new chord when it is a prefix.
    """
    if pending is not None and key == pending:
        return None, CHORDS[pending]
    if key in CHORD_PREFIXES:
        return key, None
    return None, key
