"""Input-layer public API: terminal key decoding, chords and text fields."""

from .chords import resolve_chord
from .key_registry import KeyComboBinding, KeyComboRegistry
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key
from .text_field import TextField

__all__ = [
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyComboBinding",
    "KeyComboRegistry",
    "TextField",
    "read_key",
    "resolve_chord",
]
