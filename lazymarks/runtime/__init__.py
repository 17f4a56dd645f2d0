"""Interactive session: state, reducer, persistence wiring and the loop."""

from .controller import ControllerServices, KeyEvent, ResizeEvent, handle_event
from .state import AppState, Mode, Pane

__all__ = ["AppState", "ControllerServices", "KeyEvent", "Mode", "Pane", "ResizeEvent", "handle_event"]
