"""Event objects and listener channels.

A listener is any object defining one or more of the callback methods
below; it is attached to every channel for which it defines at least one
callback, and callbacks it does not define are skipped.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Tuple

__all__ = [
    "Channel",
    "CHANNEL_CALLBACKS",
    "WindowState",
    "MouseEvent",
    "WheelEvent",
    "KeyEvent",
    "WindowEvent",
]


class Channel(enum.Enum):
    POINTER_BUTTON = "pointer-button"
    POINTER_MOTION = "pointer-motion"
    POINTER_WHEEL = "pointer-wheel"
    KEY = "key"
    WINDOW = "window-lifecycle"
    WINDOW_FOCUS = "window-focus"
    FOCUS = "focus"
    WINDOW_STATE = "window-state"


CHANNEL_CALLBACKS: Dict[Channel, Tuple[str, ...]] = {
    Channel.POINTER_BUTTON: (
        "mouse_pressed",
        "mouse_released",
        "mouse_clicked",
        "mouse_entered",
        "mouse_exited",
    ),
    Channel.POINTER_MOTION: ("mouse_moved", "mouse_dragged"),
    Channel.POINTER_WHEEL: ("mouse_wheel_moved",),
    Channel.KEY: ("key_pressed", "key_released", "key_typed"),
    Channel.WINDOW: (
        "window_opened",
        "window_closing",
        "window_closed",
        "window_iconified",
        "window_deiconified",
    ),
    Channel.WINDOW_FOCUS: ("window_gained_focus", "window_lost_focus"),
    Channel.FOCUS: ("focus_gained", "focus_lost"),
    Channel.WINDOW_STATE: ("window_state_changed",),
}


class WindowState(enum.Enum):
    NORMAL = "normal"
    ICONIFIED = "iconified"
    MAXIMIZED = "maximized"


@dataclass(slots=True)
class MouseEvent:
    x: int
    y: int
    button: int  # 0 for motion events
    buttons: Tuple[bool, ...]  # pressed state of left, middle, right
    ts: float


@dataclass(slots=True)
class WheelEvent:
    x: int
    y: int
    dx: float
    dy: float
    ts: float


@dataclass(slots=True)
class KeyEvent:
    key: int  # pygame key code; 0 for key_typed
    char: str  # typed text, empty when not printable
    mod: int
    ts: float


@dataclass(slots=True)
class WindowEvent:
    kind: str
    ts: float
    old_state: WindowState | None = None
    new_state: WindowState | None = None
