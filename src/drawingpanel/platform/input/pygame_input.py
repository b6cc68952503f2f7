"""Pygame event translation and listener dispatch.

ListenerDispatcher turns raw pygame events into MouseEvent/WheelEvent/
KeyEvent/WindowEvent objects and delivers them to the listeners attached
to the matching channel. It runs on the panel's repaint thread while
listeners are added from client code, so the listener table is guarded by
a lock and dispatch iterates over a snapshot.

Mouse clicks are synthesized: a release of the button that was pressed at
the same position produces mouse_clicked after mouse_released.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Tuple

import pygame as pg

from drawingpanel.core.errors import InvalidArgumentError
from drawingpanel.platform.input.events import (
    CHANNEL_CALLBACKS,
    Channel,
    KeyEvent,
    MouseEvent,
    WheelEvent,
    WindowEvent,
    WindowState,
)

__all__ = ["ListenerDispatcher", "channels_for"]

logger = logging.getLogger(__name__)

# pygame reports legacy wheel steps as buttons 4 and 5 alongside MOUSEWHEEL.
_WHEEL_BUTTONS = (4, 5)


def channels_for(listener: Any) -> List[Channel]:
    """Return the channels for which *listener* defines a callback."""
    return [
        ch
        for ch, names in CHANNEL_CALLBACKS.items()
        if any(callable(getattr(listener, n, None)) for n in names)
    ]


class ListenerDispatcher:
    def __init__(self, name: str = "DrawingPanel") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._listeners: Dict[Channel, List[Any]] = {ch: [] for ch in Channel}
        self._pos: Tuple[int, int] = (0, 0)
        self._pressed: Dict[int, Tuple[int, int]] = {}
        self._state = WindowState.NORMAL
        self._opened = False
        self._closing = False

    @property
    def window_state(self) -> WindowState:
        return self._state

    def add(self, listener: Any) -> List[Channel]:
        """Attach *listener* to each channel it implements.

        Raises:
            InvalidArgumentError: if it implements no known callback
        """
        channels = channels_for(listener)
        if not channels:
            raise InvalidArgumentError(
                f"{type(listener).__name__} implements no listener callbacks"
            )
        with self._lock:
            for ch in channels:
                if listener not in self._listeners[ch]:
                    self._listeners[ch].append(listener)
        for ch in channels:
            logger.debug("%s: added %s listener", self._name, ch.value)
        return channels

    def remove(self, listener: Any) -> None:
        with self._lock:
            for bucket in self._listeners.values():
                if listener in bucket:
                    bucket.remove(listener)

    def listeners(self, channel: Channel) -> List[Any]:
        with self._lock:
            return list(self._listeners[channel])

    def emit(self, channel: Channel, callback: str, event: Any) -> None:
        """Call *callback* on every listener of *channel* that defines it."""
        for listener in self.listeners(channel):
            fn = getattr(listener, callback, None)
            if not callable(fn):
                continue
            try:
                fn(event)
            except Exception:
                logger.exception(
                    "%s: listener %s.%s raised",
                    self._name,
                    type(listener).__name__,
                    callback,
                )

    def dispatch(self, ev: Any) -> bool:
        """Deliver one pygame event. Returns True if the window should close."""
        ts = time.monotonic()
        et = ev.type

        if et == pg.MOUSEMOTION:
            self._pos = (int(ev.pos[0]), int(ev.pos[1]))
            buttons = tuple(bool(b) for b in getattr(ev, "buttons", ()))
            me = MouseEvent(self._pos[0], self._pos[1], 0, buttons, ts)
            callback = "mouse_dragged" if any(buttons) else "mouse_moved"
            self.emit(Channel.POINTER_MOTION, callback, me)
        elif et == pg.MOUSEBUTTONDOWN:
            if ev.button in _WHEEL_BUTTONS:
                return False
            self._pos = (int(ev.pos[0]), int(ev.pos[1]))
            self._pressed[ev.button] = self._pos
            self.emit(Channel.POINTER_BUTTON, "mouse_pressed", self._mouse(ev.button, ts))
        elif et == pg.MOUSEBUTTONUP:
            if ev.button in _WHEEL_BUTTONS:
                return False
            self._pos = (int(ev.pos[0]), int(ev.pos[1]))
            pressed_at = self._pressed.pop(ev.button, None)
            me = self._mouse(ev.button, ts)
            self.emit(Channel.POINTER_BUTTON, "mouse_released", me)
            if pressed_at == self._pos:
                self.emit(Channel.POINTER_BUTTON, "mouse_clicked", me)
        elif et == pg.MOUSEWHEEL:
            we = WheelEvent(self._pos[0], self._pos[1], float(ev.x), float(ev.y), ts)
            self.emit(Channel.POINTER_WHEEL, "mouse_wheel_moved", we)
        elif et == pg.KEYDOWN:
            ke = KeyEvent(int(ev.key), getattr(ev, "unicode", ""), int(ev.mod), ts)
            self.emit(Channel.KEY, "key_pressed", ke)
        elif et == pg.KEYUP:
            ke = KeyEvent(int(ev.key), getattr(ev, "unicode", ""), int(ev.mod), ts)
            self.emit(Channel.KEY, "key_released", ke)
        elif et == pg.TEXTINPUT:
            self.emit(Channel.KEY, "key_typed", KeyEvent(0, ev.text, 0, ts))
        elif et in (pg.QUIT, pg.WINDOWCLOSE):
            if not self._closing:
                self._closing = True
                self.emit(Channel.WINDOW, "window_closing", WindowEvent("closing", ts))
            return True
        elif et == pg.WINDOWSHOWN:
            if not self._opened:
                self._opened = True
                self.emit(Channel.WINDOW, "window_opened", WindowEvent("opened", ts))
        elif et == pg.WINDOWMINIMIZED:
            self._set_state(WindowState.ICONIFIED, ts)
        elif et == pg.WINDOWMAXIMIZED:
            self._set_state(WindowState.MAXIMIZED, ts)
        elif et == pg.WINDOWRESTORED:
            self._set_state(WindowState.NORMAL, ts)
        elif et == pg.WINDOWFOCUSGAINED:
            we = WindowEvent("gained_focus", ts)
            self.emit(Channel.WINDOW_FOCUS, "window_gained_focus", we)
            self.emit(Channel.FOCUS, "focus_gained", we)
        elif et == pg.WINDOWFOCUSLOST:
            we = WindowEvent("lost_focus", ts)
            self.emit(Channel.WINDOW_FOCUS, "window_lost_focus", we)
            self.emit(Channel.FOCUS, "focus_lost", we)
        elif et == pg.WINDOWENTER:
            self.emit(Channel.POINTER_BUTTON, "mouse_entered", self._mouse(0, ts))
        elif et == pg.WINDOWLEAVE:
            self.emit(Channel.POINTER_BUTTON, "mouse_exited", self._mouse(0, ts))
        return False

    def window_closed(self) -> None:
        self.emit(Channel.WINDOW, "window_closed", WindowEvent("closed", time.monotonic()))

    def _mouse(self, button: int, ts: float) -> MouseEvent:
        held = tuple(b in self._pressed for b in (1, 2, 3))
        return MouseEvent(self._pos[0], self._pos[1], int(button), held, ts)

    def _set_state(self, new: WindowState, ts: float) -> None:
        old = self._state
        if new == old:
            return
        self._state = new
        if new == WindowState.ICONIFIED:
            self.emit(Channel.WINDOW, "window_iconified", WindowEvent("iconified", ts))
        elif old == WindowState.ICONIFIED:
            self.emit(
                Channel.WINDOW, "window_deiconified", WindowEvent("deiconified", ts)
            )
        self.emit(
            Channel.WINDOW_STATE,
            "window_state_changed",
            WindowEvent("state_changed", ts, old_state=old, new_state=new),
        )
