"""Pygame-based WindowBackend with headless (offscreen) support.

pygame drives a single display window per process. The first panel
created claims it; panels created while it is taken run offscreen: their
buffers, graphics and listeners work normally but nothing is shown.
Setting SDL_VIDEODRIVER=dummy before the first panel gives a fully
headless run suitable for tests.

SDL expects the video mode, the event pump and every window call on one
thread. The backend therefore touches SDL only from its display thread:
the thread that first calls poll_events() or present(), which for a panel
is its repaint timer. Calls made from any other thread update the cached
window state and queue the change; the display thread applies queued
changes before it pumps events or presents.

Window attributes pygame's display module does not cover (position,
always-on-top, raising) go through pygame._sdl2.video.Window. When the
installed pygame lacks the attribute PermissionDeniedError is raised at
the call; a refusal reported later by the window system is logged.

Example:
    import os
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    from drawingpanel.platform.display.pygame_backend import PygameWindowBackend

    backend = PygameWindowBackend((320, 240), title="demo")
    backend.present(buffer_surface, (255, 255, 255, 255))  # opens the window
    backend.close()
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from typing import Any, Callable, List, Optional, Tuple

import pygame as pg

from drawingpanel.core.colors import ColorLike, to_rgba
from drawingpanel.core.errors import PermissionDeniedError
from drawingpanel.render.canvas import WindowBackend

__all__ = ["PygameWindowBackend"]

logger = logging.getLogger(__name__)

_DISPLAY_LOCK = threading.Lock()
_DISPLAY_OWNER: Optional["PygameWindowBackend"] = None
# Desktop size as last read by a display thread.
_DESKTOP_SIZE: Optional[Tuple[int, int]] = None

# Seconds screen_size() waits for the display thread to open the window.
_READY_TIMEOUT_S = 1.0


def _sdl_window_type() -> Any:
    try:
        from pygame._sdl2.video import Window
    except ImportError:
        return None
    return Window


class PygameWindowBackend(WindowBackend):
    """Window backed by pygame.display, or offscreen if the display is taken."""

    def __init__(
        self, size: Tuple[int, int], *, title: str, visible: bool = True
    ) -> None:
        global _DISPLAY_OWNER

        if os.environ.get("SDL_VIDEODRIVER") == "dummy":
            os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

        self._size = (int(size[0]), int(size[1]))
        self._title = title
        self._visible = bool(visible)
        self._position: Optional[Tuple[int, int]] = None
        self._on_top: Optional[bool] = None
        self._screen: Any = None
        self._display_thread: Optional[threading.Thread] = None
        self._pending: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()
        self._ready = threading.Event()
        self._closed = False

        with _DISPLAY_LOCK:
            if _DISPLAY_OWNER is None:
                _DISPLAY_OWNER = self
                self._owns_display = True
            else:
                self._owns_display = False
        if not self._owns_display:
            logger.warning(
                "pygame supports one window per process; %r runs offscreen", title
            )

    @property
    def owns_display(self) -> bool:
        return self._owns_display

    @property
    def display_thread(self) -> Optional[threading.Thread]:
        """Thread that opened the window, once it has been opened."""
        return self._display_thread

    # -- display thread ------------------------------------------------------

    def _on_display_thread(self) -> bool:
        return self._display_thread is threading.current_thread()

    def _ensure_open(self) -> bool:
        """Open the window on the calling thread if not yet open.

        Returns True when the caller is the display thread of an open window.
        """
        global _DESKTOP_SIZE
        if not self._owns_display or self._closed:
            return False
        if self._display_thread is None:
            self._display_thread = threading.current_thread()
            if not pg.get_init():
                pg.init()
            self._open()
            sizes = pg.display.get_desktop_sizes()
            if sizes:
                _DESKTOP_SIZE = (int(sizes[0][0]), int(sizes[0][1]))
            if self._position is not None:
                self._apply_position()
            if self._on_top is not None:
                self._apply_on_top()
            self._ready.set()
            logger.debug("window %r opened on %s", self._title, self._display_thread.name)
        elif not self._on_display_thread():
            logger.warning(
                "window %r used from %s, owned by %s",
                self._title,
                threading.current_thread().name,
                self._display_thread.name,
            )
            return False
        self._drain()
        return True

    def _drain(self) -> None:
        while True:
            try:
                op = self._pending.get_nowait()
            except queue.Empty:
                return
            op()

    def _submit(self, op: Callable[[], None]) -> None:
        if not self._owns_display or self._closed:
            return
        if self._on_display_thread() and self._screen is not None:
            op()
        else:
            self._pending.put(op)

    def _open(self) -> None:
        flags = pg.SHOWN if self._visible else pg.HIDDEN
        self._screen = pg.display.set_mode(self._size, flags)
        pg.display.set_caption(self._title)

    def _window(self) -> Any:
        if self._screen is None:
            return None
        window_type = _sdl_window_type()
        if window_type is None:
            return None
        return window_type.from_display_module()

    def _check_supported(self, what: str, attr: str) -> None:
        if not self._owns_display:
            return
        window_type = _sdl_window_type()
        if window_type is None or not hasattr(window_type, attr):
            raise PermissionDeniedError(f"{what} is not supported by this pygame build")

    def _apply_size(self) -> None:
        if self._screen is not None and self._screen.get_size() != self._size:
            self._open()

    def _apply_title(self) -> None:
        pg.display.set_caption(self._title)

    def _apply_visible(self) -> None:
        window = self._window()
        if window is None:
            self._open()
        elif self._visible:
            window.show()
        else:
            window.hide()

    def _apply_position(self) -> None:
        window = self._window()
        if window is not None and self._position is not None:
            window.position = self._position

    def _apply_on_top(self) -> None:
        window = self._window()
        if window is None or self._on_top is None:
            return
        try:
            window.always_on_top = self._on_top
        except (AttributeError, pg.error) as e:
            logger.warning("always-on-top refused by the window system: %s", e)

    def _apply_focus(self) -> None:
        window = self._window()
        if window is not None:
            window.focus()

    # -- WindowBackend ---------------------------------------------------------

    def present(self, buffer: Any, background: ColorLike) -> None:
        if not self._ensure_open():
            return
        screen = self._screen
        screen.fill(to_rgba(background))
        screen.blit(buffer, (0, 0))
        pg.display.flip()

    def poll_events(self) -> List[Any]:
        if not self._ensure_open():
            return []
        window = self._window()
        if window is not None:
            x, y = window.position
            self._position = (int(x), int(y))
        return pg.event.get()

    def resize(self, size: Tuple[int, int]) -> None:
        self._size = (int(size[0]), int(size[1]))
        self._submit(self._apply_size)

    def set_title(self, title: str) -> None:
        self._title = title
        self._submit(self._apply_title)

    def set_visible(self, visible: bool) -> None:
        self._visible = bool(visible)
        self._submit(self._apply_visible)

    def position(self) -> Tuple[int, int]:
        return self._position or (0, 0)

    def set_position(self, x: int, y: int) -> None:
        self._check_supported("window positioning", "position")
        self._position = (int(x), int(y))
        self._submit(self._apply_position)

    def screen_size(self) -> Tuple[int, int]:
        if self._owns_display and not self._on_display_thread():
            self._ready.wait(_READY_TIMEOUT_S)
        return _DESKTOP_SIZE or self._size

    def set_always_on_top(self, on_top: bool) -> None:
        self._check_supported("always-on-top", "always_on_top")
        self._on_top = bool(on_top)
        self._submit(self._apply_on_top)

    def to_front(self) -> None:
        self._submit(self._apply_focus)

    def close(self) -> None:
        global _DISPLAY_OWNER
        self._closed = True
        if self._screen is not None:
            if not self._on_display_thread():
                logger.warning("window %r closed off its display thread", self._title)
            pg.display.quit()
            self._screen = None
        with _DISPLAY_LOCK:
            if _DISPLAY_OWNER is self:
                _DISPLAY_OWNER = None
