"""DrawingPanel: a window backed by a persistent pixel buffer.

Clients create a panel, draw on it through ``panel.graphics`` or the pixel
accessors, and never have to think about repainting: a RepaintScheduler
owned by the panel presents the buffer to the window at a steady frame
rate and pumps window events to registered listeners.

Example:
    from drawingpanel import DrawingPanel, get_pixel_rgb

    panel = DrawingPanel(400, 300)
    panel.set_title("Hello")
    panel.graphics.fill_circle((200, 150), 50, color=(255, 0, 0))
    panel.set_pixel(10, 10, get_pixel_rgb(0, 0, 255))

When the script ends the window stays up; closing it ends the process.

Pixels are packed 0xAARRGGBB ints. A new or cleared panel is fully
transparent, so the background color shows through until drawn over.
"""

from __future__ import annotations

import logging
import struct
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple

import pygame as pg

from drawingpanel.config import get_settings
from drawingpanel.core.colors import (
    ColorLike,
    channels_within,
    normalize_argb,
    to_argb,
    to_rgba,
    unpack_argb,
)
from drawingpanel.core.errors import InvalidArgumentError, OutOfBoundsError
from drawingpanel.core.registry import SurfaceRegistry, get_registry
from drawingpanel.core.scheduler import RepaintScheduler
from drawingpanel.core.time import TimeSource
from drawingpanel.platform.display.pygame_backend import PygameWindowBackend
from drawingpanel.platform.input.events import Channel
from drawingpanel.platform.input.pygame_input import ListenerDispatcher
from drawingpanel.render.canvas import WindowBackend
from drawingpanel.render.graphics import Graphics
from drawingpanel.settings.schema import PanelSettings
from drawingpanel.settings.values import CLEAR_ARGB, MAX_SIZE

__all__ = ["DrawingPanel", "check_size"]

logger = logging.getLogger(__name__)

BackendFactory = Callable[..., WindowBackend]

# Seconds close() waits for an in-flight repaint to finish.
_CLOSE_JOIN_TIMEOUT_S = 2.0


def check_size(width: int, height: int) -> None:
    """Raise InvalidArgumentError unless both sides are ints in 1..MAX_SIZE."""
    for name, v in (("Width", width), ("Height", height)):
        if isinstance(v, bool) or not isinstance(v, int) or not 1 <= v <= MAX_SIZE:
            raise InvalidArgumentError(
                f"{name} must be between 1 and {MAX_SIZE}, got {v!r}."
            )


def _new_buffer(size: Tuple[int, int]) -> Any:
    surface = pg.Surface(size, flags=pg.SRCALPHA)
    surface.fill(to_rgba(CLEAR_ARGB))
    return surface


class DrawingPanel:
    """A drawing window with a persistent ARGB pixel buffer.

    Parameters
    ----------
    width, height:
        Buffer size in pixels, 1..7680 each (defaults from settings).
    visible:
        Whether the window is shown right away.
    title:
        Window title (defaults from settings).
    registry:
        Process registry counting open panels (default: the process one).
    backend_factory:
        Callable ``(size, *, title, visible) -> WindowBackend``.
    time_source:
        Clock for the repaint scheduler.
    settings:
        Overrides the process settings for this panel.
    """

    def __init__(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        visible: bool = True,
        *,
        title: Optional[str] = None,
        registry: Optional[SurfaceRegistry] = None,
        backend_factory: Optional[BackendFactory] = None,
        time_source: Optional[TimeSource] = None,
        settings: Optional[PanelSettings] = None,
    ) -> None:
        cfg = settings or get_settings()
        width = cfg.width if width is None else width
        height = cfg.height if height is None else height
        logger.debug(
            "new panel requested: width=%r height=%r visible=%r", width, height, visible
        )
        check_size(width, height)

        self._registry = registry or get_registry()
        self._number = self._registry.register()
        self._name = f"DrawingPanel-{self._number}"

        self._width = width
        self._height = height
        self._title = cfg.title if title is None else title
        self._closed = False
        self._close_lock = threading.Lock()
        self._window_released = False
        self._release_lock = threading.Lock()
        self._backend: Optional[WindowBackend] = None

        try:
            self._background = to_rgba(cfg.background_argb)
            self._surface = _new_buffer((width, height))
            self._graphics = Graphics(self._surface, antialias=cfg.anti_alias)
            self._dispatcher = ListenerDispatcher(self._name)

            factory = backend_factory or PygameWindowBackend
            self._backend = factory((width, height), title=self._title, visible=visible)
            logger.debug("%s: framebuffer initialized", self._name)

            # The window is opened, used and closed on the timer thread.
            self._scheduler = RepaintScheduler(
                self._repaint,
                cfg.frame_rate,
                time_source=time_source,
                name=f"{self._name} Timer",
                sleep_fraction=cfg.sleep_fraction,
                spin_threshold_ns=cfg.spin_threshold_ns,
                on_exit=self._release_window,
            )
            self._scheduler.start()
        except BaseException:
            self._closed = True
            self._release_window()
            self._registry.unregister()
            raise
        logger.debug("%s: painting started", self._name)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<{self._name} {self._width}x{self._height} {state}>"

    def __enter__(self) -> "DrawingPanel":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- properties ------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        return self._width, self._height

    @property
    def graphics(self) -> Graphics:
        """Drawing context bound to the pixel buffer."""
        return self._graphics

    @property
    def surface(self) -> Any:
        """The current pygame.Surface pixel buffer.

        Resizing and bulk pixel writes replace the buffer; use ``graphics``
        for a reference that stays valid.
        """
        return self._surface

    @property
    def instance_number(self) -> int:
        return self._number

    @property
    def name(self) -> str:
        return self._name

    @property
    def title(self) -> str:
        return self._title

    @property
    def frame_rate(self) -> int:
        return self._scheduler.rate

    @property
    def anti_alias(self) -> bool:
        return self._graphics.antialias

    @property
    def background_color(self) -> int:
        return to_argb(self._background)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def scheduler(self) -> RepaintScheduler:
        return self._scheduler

    # -- pixel access ----------------------------------------------------

    def _check_pixel(self, x: int, y: int) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise OutOfBoundsError(
                f"Pixel location ({x}, {y}) is out of bounds for DrawingPanel "
                f"size ({self._width}, {self._height})."
            )

    def get_pixel(self, x: int, y: int) -> int:
        """Return the 0xAARRGGBB value at (x, y)."""
        self._check_pixel(x, y)
        c = self._surface.get_at((x, y))
        return (c.a << 24) | (c.r << 16) | (c.g << 8) | c.b

    def set_pixel(self, x: int, y: int, argb: int) -> None:
        self._check_pixel(x, y)
        a, r, g, b = unpack_argb(argb)
        self._surface.set_at((x, y), (r, g, b, a))

    def get_pixels(self) -> List[List[int]]:
        """Return all pixels as a list of rows (row-major)."""
        w, h = self._width, self._height
        data = pg.image.tobytes(self._surface, "ARGB")
        fmt = f">{w}I"
        stride = w * 4
        return [list(struct.unpack_from(fmt, data, y * stride)) for y in range(h)]

    def set_pixels(self, pixels: Sequence[Sequence[int]]) -> None:
        """Replace every pixel, resizing the panel to the grid's dimensions."""
        rows = [list(row) for row in pixels]
        if not rows or not rows[0]:
            raise InvalidArgumentError("pixel grid must have at least one row and column")
        width, height = len(rows[0]), len(rows)
        if any(len(row) != width for row in rows):
            raise InvalidArgumentError("pixel grid rows must all have the same length")
        if (width, height) != self.size:
            self.set_size(width, height)

        fmt = f">{width}I"
        data = b"".join(struct.pack(fmt, *(normalize_argb(p) for p in row)) for row in rows)
        self._replace_buffer(pg.image.frombytes(data, (width, height), "ARGB"))

    def clear(self) -> None:
        """Reset every pixel to transparent."""
        self._surface.fill(to_rgba(CLEAR_ARGB))

    def replace_color(self, old_color: int, new_color: int, tolerance: int = 0) -> int:
        """Replace pixels whose channels are all within *tolerance* of old_color.

        Returns the number of pixels changed.
        """
        if isinstance(tolerance, bool) or not isinstance(tolerance, int) or tolerance < 0:
            raise InvalidArgumentError(f"tolerance must be a non-negative int, got {tolerance!r}")
        old = unpack_argb(old_color)
        replacement = normalize_argb(new_color).to_bytes(4, "big")

        buf = bytearray(pg.image.tobytes(self._surface, "ARGB"))
        changed = 0
        for i in range(0, len(buf), 4):
            if channels_within(buf[i : i + 4], old, tolerance):
                buf[i : i + 4] = replacement
                changed += 1
        if changed:
            self._replace_buffer(pg.image.frombytes(bytes(buf), self.size, "ARGB"))
        logger.debug("%s: replaced %d pixels", self._name, changed)
        return changed

    def set_size(self, width: int, height: int) -> None:
        """Resize the buffer, keeping existing pixels anchored at the origin."""
        check_size(width, height)
        old_w, old_h = self._width, self._height
        old = pg.image.tobytes(self._surface, "ARGB")
        new = bytearray(width * height * 4)
        row_bytes = min(old_w, width) * 4
        for y in range(min(old_h, height)):
            src = y * old_w * 4
            dst = y * width * 4
            new[dst : dst + row_bytes] = old[src : src + row_bytes]

        self._width, self._height = width, height
        self._replace_buffer(pg.image.frombytes(bytes(new), (width, height), "ARGB"))
        self._backend.resize((width, height))
        logger.debug("%s: resized to %dx%d", self._name, width, height)

    def _replace_buffer(self, surface: Any) -> None:
        self._surface = surface
        self._graphics.bind(surface)

    def save_png(self, path: str) -> None:
        """Write the pixel buffer to an image file."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        pg.image.save(self._surface, path)

    # -- window ------------------------------------------------------------

    def set_title(self, title: str) -> None:
        if title is None:
            raise InvalidArgumentError("title must not be None")
        self._title = str(title)
        self._backend.set_title(self._title)

    def set_always_on_top(self, always_on_top: bool) -> None:
        self._backend.set_always_on_top(bool(always_on_top))

    def set_window_position(self, x: int, y: int) -> None:
        self._backend.set_position(int(x), int(y))

    def get_screen_position(self) -> Tuple[int, int]:
        return self._backend.position()

    def center(self) -> None:
        """Move the window to the middle of the screen."""
        screen_w, screen_h = self._backend.screen_size()
        x = max(0, (screen_w - self._width) // 2)
        y = max(0, (screen_h - self._height) // 2)
        self.set_window_position(x, y)

    def to_front(self) -> None:
        self._backend.to_front()

    def set_visible(self, visible: bool) -> None:
        self._backend.set_visible(bool(visible))

    def set_frame_rate(self, frame_rate: int) -> None:
        """Change the repaint rate (frames per second, >= 1)."""
        self._scheduler.set_rate(frame_rate)
        logger.debug("%s: set frame rate to %dfps", self._name, frame_rate)

    def set_anti_alias(self, anti_alias: bool) -> None:
        self._graphics.antialias = bool(anti_alias)

    def set_background_color(self, color: ColorLike) -> None:
        """Set the color shown behind transparent pixels."""
        if color is None:
            raise InvalidArgumentError("background color must not be None")
        self._background = to_rgba(color)

    # -- listeners -----------------------------------------------------------

    def add_listener(self, listener: Any) -> List[Channel]:
        """Attach *listener* to every event channel it has callbacks for."""
        return self._dispatcher.add(listener)

    def remove_listener(self, listener: Any) -> None:
        self._dispatcher.remove(listener)

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Stop repainting, close the window and release the panel.

        Safe to call more than once and from a listener callback.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._scheduler.stop()
        self._scheduler.join(_CLOSE_JOIN_TIMEOUT_S)
        thread = self._scheduler.thread
        if thread is None or not thread.is_alive() or thread is threading.current_thread():
            self._release_window()
        else:
            # The timer releases the window when its repaint returns.
            logger.warning("%s: repaint still running after close", self._name)
        self._registry.unregister()
        self._dispatcher.window_closed()
        logger.debug("%s: closed", self._name)

    def _release_window(self) -> None:
        with self._release_lock:
            if self._window_released or self._backend is None:
                return
            self._window_released = True
        try:
            self._backend.close()
        except Exception:
            logger.exception("%s: failed to close window", self._name)

    def _repaint(self) -> None:
        close_requested = False
        for ev in self._backend.poll_events():
            if self._dispatcher.dispatch(ev):
                close_requested = True
        if close_requested:
            self.close()
            return
        self._backend.present(self._surface, self._background)
