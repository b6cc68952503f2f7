"""Pygame implementation of the Canvas protocol.

A Graphics object draws into a panel's pixel buffer. When the panel is
resized or its pixels are replaced wholesale the panel rebinds the same
Graphics object to the new buffer, so clients may keep a reference to it.

Example:
    g = panel.graphics
    g.clear((255, 255, 255))
    g.line((10, 10), (200, 40), color=(255, 0, 0))
    g.fill_circle((100, 100), 30, color="navy")
    g.text((10, 150), "hello", size_px=24)
"""

from __future__ import annotations

from typing import Any, Dict, Sequence, Tuple

import pygame as pg
import pygame.gfxdraw

from drawingpanel.core.colors import ColorLike, to_rgba
from drawingpanel.render.canvas import BLACK, Canvas, Point

__all__ = ["Graphics"]


class _FontCache:
    def __init__(self) -> None:
        self.fonts: Dict[int, Any] = {}

    def get(self, size_px: int) -> Any:
        f = self.fonts.get(size_px)
        if f is None:
            if not pg.font.get_init():
                pg.font.init()
            # Default font for determinism across platforms
            f = pg.font.Font(None, size_px)
            self.fonts[size_px] = f
        return f


class Graphics(Canvas):
    def __init__(self, surface: Any, *, antialias: bool = True) -> None:
        self._surface = surface
        self.antialias = bool(antialias)
        self._font_cache = _FontCache()

    @property
    def surface(self) -> Any:
        return self._surface

    def bind(self, surface: Any) -> None:
        """Point this context at a new pixel buffer."""
        self._surface = surface

    def clear(self, color: ColorLike) -> None:
        self._surface.fill(to_rgba(color))

    def line(self, p0: Point, p1: Point, width: int = 1, color: ColorLike = BLACK) -> None:
        c = to_rgba(color)
        if self.antialias and width == 1:
            pg.draw.aaline(self._surface, c, p0, p1)
        else:
            pg.draw.line(self._surface, c, p0, p1, width)

    def rect(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        width: int = 1,
        color: ColorLike = BLACK,
    ) -> None:
        pg.draw.rect(self._surface, to_rgba(color), pg.Rect(x, y, w, h), max(1, width))

    def fill_rect(self, x: int, y: int, w: int, h: int, color: ColorLike = BLACK) -> None:
        self._surface.fill(to_rgba(color), pg.Rect(x, y, w, h))

    def circle(
        self, center: Point, radius: int, width: int = 1, color: ColorLike = BLACK
    ) -> None:
        c = to_rgba(color)
        if self.antialias and width == 1:
            pygame.gfxdraw.aacircle(self._surface, center[0], center[1], radius, c)
        else:
            pg.draw.circle(self._surface, c, center, radius, max(1, width))

    def fill_circle(self, center: Point, radius: int, color: ColorLike = BLACK) -> None:
        c = to_rgba(color)
        if self.antialias:
            pygame.gfxdraw.aacircle(self._surface, center[0], center[1], radius, c)
            pygame.gfxdraw.filled_circle(self._surface, center[0], center[1], radius, c)
        else:
            pg.draw.circle(self._surface, c, center, radius, 0)

    def ellipse(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        width: int = 1,
        color: ColorLike = BLACK,
    ) -> None:
        c = to_rgba(color)
        if self.antialias and width == 1 and w > 1 and h > 1:
            pygame.gfxdraw.aaellipse(
                self._surface, x + w // 2, y + h // 2, w // 2, h // 2, c
            )
        else:
            pg.draw.ellipse(self._surface, c, pg.Rect(x, y, w, h), max(1, width))

    def fill_ellipse(self, x: int, y: int, w: int, h: int, color: ColorLike = BLACK) -> None:
        pg.draw.ellipse(self._surface, to_rgba(color), pg.Rect(x, y, w, h), 0)

    def polyline(
        self, pts: Sequence[Point], width: int = 1, color: ColorLike = BLACK
    ) -> None:
        if not pts:
            return
        c = to_rgba(color)
        if len(pts) == 1:
            # Draw a dot for a single point
            pg.draw.circle(self._surface, c, pts[0], max(1, width // 2), 0)
            return
        if self.antialias and width == 1:
            pg.draw.aalines(self._surface, c, False, list(pts))
        else:
            pg.draw.lines(self._surface, c, False, list(pts), width)

    def polygon(
        self,
        pts: Sequence[Point],
        color: ColorLike = BLACK,
        filled: bool = False,
    ) -> None:
        if len(pts) < 3:
            self.polyline(pts, color=color)
            return
        c = to_rgba(color)
        if self.antialias:
            pygame.gfxdraw.aapolygon(self._surface, list(pts), c)
            if filled:
                pygame.gfxdraw.filled_polygon(self._surface, list(pts), c)
        else:
            pg.draw.polygon(self._surface, c, list(pts), 0 if filled else 1)

    def text(
        self, pos: Point, s: str, size_px: int = 16, color: ColorLike = BLACK
    ) -> None:
        font = self._font_cache.get(size_px)
        surf = font.render(s, self.antialias, to_rgba(color))
        self._surface.blit(surf, pos)

    def text_size(self, s: str, size_px: int = 16) -> Tuple[int, int]:
        font = self._font_cache.get(size_px)
        w, h = font.size(s)
        return int(w), int(h)

    def draw_image(self, image: Any, pos: Point) -> None:
        self._surface.blit(image, pos)
