"""Framework-agnostic Canvas and WindowBackend protocols.

Defines the drawing primitives a panel's graphics context offers, and the
window contract a panel presents its pixel buffer through, so different
window systems (or a recording fake in tests) can be plugged in.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple

from drawingpanel.core.colors import ColorLike

Point = Tuple[int, int]

BLACK: ColorLike = (0, 0, 0, 255)


class Canvas(Protocol):
    def clear(self, color: ColorLike) -> None:
        ...

    def line(self, p0: Point, p1: Point, width: int = 1, color: ColorLike = BLACK) -> None:
        ...

    def rect(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        width: int = 1,
        color: ColorLike = BLACK,
    ) -> None:
        ...

    def fill_rect(self, x: int, y: int, w: int, h: int, color: ColorLike = BLACK) -> None:
        ...

    def circle(
        self, center: Point, radius: int, width: int = 1, color: ColorLike = BLACK
    ) -> None:
        ...

    def fill_circle(self, center: Point, radius: int, color: ColorLike = BLACK) -> None:
        ...

    def ellipse(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        width: int = 1,
        color: ColorLike = BLACK,
    ) -> None:
        ...

    def polyline(
        self, pts: Sequence[Point], width: int = 1, color: ColorLike = BLACK
    ) -> None:
        ...

    def polygon(
        self,
        pts: Sequence[Point],
        color: ColorLike = BLACK,
        filled: bool = False,
    ) -> None:
        ...

    def text(
        self, pos: Point, s: str, size_px: int = 16, color: ColorLike = BLACK
    ) -> None:
        ...

    def text_size(self, s: str, size_px: int = 16) -> Tuple[int, int]:
        ...

    def draw_image(self, image: Any, pos: Point) -> None:
        ...


class WindowBackend(Protocol):
    def present(self, buffer: Any, background: ColorLike) -> None:
        ...

    def poll_events(self) -> Sequence[Any]:
        ...

    def resize(self, size: Tuple[int, int]) -> None:
        ...

    def set_title(self, title: str) -> None:
        ...

    def set_visible(self, visible: bool) -> None:
        ...

    def position(self) -> Point:
        ...

    def set_position(self, x: int, y: int) -> None:
        ...

    def screen_size(self) -> Tuple[int, int]:
        ...

    def set_always_on_top(self, on_top: bool) -> None:
        ...

    def to_front(self) -> None:
        ...

    def close(self) -> None:
        ...
