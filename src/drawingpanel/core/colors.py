"""Packed ARGB pixel helpers.

Pixels are exchanged with clients as unsigned 32-bit integers laid out as
0xAARRGGBB. Negative values (as produced by signed 32-bit arithmetic) are
accepted and normalized.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple, Union

from drawingpanel.core.errors import InvalidArgumentError

__all__ = [
    "Color",
    "ColorLike",
    "ALPHA_MASK",
    "RED_MASK",
    "GREEN_MASK",
    "BLUE_MASK",
    "get_alpha",
    "get_red",
    "get_green",
    "get_blue",
    "get_pixel_argb",
    "get_pixel_rgb",
    "normalize_argb",
    "unpack_argb",
    "to_rgba",
    "to_argb",
    "channels_within",
]

Color = Tuple[int, int, int, int]
ColorLike = Union[int, str, Tuple[int, int, int], Tuple[int, int, int, int], Any]

ALPHA_MASK = 0xFF000000
RED_MASK = 0x00FF0000
GREEN_MASK = 0x0000FF00
BLUE_MASK = 0x000000FF

_U32 = 0xFFFFFFFF


def normalize_argb(pixel: int) -> int:
    return int(pixel) & _U32


def get_alpha(pixel: int) -> int:
    return (normalize_argb(pixel) & ALPHA_MASK) >> 24


def get_red(pixel: int) -> int:
    return (normalize_argb(pixel) & RED_MASK) >> 16


def get_green(pixel: int) -> int:
    return (normalize_argb(pixel) & GREEN_MASK) >> 8


def get_blue(pixel: int) -> int:
    return normalize_argb(pixel) & BLUE_MASK


def _check_component(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise InvalidArgumentError(f"{name} must be an int in 0..255, got {value!r}")
    return value


def get_pixel_argb(alpha: int, red: int, green: int, blue: int) -> int:
    """Pack four 0..255 components into a 0xAARRGGBB pixel."""
    return (
        (_check_component("alpha", alpha) << 24)
        | (_check_component("red", red) << 16)
        | (_check_component("green", green) << 8)
        | _check_component("blue", blue)
    )


def get_pixel_rgb(red: int, green: int, blue: int) -> int:
    """Pack an opaque pixel."""
    return get_pixel_argb(255, red, green, blue)


def unpack_argb(pixel: int) -> Tuple[int, int, int, int]:
    """Return (alpha, red, green, blue)."""
    return get_alpha(pixel), get_red(pixel), get_green(pixel), get_blue(pixel)


def to_rgba(color: ColorLike) -> Color:
    """Coerce a packed ARGB int, tuple, pygame.Color or color name to RGBA."""
    if isinstance(color, bool):
        raise InvalidArgumentError(f"not a color: {color!r}")
    if isinstance(color, int):
        a, r, g, b = unpack_argb(color)
        return r, g, b, a
    if isinstance(color, str):
        import pygame

        try:
            c = pygame.Color(color)
        except ValueError:
            raise InvalidArgumentError(f"unknown color name: {color!r}") from None
        return c.r, c.g, c.b, c.a
    try:
        parts = tuple(int(v) for v in color)
    except TypeError:
        raise InvalidArgumentError(f"not a color: {color!r}") from None
    if len(parts) == 3:
        parts = parts + (255,)
    if len(parts) != 4:
        raise InvalidArgumentError(f"color must have 3 or 4 components: {color!r}")
    for name, v in zip(("red", "green", "blue", "alpha"), parts):
        _check_component(name, v)
    return parts[0], parts[1], parts[2], parts[3]


def to_argb(color: ColorLike) -> int:
    r, g, b, a = to_rgba(color)
    return (a << 24) | (r << 16) | (g << 8) | b


def channels_within(a: Sequence[int], b: Sequence[int], tolerance: int) -> bool:
    """Return True if every channel of *a* is within *tolerance* of *b*."""
    return all(abs(x - y) <= tolerance for x, y in zip(a, b))
