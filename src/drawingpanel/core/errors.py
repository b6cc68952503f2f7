"""Exception types raised by drawingpanel.

Each error also derives from the matching builtin so callers can catch
either ``OutOfBoundsError`` or a plain ``IndexError``.
"""

from __future__ import annotations

import logging

__all__ = [
    "DrawingPanelError",
    "InvalidArgumentError",
    "OutOfBoundsError",
    "ImageNotFoundError",
    "PermissionDeniedError",
    "log_recoverable",
]


class DrawingPanelError(Exception):
    """Base class for all drawingpanel errors."""


class InvalidArgumentError(DrawingPanelError, ValueError):
    """A size, rate, color component or other argument is malformed."""


class OutOfBoundsError(DrawingPanelError, IndexError):
    """A pixel coordinate lies outside the panel."""


class ImageNotFoundError(DrawingPanelError, FileNotFoundError):
    """An image file does not exist."""


class PermissionDeniedError(DrawingPanelError, PermissionError):
    """The host window system refused a window attribute change."""


def log_recoverable(
    logger: logging.Logger,
    message: str,
    *args: object,
    level: int = logging.DEBUG,
) -> None:
    """Log a tolerated exception from a background loop with its traceback."""
    logger.log(level, message, *args, exc_info=True)
