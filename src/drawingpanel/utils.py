"""Process-wide helpers: image loading and sleeping."""

from __future__ import annotations

import logging
import time
from os import PathLike
from pathlib import Path
from typing import Any, Union

import pygame as pg
from PIL import Image

from drawingpanel.core.errors import ImageNotFoundError, InvalidArgumentError

__all__ = ["load_image", "sleep"]

logger = logging.getLogger(__name__)


def load_image(path: Union[str, PathLike[str]]) -> Any:
    """Decode an image file into a pygame.Surface with per-pixel alpha.

    Any format Pillow can read is accepted. The result can be drawn with
    ``panel.graphics.draw_image(image, (x, y))``.

    Raises:
        ImageNotFoundError: if *path* does not exist
    """
    if path is None:
        raise InvalidArgumentError("image path must not be None")
    p = Path(path)
    if not p.is_file():
        raise ImageNotFoundError(f"File not found: {p}")
    with Image.open(p) as img:
        rgba = img.convert("RGBA")
        surface = pg.image.frombytes(rgba.tobytes(), rgba.size, "RGBA")
    logger.debug("loaded image %s (%dx%d)", p, surface.get_width(), surface.get_height())
    return surface


def sleep(milliseconds: int) -> None:
    """Pause the calling thread for *milliseconds*."""
    if milliseconds < 0:
        raise InvalidArgumentError(f"sleep duration must be >= 0, got {milliseconds!r}")
    time.sleep(milliseconds / 1000.0)
