"""drawingpanel package root.

The project version is defined here as the single source of truth and
exposed via ``__version__``; pyproject.toml reads it with
``version = { attr = "drawingpanel.__version__" }``.

The public API is re-exported here so scripts only need
``from drawingpanel import DrawingPanel``.
"""

from drawingpanel.core.colors import (
    get_alpha,
    get_blue,
    get_green,
    get_pixel_argb,
    get_pixel_rgb,
    get_red,
)
from drawingpanel.core.errors import (
    DrawingPanelError,
    ImageNotFoundError,
    InvalidArgumentError,
    OutOfBoundsError,
    PermissionDeniedError,
)
from drawingpanel.core.registry import main_finished, set_auto_exit
from drawingpanel.panel import DrawingPanel
from drawingpanel.utils import load_image, sleep

__all__ = [
    "__version__",
    "DrawingPanel",
    "DrawingPanelError",
    "ImageNotFoundError",
    "InvalidArgumentError",
    "OutOfBoundsError",
    "PermissionDeniedError",
    "get_alpha",
    "get_blue",
    "get_green",
    "get_pixel_argb",
    "get_pixel_rgb",
    "get_red",
    "load_image",
    "main_finished",
    "set_auto_exit",
    "sleep",
]

__version__ = "0.1.0"
