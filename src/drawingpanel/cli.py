"""Command-line demo for drawingpanel.

Opens a panel and animates a bouncing ball (or shows an image) so the
install can be checked quickly. After the animation the function returns
and the window stays open; closing it ends the process through the
lifetime monitor, just like a client script would.
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import time
from typing import Any, Callable, Optional

from drawingpanel import __version__
from drawingpanel.core.colors import get_pixel_rgb
from drawingpanel.core.registry import SurfaceRegistry
from drawingpanel.panel import DrawingPanel
from drawingpanel.settings.values import DEFAULT_FRAME_RATE, DEFAULT_TITLE
from drawingpanel.utils import load_image

logger = logging.getLogger(__name__)


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments (``argv`` defaults to ``sys.argv``)."""
    p = argparse.ArgumentParser(description="DrawingPanel demo window")
    p.add_argument("--width", type=int, default=640, help="Panel width in px")
    p.add_argument("--height", type=int, default=480, help="Panel height in px")
    p.add_argument(
        "--fps",
        type=_positive_int,
        default=DEFAULT_FRAME_RATE,
        help=f"Repaint rate (default: {DEFAULT_FRAME_RATE})",
    )
    p.add_argument("--title", default=DEFAULT_TITLE, help="Window title")
    p.add_argument(
        "--seconds",
        type=float,
        default=5.0,
        help="How long to animate before handing the window to the user",
    )
    p.add_argument("--image", default=None, help="Show this image instead of the demo")
    p.add_argument(
        "--headless",
        action="store_true",
        help="Render offscreen (SDL dummy driver) and close when done",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    return p.parse_args(argv)


def _draw_frame(panel: DrawingPanel, t: float) -> None:
    g = panel.graphics
    w, h = panel.size
    g.clear((255, 255, 255))
    r = max(4, min(w, h) // 12)
    x = int((w - 2 * r) * (0.5 + 0.5 * math.sin(t * 1.3))) + r
    y = int((h - 2 * r) * abs(math.sin(t * 2.1)))
    y = h - r - y
    g.fill_circle((x, y), r, color=(220, 40, 40))
    g.text((8, 8), f"{panel.name}  {panel.frame_rate} fps", size_px=20)


def run(
    args: argparse.Namespace,
    *,
    backend_factory: Optional[Callable[..., Any]] = None,
    registry: Optional[SurfaceRegistry] = None,
) -> DrawingPanel:
    """Open the demo panel described by *args* and return it.

    The panel is closed again if anything after its creation fails.
    """
    panel = DrawingPanel(
        args.width,
        args.height,
        title=args.title,
        backend_factory=backend_factory,
        registry=registry,
    )
    try:
        _show(panel, args)
    except BaseException:
        panel.close()
        raise
    return panel


def _show(panel: DrawingPanel, args: argparse.Namespace) -> None:
    panel.set_frame_rate(args.fps)

    if args.image:
        image = load_image(args.image)
        if image.get_size() != panel.size:
            panel.set_size(*image.get_size())
        panel.graphics.draw_image(image, (0, 0))
        return

    start = time.monotonic()
    frame_s = 1.0 / max(1, args.fps)
    while True:
        t = time.monotonic() - start
        _draw_frame(panel, t)
        if t >= args.seconds or panel.closed:
            break
        time.sleep(frame_s)
    # Leave a marker pixel so a saved frame is recognisable.
    panel.set_pixel(0, 0, get_pixel_rgb(0, 0, 0))


def main(argv: list[str] | None = None) -> None:
    """Synchronous entrypoint for the drawingpanel CLI."""
    args = parse_args(argv)
    if args.version:
        print(f"drawingpanel {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(threadName)s] %(name)s: %(message)s",
    )
    if args.headless:
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

    try:
        panel = run(args)
    except KeyboardInterrupt:
        return
    if args.headless:
        panel.close()


if __name__ == "__main__":
    main()
