"""Default values shared by the settings model and the panel."""

from __future__ import annotations

DEFAULT_TITLE = "Drawing Panel"
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
# Largest accepted width or height (8K UHD).
MAX_SIZE = 7680
DEFAULT_FRAME_RATE = 30
DEFAULT_BACKGROUND_ARGB = 0xFFFFFFFF
# Pixel value of a freshly created or cleared buffer (transparent black).
CLEAR_ARGB = 0x00000000

LIFETIME_POLL_S = 0.5
SCHEDULER_SLEEP_FRACTION = 0.83
SCHEDULER_SPIN_THRESHOLD_MS = 2.0

ENV_HOME = "DRAWINGPANEL_HOME"
ENV_DEBUG = "DRAWINGPANEL_DEBUG"
ENV_AUTO_EXIT = "DRAWINGPANEL_AUTO_EXIT"
