"""Runtime configuration helpers.

Holds the process-wide PanelSettings loaded from the settings store, and
turns on debug logging for the ``drawingpanel`` logger when requested.
"""

from __future__ import annotations

import logging
import threading

from .settings.schema import PanelSettings
from .settings.store import SettingsStore

__all__ = ["get_settings", "set_settings", "apply_debug_logging"]

_SETTINGS: PanelSettings | None = None
_LOCK = threading.Lock()
_DEBUG_HANDLER: logging.Handler | None = None


def get_settings() -> PanelSettings:
    """Return the current settings, loading them on first use."""
    global _SETTINGS
    with _LOCK:
        if _SETTINGS is None:
            _SETTINGS = SettingsStore.load()
            if _SETTINGS.debug:
                apply_debug_logging(True)
        return _SETTINGS


def set_settings(settings: PanelSettings) -> None:
    """Replace the process settings (affects panels created afterwards)."""
    global _SETTINGS
    with _LOCK:
        _SETTINGS = settings
    apply_debug_logging(settings.debug)


def apply_debug_logging(enabled: bool) -> None:
    """Attach or remove a stderr DEBUG handler on the package logger."""
    global _DEBUG_HANDLER
    pkg_logger = logging.getLogger("drawingpanel")
    if enabled and _DEBUG_HANDLER is None:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("[%(threadName)s] %(name)s: %(message)s")
        )
        pkg_logger.addHandler(handler)
        pkg_logger.setLevel(logging.DEBUG)
        _DEBUG_HANDLER = handler
    elif not enabled and _DEBUG_HANDLER is not None:
        pkg_logger.removeHandler(_DEBUG_HANDLER)
        pkg_logger.setLevel(logging.NOTSET)
        _DEBUG_HANDLER = None
