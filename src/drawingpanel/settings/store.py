"""Settings persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .schema import PanelSettings
from .values import ENV_AUTO_EXIT, ENV_DEBUG, ENV_HOME

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    logger.warning("Invalid %s=%r (expected true/false)", name, raw)
    return None


class SettingsStore:
    """Load and save :class:`PanelSettings` to disk."""

    @staticmethod
    def settings_path() -> Path:
        """Return the path to the settings JSON file."""
        home = os.environ.get(ENV_HOME)
        if home:
            base = Path(home).expanduser()
        else:
            base = Path(os.path.expanduser("~/.drawingpanel"))
        return base / "settings.json"

    @classmethod
    def load(cls) -> PanelSettings:
        """Load settings from disk, returning defaults on error.

        Environment overrides (DRAWINGPANEL_DEBUG, DRAWINGPANEL_AUTO_EXIT)
        are applied on top of the file.
        """
        path = cls.settings_path()
        settings = PanelSettings()
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                settings = PanelSettings.model_validate(data)
            except Exception as e:
                logger.warning("ignoring unreadable settings %s: %s", path, e)

        overrides: dict[str, bool] = {}
        debug = _env_flag(ENV_DEBUG)
        if debug is not None:
            overrides["debug"] = debug
        auto_exit = _env_flag(ENV_AUTO_EXIT)
        if auto_exit is not None:
            overrides["auto_exit"] = auto_exit
        if overrides:
            settings = settings.model_copy(update=overrides)
        return settings

    @classmethod
    def save(cls, settings: PanelSettings) -> None:
        """Atomically persist *settings* to disk."""
        path = cls.settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, path)
