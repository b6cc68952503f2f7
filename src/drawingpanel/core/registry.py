"""Process-scoped panel registry.

SurfaceRegistry owns the state shared by every panel in the process: how
many panels are open, how many were ever created (used to number them),
whether auto-exit is enabled, and the lifetime monitor that acts on those
values. The default registry is created on first use and lives until the
process exits; tests construct their own instances.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from drawingpanel.core.lifetime import (
    DEFAULT_POLL_INTERVAL_S,
    EntryPointSignal,
    LifetimeMonitor,
    terminate_process,
)

__all__ = [
    "SurfaceRegistry",
    "get_registry",
    "set_auto_exit",
    "main_finished",
]

logger = logging.getLogger(__name__)


class SurfaceRegistry:
    """Counts open panels and starts the lifetime monitor on first use.

    Parameters
    ----------
    auto_exit:
        Initial auto-exit flag.
    entry_point:
        Signal reporting whether the host's main path still runs.
    start_monitor:
        When False no monitor thread is started (tests).
    terminate:
        Action used by the monitor to end the process.
    poll_interval_s:
        Monitor poll interval.
    """

    def __init__(
        self,
        *,
        auto_exit: bool = True,
        entry_point: EntryPointSignal | None = None,
        start_monitor: bool = True,
        terminate: Callable[[], None] = terminate_process,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        self._lock = threading.Lock()
        self._open = 0
        self._total = 0
        self._auto_exit = bool(auto_exit)
        self.entry_point = entry_point or EntryPointSignal()
        self._start_monitor = start_monitor
        self.monitor = LifetimeMonitor(
            open_count=lambda: self.open_count,
            entry_point_running=self.entry_point.is_running,
            auto_exit_enabled=lambda: self._auto_exit,
            terminate=terminate,
            poll_interval_s=poll_interval_s,
        )

    @property
    def open_count(self) -> int:
        with self._lock:
            return self._open

    @property
    def total_created(self) -> int:
        with self._lock:
            return self._total

    @property
    def auto_exit(self) -> bool:
        return self._auto_exit

    def set_auto_exit(self, enabled: bool) -> None:
        """Enable or disable auto-exit; the monitor sees it on its next poll."""
        self._auto_exit = bool(enabled)
        logger.debug("auto exit %s", "enabled" if enabled else "disabled")

    def register(self) -> int:
        """Record a newly created panel and return its instance number."""
        with self._lock:
            self._open += 1
            self._total += 1
            number = self._total
        if self._start_monitor:
            self.monitor.start()
        return number

    def unregister(self) -> None:
        """Record that a panel was closed."""
        with self._lock:
            if self._open == 0:
                logger.warning("unregister called with no open panels")
                return
            self._open -= 1


_DEFAULT: SurfaceRegistry | None = None
_DEFAULT_LOCK = threading.Lock()


def get_registry() -> SurfaceRegistry:
    """Return the process default registry, creating it if needed."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            from drawingpanel.config import get_settings

            settings = get_settings()
            _DEFAULT = SurfaceRegistry(
                auto_exit=settings.auto_exit,
                poll_interval_s=settings.lifetime_poll_s,
            )
        return _DEFAULT


def set_auto_exit(enabled: bool) -> None:
    """Enable or disable automatic process exit for the default registry."""
    get_registry().set_auto_exit(enabled)


def main_finished() -> None:
    """Tell the default registry that the host program's main path is done."""
    get_registry().entry_point.mark_finished()
