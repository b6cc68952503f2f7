"""Process lifetime management.

A single LifetimeMonitor polls three signals and ends the process once
every panel is closed and the host program's main thread has finished,
unless auto-exit has been turned off. The signals are plain callables so
each condition can be driven independently in tests.

Whether the host's entry point is still running is answered by
EntryPointSignal: the program can say so explicitly with mark_finished(),
and otherwise the signal watches the interpreter's main thread. Once it
reports "not running" the answer never changes.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable

from drawingpanel.core.errors import log_recoverable

__all__ = [
    "DEFAULT_POLL_INTERVAL_S",
    "EntryPointSignal",
    "LifetimeMonitor",
    "terminate_process",
]

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 0.5


def terminate_process() -> None:
    """Flush logging and exit immediately with status 0."""
    logging.shutdown()
    os._exit(0)


class EntryPointSignal:
    """Tracks whether the host program's main path is still executing."""

    def __init__(self, thread: threading.Thread | None = None) -> None:
        self._thread = thread if thread is not None else threading.main_thread()
        self._finished = threading.Event()

    def mark_finished(self) -> None:
        """Declare that the host program's entry point has returned."""
        if not self._finished.is_set():
            logger.debug("entry point marked finished")
        self._finished.set()

    def is_running(self) -> bool:
        if self._finished.is_set():
            return False
        if not self._thread.is_alive():
            logger.debug("entry point thread %r has exited", self._thread.name)
            self._finished.set()
            return False
        return True


class LifetimeMonitor:
    """Background poller that terminates the process when nothing is left.

    Args:
        open_count: returns the number of open panels
        entry_point_running: returns whether the host's main path still runs
        auto_exit_enabled: returns whether automatic termination is allowed
        terminate: action ending the process (default: terminate_process)
        poll_interval_s: seconds between polls
    """

    def __init__(
        self,
        *,
        open_count: Callable[[], int],
        entry_point_running: Callable[[], bool],
        auto_exit_enabled: Callable[[], bool],
        terminate: Callable[[], None] = terminate_process,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        if poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be > 0: {poll_interval_s}")
        self._open_count = open_count
        self._entry_point_running = entry_point_running
        self._auto_exit_enabled = auto_exit_enabled
        self._terminate = terminate
        self._interval = float(poll_interval_s)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def should_terminate(self) -> bool:
        # Cheapest checks first; the entry point probe may walk thread state.
        return (
            self._auto_exit_enabled()
            and self._open_count() == 0
            and not self._entry_point_running()
        )

    def poll_once(self) -> bool:
        """Check the exit conditions once, terminating if all hold.

        Returns True when termination was attempted.
        """
        if not self.should_terminate():
            return False
        logger.debug("lifetime monitor: no open panels and entry point done, exiting")
        try:
            self._terminate()
        except Exception:
            logger.exception("lifetime monitor: process termination failed")
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="DrawingPanel Shutdown", daemon=True
        )
        self._thread.start()
        logger.debug("lifetime monitor started (poll every %.3fs)", self._interval)

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            try:
                if self._stop_event.wait(self._interval):
                    break
            except Exception:
                log_recoverable(logger, "lifetime monitor wait interrupted")
            self.poll_once()
        logger.debug("lifetime monitor stopped")
