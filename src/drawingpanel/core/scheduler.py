"""Fixed-rate repaint scheduler.

Each panel owns one RepaintScheduler that invokes its repaint action on a
dedicated thread at a target rate. Tick deadlines are anchored to a fixed
reference time:

    target(n) = reference + (n + 1) * delay

so sleep imprecision never accumulates into drift. A tick that fires late
does not shift later deadlines; if the loop falls more than one period
behind it fires the missed ticks back to back and is then on schedule
again.

Waiting is done in shrinking steps: while the deadline is more than
``spin_threshold_ns`` away the loop sleeps ``sleep_fraction`` of the
remaining time, and closer to the deadline it only yields (``sleep(0)``).
This keeps wake-up latency low without holding the GIL in a hot loop.

Example:
    sched = RepaintScheduler(panel_repaint, 60, name="DrawingPanel-1 Timer")
    sched.start()
    ...
    sched.set_rate(30)
    sched.stop()
    sched.join()
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from drawingpanel.core.errors import InvalidArgumentError, log_recoverable
from drawingpanel.core.time import NS_PER_SECOND, RealTimeSource, TimeSource

__all__ = ["RepaintScheduler", "delay_ns_for_rate"]

logger = logging.getLogger(__name__)

DEFAULT_SLEEP_FRACTION = 0.83
DEFAULT_SPIN_THRESHOLD_NS = 2_000_000


def delay_ns_for_rate(rate: int) -> int:
    """Return the tick period in nanoseconds for *rate* ticks per second."""
    if isinstance(rate, bool) or not isinstance(rate, int) or rate < 1:
        raise InvalidArgumentError(f"Frame rate must be a positive integer, got {rate!r}")
    return NS_PER_SECOND // rate


class RepaintScheduler:
    """Invoke *action* at a steady rate on a background thread.

    Parameters
    ----------
    action:
        Zero-argument callable run once per tick. Invocations never overlap.
    rate:
        Target ticks per second (>= 1).
    time_source:
        Clock used for deadlines and sleeping (default: real time).
    name:
        Thread name.
    sleep_fraction:
        Portion of the remaining wait slept in one step (0 < f <= 1).
    spin_threshold_ns:
        Below this remaining wait the loop yields instead of sleeping.
    on_exit:
        Called on the loop thread after the loop ends, however it ends.
    """

    def __init__(
        self,
        action: Callable[[], None],
        rate: int,
        *,
        time_source: TimeSource | None = None,
        name: str | None = None,
        sleep_fraction: float = DEFAULT_SLEEP_FRACTION,
        spin_threshold_ns: int = DEFAULT_SPIN_THRESHOLD_NS,
        on_exit: Callable[[], None] | None = None,
    ) -> None:
        if not 0.0 < sleep_fraction <= 1.0:
            raise InvalidArgumentError(
                f"sleep_fraction must be in (0, 1], got {sleep_fraction!r}"
            )
        if spin_threshold_ns < 0:
            raise InvalidArgumentError(
                f"spin_threshold_ns must be >= 0, got {spin_threshold_ns!r}"
            )
        self._action = action
        self._on_exit = on_exit
        self._delay_ns = delay_ns_for_rate(rate)
        self._rate = rate
        self._ts: TimeSource = time_source or RealTimeSource()
        self._name = name or "RepaintScheduler"
        self._sleep_fraction = float(sleep_fraction)
        self._spin_threshold_ns = int(spin_threshold_ns)

        # Guards rate, delay, reference and ticks so a rate change is atomic
        # relative to deadline computation.
        self._lock = threading.Lock()
        self._reference_ns = 0
        self._ticks = 0
        self._phase = 0
        self._running = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def rate(self) -> int:
        with self._lock:
            return self._rate

    @property
    def timing(self) -> tuple[int, int]:
        """(rate, delay_ns) read together."""
        with self._lock:
            return self._rate, self._delay_ns

    @property
    def delay_ns(self) -> int:
        with self._lock:
            return self._delay_ns

    @property
    def ticks(self) -> int:
        """Ticks fired since the current phase began."""
        with self._lock:
            return self._ticks

    @property
    def running(self) -> bool:
        return self._running and not self._stop.is_set()

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    def start(self) -> None:
        """Run the loop on a new non-daemon thread."""
        if self._thread is not None:
            raise RuntimeError(f"{self._name} already started")
        self._thread = threading.Thread(target=self.run, name=self._name)
        self._thread.start()
        logger.debug("%s started at %d ticks/s", self._name, self._rate)

    def set_rate(self, rate: int) -> None:
        """Change the tick rate; the new rate starts a fresh phase."""
        delay_ns = delay_ns_for_rate(rate)
        with self._lock:
            self._restart_phase(rate, delay_ns)

    def set_delay_ns(self, delay_ns: int) -> None:
        """Replace the tick period and restart the phase at the current time.

        ``rate`` becomes the whole number of ticks per second the period
        allows (at least 1).
        """
        if delay_ns < 1:
            raise InvalidArgumentError(f"delay_ns must be positive, got {delay_ns!r}")
        with self._lock:
            self._restart_phase(max(1, NS_PER_SECOND // delay_ns), int(delay_ns))

    def _restart_phase(self, rate: int, delay_ns: int) -> None:
        # Caller holds self._lock.
        self._rate = rate
        self._delay_ns = delay_ns
        self._reference_ns = self._ts.monotonic_ns()
        self._ticks = 0
        self._phase += 1

    def stop(self) -> None:
        """Ask the loop to exit once any in-flight action has returned."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def run(self) -> None:
        """Scheduler loop; runs in the calling thread until stop() is observed."""
        self._running = True
        with self._lock:
            self._reference_ns = self._ts.monotonic_ns()
            self._ticks = 0

        try:
            while not self._stop.is_set():
                with self._lock:
                    target_ns = self._reference_ns + (self._ticks + 1) * self._delay_ns
                    phase = self._phase
                now_ns = self._ts.monotonic_ns()

                if now_ns < target_ns:
                    self._pause(target_ns - now_ns)
                    continue

                try:
                    self._action()
                except Exception:
                    logger.exception("%s: repaint action failed, stopping", self._name)
                    break
                with self._lock:
                    # A rate change during the action already started a new phase.
                    if phase == self._phase:
                        self._ticks += 1
        finally:
            self._running = False
            if self._on_exit is not None:
                try:
                    self._on_exit()
                except Exception:
                    logger.exception("%s: exit hook failed", self._name)
        logger.debug("%s stopped", self._name)

    def _pause(self, remaining_ns: int) -> None:
        if remaining_ns > self._spin_threshold_ns:
            seconds = remaining_ns * self._sleep_fraction / NS_PER_SECOND
        else:
            seconds = 0.0
        try:
            self._ts.sleep(seconds)
        except Exception:
            log_recoverable(logger, "%s: sleep interrupted", self._name)
