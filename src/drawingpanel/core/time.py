"""Time abstraction for real and simulated clocks.

The repaint scheduler and the lifetime monitor run on their own threads and
read time through a TimeSource so that tests can drive them with a
deterministic clock instead of the system one.

Real-time usage:
    ts = RealTimeSource()
    start = ts.monotonic_ns()
    ts.sleep(0.5)
    elapsed_ns = ts.monotonic_ns() - start  # ~500_000_000

Simulated time usage:
    ts = SimTimeSource(start_ns=0, jitter=[0.5, 1.5])
    ts.sleep(1.0)  # returns immediately, time is now 0.5 s
    ts.sleep(1.0)  # time is now 2.0 s
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol, Sequence

__all__ = [
    "NS_PER_SECOND",
    "TimeSource",
    "RealTimeSource",
    "SimTimeSource",
]

NS_PER_SECOND = 1_000_000_000


class TimeSource(Protocol):
    """Protocol for clocks exposing monotonic nanoseconds and blocking sleep."""

    def monotonic_ns(self) -> int:
        """Return monotonic time in nanoseconds."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the calling thread for the given number of seconds."""
        ...


class RealTimeSource:
    """Real-time implementation using time.monotonic_ns and time.sleep."""

    def monotonic_ns(self) -> int:
        return time.monotonic_ns()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class SimTimeSource:
    """Deterministic simulated clock.

    Features:
    - Starts at a configurable time (default 0 ns)
    - advance(ns) and set_time(ns) move time forward only
    - sleep(sec) never blocks; it advances time by the requested duration
      scaled by the next factor of ``jitter`` (cycled), emulating an
      imprecise OS timer
    - zero-length sleeps advance by ``yield_ns`` so polling loops progress
    - on_sleep, when set, is called after every sleep with the new time

    Example:
        ts = SimTimeSource(start_ns=100, jitter=[2.0])
        ts.sleep(0.000001)
        assert ts.monotonic_ns() == 2100
    """

    def __init__(
        self,
        *,
        start_ns: int = 0,
        jitter: Sequence[float] = (1.0,),
        yield_ns: int = 10_000,
    ) -> None:
        """Initialize simulated time source.

        Args:
            start_ns: Starting monotonic time value
            jitter: Multipliers applied to successive sleep durations
            yield_ns: Time consumed by a zero-length sleep
        """
        if not jitter or any(f <= 0 for f in jitter):
            raise ValueError("jitter must be a non-empty sequence of factors > 0")
        if yield_ns < 0:
            raise ValueError(f"yield_ns must be non-negative: {yield_ns}")
        self._now_ns: int = int(start_ns)
        self._jitter: tuple[float, ...] = tuple(float(f) for f in jitter)
        self._yield_ns = int(yield_ns)
        self._sleep_calls = 0
        self._lock = threading.Lock()
        self.on_sleep: Callable[[int], None] | None = None

    @property
    def sleep_calls(self) -> int:
        return self._sleep_calls

    def monotonic_ns(self) -> int:
        with self._lock:
            return self._now_ns

    def set_time(self, t_ns: int) -> None:
        """Set absolute simulated time (forward only).

        Raises:
            ValueError: If t_ns is earlier than the current time
        """
        with self._lock:
            if t_ns < self._now_ns:
                raise ValueError(f"Cannot set time backwards: {t_ns} < {self._now_ns}")
            self._now_ns = int(t_ns)

    def advance(self, dt_ns: int) -> None:
        """Advance simulated time by dt_ns nanoseconds.

        Raises:
            ValueError: If dt_ns < 0
        """
        if dt_ns < 0:
            raise ValueError(f"Cannot advance time backwards: dt_ns={dt_ns}")
        with self._lock:
            self._now_ns += int(dt_ns)

    def sleep(self, seconds: float) -> None:
        """Consume simulated time instead of blocking.

        Raises:
            ValueError: If seconds < 0
        """
        if seconds < 0:
            raise ValueError(f"Sleep duration must be non-negative: {seconds}")

        with self._lock:
            if seconds == 0:
                step = self._yield_ns
            else:
                factor = self._jitter[self._sleep_calls % len(self._jitter)]
                # At least 1 ns so a sleep always moves time forward.
                step = max(1, int(seconds * NS_PER_SECOND * factor))
            self._sleep_calls += 1
            self._now_ns += step
            now = self._now_ns

        hook = self.on_sleep
        if hook is not None:
            hook(now)
