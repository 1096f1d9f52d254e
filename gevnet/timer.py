"""Delayed and periodic callbacks run by a background timer thread."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from gevnet import log as _log


@dataclass
class EveryScheduler:
    """Schedules a callback every ``interval`` seconds."""

    interval: float

    def next(self, prev: Any) -> Any:
        return prev + self.interval


class Timer:
    """Handle for a scheduled callback."""

    def __init__(self, wheel: "TimingWheel", expiration: float,
                 func: Callable[[], None], scheduler: Any = None) -> None:
        self._wheel = wheel
        self._expiration = expiration
        self._func = func
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._stopped = False
        self._done = False

    def stop(self) -> bool:
        """Prevent further firing; True if the timer was still pending."""
        with self._lock:
            pending = not self._stopped and not self._done
            self._stopped = True
        return pending

    def _fire(self) -> None:
        reschedule = False
        with self._lock:
            if self._stopped:
                return
            if self._scheduler is None:
                self._done = True
            else:
                following = self._scheduler.next(self._expiration)
                if following is None:
                    self._done = True
                else:
                    self._expiration = following
                    reschedule = True
        if reschedule:
            self._wheel._add(self)
        try:
            self._func()
        except Exception as exc:  # a failing callback must not stop the timer thread
            _log.error("[timer]", exc)


class TimingWheel:
    """Runs timers on one thread, with expirations truncated to ``tick``."""

    def __init__(self, tick: float = 0.001, wheel_size: int = 1000) -> None:
        if tick < 0.001:
            raise ValueError("tick must be greater than or equal to 1ms")
        if wheel_size <= 0:
            raise ValueError("wheel size must be positive")
        self.tick = tick
        self.wheel_size = wheel_size
        self._cond = threading.Condition()
        self._heap: list[tuple[float, int, Timer]] = []
        self._seq = itertools.count()
        self._running = False
        self._thread: threading.Thread | None = None

    def _truncate(self, when: float) -> float:
        return when - (when % self.tick)

    def _add(self, timer: Timer) -> None:
        with self._cond:
            heapq.heappush(self._heap, (timer._expiration, next(self._seq), timer))
            self._cond.notify()

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(target=self._run, name="timing-wheel", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        with self._cond:
            if not self._running:
                return
            self._running = False
            self._cond.notify_all()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _next_due(self) -> Timer | None:
        while self._running:
            if not self._heap:
                self._cond.wait()
                continue
            expiration, _, timer = self._heap[0]
            remaining = expiration - time.monotonic()
            if remaining > 0:
                self._cond.wait(remaining)
                continue
            heapq.heappop(self._heap)
            return timer
        return None

    def _run(self) -> None:
        while True:
            with self._cond:
                timer = self._next_due()
            if timer is None:
                return
            timer._fire()

    def after_func(self, delay: float, func: Callable[[], None]) -> Timer:
        """Call ``func`` once after ``delay`` seconds."""
        timer = Timer(self, self._truncate(time.monotonic() + delay), func)
        self._add(timer)
        return timer

    def schedule_func(self, scheduler: Any, func: Callable[[], None]) -> Timer | None:
        """Call ``func`` at the times given by ``scheduler.next``; None if it gives none."""
        expiration = scheduler.next(time.monotonic())
        if expiration is None:
            return None
        timer = Timer(self, self._truncate(expiration), func, scheduler)
        self._add(timer)
        return timer