"""Readiness notification for file descriptors, with a wake-up channel."""

from __future__ import annotations

import os
import selectors
import threading
from enum import IntFlag
from typing import Callable


class Event(IntFlag):
    """Events reported to a poll handler."""

    NONE = 0
    READ = 0x1
    WRITE = 0x2
    ERR = 0x80


class PollerClosedError(RuntimeError):
    """Raised when closing a poller that is not running."""

    def __init__(self) -> None:
        super().__init__("poller instance is not running")


class Poller:
    """Waits for events on registered descriptors and reports them to a handler.

    The handler receives ``(fd, events)`` for descriptor events and
    ``(-1, Event.NONE)`` after a wake-up.
    """

    def __init__(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_r, False)
        os.set_blocking(self._wake_w, False)
        self._selector.register(self._wake_r, selectors.EVENT_READ)
        self._lock = threading.Lock()
        self._running = False
        self._wait_done = threading.Event()

    def wake(self) -> None:
        """Wake the poll loop."""
        try:
            os.write(self._wake_w, b"\x01")
        except BlockingIOError:
            pass  # a wake-up is already pending

    def _drain_wake(self) -> None:
        try:
            while os.read(self._wake_r, 4096):
                pass
        except BlockingIOError:
            pass

    def close(self) -> None:
        """Stop the poll loop, wait for it to end and release resources."""
        with self._lock:
            if not self._running:
                raise PollerClosedError()
            self._running = False
        self.wake()
        self._wait_done.wait()
        self._selector.close()
        os.close(self._wake_r)
        os.close(self._wake_w)

    def add_read(self, fd: int) -> None:
        self._selector.register(fd, selectors.EVENT_READ)

    def add_write(self, fd: int) -> None:
        self._selector.register(fd, selectors.EVENT_WRITE)

    def delete(self, fd: int) -> None:
        self._selector.unregister(fd)

    def enable_read_write(self, fd: int) -> None:
        self._selector.modify(fd, selectors.EVENT_READ | selectors.EVENT_WRITE)

    def enable_write(self, fd: int) -> None:
        self._selector.modify(fd, selectors.EVENT_WRITE)

    def enable_read(self, fd: int) -> None:
        self._selector.modify(fd, selectors.EVENT_READ)

    def poll(self, handler: Callable[[int, Event], None]) -> None:
        """Run the wait loop until the poller is closed."""
        with self._lock:
            self._running = True
        timeout: float | None = 0
        try:
            while True:
                ready = self._selector.select(timeout)
                if not ready:
                    timeout = None
                    continue
                timeout = 0
                woken = False
                for key, mask in ready:
                    if key.fd == self._wake_r:
                        self._drain_wake()
                        woken = True
                        continue
                    events = Event.NONE
                    if mask & selectors.EVENT_WRITE:
                        events |= Event.WRITE
                    if mask & selectors.EVENT_READ:
                        events |= Event.READ
                    handler(key.fd, events)
                if woken:
                    handler(-1, Event.NONE)
                    with self._lock:
                        if not self._running:
                            return
        finally:
            self._wait_done.set()