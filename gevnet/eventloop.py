"""A single-threaded event loop that dispatches descriptor events and queued tasks."""

from __future__ import annotations

import abc
import threading
from typing import Callable

from gevnet import log as _log
from gevnet.poller import Event, Poller

DEFAULT_PACKET_SIZE = 65536
DEFAULT_BUFFER_SIZE = 4096


class Socket(abc.ABC):
    """Something registered with an event loop under a descriptor."""

    @abc.abstractmethod
    def handle_event(self, fd: int, events: Event) -> None:
        """React to the events reported for ``fd``."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the socket."""


class EventLoop:
    """Runs a poller and executes tasks queued from any thread inside the loop."""

    def __init__(self) -> None:
        self._poller = Poller()
        self._sockets: dict[int, Socket] = {}
        self._count_lock = threading.Lock()
        self._conn_count = 0
        self._task_lock = threading.Lock()
        self._tasks: list[Callable[[], None]] = []
        self._wake_lock = threading.Lock()
        self._need_wake = True
        self.packet_size = DEFAULT_PACKET_SIZE
        self.user_buffer = bytearray(DEFAULT_BUFFER_SIZE)

    def _add_count(self, delta: int) -> None:
        with self._count_lock:
            self._conn_count += delta

    def connection_count(self) -> int:
        with self._count_lock:
            return self._conn_count

    def delete_fd_in_loop(self, fd: int) -> None:
        """Unregister ``fd``; must run inside the loop."""
        try:
            self._poller.delete(fd)
        except (KeyError, ValueError, OSError) as exc:
            _log.error("[DeleteFdInLoop]", exc)
        self._sockets.pop(fd, None)
        self._add_count(-1)

    def add_socket_and_enable_read(self, fd: int, sock: Socket) -> None:
        """Register ``sock`` under ``fd`` and watch it for reading."""
        self._sockets[fd] = sock
        try:
            self._poller.add_read(fd)
        except Exception:
            self._sockets.pop(fd, None)
            raise
        self._add_count(1)

    def enable_read_write(self, fd: int) -> None:
        self._poller.enable_read_write(fd)

    def enable_read(self, fd: int) -> None:
        self._poller.enable_read(fd)

    def run(self) -> None:
        """Run the loop until :meth:`stop` is called."""
        self._poller.poll(self._handle_event)

    def stop(self) -> None:
        """Close every registered socket inside the loop and stop polling.

        Raises :class:`~gevnet.poller.PollerClosedError` if the loop is not running.
        """

        def close_sockets() -> None:
            for sock in list(self._sockets.values()):
                try:
                    sock.close()
                except Exception as exc:
                    _log.error(exc)
            self._sockets = {}

        self.queue_in_loop(close_sockets)
        with self._count_lock:
            self._conn_count = 0
        self._poller.close()

    def queue_in_loop(self, func: Callable[[], None]) -> None:
        """Run ``func`` inside the loop thread."""
        with self._task_lock:
            self._tasks.append(func)
        with self._wake_lock:
            wake = self._need_wake
            self._need_wake = False
        if wake:
            try:
                self._poller.wake()
            except OSError as exc:
                _log.error("QueueInLoop Wake loop, ", exc)

    def _handle_event(self, fd: int, events: Event) -> None:
        if fd != -1:
            sock = self._sockets.get(fd)
            if sock is not None:
                sock.handle_event(fd, events)
        else:
            with self._wake_lock:
                self._need_wake = True
            self._do_pending()

    def _do_pending(self) -> None:
        with self._task_lock:
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task()