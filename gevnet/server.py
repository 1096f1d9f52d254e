"""The server: a listener reactor, worker event loops and a timer."""

from __future__ import annotations

import abc
import dataclasses
import os
import socket
import threading
from typing import Any, Callable, Optional

from gevnet import log as _log
from gevnet.connection import CallBack, Connection
from gevnet.eventloop import EventLoop
from gevnet.listener import Listener
from gevnet.options import Options
from gevnet.timer import EveryScheduler, Timer, TimingWheel


class Handler(CallBack):
    """User callbacks for a server's connections."""

    @abc.abstractmethod
    def on_connect(self, conn: Connection) -> None:
        """Called inside the worker loop when a connection is accepted."""


class Server:
    """Accepts connections and spreads them over worker event loops."""

    def __init__(self, handler: Handler, options: Optional[Options] = None) -> None:
        if handler is None:
            raise ValueError("handler is nil")
        opts = (options or Options()).with_defaults()
        if opts.num_loops <= 0:
            opts.num_loops = os.cpu_count() or 1
        self._callback = handler
        self._options = opts
        self._lock = threading.Lock()
        self._running = False
        self._timing_wheel = TimingWheel(opts.tick, opts.wheel_size)
        self._listener = Listener(opts.network, opts.address, opts.reuse_port,
                                  self._handle_new_connection)
        try:
            self.work_loops = [EventLoop() for _ in range(opts.num_loops)]
        except Exception:
            self._listener.close()
            raise

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def listen_address(self) -> tuple[str, int]:
        """Host and port the server listens on."""
        return self._listener.bound_address

    def run_after(self, delay: float, func: Callable[[], None]) -> Timer:
        """Call ``func`` once after ``delay`` seconds."""
        return self._timing_wheel.after_func(delay, func)

    def run_every(self, interval: float, func: Callable[[], None]) -> Optional[Timer]:
        """Call ``func`` every ``interval`` seconds."""
        return self._timing_wheel.schedule_func(EveryScheduler(interval), func)

    def _handle_new_connection(self, sock: socket.socket, addr: Any) -> None:
        opts = self._options
        loop = opts.strategy(self.work_loops)
        conn = Connection(sock, loop, addr, opts.protocol, self._timing_wheel,
                          opts.idle_time, self._callback)
        fd = sock.fileno()

        def register() -> None:
            self._callback.on_connect(conn)
            try:
                loop.add_socket_and_enable_read(fd, conn)
            except (KeyError, ValueError, OSError) as exc:
                _log.error("[AddSocketAndEnableRead]", exc)

        loop.queue_in_loop(register)

    def start(self) -> None:
        """Run the timer, the workers and the listener; block until stopped."""
        self._timing_wheel.start()
        loops = [*self.work_loops, self._listener.loop]
        threads = [threading.Thread(target=loop.run, daemon=True) for loop in loops]
        for thread in threads:
            thread.start()

        ready = []
        for loop in loops:
            event = threading.Event()
            loop.queue_in_loop(event.set)
            ready.append(event)
        for event in ready:
            event.wait()

        with self._lock:
            self._running = True
        for thread in threads:
            thread.join()

    def stop(self) -> None:
        """Stop the timer, the listener and every worker loop."""
        with self._lock:
            if not self._running:
                return
            self._running = False

        self._timing_wheel.stop()
        try:
            self._listener.stop()
        except Exception as exc:
            _log.error(exc)
        for loop in self.work_loops:
            try:
                loop.stop()
            except Exception as exc:
                _log.error(exc)

    def options(self) -> Options:
        """A copy of the effective options."""
        return dataclasses.replace(self._options)