"""A TCP connection served by an event loop."""

from __future__ import annotations

import abc
import contextlib
import ipaddress
import socket
import time
from typing import Any, Callable, Optional

from gevnet import log as _log
from gevnet.context import KeyValueContext
from gevnet.eventloop import EventLoop, Socket
from gevnet.poller import Event
from gevnet.protocol import Protocol, RingBuffer
from gevnet.timer import Timer, TimingWheel


class ConnectionClosedError(ConnectionError):
    """Raised when using a connection that is already closed."""

    def __init__(self) -> None:
        super().__init__("connection closed")


class CallBack(abc.ABC):
    """Receives the messages and the close of a connection."""

    @abc.abstractmethod
    def on_message(self, conn: "Connection", ctx: Any, data: bytes) -> Any:
        """Handle one message; a non-None result is packed and sent back."""

    @abc.abstractmethod
    def on_close(self, conn: "Connection") -> None:
        """Called once, inside the loop, when the connection closes."""


def _sock_addr_to_string(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            ip = None
        if ip is not None:
            text = str(ip)
            if ip.version == 6:
                text = f"[{text}]"
            return f"{text}:{port}"
    return f"(unknown - {type(addr).__name__})"


class Connection(KeyValueContext, Socket):
    """One accepted, non-blocking socket and its buffers."""

    def __init__(self, sock: socket.socket, loop: EventLoop, peer: Any,
                 protocol: Protocol, timing_wheel: Optional[TimingWheel],
                 idle_time: float, callback: CallBack) -> None:
        super().__init__()
        self._sock = sock
        self._fd = sock.fileno()
        self._loop = loop
        self._peer_addr = _sock_addr_to_string(peer)
        self._protocol = protocol
        self._timing_wheel = timing_wheel
        self._idle_time = idle_time
        self._callback = callback
        self._in_buffer = RingBuffer()
        self._out_buffer = bytearray()
        self._in_len = 0
        self._out_len = 0
        self._connected = True
        self._timer: Optional[Timer] = None
        self._active_time = time.monotonic()
        self.context: Any = None

        if idle_time > 0:
            if timing_wheel is None:
                raise ValueError("an idle time needs a timing wheel")
            self._timer = timing_wheel.after_func(idle_time, self._close_timeout_conn)

    def _close_timeout_conn(self) -> None:
        intervals = time.monotonic() - self._active_time
        if intervals >= self._idle_time:
            with contextlib.suppress(ConnectionClosedError):
                self.close()
        elif self._connected and self._timing_wheel is not None:
            self._timer = self._timing_wheel.after_func(
                self._idle_time - intervals, self._close_timeout_conn)

    def peer_addr(self) -> str:
        return self._peer_addr

    def connected(self) -> bool:
        return self._connected

    def send(self, data: Any, on_sent: Optional[Callable[[Any], None]] = None) -> None:
        """Send ``data`` from any thread; ``on_sent`` runs in the loop afterwards."""
        if not self._connected:
            raise ConnectionClosedError()

        def task() -> None:
            if self._connected:
                self._send_in_loop(self._protocol.packet(self, data))
                if on_sent is not None:
                    on_sent(data)

        self._loop.queue_in_loop(task)

    def close(self) -> None:
        """Close the connection from any thread."""
        if not self._connected:
            raise ConnectionClosedError()
        self._loop.queue_in_loop(lambda: self._handle_close(self._fd))

    def shutdown_write(self) -> None:
        """Close the writing side; reading continues."""
        self._sock.shutdown(socket.SHUT_WR)

    def read_buffer_length(self) -> int:
        """Bytes received but not yet taken by the protocol."""
        return self._in_len

    def write_buffer_length(self) -> int:
        """Bytes waiting to be written."""
        return self._out_len

    def handle_event(self, fd: int, events: Event) -> None:
        """Handle the poller's events; called by the event loop."""
        if self._idle_time > 0:
            self._active_time = time.monotonic()

        if events & Event.ERR:
            self._handle_close(fd)
            return

        if self._out_buffer:
            if events & Event.WRITE and self._handle_write(fd):
                return
        elif events & Event.READ:
            if self._handle_read(fd):
                return

        self._in_len = len(self._in_buffer)
        self._out_len = len(self._out_buffer)

    def _handle_protocol(self, out: bytearray, buffer: RingBuffer) -> None:
        ctx, received = self._protocol.unpacket(self, buffer)
        while ctx is not None or received:
            reply = self._callback.on_message(self, ctx, received)
            if reply is not None:
                out += self._protocol.packet(self, reply)
            ctx, received = self._protocol.unpacket(self, buffer)

    def _handle_read(self, fd: int) -> bool:
        """Read and dispatch; True if the connection got closed."""
        try:
            data = self._sock.recv(self._loop.packet_size)
        except BlockingIOError:
            return False
        except OSError:
            self._handle_close(fd)
            return True
        if not data:
            self._handle_close(fd)
            return True

        self._in_buffer.write(data)
        out = bytearray()
        self._handle_protocol(out, self._in_buffer)
        if out:
            return self._send_in_loop(bytes(out))
        return False

    def _handle_write(self, fd: int) -> bool:
        try:
            n = self._sock.send(self._out_buffer)
        except BlockingIOError:
            return False
        except OSError:
            self._handle_close(fd)
            return True
        del self._out_buffer[:n]

        if not self._out_buffer:
            try:
                self._loop.enable_read(fd)
            except (KeyError, ValueError, OSError) as exc:
                _log.error("[enableRead]", exc)
        return False

    def _handle_close(self, fd: int) -> None:
        if not self._connected:
            return
        self._connected = False
        self._loop.delete_fd_in_loop(fd)
        self._callback.on_close(self)
        try:
            self._sock.close()
        except OSError as exc:
            _log.error("[close fd]", exc)
        if self._timer is not None:
            self._timer.stop()

    def _send_in_loop(self, data: bytes) -> bool:
        """Write or buffer ``data``; True if the connection got closed."""
        if self._out_buffer:
            self._out_buffer += data
            return False

        try:
            n = self._sock.send(data)
        except BlockingIOError:
            n = 0
        except OSError:
            self._handle_close(self._fd)
            return True

        if n < len(data):
            self._out_buffer += data[n:]
        if self._out_buffer:
            with contextlib.suppress(KeyError, ValueError, OSError):
                self._loop.enable_read_write(self._fd)
        return False