"""Accepts TCP connections on its own event loop and hands them on."""

from __future__ import annotations

import socket
from typing import Any, Callable

from gevnet import log as _log
from gevnet.eventloop import EventLoop, Socket
from gevnet.poller import Event

HandleConnFunc = Callable[[socket.socket, Any], None]

_FAMILIES = {
    "tcp": socket.AF_UNSPEC,
    "tcp4": socket.AF_INET,
    "tcp6": socket.AF_INET6,
}


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port) if port else 0
    except ValueError:
        raise ValueError(f"invalid port in address {address!r}") from None
    return host, port_number


def _bind(network: str, address: str, reuse_port: bool) -> socket.socket:
    family = _FAMILIES.get(network)
    if family is None:
        raise ValueError(f"unsupported network {network!r}")
    host, port = _split_address(address)
    if not host:
        if family == socket.AF_UNSPEC and socket.has_dualstack_ipv6():
            return socket.create_server(("", port), family=socket.AF_INET6,
                                        reuse_port=reuse_port, dualstack_ipv6=True)
        bind_family = socket.AF_INET6 if family == socket.AF_INET6 else socket.AF_INET
        return socket.create_server(("", port), family=bind_family, reuse_port=reuse_port)
    info = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)[0]
    return socket.create_server(info[4], family=info[0], reuse_port=reuse_port)


class Listener(Socket):
    """Listening socket served by a dedicated event loop (the main reactor)."""

    def __init__(self, network: str, address: str, reuse_port: bool,
                 handle_conn: HandleConnFunc) -> None:
        self._handle_conn = handle_conn
        self._sock = _bind(network, address, reuse_port)
        try:
            self._sock.setblocking(False)
            self.fd = self._sock.fileno()
            self.loop = EventLoop()
            self.loop.add_socket_and_enable_read(self.fd, self)
        except Exception:
            self._sock.close()
            raise

    @property
    def bound_address(self) -> tuple[str, int]:
        """Host and port the socket is bound to."""
        name = self._sock.getsockname()
        return name[0], name[1]

    def run(self) -> None:
        """Run the accept loop until :meth:`stop` is called."""
        self.loop.run()

    def handle_event(self, fd: int, events: Event) -> None:
        """Accept one pending connection and pass it to the handler."""
        if not events & Event.READ:
            return
        try:
            conn, addr = self._sock.accept()
        except BlockingIOError:
            return
        except OSError as exc:
            _log.error("accept:", exc)
            return
        try:
            conn.setblocking(False)
        except OSError as exc:
            conn.close()
            _log.error("set nonblock:", exc)
            return
        self._handle_conn(conn, addr)

    def close(self) -> None:
        self._sock.close()

    def stop(self) -> None:
        """Stop the event loop; raises PollerClosedError if it is not running."""
        self.loop.stop()