import socket
import threading
import time

import pytest

from gevnet.connection import CallBack, Connection, ConnectionClosedError
from gevnet.eventloop import EventLoop
from gevnet.protocol import DefaultProtocol, Protocol
from gevnet.timer import TimingWheel


class _Recorder(CallBack):
    def __init__(self, reply=True):
        self.reply = reply
        self.messages = []
        self.closed = threading.Event()

    def on_message(self, conn, ctx, data):
        self.messages.append(bytes(data))
        return bytes(data) if self.reply else None

    def on_close(self, conn):
        self.closed.set()


class _FourBytes(Protocol):
    def unpacket(self, conn, buffer):
        if len(buffer) >= 4:
            return None, buffer.read(4)
        return None, b""

    def packet(self, conn, data):
        return bytes(data)


@pytest.fixture
def loop():
    lp = EventLoop()
    thread = threading.Thread(target=lp.run, daemon=True)
    thread.start()
    ready = threading.Event()
    lp.queue_in_loop(ready.set)
    assert ready.wait(5)
    yield lp
    lp.stop()
    thread.join(5)


@pytest.fixture
def pair():
    server, client = socket.socketpair()
    server.setblocking(False)
    client.settimeout(5)
    yield server, client
    server.close()
    client.close()


def _attach(loop, conn, sock):
    done = threading.Event()

    def add():
        loop.add_socket_and_enable_read(sock.fileno(), conn)
        done.set()

    loop.queue_in_loop(add)
    assert done.wait(5)


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _new(loop, server, callback, protocol=None, wheel=None, idle=0):
    return Connection(server, loop, ("127.0.0.1", 4242), protocol or DefaultProtocol(),
                      wheel, idle, callback)


def test_echo(loop, pair):
    server, client = pair
    cb = _Recorder()
    conn = _new(loop, server, cb)
    _attach(loop, conn, server)
    client.sendall(b"hello")
    assert client.recv(100) == b"hello"
    assert cb.messages == [b"hello"]
    assert loop.connection_count() == 1


def test_send_from_other_thread(loop, pair):
    server, client = pair
    cb = _Recorder(reply=False)
    conn = _new(loop, server, cb)
    _attach(loop, conn, server)
    sent = []
    conn.send(b"push", on_sent=sent.append)
    assert client.recv(100) == b"push"
    assert _wait_until(lambda: sent == [b"push"])
    assert conn.write_buffer_length() == 0
    assert conn.connected() is True


def test_close_notifies_and_rejects_further_use(loop, pair):
    server, client = pair
    cb = _Recorder()
    conn = _new(loop, server, cb)
    _attach(loop, conn, server)
    conn.close()
    assert client.recv(100) == b""
    assert cb.closed.wait(5)
    assert conn.connected() is False
    assert loop.connection_count() == 0
    with pytest.raises(ConnectionClosedError):
        conn.send(b"late")
    with pytest.raises(ConnectionClosedError):
        conn.close()


def test_peer_close_calls_on_close(loop, pair):
    server, client = pair
    cb = _Recorder()
    conn = _new(loop, server, cb)
    _attach(loop, conn, server)
    client.close()
    assert cb.closed.wait(5)
    assert conn.connected() is False


def test_shutdown_write_sends_eof(loop, pair):
    server, client = pair
    cb = _Recorder()
    conn = _new(loop, server, cb)
    _attach(loop, conn, server)
    conn.shutdown_write()
    assert client.recv(100) == b""
    assert conn.connected() is True


def test_partial_message_stays_in_read_buffer(loop, pair):
    server, client = pair
    cb = _Recorder()
    conn = _new(loop, server, cb, protocol=_FourBytes())
    _attach(loop, conn, server)
    client.sendall(b"ab")
    assert _wait_until(lambda: conn.read_buffer_length() == 2)
    assert cb.messages == []
    client.sendall(b"cd")
    assert client.recv(100) == b"abcd"
    assert _wait_until(lambda: conn.read_buffer_length() == 0)
    assert conn.write_buffer_length() == 0


def test_idle_connection_is_closed(loop, pair):
    server, client = pair
    wheel = TimingWheel()
    wheel.start()
    try:
        cb = _Recorder()
        start = time.monotonic()
        conn = _new(loop, server, cb, wheel=wheel, idle=0.2)
        _attach(loop, conn, server)
        assert client.recv(100) == b""
        assert cb.closed.wait(5)
        assert time.monotonic() - start >= 0.19
        assert conn.connected() is False
    finally:
        wheel.stop()


def test_idle_time_needs_wheel(pair):
    server, _ = pair
    with pytest.raises(ValueError):
        Connection(server, None, ("127.0.0.1", 1), DefaultProtocol(), None, 1, _Recorder())


def test_peer_addr_formats():
    a, b = socket.socketpair()
    try:
        v4 = Connection(a, None, ("127.0.0.1", 4242), DefaultProtocol(), None, 0, _Recorder())
        v6 = Connection(a, None, ("::1", 80, 0, 0), DefaultProtocol(), None, 0, _Recorder())
        other = Connection(a, None, "somewhere", DefaultProtocol(), None, 0, _Recorder())
        assert v4.peer_addr() == "127.0.0.1:4242"
        assert v6.peer_addr() == "[::1]:80"
        assert other.peer_addr() == "(unknown - str)"
    finally:
        a.close()
        b.close()


def test_connection_carries_key_values(pair):
    server, _ = pair
    conn = Connection(server, None, ("127.0.0.1", 1), DefaultProtocol(), None, 0, _Recorder())
    conn.set("k", 1)
    assert conn.get("k") == 1
    conn.delete("k")
    assert conn.get("k") is None