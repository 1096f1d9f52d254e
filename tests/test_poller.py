import queue
import socket
import threading
import time

import pytest

from gevnet.poller import Event, Poller, PollerClosedError


def _start(poller):
    events = queue.Queue()
    thread = threading.Thread(target=poller.poll, args=(lambda fd, ev: events.put((fd, ev)),))
    thread.start()
    time.sleep(0.5)
    return events, thread


def test_poll_only_wake_events():
    poller = Poller()
    events, thread = _start(poller)
    poller.close()
    thread.join(2)
    assert not thread.is_alive()
    seen = []
    while not events.empty():
        seen.append(events.get())
    assert all(fd == -1 for fd, _ in seen)


def test_close_without_poll_fails():
    poller = Poller()
    with pytest.raises(PollerClosedError):
        poller.close()


def test_close_twice_fails():
    poller = Poller()
    _, thread = _start(poller)
    poller.close()
    thread.join(2)
    with pytest.raises(PollerClosedError):
        poller.close()


def test_read_event_reported():
    left, right = socket.socketpair()
    poller = Poller()
    poller.add_read(left.fileno())
    events, thread = _start(poller)
    right.sendall(b"x")
    fd, ev = events.get(timeout=2)
    assert fd == left.fileno()
    assert ev & Event.READ
    poller.delete(left.fileno())
    poller.close()
    thread.join(2)
    left.close()
    right.close()


def test_wake_calls_handler_with_minus_one():
    poller = Poller()
    events, thread = _start(poller)
    poller.wake()
    fd, ev = events.get(timeout=2)
    assert (fd, ev) == (-1, Event.NONE)
    poller.close()
    thread.join(2)


def test_enable_read_write_reports_write():
    left, right = socket.socketpair()
    poller = Poller()
    poller.add_read(left.fileno())
    events, thread = _start(poller)
    poller.enable_read_write(left.fileno())
    poller.wake()
    deadline = time.monotonic() + 2
    got_write = False
    while time.monotonic() < deadline and not got_write:
        fd, ev = events.get(timeout=2)
        got_write = fd == left.fileno() and bool(ev & Event.WRITE)
    assert got_write
    poller.delete(left.fileno())
    poller.close()
    thread.join(2)
    left.close()
    right.close()


def test_delete_unknown_fd_raises():
    poller = Poller()
    with pytest.raises(KeyError):
        poller.delete(12345)