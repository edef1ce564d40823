import threading
import time

import pytest

from nstdkit.netpoll import Poll, PollEvent, PollFlag
from nstdkit.netsocket import LOOPBACK_ADDRESS, Socket


@pytest.fixture
def poller():
    with Poll() as p:
        yield p


@pytest.fixture
def pair():
    a, b = Socket(), Socket()
    a.pair(b)
    yield a, b
    a.close()
    b.close()


def test_timeout_returns_empty_event(poller):
    event = poller.poll(0)
    assert event == PollEvent(PollFlag.NONE, None)


def test_read_ready_after_data(poller, pair):
    a, b = pair
    poller.set(a, PollFlag.READ)
    assert poller.poll(0).socket is None
    b.send(b"x")
    event = poller.poll(1000)
    assert event.socket is a
    assert event.flags == PollFlag.READ
    assert a.recv(1) == b"x"


def test_write_ready_immediately(poller, pair):
    a, _ = pair
    poller.set(a, PollFlag.WRITE)
    event = poller.poll(1000)
    assert event.socket is a
    assert event.flags == PollFlag.WRITE


def test_only_watched_flags_reported(poller, pair):
    a, b = pair
    poller.set(a, PollFlag.READ | PollFlag.WRITE)
    b.send(b"y")
    event = poller.poll(1000)
    assert event.socket is a
    assert event.flags == PollFlag.READ | PollFlag.WRITE
    poller.set(a, PollFlag.WRITE)
    event = poller.poll(1000)
    assert event.flags == PollFlag.WRITE


def test_zero_flags_produce_no_events(poller, pair):
    a, b = pair
    poller.set(a, PollFlag.READ)
    poller.set(a, PollFlag.NONE)
    b.send(b"z")
    assert poller.poll(0).socket is None
    poller.set(a, PollFlag.READ)
    assert poller.poll(1000).socket is a


def test_closed_socket_is_ignored(poller):
    sock = Socket()
    poller.set(sock, PollFlag.READ)
    assert poller.poll(0) == PollEvent(PollFlag.NONE, None)


def test_removed_socket_dropped_from_queue(poller):
    a, b, c, d = Socket(), Socket(), Socket(), Socket()
    a.pair(b)
    c.pair(d)
    try:
        poller.set(a, PollFlag.READ)
        poller.set(c, PollFlag.READ)
        b.send(b"1")
        d.send(b"2")
        deadline = time.monotonic() + 2
        first = poller.poll(1000)
        while first.socket is None and time.monotonic() < deadline:
            first = poller.poll(100)
        assert first.socket in (a, c)
        other = c if first.socket is a else a
        poller.remove(other)
        poller.remove(first.socket)
        assert poller.poll(0).socket is None
    finally:
        for s in (a, b, c, d):
            s.close()


def test_removing_flag_drops_queued_event(poller):
    a, b, c, d = Socket(), Socket(), Socket(), Socket()
    a.pair(b)
    c.pair(d)
    try:
        poller.set(a, PollFlag.WRITE)
        poller.set(c, PollFlag.WRITE)
        first = poller.poll(1000)
        assert first.socket in (a, c)
        other = c if first.socket is a else a
        poller.set(other, PollFlag.READ)
        assert poller.poll(0).socket is not other or poller.poll(0).flags != PollFlag.WRITE
        event = poller.poll(0)
        assert not (event.socket is other and event.flags & PollFlag.WRITE)
    finally:
        for s in (a, b, c, d):
            s.close()


def test_clear_forgets_sockets(poller, pair):
    a, b = pair
    poller.set(a, PollFlag.READ)
    b.send(b"q")
    poller.clear()
    assert poller.poll(0).socket is None


def test_interrupt_before_poll(poller):
    poller.interrupt()
    start = time.monotonic()
    event = poller.poll(5000)
    assert event.socket is None
    assert time.monotonic() - start < 2


def test_interrupt_from_other_thread(poller):
    def wake():
        time.sleep(0.05)
        poller.interrupt()

    thread = threading.Thread(target=wake)
    thread.start()
    start = time.monotonic()
    event = poller.poll(-1)
    elapsed = time.monotonic() - start
    thread.join()
    assert event == PollEvent(PollFlag.NONE, None)
    assert elapsed > 0.02


def test_accept_and_connect(poller):
    listener, client = Socket(), Socket()
    try:
        listener.open()
        listener.set_reuse_address()
        listener.bind(LOOPBACK_ADDRESS, 0)
        listener.listen()
        _, port = listener.get_sock_name()
        poller.set(listener, PollFlag.ACCEPT)

        client.open()
        client.set_non_blocking()
        client.connect(LOOPBACK_ADDRESS, port)
        poller.set(client, PollFlag.CONNECT)

        seen = {}
        deadline = time.monotonic() + 3
        while len(seen) < 2 and time.monotonic() < deadline:
            event = poller.poll(200)
            if event.socket is not None:
                seen[id(event.socket)] = event.flags
        assert seen[id(listener)] == PollFlag.ACCEPT
        assert seen[id(client)] == PollFlag.CONNECT
        assert client.get_and_reset_error_status() == 0
        accepted, ip, _ = listener.accept()
        accepted.close()
        assert ip == LOOPBACK_ADDRESS
    finally:
        listener.close()
        client.close()


def test_peer_close_reports_read(poller, pair):
    a, b = pair
    poller.set(a, PollFlag.READ)
    b.close()
    event = poller.poll(1000)
    assert event.socket is a
    assert event.flags & PollFlag.READ
    assert a.recv(16) == b""