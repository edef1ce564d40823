import errno
import threading

import pytest

from nstdkit.netsocket import LOOPBACK_ADDRESS, Socket
from nstdkit.server import Client, Server


class _Deadline:
    def __init__(self, server):
        self.server = server
        self.hit = False

    def on_activated(self):
        self.hit = True
        self.server.interrupt()


def _run(server, seconds=5.0):
    """Run the server; return True if the safety deadline stopped it."""
    deadline = _Deadline(server)
    timer = server.time(int(seconds * 1000), deadline)
    server.run()
    server.remove(timer)
    return deadline.hit


class Collector:
    def __init__(self, server, client=None):
        self.server = server
        self.client = client
        self.received = []
        self.closed = False
        self.writes = 0

    def on_read(self):
        data = self.client.read(4096)
        if data:
            self.received.append(data)
            self.server.interrupt()

    def on_write(self):
        self.writes += 1
        self.server.interrupt()

    def on_closed(self):
        self.closed = True
        self.server.remove(self.client)
        self.server.interrupt()


class Acceptor:
    def __init__(self, server, refuse=False):
        self.server = server
        self.refuse = refuse
        self.peers = []
        self.collectors = []

    def on_accepted(self, client, ip, port):
        self.peers.append(ip)
        if self.refuse:
            self.server.interrupt()
            return None
        collector = Collector(self.server, client)
        self.collectors.append(collector)
        return collector


class Connector:
    def __init__(self, server, message):
        self.server = server
        self.message = message
        self.errors = []
        self.clients = []

    def on_connected(self, client):
        self.clients.append(client)
        client.write(self.message)
        return Collector(self.server, client)

    def on_abolished(self, error):
        self.errors.append(error)
        self.server.interrupt()


class Counter:
    def __init__(self, server, limit, remove_self=False):
        self.server = server
        self.limit = limit
        self.remove_self = remove_self
        self.count = 0
        self.timer = None

    def on_activated(self):
        self.count += 1
        if self.remove_self:
            self.server.remove(self.timer)
        if self.count == self.limit:
            self.server.interrupt()


@pytest.fixture
def server():
    srv = Server()
    yield srv
    srv.clear()


def _paired(server):
    other = Socket()
    collector = Collector(server)
    client = server.pair(collector, other)
    collector.client = client
    return client, collector, other


def test_timer_activates_until_interrupted(server):
    counter = Counter(server, 3)
    counter.timer = server.time(1, counter)
    assert _run(server) is False
    assert counter.count >= 3


def test_removed_timer_stops_activating(server):
    once = Counter(server, 0, remove_self=True)
    once.timer = server.time(1, once)
    steady = Counter(server, 5)
    steady.timer = server.time(5, steady)
    assert _run(server) is False
    assert once.count == 1
    assert steady.count >= 5


def test_paired_client_reads_data(server):
    client, collector, other = _paired(server)
    other.send(b"hello")
    assert _run(server) is False
    assert collector.received == [b"hello"]
    other.close()


def test_client_write_is_sent_immediately(server):
    client, _, other = _paired(server)
    assert client.write(b"data") == 0
    assert other.recv(100) == b"data"
    other.close()


def test_peer_close_calls_on_closed(server):
    client, collector, other = _paired(server)
    other.close()
    assert _run(server) is False
    assert collector.closed is True
    assert client.socket().is_open() is False


def test_suspended_client_gets_no_reads_until_resumed(server):
    client, collector, other = _paired(server)
    client.suspend()
    other.send(b"x")
    assert _run(server, 0.05) is True
    assert collector.received == []
    client.resume()
    assert _run(server) is False
    assert collector.received == [b"x"]
    other.close()


def test_postponed_write_is_flushed_and_reported(server):
    client, collector, other = _paired(server)
    data = bytes(range(256)) * 8192
    received = bytearray()

    def drain():
        while len(received) < len(data):
            chunk = other.recv(65536)
            if not chunk:
                break
            received.extend(chunk)

    postponed = client.write(data)
    assert postponed > 0
    reader = threading.Thread(target=drain)
    reader.start()
    assert _run(server) is False
    reader.join(5)
    assert collector.writes == 1
    assert bytes(received) == data
    other.close()


def test_listen_and_connect_by_address(server):
    acceptor = Acceptor(server)
    listener = server.listen(LOOPBACK_ADDRESS, 0, acceptor)
    port = listener.socket.get_sock_name()[1]
    connector = Connector(server, b"ping")
    server.connect(LOOPBACK_ADDRESS, port, connector)
    while not any(c.received for c in acceptor.collectors):
        assert _run(server) is False
    assert acceptor.peers == [LOOPBACK_ADDRESS]
    assert acceptor.collectors[0].received == [b"ping"]
    assert connector.errors == []
    assert isinstance(connector.clients[0], Client)


def test_connect_by_host_name(server):
    acceptor = Acceptor(server)
    listener = server.listen(LOOPBACK_ADDRESS, 0, acceptor)
    port = listener.socket.get_sock_name()[1]
    connector = Connector(server, b"ping")
    server.connect("localhost", port, connector)
    while not any(c.received for c in acceptor.collectors) and not connector.errors:
        assert _run(server) is False
    assert connector.errors == []
    assert acceptor.collectors[0].received == [b"ping"]


def test_refused_connection_is_abolished(server):
    probe = Socket()
    probe.open()
    probe.bind(LOOPBACK_ADDRESS, 0)
    port = probe.get_sock_name()[1]
    probe.close()
    connector = Connector(server, b"ping")
    codes = []
    try:
        server.connect(LOOPBACK_ADDRESS, port, connector)
    except ConnectionRefusedError as exc:
        codes.append(exc.errno)
    else:
        assert _run(server) is False
        codes.extend(error.errno for error in connector.errors)
    assert codes == [errno.ECONNREFUSED]
    assert connector.clients == []


def test_refused_accept_closes_connection(server):
    acceptor = Acceptor(server, refuse=True)
    listener = server.listen(LOOPBACK_ADDRESS, 0, acceptor)
    port = listener.socket.get_sock_name()[1]
    peer = Socket()
    peer.open()
    peer.connect(LOOPBACK_ADDRESS, port)
    assert _run(server) is False
    assert acceptor.peers == [LOOPBACK_ADDRESS]
    assert peer.recv(10) == b""
    peer.close()


def test_remove_rejects_unknown_handle(server):
    with pytest.raises(TypeError):
        server.remove(object())


def test_clear_closes_sockets_and_keeps_server_usable(server):
    client, _, other = _paired(server)
    server.clear()
    assert client.socket().is_open() is False
    assert _run(server, 0.01) is True
    other.close()