"""An event loop over listening, connecting and connected sockets, and timers.

Callbacks are plain objects with these methods:

- listener callback: ``on_accepted(client, ip, port)`` returns the client
  callback, or None to refuse the connection;
- establisher callback: ``on_connected(client)`` returns the client callback,
  or None to drop the connection; ``on_abolished(error)`` receives an OSError;
- client callback: ``on_read()``, ``on_write()`` and ``on_closed()``;
- timer callback: ``on_activated()``.
"""

from __future__ import annotations

import threading
from typing import Any

from nstdkit.hashset import HashSet
from nstdkit.multimap import MultiMap
from nstdkit.netpoll import Poll, PollFlag
from nstdkit.netsocket import (
    ANY_ADDRESS,
    BROADCAST_ADDRESS,
    Socket,
    error_string,
    get_host_by_name,
    inet_addr,
)
from nstdkit.timeinfo import ticks

_DEFAULT_TIMEOUT_MS = 300 * 1000


class Listener:
    """A listening socket registered with a :class:`Server`."""

    def __init__(self, sock: Socket, callback: Any) -> None:
        self.socket = sock
        self._callback = callback


class Establisher:
    """An outgoing connection that is still being set up."""

    def __init__(self, sock: Socket, callback: Any) -> None:
        self.socket = sock
        self._callback = callback
        self._resolver: _Resolver | None = None


class Timer:
    """A repeating timer registered with a :class:`Server`."""

    def __init__(self, callback: Any, execution_time: int, interval: int) -> None:
        self._callback = callback
        self._execution_time = execution_time
        self._interval = interval


class _Resolver:
    """Looks up a host name in a background thread and wakes the poller when done."""

    def __init__(self, host: str, port: int, establisher: Establisher, poll: Poll) -> None:
        self.host = host
        self.port = port
        self.establisher: Establisher | None = establisher
        self.address = 0
        self.finished = False
        self._poll = poll
        self._thread = threading.Thread(target=self._resolve, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _resolve(self) -> None:
        try:
            self.address = get_host_by_name(self.host)
        except OSError:
            self.address = 0
        self.finished = True
        self._poll.interrupt()


class Client:
    """A connected socket whose events are delivered to a client callback."""

    def __init__(self, server: "Server", sock: Socket, callback: Any = None) -> None:
        self._server = server
        self._socket = sock
        self._callback = callback
        self._send_buffer = bytearray()
        self._suspended = False

    def write(self, data: bytes) -> int:
        """Send ``data``, buffering what cannot be sent at once.

        Returns the number of bytes still waiting to be sent. Raises
        ConnectionError if the connection is broken; ``on_closed`` follows.
        """
        server = self._server
        if not data:
            return len(self._send_buffer)
        if self._send_buffer:
            self._send_buffer += data
            return len(self._send_buffer)
        try:
            sent = self._socket.send(data)
        except BlockingIOError:
            sent = 0
        except OSError as exc:
            server._closing.append(self)
            raise ConnectionError("connection lost while writing") from exc
        else:
            if sent == 0:
                server._closing.append(self)
                raise ConnectionError("connection lost while writing")
        if sent >= len(data):
            return 0
        self._send_buffer += data[sent:]
        flags = PollFlag.WRITE if self._suspended else PollFlag.READ | PollFlag.WRITE
        server._poll.set(self._socket, flags)
        return len(self._send_buffer)

    def read(self, max_size: int) -> bytes:
        """Read up to ``max_size`` bytes.

        Returns empty bytes when nothing is available or the connection is
        closed; in the latter case ``on_closed`` follows.
        """
        try:
            data = self._socket.recv(max_size)
        except BlockingIOError:
            return b""
        except OSError:
            data = b""
        if not data:
            self._server._closing.append(self)
        return data

    def suspend(self) -> None:
        """Stop delivering read events until :meth:`resume`."""
        if self._suspended:
            return
        self._suspended = True
        flags = PollFlag.WRITE if self._send_buffer else PollFlag.NONE
        self._server._poll.set(self._socket, flags)

    def resume(self) -> None:
        """Deliver read events again."""
        if not self._suspended:
            return
        self._suspended = False
        flags = PollFlag.READ | PollFlag.WRITE if self._send_buffer else PollFlag.READ
        self._server._poll.set(self._socket, flags)

    def socket(self) -> Socket:
        """The underlying socket."""
        return self._socket


class Server:
    """Dispatches socket readiness and timer expiry to callbacks from :meth:`run`."""

    def __init__(self) -> None:
        self._keep_alive = False
        self._no_delay = False
        self._send_buffer_size = 0
        self._receive_buffer_size = 0
        self._reuse_address = True
        self._poll = Poll()
        self._queued = MultiMap()
        self._queued.insert(0, None)  # the default timeout entry
        self._handles: dict[Socket, Any] = {}
        self._resolvers: list[_Resolver] = []
        self._closing = HashSet()
        self._interrupt_lock = threading.Lock()
        self._interrupted = False

    def set_keep_alive(self, enable: bool) -> None:
        """Enable keep-alive on sockets connected from now on."""
        self._keep_alive = enable

    def set_no_delay(self, enable: bool) -> None:
        """Disable Nagle's algorithm on sockets connected from now on."""
        self._no_delay = enable

    def set_send_buffer_size(self, size: int) -> None:
        """Send buffer size for sockets connected from now on; 0 keeps the default."""
        self._send_buffer_size = size

    def set_receive_buffer_size(self, size: int) -> None:
        """Receive buffer size for sockets connected from now on; 0 keeps the default."""
        self._receive_buffer_size = size

    def set_reuse_address(self, enable: bool) -> None:
        """Whether listening sockets reuse their address (on by default)."""
        self._reuse_address = enable

    def _configure(self, sock: Socket) -> None:
        if self._keep_alive:
            sock.set_keep_alive()
        if self._no_delay:
            sock.set_no_delay()
        if self._send_buffer_size > 0:
            sock.set_send_buffer_size(self._send_buffer_size)
        if self._receive_buffer_size > 0:
            sock.set_receive_buffer_size(self._receive_buffer_size)

    def listen(self, addr: int, port: int, callback: Any) -> Listener:
        """Listen on ``addr`` and ``port``; raises OSError on failure."""
        sock = Socket()
        try:
            sock.open()
            if self._reuse_address:
                sock.set_reuse_address()
            sock.bind(addr, port)
            sock.listen()
        except OSError:
            sock.close()
            raise
        listener = Listener(sock, callback)
        self._handles[sock] = listener
        self._poll.set(sock, PollFlag.ACCEPT)
        return listener

    def connect(self, addr: int | str, port: int, callback: Any) -> Establisher:
        """Start connecting to an address or a host name.

        A host name is resolved in the background. Raises OSError if the
        connection cannot even be started.
        """
        if isinstance(addr, str):
            ip, _ = inet_addr(addr)
            if ip in (ANY_ADDRESS, BROADCAST_ADDRESS):
                return self._connect_by_name(addr, port, callback)
            addr = ip
        sock = Socket()
        try:
            sock.open()
            sock.set_non_blocking()
            sock.connect(addr, port)
        except OSError:
            sock.close()
            raise
        establisher = Establisher(sock, callback)
        self._handles[sock] = establisher
        self._poll.set(sock, PollFlag.CONNECT)
        return establisher

    def _connect_by_name(self, host: str, port: int, callback: Any) -> Establisher:
        establisher = Establisher(Socket(), callback)
        self._handles[establisher.socket] = establisher
        resolver = _Resolver(host, port, establisher, self._poll)
        establisher._resolver = resolver
        self._resolvers.append(resolver)
        resolver.start()
        return establisher

    def time(self, interval: int, callback: Any) -> Timer:
        """Activate ``callback`` every ``interval`` milliseconds."""
        timer = Timer(callback, ticks() + interval, interval)
        self._queued.insert(timer._execution_time, timer)
        return timer

    def pair(self, callback: Any, sock: Socket) -> Client:
        """Connect a new client to ``sock`` as a socket pair; raises OSError on failure."""
        own = Socket()
        try:
            own.pair(sock)
            own.set_non_blocking()
            self._configure(own)
        except OSError:
            own.close()
            sock.close()
            raise
        client = Client(self, own, callback)
        self._handles[own] = client
        self._poll.set(own, PollFlag.READ)
        return client

    def remove(self, handle: Client | Listener | Establisher | Timer) -> None:
        """Unregister and close a client, listener, establisher or timer."""
        if isinstance(handle, Client):
            if handle._callback is not None:
                self._delete_client(handle)
            else:
                self._closing.append(handle)
        elif isinstance(handle, Listener):
            self._drop_socket(handle.socket)
        elif isinstance(handle, Establisher):
            if handle._resolver is not None:
                handle._resolver.establisher = None
            self._drop_socket(handle.socket)
        elif isinstance(handle, Timer):
            self._queued.remove_item(handle._execution_time, handle)
        else:
            raise TypeError(f"cannot remove {type(handle).__name__} from a Server")

    def _drop_socket(self, sock: Socket) -> None:
        self._poll.remove(sock)
        self._handles.pop(sock, None)
        sock.close()

    def _delete_client(self, client: Client) -> None:
        self._closing.discard(client)
        self._drop_socket(client._socket)

    def _next_deadline(self) -> int:
        return next(iter(self._queued))[0]

    def run(self) -> None:
        """Dispatch events until :meth:`interrupt` is called."""
        while True:
            now = ticks()
            timeout = self._next_deadline() - now
            while timeout <= 0:
                _, timer = self._queued.pop_front()
                if timer is not None:
                    timer._execution_time += timer._interval
                    self._queued.insert(timer._execution_time, timer)
                    timer._callback.on_activated()
                else:
                    self._queued.insert(now + _DEFAULT_TIMEOUT_MS, None)
                timeout = self._next_deadline() - now

            while self._closing:
                client = self._closing.pop_front()
                if client._callback is not None:
                    client._callback.on_closed()
                else:
                    self._delete_client(client)

            event = self._poll.poll(timeout)
            if not event.flags:
                self._finish_resolutions()
                if self._interrupted:
                    with self._interrupt_lock:
                        if self._interrupted:
                            self._interrupted = False
                            return
                continue

            handle = self._handles.get(event.socket)
            if handle is None:
                continue
            if event.flags & PollFlag.READ:
                handle._callback.on_read()
            elif event.flags & PollFlag.WRITE:
                self._flush(handle)
            elif event.flags & PollFlag.ACCEPT:
                self._accept(handle)
            elif event.flags & PollFlag.CONNECT:
                self._establish(handle)

    def _finish_resolutions(self) -> None:
        for resolver in list(self._resolvers):
            if not resolver.finished:
                continue
            self._resolvers.remove(resolver)
            establisher = resolver.establisher
            if establisher is None:
                continue
            establisher._resolver = None
            if not resolver.address:
                establisher._callback.on_abolished(OSError("Could not resolve hostname"))
                continue
            sock = establisher.socket
            try:
                sock.open()
                sock.set_non_blocking()
                sock.connect(resolver.address, resolver.port)
            except OSError as exc:
                establisher._callback.on_abolished(exc)
            else:
                self._poll.set(sock, PollFlag.CONNECT)

    def _flush(self, client: Client) -> None:
        sock = client._socket
        if client._send_buffer:
            try:
                sent = sock.send(client._send_buffer)
            except BlockingIOError:
                return
            except OSError:
                sent = 0
            if sent == 0:
                client._send_buffer.clear()
                self._poll.remove(sock)
                client._callback.on_closed()
                return
            del client._send_buffer[:sent]
        if not client._send_buffer:
            self._poll.set(sock, PollFlag.NONE if client._suspended else PollFlag.READ)
            client._callback.on_write()

    def _accept(self, listener: Listener) -> None:
        try:
            sock, ip, port = listener.socket.accept()
        except OSError:
            return
        try:
            sock.set_non_blocking()
            self._configure(sock)
        except OSError:
            sock.close()
            return
        client = Client(self, sock)
        self._handles[sock] = client
        self._poll.set(sock, PollFlag.READ)
        client._callback = listener._callback.on_accepted(client, ip, port)
        if client._callback is None:
            self._delete_client(client)

    def _establish(self, establisher: Establisher) -> None:
        sock = establisher.socket
        self._poll.remove(sock)
        error = sock.get_and_reset_error_status()
        if error:
            establisher._callback.on_abolished(OSError(error, error_string(error)))
            return
        try:
            self._configure(sock)
        except OSError as exc:
            establisher._callback.on_abolished(exc)
            return
        client_sock = Socket()
        client_sock.swap(sock)
        client = Client(self, client_sock)
        self._handles[client_sock] = client
        self._poll.set(client_sock, PollFlag.READ)
        client._callback = establisher._callback.on_connected(client)
        if client._callback is None:
            self._delete_client(client)

    def interrupt(self) -> None:
        """Make :meth:`run` return; safe to call from any thread."""
        with self._interrupt_lock:
            if self._interrupted:
                return
            self._interrupted = True
        self._poll.interrupt()

    def clear(self) -> None:
        """Close every socket and drop every timer."""
        self._poll.clear()
        for sock in self._handles:
            sock.close()
        self._handles.clear()
        for resolver in self._resolvers:
            resolver.establisher = None
        self._resolvers.clear()
        self._queued.clear()
        self._queued.insert(0, None)
        self._closing.clear()
        self._interrupted = False