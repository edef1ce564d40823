"""IPv4 TCP and UDP sockets with addresses handled as 32-bit host-order integers."""

from __future__ import annotations

import enum
import errno
import os
import socket as _socket
import struct
from typing import Any

from nstdkit import strings

ANY_ADDRESS = 0x00000000
LOOPBACK_ADDRESS = 0x7F000001
BROADCAST_ADDRESS = 0xFFFFFFFF

_WOULD_BLOCK = {errno.EWOULDBLOCK, errno.EAGAIN}
_CONNECT_PENDING = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY}


class Protocol(enum.IntEnum):
    """Transport protocol of a socket."""

    TCP = 0
    UDP = 1


_SOCKET_TYPES = {
    Protocol.TCP: (_socket.SOCK_STREAM, _socket.IPPROTO_TCP),
    Protocol.UDP: (_socket.SOCK_DGRAM, _socket.IPPROTO_UDP),
}


def _ip_to_text(ip: int) -> str:
    return _socket.inet_ntoa(struct.pack("!I", ip & 0xFFFFFFFF))


def _text_to_ip(text: str) -> int:
    return struct.unpack("!I", _socket.inet_aton(text))[0]


def _address(addr: Any) -> tuple[int, int]:
    if not isinstance(addr, tuple) or len(addr) != 2:
        raise OSError(errno.EAFNOSUPPORT, "not an IPv4 socket address")
    host, port = addr
    return _text_to_ip(host), port


class Socket:
    """An IPv4 socket; closed until :meth:`open`, :meth:`pair` or :meth:`accept`."""

    def __init__(self) -> None:
        self._sock: _socket.socket | None = None

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require(self) -> _socket.socket:
        if self._sock is None:
            raise OSError(errno.EBADF, os.strerror(errno.EBADF))
        return self._sock

    def open(self, protocol: Protocol = Protocol.TCP) -> None:
        """Create a new socket, closing any one held before."""
        self.close()
        sock_type, proto = _SOCKET_TYPES[Protocol(protocol)]
        self._sock = _socket.socket(_socket.AF_INET, sock_type, proto)

    def close(self) -> None:
        """Close the socket if it is open."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def is_open(self) -> bool:
        """Whether a socket is held."""
        return self._sock is not None

    def fileno(self) -> int:
        """The file descriptor, or -1 when closed."""
        return -1 if self._sock is None else self._sock.fileno()

    def swap(self, other: "Socket") -> None:
        """Exchange the underlying sockets with ``other``."""
        self._sock, other._sock = other._sock, self._sock

    def pair(self, other: "Socket") -> None:
        """Connect this socket and ``other`` to each other as a stream pair."""
        self.close()
        other.close()
        first, second = _socket.socketpair()
        self._sock, other._sock = first, second

    def accept(self) -> tuple["Socket", int, int]:
        """Accept a connection; return the new socket, the peer address and port."""
        conn, addr = self._require().accept()
        client = Socket()
        client._sock = conn
        ip, port = _address(addr)
        return client, ip, port

    def set_non_blocking(self) -> None:
        """Switch the socket to non-blocking mode."""
        self._require().setblocking(False)

    def set_no_delay(self) -> None:
        """Disable Nagle's algorithm."""
        self._require().setsockopt(_socket.IPPROTO_TCP, _socket.TCP_NODELAY, 1)

    def set_send_buffer_size(self, size: int) -> None:
        """Set the kernel send buffer size."""
        self._require().setsockopt(_socket.SOL_SOCKET, _socket.SO_SNDBUF, size)

    def set_receive_buffer_size(self, size: int) -> None:
        """Set the kernel receive buffer size."""
        self._require().setsockopt(_socket.SOL_SOCKET, _socket.SO_RCVBUF, size)

    def set_broadcast(self) -> None:
        """Allow sending to broadcast addresses."""
        self._require().setsockopt(_socket.SOL_SOCKET, _socket.SO_BROADCAST, 1)

    def join_multicast_group(self, ip: int, interface_ip: int = ANY_ADDRESS) -> None:
        """Join the multicast group ``ip`` on the interface ``interface_ip``."""
        mreq = struct.pack("!II", ip & 0xFFFFFFFF, interface_ip & 0xFFFFFFFF)
        self._require().setsockopt(_socket.IPPROTO_IP, _socket.IP_ADD_MEMBERSHIP, mreq)

    def set_multicast_loopback(self, enable: bool) -> None:
        """Enable or disable receiving one's own multicast packets."""
        self._require().setsockopt(
            _socket.IPPROTO_IP, _socket.IP_MULTICAST_LOOP, 1 if enable else 0
        )

    def set_keep_alive(self) -> None:
        """Enable TCP keep-alive probes."""
        self._require().setsockopt(_socket.SOL_SOCKET, _socket.SO_KEEPALIVE, 1)

    def set_reuse_address(self) -> None:
        """Allow binding to an address still in TIME_WAIT."""
        self._require().setsockopt(_socket.SOL_SOCKET, _socket.SO_REUSEADDR, 1)

    def bind(self, ip: int, port: int) -> None:
        """Bind to ``ip`` and ``port``; any address with port 0 leaves it unbound."""
        sock = self._require()
        if ip == BROADCAST_ADDRESS:
            ip = ANY_ADDRESS
        if ip == ANY_ADDRESS and port == 0:
            return
        sock.bind((_ip_to_text(ip), port))

    def listen(self) -> None:
        """Start listening for connections."""
        self._require().listen(_socket.SOMAXCONN)

    def connect(self, ip: int, port: int) -> None:
        """Connect to ``ip`` and ``port``; a pending non-blocking connect is not an error."""
        result = self._require().connect_ex((_ip_to_text(ip), port))
        if result and result not in _CONNECT_PENDING:
            raise OSError(result, os.strerror(result))

    def get_and_reset_error_status(self) -> int:
        """Return and clear the pending socket error (EINVAL when closed)."""
        if self._sock is None:
            return errno.EINVAL
        try:
            return self._sock.getsockopt(_socket.SOL_SOCKET, _socket.SO_ERROR)
        except OSError as exc:
            return exc.errno or errno.EINVAL

    def get_sock_name(self) -> tuple[int, int]:
        """The local address and port."""
        return _address(self._require().getsockname())

    def get_peer_name(self) -> tuple[int, int]:
        """The remote address and port."""
        return _address(self._require().getpeername())

    def send(self, data: bytes) -> int:
        """Send ``data``; return the number of bytes sent.

        Raises BlockingIOError when a non-blocking socket cannot take data.
        """
        flags = getattr(_socket, "MSG_NOSIGNAL", 0)
        return self._require().send(data, flags)

    def send_to(self, data: bytes, ip: int, port: int) -> int:
        """Send a datagram to ``ip`` and ``port``; return the number of bytes sent."""
        return self._require().sendto(data, (_ip_to_text(ip), port))

    def recv(self, max_size: int, min_size: int = 0) -> bytes:
        """Receive up to ``max_size`` bytes, reading on until ``min_size`` have arrived.

        Returns empty bytes when the peer closed the connection. If the socket
        would block after some data arrived, that data is returned; if it would
        block before any arrived, BlockingIOError is raised.
        """
        sock = self._require()
        received = sock.recv(max_size)
        if not received:
            return b""
        if len(received) >= min_size:
            return received
        buffer = bytearray(received)
        while True:
            try:
                chunk = sock.recv(max_size - len(buffer))
            except BlockingIOError:
                return bytes(buffer)
            if not chunk:
                return b""
            buffer += chunk
            if len(buffer) >= min_size:
                return bytes(buffer)

    def recv_from(self, max_size: int) -> tuple[bytes, int, int]:
        """Receive a datagram; return its data, the sender's address and port."""
        data, addr = self._require().recvfrom(max_size)
        ip, port = _address(addr)
        return data, ip, port


def inet_addr(addr: str) -> tuple[int, int | None]:
    """Parse ``"a.b.c.d[:port]"`` into a host-order address and the port, if any.

    An address that cannot be parsed yields BROADCAST_ADDRESS.
    """
    host, colon, port_text = addr.partition(":")
    port = strings.to_uint(port_text) & 0xFFFF if colon else None
    try:
        ip = _text_to_ip(host)
    except (OSError, ValueError):
        ip = BROADCAST_ADDRESS
    return ip, port


def inet_ntoa(ip: int) -> str:
    """Format a host-order address in dotted decimal notation."""
    return _ip_to_text(ip)


def get_host_name() -> str:
    """The name of this host, or empty text if it cannot be determined."""
    try:
        return _socket.gethostname()
    except OSError:
        return ""


def get_host_by_name(host: str) -> int:
    """Resolve ``host`` to its first IPv4 address in host order."""
    infos = _socket.getaddrinfo(host, None, _socket.AF_INET, _socket.SOCK_STREAM)
    for family, _type, _proto, _name, sockaddr in infos:
        if family == _socket.AF_INET:
            return _text_to_ip(sockaddr[0])
    raise OSError(errno.EADDRNOTAVAIL, f"no IPv4 address for {host!r}")


def error_string(error: int) -> str:
    """The system's message for the error number ``error``."""
    return os.strerror(error)