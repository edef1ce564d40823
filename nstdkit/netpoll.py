"""Readiness polling over many sockets, one event at a time, with cross-thread wake-up."""

from __future__ import annotations

import enum
import selectors
import socket as _socket
from dataclasses import dataclass

from nstdkit.netsocket import Socket


class PollFlag(enum.IntFlag):
    """Conditions a socket can be watched for."""

    NONE = 0
    READ = 0x01
    WRITE = 0x02
    ACCEPT = 0x04
    CONNECT = 0x08


_READ_LIKE = PollFlag.READ | PollFlag.ACCEPT
_WRITE_LIKE = PollFlag.WRITE | PollFlag.CONNECT


@dataclass(frozen=True)
class PollEvent:
    """One ready socket and the watched conditions it met.

    ``flags`` is empty and ``socket`` is None after a timeout or an interrupt.
    """

    flags: PollFlag
    socket: Socket | None


_TIMEOUT_EVENT = PollEvent(PollFlag.NONE, None)


def _map_flags(flags: PollFlag) -> int:
    events = 0
    if flags & _READ_LIKE:
        events |= selectors.EVENT_READ
    if flags & _WRITE_LIKE:
        events |= selectors.EVENT_WRITE
    return events


def _unmap_events(mask: int, flags: PollFlag) -> PollFlag:
    result = PollFlag.NONE
    if mask & selectors.EVENT_READ:
        result = flags & _READ_LIKE
    if mask & selectors.EVENT_WRITE:
        result |= flags & _WRITE_LIKE
    return PollFlag(result)


@dataclass
class _Entry:
    fd: int
    flags: PollFlag
    registered: bool


class Poll:
    """Watches sockets for readiness and hands back one ready socket per call.

    Sockets found ready by one wait are queued and returned by the following
    calls before the system is asked again.
    """

    def __init__(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._wake_reader, self._wake_writer = _socket.socketpair()
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        self._selector.register(self._wake_reader, selectors.EVENT_READ, None)
        self._entries: dict[Socket, _Entry] = {}
        self._selected: dict[Socket, PollFlag] = {}

    def __enter__(self) -> "Poll":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _update_registration(self, sock: Socket, entry: _Entry) -> None:
        events = _map_flags(entry.flags)
        if events and entry.registered:
            self._selector.modify(entry.fd, events, sock)
        elif events:
            self._selector.register(entry.fd, events, sock)
            entry.registered = True
        elif entry.registered:
            self._selector.unregister(entry.fd)
            entry.registered = False

    def set(self, sock: Socket, flags: PollFlag) -> None:
        """Watch ``sock`` for ``flags``, replacing what it was watched for before.

        A closed socket that is not yet watched is ignored.
        """
        flags = PollFlag(flags)
        entry = self._entries.get(sock)
        if entry is not None:
            if entry.flags == flags:
                return
            removed = entry.flags & ~flags
            entry.flags = flags
            self._update_registration(sock, entry)
            selected = self._selected.get(sock)
            if selected is not None:
                remaining = selected & ~removed
                if remaining:
                    self._selected[sock] = PollFlag(remaining)
                else:
                    del self._selected[sock]
            return
        if not sock.is_open():
            return
        entry = _Entry(fd=sock.fileno(), flags=flags, registered=False)
        self._entries[sock] = entry
        self._update_registration(sock, entry)

    def remove(self, sock: Socket) -> None:
        """Stop watching ``sock``; unknown sockets are ignored."""
        entry = self._entries.pop(sock, None)
        if entry is None:
            return
        if entry.registered:
            try:
                self._selector.unregister(entry.fd)
            except (KeyError, ValueError):
                pass
        self._selected.pop(sock, None)

    def clear(self) -> None:
        """Stop watching every socket."""
        for sock in list(self._entries):
            self.remove(sock)
        self._selected.clear()

    def _drain_wake(self) -> None:
        try:
            while self._wake_reader.recv(4096):
                pass
        except (BlockingIOError, InterruptedError):
            pass

    def poll(self, timeout: int | None = None) -> PollEvent:
        """Wait up to ``timeout`` milliseconds for a ready socket.

        A negative or missing timeout waits without limit. After a timeout or
        an :meth:`interrupt` the returned event carries no socket.
        """
        if not self._selected:
            seconds = None if timeout is None or timeout < 0 else timeout / 1000.0
            interrupted = False
            for key, mask in self._selector.select(seconds):
                sock = key.data
                if sock is None:
                    if mask & selectors.EVENT_READ:
                        interrupted = True
                    continue
                entry = self._entries.get(sock)
                if entry is None:
                    continue
                flags = _unmap_events(mask, entry.flags)
                if flags:
                    self._selected[sock] = flags
            if interrupted:
                self._drain_wake()
            if interrupted or not self._selected:
                return _TIMEOUT_EVENT
        sock = next(iter(self._selected))
        flags = self._selected.pop(sock)
        return PollEvent(flags, sock)

    def interrupt(self) -> None:
        """Make a waiting or the next :meth:`poll` return at once; safe from any thread."""
        try:
            self._wake_writer.send(b"\x01")
        except BlockingIOError:
            pass  # a wake-up is already pending

    def close(self) -> None:
        """Release the resources held by the poller."""
        self._entries.clear()
        self._selected.clear()
        self._selector.close()
        self._wake_reader.close()
        self._wake_writer.close()