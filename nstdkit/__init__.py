"""Foundation toolkit: strings, time, threads, variants, ordered containers, IPv4 sockets, polling and an event-driven server."""

__version__ = "0.1.0"