# nstdkit

A small foundation toolkit for Python 3.10 and later, with no third-party
dependencies. It is a library only: it has no command-line program.

## Modules

- `nstdkit.strings`: C-style number parsing that reads a leading number and
  ignores the rest (`to_int`, `to_uint`, `to_int64`, `to_uint64`,
  `to_double`, returning 0 when there is no number), number formatting with
  32- and 64-bit wrap-around (`from_int`, `from_uint`, `from_int64`,
  `from_uint64`, `from_double` with six decimals), `from_hex` (upper-case
  hex of bytes), searching (`find_one_of`, `find_last`, `find_last_of`),
  `replace`, `token`, `split`, `split_set`, `join`, `trim`, ASCII case
  conversion (`to_lower_case`, `to_upper_case`) and C-locale character
  classes (`is_space`, `is_alpha`, `is_digit`, `is_hex_digit`, ...).
- `nstdkit.system`: `processor_count()`, the number of online processors.
- `nstdkit.timeinfo`: `Time`, a broken-down calendar time (`sec`, `min`,
  `hour`, `day`, `month`, `year`, `wday` with Sunday = 0, `yday` from 0,
  `dst`, `utc`). Build one with `Time.now(utc)` or
  `Time.from_timestamp(ms, utc)`; convert with `to_timestamp()`, `to_utc()`
  and `to_local()` (both convert in place and return the object); format
  with `format(fmt)` using strftime directives. Also `time_ms()` (Unix time
  in milliseconds at second resolution), `ticks()` and `micro_ticks()`
  (monotonic clock in milliseconds and microseconds) and
  `format_timestamp(ms, fmt, utc)`.
- `nstdkit.threads`: `Thread`, which runs `proc(*args)` via `start()` and
  hands back its return value from `join()` (an exception raised by the
  procedure is raised again by `join()`); `start()` returns False while an
  earlier run has not been joined. Plus `sleep(ms)`, `yield_thread()` and
  `current_thread_id()`.
- `nstdkit.variant`: `Variant`, a dynamically typed value of one of the
  `VariantType` kinds (NULL, BOOL, DOUBLE, INT, UINT, INT64, UINT64, MAP,
  LIST, ARRAY, STRING), with conversions between kinds (`to_bool`,
  `to_int`, `to_string`, ...). `to_map()`, `to_list()` and `to_array()`
  return the held container for in-place changes, turning a variant of
  another kind into an empty container first. Copies never share containers.
- `nstdkit.hashset`: `HashSet`, a set that remembers insertion order, with
  `append`, `prepend`, `extend`, `discard`, `difference_update`, `front`,
  `back`, `pop_front`, `pop_back`, `swap` and order-sensitive equality.
- `nstdkit.multimap`: `MultiMap`, a sorted map that allows repeated keys;
  equal keys keep insertion order. It offers `insert`, `find`, `values`,
  `count`, `remove`, `remove_item`, `front`, `back`, `pop_front`,
  `pop_back` and iteration over `(key, value)` pairs.
- `nstdkit.netsocket`: `Socket`, an IPv4 TCP or UDP socket (`Protocol`)
  whose addresses are 32-bit host-order integers; failures raise `OSError`.
  Helpers: `inet_addr("a.b.c.d[:port]")` returning `(ip, port_or_None)`,
  `inet_ntoa`, `get_host_name`, `get_host_by_name` and `error_string`.
- `nstdkit.netpoll`: `Poll`, which watches sockets for `PollFlag.READ`,
  `WRITE`, `ACCEPT` and `CONNECT`, returns one `PollEvent` per `poll()`
  call, and can be woken from another thread with `interrupt()`.
- `nstdkit.server`: `Server`, an event loop over listeners, outgoing
  connections (by address or by host name, resolved in the background),
  clients and repeating timers. `run()` dispatches until `interrupt()`.

## Examples

```python
from nstdkit import strings
from nstdkit.timeinfo import Time, format_timestamp

strings.split("a,b,,c", ",", True)                       # ['a', 'b', 'c']
strings.trim("  hello  ", " ")                           # 'hello'
strings.to_int("  42abc")                                # 42
format_timestamp(123 * 1000, "%Y-%m-%d %H:%M:%S", True)  # '1970-01-01 00:02:03'

t = Time.from_timestamp(123 * 1000, True)
(t.year, t.month, t.day, t.min, t.sec)                   # (1970, 1, 1, 2, 3)
```

```python
from nstdkit.variant import Variant

v = Variant()
v.to_list().append(Variant(123))
v.to_list()[0].to_int()                                  # 123
```

```python
from nstdkit.multimap import MultiMap

m = MultiMap()
m.insert(2, "b")
m.insert(1, "a")
m.insert(2, "c")
m.count(2)                                               # 2
list(m)                                                  # [(1, 'a'), (2, 'b'), (2, 'c')]
```

## Server callbacks

`Server` calls plain objects with these methods:

- listener callback: `on_accepted(client, ip, port)` returns the client
  callback, or None to refuse the connection;
- establisher callback: `on_connected(client)` returns the client callback,
  or None to drop it; `on_abolished(error)` receives an `OSError`;
- client callback: `on_read()`, `on_write()` and `on_closed()`;
- timer callback: `on_activated()`.

`Client.write(data)` buffers what cannot be sent at once and returns the
number of bytes still pending; `Client.read(max_size)` returns empty bytes
when nothing is available or the peer has closed.

## What it does not do

There is no command-line tool, no file or path handling, no process
management and no IPv6 support. The server is an event loop for your own
callbacks; it does not implement any application protocol.

## Running the tests

```
pip install .[test]
pytest
```