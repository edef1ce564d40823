"""String helpers: C-style numeric parsing, formatting, searching and splitting."""

from __future__ import annotations

import re
import string
from typing import Iterable

_WHITESPACE = " \t\n\v\f\r"

_INT_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)")
_FLOAT_RE = re.compile(
    r"[ \t\n\v\f\r]*("
    r"[+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?[0-9]+)?"
    r"|[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?"
    r"|[+-]?(?:infinity|inf|nan)"
    r")",
    re.IGNORECASE,
)

_UINT64_MAX = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_LOWER_TABLE = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_UPPER_TABLE = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)


def _wrap_signed(value: int, bits: int) -> int:
    mask = (1 << bits) - 1
    value &= mask
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def _leading_int(s: str) -> tuple[bool, int] | None:
    match = _INT_RE.match(s)
    if not match:
        return None
    return match.group(1) == "-", int(match.group(2))


def _strtol(s: str) -> int:
    parsed = _leading_int(s)
    if parsed is None:
        return 0
    negative, magnitude = parsed
    value = -magnitude if negative else magnitude
    return max(_INT64_MIN, min(_INT64_MAX, value))


def _strtoul(s: str) -> int:
    parsed = _leading_int(s)
    if parsed is None:
        return 0
    negative, magnitude = parsed
    if magnitude > _UINT64_MAX:
        return _UINT64_MAX
    return (-magnitude) % (1 << 64) if negative else magnitude


def to_int(s: str) -> int:
    """Parse a leading decimal integer like atoi (32-bit result, 0 if none)."""
    return _wrap_signed(_strtol(s), 32)


def to_uint(s: str) -> int:
    """Parse a leading decimal integer like strtoul, truncated to 32 bits."""
    return _strtoul(s) & 0xFFFFFFFF


def to_int64(s: str) -> int:
    """Parse a leading decimal integer like atoll, saturating at the 64-bit range."""
    return _strtol(s)


def to_uint64(s: str) -> int:
    """Parse a leading decimal integer like strtoull."""
    return _strtoul(s)


def to_double(s: str) -> float:
    """Parse the longest leading floating point number like atof (0.0 if none)."""
    match = _FLOAT_RE.match(s)
    if not match:
        return 0.0
    text = match.group(1)
    if "x" in text.lower():
        return float.fromhex(text)
    return float(text)


def from_int(value: int) -> str:
    """Format a value as a signed 32-bit decimal integer."""
    return str(_wrap_signed(value, 32))


def from_uint(value: int) -> str:
    """Format a value as an unsigned 32-bit decimal integer."""
    return str(value % (1 << 32))


def from_int64(value: int) -> str:
    """Format a value as a signed 64-bit decimal integer."""
    return str(_wrap_signed(value, 64))


def from_uint64(value: int) -> str:
    """Format a value as an unsigned 64-bit decimal integer."""
    return str(value % (1 << 64))


def from_double(value: float) -> str:
    """Format a float with six decimals, as printf's %f does."""
    return f"{value:.6f}"


def from_hex(data: bytes) -> str:
    """Return the upper-case hexadecimal representation of ``data``."""
    return bytes(data).hex().upper()


def find_one_of(s: str, chars: str, start: int = 0) -> int:
    """Index of the first character of ``s`` at or after ``start`` found in ``chars``, or -1."""
    if start >= len(s):
        return -1
    return next((i for i, c in enumerate(s[start:], start) if c in chars), -1)


def find_last(s: str, sub: str) -> int:
    """Index of the last occurrence of ``sub`` in ``s``, or -1."""
    return s.rfind(sub)


def find_last_of(s: str, chars: str) -> int:
    """Index of the last character of ``s`` found in ``chars``, or -1."""
    for i in range(len(s) - 1, -1, -1):
        if s[i] in chars:
            return i
    return -1


def replace(s: str, needle: str, replacement: str) -> str:
    """Replace every non-overlapping occurrence of ``needle``, scanning left to right."""
    if not needle:
        raise ValueError("needle must not be empty")
    return s.replace(needle, replacement)


def token(s: str, separators: str, start: int = 0) -> tuple[str, int]:
    """Return the token starting at ``start`` and the position after its separator."""
    end = find_one_of(s, separators, start)
    if end >= 0:
        return s[start:end], end + 1
    return s[start:], len(s)


def _split_tokens(s: str, separators: str, skip_empty: bool) -> Iterable[str]:
    pos = 0
    while True:
        end = find_one_of(s, separators, pos)
        if end >= 0:
            if end > pos:
                yield s[pos:end]
            elif not skip_empty:
                yield ""
            pos = end + 1
        else:
            if pos < len(s):
                yield s[pos:]
            elif not skip_empty:
                yield ""
            return


def split(s: str, separators: str, skip_empty: bool = True) -> list[str]:
    """Split ``s`` at any of the characters in ``separators``."""
    return list(_split_tokens(s, separators, skip_empty))


def split_set(s: str, separators: str, skip_empty: bool = True) -> list[str]:
    """Split like :func:`split`, keeping each distinct token once in first-seen order."""
    return list(dict.fromkeys(_split_tokens(s, separators, skip_empty)))


def join(tokens: Iterable[str], separator: str) -> str:
    """Join ``tokens`` with ``separator`` between them."""
    return separator.join(tokens)


def trim(s: str, chars: str) -> str:
    """Remove the characters in ``chars`` from both ends of ``s``."""
    return s.strip(chars)


def to_lower_case(s: str) -> str:
    """Lower-case the ASCII letters of ``s``; other characters are unchanged."""
    return s.translate(_LOWER_TABLE)


def to_upper_case(s: str) -> str:
    """Upper-case the ASCII letters of ``s``; other characters are unchanged."""
    return s.translate(_UPPER_TABLE)


def _char(c: str) -> str:
    if len(c) != 1:
        raise ValueError(f"expected a single character, got {c!r}")
    return c


def is_space(c: str) -> bool:
    """Whether ``c`` is white space in the C locale."""
    return _char(c) in _WHITESPACE


def is_alphanumeric(c: str) -> bool:
    """Whether ``c`` is an ASCII letter or digit."""
    c = _char(c)
    return c in string.ascii_letters or c in string.digits


def is_alpha(c: str) -> bool:
    """Whether ``c`` is an ASCII letter."""
    return _char(c) in string.ascii_letters


def is_digit(c: str) -> bool:
    """Whether ``c`` is an ASCII decimal digit."""
    return _char(c) in string.digits


def is_lower_case(c: str) -> bool:
    """Whether ``c`` is an ASCII lower-case letter."""
    return _char(c) in string.ascii_lowercase


def is_upper_case(c: str) -> bool:
    """Whether ``c`` is an ASCII upper-case letter."""
    return _char(c) in string.ascii_uppercase


def is_print(c: str) -> bool:
    """Whether ``c`` is a printable ASCII character, space included."""
    return 0x20 <= ord(_char(c)) < 0x7F


def is_punct(c: str) -> bool:
    """Whether ``c`` is ASCII punctuation."""
    return _char(c) in string.punctuation


def is_hex_digit(c: str) -> bool:
    """Whether ``c`` is a hexadecimal digit."""
    return _char(c) in string.hexdigits