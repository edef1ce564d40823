"""A dynamically typed value holding a scalar, a string or a container of variants."""

from __future__ import annotations

import enum
import math
import operator
from typing import Any

from nstdkit import strings


class VariantType(enum.IntEnum):
    """The kind of value a :class:`Variant` holds."""

    NULL = 0
    BOOL = 1
    DOUBLE = 2
    INT = 3
    UINT = 4
    INT64 = 5
    UINT64 = 6
    MAP = 7
    LIST = 8
    ARRAY = 9
    STRING = 10


_INTEGER_KINDS = {
    VariantType.INT: (32, True),
    VariantType.UINT: (32, False),
    VariantType.INT64: (64, True),
    VariantType.UINT64: (64, False),
}

_CONTAINER_KINDS = (VariantType.MAP, VariantType.LIST, VariantType.ARRAY)


def _wrap(value: int, bits: int, signed: bool) -> int:
    value &= (1 << bits) - 1
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value


def _infer(value: Any) -> VariantType:
    if value is None:
        return VariantType.NULL
    if isinstance(value, bool):
        return VariantType.BOOL
    if isinstance(value, float):
        return VariantType.DOUBLE
    if isinstance(value, int):
        if -(1 << 31) <= value < (1 << 31):
            return VariantType.INT
        if -(1 << 63) <= value < (1 << 63):
            return VariantType.INT64
        if 0 <= value < (1 << 64):
            return VariantType.UINT64
        raise OverflowError(f"integer {value} does not fit in 64 bits")
    if isinstance(value, str):
        return VariantType.STRING
    if isinstance(value, dict):
        return VariantType.MAP
    if isinstance(value, (list, tuple)):
        return VariantType.LIST
    raise TypeError(f"cannot store {type(value).__name__} in a Variant")


def _normalize(value: Any, kind: VariantType) -> Any:
    if kind is VariantType.NULL:
        if value is not None:
            raise TypeError("a null Variant holds no value")
        return None
    if kind is VariantType.BOOL:
        return bool(value)
    if kind is VariantType.DOUBLE:
        return float(value)
    if kind in _INTEGER_KINDS:
        bits, signed = _INTEGER_KINDS[kind]
        return _wrap(operator.index(value), bits, signed)
    if kind is VariantType.STRING:
        if not isinstance(value, str):
            raise TypeError("a string Variant needs a str value")
        return value
    if kind is VariantType.MAP:
        if not isinstance(value, dict):
            raise TypeError("a map Variant needs a dict value")
        for key in value:
            if not isinstance(key, str):
                raise TypeError("map keys must be strings")
        return {key: Variant(item) for key, item in value.items()}
    if isinstance(value, (str, bytes, dict)):
        raise TypeError("a list Variant needs a sequence of values")
    return [Variant(item) for item in value]


def _string_to_bool(text: str) -> bool:
    if text.strip().lower() == "true":
        return True
    return strings.to_double(text) != 0.0


class Variant:
    """A value of one of the :class:`VariantType` kinds.

    Copying a variant, or storing one in another, copies its contents, so
    containers obtained from one variant never alias those of another.
    Map values and list elements are themselves variants.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, value: Any = None, kind: VariantType | None = None) -> None:
        self._type, self._value = self._coerce(value, kind)

    @staticmethod
    def _coerce(value: Any, kind: VariantType | None) -> tuple[VariantType, Any]:
        if isinstance(value, Variant):
            target = value._type if kind is None else VariantType(kind)
            return target, value._convert(target)
        target = _infer(value) if kind is None else VariantType(kind)
        return target, _normalize(value, target)

    def _copied_value(self) -> Any:
        if self._type is VariantType.MAP:
            return {key: Variant(item) for key, item in self._value.items()}
        if self._type in (VariantType.LIST, VariantType.ARRAY):
            return [Variant(item) for item in self._value]
        return self._value

    def _convert(self, target: VariantType) -> Any:
        if target is self._type:
            return self._copied_value()
        if target is VariantType.NULL:
            return None
        if target is VariantType.BOOL:
            return self.to_bool()
        if target is VariantType.DOUBLE:
            return self.to_double()
        if target is VariantType.INT:
            return self.to_int()
        if target is VariantType.UINT:
            return self.to_uint()
        if target is VariantType.INT64:
            return self.to_int64()
        if target is VariantType.UINT64:
            return self.to_uint64()
        if target is VariantType.STRING:
            return self.to_string()
        if target is VariantType.MAP:
            return {}
        return []

    def type(self) -> VariantType:
        """The kind of value held."""
        return self._type

    def is_null(self) -> bool:
        """Whether no value is held."""
        return self._type is VariantType.NULL

    def clear(self) -> None:
        """Drop the value, leaving a null variant."""
        self._type, self._value = VariantType.NULL, None

    def set(self, value: Any, kind: VariantType | None = None) -> None:
        """Replace the value, inferring its kind unless ``kind`` is given."""
        self._type, self._value = self._coerce(value, kind)

    def _to_integer(self, kind: VariantType, parse: Any) -> int:
        bits, signed = _INTEGER_KINDS[kind]
        t = self._type
        if t is VariantType.BOOL:
            return 1 if self._value else 0
        if t is VariantType.DOUBLE:
            if not math.isfinite(self._value):
                return 0
            return _wrap(math.trunc(self._value), bits, signed)
        if t in _INTEGER_KINDS:
            return _wrap(self._value, bits, signed)
        if t is VariantType.STRING:
            return parse(self._value)
        return 0

    def to_bool(self) -> bool:
        """The value as a boolean; False for null and containers."""
        t = self._type
        if t is VariantType.BOOL:
            return self._value
        if t is VariantType.DOUBLE or t in _INTEGER_KINDS:
            return self._value != 0
        if t is VariantType.STRING:
            return _string_to_bool(self._value)
        return False

    def to_double(self) -> float:
        """The value as a float; 0.0 for null and containers."""
        t = self._type
        if t is VariantType.BOOL:
            return 1.0 if self._value else 0.0
        if t is VariantType.DOUBLE or t in _INTEGER_KINDS:
            return float(self._value)
        if t is VariantType.STRING:
            return strings.to_double(self._value)
        return 0.0

    def to_int(self) -> int:
        """The value as a signed 32-bit integer."""
        return self._to_integer(VariantType.INT, strings.to_int)

    def to_uint(self) -> int:
        """The value as an unsigned 32-bit integer."""
        return self._to_integer(VariantType.UINT, strings.to_uint)

    def to_int64(self) -> int:
        """The value as a signed 64-bit integer."""
        return self._to_integer(VariantType.INT64, strings.to_int64)

    def to_uint64(self) -> int:
        """The value as an unsigned 64-bit integer."""
        return self._to_integer(VariantType.UINT64, strings.to_uint64)

    def to_string(self) -> str:
        """The value as text; empty for null and containers."""
        t = self._type
        if t is VariantType.STRING:
            return self._value
        if t is VariantType.BOOL:
            return "true" if self._value else "false"
        if t is VariantType.DOUBLE:
            return strings.from_double(self._value)
        if t in _INTEGER_KINDS:
            return str(self._value)
        return ""

    def _container(self, kind: VariantType) -> Any:
        if self._type is not kind:
            self._type = kind
            self._value = {} if kind is VariantType.MAP else []
        return self._value

    def to_map(self) -> dict[str, "Variant"]:
        """The held map, to modify in place; a non-map becomes an empty map first."""
        return self._container(VariantType.MAP)

    def to_list(self) -> list["Variant"]:
        """The held list, to modify in place; a non-list becomes an empty list first."""
        return self._container(VariantType.LIST)

    def to_array(self) -> list["Variant"]:
        """The held array, to modify in place; a non-array becomes an empty array first."""
        return self._container(VariantType.ARRAY)

    def swap(self, other: "Variant") -> None:
        """Exchange values with ``other``."""
        self._type, other._type = other._type, self._type
        self._value, other._value = other._value, self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variant):
            try:
                other = Variant(other)
            except (TypeError, OverflowError, ValueError):
                return NotImplemented
        t = self._type
        if t is VariantType.NULL:
            return other.is_null()
        if t is VariantType.BOOL:
            return self._value == other.to_bool()
        if t is VariantType.DOUBLE:
            return self._value == other.to_double()
        if t is VariantType.INT:
            return self._value == other.to_int()
        if t is VariantType.UINT:
            return self._value == other.to_uint()
        if t is VariantType.INT64:
            return self._value == other.to_int64()
        if t is VariantType.UINT64:
            return self._value == other.to_uint64()
        if t in _CONTAINER_KINDS:
            return other._type is t and self._value == other._value
        if other._type is VariantType.STRING:
            return self._value == other._value
        return other == self

    def __repr__(self) -> str:
        return f"Variant({self._value!r}, {self._type.name})"