"""Type descriptions, initial values and value entries of a state tree."""

from __future__ import annotations

import enum
import math
import struct
import unicodedata
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

_INT_RANGES: dict[str, tuple[int, int]] = {
    "u8": (0, 2**8 - 1),
    "u16": (0, 2**16 - 1),
    "u32": (0, 2**32 - 1),
    "u64": (0, 2**64 - 1),
    "i8": (-(2**7), 2**7 - 1),
    "i16": (-(2**15), 2**15 - 1),
    "i32": (-(2**31), 2**31 - 1),
    "i64": (-(2**63), 2**63 - 1),
}
_FLOAT_NAMES = frozenset({"f32", "f64"})
_BASIC_NAMES = frozenset({"String", "bool", "()", *_INT_RANGES, *_FLOAT_NAMES})
_MAX_TUPLE = 10


# type descriptions ---------------------------------------------------------


@dataclass(frozen=True)
class BasicType:
    """A primitive type such as ``u8``, ``f32``, ``bool``, ``String`` or ``()``."""

    name: str

    def __post_init__(self) -> None:
        if self.name not in _BASIC_NAMES:
            raise ValueError(f"unknown basic type: {self.name!r}")


@dataclass(frozen=True)
class TupleType:
    """A tuple of one to ten element types."""

    elements: tuple[TypeInfo, ...]

    def __post_init__(self) -> None:
        elements = tuple(self.elements)
        if not 1 <= len(elements) <= _MAX_TUPLE:
            raise ValueError(f"tuple must have 1 to {_MAX_TUPLE} elements, got {len(elements)}")
        object.__setattr__(self, "elements", elements)


@dataclass(frozen=True)
class ArrayType:
    """A fixed-size array."""

    element: TypeInfo
    size: int

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 0:
            raise ValueError(f"array size must be a non-negative integer, got {self.size!r}")


@dataclass(frozen=True)
class OptionType:
    """A value that may be absent."""

    element: TypeInfo


@dataclass(frozen=True)
class StructType:
    """A named record with ordered, typed fields."""

    name: str
    fields: tuple[tuple[str, TypeInfo], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple((n, t) for n, t in self.fields))


@dataclass(frozen=True)
class EnumType:
    """A named enumeration with ordered variants and their integer values."""

    name: str
    variants: tuple[tuple[str, int], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", tuple((n, int(v)) for n, v in self.variants))


TypeInfo = Union[BasicType, TupleType, ArrayType, OptionType, StructType, EnumType]


# initial values ------------------------------------------------------------


@dataclass(frozen=True)
class InitScalar:
    """A literal written out as source text."""

    text: str


@dataclass(frozen=True)
class InitOption:
    """An optional initial value; ``inner`` is None when absent."""

    inner: InitValue | None


@dataclass(frozen=True)
class InitStruct:
    """A struct literal with its fields in declaration order."""

    name: str
    fields: tuple[tuple[str, InitValue], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple((n, v) for n, v in self.fields))


@dataclass(frozen=True)
class InitTuple:
    """A tuple literal."""

    elements: tuple[InitValue, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class InitArray:
    """An array literal."""

    elements: tuple[InitValue, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


InitValue = Union[InitScalar, InitOption, InitStruct, InitTuple, InitArray]


# value entries -------------------------------------------------------------


@dataclass(frozen=True)
class ValueEntry:
    """A two-way synchronised value."""

    name: str
    id: int
    info: TypeInfo
    init: InitValue


@dataclass(frozen=True)
class StaticEntry:
    """A value set only by the server."""

    name: str
    id: int
    info: TypeInfo
    init: InitValue


@dataclass(frozen=True)
class ImageEntry:
    """An image texture."""

    name: str
    id: int


@dataclass(frozen=True)
class DictEntry:
    """A synchronised dictionary."""

    name: str
    id: int
    key_info: TypeInfo
    value_info: TypeInfo


@dataclass(frozen=True)
class ListEntry:
    """A synchronised list."""

    name: str
    id: int
    info: TypeInfo


@dataclass(frozen=True)
class GraphsEntry:
    """A collection of graphs."""

    name: str
    id: int
    info: TypeInfo


@dataclass(frozen=True)
class SignalEntry:
    """A one-way signal sent from the client."""

    name: str
    id: int
    info: TypeInfo


@dataclass(frozen=True)
class SubStateEntry:
    """A nested state, referenced by its state name."""

    name: str
    substate: str


# building initial values ---------------------------------------------------


def _debug_str(text: str) -> str:
    out = ['"']
    for ch in text:
        if ch == "\\":
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\0":
            out.append("\\0")
        elif unicodedata.category(ch) in {"Cc", "Cf", "Cs", "Co", "Cn", "Zl", "Zp"}:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError as exc:
        raise ValueError(f"value {value!r} does not fit in f32") from exc


def _shortest_digits(value: float, bits: int) -> str:
    if bits == 64:
        return repr(value)
    for precision in range(1, 18):
        text = f"{value:.{precision}g}"
        if _to_f32(float(text)) == value:
            return text
    return repr(value)


def _float_text(value: float, bits: int) -> str:
    if bits == 32:
        value = _to_f32(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == 0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"

    sign, digit_tuple, exponent = Decimal(_shortest_digits(abs(value), bits)).as_tuple()
    digits = "".join(map(str, digit_tuple))
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped
    point = len(digits) + exponent
    prefix = "-" if value < 0 else ""

    if 1e-4 <= abs(value) < 1e16:
        if point <= 0:
            body = "0." + "0" * (-point) + digits
        elif point >= len(digits):
            body = digits + "0" * (point - len(digits)) + ".0"
        else:
            body = digits[:point] + "." + digits[point:]
    else:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        body = f"{mantissa}e{point - 1}"
    return prefix + body


def _basic_text(value: Any, name: str) -> str:
    if name == "()":
        raise TypeError("the unit type has no initial value")
    if name == "bool":
        if not isinstance(value, bool):
            raise TypeError(f"expected bool, got {type(value).__name__}")
        return "true" if value else "false"
    if name in _INT_RANGES:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected int for {name}, got {type(value).__name__}")
        low, high = _INT_RANGES[name]
        if not low <= value <= high:
            raise ValueError(f"value {value} out of range for {name}")
        return str(value)
    if name in _FLOAT_NAMES:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected float for {name}, got {type(value).__name__}")
        return _float_text(float(value), 32 if name == "f32" else 64)
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return f"{_debug_str(value)}.into()"


def _sequence(value: Any, size: int, kind: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Sequence):
        raise TypeError(f"expected a sequence for {kind}, got {type(value).__name__}")
    if len(value) != size:
        raise ValueError(f"{kind} expects {size} elements, got {len(value)}")
    return value


def _struct_fields(value: Any, info: StructType) -> tuple[tuple[str, InitValue], ...]:
    names = [name for name, _ in info.fields]
    if isinstance(value, Mapping):
        unknown = set(value) - set(names)
        if unknown:
            raise ValueError(f"unknown fields for {info.name}: {sorted(map(str, unknown))}")
        missing = [name for name in names if name not in value]
        if missing:
            raise ValueError(f"missing fields for {info.name}: {missing}")
        return tuple((name, init_value(value[name], typ)) for name, typ in info.fields)
    fields = []
    for name, typ in info.fields:
        if not hasattr(value, name):
            raise ValueError(f"missing field {name!r} for {info.name}")
        fields.append((name, init_value(getattr(value, name), typ)))
    return tuple(fields)


def init_value(value: Any, info: TypeInfo) -> InitValue:
    """Describe ``value`` as an initial value of type ``info``."""
    if isinstance(info, BasicType):
        return InitScalar(_basic_text(value, info.name))
    if isinstance(info, OptionType):
        return InitOption(None if value is None else init_value(value, info.element))
    if isinstance(info, TupleType):
        items = _sequence(value, len(info.elements), "tuple")
        return InitTuple(tuple(init_value(v, t) for v, t in zip(items, info.elements)))
    if isinstance(info, ArrayType):
        items = _sequence(value, info.size, "array")
        return InitArray(tuple(init_value(v, info.element) for v in items))
    if isinstance(info, StructType):
        return InitStruct(info.name, _struct_fields(value, info))
    if isinstance(info, EnumType):
        variant = value.name if isinstance(value, enum.Enum) else value
        if not isinstance(variant, str):
            raise TypeError(f"expected a variant name for {info.name}, got {type(value).__name__}")
        if variant not in {name for name, _ in info.variants}:
            raise ValueError(f"{info.name} has no variant {variant!r}")
        return InitScalar(f"{info.name}::{variant}")
    raise TypeError(f"not a type description: {info!r}")