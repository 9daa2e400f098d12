# fuses/codec.py
"""Fuse byte <-> named bitfields.

Boolean fields follow the AVR fuse convention: a programmed (active) fuse
reads as 0, an unprogrammed one as 1.

Enum bits that match no declared value are decoded as ``RawBits`` and written
back verbatim by ``encode``, so whatever the chip reports survives a
decode/encode pass unchanged.
"""

from __future__ import annotations
from typing import Dict, Iterable, Mapping, Union

from ..errors import InvalidFieldValue
from .model import Bitfield, EnumValue, FieldKind, RawBits

Presented = Union[EnumValue, RawBits, bool]
Desired = Union[EnumValue, RawBits, bool, int]

_TRUE = {"1", "true", "yes", "on", "programmed"}
_FALSE = {"0", "false", "no", "off", "unprogrammed"}


def decode(value: int, fields: Iterable[Bitfield]) -> Dict[str, Presented]:
    out: Dict[str, Presented] = {}
    for f in fields:
        bits = value & f.mask
        if f.kind is FieldKind.BOOLEAN:
            out[f.name] = bits == 0
        else:
            member = f.member(bits)
            out[f.name] = member if member is not None else RawBits(bits)
    return out


def _field_bits(f: Bitfield, desired: Desired) -> int:
    if f.kind is FieldKind.BOOLEAN:
        if not isinstance(desired, bool):
            raise InvalidFieldValue(f.name, desired, "expected a boolean")
        return 0 if desired else f.mask

    if isinstance(desired, RawBits):
        return desired.value
    if isinstance(desired, EnumValue):
        if desired not in f.values:
            raise InvalidFieldValue(f.name, desired, "not a declared value")
        return desired.value
    if isinstance(desired, bool) or not isinstance(desired, int):
        raise InvalidFieldValue(f.name, desired, "expected an enum value")
    if f.member(desired) is None:
        raise InvalidFieldValue(f.name, desired, "not a declared value")
    return desired


def encode(fields: Iterable[Bitfield], default: int, field_values: Mapping[str, Desired]) -> int:
    by_name = {f.name: f for f in fields}
    unknown = [name for name in field_values if name not in by_name]
    if unknown:
        raise InvalidFieldValue(unknown[0], field_values[unknown[0]], "no such field")

    acc = default & 0xFF
    for name, desired in field_values.items():
        f = by_name[name]
        acc &= ~f.mask
        acc |= _field_bits(f, desired) & f.mask
    return acc & 0xFF


def parse_field_value(f: Bitfield, text: str) -> Desired:
    """Turn user text (CLI argument) into something ``encode`` accepts."""
    s = text.strip()
    if f.kind is FieldKind.BOOLEAN:
        low = s.lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
        raise InvalidFieldValue(f.name, text, "expected on/off")

    for v in f.values:
        if v.label.lower() == s.lower():
            return v
    try:
        return int(s, 0)
    except ValueError:
        raise InvalidFieldValue(f.name, text, "unknown label") from None


def parse_byte(text: str) -> int:
    """Fuse bytes are always written in hex, with or without the 0x prefix."""
    s = text.strip()
    try:
        value = int(s, 16)
    except ValueError:
        raise ValueError(f"not a byte value: {text!r}") from None
    if not 0 <= value <= 0xFF:
        raise ValueError(f"value {text} does not fit in one byte")
    return value


def format_byte(value: int) -> str:
    return f"0x{value & 0xFF:02X}"


def describe(value: Presented) -> str:
    if isinstance(value, bool):
        return "programmed" if value else "unprogrammed"
    if isinstance(value, EnumValue):
        return value.label
    return str(value)
