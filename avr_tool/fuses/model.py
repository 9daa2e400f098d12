# fuses/model.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FieldKind(str, Enum):
    ENUM = "enum"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class EnumValue:
    value: int  # already shifted into the field's bit positions
    label: str


@dataclass(frozen=True)
class RawBits:
    """Enum bits that match none of the declared values (reserved combinations)."""

    value: int

    def __str__(self) -> str:
        return f"0x{self.value:02X} (unknown)"


@dataclass(frozen=True)
class Bitfield:
    name: str
    mask: int
    kind: FieldKind = FieldKind.BOOLEAN
    values: Tuple[EnumValue, ...] = ()
    caption: Optional[str] = None

    def __post_init__(self):
        if not 0 < self.mask <= 0xFF:
            raise ValueError(f"{self.name}: mask 0x{self.mask:X} out of byte range")
        for v in self.values:
            if not 0 <= v.value <= 0xFF:
                raise ValueError(f"{self.name}: value 0x{v.value:X} out of byte range")
        if self.kind is FieldKind.ENUM and not self.values:
            raise ValueError(f"{self.name}: enum field without values")

    @property
    def title(self) -> str:
        return self.caption or self.name

    def member(self, bits: int) -> Optional[EnumValue]:
        for v in self.values:
            if v.value == bits:
                return v
        return None


@dataclass(frozen=True)
class Register:
    name: str
    default: int
    fields: Tuple[Bitfield, ...] = ()

    def __post_init__(self):
        if not 0 <= self.default <= 0xFF:
            raise ValueError(f"{self.name}: default 0x{self.default:X} out of byte range")

    def field(self, name: str) -> Bitfield:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"{self.name} has no field {name}")

    def sorted_fields(self) -> Tuple[Bitfield, ...]:
        # display order only, high bits first
        return tuple(sorted(self.fields, key=lambda f: f.mask, reverse=True))
