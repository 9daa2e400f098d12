# fuses/device.py
from __future__ import annotations
import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import DEVICES_DIR
from ..errors import DeviceDataError
from .model import Bitfield, EnumValue, FieldKind, Register


@dataclass(frozen=True)
class Device:
    name: str
    partno: str
    f_cpu: Optional[int]
    registers: Tuple[Register, ...] = ()

    def register(self, name: str) -> Register:
        for r in self.registers:
            if r.name.upper() == name.upper():
                return r
        raise KeyError(f"{self.name} has no fuse register {name}")


def _field(raw: dict) -> Bitfield:
    values = tuple(
        EnumValue(value=int(v["value"]), label=str(v.get("label") or v.get("name") or v["value"]))
        for v in raw.get("values") or []
    )
    return Bitfield(
        name=raw["name"],
        mask=int(raw["mask"]),
        kind=FieldKind.ENUM if values else FieldKind.BOOLEAN,
        values=values,
        caption=raw.get("caption"),
    )


def parse_device(data: dict, source: str = "<data>") -> Device:
    try:
        registers = tuple(
            Register(
                name=r["name"],
                default=int(r["default"]),
                fields=tuple(_field(f) for f in r.get("bitfields", [])),
            )
            for r in data.get("fuses", [])
        )
        return Device(
            name=data["name"],
            partno=data.get("partno", data["name"]),
            f_cpu=data.get("f_cpu"),
            registers=registers,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DeviceDataError(f"{source}: {e}") from e


def load_device(path: Path) -> Device:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DeviceDataError(f"{path}: {e}") from e
    return parse_device(data, source=str(path))


def list_devices(directory: Path = DEVICES_DIR) -> List[Device]:
    return [load_device(p) for p in sorted(Path(directory).glob("*.json"))]


def find_device(name: str, directory: Path = DEVICES_DIR) -> Device:
    """Look up by file stem, device name or avrdude part number."""
    key = name.lower()
    candidate = Path(directory) / f"{key}.json"
    if candidate.exists():
        return load_device(candidate)
    for dev in list_devices(directory):
        if key in (dev.name.lower(), dev.partno.lower()):
            return dev
    raise KeyError(f"unknown device: {name}")
