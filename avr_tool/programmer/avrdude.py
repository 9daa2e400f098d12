# programmer/avrdude.py
"""
avrdude command lines for fuse read/write. Only builds argv lists and parses
output; running the tool is left to the caller.
"""

from __future__ import annotations
import shlex
from typing import Dict, List, Mapping

from .project import HardwareConfig

AVRDUDE = "avrdude"

MEMORY_NAMES: Dict[str, str] = {
    "LOW": "lfuse",
    "HIGH": "hfuse",
    "EXTENDED": "efuse",
    "LOCKBIT": "lock",
}


def memory_name(register: str):
    return MEMORY_NAMES.get(register.upper())


def hardware_args(config: HardwareConfig) -> List[str]:
    args = ["-p", config.partno, "-c", config.programmer]
    if config.port and config.port.strip():
        args += ["-P", config.port.strip()]
    if config.bit_clock is not None and str(config.bit_clock).strip():
        args += ["-B", str(config.bit_clock).strip()]
    return args


def write_args(config: HardwareConfig, values: Mapping[str, int], dry_run: bool = False) -> List[str]:
    ops: List[str] = []
    for reg, val in values.items():
        mem = memory_name(reg)
        if mem:
            ops += ["-U", f"{mem}:w:0x{val & 0xFF:02X}:m"]
    if not ops:
        raise ValueError("No fuse values provided to write.")
    args = [AVRDUDE] + hardware_args(config)
    if dry_run:
        args.append("-n")
    return args + ops


def read_args(config: HardwareConfig, register: str) -> List[str]:
    mem = memory_name(register)
    if not mem:
        raise KeyError(f"no avrdude memory for register {register}")
    return [AVRDUDE] + hardware_args(config) + ["-U", f"{mem}:r:-:h"]


def parse_read_output(register: str, text: str) -> int:
    clean = text.strip()
    try:
        value = int(clean, 16)
    except ValueError:
        raise ValueError(f'Invalid output for {register}: "{clean}"') from None
    if not 0 <= value <= 0xFF:
        raise ValueError(f'Invalid output for {register}: "{clean}" is not a byte')
    return value


def format_command(argv: List[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)
