# programmer/project.py
from __future__ import annotations
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

PROJECT_ID = "atmel-project-config"
CONFIG_NAME = "config.json"


@dataclass(frozen=True)
class HardwareConfig:
    programmer: str
    partno: str
    port: Optional[str] = None
    bit_clock: Optional[str] = None
    cwd: str = "."
    cpu_freq: Optional[int] = None


def _opt_str(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def load_project_config(path: Path) -> Optional[HardwareConfig]:
    """
    Read a project config.json. Older projects store the part as "mcu" and
    the bit clock as "bitclock"; both spellings are accepted here and nowhere else.
    Returns None when the file names no part.
    """
    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_NAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} could not be parsed: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")

    partno = data.get("partno") or data.get("mcu")
    if not partno:
        return None
    bit_clock = data.get("bitClock", data.get("bitclock"))
    cpu_freq = data.get("cpu_freq")
    return HardwareConfig(
        programmer=str(data.get("programmer") or ""),
        partno=str(partno),
        port=_opt_str(data.get("port")),
        bit_clock=_opt_str(bit_clock),
        cwd=str(path.parent),
        cpu_freq=int(cpu_freq) if cpu_freq else None,
    )


def is_project(folder: Path) -> bool:
    path = Path(folder) / CONFIG_NAME
    if not path.exists():
        return False
    try:
        return json.loads(path.read_text(encoding="utf-8")).get("id") == PROJECT_ID
    except (json.JSONDecodeError, AttributeError, OSError):
        return False
