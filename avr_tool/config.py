import os
import sys
from pathlib import Path

PKG_ROOT = Path(__file__).resolve().parent
# bundled resources live next to the sources, or in the PyInstaller unpack dir
BASE_RES = Path(getattr(sys, "_MEIPASS", PKG_ROOT))

DEVICES_DIR = BASE_RES / "devices"

LOG_DIR = Path(os.environ.get("AVR_TOOL_LOG_DIR", PKG_ROOT / "logs"))
LOG_FILE = LOG_DIR / "session.jsonl"
APP_NAME = "AVR CLI"

DEFAULT_F_CPU = 16_000_000
DEFAULT_PORT = "usb"
DEFAULT_BIT_CLOCK = "5"
