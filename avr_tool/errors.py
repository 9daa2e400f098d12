# errors.py
from __future__ import annotations
from typing import Any


class AvrToolError(Exception):
    """Base class for input errors reported back to the caller."""


class InvalidFieldValue(AvrToolError, ValueError):
    """A value that the field cannot take (unknown enum member, wrong type, unknown field)."""

    def __init__(self, field: str, value: Any, reason: str = ""):
        self.field = field
        self.value = value
        msg = f"invalid value {value!r} for field {field}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidRequest(AvrToolError, ValueError):
    """Non-physical timer request: bad frequency, negative duration, unsupported width."""


class DeviceDataError(AvrToolError, ValueError):
    """Malformed device description."""
