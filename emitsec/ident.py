"""Process-wide unique identifiers."""

from __future__ import annotations

import base64
import hashlib
import struct
import threading
from datetime import datetime, timezone

_U64 = 2**64 - 1
_SEED_EPOCH = datetime(2015, 1, 1, tzinfo=timezone.utc)


class ID(int):
    """An unsigned 64-bit identifier."""

    def __new__(cls, value: int = 0) -> "ID":
        if not 0 <= value <= _U64:
            raise ValueError(f"ID out of range: {value}")
        return super().__new__(cls, value)

    def unique(self, prefix: int, salt: str) -> str:
        """A base32 string derived from the prefix, this id and the salt."""
        material = struct.pack(">QQ", prefix & _U64, int(self))
        derived = hashlib.pbkdf2_hmac("sha1", material, salt.encode("utf-8"), 4096, 16)
        return base64.b32encode(derived).decode("ascii").strip("=")

    def __str__(self) -> str:
        value = int(self)
        out = bytearray()
        while value >= 0x80:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        out.append(value)
        return out.hex().upper()

    def __repr__(self) -> str:
        return f"ID({int(self)})"


class IDGenerator:
    """Thread-safe source of increasing identifiers."""

    def __init__(self, start: int | None = None) -> None:
        if start is None:
            start = int((datetime.now(timezone.utc) - _SEED_EPOCH).total_seconds())
        self._current = start & _U64
        self._lock = threading.Lock()

    def next(self) -> ID:
        with self._lock:
            self._current = (self._current + 1) & _U64
            return ID(self._current)


_default = IDGenerator()


def new_id() -> ID:
    """Return a new process-wide unique identifier."""
    return _default.next()